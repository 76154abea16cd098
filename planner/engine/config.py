"""
Planner Configuration — Load and validate planner.yaml at startup.

Usage:
    from planner.engine.config import load_server_config
    config = load_server_config("planner.yaml")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from planner.engine.errors import ConfigError


# ---------------------------------------------------------------------------
# Pydantic models for planner.yaml
# ---------------------------------------------------------------------------

class StateConfig(BaseModel):
    path: str = "PlannerServer.json"
    save_on_shutdown: bool = True


class SecurityConfig(BaseModel):
    token_length: int = Field(default=25, ge=8, le=128)
    require_session_for_templates: bool = False


class LogRetentionConfig(BaseModel):
    execution_days: int = 90
    security_days: int = 365


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".planner/logs"
    compress_after_days: int = 7
    retention: LogRetentionConfig = LogRetentionConfig()
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return level


class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 1061


class ServerConfig(BaseModel):
    """Root model for planner.yaml."""
    name: str = "Planner Server"
    version: str = "1.0.0"
    environment: str = "dev"

    state: StateConfig = StateConfig()
    security: SecurityConfig = SecurityConfig()
    logging: LoggingConfig = LoggingConfig()
    api: ApiConfig = ApiConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

def _find_project_root() -> Path:
    """Find the project root by looking for planner.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / "planner.yaml").exists():
            return parent
    return current


def load_server_config(config_path: Optional[str] = None) -> ServerConfig:
    """
    Load and validate planner.yaml.

    Args:
        config_path: Explicit path to planner.yaml. If None, auto-discovers.

    Returns:
        Validated ServerConfig instance. Defaults when the file is absent.

    Raises:
        ConfigError if the file is unreadable or fails validation.
    """
    if config_path is None:
        config_path = str(_find_project_root() / "planner.yaml")

    path = Path(config_path)
    if not path.exists():
        return ServerConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping", path=str(path))

    # planner.yaml may nest name/version/environment under "server:"
    server_data: Dict[str, Any] = raw.get("server", {}) or {}
    config_data = {
        "name": server_data.get("name", raw.get("name", "Planner Server")),
        "version": server_data.get("version", raw.get("version", "1.0.0")),
        "environment": server_data.get("environment", raw.get("environment", "dev")),
        "state": raw.get("state", {}) or {},
        "security": raw.get("security", {}) or {},
        "logging": raw.get("logging", {}) or {},
        "api": raw.get("api", {}) or {},
    }

    try:
        return ServerConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}", path=str(path)) from e


"""Planner Engine — Server façade, state components, persistence, config, logging."""

from planner.engine.errors import PlannerError  # noqa: F401
from planner.engine.config import ServerConfig, load_server_config  # noqa: F401
from planner.engine.server import PlannerServer  # noqa: F401

__all__ = [
    "PlannerError",
    "PlannerServer",
    "ServerConfig",
    "load_server_config",
]

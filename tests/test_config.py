"""Unit tests for planner.engine.config — planner.yaml loading and validation."""

import pytest
from pydantic import ValidationError

from planner.engine.config import (
    LoggingConfig,
    ServerConfig,
    load_server_config,
)
from planner.engine.errors import ConfigError


class TestServerConfigDefaults:
    def test_defaults(self):
        cfg = ServerConfig()
        assert cfg.environment == "dev"
        assert cfg.state.path == "PlannerServer.json"
        assert cfg.state.save_on_shutdown is True
        assert cfg.security.token_length == 25
        assert cfg.security.require_session_for_templates is False
        assert cfg.api.port == 1061
        assert cfg.logging.retention.execution_days == 90
        assert cfg.logging.retention.security_days == 365

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            ServerConfig(environment="qa")

    def test_level_is_uppercased(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="loud")

    def test_token_length_bounds(self):
        with pytest.raises(ValidationError):
            ServerConfig(security={"token_length": 4})


class TestLoadServerConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_server_config(str(tmp_path / "absent.yaml"))
        assert cfg == ServerConfig()

    def test_load_full_file(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text(
            "server:\n"
            "  name: Test Planner\n"
            "  environment: staging\n"
            "state:\n"
            "  path: data/state.json\n"
            "  save_on_shutdown: false\n"
            "security:\n"
            "  require_session_for_templates: true\n"
            "logging:\n"
            "  level: warning\n"
            "  directory: /var/log/planner\n"
            "api:\n"
            "  port: 8080\n",
            encoding="utf-8",
        )
        cfg = load_server_config(str(path))
        assert cfg.name == "Test Planner"
        assert cfg.environment == "staging"
        assert cfg.state.path == "data/state.json"
        assert cfg.state.save_on_shutdown is False
        assert cfg.security.require_session_for_templates is True
        assert cfg.logging.level == "WARNING"
        assert cfg.logging.directory == "/var/log/planner"
        assert cfg.api.port == 8080

    def test_invalid_values_raise_config_error(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text("server:\n  environment: nowhere\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_server_config(str(path))

    def test_malformed_yaml_raises_config_error(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text("state: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_server_config(str(path))

    def test_non_mapping_raises_config_error(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_server_config(str(path))

    def test_top_level_server_fields(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text("name: Flat Planner\nenvironment: prod\n", encoding="utf-8")
        cfg = load_server_config(str(path))
        assert cfg.name == "Flat Planner"
        assert cfg.environment == "prod"

    def test_auto_discovery(self, tmp_path, monkeypatch):
        (tmp_path / "planner.yaml").write_text("api:\n  port: 9000\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_server_config().api.port == 9000

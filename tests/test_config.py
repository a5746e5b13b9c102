"""
Test suite for configuration system

Tests AnalyzerConfig and its sections for defaults, environment overrides
and YAML loading.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from promtriage.config import AnalyzerConfig, RulesConfig, ServerConfig, get_config, set_config


class TestSections:
    """Test configuration section defaults"""

    def test_rules_defaults(self):
        config = RulesConfig()
        assert config.rules_dir == Path("./automated-rules")
        assert config.resolved_load_level_dir() == Path("./automated-rules/load-level")

    def test_explicit_load_level_dir(self):
        config = RulesConfig(load_level_dir="/etc/promtriage/levels")
        assert config.resolved_load_level_dir() == Path("/etc/promtriage/levels")

    def test_server_defaults(self):
        config = ServerConfig()
        assert config.port == 8080
        assert config.max_file_size == 50 * 1024 * 1024
        assert config.request_timeout == 60.0

    def test_server_port_validated(self):
        with pytest.raises(ValidationError):
            ServerConfig(port=70000)


class TestAnalyzerConfig:
    """Test the top-level configuration"""

    def test_defaults(self):
        config = AnalyzerConfig()
        assert config.report.format == "console"
        assert config.log_level == "WARNING"
        assert config.telemetry.tracing.enabled is False

    def test_environment_overrides(self):
        """Test nested environment variables"""
        with patch.dict(
            os.environ,
            {
                "PROMTRIAGE_LOG_LEVEL": "DEBUG",
                "PROMTRIAGE_SERVER__PORT": "9090",
                "PROMTRIAGE_RULES__RULES_DIR": "/srv/rules",
            },
        ):
            config = AnalyzerConfig()

        assert config.log_level == "DEBUG"
        assert config.server.port == 9090
        assert config.rules.rules_dir == Path("/srv/rules")

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "promtriage.yml"
        path.write_text(
            "report:\n  format: markdown\n  color: false\nserver:\n  port: 8181\n",
            encoding="utf-8",
        )

        config = AnalyzerConfig.load_from_file(str(path))

        assert config.report.format == "markdown"
        assert config.report.color is False
        assert config.server.port == 8181

    def test_missing_yaml_uses_defaults(self, tmp_path):
        config = AnalyzerConfig.load_from_file(str(tmp_path / "absent.yml"))
        assert config.server.port == 8080

    def test_invalid_format_rejected(self):
        with pytest.raises(ValidationError):
            AnalyzerConfig(report={"format": "html"})

    def test_telemetry_config_carries_log_level(self):
        config = AnalyzerConfig(log_level="INFO", telemetry={"logging": {"format": "json"}})
        telemetry = config.telemetry_config()
        assert telemetry.logging.level == "INFO"
        assert telemetry.logging.format == "json"
        assert config.telemetry.logging.level == "WARNING"


class TestGlobalConfig:
    """Test the global configuration instance"""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_set_config(self):
        custom = AnalyzerConfig(log_level="ERROR")
        set_config(custom)
        assert get_config() is custom

        set_config(None)
        assert get_config() is not custom

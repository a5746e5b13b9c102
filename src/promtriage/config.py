"""
Configuration management for promtriage

Provides pydantic-based configuration with environment variable support
and YAML file loading capabilities.
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .observability.config import TelemetryConfig


class RulesConfig(BaseModel):
    """Where rule files are read from"""

    rules_dir: Path = Path("./automated-rules")
    load_level_dir: Optional[Path] = None

    def resolved_load_level_dir(self) -> Path:
        return self.load_level_dir or self.rules_dir / "load-level"


class ReportConfig(BaseModel):
    """Report rendering settings"""

    format: Literal["console", "markdown", "json"] = "console"
    template_path: Optional[Path] = None
    color: bool = True


class ServerConfig(BaseModel):
    """HTTP server settings"""

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    max_file_size: int = Field(default=50 * 1024 * 1024, gt=0)
    request_timeout: float = Field(default=60.0, gt=0)
    build_time: str = ""


class AnalyzerConfig(BaseSettings):
    """Main promtriage configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PROMTRIAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    rules: RulesConfig = Field(default_factory=RulesConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    log_level: str = "WARNING"

    @classmethod
    def load_from_file(cls, config_path: str = "promtriage.yml") -> "AnalyzerConfig":
        """Load configuration from a YAML file, if it exists, plus environment variables"""
        config_file = Path(config_path)
        config_data = {}

        if config_file.exists():
            with open(config_file, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    def telemetry_config(self) -> TelemetryConfig:
        """Telemetry settings with the top-level log level applied"""
        logging_config = self.telemetry.logging.model_copy(update={"level": self.log_level})
        return self.telemetry.model_copy(update={"logging": logging_config})


# Global configuration instance
_config: Optional[AnalyzerConfig] = None


def get_config() -> AnalyzerConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = AnalyzerConfig.load_from_file()
    return _config


def set_config(config: Optional[AnalyzerConfig]) -> None:
    """Set (or with None, reset) the global configuration instance"""
    global _config
    _config = config

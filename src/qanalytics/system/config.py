"""
System configuration.

One configuration for the whole library: analytics conventions, equity curve
downsampling and logging.

Search Order (SystemConfig.load):
1. Explicit path argument
2. $QANALYTICS_CONFIG
3. ./config/qanalytics.yaml
4. Built-in defaults

User YAML is deep-merged over the defaults, so a file only needs the keys it
changes. ``${VAR}`` placeholders in string values are replaced from the
environment; undefined variables keep the placeholder. Each section is then
coerced to its dataclass field types, so ``trading_days_per_year: ${DAYS}``
becomes an int.

Example YAML:
    analytics:
      risk_free_rate: 0.02
    downsampling:
      strategy: drawdown_peaks
      target_points: 500
    logging:
      level: DEBUG
"""

import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import TypeAdapter, ValidationError

from qanalytics.system.log_system import LoggerFactory, LoggingConfig as LoggerConfig

CONFIG_ENV_VAR = "QANALYTICS_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/qanalytics.yaml")

DOWNSAMPLING_STRATEGIES = ("lttb", "drawdown_peaks", "uniform")

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class AnalyticsConfig:
    """Conventions used by the ratio and report calculations."""

    risk_free_rate: float = 0.0  # Annual, fraction
    trading_days_per_year: int = 365  # 24/7 markets
    target_return: float = 0.0  # Annual Sortino target, fraction
    initial_capital: float = 10000.0

    def __post_init__(self) -> None:
        if self.trading_days_per_year <= 0:
            raise ValueError(f"trading_days_per_year must be positive, got {self.trading_days_per_year}")


@dataclass
class DownsamplingConfig:
    """How equity curves are reduced before storage."""

    enabled: bool = True
    strategy: str = "lttb"
    target_points: int = 1000

    def __post_init__(self) -> None:
        if self.strategy not in DOWNSAMPLING_STRATEGIES:
            raise ValueError(
                f"Unknown downsampling strategy: {self.strategy!r}. Use one of {', '.join(DOWNSAMPLING_STRATEGIES)}"
            )
        if self.target_points < 2:
            raise ValueError(f"target_points must be at least 2, got {self.target_points}")


@dataclass
class LoggingConfig:
    """Logging settings as they appear in YAML."""

    level: str = "INFO"
    format: str = "console"
    timestamp_format: str = "compact"
    enable_file: bool = False
    file_path: str = "logs/qanalytics.log"
    file_level: str = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3

    def to_logger_config(self) -> LoggerConfig:
        """Convert to the log_system.LoggingConfig consumed by LoggerFactory."""
        return LoggerConfig(
            level=self.level,  # type: ignore[arg-type]
            format=self.format,  # type: ignore[arg-type]
            timestamp_format=self.timestamp_format,  # type: ignore[arg-type]
            enable_file=self.enable_file,
            file_path=Path(self.file_path),
            file_level=self.file_level,  # type: ignore[arg-type]
            file_rotation=self.file_rotation,
            max_file_size_mb=self.max_file_size_mb,
            backup_count=self.backup_count,
        )


@dataclass
class SystemConfig:
    """Complete system configuration."""

    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    downsampling: DownsamplingConfig = field(default_factory=DownsamplingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | str | None = None) -> "SystemConfig":
        """
        Load configuration, falling back to defaults when no file is found.

        Args:
            config_path: Explicit YAML path (optional)

        Returns:
            SystemConfig with user values merged over defaults

        Raises:
            ValueError: If the file is not valid YAML or not a mapping
        """
        path = cls._resolve_path(config_path)
        defaults = asdict(cls())

        if path is None or not path.exists():
            return cls._from_dict(defaults)

        try:
            with path.open("r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML from {path}: {e}")

        if not isinstance(user_config, dict):
            raise ValueError(f"Config file {path} must contain a mapping at the top level")

        merged = _deep_merge(defaults, _substitute_env_vars(user_config))
        return cls._from_dict(merged)

    @staticmethod
    def _resolve_path(config_path: Path | str | None) -> Path | None:
        if config_path is not None:
            return Path(config_path)

        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)

        if DEFAULT_CONFIG_PATH.exists():
            return DEFAULT_CONFIG_PATH

        return None

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        """
        Build from a (possibly partial) dict; missing keys use defaults.

        Raises:
            ValueError: If a value cannot be converted to its field type or
                fails the section's own checks
        """
        sections = {}
        for name, adapter in _SECTION_ADAPTERS.items():
            try:
                sections[name] = adapter.validate_python(data.get(name) or {})
            except ValidationError as e:
                raise ValueError(f"Invalid {name!r} configuration: {e}") from e
        return cls(**sections)


_SECTION_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "analytics": TypeAdapter(AnalyticsConfig),
    "downsampling": TypeAdapter(DownsamplingConfig),
    "logging": TypeAdapter(LoggingConfig),
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``; override wins."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ``${VAR}`` in strings (recursively through dicts and lists)."""
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    if isinstance(value, str):
        return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


_system_config: SystemConfig | None = None


def get_system_config(config_path: Path | str | None = None) -> SystemConfig:
    """
    Get the cached system configuration.

    Loads on first call. An explicit path always reloads and replaces the
    cached instance.
    """
    global _system_config
    if _system_config is None or config_path is not None:
        _system_config = SystemConfig.load(config_path)
    return _system_config


def reload_system_config(config_path: Path | str | None = None) -> SystemConfig:
    """Force a reload and replace the cached configuration."""
    global _system_config
    _system_config = SystemConfig.load(config_path)
    return _system_config


def configure_logging_from_system_config(config: SystemConfig | None = None) -> None:
    """Apply the ``logging`` section (of ``config`` or the cached system config) to LoggerFactory."""
    system = config if config is not None else get_system_config()
    LoggerFactory.configure(system.logging.to_logger_config())

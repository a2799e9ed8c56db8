"""
System configuration package.

Provides consolidated system-level configuration and logging for the library.

Exports:
    - SystemConfig: Complete system configuration dataclass
    - get_system_config: Get system config singleton
    - reload_system_config: Force reload system config
    - configure_logging_from_system_config: Apply the YAML logging section
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
"""

from qanalytics.system.config import (
    SystemConfig,
    configure_logging_from_system_config,
    get_system_config,
    reload_system_config,
)
from qanalytics.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "SystemConfig",
    "get_system_config",
    "reload_system_config",
    "configure_logging_from_system_config",
    "LoggerFactory",
    "LoggingConfig",
]

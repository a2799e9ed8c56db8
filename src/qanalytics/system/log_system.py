"""Centralized logging configuration for qanalytics.

structlog drives the loggers, stdlib logging owns the handlers. One processor
chain feeds both so that records from third-party stdlib loggers render the
same way as qanalytics' own events.
"""

import inspect
import logging
import math
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOG_FILE = Path("logs/qanalytics.log")
ROOT_LOGGER_NAME = "qanalytics"

_TIMESTAMP_FORMATS = {
    "compact": "%y%m%d-%H%M%S.{ms:02d}",  # 251022-205007.28
    "time": "%H:%M:%S.{ms:02d}",  # 20:50:07.28
    "short": "%m%dT%H%M%S",  # 1022T205007
}

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"
_GRAY = "\033[90m"


class LoggingConfig(BaseModel):
    """Configuration for logging system.

    What each level carries in this library:

    - INFO: one line per built report (trades, P&L, Sharpe, stored curve size)
    - DEBUG: calculator entry points (input sizes, risk-free rate, downsampling strategy)
    - WARNING and above: configuration problems

    Timestamp formats: "compact" (251022-205007.28), "time" (20:50:07.28),
    "short" (1022T205007) or "iso" (full ISO-8601, UTC).
    """

    level: LogLevel = Field(default="INFO", description="Console threshold")
    format: Literal["console", "json"] = Field(default="console", description="Console renderer")
    timestamp_format: Literal["iso", "compact", "time", "short"] = Field(
        default="compact",
        description="How log_timestamp is rendered",
    )
    enable_file: bool = Field(default=False, description="Also write JSON lines to file_path")
    file_path: Path | None = Field(default=None, description=f"Log file (None means {DEFAULT_LOG_FILE})")
    file_level: LogLevel = Field(default="WARNING", description="File threshold")
    file_rotation: bool = Field(default=True, description="Rotate the log file by size")
    max_file_size_mb: int = Field(default=10, description="Rotation size in MB")
    backup_count: int = Field(default=3, description="Rotated files kept")


class LoggerFactory:
    """
    Factory for creating and configuring structured loggers.

    Applications call ``configure()`` once; library modules just call
    ``get_logger()`` at import time and get library defaults (console only,
    INFO) if nobody configured anything.

    Example:
        >>> LoggerFactory.configure(LoggingConfig(level="DEBUG"))
        >>> logger = LoggerFactory.get_logger()
        >>> logger.info("reporting.report.built", trades=42, stored_points=1000)
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Install handlers on the root logger and configure structlog.

        Args:
            config: LoggingConfig instance. If None, uses default configuration.
        """
        config = config or LoggingConfig()
        if config.enable_file and config.file_path is None:
            config = config.model_copy(update={"file_path": DEFAULT_LOG_FILE})
        cls._config = config

        pre_chain = cls._build_common_processors(config.timestamp_format)

        handlers = [cls._console_handler(config, pre_chain)]
        levels = [getattr(logging, config.level)]
        if config.enable_file:
            handlers.append(cls._configure_file_logging(config, pre_chain))
            levels.append(getattr(logging, config.file_level))

        logging.basicConfig(level=min(levels), handlers=handlers, force=True)

        structlog.configure(
            processors=[*pre_chain, *cls._exception_processors(config.format)],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        cls._configured = True

    @classmethod
    def _build_common_processors(cls, timestamp_format: str) -> list[Any]:
        """Processors run for every record before the handler's renderer."""
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            cls._get_timestamper(timestamp_format),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.FILENAME, structlog.processors.CallsiteParameter.LINENO]
            ),
        ]

    @staticmethod
    def _exception_processors(fmt: str) -> list[Any]:
        if fmt == "console":
            tail: list[Any] = [
                structlog.dev.set_exc_info,
                structlog.processors.ExceptionRenderer(structlog.dev.plain_traceback),  # type: ignore[arg-type]
            ]
        else:
            tail = [structlog.processors.format_exc_info]
        return [*tail, structlog.stdlib.ProcessorFormatter.wrap_for_formatter]

    @classmethod
    def _console_handler(cls, config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        renderer: Any = (
            cls._custom_console_renderer() if config.format == "console" else structlog.processors.JSONRenderer()
        )
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setLevel(getattr(logging, config.level))
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
        return handler

    @staticmethod
    def _get_timestamper(fmt: str) -> Callable[[Any, str, dict[str, Any]], dict[str, Any]]:
        """Build a processor that stamps records under ``log_timestamp``.

        The key is not ``timestamp`` because equity points and algo events
        already use that name for simulation time.
        """
        pattern = _TIMESTAMP_FORMATS.get(fmt)

        def stamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
            now = datetime.now(timezone.utc)
            if pattern is None:
                event_dict["log_timestamp"] = now.isoformat()
            else:
                event_dict["log_timestamp"] = now.strftime(pattern.format(ms=now.microsecond // 10000))
            return event_dict

        return stamp

    @staticmethod
    def _format_value(value: Any) -> str:
        """Render context values; floats are shortened, infinities shown as inf."""
        if isinstance(value, float):
            if math.isinf(value):
                return "inf" if value > 0 else "-inf"
            return f"{value:.6g}"
        return str(value)

    @staticmethod
    def _custom_console_renderer() -> Callable[[Any, str, dict[str, Any]], str]:
        """One line per record: ``timestamp [level] event | k=v ... (module:line)``."""

        def render(logger: Any, name: str, event_dict: dict[str, Any]) -> str:
            timestamp = event_dict.pop("log_timestamp", "")
            level = event_dict.pop("level", "info").upper()
            event = event_dict.pop("event", "")
            filename = event_dict.pop("filename", "")
            lineno = event_dict.pop("lineno", "")
            logger_name = event_dict.pop("logger", "")

            line = [timestamp, f"[{_LEVEL_COLORS.get(level, '')}{level.lower()}{_RESET}]", event]

            context = " ".join(
                f"{key}={LoggerFactory._format_value(value)}"
                for key, value in sorted(event_dict.items())
                if not key.startswith("_")
            )
            if context:
                line.append(f"{_GRAY}|{_RESET} {context}")

            if filename and lineno:
                where = logger_name if logger_name and logger_name != ROOT_LOGGER_NAME else Path(filename).stem
                line.append(f"{_GRAY}({where}:{lineno}){_RESET}")

            return " ".join(line)

        return render

    @classmethod
    def _configure_file_logging(cls, config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        """JSON-lines file handler, size-rotated unless rotation is off."""
        path = config.file_path or DEFAULT_LOG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler
        if config.file_rotation:
            handler = RotatingFileHandler(
                filename=str(path),
                maxBytes=config.max_file_size_mb * 1024 * 1024,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(filename=str(path), encoding="utf-8")

        handler.setLevel(getattr(logging, config.file_level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            )
        )
        return handler

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Get a configured logger instance, configuring defaults on first use.

        Args:
            name: Logger name; defaults to the caller's module ``__name__``.

        Returns:
            structlog BoundLogger
        """
        if not cls._configured:
            cls.configure()

        if name is None:
            caller = inspect.currentframe()
            caller = caller.f_back if caller is not None else None
            name = caller.f_globals.get("__name__", ROOT_LOGGER_NAME) if caller is not None else ROOT_LOGGER_NAME

        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        """Current configuration (library defaults before ``configure()``)."""
        return cls._config if cls._config is not None else LoggingConfig()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Remove handlers and forget configuration (mainly for tests)."""
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.setLevel(logging.NOTSET)
        cls._config = None
        cls._configured = False
        structlog.reset_defaults()

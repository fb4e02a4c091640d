"""
Structured logging configuration.
JSON lines on stdout by default, with the cycle ID and component of the
current context attached to every record.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Optional

from kosmoo.common.context import CycleLogFilter

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_default_level = "INFO"
_default_format = "json"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging with cycle tracking"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        cycle_id = getattr(record, 'cycle_id', None)
        if cycle_id:
            log_data['cycle_id'] = cycle_id

        component = getattr(record, 'component', None)
        if component:
            log_data['component'] = component

        # Collector failures carry the domain they belong to
        if hasattr(record, 'domain'):
            log_data['domain'] = record.domain

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt.lower() == "text":
        return logging.Formatter(TEXT_FORMAT)
    return JSONFormatter()


def setup_logging(name: str, level: str = "INFO", fmt: str = "json") -> logging.Logger:
    """
    Configure structured logging for a component.

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Output format, "json" or "text"

    Returns:
        Configured logger instance with cycle log filter
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(fmt))
    logger.addHandler(handler)

    if not any(isinstance(f, CycleLogFilter) for f in logger.filters):
        logger.addFilter(CycleLogFilter())

    logger.propagate = False

    return logger


def configure_defaults(level: str = "INFO", fmt: str = "json") -> None:
    """
    Set the level and format used by loggers created later through
    ``get_logger`` and reconfigure the ones that already exist.

    Module-level loggers are created at import time, before the command
    line has been parsed, so the entry point calls this once at startup.
    """
    global _default_level, _default_format
    _default_level = level
    _default_format = fmt

    for name, existing in list(logging.Logger.manager.loggerDict.items()):
        if not isinstance(existing, logging.Logger):
            continue
        if name == "kosmoo" or name.startswith("kosmoo.") or name == "exporter":
            setup_logging(name, level, fmt)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get or create a logger with optional level override.

    Args:
        name: Logger name
        level: Optional log level override

    Returns:
        Logger instance with cycle log filter
    """
    if level:
        return setup_logging(name, level, _default_format)

    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logging(name, _default_level, _default_format)

    if not any(isinstance(f, CycleLogFilter) for f in logger.filters):
        logger.addFilter(CycleLogFilter())

    return logger

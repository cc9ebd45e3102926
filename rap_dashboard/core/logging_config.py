"""
Logging configuration - single setup for all modules.

Call setup_logging() once at application startup. Modules then use:
    import logging
    logger = logging.getLogger(__name__)
"""
import json
import logging
import sys
from datetime import datetime, timezone

from rap_dashboard.config import settings


class JSONFormatter(logging.Formatter):
    """JSON lines formatter for production log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }

        for key in ("source", "event_type", "dataset_id", "channel", "rows"):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


_initialized = False


def setup_logging(level: str = None, fmt: str = None):
    """Configure the root logger. Safe to call more than once."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = level or settings.LOG_LEVEL
    fmt = fmt or settings.LOG_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root_logger.addHandler(handler)

    # Quiet down noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.getLogger("rap_dashboard").info("Logging configured: level=%s, format=%s", level, fmt)

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024


def _rotating(filename: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(filename),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 5,
    }


def build_logging_config(log_dir: Path, level: str = "INFO") -> Dict[str, Any]:
    """Service log in ``assessment.log``, errors also in ``assessment-error.log``,
    and every reported violation or upload failure from the client package in
    ``proctoring.log``."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"detailed": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed",
                "stream": "ext://sys.stdout",
            },
            "service_file": _rotating(log_dir / "assessment.log", level),
            "error_file": _rotating(log_dir / "assessment-error.log", "ERROR"),
            "proctoring_file": _rotating(log_dir / "proctoring.log", "DEBUG"),
        },
        "root": {"level": level, "handlers": ["console", "service_file", "error_file"]},
        "loggers": {
            "app.proctoring": {
                "level": "DEBUG",
                "handlers": ["console", "proctoring_file", "error_file"],
                "propagate": False,
            },
            # request lines are already written by RequestLoggingMiddleware
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(log_dir: Optional[str] = None, level: Optional[str] = None):
    path = Path(log_dir or settings.LOG_DIR)
    path.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(path, level or settings.LOG_LEVEL))

import logging.config
from typing import Optional
from pathlib import Path
from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024


def _rotating_file(filename: str, level: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "default",
        "filename": str(Path(settings.LOG_DIR) / filename),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 5,
    }


def build_logging_config(level: Optional[str] = None) -> dict:
    level = (level or settings.LOG_LEVEL).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "file": _rotating_file("app.log", level),
            "error_file": _rotating_file("error.log", "ERROR"),
            # Completions and certificate issuance, kept apart for audit.
            "progress_file": _rotating_file("progress.log", "INFO"),
        },
        "root": {"level": level, "handlers": ["console", "file", "error_file"]},
        "loggers": {
            "app": {
                "level": level,
                "handlers": ["console", "file", "error_file"],
                "propagate": False,
            },
            "app.services": {
                "level": level,
                "handlers": ["console", "file", "error_file", "progress_file"],
                "propagate": False,
            },
            "app.middleware.logging": {
                "level": "INFO",
                "handlers": ["console", "file"],
                "propagate": False,
            },
            "sqlalchemy.engine": {"level": "WARNING"},
            "uvicorn.access": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def configure_logging(level: Optional[str] = None):
    Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(level))

import logging
import logging.config
import os
from datetime import datetime
from typing import Any, Dict, Optional
from stockaudit.core.config import settings

LOG_SUBDIRS = ("app", "error", "access", "audit")
MAX_LOG_BYTES = 10 * 1024 * 1024


def _rotating(path: str, level: str, formatter: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": path,
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 10,
        "encoding": "utf-8",
    }


def build_logging_config(log_dir: str, level: str) -> Dict[str, Any]:
    """dictConfig for the service: console, app/error files, access log and audit trail"""
    stamp = datetime.now().strftime("%Y-%m-%d")

    def file_in(sub_dir: str) -> str:
        return os.path.join(log_dir, sub_dir, f"{sub_dir}-{stamp}.log")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "bare": {
                "format": "%(asctime)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "app_file": _rotating(file_in("app"), level, "detailed"),
            "error_file": _rotating(file_in("error"), "ERROR", "detailed"),
            "access_file": _rotating(file_in("access"), "INFO", "bare"),
            "audit_file": _rotating(file_in("audit"), "INFO", "bare"),
        },
        "loggers": {
            "": {
                "level": level,
                "handlers": ["console", "app_file", "error_file"],
            },
            "access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            # audit trail also reaches the app log through the root logger
            "stockaudit.audit_trail": {
                "level": "INFO",
                "handlers": ["audit_file"],
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": ["app_file"],
                "propagate": False,
            },
        },
    }


def setup_logging(log_dir: Optional[str] = None, level: Optional[str] = None):
    """Create the log directories and install the logging configuration"""
    log_dir = log_dir or settings.LOG_DIR
    level = (level or settings.LOG_LEVEL).upper()

    for sub_dir in LOG_SUBDIRS:
        os.makedirs(os.path.join(log_dir, sub_dir), exist_ok=True)

    logging.config.dictConfig(build_logging_config(log_dir, level))

    logger = logging.getLogger(__name__)
    logger.info(f"{settings.APP_NAME} logging configured (level {level}, dir {log_dir})")

import json
import logging
import logging.config

from app.core.config import settings

CONSOLE_FORMAT = "%(asctime)s %(levelname)s [%(name)s]: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per line for the file handlers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "service": settings.APP_NAME,
            "env": settings.ENV,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["stack"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _level() -> str:
    if settings.LOG_LEVEL:
        return settings.LOG_LEVEL.upper()
    return "INFO" if settings.is_production else "DEBUG"


def build_config() -> dict:
    level = _level()
    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "console",
        },
    }
    if settings.LOG_FILE:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "json",
            "filename": settings.LOG_FILE,
            "maxBytes": settings.LOG_FILE_MAXSIZE,
            "backupCount": settings.LOG_FILE_MAXFILES,
            "encoding": "utf-8",
        }
    if settings.LOG_ERROR_FILE:
        handlers["error_file"] = {
            "class": "logging.FileHandler",
            "level": "ERROR",
            "formatter": "json",
            "filename": settings.LOG_ERROR_FILE,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "json": {"()": JsonFormatter},
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {
            # SQL echo is noisy at debug level
            "sqlalchemy.engine": {"level": "WARNING"},
            "urllib3": {"level": "WARNING"},
        },
    }


def configure_logging() -> None:
    logging.config.dictConfig(build_config())

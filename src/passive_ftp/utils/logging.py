import json
import logging
import sys
from typing import Optional

from passive_ftp.utils.config import settings


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _use_json_logs() -> bool:
    value = settings.JSON_LOGS
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if _use_json_logs():
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    return handler


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Return a logger with its level set. Only the package logger
    (LOGGER_NAME) owns a handler; loggers below it propagate to that one, so
    every record is written once.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    root_name = settings.LOGGER_NAME
    is_child = name.startswith(root_name + ".")
    if is_child:
        get_logger(root_name)
    elif not logger.handlers:
        logger.addHandler(_build_handler())

    return logger

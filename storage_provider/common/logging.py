import json
import logging
from logging.config import dictConfig
from typing import Any

SENSITIVE_KEYS = {
    "secret_access_key",
    "secretaccesskey",
    "session_token",
    "sessiontoken",
    "sse_customer_key",
    "ssecustomerkey",
    "password",
    "secret",
    "token",
    "authorization",
}


def setup_logging(level: str = "INFO") -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                },
                "plain": {
                    "format": "%(levelname)s %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
                "cli_console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                },
            },
            "root": {
                "level": level,
                "handlers": ["console"],
            },
            "loggers": {
                "storage.cli": {
                    "handlers": ["cli_console"],
                    "level": level,
                    "propagate": False,
                }
            },
        }
    )


def mask_sensitive(obj: Any) -> Any:
    """Return a copy of ``obj`` with secret-bearing keys replaced by ``***``."""
    if isinstance(obj, dict):
        masked: dict[Any, Any] = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.lower() in SENSITIVE_KEYS and v is not None:
                masked[k] = "***"
            else:
                masked[k] = mask_sensitive(v)
        return masked
    if isinstance(obj, (list, tuple)):
        return [mask_sensitive(x) for x in obj]
    return obj


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            payload.update(mask_sensitive(record.extra))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

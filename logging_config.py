import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict

from middleware import get_request_id

# attributes routers attach through ``extra=``
EXTRA_FIELDS = ("admin_id", "entity", "entity_id", "job")

QUIET_LOGGERS = ("pymongo", "botocore", "boto3", "s3transfer", "urllib3", "python_http_client")


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line tagged with the current request id."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id
        entry.update({k: getattr(record, k) for k in EXTRA_FIELDS if hasattr(record, k)})
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> None:
    level = (level or "INFO").upper()
    logging.config.dictConfig(
        {
            "version": 1,
            # keep uvicorn's loggers, route them through our handler
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JsonFormatter}},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "json",
                }
            },
            "root": {"level": level, "handlers": ["stdout"]},
            "loggers": {
                "uvicorn.access": {"level": level, "handlers": [], "propagate": True},
                **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            },
        }
    )

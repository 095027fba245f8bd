import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from rich.logging import RichHandler

from mdwatch.main.config import get_loglevel
from mdwatch.main.pass_context import current_pass

JSON_LOGS_ENABLED = os.getenv("JSON_LOGS", "true").lower() in {"1", "true", "yes", "on"}

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class PassJSONFormatter(logging.Formatter):
    """One JSON object per record, tagged with the running discovery pass."""

    def format(self, record: logging.LogRecord) -> str:
        log: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = current_pass()
        if context is not None:
            log.update(context.log_fields())

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_") or value is None:
                continue
            log.setdefault(key, value)

        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)

        return json.dumps(log, default=str)


def _build_handler() -> logging.Handler:
    handler: logging.Handler
    if JSON_LOGS_ENABLED:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(PassJSONFormatter())
    else:
        handler = RichHandler(rich_tracebacks=True, markup=True, show_path=True)
    return handler


_handler = _build_handler()

# SQLAlchemy and aiohttp are too chatty for a watcher that runs all day
for _name in ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.orm", "aiohttp.access"):
    _noisy = logging.getLogger(_name)
    _noisy.setLevel(logging.WARNING)
    _noisy.propagate = False


def get_logger(module_name: str) -> logging.Logger:
    logger = logging.getLogger(module_name)
    if _handler not in logger.handlers:
        logger.addHandler(_handler)
    logger.setLevel(get_loglevel())
    logger.propagate = False
    return logger

"""Structured (JSON lines) logging for the API.

Services log short event names (``movement.recorded``, ``auth.login_failed``)
and put the details in ``extra={"extra_data": {...}}``. The formatter adds the
correlation id and principal of the request being served, when there is one.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var
from .config import settings

# Our middleware already logs one line per request.
_QUIET_LOGGERS = ("uvicorn.access",)


class JsonLogFormatter(logging.Formatter):
    def __init__(self, service: str | None = None, environment: str | None = None) -> None:
        super().__init__()
        self.service = service or settings.APP_NAME
        self.environment = environment or settings.APP_ENV

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
            "env": self.environment,
            "request_id": request_id_ctx_var.get(),
            "principal": principal_ctx_var.get(),
        }
        details = getattr(record, "extra_data", None)
        if isinstance(details, Mapping) and details:
            entry["extra_data"] = dict(details)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        # Drop empty context keys so lines outside a request stay short.
        entry = {key: value for key, value in entry.items() if value is not None}
        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(level: str | None = None) -> None:
    """Route every logger through one JSON handler on stderr.

    Safe to call more than once; the handler is replaced, not stacked.
    """

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel((level or settings.LOG_LEVEL).upper())
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

"""JSON log records for the directory client.

Every record becomes one JSON object. Keyword arguments passed to a
``get_structured_logger`` adapter (``event=``, ``dn=``, ``username=`` ...)
end up as top-level keys next to the fixed fields below.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import traceback
from collections.abc import MutableMapping
from datetime import UTC, datetime
from functools import lru_cache
from typing import IO, Any

SERVICE_NAME = "ldap_group_auth"
SCHEMA = "log.v1"

# Attributes every LogRecord carries; anything else was passed as a field.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

# Never rendered in clear text.
_REDACTED_KEYS = frozenset({"password", "bind_password"})
_REDACTED = "***"

_ADAPTER_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


@lru_cache(maxsize=1)
def _get_host() -> str:
    try:
        return os.getenv("HOSTNAME") or socket.gethostname()
    except OSError:
        return "unknown"


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


def _error(record: logging.LogRecord) -> dict[str, str] | None:
    if record.exc_info and record.exc_info[0] is not None:
        exc_type, exc, _ = record.exc_info
        return {
            "type": exc_type.__name__,
            "message": str(exc),
            "stack": "".join(traceback.format_exception(*record.exc_info)).strip(),
        }
    if record.exc_text:
        return {"message": record.exc_text}
    return None


class StructuredJSONFormatter(logging.Formatter):
    """Render a record as a single JSON line with redacted secrets."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "schema": SCHEMA,
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
            "host": _get_host(),
        }
        for key, value in _fields(record).items():
            payload.setdefault(key, value)
        for key in _REDACTED_KEYS & payload.keys():
            payload[key] = _REDACTED

        error = _error(record)
        if error:
            payload["error"] = error
        return json.dumps(payload, default=repr, ensure_ascii=True)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Move keyword arguments of a log call into ``extra``.

    ``log.info("Bound", dn=dn)`` is the same as
    ``log.info("Bound", extra={"dn": dn})``.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.pop("extra", None) or {})
        for key in [k for k in kwargs if k not in _ADAPTER_KWARGS]:
            extra.setdefault(key, kwargs.pop(key))
        kwargs["extra"] = extra
        return msg, kwargs


def configure_logging(
    level: int = logging.INFO,
    *,
    stream: IO[str] | None = None,
    handlers: list[logging.Handler] | None = None,
) -> None:
    """Replace the root handlers with JSON-formatted ones at ``level``.

    Only entry points call this; importing the library leaves the root
    logger alone.
    """
    root = logging.getLogger()
    root.handlers = []
    for handler in handlers or [logging.StreamHandler(stream)]:
        if handler.level == logging.NOTSET:
            handler.setLevel(level)
        if handler.formatter is None:
            handler.setFormatter(StructuredJSONFormatter())
        root.addHandler(handler)
    root.setLevel(level)


def get_structured_logger(name: str) -> StructuredLoggerAdapter:
    return StructuredLoggerAdapter(logging.getLogger(name), {})

"""Structured logging for limiter, executor and HTTP events.

Every event is logged as a dotted name (``rate_limit.exceeded``,
``guarded_operation.failed``) with context passed through ``extra``. Before a
record is emitted:

- credentials (API keys, tokens, cookies, emails) are replaced by ``[REDACTED]``;
- subject and limiter identifiers are replaced by a short SHA-256 digest so
  events for one subject can still be correlated;
- the current HTTP request id is attached when the event happened inside a
  request.

``configure_logging`` installs the handler on the root logger once per app.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from request_guard.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

SENSITIVE_KEYS_DEFAULT: set[str] = {
    "api_key",
    "x-api-key",
    "app_api_keys",
    "authorization",
    "token",
    "access_token",
    "refresh_token",
    "secret",
    "password",
    "cookie",
    "set-cookie",
    "email",
}

# Replaced by their digest rather than dropped.
HASHED_KEYS_DEFAULT: set[str] = {
    "subject_id",
    "limiter_key",
    "resource_owner",
}

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "request_id",
}

_current_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _current_request_id.set(request_id)


def get_request_id() -> str | None:
    """Request id of the HTTP request being served, or None outside one."""
    return _current_request_id.get()


def clear_request_id() -> None:
    _current_request_id.set(None)


def hash_identifier(value: object) -> str:
    """Return a short, stable digest suitable for correlating logs.

    Args:
        value: Subject id, API key or limiter key. Non-strings are rendered
            with ``str()`` first.

    Returns:
        First 16 hex characters of the SHA-256 digest.
    """

    return hashlib.sha256(str(value).encode()).hexdigest()[:16]


def _extra_items(record: LogRecord) -> list[tuple[str, Any]]:
    return [
        (key, value)
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    ]


class _Scrubber:
    """Apply redaction and hashing rules to extra fields, recursively."""

    def __init__(self, sensitive_keys: Iterable[str] | None, hashed_keys: Iterable[str] | None):
        self.sensitive = {k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT)}
        self.hashed = {k.lower() for k in (hashed_keys or HASHED_KEYS_DEFAULT)}

    def field(self, key: str, value: Any) -> Any:
        lowered = key.lower()
        if lowered in self.sensitive:
            return REDACTED
        if lowered in self.hashed and value is not None:
            return hash_identifier(value)
        return self.value(value)

    def value(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: self.field(str(k), v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.value(v) for v in value)
        return value

    def extras(self, record: LogRecord) -> dict[str, Any]:
        return {key: self.field(key, value) for key, value in _extra_items(record)}


class RequestIdFilter(logging.Filter):
    """Stamp records with the id of the request being served."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub extra fields in place so every formatter sees clean values."""

    def __init__(
        self,
        sensitive_keys: Iterable[str] | None = None,
        hashed_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__()
        self._scrubber = _Scrubber(sensitive_keys, hashed_keys)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "_scrubbed", False):
            return True
        for key, value in self._scrubber.extras(record).items():
            setattr(record, key, value)
        record._scrubbed = True
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, event, extras.

    Scrubs extras itself unless ``SensitiveDataFilter`` already did, so it is
    safe to use on its own and never hashes a digest twice.
    """

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        hashed_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self._scrubber = _Scrubber(sensitive_keys, hashed_keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id
        if getattr(record, "_scrubbed", False):
            payload.update(_extra_items(record))
        else:
            payload.update(self._scrubber.extras(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(cfg: LogSettings) -> logging.Handler:
    if cfg.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(cfg.file_path or "logs/request_guard.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if cfg.max_bytes:
        return RotatingFileHandler(
            path, maxBytes=cfg.max_bytes, backupCount=cfg.backup_count, encoding="utf-8"
        )
    return logging.FileHandler(path, encoding="utf-8")


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the scrubbing handler on the root logger.

    Args:
        log_settings: Defaults to ``settings.log``. ``LOG_FORMAT=plain`` gives
            single-line text for local runs; anything else gives JSON.
    """

    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # uvicorn installs its own handlers; keep its records off the root handler.
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False

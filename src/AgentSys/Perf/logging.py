"""
Structured logging utilities for the performance investigation helpers.

Every module obtains its logger through :func:`get_logger` so that console
output stays machine readable: one JSON object per record, enriched with the
``extra_fields`` carried by :class:`StructuredLogger`. Recoverable problems
(for example a corrupted baseline file that is treated as absent) are reported
through :func:`log_event` with an ``error_code`` so automation can grep for
them.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .settings import LogFormat, get_settings


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON document per log record."""

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON string."""

        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            payload.update(record.extra_fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that enriches structured logs with shared context."""

    def __init__(
        self, logger: logging.Logger, base_fields: Optional[Dict[str, Any]] = None
    ) -> None:
        """Store underlying logger and initial structured ``base_fields``."""

        super().__init__(logger, {})
        self.base_fields: Dict[str, Any] = dict(base_fields or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        """Merge adapter context into ``extra`` metadata for structured output."""

        extra = kwargs.setdefault("extra", {})
        fields = dict(self.base_fields)
        extra_fields = extra.get("extra_fields")
        if isinstance(extra_fields, dict):
            fields.update(extra_fields)
        extra["extra_fields"] = fields
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **fields: object) -> "StructuredLogger":
        """Attach additional persistent fields to the adapter and return ``self``."""

        filtered = {k: v for k, v in fields.items() if v is not None}
        self.base_fields.update(filtered)
        return self

    def child(self, **fields: object) -> "StructuredLogger":
        """Create a new adapter inheriting context with optional overrides."""

        merged = dict(self.base_fields)
        merged.update({k: v for k, v in fields.items() if v is not None})
        return StructuredLogger(self.logger, merged)


def get_logger(
    name: str, level: Optional[str] = None, *, base_fields: Optional[Dict[str, Any]] = None
) -> StructuredLogger:
    """Get a structured logger writing to stderr."""

    logger = logging.getLogger(name)
    settings = get_settings()
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        if settings.log_format is LogFormat.JSON:
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    resolved_level = level or settings.log_level.value
    logger.setLevel(getattr(logging, resolved_level.upper(), logging.INFO))
    adapter = getattr(logger, "_agentsys_adapter", None)
    if not isinstance(adapter, StructuredLogger):
        adapter = StructuredLogger(logger, base_fields)
        setattr(logger, "_agentsys_adapter", adapter)
    elif base_fields:
        adapter.bind(**base_fields)
    return adapter


def log_event(logger: logging.LoggerAdapter | logging.Logger, level: str, message: str, **fields: object) -> None:
    """Emit a structured log record using the ``extra_fields`` convention."""

    normalised_level = str(level).lower()
    if normalised_level in {"warning", "error"}:
        error_code = fields.get("error_code")
        if not error_code:
            fields["error_code"] = "UNKNOWN"
        else:
            fields["error_code"] = str(error_code).upper()

    emitter = getattr(logger, normalised_level, None)
    if not callable(emitter):
        raise AttributeError(f"Logger has no level '{level}'")
    emitter(message, extra={"extra_fields": fields})


__all__ = ["JSONFormatter", "StructuredLogger", "get_logger", "log_event"]

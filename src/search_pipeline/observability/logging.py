"""Structured JSON logging for search runs.

Each record carries the current trace context (trace id, span id, engine)
and any ``extra=`` fields. Query text in those fields can be swapped for a
short digest so logs can leave the process without revealing what was
searched for.
"""

from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import logging
import sys
from typing import TYPE_CHECKING, Any

import orjson
from pydantic import BaseModel

from search_pipeline.observability.context import get_trace_context


if TYPE_CHECKING:
    from search_pipeline.config import Settings


PIPELINE_LOGGER = "search_pipeline.search"

_STANDARD_RECORD_KEYS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def query_digest(text: str) -> str:
    return "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Exception):
        return str(value)
    return repr(value)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, correlated with the active search span."""

    SECRET_KEYS = frozenset({"password", "token", "api_key", "secret", "authorization"})
    QUERY_KEYS = frozenset({"query", "raw_input", "normalized_input"})
    MAX_MESSAGE_LEN = 2000
    MAX_FIELD_LEN = 500

    def __init__(self, *, hash_queries: bool = False) -> None:
        super().__init__()
        self.hash_queries = hash_queries

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_trace_context()
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": _clip(record.getMessage(), self.MAX_MESSAGE_LEN),
            "trace_id": ctx.get("trace_id", ""),
            "span_id": ctx.get("span_id", ""),
        }
        if "." in record.name:
            entry["component"] = record.name.rsplit(".", 1)[-1]
        if engine := ctx.get("engine"):
            entry["engine"] = engine
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_KEYS or key.startswith("_"):
                continue
            entry[key] = self._field(key, value)

        return orjson.dumps(entry, default=_json_default).decode("utf-8")

    def _field(self, key: str, value: Any) -> Any:
        lowered = key.lower()
        if lowered in self.SECRET_KEYS:
            return "[REDACTED]"
        if self.hash_queries and lowered in self.QUERY_KEYS and isinstance(value, str):
            return query_digest(value)
        if isinstance(value, str):
            return _clip(value, self.MAX_FIELD_LEN)
        return value


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    hash_queries: bool = False,
    pipeline_level: str | None = None,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Emit structured JSON logs when True
        hash_queries: Replace query fields with a digest (JSON output only)
        pipeline_level: Level for the per-phase pipeline loggers
        logger_levels: Per-logger level overrides, applied last
    """
    root = logging.getLogger()
    root.setLevel(_resolve(level))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter(hash_queries=hash_queries))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root.addHandler(handler)

    pipeline_logger = logging.getLogger(PIPELINE_LOGGER)
    pipeline_logger.setLevel(_resolve(pipeline_level) if pipeline_level else logging.NOTSET)

    for logger_name, logger_level in (logger_levels or {}).items():
        logging.getLogger(logger_name).setLevel(_resolve(logger_level))


def configure_logging_from_settings(settings: Settings) -> None:
    configure_logging(
        settings.log_level,
        settings.log_json,
        hash_queries=settings.log_hash_queries,
        pipeline_level=settings.log_pipeline_level,
    )


def _resolve(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)

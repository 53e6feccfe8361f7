"""
Structured logging for the directory cache.

Every cache decision (hit, miss, population, eviction, Redis fallback) is
logged as a structlog event carrying a `stage` field from
`constants.Stage`, so one request can be followed from the memory lookup to
the database and back:

    {"event": "Memory cache hit", "stage": "CACHE.1_MEMORY_LOOKUP",
     "cache_key": "person:mendocino/jane-doe", "request_id": "..."}

Person pages carry commenter names and contact details, so free-text
event messages go through PII redaction before rendering.
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

# Set by the HTTP middleware for the duration of one request
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

_EMAIL_PATTERN = re.compile(r"\b[\w.-]+@[\w.-]+\.\w+\b")
_PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")


# =============================================================================
# Processors
# =============================================================================


def add_request_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Attach the current request ID, when there is one."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """UTC ISO-8601 timestamp with a `Z` suffix, matching the cached data format."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_pii(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Mask email addresses and phone numbers in the event message.

    Only the message text is scanned; structured fields are never expected to
    carry page data.
    """
    event = event_dict.get("event", "")
    if isinstance(event, str):
        event = _EMAIL_PATTERN.sub("[EMAIL]", event)
        event_dict["event"] = _PHONE_PATTERN.sub("[PHONE]", event)
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    level = event_dict.get("level")
    if level:
        event_dict["level"] = level.upper()
    return event_dict


# =============================================================================
# Setup and accessors
# =============================================================================


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Route structlog through stdlib logging on stdout.

    Called once from the application lifespan with LOG_LEVEL / LOG_FORMAT.
    `json` is meant for log shipping, `console` for local development.
    """
    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_pii,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    return request_id_ctx.get()


def clear_request_id() -> None:
    request_id_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Emit `message` at `level` with a `stage` field.

    `stage` may be a `Stage` member or a plain string.

        log_stage(logger, Stage.DISTRIBUTED_LOOKUP, "Redis cache hit",
                  level="debug", cache_key=key, size_bytes=412)
    """
    emit = getattr(logger, level.lower())
    emit(message, stage=str(getattr(stage, "value", stage)), **kwargs)

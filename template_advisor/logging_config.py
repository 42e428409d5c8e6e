"""Structured logging for the template advisor.

``configure_logging()`` is called once by the app factory (and by the test
suite). It renders every event as JSON, or through the console renderer when
``LOG_PRETTY`` is set, and routes stdlib loggers (uvicorn, aiohttp, openai,
redis) through the same formatter so all output shares one shape.

Modules log with ``structlog.get_logger(__name__)`` and key-value events.
Request, user and session ids are carried in contextvars and merged into
every event emitted while a request is being handled.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

from .core import config

__all__ = [
    "configure_logging",
    "bind_request_context",
    "clear_request_context",
]

SERVICE_NAME = "template-advisor"

# Chatty at INFO; only their warnings are interesting here
NOISY_LOGGERS = ("uvicorn.access", "aiohttp.access", "httpx", "openai", "redis")

_configured = False


def _stamp_service(_logger: Any, _method: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("environment", config.get_environment())
    return event_dict


def _renderer():
    if config.LOG_PRETTY:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def _pre_chain() -> List[Any]:
    """Processors shared by structlog events and stdlib records."""
    return [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _stamp_service,
    ]


def configure_logging(force: bool = False) -> None:
    """Install the structlog pipeline and the root stdlib handler.

    Repeated calls are no-ops unless ``force`` is set.
    """
    global _configured
    if _configured and not force:
        return

    level = getattr(logging, config.LOG_LEVEL, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + _pre_chain()
        + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def bind_request_context(
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> None:
    """Bind whichever ids are given; ids already bound are kept."""
    ids = {"request_id": request_id, "user_id": user_id, "session_id": session_id}
    present = {k: v for k, v in ids.items() if v}
    if present:
        bind_contextvars(**present)


def clear_request_context() -> None:
    clear_contextvars()

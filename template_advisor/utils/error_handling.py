"""
Lightweight error logging helpers built on structlog.

Source calls made during a search are best-effort: a failing or slow
collaborator is logged and contributes nothing, the request carries on.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import structlog

from .async_utils import call_maybe_async, with_timeout

_logger = structlog.get_logger(__name__)


def log_exception(context: str, exc: BaseException, **fields: Any) -> None:
    """Log an exception with context at warning level."""
    _logger.warning(context, error=str(exc), error_type=type(exc).__name__, **fields)


async def guarded_source(
    source: str,
    func: Callable[..., Any],
    *args: Any,
    timeout: Optional[float] = None,
    default: Any = None,
    **kwargs: Any,
) -> Any:
    """Call a collaborator with a bounded timeout.

    Timeouts and exceptions are logged and replaced by ``default`` (an empty
    list when not given) so one degraded source never fails the request.
    """
    fallback = [] if default is None else default
    try:
        return await with_timeout(call_maybe_async(func, *args, **kwargs), timeout)
    except asyncio.TimeoutError:
        _logger.warning("Source timed out", source=source, timeout=timeout)
        return fallback
    except Exception as exc:
        log_exception("Source call failed", exc, source=source)
        return fallback

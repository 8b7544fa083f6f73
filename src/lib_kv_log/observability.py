"""Request correlation state and the library's own diagnostics.

Purpose
    Hold the ambient request identifier that log lines are correlated with and
    report lifecycle events of the library (sink swaps, settings loads) without
    ever writing into the log sink itself.

Contents
    - ``REQUEST_ID``: context variable storing the active request identifier.
    - ``bind_request_id``: binds or clears the active request identifier.
    - ``new_request_id``: generates a fresh random identifier.
    - ``get_diagnostics_logger``: returns the package's stdlib logger (quiet by default).
    - ``log_debug`` / ``log_info``: emit diagnostics via a single private emitter.
    - ``make_event``: convenience builder for diagnostic payloads.

System Integration
    :class:`lib_kv_log.adapters.correlation.default.ContextVarSource` reads
    ``REQUEST_ID``; :mod:`lib_kv_log.core` reports configuration changes here.
"""

from __future__ import annotations

import logging
import secrets
from contextvars import ContextVar
from typing import Any, Final, Mapping

REQUEST_ID: ContextVar[str | None] = ContextVar("lib_kv_log_request_id", default=None)
"""Request identifier bound to the current thread or task.

Why
    Code paths that do not thread a :class:`~lib_kv_log.domain.entry.RequestContext`
    through every call still get correlated lines.
"""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_kv_log")
_LOGGER.addHandler(logging.NullHandler())


def get_diagnostics_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers.

    Why
        Leaves the library silent by default while giving host applications full
        control over handler and formatter configuration.
    """

    return _LOGGER


def bind_request_id(request_id: str | None) -> None:
    """Bind or clear the active request identifier.

    What
        Stores ``request_id`` in :data:`REQUEST_ID`; ``None`` clears the binding.
    Side Effects
        Mutates the context variable visible to subsequent log calls in the same
        context.

    Examples
    --------
    >>> bind_request_id('abc123')
    >>> REQUEST_ID.get()
    'abc123'
    >>> bind_request_id(None)
    >>> REQUEST_ID.get() is None
    True
    """

    REQUEST_ID.set(request_id)


def new_request_id() -> str:
    """Return a random 16-character hexadecimal request identifier.

    Examples
    --------
    >>> len(new_request_id())
    16
    """

    return secrets.token_hex(8)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a debug diagnostic that includes the request context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit an info diagnostic that includes the request context."""

    _emit(logging.INFO, message, fields)


def make_event(component: str, target: str | None, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Build a diagnostic payload for configuration lifecycle events.

    Examples
    --------
    >>> make_event('sink', 'stdout', {'terminator': 'lf'})
    {'component': 'sink', 'target': 'stdout', 'terminator': 'lf'}
    """

    event: dict[str, Any] = {"component": component, "target": target}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a diagnostic through the package logger with contextual metadata."""

    context = {"request_id": REQUEST_ID.get()}
    context.update(fields)
    _LOGGER.log(level, message, extra={"context": context})

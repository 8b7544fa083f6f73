"""Correlation-id adapters.

Purpose
-------
Implement :class:`lib_kv_log.application.ports.CorrelationSource` for the two
ways a request id reaches the logger: an explicit handle passed to ``write`` and
the ambient :data:`lib_kv_log.observability.REQUEST_ID` context variable.

Key behaviours
--------------
* :class:`RequestContextSource` reads ``request_id`` (or ``reqid``) from the
  handle, whether it is a :class:`RequestContext`, a mapping, or any object
  with such an attribute, and falls back to the bound context variable.
* :class:`ContextVarSource` consults only the context variable.
* Absent ids resolve to ``None``; the formatter renders that as empty text.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

from ...domain.entry import RequestContext
from ...observability import REQUEST_ID

_HANDLE_KEYS: Final[tuple[str, ...]] = ("request_id", "reqid")


class RequestContextSource:
    """Resolve ids from an explicit handle, then from the ambient binding.

    Examples
    --------
    >>> source = RequestContextSource()
    >>> source.resolve(RequestContext(request_id="r-1"))
    'r-1'
    >>> source.resolve({"reqid": "r-2"})
    'r-2'
    >>> source.resolve(None) is None
    True
    """

    def __init__(self, *, fallback_to_context_var: bool = True) -> None:
        self._fallback = fallback_to_context_var

    def resolve(self, context: object) -> object | None:
        found = _from_handle(context)
        if found is None and self._fallback:
            return REQUEST_ID.get()
        return found


class ContextVarSource:
    """Ignore the handle and read :data:`REQUEST_ID`."""

    def resolve(self, context: object) -> object | None:
        return REQUEST_ID.get()


def _from_handle(context: object) -> object | None:
    """Return the first id-like entry found on *context*."""

    if context is None:
        return None
    if isinstance(context, RequestContext):
        return context.request_id
    if isinstance(context, Mapping):
        for key in _HANDLE_KEYS:
            if context.get(key) is not None:
                return context[key]
        return None
    for key in _HANDLE_KEYS:
        value = getattr(context, key, None)
        if value is not None:
            return value
    return None

"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the entry builder depends on so sinks,
correlation lookups, stack introspection and time can be swapped without
touching :mod:`lib_kv_log.core`.

Contents
--------
* :class:`Sink` – append-only byte target receiving one complete line per call.
* :class:`CorrelationSource` – resolves the request id from a context handle.
* :class:`FrameResolver` – turns a stack-skip depth into ``file:line``.
* :class:`Clock` – supplies the current UTC time.

System Role
-----------
These protocols enforce Dependency Inversion (DIP). Each adapter implements one
protocol and :class:`lib_kv_log.core.Logger` receives them by injection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Sink(Protocol):
    """Receive the bytes of one fully assembled log line.

    Why
    ----
    The logger calls :meth:`write` exactly once per entry while holding its
    own lock. That lock only orders the writes of one logger; a sink shared by
    several loggers must serialise :meth:`write` itself, as the bundled
    stream and file sinks do. Exceptions raised here are swallowed by the
    logger.
    """

    def write(self, data: bytes) -> None:
        """Append *data* (one line, no terminator) to the target."""


@runtime_checkable
class CorrelationSource(Protocol):
    """Look up the correlation id for a request-scoped handle."""

    def resolve(self, context: object) -> object | None:
        """Return the id bound to *context*, or ``None`` when absent."""


@runtime_checkable
class FrameResolver(Protocol):
    """Describe a frame on the calling thread's stack.

    Why
    ----
    Keeps stack introspection behind a capability so tests (and runtimes
    without frame access) can supply locations explicitly.
    """

    def caller(self, skip: int) -> str:
        """Return ``file:line`` for the frame *skip* levels above the invoker, or ``?:?``."""


@runtime_checkable
class Clock(Protocol):
    """Supply timezone-aware timestamps."""

    def now(self) -> datetime:
        """Return the current time in UTC."""

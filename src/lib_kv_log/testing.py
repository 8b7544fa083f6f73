"""Test doubles that keep log output observable and predictable.

Purpose
-------
Give test-suites (ours and those of applications using the library) a way to
capture lines exactly as the sink receives them, pin time and caller
locations, and exercise the sink-failure path.

Contents
--------
* ``FAILURE_MESSAGE``: stable message carried by :class:`FailingSink` errors.
* :class:`CaptureSink` – stores each line, decoded, without terminator.
* :class:`FailingSink` – raises :class:`OSError` on every write.
* :class:`FixedClock` – returns a constant UTC timestamp.
* :func:`capture_logger` – builds a :class:`~lib_kv_log.core.Logger` wired to a
  fresh :class:`CaptureSink`.
* :func:`captured_output` – temporarily redirects the default logger.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Final, Iterator

from .adapters.callsite.stack import FixedFrameResolver
from .application.ports import CorrelationSource, FrameResolver
from .core import Logger, set_output
from .domain.formatting import parse_line

FAILURE_MESSAGE: Final[str] = "i should fail"
"""Stable message raised by :class:`FailingSink`.

Why
    Tests assert on the exact wording to prove the logger swallowed the error
    rather than propagating it.
"""

DEFAULT_INSTANT: Final[datetime] = datetime(2024, 1, 1, tzinfo=timezone.utc)


class CaptureSink:
    """Collect every written line in :attr:`lines`.

    Examples
    --------
    >>> sink = CaptureSink()
    >>> sink.write(b"reqid= at=x.py:1 t=now k=v")
    >>> sink.lines
    ['reqid= at=x.py:1 t=now k=v']
    >>> sink.pairs()[0][-1]
    ('k', 'v')
    """

    def __init__(self) -> None:
        self.lines: list[str] = []

    def write(self, data: bytes) -> None:
        self.lines.append(data.decode("utf-8"))

    def pairs(self) -> list[list[tuple[str, str]]]:
        """Return every captured line split into ``(key, token)`` pairs."""

        return [parse_line(line) for line in self.lines]

    def clear(self) -> None:
        self.lines.clear()


class FailingSink:
    """Raise :class:`OSError` from every write.

    Examples
    --------
    >>> FailingSink().write(b"k=v")
    Traceback (most recent call last):
    ...
    OSError: i should fail
    """

    def __init__(self) -> None:
        self.attempts = 0

    def write(self, data: bytes) -> None:
        self.attempts += 1
        raise OSError(FAILURE_MESSAGE)


class FixedClock:
    """Return the same instant on every call."""

    def __init__(self, instant: datetime = DEFAULT_INSTANT) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


def capture_logger(
    *,
    location: str | None = None,
    correlation: CorrelationSource | None = None,
    frames: FrameResolver | None = None,
    clock: FixedClock | None = None,
) -> tuple[Logger, CaptureSink]:
    """Return a logger writing into a new :class:`CaptureSink`, plus that sink.

    Parameters
    ----------
    location:
        When given, every line reports this caller location instead of the
        live stack (ignored if *frames* is supplied).
    clock:
        Defaults to :class:`FixedClock` at ``2024-01-01T00:00:00Z``.
    """

    sink = CaptureSink()
    if frames is None and location is not None:
        frames = FixedFrameResolver(location)
    logger = Logger(sink, correlation=correlation, frames=frames, clock=clock or FixedClock())
    return logger, sink


@contextmanager
def captured_output() -> Iterator[CaptureSink]:
    """Redirect the default logger into a :class:`CaptureSink` for the block.

    Examples
    --------
    >>> from lib_kv_log import write
    >>> with captured_output() as sink:
    ...     write(None, "k", "v")
    >>> sink.lines[0].endswith("k=v")
    True
    """

    sink = CaptureSink()
    previous = set_output(sink)
    try:
        yield sink
    finally:
        set_output(previous)

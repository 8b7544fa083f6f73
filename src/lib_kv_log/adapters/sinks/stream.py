"""Sink adapters writing log lines to streams and files.

Purpose
-------
Implement :class:`lib_kv_log.application.ports.Sink` for the usual targets:
the process's standard streams, any text or binary file object, and an
append-only file on disk.

Contents
--------
* :class:`StreamSink` – writes to a file object, or looks ``sys.stdout`` /
  ``sys.stderr`` up at every write so redirection (and test capture) works.
* :class:`FileSink` – appends to a path opened lazily in binary mode.

System Role
-----------
The logger hands each sink the bytes of one line without a terminator. Sinks
append their own ``terminator`` (``"\\n"`` by default, like
:attr:`logging.StreamHandler.terminator`). Each sink serialises its own
writes, so one instance may be shared by several loggers.
"""

from __future__ import annotations

import io
import sys
import threading
from pathlib import Path
from typing import BinaryIO, Final, TextIO

from ...domain.settings import STDERR, STDOUT

_ENCODING: Final[str] = "utf-8"
_STANDARD_STREAMS: Final[frozenset[str]] = frozenset({STDOUT, STDERR})


class StreamSink:
    """Write each line to a text or binary stream and flush.

    Parameters
    ----------
    stream:
        Explicit file object. When omitted, the ``sys`` attribute named by
        *stream_name* is looked up on every write.
    stream_name:
        ``"stdout"`` or ``"stderr"``; ignored when *stream* is given.
    terminator:
        Appended after each line.

    Examples
    --------
    >>> buffer = io.StringIO()
    >>> sink = StreamSink(buffer)
    >>> sink.write(b"k=v")
    >>> buffer.getvalue()
    'k=v\\n'
    """

    def __init__(
        self,
        stream: TextIO | BinaryIO | None = None,
        *,
        stream_name: str = STDOUT,
        terminator: str = "\n",
    ) -> None:
        if stream is None and stream_name not in _STANDARD_STREAMS:
            raise ValueError(f"stream_name must be one of {sorted(_STANDARD_STREAMS)}, got {stream_name!r}")
        self._stream = stream
        self.stream_name = stream_name
        self.terminator = terminator
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO | BinaryIO:
        """Return the current target stream."""

        if self._stream is not None:
            return self._stream
        return getattr(sys, self.stream_name)

    def write(self, data: bytes) -> None:
        stream = self.stream
        with self._lock:
            if _is_binary(stream):
                stream.write(data + self.terminator.encode(_ENCODING))  # type: ignore[arg-type]
            else:
                stream.write(data.decode(_ENCODING, errors="replace") + self.terminator)  # type: ignore[arg-type]
            stream.flush()

    def __repr__(self) -> str:
        target = self.stream_name if self._stream is None else repr(self._stream)
        return f"StreamSink({target}, terminator={self.terminator!r})"


class FileSink:
    """Append lines to *path*, opening it on first use.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> sink = FileSink(Path(tmp.name) / "app.log")
    >>> sink.write(b"k=v")
    >>> sink.close()
    >>> (Path(tmp.name) / "app.log").read_text(encoding="utf-8")
    'k=v\\n'
    >>> tmp.cleanup()
    """

    def __init__(self, path: str | Path, *, terminator: str = "\n") -> None:
        self.path = Path(path)
        self.terminator = terminator
        self._handle: BinaryIO | None = None
        self._lock = threading.Lock()

    def write(self, data: bytes) -> None:
        with self._lock:
            if self._handle is None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._handle = self.path.open("ab")
            self._handle.write(data + self.terminator.encode(_ENCODING))
            self._handle.flush()

    def close(self) -> None:
        """Close the underlying file; a later write reopens it."""

        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def __repr__(self) -> str:
        return f"FileSink({str(self.path)!r}, terminator={self.terminator!r})"


def _is_binary(stream: object) -> bool:
    """Return ``True`` for file objects that expect bytes."""

    if isinstance(stream, io.TextIOBase):
        return False
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    mode = getattr(stream, "mode", "")
    return isinstance(mode, str) and "b" in mode

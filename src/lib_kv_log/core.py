"""Composition root for ``lib_kv_log``.

Purpose
-------
Provide the entry builder that turns ``*keyvals`` into one line and the
process-wide default logger behind the module-level helpers. Adapters (sink,
correlation source, frame resolver, clock) are injected here and nowhere else.

Contents
--------
* :class:`Logger` – entry builder plus the ``messagef`` / ``error`` wrappers.
* :func:`write` / :func:`messagef` / :func:`error` – module-level helpers bound
  to the default logger.
* :func:`get_logger` / :func:`set_output` – access and swap the default sink.
* :func:`load_settings` / :func:`build_sink` / :func:`configure_from_env` –
  environment-driven output selection.

System Role
-----------
Every log call formats its fields lock-free and then performs one sink write
under the logger's lock. Logging calls never raise: odd input is flagged in the
line, sink failures are dropped and stack lookup failures render ``?:?``.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from contextlib import suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Final

from .adapters.callsite.stack import StackFrameResolver
from .adapters.clock.system import SystemClock
from .adapters.correlation.default import RequestContextSource
from .adapters.env.default import DefaultEnvLoader, default_env_prefix
from .adapters.sinks.stream import FileSink, StreamSink
from .application.ports import Clock, CorrelationSource, FrameResolver, Sink
from .domain.entry import normalize_pairs, render_line, split_caller_override
from .domain.formatting import join_operands, to_text
from .domain.keys import KEY_CALLER, KEY_ERROR, KEY_LOG_ERROR, KEY_MESSAGE, TIME_FORMAT, UNKNOWN_CALLER
from .domain.settings import STDERR, STDOUT, TERMINATORS, LogSettings
from .observability import log_debug, log_info, make_event

SLUG: Final[str] = "lib-kv-log"
_ENCODING: Final[str] = "utf-8"


class Logger:
    """Build and emit ``reqid=… at=… t=… key=value …`` lines.

    Why
    ----
    Keeps the entry builder free of hidden globals: the sink, correlation
    lookup, stack introspection and clock all arrive by injection, so tests
    and embedding applications swap them explicitly.

    Parameters
    ----------
    sink:
        Target receiving each encoded line. Defaults to a :class:`StreamSink`
        on ``sys.stdout``.
    correlation:
        Source of the ``reqid`` value. Defaults to :class:`RequestContextSource`.
    frames:
        Resolver for the ``at`` value. Defaults to :class:`StackFrameResolver`.
    clock:
        Source of the ``t`` value. Defaults to :class:`SystemClock`.
    """

    def __init__(
        self,
        sink: Sink | None = None,
        *,
        correlation: CorrelationSource | None = None,
        frames: FrameResolver | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._sink: Sink = sink if sink is not None else StreamSink()
        self._correlation: CorrelationSource = correlation if correlation is not None else RequestContextSource()
        self._frames: FrameResolver = frames if frames is not None else StackFrameResolver()
        self._clock: Clock = clock if clock is not None else SystemClock()
        self._lock = threading.Lock()

    @property
    def sink(self) -> Sink:
        """Return the current sink."""

        with self._lock:
            return self._sink

    def set_sink(self, sink: Sink) -> Sink:
        """Replace the sink and return the previous one.

        The swap takes the same lock as :meth:`write`, so no line is split
        between two sinks.
        """

        with self._lock:
            previous, self._sink = self._sink, sink
        log_debug("sink_replaced", **make_event("sink", repr(sink), {"previous": repr(previous)}))
        return previous

    def write(self, ctx: object, *keyvals: object, stacklevel: int = 1) -> None:
        """Write one structured entry built from alternating keys and values.

        Why
        ----
        Central entry point: every wrapper funnels through here so the field
        order, escaping and locking rules live in one place.

        What
        ----
        * An odd ``keyvals`` gets an empty value and a ``log-error`` pair.
        * If the first key is ``"at"``, its value replaces the resolved caller
          location and the pair is not emitted again. This override is meant
          for helpers that wrap :meth:`write`.
        * Otherwise the location of the frame ``stacklevel`` levels above this
          method is used (``1`` is the direct caller).
        * ``reqid``, ``at`` and ``t`` precede the caller pairs; duplicates are
          kept.

        Parameters
        ----------
        ctx:
            Request-scoped handle passed to the correlation source.
        keyvals:
            ``key1, value1, key2, value2, …``
        stacklevel:
            Frames to ascend when resolving the caller location.

        Side Effects
        ------------
        One ``sink.write`` under the logger lock. Exceptions from the sink are
        suppressed. A correlation source or frame resolver that raises yields
        an empty ``reqid`` or ``?:?`` instead of propagating.

        Examples
        --------
        >>> from lib_kv_log.testing import capture_logger
        >>> logger, sink = capture_logger(location="svc.py:42")
        >>> logger.write(None, "user", "a b", "count", 3)
        >>> sink.lines[0]
        'reqid= at=svc.py:42 t=2024-01-01T00:00:00Z user="a b" count=3'
        """

        items = normalize_pairs(keyvals)
        overridden, location, items = split_caller_override(items)
        if not overridden:
            location = self._locate(stacklevel)
        request_id = self._request_id(ctx)
        timestamp = self._timestamp()
        data = render_line(request_id, location, timestamp, items).encode(_ENCODING, errors="backslashreplace")
        with self._lock, suppress(Exception):
            self._sink.write(data)

    def messagef(self, ctx: object, template: str, *args: object, stacklevel: int = 1) -> None:
        """Write a ``message`` field rendered printf-style from *template* and *args*.

        Without *args* the template is used verbatim. A template that does not
        fit its arguments is logged verbatim with a ``log-error`` field
        describing the mismatch.

        Examples
        --------
        >>> from lib_kv_log.testing import capture_logger
        >>> logger, sink = capture_logger(location="svc.py:7")
        >>> logger.messagef(None, "loaded %d rows", 12)
        >>> sink.lines[0].endswith('message="loaded 12 rows"')
        True
        """

        location = self._locate(stacklevel)
        text, problem = _render_message(template, args)
        keyvals: list[object] = [KEY_CALLER, location, KEY_MESSAGE, text]
        if problem is not None:
            keyvals.extend((KEY_LOG_ERROR, problem))
        self.write(ctx, *keyvals)

    def error(self, ctx: object, err: object, *prefix: object, stacklevel: int = 1) -> None:
        """Write an ``error`` field from *err*, optionally prefixed.

        With *prefix* the text reads ``"<prefix>: <err>"``. Prefix parts are
        concatenated, with a space only between two neighbours that are both
        non-strings (see :func:`~lib_kv_log.domain.formatting.join_operands`).

        Examples
        --------
        >>> from lib_kv_log.testing import capture_logger
        >>> logger, sink = capture_logger(location="svc.py:9")
        >>> logger.error(None, ValueError("boom"), "loading ", "cfg")
        >>> sink.lines[0].endswith('error="loading cfg: boom"')
        True
        """

        location = self._locate(stacklevel)
        text = to_text(err)
        if prefix:
            text = join_operands(prefix) + ": " + text
        self.write(ctx, KEY_CALLER, location, KEY_ERROR, text)

    def _locate(self, stacklevel: int) -> str:
        """Return the location *stacklevel* frames above the public method calling this."""

        try:
            return self._frames.caller(stacklevel + 1)
        except Exception:  # noqa: BLE001 - a broken resolver must not break the log call
            return UNKNOWN_CALLER

    def _request_id(self, ctx: object) -> object | None:
        try:
            return self._correlation.resolve(ctx)
        except Exception:  # noqa: BLE001 - same contract as a missing id
            return None

    def _timestamp(self) -> str:
        try:
            now = self._clock.now()
        except Exception:  # noqa: BLE001 - fall back to the system clock
            now = datetime.now(timezone.utc)
        return now.astimezone(timezone.utc).strftime(TIME_FORMAT)

    def __repr__(self) -> str:
        return f"Logger(sink={self._sink!r})"


_DEFAULT_LOGGER: Final[Logger] = Logger()


def get_logger() -> Logger:
    """Return the process-wide logger used by the module-level helpers."""

    return _DEFAULT_LOGGER


def set_output(sink: Sink) -> Sink:
    """Swap the default logger's sink and return the previous one."""

    return _DEFAULT_LOGGER.set_sink(sink)


def write(ctx: object, *keyvals: object) -> None:
    """Write an entry through the default logger (see :meth:`Logger.write`)."""

    _DEFAULT_LOGGER.write(ctx, *keyvals, stacklevel=2)


def messagef(ctx: object, template: str, *args: object) -> None:
    """Write a formatted ``message`` through the default logger."""

    _DEFAULT_LOGGER.messagef(ctx, template, *args, stacklevel=2)


def error(ctx: object, err: object, *prefix: object) -> None:
    """Write an ``error`` field through the default logger."""

    _DEFAULT_LOGGER.error(ctx, err, *prefix, stacklevel=2)


def load_settings(environ: Mapping[str, str] | None = None) -> LogSettings:
    """Read ``LIB_KV_LOG_OUTPUT`` and ``LIB_KV_LOG_TERMINATOR`` into :class:`LogSettings`.

    Raises
    ------
    InvalidSetting
        When a value cannot be interpreted.

    Examples
    --------
    >>> load_settings({"LIB_KV_LOG_OUTPUT": "stderr", "LIB_KV_LOG_TERMINATOR": "none"})
    LogSettings(output='stderr', terminator='none')
    >>> load_settings({})
    LogSettings(output='stdout', terminator='lf')
    >>> load_settings({"LIB_KV_LOG_OUTPUT": "007"}).output
    '007'
    """

    raw = DefaultEnvLoader(environ=environ).load(default_env_prefix(SLUG))
    settings = LogSettings(
        output=raw.get("output", STDOUT),
        terminator=raw.get("terminator", "lf").lower(),
    )
    log_info("settings_loaded", **make_event("settings", settings.output, {"terminator": settings.terminator}))
    return settings


def build_sink(settings: LogSettings) -> Sink:
    """Return the sink described by *settings*.

    Examples
    --------
    >>> build_sink(LogSettings(output="stderr", terminator="crlf"))
    StreamSink(stderr, terminator='\\r\\n')
    """

    terminator = TERMINATORS[settings.terminator]
    if settings.output in (STDOUT, STDERR):
        return StreamSink(stream_name=settings.output, terminator=terminator)
    return FileSink(Path(settings.output).expanduser(), terminator=terminator)


def configure_from_env(environ: Mapping[str, str] | None = None) -> Logger:
    """Point the default logger at the sink described by the environment.

    Returns the default logger so callers can keep a reference to it.
    """

    logger = get_logger()
    logger.set_sink(build_sink(load_settings(environ)))
    return logger


def _render_message(template: str, args: tuple[object, ...]) -> tuple[str, str | None]:
    """Return ``(text, problem)``; *problem* is ``None`` when substitution succeeded."""

    if not args:
        return template, None
    values: object = args
    if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
        values = args[0]
    try:
        return template % values, None
    except Exception as exc:  # noqa: BLE001 - any substitution failure is reported in the line
        return template, f"bad message format: {type(exc).__name__}: {to_text(exc)}"


__all__ = [
    "Logger",
    "get_logger",
    "set_output",
    "write",
    "messagef",
    "error",
    "load_settings",
    "build_sink",
    "configure_from_env",
]

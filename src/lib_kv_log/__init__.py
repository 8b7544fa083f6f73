"""Public package surface of ``lib_kv_log``.

One call, one line: ``write(ctx, "user", "a b", "count", 3)`` emits
``reqid=… at=file.py:42 t=2024-01-01T00:00:00Z user="a b" count=3`` to the
configured sink. See :mod:`lib_kv_log.core` for the entry builder and
:mod:`lib_kv_log.domain.formatting` for the escaping rules.
"""

from __future__ import annotations

from .adapters.correlation.default import ContextVarSource, RequestContextSource
from .adapters.sinks.stream import FileSink, StreamSink
from .core import (
    Logger,
    build_sink,
    configure_from_env,
    error,
    get_logger,
    load_settings,
    messagef,
    set_output,
    write,
)
from .domain.entry import Fields, RequestContext
from .domain.errors import InvalidSetting, KvLogError
from .domain.formatting import format_key, format_value, parse_line, unquote_value
from .domain.keys import (
    KEY_CALLER,
    KEY_ERROR,
    KEY_LOG_ERROR,
    KEY_MESSAGE,
    KEY_REQUEST_ID,
    KEY_TIME,
    PAIR_DELIMITERS,
)
from .domain.settings import LogSettings
from .observability import bind_request_id, get_diagnostics_logger, new_request_id

__all__ = [
    "Logger",
    "write",
    "messagef",
    "error",
    "get_logger",
    "set_output",
    "load_settings",
    "build_sink",
    "configure_from_env",
    "Fields",
    "RequestContext",
    "RequestContextSource",
    "ContextVarSource",
    "StreamSink",
    "FileSink",
    "LogSettings",
    "KvLogError",
    "InvalidSetting",
    "format_key",
    "format_value",
    "parse_line",
    "unquote_value",
    "bind_request_id",
    "new_request_id",
    "get_diagnostics_logger",
    "KEY_CALLER",
    "KEY_TIME",
    "KEY_REQUEST_ID",
    "KEY_MESSAGE",
    "KEY_ERROR",
    "KEY_LOG_ERROR",
    "PAIR_DELIMITERS",
]

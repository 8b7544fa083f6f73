"""Reserved field names and the delimiter policy for log lines.

Purpose
-------
Pin down the vocabulary every emitted line shares so that formatting,
parsing, and the entry builder agree on one escaping contract.

Contents
--------
* :data:`PAIR_DELIMITERS` – characters that separate ``key=value`` tokens.
* :data:`ILLEGAL_KEY_CHARS` – characters a formatted key may never contain.
* ``KEY_*`` – conventional key names injected or produced by the library.

System Role
-----------
Pure constants shared by :mod:`lib_kv_log.domain.formatting` and
:mod:`lib_kv_log.core`. Nothing here is mutated at runtime.
"""

from __future__ import annotations

from typing import Final

PAIR_DELIMITERS: Final[str] = " ,;|&\t\n\r"
"""Characters that may separate key/value pairs in a log line.

Why
    Follows the default delimiter set of Splunk-style key/value extraction, so
    keys are sanitised and values quoted against every one of them.
"""

ILLEGAL_KEY_CHARS: Final[str] = PAIR_DELIMITERS + '="'
"""Pair delimiters plus the assignment and quote characters."""

KEY_CALLER: Final[str] = "at"
KEY_TIME: Final[str] = "t"
KEY_REQUEST_ID: Final[str] = "reqid"

KEY_MESSAGE: Final[str] = "message"
KEY_ERROR: Final[str] = "error"

KEY_LOG_ERROR: Final[str] = "log-error"
"""Reserved for diagnostics produced by the library itself."""

ODD_PARAMS_MESSAGE: Final[str] = "odd number of log params"
UNKNOWN_CALLER: Final[str] = "?:?"
EMPTY_KEY_PLACEHOLDER: Final[str] = "?"
KEY_REPLACEMENT: Final[str] = "-"

TIME_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%SZ"
"""RFC 3339 (second precision, UTC) rendering of the ``t`` field."""

"""Domain-level exception hierarchy.

Purpose
-------
Expose the small error taxonomy of ``lib_kv_log``. Logging calls never raise;
these exceptions only surface from the explicit configuration API.

Contents
--------
* :class:`KvLogError` – umbrella base class for all library errors.
* :class:`InvalidSetting` – an output or terminator setting could not be
  interpreted.

System Role
-----------
Raised by :func:`lib_kv_log.core.load_settings` and friends. Callers catch
:class:`KvLogError` to handle configuration failures uniformly.
"""

from __future__ import annotations


class KvLogError(Exception):
    """Base type for all exceptions emitted by ``lib_kv_log``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class InvalidSetting(KvLogError):
    """Raised when a configuration value cannot be mapped to a sink option.

    Typical Sources
    ---------------
    ``LIB_KV_LOG_TERMINATOR`` values outside ``lf``/``crlf``/``none`` or an
    empty ``LIB_KV_LOG_OUTPUT``.
    """

"""Call-site adapter backed by CPython frame introspection.

Purpose
-------
Implement :class:`lib_kv_log.application.ports.FrameResolver` by walking the
calling thread's stack and rendering ``basename(file):line``.

Contents
--------
* :class:`StackFrameResolver` – default resolver used by :class:`lib_kv_log.core.Logger`.
* :class:`FixedFrameResolver` – returns a constant location (tests, runtimes
  without frame access).
"""

from __future__ import annotations

import inspect
import os

from ...domain.keys import UNKNOWN_CALLER


class StackFrameResolver:
    """Resolve caller locations from the live interpreter stack."""

    def caller(self, skip: int) -> str:
        """Return ``file:line`` of the frame *skip* levels above whoever called this method.

        ``skip=0`` names the function invoking :meth:`caller`; ``skip=1`` its
        caller, and so on. When the stack is shallower than requested, or the
        interpreter offers no frame objects, ``"?:?"`` is returned.

        Examples
        --------
        >>> def where():
        ...     return StackFrameResolver().caller(0)
        >>> where().split(":")[0] != "?"
        True
        >>> StackFrameResolver().caller(10_000)
        '?:?'
        """

        frame = inspect.currentframe()
        try:
            for _ in range(skip + 1):
                if frame is None:
                    break
                frame = frame.f_back
            if frame is None:
                return UNKNOWN_CALLER
            return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"
        finally:
            del frame


class FixedFrameResolver:
    """Always report the same location; handy where frames are unavailable."""

    def __init__(self, location: str = UNKNOWN_CALLER) -> None:
        self.location = location

    def caller(self, skip: int) -> str:
        return self.location

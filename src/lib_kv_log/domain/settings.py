"""Settings value object describing where log lines go.

Purpose
-------
Capture the process-wide output choice as an immutable value so the
composition root can build a sink from it without touching the environment.

Contents
--------
* :data:`TERMINATORS` – named line terminators accepted by stream sinks.
* :class:`LogSettings` – frozen dataclass with ``output`` and ``terminator``.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

from .errors import InvalidSetting

STDOUT: Final[str] = "stdout"
STDERR: Final[str] = "stderr"

TERMINATORS: Final[Mapping[str, str]] = MappingProxyType({"lf": "\n", "crlf": "\r\n", "none": ""})


@dataclass(frozen=True)
class LogSettings:
    """Validated output settings.

    Attributes
    ----------
    output:
        ``"stdout"``, ``"stderr"``, or a filesystem path opened for appending.
    terminator:
        Name from :data:`TERMINATORS` appended by stream sinks after each line.

    Examples
    --------
    >>> LogSettings().line_terminator
    '\\n'
    >>> LogSettings(terminator="bogus")
    Traceback (most recent call last):
    ...
    lib_kv_log.domain.errors.InvalidSetting: unknown terminator 'bogus' (expected one of: crlf, lf, none)
    """

    output: str = STDOUT
    terminator: str = "lf"

    def __post_init__(self) -> None:
        if not self.output.strip():
            raise InvalidSetting("output must name stdout, stderr, or a file path")
        if self.terminator not in TERMINATORS:
            expected = ", ".join(sorted(TERMINATORS))
            raise InvalidSetting(f"unknown terminator {self.terminator!r} (expected one of: {expected})")

    @property
    def line_terminator(self) -> str:
        """Return the literal terminator string."""

        return TERMINATORS[self.terminator]

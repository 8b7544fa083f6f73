"""Log entry value objects and the pure assembly rules.

Purpose
-------
Hold the parts of an entry that do not depend on I/O: normalising the flat
``*keyvals`` sequence, honouring the caller-location override, and rendering
the final line in its fixed field order.

Contents
--------
* :class:`RequestContext` – explicit correlation token threaded through calls.
* :class:`Fields` – typed builder that flattens to the alternating sequence.
* :func:`normalize_pairs` – make the sequence even, flagging odd input.
* :func:`split_caller_override` – peel off a leading ``at`` pair.
* :func:`render_line` – join the injected fields and caller pairs.

System Role
-----------
Called by :class:`lib_kv_log.core.Logger` before the sink lock is taken.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Iterator, Sequence

from .formatting import format_key, format_value
from .keys import KEY_CALLER, KEY_LOG_ERROR, KEY_REQUEST_ID, KEY_TIME, ODD_PARAMS_MESSAGE


@dataclass(frozen=True)
class RequestContext:
    """Opaque request-scoped handle carrying the correlation id.

    Examples
    --------
    >>> RequestContext().with_request_id("abc").request_id
    'abc'
    """

    request_id: str | None = None

    def with_request_id(self, request_id: str | None) -> RequestContext:
        """Return a copy bound to *request_id*."""

        return replace(self, request_id=request_id)


class Fields:
    """Ordered ``(key, value)`` pairs with a fluent builder API.

    Why
    ----
    Offers a typed alternative to loose ``*keyvals`` while reusing the same
    normalisation rules, since iteration yields the flat alternating sequence.

    Examples
    --------
    >>> list(Fields().add("user", "a b").add("count", 3))
    ['user', 'a b', 'count', 3]
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Iterable[tuple[object, object]] = ()) -> None:
        self._pairs: list[tuple[object, object]] = list(pairs)

    def add(self, key: str, value: object) -> Fields:
        """Append one pair and return ``self`` for chaining."""

        self._pairs.append((key, value))
        return self

    def extend(self, pairs: Iterable[tuple[object, object]]) -> Fields:
        """Append several pairs, keeping their order."""

        self._pairs.extend(pairs)
        return self

    def pairs(self) -> list[tuple[object, object]]:
        """Return a copy of the collected pairs."""

        return list(self._pairs)

    def __iter__(self) -> Iterator[object]:
        for key, value in self._pairs:
            yield key
            yield value

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"Fields({self._pairs!r})"


def normalize_pairs(keyvals: Sequence[object]) -> list[object]:
    """Return *keyvals* as a list of even length.

    An odd sequence gets an empty value for its dangling key followed by a
    ``log-error`` pair, so the anomaly shows up in the output.

    Examples
    --------
    >>> normalize_pairs(["x"])
    ['x', '', 'log-error', 'odd number of log params']
    >>> normalize_pairs(["k", 1])
    ['k', 1]
    """

    items = list(keyvals)
    if len(items) % 2:
        items.extend(("", KEY_LOG_ERROR, ODD_PARAMS_MESSAGE))
    return items


def split_caller_override(keyvals: Sequence[object]) -> tuple[bool, object, list[object]]:
    """Return ``(True, caller, rest)`` when the first key is ``at``.

    Only the very first pair can override the resolved location; later ``at``
    keys are ordinary fields. Without an override the result is
    ``(False, None, keyvals)``.

    Examples
    --------
    >>> split_caller_override(["at", "manual:1", "k", "v"])
    (True, 'manual:1', ['k', 'v'])
    >>> split_caller_override(["k", "v", "at", "x:1"])
    (False, None, ['k', 'v', 'at', 'x:1'])
    """

    items = list(keyvals)
    if len(items) >= 2 and isinstance(items[0], str) and items[0] == KEY_CALLER:
        return True, items[1], items[2:]
    return False, None, items


def render_line(request_id: object, caller: object, timestamp: str, keyvals: Sequence[object]) -> str:
    """Assemble ``reqid=… at=… t=…`` followed by every pair in *keyvals*.

    *keyvals* must already be even (see :func:`normalize_pairs`).

    Examples
    --------
    >>> render_line(None, "svc.py:42", "2024-01-02T03:04:05Z", ["user", "a b", "count", 3])
    'reqid= at=svc.py:42 t=2024-01-02T03:04:05Z user="a b" count=3'
    """

    tokens = [
        f"{KEY_REQUEST_ID}={format_value(request_id)}",
        f"{KEY_CALLER}={format_value(caller)}",
        f"{KEY_TIME}={format_value(timestamp)}",
    ]
    for index in range(0, len(keyvals), 2):
        tokens.append(f"{format_key(keyvals[index])}={format_value(keyvals[index + 1])}")
    return " ".join(tokens)

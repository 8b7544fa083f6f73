"""Entry builder and wrapper behaviour of :class:`lib_kv_log.core.Logger`.

Covers the documented examples (field order, odd input, caller override), the
caller-location arithmetic of the wrappers, request-id lookup, sink failure
handling and the no-interleaving guarantee under concurrent writers.
"""

from __future__ import annotations

import inspect
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from lib_kv_log import Fields, RequestContext, bind_request_id
from lib_kv_log.adapters.callsite.stack import FixedFrameResolver
from lib_kv_log.core import Logger
from lib_kv_log.domain.formatting import parse_line
from lib_kv_log.testing import FAILURE_MESSAGE, CaptureSink, FailingSink, FixedClock, capture_logger

HERE = "test_logger.py"


class CountingFrames:
    """Frame resolver that records whether it was consulted."""

    def __init__(self) -> None:
        self.calls: list[int] = []

    def caller(self, skip: int) -> str:
        self.calls.append(skip)
        return "counted.py:1"


class TrickleSink:
    """Write one character at a time, yielding between them, into a shared buffer."""

    def __init__(self) -> None:
        self.chunks: list[str] = []

    def write(self, data: bytes) -> None:
        for char in data.decode("utf-8") + "\n":
            self.chunks.append(char)
            time.sleep(0)


def _next_line() -> int:
    frame = inspect.currentframe()
    assert frame is not None and frame.f_back is not None
    return frame.f_back.f_lineno + 1


def test_documented_example(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.write(RequestContext(), "user", "a b", "count", 3)
    assert sink.lines == ['reqid= at=svc.py:42 t=2024-01-01T00:00:00Z user="a b" count=3']


def test_odd_arguments_add_log_error(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.write(None, "x")
    assert sink.lines[0].endswith(' x= log-error="odd number of log params"')
    assert len(parse_line(sink.lines[0])) == 5


def test_caller_override_skips_resolver() -> None:
    frames = CountingFrames()
    sink = CaptureSink()
    logger = Logger(sink, frames=frames, clock=FixedClock())
    logger.write(None, "at", "manual:1", "k", "v")
    assert frames.calls == []
    assert sink.lines == ["reqid= at=manual:1 t=2024-01-01T00:00:00Z k=v"]


def test_later_at_keys_are_plain_fields(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.write(None, "k", "v", "at", "elsewhere:9")
    assert sink.pairs()[0][1] == ("at", "svc.py:42")
    assert sink.pairs()[0][-1] == ("at", "elsewhere:9")


def test_duplicate_keys_are_preserved(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.write(None, "k", 1, "k", 2)
    assert sink.pairs()[0][3:] == [("k", "1"), ("k", "2")]


def test_fields_builder_goes_through_the_same_rules(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.write(None, *Fields().add("user id", "a=b").add("ok", True))
    assert sink.lines[0].endswith(" user-id=a=b ok=true")


def test_write_reports_direct_caller_location() -> None:
    logger, sink = capture_logger()
    line = _next_line()
    logger.write(None, "k", "v")
    assert sink.pairs()[0][1] == ("at", f"{HERE}:{line}")


def test_stacklevel_skips_wrapper_frames() -> None:
    logger, sink = capture_logger()

    def helper() -> None:
        logger.write(None, "k", "v", stacklevel=2)

    line = _next_line()
    helper()
    assert sink.pairs()[0][1] == ("at", f"{HERE}:{line}")


def test_messagef_records_its_caller() -> None:
    logger, sink = capture_logger()
    line = _next_line()
    logger.messagef(None, "loaded %d rows from %s", 12, "db")
    at, message = sink.pairs()[0][1], sink.pairs()[0][3]
    assert at == ("at", f"{HERE}:{line}")
    assert message == ("message", '"loaded 12 rows from db"')


def test_messagef_without_args_uses_template_verbatim(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.messagef(None, "100%")
    assert sink.lines[0].endswith(" message=100%")


def test_messagef_accepts_mapping_argument(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.messagef(None, "%(n)d-items", {"n": 3})
    assert sink.lines[0].endswith(" message=3-items")


def test_messagef_format_mismatch_is_reported_not_raised(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.messagef(None, "%d", "not-a-number")
    pairs = sink.pairs()[0]
    assert pairs[3] == ("message", "%d")
    assert pairs[4][0] == "log-error"
    assert pairs[4][1].startswith('"bad message format:')


class Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("no str")


@pytest.mark.parametrize(
    ("template", "args", "reason"),
    [
        ("%c", (0x110000,), "OverflowError: %c arg not in range(0x110000)"),
        ("%s", (Unprintable(),), "RuntimeError: no str"),
    ],
)
def test_messagef_reports_any_substitution_failure(
    captured: tuple[Logger, CaptureSink], template: str, args: tuple[object, ...], reason: str
) -> None:
    logger, sink = captured
    logger.messagef(None, template, *args)
    pairs = sink.pairs()[0]
    assert pairs[3] == ("message", template)
    assert pairs[4] == ("log-error", f'"bad message format: {reason}"')


def test_error_with_and_without_prefix(captured: tuple[Logger, CaptureSink]) -> None:
    logger, sink = captured
    logger.error(None, ValueError("boom"))
    logger.error(None, ValueError("boom"), "loading ", 3)
    assert sink.lines[0].endswith(" error=boom")
    assert sink.lines[1].endswith(' error="loading 3: boom"')


@pytest.mark.parametrize(
    ("prefix", "expected"),
    [
        (("loading", "cfg"), "loadingcfg: boom"),
        (("attempt", 2), "attempt2: boom"),
        ((1, 2, "x"), "1 2x: boom"),
    ],
)
def test_error_prefix_spaces_only_between_non_strings(
    captured: tuple[Logger, CaptureSink], prefix: tuple[object, ...], expected: str
) -> None:
    logger, sink = captured
    logger.error(None, ValueError("boom"), *prefix)
    assert sink.pairs()[0][-1] == ("error", f'"{expected}"')


def test_error_records_its_caller() -> None:
    logger, sink = capture_logger()
    line = _next_line()
    logger.error(None, RuntimeError("x"))
    assert sink.pairs()[0][1] == ("at", f"{HERE}:{line}")


def test_request_id_from_handle_and_binding(captured: tuple[Logger, CaptureSink], unbound_request_id: None) -> None:
    logger, sink = captured
    logger.write(RequestContext(request_id="req-1"), "k", "v")
    bind_request_id("ambient-2")
    logger.write(None, "k", "v")
    logger.write({"reqid": "map-3"}, "k", "v")
    assert [pairs[0] for pairs in sink.pairs()] == [("reqid", "req-1"), ("reqid", "ambient-2"), ("reqid", "map-3")]


def test_timestamp_is_rendered_in_utc() -> None:
    eastern = timezone(timedelta(hours=5))
    logger, sink = capture_logger(location="x.py:1", clock=FixedClock(datetime(2024, 6, 1, 12, 30, 15, tzinfo=eastern)))
    logger.write(None)
    assert sink.lines == ["reqid= at=x.py:1 t=2024-06-01T07:30:15Z"]


class VanishingHandle:
    @property
    def request_id(self) -> str:
        raise RuntimeError("ctx gone")


class BrokenFrames:
    def caller(self, skip: int) -> str:
        raise RuntimeError("no frames")


class BrokenClock:
    def now(self) -> datetime:
        raise RuntimeError("no clock")


def test_failing_request_id_lookup_renders_empty(captured: tuple[Logger, CaptureSink], unbound_request_id: None) -> None:
    logger, sink = captured
    logger.write(VanishingHandle(), "k", "v")
    assert sink.lines == ["reqid= at=svc.py:42 t=2024-01-01T00:00:00Z k=v"]


def test_failing_frame_resolver_renders_unknown_location() -> None:
    sink = CaptureSink()
    logger = Logger(sink, frames=BrokenFrames(), clock=FixedClock())
    logger.write(None, "k", "v")
    logger.messagef(None, "hello")
    logger.error(None, ValueError("boom"))
    assert [pairs[1] for pairs in sink.pairs()] == [("at", "?:?")] * 3


def test_failing_clock_falls_back_to_system_time() -> None:
    sink = CaptureSink()
    logger = Logger(sink, frames=FixedFrameResolver("x.py:1"), clock=BrokenClock())
    logger.write(None, "k", "v")
    timestamp = sink.pairs()[0][2][1]
    assert datetime.strptime(timestamp, "%Y-%m-%dT%H:%M:%SZ").year >= 2024


def test_sink_failure_is_swallowed() -> None:
    sink = FailingSink()
    logger = Logger(sink, frames=FixedFrameResolver("x.py:1"), clock=FixedClock())
    logger.write(None, "k", "v")
    logger.messagef(None, "hello")
    assert sink.attempts == 2


def test_failing_sink_raises_the_stable_message() -> None:
    with pytest.raises(OSError, match=f"^{FAILURE_MESSAGE}$"):
        FailingSink().write(b"")


def test_set_sink_returns_previous(captured: tuple[Logger, CaptureSink]) -> None:
    logger, original = captured
    replacement = CaptureSink()
    assert logger.set_sink(replacement) is original
    logger.write(None, "k", "v")
    assert original.lines == []
    assert len(replacement.lines) == 1
    assert logger.sink is replacement


def test_concurrent_writes_never_interleave() -> None:
    sink = TrickleSink()
    logger = Logger(sink, frames=FixedFrameResolver("svc.py:42"), clock=FixedClock())
    barrier = threading.Barrier(100)

    def worker(index: int) -> None:
        barrier.wait()
        logger.write(None, "worker", index, "payload", f"value with spaces {index}")

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(100)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    lines = "".join(sink.chunks).splitlines()
    assert len(lines) == 100
    seen = set()
    for line in lines:
        pairs = parse_line(line)
        assert [key for key, _ in pairs] == ["reqid", "at", "t", "worker", "payload"]
        index = int(pairs[3][1])
        assert pairs[4][1] == f'"value with spaces {index}"'
        seen.add(index)
    assert seen == set(range(100))

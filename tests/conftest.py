"""Shared fixtures keeping the default logger and request binding isolated per test."""

from __future__ import annotations

from typing import Iterator

import pytest

from lib_kv_log import bind_request_id, get_logger
from lib_kv_log.core import Logger
from lib_kv_log.testing import CaptureSink, capture_logger


@pytest.fixture()
def unbound_request_id() -> Iterator[None]:
    """Start and end the test without an ambient request id."""

    bind_request_id(None)
    yield
    bind_request_id(None)


@pytest.fixture()
def restore_default_sink() -> Iterator[Logger]:
    """Put the default logger's sink back after tests that reconfigure it."""

    logger = get_logger()
    previous = logger.sink
    yield logger
    logger.set_sink(previous)


@pytest.fixture()
def captured() -> tuple[Logger, CaptureSink]:
    """Logger at a fixed location and time writing into a capture sink."""

    return capture_logger(location="svc.py:42")

from __future__ import annotations

from lib_kv_log.domain.errors import InvalidSetting, KvLogError


def test_error_hierarchy() -> None:
    assert issubclass(InvalidSetting, KvLogError)
    assert isinstance(InvalidSetting(""), KvLogError)

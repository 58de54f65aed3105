"""Tests for the call log service."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from apirelay.services.call_log import CallLog
from apirelay.services.models import CallLogEntry, utc_now
from apirelay.storage.memory import MemoryStorage


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def call_log(storage: MemoryStorage) -> CallLog:
    return CallLog(storage, default_limit=5)


def test_log_call_normalizes_entry(call_log: CallLog) -> None:
    entry = call_log.log_call("k1", "BRAVE", "/api/proxy/brave/search", "get", 200, 12.6)

    assert entry is not None
    assert entry.id is not None
    assert entry.provider == "brave"
    assert entry.method == "GET"
    assert entry.latency_ms == 13
    assert entry.error_message is None


def test_list_calls_newest_first_and_filtered(call_log: CallLog) -> None:
    call_log.log_call("k1", "brave", "/a", "POST", 200, 1)
    call_log.log_call("k2", "brave", "/b", "POST", 502, 2, "[brave] API error: 502")
    call_log.log_call("k1", "brave", "/c", "POST", 200, 3)

    assert [e.endpoint for e in call_log.list_calls()] == ["/c", "/b", "/a"]
    assert [e.endpoint for e in call_log.list_calls("k1")] == ["/c", "/a"]
    assert call_log.list_calls("k2")[0].status_code == 502


def test_list_calls_uses_default_limit(call_log: CallLog) -> None:
    for index in range(8):
        call_log.log_call("k1", "brave", f"/{index}", "GET", 200, 1)

    assert len(call_log.list_calls()) == 5
    assert len(call_log.list_calls(limit=2)) == 2


def test_prune_removes_old_entries(call_log: CallLog, storage: MemoryStorage) -> None:
    storage.add_call(
        CallLogEntry(
            api_key_id="k1",
            provider="brave",
            endpoint="/old",
            method="GET",
            status_code=200,
            latency_ms=1,
            created_at=utc_now() - timedelta(days=31),
        )
    )
    call_log.log_call("k1", "brave", "/new", "GET", 200, 1)

    assert call_log.prune(30) == 1
    assert [e.endpoint for e in call_log.list_calls()] == ["/new"]
    assert call_log.prune(30) == 0


def test_log_call_swallows_storage_failure() -> None:
    storage = MagicMock()
    storage.add_call.side_effect = RuntimeError("database is locked")

    assert CallLog(storage).log_call("k1", "brave", "/a", "GET", 200, 1) is None

"""Tests for AsyncAuditStore.

Requires: pip install pytest-asyncio
"""
from __future__ import annotations

import asyncio
import json

import pytest

from auditchain.domain.audit import AuditEntry, AuditEntryType
from auditchain.errors import StoreClosedError
from auditchain.store.async_store import AsyncAuditStore
from auditchain.store.audit_store import AuditStore

from conftest import StepClock


@pytest.mark.asyncio
async def test_init_and_log():
    store = AsyncAuditStore(clock=StepClock())
    genesis = await store.init(session_id="s-async")
    entry = await store.log_auth_request("r1", "uav-7", "STRIKE")
    assert genesis.index == 0
    assert entry.index == 1
    assert entry.previous_hash == genesis.hash
    assert len(store) == 2


@pytest.mark.asyncio
async def test_log_auto_initializes():
    store = AsyncAuditStore()
    await store.log_entry(AuditEntry.alert("LOW", "test"))
    assert store.entries[0].data.entry_type is AuditEntryType.SESSION_START


@pytest.mark.asyncio
async def test_concurrent_coroutines_commit_in_order():
    store = AsyncAuditStore()
    await store.init()
    tasks = [
        asyncio.create_task(store.log_entry(AuditEntry.custom(seq=i))) for i in range(50)
    ]
    results = await asyncio.gather(*tasks)

    assert len(store) == 51
    assert [r.index for r in results] == list(range(1, 51))
    # asyncio.Lock is FIFO: tasks commit in creation order.
    assert [r.data.details["seq"] for r in results] == list(range(50))
    assert (await store.verify_integrity()).valid
    assert store.chain_valid


@pytest.mark.asyncio
async def test_convenience_loggers():
    store = AsyncAuditStore()
    await store.log_auth_request("r1", "uav-1", "STRIKE")
    await store.log_auth_decision("r1", "APPROVED")
    await store.log_auth_timeout("r2")
    await store.log_safe_mode_activated("jamming")
    await store.log_safe_mode_deactivated()
    await store.log_instructor_command("RESUME")
    await store.log_weapons_state_change("uav-1", "SAFE", "ARMED")
    await store.log_link_status_change("uav-1", "DEGRADED", latency_ms=850)
    await store.log_alert("HIGH", "Geofence breach", "uav-2")
    await store.log_custom(note="free text")
    assert len(store) == 11
    assert [e.data.entry_type for e in store.entries[-4:]] == [
        AuditEntryType.WEAPONS_STATE_CHANGE,
        AuditEntryType.LINK_STATUS_CHANGE,
        AuditEntryType.ALERT_RECEIVED,
        AuditEntryType.CUSTOM,
    ]
    assert (await store.verify_integrity()).valid


@pytest.mark.asyncio
async def test_teardown():
    store = AsyncAuditStore()
    await store.init()
    end = await store.teardown("done")
    assert end.data.entry_type is AuditEntryType.SESSION_END
    with pytest.raises(StoreClosedError):
        await store.log_entry(AuditEntry.custom())


@pytest.mark.asyncio
async def test_readers():
    store = AsyncAuditStore(clock=StepClock())
    await store.log_safe_mode_activated("link lost")
    assert store.get_summary().length == 2
    assert json.loads(store.export_audit_log())["chainLength"] == 2


@pytest.mark.asyncio
async def test_wraps_existing_store():
    inner = AuditStore()
    store = AsyncAuditStore(inner)
    await store.log_entry(AuditEntry.custom())
    assert store.store is inner
    assert len(inner) == 2

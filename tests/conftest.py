"""Shared fixtures for auditchain tests."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from auditchain.crypto.chain import ChainBuilder, HashChainEntry
from auditchain.domain.audit import AuditEntry


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock: starts at BASE_TIME, advances 1 ms per read."""

    def __init__(self, start: datetime = BASE_TIME, step_ms: int = 1) -> None:
        self._now = start
        self._step = timedelta(milliseconds=step_ms)
        self.reads = 0

    def __call__(self) -> datetime:
        current = self._now
        self._now += self._step
        self.reads += 1
        return current


def build_chain(builder: ChainBuilder, n: int) -> list[HashChainEntry]:
    """Genesis plus n CUSTOM entries."""
    chain = builder.create_chain(
        AuditEntry.session_start("test-session").stamped("2024-01-01T00:00:00.000Z")
    )
    for i in range(n):
        chain.append(builder.append(chain, AuditEntry.custom(seq=i, note=f"event {i}")))
    return chain


def with_data(entry: HashChainEntry, data) -> HashChainEntry:
    """Copy of entry with its payload swapped and its hash left stale."""
    return replace(entry, data=data)


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def builder(clock) -> ChainBuilder:
    return ChainBuilder(clock=clock)


@pytest.fixture
def chain_of(builder):
    """Factory fixture: chain_of(n) -> genesis + n entries."""
    return lambda n: build_chain(builder, n)


@pytest.fixture
def scenario_chain(builder) -> list[HashChainEntry]:
    """SESSION_START, AUTH_REQUEST_RECEIVED r1, AUTH_DECISION_MADE r1 APPROVED."""
    chain = builder.create_chain(
        AuditEntry(
            entry_type="SESSION_START",
            timestamp="2024-01-01T00:00:00Z",
            details={},
        )
    )
    chain.append(builder.append(
        chain, AuditEntry.from_dict({
            "entryType": "AUTH_REQUEST_RECEIVED", "requestId": "r1", "details": {},
        })
    ))
    chain.append(builder.append(
        chain, AuditEntry.from_dict({
            "entryType": "AUTH_DECISION_MADE",
            "requestId": "r1",
            "details": {"decision": "APPROVED"},
        })
    ))
    return chain

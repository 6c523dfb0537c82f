"""Asyncio front end for AuditStore.

Appends from coroutines are queued on an asyncio.Lock, so on one event
loop they commit strictly in call order. The hashing work runs in a
worker thread (asyncio.to_thread) and never blocks the loop. An append
is durable once its coroutine returns.

Readers are not queued; they snapshot the underlying store directly.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from auditchain.crypto.export import ChainSummary
from auditchain.crypto.verifier import VerificationResult
from auditchain.domain.audit import AuditEntry
from auditchain.domain.types import EntityId, RequestId
from auditchain.store.audit_store import AuditStore, ChainEntry

log = logging.getLogger(__name__)


class AsyncAuditStore:
    """Awaitable wrapper around an AuditStore.

    Args:
        store: the store to wrap. If None, one is created from **kwargs
            (builder, verifier, clock, max_append_retries).
    """

    def __init__(self, store: AuditStore | None = None, **kwargs: Any) -> None:
        self._store = store or AuditStore(**kwargs)
        self._append_lock = asyncio.Lock()

    @property
    def store(self) -> AuditStore:
        return self._store

    @property
    def entries(self) -> tuple[ChainEntry, ...]:
        return self._store.entries

    @property
    def chain_valid(self) -> bool:
        return self._store.chain_valid

    def __len__(self) -> int:
        return len(self._store)

    async def init(self, session_id: str | None = None, **details: Any) -> ChainEntry:
        async with self._append_lock:
            return await asyncio.to_thread(self._store.init, session_id, **details)

    async def teardown(self, reason: str | None = None) -> ChainEntry | None:
        async with self._append_lock:
            return await asyncio.to_thread(self._store.teardown, reason)

    async def log_entry(self, entry: AuditEntry) -> ChainEntry:
        async with self._append_lock:
            chained = await asyncio.to_thread(self._store.log_entry, entry)
        log.debug("Async append of %s committed at %d", entry.entry_type.value, chained.index)
        return chained

    async def log_auth_request(
        self, request_id: RequestId, entity_id: EntityId, action_type: str
    ) -> ChainEntry:
        return await self.log_entry(AuditEntry.auth_request(request_id, entity_id, action_type))

    async def log_auth_decision(
        self, request_id: RequestId, decision: str, rationale: str | None = None
    ) -> ChainEntry:
        return await self.log_entry(AuditEntry.auth_decision(request_id, decision, rationale))

    async def log_auth_timeout(self, request_id: RequestId) -> ChainEntry:
        return await self.log_entry(AuditEntry.auth_timeout(request_id))

    async def log_safe_mode_activated(self, reason: str) -> ChainEntry:
        return await self.log_entry(AuditEntry.safe_mode_activated(reason))

    async def log_safe_mode_deactivated(self) -> ChainEntry:
        return await self.log_entry(AuditEntry.safe_mode_deactivated())

    async def log_instructor_command(self, command: str, params: Any = None) -> ChainEntry:
        return await self.log_entry(AuditEntry.instructor_command(command, params))

    async def log_weapons_state_change(
        self, entity_id: EntityId, previous_state: str, new_state: str
    ) -> ChainEntry:
        return await self.log_entry(
            AuditEntry.weapons_state_change(entity_id, previous_state, new_state)
        )

    async def log_link_status_change(
        self, entity_id: EntityId | None, status: str, **details: Any
    ) -> ChainEntry:
        return await self.log_entry(
            AuditEntry.link_status_change(entity_id, status, **details)
        )

    async def log_alert(
        self, severity: str, message: str, entity_id: EntityId | None = None
    ) -> ChainEntry:
        return await self.log_entry(AuditEntry.alert(severity, message, entity_id))

    async def log_custom(self, **details: Any) -> ChainEntry:
        return await self.log_entry(AuditEntry.custom(**details))

    async def verify_integrity(self) -> VerificationResult:
        return await asyncio.to_thread(self._store.verify_integrity)

    def export_audit_log(self) -> str:
        return self._store.export_audit_log()

    def get_summary(self) -> ChainSummary:
        return self._store.get_summary()

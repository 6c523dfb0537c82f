"""AuditStore -- the owned, single-writer home of one session's chain.

One store per audit session: init() at session start writes the genesis
SESSION_START entry, every domain event appends exactly one entry, and
teardown() writes SESSION_END and closes the store.

Concurrency model: single writer, many readers.
- An append reads the tail, hashes the new entry *outside* the lock, then
  commits under the lock only if the tail is still the one it read
  (compare-and-append). If another thread got there first, the commit
  raises ConcurrentModificationError and log_entry() rebuilds against the new
  tail, up to max_append_retries times. Two appends therefore can never
  both link to the same tail.
- Readers (entries, verify_integrity, export_audit_log, get_summary) copy
  the entry list under the lock and work on that snapshot, so they never
  observe a half-committed append.
"""
from __future__ import annotations

import logging
import threading
import uuid
from typing import Any

from auditchain.crypto.chain import ChainBuilder, HashChainEntry
from auditchain.crypto.export import ChainSummary, export_chain, summarize
from auditchain.crypto.verifier import ChainVerifier, VerificationResult
from auditchain.domain.audit import AuditEntry
from auditchain.domain.types import Clock, EntityId, RequestId, now_timestamp
from auditchain.errors import (
    ConcurrentModificationError,
    EmptyChainError,
    StoreClosedError,
)

log = logging.getLogger(__name__)

ChainEntry = HashChainEntry[AuditEntry]


class AuditStore:
    """Owns the live audit chain for one session.

    Args:
        builder: computes new links (default: SHA256 with `clock`).
        verifier: checks the chain (default: same digest as `builder`).
        clock: stamps payload and export timestamps (default UTC now).
        max_append_retries: how many times log_entry() rebuilds an entry after
            losing a race for the tail before giving up.
    """

    def __init__(
        self,
        builder: ChainBuilder | None = None,
        verifier: ChainVerifier | None = None,
        clock: Clock | None = None,
        max_append_retries: int = 3,
    ) -> None:
        if max_append_retries < 0:
            raise ValueError("max_append_retries must be >= 0")
        self._clock = clock
        self._builder = builder or ChainBuilder(clock=clock)
        self._verifier = verifier or ChainVerifier(self._builder.digest)
        self._max_append_retries = max_append_retries
        self._entries: list[ChainEntry] = []
        self._lock = threading.Lock()
        self._chain_valid = True
        self._closed = False
        self._session_id: str | None = None

    # ── State ──

    @property
    def entries(self) -> tuple[ChainEntry, ...]:
        """Consistent snapshot of the chain."""
        with self._lock:
            return tuple(self._entries)

    @property
    def head_hash(self) -> str | None:
        """Hash of the tail entry, or None before init()."""
        with self._lock:
            return self._entries[-1].hash if self._entries else None

    @property
    def is_initialized(self) -> bool:
        with self._lock:
            return bool(self._entries)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def chain_valid(self) -> bool:
        """Result of the most recent verify_integrity() (True until then)."""
        return self._chain_valid

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ── Lifecycle ──

    def init(self, session_id: str | None = None, **details: Any) -> ChainEntry:
        """Start the session by writing the genesis entry.

        Idempotent: a second call returns the existing genesis entry.
        Extra keyword arguments become SESSION_START details.
        """
        with self._lock:
            if self._entries:
                return self._entries[0]
            if self._closed:
                raise StoreClosedError("Audit session has been torn down")
            sid = session_id or str(uuid.uuid4())
            payload = AuditEntry.session_start(sid, **details).stamped(self._now())
            genesis = self._builder.create_chain(payload)[0]
            self._entries.append(genesis)
            self._session_id = sid
            self._chain_valid = True
        log.info("Audit session %s started, genesis %s", sid, genesis.hash[:16])
        return genesis

    def teardown(self, reason: str | None = None) -> ChainEntry | None:
        """Write SESSION_END and close the store.

        Returns the SESSION_END entry, or None if the session never
        started. Later appends raise StoreClosedError; reads still work.
        """
        with self._lock:
            if self._closed:
                return None
            self._closed = True
            if not self._entries:
                return None
            payload = AuditEntry.session_end(reason).stamped(self._now())
            entry = self._builder.append(self._entries, payload)
            self._entries.append(entry)
        log.info(
            "Audit session %s closed after %d entries", self._session_id, entry.index + 1
        )
        return entry

    # ── Appends ──

    def append(
        self, payload: AuditEntry, expected_tail_hash: str | None = None
    ) -> ChainEntry:
        """Append payload as-is, atomically.

        With expected_tail_hash, this is compare-and-append: if the tail
        hash is no longer the one the caller observed, nothing is written
        and ConcurrentModificationError is raised.

        Raises EmptyChainError before init(), StoreClosedError after
        teardown(), SerializationError for unserializable payloads.
        """
        with self._lock:
            self._check_open()
            if not self._entries:
                raise EmptyChainError()
            tail_hash = self._entries[-1].hash
            if expected_tail_hash is not None and expected_tail_hash != tail_hash:
                raise ConcurrentModificationError(expected_tail_hash, tail_hash)
            entry = self._builder.append(self._entries, payload)
            self._entries.append(entry)
        log.debug("Appended %s at index %d", payload.entry_type.value, entry.index)
        return entry

    def log_entry(self, entry: AuditEntry) -> ChainEntry:
        """Stamp entry with the current time and append it.

        Starts the session first if init() has not been called. Hashing
        happens outside the lock; see the module docstring for the retry
        protocol.
        """
        if not self.is_initialized:
            self.init()
        payload = entry if entry.timestamp is not None else entry.stamped(self._now())

        attempt = 0
        while True:
            with self._lock:
                self._check_open()
                tail = self._entries[-1]
            candidate = self._builder.append((tail,), payload)
            try:
                self._commit(candidate, tail.hash)
            except ConcurrentModificationError:
                attempt += 1
                if attempt > self._max_append_retries:
                    log.error(
                        "Giving up on %s after %d attempts: tail kept moving",
                        payload.entry_type.value, attempt,
                    )
                    raise
                log.warning(
                    "Tail moved while appending %s; retrying (attempt %d)",
                    payload.entry_type.value, attempt,
                )
                continue
            log.debug("Logged %s at index %d", payload.entry_type.value, candidate.index)
            return candidate

    def _commit(self, entry: ChainEntry, observed_tail_hash: str) -> None:
        with self._lock:
            self._check_open()
            tail_hash = self._entries[-1].hash
            if tail_hash != observed_tail_hash:
                raise ConcurrentModificationError(observed_tail_hash, tail_hash)
            self._entries.append(entry)

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError("Audit session has been torn down")

    def _now(self) -> str:
        return now_timestamp(self._clock)

    # ── Convenience loggers ──

    def log_auth_request(
        self, request_id: RequestId, entity_id: EntityId, action_type: str
    ) -> ChainEntry:
        return self.log_entry(AuditEntry.auth_request(request_id, entity_id, action_type))

    def log_auth_decision(
        self, request_id: RequestId, decision: str, rationale: str | None = None
    ) -> ChainEntry:
        return self.log_entry(AuditEntry.auth_decision(request_id, decision, rationale))

    def log_auth_timeout(self, request_id: RequestId) -> ChainEntry:
        return self.log_entry(AuditEntry.auth_timeout(request_id))

    def log_safe_mode_activated(self, reason: str) -> ChainEntry:
        return self.log_entry(AuditEntry.safe_mode_activated(reason))

    def log_safe_mode_deactivated(self) -> ChainEntry:
        return self.log_entry(AuditEntry.safe_mode_deactivated())

    def log_instructor_command(self, command: str, params: Any = None) -> ChainEntry:
        return self.log_entry(AuditEntry.instructor_command(command, params))

    def log_weapons_state_change(
        self, entity_id: EntityId, previous_state: str, new_state: str
    ) -> ChainEntry:
        return self.log_entry(
            AuditEntry.weapons_state_change(entity_id, previous_state, new_state)
        )

    def log_link_status_change(
        self, entity_id: EntityId | None, status: str, **details: Any
    ) -> ChainEntry:
        return self.log_entry(AuditEntry.link_status_change(entity_id, status, **details))

    def log_alert(
        self, severity: str, message: str, entity_id: EntityId | None = None
    ) -> ChainEntry:
        return self.log_entry(AuditEntry.alert(severity, message, entity_id))

    def log_custom(self, **details: Any) -> ChainEntry:
        return self.log_entry(AuditEntry.custom(**details))

    # ── Readers ──

    def verify_integrity(self) -> VerificationResult:
        """Verify a snapshot of the chain and record the outcome."""
        result = self._verifier.verify(self.entries)
        self._chain_valid = result.valid
        if not result.valid:
            log.warning(
                "Audit chain COMPROMISED at index %s: %s",
                result.broken_at_index, result.error_message,
            )
        return result

    def export_audit_log(self) -> str:
        """JSON export document of a snapshot of the chain."""
        return export_chain(self.entries, clock=self._clock)

    def get_summary(self) -> ChainSummary:
        with self._lock:
            return summarize(self._entries)

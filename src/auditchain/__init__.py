"""auditchain -- tamper-evident audit hash chain for operator decisions.

Quick start:
    from auditchain import AuditStore

    store = AuditStore()
    store.init()
    store.log_auth_request("r1", "uav-7", "WEAPONS_RELEASE")
    assert store.verify_integrity().valid
"""
from auditchain.crypto import (
    GENESIS,
    ChainBuilder,
    ChainSummary,
    ChainVerifier,
    HashChainEntry,
    VerificationFailure,
    VerificationResult,
    append_to_chain,
    create_chain,
    export_chain,
    load_chain,
    summarize,
    verify_chain,
)
from auditchain.domain import AuditEntry, AuditEntryType
from auditchain.errors import (
    AuditChainError,
    ConcurrentModificationError,
    EmptyChainError,
    ExportFormatError,
    SerializationError,
    StoreClosedError,
)
from auditchain.store import AsyncAuditStore, AuditStore

__all__ = [
    "GENESIS",
    "AsyncAuditStore",
    "AuditChainError",
    "AuditEntry",
    "AuditEntryType",
    "AuditStore",
    "ChainBuilder",
    "ChainSummary",
    "ChainVerifier",
    "ConcurrentModificationError",
    "EmptyChainError",
    "ExportFormatError",
    "HashChainEntry",
    "SerializationError",
    "StoreClosedError",
    "VerificationFailure",
    "VerificationResult",
    "append_to_chain",
    "create_chain",
    "export_chain",
    "load_chain",
    "summarize",
    "verify_chain",
]

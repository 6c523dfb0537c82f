"""Domain model for auditchain.

Re-exports the public types:
    from auditchain.domain import AuditEntry, AuditEntryType
"""
from auditchain.domain.audit import AuditEntry, AuditEntryType
from auditchain.domain.types import (
    Clock,
    EntityId,
    HexDigest,
    RequestId,
    Timestamp,
    format_timestamp,
    now_timestamp,
    utc_now,
)

__all__ = [
    "AuditEntry",
    "AuditEntryType",
    "Clock",
    "EntityId",
    "HexDigest",
    "RequestId",
    "Timestamp",
    "format_timestamp",
    "now_timestamp",
    "utc_now",
]

"""Session-owned audit chain storage.

  - AuditStore: thread-safe single-writer store with compare-and-append
  - AsyncAuditStore: asyncio front end that hashes off the event loop
"""
from auditchain.store.async_store import AsyncAuditStore
from auditchain.store.audit_store import AuditStore

__all__ = ["AsyncAuditStore", "AuditStore"]

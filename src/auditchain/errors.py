"""Exceptions raised by the chain builder, exporter and audit store.

Verification findings are not exceptions. A broken chain is reported as a
VerificationResult with valid=False.
"""
from __future__ import annotations


class AuditChainError(Exception):
    """Base class for every error raised by auditchain."""


class SerializationError(AuditChainError, TypeError):
    """A payload cannot be serialized deterministically."""


class EmptyChainError(AuditChainError, ValueError):
    """Append attempted on a chain that has no genesis entry."""

    def __init__(self) -> None:
        super().__init__(
            "Cannot append to an empty chain; create the genesis entry first"
        )


class ConcurrentModificationError(AuditChainError):
    """The chain tail moved between reading it and committing an append.

    Recoverable: rebuild the entry against the new tail and try again.
    """

    def __init__(self, expected: str | None, actual: str | None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Chain tail moved: expected {_short(expected)}, found {_short(actual)}"
        )


class StoreClosedError(AuditChainError):
    """Append attempted after the audit session was torn down."""


class ExportFormatError(AuditChainError, ValueError):
    """An exported chain document is malformed."""


def _short(value: str | None) -> str:
    if value is None:
        return "<empty chain>"
    return value[:16] + "..." if len(value) > 16 else value

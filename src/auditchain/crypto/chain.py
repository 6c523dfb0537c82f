"""Append-only hash chain of audit payloads.

Each payload is wrapped in a HashChainEntry that stores:
- A sequence index, 0 for genesis and increasing by exactly 1
- The timestamp at which it was appended
- The hash of the previous entry (the GENESIS sentinel for index 0)
- The hash of this entry, computed from the four fields above
- The payload itself

Every hash depends on every entry before it, so editing, deleting or
reordering any entry breaks the link at that point. The chain is
tamper-evident, not tamper-proof: it detects modification but does not
prevent it.

The builder never mutates a chain. append() reads the tail and returns
the new entry; the owner of the sequence (normally an AuditStore) commits
it. Keeping the read and the commit with one owner is what stops two
appends from forking the chain off the same tail.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Sequence, TypeVar

from auditchain.crypto.hasher import Digest, DEFAULT_DIGEST, hash_entry, hash_genesis
from auditchain.domain.types import Clock, HexDigest, Timestamp, now_timestamp
from auditchain.errors import EmptyChainError

T = TypeVar("T")

# Literal previous_hash of the genesis entry. Obviously synthetic, so it
# cannot be confused with a real 64-character hex digest.
GENESIS: str = "GENESIS"


@dataclass(frozen=True, slots=True)
class HashChainEntry(Generic[T]):
    """One link in the chain."""

    index: int
    timestamp: Timestamp
    previous_hash: HexDigest
    hash: HexDigest
    data: T

    @property
    def is_genesis(self) -> bool:
        return self.index == 0

    def to_dict(self) -> dict[str, Any]:
        """Wire form, as written to export documents."""
        return {
            "index": self.index,
            "timestamp": self.timestamp,
            "previousHash": self.previous_hash,
            "hash": self.hash,
            "data": self.data,
        }


class ChainBuilder:
    """Creates genesis entries and computes new links.

    Args:
        digest: hash implementation (default SHA256). A chain must be
            verified with the same digest it was built with.
        clock: returns the current datetime (default UTC now).
    """

    def __init__(self, digest: Digest | None = None, clock: Clock | None = None) -> None:
        self._digest: Digest = digest or DEFAULT_DIGEST
        self._clock = clock

    @property
    def digest(self) -> Digest:
        return self._digest

    def create_chain(self, payload: T) -> list[HashChainEntry[T]]:
        """Start a new chain holding only the genesis entry.

        Raises SerializationError if the payload cannot be serialized.
        """
        timestamp = now_timestamp(self._clock)
        return [
            HashChainEntry(
                index=0,
                timestamp=timestamp,
                previous_hash=GENESIS,
                hash=hash_genesis(timestamp, payload, self._digest),
                data=payload,
            )
        ]

    def append(self, chain: Sequence[HashChainEntry[T]], payload: T) -> HashChainEntry[T]:
        """Build the entry that follows chain's tail. Does not modify chain.

        Raises EmptyChainError if chain has no genesis entry, and
        SerializationError if the payload cannot be serialized.
        """
        if not chain:
            raise EmptyChainError()
        tail = chain[-1]
        index = tail.index + 1
        timestamp = now_timestamp(self._clock)
        return HashChainEntry(
            index=index,
            timestamp=timestamp,
            previous_hash=tail.hash,
            hash=hash_entry(index, timestamp, tail.hash, payload, self._digest),
            data=payload,
        )


_DEFAULT_BUILDER = ChainBuilder()


def create_chain(payload: T) -> list[HashChainEntry[T]]:
    """Genesis chain hashed with plain SHA256 and the system clock."""
    return _DEFAULT_BUILDER.create_chain(payload)


def append_to_chain(chain: Sequence[HashChainEntry[T]], payload: T) -> HashChainEntry[T]:
    """Next entry for chain, hashed with plain SHA256 and the system clock."""
    return _DEFAULT_BUILDER.append(chain, payload)

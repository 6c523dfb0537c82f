"""SHA256 and HMAC-SHA256 digests over canonical chain preimages.

Every chain entry hash is digest(preimage) where the preimage is one of:

    genesis:  "GENESIS:" + {"timestamp": ..., "data": ...}
    others:   {"index": ..., "timestamp": ..., "previousHash": ..., "data": ...}

rendered with canonical_json and encoded as UTF-8. The key order and the
"GENESIS:" prefix are fixed; changing either breaks every existing chain.
The prefix keeps a genesis hash from ever colliding with the hash of an
interior entry that happens to carry the same payload.

The Digest protocol has one method so tests and callers can plug in any
implementation. Plain SHA256 proves integrity only against a trusted
anchor (a published head hash, say), because anyone who can edit the
chain can also recompute it. HmacSha256Digest binds each hash to a secret
key, so forged recomputations fail verification unless the forger holds
the key.
"""
from __future__ import annotations

import hashlib
import hmac
import os
from typing import Any, Protocol, runtime_checkable

from auditchain.crypto.canonical import canonical_json
from auditchain.domain.types import HexDigest, Timestamp

GENESIS_PREFIX = "GENESIS:"


@runtime_checkable
class Digest(Protocol):
    """Deterministic one-way function from bytes to lowercase hex."""

    def digest(self, data: bytes) -> HexDigest: ...


class Sha256Digest:
    """Plain SHA256. Stateless; one shared instance is enough."""

    def digest(self, data: bytes) -> HexDigest:
        return hashlib.sha256(data).hexdigest()

    def __repr__(self) -> str:
        return "Sha256Digest()"


class HmacSha256Digest:
    """HMAC-SHA256 under a secret key. Keep the key; verification needs it."""

    def __init__(self, secret_key: bytes) -> None:
        if not secret_key:
            raise ValueError("HMAC secret key must not be empty")
        self._secret_key = bytes(secret_key)

    @classmethod
    def generate(cls) -> HmacSha256Digest:
        return cls(generate_secret_key())

    @property
    def secret_key(self) -> bytes:
        return self._secret_key

    def digest(self, data: bytes) -> HexDigest:
        return hmac.new(self._secret_key, data, hashlib.sha256).hexdigest()

    def __repr__(self) -> str:
        # never print the key
        return "HmacSha256Digest(<secret>)"


DEFAULT_DIGEST: Digest = Sha256Digest()


def generate_secret_key() -> bytes:
    """32 random bytes from the OS CSPRNG."""
    return os.urandom(32)


def genesis_preimage(timestamp: Timestamp, data: Any) -> bytes:
    text = GENESIS_PREFIX + canonical_json({"timestamp": timestamp, "data": data})
    return text.encode("utf-8")


def entry_preimage(
    index: int, timestamp: Timestamp, previous_hash: HexDigest, data: Any
) -> bytes:
    text = canonical_json({
        "index": index,
        "timestamp": timestamp,
        "previousHash": previous_hash,
        "data": data,
    })
    return text.encode("utf-8")


def hash_genesis(
    timestamp: Timestamp, data: Any, digest: Digest | None = None
) -> HexDigest:
    """Hash of the index-0 entry. Raises SerializationError on bad data."""
    return (digest or DEFAULT_DIGEST).digest(genesis_preimage(timestamp, data))


def hash_entry(
    index: int,
    timestamp: Timestamp,
    previous_hash: HexDigest,
    data: Any,
    digest: Digest | None = None,
) -> HexDigest:
    """Hash of an interior entry. Raises SerializationError on bad data."""
    return (digest or DEFAULT_DIGEST).digest(
        entry_preimage(index, timestamp, previous_hash, data)
    )

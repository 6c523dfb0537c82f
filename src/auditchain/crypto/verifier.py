"""Chain verification with tamper localization.

The ChainVerifier recomputes every hash from the entries' visible fields
and checks every link. It stops at the first failure and reports where
the chain broke and why: the earliest point of tampering, not all of them.

A broken chain is a finding, not a fault. Nothing here raises for a
tampered chain; callers get a VerificationResult and decide what to do
(mark the session COMPROMISED, refuse an export, and so on).

Three entry points:
- verify(chain): walk the whole chain from genesis. O(n).
- verify_suffix(chain, start): walk chain[start:], trusting the stored
  previous_hash of chain[start]. For incremental checks after an earlier
  full pass.
- verify_entry(chain, index): recompute one entry's own hash. O(1), but
  says nothing about its links.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from auditchain.crypto.chain import GENESIS, HashChainEntry
from auditchain.crypto.hasher import DEFAULT_DIGEST, Digest, hash_entry, hash_genesis
from auditchain.errors import SerializationError


class VerificationFailure(str, Enum):
    INVALID_GENESIS = "Invalid genesis block"
    GENESIS_HASH_MISMATCH = "Genesis hash mismatch"
    BROKEN_LINK = "Chain link broken"
    HASH_MISMATCH = "Hash mismatch"


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Outcome of a verification pass."""

    valid: bool
    entries_verified: int
    broken_at_index: int | None = None
    reason: VerificationFailure | None = None
    expected_hash: str | None = None
    actual_hash: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"valid": self.valid}
        if self.broken_at_index is not None:
            out["brokenAt"] = self.broken_at_index
        if self.reason is not None:
            out["error"] = self.reason.value
        return out


class ChainVerifier:
    """Verifies the integrity of a hash chain.

    Must use the same digest the chain was built with: an HMAC chain
    checked with plain SHA256 (or the wrong key) fails at genesis.
    """

    def __init__(self, digest: Digest | None = None) -> None:
        self._digest: Digest = digest or DEFAULT_DIGEST

    def verify(self, chain: Sequence[HashChainEntry[Any]]) -> VerificationResult:
        """Verify the entire chain from genesis to tail."""
        if len(chain) == 0:
            return VerificationResult(valid=True, entries_verified=0)

        genesis = chain[0]
        if genesis.previous_hash != GENESIS or genesis.index != 0:
            return VerificationResult(
                valid=False,
                entries_verified=0,
                broken_at_index=0,
                reason=VerificationFailure.INVALID_GENESIS,
                expected_hash=GENESIS,
                actual_hash=genesis.previous_hash,
                error_message=(
                    f"Invalid genesis entry: previous_hash must be {GENESIS!r} "
                    f"at index 0, found {genesis.previous_hash[:16]!r} "
                    f"at index {genesis.index}"
                ),
            )

        recomputed = self._recompute(genesis)
        if recomputed != genesis.hash:
            return self._mismatch(
                0, 0, recomputed, genesis.hash,
                VerificationFailure.GENESIS_HASH_MISMATCH,
            )

        return self._walk(chain, 1, verified=1)

    def verify_suffix(
        self, chain: Sequence[HashChainEntry[Any]], start: int
    ) -> VerificationResult:
        """Verify chain[start:].

        The entry at `start` is checked against its own stored
        previous_hash, so this trusts everything before it. Use verify()
        for full integrity.

        Raises ValueError if start is out of bounds.
        """
        if start < 0 or start >= len(chain):
            raise ValueError(
                f"Invalid suffix start {start} for chain of length {len(chain)}"
            )
        if start == 0:
            return self.verify(chain)

        first = chain[start]
        recomputed = self._recompute(first)
        if recomputed != first.hash:
            return self._mismatch(
                start, 0, recomputed, first.hash, VerificationFailure.HASH_MISMATCH
            )
        return self._walk(chain, start + 1, verified=1)

    def verify_entry(
        self, chain: Sequence[HashChainEntry[Any]], index: int
    ) -> VerificationResult:
        """Recompute the hash of chain[index] from its own fields.

        Raises IndexError if index is out of range.
        """
        if index < 0 or index >= len(chain):
            raise IndexError(
                f"Index {index} out of range (chain has {len(chain)} entries)"
            )
        entry = chain[index]
        recomputed = self._recompute(entry)
        if recomputed == entry.hash:
            return VerificationResult(valid=True, entries_verified=1)
        reason = (
            VerificationFailure.GENESIS_HASH_MISMATCH
            if index == 0
            else VerificationFailure.HASH_MISMATCH
        )
        return self._mismatch(index, 0, recomputed, entry.hash, reason)

    def _walk(
        self, chain: Sequence[HashChainEntry[Any]], start: int, verified: int
    ) -> VerificationResult:
        for i in range(start, len(chain)):
            entry = chain[i]
            previous = chain[i - 1]

            # Link first: a deleted or reordered entry shows up here.
            if entry.previous_hash != previous.hash:
                return VerificationResult(
                    valid=False,
                    entries_verified=verified,
                    broken_at_index=i,
                    reason=VerificationFailure.BROKEN_LINK,
                    expected_hash=previous.hash,
                    actual_hash=entry.previous_hash,
                    error_message=(
                        f"Chain link broken at index {i}: previous_hash does "
                        f"not match the hash of entry {i - 1}. An entry may "
                        f"have been deleted or reordered."
                    ),
                )

            recomputed = self._recompute(entry)
            if recomputed != entry.hash:
                return self._mismatch(
                    i, verified, recomputed, entry.hash,
                    VerificationFailure.HASH_MISMATCH,
                )

            verified += 1

        return VerificationResult(valid=True, entries_verified=verified)

    def _recompute(self, entry: HashChainEntry[Any]) -> str | None:
        """Fresh hash of entry, or None if its payload no longer serializes."""
        try:
            if entry.index == 0 and entry.previous_hash == GENESIS:
                return hash_genesis(entry.timestamp, entry.data, self._digest)
            return hash_entry(
                entry.index, entry.timestamp, entry.previous_hash,
                entry.data, self._digest,
            )
        except SerializationError:
            return None

    @staticmethod
    def _mismatch(
        index: int,
        verified: int,
        expected: str | None,
        actual: str,
        reason: VerificationFailure,
    ) -> VerificationResult:
        if expected is None:
            detail = "payload can no longer be serialized"
        else:
            detail = f"expected {expected[:16]}..., got {actual[:16]}..."
        return VerificationResult(
            valid=False,
            entries_verified=verified,
            broken_at_index=index,
            reason=reason,
            expected_hash=expected,
            actual_hash=actual,
            error_message=(
                f"{reason.value} at index {index}: entry fields have been "
                f"modified ({detail})"
            ),
        )


_DEFAULT_VERIFIER = ChainVerifier()


def verify_chain(chain: Sequence[HashChainEntry[Any]]) -> VerificationResult:
    """Verify chain with plain SHA256."""
    return _DEFAULT_VERIFIER.verify(chain)

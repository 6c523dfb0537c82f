"""Tests for ChainVerifier on untampered chains."""
from __future__ import annotations

import pytest

from auditchain.crypto.chain import ChainBuilder
from auditchain.crypto.hasher import HmacSha256Digest
from auditchain.crypto.verifier import (
    ChainVerifier,
    VerificationFailure,
    VerificationResult,
    verify_chain,
)

from conftest import build_chain


class TestVerifyFull:

    def test_empty_chain_is_valid(self):
        result = ChainVerifier().verify([])
        assert result.valid
        assert result.entries_verified == 0
        assert result.broken_at_index is None

    def test_genesis_only(self, builder):
        result = ChainVerifier().verify(builder.create_chain({"x": 1}))
        assert result.valid
        assert result.entries_verified == 1

    def test_long_chain(self, chain_of):
        result = ChainVerifier().verify(chain_of(500))
        assert result.valid
        assert result.entries_verified == 501

    def test_module_level_helper(self, chain_of):
        assert verify_chain(chain_of(3)).valid

    def test_accepts_tuple(self, chain_of):
        assert ChainVerifier().verify(tuple(chain_of(3))).valid

    def test_idempotent(self, chain_of):
        chain = chain_of(20)
        verifier = ChainVerifier()
        assert verifier.verify(chain) == verifier.verify(chain)

    def test_hmac_chain_needs_matching_key(self, clock):
        digest = HmacSha256Digest(b"session-key")
        chain = build_chain(ChainBuilder(digest, clock=clock), 10)

        assert ChainVerifier(digest).verify(chain).valid
        assert ChainVerifier(HmacSha256Digest(b"session-key")).verify(chain).valid

        wrong_key = ChainVerifier(HmacSha256Digest(b"other-key")).verify(chain)
        assert not wrong_key.valid
        assert wrong_key.broken_at_index == 0
        assert wrong_key.reason is VerificationFailure.GENESIS_HASH_MISMATCH

        no_key = ChainVerifier().verify(chain)
        assert not no_key.valid
        assert no_key.broken_at_index == 0


class TestVerifySuffix:

    def test_valid_suffix(self, chain_of):
        result = ChainVerifier().verify_suffix(chain_of(50), 30)
        assert result.valid
        assert result.entries_verified == 21

    def test_start_zero_is_full_verify(self, chain_of):
        chain = chain_of(5)
        verifier = ChainVerifier()
        assert verifier.verify_suffix(chain, 0) == verifier.verify(chain)

    def test_last_entry_only(self, chain_of):
        chain = chain_of(5)
        result = ChainVerifier().verify_suffix(chain, 5)
        assert result.valid
        assert result.entries_verified == 1

    @pytest.mark.parametrize("start", [-1, 6, 100])
    def test_out_of_range(self, chain_of, start):
        with pytest.raises(ValueError):
            ChainVerifier().verify_suffix(chain_of(5), start)


class TestVerifyEntry:

    def test_each_entry(self, chain_of):
        chain = chain_of(5)
        verifier = ChainVerifier()
        for i in range(len(chain)):
            assert verifier.verify_entry(chain, i).valid

    @pytest.mark.parametrize("index", [-1, 6])
    def test_out_of_range(self, chain_of, index):
        with pytest.raises(IndexError):
            ChainVerifier().verify_entry(chain_of(5), index)


class TestResult:

    def test_valid_to_dict(self):
        assert VerificationResult(valid=True, entries_verified=3).to_dict() == {
            "valid": True,
        }

    def test_invalid_to_dict(self):
        result = VerificationResult(
            valid=False,
            entries_verified=1,
            broken_at_index=1,
            reason=VerificationFailure.BROKEN_LINK,
        )
        assert result.to_dict() == {
            "valid": False, "brokenAt": 1, "error": "Chain link broken",
        }

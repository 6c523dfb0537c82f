"""Tests for digest implementations and preimage layout."""
from __future__ import annotations

import hashlib
import hmac

import pytest

from auditchain.crypto.hasher import (
    GENESIS_PREFIX,
    Digest,
    HmacSha256Digest,
    Sha256Digest,
    entry_preimage,
    generate_secret_key,
    genesis_preimage,
    hash_entry,
    hash_genesis,
)
from auditchain.errors import SerializationError

TS = "2024-01-01T00:00:00.000Z"


class TestDigests:

    def test_sha256_matches_hashlib(self):
        assert Sha256Digest().digest(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_output_is_lowercase_hex_64(self):
        out = Sha256Digest().digest(b"anything")
        assert len(out) == 64
        assert out == out.lower()
        int(out, 16)

    def test_hmac_matches_stdlib(self):
        key = b"k" * 32
        expected = hmac.new(key, b"abc", hashlib.sha256).hexdigest()
        assert HmacSha256Digest(key).digest(b"abc") == expected

    def test_hmac_key_changes_output(self):
        a = HmacSha256Digest(b"key-one").digest(b"abc")
        b = HmacSha256Digest(b"key-two").digest(b"abc")
        assert a != b

    def test_hmac_rejects_empty_key(self):
        with pytest.raises(ValueError):
            HmacSha256Digest(b"")

    def test_hmac_repr_hides_key(self):
        assert "secret-material" not in repr(HmacSha256Digest(b"secret-material"))

    def test_generate(self):
        digest = HmacSha256Digest.generate()
        assert len(digest.secret_key) == 32

    def test_generate_secret_key(self):
        k1, k2 = generate_secret_key(), generate_secret_key()
        assert len(k1) == 32
        assert k1 != k2

    def test_protocol(self):
        assert isinstance(Sha256Digest(), Digest)
        assert isinstance(HmacSha256Digest(b"k"), Digest)


class TestPreimages:

    def test_genesis_preimage_layout(self):
        assert genesis_preimage(TS, {"a": 1}) == (
            b'GENESIS:{"timestamp":"2024-01-01T00:00:00.000Z","data":{"a":1}}'
        )

    def test_entry_preimage_layout(self):
        assert entry_preimage(3, TS, "ab" * 32, {"a": 1}) == (
            b'{"index":3,"timestamp":"2024-01-01T00:00:00.000Z",'
            b'"previousHash":"' + b"ab" * 32 + b'","data":{"a":1}}'
        )

    def test_utf8_encoding(self):
        assert "é".encode("utf-8") in genesis_preimage(TS, "é")

    def test_hash_genesis_known_answer(self):
        expected = hashlib.sha256(
            (GENESIS_PREFIX + '{"timestamp":"2024-01-01T00:00:00.000Z","data":null}')
            .encode("utf-8")
        ).hexdigest()
        assert hash_genesis(TS, None) == expected

    def test_hash_entry_known_answer(self):
        expected = hashlib.sha256(
            b'{"index":1,"timestamp":"2024-01-01T00:00:00.000Z",'
            b'"previousHash":"GENESIS","data":[1,2]}'
        ).hexdigest()
        assert hash_entry(1, TS, "GENESIS", [1, 2]) == expected

    def test_genesis_prefix_separates_forms(self):
        # Same timestamp and data hash differently as genesis vs interior entry.
        assert hash_genesis(TS, {"x": 1}) != hash_entry(0, TS, "GENESIS", {"x": 1})

    def test_deterministic(self):
        assert hash_entry(5, TS, "p", {"k": [1.0, "v"]}) == hash_entry(
            5, TS, "p", {"k": [1.0, "v"]}
        )

    def test_digest_parameter(self):
        digest = HmacSha256Digest(b"key")
        assert hash_genesis(TS, 1, digest) == digest.digest(genesis_preimage(TS, 1))

    def test_unserializable_data(self):
        with pytest.raises(SerializationError):
            hash_entry(1, TS, "p", {"bad": object()})

"""Cryptographic audit chain -- SHA256 and HMAC-SHA256 hash chaining.

Public API:
    canonical_json: deterministic serialization of hash preimages
    Digest, Sha256Digest, HmacSha256Digest: pluggable digest functions
    HashChainEntry, ChainBuilder: append-only chain construction
    ChainVerifier, VerificationResult: tamper detection
    export_chain, load_chain, summarize: custody export and display summary
"""
from auditchain.crypto.canonical import canonical_json, js_number
from auditchain.crypto.chain import (
    GENESIS,
    ChainBuilder,
    HashChainEntry,
    append_to_chain,
    create_chain,
)
from auditchain.crypto.export import (
    EXPORT_FORMAT_VERSION,
    ChainSummary,
    export_chain,
    export_document,
    load_chain,
    summarize,
)
from auditchain.crypto.hasher import (
    GENESIS_PREFIX,
    Digest,
    HmacSha256Digest,
    Sha256Digest,
    generate_secret_key,
    hash_entry,
    hash_genesis,
)
from auditchain.crypto.verifier import (
    ChainVerifier,
    VerificationFailure,
    VerificationResult,
    verify_chain,
)

__all__ = [
    "EXPORT_FORMAT_VERSION",
    "GENESIS",
    "GENESIS_PREFIX",
    "ChainBuilder",
    "ChainSummary",
    "ChainVerifier",
    "Digest",
    "HashChainEntry",
    "HmacSha256Digest",
    "Sha256Digest",
    "VerificationFailure",
    "VerificationResult",
    "append_to_chain",
    "canonical_json",
    "create_chain",
    "export_chain",
    "export_document",
    "generate_secret_key",
    "hash_entry",
    "hash_genesis",
    "js_number",
    "load_chain",
    "summarize",
    "verify_chain",
]

"""Export documents and display summaries for hash chains.

An export is a snapshot for offline custody:

    {
      "exportedAt": "2024-01-01T00:00:00.000Z",
      "version": "1.0.0",
      "chainLength": 3,
      "entries": [{"index", "timestamp", "previousHash", "hash", "data"}, ...]
    }

Payloads are written in the same JSON form they were hashed in, so
load_chain() followed by verification reproduces the in-memory result.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from auditchain.crypto.canonical import to_json_value
from auditchain.crypto.chain import HashChainEntry
from auditchain.domain.types import Clock, Timestamp, now_timestamp
from auditchain.errors import ExportFormatError

EXPORT_FORMAT_VERSION = "1.0.0"

_ENTRY_FIELDS = ("index", "timestamp", "previousHash", "hash", "data")


@dataclass(frozen=True, slots=True)
class ChainSummary:
    """Head/tail digest of a chain for status displays."""

    length: int
    first_timestamp: Timestamp | None = None
    last_timestamp: Timestamp | None = None
    last_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "length": self.length,
            "firstTimestamp": self.first_timestamp,
            "lastTimestamp": self.last_timestamp,
            "lastHash": self.last_hash,
        }


def summarize(chain: Sequence[HashChainEntry[Any]]) -> ChainSummary:
    """O(1): only the first and last entries are read."""
    if len(chain) == 0:
        return ChainSummary(length=0)
    first = chain[0]
    last = chain[-1]
    return ChainSummary(
        length=len(chain),
        first_timestamp=first.timestamp,
        last_timestamp=last.timestamp,
        last_hash=last.hash,
    )


def export_document(
    chain: Sequence[HashChainEntry[Any]], clock: Clock | None = None
) -> dict[str, Any]:
    """Build the export document as plain JSON-compatible data.

    Raises SerializationError if any payload cannot be serialized.
    """
    entries = [to_json_value(entry.to_dict()) for entry in chain]
    return {
        "exportedAt": now_timestamp(clock),
        "version": EXPORT_FORMAT_VERSION,
        "chainLength": len(entries),
        "entries": entries,
    }


def export_chain(
    chain: Sequence[HashChainEntry[Any]], clock: Clock | None = None
) -> str:
    """Export document as JSON text, indented by two spaces."""
    return json.dumps(export_document(chain, clock), indent=2, ensure_ascii=False)


def load_chain(
    text: str | bytes,
    payload_factory: Callable[[Any], Any] | None = None,
) -> list[HashChainEntry[Any]]:
    """Parse an export document back into chain entries.

    The result is not verified; pass it to a ChainVerifier. payload_factory
    (for example AuditEntry.from_dict) converts each entry's data.

    Raises ExportFormatError if the document is malformed.
    """
    try:
        document = json.loads(text)
    except ValueError as exc:
        raise ExportFormatError(f"Export is not valid JSON: {exc}") from exc

    if not isinstance(document, Mapping):
        raise ExportFormatError("Export document must be a JSON object")
    version = document.get("version")
    if version != EXPORT_FORMAT_VERSION:
        raise ExportFormatError(f"Unsupported export version {version!r}")
    raw_entries = document.get("entries")
    if not isinstance(raw_entries, list):
        raise ExportFormatError("Export document has no entries list")
    declared = document.get("chainLength")
    if declared != len(raw_entries):
        raise ExportFormatError(
            f"chainLength {declared!r} does not match {len(raw_entries)} entries"
        )

    return [_parse_entry(pos, raw, payload_factory) for pos, raw in enumerate(raw_entries)]


def _parse_entry(
    pos: int, raw: Any, payload_factory: Callable[[Any], Any] | None
) -> HashChainEntry[Any]:
    if not isinstance(raw, Mapping):
        raise ExportFormatError(f"Entry {pos} is not an object")
    missing = [name for name in _ENTRY_FIELDS if name not in raw]
    if missing:
        raise ExportFormatError(f"Entry {pos} is missing {', '.join(missing)}")

    index = raw["index"]
    if not isinstance(index, int) or isinstance(index, bool) or index < 0:
        raise ExportFormatError(f"Entry {pos} has invalid index {index!r}")
    for name in ("timestamp", "previousHash", "hash"):
        if not isinstance(raw[name], str):
            raise ExportFormatError(f"Entry {pos} field {name} must be a string")

    data = raw["data"]
    if payload_factory is not None:
        try:
            data = payload_factory(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise ExportFormatError(f"Entry {pos} has an invalid payload: {exc}") from exc

    return HashChainEntry(
        index=index,
        timestamp=raw["timestamp"],
        previous_hash=raw["previousHash"],
        hash=raw["hash"],
        data=data,
    )

"""AuditEntry -- the payload recorded for every operator or AI decision.

Each entry records what happened (entry_type), when (timestamp), which
entity or authorization request it concerns, and free-form details.

The event types form a closed set. Instead of one class per variant, each
variant has a factory classmethod that fills in only the fields that
variant carries, so callers never hand-assemble a details mapping for a
known event.

The entry is immutable. Its timestamp stays None until the audit store
stamps it at log time, and details are deep-copied on construction so a
caller mutating its own dict afterwards cannot rewrite a logged entry.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from auditchain.domain.types import EntityId, RequestId, Timestamp

# Key order of a logged entry: the event fields first, the timestamp the
# store adds at log time last.
WIRE_ORDER = ("entryType", "requestId", "entityId", "details", "timestamp")
# The session genesis is written with its timestamp up front.
GENESIS_WIRE_ORDER = ("timestamp", "entryType", "details")


class AuditEntryType(str, Enum):
    SESSION_START = "SESSION_START"
    SESSION_END = "SESSION_END"
    AUTH_REQUEST_RECEIVED = "AUTH_REQUEST_RECEIVED"
    AUTH_DECISION_MADE = "AUTH_DECISION_MADE"
    AUTH_TIMEOUT = "AUTH_TIMEOUT"
    SAFE_MODE_ACTIVATED = "SAFE_MODE_ACTIVATED"
    SAFE_MODE_DEACTIVATED = "SAFE_MODE_DEACTIVATED"
    INSTRUCTOR_COMMAND = "INSTRUCTOR_COMMAND"
    WEAPONS_STATE_CHANGE = "WEAPONS_STATE_CHANGE"
    LINK_STATUS_CHANGE = "LINK_STATUS_CHANGE"
    ALERT_RECEIVED = "ALERT_RECEIVED"
    CUSTOM = "CUSTOM"


def _compact(**values: Any) -> dict[str, Any]:
    """Drop None-valued optional details so they are absent, not null."""
    return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """Immutable audit payload.

    Wire form (see to_dict) uses camelCase keys. Key order is part of
    every hash computed over the entry: entries parsed with from_dict keep
    the order they arrived in, everything else uses WIRE_ORDER.
    """
    entry_type: AuditEntryType
    timestamp: Timestamp | None = None
    entity_id: EntityId | None = None
    request_id: RequestId | None = None
    details: Mapping[str, Any] = field(default_factory=dict)
    key_order: tuple[str, ...] = field(default=WIRE_ORDER, compare=False, repr=False)

    def __post_init__(self) -> None:
        # Accept the wire string; reject anything outside the closed set.
        if not isinstance(self.entry_type, AuditEntryType):
            object.__setattr__(self, "entry_type", AuditEntryType(self.entry_type))
        object.__setattr__(
            self, "details", MappingProxyType(copy.deepcopy(dict(self.details)))
        )
        object.__setattr__(self, "key_order", tuple(self.key_order))

    # ── Variants ──

    @classmethod
    def session_start(cls, session_id: str, **details: Any) -> AuditEntry:
        return cls(
            AuditEntryType.SESSION_START,
            details={"sessionId": session_id, **details},
            key_order=GENESIS_WIRE_ORDER,
        )

    @classmethod
    def session_end(cls, reason: str | None = None) -> AuditEntry:
        return cls(AuditEntryType.SESSION_END, details=_compact(reason=reason))

    @classmethod
    def auth_request(
        cls, request_id: RequestId, entity_id: EntityId, action_type: str
    ) -> AuditEntry:
        return cls(
            AuditEntryType.AUTH_REQUEST_RECEIVED,
            entity_id=entity_id,
            request_id=request_id,
            details={"actionType": action_type},
        )

    @classmethod
    def auth_decision(
        cls, request_id: RequestId, decision: str, rationale: str | None = None
    ) -> AuditEntry:
        return cls(
            AuditEntryType.AUTH_DECISION_MADE,
            request_id=request_id,
            details=_compact(decision=decision, rationale=rationale),
        )

    @classmethod
    def auth_timeout(cls, request_id: RequestId) -> AuditEntry:
        return cls(AuditEntryType.AUTH_TIMEOUT, request_id=request_id)

    @classmethod
    def safe_mode_activated(cls, reason: str) -> AuditEntry:
        return cls(AuditEntryType.SAFE_MODE_ACTIVATED, details={"reason": reason})

    @classmethod
    def safe_mode_deactivated(cls) -> AuditEntry:
        return cls(AuditEntryType.SAFE_MODE_DEACTIVATED)

    @classmethod
    def instructor_command(cls, command: str, params: Any = None) -> AuditEntry:
        return cls(
            AuditEntryType.INSTRUCTOR_COMMAND,
            details=_compact(command=command, params=params),
        )

    @classmethod
    def weapons_state_change(
        cls, entity_id: EntityId, previous_state: str, new_state: str
    ) -> AuditEntry:
        return cls(
            AuditEntryType.WEAPONS_STATE_CHANGE,
            entity_id=entity_id,
            details={"previousState": previous_state, "newState": new_state},
        )

    @classmethod
    def link_status_change(
        cls, entity_id: EntityId | None, status: str, **details: Any
    ) -> AuditEntry:
        return cls(
            AuditEntryType.LINK_STATUS_CHANGE,
            entity_id=entity_id,
            details={"status": status, **details},
        )

    @classmethod
    def alert(
        cls, severity: str, message: str, entity_id: EntityId | None = None
    ) -> AuditEntry:
        return cls(
            AuditEntryType.ALERT_RECEIVED,
            entity_id=entity_id,
            details={"severity": severity, "message": message},
        )

    @classmethod
    def custom(cls, **details: Any) -> AuditEntry:
        return cls(AuditEntryType.CUSTOM, details=details)

    # ── Wire form ──

    def stamped(self, timestamp: Timestamp) -> AuditEntry:
        """Copy of this entry carrying the given timestamp."""
        return replace(self, timestamp=timestamp)

    def to_dict(self) -> dict[str, Any]:
        """Wire form in key_order. None-valued fields are omitted."""
        values = {
            "entryType": self.entry_type.value,
            "requestId": self.request_id,
            "entityId": self.entity_id,
            "details": copy.deepcopy(dict(self.details)),
            "timestamp": self.timestamp,
        }
        out: dict[str, Any] = {}
        for key in (*self.key_order, *WIRE_ORDER):
            if key in values and key not in out and values[key] is not None:
                out[key] = values[key]
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> AuditEntry:
        """Parse the wire form, keeping its key order.

        Raises ValueError on an unknown entryType.
        """
        if not isinstance(raw, Mapping):
            raise TypeError(f"AuditEntry payload must be an object, got {type(raw).__name__}")
        return cls(
            entry_type=raw.get("entryType"),
            timestamp=raw.get("timestamp"),
            entity_id=raw.get("entityId"),
            request_id=raw.get("requestId"),
            details=dict(raw.get("details") or {}),
            key_order=tuple(raw),
        )

"""Shared type aliases and timestamp helpers used across the package."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, TypeAlias

Timestamp: TypeAlias = str        # ISO-8601 UTC, millisecond resolution, "Z" suffix
HexDigest: TypeAlias = str        # lowercase hex
EntityId: TypeAlias = str
RequestId: TypeAlias = str
Clock: TypeAlias = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> Timestamp:
    """Render a datetime as e.g. 2024-01-01T00:00:00.000Z.

    Naive datetimes are taken to be UTC already. Sub-millisecond precision
    is truncated, not rounded.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def now_timestamp(clock: Clock | None = None) -> Timestamp:
    """Read the clock (default utc_now) and format the result."""
    return format_timestamp((clock or utc_now)())

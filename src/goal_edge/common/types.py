"""Shared type aliases and time helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, TypeAlias

# Upstream fixture identifier
FixtureId: TypeAlias = int

# JSON-like dict
JsonDict: TypeAlias = dict[str, object]

# Wall-clock supplier, injected wherever "now" matters
Clock: TypeAlias = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_iso(s: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, assuming UTC when naive. None if unparseable."""
    if not isinstance(s, str) or not s:
        return None
    try:
        parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def start_of_day(now: datetime) -> datetime:
    """Midnight at the start of ``now``'s day, in ``now``'s timezone."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)

"""Calibration recorder: derives observations from settled signals and stores them."""

from __future__ import annotations

import json
import logging
from datetime import datetime

from goal_edge.calibration.models import (
    CalibrationContext,
    CalibrationRecord,
    CalibrationTable,
    TimePhase,
)
from goal_edge.common.kvstore import (
    CorruptCollectionError,
    KeyValueStore,
    dump_collection,
    parse_collection,
)
from goal_edge.common.types import utcnow
from goal_edge.config import get_settings
from goal_edge.signals.models import SignalRecord, SignalStatus

logger = logging.getLogger(__name__)


def time_phase(trigger_minute: int) -> TimePhase:
    if trigger_minute >= 85:
        return TimePhase.EXTRA_LATE
    if trigger_minute >= 75:
        return TimePhase.LATE
    return TimePhase.MID


def extract_league(match_name: str) -> str | None:
    """Best-effort league label from a match label.

    A "Team A vs Team B" label carries no league, anything else is taken as
    a team or competition name. Heuristic only.
    """
    label = match_name.strip()
    if not label or "vs" in label:
        return None
    return label


def build_calibration_record(
    signal: SignalRecord, settled_at: datetime | None = None,
) -> CalibrationRecord:
    """Derive the calibration observation for a settled signal.

    Raises ValueError if the signal is not settled as a hit or miss.
    """
    if signal.status not in (SignalStatus.HIT, SignalStatus.MISS):
        raise ValueError(f"signal {signal.id} is {signal.status.value}, not hit/miss")

    is_hit = signal.status is SignalStatus.HIT
    return CalibrationRecord(
        id=f"cal-{signal.id}",
        signal_strength=signal.signal_strength,
        trigger_minute=signal.trigger_minute,
        is_hit=is_hit,
        goal_minute=signal.goal_minute if is_hit else None,
        settled_at=settled_at or signal.settled_at or utcnow(),
        context=CalibrationContext(
            minute=signal.trigger_minute,
            time_phase=time_phase(signal.trigger_minute),
            league=extract_league(signal.match_name),
        ),
    )


class CalibrationStore:
    """Append-oriented calibration log plus the bucket table.

    The log keeps at most ``max_records`` entries, dropping the oldest.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        store_name: str | None = None,
        table_name: str | None = None,
        max_records: int | None = None,
    ) -> None:
        settings = get_settings()
        self._store = store or KeyValueStore()
        self._store_name = store_name or settings.calibration_store_name
        self._table_name = table_name or settings.calibration_table_name
        self._max_records = (
            settings.calibration_max_records if max_records is None else max_records
        )

    async def load(self) -> list[CalibrationRecord]:
        """Load the log, oldest first. A corrupt log loads as empty."""
        data = await self._store.read(self._store_name)
        if data is None:
            return []
        try:
            return [CalibrationRecord.from_dict(raw) for raw in parse_collection(data)]
        except (CorruptCollectionError, AttributeError, KeyError, ValueError, TypeError) as exc:
            logger.warning(
                "Calibration store %r is unreadable, treating as empty: %s",
                self._store_name, exc,
            )
            return []

    async def save(self, records: list[CalibrationRecord]) -> None:
        recent = records[max(len(records) - self._max_records, 0):]
        await self._store.write(
            self._store_name, dump_collection([r.to_dict() for r in recent]),
        )

    async def append(self, record: CalibrationRecord) -> bool:
        """Append a record unless one with the same id is already stored.

        Returns True if the record was added.
        """
        records = await self.load()
        if any(r.id == record.id for r in records):
            logger.debug("Calibration record %s already stored", record.id)
            return False
        records.append(record)
        await self.save(records)
        return True

    async def record_settlement(self, signal: SignalRecord) -> CalibrationRecord | None:
        """Record the observation for a newly settled signal.

        Returns the stored record, or None if it was already recorded.
        """
        record = build_calibration_record(signal)
        added = await self.append(record)
        return record if added else None

    async def load_table(self) -> CalibrationTable | None:
        """Load the stored bucket table, or None if absent or unreadable."""
        data = await self._store.read(self._table_name)
        if data is None:
            return None
        try:
            return CalibrationTable.from_dict(json.loads(data))
        except (json.JSONDecodeError, AttributeError, KeyError, ValueError, TypeError) as exc:
            logger.warning("Calibration table %r is unreadable: %s", self._table_name, exc)
            return None

    async def save_table(self, table: CalibrationTable) -> None:
        await self._store.write(self._table_name, json.dumps(table.to_dict()))

    async def export_json(self) -> str:
        """Export the table and log as one JSON document."""
        records = await self.load()
        table = await self.load_table()
        return json.dumps(
            {
                "exported_at": utcnow().isoformat(),
                "calibration_table": table.to_dict() if table else None,
                "records": [r.to_dict() for r in records],
            },
            indent=2,
        )

    async def import_json(self, text: str) -> bool:
        """Replace the table and/or log from an export document.

        Returns False (and changes nothing) if the document is malformed.
        """
        try:
            data = json.loads(text)
            table = None
            if data.get("calibration_table"):
                table = CalibrationTable.from_dict(data["calibration_table"])
            records = None
            if isinstance(data.get("records"), list):
                records = [CalibrationRecord.from_dict(r) for r in data["records"]]
        except (json.JSONDecodeError, AttributeError, KeyError, ValueError, TypeError) as exc:
            logger.warning("Rejected calibration import: %s", exc)
            return False

        if table is not None:
            await self.save_table(table)
        if records is not None:
            await self.save(records)
        return True

    async def reset(self) -> None:
        """Remove the table and the log."""
        await self._store.delete(self._table_name)
        await self._store.delete(self._store_name)

"""Retention-bounded signal store."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from goal_edge.common.kvstore import (
    CorruptCollectionError,
    KeyValueStore,
    dump_collection,
    parse_collection,
)
from goal_edge.common.types import Clock, utcnow
from goal_edge.config import get_settings
from goal_edge.signals.models import SignalRecord

logger = logging.getLogger(__name__)


class SignalTracker:
    """Signal records kept most-recent-first under one store key.

    Retention is applied on every save: records triggered more than
    ``retention_days`` ago are dropped. Loads never filter, so records written
    before the horizon shrank stay visible until the next save.

    ``lock`` serializes load-modify-save cycles within this process. Separate
    processes sharing one database are not coordinated.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        store_name: str | None = None,
        retention_days: int | None = None,
        clock: Clock | None = None,
    ) -> None:
        settings = get_settings()
        self._store = store or KeyValueStore()
        self._store_name = store_name or settings.signal_store_name
        self._retention_days = (
            settings.storage_retention_days if retention_days is None else retention_days
        )
        self._clock = clock or utcnow
        self.lock = asyncio.Lock()

    @property
    def store_name(self) -> str:
        return self._store_name

    async def load(self) -> list[SignalRecord]:
        """Load all stored signals, most recent first.

        A corrupt document loads as an empty list. Storage failures raise
        StoreUnavailableError.
        """
        data = await self._store.read(self._store_name)
        if data is None:
            return []
        try:
            return [SignalRecord.from_dict(raw) for raw in parse_collection(data)]
        except (CorruptCollectionError, AttributeError, KeyError, ValueError, TypeError) as exc:
            logger.warning(
                "Signal store %r is unreadable, treating as empty: %s",
                self._store_name, exc,
            )
            return []

    async def save(self, signals: list[SignalRecord]) -> list[SignalRecord]:
        """Overwrite the stored set with the retention-filtered signals.

        Returns the records actually kept.
        """
        cutoff = self._clock() - timedelta(days=self._retention_days)
        kept = [s for s in signals if s.triggered_at > cutoff]
        dropped = len(signals) - len(kept)
        if dropped:
            logger.debug(
                "Dropped %d signal(s) older than %d day(s)", dropped, self._retention_days,
            )
        await self._store.write(
            self._store_name, dump_collection([s.to_dict() for s in kept]),
        )
        return kept

    async def append(self, signal: SignalRecord) -> list[SignalRecord]:
        """Prepend a signal to the stored set and save (retention applies)."""
        async with self.lock:
            signals = await self.load()
            signals.insert(0, signal)
            return await self.save(signals)

    async def recent(self, limit: int = 20) -> list[SignalRecord]:
        """The ``limit`` most recent signals."""
        signals = await self.load()
        return signals[:limit]

"""Key-value document store with PostgreSQL and SQLite backends.

Each collection (signals, calibration records, calibration table) is one
versioned JSON document stored under its own key.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from goal_edge.config import get_settings

logger = logging.getLogger(__name__)

COLLECTION_VERSION = 1

_CREATE_STORES = """
CREATE TABLE IF NOT EXISTS stores (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class StoreUnavailableError(RuntimeError):
    """The storage medium could not be reached or written."""


class CorruptCollectionError(ValueError):
    """A stored document could not be decoded."""


def dump_collection(records: list[dict]) -> str:
    """Serialize a list of records as a versioned JSON document."""
    return json.dumps({"version": COLLECTION_VERSION, "records": records})


def parse_collection(data: str) -> list[dict]:
    """Decode a versioned JSON document into its record list.

    Raises CorruptCollectionError if the document is malformed or of an
    unknown version.
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise CorruptCollectionError(f"invalid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise CorruptCollectionError("document is not an object")
    if payload.get("version") != COLLECTION_VERSION:
        raise CorruptCollectionError(f"unsupported version {payload.get('version')!r}")
    records = payload.get("records")
    if not isinstance(records, list):
        raise CorruptCollectionError("records is not a list")
    return records


class KeyValueStore:
    """Document store with PostgreSQL (via asyncpg) or SQLite (via aiosqlite) backend."""

    def __init__(
        self, db_path: Path | None = None, database_url: str | None = None,
    ) -> None:
        settings = get_settings()
        self._database_url = settings.database_url if database_url is None else database_url
        self._use_pg = bool(self._database_url)
        self._db_path = db_path or settings.db_path
        self._pool = None  # asyncpg pool, created lazily
        self._pool_lock = asyncio.Lock()
        self._ready = False

    async def _get_pool(self):
        """Get or create the asyncpg connection pool."""
        if self._pool is None:
            async with self._pool_lock:
                if self._pool is None:
                    import asyncpg
                    self._pool = await asyncpg.create_pool(
                        self._database_url, min_size=1, max_size=5,
                    )
        return self._pool

    async def close(self) -> None:
        """Close the connection pool, if open."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _ensure_db(self) -> None:
        """Create database and table if they don't exist."""
        if self._ready:
            return
        if self._use_pg:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                await conn.execute(_CREATE_STORES)
        else:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_STORES)
                await db.commit()
        self._ready = True

    async def read(self, key: str) -> str | None:
        """Read the document stored under key. Returns None if not found."""
        try:
            await self._ensure_db()
            if self._use_pg:
                pool = await self._get_pool()
                async with pool.acquire() as conn:
                    row = await conn.fetchrow(
                        "SELECT data FROM stores WHERE key = $1", key,
                    )
                    return row["data"] if row else None
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "SELECT data FROM stores WHERE key = ?", (key,),
                )
                row = await cursor.fetchone()
                return row[0] if row else None
        except (sqlite3.Error, OSError) as exc:
            raise StoreUnavailableError(f"cannot read {key!r}: {exc}") from exc
        except Exception as exc:
            if _is_pg_error(exc):
                raise StoreUnavailableError(f"cannot read {key!r}: {exc}") from exc
            raise

    async def write(self, key: str, data: str) -> None:
        """Upsert the document stored under key."""
        now = datetime.now(timezone.utc).isoformat()
        try:
            await self._ensure_db()
            if self._use_pg:
                pool = await self._get_pool()
                async with pool.acquire() as conn:
                    await conn.execute(
                        """INSERT INTO stores (key, data, updated_at)
                           VALUES ($1, $2, $3)
                           ON CONFLICT (key) DO UPDATE
                           SET data = EXCLUDED.data, updated_at = EXCLUDED.updated_at""",
                        key, data, now,
                    )
                return
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    """INSERT INTO stores (key, data, updated_at)
                       VALUES (?, ?, ?)
                       ON CONFLICT (key) DO UPDATE
                       SET data = excluded.data, updated_at = excluded.updated_at""",
                    (key, data, now),
                )
                await db.commit()
        except (sqlite3.Error, OSError) as exc:
            raise StoreUnavailableError(f"cannot write {key!r}: {exc}") from exc
        except Exception as exc:
            if _is_pg_error(exc):
                raise StoreUnavailableError(f"cannot write {key!r}: {exc}") from exc
            raise

    async def delete(self, key: str) -> None:
        """Remove the document stored under key, if any."""
        try:
            await self._ensure_db()
            if self._use_pg:
                pool = await self._get_pool()
                async with pool.acquire() as conn:
                    await conn.execute("DELETE FROM stores WHERE key = $1", key)
                return
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("DELETE FROM stores WHERE key = ?", (key,))
                await db.commit()
        except (sqlite3.Error, OSError) as exc:
            raise StoreUnavailableError(f"cannot delete {key!r}: {exc}") from exc
        except Exception as exc:
            if _is_pg_error(exc):
                raise StoreUnavailableError(f"cannot delete {key!r}: {exc}") from exc
            raise


def _is_pg_error(exc: Exception) -> bool:
    """True for asyncpg errors, without importing asyncpg on the SQLite path."""
    module = type(exc).__module__ or ""
    return module.startswith("asyncpg")

"""SQLite database operations for LinkSentry."""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import aiosqlite

from ..analyzer.models import TrustedBrand

logger = logging.getLogger(__name__)


class Database:
    """Async SQLite store for evaluation logs and trusted brands."""

    def __init__(self, db_path: Union[Path, str]):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def connect(self):
        """Establish database connection and create tables."""
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        # Best-effort because some SQLite builds/settings may reject these pragmas.
        try:
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA synchronous=NORMAL")
            await self._connection.execute("PRAGMA busy_timeout=5000")
            await self._connection.commit()
        except aiosqlite.Error as exc:
            logger.debug("SQLite pragmas rejected: %s", exc)
        await self._create_tables()

    async def close(self):
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("Database is not connected")
        return self._connection

    async def _create_tables(self):
        """Create database tables if they don't exist."""
        async with self._lock:
            await self._connection.executescript(
                """
                    CREATE TABLE IF NOT EXISTS url_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id TEXT,
                        url TEXT NOT NULL,
                        risk_score INTEGER NOT NULL,
                        status TEXT NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    );

                    CREATE TABLE IF NOT EXISTS threat_reasons (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        url_id INTEGER NOT NULL,
                        reason TEXT NOT NULL,
                        score_added INTEGER DEFAULT 0,
                        FOREIGN KEY (url_id) REFERENCES url_logs(id)
                    );

                    CREATE TABLE IF NOT EXISTS trusted_brands (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        brand_name TEXT NOT NULL,
                        official_domain TEXT NOT NULL,
                        UNIQUE (brand_name, official_domain)
                    );

                    CREATE INDEX IF NOT EXISTS idx_threat_reasons_url_id
                        ON threat_reasons(url_id);
                """
            )
            await self._connection.commit()

    async def ping(self) -> bool:
        """Return True when the database answers a trivial query."""
        conn = self._require_connection()
        async with conn.execute("SELECT 1 AS ok") as cursor:
            row = await cursor.fetchone()
        return bool(row and row["ok"] == 1)

    async def log_result(
        self,
        user_id,
        url: str,
        total_score: int,
        status: str,
    ) -> int:
        """Append one evaluation and return its row id."""
        conn = self._require_connection()
        async with self._lock:
            cursor = await conn.execute(
                """
                INSERT INTO url_logs (user_id, url, risk_score, status)
                VALUES (?, ?, ?, ?)
                """,
                (None if user_id is None else str(user_id), url, total_score, status),
            )
            await conn.commit()
            return cursor.lastrowid

    async def add_reason(self, url_id: int, reason: str, score_added: int = 0) -> None:
        conn = self._require_connection()
        async with self._lock:
            await conn.execute(
                "INSERT INTO threat_reasons (url_id, reason, score_added) VALUES (?, ?, ?)",
                (url_id, reason, score_added),
            )
            await conn.commit()

    async def get_result(self, url_id: int) -> Optional[dict]:
        """Return a logged evaluation with its reasons, in insertion order."""
        conn = self._require_connection()
        async with conn.execute("SELECT * FROM url_logs WHERE id = ?", (url_id,)) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None

        async with conn.execute(
            "SELECT reason FROM threat_reasons WHERE url_id = ? ORDER BY id",
            (url_id,),
        ) as cursor:
            reasons = [r["reason"] for r in await cursor.fetchall()]

        result = dict(row)
        result["reasons"] = reasons
        return result

    async def list_trusted_brands(self) -> list[TrustedBrand]:
        """Return the full current trusted-brand set."""
        conn = self._require_connection()
        async with conn.execute(
            "SELECT brand_name, official_domain FROM trusted_brands ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [
            TrustedBrand(brand_name=row["brand_name"], official_domain=row["official_domain"])
            for row in rows
        ]

    async def add_trusted_brand(self, brand_name: str, official_domain: str) -> bool:
        """Insert a brand; returns False if it already exists."""
        brand_name = (brand_name or "").strip().lower()
        official_domain = (official_domain or "").strip().lower()
        if not brand_name or not official_domain:
            raise ValueError("brand_name and official_domain are required")

        conn = self._require_connection()
        async with self._lock:
            cursor = await conn.execute(
                """
                INSERT OR IGNORE INTO trusted_brands (brand_name, official_domain)
                VALUES (?, ?)
                """,
                (brand_name, official_domain),
            )
            await conn.commit()
            return cursor.rowcount > 0

    async def seed_trusted_brands(self, brands: Iterable[TrustedBrand]) -> int:
        """Insert brands only when the table is empty. Returns rows added."""
        conn = self._require_connection()
        async with conn.execute("SELECT COUNT(*) AS n FROM trusted_brands") as cursor:
            row = await cursor.fetchone()
        if row and row["n"]:
            return 0

        added = 0
        for brand in brands:
            if await self.add_trusted_brand(brand.brand_name, brand.official_domain):
                added += 1
        if added:
            logger.info("Seeded %d trusted brands", added)
        return added

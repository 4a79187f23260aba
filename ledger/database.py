"""Async SQLite ledger using aiosqlite.

Owns the ``debates`` and ``votes`` collections, the two id counters and the
owner identity. All service calls go through :meth:`DebateLedger.transaction`
or :meth:`DebateLedger.read`, which hold a single lock so that each call runs
to completion before the next one observes the ledger.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from ledger.errors import LedgerAlreadyInitialized, LedgerNotInitialized
from ledger.models import DebateRecord, DialogueLine, Figure, Tally, VoteRecord

logger = logging.getLogger(__name__)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS ledger_state (
    id             INTEGER PRIMARY KEY CHECK (id = 1),
    owner_id       TEXT    NOT NULL,
    next_debate_id INTEGER NOT NULL DEFAULT 1,
    next_vote_id   INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS debates (
    id                   INTEGER PRIMARY KEY,
    topic                TEXT    NOT NULL,
    creator              TEXT    NOT NULL,
    created_at           INTEGER NOT NULL,
    figure_one_name      TEXT    NOT NULL,
    figure_one_image_url TEXT    NOT NULL,
    figure_two_name      TEXT    NOT NULL,
    figure_two_image_url TEXT    NOT NULL,
    dialogue             TEXT    NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS votes (
    id        INTEGER PRIMARY KEY,
    debate_id INTEGER NOT NULL REFERENCES debates(id),
    voter     TEXT    NOT NULL,
    voted_at  INTEGER NOT NULL,
    choice    INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_votes_debate_voter ON votes (debate_id, voter);
"""

_COUNTERS = ("next_debate_id", "next_vote_id")

# SQLite INTEGER is signed 64-bit; ids past this were never assigned.
_MAX_STORABLE_ID = 2**63 - 1


def _storable(record_id: int) -> bool:
    return 0 <= record_id <= _MAX_STORABLE_ID


class DebateLedger:
    """Async wrapper around an SQLite file holding debates and votes."""

    def __init__(self, db_path: str | Path = "data/ledger.db") -> None:
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._owner_id: str | None = None
        self._lock = asyncio.Lock()
        self._in_transaction = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open connection, ensure schema exists and load ledger state."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit mode: transactions are opened explicitly in transaction().
        self._conn = await aiosqlite.connect(str(self.db_path), isolation_level=None)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA foreign_keys = ON")
        await self._conn.executescript(_SCHEMA)

        cur = await self._conn.execute("SELECT owner_id FROM ledger_state WHERE id = 1")
        row = await cur.fetchone()
        self._owner_id = row["owner_id"] if row else None
        logger.info(
            "Ledger connected: %s (owner: %s)", self.db_path, self._owner_id or "-"
        )

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Ledger not connected. Call connect() first.")
        return self._conn

    async def initialize(self, owner_id: str) -> None:
        """Record the owner and seed both counters at 1. Allowed exactly once."""
        async with self._lock:
            cur = await self.conn.execute(
                "INSERT OR IGNORE INTO ledger_state "
                "(id, owner_id, next_debate_id, next_vote_id) VALUES (1, ?, 1, 1)",
                (owner_id,),
            )
            if cur.rowcount == 0:
                cur = await self.conn.execute(
                    "SELECT owner_id FROM ledger_state WHERE id = 1"
                )
                row = await cur.fetchone()
                self._owner_id = row["owner_id"]
                raise LedgerAlreadyInitialized(self._owner_id)
            self._owner_id = owner_id
        logger.info("Ledger initialized by %s", owner_id)

    @property
    def initialized(self) -> bool:
        return self._owner_id is not None

    @property
    def owner_id(self) -> str:
        if self._owner_id is None:
            raise LedgerNotInitialized()
        return self._owner_id

    # ------------------------------------------------------------------
    # Call serialization
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[DebateLedger]:
        """Run a mutating call atomically: one lock, one SQLite transaction."""
        async with self._lock:
            if not self.initialized:
                raise LedgerNotInitialized()
            await self.conn.execute("BEGIN IMMEDIATE")
            self._in_transaction = True
            try:
                yield self
            except BaseException:
                await self.conn.execute("ROLLBACK")
                raise
            else:
                await self.conn.execute("COMMIT")
            finally:
                self._in_transaction = False

    @asynccontextmanager
    async def read(self) -> AsyncIterator[DebateLedger]:
        """Hold the ledger lock for a consistent read."""
        async with self._lock:
            if not self.initialized:
                raise LedgerNotInitialized()
            yield self

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    async def next_debate_id(self) -> int:
        return await self._take("next_debate_id")

    async def next_vote_id(self) -> int:
        return await self._take("next_vote_id")

    async def _take(self, counter: str) -> int:
        """Read a counter and increment it in the same transaction."""
        if counter not in _COUNTERS:
            raise ValueError(f"Unknown counter: {counter}")
        if not self._in_transaction:
            raise RuntimeError("Ids can only be assigned inside transaction().")
        cur = await self.conn.execute(f"SELECT {counter} FROM ledger_state WHERE id = 1")
        row = await cur.fetchone()
        if row is None:
            raise LedgerNotInitialized()
        await self.conn.execute(
            f"UPDATE ledger_state SET {counter} = {counter} + 1 WHERE id = 1"
        )
        return row[counter]

    # ------------------------------------------------------------------
    # Debates
    # ------------------------------------------------------------------

    async def insert_debate(self, debate_id: int, record: DebateRecord) -> None:
        await self.conn.execute(
            "INSERT INTO debates "
            "(id, topic, creator, created_at, figure_one_name, figure_one_image_url, "
            " figure_two_name, figure_two_image_url, dialogue) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                debate_id,
                record.topic,
                record.creator,
                record.created_at,
                record.figure_one.name,
                record.figure_one.image_url,
                record.figure_two.name,
                record.figure_two.image_url,
                record.dialogue_json,
            ),
        )

    async def get_debate(self, debate_id: int) -> DebateRecord | None:
        if not _storable(debate_id):
            return None
        cur = await self.conn.execute("SELECT * FROM debates WHERE id = ?", (debate_id,))
        row = await cur.fetchone()
        if row is None:
            return None
        return _debate_from_row(row)

    async def iterate_debates(self) -> AsyncIterator[tuple[int, DebateRecord]]:
        """Yield ``(id, debate)`` in ascending id order; a fresh scan per call."""
        async with self.conn.execute("SELECT * FROM debates ORDER BY id") as cur:
            async for row in cur:
                yield row["id"], _debate_from_row(row)

    # ------------------------------------------------------------------
    # Votes
    # ------------------------------------------------------------------

    async def insert_vote(self, vote_id: int, record: VoteRecord) -> None:
        await self.conn.execute(
            "INSERT INTO votes (id, debate_id, voter, voted_at, choice) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                vote_id,
                record.debate_id,
                record.voter,
                record.voted_at,
                int(record.choice),
            ),
        )

    async def iterate_votes(self) -> AsyncIterator[tuple[int, VoteRecord]]:
        async with self.conn.execute("SELECT * FROM votes ORDER BY id") as cur:
            async for row in cur:
                yield row["id"], _vote_from_row(row)

    async def find_vote(self, debate_id: int, voter: str) -> VoteRecord | None:
        """Return the vote cast by *voter* in *debate_id*, if any."""
        if not _storable(debate_id):
            return None
        cur = await self.conn.execute(
            "SELECT * FROM votes WHERE debate_id = ? AND voter = ? ORDER BY id LIMIT 1",
            (debate_id, voter),
        )
        row = await cur.fetchone()
        return _vote_from_row(row) if row else None

    # ------------------------------------------------------------------
    # Aggregate helpers
    # ------------------------------------------------------------------

    async def tallies(self, debate_id: int | None = None) -> dict[int, Tally]:
        """Count votes per figure, keyed by debate id.

        Debates without any votes are absent from the result.
        """
        if debate_id is not None and not _storable(debate_id):
            return {}
        sql = (
            "SELECT debate_id, SUM(choice = 1) AS figure_one, "
            "SUM(choice = 2) AS figure_two FROM votes"
        )
        params: tuple[int, ...] = ()
        if debate_id is not None:
            sql += " WHERE debate_id = ?"
            params = (debate_id,)
        sql += " GROUP BY debate_id"

        cur = await self.conn.execute(sql, params)
        rows = await cur.fetchall()
        return {
            r["debate_id"]: Tally(
                figure_one_votes=r["figure_one"] or 0,
                figure_two_votes=r["figure_two"] or 0,
            )
            for r in rows
        }


def _debate_from_row(row: aiosqlite.Row) -> DebateRecord:
    return DebateRecord(
        id=row["id"],
        topic=row["topic"],
        creator=row["creator"],
        created_at=row["created_at"],
        figure_one=Figure(name=row["figure_one_name"], image_url=row["figure_one_image_url"]),
        figure_two=Figure(name=row["figure_two_name"], image_url=row["figure_two_image_url"]),
        dialogue=[DialogueLine.model_validate(d) for d in json.loads(row["dialogue"])],
    )


def _vote_from_row(row: aiosqlite.Row) -> VoteRecord:
    return VoteRecord(
        id=row["id"],
        debate_id=row["debate_id"],
        voter=row["voter"],
        voted_at=row["voted_at"],
        choice=row["choice"],
    )

"""Persistence boundary for reconciliation.

RecordStore is the contract the executor and run recorder write through;
SQLiteRecordStore implements it on an aiosqlite connection. Each method is
its own transaction: a failed batch is rolled back and the error re-raised.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

import aiosqlite

from companypulse.api.schemas import PersistedRecordSummary, RunRecord

# Stay well below SQLite's host parameter limit for IN (...) lists
REMOVE_BATCH_SIZE = 500


class RecordStore(ABC):
    """Abstract persistence collaborator for one database."""

    @abstractmethod
    async def fetch_summaries(self, table: str, company_id: str, source: str) -> List[PersistedRecordSummary]:
        """Return every stored row (active and removed) for the pair."""
        ...

    @abstractmethod
    async def insert_many(self, table: str, rows: List[Dict[str, Any]]) -> None:
        ...

    @abstractmethod
    async def update_row(self, table: str, row_id: str, values: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def mark_removed(self, table: str, row_ids: List[str], removed_at: str) -> None:
        ...

    @abstractmethod
    async def insert_run(self, run: RunRecord) -> RunRecord:
        """Append an audit row and return it with its id set."""
        ...


class SQLiteRecordStore(RecordStore):

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def fetch_summaries(self, table, company_id, source):
        cursor = await self.db.execute(
            f"""SELECT id, external_id, content_hash, removed_at FROM {table}
                WHERE company_id = ? AND source = ?""",
            (company_id, source),
        )
        rows = await cursor.fetchall()
        return [
            PersistedRecordSummary(id=r[0], external_id=r[1], fingerprint=r[2], removed_at=r[3])
            for r in rows
        ]

    async def insert_many(self, table, rows):
        if not rows:
            return
        columns = list(rows[0].keys())
        placeholders = ", ".join("?" for _ in columns)
        try:
            await self.db.executemany(
                f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                [tuple(row[c] for c in columns) for row in rows],
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def update_row(self, table, row_id, values):
        assignments = ", ".join(f"{column} = ?" for column in values)
        try:
            await self.db.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                (*values.values(), row_id),
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def mark_removed(self, table, row_ids, removed_at):
        try:
            for start in range(0, len(row_ids), REMOVE_BATCH_SIZE):
                batch = row_ids[start:start + REMOVE_BATCH_SIZE]
                placeholders = ", ".join("?" for _ in batch)
                await self.db.execute(
                    f"""UPDATE {table} SET removed_at = ?
                        WHERE id IN ({placeholders}) AND removed_at IS NULL""",
                    (removed_at, *batch),
                )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def insert_run(self, run):
        cursor = await self.db.execute(
            """INSERT INTO scraping_runs
               (company_id, source, status, found_count, new_count, updated_count,
                removed_count, skipped_count, error_message, started_at, completed_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                run.company_id, run.source, run.status, run.found_count,
                run.new_count, run.updated_count, run.removed_count,
                run.skipped_count, run.error_message, run.started_at,
                run.completed_at,
            ),
        )
        await self.db.commit()
        return run.model_copy(update={"id": cursor.lastrowid})

"""
Receipt history persistence.

Load-everything / replace-everything semantics: callers read the full
collection, change it in memory, and hand the full collection back.  The
rewrite happens in a single transaction so a failed write leaves the
previous history intact.  Read-modify-write goes through ``mutate``, which
holds the database write lock from the read to the commit.
"""
import json
import logging
from typing import Callable, TypeVar

import aiosqlite
from fastapi import Depends

from db.database import get_db
from models.schemas import Receipt

logger = logging.getLogger("receiptlens.db")

T = TypeVar("T")


class ReceiptRepository:
    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def load_all(self) -> list[Receipt]:
        async with self.db.execute(
            "SELECT payload FROM receipt_history ORDER BY position"
        ) as cur:
            rows = await cur.fetchall()
        return [Receipt.model_validate(json.loads(row["payload"])) for row in rows]

    async def _write(self, receipts: list[Receipt]) -> None:
        await self.db.execute("DELETE FROM receipt_history")
        await self.db.executemany(
            "INSERT INTO receipt_history (id, position, created_at, payload) VALUES (?, ?, ?, ?)",
            [
                (r.id, position, r.created_at, r.model_dump_json(by_alias=True))
                for position, r in enumerate(receipts)
            ],
        )

    async def replace_all(self, receipts: list[Receipt]) -> None:
        try:
            await self._write(receipts)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception("Failed to rewrite receipt history (%d receipts)", len(receipts))
            raise
        logger.debug("Rewrote receipt history: %d receipts", len(receipts))

    async def mutate(self, change: Callable[[list[Receipt]], T]) -> T:
        """Load, change in place, and rewrite the history under one write lock.

        ``change`` receives the current list and edits it in place; its return
        value is passed through.  Anything it raises rolls the transaction back
        and nothing is written.  ``BEGIN IMMEDIATE`` makes a second writer wait
        until this one commits, so it always starts from the latest history.
        """
        await self.db.execute("BEGIN IMMEDIATE")
        try:
            receipts = await self.load_all()
            result = change(receipts)
            await self._write(receipts)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.debug("Rewrote receipt history: %d receipts", len(receipts))
        return result


def get_repository(db: aiosqlite.Connection = Depends(get_db)) -> ReceiptRepository:
    return ReceiptRepository(db)

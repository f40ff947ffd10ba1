import logging
import aiosqlite
import os

from fastapi import Depends

from config import Settings, get_settings

logger = logging.getLogger("receiptlens.db")


async def get_db(settings: Settings = Depends(get_settings)) -> aiosqlite.Connection:
    """Dependency: yields an open DB connection."""
    async with aiosqlite.connect(settings.db_path) as db:
        db.row_factory = aiosqlite.Row
        yield db


async def init_db(db_path: str):
    """Create all tables if they don't exist."""
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        await db.executescript(SCHEMA)
        await db.commit()
    logger.info("Initialized at %s", db_path)


SCHEMA = """
-- Receipt history.  The whole collection is read and rewritten as one unit
-- (see ReceiptRepository), so each row is a JSON document plus the columns
-- needed to keep order and identity.
CREATE TABLE IF NOT EXISTS receipt_history (
    id          TEXT PRIMARY KEY,          -- rcpt-<hex>, generated at save time
    position    INTEGER NOT NULL,          -- 0 = newest
    created_at  TEXT NOT NULL,             -- immutable, set at save time
    payload     TEXT NOT NULL              -- full receipt as camelCase JSON
);
"""

"""
Database connection and initialization.
"""

import aiosqlite
from pathlib import Path
from diary.logging import get_logger

logger = get_logger('database')

SCHEMA_PATH = Path(__file__).parent / "init_db.sql"


async def _table_columns(db: aiosqlite.Connection, table_name: str) -> set[str]:
    cursor = await db.execute(f"PRAGMA table_info({table_name})")
    rows = await cursor.fetchall()
    return {row[1] for row in rows}


async def connect(db_path: str | Path) -> aiosqlite.Connection:
    """
    Open a connection with dict-style rows and foreign keys enforced.

    :param db_path: Path to the SQLite database file
    :type db_path: str | Path
    :return: Open database connection; the caller closes it
    :rtype: aiosqlite.Connection
    """
    db = await aiosqlite.connect(db_path)
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA foreign_keys = ON")
    return db


async def init_db(db_path: str | Path) -> None:
    """
    Initialize database with schema.

    :param db_path: Path to the SQLite database file
    :type db_path: str | Path
    :return: None
    :rtype: None
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    async with aiosqlite.connect(db_path) as db:
        with open(SCHEMA_PATH) as f:
            await db.executescript(f.read())
        note_columns = await _table_columns(db, "notes")
        if "task_date" not in note_columns:
            logger.info("Applying migration: add notes.task_date")
            await db.execute("ALTER TABLE notes ADD COLUMN task_date TEXT")
        await db.commit()
        logger.info(f"Database initialized at {db_path}")


async def ping(db_path: str | Path) -> bool:
    """
    Check that the database answers a trivial query.

    :param db_path: Path to the SQLite database file
    :type db_path: str | Path
    :return: True when the store is reachable
    :rtype: bool
    """
    try:
        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute("SELECT 1")
            await cursor.fetchone()
        return True
    except aiosqlite.Error as e:
        logger.error(f"Database ping failed: {e}")
        return False

"""Location of, and read access to, the ingested timetable database."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite


def get_db_path() -> Path:
    """Timetable database path, overridable with KYOTO_DB_PATH."""
    return Path(os.environ.get("KYOTO_DB_PATH", "data/gtfs.db"))


@asynccontextmanager
async def get_db(db_path: Path | None = None) -> AsyncIterator[aiosqlite.Connection]:
    """Open the timetable database for the schedule store to read from.

    Rows come back as aiosqlite.Row so the store can validate them by column
    name straight into the GTFS models.

    Raises:
        FileNotFoundError: If `kyoto-transit ingest` has not produced the
            database yet. Planning reports this as DATA_UNAVAILABLE.
    """
    path = db_path or get_db_path()
    if not path.exists():
        raise FileNotFoundError(
            f"Timetable database not found at {path}. "
            "Run 'kyoto-transit ingest [gtfs_path_or_url]' to build it."
        )

    async with aiosqlite.connect(path) as db:
        db.row_factory = aiosqlite.Row
        yield db

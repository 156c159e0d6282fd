"""GTFS data loader for ingesting static schedule data into SQLite."""

import csv
import io
import logging
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any

import aiosqlite

logger = logging.getLogger(__name__)

# Schema definitions
SCHEMA_SQL = """
-- agency
CREATE TABLE agency (
    agency_id TEXT,
    agency_name TEXT NOT NULL,
    agency_url TEXT,
    agency_timezone TEXT
);

-- routes
CREATE TABLE routes (
    route_id TEXT PRIMARY KEY,
    agency_id TEXT,
    route_short_name TEXT,
    route_long_name TEXT,
    route_type INTEGER NOT NULL
);

-- stops
CREATE TABLE stops (
    stop_id TEXT PRIMARY KEY,
    stop_name TEXT NOT NULL,
    stop_lat REAL,
    stop_lon REAL,
    location_type INTEGER,
    parent_station TEXT,
    wheelchair_boarding INTEGER
);

-- trips
CREATE TABLE trips (
    trip_id TEXT PRIMARY KEY,
    route_id TEXT NOT NULL,
    service_id TEXT NOT NULL,
    trip_headsign TEXT,
    direction_id INTEGER
);

-- stop_times
CREATE TABLE stop_times (
    trip_id TEXT NOT NULL,
    arrival_time TEXT,
    departure_time TEXT,
    stop_id TEXT NOT NULL,
    stop_sequence INTEGER NOT NULL,
    PRIMARY KEY (trip_id, stop_sequence)
);

-- fare_attributes
CREATE TABLE fare_attributes (
    fare_id TEXT NOT NULL,
    price REAL NOT NULL,
    currency_type TEXT,
    payment_method INTEGER,
    transfers INTEGER
);

-- fare_rules (table order is significant: first matching rule wins)
CREATE TABLE fare_rules (
    fare_id TEXT NOT NULL,
    route_id TEXT,
    origin_id TEXT,
    destination_id TEXT
);
"""

INDEX_SQL = """
CREATE INDEX idx_trips_route ON trips(route_id);
CREATE INDEX idx_stop_times_stop ON stop_times(stop_id);
CREATE INDEX idx_fare_rules_route ON fare_rules(route_id);
"""

# Table definitions: table_name -> (csv_filename, columns)
TABLE_DEFINITIONS: dict[str, tuple[str, list[str]]] = {
    "agency": (
        "agency.txt",
        ["agency_id", "agency_name", "agency_url", "agency_timezone"],
    ),
    "routes": (
        "routes.txt",
        ["route_id", "agency_id", "route_short_name", "route_long_name", "route_type"],
    ),
    "stops": (
        "stops.txt",
        [
            "stop_id",
            "stop_name",
            "stop_lat",
            "stop_lon",
            "location_type",
            "parent_station",
            "wheelchair_boarding",
        ],
    ),
    "trips": (
        "trips.txt",
        ["trip_id", "route_id", "service_id", "trip_headsign", "direction_id"],
    ),
    "stop_times": (
        "stop_times.txt",
        ["trip_id", "arrival_time", "departure_time", "stop_id", "stop_sequence"],
    ),
    "fare_attributes": (
        "fare_attributes.txt",
        ["fare_id", "price", "currency_type", "payment_method", "transfers"],
    ),
    "fare_rules": (
        "fare_rules.txt",
        ["fare_id", "route_id", "origin_id", "destination_id"],
    ),
}

# Columns that must be present for a row to be inserted.
REQUIRED_COLUMNS: dict[str, list[str]] = {
    "agency": ["agency_name"],
    "routes": ["route_id", "route_type"],
    "stops": ["stop_id", "stop_name"],
    "trips": ["trip_id", "route_id", "service_id"],
    "stop_times": ["trip_id", "stop_id", "stop_sequence"],
    "fare_attributes": ["fare_id", "price"],
    "fare_rules": ["fare_id"],
}

# Files without which no route can be planned
REQUIRED_FILES = {"routes.txt", "stops.txt", "trips.txt", "stop_times.txt"}

# Chunk size for bulk inserts
CHUNK_SIZE = 10000


class GTFSLoader:
    """Loader for ingesting GTFS data into SQLite."""

    def __init__(self, db_path: Path):
        """Initialize the loader.

        Args:
            db_path: Path where the SQLite database will be created.
        """
        self.db_path = Path(db_path)

    async def ingest(self, gtfs_path: Path) -> dict[str, int]:
        """Ingest GTFS data from a directory or ZIP file into SQLite.

        Uses atomic swap: loads into temp DB, then replaces the target DB.

        Args:
            gtfs_path: Path to GTFS directory or ZIP file.

        Returns:
            Dictionary with row counts per table.

        Raises:
            FileNotFoundError: If GTFS path doesn't exist.
            ValueError: If required GTFS files are missing or empty.
        """
        gtfs_path = Path(gtfs_path)
        if not gtfs_path.exists():
            raise FileNotFoundError(f"GTFS path not found: {gtfs_path}")

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        temp_db = self.db_path.with_suffix(".tmp.db")

        try:
            # Remove temp db if it exists from a previous failed run
            temp_db.unlink(missing_ok=True)

            async with aiosqlite.connect(temp_db) as db:
                await db.execute("PRAGMA journal_mode=OFF")
                await db.execute("PRAGMA synchronous=OFF")
                await db.execute("PRAGMA cache_size=10000")

                await db.executescript(SCHEMA_SQL)
                await db.commit()
                row_counts = await self._load_all_tables(db, gtfs_path)
                logger.info("Creating indexes...")
                await db.executescript(INDEX_SQL)
                await db.commit()
                await self._verify_integrity(db)

            # atomic swap
            temp_db.replace(self.db_path)

            logger.info(f"GTFS ingestion complete: {self.db_path}")
            return row_counts

        except Exception:
            temp_db.unlink(missing_ok=True)
            raise

    async def _load_all_tables(self, db: aiosqlite.Connection, gtfs_path: Path) -> dict[str, int]:
        """Load all GTFS tables from directory or ZIP."""
        row_counts: dict[str, int] = {}

        with self._open_source(gtfs_path) as open_file:
            for table_name, (csv_filename, columns) in TABLE_DEFINITIONS.items():
                stream = open_file(csv_filename)
                if stream is None:
                    if csv_filename in REQUIRED_FILES:
                        raise ValueError(f"Required file {csv_filename} not found in {gtfs_path}")
                    logger.warning(f"Optional file {csv_filename} not found")
                    row_counts[table_name] = 0
                    continue
                with stream:
                    row_counts[table_name] = await self._load_table(
                        db, table_name, columns, stream, csv_filename
                    )

        return row_counts

    @contextmanager
    def _open_source(self, gtfs_path: Path) -> Iterator[Any]:
        """Yield a function mapping a CSV filename to a text stream (or None if absent)."""
        if gtfs_path.is_file() and gtfs_path.suffix == ".zip":
            with zipfile.ZipFile(gtfs_path, "r") as zf:
                # Some publishers nest the feed in a folder inside the archive
                names = {Path(name).name: name for name in zf.namelist()}

                def open_member(filename: str) -> IO[str] | None:
                    member = names.get(filename)
                    if member is None:
                        return None
                    return io.TextIOWrapper(zf.open(member), encoding="utf-8-sig")

                yield open_member
        else:

            def open_file(filename: str) -> IO[str] | None:
                csv_path = gtfs_path / filename
                if not csv_path.exists():
                    return None
                return open(csv_path, encoding="utf-8-sig", newline="")

            yield open_file

    async def _load_table(
        self,
        db: aiosqlite.Connection,
        table_name: str,
        columns: list[str],
        stream: IO[str],
        filename: str,
    ) -> int:
        """Load a single CSV stream into a table."""
        logger.info(f"Loading {table_name} from {filename}...")

        placeholders = ",".join(["?"] * len(columns))
        insert_sql = f"INSERT INTO {table_name} ({','.join(columns)}) VALUES ({placeholders})"

        total_rows = 0
        skipped_rows = 0
        chunk: list[tuple[Any, ...]] = []
        required = REQUIRED_COLUMNS.get(table_name, [])

        reader = csv.reader(stream)
        header_index = self._build_header_index(reader, columns, required, filename)
        for row in reader:
            if not row:
                continue
            row_dict = self._row_from_index(row, header_index)
            if not self._has_required_values(row_dict, required):
                skipped_rows += 1
                continue
            values = tuple(self._convert_value(row_dict.get(col)) for col in columns)
            chunk.append(values)

            if len(chunk) >= CHUNK_SIZE:
                await db.executemany(insert_sql, chunk)
                total_rows += len(chunk)
                chunk = []

        if chunk:
            await db.executemany(insert_sql, chunk)
            total_rows += len(chunk)

        await db.commit()
        logger.info(
            f"  Loaded {total_rows:,} rows into {table_name}"
            + (f" (skipped {skipped_rows:,} invalid)" if skipped_rows else "")
        )
        return total_rows

    def _convert_value(self, value: str | None) -> Any:
        """Convert CSV value to appropriate Python type."""
        if value is None or value.strip() == "":
            return None
        return value.strip()

    def _has_required_values(self, row: dict[str, str | None], required: list[str]) -> bool:
        """Return True if all required columns have non-empty values."""
        for col in required:
            value = row.get(col)
            if value is None or value.strip() == "":
                return False
        return True

    def _build_header_index(
        self, reader: Any, columns: list[str], required: list[str], filename: str
    ) -> dict[str, int]:
        """Map known column names to their CSV positions.

        Optional columns absent from the header load as NULL; missing
        required columns are an error.
        """
        header = next(reader, None)
        if header is None:
            raise ValueError(f"{filename} is empty")
        expected = set(columns)
        header_index: dict[str, int] = {}
        for idx, name in enumerate(header):
            cleaned = name.strip()
            if cleaned in expected and cleaned not in header_index:
                header_index[cleaned] = idx
        missing = [col for col in required if col not in header_index]
        if missing:
            raise ValueError(f"{filename} missing columns: {', '.join(missing)}")
        return header_index

    def _row_from_index(self, row: list[str], header_index: dict[str, int]) -> dict[str, str]:
        """Map a CSV row list to a dict by header index."""
        row_dict: dict[str, str] = {}
        for col, idx in header_index.items():
            row_dict[col] = row[idx] if idx < len(row) else ""
        return row_dict

    async def _verify_integrity(self, db: aiosqlite.Connection) -> None:
        """Verify that the tables needed for planning have data."""
        logger.info("Verifying database integrity...")

        for table_name in ("routes", "stops", "trips", "stop_times"):
            async with db.execute(f"SELECT COUNT(*) FROM {table_name}") as cursor:
                row = await cursor.fetchone()
                if row is None or row[0] == 0:
                    raise ValueError(f"No {table_name} loaded - check GTFS data")

        logger.info("Database integrity verified")


async def get_table_counts(db_path: Path) -> dict[str, int]:
    """Get row counts for all tables in the database.

    Args:
        db_path: Path to the SQLite database.

    Returns:
        Dictionary mapping table names to row counts.
    """
    counts: dict[str, int] = {}
    async with aiosqlite.connect(db_path) as db:
        for table_name in TABLE_DEFINITIONS:
            async with db.execute(f"SELECT COUNT(*) FROM {table_name}") as cursor:
                row = await cursor.fetchone()
                counts[table_name] = row[0] if row else 0
    return counts

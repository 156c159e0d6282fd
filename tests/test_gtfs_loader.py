import zipfile
from pathlib import Path

import aiosqlite
import pytest

from kyoto_transit.data.gtfs_loader import GTFSLoader, get_table_counts


@pytest.fixture
def kyoto_gtfs_zip(kyoto_gtfs_dir: Path, tmp_path: Path) -> Path:
    """Create a GTFS ZIP file from the fixture directory."""
    zip_path = tmp_path / "gtfs.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        for file_path in kyoto_gtfs_dir.iterdir():
            zf.write(file_path, file_path.name)
    return zip_path


class TestGTFSLoader:
    """Tests for GTFSLoader."""

    async def test_ingest_from_directory(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        """Test ingesting GTFS data from a directory."""
        db_path = tmp_path / "test.db"
        loader = GTFSLoader(db_path)

        row_counts = await loader.ingest(kyoto_gtfs_dir)

        assert db_path.exists()
        assert row_counts == {
            "agency": 1,
            "routes": 3,
            "stops": 5,
            "trips": 7,
            "stop_times": 20,
            "fare_attributes": 2,
            "fare_rules": 2,
        }

    async def test_ingest_from_zip(self, kyoto_gtfs_zip: Path, tmp_path: Path) -> None:
        """Test ingesting GTFS data from a ZIP file."""
        db_path = tmp_path / "test.db"
        loader = GTFSLoader(db_path)

        row_counts = await loader.ingest(kyoto_gtfs_zip)

        assert db_path.exists()
        assert row_counts["routes"] == 3
        assert row_counts["stops"] == 5
        assert row_counts["stop_times"] == 20

    async def test_ingest_from_nested_zip(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        """Feeds packed inside a top-level folder are found too."""
        zip_path = tmp_path / "nested.zip"
        with zipfile.ZipFile(zip_path, "w") as zf:
            for file_path in kyoto_gtfs_dir.iterdir():
                zf.write(file_path, f"kyoto_bus/{file_path.name}")

        row_counts = await GTFSLoader(tmp_path / "test.db").ingest(zip_path)
        assert row_counts["trips"] == 7

    async def test_fare_files_optional(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        (kyoto_gtfs_dir / "fare_rules.txt").unlink()
        (kyoto_gtfs_dir / "fare_attributes.txt").unlink()

        row_counts = await GTFSLoader(tmp_path / "test.db").ingest(kyoto_gtfs_dir)

        assert row_counts["fare_rules"] == 0
        assert row_counts["fare_attributes"] == 0

    async def test_missing_required_file(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        (kyoto_gtfs_dir / "stop_times.txt").unlink()
        db_path = tmp_path / "test.db"

        with pytest.raises(ValueError, match="stop_times.txt"):
            await GTFSLoader(db_path).ingest(kyoto_gtfs_dir)

        assert not db_path.exists()

    async def test_missing_required_column(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        (kyoto_gtfs_dir / "trips.txt").write_text("trip_id,route_id\nT1,205\n")

        with pytest.raises(ValueError, match="service_id"):
            await GTFSLoader(tmp_path / "test.db").ingest(kyoto_gtfs_dir)

    async def test_atomic_swap_creates_new_db(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        """Test that ingestion creates the database atomically."""
        db_path = tmp_path / "test.db"
        temp_path = db_path.with_suffix(".tmp.db")

        loader = GTFSLoader(db_path)
        await loader.ingest(kyoto_gtfs_dir)

        # Final DB should exist, temp should not
        assert db_path.exists()
        assert not temp_path.exists()

    async def test_atomic_swap_replaces_existing(
        self, kyoto_gtfs_dir: Path, tmp_path: Path
    ) -> None:
        """Test that ingestion replaces an existing database."""
        db_path = tmp_path / "test.db"

        loader = GTFSLoader(db_path)
        await loader.ingest(kyoto_gtfs_dir)
        await loader.ingest(kyoto_gtfs_dir)

        counts = await get_table_counts(db_path)
        assert counts["routes"] == 3

    async def test_failed_ingest_keeps_existing_db(
        self, kyoto_gtfs_dir: Path, tmp_path: Path
    ) -> None:
        db_path = tmp_path / "test.db"
        loader = GTFSLoader(db_path)
        await loader.ingest(kyoto_gtfs_dir)

        (kyoto_gtfs_dir / "stop_times.txt").write_text(
            "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
        )
        with pytest.raises(ValueError, match="stop_times"):
            await loader.ingest(kyoto_gtfs_dir)

        counts = await get_table_counts(db_path)
        assert counts["stop_times"] == 20
        assert not db_path.with_suffix(".tmp.db").exists()

    async def test_rollback_on_failure(self, tmp_path: Path) -> None:
        """Test that temp DB is cleaned up on failure."""
        db_path = tmp_path / "test.db"
        temp_path = db_path.with_suffix(".tmp.db")

        loader = GTFSLoader(db_path)

        with pytest.raises(FileNotFoundError):
            await loader.ingest(tmp_path / "nonexistent")

        assert not db_path.exists()
        assert not temp_path.exists()

    async def test_creates_parent_directories(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        """Test that parent directories are created if needed."""
        db_path = tmp_path / "subdir" / "nested" / "test.db"

        await GTFSLoader(db_path).ingest(kyoto_gtfs_dir)

        assert db_path.exists()


class TestSchemaAndIndexes:
    """Tests for database schema and indexes."""

    async def test_schema_has_all_tables(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        """Test that all expected tables are created."""
        db_path = tmp_path / "test.db"
        await GTFSLoader(db_path).ingest(kyoto_gtfs_dir)

        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
            tables = [row[0] async for row in cursor]
            await cursor.close()

        assert tables == [
            "agency",
            "fare_attributes",
            "fare_rules",
            "routes",
            "stop_times",
            "stops",
            "trips",
        ]

    async def test_indexes_created(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        """Test that expected indexes are created."""
        db_path = tmp_path / "test.db"
        await GTFSLoader(db_path).ingest(kyoto_gtfs_dir)

        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute(
                "SELECT name FROM sqlite_master WHERE type='index' AND name LIKE 'idx_%'"
            )
            indexes = [row[0] async for row in cursor]
            await cursor.close()

        for idx in ["idx_trips_route", "idx_stop_times_stop", "idx_fare_rules_route"]:
            assert idx in indexes, f"Missing index: {idx}"


class TestDataIntegrity:
    """Tests for data integrity after ingestion."""

    async def test_route_data_correct(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        await GTFSLoader(db_path).ingest(kyoto_gtfs_dir)

        async with aiosqlite.connect(db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM routes WHERE route_id = '205'") as cursor:
                route = await cursor.fetchone()

        assert route is not None
        assert route["route_long_name"] == "市バス205系統"
        assert route["route_type"] == 3

    async def test_stop_times_data_correct(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        await GTFSLoader(db_path).ingest(kyoto_gtfs_dir)

        async with aiosqlite.connect(db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                "SELECT * FROM stop_times WHERE trip_id = 'T205_1005' ORDER BY stop_sequence"
            ) as cursor:
                stop_times = [row async for row in cursor]

        assert [st["stop_id"] for st in stop_times] == ["KINKAKU", "SHIJO", "KYOTO_EKI"]
        assert stop_times[1]["arrival_time"] == "10:20:00"
        assert stop_times[1]["departure_time"] == "10:21:00"

    async def test_null_values_handled(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        """Test that empty CSV values become NULL in database."""
        db_path = tmp_path / "test.db"
        await GTFSLoader(db_path).ingest(kyoto_gtfs_dir)

        async with aiosqlite.connect(db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM fare_rules WHERE route_id = '101'") as cursor:
                rule = await cursor.fetchone()

        assert rule["origin_id"] is None
        assert rule["destination_id"] is None

    async def test_rows_missing_required_values_skipped(
        self, kyoto_gtfs_dir: Path, tmp_path: Path
    ) -> None:
        (kyoto_gtfs_dir / "stops.txt").write_text(
            "stop_id,stop_name,stop_lat,stop_lon\n"
            "KINKAKU,金閣寺道,35.0412,135.7292\n"
            ",名無し,35.0,135.7\n"
        )

        row_counts = await GTFSLoader(tmp_path / "test.db").ingest(kyoto_gtfs_dir)

        assert row_counts["stops"] == 1


class TestGetTableCounts:
    """Tests for the get_table_counts utility function."""

    async def test_returns_all_counts(self, kyoto_gtfs_dir: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        await GTFSLoader(db_path).ingest(kyoto_gtfs_dir)

        counts = await get_table_counts(db_path)

        assert counts["agency"] == 1
        assert counts["routes"] == 3
        assert counts["stops"] == 5
        assert counts["trips"] == 7
        assert counts["stop_times"] == 20
        assert counts["fare_rules"] == 2

import argparse
import asyncio
import logging
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from kyoto_transit.app import mcp
from kyoto_transit.data.database import get_db_path


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the Kyoto Transit MCP server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from kyoto_transit import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def run_ingest(source: str | None, db_path: Path) -> dict[str, int]:
    """Run GTFS ingestion from a local path or a download URL.

    With no source, the archive is downloaded from KYOTO_GTFS_STATIC_URL.
    """
    from kyoto_transit.data.config import get_transit_config
    from kyoto_transit.data.gtfs_loader import GTFSLoader
    from kyoto_transit.data.schedule_store import ScheduleStore
    from kyoto_transit.data.static_client import download_gtfs_archive

    loader = GTFSLoader(db_path)

    if source is not None and not _is_url(source):
        row_counts = await loader.ingest(Path(source))
    else:
        with tempfile.TemporaryDirectory() as tmp:
            archive = await download_gtfs_archive(
                Path(tmp) / "gtfs.zip", get_transit_config(), url=source
            )
            row_counts = await loader.ingest(archive)

    await ScheduleStore.invalidate()

    print("\nIngestion complete. Row counts:")
    for table, count in row_counts.items():
        print(f"  {table}: {count:,}")
    return row_counts


def _register_tools() -> None:
    """Import tool modules so their @mcp.tool() decorators run."""
    from kyoto_transit.tools import route_tools, stop_tools, vehicle_tools  # noqa: F401


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="kyoto-transit",
        description="Kyoto Transit MCP Server",
    )
    subparsers = parser.add_subparsers(dest="command")

    # ingest command
    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Ingest GTFS data into SQLite database",
    )
    ingest_parser.add_argument(
        "source",
        nargs="?",
        default=None,
        help=(
            "Path to GTFS directory or ZIP file, or an http(s) URL to download "
            "(default: KYOTO_GTFS_STATIC_URL)"
        ),
    )
    ingest_parser.add_argument(
        "--db",
        type=Path,
        default=get_db_path(),
        help="SQLite database path (default: data/gtfs.db or KYOTO_DB_PATH env var)",
    )
    ingest_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.command == "ingest":
        # Configure logging
        log_level = logging.DEBUG if args.verbose else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        asyncio.run(run_ingest(args.source, args.db))
    else:
        # Default: run MCP server
        _register_tools()
        mcp.run()


if __name__ == "__main__":
    main()

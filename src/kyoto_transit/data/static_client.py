"""Download of the static GTFS archive."""

import logging
from pathlib import Path

import httpx

from kyoto_transit.data.config import TransitConfig

logger = logging.getLogger(__name__)


async def download_gtfs_archive(
    destination: Path, config: TransitConfig, url: str | None = None
) -> Path:
    """Download the static GTFS ZIP to a local file.

    Args:
        destination: File path the archive is written to.
        config: Feed configuration providing the URL template and access token.
        url: Explicit URL overriding KYOTO_GTFS_STATIC_URL.

    Returns:
        The destination path.

    Raises:
        ValueError: If no URL is configured, or the URL needs a missing access token.
        httpx.HTTPError: If the download fails.
    """
    template = url or config.static_gtfs_url
    if not template:
        raise ValueError("No static GTFS URL given and KYOTO_GTFS_STATIC_URL is not set")

    resolved = config.resolve_url(template)
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Downloading static GTFS archive...")
    async with httpx.AsyncClient(
        timeout=config.http_timeout_seconds, follow_redirects=True
    ) as client:
        response = await client.get(resolved)
        response.raise_for_status()
        destination.write_bytes(response.content)

    logger.info(f"Saved {len(response.content):,} bytes to {destination}")
    return destination

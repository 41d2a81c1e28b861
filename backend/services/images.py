"""
Wikipedia Image Resolver
========================
Finds a real photo for a tourist spot through the Wikipedia REST API,
falling back to a full-text search when the direct title has no image.
"""

import re
from urllib.parse import quote

import httpx
import structlog

from backend.config import settings
from backend.core.metrics import IMAGE_RESOLUTIONS

logger = structlog.get_logger()

_WIDTH_TOKEN = re.compile(r"/\d+px-")


def slugify_title(name: str) -> str:
    """Turn a display name into a Wikipedia page title."""
    return "_".join(name.split())


def upscale_thumbnail(url: str, width: int) -> str:
    """Rewrite the thumbnail width token, e.g. ``/320px-`` to ``/800px-``."""
    return _WIDTH_TOKEN.sub(f"/{width}px-", url, count=1)


class ImageResolver:
    """
    Resolves a spot photo URL in two tiers.

    1. Direct: page summary for the canonical title (or the slugified name).
    2. Search: top full-text search hit for the name, then its summary.

    Every error inside a tier counts as "no image from this tier";
    ``resolve`` never raises.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str | None = None,
        image_width: int | None = None,
    ):
        self._client = client
        self.base_url = (base_url or settings.wikipedia_base_url).rstrip("/")
        self.image_width = image_width or settings.image_width

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> dict | None:
        try:
            response = await self._client.get(url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Wikipedia request failed", url=url, error=str(e))
            return None

        if response.status_code != 200:
            logger.debug("Wikipedia request unsuccessful", url=url, status=response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.debug("Wikipedia response is not JSON", url=url)
            return None
        return data if isinstance(data, dict) else None

    async def fetch_summary_thumbnail(self, title: str) -> str | None:
        """Return the upscaled summary thumbnail for a page title, if any."""
        if not title.strip():
            return None

        url = f"{self.base_url}/api/rest_v1/page/summary/{quote(slugify_title(title), safe='')}"
        data = await self._get_json(url)
        if not data:
            return None

        thumbnail = data.get("thumbnail")
        source = thumbnail.get("source") if isinstance(thumbnail, dict) else None
        if not isinstance(source, str) or not source:
            return None
        return upscale_thumbnail(source, self.image_width)

    async def search_title(self, query: str) -> str | None:
        """Return the title of the top full-text search hit."""
        data = await self._get_json(
            f"{self.base_url}/w/api.php",
            params={
                "action": "query",
                "list": "search",
                "srsearch": query,
                "srlimit": "1",
                "format": "json",
            },
        )
        if not data:
            return None

        query_block = data.get("query")
        hits = query_block.get("search") if isinstance(query_block, dict) else None
        if not isinstance(hits, list) or not hits or not isinstance(hits[0], dict):
            return None
        title = hits[0].get("title")
        return title if isinstance(title, str) and title else None

    async def resolve(self, spot_name: str, canonical_title: str | None = None) -> str | None:
        """
        Resolve a photo URL for a spot.

        Args:
            spot_name: Display name of the spot
            canonical_title: Wikipedia title suggested by the model, if any

        Returns:
            Image URL on the media host, or None
        """
        direct_title = canonical_title or spot_name
        image_url = await self.fetch_summary_thumbnail(direct_title)
        if image_url:
            IMAGE_RESOLUTIONS.labels(tier="direct").inc()
            return image_url

        if spot_name.strip():
            search_hit = await self.search_title(spot_name)
            if search_hit:
                image_url = await self.fetch_summary_thumbnail(search_hit)
                if image_url:
                    logger.debug("Resolved image via search", spot=spot_name, title=search_hit)
                    IMAGE_RESOLUTIONS.labels(tier="search").inc()
                    return image_url

        logger.info("No image found for spot", spot=spot_name, title=canonical_title)
        IMAGE_RESOLUTIONS.labels(tier="none").inc()
        return None


def build_wikipedia_client() -> httpx.AsyncClient:
    """Create an HTTP client configured for the Wikipedia APIs."""
    return httpx.AsyncClient(
        timeout=settings.image_lookup_timeout_seconds,
        headers={
            "User-Agent": settings.http_user_agent,
            "Accept": "application/json",
        },
        follow_redirects=True,
    )

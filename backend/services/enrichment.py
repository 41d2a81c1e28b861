"""
Spot Enrichment
===============
Attaches a proxied photo URL to every generated spot.
"""

import asyncio
from collections.abc import Callable, Sequence

import httpx
import structlog

from backend.config import settings
from backend.schemas.spots import TouristSpot
from backend.services.images import ImageResolver, build_wikipedia_client
from backend.services.proxy import build_proxy_url

logger = structlog.get_logger()


class EnrichmentOrchestrator:
    """
    Resolves images for all spots concurrently.

    At most ``concurrency`` lookups are in flight at once. Results are
    reattached by index, and a failed lookup only leaves its own spot
    without an image.
    """

    def __init__(
        self,
        client_factory: Callable[[], httpx.AsyncClient] = build_wikipedia_client,
        concurrency: int | None = None,
    ):
        self._client_factory = client_factory
        self.concurrency = concurrency or settings.enrichment_concurrency

    async def _resolve_one(
        self,
        resolver: ImageResolver,
        semaphore: asyncio.Semaphore,
        spot: TouristSpot,
    ) -> str | None:
        async with semaphore:
            try:
                return await resolver.resolve(spot.name, spot.wikipedia_title)
            except Exception as e:
                logger.warning("Image resolution failed", spot=spot.name, error=str(e))
                return None

    async def enrich(self, spots: Sequence[TouristSpot]) -> list[TouristSpot]:
        """
        Return copies of ``spots`` in the same order with ``image_url`` set.

        The URL is routed through the image proxy, or None when no image
        was found.
        """
        if not spots:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)
        async with self._client_factory() as client:
            resolver = ImageResolver(client)
            image_urls = await asyncio.gather(
                *(self._resolve_one(resolver, semaphore, spot) for spot in spots)
            )

        enriched = [
            spot.model_copy(update={"image_url": build_proxy_url(url) if url else None})
            for spot, url in zip(spots, image_urls)
        ]

        logger.info(
            "Enriched spots",
            spots=len(enriched),
            with_image=sum(1 for url in image_urls if url),
        )
        return enriched

"""
Image Proxy
===========
Fetches images from the single allow-listed media host on behalf of
clients, so browsers never talk to the upstream directly.
"""

import asyncio
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import quote

import httpx
import structlog

from backend.config import settings
from backend.core.errors import (
    HostNotAllowedError,
    InvalidImageUrlError,
    UpstreamFetchError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)

logger = structlog.get_logger()

DEFAULT_CONTENT_TYPE = "image/jpeg"


def build_proxy_url(upstream_url: str, proxy_path: str | None = None) -> str:
    """Render the client-facing proxy URL for an upstream image."""
    path = proxy_path or settings.image_proxy_path
    return f"{path}?url={quote(upstream_url, safe='')}"


@dataclass(frozen=True)
class ProxiedImage:
    """Image bytes ready to be returned to the client."""

    content: bytes
    content_type: str
    cache_control: str


class ImageProxy:
    """
    Validates and fetches upstream image URLs.

    Only URLs whose host equals the allow-listed host are fetched. Redirects
    are not followed, and the whole fetch runs under a hard deadline.
    """

    def __init__(
        self,
        allowed_host: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.allowed_host = (allowed_host or settings.image_proxy_allowed_host).lower()
        self.timeout_seconds = timeout_seconds or settings.image_proxy_timeout_seconds
        self.cache_control = (
            f"public, max-age={settings.image_cache_max_age}, "
            f"stale-while-revalidate={settings.image_cache_swr}"
        )
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        # Wikimedia requires a descriptive User-Agent and Referer
        return {
            "User-Agent": settings.http_user_agent,
            "Referer": "https://en.wikipedia.org/",
            "Accept": "image/*",
        }

    def validate_url(self, raw_url: str | None) -> httpx.URL:
        """
        Parse and check an upstream URL.

        Raises:
            InvalidImageUrlError: Missing or malformed URL
            HostNotAllowedError: Host is not the allow-listed media host
        """
        if not raw_url or not raw_url.strip():
            raise InvalidImageUrlError("Missing url parameter")

        try:
            url = httpx.URL(raw_url.strip())
        except httpx.InvalidURL as e:
            raise InvalidImageUrlError("Invalid URL") from e

        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidImageUrlError("Invalid URL")

        if url.host.lower() != self.allowed_host:
            raise HostNotAllowedError("Host not allowed")

        return url

    async def _get(self, url: httpx.URL) -> httpx.Response:
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self.timeout_seconds,
            headers=self._get_headers(),
            follow_redirects=False,
        ) as client:
            return await client.get(url)

    async def fetch(self, raw_url: str | None) -> ProxiedImage:
        """
        Fetch an allow-listed image.

        Raises:
            ImageProxyError subclass carrying the status to respond with
        """
        url = self.validate_url(raw_url)

        try:
            response = await asyncio.wait_for(self._get(url), timeout=self.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning("Image fetch timed out", url=str(url), timeout=self.timeout_seconds)
            raise UpstreamTimeoutError("Image fetch timed out") from e
        except httpx.HTTPError as e:
            logger.warning("Image fetch failed", url=str(url), error=str(e))
            raise UpstreamFetchError("Failed to fetch image") from e

        if 300 <= response.status_code < 400:
            # Redirects are answered as a gateway error
            logger.warning("Upstream image redirect not followed", url=str(url), status=response.status_code)
            raise UpstreamStatusError(
                f"Upstream error: {response.status_code}",
                status_code=UpstreamFetchError.status_code,
            )

        if not response.is_success:
            logger.info("Upstream image error", url=str(url), status=response.status_code)
            raise UpstreamStatusError(
                f"Upstream error: {response.status_code}",
                status_code=response.status_code,
            )

        return ProxiedImage(
            content=response.content,
            content_type=response.headers.get("content-type") or DEFAULT_CONTENT_TYPE,
            cache_control=self.cache_control,
        )


@lru_cache
def get_image_proxy() -> ImageProxy:
    """Get cached image proxy instance."""
    return ImageProxy()

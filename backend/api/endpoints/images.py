"""
Image Proxy Endpoint
====================
Serves allow-listed upstream images with long-lived caching headers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import PlainTextResponse

from backend.core.errors import ImageProxyError
from backend.core.metrics import IMAGE_PROXY_REQUESTS
from backend.services.proxy import ImageProxy, get_image_proxy

router = APIRouter()


@router.get(
    "/image-proxy",
    summary="Proxy an image",
    description="Fetch an image from the allow-listed media host",
    response_class=Response,
)
async def proxy_image(
    proxy: Annotated[ImageProxy, Depends(get_image_proxy)],
    url: Annotated[str | None, Query(description="Upstream image URL")] = None,
) -> Response:
    """
    Proxy an upstream image.

    - 400 for a missing or malformed url
    - 403 for any host other than the allow-listed one
    - 504 when the upstream does not answer in time
    - the upstream status for upstream errors
    """
    try:
        image = await proxy.fetch(url)
    except ImageProxyError as e:
        IMAGE_PROXY_REQUESTS.labels(status=str(e.status_code)).inc()
        return PlainTextResponse(e.message, status_code=e.status_code)

    IMAGE_PROXY_REQUESTS.labels(status="200").inc()
    return Response(
        content=image.content,
        media_type=image.content_type,
        headers={"Cache-Control": image.cache_control},
    )

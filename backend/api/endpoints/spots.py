"""
Spot Endpoints
==============
API endpoint generating enriched tourist spots for an address.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Body, Depends, Header, HTTPException, status

from backend.config import settings
from backend.core.errors import GenerationFailedError, TravelSpotsError
from backend.schemas.spots import GenerateSpotsRequest, SearchResult
from backend.services.generation import FAILURE_MESSAGE, GenerationService, get_generation_service

router = APIRouter()
logger = structlog.get_logger()


@router.post(
    "/generate-spots",
    response_model=SearchResult,
    summary="Generate tourist spots",
    description="Generate real tourist spots near an address, each with a proxied photo",
)
async def generate_spots(
    service: Annotated[GenerationService, Depends(get_generation_service)],
    body: Annotated[GenerateSpotsRequest | None, Body()] = None,
    x_openai_key: Annotated[str | None, Header()] = None,
) -> SearchResult:
    """
    Generate tourist spots near an address.

    The model key comes from the ``x-openai-key`` header, falling back to
    the server's configured key for local development.

    The body is optional; a missing or null address is rejected by the
    service, so the credential check always runs first.

    - 401 when no key is available
    - 400 when the address is empty
    - 429 when today's model budget is spent
    - 500 when generation fails
    """
    api_key = x_openai_key or settings.openai_api_key
    try:
        return await service.generate(body.address if body else None, api_key)
    except GenerationFailedError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except TravelSpotsError as e:
        logger.warning("Spot generation rejected", reason=type(e).__name__, detail=e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except Exception as e:
        logger.exception("Unexpected spot generation failure", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=FAILURE_MESSAGE,
        ) from e

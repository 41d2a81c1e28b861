"""
Pricing Endpoints
=================
API endpoints for model pricing information.
"""

import structlog
from fastapi import APIRouter, HTTPException, status

from backend.core.pricing import get_pricing_engine
from backend.schemas.usage import ModelPricing, PricingModelsResponse

router = APIRouter()
logger = structlog.get_logger()


@router.get(
    "/models",
    response_model=PricingModelsResponse,
    summary="Get model pricing",
    description="Get the pricing table used for the daily cost ledger",
)
async def get_pricing_models() -> PricingModelsResponse:
    """
    Get all priced models.

    Prices are USD per 1M tokens. Unknown models are billed at the
    default model's price.
    """
    pricing_engine = get_pricing_engine()
    return PricingModelsResponse(
        default_model=pricing_engine.default_model,
        models=[
            ModelPricing(
                model=entry.model_id,
                input_price_per_1m=entry.input_price_per_1m,
                output_price_per_1m=entry.output_price_per_1m,
            )
            for entry in pricing_engine.get_models()
        ],
    )


@router.post(
    "/reload",
    summary="Reload pricing configuration",
    description="Reload pricing configuration from the YAML file",
)
async def reload_pricing() -> dict[str, str]:
    """
    Reload pricing configuration from the YAML file.

    Useful for updating pricing without restarting the service.
    """
    try:
        pricing_engine = get_pricing_engine()
        pricing_engine.reload()
        return {"status": "ok", "message": "Pricing configuration reloaded"}
    except ValueError as e:
        logger.error("Failed to reload pricing", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reload pricing configuration",
        ) from e

"""
API Router
==========
Main API router combining all endpoint modules.
"""

from fastapi import APIRouter

from backend.api.endpoints import health, images, pricing, spots, usage

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(spots.router, prefix="/api", tags=["Spots"])
api_router.include_router(images.router, prefix="/api", tags=["Images"])
api_router.include_router(usage.router, prefix="/usage", tags=["Usage"])
api_router.include_router(pricing.router, prefix="/pricing", tags=["Pricing"])

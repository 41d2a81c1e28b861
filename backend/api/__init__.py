"""
HTTP API
========
FastAPI routers for the travel spots backend.
"""

from backend.api.router import api_router

__all__ = ["api_router"]

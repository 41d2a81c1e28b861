"""
Core Business Logic
====================
Pricing, domain errors, prompts and metrics.
"""

from backend.core.pricing import PricingEngine, PricingEntry, get_pricing_engine, normalize_model_id

__all__ = ["PricingEngine", "PricingEntry", "get_pricing_engine", "normalize_model_id"]

"""
Business Services
=================
Cost ledger, audit logging, image resolution and spot generation.
"""

from backend.services.audit import CompletionAuditLogger
from backend.services.enrichment import EnrichmentOrchestrator
from backend.services.generation import GenerationService
from backend.services.images import ImageResolver
from backend.services.ledger import CostLedger
from backend.services.proxy import ImageProxy

__all__ = [
    "CompletionAuditLogger",
    "CostLedger",
    "EnrichmentOrchestrator",
    "GenerationService",
    "ImageProxy",
    "ImageResolver",
]

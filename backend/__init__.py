"""
Latagaw Backend
===============
Server-side pipeline for AI-generated travel spots: daily cost guardrail,
completion audit log, Wikipedia photo enrichment and an image proxy.
"""

__version__ = "1.0.0"

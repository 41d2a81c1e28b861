"""
Prometheus Metrics
==================
Counters for the generation pipeline, image enrichment and the proxy.
"""

from prometheus_client import Counter

GENERATION_REQUESTS = Counter(
    "spot_generation_requests_total",
    "Spot generation requests by outcome",
    ["outcome"],
)

MODEL_TOKENS = Counter(
    "model_tokens_total",
    "Tokens consumed by model calls",
    ["model", "kind"],
)

MODEL_COST_USD = Counter(
    "model_cost_usd_total",
    "Model spend in USD",
    ["model"],
)

IMAGE_RESOLUTIONS = Counter(
    "image_resolutions_total",
    "Spot image resolutions by the tier that produced the result",
    ["tier"],
)

IMAGE_PROXY_REQUESTS = Counter(
    "image_proxy_requests_total",
    "Image proxy requests by response status",
    ["status"],
)

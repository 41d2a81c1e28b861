"""
Model Prompts
=============
Fixed system and user instructions for spot generation.
"""

from backend.schemas.spots import SpotCategory

SYSTEM_PROMPT = (
    "You are an expert travel guide with deep knowledge of tourist destinations worldwide. "
    "Always respond with valid JSON only. Provide accurate, real information about actual places."
)

_SPOT_SCHEMA = """{
  "locationName": "Formatted location name (e.g. Cebu City, Philippines)",
  "spots": [
    {
      "id": "spot-1",
      "name": "Real tourist spot name",
      "description": "Detailed 3-4 sentence description covering history, significance, and visitor experience",
      "shortDescription": "One compelling sentence that captures the essence of this place",
      "address": "Specific street address or area (e.g. Fort San Pedro, A. Pigafetta St, Cebu City)",
      "distance": "X.X km from city center",
      "rating": 4.7,
      "reviewCount": 2847,
      "entranceFee": "Free" or "PHP 75 / person" or "USD 12 / person",
      "category": "%(categories)s",
      "openingHours": "8:00 AM - 5:00 PM, Daily",
      "bestTimeToVisit": "Specific time recommendation with brief reason",
      "highlights": ["Key feature or attraction 1", "Key feature or attraction 2", "Key feature or attraction 3"],
      "tags": ["scenic", "family-friendly", "photography", "heritage"],
      "reviews": [
        {"author": "Traveler Name", "rating": 5, "comment": "Authentic 1-2 sentence review from a visitor's perspective", "date": "2024-11-15"},
        {"author": "Another Traveler", "rating": 4, "comment": "Another authentic review", "date": "2024-09-22"},
        {"author": "Third Reviewer", "rating": 5, "comment": "Third authentic review", "date": "2024-12-03"}
      ],
      "coordinates": {"lat": 10.2931, "lng": 123.9015},
      "wikipediaTitle": "Exact_Wikipedia_page_title_with_underscores (e.g. Maria_Cristina_Falls) or null"
    }
  ]
}"""


def build_user_prompt(address: str, spot_count: int = 8) -> str:
    """Ask for ``spot_count`` real spots near ``address`` in the fixed JSON schema."""
    schema = _SPOT_SCHEMA % {"categories": "|".join(c.value for c in SpotCategory)}
    return (
        f'Generate a list of {spot_count} real, well-known tourist spots in or near "{address}".\n\n'
        f"Return a JSON object with this exact structure:\n{schema}\n\n"
        f'Use only real places that actually exist near "{address}". '
        "Make descriptions informative and authentic. "
        f"Vary the categories across the {spot_count} spots. Ensure coordinates are accurate. "
        "Give exactly 3 reviews per spot. "
        "For wikipediaTitle, provide the exact Wikipedia article title (use underscores) "
        "so we can fetch the real photo, or null if the place has no article."
    )


def build_messages(address: str, spot_count: int = 8) -> list[dict[str, str]]:
    """Chat messages for one generation request."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(address, spot_count)},
    ]

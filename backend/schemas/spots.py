"""
Spot Schemas
============
Pydantic models for generated tourist spots and the search response.
JSON field names are camelCase on the wire.
"""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

_NON_DIGITS = re.compile(r"[^\d]")


def coerce_rating(value: Any) -> float:
    """Coerce a model-supplied rating into 0..5; unusable values become 0."""
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return 0.0
    if rating != rating:  # NaN
        return 0.0
    return min(max(rating, 0.0), 5.0)


class SpotCategory(str, Enum):
    """Categories the model is asked to choose from."""

    NATURE = "Nature"
    CULTURAL = "Cultural"
    HISTORICAL = "Historical"
    ADVENTURE = "Adventure"
    BEACH = "Beach"
    RELIGIOUS = "Religious"
    ENTERTAINMENT = "Entertainment"
    SCENIC = "Scenic"
    MUSEUM = "Museum"


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def drop_null_fields(cls, data: Any) -> Any:
        # An explicit null reads the same as an absent key
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Review(CamelModel):
    """A visitor review of a spot."""

    author: str = ""
    rating: float = Field(default=0, ge=0, le=5)
    comment: str = ""
    date: str = ""

    @field_validator("rating", mode="before")
    @classmethod
    def clamp_rating(cls, value: Any) -> float:
        return coerce_rating(value)


class Coordinates(CamelModel):
    """Latitude / longitude of a spot."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class TouristSpot(CamelModel):
    """
    A generated tourist spot.

    ``image_url`` is set once by enrichment; ``None`` is a valid final value.
    ``wikipedia_title`` is a lookup hint from the model and is never serialized.

    Only ``id`` and ``name`` are required. Malformed optional fields are
    repaired or dropped rather than rejecting the spot.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    short_description: str = ""
    address: str = ""
    distance: str = ""
    rating: float = Field(default=0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    reviews: list[Review] = Field(default_factory=list)
    entrance_fee: str = ""
    category: str = ""
    opening_hours: str = ""
    best_time_to_visit: str = ""
    highlights: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = None
    coordinates: Coordinates | None = None
    wikipedia_title: str | None = Field(default=None, exclude=True)

    @field_validator("rating", mode="before")
    @classmethod
    def clamp_rating(cls, value: Any) -> float:
        return coerce_rating(value)

    @field_validator("review_count", mode="before")
    @classmethod
    def parse_review_count(cls, value: Any) -> int:
        # Models write counts like "2,847"
        if isinstance(value, str):
            value = _NON_DIGITS.sub("", value)
        try:
            return max(int(float(value)), 0)
        except (TypeError, ValueError, OverflowError):
            return 0

    @field_validator("reviews", mode="before")
    @classmethod
    def keep_review_objects(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [review for review in value if isinstance(review, dict)]
        return []

    @field_validator("highlights", "tags", mode="before")
    @classmethod
    def keep_text_items(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value if isinstance(item, (str, int, float))]
        return []

    @field_validator("coordinates", mode="wrap")
    @classmethod
    def drop_invalid_coordinates(cls, value: Any, handler: Any) -> Coordinates | None:
        try:
            return handler(value)
        except ValidationError:
            return None


class GeneratedSpots(CamelModel):
    """The JSON object the model is instructed to return."""

    location_name: str | None = None
    spots: list[TouristSpot]


class SearchResult(CamelModel):
    """Response of the generation endpoint."""

    location_name: str
    spots: list[TouristSpot]


class GenerateSpotsRequest(BaseModel):
    """
    Request body of the generation endpoint.

    Never fails validation: a missing, null or non-string address is left
    for the generation service to reject with its own status.
    """

    address: str | None = None

    @field_validator("address", mode="before")
    @classmethod
    def non_string_as_missing(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

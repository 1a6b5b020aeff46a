"""Domain models for food log entries."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

MACRO_FIELDS = ("calories", "protein", "carbohydrates", "fats", "sugar", "sodium")


@dataclass(frozen=True)
class StoredImage:
    """Durable reference to an uploaded food image."""

    ref: str
    content_type: str
    size_bytes: int


@dataclass(frozen=True)
class FoodLogEntry:
    """A single analyzed food submission."""

    id: UUID
    user_id: UUID
    food_name: str
    image_ref: str
    calories: float
    protein: float
    carbohydrates: float
    fats: float
    sugar: float
    sodium: float
    confidence_score: float
    serving_size: str | None
    captured_at: datetime

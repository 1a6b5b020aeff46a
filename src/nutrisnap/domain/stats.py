"""Domain models for daily statistics."""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class DayWindow:
    """Local calendar-day window, inclusive at both ends."""

    day: date
    start: datetime
    end: datetime


@dataclass(frozen=True)
class DailyNutritionSummary:
    """Daily macro totals for one user."""

    day: date
    calories: float
    protein: float
    carbohydrates: float
    fats: float
    sugar: float
    sodium: float
    entry_count: int = 0

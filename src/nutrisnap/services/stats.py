"""Daily nutrition aggregation for food logs."""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, tzinfo
from typing import Protocol
from uuid import UUID

from nutrisnap.domain.food_logs import MACRO_FIELDS, FoodLogEntry
from nutrisnap.domain.stats import DailyNutritionSummary, DayWindow

_END_OF_DAY = time(23, 59, 59, 999000)


class DailyLogRepository(Protocol):
    """Query interface for food logs."""

    def list_food_logs(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[FoodLogEntry]:
        """Return entries captured within [start, end], newest first."""


@dataclass
class DailySummaryService:
    """Computes a user's daily totals from the log store on every call."""

    repository: DailyLogRepository

    def get_day(
        self, user_id: UUID, day: date, tz: tzinfo
    ) -> tuple[DailyNutritionSummary, list[FoodLogEntry]]:
        """Return the day's summary and entries in the user's timezone."""
        window = day_window(day, tz)
        entries = self.repository.list_food_logs(
            user_id, window.start.astimezone(UTC), window.end.astimezone(UTC)
        )
        return compute_daily_summary(entries, window), entries


def day_window(day: date, tz: tzinfo) -> DayWindow:
    """Return the local midnight-to-midnight window for a date."""
    return DayWindow(
        day=day,
        start=datetime.combine(day, time.min, tzinfo=tz),
        end=datetime.combine(day, _END_OF_DAY, tzinfo=tz),
    )


def in_window(captured_at: datetime, window: DayWindow) -> bool:
    """Return True when a timestamp falls inside the window.

    Timestamps are compared at millisecond granularity; naive timestamps are
    taken as UTC.
    """
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=UTC)
    truncated = captured_at.replace(
        microsecond=captured_at.microsecond // 1000 * 1000
    )
    return window.start <= truncated <= window.end


def compute_daily_summary(
    entries: Iterable[FoodLogEntry], window: DayWindow
) -> DailyNutritionSummary:
    """Sum the macros of all entries captured inside the window.

    Missing, non-numeric, non-finite or negative macro values count as zero.
    Totals use exact summation, so entry order never changes the result.
    """
    values: dict[str, list[float]] = {field: [] for field in MACRO_FIELDS}
    count = 0
    for entry in entries:
        captured_at = getattr(entry, "captured_at", None)
        if not isinstance(captured_at, datetime) or not in_window(
            captured_at, window
        ):
            continue
        count += 1
        for field in MACRO_FIELDS:
            values[field].append(coerce_macro(getattr(entry, field, None)))

    return DailyNutritionSummary(
        day=window.day,
        calories=math.fsum(values["calories"]),
        protein=math.fsum(values["protein"]),
        carbohydrates=math.fsum(values["carbohydrates"]),
        fats=math.fsum(values["fats"]),
        sugar=math.fsum(values["sugar"]),
        sodium=math.fsum(values["sodium"]),
        entry_count=count,
    )


def coerce_macro(value: object) -> float:
    """Convert a stored macro value to a non-negative float, or zero."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number

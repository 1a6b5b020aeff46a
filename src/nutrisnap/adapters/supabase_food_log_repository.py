"""Supabase repository for food logs."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrisnap.domain.food_logs import FoodLogEntry
from nutrisnap.errors import PersistenceError
from nutrisnap.services.ingestion import FoodLogRepository
from nutrisnap.services.stats import DailyLogRepository, coerce_macro

_COLUMNS = (
    "id, user_id, food_name, image_path, calories, protein, carbohydrates, fats, "
    "sugar, sodium, confidence_score, serving_size, captured_at"
)

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseFoodLogRepository(FoodLogRepository, DailyLogRepository):
    """Supabase implementation for the food_logs table."""

    client: Client

    def insert_food_log(self, entry: FoodLogEntry) -> None:
        """Upsert an entry keyed by id so retried inserts stay single."""
        try:
            response = (
                self.client.table("food_logs")
                .upsert(_serialize_entry(entry), on_conflict="id")
                .execute()
            )
        except Exception as exc:
            raise PersistenceError(
                f"Failed to save food log {entry.id}: {exc}"
            ) from exc
        if not response.data:
            raise PersistenceError(f"Failed to save food log {entry.id}")

    def list_food_logs(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[FoodLogEntry]:
        """Return entries in [start, end], newest first."""
        try:
            response = (
                self.client.table("food_logs")
                .select(_COLUMNS)
                .eq("user_id", str(user_id))
                .gte("captured_at", start.isoformat())
                .lte("captured_at", end.isoformat())
                .order("captured_at", desc=True)
                .execute()
            )
        except Exception as exc:
            raise PersistenceError(f"Failed to load food logs: {exc}") from exc
        entries = []
        for row in response.data or []:
            entry = _parse_row(row)
            if entry is not None:
                entries.append(entry)
        return entries


def _serialize_entry(entry: FoodLogEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "user_id": str(entry.user_id),
        "food_name": entry.food_name,
        "image_path": entry.image_ref,
        "calories": entry.calories,
        "protein": entry.protein,
        "carbohydrates": entry.carbohydrates,
        "fats": entry.fats,
        "sugar": entry.sugar,
        "sodium": entry.sodium,
        "confidence_score": entry.confidence_score,
        "serving_size": entry.serving_size,
        "captured_at": entry.captured_at.isoformat(),
    }


def _parse_row(row: dict[str, object]) -> FoodLogEntry | None:
    captured_at_raw = row.get("captured_at")
    try:
        captured_at = datetime.fromisoformat(str(captured_at_raw))
        entry_id = UUID(str(row["id"]))
        user_id = UUID(str(row["user_id"]))
    except (KeyError, ValueError):
        _logger.warning("Skipping malformed food log row: %s", row.get("id"))
        return None
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=UTC)
    serving_size = row.get("serving_size")
    return FoodLogEntry(
        id=entry_id,
        user_id=user_id,
        food_name=str(row.get("food_name") or ""),
        image_ref=str(row.get("image_path") or ""),
        calories=coerce_macro(row.get("calories")),
        protein=coerce_macro(row.get("protein")),
        carbohydrates=coerce_macro(row.get("carbohydrates")),
        fats=coerce_macro(row.get("fats")),
        sugar=coerce_macro(row.get("sugar")),
        sodium=coerce_macro(row.get("sodium")),
        confidence_score=coerce_macro(row.get("confidence_score")),
        serving_size=str(serving_size) if serving_size is not None else None,
        captured_at=captured_at,
    )

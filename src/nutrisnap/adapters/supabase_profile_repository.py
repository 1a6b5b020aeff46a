"""Supabase repository for user profiles."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrisnap.domain.goals import UserNutritionGoals
from nutrisnap.errors import PersistenceError
from nutrisnap.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for profile reads."""

    client: Client

    def get_goals(self, user_id: UUID) -> UserNutritionGoals | None:
        """Return the stored goals for a user."""
        row = self._fetch(
            user_id, "calorie_goal, protein_goal, carbs_goal, fats_goal"
        )
        if row is None:
            return None
        return UserNutritionGoals(
            calorie_goal=_goal_value(row.get("calorie_goal")),
            protein_goal=_goal_value(row.get("protein_goal")),
            carbs_goal=_goal_value(row.get("carbs_goal")),
            fats_goal=_goal_value(row.get("fats_goal")),
            user_id=user_id,
        )

    def get_timezone(self, user_id: UUID) -> str | None:
        """Return the stored timezone for a user."""
        row = self._fetch(user_id, "timezone")
        if row is None:
            return None
        return row.get("timezone")

    def upsert_goals(self, goals: UserNutritionGoals) -> None:
        """Create the profile row or replace its goals."""
        payload = {
            "user_id": str(goals.user_id),
            "calorie_goal": goals.calorie_goal,
            "protein_goal": goals.protein_goal,
            "carbs_goal": goals.carbs_goal,
            "fats_goal": goals.fats_goal,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        try:
            response = (
                self.client.table("profiles")
                .upsert(payload, on_conflict="user_id")
                .execute()
            )
        except Exception as exc:
            raise PersistenceError(
                f"Failed to save goals for {goals.user_id}: {exc}"
            ) from exc
        if not response.data:
            raise PersistenceError(f"Failed to save goals for {goals.user_id}")

    def _fetch(self, user_id: UUID, columns: str) -> dict[str, object] | None:
        try:
            response = (
                self.client.table("profiles")
                .select(columns)
                .eq("user_id", str(user_id))
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise PersistenceError(f"Failed to load profile {user_id}: {exc}") from exc
        if not response.data:
            return None
        return response.data[0]


def _goal_value(value: object) -> float:
    """Return a numeric goal, or 0 so defaults apply downstream."""
    if isinstance(value, int | float) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0

"""User profile service for goals and timezone."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from nutrisnap.domain.goals import DEFAULT_GOALS, UserNutritionGoals
from nutrisnap.errors import ValidationError
from nutrisnap.services.goals import is_positive_number, resolve_goals

_logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_goals(self, user_id: UUID) -> UserNutritionGoals | None:
        """Return the user's configured goals if a profile exists."""

    def get_timezone(self, user_id: UUID) -> str | None:
        """Return the user's timezone if set."""

    def upsert_goals(self, goals: UserNutritionGoals) -> None:
        """Create or replace the goals of ``goals.user_id``."""


@dataclass
class ProfileService:
    """Service resolving profile settings with defaults."""

    repository: ProfileRepository

    def get_goals(self, user_id: UUID) -> UserNutritionGoals:
        """Return the user's goals with defaults for missing or invalid targets."""
        goals = self.repository.get_goals(user_id)
        if goals is None:
            return DEFAULT_GOALS
        return resolve_goals(goals)

    def update_goals(
        self,
        user_id: UUID,
        calorie_goal: float | None = None,
        protein_goal: float | None = None,
        carbs_goal: float | None = None,
        fats_goal: float | None = None,
    ) -> UserNutritionGoals:
        """Save the user's goals; a blank target is saved as its default.

        Raises ValidationError for a target that is not a positive number.
        """
        values = {
            "calorie_goal": calorie_goal,
            "protein_goal": protein_goal,
            "carbs_goal": carbs_goal,
            "fats_goal": fats_goal,
        }
        resolved: dict[str, float] = {}
        for field, value in values.items():
            if value is None:
                resolved[field] = getattr(DEFAULT_GOALS, field)
            elif is_positive_number(value):
                resolved[field] = float(value)
            else:
                raise ValidationError(f"{field} must be a positive number")
        goals = UserNutritionGoals(user_id=user_id, **resolved)
        self.repository.upsert_goals(goals)
        _logger.info("Updated goals for user %s", user_id)
        return goals

    def get_timezone(self, user_id: UUID) -> str:
        """Return the user timezone or UTC if unset or unknown."""
        timezone_name = self.repository.get_timezone(user_id)
        if not timezone_name:
            return "UTC"
        if not is_valid_timezone(timezone_name):
            _logger.warning(
                "Unknown timezone %r for user %s, using UTC", timezone_name, user_id
            )
            return "UTC"
        return timezone_name


def is_valid_timezone(value: str) -> bool:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True

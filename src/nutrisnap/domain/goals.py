"""Domain models for nutrition goals and progress."""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from uuid import UUID


@dataclass(frozen=True)
class UserNutritionGoals:
    """Daily macro targets configured by a user."""

    calorie_goal: float
    protein_goal: float
    carbs_goal: float
    fats_goal: float
    user_id: UUID | None = None


DEFAULT_GOALS = UserNutritionGoals(
    calorie_goal=2000.0,
    protein_goal=50.0,
    carbs_goal=250.0,
    fats_goal=70.0,
)


@dataclass(frozen=True)
class MacroProgress:
    """Consumption of one macro relative to its goal."""

    consumed: float
    goal: float
    percent: float
    percent_clamped: float


class GoalAlertState(StrEnum):
    """States of the one-shot calorie goal alert."""

    NOT_SHOWN = "not_shown"
    SHOWN = "shown"


@dataclass(frozen=True)
class GoalAlertSnapshot:
    """Externally observable state of a goal-reached tracker."""

    state: GoalAlertState
    viewed_date: date | None

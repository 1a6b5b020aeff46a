"""Goal progress and the one-shot calorie goal alert."""

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from datetime import date
from uuid import UUID

from nutrisnap.domain.goals import (
    DEFAULT_GOALS,
    GoalAlertSnapshot,
    GoalAlertState,
    MacroProgress,
    UserNutritionGoals,
)
from nutrisnap.domain.stats import DailyNutritionSummary
from nutrisnap.errors import ConfigurationError

_logger = logging.getLogger(__name__)

# Progress key -> (summary field, goal field).
PROGRESS_FIELDS: dict[str, tuple[str, str]] = {
    "calories": ("calories", "calorie_goal"),
    "protein": ("protein", "protein_goal"),
    "carbohydrates": ("carbohydrates", "carbs_goal"),
    "fats": ("fats", "fats_goal"),
}

_GOAL_FIELDS = ("calorie_goal", "protein_goal", "carbs_goal", "fats_goal")


def resolve_goals(
    goals: UserNutritionGoals | None,
    defaults: UserNutritionGoals = DEFAULT_GOALS,
) -> UserNutritionGoals:
    """Substitute the default for every missing or non-positive goal."""
    if goals is None:
        return defaults
    substitutions: dict[str, float] = {}
    for goal_field in _GOAL_FIELDS:
        value = getattr(goals, goal_field)
        if not is_positive_number(value):
            substitutions[goal_field] = getattr(defaults, goal_field)
    if not substitutions:
        return goals
    _logger.warning(
        "Misconfigured goals for user %s, using defaults for: %s",
        goals.user_id,
        ", ".join(sorted(substitutions)),
    )
    return replace(goals, **substitutions)


def goal_progress(
    summary: DailyNutritionSummary, goals: UserNutritionGoals | None
) -> dict[str, MacroProgress]:
    """Return consumption against goals for calories and the three macros."""
    resolved = resolve_goals(goals)
    progress: dict[str, MacroProgress] = {}
    for key, (summary_field, goal_field) in PROGRESS_FIELDS.items():
        goal = float(getattr(resolved, goal_field))
        if goal <= 0:
            raise ConfigurationError(f"{goal_field} must be positive, got {goal}")
        consumed = float(getattr(summary, summary_field))
        percent = consumed / goal * 100
        progress[key] = MacroProgress(
            consumed=consumed,
            goal=goal,
            percent=percent,
            percent_clamped=min(percent, 100.0),
        )
    return progress


@dataclass
class GoalReachedTracker:
    """One-shot "calorie goal reached" signal for a date-viewing session.

    The signal fires at most once per selected date and only for today. Any
    change of the viewed date re-arms it.
    """

    state: GoalAlertState = GoalAlertState.NOT_SHOWN
    viewed_date: date | None = None

    def select_date(self, day: date) -> None:
        """Record the viewed date, resetting the alert when it changes."""
        if day != self.viewed_date:
            self.viewed_date = day
            self.state = GoalAlertState.NOT_SHOWN

    def observe(
        self,
        summary: DailyNutritionSummary,
        goals: UserNutritionGoals | None,
        today: date,
    ) -> bool:
        """Return True exactly when this observation fires the alert."""
        self.select_date(summary.day)
        if summary.day != today or self.state is GoalAlertState.SHOWN:
            return False
        calorie_goal = resolve_goals(goals).calorie_goal
        if summary.calories >= calorie_goal:
            self.state = GoalAlertState.SHOWN
            return True
        return False

    def snapshot(self) -> GoalAlertSnapshot:
        """Return the current state."""
        return GoalAlertSnapshot(state=self.state, viewed_date=self.viewed_date)


def is_positive_number(value: object) -> bool:
    """Return True for a finite number above zero."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value) and value > 0


@dataclass
class GoalTrackerRegistry:
    """Per-user goal trackers, evicting the least recently used past capacity."""

    capacity: int = 10_000
    _trackers: OrderedDict[UUID, GoalReachedTracker] = field(
        default_factory=OrderedDict
    )

    def get(self, user_id: UUID) -> GoalReachedTracker:
        """Return the user's tracker, creating it when absent."""
        tracker = self._trackers.get(user_id)
        if tracker is None:
            tracker = GoalReachedTracker()
            self._trackers[user_id] = tracker
            while len(self._trackers) > self.capacity:
                evicted, _ = self._trackers.popitem(last=False)
                _logger.debug("Evicted goal tracker for user %s", evicted)
        else:
            self._trackers.move_to_end(user_id)
        return tracker

    def __len__(self) -> int:
        return len(self._trackers)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._trackers

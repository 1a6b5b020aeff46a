"""Tests for goal progress, profile defaults and the goal-reached alert."""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from nutrisnap.domain.goals import DEFAULT_GOALS, GoalAlertState, UserNutritionGoals
from nutrisnap.domain.stats import DailyNutritionSummary
from nutrisnap.errors import PersistenceError, ValidationError
from nutrisnap.services.goals import (
    GoalReachedTracker,
    GoalTrackerRegistry,
    goal_progress,
    resolve_goals,
)
from nutrisnap.services.profiles import ProfileService
from tests.conftest import BrokenProfileRepository, InMemoryProfileRepository

TODAY = date(2024, 6, 2)


def _summary(day: date = TODAY, **values: float) -> DailyNutritionSummary:
    totals = {
        "calories": 0.0,
        "protein": 0.0,
        "carbohydrates": 0.0,
        "fats": 0.0,
        "sugar": 0.0,
        "sodium": 0.0,
    }
    totals.update(values)
    return DailyNutritionSummary(day=day, **totals)


def test_goal_progress_reports_raw_and_clamped_percent() -> None:
    progress = goal_progress(_summary(calories=2500, protein=25), DEFAULT_GOALS)

    assert progress["calories"].percent == 125
    assert progress["calories"].percent_clamped == 100
    assert progress["calories"].goal == 2000
    assert progress["protein"].percent == 50
    assert progress["protein"].percent_clamped == 50
    assert set(progress) == {"calories", "protein", "carbohydrates", "fats"}


def test_goal_progress_uses_defaults_without_goals() -> None:
    progress = goal_progress(_summary(carbohydrates=125), None)

    assert progress["carbohydrates"].goal == 250
    assert progress["carbohydrates"].percent == 50


@pytest.mark.parametrize("bad_value", [0, -100, float("nan"), True])
def test_resolve_goals_substitutes_invalid_targets(bad_value) -> None:
    goals = UserNutritionGoals(
        calorie_goal=bad_value, protein_goal=120, carbs_goal=200, fats_goal=60
    )

    resolved = resolve_goals(goals)

    assert resolved.calorie_goal == DEFAULT_GOALS.calorie_goal
    assert resolved.protein_goal == 120
    assert resolved.carbs_goal == 200
    assert resolved.fats_goal == 60


def test_resolve_goals_keeps_valid_goals() -> None:
    goals = UserNutritionGoals(
        calorie_goal=1800, protein_goal=90, carbs_goal=180, fats_goal=55
    )

    assert resolve_goals(goals) is goals


def test_tracker_fires_once_when_goal_reached_today() -> None:
    tracker = GoalReachedTracker()

    assert not tracker.observe(_summary(calories=1500), DEFAULT_GOALS, TODAY)
    assert tracker.observe(_summary(calories=2000), DEFAULT_GOALS, TODAY)
    assert not tracker.observe(_summary(calories=2400), DEFAULT_GOALS, TODAY)

    snapshot = tracker.snapshot()
    assert snapshot.state is GoalAlertState.SHOWN
    assert snapshot.viewed_date == TODAY


def test_tracker_never_fires_for_past_days() -> None:
    tracker = GoalReachedTracker()
    yesterday = TODAY - timedelta(days=1)

    assert not tracker.observe(
        _summary(day=yesterday, calories=3000), DEFAULT_GOALS, TODAY
    )
    assert tracker.snapshot().state is GoalAlertState.NOT_SHOWN


def test_tracker_rearms_when_viewed_date_changes() -> None:
    tracker = GoalReachedTracker()
    yesterday = TODAY - timedelta(days=1)

    assert tracker.observe(_summary(calories=2100), DEFAULT_GOALS, TODAY)
    tracker.observe(_summary(day=yesterday, calories=2100), DEFAULT_GOALS, TODAY)
    assert tracker.snapshot().state is GoalAlertState.NOT_SHOWN

    assert tracker.observe(_summary(calories=2100), DEFAULT_GOALS, TODAY)


def test_tracker_uses_user_calorie_goal() -> None:
    tracker = GoalReachedTracker()
    goals = UserNutritionGoals(
        calorie_goal=1500, protein_goal=50, carbs_goal=250, fats_goal=70
    )

    assert tracker.observe(_summary(calories=1500), goals, TODAY)


def test_profile_service_defaults_without_profile() -> None:
    service = ProfileService(InMemoryProfileRepository())

    assert service.get_goals(uuid4()) == DEFAULT_GOALS
    assert service.get_timezone(uuid4()) == "UTC"


def test_profile_service_resolves_partial_goals() -> None:
    user_id = uuid4()
    repo = InMemoryProfileRepository()
    repo.goals[user_id] = UserNutritionGoals(
        calorie_goal=2200,
        protein_goal=0,
        carbs_goal=300,
        fats_goal=80,
        user_id=user_id,
    )

    goals = ProfileService(repo).get_goals(user_id)

    assert goals.calorie_goal == 2200
    assert goals.protein_goal == DEFAULT_GOALS.protein_goal


def test_profile_service_timezone_validation() -> None:
    user_id = uuid4()
    other_id = uuid4()
    repo = InMemoryProfileRepository()
    repo.timezones[user_id] = "Asia/Kolkata"
    repo.timezones[other_id] = "Mars/Olympus"
    service = ProfileService(repo)

    assert service.get_timezone(user_id) == "Asia/Kolkata"
    assert service.get_timezone(other_id) == "UTC"


def test_profile_service_propagates_read_failures() -> None:
    service = ProfileService(BrokenProfileRepository())

    with pytest.raises(PersistenceError):
        service.get_goals(uuid4())


def test_update_goals_saves_targets_and_defaults() -> None:
    repository = InMemoryProfileRepository()
    user_id = uuid4()

    goals = ProfileService(repository).update_goals(
        user_id, calorie_goal=1800, protein_goal=90
    )

    assert goals == UserNutritionGoals(
        calorie_goal=1800,
        protein_goal=90,
        carbs_goal=DEFAULT_GOALS.carbs_goal,
        fats_goal=DEFAULT_GOALS.fats_goal,
        user_id=user_id,
    )
    assert repository.goals[user_id] == goals
    assert ProfileService(repository).get_goals(user_id) == goals


@pytest.mark.parametrize("bad_value", [0, -5.0, float("nan"), float("inf")])
def test_update_goals_rejects_non_positive_targets(bad_value) -> None:
    repository = InMemoryProfileRepository()

    with pytest.raises(ValidationError, match="fats_goal"):
        ProfileService(repository).update_goals(uuid4(), fats_goal=bad_value)

    assert repository.goals == {}


def test_update_goals_propagates_write_failures() -> None:
    with pytest.raises(PersistenceError):
        ProfileService(BrokenProfileRepository()).update_goals(uuid4())


def test_tracker_registry_reuses_tracker_per_user() -> None:
    registry = GoalTrackerRegistry(capacity=10)
    user_id = uuid4()

    tracker = registry.get(user_id)

    assert registry.get(user_id) is tracker
    assert registry.get(uuid4()) is not tracker
    assert len(registry) == 2


def test_tracker_registry_evicts_least_recently_used() -> None:
    registry = GoalTrackerRegistry(capacity=2)
    first, second, third = uuid4(), uuid4(), uuid4()
    registry.get(first)
    registry.get(second)
    registry.get(first)

    registry.get(third)

    assert len(registry) == 2
    assert first in registry
    assert second not in registry
    assert third in registry

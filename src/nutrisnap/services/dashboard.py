"""Daily dashboard view combining summary, goals and suggestions."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from nutrisnap.domain.advisories import Advisory, LimitStatus
from nutrisnap.domain.food_logs import FoodLogEntry
from nutrisnap.domain.goals import MacroProgress, UserNutritionGoals
from nutrisnap.domain.stats import DailyNutritionSummary
from nutrisnap.errors import ValidationError
from nutrisnap.services.goals import GoalReachedTracker, goal_progress
from nutrisnap.services.ingestion import BlobStore
from nutrisnap.services.profiles import ProfileService
from nutrisnap.services.stats import DailySummaryService
from nutrisnap.services.suggestions import evaluate, limit_status


@dataclass(frozen=True)
class DailyView:
    """Everything needed to render one day of intake."""

    day: date
    is_today: bool
    timezone: str
    summary: DailyNutritionSummary
    goals: UserNutritionGoals
    progress: dict[str, MacroProgress]
    advisories: list[Advisory]
    limits: dict[str, LimitStatus]
    entries: list[FoodLogEntry]
    image_urls: dict[UUID, str]
    goal_reached: bool


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class DashboardService:
    """Builds daily views from the log store and the user's profile."""

    summary_service: DailySummaryService
    profile_service: ProfileService
    blob_store: BlobStore
    clock: Callable[[], datetime] = _utc_now

    def view_day(
        self,
        user_id: UUID,
        day: date | None = None,
        tracker: GoalReachedTracker | None = None,
    ) -> DailyView:
        """Return the daily view for a date, defaulting to today.

        When a tracker is given, it decides whether the calorie goal alert
        fires for this view.
        """
        timezone_name = self.profile_service.get_timezone(user_id)
        tz = ZoneInfo(timezone_name)
        today = self.clock().astimezone(tz).date()
        selected = day or today
        if selected > today:
            raise ValidationError(f"Cannot view a future date: {selected}")

        goals = self.profile_service.get_goals(user_id)
        summary, entries = self.summary_service.get_day(user_id, selected, tz)
        goal_reached = (
            tracker.observe(summary, goals, today) if tracker is not None else False
        )
        return DailyView(
            day=selected,
            is_today=selected == today,
            timezone=timezone_name,
            summary=summary,
            goals=goals,
            progress=goal_progress(summary, goals),
            advisories=evaluate(summary, goals),
            limits=limit_status(summary),
            entries=entries,
            image_urls={
                entry.id: self.blob_store.url_of(entry.image_ref) for entry in entries
            },
            goal_reached=goal_reached,
        )

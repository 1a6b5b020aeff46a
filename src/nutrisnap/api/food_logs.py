"""Food log and daily view endpoints with shared token auth."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutrisnap.api.models import GoalsUpdate  # noqa: TC001
from nutrisnap.errors import (
    IngestionError,
    PersistenceError,
    StageTimeoutError,
    ValidationError,
)

if TYPE_CHECKING:
    from nutrisnap.containers import AppContainer
    from nutrisnap.domain.food_logs import FoodLogEntry
    from nutrisnap.domain.goals import UserNutritionGoals
    from nutrisnap.services.dashboard import DailyView
    from nutrisnap.services.goals import GoalTrackerRegistry

router = APIRouter(prefix="/users", tags=["food-logs"])


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_api_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include the service API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.post(
    "/{user_id}/food-logs",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_token)],
)
async def submit_food_log(user_id: UUID, request: Request) -> dict[str, object]:
    """Analyze an uploaded food image and log it."""
    container: AppContainer = request.app.state.container
    image_bytes = await request.body()
    try:
        entry = await container.ingestion_pipeline.submit_food_image(
            user_id, image_bytes, request.headers.get("content-type")
        )
    except IngestionError as exc:
        raise HTTPException(
            status_code=_ingestion_status(exc),
            detail={
                "stage": str(exc.stage),
                "error": type(exc.cause).__name__,
                "message": str(exc.cause),
            },
        ) from exc
    image_url = container.blob_store.url_of(entry.image_ref)
    return {"entry": _serialize_entry(entry, image_url)}


@router.get("/{user_id}/today", dependencies=[Depends(require_api_token)])
async def view_today(user_id: UUID, request: Request) -> dict[str, object]:
    """Return today's intake, goal progress and suggestions."""
    return _daily_view(request, user_id, None)


@router.get("/{user_id}/days/{day}", dependencies=[Depends(require_api_token)])
async def view_day(
    user_id: UUID, day: date, request: Request
) -> dict[str, object]:
    """Return a day's intake, goal progress and suggestions."""
    return _daily_view(request, user_id, day)


@router.put("/{user_id}/goals", dependencies=[Depends(require_api_token)])
async def update_goals(
    user_id: UUID, payload: GoalsUpdate, request: Request
) -> dict[str, object]:
    """Save the user's daily calorie and macro targets."""
    container: AppContainer = request.app.state.container
    try:
        goals = container.profile_service.update_goals(
            user_id,
            calorie_goal=payload.calorie_goal,
            protein_goal=payload.protein_goal,
            carbs_goal=payload.carbs_goal,
            fats_goal=payload.fats_goal,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return {"goals": _serialize_goals(goals)}


def _daily_view(
    request: Request, user_id: UUID, day: date | None
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    trackers: GoalTrackerRegistry = request.app.state.goal_trackers
    tracker = trackers.get(user_id)
    try:
        view = container.dashboard_service.view_day(user_id, day, tracker)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return _serialize_view(view)


def _serialize_goals(goals: UserNutritionGoals) -> dict[str, object]:
    return {
        "calorie_goal": goals.calorie_goal,
        "protein_goal": goals.protein_goal,
        "carbs_goal": goals.carbs_goal,
        "fats_goal": goals.fats_goal,
    }


def _ingestion_status(exc: IngestionError) -> int:
    if isinstance(exc.cause, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc.cause, StageTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    return status.HTTP_502_BAD_GATEWAY


def _serialize_entry(
    entry: FoodLogEntry, image_url: str | None
) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "food_name": entry.food_name,
        "image_url": image_url,
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


def _serialize_view(view: DailyView) -> dict[str, object]:
    summary = view.summary
    return {
        "day": view.day.isoformat(),
        "is_today": view.is_today,
        "timezone": view.timezone,
        "summary": {
            "calories": summary.calories,
            "protein": summary.protein,
            "carbohydrates": summary.carbohydrates,
            "fats": summary.fats,
            "sugar": summary.sugar,
            "sodium": summary.sodium,
            "entry_count": summary.entry_count,
        },
        "progress": {
            macro: {
                "consumed": item.consumed,
                "goal": item.goal,
                "percent": item.percent,
                "percent_clamped": item.percent_clamped,
            }
            for macro, item in view.progress.items()
        },
        "advisories": [
            {
                "kind": str(advisory.kind),
                "title": advisory.title,
                "message": advisory.message,
            }
            for advisory in view.advisories
        ],
        "limits": {
            name: {
                "consumed": limit.consumed,
                "limit": limit.limit,
                "exceeded": limit.exceeded,
            }
            for name, limit in view.limits.items()
        },
        "entries": [
            _serialize_entry(entry, view.image_urls.get(entry.id))
            for entry in view.entries
        ],
        "goal_reached": view.goal_reached,
    }

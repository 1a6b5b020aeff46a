"""Pydantic models for request payloads."""

from pydantic import BaseModel


class GoalsUpdate(BaseModel):
    """Daily targets to save; an omitted target is saved as its default."""

    calorie_goal: float | None = None
    protein_goal: float | None = None
    carbs_goal: float | None = None
    fats_goal: float | None = None

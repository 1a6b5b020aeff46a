"""Models for food analysis results."""

from pydantic import BaseModel, ConfigDict, Field


class NutritionEstimate(BaseModel):
    """Estimated nutrition for the pictured portion."""

    calories: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    carbohydrates: float = Field(ge=0.0)
    fats: float = Field(ge=0.0)
    sugar: float = Field(ge=0.0)
    sodium: float = Field(ge=0.0)


class FoodAnalysis(BaseModel):
    """Structured output of the food classifier."""

    model_config = ConfigDict(populate_by_name=True)

    food_name: str = Field(alias="foodName", min_length=1)
    nutrition: NutritionEstimate
    confidence: float = Field(ge=0.0, le=1.0)
    serving_size: str | None = Field(default=None, alias="servingSize")

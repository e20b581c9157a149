"""
Pydantic schemas for the AI endpoints.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

MIN_RECIPE_COUNT = 1
MAX_RECIPE_COUNT = 10


def _clamp_count(value: Any, default: int) -> int:
    if not value:
        return default
    return min(max(int(value), MIN_RECIPE_COUNT), MAX_RECIPE_COUNT)


class ConsultationRequest(BaseModel):
    """Request model for AI consultation."""
    message: str = Field(..., description="Question from the parent")
    baby_month: int = Field(6, ge=0, le=36, description="Baby's age in months")
    allergens: List[str] = Field(default_factory=list, description="Allergens to avoid")
    history: List[Dict[str, Any]] = Field(default_factory=list, description="Prior turns: {role, content}")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message is required")
        return value

    @field_validator("allergens", "history", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or []


class GenerateRecipeRequest(BaseModel):
    """Request model for original recipe generation."""
    baby_month: int = Field(..., ge=5, le=18, description="Baby's age in months (5-18)")
    allergens: List[str] = Field(default_factory=list)
    preference: Optional[str] = Field(None, description="Free-text preference, e.g. 甘め")
    meal_type: Optional[str] = Field(None, description="e.g. 朝ごはん, おやつ")
    count: int = Field(3, description="Number of recipes, clamped to 1-10")

    @field_validator("allergens", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or []

    @field_validator("count", mode="before")
    @classmethod
    def clamp_count(cls, value):
        return _clamp_count(value, 3)

    class Config:
        json_schema_extra = {
            "example": {
                "baby_month": 7,
                "allergens": ["卵"],
                "preference": "甘め",
                "meal_type": "朝ごはん",
                "count": 3,
            }
        }


class SearchRecipeRequest(BaseModel):
    """Request model for ingredient-based recipe search."""
    ingredients: List[str] = Field(..., min_length=1, description="At least one ingredient")
    baby_month: int = Field(..., ge=5, le=18, description="Baby's age in months (5-18)")
    allergens: List[str] = Field(default_factory=list)
    count: int = Field(5, description="Number of recipes, clamped to 1-10")
    exclude_titles: List[str] = Field(default_factory=list, description="Titles already shown")

    @field_validator("allergens", "exclude_titles", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or []

    @field_validator("count", mode="before")
    @classmethod
    def clamp_count(cls, value):
        return _clamp_count(value, 5)

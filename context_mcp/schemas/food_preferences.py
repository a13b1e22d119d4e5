"""Pydantic models for default and per-location food preferences."""

from datetime import datetime
from enum import Enum

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from context_mcp.schemas.base import CamelModel


class FoodCategory(str, Enum):
    ITALIAN = "italian"
    CHINESE = "chinese"
    MEXICAN = "mexican"
    AMERICAN = "american"
    INDIAN = "indian"
    JAPANESE = "japanese"
    THAI = "thai"
    MEDITERRANEAN = "mediterranean"
    FAST_FOOD = "fast_food"
    HEALTHY = "healthy"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    PIZZA = "pizza"
    SEAFOOD = "seafood"
    BBQ = "bbq"
    COFFEE = "coffee"
    DESSERT = "dessert"


class PreferenceLevel(str, Enum):
    LOVE = "love"
    LIKE = "like"
    NEUTRAL = "neutral"
    DISLIKE = "dislike"
    HATE = "hate"

    @property
    def score(self) -> int:
        """Ordinal used for display and scoring (love=5 ... hate=1)."""
        return _LEVEL_SCORES[self]


_LEVEL_SCORES = {
    PreferenceLevel.LOVE: 5,
    PreferenceLevel.LIKE: 4,
    PreferenceLevel.NEUTRAL: 3,
    PreferenceLevel.DISLIKE: 2,
    PreferenceLevel.HATE: 1,
}


class FoodPreference(BaseModel):
    category: FoodCategory = Field(description="Food category.")
    level: PreferenceLevel = Field(description="Preference level for this category.")


def _unique_categories(preferences: list[FoodPreference]) -> list[FoodPreference]:
    seen: set[FoodCategory] = set()
    for preference in preferences:
        if preference.category in seen:
            raise ValueError(f"Duplicate food category: {preference.category.value}")
        seen.add(preference.category)
    return preferences


class FoodPreferenceSet(CamelModel):
    preferences: Annotated[list[FoodPreference], AfterValidator(_unique_categories)] = Field(
        description="One entry per food category."
    )
    updated_at: datetime | None = Field(
        None, description="Last write time; null for the implicit all-neutral default."
    )


class EffectiveFoodPreferenceSet(FoodPreferenceSet):
    """Derived, never persisted: defaults merged with a location override."""

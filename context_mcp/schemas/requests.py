"""Request bodies accepted by the REST adapter."""

from pydantic import BaseModel, Field

from context_mcp.schemas.food_preferences import FoodCategory, FoodPreference, PreferenceLevel
from context_mcp.schemas.locations import (
    Coordinates,
    LocationCategory,
    LocationFeature,
    SystemLocationType,
)


class CreateSystemLocationRequest(BaseModel):
    location_type: SystemLocationType
    address: str
    coordinates: Coordinates
    nickname: str | None = None
    notes: str | None = None


class CreateCustomLocationRequest(BaseModel):
    location_name: str = Field(description="Free-form name, normalized into the location key.")
    address: str
    coordinates: Coordinates
    nickname: str
    category: LocationCategory
    features: list[LocationFeature]
    parent_category: LocationCategory | None = None
    notes: str | None = None


class SetFoodPreferencesRequest(BaseModel):
    preferences: list[FoodPreference]


class UpdateFoodPreferenceRequest(BaseModel):
    category: FoodCategory
    level: PreferenceLevel

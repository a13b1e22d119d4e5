"""Pydantic response models shared by the tool servers and the REST adapter."""

from typing import Any

from pydantic import BaseModel, Field

from context_mcp.schemas.base import CamelModel
from context_mcp.schemas.food_preferences import FoodPreferenceSet


class OperationResult(CamelModel):
    success: bool = Field(description="Whether the operation succeeded.")
    message: str = Field(description="Human-readable outcome.")


class LocationFoodPreferencesResponse(CamelModel):
    location_key: str = Field(description="Location the override belongs to.")
    has_override: bool = Field(description="Whether an override set exists for the location.")
    food_preferences: FoodPreferenceSet | None = Field(
        None, description="Override set; null means the defaults apply."
    )


class ApiResponse(BaseModel):
    """Uniform REST envelope."""

    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None

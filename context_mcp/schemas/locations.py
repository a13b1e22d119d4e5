"""Pydantic models and static configuration for user locations."""

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from context_mcp.errors import ValidationError
from context_mcp.schemas.base import CamelModel

USER_DEFINED_PREFIX = "user_defined."

_SLUG_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_SLUG_PATTERN = re.compile(r"^[a-z0-9_]+$")


class SystemLocationType(str, Enum):
    HOME = "home"
    WORK = "work"
    GYM = "gym"
    SCHOOL = "school"


class LocationCategory(str, Enum):
    RESIDENCE = "residence"
    WORKPLACE = "workplace"
    FITNESS = "fitness"
    EDUCATION = "education"
    SOCIAL = "social"
    TRAVEL = "travel"
    OTHER = "other"


class LocationFeature(str, Enum):
    FOOD_PREFERENCES = "food_preferences"
    DELIVERY_SUPPORT = "delivery_support"
    SCHEDULING = "scheduling"
    BUDGET_TRACKING = "budget_tracking"
    RESTAURANT_FAVORITES = "restaurant_favorites"
    QUICK_ACCESS = "quick_access"


class LocationFilter(str, Enum):
    ALL = "all"
    SYSTEM = "system"
    CUSTOM = "custom"


# --- Inputs ---


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90, description="Latitude coordinate.")
    lng: float = Field(ge=-180, le=180, description="Longitude coordinate.")


class LocationUpdate(BaseModel):
    """Partial update; only fields that are set are merged into the location."""

    address: str | None = Field(None, description="Updated address.")
    coordinates: Coordinates | None = Field(None, description="Updated coordinates.")
    nickname: str | None = Field(None, description="Updated nickname.")
    category: LocationCategory | None = Field(None, description="Updated category.")
    features: list[LocationFeature] | None = Field(None, description="Updated features.")
    notes: str | None = Field(None, description="Updated notes.")


# --- Stored / returned entities ---


class LocationData(CamelModel):
    """Payload persisted for a location record."""

    address: str = Field(description="Full address of the location.")
    coordinates: Coordinates = Field(description="Geographic coordinates.")
    nickname: str = Field(description="Display name of the location.")
    category: LocationCategory = Field(description="Location category.")
    features: list[LocationFeature] = Field(description="Capabilities enabled at this location.")
    is_system_location: bool = Field(description="Whether this is a home/work/gym/school location.")
    parent_category: LocationCategory | None = Field(
        None, description="Reserved parent category; not used for preference resolution."
    )
    notes: str | None = Field(None, description="Free-form notes.")
    created_at: datetime = Field(description="Creation timestamp.")
    last_used_at: datetime = Field(description="Last time the location was used or updated.")


class Location(LocationData):
    location_key: str = Field(description="Location key (e.g. home, user_defined.moms_house).")
    user_id: str = Field(description="Owner of the location.")


class LocationListResponse(CamelModel):
    count: int = Field(description="Number of locations returned.")
    locations: list[Location] = Field(description="List of locations.")


class AvailableSystemLocationsResponse(CamelModel):
    count: int = Field(description="Number of system location types still available.")
    location_types: list[SystemLocationType] = Field(
        description="System location types not yet created for the user."
    )


# --- System location configuration ---


class BudgetRange(BaseModel):
    min: float
    max: float


class SystemLocationConfig(BaseModel):
    category: LocationCategory
    features: list[LocationFeature]
    display_name: str
    description: str
    default_budget_range: BudgetRange | None = None


SYSTEM_LOCATION_CONFIGS: dict[SystemLocationType, SystemLocationConfig] = {
    SystemLocationType.HOME: SystemLocationConfig(
        category=LocationCategory.RESIDENCE,
        features=[
            LocationFeature.FOOD_PREFERENCES,
            LocationFeature.DELIVERY_SUPPORT,
            LocationFeature.SCHEDULING,
            LocationFeature.BUDGET_TRACKING,
            LocationFeature.RESTAURANT_FAVORITES,
            LocationFeature.QUICK_ACCESS,
        ],
        display_name="Home",
        description="Your primary residence",
        default_budget_range=BudgetRange(min=10, max=100),
    ),
    SystemLocationType.WORK: SystemLocationConfig(
        category=LocationCategory.WORKPLACE,
        features=[
            LocationFeature.FOOD_PREFERENCES,
            LocationFeature.SCHEDULING,
            LocationFeature.BUDGET_TRACKING,
            LocationFeature.RESTAURANT_FAVORITES,
            LocationFeature.QUICK_ACCESS,
        ],
        display_name="Work",
        description="Your primary workplace",
        default_budget_range=BudgetRange(min=5, max=25),
    ),
    SystemLocationType.GYM: SystemLocationConfig(
        category=LocationCategory.FITNESS,
        features=[LocationFeature.FOOD_PREFERENCES, LocationFeature.QUICK_ACCESS],
        display_name="Gym",
        description="Your fitness center",
        default_budget_range=BudgetRange(min=5, max=20),
    ),
    SystemLocationType.SCHOOL: SystemLocationConfig(
        category=LocationCategory.EDUCATION,
        features=[
            LocationFeature.FOOD_PREFERENCES,
            LocationFeature.SCHEDULING,
            LocationFeature.BUDGET_TRACKING,
            LocationFeature.QUICK_ACCESS,
        ],
        display_name="School",
        description="Your educational institution",
        default_budget_range=BudgetRange(min=5, max=15),
    ),
}


# --- Location key helpers ---


def normalize_slug(name: str) -> str:
    """Lower-case a custom location name and replace anything outside [a-z0-9_]."""
    slug = _SLUG_INVALID_CHARS.sub("_", name.strip().lower())
    if not slug or not slug.strip("_"):
        raise ValidationError(f"Invalid location name: {name!r}")
    return slug


def custom_location_key(name: str) -> str:
    return USER_DEFINED_PREFIX + normalize_slug(name)


def is_system_location_key(location_key: str) -> bool:
    return location_key in {t.value for t in SystemLocationType}


def parse_location_key(location_key: str) -> str:
    """Validate a location key against the home|work|gym|school|user_defined.<slug> grammar."""
    if is_system_location_key(location_key):
        return location_key
    if location_key.startswith(USER_DEFINED_PREFIX):
        slug = location_key[len(USER_DEFINED_PREFIX):]
        if _SLUG_PATTERN.match(slug):
            return location_key
    raise ValidationError(f"Invalid location key format: {location_key!r}")

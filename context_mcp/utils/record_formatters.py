"""Mapping helpers between store records and domain models."""

from context_mcp.schemas.food_preferences import FoodPreferenceSet
from context_mcp.schemas.locations import Location, LocationData
from context_mcp.schemas.records import Record
from context_mcp.storage.keys import location_key_from_record_key


def format_location(record: Record) -> Location:
    """Format a location record into a Location model."""
    data = LocationData.model_validate(record.payload)
    return Location(
        location_key=location_key_from_record_key(record.key),
        user_id=record.owner,
        **data.model_dump(by_alias=False),
    )


def format_locations(records: list[Record]) -> list[Location]:
    return [format_location(record) for record in records]


def format_food_preference_set(record: Record) -> FoodPreferenceSet:
    """Format a food preference record; falls back to the record timestamp."""
    preference_set = FoodPreferenceSet.model_validate(record.payload)
    if preference_set.updated_at is None:
        preference_set.updated_at = record.updated_at
    return preference_set

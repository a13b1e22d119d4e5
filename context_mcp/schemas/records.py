"""Generic (owner, key) record persisted by the key-value store."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RecordType(str, Enum):
    LOCATION = "location"
    FOOD_PREFERENCES = "food_preferences"


class Record(BaseModel):
    owner: str = Field(description="User namespace the record belongs to.")
    key: str = Field(description="Namespaced record key, unique per owner.")
    payload: dict[str, Any] = Field(description="Record-type specific JSON payload.")
    record_type: RecordType = Field(description="Entity discriminant.")
    location_tag: str | None = Field(None, description="Location key the record belongs to.")
    created_at: datetime = Field(description="Creation timestamp.")
    updated_at: datetime = Field(description="Last write timestamp.")

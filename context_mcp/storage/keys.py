"""Record key grammar shared by every store backend.

    location.<LocationKey>
    food_preferences.default
    food_preferences.location.<LocationKey>
"""

LOCATION_KEY_PREFIX = "location."
DEFAULT_FOOD_PREFERENCES_KEY = "food_preferences.default"
LOCATION_FOOD_PREFERENCES_PREFIX = "food_preferences.location."


def location_record_key(location_key: str) -> str:
    return LOCATION_KEY_PREFIX + location_key


def location_food_preferences_key(location_key: str) -> str:
    return LOCATION_FOOD_PREFERENCES_PREFIX + location_key


def location_key_from_record_key(record_key: str) -> str:
    """Strip the ``location.`` prefix ("location.user_defined.x" -> "user_defined.x")."""
    if record_key.startswith(LOCATION_KEY_PREFIX):
        return record_key[len(LOCATION_KEY_PREFIX):]
    return record_key

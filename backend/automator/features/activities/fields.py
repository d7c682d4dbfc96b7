"""
Formatting of fields updated by recipes.

Each known field name maps to a function returning the JSON value
stored on the processed activity record.
"""

import logging
from typing import Any, Callable

from automator.features.strava.types import Activity

logger = logging.getLogger(__name__)


def _format_gear(activity: Activity) -> str:
    gear = activity.gear
    if gear is None or gear.id == "none":
        return "None"
    return f"{gear.name} ({gear.id})"


FIELD_FORMATTERS: dict[str, Callable[[Activity], Any]] = {
    "name": lambda a: a.name,
    "description": lambda a: a.description,
    "privateNote": lambda a: a.private_note,
    "type": lambda a: a.type,
    "sportType": lambda a: a.sport_type,
    "workoutType": lambda a: a.workout_type,
    "commute": lambda a: a.commute,
    "trainer": lambda a: a.trainer,
    "hideHome": lambda a: a.hide_home,
    "private": lambda a: a.private,
    "gear": _format_gear,
}


def format_updated_fields(activity: Activity) -> dict[str, Any]:
    """
    Map each updated field of the activity to its new value.

    Unknown field names are skipped.
    """
    result: dict[str, Any] = {}
    for field_name in activity.updated_fields:
        formatter = FIELD_FORMATTERS.get(field_name)
        if formatter is None:
            logger.warning(f"Activity {activity.id}: unknown updated field {field_name}, skipped")
            continue
        result[field_name] = formatter(activity)
    return result


def unique_fields(fields: list[str]) -> list[str]:
    """Remove duplicates, keeping the first occurrence order."""
    return list(dict.fromkeys(fields))

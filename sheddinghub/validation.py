"""Validation helpers for user-entered device data."""

import math
from typing import Any, Dict, Optional

from sheddinghub.errors import DeviceValidationError
from sheddinghub.models import DeviceType

DEFAULT_HOURS_PER_DAY = 8.0


def _required(value: Any, field: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise DeviceValidationError("Please fill all required fields", field=field)
    return text


def parse_power(value: Any) -> float:
    """Rated power must parse as a positive number of watts."""
    text = _required(value, "rated_power_w")
    try:
        power = float(text)
    except ValueError:
        raise DeviceValidationError("Power usage must be a positive number", field="rated_power_w")
    if not math.isfinite(power) or power <= 0:
        raise DeviceValidationError("Power usage must be a positive number", field="rated_power_w")
    return power


def parse_hours(value: Any) -> float:
    """Hours per day fall back to 8 when missing, unparseable or out of 0..24."""
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return DEFAULT_HOURS_PER_DAY
    if not math.isfinite(hours) or hours <= 0 or hours > 24:
        return DEFAULT_HOURS_PER_DAY
    return hours


def parse_type(value: Any) -> DeviceType:
    text = _required(value, "type").lower().replace(" ", "_")
    try:
        return DeviceType(text)
    except ValueError:
        raise DeviceValidationError(f"Unknown device type: {value}", field="type")


def validate_device_input(name: Any, type: Any, room: Any, rated_power_w: Any,
                          average_hours_per_day: Optional[Any] = None) -> Dict[str, Any]:
    """
    Check raw form input for a new or edited device.

    Returns normalised field values ready for the repository; raises
    DeviceValidationError before anything is written.
    """
    return {
        "name": _required(name, "name"),
        "type": parse_type(type),
        "room": _required(room, "room"),
        "rated_power_w": parse_power(rated_power_w),
        "average_hours_per_day": parse_hours(average_hours_per_day),
    }

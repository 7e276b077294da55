# sheddinghub/engine/categorizer.py
from typing import Iterable, List, Optional, Sequence

from sheddinghub.models import Device, DeviceCategories

DEFAULT_ESSENTIAL_TYPES = ("refrigerator", "router", "camera")
DEFAULT_HIGH_USAGE_THRESHOLD_W = 300.0


def is_essential(device: Device, essential_types: Iterable[str] = DEFAULT_ESSENTIAL_TYPES) -> bool:
    return device.type.value in essential_types


def is_high_usage(device: Device, threshold_w: float = DEFAULT_HIGH_USAGE_THRESHOLD_W) -> bool:
    return device.rated_power_w > threshold_w


def categorize_devices(devices: Sequence[Device],
                       high_usage_threshold_w: float = DEFAULT_HIGH_USAGE_THRESHOLD_W,
                       essential_types: Optional[Iterable[str]] = None) -> DeviceCategories:
    """
    Split devices into essential / high-usage / other.

    Essential wins over high-usage, so a 400 W fridge stays essential. Every
    input device lands in exactly one list and input order is preserved.
    """
    types = set(essential_types) if essential_types is not None else set(DEFAULT_ESSENTIAL_TYPES)
    essential: List[Device] = []
    high_usage: List[Device] = []
    other: List[Device] = []
    for device in devices:
        if is_essential(device, types):
            essential.append(device)
        elif is_high_usage(device, high_usage_threshold_w):
            high_usage.append(device)
        else:
            other.append(device)
    return DeviceCategories(essential=essential, high_usage=high_usage, other=other)

"""
Unit tests for device categorization
"""

import pytest

from sheddinghub.engine.categorizer import categorize_devices, is_essential, is_high_usage
from sheddinghub.models import Device, DeviceStatus


def make_device(id, type="light", power=60.0, status=DeviceStatus.ON, room="Lounge"):
    return Device(id=id, owner_id="u1", name=f"Device {id}", type=type, room=room,
                  rated_power_w=power, status=status)


class TestCategorizeDevices:
    """Test essential / high-usage / other split"""

    @pytest.fixture
    def devices(self):
        return [
            make_device("fridge", type="refrigerator", power=400),
            make_device("router", type="router", power=15),
            make_device("geyser", type="geyser", power=3000),
            make_device("tv", type="tv", power=150),
            make_device("cam", type="camera", power=10, status=DeviceStatus.OFF),
            make_device("heater", type="heater", power=2000, status=DeviceStatus.OFF),
            make_device("lamp", type="light", power=300),
        ]

    def test_partition_is_complete_and_disjoint(self, devices):
        """Every device lands in exactly one category"""
        cats = categorize_devices(devices)

        ids = [d.id for d in cats.essential + cats.high_usage + cats.other]
        assert sorted(ids) == sorted(d.id for d in devices)
        assert len(ids) == len(set(ids))

    def test_essential_wins_over_high_usage(self, devices):
        """A 400 W fridge stays essential"""
        cats = categorize_devices(devices)

        assert [d.id for d in cats.essential] == ["fridge", "router", "cam"]

    def test_high_usage_threshold_is_strict(self, devices):
        """Exactly 300 W is not high usage"""
        cats = categorize_devices(devices)

        assert [d.id for d in cats.high_usage] == ["geyser", "heater"]
        assert [d.id for d in cats.other] == ["tv", "lamp"]

    def test_status_does_not_matter(self, devices):
        """Categorization ignores on/off state"""
        cats = categorize_devices(devices)

        assert "heater" in [d.id for d in cats.high_usage]
        assert "cam" in [d.id for d in cats.essential]

    def test_empty_list(self):
        """No devices gives three empty lists"""
        cats = categorize_devices([])

        assert cats.essential == []
        assert cats.high_usage == []
        assert cats.other == []

    def test_single_device(self):
        """A single device is categorised on its own"""
        cats = categorize_devices([make_device("kettle", type="kettle", power=2200)])

        assert [d.id for d in cats.high_usage] == ["kettle"]
        assert cats.essential == [] and cats.other == []

    def test_custom_threshold_and_types(self, devices):
        """Threshold and essential types come from configuration"""
        cats = categorize_devices(devices, high_usage_threshold_w=100, essential_types=["tv"])

        assert [d.id for d in cats.essential] == ["tv"]
        assert [d.id for d in cats.high_usage] == ["fridge", "geyser", "heater", "lamp"]
        assert [d.id for d in cats.other] == ["router", "cam"]


class TestPredicates:
    """Test single-device helpers"""

    def test_is_essential(self):
        assert is_essential(make_device("f", type="refrigerator"))
        assert not is_essential(make_device("t", type="tv"))

    def test_is_high_usage(self):
        assert is_high_usage(make_device("g", power=301))
        assert not is_high_usage(make_device("l", power=300))


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])

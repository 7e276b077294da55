"""
Unit tests for DeviceController
Tests optimistic switching and exact rollback on failed writes
"""

from unittest.mock import Mock

import pytest

from sheddinghub.device_control import DeviceController
from sheddinghub.errors import TransientNetworkError
from sheddinghub.models import Device, DeviceStatus


def make_device(id, room="Lounge", status=DeviceStatus.OFF):
    return Device(id=id, owner_id="u1", name=id.title(), type="light", room=room,
                  rated_power_w=60, status=status)


class TestDeviceController:
    """Test device switching"""

    @pytest.fixture
    def repository(self):
        return Mock()

    @pytest.fixture
    def snapshots(self):
        return []

    @pytest.fixture
    def controller(self, repository, snapshots):
        return DeviceController(repository, "u1", on_snapshot=snapshots.append)

    @pytest.fixture
    def devices(self):
        return [
            make_device("lamp", status=DeviceStatus.ON),
            make_device("tv"),
            make_device("bedside", room="Bedroom"),
        ]

    @pytest.mark.asyncio
    async def test_toggle_on(self, controller, repository, devices):
        result = await controller.toggle(devices, "tv")

        assert result.success is True
        assert result.error is None
        assert [d.status for d in result.devices] == [DeviceStatus.ON, DeviceStatus.ON, DeviceStatus.OFF]
        repository.update_many.assert_called_once_with("u1", ["tv"], {"status": "on"})

    @pytest.mark.asyncio
    async def test_toggle_off(self, controller, repository, devices):
        result = await controller.toggle(devices, "lamp")

        assert result.devices[0].status == DeviceStatus.OFF
        repository.update_many.assert_called_once_with("u1", ["lamp"], {"status": "off"})

    @pytest.mark.asyncio
    async def test_optimistic_snapshot_published_first(self, controller, repository, devices, snapshots):
        def check_snapshot(*args):
            assert len(snapshots) == 1
            assert snapshots[0][1].status == DeviceStatus.ON

        repository.update_many.side_effect = check_snapshot

        await controller.toggle(devices, "tv")

        assert len(snapshots) == 1

    @pytest.mark.asyncio
    async def test_failure_rolls_back_exactly(self, controller, repository, devices, snapshots):
        repository.update_many.side_effect = TransientNetworkError("write failed")

        result = await controller.toggle(devices, "tv")

        assert result.success is False
        assert "write failed" in result.error
        assert result.devices == devices
        assert snapshots[-1] == devices
        assert len(snapshots) == 2

    @pytest.mark.asyncio
    async def test_input_snapshot_untouched(self, controller, devices):
        await controller.toggle(devices, "tv")

        assert devices[1].status == DeviceStatus.OFF

    @pytest.mark.asyncio
    async def test_unknown_device(self, controller, repository, devices):
        result = await controller.toggle(devices, "ghost")

        assert result.success is False
        assert "ghost" in result.error
        assert result.devices == devices
        repository.update_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_status(self, controller, repository, devices):
        result = await controller.set_status(devices, "lamp", DeviceStatus.ON)

        assert result.success is True
        assert result.devices[0].status == DeviceStatus.ON

    @pytest.mark.asyncio
    async def test_room_switch(self, controller, repository, devices):
        result = await controller.set_room_status(devices, "Lounge", DeviceStatus.ON)

        assert result.success is True
        assert [d.status for d in result.devices] == [DeviceStatus.ON, DeviceStatus.ON, DeviceStatus.OFF]
        repository.update_many.assert_called_once_with("u1", ["lamp", "tv"], {"status": "on"})

    @pytest.mark.asyncio
    async def test_room_switch_failure(self, controller, repository, devices):
        repository.update_many.side_effect = TransientNetworkError("timeout")

        result = await controller.set_room_status(devices, "Lounge", DeviceStatus.OFF)

        assert result.success is False
        assert result.devices == devices

    @pytest.mark.asyncio
    async def test_empty_room(self, controller, repository, devices):
        result = await controller.set_room_status(devices, "Garage", DeviceStatus.OFF)

        assert result.success is True
        assert result.devices == devices
        repository.update_many.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])

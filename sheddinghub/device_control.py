"""
Optimistic device switching.

The caller's snapshot is updated first, the repository write follows, and a
failed write hands back the exact previous snapshot. Snapshots are lists of
immutable-by-convention Device models, so rollback never merges anything.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from sheddinghub.errors import NotFoundError, SheddingHubError
from sheddinghub.models import Device, DeviceStatus, ToggleResult

log = logging.getLogger(__name__)


class DeviceController:
    def __init__(self, repository, owner_id: str,
                 on_snapshot: Optional[Callable[[List[Device]], None]] = None):
        self.repository = repository
        self.owner_id = owner_id
        # Called with the optimistic snapshot before the write is awaited
        self.on_snapshot = on_snapshot

    def _publish(self, devices: List[Device]) -> None:
        if self.on_snapshot is not None:
            self.on_snapshot(devices)

    async def _apply(self, previous: Sequence[Device], targets: List[Device],
                     status: DeviceStatus) -> ToggleResult:
        old_snapshot = list(previous)
        target_ids = {d.id for d in targets}
        new_snapshot = [d.model_copy(update={"status": status}) if d.id in target_ids else d
                        for d in old_snapshot]
        self._publish(new_snapshot)

        try:
            await asyncio.to_thread(self.repository.update_many, self.owner_id,
                                    [d.id for d in targets], {"status": status.value})
        except SheddingHubError as e:
            log.error(f"Error updating device status, rolling back: {e}")
            self._publish(old_snapshot)
            return ToggleResult(success=False, devices=old_snapshot, error=str(e))

        log.info(f"Set {len(targets)} device(s) {status.value}")
        return ToggleResult(success=True, devices=new_snapshot)

    async def set_status(self, devices: Sequence[Device], device_id: str,
                         status: DeviceStatus) -> ToggleResult:
        target = next((d for d in devices if d.id == device_id), None)
        if target is None:
            error = NotFoundError(f"Device {device_id} not found")
            log.warning(str(error))
            return ToggleResult(success=False, devices=list(devices), error=str(error))
        return await self._apply(devices, [target], status)

    async def toggle(self, devices: Sequence[Device], device_id: str) -> ToggleResult:
        target = next((d for d in devices if d.id == device_id), None)
        if target is None:
            return await self.set_status(devices, device_id, DeviceStatus.ON)
        new_status = DeviceStatus.OFF if target.is_on else DeviceStatus.ON
        return await self._apply(devices, [target], new_status)

    async def set_room_status(self, devices: Sequence[Device], room: str,
                              status: DeviceStatus) -> ToggleResult:
        targets = [d for d in devices if d.room == room]
        if not targets:
            return ToggleResult(success=True, devices=list(devices))
        return await self._apply(devices, targets, status)

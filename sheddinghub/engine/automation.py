# sheddinghub/engine/automation.py
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sheddinghub.models import (
    ActionKind, AutomationRules, Device, DeviceCategories, OutageSlot, UpcomingAction,
)
from sheddinghub.timezone_utils import minutes_between

log = logging.getLogger(__name__)

HIGH_USAGE_REASON = "High power consumption"
NON_ESSENTIAL_REASON = "Non-essential devices"
NOTIFY_REASON = "Outage warning"


def _active_unprotected(devices: Sequence[Device], protected_ids) -> List[Device]:
    return [d for d in devices if d.is_on and d.id not in protected_ids]


class AutomationRuleEngine:
    """
    Two-state rule engine (Disarmed / Armed).

    When armed and an outage starts within the lookahead window, the
    user's rules are turned into an ordered list of recommendations.
    Nothing is switched here; execution goes through PreparationPlanner
    or DeviceController.
    """

    def __init__(self, armed: bool = False, lookahead_minutes: int = 60):
        self._armed = armed
        self.lookahead = timedelta(minutes=lookahead_minutes)

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self) -> None:
        if not self._armed:
            log.info("Automation armed")
        self._armed = True

    def disarm(self) -> None:
        if self._armed:
            log.info("Automation disarmed")
        self._armed = False

    def set_armed(self, armed: bool) -> None:
        if armed:
            self.arm()
        else:
            self.disarm()

    def evaluate(self, categories: DeviceCategories, slot: Optional[OutageSlot],
                 rules: AutomationRules, now: datetime) -> List[UpcomingAction]:
        if not self._armed or slot is None:
            return []

        until = slot.start - now
        if until <= timedelta(0) or until > self.lookahead:
            return []

        protected = rules.protected_device_ids or set()
        actions: List[UpcomingAction] = []

        if rules.auto_turn_off_high_usage:
            targets = _active_unprotected(categories.high_usage, protected)
            if targets:
                actions.append(UpcomingAction(kind=ActionKind.TURN_OFF, devices=targets,
                                              reason=HIGH_USAGE_REASON))

        if rules.auto_turn_off_non_essential:
            targets = _active_unprotected(categories.other, protected)
            if targets:
                actions.append(UpcomingAction(kind=ActionKind.TURN_OFF, devices=targets,
                                              reason=NON_ESSENTIAL_REASON))

        if rules.notify_before_outage:
            minutes = minutes_between(now, slot.start)
            actions.append(UpcomingAction(kind=ActionKind.NOTIFY, reason=NOTIFY_REASON,
                                          message=f"Loadshedding in {minutes} minutes"))

        log.debug(f"Automation produced {len(actions)} actions, outage in {until}")
        return actions

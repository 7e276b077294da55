import logging
from datetime import datetime, timedelta
from typing import Optional, Set, Union

from sheddinghub.models import AutomationRules, OutageSlot
from sheddinghub.timezone_utils import minutes_between

log = logging.getLogger(__name__)

# Demo windows move with every fallback tick, so they share one key
DEMO_WINDOW = "demo"

WindowKey = Union[datetime, str]


class NotificationScheduler:
    """
    Decides whether an advance outage warning fires on this tick.

    Meant to be called on the refresh cadence, not continuously. Each outage
    window (identified by its start instant) fires at most once; demo
    windows count as a single window until real grid data returns.
    """

    def __init__(self):
        self._notified: Set[WindowKey] = set()

    @staticmethod
    def _window_key(slot: OutageSlot, demo: bool = False) -> WindowKey:
        return DEMO_WINDOW if demo else slot.start

    def already_notified(self, slot: OutageSlot, demo: bool = False) -> bool:
        return self._window_key(slot, demo) in self._notified

    def should_notify(self, slot: Optional[OutageSlot], rules: AutomationRules,
                      now: datetime, demo: bool = False) -> Optional[str]:
        if slot is None or not rules.notify_before_outage:
            return None

        until = slot.start - now
        if until <= timedelta(0) or until > timedelta(minutes=rules.notify_minutes_before):
            return None

        if self.already_notified(slot, demo):
            log.debug(f"Outage at {slot.start.isoformat()} already notified, skipping")
            return None

        self._notified.add(self._window_key(slot, demo))
        minutes = minutes_between(now, slot.start)
        return f"Loadshedding in {minutes} minutes. {slot.note}"

    def prune(self, now: datetime, demo: bool = False) -> None:
        """Forget windows that have already started, and the demo window once real data is back."""
        self._notified = {
            k for k in self._notified
            if (demo if k == DEMO_WINDOW else k > now)
        }

# sheddinghub/engine/outage.py
import logging
import math
import random
from datetime import datetime, timedelta
from typing import Optional

from sheddinghub.errors import GridStatusParseError
from sheddinghub.models import OutageSlot, OutageState
from sheddinghub.timezone_utils import attach_timezone

log = logging.getLogger(__name__)

SLOT_DURATION = timedelta(hours=2.5)
DEMO_LEAD_TIME = timedelta(hours=2)
DEMO_MAX_STAGE = 4
DEMO_AREA = "Demo Area"
DEMO_NOTE = "Demo schedule - Configure your area in settings for accurate times"
UNCONFIGURED_AREA = "Not configured"
MAX_STAGE = 8


def parse_stage(body: str) -> int:
    """
    Parse a plain-text grid status body into a stage.

    Raises GridStatusParseError for anything that is not an integer 0..8.
    """
    text = (body or "").strip()
    try:
        stage = int(text)
    except ValueError:
        raise GridStatusParseError(f"Non-numeric grid status body: {text[:40]!r}")
    if stage < 0 or stage > MAX_STAGE:
        raise GridStatusParseError(f"Grid stage out of range: {stage}")
    return stage


def next_slot_hour(hour: int) -> int:
    """Next even hour strictly after ``hour``, wrapping 24 to 0."""
    candidate = math.ceil(hour / 2) * 2
    if candidate == hour:
        candidate += 2
    if candidate >= 24:
        candidate = 0
    return candidate


class OutageScheduleEstimator:
    """
    Heuristic next-outage estimator.

    This is not a municipal schedule: a real stage produces a 2.5 hour slot
    at the next even hour. When the provider is unreachable ``fallback_state``
    produces clearly tagged demo data from ``rng`` so tests can seed it.
    """

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def estimate(self, stage: int, now: datetime, area: Optional[str] = None) -> Optional[OutageSlot]:
        if stage == 0:
            return None

        wall = now.replace(tzinfo=None)
        start_wall = wall.replace(hour=next_slot_hour(now.hour), minute=0, second=0, microsecond=0)
        if start_wall <= wall:
            start_wall += timedelta(days=1)
        start = attach_timezone(start_wall, now.tzinfo)

        if area:
            note = f"Stage {stage} loadshedding for {area}"
        else:
            note = "Configure your area for accurate schedules"
        return OutageSlot(start=start, end=start + SLOT_DURATION, note=note)

    def build_state(self, stage: int, now: datetime, area: Optional[str] = None) -> OutageState:
        slot = self.estimate(stage, now, area)
        return OutageState(
            stage=stage,
            next_slot=slot,
            area=area or UNCONFIGURED_AREA,
            is_demo=False,
            fetched_at=now,
        )

    def fallback_state(self, now: datetime) -> OutageState:
        stage = self.rng.randint(0, DEMO_MAX_STAGE)
        slot = None
        if stage > 0:
            start = now + DEMO_LEAD_TIME
            slot = OutageSlot(start=start, end=start + SLOT_DURATION, note=DEMO_NOTE)
        log.info(f"Using demo loadshedding data - Stage: {stage}")
        return OutageState(stage=stage, next_slot=slot, area=DEMO_AREA, is_demo=True, fetched_at=now)

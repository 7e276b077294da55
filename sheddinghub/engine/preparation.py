# sheddinghub/engine/preparation.py
import asyncio
import inspect
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Set

from sheddinghub.engine.categorizer import is_high_usage
from sheddinghub.errors import SheddingHubError
from sheddinghub.models import (
    AutomationRules, Device, DeviceCategories, DeviceStatus,
    PreparationOutcome, PreparationResult, PreparationSummary,
)

log = logging.getLogger(__name__)

ConfirmCallback = Callable[[PreparationSummary], Any]


def keep_on_ids_for(categories: DeviceCategories, rules: Optional[AutomationRules] = None) -> Set[str]:
    """Essential devices plus the user's protected list."""
    ids = {d.id for d in categories.essential}
    if rules is not None:
        ids |= set(rules.protected_device_ids)
    return ids


class PreparationPlanner:
    """
    User-triggered "prepare for loadshedding" run.

    Switches every active device that is not essential or protected off in a
    single repository batch. Local state is only changed when the batch
    write succeeds.
    """

    def __init__(self, repository, owner_id: str, high_usage_threshold_w: float = 300.0):
        self.repository = repository
        self.owner_id = owner_id
        self.high_usage_threshold_w = high_usage_threshold_w

    def summarize(self, active: Sequence[Device], keep_on: Set[str],
                  to_turn_off: List[Device]) -> PreparationSummary:
        high = sum(1 for d in active if is_high_usage(d, self.high_usage_threshold_w))
        essential = sum(1 for d in active if d.id in keep_on)
        lines = [f"Found {len(active)} active devices:"]
        if high:
            lines.append(f"{high} high-usage devices")
        if essential:
            lines.append(f"{essential} essential devices")
        lines.append(f"Turn off {len(to_turn_off)} non-essential devices?")
        return PreparationSummary(
            active_count=len(active),
            high_usage_count=high,
            essential_count=essential,
            to_turn_off=to_turn_off,
            message="\n".join(lines),
        )

    async def _ask(self, confirm: Optional[ConfirmCallback], summary: PreparationSummary) -> bool:
        if confirm is None:
            return True
        answer = confirm(summary)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    async def prepare(self, devices: Sequence[Device], keep_on_ids: Iterable[str],
                      confirm: Optional[ConfirmCallback] = None) -> PreparationResult:
        active = [d for d in devices if d.is_on]
        if not active:
            return PreparationResult(
                outcome=PreparationOutcome.NOTHING_ACTIVE,
                message="All your devices are already turned off.",
            )

        keep_on = set(keep_on_ids)
        to_turn_off = [d for d in active if d.id not in keep_on]
        skipped = [d for d in active if d.id in keep_on]
        if not to_turn_off:
            return PreparationResult(
                outcome=PreparationOutcome.ONLY_ESSENTIAL,
                skipped=skipped,
                message=f"Only essential devices are on ({len(skipped)}). Nothing to turn off.",
            )

        summary = self.summarize(active, keep_on, to_turn_off)
        if not await self._ask(confirm, summary):
            log.info("Outage preparation cancelled by user")
            return PreparationResult(outcome=PreparationOutcome.CANCELLED, skipped=skipped,
                                     message="Preparation cancelled.")

        ids = [d.id for d in to_turn_off]
        try:
            await asyncio.to_thread(self.repository.update_many, self.owner_id, ids,
                                    {"status": DeviceStatus.OFF.value})
        except SheddingHubError as e:
            log.error(f"Error preparing for outage: {e}")
            return PreparationResult(outcome=PreparationOutcome.FAILED, skipped=skipped,
                                     message="Failed to update devices. Nothing was changed.")

        turned_off = [d.model_copy(update={"status": DeviceStatus.OFF}) for d in to_turn_off]
        log.info(f"Turned off {len(turned_off)} devices ahead of loadshedding")
        return PreparationResult(
            outcome=PreparationOutcome.COMPLETED,
            turned_off=turned_off,
            skipped=skipped,
            message=f"Turned off {len(turned_off)} devices. Essential devices remain on.",
        )

# sheddinghub/engine/usage.py
import math
from typing import List, Sequence

from sheddinghub.engine.categorizer import is_high_usage
from sheddinghub.models import Device, EfficiencyRating, SavingsSuggestion, UsageStats

DEFAULT_RATE_PER_KWH = 2.50
DAYS_PER_MONTH = 30


class UsageCostEstimator:
    """
    Aggregates the live device set into power, cost and efficiency figures.

    The efficiency rating counts active devices above the high-usage
    threshold: none is Excellent, one is Good, two or more is Poor.
    """

    def __init__(self, rate_per_kwh: float = DEFAULT_RATE_PER_KWH,
                 high_usage_threshold_w: float = 300.0,
                 days_per_month: int = DAYS_PER_MONTH):
        self.rate_per_kwh = rate_per_kwh
        self.high_usage_threshold_w = high_usage_threshold_w
        self.days_per_month = days_per_month

    def device_monthly_cost(self, device: Device) -> float:
        kwh_per_day = (device.rated_power_w / 1000.0) * device.average_hours_per_day
        return kwh_per_day * self.days_per_month * self.rate_per_kwh

    def rate_efficiency(self, active: Sequence[Device]) -> EfficiencyRating:
        heavy = sum(1 for d in active if is_high_usage(d, self.high_usage_threshold_w))
        if heavy == 0:
            return EfficiencyRating.EXCELLENT
        if heavy == 1:
            return EfficiencyRating.GOOD
        return EfficiencyRating.POOR

    def estimate(self, devices: Sequence[Device]) -> UsageStats:
        active = [d for d in devices if d.is_on]
        total_w = sum(d.rated_power_w for d in active)
        monthly = sum(self.device_monthly_cost(d) for d in active)
        return UsageStats(
            total_usage_w=total_w,
            monthly_cost_estimate=int(math.floor(monthly + 0.5)),
            active_device_count=len(active),
            efficiency_rating=self.rate_efficiency(active),
        )

    def savings_suggestions(self, devices: Sequence[Device]) -> List[SavingsSuggestion]:
        """Active high-usage devices with their monthly cost, most expensive first."""
        out = []
        for d in devices:
            if not d.is_on or not is_high_usage(d, self.high_usage_threshold_w):
                continue
            cost = round(self.device_monthly_cost(d), 2)
            out.append(SavingsSuggestion(
                device_id=d.id,
                device_name=d.name,
                monthly_cost=cost,
                suggestion=f"Turning off {d.name} when not in use saves up to {cost:.0f}/month",
            ))
        out.sort(key=lambda s: s.monthly_cost, reverse=True)
        return out

"""
Engine module: the outage-aware estimation and automation logic.

- categorize_devices: essential / high-usage / other split
- OutageScheduleEstimator: next outage window (or tagged demo data)
- UsageCostEstimator: power, monthly cost and efficiency
- AutomationRuleEngine: armed/disarmed recommendations before an outage
- PreparationPlanner: user-triggered batch switch-off
- NotificationScheduler: de-duplicated advance warnings
"""

from sheddinghub.engine.categorizer import categorize_devices
from sheddinghub.engine.outage import OutageScheduleEstimator, parse_stage
from sheddinghub.engine.usage import UsageCostEstimator
from sheddinghub.engine.automation import AutomationRuleEngine
from sheddinghub.engine.preparation import PreparationPlanner, keep_on_ids_for
from sheddinghub.engine.notifications import NotificationScheduler

__all__ = [
    'categorize_devices',
    'OutageScheduleEstimator',
    'parse_stage',
    'UsageCostEstimator',
    'AutomationRuleEngine',
    'PreparationPlanner',
    'keep_on_ids_for',
    'NotificationScheduler',
]

"""
Static descriptions of the loadshedding stages 0..8.

Figures are the published rule-of-thumb values for the national programme
(1000 MW shortfall per stage, roughly one extra 2.5 hour slot per stage).
"""

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class StageInfo:
    stage: int
    title: str
    description: str
    outage_frequency: str
    average_duration: str
    power_shortage_mw: int
    daily_outages: int
    tips: List[str] = field(default_factory=list)

    @property
    def hours_without_power(self) -> float:
        return self.daily_outages * 2.5

    @property
    def is_critical(self) -> bool:
        return self.stage >= 3


STAGE_INFO: Dict[int, StageInfo] = {
    0: StageInfo(0, "No Loadshedding", "Power supply is stable", "None", "N/A", 0, 0,
                 ["Charge all devices", "Prepare for potential outages", "Check battery backups"]),
    1: StageInfo(1, "Stage 1", "1000 MW shortage - Minimal impact", "Once per day", "2.5 hours", 1000, 1,
                 ["Charge essential devices", "Know your schedule", "Prepare food in advance"]),
    2: StageInfo(2, "Stage 2", "2000 MW shortage - Moderate impact", "Twice per day", "2.5 hours each", 2000, 2,
                 ["Use gas for cooking", "Limit high-power appliances", "Keep phones charged"]),
    3: StageInfo(3, "Stage 3", "3000 MW shortage - Significant impact", "2-3 times per day", "2.5 hours each", 3000, 3,
                 ["Switch off geysers", "Use alternative lighting", "Plan meals carefully"]),
    4: StageInfo(4, "Stage 4", "4000 MW shortage - Severe impact", "3-4 times per day", "2.5-3 hours each", 4000, 4,
                 ["Minimize electricity use", "Use battery backups", "Stock up on essentials"]),
    5: StageInfo(5, "Stage 5", "5000 MW shortage - Critical", "4-5 times per day", "3 hours each", 5000, 5,
                 ["Emergency mode", "Use only essential devices", "Preserve food with ice"]),
    6: StageInfo(6, "Stage 6", "6000 MW shortage - Extreme", "5-6 times per day", "3-4 hours each", 6000, 6,
                 ["Crisis management", "Minimal electricity use", "Use alternative power sources"]),
    7: StageInfo(7, "Stage 7", "7000 MW shortage - Catastrophic", "6-7 times per day", "4 hours each", 7000, 7,
                 ["Maximum conservation", "Use generators if available", "Emergency protocols"]),
    8: StageInfo(8, "Stage 8", "8000 MW shortage - Unprecedented", "7-8 times per day", "4+ hours each", 8000, 8,
                 ["Extreme measures", "Total blackout likely", "Use emergency supplies"]),
}


def get_stage_info(stage: int) -> StageInfo:
    """Look up a stage, falling back to stage 0 for unknown values."""
    return STAGE_INFO.get(stage, STAGE_INFO[0])

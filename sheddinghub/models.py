from enum import Enum
from datetime import datetime
from typing import Optional, List, Set
from pydantic import BaseModel, Field


class DeviceStatus(str, Enum):
    ON = "on"
    OFF = "off"


class DeviceType(str, Enum):
    REFRIGERATOR = "refrigerator"
    TV = "tv"
    WASHING_MACHINE = "washing_machine"
    AIR_CONDITIONER = "air_conditioner"
    HEATER = "heater"
    LIGHT = "light"
    MICROWAVE = "microwave"
    DISHWASHER = "dishwasher"
    COMPUTER = "computer"
    FAN = "fan"
    ROUTER = "router"
    SPEAKER = "speaker"
    CAMERA = "camera"
    GEYSER = "geyser"
    KETTLE = "kettle"
    OTHER = "other"


class Device(BaseModel):
    id: str
    owner_id: str
    name: str
    type: DeviceType
    room: str
    rated_power_w: float = Field(gt=0, allow_inf_nan=False)
    average_hours_per_day: float = Field(default=8.0, gt=0, le=24, allow_inf_nan=False)
    status: DeviceStatus = DeviceStatus.OFF
    created_at: Optional[str] = None  # ISO 8601 timestamp

    @property
    def is_on(self) -> bool:
        return self.status == DeviceStatus.ON


class OutageSlot(BaseModel):
    start: datetime
    end: datetime
    note: str


class OutageState(BaseModel):
    stage: int = Field(default=0, ge=0, le=8)
    next_slot: Optional[OutageSlot] = None  # Always None for stage 0
    area: str = "Not configured"
    is_demo: bool = False  # True when the grid provider was unreachable
    fetched_at: Optional[datetime] = None


class AutomationRules(BaseModel):
    auto_turn_off_high_usage: bool = True
    auto_turn_off_non_essential: bool = False
    notify_before_outage: bool = True
    notify_minutes_before: int = Field(default=30, ge=1, le=240)
    protected_device_ids: Set[str] = Field(default_factory=set)


class AutomationSettings(BaseModel):
    """Persisted envelope: ``enabled`` is the Armed/Disarmed switch."""
    enabled: bool = False
    rules: AutomationRules = AutomationRules()


class NotificationPrefs(BaseModel):
    enabled: bool = True


class DeviceCategories(BaseModel):
    essential: List[Device] = Field(default_factory=list)
    high_usage: List[Device] = Field(default_factory=list)
    other: List[Device] = Field(default_factory=list)


class ActionKind(str, Enum):
    TURN_OFF = "turn_off"
    NOTIFY = "notify"


class UpcomingAction(BaseModel):
    kind: ActionKind
    devices: List[Device] = Field(default_factory=list)
    reason: str
    message: Optional[str] = None


class EfficiencyRating(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    POOR = "Poor"


class UsageStats(BaseModel):
    total_usage_w: float = 0.0
    monthly_cost_estimate: int = 0
    active_device_count: int = 0
    efficiency_rating: EfficiencyRating = EfficiencyRating.EXCELLENT


class SavingsSuggestion(BaseModel):
    device_id: str
    device_name: str
    monthly_cost: float
    suggestion: str


class PreparationOutcome(str, Enum):
    NOTHING_ACTIVE = "nothing_active"
    ONLY_ESSENTIAL = "only_essential"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    FAILED = "failed"


class PreparationSummary(BaseModel):
    """What the user is asked to confirm before a prepare-now run."""
    active_count: int
    high_usage_count: int
    essential_count: int
    to_turn_off: List[Device] = Field(default_factory=list)
    message: str


class PreparationResult(BaseModel):
    outcome: PreparationOutcome
    turned_off: List[Device] = Field(default_factory=list)
    skipped: List[Device] = Field(default_factory=list)
    message: str = ""


class ToggleResult(BaseModel):
    success: bool
    devices: List[Device]  # New snapshot on success, the untouched previous snapshot on failure
    error: Optional[str] = None


class EngineState(BaseModel):
    devices: List[Device] = Field(default_factory=list)
    outage: OutageState = OutageState()
    settings: AutomationSettings = AutomationSettings()
    notification_prefs: NotificationPrefs = NotificationPrefs()
    categories: DeviceCategories = DeviceCategories()
    stats: UsageStats = UsageStats()
    actions: List[UpcomingAction] = Field(default_factory=list)

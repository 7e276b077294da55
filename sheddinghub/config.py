from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

class GridStatusConfig(BaseModel):
    status_url: str = "https://loadshedding.eskom.co.za/LoadShedding/GetStatus"
    timeout_secs: float = Field(ge=1.0, le=120.0, default=10.0)
    area: Optional[str] = None  # Loadshedding area name, None = not configured
    # Seed for the demo fallback RNG. None = unseeded (non-deterministic demo data)
    demo_seed: Optional[int] = None

class TariffConfig(BaseModel):
    currency: str = Field(default="ZAR", description="Display currency for cost outputs")
    rate_per_kwh: float = Field(default=2.50, gt=0.0, description="Flat price per kWh")
    days_per_month: int = Field(default=30, ge=28, le=31)

class CategorizationConfig(BaseModel):
    # Single canonical cutoff used by categorization, efficiency rating and savings suggestions
    high_usage_threshold_w: float = Field(default=300.0, gt=0.0)
    essential_types: List[str] = Field(
        default_factory=lambda: ["refrigerator", "router", "camera"],
        description="Device types that are never switched off automatically"
    )

    @field_validator("essential_types")
    @classmethod
    def normalize_types(cls, value: List[str]) -> List[str]:
        return [t.strip().lower() for t in value if t and t.strip()]

class SchedulerConfig(BaseModel):
    refresh_interval_secs: float = Field(ge=30, le=3600, default=900)  # 15 minutes
    # Automation only looks this far ahead of an outage
    automation_lookahead_minutes: int = Field(ge=1, le=720, default=60)

class StorageConfig(BaseModel):
    db_path: Optional[str] = None  # None = ~/.sheddinghub/sheddinghub.db

class LoggingConfig(BaseModel):
    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

class HubConfig(BaseModel):
    timezone: str = "Africa/Johannesburg"  # Household timezone for all operations
    owner_id: str  # Every repository call is scoped to this user
    grid: GridStatusConfig = GridStatusConfig()
    tariff: TariffConfig = TariffConfig()
    categorization: CategorizationConfig = CategorizationConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()

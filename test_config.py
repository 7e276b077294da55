"""
Unit tests for configuration classes
Tests the Pydantic models and validation
"""

import pytest
from pydantic import ValidationError

from sheddinghub.config import (
    GridStatusConfig, TariffConfig, CategorizationConfig, SchedulerConfig,
    StorageConfig, LoggingConfig, HubConfig
)


class TestGridStatusConfig:
    """Test grid status provider configuration"""

    def test_default_values(self):
        """Test default grid status configuration values"""
        config = GridStatusConfig()

        assert config.status_url == "https://loadshedding.eskom.co.za/LoadShedding/GetStatus"
        assert config.timeout_secs == 10.0
        assert config.area is None
        assert config.demo_seed is None

    def test_custom_values(self):
        """Test custom grid status configuration values"""
        config = GridStatusConfig(
            status_url="http://localhost:8080/status",
            timeout_secs=5,
            area="Cape Town Block 7",
            demo_seed=42
        )

        assert config.status_url == "http://localhost:8080/status"
        assert config.timeout_secs == 5.0
        assert config.area == "Cape Town Block 7"
        assert config.demo_seed == 42

    def test_timeout_validation(self):
        """Test timeout bounds"""
        with pytest.raises(ValidationError):
            GridStatusConfig(timeout_secs=0.5)

        with pytest.raises(ValidationError):
            GridStatusConfig(timeout_secs=300)


class TestTariffConfig:
    """Test tariff configuration"""

    def test_default_values(self):
        """Test default tariff values"""
        config = TariffConfig()

        assert config.currency == "ZAR"
        assert config.rate_per_kwh == 2.50
        assert config.days_per_month == 30

    def test_rate_must_be_positive(self):
        """Test that a zero or negative rate is rejected"""
        with pytest.raises(ValidationError):
            TariffConfig(rate_per_kwh=0)

        with pytest.raises(ValidationError):
            TariffConfig(rate_per_kwh=-1.5)

    def test_days_per_month_range(self):
        """Test month length bounds"""
        assert TariffConfig(days_per_month=31).days_per_month == 31

        with pytest.raises(ValidationError):
            TariffConfig(days_per_month=27)

        with pytest.raises(ValidationError):
            TariffConfig(days_per_month=32)


class TestCategorizationConfig:
    """Test categorization configuration"""

    def test_default_values(self):
        """Test default threshold and essential types"""
        config = CategorizationConfig()

        assert config.high_usage_threshold_w == 300.0
        assert config.essential_types == ["refrigerator", "router", "camera"]

    def test_essential_types_are_normalized(self):
        """Test essential types are lowercased and blanks dropped"""
        config = CategorizationConfig(essential_types=[" Refrigerator", "ROUTER", "", "  "])

        assert config.essential_types == ["refrigerator", "router"]

    def test_threshold_must_be_positive(self):
        """Test threshold validation"""
        with pytest.raises(ValidationError):
            CategorizationConfig(high_usage_threshold_w=0)


class TestSchedulerConfig:
    """Test scheduler configuration"""

    def test_default_values(self):
        """Test default refresh cadence and lookahead"""
        config = SchedulerConfig()

        assert config.refresh_interval_secs == 900
        assert config.automation_lookahead_minutes == 60

    def test_refresh_interval_validation(self):
        """Test refresh interval bounds"""
        with pytest.raises(ValidationError):
            SchedulerConfig(refresh_interval_secs=10)

        with pytest.raises(ValidationError):
            SchedulerConfig(refresh_interval_secs=7200)

    def test_lookahead_validation(self):
        """Test lookahead bounds"""
        with pytest.raises(ValidationError):
            SchedulerConfig(automation_lookahead_minutes=0)


class TestLoggingConfig:
    """Test logging configuration"""

    def test_level_is_uppercased(self):
        """Test that log levels are normalised"""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level_rejected(self):
        """Test that unknown levels fail validation"""
        with pytest.raises(ValidationError):
            LoggingConfig(level="verbose")


class TestHubConfig:
    """Test main hub configuration"""

    def test_minimal_config(self):
        """Test configuration with only the required owner id"""
        config = HubConfig(owner_id="household-1")

        assert config.owner_id == "household-1"
        assert config.timezone == "Africa/Johannesburg"
        assert isinstance(config.grid, GridStatusConfig)
        assert isinstance(config.tariff, TariffConfig)
        assert isinstance(config.categorization, CategorizationConfig)
        assert isinstance(config.scheduler, SchedulerConfig)
        assert isinstance(config.storage, StorageConfig)
        assert config.storage.db_path is None

    def test_missing_owner_id(self):
        """Test validation with missing owner id"""
        with pytest.raises(ValidationError):
            HubConfig()

    def test_nested_dict_config(self):
        """Test configuration built from a nested dictionary as loaded from YAML"""
        config = HubConfig(**{
            "owner_id": "household-2",
            "timezone": "UTC",
            "grid": {"area": "Durban", "demo_seed": 7},
            "tariff": {"rate_per_kwh": 3.1},
            "scheduler": {"refresh_interval_secs": 60},
        })

        assert config.grid.area == "Durban"
        assert config.grid.demo_seed == 7
        assert config.tariff.rate_per_kwh == 3.1
        assert config.scheduler.refresh_interval_secs == 60
        assert config.categorization.high_usage_threshold_w == 300.0

    def test_serialization_roundtrip(self):
        """Test that a dumped configuration validates back to the same values"""
        config = HubConfig(owner_id="household-1", grid=GridStatusConfig(area="Soweto"))

        restored = HubConfig(**config.model_dump(mode="json"))

        assert restored == config


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])

"""
Unit tests for ConfigurationManager
Tests YAML loading, validation and persistence of the area setting
"""

import pytest
import yaml

from sheddinghub import timezone_utils
from sheddinghub.config import HubConfig
from sheddinghub.config_manager import ConfigurationManager


class TestConfigurationManager:
    """Test ConfigurationManager functionality"""

    @pytest.fixture
    def config_file(self, tmp_path):
        """Write a sample config.yaml"""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "owner_id": "household-1",
            "timezone": "Africa/Johannesburg",
            "grid": {"area": "Johannesburg Block 4"},
            "tariff": {"rate_per_kwh": 2.75},
        }))
        return path

    @pytest.fixture(autouse=True)
    def reset_timezone(self):
        """Keep the module-level timezone from leaking between tests"""
        yield
        timezone_utils.CONFIGURED_TZ = None

    def test_load_config(self, config_file):
        """Test loading a valid configuration file"""
        manager = ConfigurationManager(str(config_file))

        config = manager.load_config()

        assert isinstance(config, HubConfig)
        assert config.owner_id == "household-1"
        assert config.grid.area == "Johannesburg Block 4"
        assert config.tariff.rate_per_kwh == 2.75

    def test_load_config_initializes_timezone(self, config_file):
        """Test that loading the config sets the configured timezone"""
        ConfigurationManager(str(config_file)).load_config()

        assert timezone_utils.get_configured_timezone().zone == "Africa/Johannesburg"

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError"""
        manager = ConfigurationManager(str(tmp_path / "missing.yaml"))

        with pytest.raises(FileNotFoundError):
            manager.load_config()

    def test_non_mapping_root(self, tmp_path):
        """Test that a YAML list at the root is rejected"""
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            ConfigurationManager(str(path)).load_config()

    def test_update_area_persists(self, config_file):
        """Test that changing the area writes it back to disk"""
        manager = ConfigurationManager(str(config_file))
        manager.load_config()

        updated = manager.update_area("Cape Town Block 7")

        assert updated.grid.area == "Cape Town Block 7"
        reloaded = ConfigurationManager(str(config_file)).load_config()
        assert reloaded.grid.area == "Cape Town Block 7"
        assert reloaded.tariff.rate_per_kwh == 2.75

    def test_clear_area(self, config_file):
        """Test that an empty area clears the setting"""
        manager = ConfigurationManager(str(config_file))

        updated = manager.update_area("")

        assert updated.grid.area is None
        assert yaml.safe_load(config_file.read_text())["grid"]["area"] is None


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])

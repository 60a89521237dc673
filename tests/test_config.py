"""Configuration loading and validation tests."""

from pathlib import Path

import pytest
import yaml

from cloud_tiering.exceptions import ConfigurationError
from cloud_tiering.scenarios import customer_config, financial_config
from cloud_tiering.utils.config import (
    SimulationConfig,
    load_config,
    save_config,
    validate_config,
)

CONFIG_DIR = Path(__file__).parent.parent / "configs"


@pytest.mark.parametrize("filename, preset", [
    ("customer.yaml", customer_config),
    ("financial.yaml", financial_config),
])
def test_bundled_configs_match_presets(filename, preset):
    assert load_config(CONFIG_DIR / filename) == preset()


def test_save_and_reload(tmp_path):
    config = financial_config()

    save_config(config, tmp_path / "out" / "financial.yaml")
    save_config(config, tmp_path / "financial.json")

    assert load_config(tmp_path / "out" / "financial.yaml") == config
    assert load_config(tmp_path / "financial.json") == config


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    with pytest.raises(ConfigurationError, match="empty"):
        load_config(path)


def test_unsupported_format(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("name = 'x'")

    with pytest.raises(ConfigurationError, match="Unsupported"):
        load_config(path)


def test_unparsable_file(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("fleet: [unclosed")

    with pytest.raises(ConfigurationError, match="Failed to parse"):
        load_config(path)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        validate_config([])


class TestValidation:

    @pytest.fixture
    def raw(self):
        return yaml.safe_load((CONFIG_DIR / "customer.yaml").read_text())

    def test_negative_tier_count(self, raw):
        raw["fleet"]["tiers"][0]["count"] = -1
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            validate_config(raw)

    def test_zero_tier_count_is_allowed(self, raw):
        raw["fleet"]["tiers"][1]["count"] = 0
        assert validate_config(raw).fleet.tiers[1].count == 0

    def test_duplicate_tier_names(self, raw):
        raw["fleet"]["tiers"][1]["name"] = "premium"
        with pytest.raises(ConfigurationError, match="Duplicate tier names"):
            validate_config(raw)

    def test_no_tiers(self, raw):
        raw["fleet"]["tiers"] = []
        with pytest.raises(ConfigurationError):
            validate_config(raw)

    def test_unknown_domain(self, raw):
        raw["domain"] = "weather"
        with pytest.raises(ConfigurationError):
            validate_config(raw)

    def test_non_positive_host_capacity(self, raw):
        raw["fleet"]["host"]["mips"] = 0
        with pytest.raises(ConfigurationError):
            validate_config(raw)

    def test_missing_sections_use_defaults(self, raw):
        del raw["simulation"]
        del raw["workload"]

        config = validate_config(raw)

        assert config.simulation == SimulationConfig()
        assert config.workload.number_of_records == 10


def test_sampling_interval_must_align_with_ticks():
    with pytest.raises(ValueError, match="multiple of tick_interval"):
        SimulationConfig(sampling_interval=5.0, tick_interval=2.0)

    assert SimulationConfig(sampling_interval=10.0, tick_interval=2.5).sampling_interval == 10.0

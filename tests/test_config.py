"""Tests for heatbugs.simulation.config and errors."""

import logging
from pathlib import Path

import pytest

from heatbugs.simulation.config import SimulationConfig
from heatbugs.simulation.errors import (
    BugsOverflow,
    ConfigError,
    HeatOutputRangeInvalid,
    ParameterInvalid,
    TemperatureRangeInvalid,
    ZeroBugs,
)


class TestSimulationConfig:
    """Tests for defaults and YAML loading."""

    def test_defaults(self) -> None:
        cfg = SimulationConfig()
        assert cfg.world_width == 5
        assert cfg.world_height == 5
        assert cfg.bugs_number == 20
        assert cfg.iteration_count == 1000
        assert cfg.seed is None

    def test_world_size(self) -> None:
        cfg = SimulationConfig(world_width=7, world_height=3)
        assert cfg.world_size == 21

    def test_from_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "test.yaml"
        yaml_file.write_text("seed: 99\nworld_width: 16\nbugs_number: 40\n")
        cfg = SimulationConfig.from_yaml(yaml_file)
        assert cfg.seed == 99
        assert cfg.world_width == 16
        assert cfg.bugs_number == 40
        assert cfg.world_height == 5

    def test_from_yaml_ignores_unknown_keys(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "test.yaml"
        yaml_file.write_text("seed: 1\ncolour: blue\n")
        cfg = SimulationConfig.from_yaml(yaml_file)
        assert cfg.seed == 1

    def test_from_empty_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert SimulationConfig.from_yaml(yaml_file) == SimulationConfig()

    def test_missing_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SimulationConfig.from_yaml(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "broken.yaml"
        yaml_file.write_text("bugs_number: [5\n")
        with pytest.raises(ParameterInvalid, match="Could not parse"):
            SimulationConfig.from_yaml(yaml_file)

    def test_yaml_must_be_a_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- 1\n- 2\n")
        with pytest.raises(ParameterInvalid, match="mapping"):
            SimulationConfig.from_yaml(yaml_file)

    def test_with_overrides_skips_none(self) -> None:
        cfg = SimulationConfig().with_overrides(bugs_number=3, seed=None)
        assert cfg.bugs_number == 3
        assert cfg.seed is None


class TestValidation:
    """Tests for configuration constraint checks."""

    def test_defaults_are_valid(self) -> None:
        SimulationConfig().validate()

    def test_zero_bugs(self) -> None:
        with pytest.raises(ZeroBugs, match="no bugs"):
            SimulationConfig(bugs_number=0).validate()

    def test_bugs_overflow(self) -> None:
        with pytest.raises(BugsOverflow) as info:
            SimulationConfig(bugs_number=25).validate()
        assert info.value.code == -7

    def test_max_density_is_legal(self) -> None:
        SimulationConfig(bugs_number=24).validate()

    def test_temperature_overlap(self) -> None:
        with pytest.raises(TemperatureRangeInvalid) as info:
            SimulationConfig(ideal_temp_min=31, ideal_temp_max=30).validate()
        assert info.value.code == -8

    def test_temperature_out_of_range(self) -> None:
        with pytest.raises(TemperatureRangeInvalid) as info:
            SimulationConfig(ideal_temp_max=200).validate()
        assert info.value.code == -9

    def test_heat_overlap(self) -> None:
        with pytest.raises(HeatOutputRangeInvalid) as info:
            SimulationConfig(heat_output_min=26, heat_output_max=25).validate()
        assert info.value.code == -10

    def test_heat_out_of_range(self) -> None:
        with pytest.raises(HeatOutputRangeInvalid) as info:
            SimulationConfig(heat_output_max=100).validate()
        assert info.value.code == -11

    def test_bug_count_checked_before_ranges(self) -> None:
        cfg = SimulationConfig(bugs_number=0, ideal_temp_max=500)
        with pytest.raises(ZeroBugs):
            cfg.validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"diffusion_rate": 1.5},
            {"evaporation_rate": -0.1},
            {"random_move_chance": 101.0},
            {"workers": 0},
            {"world_width": 0},
            {"iteration_count": -1},
            {"seed": -5},
        ],
    )
    def test_invalid_parameters(self, overrides: dict) -> None:
        with pytest.raises(ParameterInvalid):
            SimulationConfig(**overrides).validate()

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"bugs_number": 5.5}, "bugs_number"),
            ({"bugs_number": "5"}, "bugs_number"),
            ({"world_width": 5.0}, "world_width"),
            ({"ideal_temp_min": 20.5}, "ideal_temp_min"),
            ({"workers": True}, "workers"),
            ({"seed": 1.5}, "seed"),
            ({"diffusion_rate": "fast"}, "diffusion_rate"),
            ({"random_move_chance": None}, "random_move_chance"),
            ({"output_path": 3}, "output_path"),
        ],
    )
    def test_wrong_types(self, overrides: dict, field: str) -> None:
        with pytest.raises(ParameterInvalid, match=field):
            SimulationConfig(**overrides).validate()

    def test_types_checked_before_ranges(self) -> None:
        cfg = SimulationConfig(bugs_number=0, world_width=2.5)
        with pytest.raises(ParameterInvalid, match="world_width"):
            cfg.validate()

    def test_integer_rates_are_accepted(self) -> None:
        SimulationConfig(diffusion_rate=1, evaporation_rate=0).validate()

    def test_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            SimulationConfig(bugs_number=0).validate()
        assert issubclass(ZeroBugs, ConfigError)

    def test_high_density_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            SimulationConfig(bugs_number=20).validate()
        assert "close to available world slots" in caplog.text

    def test_low_density_is_quiet(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            SimulationConfig(bugs_number=5).validate()
        assert caplog.text == ""

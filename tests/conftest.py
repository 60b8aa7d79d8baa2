"""Shared fixtures for the heatbugs test suite."""

from __future__ import annotations

import pytest

from heatbugs.simulation.config import SimulationConfig
from heatbugs.simulation.engine import SimulationEngine
from heatbugs.world.world import World


@pytest.fixture
def small_world() -> World:
    """An empty 5x5 world."""
    return World(width=5, height=5)


@pytest.fixture
def scenario_config() -> SimulationConfig:
    """The reference 5x5 scenario with five bugs and a fixed seed."""
    return SimulationConfig(
        world_width=5,
        world_height=5,
        bugs_number=5,
        diffusion_rate=0.4,
        evaporation_rate=0.01,
        ideal_temp_min=20,
        ideal_temp_max=30,
        heat_output_min=15,
        heat_output_max=25,
        seed=42,
        iteration_count=10,
    )


@pytest.fixture
def dense_config() -> SimulationConfig:
    """An 8x8 world filled to 90% so moves collide often."""
    return SimulationConfig(
        world_width=8,
        world_height=8,
        bugs_number=57,
        diffusion_rate=0.5,
        evaporation_rate=0.02,
        random_move_chance=10.0,
        seed=2024,
        iteration_count=20,
    )


@pytest.fixture
def scenario_engine(scenario_config: SimulationConfig) -> SimulationEngine:
    """An engine built from ``scenario_config``."""
    return SimulationEngine(config=scenario_config)

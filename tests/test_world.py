"""Tests for heatbugs.world.world and heatbugs.world.cell."""

import numpy as np
import pytest

from heatbugs.world.cell import (
    EMPTY_CELL,
    Occupant,
    decode_cell,
    encode_cell,
    is_occupied,
    occupied_flags,
)
from heatbugs.world.world import World


class TestCell:
    """Tests for the packed cell codec."""

    def test_empty_cell(self) -> None:
        assert encode_cell(None) == EMPTY_CELL
        assert decode_cell(EMPTY_CELL) is None
        assert not is_occupied(EMPTY_CELL)

    def test_layout(self) -> None:
        value = encode_cell(Occupant(ideal_temperature=3, output_heat=5))
        assert value == (3 << 8) | 0x80 | 5

    @pytest.mark.parametrize(
        "occupant",
        [
            Occupant(ideal_temperature=0, output_heat=0),
            Occupant(ideal_temperature=199, output_heat=99),
            Occupant(ideal_temperature=255, output_heat=127),
        ],
    )
    def test_round_trip(self, occupant: Occupant) -> None:
        value = encode_cell(occupant)
        assert is_occupied(value)
        assert decode_cell(value) == occupant

    def test_occupied_flags(self) -> None:
        cold = encode_cell(Occupant(ideal_temperature=0, output_heat=0))
        hot = encode_cell(Occupant(ideal_temperature=255, output_heat=127))
        values = np.array([EMPTY_CELL, cold, 0x7F, hot], dtype=np.uint16)
        assert occupied_flags(values).tolist() == [False, True, False, True]

    def test_fields_do_not_overlap(self) -> None:
        value = encode_cell(Occupant(ideal_temperature=255, output_heat=0))
        assert decode_cell(value) == Occupant(ideal_temperature=255, output_heat=0)

    def test_rejects_oversized_stats(self) -> None:
        with pytest.raises(ValueError):
            encode_cell(Occupant(ideal_temperature=256, output_heat=0))
        with pytest.raises(ValueError):
            encode_cell(Occupant(ideal_temperature=0, output_heat=128))


class TestWorld:
    """Tests for the World grid."""

    def test_dimensions(self, small_world: World) -> None:
        assert small_world.size == 25
        assert small_world.heat.current.shape == (5, 5)
        assert small_world.swarm_map.shape == (25,)

    def test_starts_empty_and_cold(self, small_world: World) -> None:
        assert small_world.occupied_count() == 0
        assert small_world.heat.total() == 0.0

    def test_index_round_trip(self, small_world: World) -> None:
        index = small_world.index_of(3, 2)
        assert index == 13
        assert small_world.coords_of(index) == (3, 2)

    def test_index_out_of_bounds(self, small_world: World) -> None:
        with pytest.raises(IndexError):
            small_world.index_of(5, 0)

    def test_neighbours_centre(self, small_world: World) -> None:
        # (2, 2): up (2, 1), down (2, 3), left (1, 2), right (3, 2)
        assert small_world.neighbours(12) == [7, 17, 11, 13]

    def test_neighbours_wrap_at_corner(self, small_world: World) -> None:
        # (0, 0): up wraps to (0, 4), left wraps to (4, 0)
        assert small_world.neighbours(0) == [20, 5, 4, 1]

    def test_neighbour_table(self, small_world: World) -> None:
        table = small_world.neighbour_table()
        assert table.shape == (25, 4)
        assert table[24].tolist() == [19, 4, 23, 20]

    def test_occupy_and_vacate(self, small_world: World) -> None:
        occupant = Occupant(ideal_temperature=22, output_heat=17)
        small_world.occupy(6, occupant)
        assert small_world.is_occupied(6)
        assert small_world.occupant_at(6) == occupant
        assert small_world.occupied_count() == 1

        small_world.vacate(6)
        assert not small_world.is_occupied(6)
        assert small_world.occupant_at(6) is None

    def test_occupy_twice_fails(self, small_world: World) -> None:
        small_world.occupy(6, Occupant(ideal_temperature=22, output_heat=17))
        with pytest.raises(ValueError, match="already occupied"):
            small_world.occupy(6, Occupant(ideal_temperature=30, output_heat=20))

    def test_render(self) -> None:
        world = World(width=3, height=2)
        world.occupy(1, Occupant(ideal_temperature=20, output_heat=15))
        world.occupy(5, Occupant(ideal_temperature=20, output_heat=15))
        assert world.render() == "-@-\n--@"

from itertools import product

import pytest

from schematic_placer.core.schematic import Schematic
from schematic_placer.errors import StateError


def test_new_schematic_is_empty_and_locked():
    schematic = Schematic()
    assert schematic.is_locked
    assert schematic.size == (0, 0, 0)
    assert schematic.volume == 0
    assert schematic.offset == (0, 0, 0)
    with pytest.raises(StateError):
        schematic.blocks


def test_index_is_a_bijection():
    schematic = Schematic()
    schematic.set_size(3, 4, 5)
    indices = {
        schematic.index(x, y, z)
        for x, y, z in product(range(3), range(4), range(5))
    }
    assert indices == set(range(3 * 4 * 5))


def test_index_order_is_y_then_z_then_x():
    schematic = Schematic()
    schematic.set_size(3, 4, 5)
    assert schematic.index(1, 0, 0) == 1
    assert schematic.index(0, 0, 1) == 3
    assert schematic.index(0, 1, 0) == 15


def test_set_then_get_everywhere():
    schematic = Schematic()
    schematic.set_size(4, 3, 2)
    coords = list(product(range(4), range(3), range(2)))
    for i, (x, y, z) in enumerate(coords):
        schematic.set(x, y, z, 1000 + i)
    for i, (x, y, z) in enumerate(coords):
        assert schematic.get(x, y, z) == 1000 + i


def test_set_size_keeps_lock_and_discards_blocks():
    schematic = Schematic()
    schematic.set_size(2, 2, 2)
    schematic.set(1, 1, 1, 7)
    schematic._set_locked(False)

    schematic.set_size(2, 2, 2)
    assert not schematic.is_locked
    assert schematic.get(1, 1, 1) == 0
    assert schematic.volume == 8


def test_reset():
    schematic = Schematic()
    schematic.set_size(2, 1, 1)
    schematic.set_offset(1, -2, 3)
    schematic._set_locked(False)

    schematic.reset()
    assert schematic.is_locked
    assert schematic.size == (0, 0, 0)
    assert schematic.offset == (0, 0, 0)
    assert schematic._blocks is None


def test_blocks_view_is_read_only():
    schematic = Schematic()
    schematic.set_size(2, 1, 1)
    schematic.set(1, 0, 0, 5)
    schematic._set_locked(False)

    blocks = schematic.blocks
    assert blocks.tolist() == [0, 5]
    with pytest.raises(ValueError):
        blocks[0] = 1


def test_state_ids_are_16_bit():
    schematic = Schematic()
    schematic.set_size(1, 1, 1)
    schematic.set(0, 0, 0, 0xFFFF)
    assert schematic.get(0, 0, 0) == 0xFFFF

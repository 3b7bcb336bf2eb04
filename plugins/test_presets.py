#!/usr/bin/env python3
"""
Tests for the pattern catalog.
"""

from sparse_life.coord import Coord
from sparse_life.life import RULES, GameOfLife, create_rule
from sparse_life.presets import (
    PRESETS, PRESET_ORDER, get_preset, list_presets, load_into, random_soup, rule_for,
    to_world,
)
from sparse_life.world import World


def test_catalog_entries_complete():
    assert len(PRESETS) >= 19
    assert set(PRESET_ORDER) == set(PRESETS), "every preset is listed exactly once"
    assert len(PRESET_ORDER) == len(set(PRESET_ORDER))
    for key, preset in PRESETS.items():
        assert preset["name"], f"{key} has no name"
        assert preset["description"], f"{key} has no description"
        assert len(set(preset["cells"])) == len(preset["cells"]), f"{key} has duplicate cells"
        if "rule" in preset:
            assert preset["rule"] in RULES, f"{key} names unknown rule {preset['rule']}"


def test_cell_counts():
    expected = {
        "empty": 0, "blinker": 3, "glider": 5,
        "block": 4, "beehive": 6, "loaf": 7,
        "toad": 6, "beacon": 8, "pentadecathlon": 10, "pulsar": 48,
        "lwss": 9, "mwss": 11, "hwss": 13,
        "gosper_glider_gun": 36,
        "r_pentomino": 5, "diehard": 7, "acorn": 7,
    }
    for key, count in expected.items():
        assert len(PRESETS[key]["cells"]) == count, f"{key}: expected {count} cells"


def test_random_presets_are_different():
    small = PRESETS["random_small"]["cells"]
    medium = PRESETS["random_medium"]["cells"]
    assert len(medium) > len(small) > 0
    assert all(-10 <= x <= 10 and -10 <= y <= 10 for x, y in small)
    assert all((x * 7 + y * 13) % 3 == 0 for x, y in small)


def test_find_preset():
    assert get_preset("blinker") is PRESETS["blinker"]
    assert get_preset("BLINKER") is PRESETS["blinker"]
    assert get_preset("Blinker") is PRESETS["blinker"]
    assert get_preset("Glider") is PRESETS["glider"]
    assert get_preset("Empty") is PRESETS["empty"]
    assert get_preset("Gosper Glider Gun") is PRESETS["gosper_glider_gun"]
    assert get_preset("gosper glider gun") is PRESETS["gosper_glider_gun"]
    assert get_preset("NonExistent") is None


def test_list_presets():
    listing = list_presets()
    assert [key for key, *_ in listing] == PRESET_ORDER
    key, name, desc, count = listing[0]
    assert name == PRESETS[key]["name"]
    assert count == len(PRESETS[key]["cells"])

    highlife = list_presets("highlife")
    assert [key for key, *_ in highlife] == ["replicator"]
    assert "replicator" not in [key for key, *_ in list_presets("life")]


def test_to_world():
    world = to_world(PRESETS["blinker"])
    assert world.active_cell_count() == 3
    assert to_world(PRESETS["empty"]).active_cell_count() == 0


def test_load_into_with_offset():
    world = World()
    load_into(PRESETS["block"], world, Coord(10, 10))
    assert world.active_cell_count() == 4
    for c in ((10, 10), (11, 10), (10, 11), (11, 11)):
        assert world.get_cell(Coord(*c))


def test_load_into_negative_offset():
    world = World()
    load_into(PRESETS["block"], world, Coord(-10, -10))
    for c in ((-10, -10), (-9, -10), (-10, -9), (-9, -9)):
        assert world.get_cell(Coord(*c))
    assert not world.get_cell(Coord(0, 0))


def test_load_into_clears_world():
    world = World.from_cells([(100, 100), (200, 200)])
    load_into(PRESETS["blinker"], world)
    assert world.active_cell_count() == 3
    assert not world.get_cell(Coord(100, 100))


def test_still_lifes_are_stable():
    gol = GameOfLife()
    for key in ("block", "beehive", "loaf"):
        world = to_world(PRESETS[key])
        assert gol.apply(world) == world, f"{key} should be a still life"


def test_oscillator_periods():
    gol = GameOfLife()
    for key, period in (("blinker", 2), ("toad", 2), ("beacon", 2), ("pulsar", 3)):
        world = to_world(PRESETS[key])
        assert gol.apply(world) != world, f"{key} should change after one generation"
        assert gol.apply_n(world, period) == world, f"{key} should have period {period}"


def test_spaceships_keep_their_size():
    gol = GameOfLife()
    for key in ("glider", "lwss", "mwss", "hwss"):
        world = to_world(PRESETS[key])
        count = world.active_cell_count()
        period = 4
        moved = gol.apply_n(world, period)
        assert moved.active_cell_count() == count, f"{key} lost cells"
        assert moved.get_bounds() != world.get_bounds(), f"{key} did not move"


def test_diehard_dies():
    world = GameOfLife().apply_n(to_world(PRESETS["diehard"]), 130)
    assert world.active_cell_count() == 0
    assert world.chunk_count() == 0


def test_replicator_under_highlife():
    world = to_world(PRESETS["replicator"])
    grown = create_rule("highlife").apply_n(world, 12)
    assert grown.active_cell_count() > world.active_cell_count()


def test_random_soup():
    a = random_soup(20, 10, density=0.5, seed=7)
    b = random_soup(20, 10, density=0.5, seed=7)
    assert a == b, "same seed gives the same soup"
    assert all(-10 <= x < 10 and -5 <= y < 5 for x, y in a)
    assert 0 < len(a) < 200
    assert random_soup(8, 8, density=0.0, seed=1) == []
    assert len(random_soup(8, 8, density=1.0, seed=1)) == 64


def test_rule_for():
    default = GameOfLife()
    assert rule_for(PRESETS["glider"], default) is default
    highlife = rule_for(PRESETS["replicator"], default)
    assert highlife.rule_str == "B36/S23"

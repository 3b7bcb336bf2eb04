"""
Pattern Presets

Named seed configurations for the sparse world. Each preset lists its
live cells relative to its own origin; loading places them at an
offset. The optional "rule" field names the rule variant the pattern is
meant for (see life.RULES); patterns without it are Game of Life
patterns.
"""

import numpy as np

from .coord import Coord
from .life import create_rule
from .world import World


def _pattern_cells(rows, x0=0, y0=0):
    """Cells from an ASCII picture: 'O' is alive, anything else dead."""
    return [(x0 + x, y0 + y)
            for y, row in enumerate(rows)
            for x, ch in enumerate(row) if ch == "O"]


def _lattice_cells(radius, a, b, m):
    """Deterministic pseudo-random fill: (x*a + y*b) % m == 0 over a square."""
    return [(x, y)
            for x in range(-radius, radius + 1)
            for y in range(-radius, radius + 1)
            if (x * a + y * b) % m == 0]


def random_soup(width=32, height=32, density=0.35, seed=None):
    """Random rectangle of cells centered on the origin.

    Args:
        width, height: Soup size in cells
        density: Probability that a cell starts alive
        seed: RNG seed for reproducible soups
    """
    rng = np.random.default_rng(seed)
    mask = rng.random((height, width)) < density
    ys, xs = np.nonzero(mask)
    ox, oy = width // 2, height // 2
    return [(int(x) - ox, int(y) - oy) for y, x in zip(ys, xs)]


PRESETS = {
    # =====================================================================
    # SEEDS
    # =====================================================================
    "empty": {
        "name": "Empty",
        "description": "Empty world with no live cells",
        "cells": [],
    },
    "random_small": {
        "name": "Random Small",
        "description": "Scattered cells over a 21x21 square",
        "cells": _lattice_cells(10, 7, 13, 3),
    },
    "random_medium": {
        "name": "Random Medium",
        "description": "Scattered cells over a 51x51 square",
        "cells": _lattice_cells(25, 11, 17, 4),
    },

    # =====================================================================
    # OSCILLATORS
    # =====================================================================
    "blinker": {
        "name": "Blinker",
        "description": "Simplest oscillator, period 2",
        "cells": [(0, 0), (1, 0), (2, 0)],
    },
    "toad": {
        "name": "Toad",
        "description": "Period 2 oscillator",
        "cells": [(1, 0), (2, 0), (3, 0), (0, 1), (1, 1), (2, 1)],
    },
    "beacon": {
        "name": "Beacon",
        "description": "Two blocks blinking their inner corners, period 2",
        "cells": [(0, 0), (1, 0), (0, 1), (1, 1),
                  (2, 2), (3, 2), (2, 3), (3, 3)],
    },
    "pentadecathlon": {
        "name": "Pentadecathlon",
        "description": "Ten-cell row that oscillates with period 15",
        "cells": [(x, 0) for x in range(10)],
    },
    "pulsar": {
        "name": "Pulsar",
        "description": "Large symmetric oscillator, period 3",
        "cells": [(sx * x, sy * y)
                  for sx in (-1, 1) for sy in (-1, 1)
                  for x, y in ((6, 4), (6, 3), (6, 2),
                               (4, 6), (3, 6), (2, 6),
                               (4, 1), (3, 1), (2, 1),
                               (1, 4), (1, 3), (1, 2))],
    },

    # =====================================================================
    # SPACESHIPS
    # =====================================================================
    "glider": {
        "name": "Glider",
        "description": "The classic glider, travels diagonally",
        "cells": [(1, 0), (2, 1), (0, 2), (1, 2), (2, 2)],
    },
    "lwss": {
        "name": "LWSS",
        "description": "Lightweight spaceship, travels horizontally",
        "cells": _pattern_cells([
            ".O..O",
            "O....",
            "O...O",
            "OOOO.",
        ]),
    },
    "mwss": {
        "name": "MWSS",
        "description": "Middleweight spaceship, travels horizontally",
        "cells": _pattern_cells([
            "..O...",
            "O...O.",
            ".....O",
            "O....O",
            ".OOOOO",
        ]),
    },
    "hwss": {
        "name": "HWSS",
        "description": "Heavyweight spaceship, largest of the standard ships",
        "cells": _pattern_cells([
            "..OO...",
            "O....O.",
            "......O",
            "O.....O",
            ".OOOOOO",
        ]),
    },

    # =====================================================================
    # GUNS
    # =====================================================================
    "gosper_glider_gun": {
        "name": "Gosper Glider Gun",
        "description": "Emits a new glider every 30 generations, forever",
        "cells": [
            # left block
            (0, 4), (0, 5), (1, 4), (1, 5),
            # left ship
            (10, 4), (10, 5), (10, 6), (11, 3), (11, 7), (12, 2), (12, 8),
            (13, 2), (13, 8), (14, 5), (15, 3), (15, 7),
            (16, 4), (16, 5), (16, 6), (17, 5),
            # right ship
            (20, 2), (20, 3), (20, 4), (21, 2), (21, 3), (21, 4),
            (22, 1), (22, 5), (24, 0), (24, 1), (24, 5), (24, 6),
            # right block
            (34, 2), (34, 3), (35, 2), (35, 3),
        ],
    },

    # =====================================================================
    # METHUSELAHS
    # =====================================================================
    "r_pentomino": {
        "name": "R-pentomino",
        "description": "Five cells that take 1103 generations to settle",
        "cells": [(1, 0), (2, 0), (0, 1), (1, 1), (1, 2)],
    },
    "diehard": {
        "name": "Diehard",
        "description": "Vanishes completely after 130 generations",
        "cells": [(6, 0), (0, 1), (1, 1), (1, 2), (5, 2), (6, 2), (7, 2)],
    },
    "acorn": {
        "name": "Acorn",
        "description": "Seven cells that stabilise after 5206 generations",
        "cells": [(1, 0), (3, 1), (0, 2), (1, 2), (4, 2), (5, 2), (6, 2)],
    },

    # =====================================================================
    # STILL LIFES
    # =====================================================================
    "block": {
        "name": "Block",
        "description": "2x2 block, the simplest still life",
        "cells": [(0, 0), (1, 0), (0, 1), (1, 1)],
    },
    "beehive": {
        "name": "Beehive",
        "description": "Six-cell hexagonal still life",
        "cells": [(1, 0), (2, 0), (0, 1), (3, 1), (1, 2), (2, 2)],
    },
    "loaf": {
        "name": "Loaf",
        "description": "Seven-cell asymmetric still life",
        "cells": [(1, 0), (2, 0), (0, 1), (3, 1), (1, 2), (3, 2), (2, 3)],
    },

    # =====================================================================
    # VARIANT RULES
    # =====================================================================
    "replicator": {
        "name": "Replicator",
        "description": "HighLife replicator - copies itself along a diagonal",
        "cells": _pattern_cells([
            "..OOO",
            ".O..O",
            "O...O",
            "O..O.",
            "OOO..",
        ]),
        "rule": "highlife",
    },
}

# Display / keyboard order
PRESET_ORDER = [
    "glider", "gosper_glider_gun", "r_pentomino", "acorn", "pulsar",
    "lwss", "pentadecathlon", "random_medium", "diehard",
    "empty", "random_small", "blinker", "toad", "beacon",
    "mwss", "hwss", "block", "beehive", "loaf", "replicator",
]


def get_preset(name):
    """Get a preset by key or display name (case-insensitive). None if not found."""
    preset = PRESETS.get(name)
    if preset is not None:
        return preset
    wanted = name.strip().lower()
    for key, p in PRESETS.items():
        if key == wanted or p["name"].lower() == wanted:
            return p
    return None


def list_presets(rule=None):
    """Return list of (key, name, description, cell_count).

    If rule is given, only presets meant for that rule key are listed
    ("life" also covers presets without an explicit rule).
    """
    out = []
    for key in PRESET_ORDER:
        p = PRESETS[key]
        if rule is not None and p.get("rule", "life") != rule:
            continue
        out.append((key, p["name"], p["description"], len(p["cells"])))
    return out


def rule_for(preset, default):
    """Rule the preset is meant for, or `default` for plain Life patterns."""
    if "rule" in preset:
        return create_rule(preset["rule"])
    return default


def to_world(preset, offset=Coord(0, 0)):
    """Fresh World holding the preset's cells shifted by offset."""
    world = World()
    for x, y in preset["cells"]:
        world.set_cell(Coord(offset.x + x, offset.y + y), True)
    return world


def load_into(preset, world, offset=Coord(0, 0)):
    """Clear `world`, then place the preset's cells at offset."""
    world.clear()
    for x, y in preset["cells"]:
        world.set_cell(Coord(offset.x + x, offset.y + y), True)
    return world

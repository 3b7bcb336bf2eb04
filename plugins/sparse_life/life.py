"""
Game of Life Rules - Classic and Variant Life-like Automata

Supports arbitrary B/S (birth/survival) rule notation:
- B3/S23: Conway's Game of Life
- B36/S23: HighLife (self-replicating)
- B3678/S34678: Day & Night

Every rule here runs on the sparse World. Only the candidate set (live
cells plus their Moore neighbors) is evaluated, since no other cell can
change state in one generation.
"""

from .coord import MOORE_OFFSETS, Coord
from .rule_base import Rule
from .world import World


def parse_rule(rule_str):
    """Parse B/S notation like 'B3/S23' into (birth_set, survive_set)."""
    rule_str = rule_str.upper().replace(" ", "")
    parts = rule_str.split("/")
    birth = set()
    survive = set()
    for part in parts:
        if part.startswith("B"):
            birth = {int(c) for c in part[1:]}
        elif part.startswith("S"):
            survive = {int(c) for c in part[1:]}
        else:
            raise ValueError(f"Unrecognised rule part {part!r} in {rule_str!r}")
    for n in birth | survive:
        if n > 8:
            raise ValueError(f"Neighbor count {n} out of range in {rule_str!r}")
    return birth, survive


def format_rule(birth, survive):
    """Inverse of parse_rule: ({3}, {2, 3}) -> 'B3/S23'."""
    return ("B" + "".join(str(n) for n in sorted(birth)) +
            "/S" + "".join(str(n) for n in sorted(survive)))


def candidate_cells(world):
    """Live cells and all their neighbors, deduplicated."""
    candidates = set()
    for cell in world.iter_active_cells():
        x, y = cell.x, cell.y
        candidates.add(cell)
        for dx, dy in MOORE_OFFSETS:
            candidates.add(Coord(x + dx, y + dy))
    return candidates


class LifeLikeRule(Rule):
    """Outer-totalistic Moore rule given in B/S notation."""

    rule_key = "lifelike"

    def __init__(self, rule="B3/S23", label=None):
        """
        Args:
            rule: B/S rule notation string
            label: Display name (defaults to the notation itself)
        """
        self.birth, self.survive = parse_rule(rule)
        if 0 in self.birth:
            # B0 would birth every empty cell of the infinite plane
            raise ValueError(f"B0 rules are not supported on an unbounded world: {rule!r}")
        self.rule_str = format_rule(self.birth, self.survive)
        self.rule_label = label or self.rule_str

    def next_state(self, alive, neighbors):
        if alive:
            return neighbors in self.survive
        return neighbors in self.birth

    def apply(self, current):
        """Advance one generation. `current` is only read, never written."""
        nxt = World()
        for coord in candidate_cells(current):
            alive = current.get_cell(coord)
            neighbors = current.count_neighbors(coord)
            if self.next_state(alive, neighbors):
                nxt.set_cell(coord, True)
        return nxt

    def get_params(self):
        return {"rule": self.rule_str, "label": self.rule_label}


class GameOfLife(LifeLikeRule):
    """Conway's Game of Life (B3/S23)."""

    rule_key = "life"

    def __init__(self):
        super().__init__("B3/S23", label="Conway's Game of Life")

    def next_state(self, alive, neighbors):
        if alive:
            return neighbors == 2 or neighbors == 3
        return neighbors == 3


# Named variants. "life" is the built-in Conway rule; the rest are
# Life-like rules over the same sparse engine.
RULES = {
    "life": {
        "name": "Conway's Game of Life",
        "rule": "B3/S23",
        "description": "The original B3/S23",
    },
    "highlife": {
        "name": "HighLife",
        "rule": "B36/S23",
        "description": "B36/S23 - features a self-replicating pattern",
    },
    "day_night": {
        "name": "Day & Night",
        "rule": "B3678/S34678",
        "description": "Symmetric rule - patterns work in positive and negative",
    },
    "diamoeba": {
        "name": "Diamoeba",
        "rule": "B35678/S5678",
        "description": "Amoeba-like growth with diamond shapes",
    },
    "seeds": {
        "name": "Seeds",
        "rule": "B2/S",
        "description": "Explosive growth - every birth dies next step",
    },
    "life_without_death": {
        "name": "Life without Death",
        "rule": "B3/S012345678",
        "description": "Cells never die; grows ladders and inkblots",
    },
}

RULE_ORDER = ["life", "highlife", "day_night", "diamoeba", "seeds", "life_without_death"]


def create_rule(key="life"):
    """Build a rule by registry key or raw B/S notation.

    Raises:
        KeyError: key is neither a registered rule nor B/S notation
    """
    if key == "life":
        return GameOfLife()
    entry = RULES.get(key)
    if entry is not None:
        return LifeLikeRule(entry["rule"], label=entry["name"])
    if key.upper().startswith("B"):
        try:
            return LifeLikeRule(key)
        except ValueError as e:
            raise KeyError(f"Invalid rule {key!r}: {e}") from e
    raise KeyError(f"Unknown rule: {key!r}")

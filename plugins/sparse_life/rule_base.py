"""
Abstract Base Class for Automaton Rules

All rules (Game of Life, HighLife, etc.) implement this interface so the
Simulation can drive any of them interchangeably.

A rule is a pure function of one World: apply() must build and return a
new World and must never write to the one it was given.
"""

from abc import ABC, abstractmethod


class Rule(ABC):
    """Base class for generation-transition rules."""

    rule_key = ""     # e.g. "life", "highlife"
    rule_label = ""   # e.g. "Conway's Game of Life"

    @abstractmethod
    def apply(self, current):
        """Return the next generation of `current` as a new World."""

    def name(self):
        """Human-readable rule name."""
        return self.rule_label

    def apply_n(self, current, n):
        """Apply the rule n times. Returns the final World."""
        if n <= 0:
            return current.copy()
        world = current
        for _ in range(n):
            world = self.apply(world)
        return world

    def __repr__(self):
        return f"{type(self).__name__}({self.name()!r})"

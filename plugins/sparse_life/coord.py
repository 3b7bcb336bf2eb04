"""
Lattice Coordinates

Integer (x, y) points on the unbounded plane, plus the arithmetic that
maps a point onto its chunk and its offset inside that chunk.

Floored division is used throughout so negative coordinates land in
contiguous chunks: with a chunk side of 64, x = -1 belongs to chunk -1
at local offset 63 (truncating division would give chunk 0, offset -1).
"""

from dataclasses import dataclass


# Moore neighborhood offsets, row by row, center excluded
MOORE_OFFSETS = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)


@dataclass(frozen=True)
class Coord:
    """A cell position. Hashable, compares by value."""

    x: int
    y: int

    def chunk_coord(self, chunk_size):
        """Return the (cx, cy) of the chunk holding this cell."""
        return self.x // chunk_size, self.y // chunk_size

    def local_coord(self, chunk_size):
        """Return the offset inside the owning chunk, each axis in [0, chunk_size)."""
        return self.x % chunk_size, self.y % chunk_size

    def neighbors(self):
        """The 8 Moore-adjacent coordinates."""
        x, y = self.x, self.y
        return [Coord(x + dx, y + dy) for dx, dy in MOORE_OFFSETS]

    def __add__(self, other):
        return Coord(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        return Coord(self.x - other.x, self.y - other.y)

    def __iter__(self):
        yield self.x
        yield self.y

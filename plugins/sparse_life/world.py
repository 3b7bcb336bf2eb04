"""
Sparse World - the authoritative lattice snapshot

The plane is unbounded; storage is not. Cells are grouped into
CHUNK_SIZE x CHUNK_SIZE chunks and only chunks holding at least one live
cell are kept. A missing chunk simply reads as dead, so memory follows
the live region no matter how far patterns travel.
"""

from .chunk import Chunk, CHUNK_SIZE
from .coord import Coord


class World:
    """Mapping of chunk coordinate (cx, cy) -> Chunk.

    Invariants:
        - every registered chunk is non-empty
        - active_cell_count() == sum of per-chunk counts
    """

    def __init__(self):
        self.chunks = {}

    @classmethod
    def from_cells(cls, cells):
        """Build a world from an iterable of (x, y) pairs or Coords."""
        world = cls()
        for x, y in cells:
            world.set_cell(Coord(x, y), True)
        return world

    def get_cell(self, coord):
        chunk = self.chunks.get(coord.chunk_coord(CHUNK_SIZE))
        if chunk is None:
            return False
        lx, ly = coord.local_coord(CHUNK_SIZE)
        return chunk.get_cell(lx, ly)

    def set_cell(self, coord, alive):
        key = coord.chunk_coord(CHUNK_SIZE)
        lx, ly = coord.local_coord(CHUNK_SIZE)

        if alive:
            chunk = self.chunks.get(key)
            if chunk is None:
                chunk = self.chunks[key] = Chunk()
            chunk.set_cell(lx, ly, True)
            return

        chunk = self.chunks.get(key)
        if chunk is not None:
            chunk.set_cell(lx, ly, False)
            if chunk.is_empty():
                del self.chunks[key]

    def chunk_count(self):
        return len(self.chunks)

    def active_cell_count(self):
        return sum(chunk.active_count() for chunk in self.chunks.values())

    def iter_active_cells(self):
        """Lazily yield every live Coord. Each call starts a new pass."""
        for (cx, cy), chunk in self.chunks.items():
            ox = cx * CHUNK_SIZE
            oy = cy * CHUNK_SIZE
            for lx, ly in chunk.iter_active():
                yield Coord(ox + lx, oy + ly)

    def get_bounds(self):
        """Return (min_corner, max_corner) over all live cells, or None.

        Minima and maxima are taken per axis independently, so the corners
        need not be live cells themselves.
        """
        cells = iter(self.iter_active_cells())
        first = next(cells, None)
        if first is None:
            return None

        min_x = max_x = first.x
        min_y = max_y = first.y
        for c in cells:
            if c.x < min_x:
                min_x = c.x
            elif c.x > max_x:
                max_x = c.x
            if c.y < min_y:
                min_y = c.y
            elif c.y > max_y:
                max_y = c.y
        return Coord(min_x, min_y), Coord(max_x, max_y)

    def count_neighbors(self, coord):
        """Number of live Moore neighbors of coord, in [0, 8]."""
        return sum(1 for n in coord.neighbors() if self.get_cell(n))

    def cells_in_region(self, x1, y1, x2, y2):
        """Live cells inside the inclusive rectangle, row-major order.

        Only chunks overlapping the rectangle are visited.
        """
        if x1 > x2:
            x1, x2 = x2, x1
        if y1 > y2:
            y1, y2 = y2, y1

        found = []
        for cx in range(x1 // CHUNK_SIZE, x2 // CHUNK_SIZE + 1):
            for cy in range(y1 // CHUNK_SIZE, y2 // CHUNK_SIZE + 1):
                chunk = self.chunks.get((cx, cy))
                if chunk is None:
                    continue
                ox, oy = cx * CHUNK_SIZE, cy * CHUNK_SIZE
                for lx, ly in chunk.iter_active():
                    x, y = ox + lx, oy + ly
                    if x1 <= x <= x2 and y1 <= y <= y2:
                        found.append(Coord(x, y))
        found.sort(key=lambda c: (c.y, c.x))
        return found

    def clear(self):
        self.chunks.clear()

    def copy(self):
        """Deep copy: the result shares no chunk with self."""
        other = World()
        other.chunks = {key: chunk.copy() for key, chunk in self.chunks.items()}
        return other

    @property
    def stats(self):
        bounds = self.get_bounds()
        return {
            "active_cells": self.active_cell_count(),
            "chunks": self.chunk_count(),
            "bounds": None if bounds is None else (tuple(bounds[0]), tuple(bounds[1])),
        }

    def __contains__(self, coord):
        return self.get_cell(coord)

    def __eq__(self, other):
        if not isinstance(other, World):
            return NotImplemented
        return self.chunks.keys() == other.chunks.keys() and all(
            chunk.active_cells == other.chunks[key].active_cells
            for key, chunk in self.chunks.items()
        )

    __hash__ = None

    def __repr__(self):
        return f"World(chunks={self.chunk_count()}, active={self.active_cell_count()})"

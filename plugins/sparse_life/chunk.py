"""
Chunk - one square tile of the sparse lattice

A chunk only records which of its CHUNK_SIZE x CHUNK_SIZE offsets are
alive. The owning World drops a chunk as soon as it empties, so a chunk
never has to represent "all dead" for long.
"""

CHUNK_SIZE = 64


class Chunk:
    """Set of live local offsets (lx, ly) within one tile."""

    __slots__ = ("active_cells",)

    def __init__(self, cells=None):
        self.active_cells = set(cells) if cells else set()

    def get_cell(self, lx, ly):
        return (lx, ly) in self.active_cells

    def set_cell(self, lx, ly, alive):
        if alive:
            self.active_cells.add((lx, ly))
        else:
            self.active_cells.discard((lx, ly))

    def is_empty(self):
        return not self.active_cells

    def active_count(self):
        return len(self.active_cells)

    def iter_active(self):
        """Yield each live offset once. Order is unspecified."""
        return iter(self.active_cells)

    def clear(self):
        self.active_cells.clear()

    def copy(self):
        return Chunk(self.active_cells)

    def __repr__(self):
        return f"Chunk(active={len(self.active_cells)})"

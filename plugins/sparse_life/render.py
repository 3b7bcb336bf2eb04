"""
Rasterizing the Sparse World

Turns a rectangular window of the unbounded world into numpy arrays for
display: a binary occupancy grid, a fading trail buffer (live cells
bright, dead cells decaying, like the classic Life fade look), and RGB
via lookup-table colormaps. Also writes PNG snapshots through Pillow.
"""

import numpy as np

from .chunk import CHUNK_SIZE


def render_region(world, x0, y0, width, height):
    """Occupancy of the window [x0, x0+width) x [y0, y0+height).

    Returns:
        (height, width) uint8 array, 1 where alive. Row index is y - y0.
    """
    grid = np.zeros((height, width), dtype=np.uint8)
    if width <= 0 or height <= 0:
        return grid
    x1 = x0 + width - 1
    y1 = y0 + height - 1

    for cx in range(x0 // CHUNK_SIZE, x1 // CHUNK_SIZE + 1):
        for cy in range(y0 // CHUNK_SIZE, y1 // CHUNK_SIZE + 1):
            chunk = world.chunks.get((cx, cy))
            if chunk is None:
                continue
            offsets = np.fromiter(
                (v for lx, ly in chunk.iter_active() for v in (lx, ly)),
                dtype=np.int64, count=2 * chunk.active_count(),
            ).reshape(-1, 2)
            xs = offsets[:, 0] + cx * CHUNK_SIZE - x0
            ys = offsets[:, 1] + cy * CHUNK_SIZE - y0
            inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
            grid[ys[inside], xs[inside]] = 1
    return grid


class FadeBuffer:
    """Float trail buffer: live cells at 1.0, dead cells decay each update."""

    def __init__(self, width, height, fade_rate=0.92):
        """
        Args:
            width, height: Buffer size in cells
            fade_rate: Decay per update for dead cells (0 = instant, 0.99 = long trail)
        """
        self.fade_rate = fade_rate
        self.values = np.zeros((height, width), dtype=np.float32)

    def resize(self, width, height):
        if self.values.shape != (height, width):
            self.values = np.zeros((height, width), dtype=np.float32)

    def update(self, occupancy):
        alive = occupancy > 0
        self.values[~alive] *= self.fade_rate
        self.values[alive] = 1.0
        return self.values

    def clear(self):
        self.values[:] = 0.0


def _interpolate_colors(stops, n=256):
    """
    Build a colormap by interpolating between color stops.

    Args:
        stops: List of (position, (r, g, b)) where position is [0, 1]
        n: Number of entries in the LUT
    """
    positions = np.array([s[0] for s in stops], dtype=np.float64)
    colors = np.array([s[1] for s in stops], dtype=np.float64)
    t = np.linspace(0.0, 1.0, n)
    lut = np.empty((n, 3), dtype=np.uint8)
    for c in range(3):
        lut[:, c] = np.interp(t, positions, colors[:, c]).astype(np.uint8)
    return lut


def neon_bio():
    """Dark background, green halo, pink cores."""
    return _interpolate_colors([
        (0.00, (5, 2, 8)),
        (0.15, (40, 15, 5)),
        (0.40, (20, 180, 80)),
        (0.70, (140, 40, 180)),
        (0.90, (255, 50, 90)),
        (1.00, (255, 210, 220)),
    ])


def mono():
    """Plain black to white."""
    return _interpolate_colors([(0.0, (0, 0, 0)), (1.0, (255, 255, 255))])


COLORMAPS = {
    "neon_bio": neon_bio,
    "mono": mono,
}


def colorize(values, lut):
    """Map float values in [0, 1] to an (H, W, 3) uint8 image."""
    idx = np.clip(values * (len(lut) - 1), 0, len(lut) - 1).astype(np.intp)
    return lut[idx]


def world_image(world, margin=4, scale=4, colormap="mono"):
    """RGB image of the world's bounding box plus margin, or None if empty.

    Each cell becomes a scale x scale block.
    """
    bounds = world.get_bounds()
    if bounds is None:
        return None
    lo, hi = bounds
    x0, y0 = lo.x - margin, lo.y - margin
    width = hi.x - lo.x + 1 + 2 * margin
    height = hi.y - lo.y + 1 + 2 * margin

    grid = render_region(world, x0, y0, width, height).astype(np.float32)
    rgb = colorize(grid, COLORMAPS[colormap]())
    if scale > 1:
        rgb = np.repeat(np.repeat(rgb, scale, axis=0), scale, axis=1)
    return rgb


def save_png(world, path, margin=4, scale=4, colormap="mono"):
    """Write the world's bounding region to a PNG. Returns path, or None if empty."""
    from PIL import Image

    rgb = world_image(world, margin=margin, scale=scale, colormap=colormap)
    if rgb is None:
        return None
    Image.fromarray(rgb).save(path)
    return path

# copaint/raster/flood_fill.py

from __future__ import annotations

import math

import numpy as np

from copaint.raster.colors import RGBA


def _run_starts(mask: np.ndarray) -> np.ndarray:
    """Indices where a run of True values begins."""
    previous = np.concatenate(([False], mask[:-1]))
    return np.flatnonzero(mask & ~previous)


def flood_fill(pixels: np.ndarray, x: float, y: float, color: RGBA) -> bool:
    """
    Repaint the 4-connected region around ``(x, y)`` in place.

    A pixel belongs to the region only if all four channels equal the seed
    pixel's original value exactly; anti-aliased edges are therefore not a
    barrier. The walk keeps its own stack of span seeds instead of recursing,
    so memory is bounded by the stack rather than call depth.

    Args:
        pixels: (height, width, 4) uint8 buffer, modified in place
        x, y: seed position; fractional coordinates are floored
        color: RGBA fill colour

    Returns:
        True if any pixel changed. Seeds outside the buffer, or seeds that
        already carry the fill colour, leave the buffer untouched.
    """
    height, width = pixels.shape[:2]
    sx, sy = int(math.floor(x)), int(math.floor(y))
    if not (0 <= sx < width and 0 <= sy < height):
        return False

    fill = np.asarray(color, dtype=np.uint8)
    target = pixels[sy, sx].copy()
    if np.array_equal(target, fill):
        return False

    # Pixels still waiting to be painted; cleared as spans are consumed.
    pending = np.all(pixels == target, axis=-1)
    stack = [(sx, sy)]

    while stack:
        cx, cy = stack.pop()
        row = pending[cy]
        if not row[cx]:
            continue

        left = cx
        while left > 0 and row[left - 1]:
            left -= 1
        right = cx
        while right < width - 1 and row[right + 1]:
            right += 1

        row[left:right + 1] = False
        pixels[cy, left:right + 1] = fill

        for ny in (cy - 1, cy + 1):
            if 0 <= ny < height:
                for offset in _run_starts(pending[ny, left:right + 1]):
                    stack.append((left + int(offset), ny))

    return True

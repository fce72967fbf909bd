# copaint/raster/reconstruction.py

from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from copaint.models.actions import Action
from copaint.raster.canvas import Raster


def replay(history: Iterable[Action], size: Tuple[int, int]) -> Raster:
    """Paint ``history`` in order onto a blank raster of ``size`` (width, height)."""
    raster = Raster(*size)
    for action in history:
        raster.apply(action)
    return raster


def reconstruct(history: Iterable[Action], size: Tuple[int, int]) -> np.ndarray:
    """
    Derive the pixel buffer for an ordered action log.

    Starts from a blank canvas every time; a clear resets the buffer and the
    actions after it paint onto blank. The same history and size always give
    byte-identical output.

    Returns:
        (height, width, 4) uint8 array
    """
    return replay(history, size).pixels()

# copaint/raster/colors.py

from __future__ import annotations

from functools import lru_cache
from typing import Tuple

from PIL import ImageColor

RGBA = Tuple[int, int, int, int]

BLANK: RGBA = (0, 0, 0, 0)
ERASER_COLOR: RGBA = (255, 255, 255, 255)


@lru_cache(maxsize=256)
def parse_color(value: str) -> RGBA:
    """
    Convert a CSS colour string to an RGBA tuple.

    Accepts ``#rgb``, ``#rrggbb``, ``#rrggbbaa``, ``rgb()``/``hsl()`` forms and
    colour names, as understood by Pillow. Raises ``ValueError`` otherwise.
    """
    return ImageColor.getcolor(value.strip(), "RGBA")


def opaque(color: RGBA) -> RGBA:
    r, g, b, _ = color
    return (r, g, b, 255)

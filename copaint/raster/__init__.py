from copaint.raster.canvas import Raster
from copaint.raster.colors import BLANK, ERASER_COLOR, parse_color
from copaint.raster.flood_fill import flood_fill
from copaint.raster.reconstruction import reconstruct, replay

__all__ = [
    "BLANK",
    "ERASER_COLOR",
    "Raster",
    "flood_fill",
    "parse_color",
    "reconstruct",
    "replay",
]

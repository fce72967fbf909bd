# copaint/raster/canvas.py
"""Pixel buffer that durable actions and live segments are painted onto."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from copaint.models.actions import Action, DrawSegment, FillData, Point, ShapeData, StrokeData
from copaint.raster.colors import BLANK, ERASER_COLOR, RGBA, opaque, parse_color
from copaint.raster.flood_fill import flood_fill


def _line_width(width: float) -> int:
    return max(1, int(round(width)))


class Raster:
    """
    An RGBA canvas with opaque, non-anti-aliased painting.

    Every primitive overwrites pixels instead of blending with them, so
    painting the same action twice leaves the same pixels as painting it once.
    That is what lets an author safely re-apply its own echoed actions.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}")
        self.image = Image.new("RGBA", (width, height), BLANK)

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def pixels(self) -> np.ndarray:
        """Copy of the buffer as a (height, width, 4) uint8 array."""
        return np.array(self.image, dtype=np.uint8)

    def tobytes(self) -> bytes:
        return self.image.tobytes()

    def clear(self) -> None:
        self.image = Image.new("RGBA", self.image.size, BLANK)

    def apply(self, action: Action) -> None:
        if action.type == "clear":
            self.clear()
        elif action.type == "stroke":
            self.draw_stroke(action.data)
        elif action.type == "shape":
            self.draw_shape(action.data)
        elif action.type == "fill":
            self.fill(action.data)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def _polyline(self, points: Sequence[Point], color: RGBA, width: float, closed: bool = False) -> None:
        draw = ImageDraw.Draw(self.image)
        line_width = _line_width(width)
        coords = [(p.x, p.y) for p in points]
        if closed:
            coords.append(coords[0])

        for start, end in zip(coords, coords[1:]):
            draw.line([start, end], fill=color, width=line_width)

        # Round caps and joins
        radius = line_width / 2
        if radius >= 1:
            for x, y in coords:
                draw.ellipse([x - radius, y - radius, x + radius, y + radius], fill=color)

    def draw_stroke(self, stroke: StrokeData) -> None:
        # A tap without movement carries a single point and paints nothing.
        if len(stroke.points) < 2:
            return
        color = ERASER_COLOR if stroke.tool == "eraser" else parse_color(stroke.color)
        self._polyline(stroke.points, color, stroke.width)

    def draw_shape(self, shape: ShapeData) -> None:
        color = parse_color(shape.color)
        start, end = shape.start_point, shape.end_point
        w = end.x - start.x
        h = end.y - start.y

        if shape.type == "rect":
            corners = [
                start,
                Point(x=end.x, y=start.y),
                end,
                Point(x=start.x, y=end.y),
            ]
            self._polyline(corners, color, shape.width, closed=True)
        elif shape.type == "circle":
            radius = math.hypot(w, h)
            line_width = _line_width(shape.width)
            outer = radius + line_width / 2
            draw = ImageDraw.Draw(self.image)
            draw.ellipse(
                [start.x - outer, start.y - outer, start.x + outer, start.y + outer],
                outline=color,
                width=line_width,
            )
        elif shape.type == "triangle":
            vertices = [
                Point(x=start.x + w / 2, y=start.y),
                Point(x=start.x, y=start.y + h),
                Point(x=start.x + w, y=start.y + h),
            ]
            self._polyline(vertices, color, shape.width, closed=True)

    def fill(self, fill: FillData) -> bool:
        buffer = self.pixels()
        changed = flood_fill(buffer, fill.point.x, fill.point.y, opaque(parse_color(fill.color)))
        if changed:
            self.image = Image.fromarray(buffer)
        return changed

    def draw_segment(self, segment: DrawSegment) -> None:
        """Paint a live feedback segment; never recorded anywhere."""
        if segment.prev_point is None:
            return
        self._polyline([segment.prev_point, segment.current_point], parse_color(segment.color), segment.width)

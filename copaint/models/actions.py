# copaint/models/actions.py
"""Durable drawing actions and the ephemeral payloads that travel beside them.

An :class:`Action` is created once by its author and never rewritten; it is
stored in a room's History and replayed by the raster engine. Draw segments and
cursor positions are feedback only and never enter History.
"""
from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

ActionType = Literal["stroke", "shape", "fill", "clear"]
StrokeTool = Literal["brush", "pencil", "eraser"]
ShapeKind = Literal["rect", "circle", "triangle"]


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class StrokeData(BaseModel):
    model_config = ConfigDict(frozen=True)

    points: list[Point] = Field(default_factory=list)
    color: str
    width: float = 1.0
    tool: StrokeTool = "brush"


class ShapeData(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ShapeKind
    start_point: Point
    end_point: Point
    color: str
    width: float = 1.0
    # Reserved: shapes always render as outlines
    is_filled: bool = False


class FillData(BaseModel):
    model_config = ConfigDict(frozen=True)

    point: Point
    color: str


_PAYLOADS: dict[str, type[BaseModel]] = {
    "stroke": StrokeData,
    "shape": ShapeData,
    "fill": FillData,
}


class Action(BaseModel):
    """
    One durable entry of a room's History.

    The ``type`` tag selects the payload model held in ``data``; a clear
    carries no payload. Validation rejects a tag that does not match its
    payload so a stroke can never be replayed as a shape.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: ActionType
    data: Optional[Union[StrokeData, ShapeData, FillData]] = None
    user_id: str = ""
    timestamp: int = 0

    @model_validator(mode="before")
    @classmethod
    def _select_payload(cls, values):
        if not isinstance(values, dict):
            return values
        kind = values.get("type")
        data = values.get("data")
        if kind == "clear":
            return {**values, "data": None}
        payload_model = _PAYLOADS.get(kind)
        if payload_model is not None and isinstance(data, dict):
            return {**values, "data": payload_model.model_validate(data)}
        return values

    @model_validator(mode="after")
    def _check_payload(self) -> "Action":
        payload_model = _PAYLOADS.get(self.type)
        if payload_model is not None and not isinstance(self.data, payload_model):
            raise ValueError(f"{self.type} action requires {payload_model.__name__} data")
        return self


class DrawSegment(BaseModel):
    """Point-to-point segment streamed while a stroke is in progress."""

    model_config = ConfigDict(frozen=True)

    prev_point: Optional[Point] = None
    current_point: Point
    color: str
    width: float = 1.0


class CursorPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    x: float
    y: float
    username: Optional[str] = None
    color: str = "#000000"

"""
Glyph Contracts

Responsibility:
Renderer-agnostic description of drawable shapes plus style.
A Glyph says WHAT to draw; SVG (or any other backend) decides HOW.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union
import math

from ..contracts.base import Point, Rect
from .style import CHAR_WIDTH_RATIO, ColorClass


class ShapeKind(Enum):
    """Symbol selected for an element."""
    BUS_BAR = "bus_bar"
    JUNCTION = "junction"
    NODE_POINT = "node_point"
    LINE = "line"
    TRANSFORMER = "transformer"
    CIRCUIT_BREAKER = "circuit_breaker"
    DISCONNECTOR = "disconnector"
    METER = "meter"
    LABEL = "label"
    SELECTION_RING = "selection_ring"
    HIGHLIGHT = "highlight"
    WORK_ZONE = "work_zone"


class GlyphMarker(Enum):
    """State markers drawn on top of a symbol."""
    OPEN_STRIKE = "open_strike"   # breaker: diagonal strike
    OPEN_SWING = "open_swing"     # disconnector: blade swung open


# =============================================================================
# PRIMITIVES
# =============================================================================

@dataclass(frozen=True)
class LineShape:
    start: Point
    end: Point

    def bounds(self) -> Rect:
        return Rect.bounding((self.start, self.end))


@dataclass(frozen=True)
class RectShape:
    """Rectangle centred on `center`, rotated by `angle` degrees."""
    center: Point
    width: float
    height: float
    angle: float = 0.0

    def corners(self) -> Tuple[Point, ...]:
        theta = math.radians(self.angle)
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        hw, hh = self.width / 2, self.height / 2
        return tuple(
            Point(
                self.center.x + dx * cos_t - dy * sin_t,
                self.center.y + dx * sin_t + dy * cos_t,
            )
            for dx, dy in ((-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh))
        )

    def bounds(self) -> Rect:
        if self.angle == 0.0:
            return Rect.around(self.center, self.width, self.height)
        return Rect.bounding(self.corners())


@dataclass(frozen=True)
class CircleShape:
    center: Point
    radius: float

    def bounds(self) -> Rect:
        return Rect.around(self.center, self.radius * 2, self.radius * 2)


@dataclass(frozen=True)
class TextShape:
    """Text anchored at its baseline; `anchor` is start, middle or end."""
    position: Point
    text: str
    font_size: float
    anchor: str = "middle"
    bold: bool = False
    color: Optional[str] = None  # overrides the glyph colour for this line

    @property
    def approx_width(self) -> float:
        return len(self.text) * self.font_size * CHAR_WIDTH_RATIO

    def bounds(self) -> Rect:
        width = self.approx_width
        if self.anchor == "start":
            left = self.position.x
        elif self.anchor == "end":
            left = self.position.x - width
        else:
            left = self.position.x - width / 2
        return Rect(left, self.position.y - self.font_size, width, self.font_size)


Primitive = Union[LineShape, RectShape, CircleShape, TextShape]


# =============================================================================
# GLYPH
# =============================================================================

@dataclass(frozen=True)
class Glyph:
    """
    One drawable symbol: primitives plus a single style.

    Pure value object; two glyphs built from the same inputs compare equal.
    """
    shape: ShapeKind
    color_class: ColorClass
    stroke_color: str
    fill_color: str
    stroke_width: float
    primitives: Tuple[Primitive, ...]
    dash: Tuple[float, ...] = field(default_factory=tuple)
    markers: FrozenSet[GlyphMarker] = field(default_factory=frozenset)

    @property
    def bounds(self) -> Rect:
        boxes = [p.bounds() for p in self.primitives]
        result = boxes[0]
        for box in boxes[1:]:
            result = result.union(box)
        return result

    def has_marker(self, marker: GlyphMarker) -> bool:
        return marker in self.markers

    def emphasized(self, stroke_width: float) -> Glyph:
        return replace(self, stroke_width=max(self.stroke_width, stroke_width))

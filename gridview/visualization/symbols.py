"""
Symbol Renderer

Pure mapping (element type, status, geometry) -> Glyph.

RULES (in priority order):
==========================
1. Colour is chosen from status alone, through STATUS_COLOR_CLASSES.
   Unknown statuses fall back to INACTIVE. A caller may override the
   colour class for one render pass (load view mode).
2. Shape is chosen from type alone, through SHAPE_FACTORIES.
3. Labels are separate glyphs placed strictly below the symbol's bounds.

No state, no side effects.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple, Union
import math

from ..contracts.base import Point, Rect
from ..contracts.graph import (
    ConnectionStatus, ConnectionType, MeterDirection, MeterStatus, MeterType,
    NetworkMeter, NodeStatus, NodeType, Orientation,
)
from .glyphs import (
    CircleShape, Glyph, GlyphMarker, LineShape, Primitive, RectShape, ShapeKind, TextShape,
)
from . import style
from .style import PALETTE, ColorClass


# =============================================================================
# GEOMETRY INPUTS
# =============================================================================

@dataclass(frozen=True)
class NodeGeometry:
    """Where a point-like symbol sits."""
    position: Point
    orientation: Orientation = Orientation.HORIZONTAL


@dataclass(frozen=True)
class SegmentGeometry:
    """Endpoints of a connection symbol."""
    start: Point
    end: Point


Geometry = Union[NodeGeometry, SegmentGeometry]
ElementType = Union[NodeType, ConnectionType, MeterType]
ElementStatus = Union[NodeStatus, ConnectionStatus, MeterStatus]


# =============================================================================
# STATUS -> COLOUR CLASS
# =============================================================================

STATUS_COLOR_CLASSES: Dict[Enum, ColorClass] = {
    NodeStatus.ENERGIZED: ColorClass.NORMAL,
    NodeStatus.DE_ENERGIZED: ColorClass.INACTIVE,
    NodeStatus.FAULT: ColorClass.FAULT,
    NodeStatus.MAINTENANCE: ColorClass.MAINTENANCE,
    ConnectionStatus.CLOSED: ColorClass.NORMAL,
    ConnectionStatus.OPEN: ColorClass.INACTIVE,
    ConnectionStatus.FAULT: ColorClass.FAULT,
    MeterStatus.OPERATIONAL: ColorClass.NORMAL,
    MeterStatus.OFFLINE: ColorClass.INACTIVE,
    MeterStatus.FAULT: ColorClass.FAULT,
    MeterStatus.MAINTENANCE: ColorClass.MAINTENANCE,
}


def color_class_for(status: object) -> ColorClass:
    return STATUS_COLOR_CLASSES.get(status, ColorClass.INACTIVE)


# =============================================================================
# SEGMENT FRAME
# =============================================================================

class _Frame:
    """Local frame of a segment: u along it, n across it, origin at the midpoint."""

    def __init__(self, start: Point, end: Point):
        dx, dy = end.x - start.x, end.y - start.y
        self.length = math.hypot(dx, dy)
        if self.length == 0.0:
            self.ux, self.uy = 1.0, 0.0
        else:
            self.ux, self.uy = dx / self.length, dy / self.length
        self.nx, self.ny = -self.uy, self.ux
        self.start = start
        self.end = end
        self.mid = Point((start.x + end.x) / 2, (start.y + end.y) / 2)

    @property
    def angle(self) -> float:
        return math.degrees(math.atan2(self.uy, self.ux))

    def at(self, along: float, across: float = 0.0) -> Point:
        return Point(
            self.mid.x + along * self.ux + across * self.nx,
            self.mid.y + along * self.uy + across * self.ny,
        )

    def leads(self, gap: float) -> Tuple[LineShape, LineShape]:
        """The two segment halves, broken `gap` either side of the midpoint."""
        gap = min(gap, self.length / 2)
        return (
            LineShape(self.start, self.at(-gap)),
            LineShape(self.at(gap), self.end),
        )


# =============================================================================
# SHAPE FACTORIES
# =============================================================================

ShapeResult = Tuple[ShapeKind, Tuple[Primitive, ...], FrozenSet[GlyphMarker]]
ShapeFactory = Callable[[Geometry, bool], ShapeResult]

_NO_MARKERS: FrozenSet[GlyphMarker] = frozenset()


def _bus(geometry: NodeGeometry, is_open: bool) -> ShapeResult:
    if geometry.orientation is Orientation.VERTICAL:
        width, height = style.BUS_THICKNESS, style.BUS_LENGTH
    else:
        width, height = style.BUS_LENGTH, style.BUS_THICKNESS
    return ShapeKind.BUS_BAR, (RectShape(geometry.position, width, height),), _NO_MARKERS


def _junction(geometry: NodeGeometry, is_open: bool) -> ShapeResult:
    return ShapeKind.JUNCTION, (CircleShape(geometry.position, style.JUNCTION_RADIUS),), _NO_MARKERS


def _node_point(geometry: NodeGeometry, is_open: bool) -> ShapeResult:
    return ShapeKind.NODE_POINT, (CircleShape(geometry.position, style.NODE_RADIUS),), _NO_MARKERS


def _line(geometry: SegmentGeometry, is_open: bool) -> ShapeResult:
    return ShapeKind.LINE, (LineShape(geometry.start, geometry.end),), _NO_MARKERS


def _transformer(geometry: SegmentGeometry, is_open: bool) -> ShapeResult:
    frame = _Frame(geometry.start, geometry.end)
    first, second = frame.leads(style.TRANSFORMER_RADIUS)
    winding = CircleShape(frame.mid, style.TRANSFORMER_RADIUS)
    return ShapeKind.TRANSFORMER, (first, winding, second), _NO_MARKERS


def _circuit_breaker(geometry: SegmentGeometry, is_open: bool) -> ShapeResult:
    frame = _Frame(geometry.start, geometry.end)
    first, second = frame.leads(style.BREAKER_WIDTH / 2)
    primitives: List[Primitive] = [
        first,
        RectShape(frame.mid, style.BREAKER_WIDTH, style.BREAKER_HEIGHT, frame.angle),
        second,
    ]
    markers = _NO_MARKERS
    if is_open:
        s = style.BREAKER_STRIKE
        primitives.append(LineShape(frame.at(-s, -s), frame.at(s, s)))
        markers = frozenset({GlyphMarker.OPEN_STRIKE})
    return ShapeKind.CIRCUIT_BREAKER, tuple(primitives), markers


def _disconnector(geometry: SegmentGeometry, is_open: bool) -> ShapeResult:
    frame = _Frame(geometry.start, geometry.end)
    gap = min(style.SYMBOL_GAP, frame.length / 2)
    first, second = frame.leads(gap)
    tick = style.DISCONNECTOR_TICK
    primitives: List[Primitive] = [
        first,
        LineShape(frame.at(-gap), frame.at(gap)),
        LineShape(frame.at(0.0, -tick), frame.at(0.0, tick)),
        second,
    ]
    markers = _NO_MARKERS
    if is_open:
        along, across = style.DISCONNECTOR_SWING
        primitives.append(LineShape(frame.mid, frame.at(along, -across)))
        markers = frozenset({GlyphMarker.OPEN_SWING})
    return ShapeKind.DISCONNECTOR, tuple(primitives), markers


_METER_MARKS = {MeterType.POWER: "P", MeterType.CURRENT: "I", MeterType.OTHER: "M"}


def _meter_factory(meter_type: MeterType) -> ShapeFactory:
    def factory(geometry: NodeGeometry, is_open: bool) -> ShapeResult:
        center = geometry.position
        mark = TextShape(
            Point(center.x, center.y + style.METER_MARK_SIZE / 2 - 1),
            _METER_MARKS[meter_type],
            style.METER_MARK_SIZE,
        )
        return ShapeKind.METER, (CircleShape(center, style.METER_RADIUS), mark), _NO_MARKERS
    return factory


SHAPE_FACTORIES: Dict[Enum, ShapeFactory] = {
    NodeType.BUS: _bus,
    NodeType.JUNCTION: _junction,
    NodeType.CONNECTION_POINT: _node_point,
    NodeType.SUBSTATION: _node_point,
    NodeType.OTHER: _node_point,
    ConnectionType.LINE: _line,
    ConnectionType.TRANSFORMER: _transformer,
    ConnectionType.CIRCUIT_BREAKER: _circuit_breaker,
    ConnectionType.DISCONNECTOR: _disconnector,
    MeterType.POWER: _meter_factory(MeterType.POWER),
    MeterType.CURRENT: _meter_factory(MeterType.CURRENT),
    MeterType.OTHER: _meter_factory(MeterType.OTHER),
}


# =============================================================================
# PUBLIC API
# =============================================================================

def render_symbol(
    element_type: ElementType,
    status: ElementStatus,
    geometry: Geometry,
    color_class: Optional[ColorClass] = None,
) -> Glyph:
    """
    Build the glyph for one element.

    Node and meter types take a NodeGeometry, connection types a
    SegmentGeometry. `color_class` overrides the status colour.
    """
    if isinstance(element_type, ConnectionType):
        if not isinstance(geometry, SegmentGeometry):
            raise TypeError(f"{element_type} requires a SegmentGeometry")
    elif not isinstance(geometry, NodeGeometry):
        raise TypeError(f"{element_type} requires a NodeGeometry")

    factory = SHAPE_FACTORIES[element_type]
    is_open = status is ConnectionStatus.OPEN
    shape, primitives, markers = factory(geometry, is_open)

    resolved_class = color_class or color_class_for(status)
    colors = PALETTE[resolved_class]

    if isinstance(element_type, NodeType):
        stroke, fill, width = style.OUTLINE_COLOR, colors.fill, style.OUTLINE_WIDTH
    else:
        # connections and meters: coloured stroke around a white body
        stroke, fill, width = colors.stroke, style.SYMBOL_BODY_FILL, style.STROKE_WIDTH

    return Glyph(
        shape=shape,
        color_class=resolved_class,
        stroke_color=stroke,
        fill_color=fill,
        stroke_width=width,
        primitives=primitives,
        markers=markers,
    )


def render_label(
    lines: Sequence[str],
    below: Rect,
    font_size: float = style.LABEL_FONT_SIZE,
    color: str = style.LABEL_COLOR,
    font_sizes: Optional[Sequence[float]] = None,
    colors: Optional[Sequence[Optional[str]]] = None,
) -> Glyph:
    """
    Stack text lines centred under `below`.

    The first line's top edge sits LABEL_GAP under the box, so a label
    never overlaps the symbol it annotates.
    """
    sizes = list(font_sizes) if font_sizes else [font_size] * len(lines)
    line_colors = list(colors) if colors else [None] * len(lines)
    x = below.center.x
    baseline = below.max_y + style.LABEL_GAP
    texts: List[Primitive] = []
    for text, size, line_color in zip(lines, sizes, line_colors):
        baseline += size
        texts.append(TextShape(Point(x, baseline), text, size, color=line_color))
        baseline += style.LABEL_LINE_SPACING
    return Glyph(
        shape=ShapeKind.LABEL,
        color_class=ColorClass.NORMAL,
        stroke_color="none",
        fill_color=color,
        stroke_width=0.0,
        primitives=tuple(texts),
    )


def meter_anchor(meter: NetworkMeter) -> Point:
    """Meter symbols sit beside their measuring point: left for In, right for Out."""
    offset = -style.METER_OFFSET if meter.direction is MeterDirection.IN else style.METER_OFFSET
    return Point(meter.position.x + offset, meter.position.y)


def meter_label_lines(meter: NetworkMeter) -> Tuple[str, ...]:
    value = "-" if meter.value is None else f"{meter.value:g}"
    reading = f"{value} {meter.unit}".strip()
    arrow = "→" if meter.direction is MeterDirection.IN else "←"
    return reading, f"{arrow} {meter.name}".strip()


def selection_ring(center: Point) -> Glyph:
    return Glyph(
        shape=ShapeKind.SELECTION_RING,
        color_class=ColorClass.NORMAL,
        stroke_color=style.SELECTION_COLOR,
        fill_color="none",
        stroke_width=style.STROKE_WIDTH,
        primitives=(CircleShape(center, style.SELECTION_RING_RADIUS),),
        dash=style.SELECTION_DASH,
    )


def connection_highlight(start: Point, end: Point) -> Glyph:
    return Glyph(
        shape=ShapeKind.HIGHLIGHT,
        color_class=ColorClass.NORMAL,
        stroke_color=style.SELECTION_COLOR,
        fill_color="none",
        stroke_width=style.STROKE_EMPHASIS,
        primitives=(LineShape(start, end),),
        dash=style.SELECTION_DASH,
    )


def work_zone_glyphs(bounds: Rect, label: str) -> Tuple[Glyph, Glyph]:
    """Dashed zone outline plus its caption above the top edge."""
    outline = Glyph(
        shape=ShapeKind.WORK_ZONE,
        color_class=ColorClass.MAINTENANCE,
        stroke_color=style.WORK_ZONE_COLOR,
        fill_color="none",
        stroke_width=style.WORK_ZONE_WIDTH,
        primitives=(RectShape(bounds.center, bounds.width, bounds.height),),
        dash=style.WORK_ZONE_DASH,
    )
    caption = Glyph(
        shape=ShapeKind.LABEL,
        color_class=ColorClass.MAINTENANCE,
        stroke_color="none",
        fill_color=style.WORK_ZONE_COLOR,
        stroke_width=0.0,
        primitives=(TextShape(
            Point(bounds.center.x, bounds.min_y - style.LABEL_GAP - 2),
            label,
            style.WORK_ZONE_FONT,
            bold=True,
        ),),
    )
    return outline, caption

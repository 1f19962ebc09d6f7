"""
Hit Testing

Pure function from (scene, screen point, view transform) to the element
under the pointer. No DOM, no listeners: the host feeds pointer
positions, this module answers which element they fall on.

RULES:
======
1. The pointer is mapped to model space with the same ViewTransform
   used for rendering.
2. Nodes and meters match when the point lies inside their symbol.
3. Connections match within a fixed pixel tolerance; the tolerance is
   divided by scale so thin lines stay clickable when zoomed out.
4. Several matches: closest centroid wins; on a tie meters beat nodes
   and nodes beat connections (draw order).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional
import math

from ..contracts.base import ElementKind, ElementRef, Point
from ..visualization.glyphs import CircleShape, LineShape, Primitive, RectShape, TextShape
from ..visualization.scene import Scene, SceneItem
from .viewport import ViewTransform

_PRIORITY = {
    ElementKind.METER: 2,
    ElementKind.NODE: 1,
    ElementKind.CONNECTION: 0,
}

_TIE_EPSILON = 1e-9


@dataclass
class HitTestConfig:
    """Configuration for hit-testing."""
    tolerance_px: float = 5.0

    def __post_init__(self):
        if not (self.tolerance_px >= 0 and math.isfinite(self.tolerance_px)):
            raise ValueError("tolerance_px must be a non-negative number")


def distance_to_segment(point: Point, start: Point, end: Point) -> float:
    dx, dy = end.x - start.x, end.y - start.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return point.distance_to(start)
    t = ((point.x - start.x) * dx + (point.y - start.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return point.distance_to(Point(start.x + t * dx, start.y + t * dy))


def covers(primitive: Primitive, point: Point, margin: float = 0.0) -> bool:
    """True if `point` lies on/inside the primitive, grown by `margin`."""
    if isinstance(primitive, LineShape):
        return distance_to_segment(point, primitive.start, primitive.end) <= margin
    if isinstance(primitive, CircleShape):
        return point.distance_to(primitive.center) <= primitive.radius + margin
    if isinstance(primitive, RectShape):
        theta = math.radians(-primitive.angle)
        rx = point.x - primitive.center.x
        ry = point.y - primitive.center.y
        local_x = rx * math.cos(theta) - ry * math.sin(theta)
        local_y = rx * math.sin(theta) + ry * math.cos(theta)
        return (
            abs(local_x) <= primitive.width / 2 + margin
            and abs(local_y) <= primitive.height / 2 + margin
        )
    if isinstance(primitive, TextShape):
        return primitive.bounds().contains(point, margin)
    return False


def item_covers(item: SceneItem, model_point: Point, transform: ViewTransform, tolerance_px: float) -> bool:
    if item.element is None:
        return False
    margin = 0.0
    if item.element.kind is ElementKind.CONNECTION:
        margin = transform.model_distance(tolerance_px)
    return any(covers(p, model_point, margin) for p in item.glyph.primitives)


def hit_test_items(
    items: Iterable[SceneItem],
    screen_point: Point,
    transform: ViewTransform,
    tolerance_px: float = 5.0,
) -> Optional[ElementRef]:
    if not screen_point.is_finite:
        return None
    model_point = transform.to_model(screen_point)

    best: Optional[SceneItem] = None
    best_distance = math.inf
    for item in items:
        if not item_covers(item, model_point, transform, tolerance_px):
            continue
        distance = model_point.distance_to(item.centroid)
        if best is None or distance < best_distance - _TIE_EPSILON:
            best, best_distance = item, distance
        elif abs(distance - best_distance) <= _TIE_EPSILON:
            if _PRIORITY[item.element.kind] > _PRIORITY[best.element.kind]:
                best, best_distance = item, distance

    return best.element if best is not None else None


def hit_test(
    scene: Scene,
    screen_point: Point,
    transform: ViewTransform,
    tolerance_px: float = 5.0,
) -> Optional[ElementRef]:
    """Element under `screen_point`, or None on a miss."""
    return hit_test_items(scene.interactive_items(), screen_point, transform, tolerance_px)

"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Geometry and identity types are frozen dataclasses
- Errors are either exceptions (fatal to one call) or Diagnostics
  (data, collected alongside a result)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Tuple
import math


# =============================================================================
# GEOMETRY
# =============================================================================

@dataclass(frozen=True)
class Point:
    """A 2D point. Model units or screen pixels depending on context."""
    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)

    def distance_to(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    @staticmethod
    def origin() -> Point:
        return Point(0.0, 0.0)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle (x, y is the top-left corner)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, point: Point, margin: float = 0.0) -> bool:
        return (
            self.min_x - margin <= point.x <= self.max_x + margin
            and self.min_y - margin <= point.y <= self.max_y + margin
        )

    def intersects(self, other: Rect) -> bool:
        return not (
            other.min_x >= self.max_x
            or other.max_x <= self.min_x
            or other.min_y >= self.max_y
            or other.max_y <= self.min_y
        )

    @staticmethod
    def around(center: Point, width: float, height: float) -> Rect:
        return Rect(center.x - width / 2, center.y - height / 2, width, height)

    @staticmethod
    def bounding(points: Iterable[Point]) -> Rect:
        pts = list(points)
        if not pts:
            return Rect(0.0, 0.0, 0.0, 0.0)
        xs = [p.x for p in pts]
        ys = [p.y for p in pts]
        return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    def union(self, other: Rect) -> Rect:
        min_x = min(self.min_x, other.min_x)
        min_y = min(self.min_y, other.min_y)
        return Rect(
            min_x,
            min_y,
            max(self.max_x, other.max_x) - min_x,
            max(self.max_y, other.max_y) - min_y,
        )


# =============================================================================
# ELEMENT IDENTITY
# =============================================================================

class ElementKind(Enum):
    """Kinds of drawable, selectable diagram elements."""
    NODE = "node"
    CONNECTION = "connection"
    METER = "meter"


@dataclass(frozen=True)
class ElementRef:
    """
    Identity of a diagram element.

    Node ids and connection ids live in different key spaces, so an id
    alone is ambiguous; the kind disambiguates.
    """
    kind: ElementKind
    element_id: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.element_id}"


# =============================================================================
# DIAGNOSTICS (Errors as data)
# =============================================================================

class DiagnosticKind(Enum):
    """
    Explicit diagnostic codes.
    Every dropped element is reported with exactly one of these.
    """
    # Integrity errors
    MISSING_ENDPOINT = "missing_endpoint"
    SELF_LOOP = "self_loop"
    DUPLICATE_NODE_ID = "duplicate_node_id"
    NON_FINITE_POSITION = "non_finite_position"
    DANGLING_METER = "dangling_meter"

    # Not an error: the element is valid but outside the active region
    EXCLUDED_BY_FILTER = "excluded_by_filter"


_INTEGRITY_KINDS = frozenset({
    DiagnosticKind.MISSING_ENDPOINT,
    DiagnosticKind.SELF_LOOP,
    DiagnosticKind.DUPLICATE_NODE_ID,
    DiagnosticKind.NON_FINITE_POSITION,
    DiagnosticKind.DANGLING_METER,
})


@dataclass(frozen=True)
class Diagnostic:
    """
    Immutable record of an element excluded from a scene.
    Diagnostics are data, not exceptions: they are returned next to
    the Scene so the host page can surface them.
    """
    kind: DiagnosticKind
    element: ElementRef
    message: str
    missing_node_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_integrity_error(self) -> bool:
        return self.kind in _INTEGRITY_KINDS


# =============================================================================
# EXCEPTIONS
# =============================================================================

class GridviewError(Exception):
    """Base class for all gridview errors."""


class FetchError(GridviewError):
    """Transport failure while loading the network graph."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PayloadError(FetchError):
    """The graph endpoint answered, but the payload could not be decoded."""


class GraphIntegrityError(GridviewError):
    """
    A snapshot violates referential integrity.

    Raised only by strict loading; composition never raises this and
    reports the same problems as Diagnostics instead.
    """

    def __init__(self, diagnostics: Tuple[Diagnostic, ...]):
        self.diagnostics = tuple(diagnostics)
        summary = "; ".join(d.message for d in self.diagnostics[:3])
        more = len(self.diagnostics) - 3
        if more > 0:
            summary += f" (+{more} more)"
        super().__init__(f"Graph integrity violated: {summary}")

"""
Viewport Controller

Responsibility:
Own the pan/zoom state of the diagram surface and the transform between
model space and screen space.

TRANSFORM:
==========
    screen = (model + offset) * scale
    model  = screen / scale - offset

Rendering and hit-testing both go through ViewTransform, so the two can
never disagree on the order of operations.

STATE MACHINE:
==============
    IDLE --pointer_down--> DRAGGING --pointer_move--> DRAGGING
    DRAGGING --pointer_up / pointer_leave--> IDLE

Invalid numeric input (NaN, infinities) is rejected and recorded, never
propagated; out-of-range scales are clamped.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple
import math

from ..contracts.base import Point
from ..contracts.events import AuditEventType, ViewportChangedEvent
from ..observability import AuditLog

LAYER = "viewport"


@dataclass
class ViewportConfig:
    """Configuration for the viewport controller."""
    min_scale: float = 0.5
    max_scale: float = 2.0
    zoom_step: float = 0.1
    surface_width: Optional[float] = None
    surface_height: Optional[float] = None

    def __post_init__(self):
        if not (0 < self.min_scale < self.max_scale) or not math.isfinite(self.max_scale):
            raise ValueError("Viewport scale bounds must satisfy 0 < min_scale < max_scale")
        if not (self.zoom_step > 0 and math.isfinite(self.zoom_step)):
            raise ValueError("zoom_step must be a positive number")


class ViewportPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class ViewTransform:
    """Immutable scale + offset pair captured at one render tick."""
    scale: float = 1.0
    offset: Point = Point(0.0, 0.0)

    def to_screen(self, model: Point) -> Point:
        return Point((model.x + self.offset.x) * self.scale, (model.y + self.offset.y) * self.scale)

    def to_model(self, screen: Point) -> Point:
        return Point(screen.x / self.scale - self.offset.x, screen.y / self.scale - self.offset.y)

    def model_distance(self, pixels: float) -> float:
        """A screen distance expressed in model units at this zoom."""
        return pixels / self.scale

    @staticmethod
    def identity() -> ViewTransform:
        return ViewTransform()


@dataclass
class ViewportState:
    """Ephemeral pan/zoom state. Created on mount, never persisted."""
    scale: float = 1.0
    offset: Point = Point(0.0, 0.0)
    phase: ViewportPhase = ViewportPhase.IDLE
    drag_anchor: Optional[Point] = None

    @property
    def is_dragging(self) -> bool:
        return self.phase is ViewportPhase.DRAGGING

    @property
    def transform(self) -> ViewTransform:
        return ViewTransform(self.scale, self.offset)


ViewportListener = Callable[[ViewportChangedEvent], None]


class ViewportController:
    """Pan/zoom state machine driven by the host's pointer stream."""

    def __init__(self, config: Optional[ViewportConfig] = None, audit: Optional[AuditLog] = None):
        self._config = config or ViewportConfig()
        self._audit = audit
        self._state = ViewportState()
        self._listeners: List[ViewportListener] = []
        self._surface: Optional[Tuple[float, float]] = None
        if self._config.surface_width and self._config.surface_height:
            self._surface = (self._config.surface_width, self._config.surface_height)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def config(self) -> ViewportConfig:
        return self._config

    @property
    def scale(self) -> float:
        return self._state.scale

    @property
    def offset(self) -> Point:
        return self._state.offset

    @property
    def phase(self) -> ViewportPhase:
        return self._state.phase

    @property
    def is_dragging(self) -> bool:
        return self._state.is_dragging

    @property
    def drag_anchor(self) -> Optional[Point]:
        return self._state.drag_anchor

    @property
    def transform(self) -> ViewTransform:
        return self._state.transform

    def subscribe(self, listener: ViewportListener) -> None:
        self._listeners.append(listener)

    # -------------------------------------------------------------------------
    # Dragging
    # -------------------------------------------------------------------------

    def pointer_down(self, pointer: Point) -> bool:
        """Start a drag at `pointer`. Returns False if the input was rejected."""
        if not pointer.is_finite:
            self._reject("pointer_down", pointer=pointer)
            return False
        self._state.phase = ViewportPhase.DRAGGING
        self._state.drag_anchor = pointer
        return True

    def pointer_move(self, pointer: Point) -> bool:
        """Pan by the pointer delta while dragging. Returns True if the offset changed."""
        if not self.is_dragging or self._state.drag_anchor is None:
            return False
        if not pointer.is_finite:
            self._reject("pointer_move", pointer=pointer)
            return False
        anchor = self._state.drag_anchor
        self._state.drag_anchor = pointer
        # divide by scale: one screen pixel of pointer travel moves the scene one pixel
        delta = Point((pointer.x - anchor.x) / self.scale, (pointer.y - anchor.y) / self.scale)
        return self._apply(self.scale, self.offset + delta, "pan")

    def pointer_up(self, pointer: Optional[Point] = None) -> None:
        self._end_drag()

    def pointer_leave(self) -> None:
        self._end_drag()

    def _end_drag(self) -> None:
        self._state.phase = ViewportPhase.IDLE
        self._state.drag_anchor = None

    # -------------------------------------------------------------------------
    # Zoom and pan commands
    # -------------------------------------------------------------------------

    def zoom_in(self, anchor: Optional[Point] = None) -> bool:
        return self.set_scale(self.scale + self._config.zoom_step, anchor)

    def zoom_out(self, anchor: Optional[Point] = None) -> bool:
        return self.set_scale(self.scale - self._config.zoom_step, anchor)

    def set_scale(self, scale: float, anchor: Optional[Point] = None) -> bool:
        """
        Zoom to `scale` (clamped), keeping the model point under `anchor` fixed.

        Without an explicit anchor the surface centre is used when the
        surface size is known, else the screen origin.
        """
        if not math.isfinite(scale):
            self._reject("set_scale", scale=scale)
            return False
        if anchor is None:
            anchor = self._default_anchor()
        if not anchor.is_finite:
            self._reject("set_scale", anchor=anchor)
            return False

        # rounding keeps repeated additive steps from drifting
        clamped = round(min(max(scale, self._config.min_scale), self._config.max_scale), 10)
        out_of_range = not (self._config.min_scale <= scale <= self._config.max_scale)
        if out_of_range and self._audit is not None:
            self._audit.record(
                AuditEventType.VIEWPORT, LAYER, "scale_clamped",
                requested=scale, applied=clamped,
            )

        pinned = self.transform.to_model(anchor)
        offset = Point(anchor.x / clamped - pinned.x, anchor.y / clamped - pinned.y)
        return self._apply(clamped, offset, "zoom")

    def pan_by(self, screen_delta: Point) -> bool:
        if not screen_delta.is_finite:
            self._reject("pan_by", delta=screen_delta)
            return False
        return self._apply(self.scale, self.offset + screen_delta.scaled(1 / self.scale), "pan")

    def set_offset(self, offset: Point) -> bool:
        return self._apply(self.scale, offset, "set_offset")

    def fit_to_screen(self) -> bool:
        """Reset to the identity transform; content bounds are not considered."""
        return self._apply(1.0, Point(0.0, 0.0), "fit_to_screen")

    reset = fit_to_screen

    def set_surface_size(self, width: float, height: float) -> None:
        if width > 0 and height > 0 and math.isfinite(width) and math.isfinite(height):
            self._surface = (width, height)
        else:
            self._reject("set_surface_size", width=width, height=height)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _default_anchor(self) -> Point:
        if self._surface is not None:
            return Point(self._surface[0] / 2, self._surface[1] / 2)
        return Point(0.0, 0.0)

    def _apply(self, scale: float, offset: Point, action: str) -> bool:
        if not (math.isfinite(scale) and scale > 0) or not offset.is_finite:
            self._reject(action, scale=scale, offset=offset)
            return False
        if scale == self._state.scale and offset == self._state.offset:
            return False
        self._state.scale = scale
        self._state.offset = offset
        event = ViewportChangedEvent(scale=scale, offset=offset)
        for listener in list(self._listeners):
            listener(event)
        return True

    def _reject(self, action: str, **values: object) -> None:
        if self._audit is not None:
            self._audit.record(AuditEventType.VIEWPORT, LAYER, "rejected", entity_type=action, **values)

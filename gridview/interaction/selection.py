"""
Interaction Layer

Responsibility:
Turn hit-test results into hover and selection state and emit the
corresponding events to the host page.

Hover and selection are independent: hovering never selects, and the
selection survives hovering elsewhere or clicking empty space.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..contracts.base import ElementRef, Point
from ..contracts.events import AuditEventType, HoverEvent, SelectionEvent
from ..observability import AuditLog
from ..visualization.scene import Scene
from .hit_testing import HitTestConfig, hit_test
from .viewport import ViewTransform

LAYER = "interaction"


@dataclass
class SelectionState:
    """Ephemeral hover/selection state."""
    hovered: Optional[ElementRef] = None
    selected: Optional[ElementRef] = None


SelectionListener = Callable[[SelectionEvent], None]
HoverListener = Callable[[HoverEvent], None]


class InteractionController:
    """Hover/selection state machine fed by pointer positions."""

    def __init__(self, config: Optional[HitTestConfig] = None, audit: Optional[AuditLog] = None):
        self._config = config or HitTestConfig()
        self._audit = audit
        self._state = SelectionState()
        self._selection_listeners: List[SelectionListener] = []
        self._hover_listeners: List[HoverListener] = []

    @property
    def hovered(self) -> Optional[ElementRef]:
        return self._state.hovered

    @property
    def selected(self) -> Optional[ElementRef]:
        return self._state.selected

    @property
    def state(self) -> SelectionState:
        return SelectionState(self._state.hovered, self._state.selected)

    def on_selection(self, listener: SelectionListener) -> None:
        self._selection_listeners.append(listener)

    def on_hover(self, listener: HoverListener) -> None:
        self._hover_listeners.append(listener)

    # -------------------------------------------------------------------------
    # Pointer input
    # -------------------------------------------------------------------------

    def element_at(self, scene: Scene, screen_point: Point, transform: ViewTransform) -> Optional[ElementRef]:
        return hit_test(scene, screen_point, transform, self._config.tolerance_px)

    def pointer_move(self, scene: Scene, screen_point: Point, transform: ViewTransform) -> Optional[ElementRef]:
        """Update hover from a pointer position. Returns the hovered element."""
        self.set_hover(self.element_at(scene, screen_point, transform))
        return self._state.hovered

    def click(self, scene: Scene, screen_point: Point, transform: ViewTransform) -> Optional[ElementRef]:
        """Select the element under the pointer. A miss leaves the selection alone."""
        hit = self.element_at(scene, screen_point, transform)
        if hit is not None:
            self.select(hit)
        return hit

    # -------------------------------------------------------------------------
    # Direct state changes
    # -------------------------------------------------------------------------

    def set_hover(self, element: Optional[ElementRef]) -> bool:
        if element == self._state.hovered:
            return False
        self._state.hovered = element
        event = HoverEvent(element)
        for listener in list(self._hover_listeners):
            listener(event)
        return True

    def clear_hover(self) -> bool:
        return self.set_hover(None)

    def select(self, element: Optional[ElementRef]) -> bool:
        if element == self._state.selected:
            return False
        self._state.selected = element
        if self._audit is not None:
            self._audit.record(
                AuditEventType.INTERACTION, LAYER,
                "selected" if element else "selection_cleared",
                entity_id=element.element_id if element else None,
                entity_type=element.kind.value if element else None,
            )
        event = SelectionEvent(element)
        for listener in list(self._selection_listeners):
            listener(event)
        return True

    def clear_selection(self) -> bool:
        return self.select(None)

    def scene_replaced(self, scene: Scene) -> None:
        """Drop hover on elements the new scene no longer contains."""
        if self._state.hovered is not None and scene.find(self._state.hovered) is None:
            self.clear_hover()

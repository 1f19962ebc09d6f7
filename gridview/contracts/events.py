"""
Event Contracts

Immutable events emitted by the diagram core to the host page, and the
audit records collected by the observability layer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .base import ElementKind, ElementRef, Point


# =============================================================================
# OUTBOUND UI EVENTS
# =============================================================================

@dataclass(frozen=True)
class SelectionEvent:
    """An element was clicked. `element` is None when selection is cleared."""
    element: Optional[ElementRef]

    @property
    def element_id(self) -> Optional[str]:
        return self.element.element_id if self.element else None

    @property
    def element_type(self) -> Optional[ElementKind]:
        return self.element.kind if self.element else None


@dataclass(frozen=True)
class HoverEvent:
    """The pointer entered an element, or left all elements (None)."""
    element: Optional[ElementRef]

    @property
    def element_id(self) -> Optional[str]:
        return self.element.element_id if self.element else None


@dataclass(frozen=True)
class ViewportChangedEvent:
    """Scale or offset changed (for minimaps or zoom persistence in the host)."""
    scale: float
    offset: Point


# =============================================================================
# AUDIT RECORDS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    FETCH = "fetch"
    INTEGRITY = "integrity"
    VIEWPORT = "viewport"
    INTERACTION = "interaction"
    SYSTEM = "system"
    ERROR = "error"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: datetime
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def get(self, key: str) -> Optional[str]:
        for k, v in self.metadata:
            if k == key:
                return v
        return None

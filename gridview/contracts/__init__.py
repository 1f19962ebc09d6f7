"""
Contracts

Immutable types shared by every layer. Layers import from here and
never from each other's implementations.
"""

from .base import (
    Point, Rect, ElementKind, ElementRef, DiagnosticKind, Diagnostic,
    GridviewError, FetchError, PayloadError, GraphIntegrityError,
)
from .graph import (
    NodeType, NodeStatus, ConnectionType, ConnectionStatus,
    MeterType, MeterStatus, MeterDirection, Orientation,
    NetworkNode, NetworkConnection, NetworkMeter, ResolvedConnection,
    StatusUpdate, GraphSnapshot,
)
from .events import (
    SelectionEvent, HoverEvent, ViewportChangedEvent,
    AuditEventType, AuditLogEntry,
)

__all__ = [
    'Point', 'Rect', 'ElementKind', 'ElementRef', 'DiagnosticKind', 'Diagnostic',
    'GridviewError', 'FetchError', 'PayloadError', 'GraphIntegrityError',
    'NodeType', 'NodeStatus', 'ConnectionType', 'ConnectionStatus',
    'MeterType', 'MeterStatus', 'MeterDirection', 'Orientation',
    'NetworkNode', 'NetworkConnection', 'NetworkMeter', 'ResolvedConnection',
    'StatusUpdate', 'GraphSnapshot',
    'SelectionEvent', 'HoverEvent', 'ViewportChangedEvent',
    'AuditEventType', 'AuditLogEntry',
]

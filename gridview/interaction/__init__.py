"""
Interaction Layer

Viewport (pan/zoom), hit-testing and hover/selection state. Everything
here works on screen coordinates handed in by the host; nothing touches
a DOM or a window system.
"""

from .viewport import (
    ViewportConfig, ViewportPhase, ViewTransform, ViewportState, ViewportController,
)
from .hit_testing import HitTestConfig, distance_to_segment, covers, hit_test, hit_test_items
from .selection import SelectionState, InteractionController

__all__ = [
    'ViewportConfig', 'ViewportPhase', 'ViewTransform', 'ViewportState', 'ViewportController',
    'HitTestConfig', 'distance_to_segment', 'covers', 'hit_test', 'hit_test_items',
    'SelectionState', 'InteractionController',
]

"""
Visualization Layer

Pure functions from graph data to drawable scenes. No I/O, no clocks.
"""

from .style import ColorClass, ColorSpec, PALETTE
from .glyphs import (
    ShapeKind, GlyphMarker, LineShape, RectShape, CircleShape, TextShape, Glyph,
)
from .symbols import NodeGeometry, SegmentGeometry, render_symbol, render_label, color_class_for
from .scene import LayerKind, LAYER_ORDER, SceneItem, SceneLayer, Scene
from .composer import (
    ViewMode, RegionFilter, LoadBand, ComposerConfig, WorkZone, Highlights,
    LegendEntry, DiagramComposer, compose, legend,
)
from .svg import scene_to_svg

__all__ = [
    'ColorClass', 'ColorSpec', 'PALETTE',
    'ShapeKind', 'GlyphMarker', 'LineShape', 'RectShape', 'CircleShape', 'TextShape', 'Glyph',
    'NodeGeometry', 'SegmentGeometry', 'render_symbol', 'render_label', 'color_class_for',
    'LayerKind', 'LAYER_ORDER', 'SceneItem', 'SceneLayer', 'Scene',
    'ViewMode', 'RegionFilter', 'LoadBand', 'ComposerConfig', 'WorkZone', 'Highlights',
    'LegendEntry', 'DiagramComposer', 'compose', 'legend',
    'scene_to_svg',
]

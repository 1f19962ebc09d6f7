"""
Scene Contracts

Responsibility:
The full, ordered set of drawable layers produced by one composition
pass, plus the diagnostics collected while producing it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple

from ..contracts.base import Diagnostic, ElementKind, ElementRef, Point
from ..contracts.graph import ResolvedConnection
from .glyphs import Glyph


class LayerKind(Enum):
    """Layers in z-order, bottom first."""
    CONNECTIONS = "connections"
    NODES = "nodes"
    LABELS = "labels"
    OVERLAYS = "overlays"


LAYER_ORDER: Tuple[LayerKind, ...] = (
    LayerKind.CONNECTIONS,
    LayerKind.NODES,
    LayerKind.LABELS,
    LayerKind.OVERLAYS,
)


@dataclass(frozen=True)
class SceneItem:
    """
    One glyph placed in a layer.

    `element` is None for decorations (labels, selection rings, work
    zones); only items with an element take part in hit-testing.
    """
    glyph: Glyph
    centroid: Point
    element: Optional[ElementRef] = None
    is_hovered: bool = False
    is_selected: bool = False
    is_highlighted: bool = False

    @property
    def is_interactive(self) -> bool:
        return self.element is not None


@dataclass(frozen=True)
class SceneLayer:
    kind: LayerKind
    items: Tuple[SceneItem, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Scene:
    """Immutable result of one composition pass."""
    layers: Tuple[SceneLayer, ...]
    resolved_connections: Tuple[ResolvedConnection, ...] = field(default_factory=tuple)
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)

    @staticmethod
    def empty() -> Scene:
        return Scene(layers=tuple(SceneLayer(kind) for kind in LAYER_ORDER))

    def layer(self, kind: LayerKind) -> SceneLayer:
        for layer in self.layers:
            if layer.kind is kind:
                return layer
        return SceneLayer(kind)

    def items(self) -> Iterator[SceneItem]:
        """All items, bottom layer first, in draw order."""
        for layer in self.layers:
            yield from layer.items

    def interactive_items(self) -> Iterator[SceneItem]:
        return (item for item in self.items() if item.is_interactive)

    def find(self, element: ElementRef) -> Optional[SceneItem]:
        for item in self.interactive_items():
            if item.element == element:
                return item
        return None

    def glyphs_of(self, kind: ElementKind) -> Tuple[Glyph, ...]:
        return tuple(
            item.glyph for item in self.interactive_items()
            if item.element is not None and item.element.kind is kind
        )

    @property
    def integrity_errors(self) -> Tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.is_integrity_error)

"""
Diagram Composer

Responsibility:
Deterministic transformation of a GraphSnapshot plus view options into
a layered Scene.

GUARANTEES:
===========
1. Every connection is either drawn exactly once at its endpoints'
   positions or reported exactly once in the diagnostics. There is no
   fallback to the origin for unresolved endpoints.
2. Layers are emitted in z-order: connections, nodes, labels, overlays.
3. View mode only changes colour classes, never geometry.
4. Region filtering removes elements; it does not dim them.
5. The whole scene is recomputed on every call; nothing is cached.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple
import math

from ..contracts.base import Diagnostic, DiagnosticKind, ElementRef, Rect
from ..contracts.graph import GraphSnapshot, NetworkMeter, NetworkNode, ResolvedConnection
from .glyphs import Glyph
from .scene import LAYER_ORDER, LayerKind, Scene, SceneItem, SceneLayer
from .style import STROKE_EMPHASIS, ColorClass
from .symbols import (
    NodeGeometry, SegmentGeometry, connection_highlight, meter_anchor, meter_label_lines,
    render_label, render_symbol, selection_ring, work_zone_glyphs,
)
from . import style


# =============================================================================
# VIEW OPTIONS
# =============================================================================

class ViewMode(Enum):
    """Colouring scheme for one render pass."""
    STATUS = "status"
    VOLTAGE = "voltage"
    LOAD = "load"

    @classmethod
    def parse(cls, value: Any) -> ViewMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown view mode: {value!r}") from None


@dataclass(frozen=True)
class RegionFilter:
    """
    Set of admitted regions; None admits everything.
    Untagged elements are network-wide and pass every filter.
    """
    regions: Optional[FrozenSet[str]] = None

    @staticmethod
    def all() -> RegionFilter:
        return RegionFilter()

    @staticmethod
    def only(*regions: str) -> RegionFilter:
        return RegionFilter(frozenset(regions))

    @classmethod
    def parse(cls, value: Optional[str]) -> RegionFilter:
        """"all" / empty -> everything; "R1,R2" -> those regions."""
        if value is None or value.strip().lower() in ("", "all"):
            return cls.all()
        return cls.only(*(part.strip() for part in value.split(",") if part.strip()))

    @property
    def is_all(self) -> bool:
        return self.regions is None

    def admits(self, region: Optional[str]) -> bool:
        return self.regions is None or region is None or region in self.regions


class LoadBand(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


LOAD_BAND_COLORS: Dict[LoadBand, ColorClass] = {
    LoadBand.LOW: ColorClass.LOAD_LOW,
    LoadBand.MEDIUM: ColorClass.LOAD_MEDIUM,
    LoadBand.HIGH: ColorClass.LOAD_HIGH,
}


@dataclass
class ComposerConfig:
    """Configuration for scene composition."""
    medium_load_threshold: float = 0.4
    high_load_threshold: float = 0.7

    def __post_init__(self):
        if not (0.0 <= self.medium_load_threshold < self.high_load_threshold):
            raise ValueError("Load thresholds must satisfy 0 <= medium < high")

    def band_for(self, load: float) -> LoadBand:
        if load > self.high_load_threshold:
            return LoadBand.HIGH
        if load > self.medium_load_threshold:
            return LoadBand.MEDIUM
        return LoadBand.LOW


@dataclass(frozen=True)
class WorkZone:
    """Highlighted active work-permit area drawn in the overlay layer."""
    zone_id: str
    label: str
    bounds: Rect


@dataclass(frozen=True)
class Highlights:
    """Interaction state the composer reflects in glyph styling."""
    hovered: Optional[ElementRef] = None
    selected: Optional[ElementRef] = None
    connected: FrozenSet[ElementRef] = field(default_factory=frozenset)


# =============================================================================
# COMPOSER
# =============================================================================

class DiagramComposer:
    """Builds Scenes. Holds configuration only; no per-scene state."""

    def __init__(self, config: Optional[ComposerConfig] = None):
        self._config = config or ComposerConfig()

    @property
    def config(self) -> ComposerConfig:
        return self._config

    def compose(
        self,
        graph: GraphSnapshot,
        view_mode: ViewMode = ViewMode.STATUS,
        region_filter: Optional[RegionFilter] = None,
        show_labels: bool = True,
        work_zone: Optional[WorkZone] = None,
        highlights: Optional[Highlights] = None,
        load_metrics: Optional[Mapping[ElementRef, float]] = None,
    ) -> Scene:
        region_filter = region_filter or RegionFilter.all()
        highlights = highlights or Highlights()
        pass_ = _CompositionPass(
            self._config, view_mode, region_filter, show_labels, highlights, load_metrics or {},
        )
        return pass_.run(graph, work_zone)


@dataclass(frozen=True)
class LegendEntry:
    color_class: ColorClass
    label: str
    stroke: str
    fill: str


_LEGEND_CLASSES: Dict[ViewMode, Tuple[ColorClass, ...]] = {
    ViewMode.STATUS: (ColorClass.NORMAL, ColorClass.INACTIVE, ColorClass.FAULT, ColorClass.MAINTENANCE),
    ViewMode.VOLTAGE: (ColorClass.NORMAL, ColorClass.INACTIVE, ColorClass.FAULT, ColorClass.MAINTENANCE),
    ViewMode.LOAD: (ColorClass.LOAD_LOW, ColorClass.LOAD_MEDIUM, ColorClass.LOAD_HIGH),
}


def legend(view_mode: Optional[ViewMode] = None) -> Tuple[LegendEntry, ...]:
    """
    Colour key for one view mode, read from the shared palette.
    Without a mode, the status key followed by the load bands.
    """
    if view_mode is None:
        classes = _LEGEND_CLASSES[ViewMode.STATUS] + _LEGEND_CLASSES[ViewMode.LOAD]
    else:
        classes = _LEGEND_CLASSES[view_mode]
    return tuple(
        LegendEntry(cls, style.LEGEND_LABELS[cls], style.PALETTE[cls].stroke, style.PALETTE[cls].fill)
        for cls in classes
    )


def compose(
    graph: GraphSnapshot,
    view_mode: ViewMode = ViewMode.STATUS,
    region_filter: Optional[RegionFilter] = None,
    show_labels: bool = True,
    **options: Any,
) -> Scene:
    """Module-level shortcut using the default ComposerConfig."""
    return DiagramComposer().compose(graph, view_mode, region_filter, show_labels, **options)


class _CompositionPass:
    """State of a single compose() call."""

    def __init__(
        self,
        config: ComposerConfig,
        view_mode: ViewMode,
        region_filter: RegionFilter,
        show_labels: bool,
        highlights: Highlights,
        load_metrics: Mapping[ElementRef, float],
    ):
        self.config = config
        self.view_mode = view_mode
        self.region_filter = region_filter
        self.show_labels = show_labels
        self.highlights = highlights
        self.load_metrics = load_metrics

        self.layers: Dict[LayerKind, List[SceneItem]] = {kind: [] for kind in LAYER_ORDER}
        self.diagnostics: List[Diagnostic] = []
        self.drawn_connections: List[ResolvedConnection] = []

    def run(self, graph: GraphSnapshot, work_zone: Optional[WorkZone]) -> Scene:
        self.diagnostics.extend(graph.node_diagnostics())
        visible_nodes = self._place_nodes(graph.node_index().values())

        resolved, integrity = graph.resolve_connections()
        self.diagnostics.extend(integrity)
        self._place_connections(resolved, visible_nodes)

        meter_problems = graph.meter_diagnostics()
        self.diagnostics.extend(meter_problems)
        self._place_meters(graph, visible_nodes, frozenset(d.element for d in meter_problems))

        self._place_selection_overlay()
        if work_zone is not None:
            for glyph in work_zone_glyphs(work_zone.bounds, work_zone.label):
                self.layers[LayerKind.OVERLAYS].append(SceneItem(glyph, work_zone.bounds.center))

        return Scene(
            layers=tuple(SceneLayer(kind, tuple(self.layers[kind])) for kind in LAYER_ORDER),
            resolved_connections=tuple(self.drawn_connections),
            diagnostics=tuple(self._ordered_diagnostics()),
        )

    # -------------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------------

    def _place_nodes(self, nodes: Iterable[NetworkNode]) -> Dict[str, NetworkNode]:
        visible: Dict[str, NetworkNode] = {}
        for node in nodes:
            if not self.region_filter.admits(node.region):
                self._exclude(node.ref, f"Node {node.node_id!r} is outside region filter")
                continue
            visible[node.node_id] = node
            glyph = render_symbol(
                node.type, node.status,
                NodeGeometry(node.position, node.orientation),
                self._color_override(node.ref, node.load),
            )
            item = self._item(glyph, node.position, node.ref)
            self.layers[LayerKind.NODES].append(item)
            if self.show_labels:
                lines = self._node_label_lines(node)
                if lines:
                    label = render_label(lines, glyph.bounds)
                    self.layers[LayerKind.LABELS].append(SceneItem(label, node.position))
        return visible

    def _place_connections(
        self,
        resolved: Tuple[ResolvedConnection, ...],
        visible_nodes: Mapping[str, NetworkNode],
    ) -> None:
        for rc in resolved:
            connection = rc.connection
            hidden = tuple(
                node_id
                for node_id in (connection.source_node_id, connection.target_node_id)
                if node_id not in visible_nodes
            )
            if hidden or not self.region_filter.admits(connection.region):
                self._exclude(
                    connection.ref,
                    f"Connection {connection.connection_id!r} is outside region filter",
                    hidden,
                )
                continue
            glyph = render_symbol(
                connection.type, connection.status,
                SegmentGeometry(rc.source, rc.target),
                self._color_override(connection.ref, connection.load),
            )
            self.layers[LayerKind.CONNECTIONS].append(self._item(glyph, rc.midpoint, connection.ref))
            self.drawn_connections.append(rc)

    def _place_meters(
        self,
        graph: GraphSnapshot,
        visible_nodes: Mapping[str, NetworkNode],
        invalid: FrozenSet[ElementRef],
    ) -> None:
        for meter in graph.meters:
            if meter.ref in invalid:
                continue
            if meter.node_id not in visible_nodes or not self.region_filter.admits(meter.region):
                hidden = (meter.node_id,) if meter.node_id not in visible_nodes else ()
                self._exclude(meter.ref, f"Meter {meter.meter_id!r} is outside region filter", hidden)
                continue
            anchor = meter_anchor(meter)
            glyph = render_symbol(
                meter.type, meter.status, NodeGeometry(anchor),
                self._color_override(meter.ref, None),
            )
            self.layers[LayerKind.OVERLAYS].append(self._item(glyph, anchor, meter.ref))
            if self.show_labels:
                self.layers[LayerKind.LABELS].append(SceneItem(self._meter_label(meter, glyph), anchor))

    def _place_selection_overlay(self) -> None:
        selected = self.highlights.selected
        if selected is None:
            return
        for kind in (LayerKind.NODES, LayerKind.OVERLAYS):
            for item in self.layers[kind]:
                if item.element == selected:
                    self.layers[LayerKind.OVERLAYS].append(SceneItem(selection_ring(item.centroid), item.centroid))
                    return
        for rc in self.drawn_connections:
            if rc.connection.ref == selected:
                glyph = connection_highlight(rc.source, rc.target)
                self.layers[LayerKind.OVERLAYS].append(SceneItem(glyph, rc.midpoint))
                return

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _item(self, glyph: Glyph, centroid, element: ElementRef) -> SceneItem:
        hovered = element == self.highlights.hovered
        highlighted = element in self.highlights.connected
        if hovered or highlighted:
            glyph = glyph.emphasized(STROKE_EMPHASIS)
        return SceneItem(
            glyph=glyph,
            centroid=centroid,
            element=element,
            is_hovered=hovered,
            is_selected=element == self.highlights.selected,
            is_highlighted=highlighted,
        )

    def _color_override(self, element: ElementRef, own_load: Optional[float]) -> Optional[ColorClass]:
        if self.view_mode is not ViewMode.LOAD:
            return None
        load = self.load_metrics.get(element, own_load)
        if load is None or not math.isfinite(load):
            return None
        return LOAD_BAND_COLORS[self.config.band_for(load)]

    def _node_label_lines(self, node: NetworkNode) -> Tuple[str, ...]:
        lines = [node.label] if node.label else []
        if self.view_mode is ViewMode.VOLTAGE and node.voltage_level:
            lines.append(node.voltage_level)
        return tuple(lines)

    def _meter_label(self, meter: NetworkMeter, glyph: Glyph) -> Glyph:
        reading, caption = meter_label_lines(meter)
        color = (
            style.PALETTE[ColorClass.FAULT].stroke
            if glyph.color_class is ColorClass.FAULT else style.METER_VALUE_COLOR
        )
        return render_label(
            (reading, caption), glyph.bounds, color=color,
            font_sizes=(style.METER_VALUE_FONT, style.METER_NAME_FONT),
            colors=(None, style.METER_NAME_COLOR),
        )

    def _exclude(self, element: ElementRef, message: str, hidden: Tuple[str, ...] = ()) -> None:
        self.diagnostics.append(Diagnostic(
            kind=DiagnosticKind.EXCLUDED_BY_FILTER,
            element=element,
            message=message,
            missing_node_ids=hidden,
        ))

    def _ordered_diagnostics(self) -> List[Diagnostic]:
        # integrity errors first, then filter exclusions; stable within each group
        return sorted(self.diagnostics, key=lambda d: not d.is_integrity_error)

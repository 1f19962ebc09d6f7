"""
Diagram Session Orchestration

Unified interface coordinating the diagram layers for one mounted
diagram surface.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. The session owns the only mutable state: the current snapshot,
   view options, the viewport and hover/selection
3. Every render tick recomposes the Scene from the latest snapshot and
   the latest viewport state; nothing stale is reused
4. Fetch results are applied last-request-wins

LAYER FLOW:
===========
1. Ingestion: HTTP payload -> GraphSnapshot
2. Composer: GraphSnapshot + options -> Scene
3. Viewport: pointer/zoom input -> ViewTransform
4. Interaction: pointer position + Scene + ViewTransform -> hover/selection
5. Observability: records all of the above
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, Mapping, Optional, Tuple
import os

from .contracts.base import Diagnostic, ElementKind, ElementRef, FetchError, GridviewError, Point
from .contracts.events import AuditEventType, HoverEvent, SelectionEvent, ViewportChangedEvent
from .contracts.graph import GraphSnapshot, StatusUpdate
from .core import GridTopology
from .ingestion import FetcherConfig, GraphFetcher
from .interaction import (
    HitTestConfig, InteractionController, ViewportConfig, ViewportController, ViewTransform,
)
from .observability import AuditLog, ObservabilityConfig
from .visualization import (
    ComposerConfig, DiagramComposer, Highlights, RegionFilter, Scene, ViewMode, WorkZone,
    scene_to_svg,
)
from .visualization import style

LAYER = "session"


@dataclass
class DiagramConfig:
    """Unified configuration for a diagram session."""
    fetcher: FetcherConfig = None
    viewport: ViewportConfig = None
    hit_test: HitTestConfig = None
    composer: ComposerConfig = None
    observability: ObservabilityConfig = None
    api_url: Optional[str] = None
    highlight_connected: bool = True

    def __post_init__(self):
        self.fetcher = self.fetcher or FetcherConfig(base_url=self.api_url or FetcherConfig.base_url)
        self.viewport = self.viewport or ViewportConfig()
        self.hit_test = self.hit_test or HitTestConfig()
        self.composer = self.composer or ComposerConfig()
        self.observability = self.observability or ObservabilityConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> DiagramConfig:
        """
        Build a config from GRIDVIEW_* environment variables.

        GRIDVIEW_API_URL        backend base URL (unset: no remote source)
        GRIDVIEW_FETCH_TIMEOUT  seconds
        GRIDVIEW_MIN_SCALE      lower zoom bound
        GRIDVIEW_MAX_SCALE      upper zoom bound
        GRIDVIEW_HIT_TOLERANCE  connection hit tolerance in pixels
        """
        env = os.environ if environ is None else environ
        api_url = env.get("GRIDVIEW_API_URL") or None

        fetcher = FetcherConfig(base_url=api_url or FetcherConfig.base_url)
        if env.get("GRIDVIEW_FETCH_TIMEOUT"):
            fetcher.timeout = float(env["GRIDVIEW_FETCH_TIMEOUT"])

        viewport = ViewportConfig(
            min_scale=float(env.get("GRIDVIEW_MIN_SCALE", ViewportConfig.min_scale)),
            max_scale=float(env.get("GRIDVIEW_MAX_SCALE", ViewportConfig.max_scale)),
        )
        hit_test = HitTestConfig(
            tolerance_px=float(env.get("GRIDVIEW_HIT_TOLERANCE", HitTestConfig.tolerance_px)),
        )
        return cls(fetcher=fetcher, viewport=viewport, hit_test=hit_test, api_url=api_url)


class DiagramSession:
    """
    One diagram surface: snapshot, view options, viewport and selection.

    The host feeds pointer events in screen coordinates and asks for
    `scene()` (or `render_svg()`) on each render tick. Selection, hover
    and viewport changes are reported through the `on_*` listeners.
    """

    def __init__(
        self,
        config: Optional[DiagramConfig] = None,
        fetcher: Optional[GraphFetcher] = None,
        audit: Optional[AuditLog] = None,
    ):
        self._config = config or DiagramConfig()
        self._audit = audit or AuditLog(self._config.observability)
        if fetcher is None and self._config.api_url:
            fetcher = GraphFetcher(self._config.fetcher)
        self._fetcher = fetcher

        self._composer = DiagramComposer(self._config.composer)
        self._viewport = ViewportController(self._config.viewport, self._audit)
        self._interaction = InteractionController(self._config.hit_test, self._audit)

        self._snapshot = GraphSnapshot()
        self._topology = GridTopology()
        self._view_mode = ViewMode.STATUS
        self._region_filter = RegionFilter.all()
        self._show_labels = True
        self._work_zone: Optional[WorkZone] = None
        self._load_metrics: Mapping[ElementRef, float] = {}

        # last-request-wins bookkeeping
        self._requested_seq = 0
        self._applied_seq = 0

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def config(self) -> DiagramConfig:
        return self._config

    @property
    def snapshot(self) -> GraphSnapshot:
        return self._snapshot

    @property
    def topology(self) -> GridTopology:
        return self._topology

    @property
    def viewport(self) -> ViewportController:
        return self._viewport

    @property
    def interaction(self) -> InteractionController:
        return self._interaction

    @property
    def audit(self) -> AuditLog:
        return self._audit

    @property
    def transform(self) -> ViewTransform:
        return self._viewport.transform

    @property
    def selected(self) -> Optional[ElementRef]:
        return self._interaction.selected

    @property
    def hovered(self) -> Optional[ElementRef]:
        return self._interaction.hovered

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def region_filter(self) -> RegionFilter:
        return self._region_filter

    @property
    def show_labels(self) -> bool:
        return self._show_labels

    def on_selection(self, listener: Callable[[SelectionEvent], None]) -> None:
        self._interaction.on_selection(listener)

    def on_hover(self, listener: Callable[[HoverEvent], None]) -> None:
        self._interaction.on_hover(listener)

    def on_viewport_change(self, listener: Callable[[ViewportChangedEvent], None]) -> None:
        self._viewport.subscribe(listener)

    # =========================================================================
    # GRAPH DATA
    # =========================================================================

    async def refresh(self) -> bool:
        """
        Fetch a new snapshot and apply it.

        Returns False when a newer refresh has already been applied and this
        result was discarded. On FetchError the current snapshot stays in
        place and the error propagates to the host.
        """
        if self._fetcher is None:
            raise GridviewError("No graph source configured")
        self._requested_seq += 1
        seq = self._requested_seq
        self._audit.record(AuditEventType.FETCH, LAYER, "fetch_started", sequence=seq)
        try:
            snapshot = await self._fetcher.load_graph(strict=False)
        except FetchError as e:
            self._audit.record(
                AuditEventType.ERROR, LAYER, "fetch_failed",
                sequence=seq, url=e.url, status_code=e.status_code, error=str(e),
            )
            raise
        return self._apply_fetched(snapshot, seq)

    def refresh_sync(self) -> bool:
        """Synchronous refresh for hosts without an event loop."""
        if self._fetcher is None:
            raise GridviewError("No graph source configured")
        self._requested_seq += 1
        seq = self._requested_seq
        self._audit.record(AuditEventType.FETCH, LAYER, "fetch_started", sequence=seq)
        try:
            snapshot = self._fetcher.load_graph_sync(strict=False)
        except FetchError as e:
            self._audit.record(
                AuditEventType.ERROR, LAYER, "fetch_failed",
                sequence=seq, url=e.url, status_code=e.status_code, error=str(e),
            )
            raise
        return self._apply_fetched(snapshot, seq)

    async def refresh_status(self) -> None:
        """Pull the live status feed and merge it into the current snapshot."""
        if self._fetcher is None:
            raise GridviewError("No graph source configured")
        updates = await self._fetcher.fetch_status()
        self.apply_status_updates(updates)

    def _apply_fetched(self, snapshot: GraphSnapshot, seq: int) -> bool:
        if seq < self._applied_seq:
            self._audit.record(
                AuditEventType.FETCH, LAYER, "fetch_discarded",
                sequence=seq, applied_sequence=self._applied_seq,
            )
            return False
        self._applied_seq = seq
        self.apply_snapshot(snapshot)
        self._audit.record(
            AuditEventType.FETCH, LAYER, "fetch_applied",
            sequence=seq, nodes=len(snapshot.nodes), connections=len(snapshot.connections),
        )
        return True

    def apply_snapshot(self, snapshot: GraphSnapshot) -> Scene:
        """
        Replace the snapshot wholesale. The viewport, including an
        in-progress drag, is left untouched.
        """
        self._snapshot = snapshot
        self._topology = GridTopology.from_snapshot(snapshot)
        scene = self.scene()
        for diagnostic in scene.integrity_errors:
            self._audit.record(
                AuditEventType.INTEGRITY, LAYER, diagnostic.kind.value,
                entity_id=diagnostic.element.element_id,
                entity_type=diagnostic.element.kind.value,
                message=diagnostic.message,
            )
        self._interaction.scene_replaced(scene)
        return scene

    def apply_status_updates(self, updates: Iterable[StatusUpdate]) -> None:
        updates = tuple(updates)
        self._snapshot = self._snapshot.with_updates(updates)
        self._topology = GridTopology.from_snapshot(self._snapshot)
        self._interaction.scene_replaced(self.scene())
        self._audit.record(AuditEventType.FETCH, LAYER, "status_merged", updates=len(updates))

    # =========================================================================
    # VIEW OPTIONS
    # =========================================================================

    def set_view_mode(self, view_mode: ViewMode) -> None:
        self._view_mode = ViewMode.parse(view_mode)

    def set_region_filter(self, region_filter: RegionFilter) -> None:
        self._region_filter = region_filter
        self._interaction.scene_replaced(self.scene())

    def set_show_labels(self, show_labels: bool) -> None:
        self._show_labels = bool(show_labels)

    def set_work_zone(self, work_zone: Optional[WorkZone]) -> None:
        self._work_zone = work_zone

    def set_load_metrics(self, metrics: Mapping[ElementRef, float]) -> None:
        """Per-element load values for load view mode, overriding snapshot loads."""
        self._load_metrics = dict(metrics)

    # =========================================================================
    # POINTER INPUT
    # =========================================================================

    def pointer_down(self, screen_point: Point) -> Optional[ElementRef]:
        """Select the element under the pointer, or start a pan on empty space."""
        hit = self._interaction.click(self.scene(), screen_point, self.transform)
        if hit is None:
            self._viewport.pointer_down(screen_point)
        return hit

    def pointer_move(self, screen_point: Point) -> Optional[ElementRef]:
        """Pan while dragging; otherwise update hover. Returns the hovered element."""
        if self._viewport.is_dragging:
            self._viewport.pointer_move(screen_point)
            return self._interaction.hovered
        return self._interaction.pointer_move(self.scene(), screen_point, self.transform)

    def pointer_up(self, screen_point: Optional[Point] = None) -> None:
        self._viewport.pointer_up(screen_point)

    def pointer_leave(self) -> None:
        self._viewport.pointer_leave()
        self._interaction.clear_hover()

    def select(self, element: Optional[ElementRef]) -> bool:
        return self._interaction.select(element)

    def clear_selection(self) -> bool:
        return self._interaction.clear_selection()

    # =========================================================================
    # ZOOM
    # =========================================================================

    def zoom_in(self, anchor: Optional[Point] = None) -> bool:
        return self._viewport.zoom_in(anchor)

    def zoom_out(self, anchor: Optional[Point] = None) -> bool:
        return self._viewport.zoom_out(anchor)

    def set_scale(self, scale: float, anchor: Optional[Point] = None) -> bool:
        return self._viewport.set_scale(scale, anchor)

    def fit_to_screen(self) -> bool:
        return self._viewport.fit_to_screen()

    def set_surface_size(self, width: float, height: float) -> None:
        self._viewport.set_surface_size(width, height)

    # =========================================================================
    # RENDERING
    # =========================================================================

    def highlighted_elements(self) -> FrozenSet[ElementRef]:
        selected = self._interaction.selected
        if selected is None or not self._config.highlight_connected:
            return frozenset()
        related = self._topology.related_elements(selected)
        if selected.kind is ElementKind.NODE:
            # only the incident connections, not the far-end nodes
            return frozenset(r for r in related if r.kind is ElementKind.CONNECTION)
        return related

    def scene(self) -> Scene:
        """Recompose the Scene from the latest snapshot and interaction state."""
        return self._composer.compose(
            self._snapshot,
            view_mode=self._view_mode,
            region_filter=self._region_filter,
            show_labels=self._show_labels,
            work_zone=self._work_zone,
            highlights=Highlights(
                hovered=self._interaction.hovered,
                selected=self._interaction.selected,
                connected=self.highlighted_elements(),
            ),
            load_metrics=self._load_metrics,
        )

    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return self.scene().diagnostics

    def render_svg(
        self,
        width: int = style.CANVAS_WIDTH,
        height: int = style.CANVAS_HEIGHT,
    ) -> str:
        transform = self.transform
        return scene_to_svg(
            self.scene(), transform.scale, transform.offset.x, transform.offset.y, width, height,
        )

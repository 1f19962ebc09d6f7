"""
Gridview: Diagram API Server
============================

Read-only API serving the composed single-line diagram.

Endpoints:
- GET /health             -> Service status
- GET /api/v1/scene       -> Layered scene as JSON, with diagnostics
- GET /api/v1/scene.svg   -> Standalone SVG rendering
- GET /api/v1/legend      -> Colour key

Graph source: GRIDVIEW_API_URL when set, else the built-in sample network.

Usage:
    uvicorn gridview.api.server:app --reload
"""
from contextlib import asynccontextmanager
from typing import List, Optional
import math

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from ..contracts.base import GridviewError, Point
from ..engine import DiagramConfig, DiagramSession
from ..ingestion import sample_snapshot
from ..interaction import ViewportController, ViewTransform
from ..visualization import RegionFilter, ViewMode, compose, legend, scene_to_svg
from ..visualization import style
from .mapper import map_legend, map_scene_to_dto

# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

session: Optional[DiagramSession] = None


class HealthDTO(BaseModel):
    status: str
    source: str
    nodes: int
    connections: int
    meters: int
    integrity_errors: int


class LegendEntryDTO(BaseModel):
    color_class: str
    label: str
    stroke: str
    fill: str


async def load_session(config: DiagramConfig) -> DiagramSession:
    """Create a session and load its first snapshot."""
    diagram = DiagramSession(config)
    if config.api_url:
        await diagram.refresh()
    else:
        diagram.apply_snapshot(sample_snapshot())
    return diagram


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the network graph on startup."""
    global session

    config = DiagramConfig.from_env()
    print(f"[*] Loading network graph from: {config.api_url or 'built-in sample'}")

    try:
        session = await load_session(config)
        print(f"[*] Graph loaded: {len(session.snapshot.nodes)} nodes, "
              f"{len(session.snapshot.connections)} connections.")
    except GridviewError as e:
        print(f"[!] FAILED to load network graph: {e}")
        raise

    yield

    print("[*] Shutting down diagram session.")
    session = None


app = FastAPI(
    title="Gridview Diagram API",
    version="0.1.0",
    description="Read-only single-line diagram rendering",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _require_session() -> DiagramSession:
    if session is None:
        raise HTTPException(status_code=503, detail="Diagram session not initialized")
    return session


def _parse_view_mode(value: str) -> ViewMode:
    try:
        return ViewMode.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _view_transform(diagram: DiagramSession, scale: float, offset_x: float, offset_y: float) -> ViewTransform:
    """Non-finite values are rejected; the scale is clamped to the configured bounds."""
    values = {"scale": scale, "offset_x": offset_x, "offset_y": offset_y}
    invalid = [name for name, value in values.items() if not math.isfinite(value)]
    if invalid:
        raise HTTPException(status_code=422, detail=f"Non-finite viewport values: {', '.join(invalid)}")
    viewport = ViewportController(diagram.config.viewport)
    viewport.set_scale(scale, anchor=Point(0.0, 0.0))
    viewport.set_offset(Point(offset_x, offset_y))
    return viewport.transform


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health", response_model=HealthDTO)
async def health_check():
    """System status."""
    diagram = _require_session()
    snapshot = diagram.snapshot
    return HealthDTO(
        status="online",
        source=diagram.config.api_url or "sample",
        nodes=len(snapshot.nodes),
        connections=len(snapshot.connections),
        meters=len(snapshot.meters),
        integrity_errors=len(snapshot.integrity_report()),
    )


@app.get("/api/v1/scene")
async def get_scene(
    view_mode: str = Query("status"),
    region: Optional[str] = Query(None, description="'all' or comma-separated region names"),
    show_labels: bool = Query(True),
):
    """
    Composed scene in model coordinates.
    Integrity problems are reported under `diagnostics`, never as errors.
    """
    diagram = _require_session()
    scene = compose(
        diagram.snapshot, _parse_view_mode(view_mode), RegionFilter.parse(region), show_labels,
    )
    return map_scene_to_dto(scene)


@app.get("/api/v1/scene.svg")
async def get_scene_svg(
    view_mode: str = Query("status"),
    region: Optional[str] = Query(None),
    show_labels: bool = Query(True),
    scale: float = Query(1.0, gt=0),
    offset_x: float = Query(0.0),
    offset_y: float = Query(0.0),
    width: int = Query(style.CANVAS_WIDTH, gt=0),
    height: int = Query(style.CANVAS_HEIGHT, gt=0),
):
    diagram = _require_session()
    scene = compose(
        diagram.snapshot, _parse_view_mode(view_mode), RegionFilter.parse(region), show_labels,
    )
    transform = _view_transform(diagram, scale, offset_x, offset_y)
    svg = scene_to_svg(scene, transform.scale, transform.offset.x, transform.offset.y, width, height)
    return Response(content=svg, media_type="image/svg+xml")


@app.get("/api/v1/legend", response_model=List[LegendEntryDTO])
async def get_legend(view_mode: Optional[str] = Query(None)):
    mode = _parse_view_mode(view_mode) if view_mode else None
    return map_legend(list(legend(mode)))

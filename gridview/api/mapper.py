"""
API Mapper
==========

Transforms Scenes into JSON-ready DTOs for the host page. Geometry is
exported in model coordinates; the host applies its own view transform.
"""
from typing import Any, Dict, List

from ..contracts.base import Diagnostic
from ..visualization.glyphs import CircleShape, Glyph, LineShape, Primitive, RectShape, TextShape
from ..visualization.scene import Scene, SceneItem
from ..visualization.composer import LegendEntry


def map_scene_to_dto(scene: Scene) -> Dict[str, Any]:
    """Map a Scene to SceneDTO: ordered layers plus diagnostics."""
    return {
        "layers": [
            {"kind": layer.kind.value, "items": [_map_item(item) for item in layer.items]}
            for layer in scene.layers
        ],
        "connections": [
            {
                "id": rc.connection.connection_id,
                "source": {"x": rc.source.x, "y": rc.source.y},
                "target": {"x": rc.target.x, "y": rc.target.y},
            }
            for rc in scene.resolved_connections
        ],
        "diagnostics": [map_diagnostic(d) for d in scene.diagnostics],
    }


def map_diagnostic(diagnostic: Diagnostic) -> Dict[str, Any]:
    return {
        "kind": diagnostic.kind.value,
        "element_kind": diagnostic.element.kind.value,
        "element_id": diagnostic.element.element_id,
        "message": diagnostic.message,
        "missing_node_ids": list(diagnostic.missing_node_ids),
        "is_integrity_error": diagnostic.is_integrity_error,
    }


def map_legend(entries: List[LegendEntry]) -> List[Dict[str, str]]:
    return [
        {"color_class": e.color_class.value, "label": e.label, "stroke": e.stroke, "fill": e.fill}
        for e in entries
    ]


def _map_item(item: SceneItem) -> Dict[str, Any]:
    dto: Dict[str, Any] = {
        "glyph": _map_glyph(item.glyph),
        "centroid": {"x": item.centroid.x, "y": item.centroid.y},
    }
    if item.element is not None:
        dto["element"] = {"kind": item.element.kind.value, "id": item.element.element_id}
        dto["hovered"] = item.is_hovered
        dto["selected"] = item.is_selected
        dto["highlighted"] = item.is_highlighted
    return dto


def _map_glyph(glyph: Glyph) -> Dict[str, Any]:
    return {
        "shape": glyph.shape.value,
        "color_class": glyph.color_class.value,
        "stroke": glyph.stroke_color,
        "fill": glyph.fill_color,
        "stroke_width": glyph.stroke_width,
        "dash": list(glyph.dash),
        "markers": sorted(m.value for m in glyph.markers),
        "primitives": [_map_primitive(p) for p in glyph.primitives],
    }


def _map_primitive(p: Primitive) -> Dict[str, Any]:
    if isinstance(p, LineShape):
        return {"type": "line", "x1": p.start.x, "y1": p.start.y, "x2": p.end.x, "y2": p.end.y}
    if isinstance(p, RectShape):
        return {
            "type": "rect", "cx": p.center.x, "cy": p.center.y,
            "width": p.width, "height": p.height, "angle": p.angle,
        }
    if isinstance(p, CircleShape):
        return {"type": "circle", "cx": p.center.x, "cy": p.center.y, "r": p.radius}
    if isinstance(p, TextShape):
        return {
            "type": "text", "x": p.position.x, "y": p.position.y, "text": p.text,
            "font_size": p.font_size, "anchor": p.anchor, "bold": p.bold, "color": p.color,
        }
    raise TypeError(f"Unsupported primitive: {type(p).__name__}")

"""
SVG Serializer

Renders a Scene to an SVG document string. The view transform is
applied once, on the root group, as `scale(s) translate(ox, oy)`, which
is the same order ViewTransform.to_screen uses.
"""

from __future__ import annotations
from typing import List, Optional
import math
from xml.sax.saxutils import escape, quoteattr

from .glyphs import CircleShape, Glyph, LineShape, Primitive, RectShape, TextShape
from .scene import Scene, SceneItem
from . import style


def _num(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _paint(glyph: Glyph, filled: bool) -> str:
    attrs = [
        f'stroke="{glyph.stroke_color}"',
        f'stroke-width="{_num(glyph.stroke_width)}"',
        f'fill="{glyph.fill_color if filled else "none"}"',
    ]
    if glyph.dash:
        attrs.append(f'stroke-dasharray="{" ".join(_num(d) for d in glyph.dash)}"')
    return " ".join(attrs)


def _line(p: LineShape, glyph: Glyph) -> str:
    return (
        f'<line x1="{_num(p.start.x)}" y1="{_num(p.start.y)}" '
        f'x2="{_num(p.end.x)}" y2="{_num(p.end.y)}" {_paint(glyph, False)} stroke-linecap="round"/>'
    )


def _rect(p: RectShape, glyph: Glyph) -> str:
    x = p.center.x - p.width / 2
    y = p.center.y - p.height / 2
    rotate = ""
    if p.angle:
        rotate = f' transform="rotate({_num(p.angle)} {_num(p.center.x)} {_num(p.center.y)})"'
    return (
        f'<rect x="{_num(x)}" y="{_num(y)}" width="{_num(p.width)}" height="{_num(p.height)}"'
        f'{rotate} {_paint(glyph, True)}/>'
    )


def _circle(p: CircleShape, glyph: Glyph) -> str:
    return (
        f'<circle cx="{_num(p.center.x)}" cy="{_num(p.center.y)}" r="{_num(p.radius)}" '
        f'{_paint(glyph, True)}/>'
    )


def _text(p: TextShape, glyph: Glyph) -> str:
    weight = ' font-weight="bold"' if p.bold else ""
    # labels carry their colour as fill; symbol marks use the stroke colour
    color = glyph.fill_color if glyph.stroke_color == "none" else glyph.stroke_color
    if p.color:
        color = p.color
    return (
        f'<text x="{_num(p.position.x)}" y="{_num(p.position.y)}" font-size="{_num(p.font_size)}" '
        f'font-family={quoteattr(style.FONT_FAMILY)} text-anchor="{p.anchor}"{weight} '
        f'fill="{color}">{escape(p.text)}</text>'
    )


def _primitive(p: Primitive, glyph: Glyph) -> str:
    if isinstance(p, LineShape):
        return _line(p, glyph)
    if isinstance(p, RectShape):
        return _rect(p, glyph)
    if isinstance(p, CircleShape):
        return _circle(p, glyph)
    return _text(p, glyph)


def item_to_svg(item: SceneItem) -> str:
    attrs = [f'class="{item.glyph.shape.value} {item.glyph.color_class.value}"']
    if item.element is not None:
        attrs.append(f"data-kind={quoteattr(item.element.kind.value)}")
        attrs.append(f"data-id={quoteattr(item.element.element_id)}")
    body = "".join(_primitive(p, item.glyph) for p in item.glyph.primitives)
    return f'<g {" ".join(attrs)}>{body}</g>'


def scene_to_svg(
    scene: Scene,
    scale: float = 1.0,
    offset_x: float = 0.0,
    offset_y: float = 0.0,
    width: int = style.CANVAS_WIDTH,
    height: int = style.CANVAS_HEIGHT,
    background: Optional[str] = style.CANVAS_BACKGROUND,
) -> str:
    if not all(math.isfinite(v) for v in (scale, offset_x, offset_y)) or scale <= 0:
        raise ValueError(f"Invalid view transform: scale={scale}, offset=({offset_x}, {offset_y})")
    parts: List[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
    ]
    if background:
        parts.append(f'<rect x="0" y="0" width="{width}" height="{height}" fill="{background}"/>')
    parts.append(
        f'<g transform="scale({_num(scale)}) translate({_num(offset_x)}, {_num(offset_y)})">'
    )
    for layer in scene.layers:
        parts.append(f'<g class="layer-{layer.kind.value}">')
        parts.extend(item_to_svg(item) for item in layer.items)
        parts.append("</g>")
    parts.append("</g></svg>")
    return "".join(parts)

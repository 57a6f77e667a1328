# File: qbc/svg/renderer.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.2
# Status: stable
# Date: 2026-09-21
# Purpose: EncodedPath + anchors + estilo + orientación -> SVG.
# Notes:
# - La orientación es solo de presentación: nunca toca anchors ni el path guardado.
# - Salida byte-estable: coordenadas con precisión fija y atributos en orden fijo.
from __future__ import annotations

import logging
import math
from typing import Iterable
from xml.etree.ElementTree import Comment, Element, SubElement, tostring

from qbc.core.composite import CompositeGlyph
from qbc.core.models import (
    AnchorMap,
    EncodedPath,
    GlyphPackage,
    GlyphStyle,
    LineEvent,
    MoveEvent,
    Orientation,
    Point,
    TickEvent,
)
from qbc.core.package import package_to_base64
from qbc.core.version import EMBED_MARKER

log = logging.getLogger(__name__)

DEFAULT_SIZE = 400
# Padding fijo (fracción del lado del viewport).
PADDING_RATIO = 0.1
SPACE_LABEL = "␣"


def transform_point(point: Point, orientation: Orientation | None) -> Point:
    """Mirror (x'=1-x), flip vertical (y'=1-y) y rotación sobre (0.5, 0.5)."""
    x, y = float(point[0]), float(point[1])
    if orientation is None:
        return (x, y)
    if orientation.mirror:
        x = 1.0 - x
    if orientation.flip_vertical:
        y = 1.0 - y
    rot = orientation.rotation % 360.0
    if rot:
        t = math.radians(rot)
        c, s = math.cos(t), math.sin(t)
        dx, dy = x - 0.5, y - 0.5
        x, y = 0.5 + dx * c - dy * s, 0.5 + dx * s + dy * c
    return (x, y)


def viewport_padding(size: float) -> float:
    return float(size) * PADDING_RATIO


def to_viewport(point: Point, size: float = DEFAULT_SIZE) -> Point:
    """Coordenada normalizada -> viewport (Y invertido: en el lattice Y crece hacia arriba)."""
    pad = viewport_padding(size)
    inner = float(size) - 2.0 * pad
    return (pad + point[0] * inner, pad + (1.0 - point[1]) * inner)


def _fmt(v: float) -> str:
    s = f"{v:.3f}".rstrip("0").rstrip(".")
    return "0" if s in ("", "-0") else s


def _pt(p: Point) -> str:
    return f"{_fmt(p[0])} {_fmt(p[1])}"


def _path_points(path: EncodedPath, orientation: Orientation | None, size: float) -> list[tuple[str, Point]]:
    """(comando, punto en viewport) por evento. Tick => line a la punta del tick."""
    out: list[tuple[str, Point]] = []
    for ev in path.events:
        if isinstance(ev, MoveEvent):
            out.append(("M", to_viewport(transform_point((ev.x, ev.y), orientation), size)))
        elif isinstance(ev, LineEvent):
            out.append(("L", to_viewport(transform_point((ev.x, ev.y), orientation), size)))
        elif isinstance(ev, TickEvent):
            tip = (ev.tick_end_x, ev.tick_end_y)
            out.append(("L", to_viewport(transform_point(tip, orientation), size)))
        else:  # pragma: no cover
            raise TypeError(f"Evento desconocido: {ev!r}")
    return out


def _end_cap(points: list[Point], length: float) -> tuple[Point, Point] | None:
    """Segmento perpendicular centrado en el último punto (dirección: anteúltimo -> último)."""
    if len(points) < 2 or length <= 0:
        return None
    lx, ly = points[-1]
    for px, py in reversed(points[:-1]):
        dx, dy = lx - px, ly - py
        d = math.hypot(dx, dy)
        if d > 1e-9:
            nx, ny = -dy / d * length / 2.0, dx / d * length / 2.0
            return ((lx + nx, ly + ny), (lx - nx, ly - ny))
    return None


def build_path_data(
    path: EncodedPath,
    orientation: Orientation | None = None,
    *,
    size: float = DEFAULT_SIZE,
    end_cap_length: float = 0.0,
) -> str:
    cmds = _path_points(path, orientation, size)
    parts = [f"{cmd} {_pt(p)}" for cmd, p in cmds]
    cap = _end_cap([p for _, p in cmds], end_cap_length)
    if cap is not None:
        parts.append(f"M {_pt(cap[0])} L {_pt(cap[1])}")
    return " ".join(parts)


def _grid_positions(size: float, lines: int) -> Iterable[float]:
    if lines < 2:
        return []
    pad = viewport_padding(size)
    inner = float(size) - 2.0 * pad
    return [pad + inner * i / (lines - 1) for i in range(lines)]


def _svg_root(width: int, height: int) -> Element:
    return Element(
        "svg",
        {
            "xmlns": "http://www.w3.org/2000/svg",
            "version": "1.1",
            "width": str(width),
            "height": str(height),
            "viewBox": f"0 0 {width} {height}",
        },
    )


def render_svg(
    path: EncodedPath,
    anchors: AnchorMap,
    style: GlyphStyle | None = None,
    orientation: Orientation | None = None,
    *,
    size: int = DEFAULT_SIZE,
    package: GlyphPackage | None = None,
) -> str:
    """Compone el SVG del glifo.

    Capas (en orden): fondo, grilla (opcional), trazo + end-cap, nodos (opcional),
    labels (opcional). Si se pasa `package`, se embebe como <!--QBC-DATA:...-->.
    """
    style = style or GlyphStyle()
    size = int(size)

    svg = _svg_root(size, size)
    if package is not None:
        svg.append(Comment(f"{EMBED_MARKER}:{package_to_base64(package)}"))

    SubElement(svg, "rect", {"width": "100%", "height": "100%", "fill": style.background_color})

    if style.show_grid:
        g = SubElement(svg, "g", {"id": "QBC_GRID", "stroke": style.grid_color, "stroke-width": "1"})
        pad = viewport_padding(size)
        lo, hi = _fmt(pad), _fmt(size - pad)
        for v in _grid_positions(size, style.grid_lines):
            fv = _fmt(v)
            SubElement(g, "line", {"x1": fv, "y1": lo, "x2": fv, "y2": hi})
            SubElement(g, "line", {"x1": lo, "y1": fv, "x2": hi, "y2": fv})

    _draw_glyph(svg, path, anchors, style, orientation, size)

    out = tostring(svg, encoding="unicode")
    log.debug("render_svg: %d eventos -> %d bytes", len(path.events), len(out))
    return out


def _draw_glyph(
    parent: Element,
    path: EncodedPath,
    anchors: AnchorMap,
    style: GlyphStyle,
    orientation: Orientation | None,
    size: float,
    id_suffix: str = "",
) -> None:
    """Trazo + end-cap, nodos y labels de un glifo dentro de `parent` (caja size x size)."""
    d = build_path_data(path, orientation, size=size, end_cap_length=style.end_cap_length)
    if d:
        SubElement(
            parent,
            "path",
            {
                "id": f"QBC_GLYPH{id_suffix}",
                "d": d,
                "fill": "none",
                "stroke": style.stroke_color,
                "stroke-width": _fmt(style.stroke_width),
                "stroke-linecap": "round",
                "stroke-linejoin": "round",
            },
        )

    first = path.visited_chars[0] if path.visited_chars else None
    positions = {ch: to_viewport(transform_point(pt, orientation), size) for ch, pt in anchors.items()}

    if style.show_nodes:
        g = SubElement(parent, "g", {"id": f"QBC_NODES{id_suffix}", "stroke": style.node_color, "stroke-width": "1"})
        for ch, (x, y) in positions.items():
            fill = style.start_node_fill_color if ch == first else style.node_fill_color
            SubElement(g, "circle", {"cx": _fmt(x), "cy": _fmt(y), "r": _fmt(style.node_size / 2.0), "fill": fill})

    if style.show_labels:
        g = SubElement(
            parent,
            "g",
            {"id": f"QBC_LABELS{id_suffix}", "fill": style.label_color, "font-family": "monospace", "font-size": _fmt(style.node_size * 2)},
        )
        off = style.node_size
        for ch, (x, y) in positions.items():
            t = SubElement(g, "text", {"x": _fmt(x + off), "y": _fmt(y - off)})
            t.text = SPACE_LABEL if ch == " " else ch


def render_composite_svg(
    composite: CompositeGlyph,
    anchors: AnchorMap,
    style: GlyphStyle | None = None,
    orientation: Orientation | None = None,
    *,
    cell_size: int = DEFAULT_SIZE // 2,
    border: bool = True,
) -> str:
    """Compone un glifo por celda (fila a fila) en un único SVG.

    Cada celda va en <g id="QBC_CELL_i" transform="translate(x y)"> y usa las
    mismas capas que render_svg, salvo fondo y grilla que son uno solo.
    """
    style = style or GlyphStyle()
    cell_size = int(cell_size)
    width = max(1, composite.columns) * cell_size
    height = max(1, composite.rows) * cell_size

    svg = _svg_root(width, height)
    SubElement(svg, "rect", {"width": "100%", "height": "100%", "fill": style.background_color})

    for cell in composite.cells:
        g = SubElement(
            svg,
            "g",
            {
                "id": f"QBC_CELL_{cell.index}",
                "transform": f"translate({cell.col * cell_size} {cell.row * cell_size})",
            },
        )
        if border:
            SubElement(
                g,
                "rect",
                {
                    "width": str(cell_size),
                    "height": str(cell_size),
                    "fill": "none",
                    "stroke": style.grid_color,
                    "stroke-width": "1",
                },
            )
        _draw_glyph(g, cell.path, anchors, style, orientation, cell_size, id_suffix=f"_{cell.index}")

    out = tostring(svg, encoding="unicode")
    log.debug("render_composite_svg: %d celdas (%dx%d)", len(composite.cells), composite.columns, composite.rows)
    return out

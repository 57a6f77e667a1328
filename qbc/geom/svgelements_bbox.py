"""Glyph bbox inspection through svgelements.

Backs the CLI ``inspect`` command. Works on rendered markup only: it measures
geometry and never decodes text.

Result dict
- ``bbox``: ``(x0, y0, x1, y1)`` in user units, or ``None``
- ``viewbox``: ``[x, y, w, h]`` when the document declares one
- ``doc_size``: ``[w, h]`` as resolved by svgelements
- ``inside``: whether ``bbox`` fits in the viewbox (only when both exist)
- ``error``: set instead of raising when parsing or lookup fails
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from svgelements import SVG

GLYPH_ELEMENT_ID = "QBC_GLYPH"


def _num(v: Any) -> Optional[float]:
    # svgelements Length keeps its magnitude in `.value`.
    for candidate in (v, getattr(v, "value", None)):
        if candidate is None:
            continue
        try:
            return float(candidate)
        except (TypeError, ValueError):
            continue
    return None


def _viewbox(svg: SVG) -> Optional[list[float]]:
    vb = getattr(svg, "viewbox", None)
    if vb is None:
        return None
    parts = [_num(getattr(vb, k, None)) for k in ("x", "y", "width", "height")]
    if any(p is None for p in parts):
        return None
    return [float(p) for p in parts if p is not None]


def bbox_inside(bbox: Sequence[float], viewbox: Sequence[float], tol: float = 1e-6) -> bool:
    x0, y0, x1, y1 = bbox
    vx, vy, vw, vh = viewbox
    return x0 >= vx - tol and y0 >= vy - tol and x1 <= vx + vw + tol and y1 <= vy + vh + tol


def compute_markup_bbox(
    markup: str,
    *,
    element_id: Optional[str] = GLYPH_ELEMENT_ID,
    ppi: float = 96.0,
) -> Dict[str, Any]:
    """Bbox of one element (default: the glyph stroke) or of the whole document.

    Stroke width is not included; the end-cap segment is, since it is part of ``d``.
    """
    try:
        svg = SVG.parse(io.BytesIO(markup.encode("utf-8")), ppi=float(ppi), reify=True)
    except Exception as e:
        return {"bbox": None, "error": f"{type(e).__name__}: {e}"}

    target: Any = svg if element_id is None else svg.get_element_by_id(element_id)
    if target is None:
        return {"bbox": None, "error": f"element not found: {element_id!r}"}

    raw = target.bbox(with_stroke=False) if hasattr(target, "bbox") else None
    bbox = tuple(float(v) for v in raw) if raw is not None else None

    w, h = _num(getattr(svg, "width", None)), _num(getattr(svg, "height", None))
    out: Dict[str, Any] = {
        "bbox": bbox,
        "doc_size": [w, h] if w is not None and h is not None else None,
        "viewbox": _viewbox(svg),
    }
    if bbox is not None and out["viewbox"] is not None:
        out["inside"] = bbox_inside(bbox, out["viewbox"])
    return out


def compute_document_bbox(svg_path: str | Path, **kw: Any) -> Dict[str, Any]:
    """Same as :func:`compute_markup_bbox`, reading the markup from disk."""
    p = Path(svg_path)
    try:
        markup = p.read_text(encoding="utf-8")
    except OSError as e:
        return {"bbox": None, "error": f"{type(e).__name__}: {e}"}
    return compute_markup_bbox(markup, **kw)

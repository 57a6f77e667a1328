"""External lattice adapter.

Converts an alternative lattice representation (an arbitrary vertex graph plus
a ``character -> [fromVertexId, toVertexId]`` edge map) into the anchor-map
shape the encoder and renderer expect.

Source shape::

    {
      "vertex_config": {"vertices": [{"id": 0, "x": 10, "y": 20, "label": "a"}], "edges": [...]},
      "character_map": {"A": [0, 1], ...}
    }

Notes
- Coordinates are rescaled from their bounding box into ``[padding, 1-padding]``.
  A zero-width or zero-height box uses 1 as its range (no division by zero).
- ``build_path`` keeps unmapped, non-space characters in ``visited_chars`` even
  though they draw nothing. The primary encoder drops them instead.
"""

from __future__ import annotations

import math
from collections.abc import Hashable, Mapping
from typing import Any, Dict, Optional, Tuple

from qbc.core.models import (
    EncodedPath,
    GenerationRules,
    GlyphStyle,
    Lattice,
    LineEvent,
    MoveEvent,
    PathEvent,
    Point,
)
from qbc.core.normalizer import normalize_text
from qbc.core.version import ALPHABET
from qbc.utils.errors import QbcSchemaError

DEFAULT_PADDING = 0.1
# Pen closer than this to the next edge start does not need a connector line.
CONNECT_EPSILON = 1e-3


def _vertex_xy(v: Any) -> Optional[Tuple[Hashable, float, float]]:
    if not isinstance(v, Mapping) or "id" not in v:
        return None
    try:
        x, y = float(v["x"]), float(v["y"])
    except (KeyError, TypeError, ValueError):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    vid = v["id"]
    return (vid if isinstance(vid, Hashable) else str(vid)), x, y


def normalize_vertices(vertices: Any, padding: float = DEFAULT_PADDING) -> Dict[Hashable, Point]:
    """Map every vertex into ``[padding, 1-padding]`` on each axis.

    Vertices without a usable id/x/y are skipped.
    """
    parsed = [p for p in (_vertex_xy(v) for v in (vertices or [])) if p is not None]
    if not parsed:
        return {}

    xs = [x for _, x, _ in parsed]
    ys = [y for _, _, y in parsed]
    min_x, min_y = min(xs), min(ys)
    range_x = (max(xs) - min_x) or 1.0
    range_y = (max(ys) - min_y) or 1.0
    span = 1.0 - 2.0 * padding

    return {
        vid: (padding + (x - min_x) / range_x * span, padding + (y - min_y) / range_y * span)
        for vid, x, y in parsed
    }


def _edge(entry: Any) -> Optional[Tuple[Hashable, Hashable]]:
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        a, b = entry
        if isinstance(a, Hashable) and isinstance(b, Hashable):
            return a, b
    return None


def _lookup(positions: Mapping[Hashable, Point], vid: Hashable) -> Optional[Point]:
    # JSON sources mix numeric ids and string keys ("0" vs 0).
    if vid in positions:
        return positions[vid]
    alt = str(vid)
    for k, p in positions.items():
        if str(k) == alt:
            return p
    return None


def _resolved_edges(vertex_config: Any, character_map: Any) -> Dict[str, Tuple[Point, Point]]:
    """``char -> (start, end)`` in normalized coordinates, skipping broken entries."""
    if not isinstance(vertex_config, Mapping) or not isinstance(character_map, Mapping):
        return {}
    positions = normalize_vertices(vertex_config.get("vertices"))
    out: Dict[str, Tuple[Point, Point]] = {}
    for ch, entry in character_map.items():
        edge = _edge(entry)
        if not isinstance(ch, str) or edge is None:
            continue
        start = _lookup(positions, edge[0])
        end = _lookup(positions, edge[1])
        if start is None or end is None:
            continue
        out[ch.upper()] = (start, end)
    return out


def build_anchors(vertex_config: Any, character_map: Any) -> Dict[str, Point]:
    """Anchor = normalized position of the edge's *destination* vertex."""
    return {ch: end for ch, (_, end) in _resolved_edges(vertex_config, character_map).items()}


def build_path(text: str, vertex_config: Any, character_map: Any) -> EncodedPath:
    """Walk the normalized text along the character edges.

    - first drawable char: move to edge start, line to edge end
    - next chars: connector line to the edge start (only if the pen is not
      already there), then line to the edge end
    - unmapped non-space chars: recorded in ``visited_chars``, no geometry
    """
    edges = _resolved_edges(vertex_config, character_map)
    events: list[PathEvent] = []
    visited: list[str] = []
    counts: dict[str, int] = {}
    pen: Optional[Point] = None

    for ch in normalize_text(text):
        edge = edges.get(ch)
        if edge is None:
            if ch != " ":
                visited.append(ch)
                counts[ch] = counts.get(ch, 0) + 1
            continue

        (sx, sy), (ex, ey) = edge
        if pen is None:
            events.append(MoveEvent(ch, sx, sy))
        elif math.hypot(pen[0] - sx, pen[1] - sy) > CONNECT_EPSILON:
            events.append(LineEvent(ch, sx, sy))
        events.append(LineEvent(ch, ex, ey))
        pen = (ex, ey)

        visited.append(ch)
        counts[ch] = counts.get(ch, 0) + 1

    return EncodedPath(events=events, visited_chars=visited, visit_counts=counts)


def is_valid_lattice(source: Any) -> bool:
    """True only with a non-empty vertex list and at least one character entry."""
    if not isinstance(source, Mapping):
        return False
    vc = source.get("vertex_config")
    cm = source.get("character_map")
    if not isinstance(vc, Mapping) or not isinstance(cm, Mapping):
        return False
    vertices = vc.get("vertices")
    return isinstance(vertices, list) and len(vertices) > 0 and len(cm) > 0


def lattice_from_external(
    source: Any,
    key: str,
    version: int = 1,
    rules: Optional[GenerationRules] = None,
    style: Optional[GlyphStyle] = None,
) -> Lattice:
    """Build an encoder-ready ``Lattice`` from an external source.

    Raises ``QbcSchemaError`` when the source is not a valid external lattice,
    or when no character resolves to a supported anchor.
    """
    if not is_valid_lattice(source):
        raise QbcSchemaError(f"External lattice {key!r}: empty or invalid vertices/character_map")
    anchors = {
        ch: pt
        for ch, pt in build_anchors(source["vertex_config"], source["character_map"]).items()
        if len(ch) == 1 and ch in ALPHABET
    }
    if not anchors:
        raise QbcSchemaError(f"External lattice {key!r}: no character resolves to a vertex")
    return Lattice(
        key=key,
        version=version,
        anchors=anchors,
        rules=rules or GenerationRules(),
        style=style or GlyphStyle(),
        name=str(source.get("name") or key),
    )

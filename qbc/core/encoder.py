# File: qbc/core/encoder.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.2
# Status: stable
# Date: 2026-09-21
# Purpose: Texto normalizado -> path de eventos (move/line/tick) sobre un lattice.
# Notes:
# - Determinístico: mismo texto + mismo lattice = mismo path (desempates estables).
# - Chars sin anchor se descartan en silencio (no es error).
from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from qbc.core.models import (
    AnchorMap,
    EncodedPath,
    GenerationRules,
    LineEvent,
    MoveEvent,
    PathEvent,
    Point,
    TickEvent,
    normalize_rules,
)
from qbc.core.normalizer import normalize_text

log = logging.getLogger(__name__)

# Debajo de esto la dirección entrante se considera degenerada.
_EPS = 1e-9
# Dirección usada cuando no hay historial (p.ej. "AA" al inicio).
_FALLBACK_DIRECTION: Point = (1.0, 0.0)


def encode_text(
    text: str,
    anchors: AnchorMap,
    rules: GenerationRules | Mapping[str, Any] | None = None,
) -> EncodedPath:
    """Recorre el texto normalizado contra los anchors y arma el path.

    - Primer char mapeado: move.
    - Revisita (repetición inmediata o char ya visitado) con ticks: line + tick;
      la pluma queda en la punta del tick, no en el anchor.
    - Resto: line.
    """
    rules = normalize_rules(rules)
    normalized = normalize_text(text)

    events: list[PathEvent] = []
    visited: list[str] = []
    counts: dict[str, int] = {}

    pen: Point | None = None
    prev_pen: Point | None = None
    last_char: str | None = None

    for ch in normalized:
        anchor = anchors.get(ch)
        if anchor is None:
            continue
        ax, ay = float(anchor[0]), float(anchor[1])

        is_revisit = ch == last_char or counts.get(ch, 0) > 0
        counts[ch] = counts.get(ch, 0) + 1
        visited.append(ch)

        if pen is None:
            events.append(MoveEvent(ch, ax, ay))
            prev_pen, pen = pen, (ax, ay)
        elif is_revisit and rules.enable_tick:
            events.append(LineEvent(ch, ax, ay))
            direction = _incoming_direction((ax, ay), pen, prev_pen)
            tx, ty = _tick_endpoint((ax, ay), direction, rules)
            events.append(TickEvent(ch, ax, ay, tx, ty))
            # El siguiente segmento sale de la muesca.
            prev_pen, pen = (ax, ay), (tx, ty)
        else:
            events.append(LineEvent(ch, ax, ay))
            prev_pen, pen = pen, (ax, ay)

        last_char = ch

    log.debug("encode_text: %r -> %d eventos (%d chars)", normalized, len(events), len(visited))
    return EncodedPath(events=events, visited_chars=visited, visit_counts=counts)


def _incoming_direction(anchor: Point, pen: Point, prev_pen: Point | None) -> Point:
    """Vector unitario pen->anchor; si pen ya está en el anchor usa prev_pen."""
    for origin in (pen, prev_pen):
        if origin is None:
            continue
        dx = anchor[0] - origin[0]
        dy = anchor[1] - origin[1]
        length = math.hypot(dx, dy)
        if length > _EPS:
            return (dx / length, dy / length)
    return _FALLBACK_DIRECTION


def _boundary_margin(p: Point) -> float:
    x, y = p
    return min(x, 1.0 - x, y, 1.0 - y)


def _tick_endpoint(anchor: Point, direction: Point, rules: GenerationRules) -> Point:
    """Punta del tick: perpendicular a la dirección entrante, escalada por tickLengthFactor.

    Con insideBoundaryPreference se elige el candidato con mayor margen al borde
    del cuadrado unitario (sort estable: en empate gana el primero). Sin la
    preferencia el tick va siempre del lado opuesto, (dy, -dx).
    """
    dx, dy = direction
    length = rules.tick_length_factor
    candidates = [
        (anchor[0] - dy * length, anchor[1] + dx * length),
        (anchor[0] + dy * length, anchor[1] - dx * length),
    ]
    if rules.inside_boundary_preference:
        # sorted(reverse=True) es estable: en empate queda el primero.
        best = sorted(candidates, key=_boundary_margin, reverse=True)[0]
    else:
        best = candidates[1]
    return (_clamp01(best[0]), _clamp01(best[1]))


def _clamp01(v: float) -> float:
    return 0.0 if v < 0.0 else 1.0 if v > 1.0 else v

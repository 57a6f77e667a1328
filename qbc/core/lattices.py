# File: qbc/core/lattices.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.0
# Status: stable
# Date: 2026-09-02
# Purpose: Lattices builtin + carga de lattices desde JSON (filas exportadas de storage).
# Notes: Los lattices publicados viven en el backend; acá solo hay un default offline.
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from qbc.core.models import GenerationRules, Lattice, Point
from qbc.core.version import ALPHABET
from qbc.utils.errors import QbcIOError, QbcValidationError

log = logging.getLogger(__name__)


def _grid_anchors(chars: str, columns: int, start: float, step: float) -> dict[str, Point]:
    """Reparte chars en una grilla fila a fila (de arriba hacia abajo)."""
    out: dict[str, Point] = {}
    for i, ch in enumerate(chars):
        row, col = divmod(i, columns)
        x = round(start + col * step, 4)
        y = round(1.0 - start - row * step, 4)
        out[ch] = (x, y)
    return out


# G1: grilla 6x5 en [0.1, 0.9]; el espacio ocupa la celda 27.
G1 = Lattice(
    key="G1",
    version=1,
    name="Genesis Grid",
    anchors=_grid_anchors(ALPHABET, columns=6, start=0.1, step=0.16),
    rules=GenerationRules(),
)

BUILTIN_LATTICES: dict[str, Lattice] = {G1.key: G1}


def get_builtin_lattice(key: str) -> Lattice:
    try:
        return BUILTIN_LATTICES[key]
    except KeyError:
        raise QbcValidationError(
            f"Lattice desconocido: {key!r} (builtin: {', '.join(sorted(BUILTIN_LATTICES))})"
        ) from None


def load_lattice(path: str | Path) -> Lattice:
    """Carga un lattice desde JSON (fila de storage o forma corta)."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise QbcIOError(f"No se pudo leer lattice: {p}") from e

    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as e:
        raise QbcValidationError(
            "Lattice inválido (JSON malformado): {} (línea {}, columna {})".format(p, e.lineno, e.colno)
        ) from e

    lattice = Lattice.from_dict(data)
    log.debug("Lattice %s v%s cargado desde %s (%d anchors)", lattice.key, lattice.version, p, len(lattice.anchors))
    return lattice

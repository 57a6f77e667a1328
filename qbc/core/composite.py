# File: qbc/core/composite.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.2
# Status: stable
# Date: 2026-10-19
# Purpose: Glifo compuesto: texto largo partido en chunks, un glifo por celda de una grilla.
# Notes:
# - "".join(chunks) == normalize_text(text): el corte nunca agrega ni quita caracteres.
# - Solo layout "grid". Cada celda es un EncodedPath normal sobre el mismo lattice.
from __future__ import annotations

import hashlib
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from qbc.core.encoder import encode_text
from qbc.core.models import EncodedPath, Lattice
from qbc.core.normalizer import normalize_text
from qbc.core.package import generate_glyph_hash
from qbc.utils.errors import QbcValidationError

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 12
LAYOUT_GRID = "grid"


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Parte el texto normalizado en chunks de hasta `chunk_size` chars.

    Si el corte cae dentro de una palabra, se retrocede hasta el último espacio
    del chunk (el espacio queda al final del chunk). Palabras más largas que
    `chunk_size` se cortan duro.
    """
    if chunk_size < 1:
        raise QbcValidationError(f"chunk_size inválido: {chunk_size} (mínimo 1)")
    s = normalize_text(text)
    out: list[str] = []
    i = 0
    while i < len(s):
        end = min(i + chunk_size, len(s))
        if end < len(s) and s[end] != " ":
            cut = s.rfind(" ", i, end)
            if cut > i:
                end = cut + 1
        out.append(s[i:end])
        i = end
    return out


@dataclass
class CompositeCell:
    index: int
    row: int
    col: int
    text: str
    path: EncodedPath

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "row": self.row,
            "col": self.col,
            "text": self.text,
            "path": self.path.to_dict(),
        }


@dataclass
class CompositeGlyph:
    lattice_key: str
    lattice_version: int
    columns: int
    rows: int
    cells: list[CompositeCell] = field(default_factory=list)
    hash: str = ""
    layout: str = LAYOUT_GRID

    @property
    def text(self) -> str:
        return "".join(c.text for c in self.cells)

    def to_dict(self) -> dict[str, Any]:
        return {
            "layout": self.layout,
            "latticeKey": self.lattice_key,
            "latticeVersion": self.lattice_version,
            "columns": self.columns,
            "rows": self.rows,
            "hash": self.hash,
            "cells": [c.to_dict() for c in self.cells],
        }


def composite_hash(lattice_key: str, columns: int, cells: list[CompositeCell]) -> str:
    """sha256 de layout + hash de cada celda, en orden. Determinístico como el de un glifo."""
    parts = [LAYOUT_GRID, lattice_key, str(columns)]
    parts += [generate_glyph_hash(c.text, lattice_key, c.path) for c in cells]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()[:16]


def encode_composite(
    text: str,
    lattice: Lattice,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    columns: int | None = None,
) -> CompositeGlyph:
    """Codifica cada chunk por separado y lo ubica fila a fila en la grilla.

    `columns` por defecto: ceil(sqrt(n_chunks)), para una grilla casi cuadrada.
    """
    chunks = chunk_text(text, chunk_size)
    if columns is None:
        columns = max(1, math.ceil(math.sqrt(len(chunks))))
    elif columns < 1:
        raise QbcValidationError(f"columns inválido: {columns} (mínimo 1)")

    cells = []
    for i, chunk in enumerate(chunks):
        row, col = divmod(i, columns)
        cells.append(CompositeCell(i, row, col, chunk, encode_text(chunk, lattice.anchors, lattice.rules)))
    rows = math.ceil(len(cells) / columns) if cells else 0

    out = CompositeGlyph(
        lattice_key=lattice.key,
        lattice_version=lattice.version,
        columns=columns,
        rows=rows,
        cells=cells,
        hash=composite_hash(lattice.key, columns, cells),
    )
    log.debug("encode_composite: %d chunks -> grilla %dx%d", len(cells), columns, rows)
    return out

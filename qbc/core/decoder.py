# File: qbc/core/decoder.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.1
# Status: stable
# Date: 2026-09-14
# Purpose: Recuperar texto desde un Glyph Package o un SVG con paquete embebido.
# Notes:
# - Todas las funciones son puras y totales: input malformado => None, nunca excepción.
# - NO se reconstruye texto recorriendo la geometría visible ni desde raster.
from __future__ import annotations

import base64
import binascii
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from qbc.core.models import AnchorMap, EncodedPath, GlyphPackage
from qbc.core.version import EMBED_MARKER, PACKAGE_VERSION
from qbc.utils.errors import QbcSchemaError

log = logging.getLogger(__name__)

_VALID_TEXT_RE = re.compile(r"[A-Z ]*")
_EMBED_RE = re.compile(r"<!--\s*" + re.escape(EMBED_MARKER) + r":([A-Za-z0-9+/=\s]+?)\s*-->")


@dataclass(frozen=True)
class DecodeResult:
    text: str
    confidence: float
    path: EncodedPath
    lattice_key: str


def decode_package(pkg: GlyphPackage) -> DecodeResult:
    """Siempre resuelve con confianza 1.0: el texto viaja en el path, no se infiere."""
    return DecodeResult(
        text="".join(pkg.path.visited_chars),
        confidence=1.0,
        path=pkg.path,
        lattice_key=pkg.metadata.lattice_key,
    )


def parse_package(raw: str | bytes | dict[str, Any] | None) -> GlyphPackage | None:
    """Valida y parsea un paquete (JSON string/bytes o dict). Malformado => None."""
    if raw is None:
        return None
    data: Any = raw
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError, RecursionError):
            log.debug("parse_package: JSON malformado", exc_info=True)
            return None

    if not isinstance(data, dict):
        return None
    if data.get("version") != PACKAGE_VERSION:
        log.debug("parse_package: version no soportada: %r", data.get("version"))
        return None
    path = data.get("path")
    if "metadata" not in data or not isinstance(path, dict) or "visitedChars" not in path:
        return None

    try:
        return GlyphPackage.from_dict(data)
    except QbcSchemaError as e:
        log.debug("parse_package: esquema inválido: %s", e)
        return None


def decode_from_embedded_markup(markup: str | None) -> DecodeResult | None:
    """Busca <!--QBC-DATA:base64-->; si parsea, delega en decode_package."""
    if not markup:
        return None
    m = _EMBED_RE.search(markup)
    if not m:
        return None
    try:
        raw = base64.b64decode("".join(m.group(1).split()), validate=True)
    except (binascii.Error, ValueError):
        log.debug("decode_from_embedded_markup: base64 inválido")
        return None
    pkg = parse_package(raw)
    if pkg is None:
        return None
    return decode_package(pkg)


def decode_from_raster(image: Any, anchors: AnchorMap | None = None) -> None:
    """No soportado: requeriría reconocimiento de patrones, no replay geométrico."""
    log.debug("decode_from_raster: no soportado (se devuelve None)")
    return None


def closest_anchor(x: float, y: float, anchors: AnchorMap, threshold: float = 0.05) -> str | None:
    """Anchor más cercano a (x, y) dentro de `threshold`. Solo para tooling interactivo."""
    best: str | None = None
    best_d = math.inf
    for ch, (ax, ay) in anchors.items():
        d = math.hypot(float(ax) - x, float(ay) - y)
        if d < best_d:
            best, best_d = ch, d
    if best is None or best_d > threshold:
        return None
    return best


def is_valid_text(text: str) -> bool:
    return isinstance(text, str) and _VALID_TEXT_RE.fullmatch(text) is not None

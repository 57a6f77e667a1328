# File: qbc/core/package.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.1
# Status: stable
# Date: 2026-09-14
# Purpose: Armado, hash, serialización y embebido de Glyph Packages (formato 1.0).
# Notes:
# - El paquete es la unidad de serialización autoritativa (texto guardado, no inferido).
# - save/load lanzan errores tipados; el parse tolerante vive en qbc.core.decoder.
from __future__ import annotations

import base64
import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from qbc.core.models import EncodedPath, GlyphMetadata, GlyphPackage, GlyphStyle, Lattice, Orientation
from qbc.core.normalizer import normalize_text
from qbc.core.version import EMBED_MARKER
from qbc.utils.errors import QbcIOError, QbcValidationError


def generate_glyph_hash(text: str, lattice_key: str, path: EncodedPath) -> str:
    """Hash de contenido determinístico (sin reloj): sha256(texto|lattice|path)[:16]."""
    path_json = json.dumps(path.to_dict(), sort_keys=True, separators=(",", ":"))
    payload = "|".join((normalize_text(text), lattice_key, path_json))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def build_package(
    text: str,
    lattice: Lattice,
    path: EncodedPath,
    orientation: Orientation | None = None,
    style: GlyphStyle | None = None,
    *,
    svg: str | None = None,
    timestamp: str | None = None,
) -> GlyphPackage:
    """Arma el paquete para un path ya codificado contra `lattice`."""
    metadata = GlyphMetadata(
        text=normalize_text(text),
        lattice_key=lattice.key,
        lattice_version=lattice.version,
        orientation=orientation or Orientation(),
        style=style or lattice.style,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(timespec="seconds"),
        hash=generate_glyph_hash(text, lattice.key, path),
    )
    return GlyphPackage(metadata=metadata, path=path, svg=svg)


def package_to_json(pkg: GlyphPackage, indent: int | None = 2) -> str:
    return json.dumps(pkg.to_dict(), ensure_ascii=False, indent=indent)


def package_to_base64(pkg: GlyphPackage) -> str:
    """JSON compacto del paquete en base64. Sin el svg cacheado (evita anidar el markup)."""
    d = pkg.to_dict()
    d.pop("svg", None)
    raw = json.dumps(d, ensure_ascii=False, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def embed_comment(pkg: GlyphPackage) -> str:
    return f"<!--{EMBED_MARKER}:{package_to_base64(pkg)}-->"


def embed_package(svg: str, pkg: GlyphPackage) -> str:
    """Inserta el comentario QBC-DATA justo después del tag <svg ...> de apertura."""
    comment = embed_comment(pkg)
    start = svg.find("<svg")
    end = svg.find(">", start) if start >= 0 else -1
    if end < 0:
        raise QbcValidationError("Markup inválido: no se encontró el tag <svg>")
    return svg[: end + 1] + comment + svg[end + 1 :]


def path_summary(text: str, path: EncodedPath) -> dict[str, int]:
    """Resumen para respuestas/CLI: palabras, chars codificados y chars únicos."""
    return {
        "wordCount": len([w for w in (text or "").split() if w]),
        "charCount": len(path.visited_chars),
        "uniqueChars": len(set(path.visited_chars)),
    }


def save_package(pkg: GlyphPackage, path: str | Path) -> Path:
    """Guarda el paquete en JSON.

    - Fuerza extensión .json.
    - Escribe de forma atómica (tmp + replace) para evitar archivos corruptos.
    """
    p = Path(path)
    if p.suffix.lower() != ".json":
        p = p.with_suffix(".json")
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + ".tmp")
        tmp.write_text(package_to_json(pkg), encoding="utf-8")
        tmp.replace(p)
        return p
    except OSError as e:
        raise QbcIOError("No se pudo guardar paquete: {}".format(p)) from e


def load_package(path: str | Path) -> GlyphPackage:
    """Carga un paquete desde disco. A diferencia de parse_package, falla con error tipado."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise QbcIOError("No se pudo leer paquete: {}".format(p)) from e

    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as e:
        raise QbcValidationError(
            "Paquete inválido (JSON malformado): {} (línea {}, columna {})".format(p, e.lineno, e.colno)
        ) from e

    return GlyphPackage.from_dict(data)

# File: qbc/app.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.2
# Status: stable
# Date: 2026-09-21
# Purpose: Entry-point CLI (encode / decode / render / composite / inspect).
# Notes:
# - Exit codes: 0 ok, 1 no se pudo decodificar, 2 error tipado (QbcError).
# - qbc.svg.raster (PySide6) se importa de forma perezosa: solo si se pide PNG.
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from qbc.core.composite import DEFAULT_CHUNK_SIZE, encode_composite
from qbc.core.decoder import decode_from_embedded_markup, decode_package, parse_package
from qbc.core.encoder import encode_text
from qbc.core.lattices import get_builtin_lattice, load_lattice
from qbc.core.models import STYLE_PRESETS, GlyphPackage, Lattice, Orientation
from qbc.core.package import build_package, load_package, path_summary, save_package
from qbc.core.settings import VALID_THEMES, AppSettings
from qbc.core.version import APP_VERSION
from qbc.geom.svgelements_bbox import GLYPH_ELEMENT_ID, compute_document_bbox
from qbc.svg.renderer import render_composite_svg, render_svg
from qbc.utils.errors import QbcError, QbcIOError
from qbc.utils.log import get_logger, setup_logging

log = get_logger(__name__)


def _resolve_lattice(args: argparse.Namespace, settings: AppSettings) -> Lattice:
    lattice_file = getattr(args, "lattice_file", None) or settings.lattice_path
    if lattice_file:
        return load_lattice(lattice_file)
    return get_builtin_lattice(getattr(args, "lattice", None) or settings.default_lattice)


def _write_text(path: str | Path, text: str) -> Path:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p
    except OSError as e:
        raise QbcIOError(f"No se pudo escribir: {p}") from e


def _write_png(pkg: GlyphPackage, lattice: Lattice, out: str, settings: AppSettings) -> None:
    from qbc.svg.raster import render_png

    png = asyncio.run(
        render_png(
            pkg.path,
            lattice.anchors,
            pkg.metadata.style,
            pkg.metadata.orientation,
            settings.raster_size,
            svg_size=settings.render_size,
        )
    )
    p = Path(out)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(png)
    except OSError as e:
        raise QbcIOError(f"No se pudo escribir PNG: {p}") from e
    log.info("PNG exportado: %s (%dpx)", p, settings.raster_size)


def cmd_encode(args: argparse.Namespace, settings: AppSettings) -> int:
    lattice = _resolve_lattice(args, settings)
    orientation = Orientation(rotation=args.rotation, mirror=args.mirror, flip_vertical=args.flip_vertical)
    style = STYLE_PRESETS[args.theme or settings.theme]

    path = encode_text(args.text, lattice.anchors, lattice.rules)
    pkg = build_package(args.text, lattice, path, orientation, style)

    if args.svg:
        svg = render_svg(
            path,
            lattice.anchors,
            style,
            orientation,
            size=settings.render_size,
            package=pkg if args.embed else None,
        )
        out = _write_text(args.svg, svg)
        log.info("SVG exportado: %s", out)
    if args.png:
        _write_png(pkg, lattice, args.png, settings)
    if args.json:
        out = save_package(pkg, args.json)
        log.info("Paquete guardado: %s", out)

    summary = {"text": pkg.metadata.text, "latticeKey": lattice.key, "hash": pkg.metadata.hash}
    summary.update(path_summary(args.text, path))
    print(json.dumps(summary, ensure_ascii=False))
    return 0


def cmd_decode(args: argparse.Namespace, settings: AppSettings) -> int:
    p = Path(args.file)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise QbcIOError(f"No se pudo leer: {p}") from e

    if p.suffix.lower() == ".svg":
        result = decode_from_embedded_markup(raw)
    else:
        pkg = parse_package(raw)
        result = decode_package(pkg) if pkg is not None else None

    if result is None:
        log.warning("No se pudo decodificar %s (sin paquete QBC válido)", p)
        return 1
    print(result.text)
    return 0


def cmd_render(args: argparse.Namespace, settings: AppSettings) -> int:
    pkg = load_package(args.package)
    lattice = _resolve_lattice(args, settings)
    if (lattice.key, lattice.version) != (pkg.metadata.lattice_key, pkg.metadata.lattice_version):
        log.warning(
            "El paquete fue codificado con %s v%s; se renderiza con %s v%s",
            pkg.metadata.lattice_key,
            pkg.metadata.lattice_version,
            lattice.key,
            lattice.version,
        )
    if args.svg:
        svg = render_svg(
            pkg.path,
            lattice.anchors,
            pkg.metadata.style,
            pkg.metadata.orientation,
            size=settings.render_size,
            package=pkg if args.embed else None,
        )
        _write_text(args.svg, svg)
    if args.png:
        _write_png(pkg, lattice, args.png, settings)
    return 0


def cmd_composite(args: argparse.Namespace, settings: AppSettings) -> int:
    lattice = _resolve_lattice(args, settings)
    style = STYLE_PRESETS[args.theme or settings.theme]
    composite = encode_composite(args.text, lattice, chunk_size=args.chunk_size, columns=args.columns)

    if args.svg:
        svg = render_composite_svg(composite, lattice.anchors, style, cell_size=settings.render_size // 2)
        out = _write_text(args.svg, svg)
        log.info("SVG compuesto exportado: %s (%d celdas)", out, len(composite.cells))
    if args.json:
        out = _write_text(args.json, json.dumps(composite.to_dict(), ensure_ascii=False, indent=2))
        log.info("Composite guardado: %s", out)

    summary = {"text": composite.text, "latticeKey": lattice.key, "hash": composite.hash}
    summary.update({"chunks": len(composite.cells), "columns": composite.columns, "rows": composite.rows})
    print(json.dumps(summary, ensure_ascii=False))
    return 0


def cmd_inspect(args: argparse.Namespace, settings: AppSettings) -> int:
    info = compute_document_bbox(args.file, element_id=args.element)
    print(json.dumps(info))
    return 0 if info.get("bbox") is not None else 1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="qbc", description="QBC glyph codec (texto <-> path <-> SVG)")
    ap.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    ap.add_argument("--verbose", "-v", action="store_true", help="Logging en DEBUG")
    sub = ap.add_subparsers(dest="command", required=True)

    def lattice_opts(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--lattice", help="Key de lattice builtin (default: settings)")
        sp.add_argument("--lattice-file", help="JSON de lattice (gana sobre --lattice)")

    enc = sub.add_parser("encode", help="Codificar texto")
    enc.add_argument("text")
    lattice_opts(enc)
    enc.add_argument("--json", help="Guardar Glyph Package (.json)")
    enc.add_argument("--svg", help="Exportar SVG")
    enc.add_argument("--png", help="Exportar PNG")
    enc.add_argument("--embed", action="store_true", help="Embeber el paquete en el SVG")
    enc.add_argument("--rotation", type=float, default=0.0)
    enc.add_argument("--mirror", action="store_true")
    enc.add_argument("--flip-vertical", action="store_true")
    enc.add_argument("--theme", choices=VALID_THEMES)
    enc.set_defaults(func=cmd_encode)

    dec = sub.add_parser("decode", help="Decodificar paquete .json o SVG con QBC-DATA")
    dec.add_argument("file")
    dec.set_defaults(func=cmd_decode)

    ren = sub.add_parser("render", help="Renderizar un paquete guardado")
    ren.add_argument("package")
    lattice_opts(ren)
    ren.add_argument("--svg")
    ren.add_argument("--png")
    ren.add_argument("--embed", action="store_true")
    ren.set_defaults(func=cmd_render)

    comp = sub.add_parser("composite", help="Glifo compuesto (chunks en grilla)")
    comp.add_argument("text")
    lattice_opts(comp)
    comp.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    comp.add_argument("--columns", type=int)
    comp.add_argument("--svg", help="Exportar SVG")
    comp.add_argument("--json", help="Guardar composite (.json)")
    comp.add_argument("--theme", choices=VALID_THEMES)
    comp.set_defaults(func=cmd_composite)

    ins = sub.add_parser("inspect", help="BBox geométrico de un SVG (svgelements)")
    ins.add_argument("file")
    ins.add_argument("--element", default=GLYPH_ELEMENT_ID, help=f"id del elemento (default: {GLYPH_ELEMENT_ID})")
    ins.set_defaults(func=cmd_inspect)
    return ap


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = AppSettings.load()
    setup_logging(settings.log_dir, level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        return int(args.func(args, settings))
    except QbcError as e:
        log.error("%s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

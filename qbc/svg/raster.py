# File: qbc/svg/raster.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.2
# Status: stable
# Date: 2026-09-21
# Purpose: Export raster (SVG -> PNG) con QtSvg, asíncrono.
# Notes:
# - Dos pasos secuenciales: (1) cargar/validar markup, (2) dibujar + codificar PNG.
# - Qt corre en un único hilo worker: el event loop del caller nunca se bloquea.
# - Fallas tipadas: QbcRasterDecodeError (paso 1) / QbcRasterDrawError (paso 2).
# - Sin timeouts ni reintentos: si hace falta, el caller envuelve con asyncio.wait_for.
from __future__ import annotations

import asyncio
import logging
import sys
from concurrent.futures import ThreadPoolExecutor

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QRectF
from PySide6.QtGui import QColor, QGuiApplication, QImage, QPainter
from PySide6.QtSvg import QSvgRenderer

from qbc.core.models import AnchorMap, EncodedPath, GlyphStyle, Orientation
from qbc.svg.renderer import DEFAULT_SIZE, render_svg
from qbc.utils.errors import QbcRasterDecodeError, QbcRasterDrawError

log = logging.getLogger(__name__)

# Un solo worker: el QSvgRenderer se crea y se usa siempre en el mismo hilo.
_QT_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="qbc-raster")
_QT_APP: QGuiApplication | None = None


def _ensure_qt_app() -> None:
    """Crea una app Qt mínima si no existe (fuentes/plugins de imagen la necesitan)."""
    global _QT_APP
    if QGuiApplication.instance() is None:
        _QT_APP = QGuiApplication(sys.argv[:1] or ["qbc-raster"])


def _load_markup(markup: str) -> QSvgRenderer:
    renderer = QSvgRenderer(QByteArray(markup.encode("utf-8")))
    if not renderer.isValid():
        raise QbcRasterDecodeError("No se pudo decodificar el SVG de origen")
    return renderer


def _draw_png(renderer: QSvgRenderer, size_px: int) -> bytes:
    img = QImage(int(size_px), int(size_px), QImage.Format_ARGB32_Premultiplied)
    painter = QPainter()
    buf = QBuffer()
    try:
        if img.isNull():
            raise QbcRasterDrawError(f"No se pudo crear la superficie ({size_px}x{size_px})")
        img.fill(QColor(0, 0, 0, 0))

        if not painter.begin(img):
            raise QbcRasterDrawError("QPainter.begin falló sobre la superficie raster")
        painter.setRenderHint(QPainter.Antialiasing, True)
        renderer.render(painter, QRectF(0, 0, size_px, size_px))
        painter.end()

        if not buf.open(QIODevice.WriteOnly) or not img.save(buf, "PNG"):
            raise QbcRasterDrawError("No se pudo codificar el PNG")
        return bytes(buf.data().data())
    finally:
        # Liberar la superficie en todo camino de salida (incluida falla).
        if painter.isActive():
            painter.end()
        if buf.isOpen():
            buf.close()
        del img


async def rasterize_svg(markup: str, size_px: int = 1024) -> bytes:
    """SVG -> PNG bytes. Lanza QbcRasterDecodeError / QbcRasterDrawError."""
    _ensure_qt_app()
    loop = asyncio.get_running_loop()

    renderer = await loop.run_in_executor(_QT_EXECUTOR, _load_markup, markup)
    try:
        png = await loop.run_in_executor(_QT_EXECUTOR, _draw_png, renderer, size_px)
    finally:
        del renderer

    log.info("Raster generado: %dpx (%d bytes)", size_px, len(png))
    return png


async def render_png(
    path: EncodedPath,
    anchors: AnchorMap,
    style: GlyphStyle | None = None,
    orientation: Orientation | None = None,
    size_px: int = 1024,
    *,
    svg_size: int = DEFAULT_SIZE,
) -> bytes:
    """Atajo: render_svg + rasterize_svg."""
    markup = render_svg(path, anchors, style, orientation, size=svg_size)
    return await rasterize_svg(markup, size_px)

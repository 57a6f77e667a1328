# File: qbc/core/settings.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.1
# Status: stable
# Date: 2026-09-14
# Purpose: Preferencias del CLI/render (JSON repo-local + overrides por env vars).
# Notes: No depende de Qt. Valores inválidos caen al default, nunca lanzan.
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

log = logging.getLogger(__name__)


# ------------------------------
# Project settings (repo-local)
# ------------------------------
# Archivo esperado: qbc_settings.json en la raíz del repo/proyecto (o en un padre del CWD).
PROJECT_SETTINGS_FILENAME = "qbc_settings.json"

VALID_THEMES = ("notebook", "gallery")


def find_project_settings_path(start: Path | None = None) -> Path | None:
    """Busca qbc_settings.json subiendo desde start (o CWD)."""
    start = (start or Path.cwd()).resolve()
    for p in (start, *start.parents):
        candidate = p / PROJECT_SETTINGS_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_project_settings(start: Path | None = None, *, logger: logging.Logger | None = None) -> Dict[str, Any]:
    """Carga el JSON de project settings. Devuelve {} si no existe o es inválido."""
    _log = logger or log
    p = find_project_settings_path(start)
    if not p:
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}
    except (OSError, ValueError) as e:
        _log.warning("No se pudo leer %s: %s", p, e)
        return {}


def _deep_get(d: Dict[str, Any], path: str, default: Any = None) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


@dataclass
class AppSettings:
    """Preferencias de render/CLI."""

    # Tamaño (px) del viewBox cuadrado del SVG.
    render_size: int = 400
    # Tamaño (px) del PNG exportado.
    raster_size: int = 1024

    # Lattice por defecto: key de un lattice builtin o JSON externo (lattice_path gana).
    default_lattice: str = "G1"
    lattice_path: str | None = None

    # Preset de estilo: notebook | gallery
    theme: str = "notebook"

    log_dir: str = "logs"

    # [QBC-KEEP] Cargar settings: JSON repo-local y luego env vars (gana env).
    @classmethod
    def load(cls, start: Path | None = None, *, prefer_env: bool = True) -> "AppSettings":
        data = load_project_settings(start)
        out = cls()

        out.render_size = _coerce_int(_deep_get(data, "render.size_px", out.render_size), 64, 4096, out.render_size)
        out.raster_size = _coerce_int(_deep_get(data, "raster.size_px", out.raster_size), 16, 8192, out.raster_size)
        out.theme = _coerce_theme(_deep_get(data, "render.theme", out.theme))

        lattice = _deep_get(data, "lattice.key")
        if isinstance(lattice, str) and lattice.strip():
            out.default_lattice = lattice.strip()
        lattice_path = _deep_get(data, "lattice.path")
        if isinstance(lattice_path, str) and lattice_path.strip():
            out.lattice_path = lattice_path.strip()

        log_dir = _deep_get(data, "log.dir")
        if isinstance(log_dir, str) and log_dir.strip():
            out.log_dir = log_dir.strip()

        if prefer_env:
            out.apply_env()
        return out

    def apply_env(self) -> None:
        """Overrides manuales por variables de entorno (QBC_*)."""
        env = os.environ
        if env.get("QBC_RENDER_SIZE"):
            self.render_size = _coerce_int(env["QBC_RENDER_SIZE"], 64, 4096, self.render_size)
        if env.get("QBC_RASTER_SIZE"):
            self.raster_size = _coerce_int(env["QBC_RASTER_SIZE"], 16, 8192, self.raster_size)
        if env.get("QBC_THEME"):
            self.theme = _coerce_theme(env["QBC_THEME"])
        if env.get("QBC_LATTICE"):
            self.default_lattice = env["QBC_LATTICE"].strip()
        if env.get("QBC_LATTICE_PATH"):
            self.lattice_path = env["QBC_LATTICE_PATH"].strip()
        if env.get("QBC_LOG_DIR"):
            self.log_dir = env["QBC_LOG_DIR"].strip()


def _coerce_theme(v: Any) -> str:
    s = str(v or "").strip().lower()
    if s in VALID_THEMES:
        return s
    return "notebook"


def _coerce_int(v: Any, min_v: int, max_v: int, default: int) -> int:
    try:
        n = int(v)
    except (TypeError, ValueError):
        return int(default)
    return max(min_v, min(max_v, n))

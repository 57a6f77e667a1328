# File: qbc/core/models.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.2
# Status: stable
# Date: 2026-09-21
# Purpose: Modelos de datos del codec (lattice, reglas, estilo, orientación, path, paquete).
# Notes:
# - Serialización en camelCase (formato de paquete 1.0); atributos Python en snake_case.
# - from_dict lanza QbcSchemaError; los parsers públicos lo convierten en None.
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, ClassVar, Literal, Mapping, Optional, Union

from qbc.core.version import (
    ALPHABET,
    DEFAULT_ENABLE_TICK,
    DEFAULT_INSIDE_BOUNDARY_PREFERENCE,
    DEFAULT_NODE_SPACING,
    DEFAULT_TICK_LENGTH_FACTOR,
    PACKAGE_VERSION,
)
from qbc.utils.errors import QbcSchemaError

Point = tuple[float, float]
AnchorMap = Mapping[str, Point]
EventType = Literal["move", "line", "tick"]


# ----------------------------
# Generation rules
# ----------------------------

@dataclass(frozen=True)
class GenerationRules:
    enable_tick: bool = DEFAULT_ENABLE_TICK
    tick_length_factor: float = DEFAULT_TICK_LENGTH_FACTOR
    inside_boundary_preference: bool = DEFAULT_INSIDE_BOUNDARY_PREFERENCE
    node_spacing: float = DEFAULT_NODE_SPACING

    def to_dict(self) -> dict[str, Any]:
        return {
            "enableTick": bool(self.enable_tick),
            "tickLengthFactor": float(self.tick_length_factor),
            "insideBoundaryPreference": bool(self.inside_boundary_preference),
            "nodeSpacing": float(self.node_spacing),
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any] | None) -> "GenerationRules":
        return normalize_rules(d)


def normalize_rules(raw: Mapping[str, Any] | GenerationRules | None) -> GenerationRules:
    """Resuelve nombres legacy de reglas a la forma canónica.

    Precedencia fija (primer campo presente y no-None gana):
      enableTick > enableRestartNotch > True
      tickLengthFactor > notchLengthFactor > 0.08
      insideBoundaryPreference > insideSquarePreference > True
      nodeSpacing > 0.2
    """
    if isinstance(raw, GenerationRules):
        return raw
    if raw is None:
        return GenerationRules()
    if not isinstance(raw, Mapping):
        raise QbcSchemaError(f"rules inválido: se esperaba objeto, llegó {type(raw).__name__}")

    def pick(*names: str, default: Any) -> Any:
        for n in names:
            v = raw.get(n)
            if v is not None:
                return v
        return default

    return GenerationRules(
        enable_tick=_as_bool(
            pick("enableTick", "enableRestartNotch", default=DEFAULT_ENABLE_TICK), "rules.enableTick"
        ),
        tick_length_factor=_as_float(
            pick("tickLengthFactor", "notchLengthFactor", default=DEFAULT_TICK_LENGTH_FACTOR),
            "rules.tickLengthFactor",
        ),
        inside_boundary_preference=_as_bool(
            pick("insideBoundaryPreference", "insideSquarePreference", default=DEFAULT_INSIDE_BOUNDARY_PREFERENCE),
            "rules.insideBoundaryPreference",
        ),
        node_spacing=_as_float(pick("nodeSpacing", default=DEFAULT_NODE_SPACING), "rules.nodeSpacing"),
    )


# ----------------------------
# Style / orientation
# ----------------------------

@dataclass(frozen=True)
class GlyphStyle:
    stroke_width: float = 2.0
    stroke_color: str = "#000000"
    node_size: float = 6.0
    node_color: str = "#000000"
    node_fill_color: str = "#ffffff"
    start_node_fill_color: str = "#000000"
    show_nodes: bool = True
    show_grid: bool = False
    show_labels: bool = False
    background_color: str = "#ffffff"
    grid_color: str = "#e5e5e5"
    grid_lines: int = 5
    label_color: str = "#666666"
    end_cap_length: float = 10.0

    # (atributo, clave JSON)
    _FIELDS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("stroke_width", "strokeWidth"),
        ("stroke_color", "strokeColor"),
        ("node_size", "nodeSize"),
        ("node_color", "nodeColor"),
        ("node_fill_color", "nodeFillColor"),
        ("start_node_fill_color", "startNodeFillColor"),
        ("show_nodes", "showNodes"),
        ("show_grid", "showGrid"),
        ("show_labels", "showLabels"),
        ("background_color", "backgroundColor"),
        ("grid_color", "gridColor"),
        ("grid_lines", "gridLines"),
        ("label_color", "labelColor"),
        ("end_cap_length", "endCapLength"),
    )

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self._FIELDS}

    @staticmethod
    def from_dict(d: Mapping[str, Any] | None) -> "GlyphStyle":
        """Estilo desde JSON. Campos ausentes toman el default (estilos parciales de la DB)."""
        if d is None:
            return GlyphStyle()
        if not isinstance(d, Mapping):
            raise QbcSchemaError("style inválido: se esperaba objeto")
        base = GlyphStyle()
        kwargs: dict[str, Any] = {}
        for attr, key in GlyphStyle._FIELDS:
            if key not in d or d[key] is None:
                continue
            default = getattr(base, attr)
            v = d[key]
            if isinstance(default, bool):
                kwargs[attr] = _as_bool(v, f"style.{key}")
            elif isinstance(default, int):
                kwargs[attr] = _as_int(v, f"style.{key}")
            elif isinstance(default, float):
                kwargs[attr] = _as_float(v, f"style.{key}")
            else:
                kwargs[attr] = str(v)
        return GlyphStyle(**kwargs)


DEFAULT_STYLE = GlyphStyle()

STYLE_PRESETS: dict[str, GlyphStyle] = {
    "notebook": DEFAULT_STYLE,
    "gallery": replace(
        DEFAULT_STYLE,
        background_color="#0a0a0a",
        stroke_color="#d4a574",
        node_color="#d4a574",
        node_fill_color="#0a0a0a",
        start_node_fill_color="#d4a574",
        grid_color="#262626",
        label_color="#a3a3a3",
    ),
}


@dataclass(frozen=True)
class Orientation:
    # Nota: en el paquete se serializa como "rotation". Se acepta rotation_degrees/rotation_deg por compat.
    rotation: float = 0.0
    mirror: bool = False
    flip_vertical: bool = False
    # Profundidad (visor 3D). El path 2D las ignora, pero viajan en el paquete.
    yaw: Optional[float] = None
    pitch: Optional[float] = None
    roll: Optional[float] = None

    @property
    def is_identity(self) -> bool:
        return (self.rotation % 360.0) == 0.0 and not self.mirror and not self.flip_vertical

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "rotation": float(self.rotation),
            "mirror": bool(self.mirror),
            "flipVertical": bool(self.flip_vertical),
        }
        for k in ("yaw", "pitch", "roll"):
            v = getattr(self, k)
            if v is not None:
                d[k] = float(v)
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any] | None) -> "Orientation":
        if d is None:
            return Orientation()
        if not isinstance(d, Mapping):
            raise QbcSchemaError("orientation inválido: se esperaba objeto")
        rot = d.get("rotation", d.get("rotation_degrees", d.get("rotation_deg", 0.0)))
        depth = {
            k: (_as_float(d[k], f"orientation.{k}") if d.get(k) is not None else None)
            for k in ("yaw", "pitch", "roll")
        }
        return Orientation(
            rotation=_as_float(rot, "orientation.rotation"),
            mirror=_as_bool(d.get("mirror", False), "orientation.mirror"),
            flip_vertical=_as_bool(d.get("flipVertical", d.get("flip_vertical", False)), "orientation.flipVertical"),
            **depth,
        )


DEFAULT_ORIENTATION = Orientation()


# ----------------------------
# Path events (sum type cerrado)
# ----------------------------

@dataclass(frozen=True)
class MoveEvent:
    char: str
    x: float
    y: float
    type: ClassVar[EventType] = "move"


@dataclass(frozen=True)
class LineEvent:
    char: str
    x: float
    y: float
    type: ClassVar[EventType] = "line"


@dataclass(frozen=True)
class TickEvent:
    char: str
    x: float
    y: float
    tick_end_x: float
    tick_end_y: float
    type: ClassVar[EventType] = "tick"


PathEvent = Union[MoveEvent, LineEvent, TickEvent]


def event_to_dict(ev: PathEvent) -> dict[str, Any]:
    d: dict[str, Any] = {"type": ev.type, "char": ev.char, "x": float(ev.x), "y": float(ev.y)}
    if isinstance(ev, TickEvent):
        d["tickEndX"] = float(ev.tick_end_x)
        d["tickEndY"] = float(ev.tick_end_y)
    return d


def event_from_dict(d: Any, idx: int = 0) -> PathEvent:
    if not isinstance(d, Mapping):
        raise QbcSchemaError(f"events[{idx}] inválido: se esperaba objeto")
    char = d.get("char")
    if not isinstance(char, str) or len(char) != 1:
        raise QbcSchemaError(f"events[{idx}].char inválido: {char!r}")
    x = _as_float(d.get("x"), f"events[{idx}].x")
    y = _as_float(d.get("y"), f"events[{idx}].y")
    etype = d.get("type")
    if etype == "move":
        return MoveEvent(char, x, y)
    if etype == "line":
        return LineEvent(char, x, y)
    if etype == "tick":
        return TickEvent(
            char,
            x,
            y,
            _as_float(d.get("tickEndX"), f"events[{idx}].tickEndX"),
            _as_float(d.get("tickEndY"), f"events[{idx}].tickEndY"),
        )
    raise QbcSchemaError(f"events[{idx}].type inválido: {etype!r}")


@dataclass
class EncodedPath:
    events: list[PathEvent] = field(default_factory=list)
    visited_chars: list[str] = field(default_factory=list)
    visit_counts: dict[str, int] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return "".join(self.visited_chars)

    def to_dict(self) -> dict[str, Any]:
        return {
            "events": [event_to_dict(e) for e in self.events],
            "visitedChars": list(self.visited_chars),
            "visitCounts": {str(k): int(v) for k, v in self.visit_counts.items()},
        }

    @staticmethod
    def from_dict(d: Any) -> "EncodedPath":
        if not isinstance(d, Mapping):
            raise QbcSchemaError("path inválido: se esperaba objeto")

        visited = d.get("visitedChars")
        if not isinstance(visited, list) or not all(isinstance(c, str) for c in visited):
            raise QbcSchemaError("path.visitedChars inválido: se espera lista de strings")

        events_raw = d.get("events", [])
        if not isinstance(events_raw, list):
            raise QbcSchemaError("path.events inválido: se espera lista")
        events = [event_from_dict(e, i) for i, e in enumerate(events_raw)]
        for i, ev in enumerate(events):
            if (i == 0) != isinstance(ev, MoveEvent):
                raise QbcSchemaError("path.events inválido: un único 'move' y debe ser el primero")

        counts_raw = d.get("visitCounts", {})
        if not isinstance(counts_raw, Mapping):
            raise QbcSchemaError("path.visitCounts inválido: se espera objeto")
        counts = {str(k): _as_int(v, f"visitCounts[{k}]") for k, v in counts_raw.items()}

        return EncodedPath(events=events, visited_chars=list(visited), visit_counts=counts)


# ----------------------------
# Lattice
# ----------------------------

@dataclass(frozen=True)
class Lattice:
    """Template geométrico publicado: inmutable, una versión nueva es un valor nuevo."""

    key: str
    version: int
    anchors: AnchorMap
    rules: GenerationRules = field(default_factory=GenerationRules)
    style: GlyphStyle = field(default_factory=GlyphStyle)
    name: str = ""

    def __post_init__(self) -> None:
        anchors: dict[str, Point] = {}
        for ch, pt in dict(self.anchors).items():
            if not isinstance(ch, str) or len(ch) != 1 or ch not in ALPHABET:
                raise QbcSchemaError(f"Lattice {self.key!r}: anchor fuera del alfabeto: {ch!r}")
            if not (isinstance(pt, (list, tuple)) and len(pt) == 2):
                raise QbcSchemaError(f"Lattice {self.key!r}: anchor {ch!r} inválido: se espera [x,y]")
            x = _as_float(pt[0], f"anchors[{ch}].x")
            y = _as_float(pt[1], f"anchors[{ch}].y")
            if not (0.0 <= x <= 1.0 and 0.0 <= y <= 1.0):
                raise QbcSchemaError(f"Lattice {self.key!r}: anchor {ch!r} fuera de [0,1]: ({x}, {y})")
            anchors[ch] = (x, y)
        object.__setattr__(self, "anchors", MappingProxyType(anchors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "lattice_key": str(self.key),
            "version": int(self.version),
            "name": str(self.name),
            "anchors_json": {ch: [x, y] for ch, (x, y) in self.anchors.items()},
            "rules_json": self.rules.to_dict(),
            "style_json": self.style.to_dict(),
        }

    @staticmethod
    def from_dict(d: Any) -> "Lattice":
        """Lattice desde una fila de storage (anchors_json/...) o forma corta (anchors/...)."""
        if not isinstance(d, Mapping):
            raise QbcSchemaError("Lattice inválido: se esperaba objeto")
        key = str(d.get("lattice_key", d.get("key", "")) or "").strip()
        if not key:
            raise QbcSchemaError("Lattice inválido: falta 'lattice_key'")
        anchors = d.get("anchors_json", d.get("anchors"))
        if not isinstance(anchors, Mapping):
            raise QbcSchemaError(f"Lattice {key!r}: anchors inválido: se espera objeto")
        return Lattice(
            key=key,
            version=_as_int(d.get("version", 1), "lattice.version"),
            anchors=anchors,
            rules=normalize_rules(d.get("rules_json", d.get("rules"))),
            style=GlyphStyle.from_dict(d.get("style_json", d.get("style"))),
            name=str(d.get("name") or key),
        )


# ----------------------------
# Glyph package
# ----------------------------

@dataclass
class GlyphMetadata:
    text: str
    lattice_key: str
    lattice_version: int
    orientation: Orientation = field(default_factory=Orientation)
    style: GlyphStyle = field(default_factory=GlyphStyle)
    timestamp: str = ""
    hash: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": str(self.text),
            "latticeKey": str(self.lattice_key),
            "latticeVersion": int(self.lattice_version),
            "orientation": self.orientation.to_dict(),
            "style": self.style.to_dict(),
            "timestamp": str(self.timestamp),
            "hash": str(self.hash),
        }

    @staticmethod
    def from_dict(d: Any) -> "GlyphMetadata":
        if not isinstance(d, Mapping):
            raise QbcSchemaError("metadata inválido: se esperaba objeto")
        lattice_key = d.get("latticeKey")
        if not isinstance(lattice_key, str) or not lattice_key:
            raise QbcSchemaError("metadata.latticeKey inválido")
        return GlyphMetadata(
            text=str(d.get("text", "")),
            lattice_key=lattice_key,
            lattice_version=_as_int(d.get("latticeVersion", 1), "metadata.latticeVersion"),
            orientation=Orientation.from_dict(d.get("orientation")),
            style=GlyphStyle.from_dict(d.get("style")),
            timestamp=str(d.get("timestamp", "")),
            hash=str(d.get("hash", "")),
        )


@dataclass
class GlyphPackage:
    metadata: GlyphMetadata
    path: EncodedPath
    svg: Optional[str] = None
    version: str = PACKAGE_VERSION

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "version": str(self.version),
            "metadata": self.metadata.to_dict(),
            "path": self.path.to_dict(),
        }
        if self.svg is not None:
            d["svg"] = str(self.svg)
        return d

    @staticmethod
    def from_dict(d: Any) -> "GlyphPackage":
        if not isinstance(d, Mapping):
            raise QbcSchemaError("Paquete inválido: raíz no es objeto JSON")

        missing = [k for k in ("version", "metadata", "path") if k not in d]
        if missing:
            raise QbcSchemaError(f"Paquete inválido: faltan claves requeridas: {', '.join(missing)}")

        version = d.get("version")
        if version != PACKAGE_VERSION:
            raise QbcSchemaError(f"Paquete incompatible: version={version!r} (se espera {PACKAGE_VERSION!r})")

        svg = d.get("svg")
        if svg is not None and not isinstance(svg, str):
            raise QbcSchemaError("svg inválido: se espera string")

        return GlyphPackage(
            metadata=GlyphMetadata.from_dict(d.get("metadata")),
            path=EncodedPath.from_dict(d.get("path")),
            svg=svg,
            version=PACKAGE_VERSION,
        )


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise QbcSchemaError(f"Campo {field} inválido (float): {value!r}")
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise QbcSchemaError(f"Campo {field} inválido (float): {value!r}") from e
    if not math.isfinite(out):
        raise QbcSchemaError(f"Campo {field} inválido (float no finito): {value!r}")
    return out


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise QbcSchemaError(f"Campo {field} inválido (int): {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise QbcSchemaError(f"Campo {field} inválido (int): {value!r}") from e


_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off")


def _as_bool(value: Any, field: str) -> bool:
    # JSON de storage a veces trae flags como string ("false").
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _TRUE_STRINGS:
            return True
        if s in _FALSE_STRINGS:
            return False
    raise QbcSchemaError(f"Campo {field} inválido (bool): {value!r}")

# File: qbc/core/binary.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.0
# Status: stable
# Date: 2026-09-02
# Purpose: Formato binario compacto de un EncodedPath (transporte, no autoritativo).
# Notes:
# - Layout: [version:1][count:u16be] y por evento [type:1][char:1][x:u16][y:u16] (+[tx:u16][ty:u16] en tick).
# - Coordenadas cuantizadas a 1/65535; para texto exacto usar el Glyph Package.
from __future__ import annotations

import logging
import struct

from qbc.core.models import EncodedPath, LineEvent, MoveEvent, PathEvent, TickEvent

log = logging.getLogger(__name__)

BINARY_VERSION = 1

_HEADER = struct.Struct(">BH")
_EVENT = struct.Struct(">BBHH")
_TICK_END = struct.Struct(">HH")

_TYPE_CODES = {"move": 0, "line": 1, "tick": 2}
_QMAX = 65535


def _char_code(ch: str) -> int:
    return 0 if ch == " " else ord(ch) - 64


def _code_char(code: int) -> str | None:
    if code == 0:
        return " "
    if 1 <= code <= 26:
        return chr(code + 64)
    return None


def _q(v: float) -> int:
    return max(0, min(_QMAX, round(float(v) * _QMAX)))


def encode_path_binary(path: EncodedPath) -> bytes:
    if len(path.events) > 0xFFFF:
        raise ValueError(f"Demasiados eventos para el formato binario: {len(path.events)}")
    out = bytearray(_HEADER.pack(BINARY_VERSION, len(path.events)))
    for ev in path.events:
        out += _EVENT.pack(_TYPE_CODES[ev.type], _char_code(ev.char), _q(ev.x), _q(ev.y))
        if isinstance(ev, TickEvent):
            out += _TICK_END.pack(_q(ev.tick_end_x), _q(ev.tick_end_y))
    return bytes(out)


def decode_path_binary(data: bytes) -> EncodedPath | None:
    """Inverso de encode_path_binary. Buffer malformado => None."""
    try:
        version, count = _HEADER.unpack_from(data, 0)
    except struct.error:
        return None
    if version != BINARY_VERSION:
        log.debug("decode_path_binary: version no soportada: %s", version)
        return None

    offset = _HEADER.size
    events: list[PathEvent] = []
    visited: list[str] = []
    counts: dict[str, int] = {}
    try:
        for _ in range(count):
            code, char_code, qx, qy = _EVENT.unpack_from(data, offset)
            offset += _EVENT.size
            ch = _code_char(char_code)
            if ch is None:
                return None
            x, y = qx / _QMAX, qy / _QMAX
            if code == 0:
                events.append(MoveEvent(ch, x, y))
            elif code == 1:
                events.append(LineEvent(ch, x, y))
            elif code == 2:
                tx, ty = _TICK_END.unpack_from(data, offset)
                offset += _TICK_END.size
                events.append(TickEvent(ch, x, y, tx / _QMAX, ty / _QMAX))
                # El tick acompaña al line previo del mismo char: no es una visita nueva.
                continue
            else:
                return None
            visited.append(ch)
            counts[ch] = counts.get(ch, 0) + 1
    except struct.error:
        return None

    if offset != len(data):
        return None
    return EncodedPath(events=events, visited_chars=visited, visit_counts=counts)

# File: qbc/core/normalizer.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.0
# Status: stable
# Date: 2026-09-02
# Purpose: Normalización de texto al alfabeto soportado (A-Z + espacio).
from __future__ import annotations

import re

_UNSUPPORTED_RE = re.compile(r"[^A-Z ]")
_WS_RE = re.compile(r"\s+")


def normalize_text(text: str | None, replace_unsupported: bool = True) -> str:
    """Canonicaliza texto crudo.

    - Siempre pasa a mayúsculas.
    - replace_unsupported=True: lo no soportado pasa a espacio, se colapsan
      espacios y se recortan extremos.
    - replace_unsupported=False: lo no soportado se borra (sin insertar espacio).

    Nunca lanza; el resultado puede ser "".
    """
    s = (text or "").upper()
    if not replace_unsupported:
        return _UNSUPPORTED_RE.sub("", s)
    s = _UNSUPPORTED_RE.sub(" ", s)
    return _WS_RE.sub(" ", s).strip()

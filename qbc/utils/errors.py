# File: qbc/utils/errors.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.0
# Status: stable
# Date: 2026-09-02
# Purpose: Errores tipados del proyecto.
# Notes: Los parsers públicos convierten QbcSchemaError en None (no propagan).
from __future__ import annotations


class QbcError(Exception):
    """Error base del proyecto."""


class QbcValidationError(QbcError):
    """Error de validación (input/archivo/estructura)."""


class QbcIOError(QbcError):
    """Error de E/S (lectura/escritura)."""


class QbcSchemaError(QbcValidationError):
    """Error de esquema (paquete/lattice) o incompatibilidad de versión."""


class QbcRasterError(QbcError):
    """Falla del export raster (SVG -> PNG)."""


class QbcRasterDecodeError(QbcRasterError):
    """El markup SVG no se pudo cargar/decodificar."""


class QbcRasterDrawError(QbcRasterError):
    """El markup cargó, pero no se pudo dibujar/codificar el raster."""

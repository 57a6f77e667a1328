"""Geometry helpers.

This package is intentionally small and dependency-light: the external
lattice adapter is pure Python, and the markup bbox uses svgelements.
"""

from __future__ import annotations

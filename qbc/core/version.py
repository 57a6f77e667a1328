"""QBC - version constants.

Keep this module tiny and dependency-free. It is imported by many places
(core models, renderer, CLI) and must not have side effects.
"""

APP_NAME = "QuantumBitCode"
APP_SHORT = "QBC"

# App semantic version (must match pyproject).
APP_VERSION = "0.4.2"
# Glyph package format version. Packages with any other value are rejected.
# NOTE: string literal on purpose, it is compared as-is against the JSON field.
PACKAGE_VERSION = "1.0"

# Alfabeto soportado por el codec.
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ "

# Generation rules defaults (used when the lattice source omits a field).
DEFAULT_ENABLE_TICK = True
DEFAULT_TICK_LENGTH_FACTOR = 0.08
DEFAULT_INSIDE_BOUNDARY_PREFERENCE = True
DEFAULT_NODE_SPACING = 0.2

# Comentario embebido en SVG para round-trip de texto.
EMBED_MARKER = "QBC-DATA"

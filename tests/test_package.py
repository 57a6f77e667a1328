import base64
import json

import pytest

from qbc.core.encoder import encode_text
from qbc.core.lattices import G1, get_builtin_lattice, load_lattice
from qbc.core.models import Orientation, STYLE_PRESETS
from qbc.core.package import (
    build_package,
    embed_package,
    generate_glyph_hash,
    load_package,
    package_to_base64,
    path_summary,
    save_package,
)
from qbc.utils.errors import QbcIOError, QbcSchemaError, QbcValidationError


def test_glyph_hash_is_deterministic():
    path = encode_text("HELLO", G1.anchors, G1.rules)
    h1 = generate_glyph_hash("HELLO", "G1", path)
    h2 = generate_glyph_hash("hello", "G1", path)
    assert h1 == h2
    assert len(h1) == 16
    assert generate_glyph_hash("HELLO", "G2", path) != h1


def test_build_package_metadata():
    path = encode_text("Hello, World!", G1.anchors, G1.rules)
    pkg = build_package("Hello, World!", G1, path, Orientation(rotation=45), STYLE_PRESETS["gallery"])

    assert pkg.version == "1.0"
    assert pkg.metadata.text == "HELLO WORLD"
    assert pkg.metadata.lattice_key == "G1"
    assert pkg.metadata.lattice_version == 1
    assert pkg.metadata.orientation.rotation == 45.0
    assert pkg.metadata.style.background_color == "#0a0a0a"
    assert pkg.metadata.timestamp
    assert pkg.svg is None


def test_package_base64_omits_svg():
    path = encode_text("AB", G1.anchors)
    pkg = build_package("AB", G1, path, svg="<svg/>")
    d = json.loads(base64.b64decode(package_to_base64(pkg)))
    assert "svg" not in d
    assert d["path"]["visitedChars"] == ["A", "B"]


def test_embed_package_requires_svg_tag():
    pkg = build_package("AB", G1, encode_text("AB", G1.anchors))
    with pytest.raises(QbcValidationError):
        embed_package("<html></html>", pkg)


def test_path_summary():
    path = encode_text("hi there", G1.anchors)
    assert path_summary("hi there", path) == {"wordCount": 2, "charCount": 8, "uniqueChars": 6}


def test_save_and_load_package(tmp_path):
    path = encode_text("SAVE ME", G1.anchors, G1.rules)
    pkg = build_package("SAVE ME", G1, path)

    out = save_package(pkg, tmp_path / "glyphs" / "save_me.txt")
    assert out.suffix == ".json"
    assert out.exists()
    assert not list(out.parent.glob("*.tmp"))

    loaded = load_package(out)
    assert loaded.to_dict() == pkg.to_dict()


def test_load_package_errors(tmp_path):
    with pytest.raises(QbcIOError):
        load_package(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    with pytest.raises(QbcValidationError):
        load_package(bad)

    old = tmp_path / "old.json"
    old.write_text(json.dumps({"version": "0.9", "metadata": {}, "path": {}}), encoding="utf-8")
    with pytest.raises(QbcSchemaError):
        load_package(old)


def test_builtin_and_file_lattices(tmp_path):
    assert get_builtin_lattice("G1") is G1
    assert len(G1.anchors) == 27
    with pytest.raises(QbcValidationError):
        get_builtin_lattice("NOPE")

    p = tmp_path / "lat.json"
    p.write_text(json.dumps(G1.to_dict()), encoding="utf-8")
    assert load_lattice(p).anchors == G1.anchors

    with pytest.raises(QbcIOError):
        load_lattice(tmp_path / "none.json")

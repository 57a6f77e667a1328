import base64
import json

from qbc.core.decoder import (
    closest_anchor,
    decode_from_embedded_markup,
    decode_from_raster,
    decode_package,
    is_valid_text,
    parse_package,
)
from qbc.core.encoder import encode_text
from qbc.core.lattices import G1
from qbc.core.package import build_package, embed_package, package_to_json
from qbc.svg.renderer import render_svg


def _package(text="HELLO WORLD"):
    path = encode_text(text, G1.anchors, G1.rules)
    return build_package(text, G1, path, timestamp="2026-01-01T00:00:00+00:00")


def test_parse_package_rejects_wrong_version():
    assert parse_package('{"version":"2.0","metadata":{},"path":{"visitedChars":[]}}') is None


def test_parse_package_rejects_malformed_inputs():
    assert parse_package(None) is None
    assert parse_package("") is None
    assert parse_package("{not json") is None
    assert parse_package("[1, 2]") is None
    assert parse_package('{"version":"1.0","metadata":{"latticeKey":"G1"}}') is None
    assert parse_package('{"version":"1.0","metadata":{"latticeKey":"G1"},"path":{"events":[]}}') is None


def test_parse_package_rejects_bad_event_order():
    d = _package("AB").to_dict()
    d["path"]["events"].reverse()
    assert parse_package(d) is None


def test_json_round_trip_recovers_text():
    pkg = _package("QUANTUM BIT CODE")
    parsed = parse_package(package_to_json(pkg))
    assert parsed is not None

    result = decode_package(parsed)
    assert result.text == "QUANTUM BIT CODE"
    assert result.confidence == 1.0
    assert result.lattice_key == "G1"
    assert result.path.to_dict() == pkg.path.to_dict()


def test_parse_package_accepts_bytes_and_dict():
    pkg = _package()
    raw = package_to_json(pkg)
    assert parse_package(raw.encode("utf-8")) is not None
    assert parse_package(json.loads(raw)) is not None


def test_decode_from_markup_without_comment_is_none():
    pkg = _package()
    svg = render_svg(pkg.path, G1.anchors)
    assert decode_from_embedded_markup(svg) is None
    assert decode_from_embedded_markup("") is None
    assert decode_from_embedded_markup(None) is None


def test_decode_from_rendered_markup_with_embedded_package():
    pkg = _package("HELLO")
    svg = render_svg(pkg.path, G1.anchors, package=pkg)
    result = decode_from_embedded_markup(svg)
    assert result is not None
    assert result.text == "HELLO"


def test_decode_from_markup_with_inserted_comment():
    pkg = _package("ZZ TOP")
    svg = embed_package('<svg xmlns="http://www.w3.org/2000/svg"><rect/></svg>', pkg)
    assert "<!--QBC-DATA:" in svg
    assert decode_from_embedded_markup(svg).text == "ZZ TOP"


def test_decode_from_markup_with_bad_payload_is_none():
    assert decode_from_embedded_markup("<svg><!--QBC-DATA:@@@--></svg>") is None
    garbage = base64.b64encode(b'{"version":"9"}').decode("ascii")
    assert decode_from_embedded_markup(f"<svg><!--QBC-DATA:{garbage}--></svg>") is None


def test_decode_from_raster_is_unsupported():
    assert decode_from_raster(b"\x89PNG...", G1.anchors) is None


def test_closest_anchor():
    anchors = {"A": (0.1, 0.1), "B": (0.5, 0.5)}
    assert closest_anchor(0.11, 0.1, anchors) == "A"
    assert closest_anchor(0.3, 0.3, anchors) is None
    assert closest_anchor(0.3, 0.3, anchors, threshold=0.3) == "A"
    assert closest_anchor(0.5, 0.5, {}) is None


def test_is_valid_text():
    assert is_valid_text("HELLO WORLD")
    assert is_valid_text("")
    assert not is_valid_text("hello")
    assert not is_valid_text("HELLO\n")
    assert not is_valid_text("A1")


def test_parse_package_overflowing_numbers_are_none():
    raw = package_to_json(_package("AB"), indent=None)
    assert '"latticeVersion": 1' in raw

    assert parse_package(raw.replace('"latticeVersion": 1', '"latticeVersion": Infinity')) is None
    assert parse_package(raw.replace('"rotation": 0.0', '"rotation": 1' + "0" * 400)) is None

    d = json.loads(raw)
    d["path"]["visitCounts"]["A"] = float("inf")
    assert parse_package(d) is None


def test_parse_package_deeply_nested_json_is_none():
    assert parse_package("[" * 200000 + "]" * 200000) is None


def test_decode_embedded_markup_with_overflowing_payload_is_none():
    raw = package_to_json(_package("AB"), indent=None).replace('"latticeVersion": 1', '"latticeVersion": Infinity')
    b64 = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    assert decode_from_embedded_markup(f"<svg><!--QBC-DATA:{b64}--></svg>") is None

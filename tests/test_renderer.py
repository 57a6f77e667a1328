import math
import xml.etree.ElementTree as ET

import pytest

from qbc.core.encoder import encode_text
from qbc.core.lattices import G1
from qbc.core.models import GlyphStyle, Orientation
from qbc.core.package import build_package
from qbc.svg.renderer import build_path_data, render_svg, to_viewport, transform_point

NS = "{http://www.w3.org/2000/svg}"


def _svg(text="HELLO", **kw):
    path = encode_text(text, G1.anchors, G1.rules)
    return path, render_svg(path, G1.anchors, **kw)


def test_transform_identity_and_flags():
    assert transform_point((0.2, 0.3), None) == (0.2, 0.3)
    assert transform_point((0.2, 0.3), Orientation()) == (0.2, 0.3)
    assert transform_point((0.2, 0.3), Orientation(mirror=True)) == pytest.approx((0.8, 0.3))
    assert transform_point((0.2, 0.3), Orientation(flip_vertical=True)) == pytest.approx((0.2, 0.7))
    x, y = transform_point((1.0, 0.5), Orientation(rotation=90))
    assert (x, y) == pytest.approx((0.5, 1.0))


def test_rotation_keeps_distance_to_center():
    p = transform_point((0.9, 0.1), Orientation(rotation=33))
    assert math.hypot(p[0] - 0.5, p[1] - 0.5) == pytest.approx(math.hypot(0.4, 0.4))


def test_identity_orientation_renders_same_markup():
    path = encode_text("IDENTITY", G1.anchors, G1.rules)
    plain = render_svg(path, G1.anchors)
    assert render_svg(path, G1.anchors, orientation=Orientation(rotation=360)) == plain
    assert render_svg(path, G1.anchors, orientation=Orientation(mirror=True)) != plain


def test_orientation_never_mutates_path():
    path = encode_text("ABC", G1.anchors, G1.rules)
    before = path.to_dict()
    render_svg(path, G1.anchors, orientation=Orientation(rotation=90, mirror=True, flip_vertical=True))
    assert path.to_dict() == before


def test_to_viewport_inverts_y_and_pads():
    assert to_viewport((0.0, 0.0), 400) == (40.0, 360.0)
    assert to_viewport((1.0, 1.0), 400) == (360.0, 40.0)


def test_path_data_and_end_cap():
    d = build_path_data(encode_text("AB", {"A": (0.0, 0.5), "B": (1.0, 0.5)}), size=400, end_cap_length=10)
    assert d == "M 40 200 L 360 200 M 360 205 L 360 195"


def test_end_cap_skipped_for_single_point():
    d = build_path_data(encode_text("A", {"A": (0.5, 0.5)}), size=400, end_cap_length=10)
    assert d == "M 200 200"


def test_render_svg_structure():
    path, svg = _svg("HELLO")
    root = ET.fromstring(svg)
    assert root.tag == f"{NS}svg"
    assert root.get("viewBox") == "0 0 400 400"

    glyph = root.find(f"{NS}path[@id='QBC_GLYPH']")
    assert glyph is not None
    assert glyph.get("d").startswith("M ")
    assert glyph.get("fill") == "none"

    circles = root.findall(f"{NS}g[@id='QBC_NODES']/{NS}circle")
    assert len(circles) == len(G1.anchors)
    fills = [c.get("fill") for c in circles]
    assert fills.count("#000000") == 1

    assert root.find(f"{NS}g[@id='QBC_GRID']") is None
    assert root.find(f"{NS}g[@id='QBC_LABELS']") is None


def test_render_svg_grid_and_labels():
    style = GlyphStyle(show_grid=True, show_labels=True, show_nodes=False, grid_lines=3)
    _, svg = _svg("A B", style=style, size=200)
    root = ET.fromstring(svg)
    assert len(root.findall(f"{NS}g[@id='QBC_GRID']/{NS}line")) == 6
    labels = [t.text for t in root.findall(f"{NS}g[@id='QBC_LABELS']/{NS}text")]
    assert "␣" in labels
    assert "A" in labels
    assert root.find(f"{NS}g[@id='QBC_NODES']") is None


def test_render_empty_path_has_no_glyph():
    _, svg = _svg("")
    root = ET.fromstring(svg)
    assert root.find(f"{NS}path[@id='QBC_GLYPH']") is None


def test_render_embeds_package_comment():
    path = encode_text("EMBED", G1.anchors, G1.rules)
    pkg = build_package("EMBED", G1, path)
    svg = render_svg(path, G1.anchors, package=pkg)
    assert svg.index("<!--QBC-DATA:") < svg.index("<rect")


def test_identity_orientation_matches_linear_padding_map():
    size = 400
    pad = size * 0.1
    inner = size - 2 * pad

    def expected(x, y):
        return (pad + x * inner, pad + (1 - y) * inner)

    path = encode_text("ABCDEFGHIJKLMNOPQRSTUVWXYZ", G1.anchors, G1.rules)
    root = ET.fromstring(render_svg(path, G1.anchors, orientation=Orientation(), size=size))

    circles = root.findall(f"{NS}g[@id='QBC_NODES']/{NS}circle")
    assert len(circles) == len(G1.anchors)
    for circle, (x, y) in zip(circles, G1.anchors.values()):
        ex, ey = expected(x, y)
        assert float(circle.get("cx")) == pytest.approx(ex, abs=1e-3)
        assert float(circle.get("cy")) == pytest.approx(ey, abs=1e-3)

    tokens = build_path_data(path, Orientation(), size=size).split()
    coords = [(float(tokens[i + 1]), float(tokens[i + 2])) for i in range(0, len(tokens), 3)]
    assert len(coords) == len(path.events)
    for (vx, vy), ev in zip(coords, path.events):
        ex, ey = expected(ev.x, ev.y)
        assert vx == pytest.approx(ex, abs=1e-3)
        assert vy == pytest.approx(ey, abs=1e-3)

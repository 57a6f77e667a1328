import pytest

from qbc.core.encoder import encode_text
from qbc.core.lattices import G1
from qbc.geom.svgelements_bbox import bbox_inside, compute_document_bbox, compute_markup_bbox
from qbc.svg.renderer import render_svg


def test_glyph_bbox_matches_path_and_end_cap():
    anchors = {"A": (0.0, 0.5), "B": (1.0, 0.5)}
    svg = render_svg(encode_text("AB", anchors), anchors)

    info = compute_markup_bbox(svg, element_id="QBC_GLYPH")
    assert info["bbox"] == pytest.approx((40.0, 195.0, 360.0, 205.0))
    assert info["viewbox"] == [0.0, 0.0, 400.0, 400.0]
    assert info["inside"] is True


def test_glyph_stays_inside_viewport():
    svg = render_svg(encode_text("PACK MY BOX WITH FIVE DOZEN JUGS", G1.anchors, G1.rules), G1.anchors, size=300)
    info = compute_markup_bbox(svg)
    x0, y0, x1, y1 = info["bbox"]
    assert 0 <= x0 <= x1 <= 300
    assert 0 <= y0 <= y1 <= 300


def test_bbox_errors():
    svg = render_svg(encode_text("A", G1.anchors), G1.anchors)
    assert compute_markup_bbox(svg, element_id="NOPE")["bbox"] is None
    assert "error" in compute_document_bbox("/nonexistent/qbc.svg")


def test_bbox_inside():
    assert bbox_inside((0, 0, 10, 10), (0, 0, 10, 10))
    assert not bbox_inside((-1, 0, 10, 10), (0, 0, 10, 10))


def test_whole_document_bbox():
    svg = render_svg(encode_text("AB", G1.anchors), G1.anchors)
    info = compute_markup_bbox(svg, element_id=None)
    assert info["bbox"] is not None

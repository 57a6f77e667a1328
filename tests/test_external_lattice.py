import pytest

from qbc.core.encoder import encode_text
from qbc.core.models import LineEvent, MoveEvent
from qbc.geom.external_lattice import (
    build_anchors,
    build_path,
    is_valid_lattice,
    lattice_from_external,
    normalize_vertices,
)
from qbc.utils.errors import QbcSchemaError

VERTEX_CONFIG = {
    "vertices": [
        {"id": 0, "x": 0, "y": 0},
        {"id": 1, "x": 100, "y": 0},
        {"id": 2, "x": 100, "y": 50},
        {"id": 3, "x": 0, "y": 50},
    ]
}
CHARACTER_MAP = {"A": [0, 1], "B": [1, 2], "C": [3, 0], "D": ["2", "3"]}


def test_is_valid_lattice():
    assert not is_valid_lattice({"vertex_config": {"vertices": []}, "character_map": {"A": [0, 1]}})
    assert not is_valid_lattice({"vertex_config": VERTEX_CONFIG, "character_map": {}})
    assert not is_valid_lattice(None)
    assert is_valid_lattice({"vertex_config": VERTEX_CONFIG, "character_map": CHARACTER_MAP})


def test_normalize_vertices_into_padded_box():
    pos = normalize_vertices(VERTEX_CONFIG["vertices"])
    assert pos[0] == pytest.approx((0.1, 0.1))
    assert pos[2] == pytest.approx((0.9, 0.9))


def test_normalize_vertices_degenerate_box():
    pos = normalize_vertices([{"id": "a", "x": 5, "y": 5}, {"id": "b", "x": 5, "y": 5}])
    assert pos["a"] == pytest.approx((0.1, 0.1))
    assert normalize_vertices([{"id": 1, "x": "nan?"}]) == {}


def test_build_anchors_uses_destination_vertex():
    anchors = build_anchors(VERTEX_CONFIG, CHARACTER_MAP)
    assert anchors["A"] == pytest.approx((0.9, 0.1))
    assert anchors["C"] == pytest.approx((0.1, 0.1))
    # ids como string también resuelven
    assert anchors["D"] == pytest.approx((0.1, 0.9))


def test_build_path_connects_edges():
    path = build_path("AB", VERTEX_CONFIG, CHARACTER_MAP)
    assert isinstance(path.events[0], MoveEvent)
    # B arranca donde terminó A: sin conector
    assert [e.type for e in path.events] == ["move", "line", "line"]

    path = build_path("AC", VERTEX_CONFIG, CHARACTER_MAP)
    assert [e.type for e in path.events] == ["move", "line", "line", "line"]
    assert path.events[2] == LineEvent("C", pytest.approx(0.1), pytest.approx(0.9))


def test_build_path_keeps_unmapped_chars_in_visited():
    path = build_path("A Z!", VERTEX_CONFIG, CHARACTER_MAP)
    assert path.visited_chars == ["A", "Z"]
    assert path.visit_counts == {"A": 1, "Z": 1}
    assert len(path.events) == 2

    primary = encode_text("A Z", build_anchors(VERTEX_CONFIG, CHARACTER_MAP))
    assert primary.visited_chars == ["A"]


def test_lattice_from_external():
    lat = lattice_from_external({"vertex_config": VERTEX_CONFIG, "character_map": CHARACTER_MAP}, "EXT")
    assert lat.key == "EXT"
    assert set(lat.anchors) == {"A", "B", "C", "D"}
    path = encode_text("ABBA", lat.anchors, lat.rules)
    assert path.visited_chars == list("ABBA")

    with pytest.raises(QbcSchemaError):
        lattice_from_external({"vertex_config": {"vertices": []}, "character_map": {"A": [0, 1]}}, "BAD")
    with pytest.raises(QbcSchemaError):
        lattice_from_external({"vertex_config": VERTEX_CONFIG, "character_map": {"1": [0, 1]}}, "DIGITS")

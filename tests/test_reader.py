"""Tests for the hgrid reader (section state machine and error taxonomy)."""

import io
import logging

import numpy as np
import pytest

from xhgrid import (
    BoundaryNodeCountMismatch,
    DanglingNodeReference,
    DuplicateElementId,
    DuplicateNodeId,
    ElementCountMismatch,
    HgridConfig,
    HgridParseError,
    InvalidElementArity,
    LandBoundaryNodeCountMismatch,
    MalformedLine,
    Mesh,
    NodeCountMismatch,
    read_hgrid,
    read_hgrid_text,
)

TRIANGLE_NODES = [(1, 0.0, 0.0, 1.0), (2, 1.0, 0.0, 2.0), (3, 0.0, 1.0, 3.0)]


def test_read_sample_text(hgrid_text):
    mesh = read_hgrid_text(hgrid_text)
    assert mesh.description == "test mesh"
    assert mesh.node_count() == 6
    assert mesh.element_count() == 3
    assert mesh.open_boundary_count() == 1
    assert mesh.land_boundary_count() == 2
    assert mesh.open_boundaries[0].node_ids == (3, 6)
    assert mesh.land_boundaries[0].node_ids == (6, 5, 4)
    assert mesh.land_boundaries[1].type_code == 1
    assert mesh.land_boundaries[1].is_island


def test_read_from_path(hgrid_file):
    mesh = read_hgrid(hgrid_file)
    assert mesh.node_count() == 6
    assert Mesh.from_file(str(hgrid_file)) == mesh


def test_read_from_binary_stream_leaves_it_open(hgrid_text):
    raw = io.BytesIO(hgrid_text.encode("utf-8"))
    mesh = read_hgrid(raw)
    assert mesh.element_count() == 3
    assert not raw.closed


def test_missing_file_raises_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_hgrid(tmp_path / "nope.gr3")


def test_depths_follow_file_order(mesh):
    assert np.array_equal(mesh.depths(), [5.0, 6.0, 7.0, 4.0, 3.5, -1.25])
    assert len(mesh.depths()) == mesh.declared_counts[1]


def test_no_boundary_sections(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])])
    mesh = read_hgrid_text(text)
    assert mesh.open_boundary_count() == 0
    assert mesh.land_boundary_count() == 0


def test_open_boundaries_only(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])], open_boundaries=[[1, 2]])
    mesh = read_hgrid_text(text)
    assert mesh.open_boundary_count() == 1
    assert mesh.land_boundary_count() == 0


def test_tolerates_blank_lines_spacing_and_trailing_fields():
    text = (
        "  spaced   description  \n"
        "\n"
        "1   3   ! NE NP\n"
        "1\t0.0  0.0   1.0  extra\n"
        "\n"
        "2 1.0 0.0 2.0\n"
        "3 0.0 1.0 3.0 ! comment\n"
        "1 3 1 2 3 trailing\n"
    )
    mesh = read_hgrid_text(text)
    assert mesh.description == "  spaced   description  "
    assert mesh.element_nodes(1) == (1, 2, 3)


def test_fortran_exponent_is_accepted():
    text = "d\n0 1\n1 1.5D+02 -2.0d-1 1.0E+00\n"
    mesh = read_hgrid_text(text)
    assert mesh.node(1).x == 150.0
    assert mesh.node(1).y == -0.2


def test_quad_and_triangle_mix(mesh):
    assert mesh.element_nodes(3) == (2, 3, 6, 5)
    assert mesh.element_nodes(1) == (1, 2, 5)


def test_zero_nodes_and_elements():
    mesh = read_hgrid_text("empty\n0 0\n")
    assert mesh.node_count() == 0
    assert mesh.element_count() == 0


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_node_count_mismatch_before_elements():
    text = "m\n1 3\n1 0.0 0.0 1.0\n2 1.0 0.0 1.0\n1 3 1 2 3\n"
    with pytest.raises(NodeCountMismatch) as err:
        read_hgrid_text(text)
    assert err.value.line == 5
    assert err.value.section == "nodes"


def test_node_count_mismatch_at_end_of_input():
    with pytest.raises(NodeCountMismatch):
        read_hgrid_text("m\n0 3\n1 0.0 0.0 1.0\n")


def test_dangling_element_reference(build_hgrid):
    nodes = [(i, float(i), 0.0, 1.0) for i in range(1, 101)]
    text = build_hgrid(nodes, [(1, [1, 2, 9999])])
    with pytest.raises(DanglingNodeReference, match="9999"):
        read_hgrid_text(text)


def test_duplicate_element_id_regardless_of_nodes(build_hgrid):
    nodes = TRIANGLE_NODES + [(4, 1.0, 1.0, 1.0)]
    text = build_hgrid(nodes, [(7, [1, 2, 3]), (7, [2, 4, 3])])
    with pytest.raises(DuplicateElementId):
        read_hgrid_text(text)


def test_duplicate_node_id(build_hgrid):
    nodes = [(1, 0.0, 0.0, 1.0), (1, 1.0, 0.0, 1.0)]
    with pytest.raises(DuplicateNodeId):
        read_hgrid_text(build_hgrid(nodes))


def test_invalid_element_arity(build_hgrid):
    nodes = [(i, float(i), 0.0, 1.0) for i in range(1, 6)]
    text = build_hgrid(nodes, [(1, [1, 2, 3, 4, 5])])
    with pytest.raises(InvalidElementArity):
        read_hgrid_text(text)


def test_element_count_mismatch(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])], ne=2)
    with pytest.raises(ElementCountMismatch):
        read_hgrid_text(text)


def test_element_line_missing_node_ids():
    text = "m\n1 3\n1 0.0 0.0 1.0\n2 1.0 0.0 1.0\n3 0.0 1.0 1.0\n1 3 1 2\n"
    with pytest.raises(MalformedLine) as err:
        read_hgrid_text(text)
    assert err.value.line == 6


def test_short_node_line_is_malformed():
    with pytest.raises(MalformedLine) as err:
        read_hgrid_text("m\n0 1\n1 0.0 0.0\n")
    assert err.value.line == 3
    assert "3:" in str(err.value) or ":3" in str(err.value)


def test_non_numeric_coordinate_is_malformed():
    with pytest.raises(MalformedLine, match="x coordinate"):
        read_hgrid_text("m\n0 1\n1 abc 0.0 1.0\n")


def test_non_positive_node_id_is_malformed():
    with pytest.raises(MalformedLine, match="positive"):
        read_hgrid_text("m\n0 1\n0 0.0 0.0 1.0\n")


def test_short_header_is_malformed():
    with pytest.raises(MalformedLine) as err:
        read_hgrid_text("m\n3\n")
    assert err.value.section == "header"


def test_empty_file_is_malformed():
    with pytest.raises(MalformedLine, match="empty"):
        read_hgrid_text("")


def test_open_boundary_total_mismatch(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])])
    text += "1\n3\n2\n1\n2\n"
    with pytest.raises(BoundaryNodeCountMismatch):
        read_hgrid_text(text)


def test_open_boundary_truncated(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])])
    text += "1 3\n3\n1\n2\n"
    with pytest.raises(BoundaryNodeCountMismatch):
        read_hgrid_text(text)


def test_open_boundary_dangling(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])], open_boundaries=[[1, 42]])
    with pytest.raises(DanglingNodeReference) as err:
        read_hgrid_text(text)
    assert err.value.section == "open_boundaries"


def test_land_boundary_total_mismatch(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])], open_boundaries=[])
    text += "1 5\n2 0\n1\n2\n"
    with pytest.raises(LandBoundaryNodeCountMismatch):
        read_hgrid_text(text)


def test_land_boundary_dangling(build_hgrid):
    text = build_hgrid(
        TRIANGLE_NODES,
        [(1, [1, 2, 3])],
        open_boundaries=[],
        land_boundaries=[([3, 77], 0)],
    )
    with pytest.raises(DanglingNodeReference):
        read_hgrid_text(text)


def test_land_boundary_missing_type_code(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])], open_boundaries=[])
    text += "1 2\n2\n1\n2\n"
    with pytest.raises(MalformedLine):
        read_hgrid_text(text)


def test_partial_open_section_header_fails(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])]) + "1\n"
    with pytest.raises(MalformedLine):
        read_hgrid_text(text)


def test_parse_errors_are_value_errors():
    with pytest.raises(ValueError):
        read_hgrid_text("m\nx y\n")
    assert issubclass(NodeCountMismatch, HgridParseError)


def test_error_reports_file_path(tmp_path):
    path = tmp_path / "bad.gr3"
    path.write_text("m\n0 1\n1 0.0\n")
    with pytest.raises(MalformedLine) as err:
        read_hgrid(path, config=HgridConfig(detect_crs=False))
    assert str(path) in str(err.value)
    assert err.value.source == str(path)


# ---------------------------------------------------------------------------
# Node / element boundary detection
# ---------------------------------------------------------------------------


def test_commented_element_line_ends_node_section():
    text = "m\n1 3\n1 0.0 0.0 1.0\n2 1.0 0.0 1.0\n1 3 1 2 3 ! tri\n"
    with pytest.raises(NodeCountMismatch) as err:
        read_hgrid_text(text)
    assert err.value.line == 5
    assert err.value.section == "nodes"


def test_commented_element_lines_parse():
    text = (
        "m\n1 3\n1 0.0 0.0 1.0\n2 1.0 0.0 1.0\n3 0.0 1.0 1.0\n"
        "1 3 1 2 3 ! tri\n"
    )
    assert read_hgrid_text(text).element_nodes(1) == (1, 2, 3)


def test_all_integer_node_lines_are_nodes():
    mesh = read_hgrid_text("m\n0 2\n1 3 0 0 0\n2 4 1 2 3 4\n")
    assert mesh.node_count() == 2
    assert mesh.node(1) == (1, 3.0, 0.0, 0.0)
    assert mesh.node(2) == (2, 4.0, 1.0, 2.0)


def test_numeric_tail_keeps_duplicate_as_node():
    text = "m\n0 2\n1 0.0 0.0 1.0\n1 3 1 2 3 4.5\n"
    with pytest.raises(DuplicateNodeId):
        read_hgrid_text(text)


def test_non_ascii_digit_id_is_malformed():
    with pytest.raises(MalformedLine) as err:
        read_hgrid_text("m\n0 1\n² 0.0 0.0 1.0\n")
    assert err.value.line == 3
    assert err.value.section == "nodes"


def test_id_beyond_int64_is_malformed():
    with pytest.raises(MalformedLine, match="64-bit"):
        read_hgrid_text("m\n0 1\n99999999999999999999 0.0 0.0 1.0\n")


def test_element_node_id_beyond_int64_is_malformed(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, ne=1) + "1 3 1 2 99999999999999999999\n"
    with pytest.raises(MalformedLine) as err:
        read_hgrid_text(text)
    assert err.value.section == "elements"


# ---------------------------------------------------------------------------
# Tolerated oddities
# ---------------------------------------------------------------------------


def test_single_node_segment_warns(build_hgrid, caplog):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])], [[2]])
    with caplog.at_level(logging.WARNING, logger="xhgrid.grid.reader"):
        mesh = read_hgrid_text(text)
    assert mesh.open_boundaries[0].node_ids == (2,)
    assert "single node" in caplog.text


def test_zero_node_segment_is_malformed(build_hgrid):
    text = build_hgrid(TRIANGLE_NODES, [(1, [1, 2, 3])]) + "1 0\n0\n"
    with pytest.raises(MalformedLine, match="zero nodes") as err:
        read_hgrid_text(text)
    assert err.value.section == "open_boundaries"


def test_trailing_content_warns(hgrid_text, mesh, caplog):
    with caplog.at_level(logging.WARNING, logger="xhgrid.grid.reader"):
        again = read_hgrid_text(hgrid_text + "stray 1 2\n")
    assert again == mesh
    assert "trailing content" in caplog.text

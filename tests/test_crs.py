"""Tests for CRS detection in the description line."""

import logging

import pytest

from xhgrid import HgridConfig, read_hgrid_text
from xhgrid.grid.crs_utils import crs_from_description

BODY = "0 1\n1 139.5 35.0 10.0\n"


def test_epsg_suffix_is_detected():
    mesh = read_hgrid_text("my mesh EPSG:4326\n" + BODY)
    assert mesh.crs is not None
    assert mesh.crs.to_epsg() == 4326
    assert mesh.is_geographic
    assert mesh.description == "my mesh EPSG:4326"


def test_projected_crs():
    crs = crs_from_description("utm grid EPSG:32618")
    assert crs is not None
    assert not crs.is_geographic


def test_proj_string():
    crs = crs_from_description("ll grid +proj=longlat +datum=WGS84 +no_defs")
    assert crs is not None
    assert crs.is_geographic


def test_plain_description_has_no_crs():
    mesh = read_hgrid_text("Tokyo Bay grid\n" + BODY)
    assert mesh.crs is None
    assert not mesh.is_geographic


def test_detection_can_be_disabled():
    mesh = read_hgrid_text("my mesh EPSG:4326\n" + BODY, config=HgridConfig(detect_crs=False))
    assert mesh.crs is None


def test_unknown_code_is_ignored_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="xhgrid.grid.crs_utils"):
        assert crs_from_description("bad EPSG:99999917") is None
    assert "EPSG:99999917" in caplog.text


def test_crs_is_kept_out_of_equality():
    a = read_hgrid_text("m EPSG:4326\n" + BODY)
    b = read_hgrid_text("m EPSG:4326\n" + BODY, config=HgridConfig(detect_crs=False))
    assert a == b


def test_config_rejects_negative_tolerance():
    with pytest.raises(ValueError):
        HgridConfig(area_tol=-1.0)


def test_crs_definition():
    assert read_hgrid_text("m EPSG:4326\n" + BODY).crs_definition == "EPSG:4326"
    assert read_hgrid_text("m\n" + BODY).crs_definition is None

"""
Tests for the Region value object.
"""

import dataclasses

import pytest

from obscura.region import Region


def test_region_is_frozen():
    region = Region(0.1, 0.2, 0.3, 0.4, 0.9)
    with pytest.raises(dataclasses.FrozenInstanceError):
        region.x1 = 0.5


def test_from_corners_swaps_inverted():
    region = Region.from_corners(0.8, 0.9, 0.2, 0.1, 0.7)
    assert (region.x1, region.y1, region.x2, region.y2) == (0.2, 0.1, 0.8, 0.9)
    assert region.confidence == 0.7


def test_to_pixels_truncates_toward_zero():
    region = Region(0.25, 0.25, 0.75, 0.75, 0.9)
    assert region.to_pixels(400, 400) == (100, 100, 300, 300)
    assert Region(-0.001, 0.0, 0.999, 1.0, 0.9).to_pixels(100, 10) == (0, 0, 99, 10)


def test_is_finite():
    assert Region(0.0, 0.0, 1.0, 1.0, 0.9).is_finite()
    assert not Region(float("nan"), 0.0, 1.0, 1.0, 0.9).is_finite()


def test_geometry_and_dict():
    region = Region(0.25, 0.5, 0.75, 1.0, 0.91234)
    assert region.width == 0.5
    assert region.height == 0.5
    assert region.area == 0.25
    assert region.to_dict() == {
        "x1": 0.25, "y1": 0.5, "x2": 0.75, "y2": 1.0, "confidence": 0.9123,
    }

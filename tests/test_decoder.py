"""
Tests for the output decoding module.
"""

import logging

import numpy as np
import pytest

from obscura.decoder import CATEGORY_LABELS, category_label, decode
from obscura.errors import MalformedOutputError
from obscura.region import Region

from conftest import NUM_CATEGORIES, make_box, make_output

STRIDE = 5 + NUM_CATEGORIES


def _decode(tensor, num_boxes, **kwargs):
    return decode(
        output_tensor=tensor,
        num_boxes=num_boxes,
        attributes_per_box=STRIDE,
        num_categories=NUM_CATEGORIES,
        **kwargs,
    )


def test_decode_valid_detection():
    """Test parsing a single accepted box."""
    tensor = make_output(make_box(0.25, 0.25, 0.75, 0.5, 0.95))

    regions = _decode(tensor, 1)

    assert len(regions) == 1
    region = regions[0]
    assert isinstance(region, Region)
    assert region.x1 == 0.25
    assert region.y1 == 0.25
    assert region.x2 == 0.75
    assert region.y2 == 0.5
    assert region.confidence == pytest.approx(0.95, abs=1e-6)


def test_decode_reference_stride():
    """The reference model emits 1344 boxes with 22 values each."""
    assert STRIDE == 22
    tensor = np.zeros(1344 * 22, dtype=np.float32)
    assert _decode(tensor, 1344) == []


def test_decode_objectness_boundary():
    """Objectness equal to the threshold is rejected; just above is accepted."""
    above = float(np.nextafter(np.float32(0.5), np.float32(1.0)))
    tensor = make_output(
        make_box(0.0, 0.0, 0.5, 0.5, 0.5),
        make_box(0.0, 0.0, 0.5, 0.5, above),
    )

    regions = _decode(tensor, 2, confidence_threshold=0.5)

    assert len(regions) == 1
    assert regions[0].confidence > 0.5


def test_decode_category_boundary():
    """The best category score must be strictly above its threshold."""
    tensor = make_output(
        make_box(0.0, 0.0, 0.5, 0.5, 0.9, best_score=0.25),
        make_box(0.0, 0.0, 0.5, 0.5, 0.8, best_score=0.5),
    )

    regions = _decode(tensor, 2, category_threshold=0.25)

    assert len(regions) == 1
    assert regions[0].confidence == pytest.approx(0.8, abs=1e-6)


def test_decode_thresholds_are_independent():
    """A confident box with weak category scores is dropped, and vice versa."""
    tensor = make_output(
        make_box(0.0, 0.0, 0.5, 0.5, 0.9, best_score=0.05),
        make_box(0.0, 0.0, 0.5, 0.5, 0.3, best_score=0.9),
    )

    assert _decode(tensor, 2) == []


def test_decode_category_tie_break(caplog):
    """Equal maximum scores resolve to the lowest category index."""
    scores = [0.3, 0.9, 0.9] + [0.0] * (NUM_CATEGORIES - 3)
    tensor = make_output(make_box(0.1, 0.1, 0.2, 0.2, 0.9, scores=scores))

    caplog.set_level(logging.DEBUG, logger="obscura.decoder")
    regions = _decode(tensor, 1)

    assert len(regions) == 1
    messages = " ".join(r.getMessage() for r in caplog.records)
    assert CATEGORY_LABELS[1] in messages
    assert CATEGORY_LABELS[2] not in messages


def test_decode_preserves_order_without_suppression():
    """Output keeps raw decode order and keeps overlapping duplicates."""
    tensor = make_output(
        make_box(0.1, 0.1, 0.5, 0.5, 0.6),
        make_box(0.1, 0.1, 0.5, 0.5, 0.9),
        make_box(0.0, 0.0, 0.1, 0.1, 0.2),
        make_box(0.5, 0.5, 1.0, 1.0, 0.7),
    )

    regions = _decode(tensor, 4)

    assert [round(r.confidence, 2) for r in regions] == [0.6, 0.9, 0.7]


def test_decode_normalizes_inverted_corners():
    tensor = make_output(make_box(0.75, 0.5, 0.25, 0.25, 0.9))

    region = _decode(tensor, 1)[0]

    assert (region.x1, region.y1, region.x2, region.y2) == (0.25, 0.25, 0.75, 0.5)


def test_decode_accepts_shaped_tensor():
    """A (1, N, stride) model output is flattened before slicing."""
    tensor = make_output(make_box(0.0, 0.0, 0.5, 0.5, 0.9)).reshape(1, 1, STRIDE)
    assert len(_decode(tensor, 1)) == 1


def test_decode_ignores_trailing_values():
    tensor = np.concatenate([
        make_output(make_box(0.0, 0.0, 0.5, 0.5, 0.9)),
        np.ones(7, dtype=np.float32),
    ])
    assert len(_decode(tensor, 1)) == 1


def test_decode_short_tensor():
    """A tensor shorter than num_boxes * stride is rejected."""
    tensor = make_output(make_box(0.0, 0.0, 0.5, 0.5, 0.9))

    with pytest.raises(MalformedOutputError, match="expected at least"):
        _decode(tensor, 2)

    with pytest.raises(MalformedOutputError):
        _decode(tensor[:-1], 1)


def test_decode_stride_too_narrow():
    tensor = make_output(make_box(0.0, 0.0, 0.5, 0.5, 0.9))

    with pytest.raises(MalformedOutputError, match="attributes_per_box"):
        decode(tensor, 1, attributes_per_box=STRIDE, num_categories=NUM_CATEGORIES + 1)


def test_decode_invalid_box_counts():
    """Zero categories or a negative box count is a malformed layout."""
    with pytest.raises(MalformedOutputError, match="num_categories"):
        decode(np.zeros(10, dtype=np.float32), 2, attributes_per_box=5, num_categories=0)

    with pytest.raises(MalformedOutputError, match="num_boxes"):
        _decode(np.zeros(STRIDE, dtype=np.float32), -1)


def test_decode_zero_boxes():
    assert _decode(np.zeros(0, dtype=np.float32), 0) == []


def test_category_label():
    assert category_label(0) == "FEMALE_GENITALIA_COVERED"
    assert category_label(17) == "BUTTOCKS_COVERED"
    assert category_label(40) == "CLASS_40"
    assert len(CATEGORY_LABELS) == 18

"""
Output decoding for the censoring pipeline.

Responsibility:
    Parse the detection model's flat output tensor into a list of Region
    objects. Apply objectness and category-score thresholds.

Non-goals:
    - No non-maximum suppression (see obscura.suppression).
    - No sorting: regions are returned in raw decode order.
    - No pixel-space mapping, drawing, or model inference.

Hard-coded:
    - Box layout: [x1, y1, x2, y2, objectness, score_0 .. score_{C-1}]
      with coordinates normalized to [0, 1].
    - Category label table of the reference model (18 classes).
"""

import logging
from typing import List, Sequence

import numpy as np

from obscura.errors import MalformedOutputError
from obscura.region import Region

logger = logging.getLogger(__name__)

# Index order matches the reference model's output columns.
CATEGORY_LABELS = (
    "FEMALE_GENITALIA_COVERED",
    "FACE_FEMALE",
    "BUTTOCKS_EXPOSED",
    "FEMALE_BREAST_EXPOSED",
    "FEMALE_GENITALIA_EXPOSED",
    "MALE_BREAST_EXPOSED",
    "ANUS_EXPOSED",
    "FEET_EXPOSED",
    "BELLY_COVERED",
    "FEET_COVERED",
    "ARMPITS_COVERED",
    "ARMPITS_EXPOSED",
    "FACE_MALE",
    "BELLY_EXPOSED",
    "MALE_GENITALIA_EXPOSED",
    "ANUS_COVERED",
    "FEMALE_BREAST_COVERED",
    "BUTTOCKS_COVERED",
)

# x1, y1, x2, y2, objectness
_BOX_HEADER = 5


def category_label(index: int) -> str:
    """Return the label for a category index, or a generic name if unknown."""
    if 0 <= index < len(CATEGORY_LABELS):
        return CATEGORY_LABELS[index]
    return f"CLASS_{index}"


def decode(
    output_tensor: Sequence[float],
    num_boxes: int,
    attributes_per_box: int,
    num_categories: int,
    confidence_threshold: float = 0.5,
    category_threshold: float = 0.1,
) -> List[Region]:
    """Parse a raw output tensor into a list of Region objects.

    Args:
        output_tensor: Flat float buffer (any shape is flattened) holding
                       num_boxes slices of attributes_per_box values.
        num_boxes: Number of candidate boxes to read.
        attributes_per_box: Width of one box slice (22 for the reference
                            model); at least 5 + num_categories.
        num_categories: Number of category scores following the objectness.
        confidence_threshold: Objectness must be strictly greater.
        category_threshold: Best category score must be strictly greater.

    Returns:
        Accepted regions in decode order. Empty list if none pass.

    Raises:
        MalformedOutputError: If the tensor is shorter than
            num_boxes * attributes_per_box, or a box slice is too narrow
            to hold the category scores, or num_boxes is negative or
            num_categories is not positive.
    """
    if num_boxes < 0 or num_categories <= 0:
        raise MalformedOutputError(
            f"Invalid box layout: num_boxes={num_boxes} must be non-negative "
            f"and num_categories={num_categories} must be positive."
        )

    if attributes_per_box < _BOX_HEADER + num_categories:
        raise MalformedOutputError(
            f"attributes_per_box={attributes_per_box} cannot hold "
            f"{_BOX_HEADER} box values plus {num_categories} category scores."
        )

    flat = np.asarray(output_tensor, dtype=np.float32).reshape(-1)
    expected = num_boxes * attributes_per_box
    if flat.size < expected:
        raise MalformedOutputError(
            f"Output tensor has {flat.size} values, expected at least "
            f"{expected} ({num_boxes} boxes x {attributes_per_box} attributes)."
        )

    boxes = flat[:expected].reshape(num_boxes, attributes_per_box)
    scores = boxes[:, _BOX_HEADER:_BOX_HEADER + num_categories]

    # np.argmax returns the first index among equal maxima
    best_index = scores.argmax(axis=1)
    best_score = scores[np.arange(num_boxes), best_index]
    objectness = boxes[:, 4]

    accepted = (objectness > confidence_threshold) & (best_score > category_threshold)

    regions: List[Region] = []
    for i in np.flatnonzero(accepted):
        x1, y1, x2, y2, score = (float(v) for v in boxes[i, :_BOX_HEADER])
        regions.append(Region.from_corners(x1, y1, x2, y2, confidence=score))
        logger.debug(
            "Detected: %s (category score %.2f, objectness %.2f)",
            category_label(int(best_index[i])), best_score[i], score,
        )

    if regions:
        logger.info("Decoded %d sensitive region(s) from %d boxes.", len(regions), num_boxes)
    else:
        logger.debug("No sensitive regions detected in %d boxes.", num_boxes)

    return regions

"""
Optional overlap suppression applied after decoding.

Responsibility:
    Drop regions that overlap a higher-confidence region by more than an
    IoU threshold (greedy, class-agnostic, since Regions carry no label).

Non-goals:
    - Not part of decode(): the decoder always returns every accepted box.
    - No reordering: survivors keep their decode order, so the pixelator's
      overlap precedence is unchanged.
"""

from typing import List, Sequence

from obscura.region import Region


def iou(a: Region, b: Region) -> float:
    """Intersection over Union of two regions in normalized coordinates."""
    a = a.normalized()
    b = b.normalized()

    x_left = max(a.x1, b.x1)
    y_top = max(a.y1, b.y1)
    x_right = min(a.x2, b.x2)
    y_bottom = min(a.y2, b.y2)

    if x_right <= x_left or y_bottom <= y_top:
        return 0.0

    intersection = (x_right - x_left) * (y_bottom - y_top)
    union = a.area + b.area - intersection
    return intersection / union if union > 0 else 0.0


def suppress_overlaps(regions: Sequence[Region], iou_threshold: float) -> List[Region]:
    """Greedy IoU suppression.

    Candidates are visited by confidence descending (ties by original
    position). A candidate is dropped if its IoU with any kept region is
    strictly greater than iou_threshold.

    Args:
        regions: Decoded regions, in decode order.
        iou_threshold: Overlap in [0, 1] above which a region is a duplicate.

    Returns:
        The surviving regions, in their original order.
    """
    if not regions:
        return []

    order = sorted(range(len(regions)), key=lambda i: -regions[i].confidence)

    kept: List[int] = []
    for i in order:
        if all(iou(regions[i], regions[k]) <= iou_threshold for k in kept):
            kept.append(i)

    return [regions[i] for i in sorted(kept)]

"""
Region value object.

This module defines the Region dataclass, the single output type of the
decoder and the single input type of the pixelator. It is intentionally
minimal: a frozen, serializable container in normalized image-fraction
coordinates.

Non-goals:
    - No category label (the label is diagnostic only).
    - No rendering logic or file I/O.
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class Region:
    """A detected box with its objectness confidence.

    Attributes:
        x1: Left edge as a fraction of image width.
        y1: Top edge as a fraction of image height.
        x2: Right edge as a fraction of image width.
        y2: Bottom edge as a fraction of image height.
        confidence: Objectness score in [0.0, 1.0].

    Coordinates are independent of the pixel resolution of any image;
    the origin is the top-left corner.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    confidence: float

    @classmethod
    def from_corners(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        confidence: float,
    ) -> "Region":
        """Build a Region, swapping inverted corners so x1 <= x2 and y1 <= y2."""
        if x1 > x2:
            x1, x2 = x2, x1
        if y1 > y2:
            y1, y2 = y2, y1
        return cls(
            x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2),
            confidence=float(confidence),
        )

    def normalized(self) -> "Region":
        """Return this region with corner ordering enforced."""
        return Region.from_corners(self.x1, self.y1, self.x2, self.y2, self.confidence)

    def is_finite(self) -> bool:
        """True if all four coordinates are finite numbers."""
        return all(math.isfinite(v) for v in (self.x1, self.y1, self.x2, self.y2))

    def to_pixels(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """Scale to pixel coordinates, truncating toward zero (no clamping)."""
        return (
            int(self.x1 * width),
            int(self.y1 * height),
            int(self.x2 * width),
            int(self.y2 * height),
        )

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {
            "x1": round(self.x1, 6),
            "y1": round(self.y1, 6),
            "x2": round(self.x2, 6),
            "y2": round(self.y2, 6),
            "confidence": round(self.confidence, 4),
        }

    @property
    def width(self) -> float:
        """Box width as a fraction of image width."""
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        """Box height as a fraction of image height."""
        return self.y2 - self.y1

    @property
    def area(self) -> float:
        """Box area as a fraction of image area."""
        return self.width * self.height

"""
Obscura: sensitive-region detection and pixelation.

Public API:
    - Censor: Pipeline entry point (detect and pixelate with a loaded model).
    - CensorResult: Pixelated image plus the regions that were obscured.
    - Region: Value object for a detected box in normalized coordinates.
    - preprocess, decode, pixelate: The model-agnostic core stages.
    - suppress_overlaps: Optional greedy IoU filter for decoded regions.
    - InvalidImageError, MalformedOutputError, InvalidRegionError.

Usage:
    from obscura import Censor

    censor = Censor()
    result = censor.censor(image)
"""

from obscura.censor import Censor, CensorResult
from obscura.decoder import decode
from obscura.errors import (
    InvalidImageError,
    InvalidRegionError,
    MalformedOutputError,
    ObscuraError,
)
from obscura.pixelator import pixelate
from obscura.preprocessor import preprocess
from obscura.region import Region
from obscura.suppression import suppress_overlaps

__all__ = [
    "Censor",
    "CensorResult",
    "Region",
    "preprocess",
    "decode",
    "pixelate",
    "suppress_overlaps",
    "ObscuraError",
    "InvalidImageError",
    "MalformedOutputError",
    "InvalidRegionError",
]

"""
Region pixelation for the censoring pipeline.

Responsibility:
    Map normalized Region coordinates onto an image and replace each
    region with a block mosaic. This is a pure rendering module: it
    produces a new image and performs no I/O.

Non-goals:
    - No detection or model logic.
    - No blurring or other obscuring styles.

Behavior:
    - Regions are applied in order; later regions overwrite earlier ones
      where they overlap.
    - A block's fill extends up to block_size pixels from its top-left
      corner, clamped to the image (not to the region).
"""

import logging
from typing import Sequence

import numpy as np

from obscura.errors import InvalidImageError, InvalidRegionError
from obscura.region import Region

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE = 15

MODE_AVERAGE = "average"
MODE_SAMPLE = "sample"
_MODES = {MODE_AVERAGE, MODE_SAMPLE}


def pixelate(
    image: np.ndarray,
    regions: Sequence[Region],
    block_size: int = DEFAULT_BLOCK_SIZE,
    mode: str = MODE_AVERAGE,
) -> np.ndarray:
    """Return a copy of the image with every region pixelated.

    Args:
        image: Input image (H, W), (H, W, 3) or (H, W, 4). Not modified.
        regions: Regions in normalized coordinates, applied in order.
        block_size: Mosaic block edge length in pixels.
        mode: 'average' fills each block with its rounded mean colour;
              'sample' fills it with the block's top-left pixel.

    Returns:
        A new numpy array with the same shape and dtype as the input.

    Raises:
        InvalidImageError: If the image is None or has a zero dimension.
        InvalidRegionError: If a region has non-finite coordinates.
        ValueError: If block_size is not positive or mode is unknown.
    """
    if image is None or image.ndim < 2 or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImageError("Cannot pixelate an empty image.")

    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}.")

    if mode not in _MODES:
        raise ValueError(f"Invalid pixelation mode: '{mode}'. Must be one of {_MODES}.")

    output = image.copy()
    height, width = output.shape[:2]

    for region in regions:
        x1, y1, x2, y2 = _pixel_box(region, width, height)
        logger.debug("Pixelating region: (%d, %d) -> (%d, %d)", x1, y1, x2, y2)

        for y in range(y1, y2, block_size):
            for x in range(x1, x2, block_size):
                if not (0 <= x < width and 0 <= y < height):
                    continue

                x_end = min(x + block_size, width)
                y_end = min(y + block_size, height)
                block = output[y:y_end, x:x_end]

                if mode == MODE_SAMPLE:
                    color = output[y, x].copy()
                else:
                    color = _block_mean(block, output.dtype)

                block[...] = color

    return output


def _pixel_box(region: Region, width: int, height: int):
    """Scale a region to pixel space and clamp it to the image bounds."""
    if not region.is_finite():
        raise InvalidRegionError(
            f"Region has non-finite coordinates and cannot be mapped "
            f"to pixels: {region}."
        )

    x1, y1, x2, y2 = region.normalized().to_pixels(width, height)
    return (
        max(0, min(x1, width)),
        max(0, min(y1, height)),
        max(0, min(x2, width)),
        max(0, min(y2, height)),
    )


def _block_mean(block: np.ndarray, dtype: np.dtype) -> np.ndarray:
    """Per-channel mean of a block, rounded back to the image dtype."""
    mean = block.reshape(-1, *block.shape[2:]).mean(axis=0)
    if np.issubdtype(dtype, np.integer):
        mean = np.rint(mean)
    return mean.astype(dtype)

"""
Preprocessing for the censoring pipeline.

Responsibility:
    Convert a raw image (numpy array) into the flat, channel-planar
    float32 tensor the detection model expects, using
    cv2.dnn.blobFromImage for the resize and scaling.

Non-goals:
    - No image acquisition or I/O.
    - No inference or output decoding.

Hard-coded:
    - Values are scaled to [0, 1] (scale factor 1/255, no mean subtraction).
    - Resampling is bilinear, so output is deterministic for a given input.
    - Input is OpenCV-native BGR; the plane order written into the tensor
      is ModelConfig.channel_order (BGR for the reference model).
"""

from typing import Optional

import numpy as np
import cv2

from obscura.config import ModelConfig
from obscura.errors import InvalidImageError

_SCALE = 1.0 / 255.0


def preprocess(image: np.ndarray, config: Optional[ModelConfig] = None) -> np.ndarray:
    """Convert an image into a flat model input tensor.

    Args:
        image: Input image as a numpy array, (H, W, 3) BGR, (H, W, 4) BGRA,
               or (H, W) grayscale.
        config: ModelConfig providing input_size and channel_order.
                Defaults to the reference model (256x256, BGR).

    Returns:
        A 1D float32 array of length 3 * H * W laid out as
        tensor[c * H * W + y * W + x], values in [0, 1].

    Raises:
        InvalidImageError: If the image is None or has a zero dimension.
    """
    if image is None or image.ndim < 2 or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImageError(
            "Cannot preprocess an empty image. "
            "Ensure the image was decoded successfully."
        )

    if config is None:
        config = ModelConfig()

    channels = 1 if image.ndim == 2 else image.shape[2]
    if image.ndim > 3 or channels not in (1, 3, 4):
        raise InvalidImageError(
            f"Expected a grayscale, BGR, or BGRA image, got shape {image.shape}."
        )

    if channels == 1:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    elif channels == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    blob = cv2.dnn.blobFromImage(
        image=image,
        scalefactor=_SCALE,
        size=tuple(config.input_size),
        mean=(0.0, 0.0, 0.0),
        swapRB=config.channel_order == "RGB",
        crop=False,
    )

    # (1, 3, H, W) → flat planar layout
    return blob.astype(np.float32, copy=False).reshape(-1)

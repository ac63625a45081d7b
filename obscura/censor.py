"""
Censor: the public pipeline API.

This module wires the core stages together around an explicit inference
handle:

    image → preprocess → network → decode → (suppress) → pixelate

Public contract:
    Censor.detect(image: np.ndarray) -> list[Region]
    Censor.censor(image: np.ndarray) -> CensorResult

Constraints:
    - Input must be a numpy image (BGR, BGRA, or grayscale).
    - Calls are stateless apart from the loaded network and deterministic.
    - Thread-safety is not guaranteed (single-threaded design).

Non-goals:
    - No file reading, camera access, or I/O of any kind.
    - No display or output writing.
    - No tracking or temporal state.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from obscura.config import AppConfig, load_config
from obscura.decoder import decode
from obscura.errors import InvalidImageError
from obscura.model_loader import load_model
from obscura.pixelator import pixelate
from obscura.preprocessor import preprocess
from obscura.region import Region
from obscura.suppression import suppress_overlaps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CensorResult:
    """Pixelated image plus the regions that were obscured.

    The image is always a new array owned by the caller; when no region
    was detected it is an unmodified copy of the input.
    """

    image: np.ndarray
    regions: List[Region]

    @property
    def detected(self) -> bool:
        """True if at least one sensitive region was found."""
        return bool(self.regions)


class Censor:
    """Sensitive-region censor using an ONNX model via OpenCV DNN.

    Usage:
        censor = Censor()                           # Loads the model from config
        censor = Censor(config=cfg, net=my_net)     # Injected inference handle
        result = censor.censor(image)               # Detect and pixelate
        censor.close()

    The network handle is any object with OpenCV's setInput()/forward()
    interface. Injecting it keeps the core testable without a model file.
    """

    def __init__(self, config: Optional[AppConfig] = None, net=None) -> None:
        """Initialize the censor and load the model if none is given.

        Args:
            config: Application configuration. If None, safe defaults
                    are used (no config file required).
            net: Ready-to-infer network handle. If None, the model is
                 loaded from config.model.

        Raises:
            FileNotFoundError: If the model file is missing.
            RuntimeError: If the model or backend cannot be initialized.
            ValueError: If configuration values are invalid.
        """
        if config is None:
            config = load_config()

        self._config = config
        self._net = net if net is not None else load_model(config.model)

        logger.info(
            "Censor initialized (confidence_threshold=%.2f, category_threshold=%.2f, "
            "block_size=%d, mode=%s)",
            config.detection.confidence_threshold,
            config.detection.category_threshold,
            config.pixelation.block_size,
            config.pixelation.mode,
        )

    def detect(self, image: np.ndarray) -> List[Region]:
        """Detect sensitive regions in a single image.

        Returns:
            Regions in decode order, after optional overlap suppression.

        Raises:
            TypeError: If image is not a numpy ndarray.
            InvalidImageError: If image is empty or has an unsupported shape.
            MalformedOutputError: If the network output does not match the
                configured box layout.
            RuntimeError: If close() was already called.
        """
        self._validate_image(image)
        if self._net is None:
            raise RuntimeError("Censor has been closed; create a new instance.")

        model_cfg = self._config.model
        det_cfg = self._config.detection

        tensor = preprocess(image, model_cfg)
        width, height = model_cfg.input_size

        self._net.setInput(tensor.reshape(1, 3, height, width))
        output = self._net.forward()

        regions = decode(
            output_tensor=output,
            num_boxes=det_cfg.num_boxes,
            attributes_per_box=det_cfg.attributes_per_box,
            num_categories=det_cfg.num_categories,
            confidence_threshold=det_cfg.confidence_threshold,
            category_threshold=det_cfg.category_threshold,
        )

        if det_cfg.nms_enabled:
            before = len(regions)
            regions = suppress_overlaps(regions, det_cfg.nms_threshold)
            logger.debug("Overlap suppression kept %d of %d regions.", len(regions), before)

        return regions

    def censor(self, image: np.ndarray) -> CensorResult:
        """Detect sensitive regions and pixelate them.

        Returns:
            A CensorResult holding a new image and the obscured regions.
        """
        regions = self.detect(image)

        if not regions:
            logger.info("No sensitive content detected.")
            return CensorResult(image=image.copy(), regions=[])

        pix_cfg = self._config.pixelation
        censored = pixelate(image, regions, block_size=pix_cfg.block_size, mode=pix_cfg.mode)
        logger.info("Pixelated %d sensitive region(s).", len(regions))
        return CensorResult(image=censored, regions=regions)

    def close(self) -> None:
        """Release the network handle."""
        if self._net is not None:
            self._net = None
            logger.debug("Inference handle released.")

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    @staticmethod
    def _validate_image(image: np.ndarray) -> None:
        """Validate that the input image meets the API contract.

        Raises:
            TypeError: If image is not a numpy ndarray.
            InvalidImageError: If image is empty or has wrong dimensions.
        """
        if not isinstance(image, np.ndarray):
            raise TypeError(
                f"Expected image to be a numpy ndarray, "
                f"got {type(image).__name__}. "
                f"Use cv2.imread() to obtain images."
            )

        if image.size == 0:
            raise InvalidImageError(
                "Image is empty (zero size). "
                "Ensure the image was decoded successfully."
            )

        if image.ndim not in (2, 3):
            raise InvalidImageError(
                f"Expected a 2- or 3-dimensional image, "
                f"got {image.ndim} dimensions with shape {image.shape}."
            )

        if image.ndim == 3 and image.shape[2] not in (3, 4):
            raise InvalidImageError(
                f"Expected 3 (BGR) or 4 (BGRA) channels, got {image.shape[2]} channels."
            )

"""
Input handling for the censoring CLI.

Responsibility:
    Read images from a single file or a directory of files. Provides a
    uniform iterator interface yielding (image_id, image) tuples.

Non-goals:
    - No censoring, drawing, or output writing.
    - No camera capture or video streams.

Robustness:
    - Validates the source at initialization time.
    - Logs and skips unreadable images (never crashes the pipeline).
"""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Image extensions recognized by this handler
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}


class InputHandler:
    """Uniform image iterator for a file or a directory.

    The source type is auto-detected at initialization:
        - File with image extension → single image
        - Directory path → all images in directory (sorted)

    Usage:
        handler = InputHandler(source="photos/")
        for image_id, image in handler:
            # process image

    image_id is the file name, so a.jpg and a.png stay distinct.
    Unreadable images are logged and skipped.
    """

    def __init__(self, source: str) -> None:
        """Initialize the input handler and validate the source.

        Raises:
            FileNotFoundError: If the source does not exist.
            ValueError: If the file type is unsupported or the directory
                        holds no images.
        """
        source_str = str(source).strip()
        self._image_paths: List[Path]

        if os.path.isfile(source_str):
            ext = Path(source_str).suffix.lower()
            if ext not in IMAGE_EXTENSIONS:
                raise ValueError(
                    f"Unrecognized file extension: '{ext}' for source '{source_str}'. "
                    f"Supported images: {IMAGE_EXTENSIONS}."
                )
            self._mode = "image"
            self._image_paths = [Path(source_str)]
        elif os.path.isdir(source_str):
            self._mode = "directory"
            self._image_paths = sorted(
                p for p in Path(source_str).iterdir()
                if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
            )
            if not self._image_paths:
                raise ValueError(
                    f"No image files found in directory: '{source_str}'. "
                    f"Supported extensions: {IMAGE_EXTENSIONS}."
                )
            logger.info("Found %d images in directory: %s", len(self._image_paths), source_str)
        else:
            raise FileNotFoundError(
                f"Input source not found: '{source_str}'. "
                f"Provide a valid image file or directory."
            )

        logger.info("InputHandler initialized: mode=%s, source=%s", self._mode, source_str)

    def __len__(self) -> int:
        return len(self._image_paths)

    def __iter__(self) -> Iterator[Tuple[str, np.ndarray]]:
        """Iterate over decoded images.

        Yields:
            Tuples of (image_id, image) where image is a BGR numpy array.
        """
        for path in self._image_paths:
            image = cv2.imread(str(path), cv2.IMREAD_COLOR)
            if image is None:
                logger.warning("Skipping unreadable image: %s", path)
                continue
            yield path.name, image

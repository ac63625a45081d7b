"""
Output handling for the censoring CLI.

Responsibility:
    Route censoring results to configured output sinks: pixelated image
    files, JSON, or CSV. Supports multiple orthogonal outputs
    simultaneously.

Non-goals:
    - No censoring logic.
    - No input acquisition or display.
"""

import logging
from pathlib import Path
from typing import Dict, List, Set

import cv2

from obscura.censor import CensorResult
from obscura.config import AppConfig, get_project_root, parse_output_modes
from obscura.region import Region
from obscura.serializer import save_csv, save_json

logger = logging.getLogger(__name__)


class OutputHandler:
    """Routes censoring results to configured output sinks.

    Supports orthogonal outputs - multiple modes can be active simultaneously:
        - 'save_image': Write the pixelated image as JPEG.
        - 'save_json': Accumulate regions, write JSON on finalize.
        - 'save_csv': Accumulate regions, write CSV on finalize.

    Usage:
        handler = OutputHandler(config)
        handler.process_result(image_id, result)
        ...
        handler.finalize()  # Flush any buffered output
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._modes: Set[str] = parse_output_modes(config.output.mode)
        self._regions_buffer: Dict[str, List[Region]] = {}

        save_path = Path(config.output.save_path)
        if not save_path.is_absolute():
            save_path = get_project_root() / save_path
        self._save_path = save_path

        if self._modes:
            self._save_path.mkdir(parents=True, exist_ok=True)

        logger.info("OutputHandler initialized: modes=%s, save_path=%s",
                    self._modes, self._save_path)

    @property
    def save_path(self) -> Path:
        """Resolved output directory."""
        return self._save_path

    def process_result(self, image_id: str, result: CensorResult) -> None:
        """Send one image's result through the output pipeline."""
        if 'save_image' in self._modes:
            self._handle_save_image(image_id, result)

        if 'save_json' in self._modes or 'save_csv' in self._modes:
            self._regions_buffer[image_id] = list(result.regions)

    def _handle_save_image(self, image_id: str, result: CensorResult) -> None:
        """Write the pixelated image as a JPEG file."""
        if self._config.output.save_only_detected and not result.detected:
            logger.debug("Nothing detected in %s, image not saved.", image_id)
            return

        # a.jpg → a_jpg_pixelated.jpg, unique per source file name
        name = Path(image_id)
        suffix = f"_{name.suffix.lstrip('.')}" if name.suffix else ""
        output_file = self._save_path / f"{name.stem}{suffix}_pixelated.jpg"
        params = [cv2.IMWRITE_JPEG_QUALITY, self._config.output.jpeg_quality]
        if not cv2.imwrite(str(output_file), result.image, params):
            raise OSError(f"Failed to write image: {output_file}")
        logger.info("Saved pixelated image: %s", output_file)

    def finalize(self) -> None:
        """Flush buffered output.

        Must be called after all images have been processed.
        """
        if 'save_json' in self._modes and self._regions_buffer:
            save_json(self._regions_buffer, str(self._save_path / "regions.json"))

        if 'save_csv' in self._modes and self._regions_buffer:
            save_csv(self._regions_buffer, str(self._save_path / "regions.csv"))

        self._regions_buffer.clear()
        logger.info("OutputHandler finalized.")

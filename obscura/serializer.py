"""
Serialization for the censoring pipeline.

Responsibility:
    Export detected regions to structured file formats (JSON, CSV)
    for downstream consumption or audit.

Non-goals:
    - No rendering or detection logic.
    - No streaming output; complete files are written on finalize.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List

from obscura.region import Region

logger = logging.getLogger(__name__)


def save_json(
    regions_by_image: Dict[str, List[Region]],
    output_path: str,
) -> None:
    """Export all regions to a JSON file.

    Output schema:
        {
            "images": [
                {
                    "image_id": "IMG_0001.jpg",
                    "regions": [
                        {"x1": ..., "y1": ..., "x2": ..., "y2": ..., "confidence": ...}
                    ]
                }
            ],
            "total_images": N,
            "total_regions": M
        }

    Coordinates are normalized image fractions.

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    images = []
    total_regions = 0

    for image_id in sorted(regions_by_image):
        regions = regions_by_image[image_id]
        total_regions += len(regions)
        images.append({
            "image_id": image_id,
            "regions": [r.to_dict() for r in regions],
        })

    payload = {
        "images": images,
        "total_images": len(images),
        "total_regions": total_regions,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(
        "JSON output saved: %s (%d images, %d regions)",
        output_path, len(images), total_regions,
    )


def save_csv(
    regions_by_image: Dict[str, List[Region]],
    output_path: str,
) -> None:
    """Export all regions to a CSV file.

    Columns: image_id, x1, y1, x2, y2, confidence

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    fieldnames = ["image_id", "x1", "y1", "x2", "y2", "confidence"]

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        total = 0
        for image_id in sorted(regions_by_image):
            for region in regions_by_image[image_id]:
                writer.writerow({"image_id": image_id, **region.to_dict()})
                total += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, total)


def _ensure_parent_dir(path: str) -> None:
    """Create parent directories if they don't exist."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)

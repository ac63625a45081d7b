"""
Obscura CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, wire together
    the censor and I/O handlers, and run the processing loop.

Usage:
    python main.py --source photo.jpg
    python main.py --source photos/ --output-mode save_image,save_json
    python main.py --source photos/ --pixelation-mode sample --block-size 20
    python main.py --config my_config.yaml

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from obscura.censor import Censor
from obscura.config import apply_overrides, load_config
from obscura.input_handler import InputHandler
from obscura.output_handler import OutputHandler


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Obscura: detect and pixelate sensitive regions in photos",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--source",
        type=str,
        help="Input source: path to an image file or a directory of images.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--confidence",
        type=float,
        help="Objectness threshold (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--category-threshold",
        type=float,
        help="Best category score threshold (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--block-size",
        type=int,
        help="Mosaic block size in pixels. Overrides config.",
    )
    parser.add_argument(
        "--pixelation-mode",
        type=str,
        choices=["average", "sample"],
        help="Block fill: mean colour or top-left sample. Overrides config.",
    )
    parser.add_argument(
        "--nms",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Suppress overlapping regions after decoding (--no-nms disables). "
             "Overrides config.",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=["cpu", "cuda"],
        help="Compute backend preference. Overrides config.",
    )
    parser.add_argument(
        "--output-mode",
        type=str,
        help="Output mode(s), comma-separated: save_image, save_json, save_csv. "
             "Overrides config.",
    )
    parser.add_argument(
        "--output-path",
        type=str,
        help="Directory for output artifacts. Overrides config.",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution loop."""
    args = parse_args(argv)

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = load_config(args.config)
        config = apply_overrides(
            config,
            source=args.source,
            confidence_threshold=args.confidence,
            category_threshold=args.category_threshold,
            block_size=args.block_size,
            pixelation_mode=args.pixelation_mode,
            nms_enabled=args.nms,
            backend=args.backend,
            output_mode=args.output_mode,
            save_path=args.output_path,
        )
        if config.input.source is None:
            raise ValueError("No input source given. Use --source or input.source in config.")

        logger.info("Configuration active for this run.")

    except Exception as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    censor = None
    try:
        censor = Censor(config)
        input_handler = InputHandler(source=config.input.source)
        output_handler = OutputHandler(config)

    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        if censor is not None:
            censor.close()
        return 1
    except Exception as e:
        logger.exception("Unexpected initialization error: %s", e)
        if censor is not None:
            censor.close()
        return 1

    # 3. Processing Loop
    image_count = 0
    detected_count = 0
    start_time = time.perf_counter()

    try:
        for image_id, image in input_handler:
            try:
                result = censor.censor(image)
            except ValueError as e:
                logger.error("Skipping %s: %s", image_id, e)
                continue

            image_count += 1
            if result.detected:
                detected_count += 1
                logger.info("%s: %d sensitive region(s) pixelated.", image_id, len(result.regions))
            else:
                logger.info("%s: no sensitive content detected.", image_id)

            output_handler.process_result(image_id, result)

    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    except Exception as e:
        logger.exception("Runtime error during processing: %s", e)
        return 1
    finally:
        # 4. Cleanup
        elapsed = time.perf_counter() - start_time

        censor.close()
        output_handler.finalize()

        logger.info(
            "Processing finished. Images: %d, with detections: %d. Elapsed: %.2fs.",
            image_count, detected_count, elapsed,
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Configuration management for the obscura censoring pipeline.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The system MUST run with zero configuration (safe defaults only).
    - Missing or invalid values fail early and loudly.
    - No decoding, pixelation, I/O, or model loading belongs here.

Non-goals:
    - No dynamic reloading.
    - No database-backed or remote configuration.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: obscura/config.py → project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Return the resolved project root directory."""
    return _PROJECT_ROOT


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelConfig:
    """Model-related configuration.

    Attributes:
        model_path: Path to the .onnx detection model (relative to project root).
        backend: Compute backend, 'cpu' or 'cuda'.
        input_size: Spatial dimensions (width, height) of the input tensor.
        channel_order: Plane order of the input tensor, 'BGR' or 'RGB'.
                       The reference model is trained on BGR planes.
    """

    model_path: str = "models/detector.onnx"
    backend: str = "cpu"
    input_size: Tuple[int, int] = (256, 256)
    channel_order: str = "BGR"


@dataclass(frozen=True)
class DetectionConfig:
    """Output tensor layout and acceptance thresholds.

    Attributes:
        confidence_threshold: Objectness must be strictly above this.
        category_threshold: Best category score must be strictly above this.
        num_boxes: Number of candidate boxes in the output tensor.
        attributes_per_box: Stride of one box slice in the output tensor.
        num_categories: Number of per-class scores read after objectness.
                        The reference stride of 22 holds 17 scores.
        nms_enabled: Apply greedy IoU suppression after decoding.
        nms_threshold: IoU above which a lower-confidence box is dropped.
    """

    confidence_threshold: float = 0.5
    category_threshold: float = 0.1
    num_boxes: int = 1344
    attributes_per_box: int = 22
    num_categories: int = 17
    nms_enabled: bool = False
    nms_threshold: float = 0.5


@dataclass(frozen=True)
class PixelationConfig:
    """Mosaic fill parameters.

    Attributes:
        block_size: Edge length of a mosaic block in pixels.
        mode: 'average' fills a block with its mean colour, 'sample'
              with its top-left pixel.
    """

    block_size: int = 15
    mode: str = "average"


@dataclass(frozen=True)
class InputConfig:
    """Input source configuration.

    Attributes:
        source: Path to an image file or a directory of images.
    """

    source: Optional[str] = None


@dataclass(frozen=True)
class OutputConfig:
    """Output behavior configuration.

    Attributes:
        mode: Output mode(s). Supports multiple comma-separated values:
              'save_image', 'save_json', 'save_csv'.
              Example: "save_image,save_json"
        save_path: Directory where output artifacts are written.
        jpeg_quality: JPEG quality (0-100) for saved images.
        save_only_detected: Skip writing images where nothing was found.
    """

    mode: str = "save_image"
    save_path: str = "output/"
    jpeg_quality: int = 90
    save_only_detected: bool = False


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    pixelation: PixelationConfig = field(default_factory=PixelationConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_VALID_BACKENDS = {"cpu", "cuda"}
_VALID_CHANNEL_ORDERS = {"BGR", "RGB"}
_VALID_PIXELATION_MODES = {"average", "sample"}
_VALID_OUTPUT_MODES = {"save_image", "save_json", "save_csv"}


def parse_output_modes(mode: str) -> set:
    """Split a comma-separated output mode string into a set of modes."""
    return set(m.strip() for m in mode.split(",") if m.strip())


def _validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""

    if config.model.backend not in _VALID_BACKENDS:
        raise ValueError(
            f"Invalid model.backend: '{config.model.backend}'. "
            f"Must be one of {_VALID_BACKENDS}."
        )

    if config.model.channel_order not in _VALID_CHANNEL_ORDERS:
        raise ValueError(
            f"Invalid model.channel_order: '{config.model.channel_order}'. "
            f"Must be one of {_VALID_CHANNEL_ORDERS}."
        )

    if len(config.model.input_size) != 2:
        raise ValueError(
            f"model.input_size must be a (width, height) tuple, "
            f"got {config.model.input_size}."
        )

    if any(d <= 0 for d in config.model.input_size):
        raise ValueError(
            f"model.input_size dimensions must be positive, "
            f"got {config.model.input_size}."
        )

    for name in ("confidence_threshold", "category_threshold", "nms_threshold"):
        value = getattr(config.detection, name)
        if not (0.0 <= value <= 1.0):
            raise ValueError(
                f"detection.{name} must be in [0.0, 1.0], got {value}."
            )

    if config.detection.num_boxes <= 0:
        raise ValueError(
            f"detection.num_boxes must be positive, "
            f"got {config.detection.num_boxes}."
        )

    if config.detection.num_categories <= 0:
        raise ValueError(
            f"detection.num_categories must be positive, "
            f"got {config.detection.num_categories}."
        )

    if config.detection.attributes_per_box < 5 + config.detection.num_categories:
        raise ValueError(
            f"detection.attributes_per_box ({config.detection.attributes_per_box}) "
            f"must hold 5 box values plus num_categories "
            f"({config.detection.num_categories}) scores."
        )

    if config.pixelation.block_size <= 0:
        raise ValueError(
            f"pixelation.block_size must be positive, "
            f"got {config.pixelation.block_size}."
        )

    if config.pixelation.mode not in _VALID_PIXELATION_MODES:
        raise ValueError(
            f"Invalid pixelation.mode: '{config.pixelation.mode}'. "
            f"Must be one of {_VALID_PIXELATION_MODES}."
        )

    invalid_modes = parse_output_modes(config.output.mode) - _VALID_OUTPUT_MODES
    if invalid_modes:
        raise ValueError(
            f"Invalid output.mode(s): {invalid_modes}. "
            f"Valid modes: {_VALID_OUTPUT_MODES}. "
            f"Use comma-separated values for multiple outputs."
        )

    if not (0 <= config.output.jpeg_quality <= 100):
        raise ValueError(
            f"output.jpeg_quality must be in [0, 100], "
            f"got {config.output.jpeg_quality}."
        )


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a YAML list or an env string like '320,320' into a tuple
    of the expected type and length."""
    if isinstance(value, str):
        value = [v.strip() for v in value.split(",")]
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ValueError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    return value


def _parse_bool(value) -> bool:
    """Accept YAML booleans as well as env strings like 'true' / '0'."""
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _build_model_config(raw: dict) -> ModelConfig:
    """Build ModelConfig from a raw YAML dict."""
    kwargs = {}
    if "model_path" in raw:
        kwargs["model_path"] = str(raw["model_path"])
    if "backend" in raw:
        kwargs["backend"] = str(raw["backend"]).lower()
    if "input_size" in raw:
        kwargs["input_size"] = _parse_tuple(raw["input_size"], 2, int)
    if "channel_order" in raw:
        kwargs["channel_order"] = str(raw["channel_order"]).upper()
    return ModelConfig(**kwargs)


def _build_detection_config(raw: dict) -> DetectionConfig:
    """Build DetectionConfig from a raw YAML dict."""
    kwargs = {}
    for key in ("confidence_threshold", "category_threshold", "nms_threshold"):
        if key in raw:
            kwargs[key] = float(raw[key])
    for key in ("num_boxes", "attributes_per_box", "num_categories"):
        if key in raw:
            kwargs[key] = int(raw[key])
    if "nms_enabled" in raw:
        kwargs["nms_enabled"] = _parse_bool(raw["nms_enabled"])
    return DetectionConfig(**kwargs)


def _build_pixelation_config(raw: dict) -> PixelationConfig:
    """Build PixelationConfig from a raw YAML dict."""
    kwargs = {}
    if "block_size" in raw:
        kwargs["block_size"] = int(raw["block_size"])
    if "mode" in raw:
        kwargs["mode"] = str(raw["mode"]).lower()
    return PixelationConfig(**kwargs)


def _build_input_config(raw: dict) -> InputConfig:
    """Build InputConfig from a raw YAML dict."""
    kwargs = {}
    if raw.get("source") is not None:
        kwargs["source"] = str(raw["source"])
    return InputConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    if "mode" in raw:
        kwargs["mode"] = str(raw["mode"]).lower()
    if "save_path" in raw:
        kwargs["save_path"] = str(raw["save_path"])
    if "jpeg_quality" in raw:
        kwargs["jpeg_quality"] = int(raw["jpeg_quality"])
    if "save_only_detected" in raw:
        kwargs["save_only_detected"] = _parse_bool(raw["save_only_detected"])
    return OutputConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "OBSCURA_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        OBSCURA_MODEL_BACKEND=cuda
        OBSCURA_DETECTION_CONFIDENCE_THRESHOLD=0.7
        OBSCURA_MODEL_INPUT_SIZE=320,320

    Each variable maps to one (section, key) pair of the YAML layout.
    """
    env_map = {
        f"{_ENV_PREFIX}MODEL_PATH": ("model", "model_path"),
        f"{_ENV_PREFIX}MODEL_BACKEND": ("model", "backend"),
        f"{_ENV_PREFIX}MODEL_CHANNEL_ORDER": ("model", "channel_order"),
        f"{_ENV_PREFIX}MODEL_INPUT_SIZE": ("model", "input_size"),
        f"{_ENV_PREFIX}DETECTION_CONFIDENCE_THRESHOLD": ("detection", "confidence_threshold"),
        f"{_ENV_PREFIX}DETECTION_CATEGORY_THRESHOLD": ("detection", "category_threshold"),
        f"{_ENV_PREFIX}DETECTION_NUM_BOXES": ("detection", "num_boxes"),
        f"{_ENV_PREFIX}DETECTION_ATTRIBUTES_PER_BOX": ("detection", "attributes_per_box"),
        f"{_ENV_PREFIX}DETECTION_NUM_CATEGORIES": ("detection", "num_categories"),
        f"{_ENV_PREFIX}DETECTION_NMS_ENABLED": ("detection", "nms_enabled"),
        f"{_ENV_PREFIX}DETECTION_NMS_THRESHOLD": ("detection", "nms_threshold"),
        f"{_ENV_PREFIX}PIXELATION_BLOCK_SIZE": ("pixelation", "block_size"),
        f"{_ENV_PREFIX}PIXELATION_MODE": ("pixelation", "mode"),
        f"{_ENV_PREFIX}INPUT_SOURCE": ("input", "source"),
        f"{_ENV_PREFIX}OUTPUT_MODE": ("output", "mode"),
        f"{_ENV_PREFIX}OUTPUT_SAVE_PATH": ("output", "save_path"),
        f"{_ENV_PREFIX}OUTPUT_JPEG_QUALITY": ("output", "jpeg_quality"),
        f"{_ENV_PREFIX}OUTPUT_SAVE_ONLY_DETECTED": ("output", "save_only_detected"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults (safe for
                     programmatic usage).

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.is_absolute():
            resolved = _PROJECT_ROOT / resolved

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Build typed configs ---
    config = AppConfig(
        model=_build_model_config(raw.get("model", {})),
        detection=_build_detection_config(raw.get("detection", {})),
        pixelation=_build_pixelation_config(raw.get("pixelation", {})),
        input=_build_input_config(raw.get("input", {})),
        output=_build_output_config(raw.get("output", {})),
    )

    # --- Validate ---
    _validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config


_OVERRIDE_FIELDS = {
    "source": ("input", "source"),
    "confidence_threshold": ("detection", "confidence_threshold"),
    "category_threshold": ("detection", "category_threshold"),
    "nms_enabled": ("detection", "nms_enabled"),
    "block_size": ("pixelation", "block_size"),
    "pixelation_mode": ("pixelation", "mode"),
    "backend": ("model", "backend"),
    "output_mode": ("output", "mode"),
    "save_path": ("output", "save_path"),
}


def apply_overrides(config: AppConfig, **overrides) -> AppConfig:
    """Return a new validated config with CLI-level overrides applied.

    Keyword names are the keys of _OVERRIDE_FIELDS; None values are ignored.

    Raises:
        KeyError: If an unknown override name is given.
        ValueError: If the resulting configuration is invalid.
    """
    for name, value in overrides.items():
        if value is None:
            continue
        section, key = _OVERRIDE_FIELDS[name]
        updated = replace(getattr(config, section), **{key: value})
        config = replace(config, **{section: updated})
        logger.debug("Config override from CLI: %s.%s=%s", section, key, value)

    _validate(config)
    return config

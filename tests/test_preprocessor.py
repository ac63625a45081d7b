"""
Tests for the preprocessing module.
"""

import numpy as np
import pytest

from obscura.config import ModelConfig
from obscura.errors import InvalidImageError
from obscura.preprocessor import preprocess


def test_preprocess_valid_input():
    """Test standard preprocessing on a valid image."""
    config = ModelConfig()

    image = np.zeros((480, 640, 3), dtype=np.uint8)
    image[:, :, 1] = 255

    tensor = preprocess(image, config)

    assert isinstance(tensor, np.ndarray)
    assert tensor.shape == (3 * 256 * 256,)
    assert tensor.dtype == np.float32
    assert tensor.min() >= 0.0
    assert tensor.max() <= 1.0


def test_preprocess_bgr_plane_order():
    """Blue plane first, then green, then red."""
    config = ModelConfig()
    plane = 256 * 256

    image = np.zeros((300, 200, 3), dtype=np.uint8)
    image[:, :] = (51, 102, 204)  # B, G, R

    tensor = preprocess(image, config)

    assert tensor[:plane] == pytest.approx(np.full(plane, 0.2), abs=1e-6)
    assert tensor[plane:2 * plane] == pytest.approx(np.full(plane, 0.4), abs=1e-6)
    assert tensor[2 * plane:] == pytest.approx(np.full(plane, 0.8), abs=1e-6)


def test_preprocess_rgb_plane_order():
    """RGB channel order puts the red plane first."""
    config = ModelConfig(input_size=(8, 8), channel_order="RGB")

    image = np.zeros((16, 16, 3), dtype=np.uint8)
    image[:, :] = (51, 102, 204)

    tensor = preprocess(image, config)

    assert tensor[0] == pytest.approx(0.8, abs=1e-6)
    assert tensor[-1] == pytest.approx(0.2, abs=1e-6)


def test_preprocess_planar_layout():
    """Each value lands at tensor[c*H*W + y*W + x]."""
    config = ModelConfig(input_size=(2, 2))

    image = np.arange(12, dtype=np.uint8).reshape(2, 2, 3) * 10

    tensor = preprocess(image, config)

    for c in range(3):
        for y in range(2):
            for x in range(2):
                expected = image[y, x, c] / 255.0
                assert tensor[c * 4 + y * 2 + x] == pytest.approx(expected, abs=1e-6)


def test_preprocess_drops_alpha_and_expands_gray():
    """BGRA and grayscale images produce the same 3-plane layout."""
    config = ModelConfig(input_size=(4, 4))

    bgra = np.full((10, 10, 4), 128, dtype=np.uint8)
    gray = np.full((10, 10), 128, dtype=np.uint8)

    assert preprocess(bgra, config).shape == (48,)
    assert preprocess(gray, config).shape == (48,)
    assert np.array_equal(preprocess(bgra, config), preprocess(gray, config))


def test_preprocess_single_channel_image():
    """An (H, W, 1) image is expanded like plain grayscale."""
    image = np.full((20, 20, 1), 200, dtype=np.uint8)

    tensor = preprocess(image)

    assert tensor.shape == (3 * 256 * 256,)
    assert np.array_equal(tensor, preprocess(image[:, :, 0]))


@pytest.mark.parametrize("shape", [(20, 20, 2), (20, 20, 5), (2, 20, 20, 3)])
def test_preprocess_rejects_unsupported_channels(shape):
    with pytest.raises(InvalidImageError, match="shape"):
        preprocess(np.zeros(shape, dtype=np.uint8))


def test_preprocess_is_pure_and_deterministic():
    config = ModelConfig(input_size=(32, 32))
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(50, 70, 3), dtype=np.uint8)
    original = image.copy()

    first = preprocess(image, config)
    second = preprocess(image, config)

    assert np.array_equal(first, second)
    assert np.array_equal(image, original)


def test_preprocess_empty_image():
    """Test that preprocessing rejects empty images."""
    config = ModelConfig()

    with pytest.raises(InvalidImageError):
        preprocess(np.array([]), config)

    with pytest.raises(InvalidImageError):
        preprocess(np.zeros((10, 0, 3), dtype=np.uint8), config)


def test_preprocess_none_image():
    """Test that preprocessing rejects None."""
    with pytest.raises(InvalidImageError):
        preprocess(None, ModelConfig())


def test_invalid_image_is_value_error():
    """Callers catching ValueError also catch core errors."""
    with pytest.raises(ValueError):
        preprocess(None, ModelConfig())


def test_preprocess_default_config():
    """Without a config the reference 3x256x256 layout is produced."""
    image = np.zeros((40, 30, 3), dtype=np.uint8)
    assert preprocess(image).shape == (3 * 256 * 256,)

"""
Tests for image preprocessing before grading
"""

import base64
import io

import pytest
from PIL import Image

from essay_grader.core.config import ImageConfig
from essay_grader.services.errors import ImageDecodeError
from essay_grader.services.image_normalizer import (
    ImageNormalizer,
    contrast_stretch,
    contrast_table,
    scaled_size,
)


def _decode_payload(payload):
    return Image.open(io.BytesIO(base64.b64decode(payload)))


class TestScaledSize:
    """Test target size computation."""

    def test_wide_image_scaled_to_max_width(self):
        assert scaled_size(2400, 1800) == (1200, 900)

    def test_height_rounded(self):
        width, height = scaled_size(3000, 1001)
        assert width == 1200
        assert abs(height - 1001 * 1200 / 3000) <= 0.5

    def test_small_image_unchanged(self):
        assert scaled_size(800, 600) == (800, 600)
        assert scaled_size(1200, 50) == (1200, 50)


class TestContrastStretch:
    """Test the grayscale contrast transform."""

    def test_midpoint_fixed(self):
        assert contrast_stretch(128) == 128

    def test_monotonic_and_clamped(self):
        table = contrast_table(1.3)
        assert len(table) == 256
        assert all(0 <= value <= 255 for value in table)
        assert all(a <= b for a, b in zip(table, table[1:]))

    def test_extremes_clamped(self):
        assert contrast_stretch(0) == 0
        assert contrast_stretch(255) == 255
        assert contrast_stretch(200) == 222


class TestImageNormalizer:
    """Test the full normalization pipeline."""

    def test_wide_image_downsampled(self, make_image):
        normalizer = ImageNormalizer(ImageConfig())
        payload = normalizer.normalize(make_image(2400, 1600))

        image = _decode_payload(payload)
        assert image.format == "JPEG"
        assert image.size == (1200, 800)

    def test_small_image_keeps_size(self, make_image):
        normalizer = ImageNormalizer(ImageConfig())
        image = _decode_payload(normalizer.normalize(make_image(300, 200)))
        assert image.size == (300, 200)

    def test_output_is_gray_rgb(self, make_image):
        normalizer = ImageNormalizer(ImageConfig())
        image = _decode_payload(normalizer.normalize(make_image(64, 64, color=(200, 40, 90))))

        assert image.mode == "RGB"
        r, g, b = image.getpixel((32, 32))
        assert abs(r - g) <= 2 and abs(g - b) <= 2

    def test_payload_has_no_data_url_prefix(self, make_image):
        payload = ImageNormalizer(ImageConfig()).normalize(make_image())
        assert not payload.startswith("data:")

    def test_jpeg_input_accepted(self, make_image):
        payload = ImageNormalizer(ImageConfig()).normalize(make_image(fmt="JPEG"))
        assert _decode_payload(payload).size == (100, 80)

    def test_undecodable_bytes_raise(self):
        with pytest.raises(ImageDecodeError):
            ImageNormalizer(ImageConfig()).normalize(b"definitely not an image")

    def test_custom_max_width(self, make_image):
        normalizer = ImageNormalizer(ImageConfig(max_width=500))
        image = _decode_payload(normalizer.normalize(make_image(1000, 400)))
        assert image.size == (500, 200)

"""
Image preprocessing before upload to the grading model.

Photos of handwritten essays are downsampled, converted to grayscale,
contrast enhanced and re-encoded as a compact JPEG so that uploads stay small
and pencil strokes stay legible.
"""

import base64
import io
from typing import List, Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from essay_grader.core.config import ImageConfig, get_config
from essay_grader.core.logging import get_logger
from essay_grader.services.errors import ImageDecodeError, ImageProcessingError

logger = get_logger()

CONTRAST_MIDPOINT = 128


def scaled_size(width: int, height: int, max_width: int = 1200) -> Tuple[int, int]:
    """
    Return the target size for an image, preserving aspect ratio.

    Images wider than ``max_width`` are scaled down to exactly ``max_width``;
    smaller images keep their size.
    """
    if width <= max_width:
        return width, height
    new_height = max(1, round(height * max_width / width))
    return max_width, new_height


def contrast_stretch(gray: float, factor: float = 1.3) -> int:
    """Linear contrast stretch around the midpoint, clamped to [0, 255]."""
    value = (gray - CONTRAST_MIDPOINT) * factor + CONTRAST_MIDPOINT
    return int(round(max(0.0, min(255.0, value))))


def contrast_table(factor: float = 1.3) -> List[int]:
    """Lookup table for Image.point mapping every 8-bit gray level."""
    return [contrast_stretch(level, factor) for level in range(256)]


class ImageNormalizer:
    """
    Turns a raw uploaded image into the base64 JPEG payload sent to the model.
    """

    def __init__(self, config: Optional[ImageConfig] = None):
        config = config or get_config().image
        self.max_width = config.max_width
        self.contrast_factor = config.contrast_factor
        self.jpeg_quality = config.jpeg_quality
        self._table = contrast_table(self.contrast_factor)

    def decode(self, data: bytes) -> Image.Image:
        """
        Decode image bytes, applying EXIF orientation like a browser would.

        Raises:
            ImageDecodeError: If the bytes are not a readable image.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            logger.warning("Image decode failed: %s", e)
            raise ImageDecodeError(f"Could not decode image: {e}") from e
        return ImageOps.exif_transpose(image)

    def process(self, image: Image.Image) -> Image.Image:
        """Resize, convert to contrast-stretched grayscale and return an RGB image."""
        rgb = image.convert("RGB")
        size = scaled_size(rgb.width, rgb.height, self.max_width)
        if size != rgb.size:
            rgb = rgb.resize(size, Image.Resampling.LANCZOS)

        # Pillow's "L" conversion uses the ITU-R 601-2 weights 0.299/0.587/0.114
        gray = rgb.convert("L").point(self._table)
        return Image.merge("RGB", (gray, gray, gray))

    def encode(self, image: Image.Image) -> str:
        """Encode as JPEG and return the base64 payload without a data: prefix."""
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=self.jpeg_quality)
        return base64.b64encode(buffer.getvalue()).decode("ascii")

    def normalize(self, data: bytes) -> str:
        """
        Full preprocessing: decode, downsample, grayscale, contrast, JPEG.

        Args:
            data: Raw image file content.

        Returns:
            Base64-encoded JPEG data.

        Raises:
            ImageDecodeError: If the image cannot be decoded.
            ImageProcessingError: If resizing, filtering or encoding fails.
        """
        image = self.decode(data)
        try:
            processed = self.process(image)
            payload = self.encode(processed)
        except (OSError, ValueError) as e:
            logger.error("Image processing failed: %s", e)
            raise ImageProcessingError(f"Image processing failed: {e}") from e

        logger.debug(
            "Normalized image %sx%s -> %sx%s (%d base64 chars)",
            image.width,
            image.height,
            processed.width,
            processed.height,
            len(payload),
        )
        return payload

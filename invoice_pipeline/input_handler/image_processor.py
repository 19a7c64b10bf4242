"""
Image Processor Module.

Decodes uploaded raster images and normalizes them before OCR:
    - EXIF orientation correction
    - Conversion to RGB (alpha flattened onto white)
    - Downscaling of oversized scans
    - Upscaling of tiny images so glyphs survive recognition

Supports: PNG, JPEG, TIFF, BMP, WEBP, GIF (first frame)
"""

import io
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from config import get_config
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.exceptions import CorruptedFileError, EmptyFileError

# Initialize module logger
logger = get_logger(__name__)


class ImageProcessor:
    """
    Processor for uploaded image files.

    Attributes:
        max_width: Maximum image width in pixels
        max_height: Maximum image height in pixels
        min_width: Width below which images are upscaled
        min_height: Height below which images are upscaled
        auto_orient: Whether to apply the EXIF orientation tag

    Example:
        >>> processor = ImageProcessor()
        >>> image = processor.load(png_bytes, "receipt.png")
    """

    def __init__(self) -> None:
        self.max_width = get_config("input.image.max_width", 2480)
        self.max_height = get_config("input.image.max_height", 3508)
        self.min_width = get_config("input.image.min_width", 500)
        self.min_height = get_config("input.image.min_height", 500)
        self.auto_orient = get_config("input.image.auto_orient", True)

    def load(self, content: bytes, source_name: str) -> Image.Image:
        """
        Decode image bytes and normalize the result for OCR.

        Args:
            content: Raw image bytes.
            source_name: Filename used in log lines and errors.

        Returns:
            Normalized RGB PIL image.

        Raises:
            EmptyFileError: If the content is zero bytes.
            CorruptedFileError: If Pillow cannot decode the image.
        """
        if not content:
            raise EmptyFileError(source_name, kind="Image")

        try:
            image = Image.open(io.BytesIO(content))
            image.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.error(f"Failed to decode image {source_name}: {e}")
            raise CorruptedFileError(
                source_name,
                str(e),
                message="Image file is corrupted or in an unsupported format"
            )

        original_size = image.size
        image = self.normalize(image)
        logger.debug(
            f"Normalized {source_name}: {original_size[0]}x{original_size[1]} -> "
            f"{image.width}x{image.height}"
        )
        return image

    def normalize(self, image: Image.Image) -> Image.Image:
        """
        Apply the normalization steps in order.

        Steps:
            1. Fix orientation from EXIF
            2. Convert to RGB
            3. Downscale if larger than the maximum size
            4. Upscale if smaller than the minimum size
        """
        if self.auto_orient:
            image = self._fix_orientation(image)

        image = self._convert_to_rgb(image)
        image = self._resize_if_needed(image)
        return image

    def _fix_orientation(self, image: Image.Image) -> Image.Image:
        # Cameras often store rotation in EXIF instead of rotating pixels
        try:
            return ImageOps.exif_transpose(image)
        except (OSError, ValueError, TypeError) as e:
            logger.debug(f"Could not fix orientation: {e}")
            return image

    def _convert_to_rgb(self, image: Image.Image) -> Image.Image:
        if image.mode == 'RGB':
            return image

        if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
            rgba = image.convert('RGBA')
            background = Image.new('RGB', rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background

        return image.convert('RGB')

    def _resize_if_needed(self, image: Image.Image) -> Image.Image:
        """
        Keep the image within the configured bounds, preserving aspect ratio.
        """
        width, height = image.size
        ratio: Optional[float] = None

        if width > self.max_width or height > self.max_height:
            ratio = min(self.max_width / width, self.max_height / height)
        elif width < self.min_width and height < self.min_height:
            ratio = min(self.min_width / width, self.min_height / height)

        if ratio is None:
            return image

        new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
        logger.debug(f"Resized image from {width}x{height} to {new_size[0]}x{new_size[1]}")
        return image.resize(new_size, Image.LANCZOS)

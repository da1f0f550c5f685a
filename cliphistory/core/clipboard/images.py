"""Image encoding helpers for clipboard captures"""

import io
from typing import Optional, Tuple
from PIL import Image
from loguru import logger

THUMBNAIL_SIZE: Tuple[int, int] = (64, 64)


def image_to_png(image: Image.Image) -> bytes:
    """Encode a PIL image as PNG bytes"""
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


def make_thumbnail(image: Image.Image, size: Tuple[int, int] = THUMBNAIL_SIZE) -> Optional[bytes]:
    """
    Downscale an image into a JPEG preview

    Args:
        image: Source image (left untouched)
        size: Bounding box, aspect ratio is kept

    Returns:
        JPEG bytes, or None if encoding failed
    """
    thumb = image.copy()
    thumb.thumbnail(size)

    # JPEG has no alpha channel
    if thumb.mode not in ('RGB', 'L'):
        thumb = thumb.convert('RGB')

    buffer = io.BytesIO()
    try:
        thumb.save(buffer, format='JPEG')
    except OSError as e:
        logger.error(f"Thumbnail encoding failed: {e}")
        return None

    return buffer.getvalue() or None


def load_image(data: bytes) -> Image.Image:
    """Decode stored image bytes"""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image

"""Unit tests for clipboard image encoding."""

from PIL import Image

from cliphistory.core.clipboard.images import image_to_png, load_image, make_thumbnail


def test_png_round_trip() -> None:
    """PNG bytes decode back to the same size image."""
    image = Image.new("RGB", (120, 80), color=(10, 200, 30))

    decoded = load_image(image_to_png(image))

    assert decoded.size == (120, 80)


def test_thumbnail_fits_bounding_box() -> None:
    """Thumbnails keep aspect ratio within 64x64 and leave the source alone."""
    image = Image.new("RGBA", (400, 200), color=(0, 0, 255, 128))

    data = make_thumbnail(image)

    assert data is not None
    thumb = load_image(data)
    assert thumb.format == "JPEG"
    assert thumb.size == (64, 32)
    assert image.size == (400, 200)

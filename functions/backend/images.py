"""
Photo normalisation for uploads.
"""

from __future__ import annotations

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from shared.errors import WallyError, WallyErrorKind

FALLBACK_JPEG_QUALITY = 50


def target_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Scales (width, height) so the longest side is at most max_dimension."""
    if width <= max_dimension and height <= max_dimension:
        return width, height
    if width > height:
        return max_dimension, max(1, round(max_dimension * height / width))
    return max(1, round(max_dimension * width / height)), max_dimension


def compress_image(
    image_bytes: bytes,
    *,
    max_dimension: int = 1024,
    quality: int = 80,
    max_bytes: int = 5 * 1024 * 1024,
) -> bytes:
    """
    Re-encodes an uploaded image as JPEG.

    The image is rotated according to its EXIF orientation and shrunk so its
    longest side fits max_dimension. If the result is still larger than
    max_bytes it is encoded again at a lower quality.

    Raises:
        WallyError: PHOTO_UPLOAD_FAILED if the bytes are not an image or the
            result cannot be brought under max_bytes.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img = ImageOps.exif_transpose(img).convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise WallyError(WallyErrorKind.PHOTO_UPLOAD_FAILED, f"Unreadable image: {e}")

    size = target_size(img.width, img.height, max_dimension)
    if size != (img.width, img.height):
        img = img.resize(size, Image.Resampling.LANCZOS)

    for jpeg_quality in (quality, FALLBACK_JPEG_QUALITY):
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=jpeg_quality)
        data = buffer.getvalue()
        if len(data) <= max_bytes:
            return data

    raise WallyError(
        WallyErrorKind.PHOTO_UPLOAD_FAILED, "Photo is too large after compression"
    )

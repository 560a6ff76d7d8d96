"""Photo intake: copy a selected image into the agent's data directory."""

import uuid
from io import BytesIO
from pathlib import Path

from PIL import Image


class PhotoError(Exception):
    """Raised when a selected photo cannot be read as an image."""


def compress_to_jpeg(img: Image.Image, quality: int = 85) -> bytes:
    """Compress PIL Image to JPEG bytes.

    Args:
        img: PIL Image to compress
        quality: JPEG quality (1-100)

    Returns:
        JPEG image as bytes
    """
    if img.mode != "RGB":
        img = img.convert("RGB")

    buffer = BytesIO()
    img.save(
        buffer,
        format="JPEG",
        quality=quality,
        optimize=True,
    )
    return buffer.getvalue()


def save_photo(source: Path, dest_dir: Path, quality: int = 85) -> Path:
    """Re-encode a photo as JPEG under a fresh UUID file name.

    The queued copy is independent of the original, so the user can move or
    delete the source after submitting.

    Args:
        source: Image selected by the user
        dest_dir: Directory holding queued photos
        quality: JPEG quality (1-100)

    Returns:
        Path of the stored JPEG

    Raises:
        PhotoError: If the source is missing or not a readable image
    """
    try:
        with Image.open(source) as img:
            jpeg_bytes = compress_to_jpeg(img, quality=quality)
    except OSError as e:  # includes UnidentifiedImageError
        raise PhotoError(f"Cannot read image {source}: {e}") from e

    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / f"{uuid.uuid4()}.jpg"
    dest.write_bytes(jpeg_bytes)
    return dest

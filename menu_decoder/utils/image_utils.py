import base64
import binascii
import io
import re

from PIL import Image, ImageOps, UnidentifiedImageError

from menu_decoder.errors import InvalidRequest

DATA_URI_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")
MIN_JPEG_QUALITY = 40


def decode_image_payload(image: str) -> bytes:
    """Accepts a data URI or bare base64 string and returns the raw bytes."""
    if not isinstance(image, str):
        raise InvalidRequest("Invalid image data")
    b64_data = DATA_URI_PREFIX.sub("", image.strip(), count=1)
    try:
        data = base64.b64decode(b64_data, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidRequest("Invalid image data")
    if not data:
        raise InvalidRequest("Invalid image data")
    return data


def normalize_image(
    image_bytes: bytes,
    max_side: int = 2048,
    quality: int = 80,
    max_bytes: int = 4 * 1024 * 1024,
) -> bytes:
    """
    Re-encodes an uploaded menu photo as a bounded JPEG.

    The longer side is shrunk to max_side (aspect ratio kept), EXIF rotation
    from phone cameras is applied, and JPEG quality is stepped down until the
    result fits in max_bytes or the quality floor is reached.

    Raises:
        InvalidRequest: the bytes are not an image Pillow can read.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")
            width, height = img.size
            if max(width, height) > max_side:
                scale = max_side / float(max(width, height))
                img = img.resize(
                    (max(1, round(width * scale)), max(1, round(height * scale))),
                    Image.LANCZOS,
                )
            encoded = _encode_jpeg(img, quality)
            while len(encoded) > max_bytes and quality > MIN_JPEG_QUALITY:
                quality = max(MIN_JPEG_QUALITY, quality - 10)
                encoded = _encode_jpeg(img, quality)
            return encoded
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
        raise InvalidRequest("Invalid image data")


def _encode_jpeg(img: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()

"""Image decode/encode helpers and the file, URL and clipboard image sources."""
import base64
import binascii
import io
import logging
import mimetypes
import urllib.parse
from pathlib import Path
from typing import Optional, Union

import httpx
from PIL import Image as PILImage, ImageGrab, UnidentifiedImageError

from sketchpad.core.config import settings
from sketchpad.core.errors import ImageDecodeError, TransportError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")

ImageSource = Union[bytes, str]


def encode_data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(data_url: str) -> bytes:
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:"):
        raise ImageDecodeError("Malformed data URL")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ImageDecodeError("Data URL payload is not valid base64") from exc
    return urllib.parse.unquote_to_bytes(payload)


def image_bytes(source: ImageSource) -> bytes:
    """Raw encoded bytes from either a data URL or bytes."""
    if isinstance(source, str):
        return decode_data_url(source)
    return bytes(source)


def decode_image(source: ImageSource) -> PILImage.Image:
    """Decode into an RGBA Pillow image; ImageDecodeError if the bytes aren't an image."""
    data = image_bytes(source)
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, PILImage.DecompressionBombError, OSError, ValueError) as exc:
        logger.warning("Failed to decode image", extra={"size": len(data)})
        raise ImageDecodeError("Failed to decode image") from exc


def to_png_data_url(img: PILImage.Image) -> str:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return encode_data_url(buf.getvalue(), "image/png")


def sniff_data_url(data: bytes) -> str:
    """Wrap encoded bytes in a data URL with the MIME type Pillow detects."""
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            mime = PILImage.MIME.get(img.format or "", "image/png")
    except (UnidentifiedImageError, PILImage.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError("Failed to decode image") from exc
    return encode_data_url(data, mime)


def validate_image_file(path: Union[str, Path]) -> bool:
    mime, _ = mimetypes.guess_type(str(path))
    return mime in ALLOWED_IMAGE_TYPES


def load_image_from_file(path: Union[str, Path]) -> str:
    """Read an image file and return it as a data URL."""
    path = Path(path)
    if not validate_image_file(path):
        raise ImageDecodeError(f"Unsupported image type: {path.name}")
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ImageDecodeError("Failed to read file") from exc
    mime, _ = mimetypes.guess_type(str(path))
    # Decode once so a corrupt file is rejected here rather than at load time.
    decode_image(data)
    return encode_data_url(data, mime or "image/png")


def load_image_from_url(
    url: str,
    timeout: Optional[float] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> str:
    """Fetch an image over HTTP and return it re-encoded as a PNG data URL."""
    try:
        with httpx.Client(
            follow_redirects=True,
            timeout=timeout or settings.IMPORT_TIMEOUT_S,
            headers={"User-Agent": "sketchpad-studio/0.3"},
            transport=transport,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Failed to load image from URL", extra={"url": url, "error": str(exc)})
        raise TransportError("Failed to load image from URL") from exc
    return to_png_data_url(decode_image(response.content))


def load_image_from_clipboard() -> str:
    """Return the clipboard image (or first copied image file) as a PNG data URL."""
    try:
        content = ImageGrab.grabclipboard()
    except (NotImplementedError, OSError) as exc:
        raise ImageDecodeError("Failed to access clipboard") from exc

    if isinstance(content, PILImage.Image):
        return to_png_data_url(content.convert("RGBA"))
    if isinstance(content, list):
        for filename in content:
            if validate_image_file(filename):
                try:
                    data = Path(filename).read_bytes()
                except OSError as exc:
                    raise ImageDecodeError("Failed to read file") from exc
                return to_png_data_url(decode_image(data))
    raise ImageDecodeError("No image found in clipboard")


def format_file_size(num_bytes: int) -> str:
    if num_bytes == 0:
        return "0 Bytes"
    sizes = ["Bytes", "KB", "MB", "GB"]
    i = 0
    while i < len(sizes) - 1 and num_bytes >= 1024 ** (i + 1):
        i += 1
    value = round(num_bytes / 1024 ** i, 2)
    return f"{value:g} {sizes[i]}"

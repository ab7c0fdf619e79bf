"""Image downloading, decoding and encoding helpers."""

import asyncio
from io import BytesIO
from pathlib import Path

import discord
import requests
from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from nailongwatch.errors import InvalidImage, TransportFailure
from nailongwatch.util.logger import get_logger

logger = get_logger("image_utils")

register_heif_opener()

DOWNLOAD_TIMEOUT = 15
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".heif", ".heic")


def download_image_bytes(url: str) -> bytes:
    """
    Download raw image bytes. Blocks the calling thread; use :func:`fetch_image`
    from async code.

    Args:
        url (str): Image URL.

    Returns:
        bytes: Response body. The format is later detected from these bytes,
            never from response headers.

    Raises:
        TransportFailure: On connection errors, timeouts or non-2xx responses.
    """
    try:
        logger.debug("[DOWNLOAD] Downloading image from %s", url)
        response = requests.get(url, timeout=DOWNLOAD_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise TransportFailure(f"request failed for {url}: {exc}") from exc
    return response.content


async def fetch_image(url: str) -> bytes:
    """Download an image without blocking the event loop."""
    return await asyncio.to_thread(download_image_bytes, url)


def decode_image_bytes(data: bytes, frame_index: int = 0) -> Image.Image:
    """
    Decode image bytes of any supported format into a loaded PIL image.

    Animated formats (GIF, APNG, animated WebP) yield the requested frame,
    the first one by default.

    Raises:
        InvalidImage: If the bytes are not a readable image, the frame index is
            out of range, the image exceeds Pillow's decompression-bomb limit,
            or the image has zero width or height.
    """
    try:
        image = Image.open(BytesIO(data))
        if frame_index:
            image.seek(frame_index)
        image.load()
    except EOFError as exc:
        raise InvalidImage(f"frame index {frame_index} out of range") from exc
    except Image.DecompressionBombError as exc:
        raise InvalidImage(f"image too large: {exc}") from exc
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise InvalidImage(f"cannot decode image: {exc}") from exc

    if image.width == 0 or image.height == 0:
        raise InvalidImage("image has zero dimensions")

    frame = image.convert("RGBA")
    image.close()
    return frame


def save_png(image: Image.Image, path: Path) -> Path:
    """Write an image losslessly as PNG, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")
    return path


def is_image_attachment(attachment: discord.Attachment) -> bool:
    """
    Determine if a Discord attachment is an image.

    Checks the content type first, then reported dimensions, then the file
    extension.
    """
    content_type = (attachment.content_type or "").lower()
    if content_type.startswith("image/"):
        return True
    if attachment.width is not None and attachment.height is not None:
        return True
    filename = (attachment.filename or "").lower()
    return filename.endswith(IMAGE_EXTENSIONS)

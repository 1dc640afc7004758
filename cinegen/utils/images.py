"""Reference image and data URL helpers."""

import base64
import binascii
import re
from io import BytesIO
from typing import NamedTuple, Optional
from PIL import Image, UnidentifiedImageError

from .logger import get_logger
from .errors import CineGenError

logger = get_logger(__name__)

DATA_URL_PREFIX = re.compile(r"^data:(?P<mime>[^;,]*)(?:;[^,]*)?;base64,", re.IGNORECASE)

ALLOWED_FORMATS = ("PNG", "JPEG", "WEBP", "GIF")


class InvalidReferenceImage(CineGenError):
    """Uploaded reference image could not be decoded."""
    pass


class ReferenceImage(NamedTuple):
    """Raw base64 payload plus the mime type that goes with it."""
    data: str
    mime_type: str


def strip_data_url_prefix(image_base64: str) -> str:
    """
    Remove a ``data:<mime>;base64,`` header if present.

    A payload without a header comes back unchanged, so stripping twice
    is the same as stripping once.
    """
    return DATA_URL_PREFIX.sub("", image_base64.strip(), count=1)


def data_url_mime_type(image_base64: str) -> Optional[str]:
    """Mime type declared in a data URL header, or None."""
    match = DATA_URL_PREFIX.match(image_base64.strip())
    if match and match.group("mime"):
        return match.group("mime").lower()
    return None


def parse_reference_image(image_base64: str, default_mime_type: str = "image/png") -> ReferenceImage:
    """Split a reference image into its raw base64 payload and mime type."""
    return ReferenceImage(
        data=strip_data_url_prefix(image_base64),
        mime_type=data_url_mime_type(image_base64) or default_mime_type,
    )


def to_data_url(data_base64: str, mime_type: str = "image/png") -> str:
    """Wrap already-encoded base64 data in a data URL."""
    return f"data:{mime_type};base64,{data_base64}"


def validate_reference_image(image_base64: str) -> str:
    """
    Check that an uploaded reference image decodes to a supported format.

    Args:
        image_base64: Data URL or bare base64 payload

    Returns:
        Detected format name (e.g. 'PNG')

    Raises:
        InvalidReferenceImage: If the payload is not a readable image
    """
    try:
        raw = base64.b64decode(strip_data_url_prefix(image_base64), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidReferenceImage(f"Imagem de referência inválida: {e}")

    try:
        with Image.open(BytesIO(raw)) as image:
            image_format = (image.format or "").upper()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidReferenceImage(f"Imagem de referência inválida: {e}")

    if image_format not in ALLOWED_FORMATS:
        raise InvalidReferenceImage(
            f"Formato de imagem não suportado: {image_format or 'desconhecido'}"
        )

    logger.info(
        "Reference image accepted",
        extra={"format": image_format, "size_kb": round(len(raw) / 1024, 1)},
    )

    return image_format

import base64
import binascii
import logging
from typing import Optional, Tuple

from .errors import StylistError

logger = logging.getLogger(__name__)


class InvalidImagePayload(StylistError):
    user_message = "Could not read the photo. Try a clearer shot."


def parse_data_url(image_data_url: str) -> Tuple[bytes, str]:
    """Split a ``data:<mime>;base64,<payload>`` URL into bytes and MIME type."""
    try:
        header, encoded = image_data_url.split(",", 1)
        if not header.startswith("data:") or ";base64" not in header:
            raise ValueError("not a base64 data URL")
        mime_type = header.split(":", 1)[1].split(";")[0]  # "image/jpeg"
        image_data = base64.b64decode(encoded, validate=True)
    except (ValueError, IndexError, binascii.Error) as e:
        logger.warning(f"Could not parse image data URL: {e}")
        raise InvalidImagePayload(f"malformed data URL: {e}") from e

    if not image_data:
        raise InvalidImagePayload("data URL carries no image data")
    return image_data, mime_type


def to_data_url(image_bytes: Optional[bytes], mime_type: str = "image/png") -> Optional[str]:
    if not image_bytes:
        return None
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"

"""Chart image loading and data-URI helpers."""

import base64
import mimetypes
from pathlib import Path


DEFAULT_MIME_TYPE = "image/png"


def to_data_url(data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    """Encode raw image bytes as a data URI."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def load_chart_image(path: Path) -> str:
    """Read a chart screenshot into a data URI.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = DEFAULT_MIME_TYPE
    return to_data_url(path.read_bytes(), mime_type)


def split_data_url(value: str) -> tuple[str, str]:
    """Split a data URI into (mime_type, base64 payload).

    Bare base64 strings are accepted and reported with the default
    mime type.
    """
    if "base64," not in value:
        return DEFAULT_MIME_TYPE, value.strip()

    header, payload = value.split("base64,", 1)
    mime_type = DEFAULT_MIME_TYPE
    if header.startswith("data:"):
        declared = header[len("data:"):].rstrip(";")
        if declared:
            mime_type = declared
    return mime_type, payload.strip()


def is_remote_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))

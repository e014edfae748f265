"""Parsing and classification of inline `data:` URIs."""

import base64
import binascii

from migrator.media.exceptions import InvalidBase64Error, MalformedURIError
from migrator.media.models import DataURI

DATA_PREFIX = "data:"
EMBEDDED_IMAGE_PREFIX = "data:image/"
DEFAULT_EXTENSION = ".png"

_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def is_embedded_image(value: object) -> bool:
    """Cheap pre-filter: only strings starting with `data:image/` are candidates."""
    return isinstance(value, str) and value.startswith(EMBEDDED_IMAGE_PREFIX)


def decode(value: str) -> DataURI:
    """Parse `data:<mime>[;param...];base64,<payload>` and decode the payload.

    Raises:
        MalformedURIError: missing `data:` prefix, `,` separator or `;base64` marker.
        InvalidBase64Error: payload is not valid standard base64.
    """
    if not value.startswith(DATA_PREFIX):
        raise MalformedURIError("missing 'data:' prefix")
    header, sep, payload = value.partition(",")
    if not sep:
        raise MalformedURIError("missing ',' between header and payload")

    params = header[len(DATA_PREFIX):].split(";")
    if "base64" not in (p.strip().lower() for p in params[1:]):
        raise MalformedURIError("missing ';base64' marker")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidBase64Error(f"invalid base64 payload: {exc}") from exc

    return DataURI(mime_type=params[0].strip().lower(), payload=data)


def encode(payload: bytes, mime_type: str) -> str:
    """Build a base64 data URI for `payload`."""
    encoded = base64.b64encode(payload).decode("ascii")
    return f"{DATA_PREFIX}{mime_type};base64,{encoded}"


def classify_extension(mime_type: str) -> str:
    """Map a MIME type to a file extension.

    Never fails. Unknown types fall back to `.png`, which mislabels
    non-PNG formats such as `image/svg+xml`; kept for compatibility with
    blobs already written by earlier runs.
    """
    return _EXTENSIONS.get(mime_type.strip().lower(), DEFAULT_EXTENSION)

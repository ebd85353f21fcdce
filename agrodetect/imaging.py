"""Encoding of user-selected images into ``ImageData``.

Nothing here inspects the pixels: size and format checks are left to the
analysis service.
"""

import base64
import mimetypes

from agrodetect.models import DEFAULT_MIME_TYPE, ImageData


def _image_mime(mime_type: str | None) -> str | None:
    """Keep only image types; generic ones like octet-stream say nothing."""
    if mime_type and mime_type.strip().lower().startswith("image/"):
        return mime_type.strip()
    return None


def _guess_mime(filename: str | None) -> str | None:
    if not filename:
        return None
    guessed, _ = mimetypes.guess_type(filename)
    return _image_mime(guessed)


def from_bytes(raw: bytes, mime_type: str | None = None, filename: str | None = None) -> ImageData:
    """Base64-encode raw upload bytes.

    A declared image content type wins; otherwise it is guessed from the
    file name, falling back to JPEG.
    """
    mime = _image_mime(mime_type) or _guess_mime(filename) or DEFAULT_MIME_TYPE
    return ImageData(data=base64.b64encode(raw).decode("ascii"), mime_type=mime)


def from_data_uri(uri: str, mime_type: str | None = None) -> ImageData:
    """Split a ``data:<mime>;base64,<payload>`` string (or bare base64).

    Raises ValueError for a data URI without a payload separator.
    """
    uri = uri.strip()
    if not uri.startswith("data:"):
        return ImageData(data=uri, mime_type=_image_mime(mime_type) or DEFAULT_MIME_TYPE)

    header, sep, payload = uri.partition(",")
    if not sep:
        raise ValueError("Malformed data URI: missing ',' separator")
    declared = header[len("data:"):].split(";", 1)[0]
    mime = _image_mime(declared) or _image_mime(mime_type) or DEFAULT_MIME_TYPE
    return ImageData(data=payload, mime_type=mime)

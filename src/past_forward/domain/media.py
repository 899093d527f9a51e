"""Typed binary payloads exchanged with the generation service."""

import base64
import binascii
import re
from dataclasses import dataclass

from past_forward.domain.errors import InvalidInputError

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.S)


@dataclass(frozen=True)
class EncodedMedia:
    """Binary content tagged with its MIME type."""

    mime_type: str
    data: bytes

    @classmethod
    def from_data_url(cls, data_url: str) -> "EncodedMedia":
        """Parse a base64 data URL."""
        match = _DATA_URL_RE.match(data_url.strip())
        if not match:
            raise InvalidInputError(
                "Invalid data URL format. Expected 'data:<mime>;base64,<payload>'"
            )
        try:
            data = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidInputError("Data URL payload is not valid base64") from exc
        return cls(mime_type=match.group("mime"), data=data)

    def to_data_url(self) -> str:
        """Render the payload as a base64 data URL."""
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"

    def __repr__(self) -> str:
        return f"EncodedMedia(mime_type={self.mime_type!r}, size={len(self.data)})"


def validate_image(media: object) -> EncodedMedia:
    """Ensure a value is a non-empty image payload."""
    if not isinstance(media, EncodedMedia):
        raise InvalidInputError("Source image must be an encoded image payload")
    if not media.mime_type.startswith("image/"):
        raise InvalidInputError(f"Unsupported image MIME type: {media.mime_type}")
    if not media.data:
        raise InvalidInputError("Source image is empty")
    return media


def detect_image_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"

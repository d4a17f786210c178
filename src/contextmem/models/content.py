"""Content parts carried by observations and rendered messages.

A part is either a span of text or a media item (an encoded image). Parts
are immutable; the media payload is held as raw bytes and only converted
to base64 at the transport boundary.
"""

from __future__ import annotations

import base64
import binascii
from typing import Annotated
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

from contextmem.errors import CodecError

# Leading signatures of the image formats accepted without an explicit tag
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"\xff\xd8\xff", "jpeg"),
    (b"GIF87a", "gif"),
    (b"GIF89a", "gif"),
)

_DATA_URL_PREFIX = "data:"


def sniff_format(data: bytes) -> str:
    """Return the image format tag for *data* from its magic bytes.

    Raises ``CodecError`` when the bytes match no known signature.
    """
    for signature, fmt in _SIGNATURES:
        if data.startswith(signature):
            return fmt
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    raise CodecError("unable to determine media format")


class TextPart(BaseModel):
    """A span of text."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class MediaPart(BaseModel):
    """An encoded media item, e.g. a screenshot."""

    model_config = ConfigDict(frozen=True)

    type: Literal["media"] = "media"
    format: str = Field(description="Short format tag such as 'png' or 'jpeg'.")
    data: bytes = Field(repr=False, description="Raw encoded image bytes.")

    @field_validator("format")
    @classmethod
    def _normalize_format(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("media format tag must not be empty")
        return normalized

    @classmethod
    def from_bytes(cls, data: bytes, format: str | None = None) -> MediaPart:
        """Wrap raw bytes, sniffing the format when it is not given."""
        return cls(format=format or sniff_format(data), data=data)

    @classmethod
    def from_base64(cls, payload: str, format: str | None = None) -> MediaPart:
        """Decode a base64 payload (a ``data:`` URL prefix is tolerated)."""
        if payload.startswith(_DATA_URL_PREFIX):
            _, _, payload = payload.partition(",")
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise CodecError(f"invalid base64 media payload: {exc}") from exc
        return cls.from_bytes(data, format)

    @property
    def media_type(self) -> str:
        return f"image/{self.format}"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


ContentPart = Annotated[TextPart | MediaPart, Field(discriminator="type")]


def as_part(value: str | TextPart | MediaPart) -> TextPart | MediaPart:
    """Promote a bare string to a ``TextPart``; pass parts through."""
    if isinstance(value, str):
        return TextPart(text=value)
    if isinstance(value, (TextPart, MediaPart)):
        return value
    raise TypeError(f"unsupported content part: {type(value).__name__}")

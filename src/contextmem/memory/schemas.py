"""Transport/storage schema of a serialized memory.

Mirrors the JSON layout::

    {"instructions": "...",
     "observations": [{"source", "role", "timestamp", "data", "options"}]}

``data`` lists content parts: text spans as ``{"type": "text", "text"}``
and media as ``{"type": "media", "format", "storage": "base64", "base64"}``.
``options`` carries the retention policy, when the record has one.
"""

from __future__ import annotations

from typing import Annotated
from typing import Literal

from pydantic import BaseModel
from pydantic import Field

from contextmem.models import RetentionPolicy
from contextmem.models import Role


class StoredText(BaseModel):
    type: Literal["text"] = "text"
    text: str


class StoredMedia(BaseModel):
    type: Literal["media"] = "media"
    format: str
    storage: Literal["base64"] = "base64"
    base64: str


StoredPart = Annotated[StoredText | StoredMedia, Field(discriminator="type")]


class StoredObservation(BaseModel):
    """One serialized log record."""

    source: str
    role: Role
    timestamp: int
    data: list[StoredPart] = Field(default_factory=list)
    options: RetentionPolicy | None = Field(
        default=None,
        description="Retention policy of the record, if any.",
    )


class MemorySnapshot(BaseModel):
    """Full-fidelity snapshot of an engine's log."""

    instructions: str | None = None
    observations: list[StoredObservation] = Field(default_factory=list)

"""Lossless conversion between observations and ``MemorySnapshot``.

Serialization always covers the complete log, regardless of any mask.
Every failure is reported as a ``CodecError`` naming the record index and
aborts the whole operation.
"""

from __future__ import annotations

import binascii
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from contextmem.errors import CodecError
from contextmem.errors import MalformedObservationError
from contextmem.memory.schemas import MemorySnapshot
from contextmem.memory.schemas import StoredMedia
from contextmem.memory.schemas import StoredObservation
from contextmem.memory.schemas import StoredPart
from contextmem.memory.schemas import StoredText
from contextmem.models import ContentPart
from contextmem.models import MediaPart
from contextmem.models import Observation
from contextmem.models import TextPart

# ---------------------------------------------------------------------------
# Content parts
# ---------------------------------------------------------------------------


def encode_part(part: ContentPart) -> StoredPart:
    if isinstance(part, TextPart):
        return StoredText(text=part.text)
    return StoredMedia(format=part.format, base64=part.to_base64())


def decode_part(stored: StoredPart) -> ContentPart:
    if isinstance(stored, StoredText):
        return TextPart(text=stored.text)
    return MediaPart.from_base64(stored.base64, stored.format)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def dump_observations(
    observations: Sequence[Observation], *, instructions: str | None = None
) -> MemorySnapshot:
    """Encode every record of the log into a snapshot."""
    stored: list[StoredObservation] = []
    for index, observation in enumerate(observations):
        try:
            data = [encode_part(part) for part in observation.content]
        except (binascii.Error, ValueError) as exc:
            raise CodecError(f"cannot encode content: {exc}", index=index) from exc
        stored.append(
            StoredObservation(
                source=observation.source,
                role=observation.role,
                timestamp=observation.timestamp,
                data=data,
                options=observation.retention,
            )
        )
    return MemorySnapshot(instructions=instructions, observations=stored)


def snapshot_to_dict(snapshot: MemorySnapshot) -> dict[str, Any]:
    """JSON-compatible dict; absent instructions and options are omitted."""
    return snapshot.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def parse_snapshot(data: MemorySnapshot | Mapping[str, Any]) -> MemorySnapshot:
    """Validate a raw snapshot, pointing at the first invalid record."""
    if isinstance(data, MemorySnapshot):
        return data
    if not isinstance(data, Mapping):
        raise CodecError(f"snapshot must be a mapping, got {type(data).__name__}")

    raw_observations = data.get("observations", [])
    if not isinstance(raw_observations, list):
        raise CodecError("snapshot 'observations' must be a list")

    stored: list[StoredObservation] = []
    for index, raw in enumerate(raw_observations):
        try:
            stored.append(StoredObservation.model_validate(raw))
        except ValidationError as exc:
            raise CodecError(f"invalid record: {exc}", index=index) from exc

    instructions = data.get("instructions")
    if instructions is not None and not isinstance(instructions, str):
        raise CodecError("snapshot 'instructions' must be a string")
    return MemorySnapshot(instructions=instructions, observations=stored)


def load_observations(snapshot: MemorySnapshot) -> list[Observation]:
    """Rebuild records from *snapshot*, preserving their order."""
    observations: list[Observation] = []
    for index, stored in enumerate(snapshot.observations):
        try:
            content = [decode_part(part) for part in stored.data]
            observation = Observation.create(
                stored.source,
                stored.role,
                content,
                retention=stored.options,
                timestamp=stored.timestamp,
            )
        except CodecError as exc:
            raise CodecError(str(exc), index=index) from exc
        except MalformedObservationError as exc:
            raise CodecError(f"malformed record: {exc}", index=index) from exc
        observations.append(observation)
    return observations

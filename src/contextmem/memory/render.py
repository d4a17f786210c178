"""Projection of the visible log into provider-agnostic messages."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel
from pydantic import ConfigDict

from contextmem.errors import CodecError
from contextmem.memory.masking import VisibilityMask
from contextmem.models import ContentPart
from contextmem.models import MediaPart
from contextmem.models import Observation
from contextmem.models import Role
from contextmem.models import TextPart

MediaEncoder = Callable[[MediaPart], Awaitable[MediaPart]]


class Message(BaseModel):
    """One role-tagged, multi-part message ready for a model client."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: tuple[ContentPart, ...]

    def to_dict(self) -> dict:
        """Plain dict form with media payloads as base64."""
        parts: list[dict] = []
        for part in self.content:
            if isinstance(part, TextPart):
                parts.append({"type": "text", "text": part.text})
            else:
                parts.append(
                    {
                        "type": "image",
                        "media_type": part.media_type,
                        "data": part.to_base64(),
                    }
                )
        return {"role": self.role.value, "content": parts}


def format_time_prefix(timestamp: int) -> str:
    """Local wall-clock ``[HH:MM:SS]: `` label for a millisecond timestamp."""
    return f"[{datetime.fromtimestamp(timestamp / 1000).strftime('%H:%M:%S')}]: "


class Renderer:
    """Turns log records into messages.

    Authored records (actions taken, thoughts) get a time-of-day prefix.
    An optional async *media_encoder* transforms every media part; records
    are rendered concurrently and reassembled in log order.
    """

    def __init__(self, media_encoder: MediaEncoder | None = None) -> None:
        self._media_encoder = media_encoder

    async def render(
        self, observations: Sequence[Observation], mask: VisibilityMask
    ) -> list[Message]:
        # The visible set is fixed before any await
        visible = [
            (entry.index, entry.observation)
            for entry in mask.pair(observations)
            if entry.visible
        ]
        return await self._render_all(visible)

    async def render_flat(
        self, observations: Sequence[Observation]
    ) -> list[ContentPart]:
        """Render every record, ignoring masks and message boundaries."""
        messages = await self._render_all(list(enumerate(observations)))
        return [part for message in messages for part in message.content]

    async def _render_all(
        self, entries: list[tuple[int, Observation]]
    ) -> list[Message]:
        """Render records concurrently; results come back in *entries* order.

        The first failure cancels the remaining records and is re-raised
        on its own.
        """
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [
                    group.create_task(self.render_observation(index, observation))
                    for index, observation in entries
                ]
        except ExceptionGroup as failures:
            raise failures.exceptions[0]
        return [task.result() for task in tasks]

    async def render_observation(self, index: int, observation: Observation) -> Message:
        parts: list[ContentPart] = []
        if observation.source_class.is_authored:
            parts.append(TextPart(text=format_time_prefix(observation.timestamp)))
        for part in observation.content:
            if isinstance(part, MediaPart) and self._media_encoder is not None:
                part = await self._encode(index, part)
            parts.append(part)
        return Message(role=observation.role, content=tuple(parts))

    async def _encode(self, index: int, part: MediaPart) -> MediaPart:
        assert self._media_encoder is not None
        try:
            return await self._media_encoder(part)
        except CodecError as exc:
            if exc.index is not None:
                raise
            raise CodecError(str(exc), index=index) from exc
        except Exception as exc:
            raise CodecError(f"media encoding failed: {exc}", index=index) from exc

"""Observation records and their retention policies.

An observation is one immutable entry of the interaction log: a thought,
an action taken, the result of an action, or a snapshot reported by a
connector. Its ``source`` string is classified into a ``SourceClass``
exactly once, when the record is built.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from enum import Enum
from typing import Annotated
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator

from contextmem.errors import MalformedObservationError
from contextmem.models.content import as_part
from contextmem.models.content import ContentPart
from contextmem.models.content import MediaPart
from contextmem.models.content import TextPart

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SourceClass(str, Enum):
    """Provenance class of an observation."""

    action_taken = "action:taken"
    action_result = "action:result"
    thought = "thought"
    connector = "connector"

    @property
    def is_authored(self) -> bool:
        """Whether records of this class were produced by the agent itself."""
        match self:
            case SourceClass.action_taken | SourceClass.thought:
                return True
            case SourceClass.action_result | SourceClass.connector:
                return False

    @classmethod
    def from_source(cls, source: str) -> SourceClass:
        """Resolve the class of a ``<class>`` or ``<class>:<detail>`` source."""
        for member in cls:
            if source == member.value or source.startswith(f"{member.value}:"):
                return member
        raise MalformedObservationError(f"unknown observation source {source!r}")


class Role(str, Enum):
    """Conversational role a record is attributed to when rendered."""

    user = "user"
    assistant = "assistant"


# ---------------------------------------------------------------------------
# Retention policies
# ---------------------------------------------------------------------------


class ThoughtRetention(BaseModel):
    """Keep only the most recent ``limit`` thought records visible.

    ``limit=None`` defers to the engine's configured thought limit.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["thought"] = "thought"
    limit: int | None = Field(default=None, ge=0)


class ScreenshotRetention(BaseModel):
    """Subject the record to the engine-wide screenshot budget."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["screenshot"] = "screenshot"


RetentionPolicy = Annotated[
    ThoughtRetention | ScreenshotRetention, Field(discriminator="kind")
]


# ---------------------------------------------------------------------------
# Observation
# ---------------------------------------------------------------------------


def now_ms() -> int:
    return int(time.time() * 1000)


class Observation(BaseModel):
    """One immutable record of the interaction log."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="Provenance tag, e.g. 'action:taken:click'.")
    source_class: SourceClass = Field(
        description="Class resolved from ``source`` at construction time.",
    )
    role: Role
    timestamp: int = Field(
        default_factory=now_ms,
        description="Creation time in milliseconds since the epoch.",
    )
    content: tuple[ContentPart, ...] = ()
    retention: RetentionPolicy | None = None

    @model_validator(mode="before")
    @classmethod
    def _classify_source(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("source"), str):
            resolved = SourceClass.from_source(data["source"])
            given = data.get("source_class")
            if given is not None and SourceClass(given) is not resolved:
                raise ValueError(
                    f"source_class {given!r} does not match source {data['source']!r}"
                )
            data = {**data, "source_class": resolved}
        return data

    @classmethod
    def create(
        cls,
        source: str,
        role: Role | str,
        content: Iterable[str | TextPart | MediaPart],
        *,
        retention: ThoughtRetention | ScreenshotRetention | None = None,
        timestamp: int | None = None,
    ) -> Observation:
        """Build a record, raising ``MalformedObservationError`` on bad input."""
        source_class = SourceClass.from_source(source)
        try:
            parts = tuple(as_part(part) for part in content)
            role = Role(role)
        except (TypeError, ValueError) as exc:
            raise MalformedObservationError(str(exc)) from exc
        return cls(
            source=source,
            source_class=source_class,
            role=role,
            timestamp=now_ms() if timestamp is None else timestamp,
            content=parts,
            retention=retention,
        )

    # -- factories --

    @classmethod
    def from_thought(
        cls, text: str, *, limit: int | None = None, timestamp: int | None = None
    ) -> Observation:
        return cls.create(
            SourceClass.thought.value,
            Role.assistant,
            [text],
            retention=ThoughtRetention(limit=limit),
            timestamp=timestamp,
        )

    @classmethod
    def from_action_taken(
        cls, action: str, description: str, *, timestamp: int | None = None
    ) -> Observation:
        return cls.create(
            f"{SourceClass.action_taken.value}:{action}",
            Role.assistant,
            [description],
            timestamp=timestamp,
        )

    @classmethod
    def from_action_result(
        cls,
        content: Iterable[str | TextPart | MediaPart],
        *,
        screenshot: bool = False,
        timestamp: int | None = None,
    ) -> Observation:
        return cls.create(
            SourceClass.action_result.value,
            Role.user,
            content,
            retention=ScreenshotRetention() if screenshot else None,
            timestamp=timestamp,
        )

    @classmethod
    def from_connector(
        cls,
        connector: str,
        content: Iterable[str | TextPart | MediaPart],
        *,
        screenshot: bool = False,
        timestamp: int | None = None,
    ) -> Observation:
        """Snapshot reported by an environment connector (e.g. a browser)."""
        return cls.create(
            f"{SourceClass.connector.value}:{connector}",
            Role.user,
            content,
            retention=ScreenshotRetention() if screenshot else None,
            timestamp=timestamp,
        )

    # -- accessors --

    @property
    def retention_kind(self) -> str | None:
        return self.retention.kind if self.retention is not None else None

    def to_text(self) -> str:
        """Join the text parts; media items appear as a short placeholder."""
        chunks: list[str] = []
        for part in self.content:
            if isinstance(part, TextPart):
                chunks.append(part.text)
            else:
                chunks.append(f"[{part.media_type}]")
        return "".join(chunks)

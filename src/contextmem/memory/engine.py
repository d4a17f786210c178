"""The context-memory engine.

``AgentMemory`` owns the observation log, the configuration and the mask
cached between renders. Masks are only evaluated when a render runs, and
the cached mask is replaced only after a render completes successfully.
Loading a snapshot resets the cached mask.

The engine has a single logical owner: appends and renders must not
interleave from several callers.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any

from contextmem.config import MemoryConfig
from contextmem.errors import CodecError
from contextmem.memory.log import ObservationLog
from contextmem.memory.masking import MaskDecision
from contextmem.memory.masking import MaskEvaluator
from contextmem.memory.masking import MaskState
from contextmem.memory.masking import VisibilityMask
from contextmem.memory.render import MediaEncoder
from contextmem.memory.render import Message
from contextmem.memory.render import Renderer
from contextmem.memory.schemas import MemorySnapshot
from contextmem.memory.serde import dump_observations
from contextmem.memory.serde import load_observations
from contextmem.memory.serde import parse_snapshot
from contextmem.memory.serde import snapshot_to_dict
from contextmem.models import ContentPart
from contextmem.models import MediaPart
from contextmem.models import Observation
from contextmem.models import Role
from contextmem.models import ScreenshotRetention
from contextmem.models import SourceClass
from contextmem.models import TextPart
from contextmem.models import ThoughtRetention
from contextmem.observability import record_latency
from contextmem.observability import record_mask_event

logger = logging.getLogger(__name__)


class AgentMemory:
    """Interaction log plus the visibility logic that renders it."""

    def __init__(
        self,
        config: MemoryConfig | None = None,
        *,
        media_encoder: MediaEncoder | None = None,
    ) -> None:
        self._config = config or MemoryConfig()
        self._instructions = self._config.instructions
        self._log = ObservationLog()
        self._evaluator = MaskEvaluator(self._config)
        self._renderer = Renderer(media_encoder)
        self._frozen_mask: VisibilityMask | None = None

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any] | None = None,
        *,
        media_encoder: MediaEncoder | None = None,
    ) -> AgentMemory:
        """Build an engine from the camelCase options mapping."""
        return cls(MemoryConfig.from_options(options), media_encoder=media_encoder)

    # -- properties --

    @property
    def config(self) -> MemoryConfig:
        return self._config

    @property
    def instructions(self) -> str | None:
        return self._instructions

    @property
    def min_screenshots(self) -> int:
        return self._config.min_screenshots

    @property
    def max_screenshots(self) -> int:
        return self._config.max_screenshots

    @property
    def observations(self) -> tuple[Observation, ...]:
        return self._log.snapshot()

    @property
    def mask_state(self) -> MaskState:
        return self._evaluator.state(self._log.snapshot(), self._frozen_mask)

    def __len__(self) -> int:
        return len(self._log)

    # -- write --

    def append(self, observation: Observation, *, allow_empty: bool = False) -> None:
        """Add a record to the end of the log."""
        self._log.append(observation, allow_empty=allow_empty)

    def record(
        self,
        source: str,
        role: Role | str,
        content: Iterable[str | TextPart | MediaPart],
        *,
        retention: ThoughtRetention | ScreenshotRetention | None = None,
        timestamp: int | None = None,
    ) -> Observation:
        """Build a record from raw producer input, append it and return it."""
        observation = Observation.create(
            source, role, content, retention=retention, timestamp=timestamp
        )
        self.append(observation)
        return observation

    def record_thought(self, text: str) -> Observation:
        observation = Observation.from_thought(text, limit=self._config.thought_limit)
        self.append(observation)
        return observation

    # -- read --

    def is_empty(self) -> bool:
        return self._log.is_empty()

    def last_matching(
        self, predicate: Callable[[Observation], bool]
    ) -> Observation | None:
        return self._log.last_matching(predicate)

    def last_thought(self) -> str | None:
        """Text of the most recent thought, or ``None`` if there is none."""
        observation = self._log.last_matching(
            lambda obs: obs.source_class is SourceClass.thought
        )
        return observation.to_text() if observation is not None else None

    def current_mask(self) -> VisibilityMask:
        """Mask the next render would apply, without committing it."""
        return self._evaluator.evaluate(self._log.snapshot(), self._frozen_mask).mask

    # -- render --

    async def render(self) -> list[Message]:
        """Render the visible records as messages, in log order."""
        started = time.perf_counter()
        ok = False
        try:
            observations = self._log.snapshot()
            result = self._evaluator.evaluate(observations, self._frozen_mask)
            messages = await self._renderer.render(observations, result.mask)

            record_mask_event(f"mask.{result.decision.value}")
            if result.decision is MaskDecision.batch_drop:
                logger.debug(
                    "Screenshot batch drop: %d of %d records visible",
                    result.mask.visible_count,
                    len(result.mask),
                )
            if self._config.prompt_caching:
                self._frozen_mask = result.mask
            ok = True
            return messages
        finally:
            record_latency(
                operation="memory.render",
                duration_ms=(time.perf_counter() - started) * 1000,
                ok=ok,
            )

    async def render_flat(self) -> list[ContentPart]:
        """All content parts of every record, masked or not.

        Intended for debugging dumps; never hand this to a model.
        """
        return await self._renderer.render_flat(self._log.snapshot())

    # -- serialization --

    def export(self) -> dict[str, Any]:
        """JSON-compatible snapshot of the complete log."""
        started = time.perf_counter()
        ok = False
        try:
            snapshot = dump_observations(
                self._log.snapshot(), instructions=self._instructions
            )
            data = snapshot_to_dict(snapshot)
            ok = True
            return data
        finally:
            record_latency(
                operation="memory.export",
                duration_ms=(time.perf_counter() - started) * 1000,
                ok=ok,
            )

    def export_json(self) -> str:
        return json.dumps(self.export())

    def load(self, snapshot: MemorySnapshot | Mapping[str, Any]) -> None:
        """Replace the log with the records of *snapshot*.

        The cached mask is discarded. On failure the engine is left
        untouched.
        """
        started = time.perf_counter()
        ok = False
        try:
            parsed = parse_snapshot(snapshot)
            observations = load_observations(parsed)

            self._log.replace(observations)
            self._frozen_mask = None
            if parsed.instructions is not None:
                self._instructions = parsed.instructions
            ok = True
            logger.info("Loaded %d observations into memory", len(observations))
        finally:
            record_latency(
                operation="memory.load",
                duration_ms=(time.perf_counter() - started) * 1000,
                ok=ok,
            )

    def load_json(self, text: str) -> None:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CodecError(f"snapshot is not valid JSON: {exc}") from exc
        self.load(data)

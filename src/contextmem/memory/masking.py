"""Visibility masks and the retention-aware mask evaluator.

A mask holds one boolean per log record. The evaluator either reuses the
previous mask (prompt-cache stability) or recomputes one from scratch by
applying every retention policy to the log.

With stability enabled, screenshot visibility only tightens in discrete
batches: the previous mask is kept, padded with the newly appended records,
until the number of visible screenshots exceeds ``max_screenshots``. At that
point the mask is recomputed and screenshots snap down to
``min_screenshots``, so a long run of renders shares an identical prefix.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from contextmem.config import MemoryConfig
from contextmem.models import Observation
from contextmem.models import ScreenshotRetention
from contextmem.models import ThoughtRetention

logger = logging.getLogger(__name__)


class MaskDecision(str, Enum):
    """How the evaluator produced a mask."""

    reuse = "reuse"
    batch_drop = "batch_drop"
    recompute = "recompute"


class MaskState(str, Enum):
    """State of the mask cached by an engine between renders."""

    no_mask = "no_mask"
    frozen = "frozen"
    pending_drop = "pending_drop"


class MaskedObservation(NamedTuple):
    """A log record paired with its visibility decision."""

    index: int
    observation: Observation
    visible: bool


@dataclass(frozen=True)
class VisibilityMask:
    """Immutable, index-aligned visibility decision over a log."""

    bits: tuple[bool, ...] = ()

    @classmethod
    def all_visible(cls, length: int) -> VisibilityMask:
        return cls((True,) * length)

    def __len__(self) -> int:
        return len(self.bits)

    def __iter__(self) -> Iterator[bool]:
        return iter(self.bits)

    def __getitem__(self, index: int) -> bool:
        return self.bits[index]

    @property
    def visible_count(self) -> int:
        return sum(self.bits)

    def padded(self, length: int) -> VisibilityMask:
        """Extend to *length*, marking the new trailing records visible."""
        if length < len(self.bits):
            raise ValueError(
                f"cannot pad a mask of length {len(self.bits)} down to {length}"
            )
        return VisibilityMask(self.bits + (True,) * (length - len(self.bits)))

    def pair(self, observations: Sequence[Observation]) -> list[MaskedObservation]:
        """Pair each record with its bit; lengths must match exactly."""
        if len(observations) != len(self.bits):
            raise ValueError(
                f"mask length {len(self.bits)} does not match log length "
                f"{len(observations)}"
            )
        return [
            MaskedObservation(index, observation, visible)
            for index, (observation, visible) in enumerate(
                zip(observations, self.bits, strict=True)
            )
        ]


@dataclass(frozen=True)
class MaskResult:
    """Output of one evaluation."""

    mask: VisibilityMask
    decision: MaskDecision


class MaskEvaluator:
    """Computes visibility masks from a log and the engine configuration."""

    def __init__(self, config: MemoryConfig) -> None:
        self._config = config

    def evaluate(
        self,
        observations: Sequence[Observation],
        previous: VisibilityMask | None = None,
    ) -> MaskResult:
        """Return the mask to apply to *observations* for this render.

        *previous* is only consulted when prompt caching is enabled.
        """
        if self._config.prompt_caching and previous is not None:
            padded = previous.padded(len(observations))
            visible = count_visible_screenshots(observations, padded)
            if visible <= self._config.max_screenshots:
                logger.debug(
                    "Reusing frozen mask (visible_screenshots=%d, length=%d)",
                    visible,
                    len(padded),
                )
                return MaskResult(padded, MaskDecision.reuse)
            logger.debug(
                "Batch drop: %d visible screenshots exceed max %d",
                visible,
                self._config.max_screenshots,
            )
            return MaskResult(self.recompute(observations), MaskDecision.batch_drop)

        return MaskResult(self.recompute(observations), MaskDecision.recompute)

    def recompute(self, observations: Sequence[Observation]) -> VisibilityMask:
        """Apply every retention policy from scratch.

        Pure function of the log and the configuration.
        """
        bits = [True] * len(observations)
        thoughts_seen = 0
        screenshots_seen = 0

        # Newest first so each record's rank within its kind is known
        for index in range(len(observations) - 1, -1, -1):
            retention = observations[index].retention
            if isinstance(retention, ThoughtRetention):
                limit = (
                    retention.limit
                    if retention.limit is not None
                    else self._config.thought_limit
                )
                bits[index] = thoughts_seen < limit
                thoughts_seen += 1
            elif isinstance(retention, ScreenshotRetention):
                bits[index] = screenshots_seen < self._config.min_screenshots
                screenshots_seen += 1

        return VisibilityMask(tuple(bits))

    def state(
        self,
        observations: Sequence[Observation],
        previous: VisibilityMask | None,
    ) -> MaskState:
        """Classify the cached *previous* mask against the current log."""
        if previous is None or not self._config.prompt_caching:
            return MaskState.no_mask
        padded = previous.padded(len(observations))
        if count_visible_screenshots(observations, padded) > self._config.max_screenshots:
            return MaskState.pending_drop
        return MaskState.frozen


def count_visible_screenshots(
    observations: Sequence[Observation], mask: VisibilityMask
) -> int:
    """Count records both visible in *mask* and under screenshot retention."""
    return sum(
        1
        for _, observation, visible in mask.pair(observations)
        if visible and isinstance(observation.retention, ScreenshotRetention)
    )

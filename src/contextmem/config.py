"""Engine configuration.

A frozen dataclass with the defaults of the memory engine. Options are
supplied once at construction time, either directly or from a plain
mapping using the camelCase keys exposed to callers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from contextmem.errors import ConfigurationError

DEFAULT_THOUGHT_LIMIT = 20
DEFAULT_MIN_SCREENSHOTS = 3
DEFAULT_MAX_SCREENSHOTS = 12

_OPTION_KEYS = {
    "instructions": "instructions",
    "promptCaching": "prompt_caching",
    "prompt_caching": "prompt_caching",
    "thoughtLimit": "thought_limit",
    "thought_limit": "thought_limit",
    "minScreenshots": "min_screenshots",
    "min_screenshots": "min_screenshots",
    "maxScreenshots": "max_screenshots",
    "max_screenshots": "max_screenshots",
}


@dataclass(frozen=True)
class MemoryConfig:
    """Settings of one ``AgentMemory`` instance."""

    instructions: str | None = None
    prompt_caching: bool = False
    thought_limit: int = DEFAULT_THOUGHT_LIMIT
    # Screenshots kept after a batch drop
    min_screenshots: int = DEFAULT_MIN_SCREENSHOTS
    # A batch drop triggers once visible screenshots exceed this
    max_screenshots: int = DEFAULT_MAX_SCREENSHOTS

    def __post_init__(self) -> None:
        if self.instructions is not None and not isinstance(self.instructions, str):
            raise ConfigurationError("instructions must be a string")
        if not isinstance(self.prompt_caching, bool):
            raise ConfigurationError(
                f"prompt_caching must be a bool, got {self.prompt_caching!r}"
            )
        for name in ("thought_limit", "min_screenshots", "max_screenshots"):
            value = getattr(self, name)
            # bool is an int subclass; True is not a threshold
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an int, got {value!r}")
        if self.thought_limit < 0:
            raise ConfigurationError("thought_limit must be >= 0")
        if self.min_screenshots < 0 or self.max_screenshots < 0:
            raise ConfigurationError("screenshot thresholds must be >= 0")
        if self.min_screenshots > self.max_screenshots:
            raise ConfigurationError(
                f"min_screenshots ({self.min_screenshots}) must not exceed "
                f"max_screenshots ({self.max_screenshots})"
            )

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None) -> MemoryConfig:
        """Build a config from a plain options mapping.

        ``None`` values fall back to the defaults. Unrecognized keys are
        rejected rather than ignored.
        """
        if not options:
            return cls()

        unknown = sorted(key for key in options if key not in _OPTION_KEYS)
        if unknown:
            raise ConfigurationError(f"unknown memory options: {', '.join(unknown)}")

        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            if value is None:
                continue
            kwargs[_OPTION_KEYS[key]] = value
        return cls(**kwargs)

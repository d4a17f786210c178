"""Context memory for LLM agents.

Accumulates an append-only log of observations and decides, on each
render, which of them are shown to the model while keeping the rendered
prefix stable for provider-side prompt caching.
"""

from contextmem.config import MemoryConfig
from contextmem.errors import CodecError
from contextmem.errors import ConfigurationError
from contextmem.errors import ContextMemError
from contextmem.errors import MalformedObservationError
from contextmem.memory import AgentMemory
from contextmem.memory import Message
from contextmem.models import MediaPart
from contextmem.models import Observation
from contextmem.models import Role
from contextmem.models import ScreenshotRetention
from contextmem.models import SourceClass
from contextmem.models import TextPart
from contextmem.models import ThoughtRetention

__all__ = [
    "AgentMemory",
    "CodecError",
    "ConfigurationError",
    "ContextMemError",
    "MalformedObservationError",
    "MediaPart",
    "MemoryConfig",
    "Message",
    "Observation",
    "Role",
    "ScreenshotRetention",
    "SourceClass",
    "TextPart",
    "ThoughtRetention",
]

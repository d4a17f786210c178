"""Memory domain: observation log, masking, rendering and serialization."""

from __future__ import annotations

from contextmem.memory.engine import AgentMemory
from contextmem.memory.log import ObservationLog
from contextmem.memory.masking import MaskDecision
from contextmem.memory.masking import MaskedObservation
from contextmem.memory.masking import MaskEvaluator
from contextmem.memory.masking import MaskResult
from contextmem.memory.masking import MaskState
from contextmem.memory.masking import VisibilityMask
from contextmem.memory.render import format_time_prefix
from contextmem.memory.render import Message
from contextmem.memory.render import Renderer
from contextmem.memory.schemas import MemorySnapshot
from contextmem.memory.schemas import StoredObservation

__all__ = [
    "AgentMemory",
    "MaskDecision",
    "MaskEvaluator",
    "MaskResult",
    "MaskState",
    "MaskedObservation",
    "MemorySnapshot",
    "Message",
    "ObservationLog",
    "Renderer",
    "StoredObservation",
    "VisibilityMask",
    "format_time_prefix",
]

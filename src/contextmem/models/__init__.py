"""Models domain: observation records and content parts."""

from contextmem.models.content import as_part
from contextmem.models.content import ContentPart
from contextmem.models.content import MediaPart
from contextmem.models.content import sniff_format
from contextmem.models.content import TextPart
from contextmem.models.observation import now_ms
from contextmem.models.observation import Observation
from contextmem.models.observation import RetentionPolicy
from contextmem.models.observation import Role
from contextmem.models.observation import ScreenshotRetention
from contextmem.models.observation import SourceClass
from contextmem.models.observation import ThoughtRetention

__all__ = [
    # Content
    "ContentPart",
    "MediaPart",
    "TextPart",
    "as_part",
    "sniff_format",
    # Observations
    "Observation",
    "RetentionPolicy",
    "Role",
    "ScreenshotRetention",
    "SourceClass",
    "ThoughtRetention",
    "now_ms",
]

"""Exception hierarchy for the context-memory engine."""

from __future__ import annotations


class ContextMemError(Exception):
    """Base class for every error raised by ``contextmem``."""


class ConfigurationError(ContextMemError, ValueError):
    """Raised when engine options are inconsistent or unknown."""


class MalformedObservationError(ContextMemError, ValueError):
    """Raised when a record cannot be admitted to the observation log."""


class CodecError(ContextMemError):
    """Raised when a content part cannot be encoded or decoded.

    ``index`` is the position of the offending record in the log (or in the
    snapshot being loaded), ``None`` when the failure is not tied to one.
    """

    def __init__(self, message: str, *, index: int | None = None) -> None:
        self.index = index
        if index is not None:
            message = f"observation {index}: {message}"
        super().__init__(message)

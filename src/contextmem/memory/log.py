"""Append-only observation log."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Iterator

from contextmem.errors import MalformedObservationError
from contextmem.models import Observation


class ObservationLog:
    """Ordered, append-only sequence of observations.

    Log order is insertion order, which is also model turn order;
    timestamps never reorder it. The only bulk mutation is ``replace``,
    used when a snapshot is loaded.
    """

    def __init__(self, observations: Iterable[Observation] = ()) -> None:
        self._observations: list[Observation] = []
        for observation in observations:
            self.append(observation)

    def append(self, observation: Observation, *, allow_empty: bool = False) -> None:
        """Add *observation* at the end of the log.

        Records without any content part are rejected unless *allow_empty*
        is set.
        """
        if not isinstance(observation, Observation):
            raise MalformedObservationError(
                f"expected an Observation, got {type(observation).__name__}"
            )
        if not observation.content and not allow_empty:
            raise MalformedObservationError(
                f"observation from {observation.source!r} has no content"
            )
        self._observations.append(observation)

    def replace(self, observations: Iterable[Observation]) -> None:
        """Swap the whole log for *observations*, preserving their order."""
        self._observations = list(observations)

    def is_empty(self) -> bool:
        return not self._observations

    def last_matching(
        self, predicate: Callable[[Observation], bool]
    ) -> Observation | None:
        """Return the most recent record satisfying *predicate*, or ``None``."""
        for observation in reversed(self._observations):
            if predicate(observation):
                return observation
        return None

    def snapshot(self) -> tuple[Observation, ...]:
        """Return an immutable view of the current log."""
        return tuple(self._observations)

    def __len__(self) -> int:
        return len(self._observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self._observations)

    def __getitem__(self, index: int) -> Observation:
        return self._observations[index]

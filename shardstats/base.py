"""Capability protocol shared by the shardstats aggregators.

Aggregators are independent classes; nothing inherits from a common base.
Each one satisfies the small :class:`Aggregator` protocol:

- accumulate: ingest one batch of records (may be called many times)
- merge: combine with another aggregator of the same kind and configuration
- finalize: produce the externally visible answer
- reset: return to the initial empty state before the next logical group

and moves through the same lifecycle, described by :class:`AggregatorState`.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable

from shardstats.errors import AggregatorStateError, RecordShapeError

R = TypeVar("R", covariant=True)


class AggregatorState(Enum):
    """Lifecycle of an aggregator instance.

    EMPTY: nothing accumulated since construction or the last reset.
    STREAMING: at least one record accumulated.
    FINALIZED: the answer was extracted; accumulate is rejected until reset.
    """

    EMPTY = "empty"
    STREAMING = "streaming"
    FINALIZED = "finalized"


@runtime_checkable
class Aggregator(Protocol[R]):
    """Protocol for combiner-friendly stateful aggregators."""

    @property
    def state(self) -> AggregatorState:
        """Current lifecycle state."""
        ...

    def accumulate(self, batch: Iterable[Any]) -> None:
        """Ingest a batch of records."""
        ...

    def merge(self, other: Any) -> Any:
        """Combine with another aggregator of the same kind."""
        ...

    def finalize(self) -> R:
        """Return the answer for everything accumulated so far."""
        ...

    def reset(self) -> None:
        """Return to the EMPTY state."""
        ...


def ensure_accepting(state: AggregatorState, owner: object) -> None:
    """Raise AggregatorStateError if ``owner`` is finalized."""
    if state is AggregatorState.FINALIZED:
        raise AggregatorStateError(
            f"{type(owner).__name__} is finalized; call reset() before accumulating again"
        )


def compare(left: Any, right: Any) -> int:
    """Three-way comparison returning -1, 0 or 1.

    Raises:
        RecordShapeError: If the two values cannot be ordered.
    """
    try:
        if left < right:
            return -1
        if left > right:
            return 1
        return 0
    except TypeError as exc:
        raise RecordShapeError(f"Cannot compare {left!r} with {right!r}: {exc}") from exc

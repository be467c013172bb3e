"""Weighted reservoir sampling that survives sharding and merging.

A weighted reservoir keeps k items from a stream of (item, weight) pairs,
sampled without replacement with inclusion probability driven by weight.
Every accepted item is tagged with a random priority key drawn once from a
weight-sensitive distribution; the reservoir is simply the k items with the
largest keys seen so far.

Because keys are immutable and context-free, two reservoirs filled from
disjoint shards merge by keeping the top-k keys of their union, which is
exactly the reservoir a single pass over both shards would have produced
given the same draws. The merge is therefore associative and commutative
and can run at any level of a combiner tree.

Key properties:
- Space: O(k)
- Insert: O(log k)
- Merge: O(k log k)
- Equal weights reduce to uniform k-of-n sampling without replacement

Priority key: u ~ U(0, 1), key = ln(u) / weight. This is the logarithm of
the A-Res key u ** (1 / weight), with the same ordering and no underflow for
large weights. The formula is fixed; partial states record its name and
refuse to merge with states drawn under a different formula.

Reference:
    Efraimidis, Spirakis. "Weighted random sampling with a reservoir" (2006)
"""

from __future__ import annotations

import heapq
import logging
import math
import random
from collections.abc import Iterable, Iterator, Sequence
from numbers import Real
from typing import TYPE_CHECKING, Any

from shardstats.base import AggregatorState, ensure_accepting
from shardstats.config import validate_capacity, validate_weight_field_index
from shardstats.errors import ConfigurationError, InvalidWeightError, RecordShapeError
from shardstats.partials import PRIORITY_SCHEME, ReservoirState, ScoredItem

if TYPE_CHECKING:
    from shardstats.config import ReservoirConfig

logger = logging.getLogger(__name__)


class WeightedReservoir:
    """Fixed-capacity weighted sample of a record stream.

    Args:
        capacity: Maximum number of sampled items. Must be >= 1.
        weight_field_index: Index of the weight inside each record; required
            by :meth:`accumulate`, unused by :meth:`insert`.
        seed: Seed for a new instance-local generator.
        rng: Generator to draw priority keys from. Takes precedence over
            seed. The reservoir never touches the module-level generator.

    Raises:
        ConfigurationError: If capacity is not positive or the index negative.

    Example:
        reservoir = WeightedReservoir(capacity=2, weight_field_index=1, seed=7)
        reservoir.accumulate([("a", 100.0), ("b", 1.0), ("c", 5.0)])
        sample = reservoir.value()
    """

    def __init__(
        self,
        capacity: int,
        weight_field_index: int | None = None,
        *,
        seed: int | None = None,
        rng: random.Random | None = None,
    ):
        self._capacity = validate_capacity(capacity)
        self._weight_field_index = validate_weight_field_index(weight_field_index)
        self._rng = rng if rng is not None else random.Random(seed)
        # Min-heap of (priority, sequence, entry); the sequence keeps entries
        # with equal priority from being compared by payload.
        self._heap: list[tuple[float, int, ScoredItem]] = []
        self._sequence = 0
        self._seen = 0
        self._state = AggregatorState.EMPTY

    @classmethod
    def from_config(cls, config: ReservoirConfig, *, rng: random.Random | None = None) -> WeightedReservoir:
        return cls(config.capacity, config.weight_field_index, seed=config.seed, rng=rng)

    @classmethod
    def from_partial(
        cls,
        partial: ReservoirState,
        weight_field_index: int | None = None,
        *,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> WeightedReservoir:
        """Rebuild a reservoir holding the entries of ``partial``."""
        if partial.scheme != PRIORITY_SCHEME:
            raise ConfigurationError(
                f"Cannot load reservoir drawn with priority scheme {partial.scheme!r}; "
                f"expected {PRIORITY_SCHEME!r}"
            )
        reservoir = cls(partial.capacity, weight_field_index, seed=seed, rng=rng)
        for entry in partial.entries:
            reservoir._offer(entry)
        if partial.entries:
            reservoir._state = AggregatorState.STREAMING
        return reservoir

    @property
    def capacity(self) -> int:
        """Maximum number of items in the sample."""
        return self._capacity

    @property
    def weight_field_index(self) -> int | None:
        return self._weight_field_index

    @property
    def state(self) -> AggregatorState:
        return self._state

    @property
    def item_count(self) -> int:
        """Items accepted by insert since the last reset (not sample size)."""
        return self._seen

    @property
    def sample_size(self) -> int:
        return len(self._heap)

    @property
    def is_full(self) -> bool:
        return len(self._heap) >= self._capacity

    @property
    def min_priority(self) -> float | None:
        """Smallest resident priority key, the bar a new item must clear when full."""
        return self._heap[0][0] if self._heap else None

    def insert(self, item: Any, weight: float) -> bool:
        """Offer one item with its weight.

        Returns:
            True if the item entered the reservoir, False if it was discarded.

        Raises:
            InvalidWeightError: If weight is non-numeric, non-finite or <= 0.
            AggregatorStateError: If the reservoir was already finalized.
        """
        ensure_accepting(self._state, self)
        w = _validate_weight(weight)
        self._state = AggregatorState.STREAMING
        self._seen += 1
        return self._offer(ScoredItem(self._draw_priority(w), item))

    def accumulate(self, batch: Iterable[Sequence[Any]]) -> None:
        """Insert every record of ``batch``, reading weights at weight_field_index.

        Raises:
            ConfigurationError: If no weight_field_index was configured.
            RecordShapeError: If a record has no field at weight_field_index.
            InvalidWeightError: If a weight is invalid.
        """
        ensure_accepting(self._state, self)
        index = self._weight_field_index
        if index is None:
            raise ConfigurationError("weight_field_index is required to accumulate records")
        for record in batch:
            try:
                weight = record[index]
            except IndexError:
                raise RecordShapeError(
                    f"The record size is no more than the weight field index: {index}, record: {record!r}"
                ) from None
            except (TypeError, KeyError):
                raise RecordShapeError(
                    f"Cannot read weight field {index} from record {record!r}"
                ) from None
            w = _validate_weight(weight, record)
            self._state = AggregatorState.STREAMING
            self._seen += 1
            self._offer(ScoredItem(self._draw_priority(w), record))

    def _draw_priority(self, weight: float) -> float:
        u = self._rng.random()
        while u == 0.0:
            u = self._rng.random()
        return math.log(u) / weight

    def _offer(self, entry: ScoredItem) -> bool:
        self._sequence += 1
        node = (entry.priority, self._sequence, entry)
        if len(self._heap) < self._capacity:
            heapq.heappush(self._heap, node)
            return True
        if entry.priority > self._heap[0][0]:
            heapq.heapreplace(self._heap, node)
            return True
        return False

    def value(self) -> list[Any]:
        """Return the sampled items and finalize the reservoir.

        The list carries no ordering guarantee. Repeated calls are allowed.
        """
        self._state = AggregatorState.FINALIZED
        return [entry.item for _, _, entry in self._heap]

    finalize = value

    def scored_items(self) -> list[ScoredItem]:
        """Resident entries, highest priority first."""
        return [entry for _, _, entry in sorted(self._heap, key=lambda node: (-node[0], node[1]))]

    def to_partial(self) -> ReservoirState:
        """Snapshot the reservoir as a transportable partial state."""
        return ReservoirState(capacity=self._capacity, entries=tuple(self.scored_items()))

    def merge(self, other: WeightedReservoir) -> WeightedReservoir:
        """Return a new reservoir holding the top-k priorities of both.

        The samples and counters of both inputs are left as they were. The
        result gets its own generator, seeded with 64 bits drawn from this
        reservoir's generator, so merging advances that generator by one
        draw. ``other``'s generator is not touched.

        Raises:
            TypeError: If other is not a WeightedReservoir.
            ConfigurationError: If the capacities differ.
        """
        if not isinstance(other, WeightedReservoir):
            raise TypeError(f"Can only merge with WeightedReservoir, got {type(other).__name__}")
        if other._capacity != self._capacity:
            raise ConfigurationError(
                f"Cannot merge: capacity differs ({self._capacity} vs {other._capacity})"
            )
        merged_state = self.to_partial().merge(other.to_partial())
        merged = WeightedReservoir.from_partial(
            merged_state,
            self._weight_field_index,
            rng=random.Random(self._rng.getrandbits(64)),
        )
        merged._seen = self._seen + other._seen
        logger.debug(
            "Merged reservoirs: %d + %d residents -> %d (capacity %d)",
            len(self._heap),
            len(other._heap),
            merged.sample_size,
            self._capacity,
        )
        return merged

    def reset(self) -> None:
        """Empty the reservoir for the next logical group."""
        self._heap.clear()
        self._sequence = 0
        self._seen = 0
        self._state = AggregatorState.EMPTY

    cleanup = reset

    def __iter__(self) -> Iterator[Any]:
        return iter([entry.item for _, _, entry in self._heap])

    def __len__(self) -> int:
        return len(self._heap)

    def __repr__(self) -> str:
        return (
            f"WeightedReservoir(capacity={self._capacity}, "
            f"sampled={len(self._heap)}, "
            f"seen={self._seen})"
        )


def _validate_weight(weight: Any, record: Any = None) -> float:
    if isinstance(weight, bool) or not isinstance(weight, Real):
        raise InvalidWeightError(
            f"Expect the weight to be numeric (int, float), but instead found "
            f"{type(weight).__name__}: {weight!r}",
            weight,
            record,
        )
    w = float(weight)
    if not math.isfinite(w) or w <= 0.0:
        raise InvalidWeightError(
            f"Invalid weight {weight!r}: weights must be finite and > 0", weight, record
        )
    return w

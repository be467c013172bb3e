"""Initial / Intermediate / Final adapters for combiner-style execution.

An algebraic aggregation splits one logical aggregation into three stages:

- initial(batch): run the normal accumulate path over one shard and emit a
  transportable partial state instead of the answer
- intermediate(partials): merge any number of partials (each possibly the
  output of an earlier intermediate call) into one partial of the same shape
- final(partial): turn a fully merged partial into the answer

For every adapter here, running initial once over all data and then final
gives the same answer as running initial per shard and intermediate over
the results in any grouping or order. Counts merge by summation, reservoirs
by keeping the top-k priority keys.

Example:
    aggregation = ConditionalEntropyAggregation(policy="empirical", base="2")
    partials = [aggregation.initial(shard) for shard in shards]
    merged = aggregation.intermediate(partials)
    h_y_given_x = aggregation.final(merged)
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from shardstats.config import (
    EntropyConfig,
    ReservoirConfig,
    validate_capacity,
    validate_weight_field_index,
)
from shardstats.entropy.conditional import ConditionalEntropy
from shardstats.entropy.estimators import EMPIRICAL, create_estimator
from shardstats.entropy.streaming import CountEntropy, StreamingEntropy
from shardstats.errors import ConfigurationError, RecordShapeError
from shardstats.partials import CountProfile, ReservoirState, SymbolCounts
from shardstats.sampling.reservoir import WeightedReservoir

logger = logging.getLogger(__name__)

S = TypeVar("S")
R = TypeVar("R")


class AlgebraicAggregation(ABC, Generic[S, R]):
    """Base class for three-stage aggregations.

    Subclasses define the partial type, how a shard becomes a partial and
    how a merged partial becomes the answer. Merging itself is delegated to
    the partial's own ``merge``.
    """

    partial_type: type

    @abstractmethod
    def initial(self, batch: Iterable[Any]) -> S:
        """Aggregate one shard into a partial state."""

    @abstractmethod
    def empty(self) -> S:
        """The partial of a shard with no records (identity for merging)."""

    @abstractmethod
    def final(self, partial: S) -> R:
        """Extract the answer from a fully merged partial."""

    def check_partial(self, partial: Any) -> S:
        if not isinstance(partial, self.partial_type):
            raise TypeError(
                f"{type(self).__name__} expects {self.partial_type.__name__} partials, "
                f"got {type(partial).__name__}"
            )
        return partial

    def intermediate(self, partials: Iterable[S]) -> S:
        """Merge partials pairwise into one partial of the same shape."""
        merged = self.empty()
        count = 0
        for partial in partials:
            merged = merged.merge(self.check_partial(partial))  # type: ignore[attr-defined]
            count += 1
        logger.debug("%s merged %d partials", type(self).__name__, count)
        return merged

    def aggregate(self, shards: Iterable[Iterable[Any]]) -> R:
        """Initial per shard, one intermediate over all of them, then final."""
        return self.final(self.intermediate(self.initial(shard) for shard in shards))


class _EntropyAggregation(AlgebraicAggregation[S, float]):
    def __init__(self, policy: str = EMPIRICAL, base: str | float = "e"):
        # Fail at construction, not on the first shard.
        create_estimator(policy, base)
        self._policy = policy
        self._base = base

    @classmethod
    def from_config(cls, config: EntropyConfig):
        return cls(config.policy, config.base)

    @property
    def policy(self) -> str:
        return self._policy

    @property
    def base(self) -> str | float:
        return self._base

    def _entropy_of(self, counts: Iterable[int]) -> float:
        estimator = create_estimator(self._policy, self._base)
        for count in counts:
            estimator.accumulate(count)
        return estimator.entropy()


class EntropyAggregation(_EntropyAggregation[SymbolCounts]):
    """H(X) over grouped symbol shards; partials are per-symbol counts.

    A run of one symbol that straddles a shard boundary is counted in both
    shards and summed back together by intermediate.
    """

    partial_type = SymbolCounts

    def initial(self, batch: Iterable[Any]) -> SymbolCounts:
        engine = StreamingEntropy(self._policy, self._base, track_counts=True)
        engine.accumulate(batch)
        return engine.partial()

    def empty(self) -> SymbolCounts:
        return SymbolCounts.empty()

    def final(self, partial: SymbolCounts) -> float:
        partial = self.check_partial(partial)
        return self._entropy_of(partial.counts.values())


class CountEntropyAggregation(_EntropyAggregation[CountProfile]):
    """H(X) over shards of precomputed per-symbol counts."""

    partial_type = CountProfile

    def initial(self, batch: Iterable[Any]) -> CountProfile:
        engine = CountEntropy(self._policy, self._base)
        engine.accumulate(batch)
        return engine.partial()

    def empty(self) -> CountProfile:
        return CountProfile.empty()

    def final(self, partial: CountProfile) -> float:
        partial = self.check_partial(partial)
        return self._entropy_of(partial.counts())


class ConditionalEntropyAggregation(_EntropyAggregation[SymbolCounts]):
    """H(Y|X) over sorted (X, Y) shards; partials are per-pair counts.

    Final derives the X marginal by summing pair counts per X, so shards may
    split an X group anywhere.
    """

    partial_type = SymbolCounts

    def initial(self, batch: Iterable[Any]) -> SymbolCounts:
        engine = ConditionalEntropy(self._policy, self._base, track_counts=True)
        engine.accumulate(batch)
        return engine.partial()

    def empty(self) -> SymbolCounts:
        return SymbolCounts.empty()

    def final(self, partial: SymbolCounts) -> float:
        partial = self.check_partial(partial)
        marginal: Counter[Any] = Counter()
        for key, count in partial.counts.items():
            if not isinstance(key, tuple) or len(key) != 2:
                raise RecordShapeError(
                    f"{type(self).__name__} expects (X, Y) pair keys, got {key!r}"
                )
            marginal[key[0]] += count
        joint = self._entropy_of(partial.counts.values())
        h_x = self._entropy_of(marginal.values())
        logger.debug("Conditional entropy final: H(X,Y)=%.6f H(X)=%.6f", joint, h_x)
        return joint - h_x


class WeightedReservoirAggregation(AlgebraicAggregation[ReservoirState, list]):
    """Weighted reservoir sampling split across shards.

    Args:
        capacity: Sample size k, shared by every stage.
        weight_field_index: Index of the weight inside each record.
        seed: Seed of the generator used by initial.
        rng: Generator used by initial; takes precedence over seed.
    """

    partial_type = ReservoirState

    def __init__(
        self,
        capacity: int,
        weight_field_index: int,
        *,
        seed: int | None = None,
        rng: random.Random | None = None,
    ):
        if weight_field_index is None:
            raise ConfigurationError("weight_field_index is required for reservoir aggregation")
        self._capacity = validate_capacity(capacity)
        self._weight_field_index = validate_weight_field_index(weight_field_index)
        self._rng = rng if rng is not None else random.Random(seed)

    @classmethod
    def from_config(cls, config: ReservoirConfig, *, rng: random.Random | None = None):
        return cls(config.capacity, config.weight_field_index, seed=config.seed, rng=rng)

    @property
    def capacity(self) -> int:
        return self._capacity

    def initial(self, batch: Iterable[Any]) -> ReservoirState:
        reservoir = WeightedReservoir(self._capacity, self._weight_field_index, rng=self._rng)
        reservoir.accumulate(batch)
        return reservoir.to_partial()

    def empty(self) -> ReservoirState:
        return ReservoirState.empty(self._capacity)

    def check_partial(self, partial: Any) -> ReservoirState:
        partial = super().check_partial(partial)
        if partial.capacity != self._capacity:
            raise ConfigurationError(
                f"Cannot merge: capacity differs ({self._capacity} vs {partial.capacity})"
            )
        return partial

    def final(self, partial: ReservoirState) -> list:
        return self.check_partial(partial).items()

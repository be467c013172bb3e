"""Streaming Shannon entropy over grouped symbol streams.

StreamingEntropy consumes symbols that arrive grouped (sorted, ascending or
descending) and counts run lengths instead of building a frequency table:
every time the symbol changes, the length of the finished run is flushed
into an EntropyEstimator. Auxiliary state is O(1) regardless of the number
of distinct symbols.

CountEntropy consumes occurrence counts that were computed upstream (one
count per distinct symbol) and feeds them straight into the estimator.

Both expose the accumulate / get_value / reset lifecycle and can emit a
transportable partial for combiner-style execution.

Example:
    engine = StreamingEntropy(policy="empirical", base="2")
    engine.accumulate(["a", "a", "b", "c", "c", "c"])
    engine.accumulate(["c", "d"])
    bits = engine.get_value()
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from numbers import Integral
from typing import TYPE_CHECKING, Any

from shardstats.base import AggregatorState, compare, ensure_accepting
from shardstats.entropy.estimators import EMPIRICAL, EntropyEstimator, create_estimator
from shardstats.errors import ConfigurationError, InputContractError, OrderingViolationError
from shardstats.partials import CountProfile, SymbolCounts

if TYPE_CHECKING:
    from shardstats.config import EntropyConfig

logger = logging.getLogger(__name__)


class StreamingEntropy:
    """Entropy H(X) of a grouped stream of symbols.

    Args:
        policy: Estimator policy name ("empirical" or "chaosh").
        base: Logarithm base of the result.
        track_counts: Also keep a per-symbol tally of flushed runs, which is
            required for :meth:`partial` and :meth:`merge`.

    Raises:
        ConfigurationError: If policy or base is invalid.
    """

    def __init__(self, policy: str = EMPIRICAL, base: str | float = "e", *, track_counts: bool = False):
        self._estimator: EntropyEstimator = create_estimator(policy, base)
        self._policy = policy
        self._tally: Counter[Any] | None = Counter() if track_counts else None
        self._state = AggregatorState.EMPTY
        self._prev: Any = None
        self._run = 0
        self._last_cmp = 0
        self._value: float | None = None

    @classmethod
    def from_config(cls, config: EntropyConfig, *, track_counts: bool = False) -> StreamingEntropy:
        return cls(config.policy, config.base, track_counts=track_counts)

    @property
    def state(self) -> AggregatorState:
        return self._state

    @property
    def policy(self) -> str:
        return self._policy

    @property
    def estimator(self) -> EntropyEstimator:
        return self._estimator

    @property
    def tracks_counts(self) -> bool:
        return self._tally is not None

    def accumulate(self, batch: Iterable[Any]) -> None:
        """Ingest the next batch of symbols.

        Raises:
            OrderingViolationError: If the stream is not grouped/sorted.
            AggregatorStateError: If the engine was already finalized.
        """
        ensure_accepting(self._state, self)
        for symbol in batch:
            self._ingest(symbol)

    def _ingest(self, symbol: Any) -> None:
        if self._state is AggregatorState.EMPTY:
            self._state = AggregatorState.STREAMING
        else:
            cmp = compare(symbol, self._prev)
            if (cmp < 0 < self._last_cmp) or (cmp > 0 > self._last_cmp):
                raise OrderingViolationError(self._prev, symbol, cmp, self._last_cmp)
            if cmp != 0:
                self._flush(self._prev, self._run)
                self._run = 0
                self._last_cmp = cmp
        self._prev = symbol
        self._run += 1

    def _flush(self, symbol: Any, count: int) -> None:
        self._estimator.accumulate(count)
        if self._tally is not None and count:
            self._tally[symbol] += count

    def get_value(self) -> float:
        """Flush the final run and return the entropy estimate.

        Repeated calls return the same value until :meth:`reset`.
        """
        if self._value is not None:
            return self._value
        if self._run:
            self._flush(self._prev, self._run)
            self._run = 0
        self._value = self._estimator.entropy()
        self._state = AggregatorState.FINALIZED
        logger.debug(
            "Entropy finalized: %d symbols, %d occurrences, H=%.6f",
            self._estimator.symbol_count,
            self._estimator.total,
            self._value,
        )
        return self._value

    finalize = get_value

    def partial(self) -> SymbolCounts:
        """Per-symbol counts seen so far, including the unfinished run.

        Raises:
            ConfigurationError: If the engine was built without track_counts.
        """
        if self._tally is None:
            raise ConfigurationError(
                "StreamingEntropy does not track per-symbol counts; construct it with track_counts=True"
            )
        tally = Counter(self._tally)
        if self._run:
            tally[self._prev] += self._run
        return SymbolCounts(dict(tally))

    def merge(self, other: StreamingEntropy | SymbolCounts) -> SymbolCounts:
        """Merge the counts of this engine with another engine or partial."""
        if isinstance(other, StreamingEntropy):
            other = other.partial()
        return self.partial().merge(other)

    def reset(self) -> None:
        """Return to the EMPTY state for the next logical group."""
        self._estimator.reset()
        if self._tally is not None:
            self._tally.clear()
        self._state = AggregatorState.EMPTY
        self._prev = None
        self._run = 0
        self._last_cmp = 0
        self._value = None

    cleanup = reset

    def __repr__(self) -> str:
        return f"StreamingEntropy(policy={self._policy!r}, state={self._state.value})"


class CountEntropy:
    """Entropy of a distribution given per-symbol occurrence counts.

    Each input record is the total number of times one distinct symbol
    occurred. Records may be integers or integral floats.

    Args:
        policy: Estimator policy name.
        base: Logarithm base of the result.
    """

    def __init__(self, policy: str = EMPIRICAL, base: str | float = "e"):
        self._estimator = create_estimator(policy, base)
        self._policy = policy
        self._histogram: Counter[int] = Counter()
        self._state = AggregatorState.EMPTY
        self._value: float | None = None

    @classmethod
    def from_config(cls, config: EntropyConfig) -> CountEntropy:
        return cls(config.policy, config.base)

    @property
    def state(self) -> AggregatorState:
        return self._state

    @property
    def estimator(self) -> EntropyEstimator:
        return self._estimator

    def accumulate(self, batch: Iterable[Any]) -> None:
        ensure_accepting(self._state, self)
        for record in batch:
            count = _as_count(record)
            self._estimator.accumulate(count)
            if count:
                self._histogram[count] += 1
            self._state = AggregatorState.STREAMING

    def get_value(self) -> float:
        if self._value is None:
            self._value = self._estimator.entropy()
            self._state = AggregatorState.FINALIZED
        return self._value

    finalize = get_value

    def partial(self) -> CountProfile:
        return CountProfile(dict(self._histogram))

    def merge(self, other: CountEntropy | CountProfile) -> CountProfile:
        if isinstance(other, CountEntropy):
            other = other.partial()
        return self.partial().merge(other)

    def reset(self) -> None:
        self._estimator.reset()
        self._histogram.clear()
        self._state = AggregatorState.EMPTY
        self._value = None

    cleanup = reset

    def __repr__(self) -> str:
        return f"CountEntropy(policy={self._policy!r}, state={self._state.value})"


def _as_count(record: Any) -> int:
    if isinstance(record, float) and record.is_integer():
        return int(record)
    if isinstance(record, bool) or not isinstance(record, Integral):
        raise InputContractError(f"occurrence count must be an integer, got {record!r}")
    return int(record)

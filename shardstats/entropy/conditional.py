"""Conditional entropy H(Y|X) over a jointly sorted stream of (X, Y) pairs.

The engine drives two estimators at once: one over the run lengths of
distinct (X, Y) pairs, giving H(X, Y), and one over the run lengths of
distinct X values, giving H(X). The answer follows from the chain rule

    H(Y|X) = H(X, Y) - H(X)

Because runs are counted as they stream past, the input must be sorted on
X first and Y second. Any reversal of the ordering direction is reported as
an OrderingViolationError naming both records; it is never corrected.

Example:
    engine = ConditionalEntropy()
    engine.accumulate([(1, "a"), (1, "a"), (1, "b"), (2, "a")])
    h_y_given_x = engine.get_value()

Mutual information follows with one more estimator over Y alone:
I(X; Y) = H(Y) - H(Y|X).
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from shardstats.base import AggregatorState, compare, ensure_accepting
from shardstats.entropy.estimators import EMPIRICAL, EntropyEstimator, create_estimator
from shardstats.errors import ConfigurationError, OrderingViolationError, RecordShapeError
from shardstats.partials import SymbolCounts

if TYPE_CHECKING:
    from shardstats.config import EntropyConfig

logger = logging.getLogger(__name__)


class ConditionalEntropy:
    """Streaming conditional entropy H(Y|X).

    Args:
        policy: Estimator policy used for both H(X, Y) and H(X).
        base: Logarithm base of the result.
        track_counts: Keep a per-pair tally so the engine can emit a
            :class:`SymbolCounts` partial.

    Raises:
        ConfigurationError: If policy or base is invalid.
    """

    def __init__(self, policy: str = EMPIRICAL, base: str | float = "e", *, track_counts: bool = False):
        try:
            self._joint: EntropyEstimator = create_estimator(policy, base)
            self._marginal: EntropyEstimator = create_estimator(policy, base)
        except ConfigurationError as exc:
            raise ConfigurationError(
                f"Fail to initialize ConditionalEntropy with estimator {policy!r}, base {base!r}: {exc}"
            ) from exc
        self._policy = policy
        self._tally: Counter[tuple[Any, Any]] | None = Counter() if track_counts else None
        self._state = AggregatorState.EMPTY
        self._prev: tuple[Any, Any] | None = None
        self._joint_run = 0
        self._x_run = 0
        self._last_cmp = 0
        self._value: float | None = None

    @classmethod
    def from_config(cls, config: EntropyConfig, *, track_counts: bool = False) -> ConditionalEntropy:
        return cls(config.policy, config.base, track_counts=track_counts)

    @property
    def state(self) -> AggregatorState:
        return self._state

    @property
    def policy(self) -> str:
        return self._policy

    @property
    def joint_estimator(self) -> EntropyEstimator:
        """Estimator fed with (X, Y) run lengths."""
        return self._joint

    @property
    def marginal_estimator(self) -> EntropyEstimator:
        """Estimator fed with X run lengths."""
        return self._marginal

    def accumulate(self, batch: Iterable[Sequence[Any]]) -> None:
        """Ingest the next batch of (X, Y) records.

        Raises:
            RecordShapeError: If a record does not have exactly two fields.
            OrderingViolationError: If the stream is not sorted on (X, Y).
            AggregatorStateError: If the engine was already finalized.
        """
        ensure_accepting(self._state, self)
        for record in batch:
            self._ingest(_as_pair(record))

    def _ingest(self, pair: tuple[Any, Any]) -> None:
        if self._prev is None:
            self._state = AggregatorState.STREAMING
        else:
            prev = self._prev
            cmp = compare(pair, prev)
            if (cmp < 0 < self._last_cmp) or (cmp > 0 > self._last_cmp):
                raise OrderingViolationError(prev, pair, cmp, self._last_cmp)
            if cmp != 0:
                self._flush_joint(prev)
                self._last_cmp = cmp
                if compare(pair[0], prev[0]) != 0:
                    self._marginal.accumulate(self._x_run)
                    self._x_run = 0
        self._prev = pair
        self._joint_run += 1
        self._x_run += 1

    def _flush_joint(self, pair: tuple[Any, Any]) -> None:
        self._joint.accumulate(self._joint_run)
        if self._tally is not None and self._joint_run:
            self._tally[pair] += self._joint_run
        self._joint_run = 0

    def get_value(self) -> float:
        """Flush the last runs and return H(X, Y) - H(X).

        Returns 0.0 for an empty stream. Repeated calls return the same value
        until :meth:`reset`.
        """
        if self._value is not None:
            return self._value
        if self._prev is not None:
            self._flush_joint(self._prev)
        self._marginal.accumulate(self._x_run)
        self._x_run = 0

        joint = self._joint.entropy()
        marginal = self._marginal.entropy()
        self._value = joint - marginal
        self._state = AggregatorState.FINALIZED
        logger.debug(
            "Conditional entropy finalized: H(X,Y)=%.6f H(X)=%.6f over %d pairs",
            joint,
            marginal,
            self._joint.total,
        )
        return self._value

    finalize = get_value

    def partial(self) -> SymbolCounts:
        """Per-(X, Y) counts seen so far, including the unfinished run.

        Raises:
            ConfigurationError: If the engine was built without track_counts.
        """
        if self._tally is None:
            raise ConfigurationError(
                "ConditionalEntropy does not track per-pair counts; construct it with track_counts=True"
            )
        tally = Counter(self._tally)
        if self._joint_run:
            tally[self._prev] += self._joint_run
        return SymbolCounts(dict(tally))

    def merge(self, other: ConditionalEntropy | SymbolCounts) -> SymbolCounts:
        """Merge the pair counts of this engine with another engine or partial."""
        if isinstance(other, ConditionalEntropy):
            other = other.partial()
        return self.partial().merge(other)

    def reset(self) -> None:
        """Clear both estimators and all counters."""
        self._joint.reset()
        self._marginal.reset()
        if self._tally is not None:
            self._tally.clear()
        self._state = AggregatorState.EMPTY
        self._prev = None
        self._joint_run = 0
        self._x_run = 0
        self._last_cmp = 0
        self._value = None

    cleanup = reset

    def __repr__(self) -> str:
        return f"ConditionalEntropy(policy={self._policy!r}, state={self._state.value})"


def _as_pair(record: Any) -> tuple[Any, Any]:
    if isinstance(record, (str, bytes)):
        raise RecordShapeError(f"Expected an (X, Y) record, got {record!r}")
    try:
        fields = tuple(record)
    except TypeError:
        raise RecordShapeError(f"Expected an (X, Y) record, got {record!r}") from None
    if len(fields) != 2:
        raise RecordShapeError(
            f"Expected an (X, Y) record with exactly 2 fields, got {len(fields)}: {record!r}"
        )
    return fields  # type: ignore[return-value]

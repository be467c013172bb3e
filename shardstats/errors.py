"""Error taxonomy for shardstats.

Three families of failure are distinguished:

- ConfigurationError: bad construction-time arguments (unknown estimator
  policy, invalid logarithm base, non-positive capacity, negative field
  index) or partial states whose configuration does not match.
- InputContractError: bad input discovered while accumulating a batch
  (misordered stream, invalid weight, wrongly shaped record). Fatal for the
  logical group being aggregated.
- AggregatorStateError: an operation was called in a lifecycle state that
  does not allow it (accumulating into a finalized aggregator).

The first two derive from ValueError and the last from RuntimeError so that
callers catching the builtin types keep working.
"""

from __future__ import annotations

from typing import Any


class ShardStatsError(Exception):
    """Base class for all shardstats errors."""


class ConfigurationError(ShardStatsError, ValueError):
    """Invalid construction-time configuration."""


class InputContractError(ShardStatsError, ValueError):
    """Input handed to an aggregator violates its contract."""


class OrderingViolationError(InputContractError):
    """A sorted stream turned out not to be sorted.

    Attributes:
        previous: The last record accepted before the violation.
        current: The record that broke the ordering.
        comparison: Sign of compare(current, previous).
        previous_comparison: The non-zero sign remembered from earlier records.
    """

    def __init__(self, previous: Any, current: Any, comparison: int, previous_comparison: int):
        self.previous = previous
        self.current = current
        self.comparison = comparison
        self.previous_comparison = previous_comparison
        super().__init__(
            f"Out of order! previous record: {previous!r}, present record: {current!r}, "
            f"comparison: {comparison}, previous comparison: {previous_comparison}"
        )


class InvalidWeightError(InputContractError):
    """A sampling weight is missing, non-numeric, non-finite or not positive.

    Attributes:
        weight: The offending weight value.
        record: The record it came from, if any.
    """

    def __init__(self, message: str, weight: Any, record: Any = None):
        self.weight = weight
        self.record = record
        super().__init__(message)


class RecordShapeError(InputContractError):
    """A record does not have the fields the aggregator needs."""


class AggregatorStateError(ShardStatsError, RuntimeError):
    """Operation not allowed in the aggregator's current lifecycle state."""

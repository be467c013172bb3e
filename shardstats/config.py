"""Construction-time configuration for shardstats aggregators.

Every aggregator can be built from plain keyword arguments; these frozen
dataclasses bundle the same settings so that one validated configuration
can be handed to the Initial, Intermediate and Final stages of a job (which
must agree on it for their partial states to be mergeable).

Example:
    config = EntropyConfig(policy="chaosh", base="2")
    engine = ConditionalEntropy.from_config(config)

    sampling = ReservoirConfig(capacity=10, weight_field_index=1, seed=7)
    aggregation = WeightedReservoirAggregation.from_config(sampling)
"""

from __future__ import annotations

from dataclasses import dataclass

from shardstats.entropy.estimators import (
    EMPIRICAL,
    known_policies,
    resolve_log_base,
)
from shardstats.errors import ConfigurationError


@dataclass(frozen=True)
class EntropyConfig:
    """Settings shared by the entropy engines.

    Attributes:
        policy: Estimator policy name ("empirical" or "chaosh").
        base: Logarithm base; a named constant ("e", "2", "10", "log2", ...)
            or a positive real other than 1.
    """

    policy: str = EMPIRICAL
    base: str | float = "e"

    def __post_init__(self) -> None:
        if self.policy not in known_policies():
            raise ConfigurationError(
                f"Unknown entropy estimator policy {self.policy!r}; "
                f"expected one of {sorted(known_policies())}"
            )
        resolve_log_base(self.base)


@dataclass(frozen=True)
class ReservoirConfig:
    """Settings for weighted reservoir sampling.

    Attributes:
        capacity: Number of items kept in the sample. Must be >= 1.
        weight_field_index: Position of the weight inside each record. Only
            needed when accumulating whole records.
        seed: Seed for the instance-local random generator.
    """

    capacity: int
    weight_field_index: int | None = None
    seed: int | None = None

    def __post_init__(self) -> None:
        validate_capacity(self.capacity)
        validate_weight_field_index(self.weight_field_index)


def validate_capacity(capacity: int) -> int:
    """Return ``capacity`` if it is a positive integer, else raise ConfigurationError."""
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise ConfigurationError(f"capacity must be an integer, got {capacity!r}")
    if capacity <= 0:
        raise ConfigurationError(f"capacity must be positive, got {capacity}")
    return capacity


def validate_weight_field_index(index: int | None) -> int | None:
    """Return ``index`` if it is None or a non-negative integer, else raise ConfigurationError."""
    if index is None:
        return None
    if isinstance(index, bool) or not isinstance(index, int):
        raise ConfigurationError(f"weight_field_index must be an integer, got {index!r}")
    if index < 0:
        raise ConfigurationError(f"Invalid negative index of weight field: {index}")
    return index

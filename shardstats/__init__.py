"""Mergeable statistical aggregation for map/combine/reduce execution.

shardstats computes the same answer whether an aggregation sees all of its
input in one pass or sees disjoint shards whose partial states are merged,
in any grouping, by a combiner tree.

Quick Reference:
    StreamingEntropy: H(X) over a grouped stream of symbols
    CountEntropy: H(X) over precomputed occurrence counts
    ConditionalEntropy: H(Y|X) over a stream sorted on (X, Y)
    WeightedReservoir: weighted k-of-n sampling without replacement
    *Aggregation: Initial / Intermediate / Final adapters of the above

Example:
    from shardstats import ConditionalEntropyAggregation, run_sharded

    aggregation = ConditionalEntropyAggregation(base="2")
    h = run_sharded(aggregation, [shard_a, shard_b, shard_c])
"""

import logging

from shardstats.aggregation import (
    AlgebraicAggregation,
    ConditionalEntropyAggregation,
    CountEntropyAggregation,
    EntropyAggregation,
    WeightedReservoirAggregation,
    aggregate_frame,
    reduce_partials,
    run_sharded,
    split_shards,
)
from shardstats.base import Aggregator, AggregatorState
from shardstats.config import EntropyConfig, ReservoirConfig
from shardstats.entropy import (
    ChaoShenEntropyEstimator,
    ConditionalEntropy,
    CountEntropy,
    EmpiricalEntropyEstimator,
    EntropyEstimator,
    StreamingEntropy,
    create_estimator,
)
from shardstats.errors import (
    AggregatorStateError,
    ConfigurationError,
    InputContractError,
    InvalidWeightError,
    OrderingViolationError,
    RecordShapeError,
    ShardStatsError,
)
from shardstats.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
)
from shardstats.partials import CountProfile, ReservoirState, ScoredItem, SymbolCounts
from shardstats.sampling import WeightedReservoir

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Aggregator",
    "AggregatorState",
    "AggregatorStateError",
    "AlgebraicAggregation",
    "ChaoShenEntropyEstimator",
    "ConditionalEntropy",
    "ConditionalEntropyAggregation",
    "ConfigurationError",
    "CountEntropy",
    "CountEntropyAggregation",
    "CountProfile",
    "EmpiricalEntropyEstimator",
    "EntropyAggregation",
    "EntropyConfig",
    "EntropyEstimator",
    "InputContractError",
    "InvalidWeightError",
    "OrderingViolationError",
    "RecordShapeError",
    "ReservoirConfig",
    "ReservoirState",
    "ScoredItem",
    "ShardStatsError",
    "StreamingEntropy",
    "SymbolCounts",
    "WeightedReservoir",
    "WeightedReservoirAggregation",
    "aggregate_frame",
    "configure_from_env",
    "create_estimator",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "reduce_partials",
    "run_sharded",
    "set_level",
    "split_shards",
]

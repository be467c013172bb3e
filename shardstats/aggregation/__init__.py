"""Three-stage (Initial / Intermediate / Final) aggregation.

Quick Reference:
    EntropyAggregation: H(X) over grouped symbol shards
    CountEntropyAggregation: H(X) over shards of per-symbol counts
    ConditionalEntropyAggregation: H(Y|X) over sorted (X, Y) shards
    WeightedReservoirAggregation: weighted k-of-n sample over record shards
    run_sharded / aggregate_frame: local reduction-tree drivers
"""

from shardstats.aggregation.algebraic import (
    AlgebraicAggregation,
    ConditionalEntropyAggregation,
    CountEntropyAggregation,
    EntropyAggregation,
    WeightedReservoirAggregation,
)
from shardstats.aggregation.driver import (
    aggregate_frame,
    reduce_partials,
    run_sharded,
    split_shards,
)

__all__ = [
    "AlgebraicAggregation",
    "ConditionalEntropyAggregation",
    "CountEntropyAggregation",
    "EntropyAggregation",
    "WeightedReservoirAggregation",
    "aggregate_frame",
    "reduce_partials",
    "run_sharded",
    "split_shards",
]

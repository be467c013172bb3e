"""Sampling algorithms whose partial states merge across shards.

Quick Reference:
    WeightedReservoir: k-of-n weighted sampling without replacement
"""

from shardstats.partials import PRIORITY_SCHEME, ReservoirState, ScoredItem
from shardstats.sampling.reservoir import WeightedReservoir

__all__ = [
    "PRIORITY_SCHEME",
    "ReservoirState",
    "ScoredItem",
    "WeightedReservoir",
]

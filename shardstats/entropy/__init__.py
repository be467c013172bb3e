"""Entropy estimation over grouped/sorted streams.

Quick Reference:
    StreamingEntropy: H(X) from a grouped stream of symbols
    CountEntropy: H(X) from precomputed per-symbol occurrence counts
    ConditionalEntropy: H(Y|X) from a stream of (X, Y) pairs sorted on X, Y
    create_estimator: build an estimator policy ("empirical", "chaosh")
"""

from shardstats.entropy.conditional import ConditionalEntropy
from shardstats.entropy.estimators import (
    CHAO_SHEN,
    EMPIRICAL,
    ChaoShenEntropyEstimator,
    EmpiricalEntropyEstimator,
    EntropyEstimator,
    create_estimator,
    known_policies,
    resolve_log_base,
)
from shardstats.entropy.streaming import CountEntropy, StreamingEntropy

__all__ = [
    "CHAO_SHEN",
    "EMPIRICAL",
    "ChaoShenEntropyEstimator",
    "ConditionalEntropy",
    "CountEntropy",
    "EmpiricalEntropyEstimator",
    "EntropyEstimator",
    "StreamingEntropy",
    "create_estimator",
    "known_policies",
    "resolve_log_base",
]

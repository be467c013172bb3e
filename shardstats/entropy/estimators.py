"""Frequency-to-entropy estimator policies.

An estimator never sees symbols, only how often each distinct symbol
occurred. Callers (the streaming engines) flush one occurrence count per
distinct symbol via ``accumulate``; ``entropy`` then turns the multiset of
counts into an entropy value in the configured logarithm base.

Policies:
    empirical: Maximum-likelihood plug-in estimator,
        H = -sum((c/N) * log(c/N)).
    chaosh: Chao-Shen coverage-adjusted estimator, which corrects the
        downward bias of the plug-in estimator on undersampled data by
        combining a Good-Turing coverage estimate with Horvitz-Thompson
        weighting.

Reference:
    Chao, Shen. "Nonparametric estimation of Shannon's index of diversity
    when there are unseen species in sample" (2003)
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from numbers import Integral

from shardstats.errors import ConfigurationError, InputContractError

EMPIRICAL = "empirical"
CHAO_SHEN = "chaosh"

_NAMED_BASES: dict[str, float] = {
    "e": math.e,
    "ln": math.e,
    "log": math.e,
    "2": 2.0,
    "log2": 2.0,
    "10": 10.0,
    "log10": 10.0,
}


def resolve_log_base(base: str | float) -> float:
    """Return the multiplier converting natural-log entropy into ``base``.

    Args:
        base: A named base ("e", "ln", "log", "2", "log2", "10", "log10"), or
            any positive finite real other than 1, given as a number or a
            numeric string.

    Raises:
        ConfigurationError: If ``base`` cannot be used as a logarithm base.
    """
    if isinstance(base, str):
        named = _NAMED_BASES.get(base.strip().lower())
        if named is not None:
            value = named
        else:
            try:
                value = float(base)
            except ValueError:
                raise ConfigurationError(f"Unrecognized logarithm base {base!r}") from None
    elif isinstance(base, bool) or not isinstance(base, (int, float)):
        raise ConfigurationError(f"Unrecognized logarithm base {base!r}")
    else:
        value = float(base)

    if not math.isfinite(value) or value <= 0.0 or value == 1.0:
        raise ConfigurationError(
            f"Logarithm base must be a positive finite number other than 1, got {base!r}"
        )
    return 1.0 / math.log(value)


class EntropyEstimator(ABC):
    """Base class for entropy estimator policies.

    Subclasses implement ``entropy`` over the counts gathered by the shared
    ``accumulate`` / ``reset`` bookkeeping.

    Args:
        base: Logarithm base of the reported entropy (default natural log).
    """

    name: str = ""

    def __init__(self, base: str | float = "e"):
        self._base = base
        self._scale = resolve_log_base(base)
        self._counts: list[int] = []
        self._total = 0

    @property
    def base(self) -> str | float:
        """Logarithm base the entropy is reported in."""
        return self._base

    @property
    def total(self) -> int:
        """Sum of all accumulated counts (N)."""
        return self._total

    @property
    def symbol_count(self) -> int:
        """Number of distinct symbols accumulated so far."""
        return len(self._counts)

    def accumulate(self, count: int) -> None:
        """Record that one distinct symbol occurred ``count`` times.

        A count of zero adds no symbol and is ignored.

        Raises:
            InputContractError: If count is negative or not an integer.
        """
        if isinstance(count, bool) or not isinstance(count, Integral):
            raise InputContractError(f"occurrence count must be an integer, got {count!r}")
        if count < 0:
            raise InputContractError(f"occurrence count must be non-negative, got {count}")
        if count == 0:
            return
        self._counts.append(int(count))
        self._total += int(count)

    def reset(self) -> None:
        """Forget every accumulated count."""
        self._counts.clear()
        self._total = 0

    @abstractmethod
    def entropy(self) -> float:
        """Entropy estimate of the accumulated counts; 0.0 when empty."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(base={self._base!r}, "
            f"symbols={len(self._counts)}, total={self._total})"
        )


class EmpiricalEntropyEstimator(EntropyEstimator):
    """Maximum-likelihood (plug-in) Shannon entropy.

    Computed as ``ln(N) - sum(c * ln(c)) / N`` with an exactly rounded sum,
    so the result does not depend on the order counts arrived in.
    """

    name = EMPIRICAL

    def entropy(self) -> float:
        if len(self._counts) <= 1:
            return 0.0
        n = self._total
        weighted = math.fsum(c * math.log(c) for c in self._counts)
        # ln(N) and the weighted mean can differ by an ulp in either direction.
        return max(0.0, math.log(n) - weighted / n) * self._scale


class ChaoShenEntropyEstimator(EntropyEstimator):
    """Chao-Shen coverage-adjusted Shannon entropy."""

    name = CHAO_SHEN

    def entropy(self) -> float:
        if self._total == 0:
            return 0.0
        n = self._total
        singletons = sum(1 for c in self._counts if c == 1)
        if singletons == n:
            # Coverage would be zero.
            singletons = n - 1
        coverage = 1.0 - singletons / n

        terms = []
        for c in self._counts:
            pa = coverage * c / n
            if pa <= 0.0:
                continue
            inclusion = 1.0 - (1.0 - pa) ** n
            terms.append(pa * math.log(pa) / inclusion)
        return -math.fsum(terms) * self._scale


_ESTIMATORS: dict[str, type[EntropyEstimator]] = {
    EMPIRICAL: EmpiricalEntropyEstimator,
    CHAO_SHEN: ChaoShenEntropyEstimator,
}


def known_policies() -> frozenset[str]:
    """Names accepted by :func:`create_estimator`."""
    return frozenset(_ESTIMATORS)


def create_estimator(policy: str = EMPIRICAL, base: str | float = "e") -> EntropyEstimator:
    """Build an estimator for ``policy`` reporting entropy in ``base``.

    Raises:
        ConfigurationError: If the policy is unknown or the base invalid.
    """
    try:
        estimator_cls = _ESTIMATORS[policy]
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"Fail to initialize entropy estimator of type {policy!r}, base {base!r}: "
            f"unknown policy, expected one of {sorted(_ESTIMATORS)}"
        ) from None
    return estimator_cls(base)

"""Tests for entropy estimator policies."""

import math

import pytest

from shardstats.entropy import (
    ChaoShenEntropyEstimator,
    EmpiricalEntropyEstimator,
    create_estimator,
    known_policies,
    resolve_log_base,
)
from shardstats.errors import ConfigurationError, InputContractError


def _plugin_entropy(counts, base=math.e):
    total = sum(counts)
    return -sum((c / total) * math.log(c / total, base) for c in counts)


class TestCreateEstimator:
    """Tests for estimator construction."""

    def test_creates_empirical(self):
        """The empirical policy builds an EmpiricalEntropyEstimator."""
        estimator = create_estimator("empirical")

        assert isinstance(estimator, EmpiricalEntropyEstimator)
        assert estimator.base == "e"

    def test_creates_chao_shen(self):
        """The chaosh policy builds a ChaoShenEntropyEstimator."""
        estimator = create_estimator("chaosh", "2")

        assert isinstance(estimator, ChaoShenEntropyEstimator)

    def test_known_policies(self):
        """Both policies are registered."""
        assert known_policies() == {"empirical", "chaosh"}

    def test_rejects_unknown_policy(self):
        """An unknown policy is a configuration error, never a silent default."""
        with pytest.raises(ConfigurationError, match="'miller'"):
            create_estimator("miller")

    def test_configuration_error_is_value_error(self):
        """ConfigurationError can be caught as ValueError."""
        with pytest.raises(ValueError):
            create_estimator("nope")


class TestLogBase:
    """Tests for logarithm base resolution."""

    @pytest.mark.parametrize(
        "base, expected",
        [
            ("e", math.e),
            ("ln", math.e),
            ("log", math.e),
            ("2", 2.0),
            ("log2", 2.0),
            ("10", 10.0),
            ("LOG10", 10.0),
            (3, 3.0),
            (0.5, 0.5),
            ("1.5", 1.5),
        ],
    )
    def test_resolves_scale(self, base, expected):
        """The scale converts natural log into the requested base."""
        assert resolve_log_base(base) == pytest.approx(1.0 / math.log(expected))

    @pytest.mark.parametrize("base", [0, -2, 1, "1", "abc", float("inf"), float("nan"), None, True])
    def test_rejects_invalid_base(self, base):
        """Non-positive, unit, non-finite and non-numeric bases are rejected."""
        with pytest.raises(ConfigurationError):
            resolve_log_base(base)

    def test_base_two_is_nats_over_ln2(self):
        """Entropy in bits equals entropy in nats divided by ln 2."""
        nats = create_estimator("empirical", "e")
        bits = create_estimator("empirical", "2")
        for count in [5, 3, 2, 1]:
            nats.accumulate(count)
            bits.accumulate(count)

        assert bits.entropy() == pytest.approx(nats.entropy() / math.log(2))


class TestEmpiricalEstimator:
    """Tests for the plug-in estimator."""

    def test_empty_is_zero(self):
        """No counts means zero entropy."""
        assert EmpiricalEntropyEstimator().entropy() == 0.0

    @pytest.mark.parametrize("base", ["e", "2", "10"])
    def test_single_symbol_is_exactly_zero(self, base):
        """A degenerate distribution has zero entropy for every count."""
        for n in range(1, 2000):
            estimator = EmpiricalEntropyEstimator(base)
            estimator.accumulate(n)

            assert estimator.entropy() == 0.0

    def test_never_negative(self):
        """Highly skewed counts never round below zero."""
        for n in range(1, 500):
            estimator = EmpiricalEntropyEstimator()
            estimator.accumulate(n * 1000003)
            estimator.accumulate(1)

            assert estimator.entropy() >= 0.0

    def test_uniform_distribution(self):
        """Four equally likely symbols carry two bits."""
        estimator = EmpiricalEntropyEstimator("2")
        for _ in range(4):
            estimator.accumulate(10)

        assert estimator.entropy() == pytest.approx(2.0)

    def test_matches_plugin_formula(self):
        """Result equals -sum(p log p) over the observed frequencies."""
        counts = [7, 1, 3, 3, 12]
        estimator = EmpiricalEntropyEstimator("10")
        for c in counts:
            estimator.accumulate(c)

        assert estimator.entropy() == pytest.approx(_plugin_entropy(counts, 10))

    def test_order_independent(self):
        """Accumulation order does not change the result."""
        counts = [1, 2, 3, 50, 7, 7, 1000]
        forward = EmpiricalEntropyEstimator()
        backward = EmpiricalEntropyEstimator()
        for c in counts:
            forward.accumulate(c)
        for c in reversed(counts):
            backward.accumulate(c)

        assert forward.entropy() == backward.entropy()

    def test_zero_count_ignored(self):
        """A zero count adds no symbol."""
        estimator = EmpiricalEntropyEstimator()
        estimator.accumulate(0)
        estimator.accumulate(3)

        assert estimator.symbol_count == 1
        assert estimator.total == 3

    def test_rejects_negative_count(self):
        """Negative counts violate the input contract."""
        with pytest.raises(InputContractError, match="non-negative"):
            EmpiricalEntropyEstimator().accumulate(-1)

    def test_rejects_fractional_count(self):
        """Counts must be integers."""
        with pytest.raises(InputContractError, match="integer"):
            EmpiricalEntropyEstimator().accumulate(1.5)

    def test_reset_clears_state(self):
        """reset() forgets every count."""
        estimator = EmpiricalEntropyEstimator()
        estimator.accumulate(3)
        estimator.accumulate(4)

        estimator.reset()

        assert estimator.total == 0
        assert estimator.symbol_count == 0
        assert estimator.entropy() == 0.0


class TestChaoShenEstimator:
    """Tests for the coverage-adjusted estimator."""

    def test_empty_is_zero(self):
        """No counts means zero entropy."""
        assert ChaoShenEntropyEstimator().entropy() == 0.0

    def test_exceeds_plugin_with_singletons(self):
        """Coverage adjustment raises the estimate when singletons exist."""
        counts = [5, 3, 1, 1, 1, 2]
        plugin = EmpiricalEntropyEstimator()
        chao = ChaoShenEntropyEstimator()
        for c in counts:
            plugin.accumulate(c)
            chao.accumulate(c)

        assert chao.entropy() > plugin.entropy()

    def test_all_singletons_is_finite(self):
        """All-singleton samples use the N - 1 coverage correction."""
        estimator = ChaoShenEntropyEstimator()
        for _ in range(6):
            estimator.accumulate(1)

        value = estimator.entropy()

        assert math.isfinite(value)
        assert value > math.log(6)

    def test_close_to_plugin_for_well_sampled_data(self):
        """Without singletons and with large counts the correction is tiny."""
        counts = [1000, 2000, 3000]
        plugin = EmpiricalEntropyEstimator()
        chao = ChaoShenEntropyEstimator()
        for c in counts:
            plugin.accumulate(c)
            chao.accumulate(c)

        assert chao.entropy() == pytest.approx(plugin.entropy(), rel=1e-6)

    def test_repr_mentions_totals(self):
        """repr includes symbol and total counts."""
        estimator = ChaoShenEntropyEstimator()
        estimator.accumulate(2)

        assert "symbols=1" in repr(estimator)
        assert "total=2" in repr(estimator)

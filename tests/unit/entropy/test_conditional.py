"""Tests for ConditionalEntropy."""

import math

import pytest

from shardstats import Aggregator, AggregatorState
from shardstats.entropy import ConditionalEntropy
from shardstats.errors import (
    AggregatorStateError,
    ConfigurationError,
    OrderingViolationError,
    RecordShapeError,
)
from shardstats.partials import SymbolCounts

PAIRS = [(1, "a"), (1, "a"), (1, "b"), (2, "a")]


def _h(counts, base=math.e):
    total = sum(counts)
    return -sum((c / total) * math.log(c / total, base) for c in counts)


class TestConditionalEntropyCreation:
    """Tests for ConditionalEntropy construction."""

    def test_starts_empty(self):
        """A new engine is in the EMPTY state."""
        engine = ConditionalEntropy()

        assert engine.state is AggregatorState.EMPTY
        assert isinstance(engine, Aggregator)

    def test_rejects_unknown_policy(self):
        """Construction failures name the engine."""
        with pytest.raises(ConfigurationError, match="Fail to initialize ConditionalEntropy"):
            ConditionalEntropy(policy="bogus")

    def test_rejects_bad_base(self):
        """An invalid base is a configuration error."""
        with pytest.raises(ConfigurationError):
            ConditionalEntropy(base=1)


class TestConditionalEntropyValue:
    """Tests for H(Y|X) over sorted pairs."""

    def test_reference_stream(self):
        """H(Y|X) is H of the pair runs minus H of the X runs."""
        engine = ConditionalEntropy()
        engine.accumulate(PAIRS)

        assert engine.get_value() == pytest.approx(_h([2, 1, 1]) - _h([3, 1]))

    def test_reference_stream_in_bits(self):
        """Base 2 gives 1.5 - 0.8113 bits."""
        engine = ConditionalEntropy(base="2")
        engine.accumulate(PAIRS)

        assert engine.get_value() == pytest.approx(0.688722, abs=1e-6)

    def test_estimators_see_run_lengths(self):
        """Joint and marginal estimators receive the pair and X run lengths."""
        engine = ConditionalEntropy()
        engine.accumulate(PAIRS)
        engine.get_value()

        assert engine.joint_estimator.symbol_count == 3
        assert engine.joint_estimator.total == 4
        assert engine.marginal_estimator.symbol_count == 2
        assert engine.marginal_estimator.total == 4

    def test_y_determined_by_x_is_zero(self):
        """If every X has a single Y there is no remaining uncertainty."""
        engine = ConditionalEntropy()
        engine.accumulate([(1, "a"), (1, "a"), (2, "b"), (3, "c"), (3, "c")])

        assert engine.get_value() == pytest.approx(0.0, abs=1e-12)

    def test_independent_uniform_pairs(self):
        """Independent uniform Y carries its full entropy given X."""
        pairs = sorted((x, y) for x in range(3) for y in "ab")
        engine = ConditionalEntropy(base="2")
        engine.accumulate(pairs)

        assert engine.get_value() == pytest.approx(1.0)

    def test_empty_stream_is_zero(self):
        """No pairs means zero entropy."""
        assert ConditionalEntropy().get_value() == 0.0

    def test_batches_are_concatenated(self):
        """Splitting the stream into batches does not change the answer."""
        whole = ConditionalEntropy()
        whole.accumulate(PAIRS)

        split = ConditionalEntropy()
        split.accumulate(PAIRS[:1])
        split.accumulate(PAIRS[1:3])
        split.accumulate(PAIRS[3:])

        assert split.get_value() == whole.get_value()

    def test_descending_stream_accepted(self):
        """A consistently descending order is also grouped."""
        engine = ConditionalEntropy()
        engine.accumulate(list(reversed(PAIRS)))

        assert engine.get_value() == pytest.approx(_h([2, 1, 1]) - _h([3, 1]))

    def test_chao_shen_policy(self):
        """Both estimators use the configured policy."""
        engine = ConditionalEntropy(policy="chaosh")
        engine.accumulate(PAIRS)

        assert math.isfinite(engine.get_value())
        assert type(engine.joint_estimator).__name__ == "ChaoShenEntropyEstimator"


class TestConditionalEntropyContract:
    """Tests for ordering and record-shape errors."""

    def test_swapped_records_rejected(self):
        """Exchanging the last two records breaks the ordering."""
        engine = ConditionalEntropy()
        stream = [PAIRS[0], PAIRS[1], PAIRS[3], PAIRS[2]]

        with pytest.raises(OrderingViolationError) as info:
            engine.accumulate(stream)

        assert info.value.previous == (2, "a")
        assert info.value.current == (1, "b")
        assert info.value.comparison == -1
        assert info.value.previous_comparison == 1
        assert "Out of order" in str(info.value)

    @pytest.mark.parametrize("record", [(1,), (1, "a", "x"), "ab", 5, None])
    def test_rejects_malformed_records(self, record):
        """Records must have exactly two fields."""
        with pytest.raises(RecordShapeError):
            ConditionalEntropy().accumulate([record])

    def test_accepts_lists_as_records(self):
        """Any two-field sequence is a record."""
        engine = ConditionalEntropy()
        engine.accumulate([[1, "a"], [1, "b"]])

        assert engine.get_value() == pytest.approx(math.log(2))


class TestConditionalEntropyLifecycle:
    """Tests for finalize / reset behavior."""

    def test_value_is_cached(self):
        """Repeated get_value() calls return the same value."""
        engine = ConditionalEntropy()
        engine.accumulate(PAIRS)

        first = engine.get_value()

        assert engine.finalize() == first
        assert engine.state is AggregatorState.FINALIZED

    def test_accumulate_after_value_rejected(self):
        """A finalized engine refuses more input."""
        engine = ConditionalEntropy()
        engine.accumulate(PAIRS)
        engine.get_value()

        with pytest.raises(AggregatorStateError):
            engine.accumulate([(3, "a")])

    def test_reset_between_groups(self):
        """cleanup() makes the engine reusable for an unrelated group."""
        engine = ConditionalEntropy()
        engine.accumulate(PAIRS)
        engine.get_value()

        engine.cleanup()
        engine.accumulate([(0, "z"), (0, "z")])

        assert engine.state is AggregatorState.STREAMING
        assert engine.get_value() == pytest.approx(0.0, abs=1e-12)
        assert engine.joint_estimator.total == 2


class TestConditionalEntropyPartials:
    """Tests for partial and merge."""

    def test_partial_requires_tracking(self):
        """partial() needs track_counts=True."""
        with pytest.raises(ConfigurationError, match="track_counts"):
            ConditionalEntropy().partial()

    def test_partial_counts_pairs(self):
        """The partial holds per-pair counts including the open run."""
        engine = ConditionalEntropy(track_counts=True)
        engine.accumulate(PAIRS)

        assert engine.partial() == SymbolCounts({(1, "a"): 2, (1, "b"): 1, (2, "a"): 1})

    def test_merge_across_split_group(self):
        """A run cut by a shard boundary is summed back together."""
        left = ConditionalEntropy(track_counts=True)
        right = ConditionalEntropy(track_counts=True)
        left.accumulate(PAIRS[:1])
        right.accumulate(PAIRS[1:])

        merged = left.merge(right)

        assert merged.counts == {(1, "a"): 2, (1, "b"): 1, (2, "a"): 1}
        assert merged.total == 4

    def test_reset_clears_tally(self):
        """reset() empties the tracked counts."""
        engine = ConditionalEntropy(track_counts=True)
        engine.accumulate(PAIRS)
        engine.reset()

        assert engine.partial() == SymbolCounts.empty()

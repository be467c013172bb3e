"""Transportable intermediate values passed between aggregation stages.

A partial is what an Initial stage emits for one shard and what an
Intermediate stage consumes and re-emits. The orchestrator treats it as
opaque and hands it back verbatim, so every partial here is:

- immutable (frozen dataclass; merging returns a new value)
- picklable, and convertible to plain data via to_dict()/from_dict()
- mergeable associatively and commutatively with respect to the final answer

SymbolCounts sums per-key occurrence counts, CountProfile sums a histogram
of occurrence counts, and ReservoirState keeps the top-k priority keys.
"""

from __future__ import annotations

import heapq
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from shardstats.errors import ConfigurationError, InputContractError

# Priority key = ln(u) / weight for u ~ U(0, 1): the log of the A-Res key
# u ** (1 / weight). Partials built with different schemes must never merge.
PRIORITY_SCHEME = "a-res-log"


def _freeze_key(key: Any) -> Any:
    # JSON round trips turn tuples into lists.
    if isinstance(key, list):
        return tuple(_freeze_key(k) for k in key)
    return key


def _thaw_key(key: Any) -> Any:
    if isinstance(key, tuple):
        return [_thaw_key(k) for k in key]
    return key


@dataclass(frozen=True)
class SymbolCounts:
    """Occurrence count per symbol (or per (X, Y) pair)."""

    counts: Mapping[Any, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> SymbolCounts:
        return cls({})

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[Any, int]]) -> SymbolCounts:
        """Build from (symbol, count) pairs, summing repeated symbols."""
        tally: Counter[Any] = Counter()
        for symbol, count in pairs:
            if count < 0:
                raise InputContractError(f"count for {symbol!r} must be non-negative, got {count}")
            if count:
                tally[symbol] += count
        return cls(dict(tally))

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def __len__(self) -> int:
        return len(self.counts)

    def merge(self, other: SymbolCounts) -> SymbolCounts:
        """Return a new SymbolCounts holding the per-symbol sums."""
        if not isinstance(other, SymbolCounts):
            raise TypeError(f"Can only merge with SymbolCounts, got {type(other).__name__}")
        tally = Counter(self.counts)
        tally.update(other.counts)
        return SymbolCounts(dict(tally))

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "symbol_counts",
            "counts": [[_thaw_key(k), c] for k, c in self.counts.items()],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SymbolCounts:
        if data.get("kind") != "symbol_counts":
            raise TypeError(f"Not a symbol_counts payload: {data.get('kind')!r}")
        return cls.from_pairs((_freeze_key(k), int(c)) for k, c in data["counts"])


@dataclass(frozen=True)
class CountProfile:
    """Histogram of occurrence counts: count -> number of symbols with that count.

    Enough to evaluate any estimator policy, which only looks at counts.
    """

    histogram: Mapping[int, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> CountProfile:
        return cls({})

    @classmethod
    def from_counts(cls, counts: Iterable[int]) -> CountProfile:
        histogram: Counter[int] = Counter()
        for count in counts:
            if count:
                histogram[count] += 1
        return cls(dict(histogram))

    def counts(self) -> Iterator[int]:
        """Yield every symbol's count, each repeated by its multiplicity."""
        for count, multiplicity in sorted(self.histogram.items()):
            for _ in range(multiplicity):
                yield count

    @property
    def total(self) -> int:
        return sum(c * m for c, m in self.histogram.items())

    @property
    def symbol_count(self) -> int:
        return sum(self.histogram.values())

    def merge(self, other: CountProfile) -> CountProfile:
        if not isinstance(other, CountProfile):
            raise TypeError(f"Can only merge with CountProfile, got {type(other).__name__}")
        histogram = Counter(self.histogram)
        histogram.update(other.histogram)
        return CountProfile(dict(histogram))

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "count_profile", "histogram": sorted([c, m] for c, m in self.histogram.items())}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CountProfile:
        if data.get("kind") != "count_profile":
            raise TypeError(f"Not a count_profile payload: {data.get('kind')!r}")
        return cls({int(c): int(m) for c, m in data["histogram"]})


@dataclass(frozen=True, slots=True)
class ScoredItem:
    """A sampled payload tagged with its immutable priority key."""

    priority: float
    item: Any


@dataclass(frozen=True)
class ReservoirState:
    """Contents of a weighted reservoir in transportable form.

    Attributes:
        capacity: Declared reservoir capacity k.
        entries: At most k scored items.
        scheme: Priority-key formula the entries were drawn with.
    """

    capacity: int
    entries: tuple[ScoredItem, ...] = ()
    scheme: str = PRIORITY_SCHEME

    @classmethod
    def empty(cls, capacity: int) -> ReservoirState:
        return cls(capacity=capacity)

    def __len__(self) -> int:
        return len(self.entries)

    def items(self) -> list[Any]:
        return [entry.item for entry in self.entries]

    def merge(self, other: ReservoirState) -> ReservoirState:
        """Keep the ``capacity`` highest-priority entries of both states."""
        if not isinstance(other, ReservoirState):
            raise TypeError(f"Can only merge with ReservoirState, got {type(other).__name__}")
        if other.capacity != self.capacity:
            raise ConfigurationError(
                f"Cannot merge: capacity differs ({self.capacity} vs {other.capacity})"
            )
        if other.scheme != self.scheme:
            raise ConfigurationError(
                f"Cannot merge: priority scheme differs ({self.scheme!r} vs {other.scheme!r})"
            )
        top = heapq.nlargest(
            self.capacity,
            (*self.entries, *other.entries),
            key=lambda entry: entry.priority,
        )
        return ReservoirState(capacity=self.capacity, entries=tuple(top), scheme=self.scheme)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "reservoir",
            "capacity": self.capacity,
            "scheme": self.scheme,
            "entries": [[entry.priority, _thaw_key(entry.item)] for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReservoirState:
        if data.get("kind") != "reservoir":
            raise TypeError(f"Not a reservoir payload: {data.get('kind')!r}")
        entries = tuple(ScoredItem(float(p), _freeze_key(item)) for p, item in data["entries"])
        if len(entries) > int(data["capacity"]):
            raise InputContractError(
                f"reservoir payload holds {len(entries)} entries, more than capacity {data['capacity']}"
            )
        return cls(capacity=int(data["capacity"]), entries=entries, scheme=data["scheme"])

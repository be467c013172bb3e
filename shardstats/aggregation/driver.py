"""Local orchestration of algebraic aggregations.

The core aggregators never schedule work; a host engine decides how records
are grouped, sorted, sharded and how partials are combined. This module is a
small in-process stand-in for that host, used to run aggregations over local
data and to exercise the merge law:

- split_shards: cut a record sequence into contiguous shards
- reduce_partials: fold partials through a reduction tree of given fan-in
- run_sharded: initial per shard, tree of intermediates, final
- aggregate_frame: GROUP BY / ORDER BY over a pandas DataFrame, then
  run_sharded per group

Example:
    frame = pd.DataFrame({"grp": [...], "x": [...], "y": [...]})
    result = aggregate_frame(
        frame,
        by="grp",
        columns=["x", "y"],
        aggregation=ConditionalEntropyAggregation(),
        shards=4,
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np
import pandas as pd

from shardstats.aggregation.algebraic import AlgebraicAggregation
from shardstats.errors import ConfigurationError

logger = logging.getLogger(__name__)


def split_shards(records: Sequence[Any], shards: int) -> list[list[Any]]:
    """Split ``records`` into ``shards`` contiguous, nearly equal parts.

    Parts differ in length by at most one; trailing parts may be empty when
    there are fewer records than shards.
    """
    if shards <= 0:
        raise ConfigurationError(f"shards must be positive, got {shards}")
    size, extra = divmod(len(records), shards)
    parts: list[list[Any]] = []
    start = 0
    for i in range(shards):
        end = start + size + (1 if i < extra else 0)
        parts.append(list(records[start:end]))
        start = end
    return parts


def reduce_partials(aggregation: AlgebraicAggregation, partials: Iterable[Any], fan_in: int = 2) -> Any:
    """Merge partials level by level, ``fan_in`` at a time, into one partial."""
    if fan_in < 2:
        raise ConfigurationError(f"fan_in must be at least 2, got {fan_in}")
    level = list(partials)
    depth = 0
    while len(level) > 1:
        level = [aggregation.intermediate(level[i : i + fan_in]) for i in range(0, len(level), fan_in)]
        depth += 1
        logger.debug("Reduction level %d: %d partials remain", depth, len(level))
    return aggregation.intermediate(level)


def run_sharded(
    aggregation: AlgebraicAggregation,
    shards: Iterable[Iterable[Any]],
    fan_in: int = 2,
) -> Any:
    """Run initial on every shard, reduce the partials, and return final."""
    partials = [aggregation.initial(shard) for shard in shards]
    logger.debug("Computed %d initial partials with %s", len(partials), type(aggregation).__name__)
    return aggregation.final(reduce_partials(aggregation, partials, fan_in))


def aggregate_frame(
    frame: pd.DataFrame,
    by: str | Sequence[str],
    columns: str | Sequence[str],
    aggregation: AlgebraicAggregation,
    *,
    shards: int = 1,
    fan_in: int = 2,
    sort: bool = True,
    name: str | None = None,
) -> pd.Series:
    """Aggregate each group of ``frame`` with ``aggregation``.

    Args:
        frame: Input records.
        by: Column(s) to group on.
        columns: Column(s) forming each record. A single column name yields
            scalar records; a list yields tuples in the given column order.
        aggregation: The algebraic aggregation to run per group.
        shards: Number of contiguous shards each group is split into.
        fan_in: Fan-in of the reduction tree.
        sort: Sort each group by ``columns`` before sharding. Required by the
            entropy aggregations unless the frame is already sorted.
        name: Name of the returned Series.

    Returns:
        Series of per-group results indexed by the group key(s).
    """
    scalar = isinstance(columns, str)
    cols = [columns] if scalar else list(columns)
    group_keys = [by] if isinstance(by, str) else list(by)

    keys: list[Any] = []
    values: list[Any] = []
    for key, group in frame.groupby(group_keys if len(group_keys) > 1 else group_keys[0], sort=True):
        if sort:
            group = group.sort_values(cols, kind="mergesort")
        if scalar:
            records: list[Any] = group[columns].tolist()
        else:
            records = list(group[cols].itertuples(index=False, name=None))
        keys.append(key)
        values.append(run_sharded(aggregation, split_shards(records, shards), fan_in))

    logger.debug("Aggregated %d groups of %d rows", len(keys), len(frame))
    if len(group_keys) > 1:
        index = pd.MultiIndex.from_arrays(
            [[key[i] for key in keys] for i in range(len(group_keys))], names=group_keys
        )
    else:
        index = pd.Index(keys, name=group_keys[0])
    # Element-wise fill keeps list results (reservoir samples) as single cells.
    data = np.empty(len(values), dtype=object)
    for i, value in enumerate(values):
        data[i] = value
    return pd.Series(data, index=index, name=name).infer_objects()

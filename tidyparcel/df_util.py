from typing import Sequence

import numpy as np
import pandas as pd


def partition_rank(df: pd.DataFrame, key: Sequence[str], order_by: str) -> pd.Series:
    """ROW_NUMBER() OVER (PARTITION BY key ORDER BY order_by), 1-based.

    Nulls in the key compare equal, so rows missing the same key fields
    land in the same partition. The result is aligned to ``df.index``.
    """
    if len(df) == 0:
        return pd.Series([], index=df.index, dtype='int64')
    ordered = df.sort_values(order_by, kind='mergesort')
    rank = ordered.groupby(list(key), dropna=False, sort=False).cumcount() + 1
    return rank.reindex(df.index).astype('int64')


def first_by_group(df: pd.DataFrame, group_col: str, value_col: str, order_by: str) -> pd.DataFrame:
    """Per group, the non-null ``value_col`` from the row with the smallest ``order_by``.

    Returns a frame indexed by group with columns ``value`` and ``source``
    (the ``order_by`` value of the winning row). Rows with a null group
    key or a null value are not candidates.
    """
    candidates = df[df[group_col].notna() & df[value_col].notna()]
    ordered = candidates.sort_values(order_by, kind='mergesort')
    firsts = ordered.groupby(group_col, sort=False).head(1)
    return pd.DataFrame({
        'value': firsts[value_col].to_numpy(),
        'source': firsts[order_by].to_numpy(),
    }, index=pd.Index(firsts[group_col].to_numpy(), name=group_col))


def distinct_values_per_group(df: pd.DataFrame, group_col: str, value_col: str) -> pd.Series:
    """Count of distinct non-null ``value_col`` values per group."""
    candidates = df[df[group_col].notna() & df[value_col].notna()]
    return candidates.groupby(group_col)[value_col].nunique()


def _same_value(a, b) -> bool:
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        return False


def values_differ(old: pd.Series, new: pd.Series) -> pd.Series:
    """Elementwise "did this value change", treating two nulls as equal."""
    old_null = old.isna().to_numpy()
    new_null = new.isna().to_numpy()
    equal = np.fromiter(
        (not (on or nn) and _same_value(a, b)
         for a, b, on, nn in zip(old.astype(object), new.astype(object), old_null, new_null)),
        dtype=bool, count=len(old))
    same = (old_null & new_null) | equal
    return pd.Series(~same, index=old.index)

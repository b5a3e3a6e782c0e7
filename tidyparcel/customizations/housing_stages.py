"""The housing-sale cleaning stages, in canonical order.

Usage::

    from tidyparcel.customizations.housing_stages import DEFAULT_STAGES

    pipeline = CleaningPipeline(DEFAULT_STAGES)
    report = pipeline.run(dataset)

Every stage can also be run on its own::

    fill_property_address(dataset)
"""
import logging
from typing import Iterable, Optional

import pandas as pd

from tidyparcel.df_util import (
    distinct_values_per_group, first_by_group, partition_rank, values_differ)
from tidyparcel.pipeline.stage_func import stage
from tidyparcel.pipeline.stage_order import canonical_order
from tidyparcel.pipeline.stage_result import RowLevelConversionFailure
from . import value_transforms as vt

log = logging.getLogger("tidyparcel.stages")


def _keep_where_source_missing(new: pd.Series, old: pd.Series, source: pd.Series) -> pd.Series:
    """Derived values follow their source; rows whose source is null keep what they had."""
    return new.where(source.notna(), old)


def _tuple_part(parts: pd.Series, i: int) -> pd.Series:
    return parts.map(lambda t: t[i]).astype(object)


# ============================================================
# 1. Sale date
# ============================================================

@stage(requires=('sale_date',), provides=('sale_date_normalized',))
def normalize_sale_date(dataset, conf):
    """Parse sale dates, in place when every row parses.

    Phase one parses the whole column. Phase two picks a strategy: if no
    non-null value failed, ``sale_date`` itself is rewritten as dates;
    otherwise it is left untouched. ``sale_date_normalized`` is filled
    either way. Unparseable rows are reported, not raised.
    """
    rid = dataset.record_id_col
    src, dst = conf.sale_date, conf.sale_date_normalized

    df = dataset.select(columns=[rid, src])
    parsed = pd.to_datetime(df[src].map(lambda v: vt.parse_sale_date(v, conf.date_formats)))

    failed = df[src].notna() & parsed.isna()
    failures = [
        RowLevelConversionFailure(record_id=r, column=src, raw_value=raw)
        for r, raw in zip(df.loc[failed, rid], df.loc[failed, src])
    ]
    in_place = not failures

    dataset.add_column(dst, 'datetime64[ns]')
    existing = pd.to_datetime(dataset.select(columns=[dst])[dst], errors='coerce')
    changed = dataset.update(None, {dst: _keep_where_source_missing(parsed, existing, df[src])})

    in_place_rows = 0
    if in_place:
        in_place_rows = dataset.update(None, {src: parsed})
    else:
        log.warning("%d of %d sale dates did not parse; leaving '%s' as is",
                    len(failures), len(df), src)

    return {
        'rows_changed': changed,
        'row_failures': failures,
        'mode': 'in_place' if in_place else 'derived_only',
        'details': {'in_place_rows': in_place_rows},
    }


# ============================================================
# 2. Property address gap-fill
# ============================================================

@stage(requires=('parcel_id', 'property_address'), provides=('property_address',))
def fill_property_address(dataset, conf):
    """Fill null property addresses from another sale of the same parcel.

    The source is the non-null sibling with the smallest record id.
    Records whose parcel has no populated address stay null.
    """
    rid = dataset.record_id_col
    parcel, addr = conf.parcel_id, conf.property_address

    df = dataset.select(columns=[rid, parcel, addr])
    sources = first_by_group(df, parcel, addr, rid)

    conflicting = distinct_values_per_group(df, parcel, addr)
    conflicting = conflicting[conflicting > 1]
    if len(conflicting):
        log.info("%d parcels have more than one distinct address; using the lowest %s",
                 len(conflicting), rid)

    gaps = df[df[addr].isna() & df[parcel].isin(sources.index)]
    if gaps.empty:
        return {'rows_changed': 0, 'details': {'filled': {}, 'conflicting_parcels': conflicting.index.tolist()}}

    fill_values = gaps[parcel].map(sources['value'])
    fill_sources = gaps[parcel].map(sources['source'])
    changed = dataset.update(df.index.isin(gaps.index), {addr: fill_values})

    return {
        'rows_changed': changed,
        'details': {
            'filled': dict(zip(gaps[rid].tolist(), fill_sources.tolist())),
            'conflicting_parcels': conflicting.index.tolist(),
        },
    }


# ============================================================
# 3. Property address split
# ============================================================

@stage(requires=('property_address',),
       provides=('property_address_line', 'property_city'),
       after=('fill_property_address',))
def split_property_address(dataset, conf):
    """Split ``property_address`` on its first delimiter into line and city."""
    addr, line, city = conf.property_address, conf.property_address_line, conf.property_city
    dataset.add_column(line)
    dataset.add_column(city)

    df = dataset.select(columns=[addr, line, city])
    parts = df[addr].map(lambda v: vt.split_property_address(v, conf.address_delimiter))
    changed = dataset.update(None, {
        line: _keep_where_source_missing(_tuple_part(parts, 0), df[line], df[addr]),
        city: _keep_where_source_missing(_tuple_part(parts, 1), df[city], df[addr]),
    })
    return {'rows_changed': changed}


# ============================================================
# 4. Owner address split
# ============================================================

@stage(requires=('owner_address',),
       provides=('owner_address_line', 'owner_city', 'owner_state'))
def split_owner_address(dataset, conf):
    """Split ``owner_address`` into street line, city and state, read from the right."""
    src = conf.owner_address
    targets = [conf.owner_address_line, conf.owner_city, conf.owner_state]
    for col in targets:
        dataset.add_column(col)

    df = dataset.select(columns=[src] + targets)
    parts = df[src].map(lambda v: vt.split_owner_address(v, conf.address_delimiter))
    changed = dataset.update(None, {
        col: _keep_where_source_missing(_tuple_part(parts, i), df[col], df[src])
        for i, col in enumerate(targets)
    })
    return {'rows_changed': changed}


# ============================================================
# 5. Sold-as-vacant normalization
# ============================================================

@stage(requires=('sold_as_vacant',), provides=('sold_as_vacant',))
def normalize_sold_as_vacant(dataset, conf):
    """Collapse Y/N abbreviations of ``sold_as_vacant`` to Yes/No."""
    col = conf.sold_as_vacant
    df = dataset.select(columns=[col])
    normalized = df[col].map(lambda v: vt.normalize_vacant_flag(v, conf.vacant_aliases))
    differs = values_differ(df[col], normalized)
    if not differs.any():
        return {'rows_changed': 0}
    changed = dataset.update(differs, {col: normalized})
    return {'rows_changed': changed}


# ============================================================
# 6. Duplicate elimination
# ============================================================

@stage(requires=('parcel_id', 'property_address', 'sale_price', 'sale_date', 'legal_reference'),
       after=('normalize_sale_date', 'fill_property_address', 'split_property_address',
              'split_owner_address', 'normalize_sold_as_vacant'),
       destructive=True)
def remove_duplicates(dataset, conf):
    """Keep one record per dedupe key, the one with the smallest record id."""
    rid = dataset.record_id_col
    key = list(conf.dedupe_key)

    df = dataset.select(columns=[rid] + key)
    rank = partition_rank(df, key, rid)
    doomed = df.loc[rank > 1, rid]
    if doomed.empty:
        return {'rows_changed': 0, 'details': {'removed_record_ids': []}}

    removed = dataset.delete(lambda frame: frame[rid].isin(doomed))
    return {
        'rows_changed': removed,
        'details': {'removed_record_ids': sorted(doomed.tolist())},
    }


# ============================================================
# 7. Schema pruning
# ============================================================

@stage(after=('normalize_sale_date', 'fill_property_address', 'split_property_address',
              'split_owner_address', 'normalize_sold_as_vacant', 'remove_duplicates'))
def drop_unused_columns(dataset, conf, columns: Optional[Iterable[str]] = None):
    """Drop ``columns`` (default ``conf.drop_columns``) where present."""
    columns = conf.drop_columns if columns is None else columns
    dropped = []
    for col in columns:
        if col == dataset.record_id_col:
            log.warning("Refusing to drop record id column '%s'", col)
            continue
        if dataset.drop_column(col):
            dropped.append(col)
    return {'rows_changed': 0, 'details': {'dropped_columns': dropped}}


ALL_STAGES = [
    normalize_sale_date,
    fill_property_address,
    split_property_address,
    split_owner_address,
    normalize_sold_as_vacant,
    remove_duplicates,
    drop_unused_columns,
]

DEFAULT_STAGES = canonical_order(ALL_STAGES)

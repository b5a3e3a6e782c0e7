"""Read-only diagnostics over a Dataset.

None of these functions write to the dataset. They answer the questions
worth asking between stages: how many rows, which values did not
convert, which parcels still lack an address, what would dedupe remove.
"""
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from tidyparcel.conf import CleaningConf, DEFAULT_CONF
from tidyparcel.customizations import value_transforms as vt
from tidyparcel.df_util import first_by_group, partition_rank
from tidyparcel.pipeline.stage_result import RowLevelConversionFailure

DERIVED_FIELDS = (
    'sale_date_normalized',
    'property_address_line', 'property_city',
    'owner_address_line', 'owner_city', 'owner_state',
)


def row_count(dataset) -> int:
    return len(dataset)


def column_listing(dataset) -> List[Dict[str, Any]]:
    df = dataset.frame
    return [{
        'name': str(col),
        'dtype': str(df[col].dtype),
        'null_count': int(df[col].isna().sum()),
    } for col in df.columns]


def preview(dataset, n: int = 50) -> pd.DataFrame:
    return dataset.frame.head(n)


def value_distribution(dataset, column: str) -> pd.DataFrame:
    """Counts per distinct value of ``column``, nulls included, most common first."""
    counts = dataset.frame[column].value_counts(dropna=False)
    return pd.DataFrame({column: counts.index, 'count': counts.to_numpy()})


def parcels_missing_address(dataset, conf: CleaningConf = DEFAULT_CONF) -> pd.DataFrame:
    """Parcels with at least one null property address.

    Columns: parcel id, ``rows`` and ``null_address_count``, ordered by
    null count descending.
    """
    df = dataset.frame
    grouped = df.assign(_null=df[conf.property_address].isna()).groupby(conf.parcel_id)
    summary = pd.DataFrame({
        'rows': grouped.size(),
        'null_address_count': grouped['_null'].sum().astype('int64'),
    })
    summary = summary[summary['null_address_count'] > 0]
    summary = summary.sort_values('null_address_count', ascending=False, kind='mergesort')
    return summary.reset_index()


def gap_fill_candidates(dataset, conf: CleaningConf = DEFAULT_CONF) -> pd.DataFrame:
    """The source the gap-fill stage would use for each null address."""
    rid = dataset.record_id_col
    parcel, addr = conf.parcel_id, conf.property_address
    df = dataset.select(columns=[rid, parcel, addr])
    sources = first_by_group(df, parcel, addr, rid)
    gaps = df[df[addr].isna() & df[parcel].isin(sources.index)]
    return pd.DataFrame({
        'missing_record_id': gaps[rid].to_numpy(),
        parcel: gaps[parcel].to_numpy(),
        'source_record_id': gaps[parcel].map(sources['source']).to_numpy(),
        'source_address': gaps[parcel].map(sources['value']).to_numpy(),
    })


def missing_address_count(dataset, conf: CleaningConf = DEFAULT_CONF) -> int:
    """Records with no property address and no split address line."""
    df = dataset.frame
    missing = df[conf.property_address].isna() if conf.property_address in df.columns \
        else pd.Series(True, index=df.index)
    if conf.property_address_line in df.columns:
        missing &= df[conf.property_address_line].isna()
    return int(missing.sum())


def unparsed_sale_dates(dataset, conf: CleaningConf = DEFAULT_CONF) -> List[RowLevelConversionFailure]:
    """Rows whose ``sale_date`` is present but does not parse."""
    rid = dataset.record_id_col
    df = dataset.select(columns=[rid, conf.sale_date])
    failures = []
    for record_id, raw in zip(df[rid], df[conf.sale_date]):
        if vt.is_missing(raw):
            continue
        if vt.parse_sale_date(raw, conf.date_formats) is None:
            failures.append(RowLevelConversionFailure(record_id=record_id, column=conf.sale_date, raw_value=raw))
    return failures


def missing_derived_counts(dataset, conf: CleaningConf = DEFAULT_CONF) -> Dict[str, int]:
    """Null count of each derived column that currently exists."""
    df = dataset.frame
    counts = {}
    for field_name in DERIVED_FIELDS:
        col = getattr(conf, field_name)
        if col in df.columns:
            counts[col] = int(df[col].isna().sum())
    return counts


def duplicate_preview(dataset, key: Optional[Sequence[str]] = None,
                      conf: CleaningConf = DEFAULT_CONF) -> pd.DataFrame:
    """Records the dedupe stage would delete, with their ``row_num``."""
    rid = dataset.record_id_col
    key = list(conf.dedupe_key if key is None else key)
    df = dataset.frame
    rank = partition_rank(df, key, rid)
    dupes = df[rank > 1].assign(row_num=rank[rank > 1])
    return dupes.sort_values(key[:2] + [rid], kind='mergesort', na_position='last')


def quality_summary(dataset, conf: CleaningConf = DEFAULT_CONF) -> Dict[str, Any]:
    """Final quality checks: totals, missing addresses, unconverted dates."""
    summary: Dict[str, Any] = {'total_rows': row_count(dataset)}
    columns = set(dataset.columns)
    if conf.property_address in columns or conf.property_address_line in columns:
        summary['missing_address_count'] = missing_address_count(dataset, conf)
    if conf.sale_date in columns:
        summary['unparsed_sale_dates'] = len(unparsed_sale_dates(dataset, conf))
    summary['missing_derived'] = missing_derived_counts(dataset, conf)
    return summary

import pandas as pd
import pytest

from tidyparcel import report
from tidyparcel.customizations.housing_stages import fill_property_address, split_property_address
from tidyparcel.dataflow import PandasDataset


@pytest.fixture
def untouched(sales_ds):
    """Yield the dataset and assert afterwards that nothing was written."""
    before = sales_ds.frame
    yield sales_ds
    pd.testing.assert_frame_equal(sales_ds.frame, before)
    assert sales_ds.history == []


def test_row_count_and_listing(untouched):
    assert report.row_count(untouched) == 6
    listing = {c['name']: c for c in report.column_listing(untouched)}
    assert listing['property_address']['null_count'] == 2
    assert listing['sale_price']['dtype'] == 'int64'


def test_preview(untouched):
    assert len(report.preview(untouched)) == 6
    assert report.preview(untouched, n=2)['record_id'].tolist() == [1, 2]


def test_value_distribution(untouched):
    dist = report.value_distribution(untouched, 'parcel_id')
    assert dict(zip(dist['parcel_id'], dist['count'])) == {'P1': 2, 'P2': 2, 'P3': 1, 'P4': 1}


def test_parcels_missing_address(untouched):
    missing = report.parcels_missing_address(untouched)
    assert sorted(missing['parcel_id']) == ['P1', 'P3']
    by_parcel = missing.set_index('parcel_id')
    assert by_parcel.loc['P1', 'rows'] == 2
    assert by_parcel.loc['P1', 'null_address_count'] == 1


def test_gap_fill_candidates(untouched):
    candidates = report.gap_fill_candidates(untouched)
    assert candidates.to_dict('records') == [{
        'missing_record_id': 2,
        'parcel_id': 'P1',
        'source_record_id': 1,
        'source_address': '100 Main St, Nashville',
    }]


def test_missing_address_count(sales_ds):
    assert report.missing_address_count(sales_ds) == 2
    fill_property_address(sales_ds)
    split_property_address(sales_ds)
    assert report.missing_address_count(sales_ds) == 1


def test_unparsed_sale_dates(sales_df):
    sales_df.loc[4, 'sale_date'] = 'yesterday'
    ds = PandasDataset(sales_df)
    failures = report.unparsed_sale_dates(ds)
    assert [(f.record_id, f.raw_value) for f in failures] == [(5, 'yesterday')]


def test_missing_derived_counts(sales_ds):
    assert report.missing_derived_counts(sales_ds) == {}
    split_property_address(sales_ds)
    assert report.missing_derived_counts(sales_ds) == {'property_address_line': 2, 'property_city': 2}


def test_duplicate_preview(untouched):
    dupes = report.duplicate_preview(untouched)
    assert dupes['record_id'].tolist() == [5]
    assert dupes['row_num'].tolist() == [2]


def test_quality_summary(untouched):
    summary = report.quality_summary(untouched)
    assert summary == {
        'total_rows': 6,
        'missing_address_count': 2,
        'unparsed_sale_dates': 0,
        'missing_derived': {},
    }

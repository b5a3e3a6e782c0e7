import pandas as pd
import pytest

from tidyparcel.data_loading import load_dataset, load_file, rename_headers, save_dataset
from tidyparcel.dataflow import PandasDataset

EXPORT_HEADERS = {
    'UniqueID ': [2045, 16918],
    'ParcelID': ['007 00 0 125.00', '007 00 0 130.00'],
    'PropertyAddress': ['1808  FOX CHASE DR, GOODLETTSVILLE', None],
    'SaleDate': ['April 9, 2013', 'June 10, 2014'],
    'SoldAsVacant': ['N', 'Y'],
    'OwnerAddress': ['1808  FOX CHASE DR, GOODLETTSVILLE, TN', None],
    'TaxDistrict': ['GENERAL SERVICES DISTRICT'] * 2,
}


def test_rename_headers():
    df = rename_headers(pd.DataFrame(EXPORT_HEADERS))
    assert df.columns.tolist() == [
        'record_id', 'parcel_id', 'property_address', 'sale_date',
        'sold_as_vacant', 'owner_address', 'tax_district']


def test_unknown_headers_only_trimmed():
    df = rename_headers(pd.DataFrame({' Notes ': [1]}))
    assert df.columns.tolist() == ['Notes']


def test_load_dataset_csv(tmp_path):
    path = tmp_path / 'nashville.csv'
    pd.DataFrame(EXPORT_HEADERS).to_csv(path, index=False)
    ds = load_dataset(str(path))
    assert isinstance(ds, PandasDataset)
    assert ds.frame['record_id'].tolist() == [2045, 16918]
    assert pd.isna(ds.frame.loc[1, 'property_address'])


def test_record_id_assigned_when_absent(tmp_path):
    path = tmp_path / 'no_ids.tsv'
    pd.DataFrame({'ParcelID': ['A', 'B', 'C']}).to_csv(path, sep='\t', index=False)
    ds = load_dataset(str(path))
    assert ds.columns == ['record_id', 'parcel_id']
    assert ds.frame['record_id'].tolist() == [1, 2, 3]


def test_save_round_trip(tmp_path, sales_ds):
    out = tmp_path / 'clean.parquet'
    save_dataset(sales_ds, str(out))
    reloaded = load_file(str(out))
    assert reloaded['record_id'].tolist() == [1, 2, 3, 4, 5, 6]


def test_unsupported_format(tmp_path, sales_ds):
    with pytest.raises(ValueError):
        load_file(str(tmp_path / 'sales.xlsx'))
    with pytest.raises(ValueError):
        save_dataset(sales_ds, str(tmp_path / 'sales.json'))


def test_load_file_renames_headers(tmp_path):
    path = tmp_path / 'nashville.json'
    pd.DataFrame(EXPORT_HEADERS).to_json(path, orient='records')
    df = load_file(str(path))
    assert df.columns.tolist()[:2] == ['record_id', 'parcel_id']
    assert load_file(str(path), rename=False).columns.tolist()[0] == 'UniqueID '


def test_parq_extension(tmp_path, sales_ds):
    out = tmp_path / 'clean.parq'
    save_dataset(sales_ds, str(out))
    assert load_dataset(str(out)).frame['parcel_id'].tolist() == ['P1', 'P1', 'P2', 'P3', 'P2', 'P4']

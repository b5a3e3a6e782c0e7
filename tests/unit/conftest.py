import pandas as pd
import pytest

from tidyparcel.dataflow import PandasDataset


def sales_frame() -> pd.DataFrame:
    """Six sales across four parcels.

    Record 2 is missing its address (parcel P1 has one on record 1),
    record 4 is missing an address nothing can supply, and record 5
    repeats record 3.
    """
    return pd.DataFrame({
        'record_id': [1, 2, 3, 4, 5, 6],
        'parcel_id': ['P1', 'P1', 'P2', 'P3', 'P2', 'P4'],
        'land_use': ['SINGLE FAMILY'] * 6,
        'property_address': [
            '100 Main St, Nashville', None, '5 Oak Ave, Goodlettsville',
            None, '5 Oak Ave, Goodlettsville', '9 Elm Rd, Nashville'],
        'sale_date': [
            'April 9, 2013', 'June 10, 2014', '2015-01-02',
            '2016-03-04', '2015-01-02', 'March 5, 2015'],
        'sale_price': [100, 200, 300, 400, 300, 500],
        'legal_reference': ['L1', 'L2', 'L3', 'L4', 'L3', 'L6'],
        'sold_as_vacant': ['N', 'Y', 'Yes', 'No', 'Yes', 'y'],
        'owner_address': [
            '100 MAIN ST, NASHVILLE, TN', None, '5 OAK AVE, GOODLETTSVILLE, TN',
            None, '5 OAK AVE, GOODLETTSVILLE, TN', '9 ELM RD, NASHVILLE, TN'],
        'tax_district': ['GENERAL'] * 6,
    })


@pytest.fixture
def sales_df():
    return sales_frame()


@pytest.fixture
def sales_ds():
    return PandasDataset(sales_frame())

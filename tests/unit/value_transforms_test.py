from datetime import date, datetime, timezone

import numpy as np
import pandas as pd

from tidyparcel.conf import DEFAULT_CONF
from tidyparcel.customizations import value_transforms as vt

FORMATS = DEFAULT_CONF.date_formats


# ============================================================================
# is_missing
# ============================================================================

def test_is_missing():
    assert vt.is_missing(None)
    assert vt.is_missing(np.nan)
    assert vt.is_missing(pd.NA)
    assert vt.is_missing(pd.NaT)
    assert not vt.is_missing('')
    assert not vt.is_missing(0)
    assert not vt.is_missing(('a', 'b'))


# ============================================================================
# parse_sale_date
# ============================================================================

class TestParseSaleDate:
    def test_long_month_name(self):
        assert vt.parse_sale_date('April 9, 2013', FORMATS) == pd.Timestamp('2013-04-09')

    def test_iso_date(self):
        assert vt.parse_sale_date('2015-01-02', FORMATS) == pd.Timestamp('2015-01-02')

    def test_time_component_truncated(self):
        assert vt.parse_sale_date('2013-04-09 13:45:00', FORMATS) == pd.Timestamp('2013-04-09')

    def test_surrounding_whitespace(self):
        assert vt.parse_sale_date('  04/09/2013 ', FORMATS) == pd.Timestamp('2013-04-09')

    def test_unparseable(self):
        assert vt.parse_sale_date('not a date', FORMATS) is None
        assert vt.parse_sale_date('2013-02-30', FORMATS) is None
        assert vt.parse_sale_date('', FORMATS) is None

    def test_missing(self):
        assert vt.parse_sale_date(None, FORMATS) is None
        assert vt.parse_sale_date(np.nan, FORMATS) is None

    def test_non_string_rejected(self):
        assert vt.parse_sale_date(20130409, FORMATS) is None

    def test_date_objects_pass_through(self):
        assert vt.parse_sale_date(date(2013, 4, 9), FORMATS) == pd.Timestamp('2013-04-09')
        assert vt.parse_sale_date(datetime(2013, 4, 9, 8, 30), FORMATS) == pd.Timestamp('2013-04-09')

    def test_timezone_dropped(self):
        parsed = vt.parse_sale_date(datetime(2013, 4, 9, 8, 30, tzinfo=timezone.utc), FORMATS)
        assert parsed == pd.Timestamp('2013-04-09')
        assert parsed.tzinfo is None

    def test_out_of_range_year(self):
        assert vt.parse_sale_date(datetime(1500, 1, 1), FORMATS) is None

    def test_first_matching_format_wins(self):
        assert vt.parse_sale_date('01/02/2015', ['%m/%d/%Y', '%d/%m/%Y']) == pd.Timestamp('2015-01-02')
        assert vt.parse_sale_date('01/02/2015', ['%d/%m/%Y', '%m/%d/%Y']) == pd.Timestamp('2015-02-01')


# ============================================================================
# Address splitting
# ============================================================================

class TestSplitPropertyAddress:
    def test_basic(self):
        assert vt.split_property_address('1808 FOX CHASE DR, GOODLETTSVILLE') == \
            ('1808 FOX CHASE DR', 'GOODLETTSVILLE')

    def test_splits_on_first_delimiter_only(self):
        assert vt.split_property_address('A, B, C') == ('A', 'B, C')

    def test_no_delimiter(self):
        assert vt.split_property_address(' 123 Main ') == ('123 Main', None)

    def test_empty_string_kept(self):
        assert vt.split_property_address('') == ('', None)

    def test_missing(self):
        assert vt.split_property_address(None) == (None, None)

    def test_custom_delimiter(self):
        assert vt.split_property_address('1 A St | Town', '|') == ('1 A St', 'Town')


class TestSplitOwnerAddress:
    def test_three_segments(self):
        assert vt.split_owner_address('1808 FOX CHASE DR, GOODLETTSVILLE, TN') == \
            ('1808 FOX CHASE DR', 'GOODLETTSVILLE', 'TN')

    def test_two_segments(self):
        assert vt.split_owner_address('GOODLETTSVILLE, TN') == (None, 'GOODLETTSVILLE', 'TN')

    def test_one_segment(self):
        assert vt.split_owner_address('TN') == (None, None, 'TN')

    def test_extra_segments_rejoined_into_line(self):
        assert vt.split_owner_address('APT 2, 5 MAIN ST, NASHVILLE, TN') == \
            ('APT 2, 5 MAIN ST', 'NASHVILLE', 'TN')

    def test_empty_segments_become_none(self):
        assert vt.split_owner_address(', NASHVILLE, TN') == (None, 'NASHVILLE', 'TN')
        assert vt.split_owner_address('5 MAIN ST, , ') == ('5 MAIN ST', None, None)

    def test_missing(self):
        assert vt.split_owner_address(None) == (None, None, None)


# ============================================================================
# Vacant flag
# ============================================================================

def test_normalize_vacant_flag():
    aliases = DEFAULT_CONF.vacant_aliases
    assert [vt.normalize_vacant_flag(v, aliases) for v in ['y', 'N ', 'Yes', 'Unknown']] == \
        ['Yes', 'No', 'Yes', 'Unknown']
    assert vt.normalize_vacant_flag(None, aliases) is None
    assert vt.normalize_vacant_flag('No', aliases) == 'No'

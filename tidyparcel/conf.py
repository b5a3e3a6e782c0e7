"""Cleaning configuration.

Every tunable the stages read lives on one frozen dataclass. Customise
with ``dataclasses.replace``::

    from dataclasses import replace
    from tidyparcel.conf import DEFAULT_CONF

    conf = replace(DEFAULT_CONF, drop_columns=('owner_address',))
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple


def _default_vacant_aliases() -> Dict[str, str]:
    return {'Y': 'Yes', 'N': 'No'}


@dataclass(frozen=True)
class CleaningConf:
    # Identity and grouping
    record_id: str = 'record_id'
    parcel_id: str = 'parcel_id'

    # Sale date
    sale_date: str = 'sale_date'
    sale_date_normalized: str = 'sale_date_normalized'
    date_formats: Tuple[str, ...] = (
        '%Y-%m-%d',
        '%Y-%m-%d %H:%M:%S',
        '%Y-%m-%d %H:%M:%S.%f',
        '%B %d, %Y',
        '%m/%d/%Y',
    )

    # Property address
    property_address: str = 'property_address'
    property_address_line: str = 'property_address_line'
    property_city: str = 'property_city'

    # Owner address
    owner_address: str = 'owner_address'
    owner_address_line: str = 'owner_address_line'
    owner_city: str = 'owner_city'
    owner_state: str = 'owner_state'

    address_delimiter: str = ','

    # Sold as vacant
    sold_as_vacant: str = 'sold_as_vacant'
    vacant_aliases: Dict[str, str] = field(default_factory=_default_vacant_aliases)

    # Comparison-only fields
    sale_price: str = 'sale_price'
    legal_reference: str = 'legal_reference'

    drop_columns: Tuple[str, ...] = (
        'owner_address', 'tax_district', 'property_address', 'sale_date')

    @property
    def dedupe_key(self) -> Tuple[str, ...]:
        return (self.parcel_id, self.property_address, self.sale_price,
                self.sale_date, self.legal_reference)


DEFAULT_CONF = CleaningConf()

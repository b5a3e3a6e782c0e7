"""Pure per-value functions behind the cleaning stages.

Each function maps one raw cell to its cleaned form and never raises on
malformed input; stages apply them uniformly with ``Series.map``.
"""
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence, Tuple

import pandas as pd


def is_missing(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, (list, tuple, dict, set)):
        return False
    return bool(pd.isna(val))


def _clean_segment(s: str) -> Optional[str]:
    s = s.strip()
    return s if s else None


# ============================================================================
# Dates
# ============================================================================

def parse_sale_date(val: Any, formats: Sequence[str]) -> Optional[pd.Timestamp]:
    """Strictly parse ``val`` into a midnight Timestamp, or None.

    Date and datetime objects pass through. Strings must match one of
    ``formats`` exactly (after trimming); the first match wins.
    """
    if is_missing(val):
        return None
    if isinstance(val, (pd.Timestamp, datetime, date)):
        return _to_midnight(val)
    if not isinstance(val, str):
        return None
    raw = val.strip()
    for fmt in formats:
        try:
            parsed = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        return _to_midnight(parsed)
    return None


def _to_midnight(val) -> Optional[pd.Timestamp]:
    try:
        ts = pd.Timestamp(val)
    except (ValueError, OverflowError):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    # datetime64[ns] cannot hold years outside roughly 1677-2262
    if not (pd.Timestamp.min <= ts <= pd.Timestamp.max):
        return None
    return ts.normalize()


# ============================================================================
# Addresses
# ============================================================================

def split_property_address(val: Any, delimiter: str = ',') -> Tuple[Optional[str], Optional[str]]:
    """Split on the first delimiter into (address_line, city)."""
    if is_missing(val):
        return None, None
    s = str(val)
    idx = s.find(delimiter)
    if idx < 0:
        return s.strip(), None
    return s[:idx].strip(), s[idx + len(delimiter):].strip()


def split_owner_address(val: Any, delimiter: str = ',') -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Split into (address_line, city, state), addressed from the right.

    The last segment is the state and the one before it the city.
    Anything further left is the street line; more than one leading
    segment is re-joined. Empty segments become None.
    """
    if is_missing(val):
        return None, None, None
    segments = str(val).split(delimiter)
    state = _clean_segment(segments[-1])
    city = _clean_segment(segments[-2]) if len(segments) >= 2 else None
    line = None
    if len(segments) >= 3:
        leading = [s.strip() for s in segments[:-2] if s.strip()]
        line = (delimiter + ' ').join(leading) if leading else None
    return line, city, state


# ============================================================================
# Categorical flags
# ============================================================================

def normalize_vacant_flag(val: Any, aliases: Mapping[str, str]) -> Any:
    """Map single-letter abbreviations to canonical values.

    Matching is case-insensitive and ignores surrounding whitespace;
    anything that is not an abbreviation is returned untouched.
    """
    if not isinstance(val, str):
        return val
    return aliases.get(val.strip().upper(), val)

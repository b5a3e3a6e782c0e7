import logging
import os

import pandas as pd

from tidyparcel.dataflow import PandasDataset

log = logging.getLogger("tidyparcel.data_loading")

# Nashville housing export headers, after trimming surrounding whitespace
HEADER_RENAMES = {
    "UniqueID": "record_id",
    "ParcelID": "parcel_id",
    "LandUse": "land_use",
    "PropertyAddress": "property_address",
    "SaleDate": "sale_date",
    "SalePrice": "sale_price",
    "LegalReference": "legal_reference",
    "SoldAsVacant": "sold_as_vacant",
    "OwnerName": "owner_name",
    "OwnerAddress": "owner_address",
    "Acreage": "acreage",
    "TaxDistrict": "tax_district",
    "LandValue": "land_value",
    "BuildingValue": "building_value",
    "TotalValue": "total_value",
    "YearBuilt": "year_built",
    "Bedrooms": "bedrooms",
    "FullBath": "full_bath",
    "HalfBath": "half_bath",
}

FORMAT_ALIASES = {".parq": ".parquet"}

READERS = {
    ".csv": pd.read_csv,
    ".tsv": lambda path: pd.read_csv(path, sep="\t"),
    ".parquet": lambda path: pd.read_parquet(path, engine="pyarrow"),
    ".json": pd.read_json,
}

WRITERS = {
    ".csv": lambda df, path: df.to_csv(path, index=False),
    ".tsv": lambda df, path: df.to_csv(path, sep="\t", index=False),
    ".parquet": lambda df, path: df.to_parquet(path, engine="pyarrow", index=False),
}


def _file_format(path: str, supported) -> str:
    ext = os.path.splitext(path)[1].lower()
    fmt = FORMAT_ALIASES.get(ext, ext)
    if fmt not in supported:
        raise ValueError(f"Unsupported file format: {ext}")
    return fmt


def load_file(path: str, rename: bool = True) -> pd.DataFrame:
    """Read a csv, tsv, parquet or json export, renaming its headers by default."""
    df = READERS[_file_format(path, READERS)](path)
    return rename_headers(df) if rename else df


def rename_headers(df: pd.DataFrame) -> pd.DataFrame:
    """Map export headers to snake_case; unknown headers are only trimmed."""
    renames = {}
    for col in df.columns:
        stripped = str(col).strip()
        renames[col] = HEADER_RENAMES.get(stripped, stripped)
    return df.rename(columns=renames)


def load_dataset(path: str, rename: bool = True, record_id: str = "record_id") -> PandasDataset:
    """Read ``path`` into a PandasDataset.

    When the file carries no record id column one is assigned from row
    order, starting at 1.
    """
    df = load_file(path, rename=rename)
    if record_id not in df.columns:
        log.info("%s has no '%s' column, numbering rows", path, record_id)
        df.insert(0, record_id, range(1, len(df) + 1))
    log.info("Loaded %s: %d rows, %d columns", path, len(df), len(df.columns))
    return PandasDataset(df, record_id=record_id)


def save_dataset(dataset, path: str) -> None:
    df = dataset.frame
    WRITERS[_file_format(path, WRITERS)](df, path)
    log.info("Wrote %d rows to %s", len(df), path)


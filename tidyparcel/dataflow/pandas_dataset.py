import logging
from typing import Any, List, Optional

import pandas as pd
from typing_extensions import override

from tidyparcel.df_util import values_differ
from tidyparcel.pipeline.stage_result import DatasetError, DuplicateRecordIdError
from .dataset import Assignment, Dataset, Predicate

log = logging.getLogger("tidyparcel.dataset")


class PandasDataset(Dataset):
    """In-memory Dataset over a pandas DataFrame.

    The wrapped frame is never modified in place. Every write builds a new
    frame and swaps it in, so a snapshot is just a reference to the
    previous frame.
    """

    def __init__(self, df: pd.DataFrame, record_id: str = 'record_id') -> None:
        super().__init__(record_id=record_id)
        self._df = self._check_record_ids(df, record_id).reset_index(drop=True)

    @staticmethod
    def _check_record_ids(df: pd.DataFrame, record_id: str) -> pd.DataFrame:
        if not df.columns.is_unique:
            raise DatasetError("Dataset requires distinct column names")
        if record_id not in df.columns:
            raise DatasetError(f"Dataset has no '{record_id}' column")
        ids = df[record_id]
        if ids.isna().any():
            raise DuplicateRecordIdError(f"'{record_id}' contains null values")
        if not ids.is_unique:
            dupes = ids[ids.duplicated()].unique().tolist()[:10]
            raise DuplicateRecordIdError(f"'{record_id}' is not unique, repeated values: {dupes}")
        return df.copy()

    @override
    def _snapshot(self) -> pd.DataFrame:
        return self._df

    @override
    def _restore(self, snapshot: pd.DataFrame) -> None:
        self._df = snapshot

    @property
    @override
    def frame(self) -> pd.DataFrame:
        return self._df.copy()

    @property
    @override
    def columns(self) -> List[str]:
        return self._df.columns.to_list()

    @override
    def __len__(self) -> int:
        return len(self._df)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} rows={len(self._df)} columns={len(self._df.columns)}>"

    def _mask(self, predicate: Predicate, df: pd.DataFrame) -> pd.Series:
        if predicate is None:
            return pd.Series(True, index=df.index)
        mask = predicate(df) if callable(predicate) else predicate
        if not isinstance(mask, pd.Series):
            mask = pd.Series(mask, index=df.index)
        return mask.reindex(df.index).fillna(False).astype(bool)

    @override
    def has_column(self, name: str) -> bool:
        return name in self._df.columns

    @override
    def add_column(self, name: str, dtype: Any = object) -> bool:
        if self.has_column(name):
            return False
        with self.transaction(self._tx_stage):
            new_df = self._df.copy()
            new_df[name] = pd.Series([None] * len(new_df), index=new_df.index, dtype=dtype)
            self._df = new_df
            self._record('add_column', [name], 0)
        return True

    @override
    def select(self, predicate: Predicate = None, columns: Optional[List[str]] = None) -> pd.DataFrame:
        df = self._df
        selected = df[self._mask(predicate, df)]
        if columns is not None:
            selected = selected[list(columns)]
        return selected.copy()

    @override
    def update(self, predicate: Predicate, assignment: Assignment) -> int:
        """Apply ``assignment`` to every record matching ``predicate``.

        Values may be scalars, Series aligned to the frame, or callables
        receiving the pre-update frame. All columns are computed before
        any is swapped in.
        """
        df = self._df
        mask = self._mask(predicate, df)
        missing = [col for col in assignment if col not in df.columns]
        if missing:
            raise DatasetError(f"Cannot update unknown columns {missing}")

        new_df = df.copy()
        changed = pd.Series(False, index=df.index)
        for col, value in assignment.items():
            if callable(value):
                value = value(df)
            if isinstance(value, pd.Series):
                value = value.reindex(df.index)
                if mask.all():
                    new_df[col] = value
                else:
                    new_df.loc[mask, col] = value[mask]
            elif mask.all():
                new_df[col] = pd.Series([value] * len(df), index=df.index, dtype=object)
            else:
                new_df.loc[mask, col] = value
            changed |= values_differ(df[col], new_df[col])

        rows_affected = int(changed.sum())
        with self.transaction(self._tx_stage):
            self._df = new_df
            self._record('update', assignment.keys(), rows_affected)
        return rows_affected

    @override
    def delete(self, predicate: Predicate) -> int:
        df = self._df
        mask = self._mask(predicate, df)
        removed_ids = df.loc[mask, self.record_id_col].tolist()
        with self.transaction(self._tx_stage):
            self._df = df[~mask].reset_index(drop=True)
            self._record('delete', [], len(removed_ids), removed_ids)
        return len(removed_ids)

    @override
    def drop_column(self, name: str) -> bool:
        if not self.has_column(name):
            return False
        if name == self.record_id_col:
            raise DatasetError(f"'{name}' is the record id and cannot be dropped")
        with self.transaction(self._tx_stage):
            self._df = self._df.drop(columns=[name])
            self._record('drop_column', [name], 0)
        return True

    @property
    def removed_record_ids(self) -> List[Any]:
        ids: List[Any] = []
        for entry in self._history:
            if entry.operation == 'delete':
                ids.extend(entry.record_ids)
        return ids

import logging
import os
from pathlib import Path
from typing import Union

import pandas as pd
from typing_extensions import override

from tidyparcel.pipeline.stage_result import DatasetError
from .pandas_dataset import PandasDataset

log = logging.getLogger("tidyparcel.dataset")


class ParquetDataset(PandasDataset):
    """PandasDataset persisted to a parquet file.

    Each committed transaction rewrites the file. The new file is written
    next to the target and moved over it with ``os.replace``, so readers
    see either the old table or the new one.
    """

    def __init__(self, df: pd.DataFrame, path: Union[str, Path], record_id: str = 'record_id') -> None:
        super().__init__(df, record_id=record_id)
        self.path = Path(path)

    @classmethod
    def open(cls, path: Union[str, Path], record_id: str = 'record_id') -> 'ParquetDataset':
        try:
            df = pd.read_parquet(path, engine='pyarrow')
        except (OSError, ValueError) as e:
            raise DatasetError(f"Could not read parquet dataset {path}: {e}") from e
        return cls(df, path, record_id=record_id)

    @classmethod
    def create(cls, df: pd.DataFrame, path: Union[str, Path], record_id: str = 'record_id') -> 'ParquetDataset':
        ds = cls(df, path, record_id=record_id)
        ds.save()
        return ds

    def save(self) -> None:
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        try:
            self._df.to_parquet(tmp_path, engine='pyarrow', index=False)
            os.replace(tmp_path, self.path)
        except (OSError, ValueError, TypeError) as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise DatasetError(f"Could not write parquet dataset {self.path}: {e}") from e
        log.debug("Wrote %d rows to %s", len(self._df), self.path)

    @override
    def _commit(self) -> None:
        self.save()

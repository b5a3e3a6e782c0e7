from .dataset import AuditEntry, Dataset
from .pandas_dataset import PandasDataset
from .parquet_dataset import ParquetDataset

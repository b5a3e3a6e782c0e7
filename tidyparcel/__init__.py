from tidyparcel.conf import CleaningConf, DEFAULT_CONF
from tidyparcel.pipeline.stage_result import (
    RowLevelConversionFailure, TidyParcelError, PreconditionViolation,
    StageOrderError, StageConfigError, StageTransactionFailure, DatasetError, DuplicateRecordIdError,
    StageReport, PipelineReport,
)
from tidyparcel.dataflow import AuditEntry, Dataset, PandasDataset, ParquetDataset
from tidyparcel.customizations.housing_stages import (
    normalize_sale_date, fill_property_address, split_property_address,
    split_owner_address, normalize_sold_as_vacant, remove_duplicates,
    drop_unused_columns, ALL_STAGES, DEFAULT_STAGES,
)
from tidyparcel.pipeline.stage_order import canonical_order, check_stage_order
from tidyparcel.pipeline.cleaning_pipeline import CleaningPipeline, run
from tidyparcel.data_loading import load_dataset, save_dataset

__version__ = "0.1.0"

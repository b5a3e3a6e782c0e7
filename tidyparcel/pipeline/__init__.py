from .stage_result import (
    RowLevelConversionFailure, TidyParcelError, PreconditionViolation,
    StageOrderError, StageConfigError, StageTransactionFailure, DatasetError, DuplicateRecordIdError,
    StageReport, PipelineReport,
)
from .stage_func import Stage, stage, STAGE_REGISTRY

"""Result and error types for the cleaning pipeline.

Three failure modes clearly distinguished:
  - Row-level conversion failure (RowLevelConversionFailure) recorded
    per record, never raised
  - Precondition violation (PreconditionViolation) raised before a stage
    touches the dataset
  - Stage transaction failure (StageTransactionFailure) raised after the
    stage's writes have been rolled back
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class RowLevelConversionFailure:
    """A single record whose value could not be converted."""
    record_id: Any
    column: str
    raw_value: Any
    reason: str = 'unparseable'


class TidyParcelError(Exception):
    """Base class for failures raised by tidyparcel."""
    pass


class PreconditionViolation(TidyParcelError):
    """A stage was invoked before one of its prerequisites exists."""

    def __init__(self, stage_name: str, missing_column: str, message: Optional[str] = None):
        self.stage_name = stage_name
        self.missing_column = missing_column
        super().__init__(
            message or f"Stage '{stage_name}' requires column '{missing_column}', "
                       f"which is not present in the dataset"
        )


class StageOrderError(PreconditionViolation):
    """A stage list runs a stage before one it depends on."""

    def __init__(self, stage_name: str, prerequisite: str):
        self.prerequisite = prerequisite
        super().__init__(
            stage_name, prerequisite,
            f"Stage '{stage_name}' must run after '{prerequisite}'",
        )


class StageConfigError(TidyParcelError):
    """Stage ordering declarations contain a cycle."""
    pass


class StageTransactionFailure(TidyParcelError):
    """A stage's batch write could not complete and was rolled back."""

    def __init__(self, stage_name: str, original_error: Exception,
                 completed: Optional[List['StageReport']] = None):
        self.stage_name = stage_name
        self.original_error = original_error
        self.completed = list(completed or [])
        super().__init__(
            f"Stage '{stage_name}' failed and was rolled back: "
            f"{type(original_error).__name__}: {original_error}"
        )


class DatasetError(TidyParcelError):
    """The dataset could not be built or stored."""
    pass


class DuplicateRecordIdError(DatasetError):
    pass


@dataclass
class StageReport:
    """Outcome of one stage invocation."""
    stage_name: str
    rows_before: int
    rows_after: int
    rows_changed: int = 0
    row_failures: List[RowLevelConversionFailure] = field(default_factory=list)
    mode: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def rows_removed(self) -> int:
        return self.rows_before - self.rows_after

    def summary_line(self) -> str:
        parts = [f"{self.stage_name}: {self.rows_changed} changed"]
        if self.rows_removed:
            parts.append(f"{self.rows_removed} removed")
        if self.row_failures:
            parts.append(f"{len(self.row_failures)} row failures")
        if self.mode:
            parts.append(f"mode={self.mode}")
        return ', '.join(parts)


@dataclass
class PipelineReport:
    """Reports for every stage a pipeline run completed, in order."""
    stages: List[StageReport] = field(default_factory=list)

    def __getitem__(self, stage_name: str) -> StageReport:
        for report in self.stages:
            if report.stage_name == stage_name:
                return report
        raise KeyError(stage_name)

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(r.stage_name for r in self.stages)

    @property
    def row_failures(self) -> List[RowLevelConversionFailure]:
        failures: List[RowLevelConversionFailure] = []
        for report in self.stages:
            failures.extend(report.row_failures)
        return failures

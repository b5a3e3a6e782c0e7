"""Dataset: the single table every cleaning stage reads and writes.

Subclasses supply storage; this base class supplies the transaction
protocol. A transaction snapshots the table on entry, restores it if the
body raises, and calls ``_commit`` once on success. Nested transactions
join the outermost one, so a stage that issues several writes commits or
rolls back as one unit.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

import pandas as pd

log = logging.getLogger("tidyparcel.dataset")

# A predicate receives the whole frame and returns a boolean mask.
# None selects every record.
Predicate = Optional[Union[Callable[[pd.DataFrame], pd.Series], pd.Series]]
Assignment = Dict[str, Any]


@dataclass(frozen=True)
class AuditEntry:
    """One committed mutation."""
    operation: str
    columns: Tuple[str, ...]
    rows_affected: int
    stage: Optional[str] = None
    record_ids: Tuple[Any, ...] = ()


class Dataset:
    """Abstract table of sale records keyed by a unique record id."""

    def __init__(self, record_id: str = 'record_id') -> None:
        self.record_id_col = record_id
        self._history: List[AuditEntry] = []
        self._tx_depth = 0
        self._tx_stage: Optional[str] = None

    # ------------------------------------------------------------------
    # Storage hooks
    # ------------------------------------------------------------------

    def _snapshot(self) -> Any:
        raise NotImplementedError

    def _restore(self, snapshot: Any) -> None:
        raise NotImplementedError

    def _commit(self) -> None:
        """Persist the current state. In-memory datasets have nothing to do."""
        pass

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @property
    def frame(self) -> pd.DataFrame:
        raise NotImplementedError

    @property
    def columns(self) -> List[str]:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError

    def has_column(self, name: str) -> bool:
        raise NotImplementedError

    def add_column(self, name: str, dtype: Any = object) -> bool:
        raise NotImplementedError

    def select(self, predicate: Predicate = None, columns: Optional[List[str]] = None) -> pd.DataFrame:
        raise NotImplementedError

    def update(self, predicate: Predicate, assignment: Assignment) -> int:
        raise NotImplementedError

    def delete(self, predicate: Predicate) -> int:
        raise NotImplementedError

    def drop_column(self, name: str) -> bool:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Transactions and audit
    # ------------------------------------------------------------------

    @property
    def history(self) -> List[AuditEntry]:
        return list(self._history)

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    @contextmanager
    def transaction(self, stage: Optional[str] = None) -> Iterator['Dataset']:
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        snapshot = (self._snapshot(), len(self._history))
        self._tx_depth = 1
        self._tx_stage = stage
        try:
            yield self
            self._commit()
        except BaseException:
            state, history_len = snapshot
            self._restore(state)
            del self._history[history_len:]
            log.warning("Rolled back transaction%s", f" for stage '{stage}'" if stage else "")
            raise
        finally:
            self._tx_depth = 0
            self._tx_stage = None

    def _record(self, operation: str, columns, rows_affected: int, record_ids=()) -> None:
        entry = AuditEntry(
            operation=operation,
            columns=tuple(columns),
            rows_affected=int(rows_affected),
            stage=self._tx_stage,
            record_ids=tuple(record_ids),
        )
        self._history.append(entry)
        log.debug("%s %s rows=%d stage=%s", operation, entry.columns, entry.rows_affected, entry.stage)

"""Core types for cleaning stages.

Stage, the @stage decorator, and the stage registry.

A stage declares its contract up front:
  - ``requires`` names the CleaningConf fields of its input columns
  - ``provides`` names the CleaningConf fields of the columns it writes
  - ``after`` names stages that must precede it in the same run

Calling a Stage is the per-stage entry point. It checks preconditions,
runs the stage body inside one dataset transaction and returns a
StageReport.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from tidyparcel.conf import CleaningConf, DEFAULT_CONF
from .stage_result import PreconditionViolation, StageReport, StageTransactionFailure

log = logging.getLogger("tidyparcel.stages")

STAGE_REGISTRY: Dict[str, 'Stage'] = {}


@dataclass
class Stage:
    """A registered cleaning stage.

    Attributes:
        name: identifier, also the key in STAGE_REGISTRY
        func: the stage body, ``func(dataset, conf, **kwargs) -> dict``
        requires: CleaningConf fields naming required input columns
        provides: CleaningConf fields naming written columns
        after: names of stages that must run earlier in the same run
        destructive: True if the stage deletes records
        description: first line of the stage body's docstring
    """
    name: str
    func: Callable
    requires: Tuple[str, ...] = ()
    provides: Tuple[str, ...] = ()
    after: Tuple[str, ...] = ()
    destructive: bool = False
    description: str = field(default='', compare=False)

    def __repr__(self):
        return f"Stage({self.name!r})"

    def required_columns(self, conf: CleaningConf) -> List[str]:
        return [getattr(conf, key) for key in self.requires]

    def provided_columns(self, conf: CleaningConf) -> List[str]:
        return [getattr(conf, key) for key in self.provides]

    def check_preconditions(self, dataset, conf: CleaningConf) -> None:
        for col in self.required_columns(conf):
            if not dataset.has_column(col):
                raise PreconditionViolation(self.name, col)

    def __call__(self, dataset, conf: Optional[CleaningConf] = None, **kwargs: Any) -> StageReport:
        conf = conf or DEFAULT_CONF
        self.check_preconditions(dataset, conf)

        rows_before = len(dataset)
        log.info("Stage '%s' starting on %d rows", self.name, rows_before)
        try:
            with dataset.transaction(stage=self.name):
                outcome = self.func(dataset, conf, **kwargs) or {}
        except PreconditionViolation:
            raise
        except Exception as e:
            log.error("Stage '%s' failed: %s: %s", self.name, type(e).__name__, e)
            raise StageTransactionFailure(self.name, e) from e

        report = StageReport(
            stage_name=self.name,
            rows_before=rows_before,
            rows_after=len(dataset),
            **outcome,
        )
        if report.row_failures:
            log.warning("Stage '%s': %d rows could not be converted",
                        self.name, len(report.row_failures))
        log.info("Stage '%s' finished, %s", self.name, report.summary_line())
        return report


def stage(requires=(), provides=(), after=(), destructive=False, name=None):
    """Decorator that turns a function into a registered Stage.

    Usage::

        @stage(requires=('sold_as_vacant',), provides=('sold_as_vacant',))
        def normalize_sold_as_vacant(dataset, conf):
            ...
            return {'rows_changed': n}

    The returned Stage replaces the function in its module; call it with
    ``normalize_sold_as_vacant(dataset)``.
    """
    def decorator(func):
        doc = inspect.getdoc(func) or ''
        st = Stage(
            name=name or func.__name__,
            func=func,
            requires=tuple(requires),
            provides=tuple(provides),
            after=tuple(after),
            destructive=destructive,
            description=doc.splitlines()[0] if doc else '',
        )
        st.__doc__ = func.__doc__
        st.__wrapped__ = func
        STAGE_REGISTRY[st.name] = st
        return st

    return decorator


def collect_stages(objs) -> List[Stage]:
    """Resolve a list of Stage objects and/or registered names to Stages."""
    stages: List[Stage] = []
    for obj in objs:
        if isinstance(obj, Stage):
            stages.append(obj)
            continue
        if isinstance(obj, str):
            if obj not in STAGE_REGISTRY:
                raise KeyError(
                    f"No stage named '{obj}'. Known stages: {', '.join(STAGE_REGISTRY)}")
            stages.append(STAGE_REGISTRY[obj])
            continue
        raise TypeError(f"Cannot convert {obj!r} to Stage. Expected Stage or stage name.")
    return stages

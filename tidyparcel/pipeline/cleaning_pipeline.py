"""CleaningPipeline: runs an ordered list of stages against one dataset.

Each stage commits or rolls back on its own. A failing stage halts the
run; stages that completed before it keep their effects, and their
reports travel on the raised StageTransactionFailure.

Usage::

    pipeline = CleaningPipeline()                      # canonical order
    report = pipeline.run(dataset)

    run(['fill_property_address', 'split_property_address'], dataset)
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from tidyparcel.conf import CleaningConf, DEFAULT_CONF
from tidyparcel.customizations.housing_stages import DEFAULT_STAGES
from .stage_func import Stage, collect_stages
from .stage_order import check_stage_order
from .stage_result import PipelineReport, PreconditionViolation, StageTransactionFailure

log = logging.getLogger("tidyparcel.pipeline")


class CleaningPipeline:
    """Orchestrates cleaning stages.

    Accepts a mix of Stage objects and registered stage names. The order
    is validated against each stage's ``after`` declarations at
    construction (raises StageOrderError), then executed exactly as
    given.
    """

    def __init__(
        self,
        stages: Optional[list] = None,
        conf: CleaningConf = DEFAULT_CONF,
        stage_kwargs: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.stages: List[Stage] = check_stage_order(
            collect_stages(DEFAULT_STAGES if stages is None else stages))
        self.conf = conf
        self.stage_kwargs = dict(stage_kwargs or {})

    @property
    def stage_names(self) -> List[str]:
        return [st.name for st in self.stages]

    def run(self, dataset) -> PipelineReport:
        """Run every stage in order.

        Raises:
            PreconditionViolation: a stage's input column is missing
            StageTransactionFailure: a stage's write failed; ``completed``
                holds the reports of the stages that finished
        """
        report = PipelineReport()
        log.info("Running %d stages on %d rows: %s",
                 len(self.stages), len(dataset), ', '.join(self.stage_names))
        for st in self.stages:
            try:
                stage_report = st(dataset, self.conf, **self.stage_kwargs.get(st.name, {}))
            except StageTransactionFailure as e:
                e.completed = list(report.stages)
                log.error("Pipeline halted at stage '%s' after %d completed stages",
                          st.name, len(report.stages))
                raise
            except PreconditionViolation as e:
                log.error("Pipeline halted at stage '%s': %s", st.name, e)
                raise
            report.stages.append(stage_report)
        log.info("Pipeline finished, %d rows remain", len(dataset))
        return report

    def explain(self, stage_name: str) -> str:
        """Return a human-readable description of a stage in this pipeline."""
        for st in self.stages:
            if st.name == stage_name:
                break
        else:
            raise KeyError(f"No stage named '{stage_name}' in this pipeline")

        lines = [f"Stage: {st.name}"]
        if st.description:
            lines.append(f"  {st.description}")
        req = st.required_columns(self.conf)
        lines.append(f"  requires: {', '.join(req) if req else 'none'}")
        prov = st.provided_columns(self.conf)
        lines.append(f"  provides: {', '.join(prov) if prov else 'none'}")
        deps = [d for d in st.after if d in self.stage_names]
        lines.append(f"  runs after: {', '.join(deps) if deps else 'nothing'}")
        if st.destructive:
            lines.append("  destructive: deletes records")
        return '\n'.join(lines)


def run(stage_list, dataset, conf: Optional[CleaningConf] = None,
        stage_kwargs: Optional[Dict[str, Dict[str, Any]]] = None) -> PipelineReport:
    """Run ``stage_list`` (None for the canonical order) against ``dataset``."""
    return CleaningPipeline(stage_list, conf or DEFAULT_CONF, stage_kwargs).run(dataset)

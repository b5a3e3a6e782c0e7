"""Ordering rules between stages.

Stages declare which other stages must precede them. A caller's stage
list is checked against those declarations before anything runs;
stages missing from the list impose no constraint.
"""
from __future__ import annotations

import graphlib
from typing import Dict, List, Set

from .stage_func import Stage
from .stage_result import StageConfigError, StageOrderError


def _dependency_graph(stages: List[Stage]) -> Dict[str, Set[str]]:
    names = {st.name for st in stages}
    graph: Dict[str, Set[str]] = {}
    for st in stages:
        graph.setdefault(st.name, set()).update(d for d in st.after if d in names)
    return graph


def canonical_order(stages: List[Stage]) -> List[Stage]:
    """Topologically sort stages by their ``after`` declarations.

    Among stages that are ready at the same time, the one listed first
    wins, so an already valid list comes back unchanged.

    Raises:
        StageConfigError: if the declarations contain a cycle
    """
    by_name: Dict[str, Stage] = {}
    position: Dict[str, int] = {}
    for i, st in enumerate(stages):
        if st.name not in by_name:
            by_name[st.name] = st
            position[st.name] = i

    ts = graphlib.TopologicalSorter(_dependency_graph(list(by_name.values())))
    try:
        ts.prepare()
    except graphlib.CycleError as e:
        raise StageConfigError(f"Cycle detected in stage ordering: {e}") from e

    ordered: List[Stage] = []
    pool: List[str] = []
    while ts.is_active():
        pool.extend(ts.get_ready())
        pool.sort(key=position.__getitem__)
        name = pool.pop(0)
        ordered.append(by_name[name])
        ts.done(name)
    return ordered


def check_stage_order(stages: List[Stage]) -> List[Stage]:
    """Validate that every declared prerequisite present in ``stages`` runs earlier.

    Repeating a stage is allowed; stages are idempotent.

    Raises:
        StageConfigError: if the declarations contain a cycle
        StageOrderError: if a stage is listed before one it must follow
    """
    graph = _dependency_graph(stages)
    try:
        tuple(graphlib.TopologicalSorter(graph).static_order())
    except graphlib.CycleError as e:
        raise StageConfigError(f"Cycle detected in stage ordering: {e}") from e

    seen: Set[str] = set()
    names = {st.name for st in stages}
    for st in stages:
        for dep in st.after:
            if dep in names and dep not in seen:
                raise StageOrderError(st.name, dep)
        seen.add(st.name)
    return stages

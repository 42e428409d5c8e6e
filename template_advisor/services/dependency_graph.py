"""
Dependency graph analysis over template steps.

Steps form a directed graph with an edge from each step to every step it
depends on. All checks return plain data and never raise on malformed input;
a dangling or circular reference is a data-quality signal for the caller.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Set

import structlog

from ..models.template import TemplateStep

logger = structlog.get_logger(__name__)


def _adjacency(steps: Sequence[TemplateStep]) -> Dict[str, List[str]]:
    graph: Dict[str, List[str]] = {}
    for step in steps:
        graph.setdefault(step.id, []).extend(step.dependencies or [])
    return graph


def validate_dependencies(steps: Sequence[TemplateStep]) -> bool:
    """True when every dependency id names a step in the same collection."""
    return not find_missing_dependencies(steps)


def find_missing_dependencies(steps: Sequence[TemplateStep]) -> Dict[str, List[str]]:
    """Map of step id -> dependency ids that do not exist."""
    ids = {s.id for s in steps}
    missing: Dict[str, List[str]] = {}
    for step in steps:
        absent = [dep for dep in (step.dependencies or []) if dep not in ids]
        if absent:
            missing[step.id] = absent
    return missing


def find_self_dependencies(steps: Sequence[TemplateStep]) -> List[str]:
    """Ids of steps listing themselves as a dependency."""
    return [s.id for s in steps if s.id in (s.dependencies or [])]


def detect_cycles(steps: Sequence[TemplateStep]) -> bool:
    """Depth-first search with a visited set and a recursion stack.

    Runs iteratively so long dependency chains do not hit the interpreter's
    recursion limit. Dangling references are ignored here.
    """
    graph = _adjacency(steps)
    visited: Set[str] = set()
    on_stack: Set[str] = set()

    for root in graph:
        if root in visited:
            continue
        # Frames of (node, iterator over its dependencies)
        stack = [(root, iter(graph[root]))]
        visited.add(root)
        on_stack.add(root)
        while stack:
            node, deps = stack[-1]
            advanced = False
            for dep in deps:
                if dep not in graph:
                    continue
                if dep in on_stack:
                    logger.debug("Dependency cycle found", step_id=node, dependency=dep)
                    return True
                if dep not in visited:
                    visited.add(dep)
                    on_stack.add(dep)
                    stack.append((dep, iter(graph[dep])))
                    advanced = True
                    break
            if not advanced:
                on_stack.discard(node)
                stack.pop()
    return False


def critical_path(steps: Sequence[TemplateStep]) -> List[TemplateStep]:
    """Approximate the critical path as start steps followed by end steps.

    Start steps have no dependencies, end steps are depended on by nobody.
    This marks steps for priority ordering; it is not a longest-path
    schedule.
    """
    depended_on: Set[str] = set()
    for step in steps:
        depended_on.update(step.dependencies or [])

    path: List[TemplateStep] = []
    seen: Set[str] = set()
    starts = [s for s in steps if not s.dependencies]
    ends = [s for s in steps if s.id not in depended_on]
    for step in starts + ends:
        if step.id in seen:
            continue
        seen.add(step.id)
        path.append(step)
    return path


def optimize_sequence(steps: Sequence[TemplateStep]) -> List[TemplateStep]:
    """Order critical-path steps first, then by ascending dependency count.

    Returns new step objects with ``critical_path`` set; the input list and
    its steps are left untouched. Sorting is stable.
    """
    critical_ids = {s.id for s in critical_path(steps)}
    marked = [
        s.model_copy(update={"critical_path": s.id in critical_ids}, deep=True)
        for s in steps
    ]
    return sorted(
        marked,
        key=lambda s: (0 if s.critical_path else 1, len(s.dependencies or [])),
    )

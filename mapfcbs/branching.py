"""Conflict ranking and the constraints that split a constraint-tree node."""

from __future__ import annotations

import random
from collections import Counter
from enum import Enum, auto
from typing import Optional, Sequence

from mapfcbs.cbs_node import CBSNode, Path
from mapfcbs.conflict import Conflict, ConflictType, Constraint, ConstraintType


class ConflictSelection(Enum):
    """Tie-breaking rules for choosing among conflicts of equal cardinality and type."""

    RANDOM = auto()
    EARLIEST = auto()
    CONFLICTS = auto()
    MCONSTRAINTS = auto()
    FCONSTRAINTS = auto()
    WIDTH = auto()
    SINGLETONS = auto()


def _branch(node: Optional[CBSNode]):
    while node is not None:
        yield node
        node = node.parent


def _latest_path(node: CBSNode, agent: int) -> Optional[Path]:
    for ancestor in _branch(node):
        for owner, path in ancestor.paths:
            if owner == agent:
                return path
    return None


def _average_width(node: CBSNode, agent: int) -> float:
    path = _latest_path(node, agent)
    if not path:
        return 0.0
    return sum(entry.mdd_width for entry in path) / len(path)


def _involves(conflict: Conflict, other: Conflict) -> bool:
    agents = (conflict.a1, conflict.a2)
    return other.a1 in agents or other.a2 in agents


def compute_conflict_priority(conflict: Conflict, node: CBSNode, rule: ConflictSelection) -> None:
    """Set ``conflict.secondary_priority`` according to ``rule``; smaller is preferred."""
    conflict.secondary_priority = 0
    agents = (conflict.a1, conflict.a2)
    if rule == ConflictSelection.EARLIEST:
        first = conflict.constraint1[0]
        if conflict.type in (ConflictType.STANDARD, ConflictType.RECTANGLE,
                             ConflictType.TARGET, ConflictType.MUTEX):
            conflict.secondary_priority = first.t
        elif conflict.type == ConflictType.CORRIDOR:
            conflict.secondary_priority = min(first.y, first.t)
    elif rule == ConflictSelection.CONFLICTS:
        conflict.secondary_priority = sum(
            1 for other in (*node.conflicts, *node.unknown_conf) if _involves(conflict, other)
        )
    elif rule in (ConflictSelection.MCONSTRAINTS, ConflictSelection.FCONSTRAINTS):
        count = sum(
            1
            for ancestor in _branch(node)
            for constraint in ancestor.constraints
            if constraint.agent in agents
        )
        conflict.secondary_priority = -count if rule == ConflictSelection.MCONSTRAINTS else count
    elif rule == ConflictSelection.WIDTH:
        conflict.secondary_priority = (_average_width(node, conflict.a1)
                                       + _average_width(node, conflict.a2))


_POSITIVE = {
    ConstraintType.VERTEX: ConstraintType.POSITIVE_VERTEX,
    ConstraintType.EDGE: ConstraintType.POSITIVE_EDGE,
}


def _positive(constraint: Constraint) -> list[Constraint]:
    kind = ConstraintType(constraint.kind)
    if kind not in _POSITIVE:
        raise ValueError(f"cannot split disjointly on a {kind.name} constraint")
    return [constraint._replace(kind=_POSITIVE[kind])]


def child_constraints(conflict: Conflict, disjoint_splitting: bool,
                      rng: Optional[random.Random] = None
                      ) -> tuple[list[Constraint], list[Constraint]]:
    """Constraints of the two children that resolve ``conflict``."""
    if disjoint_splitting and conflict.type == ConflictType.STANDARD:
        chooser = rng if rng is not None else random
        if chooser.randrange(2):
            return list(conflict.constraint1), _positive(conflict.constraint1[-1])
        return _positive(conflict.constraint2[-1]), list(conflict.constraint2)
    return list(conflict.constraint1), list(conflict.constraint2)


def agents_to_replan(constraints: Sequence[Constraint], paths: Sequence[Path]) -> set[int]:
    """Agents whose landmark times violate the stop constraints."""
    agents: set[int] = set()
    for agent, landmark, _y, t, kind in constraints:
        reached = paths[agent].timestamps[landmark]
        if kind == ConstraintType.LEQSTOP and reached > t:
            agents.add(agent)
        elif kind == ConstraintType.GSTOP and reached <= t:
            agents.add(agent)
    return agents


_COUNTED = {
    ConflictType.RECTANGLE,
    ConflictType.CORRIDOR,
    ConflictType.TARGET,
    ConflictType.STANDARD,
    ConflictType.MUTEX,
}


def count_conflict_type(counts: Counter, conflict: Optional[Conflict]) -> Counter:
    """Tally the type of the conflict a node was split on."""
    if conflict is not None and conflict.type in _COUNTED:
        counts[conflict.type] += 1
    return counts
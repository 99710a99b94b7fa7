"""Constraints and conflicts exchanged between the high and low level searches."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import NamedTuple


class ConstraintType(IntEnum):
    """Kinds of constraint a CBS branch may impose on an agent."""

    LEQLENGTH = 0
    GLENGTH = 1
    RANGE = 2
    BARRIER = 3
    VERTEX = 4
    EDGE = 5
    POSITIVE_VERTEX = 6
    POSITIVE_EDGE = 7
    GSTOP = 8
    LEQSTOP = 9


class ConflictType(IntEnum):
    """Conflict kinds; a smaller value is preferred when choosing a conflict."""

    MUTEX = 0
    TARGET = 1
    CORRIDOR = 2
    RECTANGLE = 3
    STANDARD = 4
    TEMPORAL = 5


class ConflictPriority(IntEnum):
    """Cardinality classes; a smaller value is preferred."""

    CARDINAL = 0
    PSEUDO_CARDINAL = 1
    SEMI = 2
    NON = 3
    UNKNOWN = 4


class Constraint(NamedTuple):
    """A single constraint ``(agent, x, y, t, kind)``."""

    agent: int
    x: int
    y: int
    t: int
    kind: ConstraintType


_CONSTRAINT_LABELS = {
    ConstraintType.VERTEX: "V",
    ConstraintType.POSITIVE_VERTEX: "V+",
    ConstraintType.EDGE: "E",
    ConstraintType.POSITIVE_EDGE: "E+",
    ConstraintType.BARRIER: "B",
    ConstraintType.RANGE: "R",
    ConstraintType.GLENGTH: "G",
    ConstraintType.LEQLENGTH: "L",
    ConstraintType.GSTOP: "GS",
    ConstraintType.LEQSTOP: "LS",
}

_PRIORITY_LABELS = {
    ConflictPriority.CARDINAL: "cardinal ",
    ConflictPriority.PSEUDO_CARDINAL: "pseudo-cardinal ",
    ConflictPriority.SEMI: "semi-cardinal ",
    ConflictPriority.NON: "non-cardinal ",
    ConflictPriority.UNKNOWN: "",
}

_TYPE_LABELS = {
    ConflictType.STANDARD: "standard",
    ConflictType.RECTANGLE: "rectangle",
    ConflictType.CORRIDOR: "corridor",
    ConflictType.TARGET: "target",
    ConflictType.MUTEX: "mutex",
    ConflictType.TEMPORAL: "temporal",
}


def format_constraint(constraint: Constraint) -> str:
    """Render a constraint as ``<agent,x,y,t,label>``."""
    agent, x, y, t, kind = constraint
    return f"<{agent},{x},{y},{t},{_CONSTRAINT_LABELS[ConstraintType(kind)]}>"


@dataclass(eq=False)
class Conflict:
    """A conflict between two agents and the two constraints that resolve it."""

    a1: int = -1
    a2: int = -1
    type: ConflictType = ConflictType.STANDARD
    priority: ConflictPriority = ConflictPriority.UNKNOWN
    secondary_priority: float = 0
    constraint1: list[Constraint] = field(default_factory=list)
    constraint2: list[Constraint] = field(default_factory=list)

    def _set(self, a1, a2, kind, first, second) -> None:
        self.a1 = a1
        self.a2 = a2
        self.type = kind
        self.constraint1 = list(first)
        self.constraint2 = list(second)

    def vertex_conflict(self, a1: int, a2: int, loc: int, t: int) -> None:
        """Both agents occupy ``loc`` at time ``t``."""
        self._set(
            a1, a2, ConflictType.STANDARD,
            [Constraint(a1, loc, -1, t, ConstraintType.VERTEX)],
            [Constraint(a2, loc, -1, t, ConstraintType.VERTEX)],
        )

    def edge_conflict(self, a1: int, a2: int, loc1: int, loc2: int, t: int) -> None:
        """The agents swap ``loc1`` and ``loc2`` arriving at time ``t``."""
        self._set(
            a1, a2, ConflictType.STANDARD,
            [Constraint(a1, loc1, loc2, t, ConstraintType.EDGE)],
            [Constraint(a2, loc2, loc1, t, ConstraintType.EDGE)],
        )

    def target_conflict(self, a1: int, a2: int, loc: int, t: int) -> None:
        """Agent ``a2`` visits the target ``loc`` of ``a1`` after ``a1`` stopped there."""
        self._set(
            a1, a2, ConflictType.TARGET,
            [Constraint(a1, loc, -1, t, ConstraintType.LEQLENGTH)],
            [Constraint(a1, loc, -1, t, ConstraintType.GLENGTH)],
        )

    def corridor_conflict(self, a1: int, a2: int, loc1: int, loc2: int, t1: int, t2: int) -> None:
        """The agents meet inside a corridor with exits ``loc1`` and ``loc2``."""
        self._set(
            a1, a2, ConflictType.CORRIDOR,
            [Constraint(a1, loc1, 0, t1, ConstraintType.RANGE)],
            [Constraint(a2, loc2, 0, t2, ConstraintType.RANGE)],
        )

    def temporal_conflict(self, a1: int, a2: int, from_landmark: int, to_landmark: int,
                          t1: int, t2: int) -> None:
        """Agent ``a1`` reaches ``from_landmark`` at ``t1``, not before ``a2`` reaches ``to_landmark`` at ``t2``."""
        self._set(
            a1, a2, ConflictType.TEMPORAL,
            [Constraint(a1, from_landmark, -1, t2 - 1, ConstraintType.LEQSTOP)],
            [Constraint(a2, to_landmark, -1, t1, ConstraintType.GSTOP)],
        )

    def __lt__(self, other: "Conflict") -> bool:
        """True if ``other`` should be chosen in preference to this conflict."""
        if self.priority != other.priority:
            return self.priority > other.priority
        if self.type != other.type:
            return self.type > other.type
        if self.secondary_priority != other.secondary_priority:
            return self.secondary_priority > other.secondary_priority
        return bool(random.getrandbits(1))

    def __str__(self) -> str:
        first = "".join(format_constraint(c) + "," for c in self.constraint1)
        second = "".join(format_constraint(c) + "," for c in self.constraint2)
        return (
            f"{_PRIORITY_LABELS[self.priority]}{_TYPE_LABELS[self.type]} conflict:  "
            f"{self.a1} with {first} and {self.a2} with {second}"
        )
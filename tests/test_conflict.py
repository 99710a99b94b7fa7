from unittest.mock import patch

from mapfcbs.conflict import (
    Conflict,
    ConflictPriority,
    ConflictType,
    Constraint,
    ConstraintType,
    format_constraint,
)


def test_vertex_conflict_constraints():
    c = Conflict()
    c.vertex_conflict(0, 1, 5, 3)
    assert c.type == ConflictType.STANDARD
    assert c.constraint1 == [Constraint(0, 5, -1, 3, ConstraintType.VERTEX)]
    assert c.constraint2 == [Constraint(1, 5, -1, 3, ConstraintType.VERTEX)]


def test_edge_conflict_swaps_locations():
    c = Conflict()
    c.edge_conflict(2, 4, 7, 8, 6)
    assert c.constraint1 == [Constraint(2, 7, 8, 6, ConstraintType.EDGE)]
    assert c.constraint2 == [Constraint(4, 8, 7, 6, ConstraintType.EDGE)]
    assert (c.a1, c.a2) == (2, 4)


def test_target_conflict_constrains_first_agent_twice():
    c = Conflict()
    c.target_conflict(3, 1, 9, 4)
    assert c.type == ConflictType.TARGET
    assert [con.agent for con in c.constraint1 + c.constraint2] == [3, 3]
    assert c.constraint1[0].kind == ConstraintType.LEQLENGTH
    assert c.constraint2[0].kind == ConstraintType.GLENGTH


def test_corridor_conflict_range_constraints():
    c = Conflict()
    c.corridor_conflict(0, 1, 10, 20, 5, 6)
    assert c.type == ConflictType.CORRIDOR
    assert c.constraint1 == [Constraint(0, 10, 0, 5, ConstraintType.RANGE)]
    assert c.constraint2 == [Constraint(1, 20, 0, 6, ConstraintType.RANGE)]


def test_temporal_conflict_uses_stop_constraints():
    c = Conflict()
    c.temporal_conflict(0, 1, 2, 3, 7, 5)
    assert c.type == ConflictType.TEMPORAL
    assert c.constraint1[0].kind == ConstraintType.LEQSTOP
    assert c.constraint1[0].x == 2
    assert c.constraint2[0].kind == ConstraintType.GSTOP
    assert c.constraint2[0].x == 3


def test_format_constraint():
    assert format_constraint(Constraint(1, 2, 3, 4, ConstraintType.EDGE)) == "<1,2,3,4,E>"
    assert format_constraint(Constraint(0, 5, -1, 2, ConstraintType.POSITIVE_VERTEX)) == "<0,5,-1,2,V+>"


def test_conflict_str():
    c = Conflict(priority=ConflictPriority.CARDINAL)
    c.vertex_conflict(0, 1, 5, 3)
    assert str(c) == "cardinal standard conflict:  0 with <0,5,-1,3,V>, and 1 with <1,5,-1,3,V>,"


def test_cardinality_dominates():
    semi = Conflict(priority=ConflictPriority.SEMI)
    cardinal = Conflict(priority=ConflictPriority.CARDINAL)
    assert semi < cardinal
    assert not cardinal < semi


def test_type_breaks_priority_ties():
    standard = Conflict(type=ConflictType.STANDARD, priority=ConflictPriority.NON)
    target = Conflict(type=ConflictType.TARGET, priority=ConflictPriority.NON)
    assert standard < target
    assert not target < standard


def test_secondary_priority_smaller_is_better():
    worse = Conflict(secondary_priority=5)
    better = Conflict(secondary_priority=1)
    assert worse < better
    assert not better < worse


def test_full_tie_is_random():
    a, b = Conflict(), Conflict()
    with patch("random.getrandbits", return_value=1):
        assert a < b
    with patch("random.getrandbits", return_value=0):
        assert not a < b
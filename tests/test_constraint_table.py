import pytest

from mapfcbs.cbs_node import CBSNode, Path
from mapfcbs.conflict import Constraint, ConstraintType
from mapfcbs.constraint_table import MAX_TIMESTEP, ConstraintTable


def make_table():
    return ConstraintTable(4, 16)


def child_of(*constraints):
    root = CBSNode()
    return CBSNode(parent=root, constraints=list(constraints))


def test_edge_index_disjoint_from_vertices():
    table = make_table()
    assert table.edge_index(0, 1) >= table.map_size
    assert table.edge_index(0, 1) != table.edge_index(1, 0)


def test_insert_range_is_half_open():
    table = make_table()
    table.insert(3, 2, 5)
    assert table.constrained(3, 2)
    assert table.constrained(3, 4)
    assert not table.constrained(3, 5)
    assert not table.constrained(3, 1)
    assert table.latest_timestep == 5


def test_insert_forever_updates_latest_with_t_min():
    table = make_table()
    table.insert(3, 7, MAX_TIMESTEP)
    assert table.latest_timestep == 7
    assert table.constrained(3, 10**6)


def test_negative_location_rejected():
    table = make_table()
    with pytest.raises(ValueError):
        table.insert(-1, 0, 1)


def test_landmarks():
    table = make_table()
    table.insert_landmark(5, 3)
    assert table.constrained(6, 3)
    assert not table.constrained(5, 3)
    table.insert_landmark(5, 3)
    with pytest.raises(ValueError):
        table.insert_landmark(6, 3)


def test_edge_constrained():
    table = make_table()
    table.insert_edge(1, 2, 4, 5)
    assert table.edge_constrained(1, 2, 4)
    assert not table.edge_constrained(2, 1, 4)


def test_decode_barrier_invariants():
    table = make_table()
    states = table.decode_barrier(0, 3, 5)
    assert states[-1] == (3, 5)
    assert states[0][0] == 0
    times = [t for _, t in states]
    assert times == sorted(times)
    assert len(states) == 4


def test_add_path_wait_at_goal():
    table = make_table()
    table.add_path(Path.from_locations([0, 1, 2]), True)
    assert table.constrained(0, 0)
    assert not table.constrained(0, 1)
    assert table.constrained(2, 100)


def test_add_path_no_wait():
    table = make_table()
    table.add_path(Path.from_locations([0, 1, 2]), False)
    assert table.constrained(2, 2)
    assert not table.constrained(2, 3)


def test_copy_is_independent():
    table = make_table()
    table.insert(3, 0, 2)
    clone = table.copy()
    clone.insert(3, 5, 6)
    assert clone.constrained(3, 5)
    assert not table.constrained(3, 5)
    assert clone.constrained(3, 1)


def test_build_vertex_only_for_own_agent():
    node = child_of(Constraint(0, 5, -1, 3, ConstraintType.VERTEX))
    own, other = make_table(), make_table()
    own.build(node, 0, 1)
    other.build(node, 1, 1)
    assert own.constrained(5, 3)
    assert not other.constrained(5, 3)


def test_build_leqlength():
    node = child_of(Constraint(0, 5, -1, 4, ConstraintType.LEQLENGTH))
    own, other = make_table(), make_table()
    own.build(node, 0, 1)
    other.build(node, 1, 1)
    assert own.length_max == 4
    assert other.constrained(5, 1000)
    assert not other.constrained(5, 3)


def test_build_glength():
    node = child_of(Constraint(0, 5, -1, 4, ConstraintType.GLENGTH))
    table = make_table()
    table.build(node, 0, 1)
    assert table.length_min == 5
    assert table.latest_timestep >= table.length_min


def test_build_positive_vertex():
    node = child_of(Constraint(0, 5, -1, 2, ConstraintType.POSITIVE_VERTEX))
    own, other = make_table(), make_table()
    own.build(node, 0, 1)
    other.build(node, 1, 1)
    assert own.landmarks == {2: 5}
    assert other.constrained(5, 2)


def test_build_stop_constraints():
    node = child_of(
        Constraint(0, 1, -1, 6, ConstraintType.GSTOP),
        Constraint(0, 0, -1, 3, ConstraintType.LEQSTOP),
    )
    table = make_table()
    table.build(node, 0, 2)
    assert table.g_goal_time[1] == 6
    assert table.leq_goal_time[0] == 3
    assert table.length_min == 7
    assert table.holding_time() == 7


def test_build_range():
    node = child_of(Constraint(0, 5, 1, 3, ConstraintType.RANGE))
    table = make_table()
    table.build(node, 0, 1)
    assert all(table.constrained(5, t) for t in range(1, 4))
    assert not table.constrained(5, 4)


def test_build_ignores_root_constraints():
    root = CBSNode(constraints=[Constraint(0, 5, -1, 3, ConstraintType.VERTEX)])
    table = make_table()
    table.build(root, 0, 1)
    assert not table.constrained(5, 3)


def test_holding_time():
    table = make_table()
    table.goal_location = 2
    assert table.holding_time() == 0
    table.insert(2, 0, 4)
    assert table.holding_time() == 4
    table.insert_landmark(3, 6)
    assert table.holding_time() == 7


def test_cat_small_vertex_and_swap():
    table = make_table()
    table.build_cat(0, [None, Path.from_locations([5, 6])], 3)
    assert table.num_conflicts_for_step(7, 6, 1) == 1
    assert table.num_conflicts_for_step(6, 5, 1) == 1
    assert table.num_conflicts_for_step(4, 5, 1) == 0
    assert table.num_conflicts_for_step(7, 6, 50) == 1


def test_cat_large_vertex_and_swap():
    table = make_table()
    table.map_size_threshold = 0
    table.build_cat(0, [None, Path.from_locations([5, 6])], 3)
    assert table.num_conflicts_for_step(7, 6, 1) == 1
    assert table.num_conflicts_for_step(6, 5, 1) == 1
    assert table.num_conflicts_for_step(4, 5, 1) == 0
    assert table.num_conflicts_for_step(7, 6, 50) == 1


def test_cat_ignores_own_path():
    table = make_table()
    table.build_cat(1, [Path.from_locations([0]), Path.from_locations([5, 6])], 3)
    assert table.num_conflicts_for_step(7, 6, 1) == 0
    assert table.num_conflicts_for_step(1, 0, 1) == 1
from mapfcbs.cbs_node import CBSNode, Path, PathEntry
from mapfcbs.conflict import Conflict


def test_is_single():
    assert PathEntry(3, mdd_width=1).is_single()
    assert not PathEntry(3, mdd_width=2).is_single()


def test_path_from_locations_and_copy_independent():
    path = Path.from_locations([1, 2, 3], timestamps=[0, 2], begin_time=1)
    clone = path.copy()
    assert clone.locations == [1, 2, 3]
    assert clone.timestamps == [0, 2]
    assert clone.begin_time == 1
    clone[0].location = 9
    clone.timestamps.append(5)
    assert path.locations == [1, 2, 3]
    assert path.timestamps == [0, 2]


def test_clear_keeps_paths():
    node = CBSNode()
    node.conflicts.append(Conflict())
    node.unknown_conf.append(Conflict())
    node.conflict_graph[1] = 2
    node.paths.append((0, Path.from_locations([0])))
    node.clear()
    assert node.conflicts == []
    assert node.unknown_conf == []
    assert node.conflict_graph == {}
    assert len(node.paths) == 1


def test_str():
    node = CBSNode(g_val=5, h_val=2, time_generated=3)
    node.conflicts.append(Conflict())
    node.unknown_conf.append(Conflict())
    node.paths.append((1, Path.from_locations([0, 1])))
    assert str(node) == "Node 3 (7 = 5 + 2 ) with 2 conflicts and 1 new paths "
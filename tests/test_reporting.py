from mapfcbs.cbs_node import Path, PathEntry
from mapfcbs.heuristics import HeuristicType
from mapfcbs.reporting import (
    RESULTS_HEADER,
    SearchStats,
    paths_text,
    results_line,
    save_results,
    solver_name,
)


def test_solver_name_zero_heuristic():
    assert solver_name(HeuristicType.ZERO, False, True, False, False, False, False, False,
                       "AStar") == "ICBS with AStar"
    assert solver_name(HeuristicType.ZERO, False, False, False, False, False, False, False,
                       "AStar") == "CBS with AStar"


def test_solver_name_all_options():
    name = solver_name(HeuristicType.WDG, True, True, True, True, True, True, True, "AStar")
    assert name == "Disjoint WDG+R+C+T+MP+BP with AStar"


def test_solver_name_cg():
    assert solver_name(HeuristicType.CG, False, True, False, False, True, False, False,
                       "E").startswith("CG+T")


def test_results_line_status():
    assert results_line(SearchStats(solution_cost=5)).startswith("Optimal,5,")
    assert results_line(SearchStats(solution_cost=-1)).startswith("Timeout,")
    assert results_line(SearchStats(solution_cost=-2)).startswith("No solutions,")
    assert results_line(SearchStats(solution_cost=-3)).startswith("Nodesout,")


def test_results_line_fields():
    stats = SearchStats(solution_cost=4, runtime=0.5, num_hl_expanded=3, num_ll_expanded=9,
                        min_f_val=4.0, root_g=4, root_f=4)
    assert results_line(stats) == "Optimal,4,0.5,3,9,4,4,4,"


def test_paths_text_lists_steps_and_landmarks():
    path = Path([PathEntry(0), PathEntry(1), PathEntry(4, is_goal=True)], timestamps=[2])
    initial = Path.from_locations([0, 1, 4])
    text = paths_text([path], [initial], 3, [[4]])
    lines = text.splitlines()
    assert lines[0].startswith("Agent 0 (2 -->2): ")
    assert "(1, 1)@2*->" in lines[0]
    assert lines[1] == "(1, 1)@2->"


def test_save_results_writes_header_once(tmp_path):
    target = tmp_path / "stats.csv"
    stats = SearchStats(solution_cost=3)
    save_results(stats, target, "CBS with AStar", "inst.scen")
    save_results(stats, target, "CBS with AStar", "inst.scen")
    lines = target.read_text().splitlines()
    assert len(lines) == 3
    assert lines[0] == RESULTS_HEADER
    assert lines[1] == lines[2]
    fields = lines[1].split(",")
    assert fields[-2:] == ["CBS with AStar", "inst.scen"]
    assert len(fields) == len(RESULTS_HEADER.split(","))
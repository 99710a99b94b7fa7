"""Solver names, result lines, path listings and the statistics file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path as FilePath
from typing import Optional, Sequence

from mapfcbs.cbs_node import Path
from mapfcbs.heuristics import HeuristicType

RESULTS_HEADER = (
    "runtime,#high-level expanded,#high-level generated,#low-level expanded,#low-level generated,"
    "solution cost,min f value,root g value, root f value,"
    "#adopt bypasses,"
    "standard conflicts,rectangle conflicts,corridor conflicts,target conflicts,mutex conflicts,"
    "#merge MDDs,#solve 2 agents,#memoization,"
    "runtime of building heuristic graph,runtime of solving MVC,"
    "runtime of detecting conflicts,"
    "runtime of rectangle conflicts,runtime of corridor conflicts,runtime of mutex conflicts,"
    "runtime of building MDDs,runtime of building constraint tables,runtime of building CATs,"
    "runtime of path finding,runtime of generating child nodes,"
    "preprocessing runtime,solver name,instance name"
)


@dataclass
class SearchStats:
    """Counters and timings gathered during one search."""

    runtime: float = 0.0
    num_hl_expanded: int = 0
    num_hl_generated: int = 0
    num_ll_expanded: int = 0
    num_ll_generated: int = 0
    solution_cost: int = -2
    min_f_val: float = 0.0
    root_g: int = 0
    root_f: int = 0
    num_adopt_bypass: int = 0
    num_standard_conflicts: int = 0
    num_rectangle_conflicts: int = 0
    num_corridor_conflicts: int = 0
    num_target_conflicts: int = 0
    num_mutex_conflicts: int = 0
    num_merge_mdds: int = 0
    num_solve_2agent_problems: int = 0
    num_memoization: int = 0
    runtime_build_dependency_graph: float = 0.0
    runtime_solve_mvc: float = 0.0
    runtime_detect_conflicts: float = 0.0
    runtime_rectangle: float = 0.0
    runtime_corridor: float = 0.0
    runtime_mutex: float = 0.0
    runtime_build_mdds: float = 0.0
    runtime_build_ct: float = 0.0
    runtime_build_cat: float = 0.0
    runtime_path_finding: float = 0.0
    runtime_generate_child: float = 0.0
    runtime_preprocessing: float = 0.0


def _fmt(value) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def solver_name(heuristic: HeuristicType, disjoint_splitting: bool, prioritize_conflicts: bool,
                rectangle: bool, corridor: bool, target: bool, mutex: bool, bypass: bool,
                engine_name: str) -> str:
    """Name of the solver configuration, e.g. ``"Disjoint WDG+T with AStar"``."""
    name = "Disjoint " if disjoint_splitting else ""
    if heuristic == HeuristicType.ZERO:
        name += "ICBS" if prioritize_conflicts else "CBS"
    else:
        name += heuristic.name
    for enabled, suffix in ((rectangle, "+R"), (corridor, "+C"), (target, "+T"),
                            (mutex, "+MP"), (bypass, "+BP")):
        if enabled:
            name += suffix
    return f"{name} with {engine_name}"


_STATUS = {-1: "Timeout,", -2: "No solutions,", -3: "Nodesout,"}


def results_line(stats: SearchStats) -> str:
    """One-line summary of a search, led by its outcome."""
    status = "Optimal," if stats.solution_cost >= 0 else _STATUS.get(stats.solution_cost, "")
    fields = (stats.solution_cost, stats.runtime, stats.num_hl_expanded, stats.num_ll_expanded,
              stats.min_f_val, stats.root_g, stats.root_f)
    return status + "".join(_fmt(v) + "," for v in fields)


def _cell(loc: int, num_cols: int) -> str:
    row, col = divmod(loc, num_cols)
    return f"({row}, {col})"


def paths_text(paths: Sequence[Path], initial_paths: Sequence[Path], num_cols: int,
               goal_locations: Sequence[Sequence[int]]) -> str:
    """Listing of every agent's path and the times its landmarks are reached."""
    lines = []
    for i, path in enumerate(paths):
        steps = "".join(
            f"{_cell(entry.location, num_cols)}@{t}{'*' if entry.is_goal else ''}->"
            for t, entry in enumerate(path)
        )
        lines.append(f"Agent {i} ({len(initial_paths[i]) - 1} -->{len(path) - 1}): {steps}")
        lines.append("".join(
            f"{_cell(goal_locations[i][j], num_cols)}@{stamp}->"
            for j, stamp in enumerate(path.timestamps)
        ))
    return "".join(line + "\n" for line in lines)


def save_results(stats: SearchStats, file_name, name: str,
                 instance_name: Optional[str]) -> None:
    """Append a row of statistics to a CSV file, writing the header first if it is new."""
    target = FilePath(file_name)
    if not target.exists():
        target.write_text(RESULTS_HEADER + "\n")
    fields = (
        stats.runtime, stats.num_hl_expanded, stats.num_hl_generated,
        stats.num_ll_expanded, stats.num_ll_generated,
        stats.solution_cost, stats.min_f_val, stats.root_g, stats.root_f,
        stats.num_adopt_bypass,
        stats.num_standard_conflicts, stats.num_rectangle_conflicts, stats.num_corridor_conflicts,
        stats.num_target_conflicts, stats.num_mutex_conflicts,
        stats.num_merge_mdds, stats.num_solve_2agent_problems, stats.num_memoization,
        stats.runtime_build_dependency_graph, stats.runtime_solve_mvc,
        stats.runtime_detect_conflicts,
        stats.runtime_rectangle, stats.runtime_corridor, stats.runtime_mutex,
        stats.runtime_build_mdds, stats.runtime_build_ct, stats.runtime_build_cat,
        stats.runtime_path_finding, stats.runtime_generate_child,
        stats.runtime_preprocessing, name, instance_name if instance_name is not None else "",
    )
    with target.open("a") as out:
        out.write(",".join(_fmt(v) for v in fields) + "\n")
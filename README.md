# mapfcbs

Building blocks for Conflict-Based Search (CBS) in multi-agent path finding
on four-connected grids. In this setting each agent visits an ordered list
of landmarks (stops). Pairs of agents may also be tied by temporal
constraints, which require one agent to reach a given landmark before
another agent reaches one of its own.

The package uses only the standard library.

## Modules

- `mapfcbs.conflict` defines the constraint and conflict types:
  `ConstraintType`, `ConflictType`, `ConflictPriority`, `Constraint` and
  `Conflict`. A `Conflict` is filled in by `vertex_conflict`,
  `edge_conflict`, `target_conflict`, `corridor_conflict` or
  `temporal_conflict`. Conflicts are ordered with `<`, where
  `a < b` means that `b` should be chosen first. The comparison looks at
  cardinality first, then type, then `secondary_priority`, and breaks any
  remaining tie at random. `format_constraint` renders a constraint as
  text.
- `mapfcbs.cbs_node` holds paths (`Path`, a list of `PathEntry` that also
  carries the landmark `timestamps`) and constraint-tree nodes (`CBSNode`).
- `mapfcbs.constraint_table` provides `ConstraintTable`. It collects the
  vertex, edge, landmark, length and stop-time constraints that apply to
  one agent along a branch of the constraint tree (`build`). It also holds
  the conflict-avoidance table (`build_cat`, `num_conflicts_for_step`).
- `mapfcbs.heuristics` provides the high-level heuristics
  `CBSHeuristic`, `ZeroHeuristic` and `CGHeuristic`. It also defines the
  node tie-breaking rules (`NodeSelection`), the heuristic kinds
  (`HeuristicType`), the minimum-vertex-cover routines and
  `greedy_matching`.
- `mapfcbs.corridor` implements corridor reasoning (`CorridorReasoning`,
  `corridor_length`, `blocked`). It works against any grid object that has
  `degree`, `neighbors`, `row` and `col`, and any per-agent engine that has
  `goal_location` and `travel_time`.
- `mapfcbs.propagation` implements mutex propagation between two
  multi-valued decision diagrams (`MDD`, `MDDNode`,
  `ConstraintPropagation`). It includes feasibility checks and the
  generation of the constraints that resolve a mutex.
- `mapfcbs.branching` provides the conflict selection rules
  (`ConflictSelection`, `compute_conflict_priority`). It also splits a
  conflict into the constraints of two children (`child_constraints`,
  with optional disjoint splitting), finds the agents that must replan
  under stop constraints (`agents_to_replan`), and tallies conflict types
  (`count_conflict_type`).
- `mapfcbs.reporting` covers the outputs: solver configuration names
  (`solver_name`), one-line results (`results_line`), path listings
  (`paths_text`), and CSV statistics (`SearchStats`, `save_results`).

## Examples

Locations are cell indices `row * num_cols + col`. A constraint on a
location holds for the half-open time range `[t_min, t_max)`:

```python
from mapfcbs.constraint_table import ConstraintTable

table = ConstraintTable(num_col=4, map_size=16)
table.insert(5, 2, 4)

table.constrained(5, 1)   # False
table.constrained(5, 3)   # True
table.constrained(5, 4)   # False
```

Edge constraints are written with `insert_edge` and checked with
`edge_constrained`. Landmarks, which are positive constraints, are
written with `insert_landmark`.

Constraints render as text:

```python
from mapfcbs.conflict import Constraint, ConstraintType, format_constraint

format_constraint(Constraint(0, 5, -1, 3, ConstraintType.VERTEX))  # "<0,5,-1,3,V>"
```

Solver names are built from the configuration:

```python
from mapfcbs.heuristics import HeuristicType
from mapfcbs.reporting import solver_name

solver_name(HeuristicType.CG, True, True, False, False, True, False, False, "AStar")
# "Disjoint CG+T with AStar"
```

`save_results(stats, file_name, name, instance_name)` appends one CSV row
of a `SearchStats` to `file_name`. If the file does not exist yet, it
writes the header row first.

## What the package does not do

The package does not include the following:

- a high-level search loop that ties these parts together;
- conflict detection between whole sets of paths;
- a low-level single-agent path finder;
- MDD construction from a map;
- map or agent file loading;
- a command-line program.

Callers supply their own grid, per-agent engines and MDDs, and drive the
search themselves.

## Tests

The tests use pytest and live in `tests/`:

```
pytest
```
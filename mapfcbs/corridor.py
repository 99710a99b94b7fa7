"""Corridor reasoning: detect agents meeting head-on inside a corridor."""

from __future__ import annotations

import time
from typing import NamedTuple, Optional, Protocol, Sequence

from mapfcbs.cbs_node import CBSNode, Path
from mapfcbs.conflict import Conflict, Constraint, ConstraintType
from mapfcbs.constraint_table import MAX_TIMESTEP, ConstraintTable


class Grid(Protocol):
    """The map queries corridor reasoning needs."""

    def degree(self, loc: int) -> int: ...

    def neighbors(self, loc: int) -> list[int]: ...

    def row(self, loc: int) -> int: ...

    def col(self, loc: int) -> int: ...


class TravelTimeSolver(Protocol):
    """A single-agent solver able to measure travel times under constraints."""

    goal_location: Sequence[int]

    def travel_time(self, start: int, end: int, table: ConstraintTable, upper_bound: int) -> int: ...


class Corridor(NamedTuple):
    """A corridor between two exits and the times the two agents leave through them."""

    length: int
    endpoints: tuple[int, int]
    exit_times: tuple[int, int]


def corridor_length(path: Path, t_start: int, loc_end: int) -> tuple[int, tuple[int, int]]:
    """Net distance travelled along ``path`` from ``t_start`` until ``loc_end``.

    Also returns the first edge traversed forwards.
    """
    curr = path[t_start].location
    prev = -1
    length = 0
    t = t_start
    forward = True
    edge: Optional[tuple[int, int]] = None
    while curr != loc_end:
        t += 1
        nxt = path[t].location
        if nxt == curr:
            continue
        if nxt == prev:
            forward = not forward
        if forward:
            if edge is None:
                edge = (curr, nxt)
            length += 1
        else:
            length -= 1
        prev, curr = curr, nxt
    return length, edge if edge is not None else (curr, curr)


def blocked(path: Path, constraint: Constraint) -> bool:
    """True if ``path`` visits the location of a range constraint within its range."""
    _agent, loc, t1, t2, kind = constraint
    if kind != ConstraintType.RANGE:
        raise ValueError(f"expected a range constraint, got {ConstraintType(kind).name}")
    goal = path[-1].location
    for t in range(t1, t2):
        if t >= len(path):
            if loc == goal:
                return True
        elif t >= 0 and path[t].location == loc:
            return True
    return False


class CorridorReasoning:
    """Turns standard conflicts inside corridors into corridor conflicts."""

    def __init__(self, grid: Grid, search_engines: Sequence[TravelTimeSolver],
                 initial_constraints: Sequence[ConstraintTable]):
        self.grid = grid
        self.search_engines = search_engines
        self.initial_constraints = initial_constraints
        self.use_corridor_reasoning = False
        self.accumulated_runtime = 0.0

    def run(self, conflict: Conflict, paths: Sequence[Path], cardinal: bool,
            node: CBSNode) -> Optional[Conflict]:
        """A corridor conflict replacing ``conflict``, or None."""
        started = time.process_time()
        try:
            return self.find_corridor_conflict(conflict, paths, cardinal, node)
        finally:
            self.accumulated_runtime += time.process_time() - started

    def find_corridor(self, conflict: Conflict, paths: Sequence[Path]) -> Optional[Corridor]:
        """The corridor the conflicting agents traverse in opposite directions, or None."""
        path1, path2 = paths[conflict.a1], paths[conflict.a2]
        if len(path1) <= 1 or len(path2) <= 1:
            return None
        if len(conflict.constraint1) != 1:
            raise ValueError("corridor detection needs a single constraint per agent")
        _agent, loc2, loc1, t, _kind = conflict.constraint1[-1]
        if t < 1:
            return None
        grid = self.grid
        if loc1 < 0:
            if grid.degree(loc2) != 2:
                return None
            loc1 = loc2
        elif grid.degree(loc1) != 2 and grid.degree(loc2) != 2:
            return None

        exit_times = (self.exiting_time(path1, t), self.exiting_time(path2, t))
        endpoints = (path1[exit_times[0]].location, path2[exit_times[1]].location)
        if endpoints[0] == endpoints[1]:
            return None

        prev = endpoints[0]
        curr = path1[exit_times[0] - 1].location
        length = 1
        while curr != endpoints[1]:
            neighbors = grid.neighbors(curr)
            if len(neighbors) == 2:
                if neighbors[0] == prev:
                    prev, curr = curr, neighbors[-1]
                elif neighbors[-1] == prev:
                    prev, curr = curr, neighbors[0]
                else:
                    raise ValueError(f"location {curr} is not adjacent to {prev}")
            else:
                if endpoints[1] not in neighbors:
                    raise ValueError(f"corridor end {endpoints[1]} is not adjacent to {curr}")
                prev, curr = curr, endpoints[1]
            length += 1

        # A corridor of length two may be a mere corner cell.
        if (length == 2 and grid.col(endpoints[0]) != grid.col(endpoints[1])
                and grid.row(endpoints[0]) != grid.row(endpoints[1])):
            return None
        return Corridor(length, endpoints, exit_times)

    def find_corridor_conflict(self, conflict: Conflict, paths: Sequence[Path], cardinal: bool,
                               node: CBSNode) -> Optional[Conflict]:
        """A corridor conflict for the agents of ``conflict``, or None."""
        grid = self.grid
        agents = [conflict.a1, conflict.a2]
        _agent, loc1, loc2, timestep, _kind = conflict.constraint1[-1]
        curr = -1
        if grid.degree(loc1) == 2:
            curr = loc1
            if loc2 >= 0:
                timestep -= 1
        elif loc2 >= 0 and grid.degree(loc2) == 2:
            curr = loc2
        if curr <= 0:
            return None

        times = [self.entering_time(paths[agents[i]], paths[agents[1 - i]], timestep) for i in range(2)]
        if times[0] > times[1]:
            times.reverse()
            agents.reverse()
        entries = [paths[agents[i]][times[i]].location for i in range(2)]
        if entries[0] == entries[1]:
            return None
        for i in range(2):
            rest = paths[agents[i]][times[i]:]
            if not any(entry.location == entries[1 - i] for entry in rest):
                return None

        length, edge = corridor_length(paths[agents[0]], times[0], entries[1])

        def travel(i: int, target: int, bound_with_block: int) -> tuple[int, int]:
            agent = agents[i]
            engine = self.search_engines[agent]
            table = self.initial_constraints[agent].copy()
            table.build(node, agent, len(engine.goal_location))
            start = paths[agent][0].location
            free = engine.travel_time(start, target, table, MAX_TIMESTEP)
            table.insert_edge(edge[0], edge[1], 0, MAX_TIMESTEP)
            table.insert_edge(edge[1], edge[0], 0, MAX_TIMESTEP)
            return free, engine.travel_time(start, target, table, bound_with_block(free))

        t3, t3_blocked = travel(0, entries[1], lambda free: free + 2 * length + 1)
        t4, t4_blocked = travel(1, entries[0], lambda _free: t3 + length + 1)

        if abs(t3 - t4) <= length and t3_blocked > t3 and t4_blocked > t4:
            t1 = min(t3_blocked - 1, t4 + length)
            t2 = min(t4_blocked - 1, t3 + length)
            corridor = Conflict()
            corridor.corridor_conflict(agents[0], agents[1], entries[1], entries[0], t1, t2)
            if (blocked(paths[agents[0]], corridor.constraint1[0])
                    and blocked(paths[agents[1]], corridor.constraint2[0])):
                return corridor
        return None

    def exiting_time(self, path: Path, t: int) -> int:
        """First timestep at or after ``t`` when the path leaves the corridor."""
        t = min(t, len(path) - 1)
        goal = path[-1].location
        loc = path[t].location
        while loc != goal and self.grid.degree(loc) == 2:
            t += 1
            loc = path[t].location
        return t

    def entering_time(self, path: Path, path2: Path, t: int) -> int:
        """Last timestep at or before ``t`` when the path entered the corridor."""
        t = min(t, len(path) - 1)
        start = path[0].location
        other_goal = path2[-1].location
        loc = path[t].location
        while loc != start and loc != other_goal and self.grid.degree(loc) == 2:
            t -= 1
            loc = path[t].location
        return t
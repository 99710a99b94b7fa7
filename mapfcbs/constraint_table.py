"""Per-agent constraint table and conflict avoidance table."""

from __future__ import annotations

from typing import Optional, Sequence

from mapfcbs.cbs_node import CBSNode, Path
from mapfcbs.conflict import ConstraintType

INT_MAX = 2**31 - 1
MAX_TIMESTEP = INT_MAX // 2


class ConstraintTable:
    """Time ranges during which locations and edges are forbidden for one agent."""

    def __init__(self, num_col: int, map_size: int):
        self.num_col = num_col
        self.map_size = map_size
        self.length_min = 0
        self.length_max = MAX_TIMESTEP
        self.goal_location = -1
        self.latest_timestep = 0
        self.leq_goal_time: list[int] = []
        self.g_goal_time: list[int] = []
        self.ct: dict[int, list[tuple[int, int]]] = {}
        self.landmarks: dict[int, int] = {}
        self.map_size_threshold = 10000
        self.cat_size = 0
        self.cat_small: list[list[bool]] = []
        self.cat_large: list[list[int]] = []

    def edge_index(self, from_loc: int, to_loc: int) -> int:
        """Index of a directed edge, disjoint from vertex indices."""
        return (1 + from_loc) * self.map_size + to_loc

    def add_path(self, path: Path, wait_at_goal: bool) -> None:
        """Forbid the vertices and edges used by ``path``."""
        offset = path.begin_time
        for i, (here, there) in enumerate(zip(path, path[1:])):
            t = i + offset
            self.insert(here.location, t, t + 1)
            self.insert_edge(there.location, here.location, t + 1, t + 2)
        last = len(path) - 1
        t = last + offset
        end = MAX_TIMESTEP if wait_at_goal else t + 1
        self.insert(path[last].location, t, end)

    def insert_edge(self, from_loc: int, to_loc: int, t_min: int, t_max: int) -> None:
        self.insert(self.edge_index(from_loc, to_loc), t_min, t_max)

    def insert(self, loc: int, t_min: int, t_max: int) -> None:
        """Forbid ``loc`` during ``[t_min, t_max)``."""
        if loc < 0:
            raise ValueError(f"invalid location {loc}")
        self.ct.setdefault(loc, []).append((t_min, t_max))
        if t_max < MAX_TIMESTEP and t_max > self.latest_timestep:
            self.latest_timestep = t_max
        elif t_max == MAX_TIMESTEP and t_min > self.latest_timestep:
            self.latest_timestep = t_min

    def insert_landmark(self, loc: int, t: int) -> None:
        """Require the agent to be at ``loc`` at time ``t``."""
        existing = self.landmarks.get(t)
        if existing is None:
            self.landmarks[t] = loc
            if t > self.latest_timestep:
                self.latest_timestep = t
        elif existing != loc:
            raise ValueError(f"landmark at time {t} already set to {existing}, not {loc}")

    def decode_barrier(self, x: int, y: int, t: int) -> list[tuple[int, int]]:
        """Location-time pairs on a barrier, in increasing order of time."""
        cols = self.num_col
        x1, y1 = divmod(x, cols)
        x2, y2 = divmod(y, cols)
        if x1 == x2:
            step = 1 if y1 < y2 else -1
            span = min(abs(y2 - y1), t)
            return [(x1 * cols + y2 - step * i, t - i) for i in range(span, -1, -1)]
        step = 1 if x1 < x2 else -1
        span = min(abs(x2 - x1), t)
        return [((x2 - step * i) * cols + y1, t - i) for i in range(span, -1, -1)]

    def constrained(self, loc: int, t: int) -> bool:
        """True if occupying ``loc`` (vertex or edge index) at ``t`` is forbidden."""
        if loc < 0:
            raise ValueError(f"invalid location {loc}")
        if loc < self.map_size:
            landmark = self.landmarks.get(t)
            if landmark is not None and landmark != loc:
                return True
        return any(t_min <= t < t_max for t_min, t_max in self.ct.get(loc, ()))

    def edge_constrained(self, curr_loc: int, next_loc: int, next_t: int) -> bool:
        return self.constrained(self.edge_index(curr_loc, next_loc), next_t)

    def copy(self) -> "ConstraintTable":
        """A copy of the constraints; the conflict avoidance table is not copied."""
        other = ConstraintTable(self.num_col, self.map_size)
        other.length_min = self.length_min
        other.length_max = self.length_max
        other.leq_goal_time = list(self.leq_goal_time)
        other.g_goal_time = list(self.g_goal_time)
        other.goal_location = self.goal_location
        other.latest_timestep = self.latest_timestep
        other.ct = {loc: list(ranges) for loc, ranges in self.ct.items()}
        other.landmarks = dict(self.landmarks)
        other.map_size_threshold = self.map_size_threshold
        return other

    def _apply_stop_constraints(self, constraints, agent: int) -> None:
        for a, x, _y, t, kind in constraints:
            if a != agent:
                continue
            if kind == ConstraintType.GSTOP:
                self.g_goal_time[x] = max(self.g_goal_time[x], t)
                self.length_min = max(self.length_min, t + 1)
            elif kind == ConstraintType.LEQSTOP:
                self.leq_goal_time[x] = min(self.leq_goal_time[x], t)

    def build(self, node: CBSNode, agent: int, num_of_stops: int) -> None:
        """Collect the constraints on ``agent`` along the branch ending at ``node``."""
        if len(self.leq_goal_time) < num_of_stops:
            self.leq_goal_time.extend([INT_MAX] * (num_of_stops - len(self.leq_goal_time)))
        if len(self.g_goal_time) < num_of_stops:
            self.g_goal_time.extend([-1] * (num_of_stops - len(self.g_goal_time)))

        curr = node
        while curr.parent is not None:
            a, x, y, t, kind = curr.constraints[0]
            if kind == ConstraintType.LEQLENGTH:
                if agent == a:
                    self.length_max = min(self.length_max, t)
                else:
                    self.insert(x, t, MAX_TIMESTEP)
            elif kind == ConstraintType.GLENGTH:
                if agent == a:
                    self.length_min = max(self.length_min, t + 1)
            elif kind == ConstraintType.POSITIVE_VERTEX:
                if agent == a:
                    self.insert_landmark(x, t)
                else:
                    self.insert(x, t, t + 1)
            elif kind == ConstraintType.POSITIVE_EDGE:
                if agent == a:
                    self.insert_landmark(x, t - 1)
                    self.insert_landmark(y, t)
                else:
                    self.insert(x, t - 1, t)
                    self.insert(y, t, t + 1)
                    self.insert_edge(y, x, t, t + 1)
            elif kind == ConstraintType.VERTEX:
                if agent == a:
                    for constraint in curr.constraints:
                        self.insert(constraint.x, constraint.t, constraint.t + 1)
            elif kind == ConstraintType.EDGE:
                if agent == a:
                    self.insert_edge(x, y, t, t + 1)
            elif kind in (ConstraintType.LEQSTOP, ConstraintType.GSTOP):
                self._apply_stop_constraints(curr.constraints, agent)
            elif kind == ConstraintType.BARRIER:
                if agent == a:
                    for constraint in curr.constraints:
                        for loc, step in self.decode_barrier(constraint.x, constraint.y, constraint.t):
                            self.insert(loc, step, step + 1)
            elif kind == ConstraintType.RANGE:
                if agent == a:
                    self.insert(x, y, t + 1)
            curr = curr.parent
        if self.latest_timestep < self.length_min:
            self.latest_timestep = self.length_min
        if self.length_max < MAX_TIMESTEP and self.latest_timestep < self.length_max:
            self.latest_timestep = self.length_max

    def build_cat(self, agent: int, paths: Sequence[Optional[Path]], cat_size: int) -> None:
        """Build the conflict avoidance table from the other agents' paths."""
        if self.length_min >= MAX_TIMESTEP or self.length_min > self.length_max:
            return
        self.cat_size = max(cat_size, self.latest_timestep)
        others = [p for ag, p in enumerate(paths) if ag != agent and p]
        rows = max([self.cat_size, *(len(p) for p in others)])
        if self.map_size < self.map_size_threshold:
            self.cat_small = [[False] * self.map_size for _ in range(rows)]
            for path in others:
                for timestep, entry in enumerate(path):
                    self.cat_small[timestep][entry.location] = True
                goal = path[-1].location
                for timestep in range(len(path), self.cat_size):
                    self.cat_small[timestep][goal] = True
        else:
            self.cat_large = [[] for _ in range(rows)]
            for path in others:
                for timestep in range(1, len(path)):
                    prev, curr = path[timestep - 1].location, path[timestep].location
                    self.cat_large[timestep].append(curr)
                    self.cat_large[timestep].append(self.edge_index(curr, prev))
                goal = path[-1].location
                for timestep in range(len(path), self.cat_size):
                    self.cat_large[timestep].append(goal)

    def num_conflicts_for_step(self, curr_id: int, next_id: int, next_timestep: int) -> int:
        """1 if moving from ``curr_id`` to ``next_id`` collides with another path, else 0."""
        if self.map_size < self.map_size_threshold:
            cat = self.cat_small
            if next_timestep >= len(cat):
                return int(cat[-1][next_id])
            swapped = (curr_id != next_id and cat[next_timestep - 1][next_id]
                       and cat[next_timestep][curr_id])
            return int(cat[next_timestep][next_id] or swapped)
        cat = self.cat_large
        if next_timestep >= len(cat):
            return int(next_id in cat[-1])
        edge = self.edge_index(curr_id, next_id)
        return int(any(loc == next_id or loc == edge for loc in cat[next_timestep]))

    def holding_time(self) -> int:
        """Earliest timestep from which the agent can stay at its goal forever."""
        rst = self.length_min
        for _t_min, t_max in self.ct.get(self.goal_location, ()):
            rst = max(rst, t_max)
        for t, loc in self.landmarks.items():
            if loc != self.goal_location:
                rst = max(rst, t + 1)
        if self.g_goal_time:
            rst = max(rst, self.g_goal_time[-1] + 1)
        return rst
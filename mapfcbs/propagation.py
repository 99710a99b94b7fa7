"""Mutex propagation between the MDDs of two agents."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Sequence

from mapfcbs.conflict import Constraint, ConstraintType

NodePair = tuple["MDDNode", Optional["MDDNode"]]
EdgePair = tuple[NodePair, NodePair]


@dataclass(eq=False)
class MDDNode:
    """A location at one level of a multi-valued decision diagram."""

    location: int
    level: int
    cost: int = 0
    children: list["MDDNode"] = field(default_factory=list, repr=False)
    parents: list["MDDNode"] = field(default_factory=list, repr=False)


class MDD:
    """Levels of MDD nodes; the goal is the location of the last level."""

    def __init__(self, levels: Sequence[Sequence[MDDNode]]):
        self.levels: list[list[MDDNode]] = [list(level) for level in levels]

    @property
    def goal_location(self) -> int:
        return self.levels[-1][0].location

    def goal_at(self, level: int) -> Optional[MDDNode]:
        """The node at ``level`` that reaches the goal exactly at that level, if any."""
        if level < 0 or level >= len(self.levels):
            return None
        goal = self.goal_location
        return next(
            (node for node in self.levels[level] if node.location == goal and node.cost == level),
            None,
        )

    def level_locations(self, level: int) -> dict[int, MDDNode]:
        """Map from location to node for one level."""
        return {node.location: node for node in self.levels[level]}


def is_edge_mutex(edge_pair: EdgePair) -> bool:
    """True if the pair describes two edges rather than two nodes."""
    return edge_pair[0][1] is not None


class ConstraintPropagation:
    """Forward and backward mutex propagation between two MDDs."""

    def __init__(self, mdd0: MDD, mdd1: MDD):
        self.mdd0 = mdd0
        self.mdd1 = mdd1
        self.fwd_mutexes: set[EdgePair] = set()
        self.bwd_mutexes: set[EdgePair] = set()

    # --- queries -------------------------------------------------------

    def has_fwd_edge_mutex(self, edge_pair: EdgePair) -> bool:
        first, second = edge_pair
        return (first, second) in self.fwd_mutexes or (second, first) in self.fwd_mutexes

    def has_fwd_mutex(self, a: Optional[MDDNode], b: Optional[MDDNode]) -> bool:
        return self.has_fwd_edge_mutex(((a, None), (b, None)))

    def has_edge_mutex(self, edge_pair: EdgePair) -> bool:
        first, second = edge_pair
        return ((first, second) in self.bwd_mutexes or (second, first) in self.bwd_mutexes
                or self.has_fwd_edge_mutex(edge_pair))

    def has_mutex(self, a: Optional[MDDNode], b: Optional[MDDNode]) -> bool:
        return self.has_edge_mutex(((a, None), (b, None)))

    # --- insertion -----------------------------------------------------

    def add_bwd_node_mutex(self, node_a: MDDNode, node_b: MDDNode) -> None:
        if self.has_mutex(node_a, node_b):
            return
        self.bwd_mutexes.add(((node_a, None), (node_b, None)))

    def add_fwd_edge_mutex(self, node_a: MDDNode, node_a_to: MDDNode,
                           node_b: MDDNode, node_b_to: MDDNode) -> None:
        pair = ((node_a, node_a_to), (node_b, node_b_to))
        if self.has_fwd_edge_mutex(pair):
            return
        self.fwd_mutexes.add(pair)

    def add_fwd_node_mutex(self, node_a: MDDNode, node_b: MDDNode) -> None:
        if self.has_fwd_mutex(node_a, node_b):
            return
        self.fwd_mutexes.add(((node_a, None), (node_b, None)))

    # --- propagation rules ---------------------------------------------

    def should_be_fwd_mutexed(self, node_a: MDDNode, node_b: MDDNode) -> bool:
        """True if every pair of incoming edges is node- or edge-mutex."""
        for a_from in node_a.parents:
            for b_from in node_b.parents:
                if self.has_fwd_mutex(b_from, a_from):
                    continue
                if self.has_fwd_edge_mutex(((a_from, node_a), (b_from, node_b))):
                    continue
                return False
        return True

    def should_be_bwd_mutexed(self, node_a: MDDNode, node_b: MDDNode) -> bool:
        """True if every pair of outgoing edges is node- or edge-mutex."""
        for a_to in node_a.children:
            for b_to in node_b.children:
                if self.has_mutex(b_to, a_to):
                    continue
                if self.has_edge_mutex(((node_a, a_to), (node_b, b_to))):
                    continue
                return False
        return True

    def init_mutex(self) -> None:
        """Seed the forward mutexes with vertex and swapping collisions."""
        num_level = min(len(self.mdd0.levels), len(self.mdd1.levels))
        for i in range(num_level):
            loc2mdd = self.mdd0.level_locations(i)
            for node_1 in self.mdd1.levels[i]:
                node_0 = loc2mdd.get(node_1.location)
                if node_0 is not None:
                    self.add_fwd_node_mutex(node_0, node_1)

        next_level = self.mdd1.level_locations(0) if num_level > 0 else {}
        for i in range(num_level - 1):
            this_level = next_level
            next_level = self.mdd1.level_locations(i + 1)
            for node_0 in self.mdd0.levels[i]:
                node_1_to = next_level.get(node_0.location)
                if node_1_to is None:
                    continue
                for node_0_to in node_0.children:
                    node_1 = this_level.get(node_0_to.location)
                    if node_1 is None:
                        continue
                    if any(child is node_1_to for child in node_1.children):
                        self.add_fwd_edge_mutex(node_0, node_0_to, node_1, node_1_to)

    def fwd_mutex_prop(self) -> None:
        """Propagate mutexes forward, level by level."""
        size = max(len(self.mdd0.levels), len(self.mdd1.levels))
        to_check: list[dict[EdgePair, None]] = [{} for _ in range(size)]
        for mutex in self.fwd_mutexes:
            to_check[mutex[0][0].level][mutex] = None

        def push(node_a: MDDNode, node_b: MDDNode) -> None:
            new_mutex = ((node_a, None), (node_b, None))
            self.fwd_mutexes.add(new_mutex)
            to_check[node_a.level][new_mutex] = None

        for level in range(size):
            for mutex in list(to_check[level]):
                if is_edge_mutex(mutex):
                    node_to_1, node_to_2 = mutex[0][1], mutex[1][1]
                    if self.has_fwd_mutex(node_to_1, node_to_2):
                        continue
                    if not self.should_be_fwd_mutexed(node_to_1, node_to_2):
                        continue
                    push(node_to_1, node_to_2)
                else:
                    node_a, node_b = mutex[0][0], mutex[1][0]
                    for a_child in node_a.children:
                        for b_child in node_b.children:
                            if self.has_fwd_mutex(a_child, b_child):
                                continue
                            if not self.should_be_fwd_mutexed(a_child, b_child):
                                continue
                            push(a_child, b_child)

    def bwd_mutex_prop(self) -> None:
        """Propagate mutexes backward from the forward mutexes."""
        open_list: deque[EdgePair] = deque(self.fwd_mutexes)
        while open_list:
            mutex = open_list.popleft()
            if is_edge_mutex(mutex):
                from_1, from_2 = mutex[0][0], mutex[1][0]
                if self.has_mutex(from_1, from_2):
                    continue
                if not self.should_be_bwd_mutexed(from_1, from_2):
                    continue
                new_mutex = ((from_1, None), (from_2, None))
                self.bwd_mutexes.add(new_mutex)
                open_list.append(new_mutex)
            else:
                node_a, node_b = mutex[0][0], mutex[1][0]
                for a_parent in node_a.parents:
                    for b_parent in node_b.parents:
                        if self.has_mutex(a_parent, b_parent):
                            continue
                        if not self.should_be_bwd_mutexed(a_parent, b_parent):
                            continue
                        new_mutex = ((a_parent, None), (b_parent, None))
                        self.bwd_mutexes.add(new_mutex)
                        open_list.append(new_mutex)

    # --- feasibility ---------------------------------------------------

    def _ordered(self, level_0: int, level_1: int) -> tuple[MDD, MDD, int, int, bool]:
        if level_0 > level_1:
            return self.mdd1, self.mdd0, level_1, level_0, True
        return self.mdd0, self.mdd1, level_0, level_1, False

    @staticmethod
    def _check_levels(mdd_s: MDD, mdd_l: MDD, level_0: int, level_1: int) -> None:
        if level_0 < 0 or level_0 >= len(mdd_s.levels):
            raise ValueError(f"level {level_0} is outside the shorter MDD")
        if level_1 >= len(mdd_l.levels):
            raise ValueError(f"level {level_1} is outside the longer MDD")

    def mutexed(self, level_0: int, level_1: int) -> bool:
        """True if the shorter agent's goal is mutex with every relevant node of the other."""
        mdd_s, mdd_l, level_0, level_1, _ = self._ordered(level_0, level_1)
        self._check_levels(mdd_s, mdd_l, level_0, level_1)
        goal_i = mdd_s.goal_at(level_0)
        return all(
            not (node.cost <= level_1 and not self.has_fwd_mutex(goal_i, node))
            for node in mdd_l.levels[level_0]
        )

    def feasibility(self, level_0: int, level_1: int) -> int:
        """-1 if the goals are mutex, -2 if no path avoids the other goal, 1 if feasible."""
        mdd_s, mdd_l, level_0, level_1, _ = self._ordered(level_0, level_1)
        self._check_levels(mdd_s, mdd_l, level_0, level_1)
        goal_i = mdd_s.goal_at(level_0)
        stack = [node for node in mdd_l.levels[level_0]
                 if node.cost <= level_1 and not self.has_fwd_mutex(goal_i, node)]
        if not stack:
            return -1
        goal_j = mdd_l.goal_at(level_1)
        not_allowed = goal_i.location if goal_i is not None else None
        closed: set[int] = set()
        while stack:
            node = stack.pop()
            if node is goal_j:
                return 1
            if id(node) in closed:
                continue
            closed.add(id(node))
            for child in node.children:
                if id(child) in closed or child.location == not_allowed:
                    continue
                stack.append(child)
        return -2

    def feasible(self, level_0: int, level_1: int) -> bool:
        """True if the two agents cannot both reach their goals at these levels."""
        return self.feasibility(level_0, level_1) < 0

    def generate_constraints(self, level_0: int,
                             level_1: int) -> tuple[list[Constraint], list[Constraint]]:
        """Constraints for the two agents that resolve their mutex at these levels."""
        mdd_s, mdd_l, level_0, level_1, reversed_ = self._ordered(level_0, level_1)
        self._check_levels(mdd_s, mdd_l, level_0, level_1)
        goal_i = mdd_s.goal_at(level_0)
        if goal_i is None:
            raise ValueError(f"no goal node at level {level_0}")

        candidates = [node for node in mdd_l.levels[level_0] if node.cost <= level_1]
        non_mutexed = [node for node in candidates if not self.has_fwd_mutex(goal_i, node)]

        if non_mutexed:
            cons_set: dict[tuple[int, int], None] = {}
            level_i: dict[MDDNode, None] = {goal_i: None}
            level_j: dict[MDDNode, None] = dict.fromkeys(candidates)
            for lvl in range(level_0, -1, -1):
                for ptr_j in level_j:
                    if all(self.has_fwd_mutex(ptr_i, ptr_j) for ptr_i in level_i):
                        cons_set[(lvl, ptr_j.location)] = None
                level_i = {p: None for ptr in level_i for p in ptr.parents}
                level_j = {p: None for ptr in level_j for p in ptr.parents}

            goal_j = mdd_l.goal_at(level_1)
            not_allowed = goal_i.location
            closed: set[int] = set()
            stack: deque[MDDNode] = deque(non_mutexed)
            while stack:
                node = stack.popleft()
                if node is goal_j:
                    return [], []
                if id(node) in closed:
                    continue
                closed.add(id(node))
                for child in node.children:
                    if id(child) in closed:
                        continue
                    if child.location == not_allowed:
                        cons_set[(child.level, child.location)] = None
                        continue
                    stack.appendleft(child)

            length_con = Constraint(0, goal_i.location, -1, level_0, ConstraintType.GLENGTH)
            cons_vec_1 = [Constraint(1, loc, -1, lvl, ConstraintType.VERTEX)
                          for lvl, loc in sorted(cons_set)]
            if reversed_:
                return cons_vec_1, [length_con]
            return [length_con], cons_vec_1

        cons_0: dict[MDDNode, None] = {}
        cons_1: dict[MDDNode, None] = {}
        blue_0: set[int] = set()
        blue_1: set[int] = set()
        for lvl in range(level_0 + 1):
            nodes_i = [n for n in mdd_s.levels[lvl] if n.cost <= level_0]
            nodes_j = [n for n in mdd_l.levels[lvl] if n.cost <= level_1]
            for it_i in nodes_i:
                if all(self.has_fwd_mutex(it_i, it_j) for it_j in nodes_j):
                    blue_0.add(id(it_i))
                    if any(id(p) not in blue_0 for p in it_i.parents):
                        cons_0[it_i] = None
            for it_j in nodes_j:
                if all(self.has_fwd_mutex(it_i, it_j) for it_i in nodes_i):
                    blue_1.add(id(it_j))
                    if any(id(p) not in blue_1 for p in it_j.parents):
                        cons_1[it_j] = None

        cons_vec_0 = [Constraint(0, n.location, -1, n.level, ConstraintType.VERTEX) for n in cons_0]
        cons_vec_1 = [Constraint(1, n.location, -1, n.level, ConstraintType.VERTEX) for n in cons_1]
        if reversed_:
            return cons_vec_1, cons_vec_0
        return cons_vec_0, cons_vec_1
"""Admissible heuristics for the high-level constraint-tree search."""

from __future__ import annotations

import math
import time
from collections import deque
from enum import Enum, auto
from itertools import combinations
from typing import Optional, Sequence

from mapfcbs.cbs_node import CBSNode
from mapfcbs.conflict import ConflictPriority


class HeuristicType(Enum):
    """High-level heuristics that can guide the search."""

    ZERO = auto()
    CG = auto()
    DG = auto()
    WDG = auto()


class NodeSelection(Enum):
    """Tie-breaking rules for choosing among nodes in FOCAL."""

    NODE_RANDOM = auto()
    NODE_H = auto()
    NODE_DEPTH = auto()
    NODE_CONFLICTS = auto()
    NODE_CONFLICTPAIRS = auto()
    NODE_MVC = auto()


def greedy_matching(graph: Sequence[int], cols: int) -> int:
    """Total weight of a greedy maximum-weight matching on a flat adjacency matrix."""
    used = [False] * cols
    total = 0
    while True:
        best = 0
        ends: Optional[tuple[int, int]] = None
        for i, j in combinations(range(cols), 2):
            if used[i] or used[j]:
                continue
            if graph[i * cols + j] > best:
                best = graph[i * cols + j]
                ends = (i, j)
        if best == 0 or ends is None:
            return total
        total += best
        used[ends[0]] = used[ends[1]] = True


class CBSHeuristic:
    """Base heuristic: minimum vertex cover of the graph of all conflicting agent pairs."""

    type: Optional[HeuristicType] = None

    def __init__(self, num_of_agents: int):
        self.num_of_agents = num_of_agents
        self.node_selection_rule = NodeSelection.NODE_RANDOM
        self.target_reasoning = False
        self.disjoint_splitting = False
        self.ilp_edge_threshold = 10
        self.time_limit = math.inf
        self.start_time = time.process_time()
        self.clear()

    def init(self) -> None:
        """Prepare for a new search."""
        self.start_time = time.process_time()
        self.time_limit = math.inf

    def clear(self) -> None:
        """Reset the statistics gathered so far."""
        self.num_merge_mdds = 0
        self.num_solve_2agent_problems = 0
        self.num_memoization = 0
        self.runtime_build_dependency_graph = 0.0
        self.runtime_solve_mvc = 0.0

    def _out_of_time(self) -> bool:
        return time.process_time() - self.start_time > self.time_limit

    def compute_informed_heuristics(self, node: CBSNode, time_limit: float) -> bool:
        """Compute the informed h value of ``node``; False if the node is a dead end."""
        node.h_computed = True
        self.start_time = time.process_time()
        self.time_limit = time_limit
        h = self.compute_informed_value(node, time_limit)
        if h < 0:
            return False
        node.h_val = max(h, node.h_val)
        if self.node_selection_rule == NodeSelection.NODE_H:
            node.tie_breaking = node.h_val
        return True

    def compute_informed_value(self, node: CBSNode, time_limit: float) -> int:
        """The informed h value, or a negative number if it could not be found."""
        return self.mvc_on_all_conflicts(node)

    def should_evaluate(self, node: CBSNode) -> bool:
        return not node.h_computed

    def compute_quick_heuristics(self, node: CBSNode) -> None:
        """Set the pathmax h value and the tie-breaking value of a non-root node."""
        parent = node.parent
        if parent is None:
            raise ValueError("quick heuristics need a node with a parent")
        node.h_val = max(0, parent.g_val + parent.h_val - node.g_val)
        rule = self.node_selection_rule
        if rule == NodeSelection.NODE_H:
            node.tie_breaking = node.h_val
        elif rule == NodeSelection.NODE_DEPTH:
            node.tie_breaking = -node.depth
        elif rule == NodeSelection.NODE_CONFLICTS:
            node.tie_breaking = len(node.conflicts) + len(node.unknown_conf)
        elif rule == NodeSelection.NODE_CONFLICTPAIRS:
            pairs = {(min(c.a1, c.a2), max(c.a1, c.a2)) for c in node.unknown_conf}
            node.tie_breaking = len(node.conflicts) + len(pairs)
        elif rule == NodeSelection.NODE_MVC:
            node.tie_breaking = self.mvc_on_all_conflicts(node)

    def mvc_on_all_conflicts(self, node: CBSNode) -> int:
        return self.minimum_vertex_cover(self.build_conflict_graph(node))

    def minimum_vertex_cover(self, graph: Sequence[int]) -> int:
        """Size of a minimum vertex cover, solved per connected component; -1 on timeout."""
        n = self.num_of_agents
        done = [False] * n
        total = 0
        for start in range(n):
            if done[start]:
                continue
            component = []
            queue = deque([start])
            done[start] = True
            while queue:
                j = queue.popleft()
                component.append(j)
                for k in range(n):
                    if (graph[j * n + k] > 0 or graph[k * n + j] > 0) and not done[k]:
                        done[k] = True
                        queue.append(k)
            size = len(component)
            if size == 1:
                continue
            if size == 2:
                total += 1
                continue
            subgraph = [0] * (size * size)
            num_edges = 0
            for (j, aj), (k, ak) in combinations(enumerate(component), 2):
                subgraph[j * size + k] = graph[aj * n + ak]
                subgraph[k * size + j] = graph[ak * n + aj]
                if subgraph[j * size + k] > 0:
                    num_edges += 1
            for k in range(1, size):
                if self.k_vertex_cover(subgraph, size, num_edges, k, size):
                    total += k
                    break
                if self._out_of_time():
                    return -1
        return total

    def k_vertex_cover(self, graph: Sequence[int], num_nodes: int, num_edges: int,
                       k: int, cols: int) -> bool:
        """Whether a vertex cover of size ``k`` exists (True once time runs out)."""
        if self._out_of_time():
            return True
        if num_edges == 0:
            return True
        if num_edges > k * num_nodes - k:
            return False
        edge = next(((i, j) for i, j in combinations(range(cols), 2) if graph[i * cols + j] > 0),
                    (0, 0))
        for vertex in edge:
            reduced = list(graph)
            remaining = num_edges
            for j in range(cols):
                if reduced[vertex * cols + j] > 0:
                    reduced[vertex * cols + j] = 0
                    reduced[j * cols + vertex] = 0
                    remaining -= 1
            if self.k_vertex_cover(reduced, num_nodes - 1, remaining, k - 1, cols):
                return True
        return False

    def build_conflict_graph(self, node: CBSNode) -> list[int]:
        """Flat symmetric adjacency matrix of the agent pairs in ``node.conflicts``."""
        n = self.num_of_agents
        graph = [0] * (n * n)
        for conflict in node.conflicts:
            graph[conflict.a1 * n + conflict.a2] = 1
            graph[conflict.a2 * n + conflict.a1] = 1
        return graph


class ZeroHeuristic(CBSHeuristic):
    """The trivial heuristic."""

    type = HeuristicType.ZERO

    def compute_informed_value(self, node: CBSNode, time_limit: float) -> int:
        return 0


class CGHeuristic(CBSHeuristic):
    """Minimum vertex cover of the cardinal conflict graph."""

    type = HeuristicType.CG

    def compute_informed_value(self, node: CBSNode, time_limit: float) -> int:
        graph, num_edges = self.build_cardinal_conflict_graph(node)
        if (node.parent is None or num_edges > self.ilp_edge_threshold
                or self.target_reasoning or self.disjoint_splitting):
            return self.minimum_vertex_cover(graph)
        return self.incremental_vertex_cover(graph, node.parent.h_val, self.num_of_agents, num_edges)

    def incremental_vertex_cover(self, graph: Sequence[int], old_mvc: int, cols: int,
                                 num_edges: int) -> int:
        """Minimum vertex cover size, knowing it differs from ``old_mvc`` by at most one."""
        started = time.process_time()
        if num_edges < 2:
            return num_edges
        num_nodes = sum(
            1 for i in range(cols) if any(w > 0 for w in graph[i * cols:(i + 1) * cols])
        )
        result = 0
        if old_mvc == -1:
            for k in range(1, num_nodes):
                if self.k_vertex_cover(graph, num_nodes, num_edges, k, cols):
                    result = k
                    break
        elif self.k_vertex_cover(graph, num_nodes, num_edges, old_mvc - 1, cols):
            result = old_mvc - 1
        elif self.k_vertex_cover(graph, num_nodes, num_edges, old_mvc, cols):
            result = old_mvc
        else:
            result = old_mvc + 1
        self.runtime_solve_mvc += time.process_time() - started
        return result

    def build_cardinal_conflict_graph(self, node: CBSNode) -> tuple[list[int], int]:
        """Adjacency matrix of cardinally conflicting pairs and its number of edges."""
        n = self.num_of_agents
        graph = [0] * (n * n)
        num_edges = 0
        for conflict in node.conflicts:
            if conflict.priority != ConflictPriority.CARDINAL:
                continue
            a1, a2 = conflict.a1, conflict.a2
            if not graph[a1 * n + a2]:
                graph[a1 * n + a2] = 1
                graph[a2 * n + a1] = 1
                num_edges += 1
        self.runtime_build_dependency_graph += time.process_time() - self.start_time
        return graph, num_edges
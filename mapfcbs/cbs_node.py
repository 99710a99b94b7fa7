"""Paths and high-level search nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from mapfcbs.conflict import Conflict, Constraint


@dataclass
class PathEntry:
    """One timestep of a path."""

    location: int = -1
    is_goal: bool = False
    mdd_width: int = 0

    def is_single(self) -> bool:
        """True if the MDD has exactly one node at this timestep."""
        return self.mdd_width == 1


class Path(list):
    """A sequence of path entries with the times its landmarks are reached."""

    def __init__(self, entries: Iterable[PathEntry] = (), timestamps: Optional[Iterable[int]] = None,
                 begin_time: int = 0):
        super().__init__(entries)
        self.timestamps: list[int] = list(timestamps) if timestamps is not None else []
        self.begin_time = begin_time

    @classmethod
    def from_locations(cls, locations: Iterable[int], timestamps: Optional[Iterable[int]] = None,
                       begin_time: int = 0) -> "Path":
        """Build a path from bare locations."""
        return cls((PathEntry(loc) for loc in locations), timestamps, begin_time)

    @property
    def locations(self) -> list[int]:
        return [entry.location for entry in self]

    def copy(self) -> "Path":
        return Path((PathEntry(e.location, e.is_goal, e.mdd_width) for e in self),
                    self.timestamps, self.begin_time)


@dataclass(eq=False)
class CBSNode:
    """A node of the constraint tree."""

    parent: Optional["CBSNode"] = None
    constraints: list[Constraint] = field(default_factory=list)
    paths: list[tuple[int, Path]] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    unknown_conf: list[Conflict] = field(default_factory=list)
    conflict: Optional[Conflict] = None
    conflict_graph: dict[int, int] = field(default_factory=dict)
    g_val: int = 0
    h_val: int = 0
    depth: int = 0
    makespan: int = 0
    tie_breaking: int = 0
    h_computed: bool = False
    time_generated: int = 0
    time_expanded: int = 0

    def clear(self) -> None:
        """Drop the conflict data that is no longer needed once expanded."""
        self.conflicts.clear()
        self.unknown_conf.clear()
        self.conflict_graph.clear()

    def conflict_graph_text(self, num_of_agents: int) -> str:
        """Describe the non-zero edges of the conflict graph, or '' if there is none."""
        if not self.conflict_graph:
            return ""
        edges = "".join(
            f"({key // num_of_agents},{key % num_of_agents})={weight},"
            for key, weight in self.conflict_graph.items()
            if weight != 0
        )
        return f"\tBuild conflict graph in {self}: {edges}"

    def __str__(self) -> str:
        return (
            f"Node {self.time_generated} ({self.g_val + self.h_val} = {self.g_val} + {self.h_val} ) "
            f"with {len(self.conflicts) + len(self.unknown_conf)} conflicts and "
            f"{len(self.paths)} new paths "
        )
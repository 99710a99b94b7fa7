"""Building blocks for Conflict-Based Search in multi-agent path finding: conflicts, nodes, constraint tables, heuristics, corridor reasoning, mutex propagation, branching and reporting."""

__version__ = "0.1.0"
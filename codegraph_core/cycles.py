"""Circular dependency detection over the resolved file graph."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Set

from .models import Cycle, ProjectGraph

logger = logging.getLogger(__name__)

DEFAULT_MAX_CYCLES = 20


class CycleDetector:
    """Depth-first cycle enumeration with a recursion stack.

    Roots are visited in graph node order and neighbours in edge insertion
    order. A node that has been fully explored from an earlier root is never
    entered again, which keeps the walk O(V + E) at the cost of not listing
    every elementary cycle of very dense graphs. Cycles are deduplicated by
    their canonical rotation and the result is capped at ``max_cycles``
    (``None`` disables the cap).
    """

    def __init__(self, max_cycles: Optional[int] = DEFAULT_MAX_CYCLES) -> None:
        if max_cycles is not None and max_cycles < 0:
            raise ValueError("max_cycles must be >= 0 or None")
        self.max_cycles = max_cycles

    def _full(self, cycles: List[Cycle]) -> bool:
        return self.max_cycles is not None and len(cycles) >= self.max_cycles

    def detect(self, graph: ProjectGraph) -> List[Cycle]:
        adjacency = graph.adjacency()
        visited: Set[str] = set()
        seen: Set[str] = set()
        cycles: List[Cycle] = []

        for root in graph.node_ids():
            if self._full(cycles):
                break
            if root in visited:
                continue

            visited.add(root)
            path: List[str] = [root]
            position: Dict[str, int] = {root: 0}
            frontier: List[Iterator[str]] = [iter(adjacency[root])]

            while frontier:
                neighbour = next(frontier[-1], None)
                if neighbour is None:
                    frontier.pop()
                    del position[path.pop()]
                    continue

                if neighbour in position:
                    cycle = Cycle(path[position[neighbour]:]).canonical()
                    key = str(cycle)
                    if key not in seen:
                        seen.add(key)
                        cycles.append(cycle)
                        if self._full(cycles):
                            logger.info("Cycle limit of %d reached; stopping search", self.max_cycles)
                            return cycles
                elif neighbour not in visited:
                    visited.add(neighbour)
                    position[neighbour] = len(path)
                    path.append(neighbour)
                    frontier.append(iter(adjacency[neighbour]))

        return cycles

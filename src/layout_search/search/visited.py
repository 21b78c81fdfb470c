"""Closed set for the best-first engine."""

from typing import Any, Dict, Iterator, Optional

from .node import SearchNode


class VisitedSet:
    """Maps each expanded layout to the node that expanded it.

    A marked layout is only expanded again from a shallower node when a
    depth limit is in force.
    """

    def __init__(self):
        self._nodes: Dict[Any, SearchNode] = {}

    def mark_visited(self, state: Any, node: SearchNode) -> None:
        self._nodes[state] = node

    def contains(self, state: Any) -> bool:
        return state in self._nodes

    def get(self, state: Any) -> Optional[SearchNode]:
        """Return the node recorded for ``state``, or None."""
        return self._nodes.get(state)

    def __contains__(self, state: Any) -> bool:
        return self.contains(state)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._nodes)

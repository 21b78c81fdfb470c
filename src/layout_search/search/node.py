"""Search tree nodes for the best-first engine."""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from layout_search.core.data_models import PathStep


@dataclass(eq=False)
class SearchNode:
    """Node in the search tree.

    Wraps a layout with its accumulated path cost and a link to the node it
    was generated from. Nodes form a tree over the (possibly cyclic) layout
    graph; equality is identity, two nodes may hold equal layouts.
    """
    state: Any
    cost: float = 0.0  # g(n) - actual cost from start
    heuristic: float = 0.0  # h(n) - estimate to goal, 0 under uniform cost
    parent: Optional['SearchNode'] = None
    depth: int = 0
    sequence: int = field(default=0, compare=False)  # insertion order, set by the frontier

    @classmethod
    def root(cls, state: Any, heuristic: float = 0.0) -> 'SearchNode':
        """Create the node for a start layout (g = 0, no parent)."""
        return cls(state=state, cost=0.0, heuristic=heuristic)

    def child(self, state: Any, edge_cost: float, heuristic: float = 0.0) -> 'SearchNode':
        """Create a successor node reached from this one through ``edge_cost``."""
        return SearchNode(
            state=state,
            cost=self.cost + edge_cost,
            heuristic=heuristic,
            parent=self,
            depth=self.depth + 1,
        )

    @property
    def f_score(self) -> float:
        """Total estimated cost f(n) = g(n) + h(n)."""
        return self.cost + self.heuristic

    @property
    def parent_state(self) -> Optional[Any]:
        return self.parent.state if self.parent is not None else None

    def __lt__(self, other: 'SearchNode') -> bool:
        """Comparison for priority queue (lower f_score has higher priority)."""
        if self.f_score != other.f_score:
            return self.f_score < other.f_score
        # Tie-breaking: first inserted wins
        return self.sequence < other.sequence

    def get_path(self) -> List['SearchNode']:
        """Get the nodes from the root to this node, both inclusive."""
        nodes = []
        node = self
        while node is not None:
            nodes.append(node)
            node = node.parent
        return list(reversed(nodes))

    def get_states(self) -> List[Any]:
        return [node.state for node in self.get_path()]

    def path_steps(self) -> List[PathStep]:
        """Get the (layout, cumulative cost) pairs from the root to this node."""
        return [PathStep(node.state, node.cost) for node in self.get_path()]

    def __repr__(self) -> str:
        return (f"SearchNode(state={self.state!r}, g={self.cost}, h={self.heuristic}, "
                f"depth={self.depth})")

"""Core data models shared by the search engine and the domains."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


class Layout(ABC):
    """Capability contract every search domain implements.

    A layout is an immutable value: two layouts describing the same
    configuration must compare equal and hash identically, whatever path
    produced them.
    """

    @abstractmethod
    def children(self) -> Iterable[Tuple['Layout', float]]:
        """Return every layout reachable in one transition with its cost.

        Costs must be non-negative and the layout itself must not appear.
        An empty iterable marks a dead end.
        """

    def is_goal(self, target: 'Layout') -> bool:
        """Check whether this layout satisfies the objective ``target``."""
        return self == target

    def heuristic(self, target: 'Layout') -> float:
        """Estimate the remaining cost to ``target`` (0 when unknown)."""
        return 0.0

    @abstractmethod
    def __eq__(self, other: object) -> bool:
        pass

    @abstractmethod
    def __hash__(self) -> int:
        pass


@dataclass(frozen=True)
class PathStep:
    """One step of a solution path: a layout and the cumulative cost to it."""
    state: Any
    cost: float


@dataclass
class SearchOutcome:
    """Common part of every search outcome."""
    termination_reason: str = "unknown"
    computation_time: float = 0.0
    statistics: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return False

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> Dict[str, Any]:
        """Convert the outcome into a JSON friendly dictionary."""
        return {
            'success': self.success,
            'termination_reason': self.termination_reason,
            'computation_time': self.computation_time,
            'search_stats': dict(self.statistics),
        }


@dataclass
class Solved(SearchOutcome):
    """A goal was reached; ``path`` runs from the start to the goal inclusive."""
    path: Tuple[PathStep, ...] = ()
    total_cost: float = 0.0
    goal_node: Optional[Any] = field(default=None, repr=False, compare=False)

    @property
    def success(self) -> bool:
        return True

    @property
    def states(self) -> List[Any]:
        return [step.state for step in self.path]

    @property
    def final_state(self) -> Any:
        return self.path[-1].state

    def __len__(self) -> int:
        return len(self.path)

    def __iter__(self) -> Iterator[PathStep]:
        return iter(self.path)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({
            'total_cost': self.total_cost,
            'path_length': len(self.path),
            'path': [{'state': str(step.state), 'cost': step.cost} for step in self.path],
        })
        return result


@dataclass
class NoSolution(SearchOutcome):
    """The search ended without reaching a goal.

    ``termination_reason`` tells whether the state space was exhausted or a
    configured limit (node cap, timeout, cancellation) stopped the run.
    """
    termination_reason: str = "search_exhausted"


# Type aliases for clarity
Successor = Tuple[Layout, float]  # (layout, transition cost)
Cost = float

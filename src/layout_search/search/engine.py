"""Best-first search engine.

One engine covers uniform-cost search (Dijkstra) and A*: the evaluation
strategy decides how the frontier is ordered and the duplicate policy decides
when layouts reached twice are dropped. Any object honouring the ``Layout``
contract can be searched.
"""

import logging
import math
import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, Optional, Union

from layout_search.core.data_models import NoSolution, SearchOutcome, Solved
from layout_search.core.exceptions import DomainContractError

from .evaluation import BaseEvaluator, EvaluationStrategy, create_evaluator
from .frontier import DuplicatePolicy, Frontier
from .node import SearchNode
from .visited import VisitedSet

logger = logging.getLogger(__name__)


@dataclass
class SearchConfig:
    """Configuration for best-first search."""
    strategy: EvaluationStrategy = EvaluationStrategy.UNIFORM_COST
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.CLOSED_SET_ONLY
    max_nodes_expanded: Optional[int] = None  # None = unbounded
    max_depth: Optional[int] = None  # nodes at this depth are not expanded
    max_computation_time: Optional[float] = None  # seconds
    validate_costs: bool = True  # reject negative costs and self transitions

    def __post_init__(self):
        self.strategy = EvaluationStrategy.parse(self.strategy)
        self.duplicate_policy = DuplicatePolicy.parse(self.duplicate_policy)
        if self.max_nodes_expanded is not None and self.max_nodes_expanded <= 0:
            raise ValueError(f"max_nodes_expanded must be positive, got {self.max_nodes_expanded}")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.max_computation_time is not None and self.max_computation_time <= 0:
            raise ValueError(f"max_computation_time must be positive, got {self.max_computation_time}")

    @classmethod
    def from_config(cls, config: Any) -> 'SearchConfig':
        """Build a search configuration from the ``search`` section of a config.

        Args:
            config: Full configuration (DictConfig or mapping) or its ``search`` section

        Returns:
            SearchConfig with every missing key at its default
        """
        if config is None:
            return cls()
        section = config.get('search', config) if hasattr(config, 'get') else config
        if section is None:
            return cls()

        defaults = cls()
        return cls(
            strategy=section.get('strategy', defaults.strategy),
            duplicate_policy=section.get('duplicate_policy', defaults.duplicate_policy),
            max_nodes_expanded=section.get('max_nodes_expanded', None),
            max_depth=section.get('max_depth', None),
            max_computation_time=section.get('max_computation_time', None),
            validate_costs=bool(section.get('validate_costs', True)),
        )


@dataclass
class SearchStatistics:
    """Counters collected during one ``solve`` call."""
    nodes_expanded: int = 0
    nodes_generated: int = 0
    nodes_enqueued: int = 0
    duplicate_states: int = 0
    parent_transitions_skipped: int = 0
    nodes_pruned: int = 0
    max_depth_reached: int = 0
    max_frontier_size: int = 0
    heuristic_computations: int = 0
    average_branching_factor: float = 0.0
    search_efficiency: float = 0.0  # nodes_expanded / nodes_generated

    def update_branching_factor(self, total_successors: int) -> None:
        """Update average branching factor."""
        if self.nodes_expanded > 0:
            self.average_branching_factor = (
                (self.average_branching_factor * (self.nodes_expanded - 1) + total_successors)
                / self.nodes_expanded
            )
        else:
            self.average_branching_factor = total_successors

    def compute_efficiency(self) -> None:
        if self.nodes_generated > 0:
            self.search_efficiency = self.nodes_expanded / self.nodes_generated

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BestFirstSearcher:
    """Best-first search over any ``Layout`` implementation."""

    def __init__(self, config: Optional[SearchConfig] = None):
        """Initialize searcher.

        Args:
            config: Search configuration parameters
        """
        self.config = config or SearchConfig()
        self.statistics = SearchStatistics()
        self.last_strategy: Optional[EvaluationStrategy] = None

        logger.debug(f"Best-first searcher initialized with strategy={self.config.strategy.value}, "
                     f"duplicate_policy={self.config.duplicate_policy.value}")

    def solve(self, start: Any, goal: Any,
              strategy: Union[str, EvaluationStrategy, None] = None,
              cancel_event: Optional[threading.Event] = None) -> SearchOutcome:
        """Search for a minimum-cost path from ``start`` to a layout satisfying ``goal``.

        Args:
            start: Starting layout
            goal: Target layout handed to ``is_goal`` and ``heuristic``
            strategy: Evaluation strategy for this call (defaults to the configured one)
            cancel_event: Optional event polled before every expansion

        Returns:
            ``Solved`` with the path and its total cost, or ``NoSolution``

        Raises:
            DomainContractError: If a layout breaks the contract (negative cost,
                self transition, negative heuristic)
        """
        start_time = time.perf_counter()
        strategy = EvaluationStrategy.parse(strategy or self.config.strategy)
        policy = self.config.duplicate_policy
        self.last_strategy = strategy

        # Every call owns its own frontier, closed set and evaluator
        self.statistics = SearchStatistics()
        evaluator = create_evaluator(strategy, goal)
        frontier = Frontier(track_membership=policy is DuplicatePolicy.OPEN_AND_CLOSED)
        visited = VisitedSet()
        deadline = (start_time + self.config.max_computation_time
                    if self.config.max_computation_time is not None else None)

        logger.info(f"Starting {strategy.value} search with {policy.value} duplicate policy")

        frontier.push(SearchNode.root(start, evaluator(start)))

        while frontier:
            if cancel_event is not None and cancel_event.is_set():
                return self._create_no_solution(start_time, "cancelled", evaluator, frontier)
            if deadline is not None and time.perf_counter() > deadline:
                return self._create_no_solution(start_time, "timeout", evaluator, frontier)
            if (self.config.max_nodes_expanded is not None and
                    self.statistics.nodes_expanded >= self.config.max_nodes_expanded):
                return self._create_no_solution(start_time, "max_nodes_reached", evaluator, frontier)

            current_node = frontier.pop()

            if current_node.state.is_goal(goal):
                return self._create_solved(current_node, start_time, evaluator, frontier)

            # Stale copy of an already expanded layout
            if self._is_closed(current_node.state, current_node.depth, visited):
                self.statistics.duplicate_states += 1
                continue

            # Pruned layouts stay open so a shallower copy can still expand them
            if self.config.max_depth is not None and current_node.depth >= self.config.max_depth:
                self.statistics.nodes_pruned += 1
                continue

            visited.mark_visited(current_node.state, current_node)

            successors = self._expand_node(current_node, evaluator, frontier, visited, policy)
            self.statistics.nodes_expanded += 1
            self.statistics.update_branching_factor(successors)

        reason = "depth_limit_reached" if self.statistics.nodes_pruned else "search_exhausted"
        return self._create_no_solution(start_time, reason, evaluator, frontier)

    def iter_solution(self, start: Any, goal: Any,
                      strategy: Union[str, EvaluationStrategy, None] = None) -> Iterator[SearchNode]:
        """Solve and return the solution nodes from start to goal as an iterator.

        The iterator is empty when no solution exists.
        """
        outcome = self.solve(start, goal, strategy)
        if not outcome:
            return iter(())
        return iter(outcome.goal_node.get_path())

    def _expand_node(self, node: SearchNode, evaluator: BaseEvaluator, frontier: Frontier,
                     visited: VisitedSet, policy: DuplicatePolicy) -> int:
        """Push the admissible successors of ``node``; return how many were pushed."""
        parent_state = node.parent_state
        pushed = 0

        for state, edge_cost in node.state.children():
            self.statistics.nodes_generated += 1
            if self.config.validate_costs:
                self._check_transition(node, state, edge_cost)

            # Never regenerate the node's own predecessor
            if parent_state is not None and state == parent_state:
                self.statistics.parent_transitions_skipped += 1
                continue
            if self._is_closed(state, node.depth + 1, visited):
                self.statistics.duplicate_states += 1
                continue
            if policy is DuplicatePolicy.OPEN_AND_CLOSED and state in frontier:
                self.statistics.duplicate_states += 1
                continue

            child = node.child(state, float(edge_cost), evaluator(state))
            frontier.push(child)
            pushed += 1
            self.statistics.nodes_enqueued += 1
            if child.depth > self.statistics.max_depth_reached:
                self.statistics.max_depth_reached = child.depth

        return pushed

    def _is_closed(self, state: Any, depth: int, visited: VisitedSet) -> bool:
        """True when ``state`` was expanded and a copy at ``depth`` cannot reach further.

        Under a depth limit a shallower copy of an expanded layout is reopened.
        """
        expanded = visited.get(state)
        if expanded is None:
            return False
        return self.config.max_depth is None or expanded.depth <= depth

    def _check_transition(self, node: SearchNode, state: Any, edge_cost: Any) -> None:
        try:
            cost = float(edge_cost)
        except (TypeError, ValueError):
            logger.error(f"Non-numeric transition cost {edge_cost!r} from {node.state!r}")
            raise DomainContractError(f"transition cost must be a number, got {edge_cost!r}",
                                      layout=node.state)
        if math.isnan(cost) or math.isinf(cost) or cost < 0:
            logger.error(f"Invalid transition cost {cost} from {node.state!r} to {state!r}")
            raise DomainContractError(f"transition cost must be finite and non-negative, got {cost}",
                                      layout=node.state)
        if state == node.state:
            logger.error(f"Layout {node.state!r} listed itself among its children")
            raise DomainContractError("children() must not include the layout itself",
                                      layout=node.state)

    def _finish_statistics(self, evaluator: BaseEvaluator, frontier: Frontier) -> None:
        self.statistics.max_frontier_size = frontier.max_size
        self.statistics.heuristic_computations = evaluator.computation_count
        self.statistics.compute_efficiency()

    def _create_solved(self, node: SearchNode, start_time: float,
                       evaluator: BaseEvaluator, frontier: Frontier) -> Solved:
        """Create successful search result."""
        self._finish_statistics(evaluator, frontier)
        computation_time = time.perf_counter() - start_time

        result = Solved(
            termination_reason="goal_reached",
            computation_time=computation_time,
            statistics=self.statistics.to_dict(),
            path=tuple(node.path_steps()),
            total_cost=node.cost,
            goal_node=node,
        )
        logger.info(f"Goal reached: cost={node.cost}, path_length={len(result.path)}, "
                    f"expanded={self.statistics.nodes_expanded}")
        return result

    def _create_no_solution(self, start_time: float, termination_reason: str,
                            evaluator: BaseEvaluator, frontier: Frontier) -> NoSolution:
        """Create result when no goal was reached."""
        self._finish_statistics(evaluator, frontier)
        computation_time = time.perf_counter() - start_time

        logger.info(f"No solution ({termination_reason}) after expanding "
                    f"{self.statistics.nodes_expanded} nodes")
        return NoSolution(
            termination_reason=termination_reason,
            computation_time=computation_time,
            statistics=self.statistics.to_dict(),
        )

    def get_search_stats(self) -> Dict[str, Any]:
        """Get statistics of the last search together with the configuration."""
        stats = self.statistics.to_dict()
        stats['config'] = {
            'strategy': (self.last_strategy or self.config.strategy).value,
            'duplicate_policy': self.config.duplicate_policy.value,
            'max_nodes_expanded': self.config.max_nodes_expanded,
            'max_depth': self.config.max_depth,
            'max_computation_time': self.config.max_computation_time,
        }
        return stats


def create_searcher(strategy: Union[str, EvaluationStrategy] = EvaluationStrategy.UNIFORM_COST,
                    duplicate_policy: Union[str, DuplicatePolicy] = DuplicatePolicy.CLOSED_SET_ONLY,
                    max_nodes_expanded: Optional[int] = None,
                    max_depth: Optional[int] = None,
                    max_computation_time: Optional[float] = None,
                    validate_costs: bool = True) -> BestFirstSearcher:
    """Factory function to create a searcher with custom configuration.

    Args:
        strategy: Evaluation strategy used when ``solve`` gets none
        duplicate_policy: How layouts reached twice are handled
        max_nodes_expanded: Stop with ``NoSolution`` after this many expansions
        max_depth: Do not expand nodes at this depth
        max_computation_time: Stop with ``NoSolution`` after this many seconds
        validate_costs: Check transitions against the layout contract

    Returns:
        Configured BestFirstSearcher instance
    """
    config = SearchConfig(
        strategy=strategy,
        duplicate_policy=duplicate_policy,
        max_nodes_expanded=max_nodes_expanded,
        max_depth=max_depth,
        max_computation_time=max_computation_time,
        validate_costs=validate_costs,
    )

    return BestFirstSearcher(config)


def solve(start: Any, goal: Any,
          strategy: Union[str, EvaluationStrategy] = EvaluationStrategy.UNIFORM_COST,
          **config_kwargs) -> SearchOutcome:
    """Solve a single problem with a throwaway searcher."""
    return create_searcher(strategy=strategy, **config_kwargs).solve(start, goal)

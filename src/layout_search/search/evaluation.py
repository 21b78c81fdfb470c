"""Evaluation strategies for the best-first engine.

The frontier orders nodes by f(n). Two strategies are supported:

- ``UNIFORM_COST``: f(n) = g(n), which makes the engine Dijkstra's algorithm
- ``HEURISTIC``: f(n) = g(n) + h(n), which makes the engine A*

The target layout is bound into the evaluator when it is created for a
``solve`` call, so nothing about the goal lives outside that call.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Union

from layout_search.core.exceptions import DomainContractError

logger = logging.getLogger(__name__)


class EvaluationStrategy(Enum):
    """How frontier nodes are scored."""
    UNIFORM_COST = "uniform_cost"
    HEURISTIC = "heuristic"

    @classmethod
    def parse(cls, value: Union[str, 'EvaluationStrategy']) -> 'EvaluationStrategy':
        """Accept an enum member or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace('-', '_')
        aliases = {
            'ucs': cls.UNIFORM_COST,
            'dijkstra': cls.UNIFORM_COST,
            'astar': cls.HEURISTIC,
            'a_star': cls.HEURISTIC,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            choices = ', '.join(member.value for member in cls)
            raise ValueError(f"Unknown evaluation strategy '{value}' (expected one of: {choices})")


class BaseEvaluator(ABC):
    """Computes h(n) for layouts against a fixed target."""

    def __init__(self, name: str, target: Any):
        """Initialize evaluator.

        Args:
            name: Name of the evaluator
            target: Goal layout every estimate refers to
        """
        self.name = name
        self.target = target
        self.computation_count = 0
        self.total_computation_time = 0.0

    @abstractmethod
    def compute(self, state: Any) -> float:
        """Return the heuristic estimate for ``state``."""

    def __call__(self, state: Any) -> float:
        """Compute the estimate with timing and sanity checks."""
        start_time = time.perf_counter()
        value = float(self.compute(state))
        self.computation_count += 1
        self.total_computation_time += time.perf_counter() - start_time

        if math.isnan(value) or value < 0:
            logger.error(f"{self.name} produced invalid estimate {value} for {state!r}")
            raise DomainContractError(
                f"heuristic must be a non-negative number, got {value}", layout=state
            )
        return value

    def get_stats(self) -> Dict[str, Any]:
        """Get computation statistics."""
        avg_time = (self.total_computation_time / self.computation_count
                    if self.computation_count > 0 else 0.0)

        return {
            'name': self.name,
            'computation_count': self.computation_count,
            'total_time': self.total_computation_time,
            'average_time': avg_time,
        }


class UniformCostEvaluator(BaseEvaluator):
    """f(n) = g(n): every estimate is zero."""

    def __init__(self, target: Any):
        super().__init__("uniform_cost", target)

    def compute(self, state: Any) -> float:
        return 0.0


class LayoutHeuristicEvaluator(BaseEvaluator):
    """f(n) = g(n) + h(n), with h supplied by the layout's own ``heuristic``."""

    def __init__(self, target: Any):
        super().__init__("layout_heuristic", target)

    def compute(self, state: Any) -> float:
        estimator = getattr(state, 'heuristic', None)
        if estimator is None:
            return 0.0
        return estimator(self.target)


def create_evaluator(strategy: Union[str, EvaluationStrategy], target: Any) -> BaseEvaluator:
    """Factory function to create the evaluator for a strategy.

    Args:
        strategy: Evaluation strategy (member or string value)
        target: Goal layout

    Returns:
        Evaluator bound to ``target``
    """
    strategy = EvaluationStrategy.parse(strategy)
    if strategy is EvaluationStrategy.HEURISTIC:
        return LayoutHeuristicEvaluator(target)
    return UniformCostEvaluator(target)

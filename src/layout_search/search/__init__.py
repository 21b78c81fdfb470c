"""Best-first search for layout_search.

This package implements a single engine that runs as uniform-cost search
(Dijkstra) or as A*, with two policies for layouts reached more than once.
"""

from .evaluation import EvaluationStrategy, BaseEvaluator, create_evaluator
from .frontier import DuplicatePolicy, Frontier
from .visited import VisitedSet
from .node import SearchNode
from .engine import (
    BestFirstSearcher, SearchConfig, SearchStatistics, create_searcher, solve
)

__all__ = [
    'EvaluationStrategy',
    'BaseEvaluator',
    'create_evaluator',
    'DuplicatePolicy',
    'Frontier',
    'VisitedSet',
    'SearchNode',
    'BestFirstSearcher',
    'SearchConfig',
    'SearchStatistics',
    'create_searcher',
    'solve',
]

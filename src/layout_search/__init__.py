"""Cheapest-path search between two layouts of a combinatorial puzzle."""

from layout_search.core import (
    Layout, PathStep, SearchOutcome, Solved, NoSolution,
    LayoutSearchError, LayoutParseError, DomainContractError,
)
from layout_search.search import (
    BestFirstSearcher, SearchConfig, EvaluationStrategy, DuplicatePolicy, solve,
)
from layout_search.domains import SlidingTileBoard, ContainerLayout, parse_layout

__version__ = '0.1.0'

__all__ = [
    'Layout',
    'PathStep',
    'SearchOutcome',
    'Solved',
    'NoSolution',
    'LayoutSearchError',
    'LayoutParseError',
    'DomainContractError',
    'BestFirstSearcher',
    'SearchConfig',
    'EvaluationStrategy',
    'DuplicatePolicy',
    'solve',
    'SlidingTileBoard',
    'ContainerLayout',
    'parse_layout',
]

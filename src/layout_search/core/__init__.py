"""Core types: the layout contract, search outcomes and errors."""

from .data_models import Layout, PathStep, SearchOutcome, Solved, NoSolution, Successor
from .exceptions import LayoutSearchError, LayoutParseError, DomainContractError

__all__ = [
    'Layout',
    'PathStep',
    'SearchOutcome',
    'Solved',
    'NoSolution',
    'Successor',
    'LayoutSearchError',
    'LayoutParseError',
    'DomainContractError',
]

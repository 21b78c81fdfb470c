"""Open set (frontier) for the best-first engine."""

import heapq
import itertools
import logging
from collections import Counter
from enum import Enum
from typing import Any, List, Tuple, Union

from .node import SearchNode

logger = logging.getLogger(__name__)


class DuplicatePolicy(Enum):
    """How layouts reached more than once are handled.

    ``CLOSED_SET_ONLY`` pushes every successor that has not been expanded yet;
    a layout may sit in the frontier several times at different costs and the
    cheapest copy is expanded first, later copies are discarded when popped.

    ``OPEN_AND_CLOSED`` also tracks which layouts are in the frontier and
    drops a successor at insertion time when its layout is already waiting
    there, keeping at most one entry per layout.
    """
    CLOSED_SET_ONLY = "closed_set_only"
    OPEN_AND_CLOSED = "open_and_closed"

    @classmethod
    def parse(cls, value: Union[str, 'DuplicatePolicy']) -> 'DuplicatePolicy':
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace('-', '_')
        aliases = {
            'closed': cls.CLOSED_SET_ONLY,
            'dedup': cls.OPEN_AND_CLOSED,
            'open_closed': cls.OPEN_AND_CLOSED,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            choices = ', '.join(member.value for member in cls)
            raise ValueError(f"Unknown duplicate policy '{value}' (expected one of: {choices})")


class Frontier:
    """Binary heap of nodes ordered by (f, insertion sequence).

    Equal f scores pop in insertion order, so a run is fully deterministic
    for a deterministic domain. With ``track_membership`` a counter of the
    resident layouts answers ``layout in frontier`` in O(1).
    """

    def __init__(self, track_membership: bool = False):
        self._heap: List[Tuple[float, int, SearchNode]] = []
        self._counter = itertools.count()
        self._members: Counter = Counter()
        self.track_membership = track_membership
        self.max_size = 0
        self.pushes = 0

    def push(self, node: SearchNode) -> None:
        node.sequence = next(self._counter)
        heapq.heappush(self._heap, (node.f_score, node.sequence, node))
        self.pushes += 1
        if self.track_membership:
            self._members[node.state] += 1
        if len(self._heap) > self.max_size:
            self.max_size = len(self._heap)

    def pop(self) -> SearchNode:
        """Remove and return the node with minimal f score.

        Raises:
            IndexError: If the frontier is empty
        """
        if not self._heap:
            raise IndexError("pop from an empty frontier")
        _, _, node = heapq.heappop(self._heap)
        if self.track_membership:
            self._members[node.state] -= 1
            if self._members[node.state] <= 0:
                del self._members[node.state]
        return node

    def peek(self) -> SearchNode:
        if not self._heap:
            raise IndexError("peek at an empty frontier")
        return self._heap[0][2]

    def __contains__(self, state: Any) -> bool:
        if not self.track_membership:
            return any(node.state == state for _, _, node in self._heap)
        return state in self._members

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

"""Container-stack rearrangement layout.

A layout is a set of stacks standing on the floor. Each container has a
one-character id and a handling cost. A move lifts the top container of a
stack and puts it on top of another stack or on the floor as a new stack;
the move costs the lifted container's handling cost.

Text encoding: stacks separated by spaces, listed bottom to top, each
container written as its id optionally followed by a one-digit cost::

    "A1B2 C3"   ->  stack [A, B] and stack [C]; A costs 1, B 2, C 3
    "A B C"     ->  three single-container stacks, cost defaults to 1
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Sequence, Tuple

from layout_search.core.data_models import Layout
from layout_search.core.exceptions import LayoutParseError

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER_COST = 1

Stack = Tuple[str, ...]


class ContainerLayout(Layout):
    """Immutable arrangement of container stacks.

    Stacks are kept sorted by their bottom container so that arrangements
    differing only in stack order compare equal. Costs travel with the layout
    but take no part in equality.
    """

    def __init__(self, stacks: Iterable[Sequence[str]], costs: Mapping[str, int]):
        """Initialize layout.

        Args:
            stacks: Stacks listed bottom to top; empty stacks are dropped
            costs: Handling cost of every container id
        """
        self.stacks: Tuple[Stack, ...] = tuple(
            sorted((tuple(stack) for stack in stacks if stack), key=lambda stack: stack[0])
        )
        self.costs = costs if isinstance(costs, MappingProxyType) else MappingProxyType(dict(costs))
        self._hash = hash(self.stacks)

    @classmethod
    def from_string(cls, text: str, default_cost: int = DEFAULT_CONTAINER_COST) -> 'ContainerLayout':
        """Parse a layout, see ``parse_containers``."""
        return parse_containers(text, default_cost)

    @property
    def containers(self) -> Tuple[str, ...]:
        return tuple(sorted(container for stack in self.stacks for container in stack))

    def cost_of(self, container: str) -> int:
        return self.costs[container]

    def children(self) -> Iterator[Tuple['ContainerLayout', float]]:
        for i, stack in enumerate(self.stacks):
            top = stack[-1]
            move_cost = float(self.costs[top])
            remaining = stack[:-1]
            others = self.stacks[:i] + self.stacks[i + 1:]

            # Onto the floor; a lone container is already there
            if remaining:
                yield ContainerLayout(others + (remaining, (top,)), self.costs), move_cost

            for j, target in enumerate(self.stacks):
                if i == j:
                    continue
                moved = tuple(
                    target + (top,) if k == j else (remaining if k == i else other)
                    for k, other in enumerate(self.stacks)
                )
                yield ContainerLayout(moved, self.costs), move_cost

    def heuristic(self, target: 'ContainerLayout') -> float:
        """Lower bound on the cost of reaching ``target``.

        In each stack, find the goal stack with the same bottom container and
        the first position where the two differ: that container and every
        container above it must be moved at least once. A stack whose bottom
        is not at the bottom of any goal stack must be moved entirely.
        """
        goal_by_bottom: Dict[str, Stack] = {stack[0]: stack for stack in target.stacks}
        estimate = 0.0

        for stack in self.stacks:
            goal_stack = goal_by_bottom.get(stack[0])
            if goal_stack is None:
                estimate += sum(self.costs[container] for container in stack)
                continue

            for position, container in enumerate(stack):
                if position >= len(goal_stack) or container != goal_stack[position]:
                    estimate += sum(self.costs[c] for c in stack[position:])
                    break

        return estimate

    def encode(self) -> str:
        """Inverse of ``parse_containers``, costs included."""
        return ' '.join(
            ''.join(f"{container}{self.costs[container]}" for container in stack)
            for stack in self.stacks
        )

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, ContainerLayout):
            return NotImplemented
        return self._hash == other._hash and self.stacks == other.stacks

    def __hash__(self) -> int:
        return self._hash

    def __str__(self) -> str:
        """One stack per line, bottom first: ``[A, B]``."""
        return '\n'.join('[' + ', '.join(stack) + ']' for stack in self.stacks)

    def __repr__(self) -> str:
        return f"ContainerLayout('{self.encode()}')"


def parse_containers(text: str, default_cost: int = DEFAULT_CONTAINER_COST) -> ContainerLayout:
    """Parse a container layout.

    Args:
        text: Space separated stacks, e.g. ``"A1B2 C3"``
        default_cost: Cost of containers written without one

    Returns:
        Parsed layout

    Raises:
        LayoutParseError: On empty input, characters other than ASCII
            letters and digits, or a container id used twice
    """
    if text is None or not text.strip():
        raise LayoutParseError("Empty container layout")

    stacks = []
    costs: Dict[str, int] = {}

    for token in text.split():
        stack = []
        i = 0
        while i < len(token):
            container = token[i]
            if not (container.isascii() and container.isalnum()):
                raise LayoutParseError(f"Invalid container '{container}' in layout '{text}'")
            if container in costs:
                raise LayoutParseError(f"Container '{container}' appears twice in layout '{text}'")

            if i + 1 < len(token) and token[i + 1].isdigit():
                costs[container] = int(token[i + 1])
                i += 2
            else:
                costs[container] = default_cost
                i += 1
            stack.append(container)
        stacks.append(stack)

    logger.debug(f"Parsed {len(costs)} containers in {len(stacks)} stacks from '{text}'")
    return ContainerLayout(stacks, costs)

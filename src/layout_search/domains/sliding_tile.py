"""Sliding-tile puzzle layout (8-puzzle and its n x n generalisations).

The board is an n x n grid holding the tiles ``1 .. n*n-1`` and a blank
encoded as ``0``. A move slides a tile next to the blank into it, which is
the same as swapping the blank with that neighbour; every move costs 1.
"""

import logging
import math
import re
from typing import Iterator, Optional, Tuple

import numpy as np

from layout_search.core.data_models import Layout
from layout_search.core.exceptions import LayoutParseError

logger = logging.getLogger(__name__)

BLANK = 0
MOVE_COST = 1.0
# Blank displacements: up, down, left, right
MOVES = ((-1, 0), (1, 0), (0, -1), (0, 1))


class SlidingTileBoard(Layout):
    """Immutable n x n sliding-tile board."""

    def __init__(self, grid: np.ndarray, blank: Optional[Tuple[int, int]] = None):
        """Initialize board.

        Args:
            grid: Square integer array holding a permutation of 0 .. n*n-1
            blank: Position of the blank when already known
        """
        grid = np.array(grid, dtype=np.int16)
        if grid.ndim != 2 or grid.shape[0] != grid.shape[1]:
            raise LayoutParseError(f"Board must be a square grid, got shape {grid.shape}")
        grid.flags.writeable = False
        self.grid = grid
        self.size = grid.shape[0]
        self._key = grid.tobytes()
        self._hash = hash(self._key)
        if blank is None:
            blanks = np.argwhere(grid == BLANK)
            if len(blanks) != 1:
                raise LayoutParseError(f"Board must hold exactly one blank, found {len(blanks)}")
            row, col = blanks[0]
            blank = (int(row), int(col))
        self._blank = blank
        self._positions = None

    @classmethod
    def from_string(cls, text: str, size: Optional[int] = None) -> 'SlidingTileBoard':
        """Parse a board, see ``parse_board``."""
        return parse_board(text, size)

    @property
    def blank(self) -> Tuple[int, int]:
        return self._blank

    def children(self) -> Iterator[Tuple['SlidingTileBoard', float]]:
        row, col = self._blank
        for d_row, d_col in MOVES:
            new_row, new_col = row + d_row, col + d_col
            if 0 <= new_row < self.size and 0 <= new_col < self.size:
                grid = self.grid.copy()
                grid[row, col], grid[new_row, new_col] = grid[new_row, new_col], BLANK
                yield SlidingTileBoard(grid, blank=(new_row, new_col)), MOVE_COST

    def tile_positions(self) -> np.ndarray:
        """Flat position of every tile, indexed by tile value."""
        if self._positions is None:
            self._positions = np.argsort(self.grid, axis=None)
        return self._positions

    def heuristic(self, target: 'SlidingTileBoard') -> float:
        """Manhattan distance of every non-blank tile to its target cell.

        Each move shifts one tile by one cell, so the estimate never exceeds
        the true remaining cost.
        """
        if target.size != self.size:
            raise ValueError(f"Cannot compare a {self.size}x{self.size} board "
                             f"with a {target.size}x{target.size} board")
        current = self.tile_positions()[1:]
        wanted = target.tile_positions()[1:]
        distance = (np.abs(current // self.size - wanted // self.size).sum()
                    + np.abs(current % self.size - wanted % self.size).sum())
        return float(distance)

    def is_solvable_from(self, other: 'SlidingTileBoard') -> bool:
        """Check whether ``other`` can be reached from this board.

        A board is reachable iff the parity of the permutation taking one
        board to the other matches the parity of the blank's displacement.
        """
        if other.size != self.size:
            return False
        wanted = other.tile_positions()
        permutation = wanted[self.grid.ravel()]

        seen = np.zeros(permutation.size, dtype=bool)
        transpositions = 0
        for start in range(permutation.size):
            if seen[start]:
                continue
            length = 0
            index = start
            while not seen[index]:
                seen[index] = True
                index = permutation[index]
                length += 1
            transpositions += length - 1

        (row, col), (goal_row, goal_col) = self._blank, other.blank
        blank_distance = abs(row - goal_row) + abs(col - goal_col)
        return transpositions % 2 == blank_distance % 2

    def encode(self) -> str:
        """Inverse of ``parse_board``."""
        if self.size <= 3:
            return ''.join(str(tile) for tile in self.grid.ravel())
        return ','.join(str(tile) for tile in self.grid.ravel())

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, SlidingTileBoard):
            return NotImplemented
        return self._key == other._key and self.size == other.size

    def __hash__(self) -> int:
        return self._hash

    def __str__(self) -> str:
        """One row per line, the blank shown as a space."""
        width = len(str(self.size * self.size - 1))
        separator = '' if width == 1 else ' '
        lines = []
        for row in self.grid:
            cells = [' ' * width if tile == BLANK else str(tile).rjust(width) for tile in row]
            lines.append(separator.join(cells))
        return '\n'.join(lines) + '\n'

    def __repr__(self) -> str:
        return f"SlidingTileBoard('{self.encode()}')"


def parse_board(text: str, size: Optional[int] = None) -> SlidingTileBoard:
    """Parse a sliding-tile board.

    Accepts one digit per tile (``"123456780"``) or numbers separated by
    commas or whitespace (``"1,2,3,4,5,6,7,8,9,10,11,12,13,14,15,0"``).

    Args:
        text: Board encoding, row by row
        size: Expected side length; inferred from the tile count when None

    Returns:
        Parsed board

    Raises:
        LayoutParseError: If the text is not a square permutation of 0 .. n*n-1
    """
    if text is None or not text.strip():
        raise LayoutParseError("Empty board description")

    stripped = text.strip()
    if re.search(r'[,\s]', stripped):
        tokens = [token for token in re.split(r'[,\s]+', stripped) if token]
    else:
        tokens = list(stripped)

    if not all(token.isdigit() for token in tokens):
        raise LayoutParseError(f"Invalid board '{text}': tiles must be non-negative integers")
    tiles = [int(token) for token in tokens]

    side = math.isqrt(len(tiles))
    if side * side != len(tiles) or side < 2:
        raise LayoutParseError(f"Invalid board '{text}': {len(tiles)} tiles do not form a square board")
    if size is not None and side != size:
        raise LayoutParseError(f"Invalid board '{text}': expected a {size}x{size} board, got {side}x{side}")
    if sorted(tiles) != list(range(side * side)):
        raise LayoutParseError(
            f"Invalid board '{text}': tiles must be a permutation of 0..{side * side - 1}"
        )

    logger.debug(f"Parsed {side}x{side} board from '{text}'")
    return SlidingTileBoard(np.array(tiles).reshape(side, side))

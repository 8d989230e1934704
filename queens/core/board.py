from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple


class CellState(Enum):
    EMPTY = "empty"
    MARKED = "marked"
    QUEEN = "queen"
    PREPLACED = "preplaced"

    @property
    def is_queen(self) -> bool:
        """True for player queens and fixed queens alike."""
        return self in (CellState.QUEEN, CellState.PREPLACED)


@dataclass(frozen=True)
class Position:
    row: int
    col: int


ConflictMap = Tuple[Tuple[bool, ...], ...]
RegionMap = Tuple[Tuple[int, ...], ...]


@dataclass(frozen=True)
class Board:
    """Immutable square grid of cell states. Every change returns a new board."""

    cells: Tuple[Tuple[CellState, ...], ...]

    @classmethod
    def empty(cls, size: int, preplaced: Iterable[Position] = ()) -> "Board":
        if size <= 0:
            raise ValueError(f"Board size must be positive, got {size}")
        rows = [[CellState.EMPTY] * size for _ in range(size)]
        for pos in preplaced:
            if not (0 <= pos.row < size and 0 <= pos.col < size):
                raise IndexError(f"Pre-placed queen {pos} outside a {size}x{size} board")
            rows[pos.row][pos.col] = CellState.PREPLACED
        return cls(tuple(tuple(row) for row in rows))

    @property
    def size(self) -> int:
        return len(self.cells)

    def contains(self, pos: Position) -> bool:
        return 0 <= pos.row < self.size and 0 <= pos.col < self.size

    def state_at(self, pos: Position) -> CellState:
        if not self.contains(pos):
            raise IndexError(f"{pos} outside a {self.size}x{self.size} board")
        return self.cells[pos.row][pos.col]

    def with_state(self, pos: Position, state: CellState) -> "Board":
        if not self.contains(pos):
            raise IndexError(f"{pos} outside a {self.size}x{self.size} board")
        row = list(self.cells[pos.row])
        row[pos.col] = state
        cells = self.cells[: pos.row] + (tuple(row),) + self.cells[pos.row + 1 :]
        return Board(cells)

    def queens(self) -> List[Position]:
        """Occupied cells in row-major order."""
        return [
            Position(r, c)
            for r, row in enumerate(self.cells)
            for c, state in enumerate(row)
            if state.is_queen
        ]

    def queen_count(self) -> int:
        return sum(1 for row in self.cells for state in row if state.is_queen)


def empty_conflicts(size: int) -> ConflictMap:
    return tuple(tuple(False for _ in range(size)) for _ in range(size))


def has_conflicts(conflicts: ConflictMap) -> bool:
    return any(any(row) for row in conflicts)

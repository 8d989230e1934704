"""Rule sets for the two game variants.

Each rule set answers two questions: do two queens attack each other, and
what does a cell become when the player taps it. The board, the conflict
evaluator and the session controller are shared by both variants.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

from queens.core.board import CellState, Position, RegionMap


class Variant(Enum):
    CLASSIC = "classic"
    REGION = "region"


class RuleSet:
    name = "base"
    intro_messages: Tuple[str, ...] = ()
    _cycle: Dict[CellState, CellState] = {}

    def conflicts(self, a: Position, b: Position) -> bool:
        raise NotImplementedError

    def next_state(self, state: CellState) -> CellState:
        """Tap-cycle successor. Pre-placed queens never move."""
        if state is CellState.PREPLACED:
            return state
        try:
            return self._cycle[state]
        except KeyError:
            raise ValueError(f"{self.name} rules have no transition from {state.value}") from None


class ClassicRules(RuleSet):
    """Row, column and any-distance diagonal attacks."""

    name = "classic"
    intro_messages = (
        "Welcome! Place one queen in every row and every column.",
        "Queens attack along rows, columns and both diagonals, at any distance.",
        "Some queens are already fixed on the board. They cannot be moved.",
        "Tap an empty cell to place a queen, tap it again to remove it.",
        "Attacking queens turn red. Fill the board with no red queens to win.",
    )
    _cycle = {
        CellState.EMPTY: CellState.QUEEN,
        CellState.QUEEN: CellState.EMPTY,
    }

    def conflicts(self, a: Position, b: Position) -> bool:
        return (
            a.row == b.row
            or a.col == b.col
            or abs(a.row - b.row) == abs(a.col - b.col)
        )


class RegionRules(RuleSet):
    """Row, column, color region and touching-neighbour attacks.

    Queens on a shared diagonal only attack when they touch.
    """

    name = "region"
    intro_messages = (
        "Welcome! Place exactly one queen in every row, column and color region.",
        "Queens may not touch each other, not even diagonally.",
        "Some queens are already fixed on the board. They cannot be moved.",
        "Tap once to mark a cell where a queen cannot go, twice for a queen, "
        "and a third time to clear it.",
        "Clashing queens turn red. Fill every region with no red queens to win.",
    )
    _cycle = {
        CellState.EMPTY: CellState.MARKED,
        CellState.MARKED: CellState.QUEEN,
        CellState.QUEEN: CellState.EMPTY,
    }

    def __init__(self, region_map: RegionMap) -> None:
        self._region_map = region_map

    @property
    def region_map(self) -> RegionMap:
        return self._region_map

    def region_of(self, pos: Position) -> int:
        return self._region_map[pos.row][pos.col]

    def conflicts(self, a: Position, b: Position) -> bool:
        return (
            a.row == b.row
            or a.col == b.col
            or self.region_of(a) == self.region_of(b)
            or (abs(a.row - b.row) <= 1 and abs(a.col - b.col) <= 1)
        )

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterable, List

from queens.core.board import Board, CellState, ConflictMap, Position, has_conflicts
from queens.core.rules import RuleSet


@dataclass(frozen=True)
class Evaluation:
    board: Board
    conflicts: ConflictMap
    solved: bool


def evaluate_conflicts(board: Board, rules: RuleSet) -> ConflictMap:
    """Mark every queen that attacks at least one other queen.

    Pairwise over all queens, fixed ones included. Boards hold at most a
    handful of queens, so the quadratic scan is fine.
    """
    size = board.size
    marked = [[False] * size for _ in range(size)]
    for a, b in combinations(board.queens(), 2):
        if rules.conflicts(a, b):
            marked[a.row][a.col] = True
            marked[b.row][b.col] = True
    return tuple(tuple(row) for row in marked)


def apply_interaction(board: Board, pos: Position, rules: RuleSet) -> Board:
    """Advance the tapped cell along the rule set's cycle."""
    state = board.state_at(pos)
    if state is CellState.PREPLACED:
        return board
    return board.with_state(pos, rules.next_state(state))


def is_solved(board: Board, conflicts: ConflictMap, required: int) -> bool:
    return board.queen_count() == required and not has_conflicts(conflicts)


def evaluate(board: Board, rules: RuleSet, required: int) -> Evaluation:
    conflicts = evaluate_conflicts(board, rules)
    return Evaluation(board=board, conflicts=conflicts, solved=is_solved(board, conflicts, required))


def count_solutions(size: int, rules: RuleSet, fixed: Iterable[Position] = (), limit: int = 2) -> int:
    """Count full placements (one queen per row) that keep every fixed queen.

    Backtracks row by row and stops once ``limit`` placements are found, so
    ``count_solutions(...) == 1`` is a cheap uniqueness test.
    """
    fixed_by_row: Dict[int, Position] = {pos.row: pos for pos in fixed}
    placed: List[Position] = []

    def _search(row: int) -> int:
        if row == size:
            return 1
        if row in fixed_by_row:
            candidates = [fixed_by_row[row]]
        else:
            candidates = [Position(row, col) for col in range(size)]
        later_fixed = [pos for r, pos in fixed_by_row.items() if r > row]
        found = 0
        for pos in candidates:
            if any(rules.conflicts(pos, other) for other in placed):
                continue
            if row not in fixed_by_row and any(rules.conflicts(pos, other) for other in later_fixed):
                continue
            placed.append(pos)
            found += _search(row + 1)
            placed.pop()
            if found >= limit:
                break
        return min(found, limit)

    return _search(0)

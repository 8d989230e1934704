"""Tests for queens.core.engine – conflict evaluation, interaction and win detection."""

from __future__ import annotations

import pytest

from queens.core.board import Board, CellState, Position, has_conflicts
from queens.core.engine import apply_interaction, count_solutions, evaluate, evaluate_conflicts, is_solved
from queens.core.rules import ClassicRules, RegionRules

LEVEL1_REGIONS = (
    (1, 1, 0, 0, 0),
    (1, 1, 2, 0, 3),
    (1, 2, 2, 2, 3),
    (4, 4, 2, 3, 3),
    (4, 4, 4, 3, 3),
)
LEVEL1_FIXED = [Position(0, 3), Position(3, 4)]
STRIPES = tuple(tuple(range(6)) for _ in range(6))


def _place(board: Board, *positions: Position, state: CellState = CellState.QUEEN) -> Board:
    for pos in positions:
        board = board.with_state(pos, state)
    return board


def _flagged(conflicts) -> set:
    return {Position(r, c) for r, row in enumerate(conflicts) for c, v in enumerate(row) if v}


# ---------------------------------------------------------------------------
# evaluate_conflicts
# ---------------------------------------------------------------------------

class TestEvaluateConflicts:
    def test_empty_board(self):
        conflicts = evaluate_conflicts(Board.empty(5), ClassicRules())
        assert not has_conflicts(conflicts)

    def test_single_queen_never_conflicts(self):
        board = _place(Board.empty(5), Position(2, 2))
        assert not has_conflicts(evaluate_conflicts(board, ClassicRules()))

    def test_both_members_marked(self):
        board = _place(Board.empty(5), Position(0, 0), Position(0, 4), Position(3, 2))
        assert _flagged(evaluate_conflicts(board, ClassicRules())) == {Position(0, 0), Position(0, 4)}

    def test_preplaced_not_exempt(self):
        board = _place(Board.empty(5, [Position(0, 0)]), Position(4, 4))
        assert _flagged(evaluate_conflicts(board, ClassicRules())) == {Position(0, 0), Position(4, 4)}

    def test_marked_cells_ignored(self):
        rules = RegionRules(STRIPES)
        board = _place(Board.empty(6), Position(0, 0), Position(0, 1), state=CellState.MARKED)
        board = _place(board, Position(3, 3))
        assert not has_conflicts(evaluate_conflicts(board, rules))

    def test_non_queen_cells_always_false(self):
        rules = RegionRules(STRIPES)
        board = _place(Board.empty(6), Position(0, 0), Position(1, 1), Position(0, 5))
        board = _place(board, Position(4, 4), state=CellState.MARKED)
        conflicts = evaluate_conflicts(board, rules)
        queens = set(board.queens())
        for r in range(6):
            for c in range(6):
                if Position(r, c) not in queens:
                    assert conflicts[r][c] is False

    def test_classic_far_diagonal_conflicts(self):
        board = _place(Board.empty(6), Position(0, 0), Position(5, 5))
        assert _flagged(evaluate_conflicts(board, ClassicRules())) == {Position(0, 0), Position(5, 5)}

    def test_region_far_diagonal_is_safe(self):
        board = _place(Board.empty(6), Position(0, 0), Position(5, 5))
        assert not has_conflicts(evaluate_conflicts(board, RegionRules(STRIPES)))

    def test_region_adjacent_conflicts(self):
        board = _place(Board.empty(6), Position(2, 2), Position(3, 3))
        assert _flagged(evaluate_conflicts(board, RegionRules(STRIPES))) == {Position(2, 2), Position(3, 3)}

    def test_shape_matches_board(self):
        conflicts = evaluate_conflicts(Board.empty(7), ClassicRules())
        assert len(conflicts) == 7
        assert all(len(row) == 7 for row in conflicts)


# ---------------------------------------------------------------------------
# apply_interaction
# ---------------------------------------------------------------------------

class TestApplyInteraction:
    def test_classic_tap_cycle(self):
        rules = ClassicRules()
        pos = Position(1, 1)
        board = apply_interaction(Board.empty(5), pos, rules)
        assert board.state_at(pos) is CellState.QUEEN
        board = apply_interaction(board, pos, rules)
        assert board.state_at(pos) is CellState.EMPTY

    def test_region_tap_cycle(self):
        rules = RegionRules(LEVEL1_REGIONS)
        pos = Position(2, 2)
        seen = []
        board = Board.empty(5)
        for _ in range(3):
            board = apply_interaction(board, pos, rules)
            seen.append(board.state_at(pos))
        assert seen == [CellState.MARKED, CellState.QUEEN, CellState.EMPTY]

    @pytest.mark.parametrize("rules", [ClassicRules(), RegionRules(LEVEL1_REGIONS)])
    def test_preplaced_untouched(self, rules):
        board = Board.empty(5, LEVEL1_FIXED)
        assert apply_interaction(board, Position(0, 3), rules) is board

    def test_input_board_not_modified(self):
        board = Board.empty(5)
        apply_interaction(board, Position(0, 0), ClassicRules())
        assert board == Board.empty(5)


# ---------------------------------------------------------------------------
# is_solved / evaluate
# ---------------------------------------------------------------------------

class TestWinDetection:
    def _level1_solution(self) -> Board:
        board = Board.empty(5, LEVEL1_FIXED)
        return _place(board, Position(1, 0), Position(2, 2), Position(4, 1))

    def test_level1_region_example_wins(self):
        result = evaluate(self._level1_solution(), RegionRules(LEVEL1_REGIONS), 5)
        assert not has_conflicts(result.conflicts)
        assert result.solved

    def test_level1_region_swap_loses(self):
        board = _place(Board.empty(5, LEVEL1_FIXED), Position(1, 0), Position(2, 3), Position(4, 1))
        result = evaluate(board, RegionRules(LEVEL1_REGIONS), 5)
        assert has_conflicts(result.conflicts)
        assert Position(2, 3) in _flagged(result.conflicts)
        assert not result.solved

    def test_same_layout_solves_classic_rules(self):
        assert evaluate(self._level1_solution(), ClassicRules(), 5).solved

    def test_removing_queen_unsolves(self):
        rules = RegionRules(LEVEL1_REGIONS)
        board = self._level1_solution()
        assert evaluate(board, rules, 5).solved
        board = board.with_state(Position(2, 2), CellState.EMPTY)
        assert not evaluate(board, rules, 5).solved

    def test_full_count_with_conflict_is_not_a_win(self):
        board = _place(Board.empty(2), Position(0, 0), Position(1, 1))
        conflicts = evaluate_conflicts(board, ClassicRules())
        assert board.queen_count() == 2
        assert not is_solved(board, conflicts, 2)

    def test_conflict_free_but_short_is_not_a_win(self):
        board = _place(Board.empty(5), Position(0, 0))
        conflicts = evaluate_conflicts(board, ClassicRules())
        assert not is_solved(board, conflicts, 5)

    def test_empty_board_is_not_a_win(self):
        board = Board.empty(5)
        assert not is_solved(board, evaluate_conflicts(board, ClassicRules()), 5)

    def test_preplaced_count_towards_target(self):
        board = Board.empty(1, [Position(0, 0)])
        assert is_solved(board, evaluate_conflicts(board, ClassicRules()), 1)


# ---------------------------------------------------------------------------
# count_solutions
# ---------------------------------------------------------------------------

class TestCountSolutions:
    @pytest.mark.parametrize("size, expected", [(4, 2), (5, 10), (6, 4)])
    def test_classic_queens_counts(self, size, expected):
        assert count_solutions(size, ClassicRules(), limit=100) == expected

    def test_level1_unique_with_fixed_queens(self):
        assert count_solutions(5, RegionRules(LEVEL1_REGIONS), LEVEL1_FIXED) == 1

    def test_stops_at_limit(self):
        assert count_solutions(6, RegionRules(STRIPES), limit=2) == 2

    def test_fixed_queen_narrows_count(self):
        assert count_solutions(4, ClassicRules(), [Position(0, 1)], limit=100) == 1

    def test_conflicting_fixed_queens(self):
        assert count_solutions(5, ClassicRules(), [Position(0, 0), Position(1, 1)]) == 0

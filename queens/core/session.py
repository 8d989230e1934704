from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from queens.core.board import Board, CellState, ConflictMap, Position
from queens.core.engine import apply_interaction, evaluate
from queens.core.levels import LevelCatalog, LevelDefinition, LevelPuzzle, PuzzleUnavailableError
from queens.core.progress import (
    GameProgress,
    IntroFlagStore,
    ProgressStore,
    ProgressStoreError,
    default_progress,
)
from queens.core.rules import ClassicRules, RegionRules, RuleSet, Variant

logger = logging.getLogger(__name__)

INTRO_LEVEL = 1


class Phase(Enum):
    INTRODUCTION = "introduction"
    ACTIVE = "active"
    COMPLETED = "completed"


class TickSource(Protocol):
    """Recurring one-second tick. start/stop are idempotent."""

    @property
    def is_running(self) -> bool: ...

    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


@dataclass(frozen=True)
class WinResult:
    level: int
    elapsed: int
    best_time: Optional[int]
    is_new_best: bool
    next_level: Optional[int]


class SessionController:
    """Drives one level attempt: introduction, active play, completion.

    Talks to the catalog and the stores only when a level starts and when it
    is won. Board evaluation is delegated to the pure engine functions.
    """

    def __init__(
        self,
        catalog: LevelCatalog,
        variant: Variant,
        progress_store: ProgressStore,
        intro_store: IntroFlagStore,
        ticker: TickSource,
        intro_messages: Optional[Sequence[str]] = None,
    ) -> None:
        self._catalog = catalog
        self._variant = variant
        self._progress_store = progress_store
        self._intro_store = intro_store
        self._ticker = ticker
        self._intro_messages_override = tuple(intro_messages) if intro_messages is not None else None
        self._visible = True
        self._pending_progress: Optional[GameProgress] = None
        self._clear()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def variant(self) -> Variant:
        return self._variant

    @property
    def has_session(self) -> bool:
        return self._definition is not None

    @property
    def level(self) -> Optional[int]:
        return self._definition.level if self._definition else None

    @property
    def definition(self) -> Optional[LevelDefinition]:
        return self._definition

    @property
    def puzzle(self) -> Optional[LevelPuzzle]:
        """Region puzzle of the current level (region variant only)."""
        return self._puzzle

    @property
    def rules(self) -> Optional[RuleSet]:
        return self._rules

    @property
    def required_queens(self) -> int:
        return self._definition.num_queens if self._definition else 0

    @property
    def board(self) -> Optional[Board]:
        return self._board

    @property
    def conflicts(self) -> Optional[ConflictMap]:
        return self._conflicts

    @property
    def phase(self) -> Optional[Phase]:
        return self._phase

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def best_time(self) -> Optional[int]:
        return self._best_time

    @property
    def is_new_best(self) -> bool:
        return self._win_result.is_new_best if self._win_result else False

    @property
    def win_result(self) -> Optional[WinResult]:
        return self._win_result

    @property
    def intro_messages(self) -> Sequence[str]:
        if self._intro_messages_override is not None:
            return self._intro_messages_override
        return self._rules.intro_messages if self._rules else ()

    @property
    def intro_message(self) -> Optional[str]:
        """Message currently shown, or None outside the introduction."""
        if self._phase is not Phase.INTRODUCTION:
            return None
        return self.intro_messages[self._intro_index]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, level_id: int) -> None:
        """Enter a level. Raises LevelNotFoundError or PuzzleUnavailableError."""
        definition = self._catalog.get(level_id)
        puzzle: Optional[LevelPuzzle] = None
        if self._variant is Variant.REGION:
            puzzle = self._catalog.get_puzzle(level_id)
            if puzzle is None:
                raise PuzzleUnavailableError(f"Level {level_id} has no region puzzle")
            rules: RuleSet = RegionRules(puzzle.region_map)
        else:
            rules = ClassicRules()

        self._ticker.stop()
        self._flush_pending()
        self._clear()
        self._definition = definition
        self._puzzle = puzzle
        self._rules = rules
        self._best_time = self._load_progress().level(level_id).best_time
        self._new_board()

        if level_id == INTRO_LEVEL and self.intro_messages and not self._intro_store.read_intro_seen():
            self._phase = Phase.INTRODUCTION
            self._intro_index = 0
        else:
            self._phase = Phase.ACTIVE
            self._resume_timer()
        logger.info("Started %s level %s in phase %s", self._variant.value, level_id, self._phase.value)

    def next_intro(self) -> None:
        """Show the next walkthrough message; leaving the last one starts play."""
        if self._phase is not Phase.INTRODUCTION:
            return
        self._intro_index += 1
        if self._intro_index < len(self.intro_messages):
            return
        self._phase = Phase.ACTIVE
        try:
            self._intro_store.write_intro_seen()
        except ProgressStoreError as e:
            logger.warning("Could not persist walkthrough flag: %s", e)
        self._resume_timer()

    def reset(self) -> None:
        """Start the current level over. The walkthrough is never repeated."""
        if self._definition is None:
            return
        self._ticker.stop()
        self._flush_pending()
        self._new_board()
        self._elapsed = 0
        self._win_result = None
        self._win_recorded = False
        self._phase = Phase.ACTIVE
        self._resume_timer()

    def replay(self) -> None:
        self.reset()

    def advance_level(self) -> bool:
        if self._definition is None:
            return False
        next_level = self._catalog.next_level(self._definition.level)
        if next_level is None:
            return False
        self.start(next_level)
        return True

    def go_home(self) -> None:
        self._ticker.stop()
        self._flush_pending()
        self._clear()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def activate_cell(self, row: int, col: int) -> bool:
        """Apply a tap. Returns True when the board changed.

        Raises ProgressStoreError if this tap wins the level and the progress
        record cannot be written; retry_save() writes it again.
        """
        if self._phase is not Phase.ACTIVE or self._board is None:
            return False
        pos = Position(row, col)
        if not self._board.contains(pos) or self._board.state_at(pos) is CellState.PREPLACED:
            return False

        self._apply(apply_interaction(self._board, pos, self._rules))
        if self._solved:
            self._complete()
        return True

    def tick(self) -> None:
        if self._phase is Phase.ACTIVE:
            self._elapsed += 1

    def on_visibility_changed(self, visible: bool) -> None:
        self._visible = visible
        if visible:
            self._resume_timer()
        else:
            self._ticker.stop()

    def retry_save(self) -> None:
        """Write a win record whose first write failed.

        The record stays pending across restarts and level changes until a
        write succeeds.
        """
        if self._pending_progress is None:
            return
        self._progress_store.write(self._pending_progress)
        self._pending_progress = None

    @property
    def save_pending(self) -> bool:
        return self._pending_progress is not None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear(self) -> None:
        self._definition: Optional[LevelDefinition] = None
        self._puzzle: Optional[LevelPuzzle] = None
        self._rules: Optional[RuleSet] = None
        self._board: Optional[Board] = None
        self._conflicts: Optional[ConflictMap] = None
        self._solved = False
        self._phase: Optional[Phase] = None
        self._intro_index = 0
        self._elapsed = 0
        self._best_time: Optional[int] = None
        self._win_result: Optional[WinResult] = None
        self._win_recorded = False

    def _pre_placed(self) -> Sequence[Position]:
        if self._puzzle is not None:
            return self._puzzle.pre_placed_positions
        return self._definition.pre_placed_positions

    def _new_board(self) -> None:
        self._apply(Board.empty(self._definition.board_size, self._pre_placed()))

    def _apply(self, board: Board) -> None:
        result = evaluate(board, self._rules, self._definition.num_queens)
        self._board = result.board
        self._conflicts = result.conflicts
        self._solved = result.solved

    def _resume_timer(self) -> None:
        if self._visible and self._phase is Phase.ACTIVE:
            self._ticker.start(self.tick)

    def _load_progress(self) -> GameProgress:
        if self._pending_progress is not None:
            return self._pending_progress
        try:
            progress = self._progress_store.read()
        except ProgressStoreError as e:
            logger.warning("Falling back to default progress: %s", e)
            progress = None
        if progress is None:
            progress = default_progress(self._catalog.level_ids())
        return progress

    def _flush_pending(self) -> None:
        try:
            self.retry_save()
        except ProgressStoreError as e:
            logger.warning("Win record still unsaved: %s", e)

    def _complete(self) -> None:
        self._phase = Phase.COMPLETED
        self._ticker.stop()
        if self._win_recorded:
            return
        self._win_recorded = True
        self._record_win()

    def _record_win(self) -> None:
        level_id = self._definition.level
        elapsed = self._elapsed
        progress = self._load_progress()
        data = progress.level(level_id)

        previous_best = data.best_time
        is_new_best = previous_best is not None and elapsed < previous_best
        if previous_best is None or elapsed < previous_best:
            data.best_time = elapsed
        data.completed = True
        data.unlocked = True
        data.last_played_time = elapsed

        next_level = self._catalog.next_level(level_id)
        if next_level is not None:
            progress.level(next_level).unlocked = True
        if level_id >= progress.current_level:
            progress.current_level = min(level_id + 1, self._catalog.max_level)

        self._best_time = data.best_time
        self._win_result = WinResult(
            level=level_id,
            elapsed=elapsed,
            best_time=data.best_time,
            is_new_best=is_new_best,
            next_level=next_level,
        )
        logger.info(
            "Level %s solved in %ss (best %ss%s)",
            level_id,
            elapsed,
            data.best_time,
            ", new best" if is_new_best else "",
        )

        self._pending_progress = progress
        self._progress_store.write(progress)
        self._pending_progress = None

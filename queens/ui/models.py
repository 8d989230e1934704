"""Data models used by the UI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from queens.core.levels import LevelCatalog, LevelDefinition
from queens.core.progress import GameProgress, default_progress


@dataclass
class LevelState:
    """UI state for a single level: unlock status, completion, best time and selection."""

    definition: LevelDefinition
    unlocked: bool
    completed: bool
    best_time: Optional[int] = None
    is_current: bool = False


def build_level_states(catalog: LevelCatalog, progress: Optional[GameProgress]) -> List[LevelState]:
    if progress is None:
        progress = default_progress(catalog.level_ids())
    states = []
    for definition in catalog.all():
        data = progress.levels.get(str(definition.level))
        states.append(
            LevelState(
                definition=definition,
                unlocked=bool(data and data.unlocked),
                completed=bool(data and data.completed),
                best_time=data.best_time if data else None,
                is_current=definition.level == progress.current_level,
            )
        )
    return states


def continue_level(progress: Optional[GameProgress]) -> int:
    """Level the "Continue" action resumes."""
    if progress is None:
        return 1
    return progress.current_level

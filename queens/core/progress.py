from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_DIR = Path.home() / ".queens"


class ProgressStoreError(OSError):
    """Reading or writing persisted progress failed."""


@dataclass
class LevelData:
    unlocked: bool = False
    completed: bool = False
    best_time: Optional[int] = None
    last_played_time: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unlocked": self.unlocked,
            "completed": self.completed,
            "bestTime": self.best_time,
            "lastPlayedTime": self.last_played_time,
        }

    @classmethod
    def from_dict(cls, value: Dict[str, Any]) -> "LevelData":
        return cls(
            unlocked=_flag(value, "unlocked"),
            completed=_flag(value, "completed"),
            best_time=_optional_int(value.get("bestTime")),
            last_played_time=_optional_int(value.get("lastPlayedTime")),
        )


@dataclass
class GameProgress:
    current_level: int = 1
    levels: Dict[str, LevelData] = field(default_factory=dict)

    def level(self, level_id: int) -> LevelData:
        """Entry for a level, created locked if the record has none."""
        return self.levels.setdefault(str(level_id), LevelData())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentLevel": self.current_level,
            "levels": {key: value.to_dict() for key, value in self.levels.items()},
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GameProgress":
        """Parse the persisted shape. Raises ValueError/TypeError on a malformed record."""
        if not isinstance(payload, dict):
            raise ValueError("progress record must be an object")
        levels = payload.get("levels", {})
        if not isinstance(levels, dict):
            raise ValueError("'levels' must be an object")
        parsed: Dict[str, LevelData] = {}
        for key, value in levels.items():
            if not isinstance(value, dict):
                raise ValueError(f"level {key!r} must be an object")
            parsed[str(key)] = LevelData.from_dict(value)
        return cls(current_level=int(payload.get("currentLevel", 1)), levels=parsed)


def _flag(value: Dict[str, Any], key: str) -> bool:
    flag = value.get(key, False)
    if not isinstance(flag, bool):
        raise ValueError(f"'{key}' must be true or false, got {flag!r}")
    return flag


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def default_progress(level_ids: Iterable[int]) -> GameProgress:
    """First-run record: level 1 unlocked, everything else locked."""
    levels = {str(level_id): LevelData(unlocked=level_id == 1) for level_id in level_ids}
    levels.setdefault("1", LevelData(unlocked=True))
    return GameProgress(current_level=1, levels=levels)


def has_player_progress(progress: Optional[GameProgress]) -> bool:
    """True once any level is completed or any level other than "1" is unlocked."""
    if progress is None:
        return False
    return any(
        data.completed or (data.unlocked and key != "1")
        for key, data in progress.levels.items()
    )


class ProgressStore:
    """Persists the whole progress record as one JSON document.

    File: ~/.queens/progress.json unless another base directory is given.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._file_path = (base_dir or DEFAULT_BASE_DIR) / "progress.json"

    @property
    def file_path(self) -> Path:
        return self._file_path

    def read(self) -> Optional[GameProgress]:
        """Stored record, or None when nothing usable is persisted.

        A corrupt record is treated as absent. I/O failures raise ProgressStoreError.
        """
        if not self._file_path.exists():
            return None
        try:
            text = self._file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ProgressStoreError(f"Could not read progress from {self._file_path}: {e}") from e
        try:
            return GameProgress.from_dict(json.loads(text))
        except (json.JSONDecodeError, ValueError, TypeError) as e:
            logger.warning("Ignoring corrupt progress in %s: %s", self._file_path, e)
            return None

    def write(self, progress: GameProgress) -> None:
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(progress.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            raise ProgressStoreError(f"Could not save progress to {self._file_path}: {e}") from e

    def clear(self) -> None:
        try:
            self._file_path.unlink(missing_ok=True)
        except OSError as e:
            raise ProgressStoreError(f"Could not clear progress at {self._file_path}: {e}") from e

    def new_game(self, level_ids: Iterable[int]) -> GameProgress:
        """Overwrite stored progress with the first-run record."""
        progress = default_progress(level_ids)
        self.write(progress)
        logger.info("Started a new game")
        return progress


class IntroFlagStore:
    """One-time flag recording that the level 1 walkthrough was seen."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._file_path = (base_dir or DEFAULT_BASE_DIR) / "walkthrough.json"

    def read_intro_seen(self) -> bool:
        if not self._file_path.exists():
            return False
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load walkthrough flag from %s: %s", self._file_path, e)
            return False
        return isinstance(payload, dict) and payload.get("walkthroughCompleted") is True

    def write_intro_seen(self) -> None:
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps({"walkthroughCompleted": True}), encoding="utf-8")
        except OSError as e:
            raise ProgressStoreError(f"Could not save walkthrough flag to {self._file_path}: {e}") from e

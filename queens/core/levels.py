from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from queens.core.board import Board, Position, RegionMap
from queens.core.engine import count_solutions, evaluate
from queens.core.rules import RegionRules

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class LevelNotFoundError(KeyError):
    """Raised when a level id is not part of the catalog."""


class PuzzleUnavailableError(LookupError):
    """Raised when a level exists but has no region puzzle to play."""


@dataclass(frozen=True)
class LevelDefinition:
    level: int
    board_size: int
    num_queens: int
    pre_placed_queens: int
    difficulty: str
    pre_placed_positions: Tuple[Position, ...] = ()


@dataclass(frozen=True)
class LevelPuzzle:
    level: int
    region_map: RegionMap
    region_colors: Tuple[str, ...]
    pre_placed_positions: Tuple[Position, ...]
    solution: Tuple[Position, ...]


class LevelCatalog:
    """Static level data: definitions from levels.yaml, region puzzles from regions/level*.yaml."""

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self._data_dir = data_dir or DATA_DIR
        self._levels = self._load_levels()
        self._puzzles = self._load_puzzles()

    def all(self) -> List[LevelDefinition]:
        return list(self._levels.values())

    def level_ids(self) -> List[int]:
        return list(self._levels.keys())

    def has_level(self, level_id: int) -> bool:
        return level_id in self._levels

    def get(self, level_id: int) -> LevelDefinition:
        try:
            return self._levels[level_id]
        except KeyError:
            raise LevelNotFoundError(level_id) from None

    def get_puzzle(self, level_id: int) -> Optional[LevelPuzzle]:
        """Region puzzle for a level, or None when the level has no board for that variant."""
        return self._puzzles.get(level_id)

    @property
    def max_level(self) -> int:
        return max(self._levels)

    def next_level(self, level_id: int) -> Optional[int]:
        later = [key for key in self._levels if key > level_id]
        return min(later) if later else None

    def _load_levels(self) -> Dict[int, LevelDefinition]:
        path = self._data_dir / "levels.yaml"
        if not path.exists():
            raise FileNotFoundError(f"Level definitions not found: {path}")
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not raw or not isinstance(raw, dict) or not isinstance(raw.get("levels"), list):
            raise ValueError(f"{path.name}: expected YAML with a 'levels' list")

        levels: Dict[int, LevelDefinition] = {}
        for entry in raw["levels"]:
            definition = _parse_definition(path.name, entry)
            if definition.level in levels:
                raise ValueError(f"{path.name}: duplicate level {definition.level}")
            levels[definition.level] = definition

        if not levels:
            raise ValueError(f"{path.name}: no levels defined")
        return dict(sorted(levels.items()))

    def _load_puzzles(self) -> Dict[int, LevelPuzzle]:
        base_dir = self._data_dir / "regions"
        puzzles: Dict[int, LevelPuzzle] = {}
        if not base_dir.exists():
            logger.warning("Region puzzles directory not found: %s", base_dir)
            return puzzles

        def _sort_key(p: Path) -> tuple[int, str]:
            m = re.match(r"^level(\d+)$", p.stem)
            if m:
                return (int(m.group(1)), p.stem)
            return (10**9, p.stem)

        for puzzle_path in sorted(base_dir.glob("level*.yaml"), key=_sort_key):
            raw = yaml.safe_load(puzzle_path.read_text(encoding="utf-8"))
            if not raw or not isinstance(raw, dict):
                raise ValueError(f"{puzzle_path.name}: expected YAML with 'level' and 'region_map'")
            puzzle = _parse_puzzle(puzzle_path.name, raw)
            definition = self._levels.get(puzzle.level)
            if definition is None:
                raise ValueError(f"{puzzle_path.name}: level {puzzle.level} has no definition")
            _check_puzzle(puzzle_path.name, puzzle, definition)
            puzzles[puzzle.level] = puzzle
        return puzzles


def _parse_positions(source: str, field: str, raw: object) -> Tuple[Position, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError(f"{source}: '{field}' must be a list of [row, col] pairs")
    positions = []
    for item in raw:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ValueError(f"{source}: invalid position {item!r} in '{field}'")
        positions.append(Position(int(item[0]), int(item[1])))
    return tuple(positions)


def _parse_definition(source: str, entry: object) -> LevelDefinition:
    if not isinstance(entry, dict):
        raise ValueError(f"{source}: level entries must be mappings")
    for field in ("level", "board_size", "difficulty"):
        if field not in entry:
            raise ValueError(f"{source}: level entry missing '{field}'")
    level = int(entry["level"])
    board_size = int(entry["board_size"])
    num_queens = int(entry.get("num_queens", board_size))
    pre_placed = _parse_positions(source, "pre_placed", entry.get("pre_placed"))
    pre_placed_queens = int(entry.get("pre_placed_queens", len(pre_placed)))
    if board_size <= 0:
        raise ValueError(f"{source}: level {level} has invalid board_size {board_size}")
    if num_queens != board_size:
        raise ValueError(f"{source}: level {level} needs num_queens equal to board_size")
    if len(pre_placed) != pre_placed_queens:
        raise ValueError(
            f"{source}: level {level} lists {len(pre_placed)} pre-placed queens, expected {pre_placed_queens}"
        )
    _check_bounds(source, level, board_size, pre_placed)
    return LevelDefinition(
        level=level,
        board_size=board_size,
        num_queens=num_queens,
        pre_placed_queens=pre_placed_queens,
        difficulty=str(entry["difficulty"]).strip(),
        pre_placed_positions=pre_placed,
    )


def _parse_puzzle(source: str, raw: dict) -> LevelPuzzle:
    for field in ("level", "region_map", "region_colors", "solution"):
        if field not in raw:
            raise ValueError(f"{source}: missing '{field}'")
    region_map = raw["region_map"]
    if not isinstance(region_map, list) or not all(isinstance(row, list) for row in region_map):
        raise ValueError(f"{source}: 'region_map' must be a list of rows")
    colors = raw["region_colors"]
    if not isinstance(colors, list) or not colors:
        raise ValueError(f"{source}: 'region_colors' must be a non-empty list")
    return LevelPuzzle(
        level=int(raw["level"]),
        region_map=tuple(tuple(int(cell) for cell in row) for row in region_map),
        region_colors=tuple(str(color) for color in colors),
        pre_placed_positions=_parse_positions(source, "pre_placed", raw.get("pre_placed")),
        solution=_parse_positions(source, "solution", raw["solution"]),
    )


def _check_bounds(source: str, level: int, size: int, positions: Tuple[Position, ...]) -> None:
    for pos in positions:
        if not (0 <= pos.row < size and 0 <= pos.col < size):
            raise ValueError(f"{source}: level {level} position ({pos.row}, {pos.col}) is off the board")


def _check_puzzle(source: str, puzzle: LevelPuzzle, definition: LevelDefinition) -> None:
    size = definition.board_size
    if len(puzzle.region_map) != size or any(len(row) != size for row in puzzle.region_map):
        raise ValueError(f"{source}: 'region_map' must be {size}x{size}")
    regions = {cell for row in puzzle.region_map for cell in row}
    if any(not 0 <= region < len(puzzle.region_colors) for region in regions):
        raise ValueError(f"{source}: region index outside region_colors")
    if len(regions) != size:
        raise ValueError(f"{source}: expected {size} regions, found {len(regions)}")
    if len(puzzle.pre_placed_positions) != definition.pre_placed_queens:
        raise ValueError(
            f"{source}: {len(puzzle.pre_placed_positions)} pre-placed queens, "
            f"expected {definition.pre_placed_queens}"
        )
    _check_bounds(source, puzzle.level, size, puzzle.solution)
    _check_bounds(source, puzzle.level, size, puzzle.pre_placed_positions)
    if not set(puzzle.pre_placed_positions) <= set(puzzle.solution):
        raise ValueError(f"{source}: pre-placed queens must be part of the solution")

    rules = RegionRules(puzzle.region_map)
    result = evaluate(Board.empty(size, puzzle.solution), rules, definition.num_queens)
    if not result.solved:
        raise ValueError(f"{source}: solution does not satisfy the region rules")
    if count_solutions(size, rules, puzzle.pre_placed_positions) != 1:
        raise ValueError(f"{source}: puzzle has more than one solution")

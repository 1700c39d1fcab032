"""LevelMate: a difficulty-tiered chess move picker on top of python-chess.

Modules:
- config: difficulty presets, evaluation weights and TOML loading
- core: position adapter, evaluator, move ordering, search, difficulty policy
- main: Engine wrapper owning a game and asking the search for moves
"""

from .config import CONFIG, DIFFICULTY_PROFILES, DifficultyProfile
from .core import BoardPosition, MoveRecord, SearchEngine
from .main import Engine

__all__ = ["CONFIG", "DIFFICULTY_PROFILES", "DifficultyProfile",
           "BoardPosition", "MoveRecord", "SearchEngine", "Engine"]

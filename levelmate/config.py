# levelmate/config.py
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple
import os
import tomllib

# Defaults (centipawns)
PIECE_VALUES = {
    "PAWN": 100,
    "KNIGHT": 320,
    "BISHOP": 330,
    "ROOK": 500,
    "QUEEN": 900,
    "KING": 20000,
}

MATE_SCORE = 100000
DEFAULT_DIFFICULTY = "moderate"


@dataclass(frozen=True)
class DifficultyProfile:
    """Search effort for one named tier.

    time_ms=None means no deadline. think_ms is the pacing range a host may
    wait before showing the move; the search itself never reads it.
    """
    name: str
    label: str
    depth: int
    node_limit: int
    randomness: float = 0.0
    time_ms: Optional[int] = None
    think_ms: Tuple[int, int] = (0, 0)


DIFFICULTY_PROFILES: Dict[str, DifficultyProfile] = {
    "beginner": DifficultyProfile("beginner", "Beginner", depth=2, node_limit=8000,
                                  randomness=0.35, time_ms=800, think_ms=(1200, 2200)),
    "moderate": DifficultyProfile("moderate", "Moderate", depth=3, node_limit=20000,
                                  randomness=0.05, time_ms=1500, think_ms=(1800, 2800)),
    "advanced": DifficultyProfile("advanced", "Advanced", depth=4, node_limit=60000,
                                  randomness=0.0, time_ms=3000, think_ms=(2400, 3800)),
}


@dataclass
class SearchConfig:
    default_difficulty: str = DEFAULT_DIFFICULTY
    difficulties: Dict[str, DifficultyProfile] = field(
        default_factory=lambda: dict(DIFFICULTY_PROFILES))


@dataclass
class EvalConfig:
    piece_values: Dict[str, int] = field(default_factory=lambda: PIECE_VALUES.copy())
    mobility_weight: int = 2
    mate_score: int = MATE_SCORE


@dataclass
class UIConfig:
    engine_name: str = "LevelMate"


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "levelmate.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        cfg.apply(raw)
        return cfg

    def apply(self, raw: dict) -> None:
        """Merge a parsed TOML document into this config. Unknown keys are ignored."""
        search = raw.get("search", {})
        if "default_difficulty" in search:
            self.search.default_difficulty = str(search["default_difficulty"])
        for name, values in search.get("difficulties", {}).items():
            base = self.search.difficulties.get(name) or DifficultyProfile(
                name, name.title(), depth=1, node_limit=1000)
            known = {k: v for k, v in values.items() if hasattr(base, k) and k != "name"}
            if "think_ms" in known:
                known["think_ms"] = tuple(known["think_ms"])
            self.search.difficulties[name] = replace(base, **known)

        ev = raw.get("eval", {})
        for k, v in ev.get("piece_values", {}).items():
            self.eval.piece_values[k.upper()] = int(v)
        for k, v in ev.items():
            if k != "piece_values" and hasattr(self.eval, k):
                setattr(self.eval, k, v)

        for k, v in raw.get("ui", {}).items():
            if hasattr(self.ui, k):
                setattr(self.ui, k, v)

        if "log_level" in raw:
            self.log_level = str(raw["log_level"]).upper()


# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("LEVELMATE_CONFIG_TOML", "levelmate.toml"))
# env overrides for quick debugging
if os.environ.get("LEVELMATE_DIFFICULTY"):
    CONFIG.search.default_difficulty = os.environ["LEVELMATE_DIFFICULTY"]
if os.environ.get("LEVELMATE_LOG_LEVEL"):
    CONFIG.log_level = os.environ["LEVELMATE_LOG_LEVEL"].upper()

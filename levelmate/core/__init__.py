"""Core engine components: position adapter, evaluator, move ordering, search and difficulty policy."""

from .position import BoardPosition, IllegalMoveError, MoveRecord
from .evaluator import Evaluator
from .difficulty import DifficultyPolicy
from .search import SearchBudget, SearchEngine, SearchResult

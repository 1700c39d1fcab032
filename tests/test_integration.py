"""
Integration test suite for the LevelMate engine.

Tests components working together end-to-end:
- Engine wrapper (move application, fallback on search failure, pacing)
- Engine vs engine games
- FastAPI REST API
- Terminal game loop
"""

import random

import chess
import pytest

from levelmate.config import DifficultyProfile
from levelmate.core.difficulty import DifficultyPolicy
from levelmate.core.position import BoardPosition, IllegalMoveError, MoveRecord
from levelmate.core.search import SearchEngine
from levelmate.main import Engine
from interface.cli import main, play

FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
MATE_IN_ONE_BLACK = "rnbqkbnr/pppp1ppp/8/4p3/6P1/5P2/PPPPP2P/RNBQKBNR b KQkq - 0 2"


def fast_policy():
    return DifficultyPolicy(profiles={
        "fast": DifficultyProfile("fast", "Fast", depth=2, node_limit=400, think_ms=(10, 20)),
        "slow": DifficultyProfile("slow", "Slow", depth=3, node_limit=2000, time_ms=500),
    }, default="fast")


def fast_engine(**kwargs):
    return Engine(search=SearchEngine(policy=fast_policy()), **kwargs)


class FailingSearch(SearchEngine):
    """Raises for the listed difficulties, searches normally otherwise."""

    def __init__(self, failing, **kwargs):
        super().__init__(**kwargs)
        self.failing = set(failing)
        self.calls = []

    def find_best_move(self, position, difficulty=None):
        self.calls.append(difficulty)
        if difficulty in self.failing:
            raise RuntimeError(f"search blew up at {difficulty}")
        return super().find_best_move(position, difficulty)


# ════════════════════════════════════════════════════════════════════════════
#  ENGINE WRAPPER
# ════════════════════════════════════════════════════════════════════════════


class TestEngineWrapper:
    def test_best_move_is_legal(self):
        engine = fast_engine()
        move = engine.get_best_move("fast")
        assert move.uci in {m.uci for m in engine.position.legal_moves()}
        assert engine.position.fen() == chess.STARTING_FEN

    def test_make_move_illegal_raises(self):
        engine = fast_engine()
        with pytest.raises(IllegalMoveError):
            engine.make_move("e2e5")
        assert engine.position.fen() == chess.STARTING_FEN

    def test_make_and_undo(self):
        engine = fast_engine()
        record = engine.make_move("e2e4")
        assert record.notation == "e4"
        engine.undo_move()
        assert engine.position.fen() == chess.STARTING_FEN

    def test_fallback_to_default_tier(self):
        search = FailingSearch({"slow"}, policy=fast_policy())
        engine = Engine(search=search)
        move = engine.get_best_move("slow")
        assert move is not None
        assert search.calls == ["slow", "fast"]

    def test_fallback_failure_returns_none(self):
        search = FailingSearch({"slow", "fast"}, policy=fast_policy())
        engine = Engine(search=search)
        assert engine.get_best_move("slow") is None
        assert search.calls == ["slow", "fast"]

    def test_default_tier_failure_not_retried(self):
        search = FailingSearch({"fast"}, policy=fast_policy())
        engine = Engine(search=search)
        assert engine.get_best_move("fast") is None
        assert search.calls == ["fast"]

    def test_unnamed_default_failure_not_retried(self):
        search = FailingSearch({None, "fast"}, policy=fast_policy())
        engine = Engine(search=search)
        assert engine.get_best_move(None) is None
        assert search.calls == [None]

    def test_mate_in_one_played(self):
        engine = fast_engine(fen=MATE_IN_ONE_BLACK)
        move = engine.play_engine_move("fast")
        assert move.uci == "d8h4"
        assert engine.is_game_over()
        assert engine.result() == "0-1"

    def test_decided_game_plays_nothing(self):
        engine = fast_engine(fen=FOOLS_MATE)
        assert engine.play_engine_move("fast") is None
        assert engine.position.fen() == FOOLS_MATE

    def test_think_delay_within_profile_range(self):
        engine = fast_engine(rng=random.Random(3))
        for _ in range(20):
            assert 0.01 <= engine.think_delay("fast") <= 0.02

    def test_think_delay_zero_without_range(self):
        assert fast_engine().think_delay("slow") == 0.0

    def test_pace_uses_injected_sleep(self):
        slept = []
        engine = fast_engine(sleep=slept.append)
        engine.play_engine_move("fast", pace=True)
        assert len(slept) == 1
        assert 0.01 <= slept[0] <= 0.02
        engine.play_engine_move("fast")
        assert len(slept) == 1


# ════════════════════════════════════════════════════════════════════════════
#  ENGINE VS ENGINE
# ════════════════════════════════════════════════════════════════════════════


class TestFullGame:
    def test_engine_vs_engine_plays_legal_moves(self):
        engine = fast_engine()
        plies = 0
        while not engine.is_game_over() and plies < 16:
            legal = {m.uci for m in engine.position.legal_moves()}
            move = engine.play_engine_move("fast")
            assert move is not None
            assert move.uci in legal, f"Illegal move {move.uci} at ply {plies}"
            plies += 1
        assert len(engine.position.history) == plies
        assert len(engine.position.board.move_stack) == plies

    def test_engine_converts_kqk(self):
        """With a queen up the engine keeps finding moves until the game ends or the cap."""
        engine = fast_engine(fen="4k3/8/8/8/8/8/8/3QK3 w - - 0 1")
        for _ in range(10):
            if engine.is_game_over():
                break
            assert engine.play_engine_move("fast") is not None
        board = engine.position.board
        assert board.is_valid()

    def test_alternating_tiers(self):
        engine = fast_engine()
        for tier in ("fast", "slow", "fast", "slow"):
            assert engine.play_engine_move(tier) is not None
        assert engine.position.turn() == chess.WHITE


# ════════════════════════════════════════════════════════════════════════════
#  FASTAPI REST API
# ════════════════════════════════════════════════════════════════════════════


class TestAPIIntegration:
    """Tests FastAPI REST API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self):
        from fastapi.testclient import TestClient
        from interface.api import app, position

        self.client = TestClient(app)
        # Reset state before each test
        position.reset()

    def test_get_board_initial(self):
        response = self.client.get("/board")
        assert response.status_code == 200
        data = response.json()
        assert data["fen"] == chess.STARTING_FEN
        assert data["turn"] == "white"
        assert data["is_game_over"] is False
        assert data["result"] is None
        assert len(data["legal_moves"]) == 20

    def test_post_move_valid(self):
        response = self.client.post("/move", json={"move": "e2e4"})
        assert response.status_code == 200
        data = response.json()
        assert data["move"] == "e2e4"
        assert data["san"] == "e4"
        assert self.client.get("/board").json()["turn"] == "black"

    def test_post_move_illegal(self):
        response = self.client.post("/move", json={"move": "e2e5"})
        assert response.status_code == 400

    def test_post_move_invalid_format(self):
        response = self.client.post("/move", json={"move": "xyz"})
        assert response.status_code == 400

    def test_set_position_valid(self):
        response = self.client.post("/position", json={"fen": MATE_IN_ONE_BLACK})
        assert response.status_code == 200
        assert response.json()["fen"] == MATE_IN_ONE_BLACK

    def test_set_position_invalid(self):
        response = self.client.post("/position", json={"fen": "not a fen"})
        assert response.status_code == 400

    def test_difficulties_listed(self):
        data = self.client.get("/difficulties").json()
        names = [d["name"] for d in data["difficulties"]]
        assert names == ["beginner", "moderate", "advanced"]
        assert data["default"] == "moderate"

    def test_search_returns_legal_move(self):
        response = self.client.post("/search", json={"difficulty": "beginner"})
        assert response.status_code == 200
        data = response.json()
        legal = {m.uci() for m in chess.Board().legal_moves}
        assert data["best_move"] in legal
        assert data["difficulty"] == "beginner"
        assert data["fen"] == chess.STARTING_FEN
        assert self.client.get("/board").json()["fen"] == chess.STARTING_FEN

    def test_search_finds_mate_in_one(self):
        self.client.post("/position", json={"fen": MATE_IN_ONE_BLACK})
        data = self.client.post("/search", json={"difficulty": "beginner"}).json()
        assert data["best_move"] == "d8h4"
        assert data["san"] == "Qh4#"

    def test_search_game_over_returns_400(self):
        self.client.post("/position", json={"fen": FOOLS_MATE})
        response = self.client.post("/search", json={})
        assert response.status_code == 400

    def test_search_and_play(self):
        response = self.client.post("/search", json={"difficulty": "beginner", "play": True})
        assert response.status_code == 200
        board = self.client.get("/board").json()
        assert board["turn"] == "black"
        assert board["fen"] == response.json()["fen"]

    def test_play_refused_when_position_changes_during_search(self, monkeypatch):
        from interface import api

        original = api.engine.search_best_move

        def search_then_human_moves(pos, difficulty=None):
            result = original(pos, difficulty)
            api.position.apply("e2e4")
            return result

        monkeypatch.setattr(api.engine, "search_best_move", search_then_human_moves)
        response = self.client.post("/search", json={"difficulty": "beginner", "play": True})
        assert response.status_code == 409
        assert [m.uci for m in api.position.history] == ["e2e4"]
        assert self.client.get("/board").json()["turn"] == "black"

    def test_play_reports_rejected_engine_move(self, monkeypatch):
        from interface import api

        bogus = MoveRecord("e2", "e5", chess.PAWN, chess.WHITE, notation="e5")
        monkeypatch.setattr(api.engine, "select", lambda result, difficulty=None: bogus)
        response = self.client.post("/search", json={"difficulty": "beginner", "play": True})
        assert response.status_code == 409
        assert api.position.history == []
        assert api.position.fen() == chess.STARTING_FEN

    def test_reset_board(self):
        self.client.post("/move", json={"move": "d2d4"})
        response = self.client.post("/reset")
        assert response.json()["fen"] == chess.STARTING_FEN

    def test_full_api_game_flow(self):
        for move in ("f2f3", "e7e5", "g2g4"):
            assert self.client.post("/move", json={"move": move}).status_code == 200
        data = self.client.post("/search", json={"difficulty": "advanced", "play": True}).json()
        assert data["best_move"] == "d8h4"
        board = self.client.get("/board").json()
        assert board["is_game_over"] is True
        assert board["result"] == "0-1"


# ════════════════════════════════════════════════════════════════════════════
#  TERMINAL GAME
# ════════════════════════════════════════════════════════════════════════════


def scripted(*lines):
    feed = iter(lines)
    return lambda prompt="": next(feed)


class TestCLI:
    def test_human_move_then_engine_reply(self):
        out = []
        engine = fast_engine()
        result = play(engine, "fast", read=scripted("e2e4", "quit"), write=out.append)
        assert result is None
        assert any(line.startswith("Engine plays: ") for line in out)
        assert len(engine.position.history) == 2

    def test_illegal_input_reprompts(self):
        out = []
        engine = fast_engine()
        play(engine, "fast", read=scripted("e2e5", "quit"), write=out.append)
        assert "Illegal move, try again." in out
        assert engine.position.fen() == chess.STARTING_FEN

    def test_undo_takes_back_both_moves(self):
        engine = fast_engine()
        play(engine, "fast", read=scripted("e2e4", "undo", "quit"), write=lambda s: None)
        assert engine.position.fen() == chess.STARTING_FEN

    def test_eof_ends_game(self):
        def closed(prompt=""):
            raise EOFError

        assert play(fast_engine(), "fast", read=closed, write=lambda s: None) is None

    def test_engine_moves_first_for_black_human(self):
        out = []
        engine = fast_engine()
        play(engine, "fast", human_color=chess.BLACK, read=scripted("quit"), write=out.append)
        assert engine.position.turn() == chess.BLACK
        assert any(line.startswith("Engine plays: ") for line in out)

    def test_finished_game_reports_result(self):
        out = []
        engine = fast_engine(fen=MATE_IN_ONE_BLACK)
        result = play(engine, "fast", read=scripted("quit"), write=out.append)
        assert result == "0-1"
        assert out[-2:] == ["Game Over", "Result: 0-1"]

    def test_main_rejects_bad_fen(self):
        assert main(["--fen", "bad fen"]) == 2

    def test_main_on_finished_game(self, capsys):
        assert main(["--fen", FOOLS_MATE]) == 0
        assert "Result: 0-1" in capsys.readouterr().out

    def test_board_text(self):
        assert str(BoardPosition()).splitlines()[0].split() == list("rnbqkbnr")

"""FastAPI REST interface for the engine."""

import threading

import chess
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

from levelmate.config import CONFIG
from levelmate.core.position import BoardPosition
from levelmate.core.search import SearchEngine

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

# Shared game state; searches run on a copy.
engine = SearchEngine()
position = BoardPosition()
_position_lock = threading.Lock()


class FenRequest(BaseModel):
    fen: str


class MoveRequest(BaseModel):
    move: str  # UCI format e.g. "e2e4"


class SearchRequest(BaseModel):
    difficulty: Optional[str] = None
    play: bool = False


def _status():
    board = position.board
    return {
        "fen": position.fen(),
        "turn": "white" if board.turn == chess.WHITE else "black",
        "legal_moves": [m.uci for m in position.legal_moves()],
        "is_game_over": position.is_game_over(),
        "result": board.result(claim_draw=True) if position.is_game_over() else None,
    }


@app.get("/board")
def get_board():
    with _position_lock:
        return _status()


@app.get("/difficulties")
def get_difficulties():
    return {
        "default": engine.policy.default,
        "difficulties": [
            {
                "name": p.name,
                "label": p.label,
                "depth": p.depth,
                "node_limit": p.node_limit,
                "randomness": p.randomness,
                "time_ms": p.time_ms,
            }
            for p in engine.policy.profiles.values()
        ],
    }


@app.post("/position")
def set_position(req: FenRequest):
    with _position_lock:
        try:
            position.set_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid FEN: {e}")
        return {"fen": position.fen()}


@app.post("/move")
def make_move(req: MoveRequest):
    with _position_lock:
        record = position.apply(req.move)
        if record is None:
            raise HTTPException(status_code=400, detail=f"Illegal move: {req.move}")
        return {"fen": position.fen(), "move": record.uci, "san": record.notation}


@app.post("/search")
def search_move(req: SearchRequest = SearchRequest()):
    with _position_lock:
        if position.is_game_over():
            raise HTTPException(status_code=400, detail="Game is already over")
        search_position = position.copy()
        searched = (position.fen(), len(position.board.move_stack))

    profile = engine.policy.profile(req.difficulty)
    result = engine.search_best_move(search_position, profile)
    chosen = engine.select(result, profile)

    response = {
        "best_move": chosen.uci if chosen else None,
        "san": chosen.notation if chosen else None,
        "score": result.score,
        "depth": result.depth,
        "nodes": result.nodes,
        "difficulty": profile.name,
        "fen": search_position.fen(),
    }
    if req.play and chosen is not None:
        with _position_lock:
            if (position.fen(), len(position.board.move_stack)) != searched:
                raise HTTPException(status_code=409, detail="Position changed during search")
            if position.apply(chosen) is None:
                raise HTTPException(status_code=409, detail=f"Engine move rejected: {chosen.uci}")
            response["fen"] = position.fen()
    return response


@app.post("/reset")
def reset_board():
    with _position_lock:
        position.reset()
        return {"fen": position.fen()}

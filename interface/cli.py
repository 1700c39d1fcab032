"""Terminal game: a human against the engine."""

import argparse
import logging
import sys

import chess

from levelmate.config import CONFIG
from levelmate.core.position import IllegalMoveError
from levelmate.main import Engine


def play(engine: Engine, difficulty=None, human_color=chess.WHITE,
         read=input, write=print, pace=False):
    """Run the game loop until it ends or the human quits. Returns the result string or None."""
    while not engine.is_game_over():
        write(str(engine.position))
        write("----------------------------")

        if engine.position.turn() == human_color:
            try:
                command = read("Enter your move (uci format, e2e4): ").strip()
            except EOFError:
                return None
            if command in ("quit", "exit"):
                return None
            if command == "undo":
                # take back the engine reply and our own move
                engine.undo_move()
                engine.undo_move()
                continue
            try:
                engine.make_move(command)
            except IllegalMoveError:
                write("Illegal move, try again.")
        else:
            move = engine.play_engine_move(difficulty, pace=pace)
            if move is None:
                break
            write(f"Engine plays: {move.notation}")

    result = engine.result()
    write("Game Over")
    write(f"Result: {result}")
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(prog="levelmate", description="Play chess against LevelMate.")
    parser.add_argument("--difficulty", default=CONFIG.search.default_difficulty,
                        help="difficulty tier: " + ", ".join(CONFIG.search.difficulties))
    parser.add_argument("--color", choices=("white", "black"), default="white",
                        help="the side you play")
    parser.add_argument("--fen", default=None, help="start from this position")
    parser.add_argument("--pace", action="store_true", help="pause like a human before engine moves")
    args = parser.parse_args(argv)

    logging.basicConfig(level=CONFIG.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        engine = Engine(fen=args.fen)
    except ValueError as e:
        print(f"Invalid FEN: {e}", file=sys.stderr)
        return 2

    human = chess.WHITE if args.color == "white" else chess.BLACK
    play(engine, args.difficulty, human_color=human, pace=args.pace)
    return 0


if __name__ == "__main__":
    sys.exit(main())

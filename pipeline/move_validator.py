#!/usr/bin/env python3
"""
SAN Replay Validation

Replays a converted repertoire tree with python-chess from the starting
position and flags moves that are illegal, ambiguous, played by the wrong
side, or that land on a position other than the stored destination key.
Repertoires keyed by opaque identifiers cannot be replayed and are skipped.

Usage:
  python move_validator.py --input repertoire.json
"""

import argparse
import sys
from pathlib import Path

import chess
import chess.pgn

sys.path.insert(0, str(Path(__file__).resolve().parent))
from converter import convert_repertoire
from errors import RepertoireError
from fen_keys import canonicalize_fen, is_opaque_key, parse_board
from models import ConversionResult, MoveIssue, Repertoire, TreeNode
from pgn_export import RESULT, generate_pgn_headers, pgn_date
from store import load_repertoire

SAN_ERRORS = (chess.InvalidMoveError, chess.IllegalMoveError, chess.AmbiguousMoveError)


def _replay(root: TreeNode, board: chess.Board, issues: list[MoveIssue]) -> None:
    # Boards are copied per move, so siblings share their parent's board untouched.
    stack = [(child, board, []) for child in reversed(root.children)]
    while stack:
        node, board, path = stack.pop()
        expected_color = "white" if board.turn == chess.WHITE else "black"
        if node.move.color != expected_color:
            issues.append(MoveIssue(path, node.san, f"{node.move.color} move but {expected_color} to move"))
            continue
        try:
            move = board.parse_san(node.san)
        except SAN_ERRORS as e:
            issues.append(MoveIssue(path, node.san, str(e) or type(e).__name__))
            continue

        after = board.copy(stack=False)
        after.push(move)
        if not is_opaque_key(node.position_key):
            with_ep = len(node.position_key.split()) > 3
            reached = canonicalize_fen(after.fen(), include_en_passant=with_ep)
            if reached != node.position_key:
                issues.append(MoveIssue(path, node.san, f"reaches {reached!r}, stored as {node.position_key!r}"))
        line = path + [node.san]
        stack.extend((child, after, line) for child in reversed(node.children))


def validate_tree(root: TreeNode, starting_fen: str) -> list[MoveIssue]:
    """Return every move of the tree that does not replay cleanly."""
    if is_opaque_key(starting_fen.strip()):
        return []
    issues: list[MoveIssue] = []
    _replay(root, parse_board(starting_fen), issues)
    return issues


def _add_game_nodes(game: chess.pgn.Game, board: chess.Board, root: TreeNode) -> None:
    """Add moves and variations to a chess.pgn game, first child as mainline."""
    stack = [(game, board, root)]
    while stack:
        pgn_node, board, node = stack.pop()
        for i, child in enumerate(node.children):
            try:
                move = board.parse_san(child.san)
            except SAN_ERRORS:
                continue

            if i == 0:
                next_node = pgn_node.add_main_variation(move)
            else:
                next_node = pgn_node.add_variation(move)

            after = board.copy(stack=False)
            after.push(move)
            stack.append((next_node, after, child))


def build_game(result: ConversionResult, repertoire: Repertoire, date: str | None = None) -> chess.pgn.Game:
    """
    Build a python-chess Game equivalent to the exported PGN.

    Needs a real starting FEN; moves that do not parse are left out.
    """
    board = parse_board(repertoire.starting_fen)
    game = chess.pgn.Game.from_board(board)
    for name, value in generate_pgn_headers(repertoire, date or pgn_date(), result.position_count):
        game.headers[name] = value
    game.headers["Result"] = RESULT
    _add_game_nodes(game, board, result.root)
    return game


def main():
    parser = argparse.ArgumentParser(description="Replay a repertoire with python-chess")
    parser.add_argument("--input", "-i", required=True, help="Repertoire JSON file")
    args = parser.parse_args()

    try:
        repertoire = load_repertoire(args.input)
        result = convert_repertoire(repertoire)
        issues = validate_tree(result.root, repertoire.starting_fen)
    except (OSError, RepertoireError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Checked {result.position_count} positions, {len(issues)} issue(s).")
    for issue in issues:
        line = " ".join(issue.path) or "(start)"
        print(f"  {line} -> {issue.san}: {issue.reason}", file=sys.stderr)
    if issues:
        sys.exit(1)


if __name__ == "__main__":
    main()

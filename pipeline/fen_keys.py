"""
Position keys

Positions are compared by a canonical key built from the FEN: piece
placement, side to move and castling rights. Move counters never take part,
so a position reached at different ply counts (a transposition) maps to one
key. En passant rights are dropped unless asked for.

Keys without whitespace are opaque store identifiers and pass through
unchanged.
"""

import chess

from errors import MalformedFenError
from settings import key_includes_en_passant


def is_opaque_key(key: str) -> bool:
    """True for identifiers that are not FEN strings."""
    return not any(ch.isspace() for ch in key)


def parse_board(fen: str) -> chess.Board:
    """Build a board from a (possibly partial) FEN, raising MalformedFenError."""
    try:
        return chess.Board(fen)
    except ValueError as e:
        raise MalformedFenError(fen, str(e)) from e


def canonicalize_fen(fen: str | None, include_en_passant: bool | None = None) -> str:
    """Return the canonical position key for a FEN or opaque identifier."""
    if fen is None or not fen.strip():
        raise MalformedFenError(fen or "", "empty position key")
    fen = fen.strip()
    if is_opaque_key(fen):
        return fen
    if include_en_passant is None:
        include_en_passant = key_includes_en_passant()

    board = parse_board(fen)
    fields = board.fen(en_passant="fen").split()
    return " ".join(fields[:4] if include_en_passant else fields[:3])


def starting_move_state(fen: str) -> tuple[int, bool]:
    """(full-move number, white to move) at the starting position."""
    if is_opaque_key(fen.strip()):
        return 1, True
    board = parse_board(fen)
    return board.fullmove_number, board.turn == chess.WHITE

"""Tests for fen_keys.py"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from errors import MalformedFenError
from fen_keys import canonicalize_fen, is_opaque_key, starting_move_state

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_move_counters_are_stripped():
    assert canonicalize_fen(START_FEN) == "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq"


def test_same_position_at_different_ply_counts_shares_a_key():
    later = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 4 3"
    assert canonicalize_fen(START_FEN) == canonicalize_fen(later)


def test_side_to_move_and_castling_take_part():
    black_to_move = START_FEN.replace(" w ", " b ")
    no_castling = START_FEN.replace("KQkq", "-")
    keys = {canonicalize_fen(START_FEN), canonicalize_fen(black_to_move), canonicalize_fen(no_castling)}
    assert len(keys) == 3


def test_en_passant_dropped_by_default():
    assert canonicalize_fen(AFTER_E4) == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq"


def test_en_passant_kept_on_request():
    key = canonicalize_fen(AFTER_E4, include_en_passant=True)
    assert key.split()[-1] == "e3"


def test_en_passant_setting_from_environment(monkeypatch):
    monkeypatch.setenv("REPERTOIRE_KEY_EN_PASSANT", "1")
    assert len(canonicalize_fen(AFTER_E4).split()) == 4


def test_already_canonical_key_is_stable():
    key = canonicalize_fen(START_FEN)
    assert canonicalize_fen(key) == key


def test_opaque_keys_pass_through():
    assert is_opaque_key("fen-after-d4")
    assert canonicalize_fen("fen-after-d4") == "fen-after-d4"


@pytest.mark.parametrize("fen", [
    "",
    "   ",
    None,
    "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq",
    "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq",
    "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1 extra",
])
def test_malformed_fen_raises(fen):
    with pytest.raises(MalformedFenError):
        canonicalize_fen(fen)


def test_malformed_fen_is_a_value_error():
    with pytest.raises(ValueError):
        canonicalize_fen("8/8/8 w")


def test_starting_move_state():
    assert starting_move_state(START_FEN) == (1, True)
    assert starting_move_state(AFTER_E4) == (1, False)
    assert starting_move_state("r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 3") == (3, True)
    assert starting_move_state("fen-start") == (1, True)

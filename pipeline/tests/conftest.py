"""Pytest configuration and shared repertoire factories."""

import os
import re
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from models import Move, Position, Repertoire

STANDARD_START = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq"

os.environ.setdefault("DATABASE_URL", "postgresql://localhost:5432/chess_repertoires?user=postgres&password=postgres")
for _name in ("REPERTOIRE_STRICT_REFERENCES", "REPERTOIRE_KEY_EN_PASSANT", "REPERTOIRE_EVENT", "REPERTOIRE_SITE",
              "REPERTOIRE_OPENINGS"):
    os.environ.pop(_name, None)


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: mark test as requiring a live database (skipped in CI by default)"
    )


def normalise_pgn(pgn: str) -> str:
    """Collapse whitespace runs so PGN documents compare by tokens."""
    return re.sub(r"\s+", " ", pgn).strip()


class RepertoireBuilder:
    """Small helper to lay out a position graph in discovery order."""

    def __init__(self, start: str = STANDARD_START, color: str = "white",
                 name: str = "Test Repertoire", repertoire_id: str = "test-id"):
        self.repertoire = Repertoire(id=repertoire_id, name=name, color=color, starting_fen=start)
        self.repertoire.positions[start] = Position(key=start)

    def add(self, key: str, san: str, destination: str, color: str = "white") -> "RepertoireBuilder":
        position = self.repertoire.positions.setdefault(key, Position(key=key))
        position.moves[san] = Move(
            san=san,
            color=color,
            destination=destination,
            is_planned=color == self.repertoire.color,
        )
        return self

    def position(self, key: str) -> "RepertoireBuilder":
        self.repertoire.positions.setdefault(key, Position(key=key))
        return self

    def build(self) -> Repertoire:
        return self.repertoire


def simple_repertoire() -> Repertoire:
    """1. e4 e5"""
    return (
        RepertoireBuilder()
        .add(STANDARD_START, "e4", "fen-after-e4")
        .add("fen-after-e4", "e5", "fen-after-e4-e5", "black")
        .build()
    )


def simple_transposition_builder() -> RepertoireBuilder:
    """1. d4 d5 2. e4 e5 and 1. d4 e5 2. e4 d5 reach one position."""
    return (
        RepertoireBuilder()
        .add(STANDARD_START, "d4", "fen-after-d4")
        .add("fen-after-d4", "d5", "fen-after-d4-d5", "black")
        .add("fen-after-d4", "e5", "fen-after-d4-e5", "black")
        .add("fen-after-d4-d5", "e4", "fen-after-d4-d5-e4")
        .add("fen-after-d4-e5", "e4", "fen-after-d4-e5-e4")
        .add("fen-after-d4-d5-e4", "e5", "fen-transposition", "black")
        .add("fen-after-d4-e5-e4", "d5", "fen-transposition", "black")
    )


def multiple_responses_repertoire() -> Repertoire:
    """The transposition above continued with 3. g3 Nc6 / 3... Nf6."""
    return (
        simple_transposition_builder()
        .add("fen-transposition", "g3", "fen-after-transposition-g3")
        .add("fen-after-transposition-g3", "Nc6", "fen-after-transposition-g3-Nc6", "black")
        .add("fen-after-transposition-g3", "Nf6", "fen-after-transposition-g3-Nf6", "black")
        .build()
    )


def multi_level_repertoire() -> Repertoire:
    """
    Main line:  1. a3 a6 2. Nc3 Nc6 3. h3 h6 4. Nf3 Nf6
    Alt line 1: 1. a3 h6 2. h3 Nf6 3. Nf3 Nc6 4. Nc3 a6 (transposes to the main line)
    Alt line 2: 1. a3 Nf6 2. h3 h6 (transposes to alt line 1)
    """
    builder = RepertoireBuilder(start="fen-start", name="Multi-level Transposition Repertoire")
    return (
        builder
        .add("fen-start", "a3", "fen-after-a3")
        .add("fen-after-a3", "a6", "fen-after-a3-a6", "black")
        .add("fen-after-a3", "h6", "fen-after-a3-h6", "black")
        .add("fen-after-a3", "Nf6", "fen-after-a3-nf6", "black")
        .add("fen-after-a3-a6", "Nc3", "fen-after-a3-a6-nc3")
        .add("fen-after-a3-h6", "h3", "fen-after-a3-h6-h3")
        .add("fen-after-a3-nf6", "h3", "fen-after-a3-nf6-h3")
        .add("fen-after-a3-a6-nc3", "Nc6", "fen-after-a3-a6-nc3-nc6", "black")
        .add("fen-after-a3-h6-h3", "Nf6", "fen-alt1-transposition", "black")
        .add("fen-after-a3-nf6-h3", "h6", "fen-alt1-transposition", "black")
        .add("fen-after-a3-a6-nc3-nc6", "h3", "fen-after-a3-a6-nc3-nc6-h3")
        .add("fen-alt1-transposition", "Nf3", "fen-after-a3-h6-h3-nf6-nf3")
        .add("fen-after-a3-a6-nc3-nc6-h3", "h6", "fen-after-a3-a6-nc3-nc6-h3-h6", "black")
        .add("fen-after-a3-h6-h3-nf6-nf3", "Nc6", "fen-after-a3-h6-h3-nf6-nf3-nc6", "black")
        .add("fen-after-a3-a6-nc3-nc6-h3-h6", "Nf3", "fen-after-a3-a6-nc3-nc6-h3-h6-nf3")
        .add("fen-after-a3-h6-h3-nf6-nf3-nc6", "Nc3", "fen-after-a3-h6-h3-nf6-nf3-nc6-nc3")
        .add("fen-after-a3-a6-nc3-nc6-h3-h6-nf3", "Nf6", "fen-main-transposition", "black")
        .add("fen-after-a3-h6-h3-nf6-nf3-nc6-nc3", "a6", "fen-main-transposition", "black")
        .position("fen-main-transposition")
        .build()
    )


@pytest.fixture
def builder():
    return RepertoireBuilder


KNIGHT_SHUFFLE = ("Nf3", "Nf6", "Ng1", "Ng8")


def chain_repertoire(plies: int, side_lines: bool = False) -> Repertoire:
    """
    One line of `plies` knight moves over opaque keys k0, k1, ...

    With `side_lines`, every position also gets a first-listed move into a
    frontier leaf, so the long line ends up nested one variation per ply.
    """
    builder = RepertoireBuilder(start="k0", name="Long Line")
    for i in range(plies):
        color = "white" if i % 2 == 0 else "black"
        if side_lines:
            builder.add(f"k{i}", f"a{i}", f"leaf{i}", color)
        builder.add(f"k{i}", KNIGHT_SHUFFLE[i % 4], f"k{i + 1}", color)
    return builder.build()

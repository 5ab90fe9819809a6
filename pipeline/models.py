"""Data models for the repertoire PGN export pipeline."""

from dataclasses import dataclass, field
from typing import Literal

Color = Literal["white", "black"]


@dataclass
class Move:
    """A move stored at one position of the repertoire."""

    san: str
    color: Color
    destination: str
    is_planned: bool = False
    from_square: str | None = None
    to_square: str | None = None


@dataclass
class Position:
    """A stored board state. `moves` keeps discovery order (SAN -> Move)."""

    key: str
    moves: dict[str, Move] = field(default_factory=dict)


@dataclass
class Repertoire:
    """Repertoire descriptor plus its position graph."""

    id: str
    name: str
    color: Color
    starting_fen: str
    positions: dict[str, Position] = field(default_factory=dict)


@dataclass
class TreeNode:
    """One node of the canonical move tree; the root carries no move."""

    move: Move | None = None
    position_key: str = ""
    children: list["TreeNode"] = field(default_factory=list)
    transposition: bool = False
    unfinished: bool = False
    shared: bool = False
    opening: str = ""

    @property
    def san(self) -> str:
        return self.move.san if self.move else ""

    @property
    def is_root(self) -> bool:
        return self.move is None


@dataclass
class Transposition:
    """A position reached through more than one move order."""

    key: str
    origin: TreeNode
    references: list[TreeNode] = field(default_factory=list)


@dataclass
class ConversionResult:
    root: TreeNode
    position_count: int = 1
    transpositions: dict[str, Transposition] = field(default_factory=dict)


@dataclass
class MoveIssue:
    """A move that does not replay cleanly from the starting position."""

    path: list[str]
    san: str
    reason: str

"""
Opening names

Names repertoire lines from an ECO table such as the lichess-org/chess-openings
TSV files (columns `eco`, `name`, `pgn`). A line takes the name of the longest
table entry that is a prefix of it; lines that match nothing keep the name of
their parent line.
"""

import csv
import re
from pathlib import Path

from errors import RepertoireFormatError


def parse_pgn_moves(pgn: str) -> list[str]:
    """
    Parse PGN move string (e.g. "1. e4 e5 2. Nf3 Nc6") into list of SAN moves.
    """
    moves = []
    for token in pgn.split():
        if token.startswith("{") or token.startswith("("):
            continue
        if re.match(r"^\d+\.+$", token):
            continue
        token = re.sub(r"^\d+\.+", "", token)
        if token and token not in ("1-0", "0-1", "1/2-1/2", "*"):
            moves.append(token)
    return moves


class OpeningBook:
    """Opening names indexed by SAN sequence."""

    def __init__(self, openings: dict[str, str] | None = None):
        self.names: dict[tuple[str, ...], str] = {}
        self.longest = 0
        for pgn, name in (openings or {}).items():
            self.add(pgn, name)

    def add(self, pgn: str, name: str) -> None:
        moves = tuple(parse_pgn_moves(pgn))
        if not moves or not name:
            return
        self.names.setdefault(moves, name)
        self.longest = max(self.longest, len(moves))

    def __len__(self) -> int:
        return len(self.names)

    def lookup(self, moves: tuple[str, ...]) -> str | None:
        return self.names.get(moves)

    def find(self, moves: list[str] | tuple[str, ...]) -> str | None:
        """Name of the longest known prefix of `moves`, if any."""
        moves = tuple(moves[:self.longest])
        for end in range(len(moves), 0, -1):
            name = self.names.get(moves[:end])
            if name:
                return name
        return None


def load_openings(source: str | Path) -> dict[str, str]:
    """Read `pgn -> name` from one ECO TSV file or a directory of them."""
    source = Path(source)
    paths = sorted(source.glob("*.tsv")) if source.is_dir() else [source]
    if not paths:
        raise FileNotFoundError(f"No TSV files found in {source}")

    openings: dict[str, str] = {}
    for path in paths:
        with open(path, encoding="utf-8") as f:
            reader = csv.DictReader(f, delimiter="\t")
            if not reader.fieldnames or not {"name", "pgn"} <= set(reader.fieldnames):
                raise RepertoireFormatError(f"{path}: expected 'name' and 'pgn' columns")
            for row in reader:
                name = (row.get("name") or "").strip()
                pgn = (row.get("pgn") or "").strip()
                if name and pgn:
                    openings.setdefault(pgn, name)
    return openings

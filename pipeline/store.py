"""
Repertoire documents

Reads repertoires exported by the trainer's store as JSON. Two layouts are
accepted:

  store layout:      {"id", "title", "color": "w"|"b", "startingPosition",
                      "positions": [{"id", "moves": [{"san", "nextFen", "color", "from", "to"}]}]}
  descriptor layout: {"id", "name", "color": "white"|"black", "startingFen",
                      "positions": {key: {"moves": [{"san", "color", "isPlannedMove", "destinationKey"}]}}}

Move lists are ordered; their order is the discovery order the converter
relies on.
"""

import json
from pathlib import Path

from errors import RepertoireFormatError
from models import Color, Move, Position, Repertoire

_COLORS: dict[str, Color] = {"w": "white", "white": "white", "b": "black", "black": "black"}
_SHAPES = {dict: "an object", list: "a list", str: "a string"}


def _expect(value, kind: type, what: str):
    if not isinstance(value, kind):
        raise RepertoireFormatError(f"{what} must be {_SHAPES[kind]}, got {type(value).__name__}")
    return value


def parse_color(value) -> Color:
    color = _COLORS.get(str(value).strip().lower()) if value is not None else None
    if color is None:
        raise RepertoireFormatError(f"Unknown color {value!r}")
    return color


def _require(data: dict, *names: str):
    for name in names:
        if data.get(name) is not None:
            return data[name]
    raise RepertoireFormatError(f"Missing field {' / '.join(names)!r}")


def parse_move(data: dict, repertoire_color: Color) -> Move:
    """Build a Move; planned-ness defaults to 'played by the repertoire side'."""
    _expect(data, dict, "Move")
    san = _expect(_require(data, "san"), str, "Move 'san'")
    color = parse_color(_require(data, "color"))
    is_planned = data.get("isPlannedMove")
    if is_planned is None:
        is_planned = color == repertoire_color
    destination = data.get("destinationKey", data.get("nextFen")) or ""
    return Move(
        san=san,
        color=color,
        destination=_expect(destination, str, f"Destination of {san!r}"),
        is_planned=bool(is_planned),
        from_square=data.get("from"),
        to_square=data.get("to"),
    )


def parse_position(key: str, data: dict, repertoire_color: Color) -> Position:
    _expect(data, dict, f"Position {key!r}")
    position = Position(key=key)
    for move_data in _expect(data.get("moves") or [], list, f"Moves of position {key!r}"):
        move = parse_move(move_data, repertoire_color)
        position.moves[move.san] = move
    return position


def parse_repertoire(data: dict) -> Repertoire:
    """Build a Repertoire from either JSON layout."""
    _expect(data, dict, "Repertoire document")
    color = parse_color(_require(data, "color"))
    repertoire = Repertoire(
        id=str(_require(data, "id")),
        name=_expect(_require(data, "name", "title"), str, "Repertoire name"),
        color=color,
        starting_fen=_expect(_require(data, "startingFen", "startingPosition"), str, "Starting position"),
    )

    raw_positions = data.get("positions") or []
    if isinstance(raw_positions, dict):
        items = list(raw_positions.items())
    elif isinstance(raw_positions, list):
        items = []
        for entry in raw_positions:
            _expect(entry, dict, "Position entry")
            items.append((_expect(_require(entry, "id"), str, "Position id"), entry))
    else:
        raise RepertoireFormatError(
            f"'positions' must be an object or a list, got {type(raw_positions).__name__}"
        )
    for key, position_data in items:
        repertoire.positions[key] = parse_position(key, position_data, color)
    return repertoire


def load_repertoire(path: str | Path) -> Repertoire:
    """Read one repertoire JSON file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RepertoireFormatError(f"{path}: invalid JSON ({e})") from e
    return parse_repertoire(data)


def load_repertoires(directory: str | Path) -> dict[str, Repertoire]:
    """Index every *.json repertoire in a directory by id."""
    index = {}
    for path in sorted(Path(directory).glob("*.json")):
        repertoire = load_repertoire(path)
        index[repertoire.id] = repertoire
    return index

"""
PGN Serialization

Renders a canonical move tree as one PGN document: a header tag block,
move text with parenthesized variations, and the open-ended result `*`.

Move numbers follow standard full-move counting from the starting FEN. The
move number and side to move are threaded by value through the walk, so each
variation numbers itself from the point where it branches.
"""

import textwrap
from datetime import date as date_cls

from fen_keys import canonicalize_fen, starting_move_state
from models import Repertoire, TreeNode
from settings import pgn_event, pgn_site

RESULT = "*"
LINE_WIDTH = 80


def pgn_date(day: date_cls | None = None) -> str:
    """Format a date the way PGN Date tags expect (YYYY.MM.DD)."""
    return (day or date_cls.today()).strftime("%Y.%m.%d")


def escape_tag_value(value) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


def generate_pgn_headers(repertoire: Repertoire, date: str, position_count: int) -> list[tuple[str, str]]:
    """Header tag pairs in their fixed export order."""
    if repertoire.color == "white":
        white, black = "Repertoire Owner", "Opponent"
    else:
        white, black = "Opponent", "Repertoire Owner"
    return [
        ("Event", pgn_event()),
        ("Site", pgn_site()),
        ("Date", date),
        ("White", white),
        ("Black", black),
        ("RepertoireId", repertoire.id),
        ("RepertoireName", repertoire.name),
        ("RepertoireColor", repertoire.color.capitalize()),
        ("FEN", canonicalize_fen(repertoire.starting_fen)),
        ("SetUp", "1"),
        ("PositionCount", str(position_count)),
    ]


def format_headers(headers: list[tuple[str, str]]) -> str:
    return "\n".join(f'[{name} "{escape_tag_value(value)}"]' for name, value in headers)


def format_move(san: str, number: int, white: bool, show_number: bool) -> str:
    """`N. san` for White, `N... san` for Black opening a sequence, else `san`."""
    if white:
        return f"{number}. {san}"
    if show_number:
        return f"{number}... {san}"
    return san


def _advance(number: int, white: bool) -> tuple[int, bool]:
    if white:
        return number, False
    return number + 1, True


def generate_move_text(root: TreeNode, starting_fen: str) -> str:
    """Move text for the whole tree, terminated by the result marker."""
    number, white = starting_move_state(starting_fen)
    tokens: list[str] = []
    # Work items: ("line", node, ...) continues after `node`, ("variation",
    # node, ...) opens a parenthesis with node's move, ("close",) ends one.
    stack = [("line", root, number, white, True)]
    while stack:
        item = stack.pop()
        if item[0] == "close":
            tokens[-1] += ")"
            continue
        kind, node, number, white, show_number = item
        if kind == "variation":
            tokens.append("(" + format_move(node.san, number, white, True))
            stack.append(("line", node, *_advance(number, white), False))
            continue
        if not node.children:
            continue
        main, variations = node.children[0], node.children[1:]
        tokens.append(format_move(main.san, number, white, show_number))
        stack.append(("line", main, *_advance(number, white), bool(variations)))
        for variation in reversed(variations):
            stack.append(("close",))
            stack.append(("variation", variation, number, white, True))
    tokens.append(RESULT)
    return " ".join(tokens)


def export_repertoire_to_pgn(
    root: TreeNode,
    repertoire: Repertoire,
    position_count: int,
    date: str | None = None,
) -> str:
    """Render a full PGN document for a converted repertoire tree."""
    headers = generate_pgn_headers(repertoire, date or pgn_date(), position_count)
    move_text = textwrap.fill(
        generate_move_text(root, repertoire.starting_fen),
        width=LINE_WIDTH,
        break_long_words=False,
        break_on_hyphens=False,
    )
    return f"{format_headers(headers)}\n\n{move_text}"

"""
Repertoire-to-Tree Conversion

Walks a repertoire's position graph from the starting position and builds a
single canonical move tree. The same position can be reached through several
move orders; it is expanded only the first time it is reached, and every
later arrival becomes a childless transposition leaf. The visited-key set
bounds the walk, so graphs with cycles still yield a finite tree.

Discovery order decides everything: at each position the planned moves come
first, then the opponent replies, each in the order the store lists them.
The first move processed at a node is its mainline child.
"""

from typing import Iterator

from errors import DanglingReferenceError, MalformedFenError
from fen_keys import canonicalize_fen
from models import ConversionResult, Move, Position, Repertoire, Transposition, TreeNode
from openings import OpeningBook
from settings import strict_references


def build_position_index(
    repertoire: Repertoire, include_en_passant: bool | None = None
) -> dict[str, Position]:
    """
    Index the repertoire's positions by canonical key.

    Stored keys that canonicalize to the same key (same position, different
    move counters) are merged; moves keep their order of appearance.
    """
    index: dict[str, Position] = {}
    for raw_key, position in repertoire.positions.items():
        key = canonicalize_fen(position.key or raw_key, include_en_passant)
        merged = index.get(key)
        if merged is None:
            index[key] = Position(key=key, moves=dict(position.moves))
            continue
        for san, move in position.moves.items():
            merged.moves.setdefault(san, move)
    return index


def ordered_moves(position: Position) -> list[Move]:
    """Planned moves first, then replies; discovery order within each group."""
    return sorted(position.moves.values(), key=lambda m: not m.is_planned)


class _Walk:
    """State of one conversion: visited keys and the first node per key."""

    def __init__(self, repertoire: Repertoire, index: dict[str, Position], strict: bool,
                 include_en_passant: bool | None, book: OpeningBook | None = None):
        self.repertoire = repertoire
        self.index = index
        self.strict = strict
        self.include_en_passant = include_en_passant
        self.book = book if book else None
        self.expanded: dict[str, TreeNode] = {}
        self.result: ConversionResult | None = None

    def start(self, root_key: str) -> ConversionResult:
        root = TreeNode(position_key=root_key)
        self.result = ConversionResult(root=root, position_count=1)
        self.expanded[root_key] = root
        self.expand(root)
        return self.result

    def destination_key(self, move: Move) -> str:
        if not move.destination or not move.destination.strip():
            raise DanglingReferenceError(move.destination or "", move.san)
        try:
            return canonicalize_fen(move.destination, self.include_en_passant)
        except MalformedFenError as e:
            raise DanglingReferenceError(move.destination, move.san) from e

    def frame(self, node: TreeNode, path: tuple[str, ...] | None):
        return node, iter(ordered_moves(self.index[node.position_key])), path

    def expand(self, root: TreeNode) -> None:
        # Depth first on an explicit stack: a child's subtree is finished
        # before its next sibling is looked at, however long the line.
        root_path = () if self.book else None
        stack = [self.frame(root, root_path)] if root.position_key in self.index else []
        while stack:
            node, moves, path = stack[-1]
            move = next(moves, None)
            if move is None:
                stack.pop()
                self.finish(node)
                continue

            key = self.destination_key(move)
            child = TreeNode(move=move, position_key=key)
            node.children.append(child)
            child_path = self.name(child, node, path)

            if key in self.expanded:
                self.mark_transposition(key, child)
                continue

            self.expanded[key] = child
            if key in self.index:
                self.result.position_count += 1
                stack.append(self.frame(child, child_path))
            elif self.strict:
                raise DanglingReferenceError(key, move.san)
            else:
                self.finish(child)

    def name(self, child: TreeNode, parent: TreeNode, path: tuple[str, ...] | None):
        """Label `child` with its opening; returns its move path while names can still change."""
        if self.book is None:
            return None
        child.opening = parent.opening
        if path is None or len(path) >= self.book.longest:
            return None
        child_path = path + (child.san,)
        child.opening = self.book.lookup(child_path) or parent.opening
        return child_path

    def finish(self, node: TreeNode) -> None:
        if node.move and not node.children and node.move.color != self.repertoire.color:
            node.unfinished = True

    def mark_transposition(self, key: str, leaf: TreeNode) -> None:
        leaf.transposition = True
        marker = self.result.transpositions.get(key)
        if marker is None:
            origin = self.expanded[key]
            origin.shared = True
            marker = Transposition(key=key, origin=origin)
            self.result.transpositions[key] = marker
        marker.references.append(leaf)


def convert_repertoire(
    repertoire: Repertoire,
    strict: bool | None = None,
    include_en_passant: bool | None = None,
    openings: dict[str, str] | OpeningBook | None = None,
) -> ConversionResult:
    """
    Convert a repertoire into its canonical move tree.

    Returns the tree root, the number of distinct stored positions visited
    and the transposition index. Raises MalformedFenError for a bad starting
    FEN (before any traversal) and DanglingReferenceError for moves without a
    usable destination. With `strict`, a destination missing from the
    repertoire is dangling too; otherwise it is a frontier leaf.

    `openings` maps PGN move text ("1. e4 c6 2. d4") to opening names; every
    node is then labelled with the name of its longest named prefix.
    """
    if strict is None:
        strict = strict_references()
    if openings is not None and not isinstance(openings, OpeningBook):
        openings = OpeningBook(openings)
    root_key = canonicalize_fen(repertoire.starting_fen, include_en_passant)
    index = build_position_index(repertoire, include_en_passant)
    return _Walk(repertoire, index, strict, include_en_passant, openings).start(root_key)


def iter_leaves(root: TreeNode) -> Iterator[tuple[TreeNode, list[str]]]:
    """Yield (leaf, SAN path) for every line, mainline first."""
    stack = [(root, [])]
    while stack:
        node, path = stack.pop()
        if not node.children:
            if path:
                yield node, path
            continue
        for child in reversed(node.children):
            stack.append((child, path + [child.san]))


def iter_lines(root: TreeNode) -> Iterator[list[str]]:
    """Yield every root-to-leaf line as a list of SAN moves, mainline first."""
    for _, path in iter_leaves(root):
        yield path


def iter_unfinished_lines(root: TreeNode) -> Iterator[list[str]]:
    """Yield lines ending on an opponent move the player has no reply to."""
    for node, path in iter_leaves(root):
        if node.unfinished:
            yield path

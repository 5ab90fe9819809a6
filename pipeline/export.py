#!/usr/bin/env python3
"""
Export CLI: write a repertoire as one PGN document

Reads a repertoire from a JSON file or from the repertoire database,
converts it to its canonical move tree and writes the PGN.

Usage:
  python export.py --input repertoire.json --output repertoire.pgn --date 2025.07.09
  python export.py --repertoire-id 3 --output ./pgn/ --validate
  python export.py --input repertoire.json --output -     # stdout
"""

import argparse
import re
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from converter import convert_repertoire, iter_unfinished_lines
from errors import RepertoireError, RepertoireNotFoundError
from models import ConversionResult, Repertoire
from pgn_export import export_repertoire_to_pgn
from store import load_repertoire


def export_repertoire(
    repertoire: Repertoire, date: str | None = None, strict: bool | None = None
) -> tuple[str, ConversionResult]:
    """Convert and serialize a repertoire. Returns (pgn, conversion result)."""
    result = convert_repertoire(repertoire, strict=strict)
    pgn = export_repertoire_to_pgn(result.root, repertoire, result.position_count, date)
    return pgn, result


def _safe_file_part(text: str) -> str:
    text = re.sub(r"[\\/:]", "-", text)
    text = re.sub(r"[\"?*<>|\x00-\x1f]", "", text).replace(" ", "_")
    return text.encode("ascii", "ignore").decode()


def pgn_filename(repertoire: Repertoire) -> str:
    """File name safe for file systems and Content-Disposition headers."""
    safe_id = _safe_file_part(str(repertoire.id))
    safe_name = _safe_file_part(repertoire.name)[:60]
    return f"{safe_id}_{safe_name or 'repertoire'}.pgn"


def write_pgn(pgn: str, output: str, repertoire: Repertoire) -> Path | None:
    """Write to a file, into a directory, or to stdout for "-"."""
    if output == "-":
        print(pgn)
        return None
    path = Path(output)
    if path.is_dir():
        path = path / pgn_filename(repertoire)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(pgn + "\n")
    return path


def read_repertoire(args) -> Repertoire:
    if args.input:
        return load_repertoire(args.input)

    from db import get_connection, get_repertoire

    with get_connection() as conn:
        repertoire = get_repertoire(conn, args.repertoire_id)
    if repertoire is None:
        raise RepertoireNotFoundError(args.repertoire_id)
    return repertoire


def main(argv=None):
    parser = argparse.ArgumentParser(description="Export a repertoire as PGN")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", "-i", help="Repertoire JSON file")
    source.add_argument("--repertoire-id", help="Repertoire id in the database")
    parser.add_argument("--output", "-o", default="-", help="PGN file, directory, or - for stdout")
    parser.add_argument("--date", default=None, help="PGN Date tag, e.g. 2025.07.09 (default: today)")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="Fail on moves into positions the repertoire does not hold")
    parser.add_argument("--validate", action="store_true", help="Replay every move with python-chess")
    args = parser.parse_args(argv)

    try:
        repertoire = read_repertoire(args)
        pgn, result = export_repertoire(repertoire, args.date, args.strict)
    except (OSError, RepertoireError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.validate:
        from move_validator import validate_tree

        issues = validate_tree(result.root, repertoire.starting_fen)
        for issue in issues:
            line = " ".join(issue.path) or "(start)"
            print(f"Warning: {line} -> {issue.san}: {issue.reason}", file=sys.stderr)
        if issues:
            print(f"Error: {len(issues)} move(s) failed validation, nothing written.", file=sys.stderr)
            sys.exit(1)

    path = write_pgn(pgn, args.output, repertoire)
    if path is None:
        return
    unfinished = sum(1 for _ in iter_unfinished_lines(result.root))
    print(f"Exported {result.position_count} positions, {len(result.transpositions)} transpositions to {path}")
    if unfinished:
        print(f"Warning: {unfinished} line(s) end on an opponent move without a reply.", file=sys.stderr)


if __name__ == "__main__":
    main()

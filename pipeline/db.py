"""
Database layer for the repertoire store.

Tables read here (owned by the trainer's store):
  repertoires          (repertoire_id, name, color, starting_fen)
  repertoire_positions (repertoire_id, fen, sort_order)
  repertoire_moves     (repertoire_id, fen, san, color, next_fen, is_planned, sort_order)

`sort_order` carries the discovery order of positions and moves.
"""

from contextlib import contextmanager

import psycopg

from models import Move, Position, Repertoire
from settings import get_database_url
from store import parse_color


def get_connection_string() -> str:
    """Get database connection string from environment."""
    return get_database_url()


@contextmanager
def get_connection():
    """Context manager for database connections."""
    conn = psycopg.connect(get_connection_string())
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def list_repertoires(conn: psycopg.Connection) -> list[tuple[str, str, str]]:
    """(repertoire_id, name, color) for every stored repertoire."""
    with conn.cursor() as cur:
        cur.execute("SELECT repertoire_id, name, color FROM repertoires ORDER BY name")
        return [(str(r[0]), r[1], parse_color(r[2])) for r in cur.fetchall()]


def get_repertoire(conn: psycopg.Connection, repertoire_id: str) -> Repertoire | None:
    """Load one repertoire with its ordered position graph."""
    with conn.cursor() as cur:
        cur.execute(
            "SELECT repertoire_id, name, color, starting_fen FROM repertoires WHERE repertoire_id = %s",
            (repertoire_id,),
        )
        row = cur.fetchone()
        if not row:
            return None
        repertoire = Repertoire(
            id=str(row[0]), name=row[1], color=parse_color(row[2]), starting_fen=row[3],
        )

        cur.execute(
            """
            SELECT p.fen, m.san, m.color, m.next_fen, m.is_planned
            FROM repertoire_positions p
            LEFT JOIN repertoire_moves m
                ON m.repertoire_id = p.repertoire_id AND m.fen = p.fen
            WHERE p.repertoire_id = %s
            ORDER BY p.sort_order, m.sort_order
            """,
            (repertoire_id,),
        )
        rows = cur.fetchall()

    for fen, san, color, next_fen, is_planned in rows:
        position = repertoire.positions.setdefault(fen, Position(key=fen))
        if san is None:
            continue
        move_color = parse_color(color)
        if is_planned is None:
            is_planned = move_color == repertoire.color
        position.moves[san] = Move(
            san=san, color=move_color, destination=next_fen or "", is_planned=bool(is_planned),
        )
    return repertoire

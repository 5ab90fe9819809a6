"""
FastAPI service for repertoire PGN export

Endpoints:
  POST /repertoire/pgn       - Export a repertoire document sent in the body
  GET  /repertoire/{id}/pgn  - Export a stored repertoire as a PGN download
  GET  /repertoire/{id}/lines - Lines of a stored repertoire, unfinished ones flagged
  GET  /health
"""

import sys
from functools import lru_cache
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from converter import convert_repertoire, iter_leaves, iter_unfinished_lines
from db import get_connection, get_repertoire
from errors import DanglingReferenceError, MalformedFenError, RepertoireFormatError
from export import export_repertoire, pgn_filename
from openings import OpeningBook, load_openings
from settings import openings_path
from store import parse_repertoire

app = FastAPI(title="Chess Repertoire Export API", version="1.0.0")

PGN_MEDIA_TYPE = "application/x-chess-pgn"


class ExportRequest(BaseModel):
    repertoire: dict
    date: str | None = None  # e.g. "2025.07.09"
    strict: bool | None = None


def _export_or_422(repertoire, date, strict):
    try:
        return export_repertoire(repertoire, date, strict)
    except DanglingReferenceError as e:
        raise HTTPException(status_code=422, detail={"error": "dangling_reference", "key": e.key, "san": e.san})
    except MalformedFenError as e:
        raise HTTPException(status_code=422, detail={"error": "malformed_fen", "fen": e.fen})


def _load_stored(repertoire_id: str):
    with get_connection() as conn:
        repertoire = get_repertoire(conn, repertoire_id)
    if repertoire is None:
        raise HTTPException(status_code=404, detail=f"Repertoire {repertoire_id} not found")
    return repertoire


def result_to_response(pgn: str, result) -> dict:
    return {
        "pgn": pgn,
        "position_count": result.position_count,
        "transpositions": sorted(result.transpositions),
        "unfinished_lines": [" ".join(line) for line in iter_unfinished_lines(result.root)],
    }


@app.post("/repertoire/pgn")
def export_document(body: ExportRequest):
    """Export a repertoire document (store or descriptor layout)."""
    try:
        repertoire = parse_repertoire(body.repertoire)
    except RepertoireFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    pgn, result = _export_or_422(repertoire, body.date, body.strict)
    return result_to_response(pgn, result)


@app.get("/repertoire/{repertoire_id}/pgn")
def export_stored(repertoire_id: str, date: str | None = Query(None), strict: bool | None = Query(None)):
    """Export a stored repertoire as a PGN file download."""
    repertoire = _load_stored(repertoire_id)
    pgn, _ = _export_or_422(repertoire, date, strict)
    return PlainTextResponse(
        pgn,
        media_type=PGN_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{pgn_filename(repertoire)}"'},
    )


@lru_cache(maxsize=4)
def _opening_book(path: str | None) -> OpeningBook | None:
    if path is None:
        return None
    return OpeningBook(load_openings(path))


@app.get("/repertoire/{repertoire_id}/lines")
def stored_lines(repertoire_id: str):
    """Every line of a stored repertoire, named when an ECO table is configured."""
    repertoire = _load_stored(repertoire_id)
    try:
        result = convert_repertoire(repertoire, openings=_opening_book(openings_path()))
    except (DanglingReferenceError, MalformedFenError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {
        "repertoire_id": repertoire.id,
        "position_count": result.position_count,
        "lines": [
            {"moves": line, "unfinished": leaf.unfinished, "opening": leaf.opening}
            for leaf, line in iter_leaves(result.root)
        ],
    }


@app.get("/health")
def health():
    return {"status": "ok"}

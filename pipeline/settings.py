"""Environment-driven settings for the export pipeline."""

import os

DEFAULT_DATABASE_URL = "postgresql://localhost:5432/chess_repertoires?user=postgres&password=postgres"
DEFAULT_EVENT = "Chess Repertoire"
DEFAULT_SITE = "Chess Repertoire Companion"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def get_database_url() -> str:
    """Get database connection string from environment."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


def strict_references() -> bool:
    """Treat moves into unstored positions as dangling references."""
    return env_flag("REPERTOIRE_STRICT_REFERENCES")


def key_includes_en_passant() -> bool:
    return env_flag("REPERTOIRE_KEY_EN_PASSANT")


def pgn_event() -> str:
    return os.environ.get("REPERTOIRE_EVENT", DEFAULT_EVENT)


def pgn_site() -> str:
    return os.environ.get("REPERTOIRE_SITE", DEFAULT_SITE)


def openings_path() -> str | None:
    """ECO TSV file or directory used to name repertoire lines, if any."""
    return os.environ.get("REPERTOIRE_OPENINGS") or None

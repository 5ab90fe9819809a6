"""Error kinds raised by the export pipeline."""


class RepertoireError(Exception):
    """Base class for every repertoire export error."""


class DanglingReferenceError(RepertoireError):
    """A move points at a position the repertoire does not hold."""

    def __init__(self, key: str, san: str):
        self.key = key
        self.san = san
        super().__init__(f"Move {san!r} points to unknown position {key!r}")


class MalformedFenError(RepertoireError, ValueError):
    """A FEN string cannot be canonicalized into a position key."""

    def __init__(self, fen: str, reason: str = ""):
        self.fen = fen
        message = f"Malformed FEN {fen!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RepertoireFormatError(RepertoireError, ValueError):
    """A repertoire document is missing fields or carries bad values."""


class RepertoireNotFoundError(RepertoireError):
    def __init__(self, repertoire_id: str):
        self.repertoire_id = repertoire_id
        super().__init__(f"Repertoire {repertoire_id!r} not found")

"""Custom exception hierarchy for crown."""


class CrownError(Exception):
    """Base exception for all crown errors."""


class ValidationError(CrownError):
    """Invalid data (bad POS, self-loop, malformed lemma)."""


class EntityNotFoundError(CrownError):
    """Entity doesn't exist in the database."""


class DuplicateEntityError(CrownError):
    """Entity with same ID already exists."""


class RelationError(CrownError):
    """Relation constraint violation (unknown type, missing target)."""


class DataImportError(CrownError):
    """Failed to import data (malformed JSON lines, unknown lexicon)."""


class ExportError(CrownError):
    """Failed to write lexicographer or exception files."""


class DatabaseError(CrownError):
    """Schema version mismatch, connection failure."""


class CompilerError(CrownError):
    """The database compiler found a fatal structural error."""


class InvariantError(CrownError):
    """The lexical database returned data inconsistent with its own index."""


class ConfigError(CrownError):
    """Error parsing a build configuration file."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        super().__init__(message)

class PersistenceError(Exception):
    """Base exception for timer snapshot storage."""


class PersistenceCorrupt(PersistenceError):
    """Raised when a stored snapshot cannot be decoded."""


class PersistenceWriteError(PersistenceError):
    """Raised when a snapshot cannot be written or removed."""

"""Persistence layer exceptions.

Every exception raised by the persistence package derives from
PersistenceError, so callers at a loop boundary can catch them together.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be initialized or reached.

    Examples:
    - Empty or malformed database URL
    - Database file not accessible
    - Session requested before init_database()
    """


class RecordNotFoundError(PersistenceError):
    """Raised when an update targets a record that does not exist.

    Lookups that may legitimately miss return None instead.
    """


class DataIntegrityError(PersistenceError):
    """Raised when a database constraint is violated."""

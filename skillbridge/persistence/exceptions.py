"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so services can
catch every database failure with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid database URL format
    - Database file not accessible
    - get_session() called before init_database()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an update or delete targets a row that does not exist.

    Plain lookups return None instead of raising this.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a database constraint is violated.

    Examples:
    - Email already registered (users.email unique)
    - Second submission to the same job (job_submissions job_id/user_id unique)
    - Duplicate category name
    """

    pass

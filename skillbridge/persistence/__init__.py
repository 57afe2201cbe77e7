"""Persistence layer for database operations using SQLAlchemy.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - get_session_factory() -> sessionmaker
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes (one per table family)
    - UserRepository, ProfileRepository, RoleRepository
    - CategoryRepository, JobRepository, SubmissionRepository
    - TransactionRepository, AuthSessionRepository, VerificationTokenRepository

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - RecordNotFoundError: Required record not found
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from skillbridge.persistence import init_database, get_session, JobRepository
    >>> init_database("sqlite:///./data/skillbridge.db")
    >>> with get_session() as session:
    ...     jobs = JobRepository(session).get_all(active_only=True)
"""

from .database import close_database, get_engine, get_session, get_session_factory, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import (
    AuthSessionRepository,
    CategoryRepository,
    JobRepository,
    ProfileRepository,
    RoleRepository,
    SubmissionRepository,
    TransactionRepository,
    UserRepository,
    VerificationTokenRepository,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "get_session_factory",
    "close_database",
    "get_engine",
    # Repositories
    "UserRepository",
    "ProfileRepository",
    "RoleRepository",
    "CategoryRepository",
    "JobRepository",
    "SubmissionRepository",
    "TransactionRepository",
    "AuthSessionRepository",
    "VerificationTokenRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]

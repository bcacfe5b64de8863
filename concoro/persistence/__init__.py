"""Persistence layer for database operations using SQLAlchemy.

This module provides the public API for database operations including:
- Database initialization and connection management
- Repository classes for saved items, concorsi, profiles, notifications
  and the email log
- Custom exceptions for error handling

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - SavedItemRepository: users' saved concorsi
    - ConcorsoRepository: concorsi lookup
    - UserProfileRepository: user profiles
    - NotificationRepository: deadline notifications (exists-then-insert)
    - EmailLogRepository: digest audit log used for the cooldown

Example usage:
    >>> from concoro.persistence import init_database, get_session, NotificationRepository
    >>>
    >>> init_database("sqlite:///./data/concoro.db")
    >>>
    >>> with get_session() as session:
    ...     repo = NotificationRepository(session)
    ...     repo.count_unread("user-1")
"""

# Database initialization and session management
from .database import close_database, get_engine, get_session, init_database

# Repository classes
from .repositories import (
    ConcorsoRepository,
    EmailLogRepository,
    NotificationRepository,
    SavedItemRepository,
    UserProfileRepository,
)

# Exceptions
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "SavedItemRepository",
    "ConcorsoRepository",
    "UserProfileRepository",
    "NotificationRepository",
    "EmailLogRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]

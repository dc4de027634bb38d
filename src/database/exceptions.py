"""Exceptions raised by the repositories."""

from typing import Optional


class DatabaseError(Exception):
    """Base exception for database errors."""


class DatabaseConnectionError(DatabaseError):
    """Engine could not be created or the database is unreachable."""


class DatabaseConstraintError(DatabaseError):
    """Unique or foreign key constraint violated by a write."""

    def __init__(self, message: str, fields: Optional[str] = None):
        super().__init__(message)
        self.fields = fields


class DatabaseOperationError(DatabaseError):
    """A write failed for a reason other than a constraint."""


class EntityNotFoundError(DatabaseError):
    """A row expected by a write no longer exists (or is soft-deleted)."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(DatabaseError):
    """Data rejected before it reached the database."""

"""
User repository.

Every read excludes soft-deleted users unless asked otherwise. Email
lookups are case-insensitive.
"""

import logging
from typing import Optional, List, Dict, Any, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError

from ..connection import get_database
from ..models import UserDB, RoleEnum
from ..exceptions import DatabaseConstraintError, DatabaseOperationError, EntityNotFoundError
from .common import paginate, order_clause
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


USER_SORT_COLUMNS = {
    "createdAt": UserDB.created_at,
    "firstName": UserDB.first_name,
    "lastName": UserDB.last_name,
    "email": UserDB.email,
}


class UserRepository:
    """Repository for user accounts."""

    def __init__(self):
        self.db = get_database()

    async def create(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: RoleEnum = RoleEnum.MEMBER,
    ) -> UserDB:
        """Create a user. The password must already be hashed."""
        async with self.db.session() as session:
            try:
                user = UserDB(
                    email=email.lower(),
                    password=password_hash,
                    first_name=first_name,
                    last_name=last_name,
                    role=role,
                )
                session.add(user)
                await session.flush()

                logger.info(f"Created user {user.id} ({role.value})")
                return user

            except IntegrityError as e:
                logger.error(f"Constraint violation creating user {email}: {e}")
                raise DatabaseConstraintError(f"Cannot create user {email}", fields="email")

            except Exception as e:
                logger.error(f"User creation failed for {email}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create user {email}: {e}")

    async def get_by_id(self, user_id: str, include_deleted: bool = False) -> Optional[UserDB]:
        async with self.db.session() as session:
            query = select(UserDB).where(UserDB.id == user_id)
            if not include_deleted:
                query = query.where(UserDB.deleted_at.is_(None))
            result = await session.execute(query)
            return result.scalar_one_or_none()

    async def get_by_email(self, email: str, exclude_id: Optional[str] = None) -> Optional[UserDB]:
        """Active user owning `email`, optionally ignoring one user id."""
        async with self.db.session() as session:
            query = select(UserDB).where(
                func.lower(UserDB.email) == email.lower(),
                UserDB.deleted_at.is_(None),
            )
            if exclude_id:
                query = query.where(UserDB.id != exclude_id)
            result = await session.execute(query.limit(1))
            return result.scalar_one_or_none()

    async def get_all(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[UserDB], int]:
        """One page of active users and the total count."""
        async with self.db.session() as session:
            query = (
                select(UserDB)
                .where(UserDB.deleted_at.is_(None))
                .order_by(order_clause(USER_SORT_COLUMNS, sort_by, sort_order, "createdAt"), UserDB.id)
            )
            return await paginate(session, query, page, limit)

    async def update(self, user_id: str, updates: Dict[str, Any]) -> UserDB:
        """Apply column updates to an active user."""
        if "email" in updates and updates["email"]:
            updates["email"] = updates["email"].lower()
        updates["updated_at"] = utc_now()

        async with self.db.session() as session:
            try:
                result = await session.execute(
                    update(UserDB)
                    .where(UserDB.id == user_id, UserDB.deleted_at.is_(None))
                    .values(**updates)
                )
                if result.rowcount == 0:
                    raise EntityNotFoundError("User", user_id)

                result = await session.execute(
                    select(UserDB)
                    .where(UserDB.id == user_id)
                    .execution_options(populate_existing=True)
                )
                user = result.scalar_one()
                logger.info(f"Updated user {user_id}: {sorted(k for k in updates if k != 'updated_at')}")
                return user

            except IntegrityError as e:
                logger.error(f"Constraint violation updating user {user_id}: {e}")
                raise DatabaseConstraintError(f"Cannot update user {user_id}", fields="email")

    async def soft_delete(self, user_id: str) -> bool:
        """Mark a user deleted. Returns False when no active user matched."""
        async with self.db.session() as session:
            now = utc_now()
            result = await session.execute(
                update(UserDB)
                .where(UserDB.id == user_id, UserDB.deleted_at.is_(None))
                .values(deleted_at=now, updated_at=now)
            )
            deleted = result.rowcount > 0
            if deleted:
                logger.info(f"Soft-deleted user {user_id}")
            return deleted

    async def count_active(self) -> int:
        async with self.db.session() as session:
            result = await session.execute(
                select(func.count(UserDB.id)).where(UserDB.deleted_at.is_(None))
            )
            return result.scalar_one()


# Singleton
_user_repository: Optional[UserRepository] = None


def get_user_repository() -> UserRepository:
    """Get the user repository singleton."""
    global _user_repository
    if _user_repository is None:
        _user_repository = UserRepository()
    return _user_repository

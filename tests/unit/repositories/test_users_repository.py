"""
Unit tests for UserRepository.

Session is mocked; these check what the repository sends to the database
and how it maps the results and failures.
"""

import pytest
from unittest.mock import AsyncMock, Mock
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from src.database.repositories.users import UserRepository
from src.database.models import UserDB, RoleEnum
from src.database.exceptions import (
    DatabaseConstraintError,
    DatabaseOperationError,
    EntityNotFoundError,
)


@pytest.fixture
def mock_database():
    """Mock database with session context manager."""
    db = Mock()
    session = AsyncMock()

    # Mock session context manager
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)

    # Mock session methods
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.add = Mock()

    db.session = Mock(return_value=session)

    return db, session


@pytest.fixture
def user_repository(mock_database):
    """Create UserRepository with mocked database."""
    db, session = mock_database
    repo = UserRepository()
    repo.db = db
    return repo, session


@pytest.fixture
def sample_user():
    return UserDB(
        id="3f9a8b7c-6d5e-4f3a-9b8c-7d6e5f4a3b2c",
        email="jane@example.com",
        password="$2b$04$hash",
        first_name="Jane",
        last_name="Smith",
        role=RoleEnum.MEMBER,
        created_at=datetime(2026, 1, 1),
        updated_at=datetime(2026, 1, 1),
    )


# ============================================================
# CREATE
# ============================================================

@pytest.mark.asyncio
async def test_create_user_lowercases_email(user_repository):
    repo, session = user_repository

    user = await repo.create(
        email="Jane@Example.COM",
        password_hash="$2b$04$hash",
        first_name="Jane",
        last_name="Smith",
    )

    session.add.assert_called_once()
    session.flush.assert_called_once()
    added = session.add.call_args[0][0]
    assert added is user
    assert added.email == "jane@example.com"
    assert added.role == RoleEnum.MEMBER
    assert added.password == "$2b$04$hash"


@pytest.mark.asyncio
async def test_create_user_with_role(user_repository):
    repo, session = user_repository

    user = await repo.create("a@example.com", "h", "A", "B", role=RoleEnum.ADMIN)

    assert user.role == RoleEnum.ADMIN


@pytest.mark.asyncio
async def test_create_user_constraint_violation(user_repository):
    repo, session = user_repository
    session.flush.side_effect = IntegrityError("INSERT", {}, Exception("unique"))

    with pytest.raises(DatabaseConstraintError) as exc:
        await repo.create("a@example.com", "h", "A", "B")
    assert exc.value.fields == "email"


@pytest.mark.asyncio
async def test_create_user_other_failure(user_repository):
    repo, session = user_repository
    session.flush.side_effect = Exception("disk full")

    with pytest.raises(DatabaseOperationError, match="Failed to create user"):
        await repo.create("a@example.com", "h", "A", "B")


# ============================================================
# READ
# ============================================================

@pytest.mark.asyncio
async def test_get_by_id_found(user_repository, sample_user):
    repo, session = user_repository
    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=sample_user)
    session.execute.return_value = mock_result

    result = await repo.get_by_id(sample_user.id)

    assert result is sample_user
    query = str(session.execute.call_args[0][0])
    assert "users.deleted_at IS NULL" in query


@pytest.mark.asyncio
async def test_get_by_id_including_deleted(user_repository):
    repo, session = user_repository
    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=None)
    session.execute.return_value = mock_result

    assert await repo.get_by_id("missing", include_deleted=True) is None
    query = str(session.execute.call_args[0][0])
    assert "deleted_at" not in query


@pytest.mark.asyncio
async def test_get_by_email_is_case_insensitive(user_repository, sample_user):
    repo, session = user_repository
    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=sample_user)
    session.execute.return_value = mock_result

    result = await repo.get_by_email("JANE@EXAMPLE.COM", exclude_id="other")

    assert result is sample_user
    statement = session.execute.call_args[0][0]
    compiled = statement.compile()
    assert "lower(users.email)" in str(compiled)
    assert "jane@example.com" in compiled.params.values()
    assert "other" in compiled.params.values()


@pytest.mark.asyncio
async def test_get_all_returns_page_and_total(user_repository, sample_user):
    repo, session = user_repository

    count_result = Mock()
    count_result.scalar_one = Mock(return_value=11)
    page_result = Mock()
    page_result.scalars.return_value.unique.return_value.all.return_value = [sample_user]
    session.execute.side_effect = [count_result, page_result]

    users, total = await repo.get_all(page=2, limit=10, sort_by="email", sort_order="asc")

    assert users == [sample_user]
    assert total == 11
    page_query = str(session.execute.call_args_list[1][0][0])
    assert "ORDER BY users.email ASC" in page_query


# ============================================================
# UPDATE / DELETE
# ============================================================

@pytest.mark.asyncio
async def test_update_user(user_repository, sample_user):
    repo, session = user_repository

    update_result = Mock(rowcount=1)
    select_result = Mock()
    select_result.scalar_one = Mock(return_value=sample_user)
    session.execute.side_effect = [update_result, select_result]

    updates = {"email": "New@Example.com"}
    result = await repo.update(sample_user.id, updates)

    assert result is sample_user
    assert updates["email"] == "new@example.com"
    assert "updated_at" in updates


@pytest.mark.asyncio
async def test_update_missing_user(user_repository):
    repo, session = user_repository
    session.execute.return_value = Mock(rowcount=0)

    with pytest.raises(EntityNotFoundError):
        await repo.update("missing", {"first_name": "X"})


@pytest.mark.asyncio
async def test_soft_delete(user_repository):
    repo, session = user_repository
    session.execute.return_value = Mock(rowcount=1)

    assert await repo.soft_delete("user-1") is True

    session.execute.return_value = Mock(rowcount=0)
    assert await repo.soft_delete("user-1") is False


@pytest.mark.asyncio
async def test_count_active(user_repository):
    repo, session = user_repository
    session.execute.return_value = Mock(scalar_one=Mock(return_value=4))

    assert await repo.count_active() == 4
    assert "users.deleted_at IS NULL" in str(session.execute.call_args[0][0])

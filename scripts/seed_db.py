"""
Seed a demo dataset.

Drops and recreates every table, then creates:
- 1 ADMIN, 2 MAINTAINERs, 3 MEMBERs
- 4 projects with their Kanban columns
- Project memberships
- Tasks spread across columns and assignees

Usage: python scripts/seed_db.py
"""
import asyncio
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.database import get_database, RoleEnum, ProjectStatusEnum
from src.database.repositories import (
    get_user_repository,
    get_project_repository,
    get_task_repository,
)
from src.utils.security import hash_password

logging.basicConfig(level=logging.WARNING)

USERS = [
    ("admin@pma.dev", "Admin123!", "Admin", "User", RoleEnum.ADMIN),
    ("alice@pma.dev", "Alice123!", "Alice", "Carter", RoleEnum.MAINTAINER),
    ("bob@pma.dev", "Bob12345!", "Bob", "Morgan", RoleEnum.MAINTAINER),
    ("carol@pma.dev", "Carol123!", "Carol", "Evans", RoleEnum.MEMBER),
    ("dave@pma.dev", "Dave1234!", "Dave", "Kim", RoleEnum.MEMBER),
    ("eve@pma.dev", "Eve12345!", "Eve", "Santos", RoleEnum.MEMBER),
]

STATUS_COLORS = {
    "BACKLOG": "#9CA3AF",
    "TODO": "#6B7280",
    "IN_PROGRESS": "#3B82F6",
    "CODE_REVIEW": "#F59E0B",
    "DONE": "#10B981",
    "DEPLOYED": "#8B5CF6",
}

# name, description, status, owner email, extra columns (name, position), member emails, tasks
PROJECTS = [
    (
        "E-Commerce Platform",
        "Full-stack e-commerce solution with payment integration and real-time order tracking.",
        ProjectStatusEnum.ACTIVE,
        "alice@pma.dev",
        [("DEPLOYED", None)],
        ["carol@pma.dev", "dave@pma.dev"],
        [
            ("Set up product catalogue schema", "DONE", "carol@pma.dev"),
            ("Integrate payment provider", "IN_PROGRESS", "dave@pma.dev"),
            ("Shopping cart persistence", "CODE_REVIEW", "carol@pma.dev"),
            ("Order tracking notifications", "TODO", None),
            ("Checkout flow", "DEPLOYED", "dave@pma.dev"),
        ],
    ),
    (
        "Mobile App Redesign",
        "Complete UX overhaul of the consumer-facing mobile application.",
        ProjectStatusEnum.ACTIVE,
        "alice@pma.dev",
        [],
        ["eve@pma.dev"],
        [
            ("User research interviews", "DONE", "eve@pma.dev"),
            ("New onboarding screens", "IN_PROGRESS", "eve@pma.dev"),
            ("Dark mode palette", "TODO", None),
        ],
    ),
    (
        "API Gateway Service",
        "Centralised gateway for routing, authentication and rate limiting across services.",
        ProjectStatusEnum.ACTIVE,
        "bob@pma.dev",
        [("BACKLOG", 0)],
        ["carol@pma.dev", "eve@pma.dev"],
        [
            ("JWT validation middleware", "DONE", "carol@pma.dev"),
            ("Per-client rate limits", "IN_PROGRESS", "eve@pma.dev"),
            ("Request tracing", "BACKLOG", None),
            ("Circuit breaker", "TODO", "carol@pma.dev"),
        ],
    ),
    (
        "Analytics Dashboard",
        "Business intelligence dashboard for tracking KPIs and revenue metrics.",
        ProjectStatusEnum.COMPLETED,
        "bob@pma.dev",
        [],
        ["dave@pma.dev"],
        [
            ("Revenue chart", "DONE", "dave@pma.dev"),
            ("Cohort retention table", "DONE", "dave@pma.dev"),
        ],
    ),
]


async def seed_db():
    """Reset the database and load the demo dataset."""
    db = get_database()
    if not await db.initialize():
        print("❌ DATABASE_URL is not configured")
        return

    await db.drop_all()
    await db.close()
    await db.initialize()
    print("  ✅ Cleared existing data")

    users = get_user_repository()
    projects = get_project_repository()
    tasks = get_task_repository()

    by_email = {}
    for email, password, first_name, last_name, role in USERS:
        by_email[email] = await users.create(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
    print(f"  ✅ Created {len(USERS)} users")

    for name, description, status, owner, extra_columns, members, project_tasks in PROJECTS:
        project = await projects.create(
            owner_id=by_email[owner].id,
            name=name,
            description=description,
            status=status,
        )

        for column, position in extra_columns:
            await tasks.create_status(project.id, name=column, order=position)

        columns = {}
        for column in await tasks.get_statuses(project.id):
            columns[column.name] = column
            await tasks.update_status(column.id, {"color": STATUS_COLORS.get(column.name)})

        for email in members:
            await projects.add_member(project.id, by_email[email].id)

        for title, column, assignee in project_tasks:
            await tasks.create(
                project.id,
                status_id=columns[column].id,
                title=title,
                assignee_id=by_email[assignee].id if assignee else None,
            )

        print(f"  ✅ {name}: {len(columns)} columns, {len(members)} members, {len(project_tasks)} tasks")

    print("\nLogin with any of:")
    for email, password, _, _, role in USERS:
        print(f"  - {email} / {password} ({role.value})")

    await db.close()
    print("\n✅ Seeding complete!")


if __name__ == "__main__":
    asyncio.run(seed_db())

"""Query helpers shared by the repositories."""

from typing import Any, Dict, List, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def paginate(
    session: AsyncSession,
    query: Select,
    page: int,
    limit: int,
) -> Tuple[List[Any], int]:
    """Run one page of `query` plus a count over the same WHERE clause."""
    count_query = select(func.count()).select_from(
        query.order_by(None).subquery()
    )
    total = (await session.execute(count_query)).scalar_one()

    result = await session.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().unique().all()), total


def contains_pattern(term: str) -> str:
    """LIKE pattern matching `term` literally anywhere (escape char is backslash)."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def order_clause(columns: Dict[str, Any], sort_by: str, sort_order: str, default: str):
    """Map an API sort key onto a column, falling back to `default`."""
    column = columns.get(sort_by, columns[default])
    return column.desc() if sort_order == "desc" else column.asc()

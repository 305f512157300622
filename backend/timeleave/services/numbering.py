"""Human-readable leave request numbers (``LEAVE/{year}/{n}``).

The sequence lives in ``leave_request_counter`` and is advanced with a single
upsert statement, so two concurrent submissions can never read the same
value. Counting existing rows would race.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import col

from timeleave.config import get_settings
from timeleave.models.counter import LeaveRequestCounter

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession


def format_request_number(year: int, sequence: int, prefix: str | None = None) -> str:
    """Render a request number such as ``LEAVE/2024/7``."""
    return f"{prefix or get_settings().leave_number_prefix}/{year}/{sequence}"


async def next_sequence(session: AsyncSession, company_id: uuid.UUID, year: int) -> int:
    """Atomically advance and return the (company, year) sequence."""
    dialect = session.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert

    stmt = (
        insert(LeaveRequestCounter)
        .values(company_id=company_id, year=year, last_value=1)
        .on_conflict_do_update(
            index_elements=["company_id", "year"],
            set_={"last_value": col(LeaveRequestCounter.last_value) + 1},
        )
        .returning(col(LeaveRequestCounter.last_value))
    )
    result = await session.execute(stmt)
    value: int = result.scalar_one()
    return value


async def next_request_number(session: AsyncSession, company_id: uuid.UUID, year: int) -> str:
    """Reserve the next request number for the company within ``year``."""
    return format_request_number(year, await next_sequence(session, company_id, year))

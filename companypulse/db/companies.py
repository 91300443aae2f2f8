"""Company lookups and registration."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

import aiosqlite

from companypulse.api.schemas import Company, CompanyCreate

COLUMNS = "id, name, slug, ashby_board_name, created_at"


def _row_to_company(row) -> Company:
    return Company(id=row[0], name=row[1], slug=row[2], ashby_board_name=row[3], created_at=row[4])


async def create_company(db: aiosqlite.Connection, data: CompanyCreate) -> Company:
    company = Company(
        id=str(uuid.uuid4()),
        created_at=datetime.now(timezone.utc).isoformat(),
        **data.model_dump(),
    )
    await db.execute(
        f"INSERT INTO companies ({COLUMNS}) VALUES (?, ?, ?, ?, ?)",
        (company.id, company.name, company.slug, company.ashby_board_name, company.created_at),
    )
    await db.commit()
    return company


async def get_company(db: aiosqlite.Connection, company_id: str) -> Optional[Company]:
    cursor = await db.execute(f"SELECT {COLUMNS} FROM companies WHERE id = ?", (company_id,))
    row = await cursor.fetchone()
    return _row_to_company(row) if row else None


async def list_companies(db: aiosqlite.Connection) -> List[Company]:
    cursor = await db.execute(f"SELECT {COLUMNS} FROM companies ORDER BY name")
    return [_row_to_company(row) for row in await cursor.fetchall()]

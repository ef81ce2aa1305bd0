from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mro_ops.repositories.base_repository import BaseRepository
from mro_ops.database.models import Employee


class EmployeeRepository(BaseRepository[Employee]):
    """Repository for employees."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Employee)

    async def get_by_e_number(self, e_number: int) -> Optional[Employee]:
        result = await self.session.execute(
            select(Employee).where(Employee.e_number == e_number)
        )
        return result.scalars().first()

    async def find_by_name(self, name: str) -> Optional[Employee]:
        """First employee whose name contains ``name`` (case-insensitive)."""
        return await self.find_first_ilike("name", f"%{name.strip()}%")

    async def list_all(self) -> List[Employee]:
        return await self.get_all(limit=None)

from datetime import date
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mro_ops.repositories.base_repository import BaseRepository
from mro_ops.database.models import AuthorizationType, EmployeeAuthorization


class AuthorizationTypeRepository(BaseRepository[AuthorizationType]):
    """Repository for the authorization type reference table."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AuthorizationType)

    async def find_by_name(self, name: str) -> Optional[AuthorizationType]:
        """First type whose name contains ``name`` (case-insensitive)."""
        return await self.find_first_ilike("name", f"%{name.strip()}%")


class EmployeeAuthorizationRepository(BaseRepository[EmployeeAuthorization]):
    """Repository for certificates held by employees."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, EmployeeAuthorization)

    async def find_active(
        self,
        employee_id: int,
        authorization_type_id: int,
        aircraft_model_id: int,
    ) -> Optional[EmployeeAuthorization]:
        """The active authorization for an employee, type and model, if any."""
        result = await self.session.execute(
            select(EmployeeAuthorization)
            .where(
                EmployeeAuthorization.employee_id == employee_id,
                EmployeeAuthorization.authorization_type_id == authorization_type_id,
                EmployeeAuthorization.aircraft_model_id == aircraft_model_id,
                EmployeeAuthorization.is_active.is_(True),
            )
            .order_by(EmployeeAuthorization.expiry_date.desc())
        )
        return result.scalars().first()

    def _expiring_filter(self, start: date, end: date):
        return (
            EmployeeAuthorization.expiry_date >= start,
            EmployeeAuthorization.expiry_date <= end,
        )

    async def count_expiring(self, start: date, end: date) -> int:
        """Authorizations expiring within ``[start, end]``, inactive ones included."""
        result = await self.session.execute(
            select(func.count())
            .select_from(EmployeeAuthorization)
            .where(*self._expiring_filter(start, end))
        )
        return result.scalar_one()

    async def list_expiring(self, start: date, end: date, limit: int = 5) -> List[EmployeeAuthorization]:
        """Soonest-expiring authorizations with employee and type loaded."""
        result = await self.session.execute(
            select(EmployeeAuthorization)
            .where(*self._expiring_filter(start, end))
            .options(
                selectinload(EmployeeAuthorization.employee),
                selectinload(EmployeeAuthorization.authorization_type),
                selectinload(EmployeeAuthorization.aircraft_model),
            )
            .order_by(EmployeeAuthorization.expiry_date)
            .limit(limit)
        )
        return list(result.scalars().all())

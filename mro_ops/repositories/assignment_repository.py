from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mro_ops.repositories.base_repository import BaseRepository
from mro_ops.database.models import EmployeeSupport, SupportCode


class SupportCodeRepository(BaseRepository[SupportCode]):
    """Repository for daily support codes."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, SupportCode)

    async def get_by_code(self, code: str) -> Optional[SupportCode]:
        """Find a support code ignoring case (``av`` matches ``AV``)."""
        return await self.find_first_ilike("support_code", code.strip())


class EmployeeSupportRepository(BaseRepository[EmployeeSupport]):
    """Repository for per-day employee assignments."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, EmployeeSupport)

    async def get_for_employee_on(self, employee_id: int, day: date) -> Optional[EmployeeSupport]:
        result = await self.session.execute(
            select(EmployeeSupport).where(
                EmployeeSupport.employee_id == employee_id,
                EmployeeSupport.assignment_date == day,
            )
        )
        return result.scalars().first()

    async def replace_assignment(
        self,
        employee_id: int,
        assignment_date: date,
        **values: Any,
    ) -> EmployeeSupport:
        """Delete the employee's assignment for the day and insert a new one.

        Both statements run in one transaction; on failure the original
        assignment is kept.
        """
        try:
            await self.session.execute(
                delete(EmployeeSupport).where(
                    EmployeeSupport.employee_id == employee_id,
                    EmployeeSupport.assignment_date == assignment_date,
                )
            )
            instance = EmployeeSupport(
                employee_id=employee_id,
                assignment_date=assignment_date,
                **values,
            )
            self.session.add(instance)
            await self.session.flush()
            await self.session.commit()
            return instance
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error replacing assignment for employee {employee_id} on {assignment_date}: {str(e)}",
                exc_info=True
            )
            raise

    async def count_codes_on(self, day: date) -> Dict[str, int]:
        """Assignment counts per support code for ``day``."""
        query = (
            select(SupportCode.support_code, func.count())
            .select_from(EmployeeSupport)
            .join(SupportCode, SupportCode.id == EmployeeSupport.support_id)
            .where(EmployeeSupport.assignment_date == day)
            .group_by(SupportCode.support_code)
        )
        result = await self.session.execute(query)
        return {code.upper(): count for code, count in result.all()}

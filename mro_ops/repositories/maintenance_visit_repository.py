from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mro_ops.repositories.base_repository import BaseRepository
from mro_ops.database.models import MaintenanceVisit


class MaintenanceVisitRepository(BaseRepository[MaintenanceVisit]):
    """Repository for maintenance visits (checks).

    Visit intervals are inclusive on both ends: an aircraft is in the hangar
    from ``date_in`` through ``date_out``.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, MaintenanceVisit)

    async def get_by_visit_number(self, visit_number: str) -> Optional[MaintenanceVisit]:
        """Exact lookup by visit number."""
        try:
            query = select(MaintenanceVisit).where(MaintenanceVisit.visit_number == visit_number)
            result = await self.session.execute(query)
            return result.scalars().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error retrieving visit {visit_number}: {str(e)}", exc_info=True)
            raise

    async def find_overlapping(
        self,
        hangar_id: int,
        date_in: date,
        date_out: date,
    ) -> List[MaintenanceVisit]:
        """Visits at ``hangar_id`` whose interval overlaps ``[date_in, date_out]``."""
        try:
            query = (
                select(MaintenanceVisit)
                .where(
                    MaintenanceVisit.hangar_id == hangar_id,
                    MaintenanceVisit.date_in <= date_out,
                    MaintenanceVisit.date_out >= date_in,
                )
                .order_by(MaintenanceVisit.date_in)
            )
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error checking hangar {hangar_id} occupancy: {str(e)}",
                exc_info=True
            )
            raise

    def _active_on(self, day: date):
        return and_(MaintenanceVisit.date_in <= day, MaintenanceVisit.date_out >= day)

    async def count_by_status(self, day: Optional[date] = None) -> Dict[str, int]:
        """Visit counts per status, optionally limited to visits active on ``day``."""
        query = select(MaintenanceVisit.status, func.count()).group_by(MaintenanceVisit.status)
        if day is not None:
            query = query.where(self._active_on(day))

        result = await self.session.execute(query)
        return {status: count for status, count in result.all()}

    async def list_active_on(self, day: date, limit: int = 10) -> List[MaintenanceVisit]:
        """Visits active on ``day`` with their aircraft and hangar loaded."""
        query = (
            select(MaintenanceVisit)
            .where(self._active_on(day))
            .options(
                selectinload(MaintenanceVisit.aircraft),
                selectinload(MaintenanceVisit.hangar),
            )
            .order_by(MaintenanceVisit.date_out)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

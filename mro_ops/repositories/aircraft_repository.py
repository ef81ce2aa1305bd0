from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mro_ops.repositories.base_repository import BaseRepository
from mro_ops.database.models import Aircraft, AircraftModel, Hangar


class AircraftRepository(BaseRepository[Aircraft]):
    """Repository for airframes."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Aircraft)

    async def get_by_registration(self, registration: str) -> Optional[Aircraft]:
        """Find an aircraft by registration, ignoring case."""
        return await self.find_first_ilike("registration", registration.strip())


class AircraftModelRepository(BaseRepository[AircraftModel]):
    """Repository for the aircraft model reference table."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AircraftModel)

    async def find_by_name(self, name: str) -> Optional[AircraftModel]:
        """First model whose name contains ``name`` (case-insensitive)."""
        return await self.find_first_ilike("model_name", f"%{name.strip()}%")


class HangarRepository(BaseRepository[Hangar]):
    """Repository for hangars."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Hangar)

    async def get_by_name(self, name: str) -> Optional[Hangar]:
        """Find a hangar by exact name, ignoring case."""
        return await self.find_first_ilike("hangar_name", name.strip())

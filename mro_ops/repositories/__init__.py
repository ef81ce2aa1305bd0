"""Repositories over the MRO operations tables."""

from mro_ops.repositories.base_repository import BaseRepository
from mro_ops.repositories.aircraft_repository import (
    AircraftRepository,
    AircraftModelRepository,
    HangarRepository,
)
from mro_ops.repositories.maintenance_visit_repository import MaintenanceVisitRepository
from mro_ops.repositories.employee_repository import EmployeeRepository
from mro_ops.repositories.assignment_repository import (
    SupportCodeRepository,
    EmployeeSupportRepository,
)
from mro_ops.repositories.authorization_repository import (
    AuthorizationTypeRepository,
    EmployeeAuthorizationRepository,
)

__all__ = [
    "BaseRepository",
    "AircraftRepository",
    "AircraftModelRepository",
    "HangarRepository",
    "MaintenanceVisitRepository",
    "EmployeeRepository",
    "SupportCodeRepository",
    "EmployeeSupportRepository",
    "AuthorizationTypeRepository",
    "EmployeeAuthorizationRepository",
]

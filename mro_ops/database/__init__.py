"""Database module for SQLAlchemy models and session management."""

from mro_ops.core.database import Base, engine, get_async_session, init_database, close_database
from mro_ops.database.models import (
    Aircraft,
    AircraftModel,
    AuthorizationType,
    Employee,
    EmployeeAuthorization,
    EmployeeSupport,
    Hangar,
    MaintenanceVisit,
    SupportCode,
)

__all__ = [
    "Base",
    "engine",
    "get_async_session",
    "init_database",
    "close_database",
    "Aircraft",
    "AircraftModel",
    "AuthorizationType",
    "Employee",
    "EmployeeAuthorization",
    "EmployeeSupport",
    "Hangar",
    "MaintenanceVisit",
    "SupportCode",
]

"""Operational snapshot gathering for the assistant.

Three read-only slices (aircraft, workforce, certifications) are gathered
concurrently, each in its own database session. A slice that fails is logged
and replaced by its zero-valued default so the assistant can still answer.
"""

import asyncio
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mro_ops.core.config import settings
from mro_ops.core.database import async_session_maker
from mro_ops.repositories.assignment_repository import EmployeeSupportRepository
from mro_ops.repositories.authorization_repository import EmployeeAuthorizationRepository
from mro_ops.repositories.employee_repository import EmployeeRepository
from mro_ops.repositories.maintenance_visit_repository import MaintenanceVisitRepository
from mro_ops.schemas.assistant import (
    AircraftOverall,
    AircraftSnapshot,
    AircraftToday,
    AircraftVisitDetail,
    CertificationDetail,
    CertificationSnapshot,
    OperationalContext,
    WorkforceSnapshot,
    WorkforceToday,
)
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

STATUS_IN_PROGRESS = "In Progress"
STATUS_SCHEDULED = "Scheduled"
STATUS_COMPLETED = "Completed"

LEAVE_CODES = ("L", "AL")


class OperationalContextService:
    """Builds the operational snapshot for a given date."""

    def __init__(self, session_maker: Optional[async_sessionmaker[AsyncSession]] = None):
        self.session_maker = session_maker or async_session_maker

    async def gather(self, current_date: Optional[date] = None) -> OperationalContext:
        current_date = current_date or date.today()
        aircraft, workforce, certifications = await asyncio.gather(
            self.fetch_aircraft(current_date),
            self.fetch_workforce(current_date),
            self.fetch_certifications(current_date),
        )
        return OperationalContext(
            current_date=current_date,
            aircraft=aircraft,
            workforce=workforce,
            certifications=certifications,
        )

    async def fetch_aircraft(self, current_date: date) -> AircraftSnapshot:
        try:
            async with self.session_maker() as session:
                repo = MaintenanceVisitRepository(session)
                today_counts = await repo.count_by_status(current_date)
                overall_counts = await repo.count_by_status()
                visits = await repo.list_active_on(current_date, limit=settings.assistant.aircraft_detail_limit)

            details = [
                AircraftVisitDetail(
                    registration=visit.aircraft.registration if visit.aircraft else "Unknown",
                    status=visit.status or "Unknown",
                    check_type=visit.check_type or "Unknown",
                )
                for visit in visits
            ]
            return AircraftSnapshot(
                today=AircraftToday(
                    total=sum(today_counts.values()),
                    in_maintenance=today_counts.get(STATUS_IN_PROGRESS, 0),
                    scheduled=today_counts.get(STATUS_SCHEDULED, 0),
                    completed=today_counts.get(STATUS_COMPLETED, 0),
                    details=details,
                ),
                overall=AircraftOverall(
                    total_visits=sum(overall_counts.values()),
                    in_progress=overall_counts.get(STATUS_IN_PROGRESS, 0),
                    scheduled=overall_counts.get(STATUS_SCHEDULED, 0),
                    completed=overall_counts.get(STATUS_COMPLETED, 0),
                ),
            )
        except Exception as e:
            LOGGER.error(f"Error fetching aircraft context: {e}", exc_info=True)
            return AircraftSnapshot()

    async def fetch_workforce(self, current_date: date) -> WorkforceSnapshot:
        try:
            async with self.session_maker() as session:
                total_employees = await EmployeeRepository(session).count()
                codes = await EmployeeSupportRepository(session).count_codes_on(current_date)

            available = codes.get("AV", 0)
            rate = round(available / total_employees * 100) if total_employees > 0 else 0
            return WorkforceSnapshot(
                today=WorkforceToday(
                    total=total_employees,
                    available=available,
                    on_leave=sum(codes.get(code, 0) for code in LEAVE_CODES),
                    in_training=codes.get("TR", 0),
                    availability_rate=rate,
                ),
                total_employees=total_employees,
            )
        except Exception as e:
            LOGGER.error(f"Error fetching workforce context: {e}", exc_info=True)
            return WorkforceSnapshot()

    async def fetch_certifications(self, current_date: date) -> CertificationSnapshot:
        expiry_end = current_date + timedelta(days=settings.assistant.expiry_window_days)
        critical_end = current_date + timedelta(days=settings.assistant.critical_window_days)
        try:
            async with self.session_maker() as session:
                repo = EmployeeAuthorizationRepository(session)
                expiring_soon = await repo.count_expiring(current_date, expiry_end)
                critical = await repo.count_expiring(current_date, critical_end)
                critical_rows = await repo.list_expiring(
                    current_date, critical_end, limit=settings.assistant.certification_detail_limit
                )

            details = [
                CertificationDetail(
                    employee_name=row.employee.name if row.employee else "Unknown",
                    authorization_type=row.authorization_type.name if row.authorization_type else "Unknown",
                    expiry_date=row.expiry_date,
                )
                for row in critical_rows
            ]
            return CertificationSnapshot(expiring_soon=expiring_soon, critical=critical, details=details)
        except Exception as e:
            LOGGER.error(f"Error fetching certification context: {e}", exc_info=True)
            return CertificationSnapshot()


def format_context_for_prompt(context: OperationalContext) -> str:
    """Render the snapshot as the text block sent alongside the user message."""
    day = context.current_date.isoformat()
    aircraft = context.aircraft
    workforce = context.workforce
    certs = context.certifications

    lines = [
        f"OPERATIONAL STATUS (as of {day}):",
        "",
        f"=== TODAY'S SNAPSHOT ({day}) ===",
        "",
        "Aircraft Maintenance TODAY:",
        f"- Active maintenance visits: {aircraft.today.total}",
        f"- In Progress: {aircraft.today.in_maintenance}",
        f"- Scheduled: {aircraft.today.scheduled}",
        f"- Completed: {aircraft.today.completed}",
    ]
    if aircraft.today.details:
        visits = ", ".join(f"{d.registration} ({d.status}, {d.check_type})" for d in aircraft.today.details)
        lines.append(f"- Details: {visits}")

    lines += [
        "",
        "Workforce TODAY:",
        f"- Employees in system: {workforce.today.total}",
        f"- Available for assignment: {workforce.today.available} ({workforce.today.availability_rate}%)",
        f"- On leave: {workforce.today.on_leave}",
        f"- In training: {workforce.today.in_training}",
        "",
        "=== OVERALL SYSTEM STATISTICS ===",
        "",
        "Aircraft (All Time):",
        f"- Total maintenance visits in system: {aircraft.overall.total_visits}",
        f"- Currently In Progress: {aircraft.overall.in_progress}",
        f"- Currently Scheduled: {aircraft.overall.scheduled}",
        f"- Completed visits: {aircraft.overall.completed}",
        "",
        "Workforce (Overall):",
        f"- Total employees in organization: {workforce.total_employees}",
        "",
        "=== CERTIFICATIONS & COMPLIANCE ===",
        "",
        f"- Authorizations expiring in {settings.assistant.expiry_window_days} days: {certs.expiring_soon}",
        f"- Critical (expiring in {settings.assistant.critical_window_days} days): {certs.critical}",
    ]
    if certs.details:
        expiries = ", ".join(
            f"{d.employee_name} - {d.authorization_type} "
            f"({d.expiry_date.isoformat() if d.expiry_date else 'Unknown'})"
            for d in certs.details
        )
        lines.append(f"- Critical expiries: {expiries}")

    return "\n".join(lines)

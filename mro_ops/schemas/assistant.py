"""Assistant request and operational snapshot models."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="User question")
    current_date: Optional[date] = Field(
        default=None,
        description="Operative date for the snapshot; defaults to today",
    )


class ChatResponse(BaseModel):
    answer: str
    current_date: date


class AircraftVisitDetail(BaseModel):
    registration: str = "Unknown"
    status: str = "Unknown"
    check_type: str = "Unknown"


class AircraftToday(BaseModel):
    total: int = 0
    in_maintenance: int = 0
    scheduled: int = 0
    completed: int = 0
    details: List[AircraftVisitDetail] = Field(default_factory=list)


class AircraftOverall(BaseModel):
    total_visits: int = 0
    in_progress: int = 0
    scheduled: int = 0
    completed: int = 0


class AircraftSnapshot(BaseModel):
    today: AircraftToday = Field(default_factory=AircraftToday)
    overall: AircraftOverall = Field(default_factory=AircraftOverall)


class WorkforceToday(BaseModel):
    total: int = 0
    available: int = 0
    on_leave: int = 0
    in_training: int = 0
    availability_rate: int = 0


class WorkforceSnapshot(BaseModel):
    today: WorkforceToday = Field(default_factory=WorkforceToday)
    total_employees: int = 0


class CertificationDetail(BaseModel):
    employee_name: str = "Unknown"
    authorization_type: str = "Unknown"
    expiry_date: Optional[date] = None


class CertificationSnapshot(BaseModel):
    expiring_soon: int = 0
    critical: int = 0
    details: List[CertificationDetail] = Field(default_factory=list)


class OperationalContext(BaseModel):
    """Read-only snapshot of operations on one date."""

    current_date: date
    aircraft: AircraftSnapshot = Field(default_factory=AircraftSnapshot)
    workforce: WorkforceSnapshot = Field(default_factory=WorkforceSnapshot)
    certifications: CertificationSnapshot = Field(default_factory=CertificationSnapshot)

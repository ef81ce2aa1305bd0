"""SQLAlchemy models for the MRO operations tables."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mro_ops.core.database import Base


class AircraftModel(Base):
    """Aircraft type/model reference table (A320, B777, ...)."""

    __tablename__ = "aircraft_models"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model_name: Mapped[str] = mapped_column(String, nullable=False)

    aircraft: Mapped[list["Aircraft"]] = relationship("Aircraft", back_populates="aircraft_model")


class Aircraft(Base):
    """An airframe known to the facility, identified by its registration."""

    __tablename__ = "aircraft"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    registration: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    aircraft_code: Mapped[str | None] = mapped_column(String, nullable=True)
    aircraft_name: Mapped[str | None] = mapped_column(String, nullable=True)
    aircraft_model_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("aircraft_models.id"), nullable=True
    )
    serial_number: Mapped[str | None] = mapped_column(String, nullable=True)
    customer: Mapped[str | None] = mapped_column(String, nullable=True)

    aircraft_model: Mapped["AircraftModel | None"] = relationship(
        "AircraftModel", back_populates="aircraft"
    )
    visits: Mapped[list["MaintenanceVisit"]] = relationship(
        "MaintenanceVisit", back_populates="aircraft"
    )


class Hangar(Base):
    """Hangar with a maximum number of simultaneous aircraft."""

    __tablename__ = "hangars"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hangar_name: Mapped[str] = mapped_column(String, nullable=False)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)


class MaintenanceVisit(Base):
    """A scheduled or in-progress check of one aircraft."""

    __tablename__ = "maintenance_visits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    aircraft_id: Mapped[int] = mapped_column(Integer, ForeignKey("aircraft.id"), nullable=False)
    visit_number: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    check_type: Mapped[str] = mapped_column(String, nullable=False)
    date_in: Mapped[date] = mapped_column(Date, nullable=False)
    date_out: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default="Scheduled"
    )  # Scheduled | In Progress | Completed
    hangar_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("hangars.id"), nullable=True)
    total_hours: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    aircraft: Mapped["Aircraft"] = relationship("Aircraft", back_populates="visits")
    hangar: Mapped["Hangar | None"] = relationship("Hangar")


class Employee(Base):
    """Maintenance staff member. ``e_number`` is stored without the ``E-`` prefix."""

    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    e_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)


class SupportCode(Base):
    """Daily assignment code (AV available, L/AL leave, TR training, MV visit)."""

    __tablename__ = "support_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    support_code: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)


class EmployeeSupport(Base):
    """One employee's assignment for one day."""

    __tablename__ = "employee_supports"
    __table_args__ = (
        UniqueConstraint("employee_id", "assignment_date", name="uq_employee_supports_employee_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), nullable=False)
    support_id: Mapped[int] = mapped_column(Integer, ForeignKey("support_codes.id"), nullable=False)
    assignment_date: Mapped[date] = mapped_column(Date, nullable=False)
    maintenance_visit_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("maintenance_visits.id"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    employee: Mapped["Employee"] = relationship("Employee")
    support_code: Mapped["SupportCode"] = relationship("SupportCode")


class AuthorizationType(Base):
    """Licence/authorization category (EASA B1.1, FAA A&P, ...)."""

    __tablename__ = "authorization_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)


class EmployeeAuthorization(Base):
    """A certificate held by an employee.

    Authorization type and aircraft model may be left unlinked when the
    uploaded certificate names a type or model that is not yet in the
    reference tables.
    """

    __tablename__ = "employee_authorizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), nullable=False)
    authorization_type_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("authorization_types.id"), nullable=True
    )
    aircraft_model_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("aircraft_models.id"), nullable=True
    )
    certificate_number: Mapped[str] = mapped_column(String, nullable=False)
    authorization_basis: Mapped[str | None] = mapped_column(String, nullable=True)
    issued_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )

    employee: Mapped["Employee"] = relationship("Employee")
    authorization_type: Mapped["AuthorizationType | None"] = relationship("AuthorizationType")
    aircraft_model: Mapped["AircraftModel | None"] = relationship("AircraftModel")

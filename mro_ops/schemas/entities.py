"""Typed field models for each document kind.

Extracted entities carry a loose ``{field: value}`` map. These models coerce
that map at the validation boundary; values that cannot be coerced are
reported as field-level errors instead of raising.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from mro_ops.schemas.ingestion import DocumentType, FieldError
from mro_ops.utils.dates import parse_date


def parse_document_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("unrecognised date")
    return parsed


class EntityFields(BaseModel):
    """Base for per-kind field models."""

    model_config = ConfigDict(
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data


class MaintenanceVisitFields(EntityFields):
    aircraft_registration: Optional[str] = None
    visit_number: Optional[str] = None
    check_type: Optional[str] = None
    date_in: Optional[date] = None
    date_out: Optional[date] = None
    status: Optional[str] = None
    hangar: Optional[str] = None
    total_hours: Optional[float] = None
    remarks: Optional[str] = None

    # Resolved references
    aircraft_id: Optional[int] = None
    hangar_id: Optional[int] = None

    @field_validator("date_in", "date_out", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> Optional[date]:
        return parse_document_date(value)


class EmployeeScheduleFields(EntityFields):
    employee_number: Optional[str] = None
    employee_name: Optional[str] = None
    assignment_date: Optional[date] = None
    support_code: Optional[str] = None
    assignment_notes: Optional[str] = None
    visit_number: Optional[str] = None

    employee_id: Optional[int] = None
    support_id: Optional[int] = None
    maintenance_visit_id: Optional[int] = None

    @field_validator("assignment_date", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> Optional[date]:
        return parse_document_date(value)


class CertificateFields(EntityFields):
    employee_number: Optional[str] = None
    employee_name: Optional[str] = None
    certificate_number: Optional[str] = None
    authorization_type: Optional[str] = None
    aircraft_model: Optional[str] = None
    issued_on: Optional[date] = None
    expiry_date: Optional[date] = None
    issuing_authority: Optional[str] = None
    authorization_basis: Optional[str] = None
    certificate_type: Optional[str] = None
    pages: Optional[int] = None
    remarks: Optional[str] = None

    employee_id: Optional[int] = None
    authorization_type_id: Optional[int] = None
    aircraft_model_id: Optional[int] = None

    @field_validator("issued_on", "expiry_date", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> Optional[date]:
        return parse_document_date(value)


class AircraftFields(EntityFields):
    registration: Optional[str] = None
    aircraft_code: Optional[str] = None
    aircraft_name: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    customer: Optional[str] = None


FIELD_MODELS: Dict[DocumentType, Type[EntityFields]] = {
    DocumentType.MAINTENANCE_VISIT: MaintenanceVisitFields,
    DocumentType.EMPLOYEE_SCHEDULE: EmployeeScheduleFields,
    DocumentType.CERTIFICATE: CertificateFields,
    DocumentType.AIRCRAFT: AircraftFields,
}

DATE_FIELDS = {
    "date_in", "date_out", "assignment_date", "issued_on", "expiry_date",
}


def _error_message(field: str, value: Any, error: Dict[str, Any]) -> str:
    if field in DATE_FIELDS:
        return f"Invalid date format for {field}: '{value}' (expected YYYY-MM-DD)"
    if error.get("type", "").startswith(("float", "int")):
        return f"{field} must be a number (got '{value}')"
    return f"Invalid value for {field}: {error.get('msg', 'invalid')}"


def coerce_fields(
    document_type: DocumentType,
    fields: Dict[str, Any],
) -> Tuple[Optional[EntityFields], List[FieldError]]:
    """Coerce a loose field map into the kind's typed model.

    Fields that fail coercion are dropped from the model and reported as
    errors; the remaining fields are still returned.

    Returns:
        (model or None for an unsupported kind, list of field errors)
    """
    model_cls = FIELD_MODELS.get(document_type)
    if model_cls is None:
        return None, []

    try:
        return model_cls.model_validate(fields), []
    except ValidationError as e:
        errors: List[FieldError] = []
        bad_fields = set()
        for err in e.errors():
            field = str(err["loc"][0]) if err.get("loc") else "general"
            if field in bad_fields:
                continue
            bad_fields.add(field)
            errors.append(FieldError(field=field, message=_error_message(field, fields.get(field), err)))

        remaining = {k: v for k, v in fields.items() if k not in bad_fields}
        return model_cls.model_validate(remaining), errors

"""Shared validation machinery for extracted entities.

Each document kind has one ``EntityValidator`` subclass. The base class runs
the common steps (field coercion, required-field checks, status and suggested
action) and turns unexpected failures into a single ``general`` error so a
bad row never aborts its siblings.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz, process
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mro_ops.core.config import settings
from mro_ops.repositories.employee_repository import EmployeeRepository
from mro_ops.schemas.entities import DATE_FIELDS, EntityFields, coerce_fields
from mro_ops.schemas.ingestion import (
    ActionType,
    ConflictCheck,
    ConflictSeverity,
    ConflictType,
    DocumentType,
    EntityStatus,
    ExtractedEntity,
    FieldError,
    ValidationResult,
)
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

SEVERITY_RANK = {
    ConflictSeverity.INFO: 1,
    ConflictSeverity.WARNING: 2,
    ConflictSeverity.ERROR: 3,
}

# Kinds whose warning-level duplicates are resolved by updating in place
UPDATABLE_TYPES = {DocumentType.EMPLOYEE_SCHEDULE, DocumentType.CERTIFICATE}


def max_severity(conflicts: Iterable[ConflictCheck]) -> Optional[ConflictSeverity]:
    """Highest conflict severity, or None when there are no conflicts."""
    highest = None
    for conflict in conflicts:
        if highest is None or SEVERITY_RANK[conflict.severity] > SEVERITY_RANK[highest]:
            highest = conflict.severity
    return highest


def compute_entity_status(
    validation: ValidationResult,
    conflicts: List[ConflictCheck],
) -> EntityStatus:
    """Display status derived from validation and conflict severities."""
    severity = max_severity(conflicts)
    if not validation.is_valid or severity == ConflictSeverity.ERROR:
        return EntityStatus.ERROR
    if severity == ConflictSeverity.WARNING or validation.warnings:
        return EntityStatus.WARNING
    return EntityStatus.VALID


def suggest_action(document_type: DocumentType, conflicts: List[ConflictCheck]) -> ActionType:
    if any(c.severity == ConflictSeverity.ERROR for c in conflicts):
        return ActionType.SKIP
    if document_type in UPDATABLE_TYPES and any(
        c.type == ConflictType.DUPLICATE and c.severity == ConflictSeverity.WARNING
        for c in conflicts
    ):
        return ActionType.UPDATE
    return ActionType.CREATE


def to_json_record(values: Dict[str, Any]) -> Dict[str, Any]:
    """Make an existing-record snapshot JSON friendly (dates as ISO strings)."""
    record = {}
    for key, value in values.items():
        if isinstance(value, date):
            value = value.isoformat()
        elif value is not None and not isinstance(value, (str, int, float, bool, list, dict)):
            value = str(value)
        record[key] = value
    return record


def to_field_value(value: Any) -> Any:
    """Flatten a raw value into a scalar an entity field can hold.

    Lists (e.g. OCR remarks) are joined with ``", "``; anything else that is
    not a string or number is stringified.
    """
    if value is None or isinstance(value, (str, int, float)):
        return value
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value if v is not None)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


@dataclass
class ValidationContext:
    """Mutable state for one validation run."""

    fields: Dict[str, Any]
    model: EntityFields
    operative_date: date
    errors: List[FieldError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    conflicts: List[ConflictCheck] = field(default_factory=list)

    def error(self, field_name: str, message: str) -> None:
        self.errors.append(FieldError(field=field_name, message=message))

    def has_error(self, field_name: str) -> bool:
        return any(e.field == field_name for e in self.errors)


class EntityValidator(ABC):
    """Template for per-kind validation.

    Subclasses declare ``document_type`` and ``required_fields`` and implement
    ``check`` for reference resolution and conflict detection.
    """

    document_type: DocumentType
    # (field name or tuple of alternatives, error field, message)
    required_fields: List[Tuple[Any, str, str]] = []
    # Ids derived from names, recomputed on every run
    resolved_fields: Tuple[str, ...] = ()

    def __init__(self, session: AsyncSession):
        self.session = session

    async def validate(
        self,
        fields: Dict[str, Any],
        operative_date: date,
        entity_id: Optional[str] = None,
    ) -> ExtractedEntity:
        enriched = {
            k: to_field_value(v) for k, v in fields.items() if k not in self.resolved_fields
        }
        if enriched.get("employee_number") or enriched.get("employee_name"):
            enriched.pop("employee_id", None)
        ctx: Optional[ValidationContext] = None

        try:
            model, coercion_errors = coerce_fields(self.document_type, enriched)
            ctx = ValidationContext(fields=enriched, model=model, operative_date=operative_date)
            ctx.errors.extend(coercion_errors)

            # Store parsed dates in ISO form so executors and clients agree
            for name in DATE_FIELDS:
                value = getattr(model, name, None)
                if isinstance(value, date):
                    enriched[name] = value.isoformat()

            self.check_required(ctx)
            await self.check(ctx)

            validation = ValidationResult(
                is_valid=not ctx.errors,
                errors=ctx.errors,
                warnings=ctx.warnings,
            )
            conflicts = ctx.conflicts
            action = suggest_action(self.document_type, conflicts)

        except Exception as e:
            LOGGER.error(
                f"Validation failed for {self.document_type.value} entity: {e}",
                exc_info=True,
                extra={"fields": list(fields.keys())}
            )
            if isinstance(e, SQLAlchemyError):
                # A failed statement leaves the transaction aborted for later entities
                try:
                    await self.session.rollback()
                except SQLAlchemyError as rollback_error:
                    LOGGER.warning(f"Rollback after validation failure failed: {rollback_error}")
            validation = ValidationResult(
                is_valid=False,
                errors=[FieldError(field="general", message=f"Validation failed: {e}")],
                warnings=ctx.warnings if ctx else [],
            )
            conflicts = ctx.conflicts if ctx else []
            action = ActionType.SKIP

        entity = ExtractedEntity(
            type=self.document_type,
            fields=enriched,
            validation=validation,
            suggested_action=action,
            conflicts=conflicts,
            status=compute_entity_status(validation, conflicts),
        )
        if entity_id:
            entity.id = entity_id
        return entity

    def check_required(self, ctx: ValidationContext) -> None:
        for names, error_field, message in self.required_fields:
            candidates = names if isinstance(names, tuple) else (names,)
            if any(getattr(ctx.model, name, None) not in (None, "") for name in candidates):
                continue
            # Unparseable values already carry their own error
            if any(ctx.has_error(name) for name in candidates):
                continue
            ctx.error(error_field, message)

    @abstractmethod
    async def check(self, ctx: ValidationContext) -> None:
        """Resolve references and detect conflicts, recording into ``ctx``."""


class EmployeeResolver:
    """Resolves an employee by number (``E-1007``, ``1007``), id or name.

    Name lookup tries a case-insensitive substring match first and then the
    best fuzzy match over all employees above ``threshold``.
    """

    E_NUMBER_PATTERN = re.compile(r"^e-?", re.IGNORECASE)

    def __init__(self, repository: EmployeeRepository, threshold: Optional[float] = None):
        self.repository = repository
        self.threshold = threshold if threshold is not None else settings.ingestion.fuzzy_name_threshold

    def parse_e_number(self, value: str) -> Optional[int]:
        cleaned = self.E_NUMBER_PATTERN.sub("", str(value).strip())
        try:
            return int(cleaned)
        except ValueError:
            return None

    async def find_by_name(self, name: str):
        employee = await self.repository.find_by_name(name)
        if employee is not None:
            return employee

        employees = await self.repository.list_all()
        if not employees:
            return None

        choices = {emp.id: emp.name for emp in employees}
        match = process.extractOne(
            name,
            choices,
            scorer=fuzz.token_sort_ratio,
            processor=lambda s: str(s).lower().strip(),
            score_cutoff=self.threshold,
        )
        if match is None:
            return None

        _, score, employee_id = match
        LOGGER.info(f"Fuzzy matched employee name '{name}'", extra={"score": score})
        return next(emp for emp in employees if emp.id == employee_id)

    async def resolve(self, ctx: ValidationContext) -> None:
        model = ctx.model
        number = getattr(model, "employee_number", None)
        name = getattr(model, "employee_name", None)
        employee_id = getattr(model, "employee_id", None)

        if number:
            e_number = self.parse_e_number(number)
            employee = await self.repository.get_by_e_number(e_number) if e_number is not None else None
            if employee is None:
                ctx.error("employee_number", f"Employee '{number}' not found in system")
                return
            ctx.fields["employee_id"] = employee.id
            ctx.fields["employee_name"] = employee.name

        elif name:
            employee = await self.find_by_name(name)
            if employee is None:
                ctx.error("employee_name", f"Employee '{name}' not found in system")
                return
            ctx.fields["employee_id"] = employee.id
            ctx.fields["employee_name"] = employee.name
            ctx.fields["employee_number"] = str(employee.e_number)

        elif employee_id is not None:
            employee = await self.repository.get_by_id(employee_id)
            if employee is None:
                ctx.error("employee_id", f"Employee id {employee_id} not found in system")
                return
            ctx.fields["employee_name"] = employee.name
            ctx.fields["employee_number"] = str(employee.e_number)

"""Unit tests for entity status and suggested action rules."""

import pytest

from mro_ops.schemas.entities import coerce_fields
from mro_ops.schemas.ingestion import (
    ActionType,
    ConflictCheck,
    ConflictSeverity,
    ConflictType,
    DocumentType,
    EntityStatus,
    FieldError,
    ValidationResult,
)
from mro_ops.services.ingestion.validation.base import (
    compute_entity_status,
    max_severity,
    suggest_action,
)


def conflict(severity, conflict_type=ConflictType.DUPLICATE):
    return ConflictCheck(type=conflict_type, severity=severity, message="conflict")


class TestComputeEntityStatus:

    def test_clean_entity_is_valid(self):
        assert compute_entity_status(ValidationResult(), []) == EntityStatus.VALID

    def test_field_error_is_error(self):
        validation = ValidationResult(is_valid=False, errors=[FieldError(field="x", message="bad")])
        assert compute_entity_status(validation, []) == EntityStatus.ERROR

    def test_error_conflict_is_error_even_when_fields_valid(self):
        assert compute_entity_status(ValidationResult(), [conflict(ConflictSeverity.ERROR)]) == EntityStatus.ERROR

    def test_warning_conflict_is_warning(self):
        assert compute_entity_status(ValidationResult(), [conflict(ConflictSeverity.WARNING)]) == EntityStatus.WARNING

    def test_validation_warning_is_warning(self):
        assert compute_entity_status(ValidationResult(warnings=["careful"]), []) == EntityStatus.WARNING

    def test_info_conflict_alone_stays_valid(self):
        assert compute_entity_status(ValidationResult(), [conflict(ConflictSeverity.INFO)]) == EntityStatus.VALID

    def test_max_severity(self):
        conflicts = [conflict(ConflictSeverity.INFO), conflict(ConflictSeverity.ERROR), conflict(ConflictSeverity.WARNING)]
        assert max_severity(conflicts) == ConflictSeverity.ERROR
        assert max_severity([]) is None


class TestSuggestAction:

    def test_blocking_conflict_skips(self):
        assert suggest_action(DocumentType.CERTIFICATE, [conflict(ConflictSeverity.ERROR)]) == ActionType.SKIP

    @pytest.mark.parametrize("document_type", [DocumentType.EMPLOYEE_SCHEDULE, DocumentType.CERTIFICATE])
    def test_warning_duplicate_updates(self, document_type):
        assert suggest_action(document_type, [conflict(ConflictSeverity.WARNING)]) == ActionType.UPDATE

    def test_visit_warning_duplicate_still_creates(self):
        assert suggest_action(DocumentType.MAINTENANCE_VISIT, [conflict(ConflictSeverity.WARNING)]) == ActionType.CREATE

    def test_no_conflicts_creates(self):
        assert suggest_action(DocumentType.EMPLOYEE_SCHEDULE, []) == ActionType.CREATE


class TestCoerceFields:

    def test_dates_and_numbers_are_coerced(self):
        model, errors = coerce_fields(
            DocumentType.MAINTENANCE_VISIT,
            {"date_in": "05/01/2025", "date_out": "2025-05-20", "total_hours": "1200"},
        )

        assert errors == []
        assert model.date_in.isoformat() == "2025-05-01"
        assert model.total_hours == 1200.0

    def test_bad_values_become_field_errors(self):
        model, errors = coerce_fields(
            DocumentType.MAINTENANCE_VISIT,
            {"visit_number": "MV-1", "date_in": "not a date", "total_hours": "lots"},
        )

        messages = {e.field: e.message for e in errors}
        assert messages["date_in"] == "Invalid date format for date_in: 'not a date' (expected YYYY-MM-DD)"
        assert messages["total_hours"] == "total_hours must be a number (got 'lots')"
        assert model.visit_number == "MV-1"
        assert model.date_in is None

    def test_numeric_employee_number_becomes_string(self):
        model, _ = coerce_fields(DocumentType.CERTIFICATE, {"employee_number": 1007})
        assert model.employee_number == "1007"

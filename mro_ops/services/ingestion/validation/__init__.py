"""Entity validation for extracted document rows."""

from datetime import date
from typing import Any, Dict, Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession

from mro_ops.schemas.ingestion import (
    ActionType,
    DocumentType,
    EntityStatus,
    ExtractedEntity,
    FieldError,
    ValidationResult,
)
from mro_ops.services.ingestion.validation.base import (
    EntityValidator,
    compute_entity_status,
    max_severity,
    suggest_action,
)
from mro_ops.services.ingestion.validation.certificate import CertificateValidator
from mro_ops.services.ingestion.validation.employee_schedule import EmployeeScheduleValidator
from mro_ops.services.ingestion.validation.maintenance_visit import MaintenanceVisitValidator
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

VALIDATORS: Dict[DocumentType, Type[EntityValidator]] = {
    DocumentType.MAINTENANCE_VISIT: MaintenanceVisitValidator,
    DocumentType.EMPLOYEE_SCHEDULE: EmployeeScheduleValidator,
    DocumentType.CERTIFICATE: CertificateValidator,
}


class EntityValidationService:
    """Routes an entity to the validator for its document type."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._validators: Dict[DocumentType, EntityValidator] = {}

    def get_validator(self, document_type: DocumentType) -> Optional[EntityValidator]:
        validator_cls = VALIDATORS.get(document_type)
        if validator_cls is None:
            return None
        if document_type not in self._validators:
            self._validators[document_type] = validator_cls(self.session)
        return self._validators[document_type]

    async def validate_entity(
        self,
        document_type: DocumentType,
        fields: Dict[str, Any],
        operative_date: Optional[date] = None,
        entity_id: Optional[str] = None,
    ) -> ExtractedEntity:
        """Validate one entity's fields against the store.

        Never raises: unsupported kinds and unexpected failures come back as
        an error-status entity with action ``skip``.
        """
        operative_date = operative_date or date.today()
        validator = self.get_validator(document_type)

        if validator is None:
            LOGGER.warning(
                "No validator for document type",
                extra={"document_type": document_type.value}
            )
            validation = ValidationResult(
                is_valid=False,
                errors=[FieldError(field="type", message="Unknown document type")],
            )
            entity = ExtractedEntity(
                type=document_type,
                fields=dict(fields),
                validation=validation,
                suggested_action=ActionType.SKIP,
                conflicts=[],
                status=EntityStatus.ERROR,
            )
            if entity_id:
                entity.id = entity_id
            return entity

        return await validator.validate(fields, operative_date, entity_id=entity_id)


__all__ = [
    "EntityValidationService",
    "EntityValidator",
    "CertificateValidator",
    "EmployeeScheduleValidator",
    "MaintenanceVisitValidator",
    "VALIDATORS",
    "compute_entity_status",
    "max_severity",
    "suggest_action",
]

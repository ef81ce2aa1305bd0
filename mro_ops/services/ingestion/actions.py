"""Executes reviewed entities against the database."""

from datetime import date
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mro_ops.core.config import settings
from mro_ops.core.exceptions import ExecutionError
from mro_ops.repositories.assignment_repository import EmployeeSupportRepository
from mro_ops.repositories.authorization_repository import EmployeeAuthorizationRepository
from mro_ops.repositories.maintenance_visit_repository import MaintenanceVisitRepository
from mro_ops.schemas.entities import (
    CertificateFields,
    EmployeeScheduleFields,
    MaintenanceVisitFields,
    coerce_fields,
)
from mro_ops.schemas.ingestion import (
    ActionResult,
    ActionType,
    BulkActionResult,
    ConflictSeverity,
    ConflictType,
    DocumentType,
    EntityStatus,
    ExtractedEntity,
)
from mro_ops.services.ingestion.validation import EntityValidationService
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

ENTITY_LABELS = {
    DocumentType.MAINTENANCE_VISIT: "maintenance visit",
    DocumentType.EMPLOYEE_SCHEDULE: "employee schedule",
    DocumentType.CERTIFICATE: "certificate",
}


def _require(value: Any, what: str) -> Any:
    if value is None:
        raise ExecutionError(f"{what} is not resolved; re-validate the entity before executing")
    return value


def _warning_duplicates(entity: ExtractedEntity) -> int:
    return sum(
        1 for c in entity.conflicts
        if c.type == ConflictType.DUPLICATE and c.severity == ConflictSeverity.WARNING
    )


class DocumentActionService:
    """Applies create/update/skip actions for extracted entities.

    Attributes:
        recheck_conflicts: Re-validate each bulk entity right before writing it,
            so rows earlier in the same batch are seen as existing records
    """

    def __init__(
        self,
        session: AsyncSession,
        validation_service: Optional[EntityValidationService] = None,
        recheck_conflicts: Optional[bool] = None,
    ):
        self.session = session
        self.validation_service = validation_service or EntityValidationService(session)
        self.recheck_conflicts = (
            settings.ingestion.recheck_batch_conflicts if recheck_conflicts is None else recheck_conflicts
        )
        self.visit_repo = MaintenanceVisitRepository(session)
        self.assignment_repo = EmployeeSupportRepository(session)
        self.authorization_repo = EmployeeAuthorizationRepository(session)

    async def execute_entity_action(self, entity: ExtractedEntity) -> ActionResult:
        """Execute one entity's suggested action.

        Write failures are reported in the result, never raised.
        """
        action = entity.suggested_action

        if action == ActionType.SKIP:
            return ActionResult(
                success=True,
                entity_id=entity.id,
                action=ActionType.SKIP,
                message="Skipped as requested.",
            )

        if entity.status == EntityStatus.ERROR:
            return ActionResult(
                success=False,
                entity_id=entity.id,
                action=action,
                error="Entity has validation errors",
                message="Cannot execute an entity with validation errors; fix and re-validate it first",
            )

        label = ENTITY_LABELS.get(entity.type)
        if label is None:
            return ActionResult(
                success=False,
                entity_id=entity.id,
                action=action,
                error="Unknown entity type",
                message=f"Cannot execute action for unknown entity type: {entity.type.value}",
            )

        try:
            if entity.type == DocumentType.MAINTENANCE_VISIT:
                result = await self._create_maintenance_visit(entity)
            elif entity.type == DocumentType.EMPLOYEE_SCHEDULE:
                result = await self._create_or_update_schedule(entity, action)
            else:
                result = await self._create_or_update_certificate(entity, action)

            LOGGER.info(
                result.message,
                extra={"entity_id": entity.id, "action": result.action.value, "record_id": result.record_id}
            )
            return result

        except Exception as e:
            LOGGER.error(
                f"Failed to {action.value} {label}: {e}",
                exc_info=True,
                extra={"entity_id": entity.id}
            )
            return ActionResult(
                success=False,
                entity_id=entity.id,
                action=action,
                error=str(e),
                message=f"Failed to {action.value} {label}: {e}",
            )

    async def _create_maintenance_visit(self, entity: ExtractedEntity) -> ActionResult:
        fields: MaintenanceVisitFields = self._typed(entity)
        visit = await self.visit_repo.create(
            aircraft_id=_require(fields.aircraft_id, "Aircraft"),
            visit_number=_require(fields.visit_number, "Visit number"),
            check_type=_require(fields.check_type, "Check type"),
            date_in=_require(fields.date_in, "Date in"),
            date_out=_require(fields.date_out, "Date out"),
            status=fields.status or "Scheduled",
            hangar_id=fields.hangar_id,
            total_hours=fields.total_hours,
            remarks=fields.remarks,
        )
        return ActionResult(
            success=True,
            entity_id=entity.id,
            action=ActionType.CREATE,
            record_id=visit.id,
            message=f"Maintenance visit {fields.visit_number} created successfully",
        )

    async def _create_or_update_schedule(self, entity: ExtractedEntity, action: ActionType) -> ActionResult:
        fields: EmployeeScheduleFields = self._typed(entity)
        employee_id = _require(fields.employee_id, "Employee")
        assignment_date = _require(fields.assignment_date, "Assignment date")
        values = {
            "support_id": _require(fields.support_id, "Support code"),
            "maintenance_visit_id": fields.maintenance_visit_id,
            "notes": fields.assignment_notes,
        }

        if action == ActionType.UPDATE:
            assignment = await self.assignment_repo.replace_assignment(employee_id, assignment_date, **values)
        else:
            assignment = await self.assignment_repo.create(
                employee_id=employee_id,
                assignment_date=assignment_date,
                **values,
            )

        verb = "updated" if action == ActionType.UPDATE else "created"
        return ActionResult(
            success=True,
            entity_id=entity.id,
            action=action,
            record_id=assignment.id,
            message=f"Employee schedule {verb} for {fields.employee_name or employee_id} on {assignment_date.isoformat()}",
        )

    async def _create_or_update_certificate(self, entity: ExtractedEntity, action: ActionType) -> ActionResult:
        fields: CertificateFields = self._typed(entity)
        employee_label = fields.employee_name or fields.employee_number

        existing_id = self._existing_record_id(entity)
        if action == ActionType.UPDATE and existing_id is not None:
            authorization = await self.authorization_repo.update(
                existing_id,
                certificate_number=fields.certificate_number,
                expiry_date=fields.expiry_date,
                issued_on=fields.issued_on,
                remarks=fields.remarks,
            )
            if authorization is None:
                raise ExecutionError(f"Existing authorization {existing_id} no longer exists")
            return ActionResult(
                success=True,
                entity_id=entity.id,
                action=ActionType.UPDATE,
                record_id=authorization.id,
                message=f"Certificate updated for {employee_label}",
            )

        authorization = await self.authorization_repo.create(
            employee_id=_require(fields.employee_id, "Employee"),
            authorization_type_id=fields.authorization_type_id,
            aircraft_model_id=fields.aircraft_model_id,
            certificate_number=_require(fields.certificate_number, "Certificate number"),
            authorization_basis=fields.authorization_basis or fields.certificate_type or "Certificate",
            issued_on=fields.issued_on,
            expiry_date=fields.expiry_date,
            pages=fields.pages,
            remarks=fields.remarks,
            is_active=True,
        )
        return ActionResult(
            success=True,
            entity_id=entity.id,
            action=ActionType.CREATE,
            record_id=authorization.id,
            message=f"Certificate created for {employee_label}",
        )

    def _typed(self, entity: ExtractedEntity):
        model, errors = coerce_fields(entity.type, entity.fields)
        if errors:
            raise ExecutionError("; ".join(e.message for e in errors))
        return model

    @staticmethod
    def _existing_record_id(entity: ExtractedEntity) -> Optional[int]:
        for conflict in entity.conflicts:
            if conflict.type == ConflictType.DUPLICATE and conflict.existing_record:
                record_id = conflict.existing_record.get("id")
                if record_id is not None:
                    return int(record_id)
        return None

    async def execute_bulk_actions(
        self,
        entities: List[ExtractedEntity],
        operative_date: Optional[date] = None,
    ) -> BulkActionResult:
        """Execute entities sequentially in input order.

        Entities with errors, skipped entities and ``skip`` actions are counted
        as skipped without a write. success + error + skipped always equals
        the number of entities submitted.
        """
        operative_date = operative_date or date.today()
        bulk = BulkActionResult()

        for entity in entities:
            if (
                entity.status in (EntityStatus.ERROR, EntityStatus.SKIPPED)
                or entity.suggested_action == ActionType.SKIP
            ):
                bulk.results.append(self._skipped(entity, "Skipped due to validation errors or user choice"))
                bulk.skipped_count += 1
                continue

            if self.recheck_conflicts:
                entity = await self._recheck(entity, operative_date)
                if entity.status == EntityStatus.ERROR or entity.suggested_action == ActionType.SKIP:
                    reasons = [c.message for c in entity.conflicts if c.severity == ConflictSeverity.ERROR]
                    reasons += [e.message for e in entity.validation.errors]
                    bulk.results.append(self._skipped(
                        entity,
                        "Skipped: " + ("; ".join(reasons) or "conflicts with current records"),
                    ))
                    bulk.skipped_count += 1
                    continue

            result = await self.execute_entity_action(entity)
            bulk.results.append(result)
            if result.success:
                bulk.success_count += 1
            else:
                bulk.error_count += 1

        LOGGER.info(
            "Bulk execution finished",
            extra={
                "total": len(entities),
                "success": bulk.success_count,
                "errors": bulk.error_count,
                "skipped": bulk.skipped_count,
            }
        )
        return bulk

    async def _recheck(self, entity: ExtractedEntity, operative_date: date) -> ExtractedEntity:
        """Re-validate against the store as it stands now.

        The user's chosen action is kept unless the fresh check found a new
        non-blocking duplicate, in which case the fresh suggestion is adopted.
        """
        fresh = await self.validation_service.validate_entity(
            entity.type, entity.fields, operative_date, entity_id=entity.id
        )
        if fresh.status == EntityStatus.ERROR or fresh.suggested_action == ActionType.SKIP:
            return fresh

        if _warning_duplicates(fresh) <= _warning_duplicates(entity):
            fresh.suggested_action = entity.suggested_action
        else:
            LOGGER.info(
                "New duplicate found during bulk execution, adopting fresh action",
                extra={"entity_id": entity.id, "action": fresh.suggested_action.value}
            )
        return fresh

    @staticmethod
    def _skipped(entity: ExtractedEntity, message: str) -> ActionResult:
        return ActionResult(
            success=True,
            entity_id=entity.id,
            action=ActionType.SKIP,
            message=message,
        )

    @staticmethod
    def summarize(bulk: BulkActionResult) -> str:
        return (
            f"Created {bulk.success_count} record(s), "
            f"{bulk.skipped_count} skipped, {bulk.error_count} errors."
        )

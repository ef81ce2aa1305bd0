from mro_ops.repositories.assignment_repository import EmployeeSupportRepository, SupportCodeRepository
from mro_ops.repositories.employee_repository import EmployeeRepository
from mro_ops.repositories.maintenance_visit_repository import MaintenanceVisitRepository
from mro_ops.schemas.ingestion import ConflictCheck, ConflictSeverity, ConflictType, DocumentType
from mro_ops.services.ingestion.validation.base import (
    EmployeeResolver,
    EntityValidator,
    ValidationContext,
    to_json_record,
)


class EmployeeScheduleValidator(EntityValidator):
    """Validates one employee's assignment for one day."""

    document_type = DocumentType.EMPLOYEE_SCHEDULE
    required_fields = [
        (("employee_number", "employee_name", "employee_id"), "employee", "Employee identifier is required"),
        ("assignment_date", "assignment_date", "Assignment date is required"),
        ("support_code", "support_code", "Support code is required"),
    ]
    resolved_fields = ("support_id", "maintenance_visit_id")

    def __init__(self, session, name_threshold=None):
        super().__init__(session)
        self.employee_resolver = EmployeeResolver(EmployeeRepository(session), name_threshold)
        self.support_code_repo = SupportCodeRepository(session)
        self.assignment_repo = EmployeeSupportRepository(session)
        self.visit_repo = MaintenanceVisitRepository(session)

    async def check(self, ctx: ValidationContext) -> None:
        model = ctx.model

        await self.employee_resolver.resolve(ctx)

        if model.support_code:
            support_code = await self.support_code_repo.get_by_code(model.support_code)
            if support_code is not None:
                ctx.fields["support_id"] = support_code.id
            else:
                ctx.error("support_code", f"Support code '{model.support_code}' not found in system")

        if model.visit_number:
            visit = await self.visit_repo.get_by_visit_number(model.visit_number)
            if visit is not None:
                ctx.fields["maintenance_visit_id"] = visit.id
            else:
                ctx.warnings.append(
                    f"Visit number '{model.visit_number}' not found, assignment will be general"
                )

        employee_id = ctx.fields.get("employee_id")
        if employee_id is not None and model.assignment_date:
            existing = await self.assignment_repo.get_for_employee_on(employee_id, model.assignment_date)
            if existing is not None:
                ctx.conflicts.append(ConflictCheck(
                    type=ConflictType.DUPLICATE,
                    severity=ConflictSeverity.WARNING,
                    message=f"Employee already has assignment on {model.assignment_date.isoformat()}",
                    resolution="Will overwrite existing assignment",
                    existing_record=to_json_record({
                        "id": existing.id,
                        "support_id": existing.support_id,
                        "assignment_date": existing.assignment_date,
                    }),
                ))

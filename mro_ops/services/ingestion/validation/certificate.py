from mro_ops.repositories.aircraft_repository import AircraftModelRepository
from mro_ops.repositories.authorization_repository import (
    AuthorizationTypeRepository,
    EmployeeAuthorizationRepository,
)
from mro_ops.repositories.employee_repository import EmployeeRepository
from mro_ops.schemas.ingestion import ConflictCheck, ConflictSeverity, ConflictType, DocumentType
from mro_ops.services.ingestion.validation.base import (
    EmployeeResolver,
    EntityValidator,
    ValidationContext,
    to_json_record,
)


class CertificateValidator(EntityValidator):
    """Validates employee certificates.

    Unknown authorization types and aircraft models are warnings only, so a
    certificate can be recorded now and linked later. Lapsed certificates are
    accepted with a warning.
    """

    document_type = DocumentType.CERTIFICATE
    required_fields = [
        (("employee_number", "employee_name", "employee_id"), "employee", "Employee identifier is required"),
        ("certificate_number", "certificate_number", "Certificate number is required"),
        ("authorization_type", "authorization_type", "Authorization type is required"),
        ("expiry_date", "expiry_date", "Expiry date is required"),
    ]
    resolved_fields = ("authorization_type_id", "aircraft_model_id")

    def __init__(self, session, name_threshold=None):
        super().__init__(session)
        self.employee_resolver = EmployeeResolver(EmployeeRepository(session), name_threshold)
        self.auth_type_repo = AuthorizationTypeRepository(session)
        self.model_repo = AircraftModelRepository(session)
        self.authorization_repo = EmployeeAuthorizationRepository(session)

    async def check(self, ctx: ValidationContext) -> None:
        model = ctx.model

        await self.employee_resolver.resolve(ctx)

        if model.authorization_type:
            auth_type = await self.auth_type_repo.find_by_name(model.authorization_type)
            if auth_type is not None:
                ctx.fields["authorization_type_id"] = auth_type.id
            else:
                ctx.warnings.append(
                    f"Authorization type '{model.authorization_type}' not found, may need to be created"
                )

        if model.aircraft_model:
            aircraft_model = await self.model_repo.find_by_name(model.aircraft_model)
            if aircraft_model is not None:
                ctx.fields["aircraft_model_id"] = aircraft_model.id
            else:
                ctx.warnings.append(
                    f"Aircraft model '{model.aircraft_model}' not found, may need to be created"
                )

        await self.check_existing_authorization(ctx)

        if model.expiry_date and model.expiry_date < ctx.operative_date:
            ctx.warnings.append("Certificate is already expired")

    async def check_existing_authorization(self, ctx: ValidationContext) -> None:
        employee_id = ctx.fields.get("employee_id")
        type_id = ctx.fields.get("authorization_type_id")
        model_id = ctx.fields.get("aircraft_model_id")
        if employee_id is None or type_id is None or model_id is None:
            return

        existing = await self.authorization_repo.find_active(employee_id, type_id, model_id)
        if existing is None:
            return

        new_expiry = ctx.model.expiry_date
        is_renewal = new_expiry is not None and (
            existing.expiry_date is None or new_expiry > existing.expiry_date
        )

        if is_renewal:
            ctx.conflicts.append(ConflictCheck(
                type=ConflictType.DUPLICATE,
                severity=ConflictSeverity.WARNING,
                message=f"Employee has existing authorization (expires {existing.expiry_date})",
                resolution="Update existing authorization with new certificate",
                existing_record=to_json_record({
                    "id": existing.id,
                    "certificate_number": existing.certificate_number,
                    "expiry_date": existing.expiry_date,
                    "is_active": existing.is_active,
                }),
            ))
        else:
            ctx.conflicts.append(ConflictCheck(
                type=ConflictType.DUPLICATE,
                severity=ConflictSeverity.INFO,
                message="New certificate expires before existing one",
                resolution="Consider if this is a renewal or different certificate",
            ))

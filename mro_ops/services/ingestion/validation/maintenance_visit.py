from mro_ops.repositories.aircraft_repository import AircraftRepository, HangarRepository
from mro_ops.repositories.maintenance_visit_repository import MaintenanceVisitRepository
from mro_ops.schemas.ingestion import ConflictCheck, ConflictSeverity, ConflictType, DocumentType
from mro_ops.services.ingestion.validation.base import EntityValidator, ValidationContext, to_json_record


class MaintenanceVisitValidator(EntityValidator):
    """Validates maintenance visits: aircraft, hangar capacity and duplicates."""

    document_type = DocumentType.MAINTENANCE_VISIT
    required_fields = [
        ("aircraft_registration", "aircraft_registration", "Aircraft registration is required"),
        ("visit_number", "visit_number", "Visit number is required"),
        ("check_type", "check_type", "Check type is required"),
        ("date_in", "date_in", "Date in is required"),
        ("date_out", "date_out", "Date out is required"),
    ]
    resolved_fields = ("aircraft_id", "hangar_id")

    def __init__(self, session):
        super().__init__(session)
        self.aircraft_repo = AircraftRepository(session)
        self.hangar_repo = HangarRepository(session)
        self.visit_repo = MaintenanceVisitRepository(session)

    async def check(self, ctx: ValidationContext) -> None:
        model = ctx.model

        if model.aircraft_registration:
            aircraft = await self.aircraft_repo.get_by_registration(model.aircraft_registration)
            if aircraft is not None:
                ctx.fields["aircraft_id"] = aircraft.id
            else:
                ctx.error(
                    "aircraft_registration",
                    f"Aircraft with registration '{model.aircraft_registration}' not found in system",
                )

        hangar = None
        if model.hangar:
            hangar = await self.hangar_repo.get_by_name(model.hangar)
            if hangar is not None:
                ctx.fields["hangar_id"] = hangar.id
            else:
                ctx.warnings.append(f"Hangar '{model.hangar}' not found, will use default")

        if model.visit_number:
            existing = await self.visit_repo.get_by_visit_number(model.visit_number)
            if existing is not None:
                ctx.conflicts.append(ConflictCheck(
                    type=ConflictType.DUPLICATE,
                    severity=ConflictSeverity.ERROR,
                    message=f"Visit number '{model.visit_number}' already exists",
                    resolution="Use a different visit number or update existing visit",
                    existing_record=to_json_record({
                        "id": existing.id,
                        "visit_number": existing.visit_number,
                        "status": existing.status,
                    }),
                ))

        if hangar is not None and model.date_in and model.date_out:
            await self.check_hangar_capacity(ctx, hangar)

        if model.date_in and model.date_out and model.date_out <= model.date_in:
            ctx.error("date_out", "Date out must be after date in")

    async def check_hangar_capacity(self, ctx: ValidationContext, hangar) -> None:
        model = ctx.model
        overlapping = await self.visit_repo.find_overlapping(hangar.id, model.date_in, model.date_out)
        if not overlapping:
            return

        # A hangar without a recorded capacity holds one aircraft
        capacity = hangar.capacity or 1
        occupancy = len(overlapping)
        hangar_name = hangar.hangar_name or model.hangar

        if occupancy >= capacity:
            ctx.conflicts.append(ConflictCheck(
                type=ConflictType.OVERLAP,
                severity=ConflictSeverity.ERROR,
                message=(
                    f"{hangar_name} is at/over capacity ({occupancy}/{capacity}) "
                    f"during {model.date_in.isoformat()} to {model.date_out.isoformat()}"
                ),
                resolution="Choose different hangar, adjust dates, or increase hangar capacity",
                existing_record={
                    "hangar_visits": [
                        {
                            "visit_number": visit.visit_number,
                            "dates": f"{visit.date_in.isoformat()} to {visit.date_out.isoformat()}",
                        }
                        for visit in overlapping
                    ],
                    "capacity": capacity,
                },
            ))
        else:
            ctx.warnings.append(
                f"{hangar_name} will have {occupancy + 1}/{capacity} aircraft during this period"
            )

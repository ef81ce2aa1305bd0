"""Document ingestion routes: upload/extract, re-validate and execute entities."""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from mro_ops.core.config import settings
from mro_ops.core.database import get_async_session as get_session
from mro_ops.core.exceptions import UnsupportedFileTypeError
from mro_ops.schemas.ingestion import (
    BulkActionRequest,
    EntityActionRequest,
    EntityValidationRequest,
    UploadStatus,
)
from mro_ops.schemas.responses import ApiResponse
from mro_ops.services.ingestion.actions import DocumentActionService
from mro_ops.services.ingestion.processor import DocumentProcessingService, summarize_extraction
from mro_ops.services.ingestion.validation import EntityValidationService
from mro_ops.utils.dates import parse_date
from mro_ops.utils.logging import get_logger
from mro_ops.utils.responses import create_api_response, create_error_detail

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_processing_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> DocumentProcessingService:
    return DocumentProcessingService(db_session)


async def get_validation_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> EntityValidationService:
    return EntityValidationService(db_session)


async def get_action_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> DocumentActionService:
    return DocumentActionService(db_session)


def resolve_operative_date(value: Optional[str], request: Request) -> date:
    """Parse an optional operative date, defaulting to today."""
    if not value:
        return date.today()
    parsed = parse_date(value)
    if parsed is None:
        error_detail = create_error_detail(
            title="Invalid operative date",
            status=status.HTTP_400_BAD_REQUEST,
            detail=f"Could not parse operative_date '{value}' (expected YYYY-MM-DD)",
            request=request,
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail.model_dump(mode="json"),
        )
    return parsed


@router.post(
    "/process",
    response_model=ApiResponse,
    summary="Upload and extract a document",
    operation_id="process_document",
)
async def process_document(
    request: Request,
    file: UploadFile = File(..., description="CSV, JPG, PNG or PDF document"),
    operative_date: Optional[str] = Form(default=None),
    processing_service: Annotated[DocumentProcessingService, Depends(get_processing_service)] = None,
):
    """Classify, map and validate an uploaded document.

    CSV files yield one entity per row; images and PDFs yield a single
    certificate entity read by the vision model.
    """
    day = resolve_operative_date(operative_date, request)
    content = await file.read()

    if len(content) > settings.ingestion.max_upload_bytes:
        error_detail = create_error_detail(
            title="File too large",
            status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"{file.filename} exceeds the {settings.ingestion.max_upload_bytes} byte upload limit",
            request=request,
        )
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=error_detail.model_dump(mode="json"),
        )

    try:
        document = await processing_service.process_document(content, file.filename or "", day)
    except UnsupportedFileTypeError as e:
        LOGGER.warning(f"Rejected upload: {e}", extra={"filename": file.filename})
        error_detail = create_error_detail(
            title="Unsupported file type",
            status=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=str(e),
            request=request,
        )
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=error_detail.model_dump(mode="json"),
        )

    if document.status == UploadStatus.ERROR:
        error_detail = create_error_detail(
            title="Document processing failed",
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=document.error or "Unknown processing error",
            request=request,
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=error_detail.model_dump(mode="json"),
        )

    return create_api_response(
        data=document,
        message=summarize_extraction(document),
        request=request,
    )


@router.post(
    "/entities/validate",
    response_model=ApiResponse,
    summary="Re-validate an edited entity",
    operation_id="validate_entity",
)
async def validate_entity(
    body: EntityValidationRequest,
    request: Request,
    validation_service: Annotated[EntityValidationService, Depends(get_validation_service)],
):
    day = resolve_operative_date(body.operative_date, request)
    entity = await validation_service.validate_entity(
        body.type,
        dict(body.fields),
        operative_date=day,
        entity_id=body.entity_id,
    )
    return create_api_response(
        data=entity,
        message=f"Entity validated with status {entity.status.value}",
        request=request,
    )


@router.post(
    "/entities/execute",
    response_model=ApiResponse,
    summary="Execute the action for one entity",
    operation_id="execute_entity",
)
async def execute_entity(
    body: EntityActionRequest,
    request: Request,
    action_service: Annotated[DocumentActionService, Depends(get_action_service)],
):
    """Create, update or skip one entity. Write failures come back in the result."""
    entity = body.entity
    if body.action is not None:
        entity = entity.model_copy(update={"suggested_action": body.action})

    result = await action_service.execute_entity_action(entity)
    return create_api_response(
        data=result,
        message=result.message,
        status=result.success,
        request=request,
    )


@router.post(
    "/entities/execute-bulk",
    response_model=ApiResponse,
    summary="Execute actions for many entities",
    operation_id="execute_entities_bulk",
)
async def execute_entities_bulk(
    body: BulkActionRequest,
    request: Request,
    action_service: Annotated[DocumentActionService, Depends(get_action_service)],
):
    """Execute entities in order; errors and skips are counted, not raised."""
    day = resolve_operative_date(body.operative_date, request)
    bulk = await action_service.execute_bulk_actions(body.entities, day)
    return create_api_response(
        data=bulk,
        message=DocumentActionService.summarize(bulk),
        request=request,
    )

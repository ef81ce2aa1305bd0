"""Pydantic models for the document ingestion pipeline."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field


class DocumentType(str, Enum):
    MAINTENANCE_VISIT = "maintenance_visit"
    EMPLOYEE_SCHEDULE = "employee_schedule"
    CERTIFICATE = "certificate"
    AIRCRAFT = "aircraft"
    UNKNOWN = "unknown"


class FileType(str, Enum):
    CSV = "csv"
    IMAGE = "image"
    PDF = "pdf"


class UploadStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    EXTRACTED = "extracted"
    ERROR = "error"


class ActionType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


class ConflictSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ConflictType(str, Enum):
    DUPLICATE = "duplicate"
    OVERLAP = "overlap"
    INVALID_REFERENCE = "invalid_reference"
    MISSING_DATA = "missing_data"


class EntityStatus(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"
    SKIPPED = "skipped"


FieldValue = Union[str, int, float, None]


class FieldError(BaseModel):
    field: str
    message: str
    severity: ConflictSeverity = ConflictSeverity.ERROR


class ValidationResult(BaseModel):
    is_valid: bool = True
    errors: List[FieldError] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ConflictCheck(BaseModel):
    type: ConflictType
    severity: ConflictSeverity
    message: str
    resolution: Optional[str] = None
    existing_record: Optional[Dict[str, Any]] = None


class ExtractedEntity(BaseModel):
    """One row (or one certificate image) after validation.

    ``id`` only identifies the entity within a review session; it is never
    persisted.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    type: DocumentType
    fields: Dict[str, FieldValue] = Field(default_factory=dict)
    validation: ValidationResult = Field(default_factory=ValidationResult)
    suggested_action: ActionType = ActionType.CREATE
    conflicts: List[ConflictCheck] = Field(default_factory=list)
    status: EntityStatus = EntityStatus.VALID


class ExtractedData(BaseModel):
    document_type: DocumentType
    entities: List[ExtractedEntity] = Field(default_factory=list)
    confidence: float = 0.0
    warnings: List[str] = Field(default_factory=list)
    total_count: int = 0
    valid_count: int = 0
    error_count: int = 0
    column_mapping: Dict[str, str] = Field(default_factory=dict)


class UploadedDocument(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    filename: str
    file_type: FileType
    status: UploadStatus = UploadStatus.IDLE
    upload_progress: int = Field(default=0, ge=0, le=100)
    extracted_data: Optional[ExtractedData] = None
    error: Optional[str] = None


class ActionResult(BaseModel):
    success: bool
    entity_id: str
    action: ActionType
    record_id: Optional[int] = None
    error: Optional[str] = None
    message: str = ""


class BulkActionResult(BaseModel):
    results: List[ActionResult] = Field(default_factory=list)
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0


# Request bodies

class EntityValidationRequest(BaseModel):
    type: DocumentType
    fields: Dict[str, FieldValue] = Field(default_factory=dict)
    entity_id: Optional[str] = None
    operative_date: Optional[str] = None


class EntityActionRequest(BaseModel):
    entity: ExtractedEntity
    action: Optional[ActionType] = None


class BulkActionRequest(BaseModel):
    entities: List[ExtractedEntity]
    operative_date: Optional[str] = None

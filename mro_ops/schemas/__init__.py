from .ingestion import (
    ActionResult,
    ActionType,
    BulkActionResult,
    DocumentType,
    EntityStatus,
    ExtractedData,
    ExtractedEntity,
    UploadedDocument,
)
from .responses import ApiResponse, ErrorDetail

__all__ = [
    "ActionResult",
    "ActionType",
    "BulkActionResult",
    "DocumentType",
    "EntityStatus",
    "ExtractedData",
    "ExtractedEntity",
    "UploadedDocument",
    "ApiResponse",
    "ErrorDetail",
]

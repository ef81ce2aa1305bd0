"""Document ingestion: parsing, classification, mapping, validation and execution."""

from .actions import DocumentActionService
from .processor import DocumentProcessingService, get_file_type, summarize_extraction
from .validation import EntityValidationService

__all__ = [
    "DocumentActionService",
    "DocumentProcessingService",
    "EntityValidationService",
    "get_file_type",
    "summarize_extraction",
]

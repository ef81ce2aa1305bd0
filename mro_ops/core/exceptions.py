"""Custom exception hierarchy."""


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class PipelineError(AppError):
    """Base exception for document ingestion failures that halt a document."""
    pass


class EmptyDocumentError(PipelineError):
    """The uploaded document has no header row or no data rows."""
    pass


class DocumentParseError(PipelineError):
    """The uploaded document could not be decoded or parsed."""
    pass


class UnknownDocumentTypeError(PipelineError):
    """Neither the LLM nor the keyword rules recognised the document kind."""
    pass


class UnsupportedFileTypeError(PipelineError):
    """The uploaded file extension is not accepted for ingestion."""
    pass


class ImageExtractionError(PipelineError):
    """Certificate data could not be extracted from an image or PDF."""
    pass


class ExecutionError(AppError):
    """Raised when writing an extracted entity to the database fails."""
    pass

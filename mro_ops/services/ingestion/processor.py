"""Document processing pipeline.

CSV: parse -> classify -> map columns -> transform -> validate each row.
Image/PDF: vision extraction -> validate one certificate.

Stages run strictly in sequence and rows are validated one at a time.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mro_ops.core.config import settings
from mro_ops.core.exceptions import (
    ImageExtractionError,
    PipelineError,
    UnknownDocumentTypeError,
    UnsupportedFileTypeError,
)
from mro_ops.core.llm_client import ChatCompletionClient, create_llm_client_from_settings
from mro_ops.schemas.ingestion import (
    DocumentType,
    EntityStatus,
    ExtractedData,
    ExtractedEntity,
    FileType,
    UploadedDocument,
    UploadStatus,
)
from mro_ops.services.ingestion.classification import DocumentTypeClassifier, LLMClassificationStrategy
from mro_ops.services.ingestion.column_mapping import ColumnMapper, LLMColumnMappingStrategy
from mro_ops.services.ingestion.csv_parser import parse_csv_bytes
from mro_ops.services.ingestion.ocr import CertificateImageExtractor
from mro_ops.services.ingestion.transformer import transform_rows_to_entities
from mro_ops.services.ingestion.validation import EntityValidationService
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

OCR_WARNING = "OCR may not be 100% accurate - please review extracted data"

FILE_TYPES_BY_EXTENSION = {
    "csv": FileType.CSV,
    "jpg": FileType.IMAGE,
    "jpeg": FileType.IMAGE,
    "png": FileType.IMAGE,
    "pdf": FileType.PDF,
}


def get_file_type(filename: str) -> FileType:
    """Route an upload by its extension.

    Raises:
        UnsupportedFileTypeError: For anything other than csv, jpg, jpeg, png or pdf
    """
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    file_type = FILE_TYPES_BY_EXTENSION.get(extension)
    if file_type is None:
        raise UnsupportedFileTypeError(
            f"Unsupported file type '.{extension}'. Upload a CSV, JPG, PNG or PDF file."
        )
    return file_type


def build_extracted_data(
    document_type: DocumentType,
    entities: List[ExtractedEntity],
    confidence: float,
    warnings: Optional[List[str]] = None,
    column_mapping: Optional[dict] = None,
) -> ExtractedData:
    """Assemble ExtractedData; valid_count includes warning-status entities."""
    valid_count = sum(1 for e in entities if e.status in (EntityStatus.VALID, EntityStatus.WARNING))
    error_count = sum(1 for e in entities if e.status == EntityStatus.ERROR)
    return ExtractedData(
        document_type=document_type,
        entities=entities,
        confidence=confidence,
        warnings=warnings or [],
        total_count=len(entities),
        valid_count=valid_count,
        error_count=error_count,
        column_mapping=column_mapping or {},
    )


def summarize_extraction(document: UploadedDocument) -> str:
    data = document.extracted_data
    if data is None:
        return f"Could not process {document.filename}: {document.error}"
    kind = data.document_type.value.replace("_", " ")
    return (
        f"I've extracted {data.total_count} {kind} record(s) from your "
        f"{document.file_type.value.upper()}. {data.valid_count} ready, {data.error_count} with errors."
    )


class DocumentProcessingService:
    """Runs uploaded documents through the ingestion pipeline.

    Without an LLM API key, classification and column mapping use the
    keyword strategies only and image uploads fail with a clear error.
    """

    def __init__(
        self,
        session: AsyncSession,
        llm_client: Optional[ChatCompletionClient] = None,
        validation_service: Optional[EntityValidationService] = None,
        classifier: Optional[DocumentTypeClassifier] = None,
        column_mapper: Optional[ColumnMapper] = None,
        image_extractor: Optional[CertificateImageExtractor] = None,
    ):
        self.session = session
        if llm_client is None and settings.llm.api_key:
            llm_client = create_llm_client_from_settings()
        self.llm_client = llm_client

        self.validation_service = validation_service or EntityValidationService(session)
        self.classifier = classifier or DocumentTypeClassifier(
            primary=LLMClassificationStrategy(llm_client) if llm_client else None
        )
        self.column_mapper = column_mapper or ColumnMapper(
            primary=LLMColumnMappingStrategy(llm_client) if llm_client else None
        )
        self.image_extractor = image_extractor or (
            CertificateImageExtractor(llm_client) if llm_client else None
        )

    async def process_document(
        self,
        content: bytes,
        filename: str,
        operative_date: Optional[date] = None,
    ) -> UploadedDocument:
        """Process one upload into an UploadedDocument.

        Pipeline failures leave the document in ``error`` status with the
        failure message; they are not raised.

        Raises:
            UnsupportedFileTypeError: If the extension is not accepted
        """
        file_type = get_file_type(filename)
        operative_date = operative_date or date.today()

        document = UploadedDocument(
            filename=filename,
            file_type=file_type,
            status=UploadStatus.UPLOADING,
            upload_progress=0,
        )
        LOGGER.info(
            f"Processing {file_type.value} document: {filename}",
            extra={"document_id": document.id, "size": len(content)}
        )

        document.status = UploadStatus.PROCESSING
        document.upload_progress = 50

        try:
            if file_type == FileType.CSV:
                document.extracted_data = await self.process_csv(content, operative_date)
            else:
                document.extracted_data = await self.process_image(content, filename, file_type, operative_date)
        except PipelineError as e:
            LOGGER.error(
                f"Document processing failed: {e}",
                extra={"document_id": document.id, "filename": filename}
            )
            document.status = UploadStatus.ERROR
            document.error = str(e)
            return document

        document.status = UploadStatus.EXTRACTED
        document.upload_progress = 100
        LOGGER.info(
            "Document extracted",
            extra={
                "document_id": document.id,
                "document_type": document.extracted_data.document_type.value,
                "total": document.extracted_data.total_count,
                "errors": document.extracted_data.error_count,
            }
        )
        return document

    async def process_csv(self, content: bytes, operative_date: date) -> ExtractedData:
        table = parse_csv_bytes(content)

        document_type = await self.classifier.classify(
            table.headers, table.rows[:settings.ingestion.sample_rows]
        )
        if document_type == DocumentType.UNKNOWN:
            raise UnknownDocumentTypeError("Could not determine document type from CSV structure")

        column_mapping = await self.column_mapper.map_columns(document_type, table.headers, table.rows[0])
        LOGGER.info(
            f"Mapped columns for {document_type.value}",
            extra={"mapping": column_mapping}
        )

        warnings: List[str] = []
        unmapped = [h for h in table.headers if h not in column_mapping]
        if unmapped:
            warnings.append(f"Unmapped columns ignored: {', '.join(unmapped)}")

        rows = transform_rows_to_entities(table.rows, column_mapping)

        entities: List[ExtractedEntity] = []
        for fields in rows:
            entities.append(
                await self.validation_service.validate_entity(document_type, fields, operative_date)
            )

        return build_extracted_data(
            document_type,
            entities,
            confidence=settings.ingestion.csv_confidence,
            warnings=warnings,
            column_mapping=column_mapping,
        )

    async def process_image(
        self,
        content: bytes,
        filename: str,
        file_type: FileType,
        operative_date: date,
    ) -> ExtractedData:
        if self.image_extractor is None:
            raise ImageExtractionError("Image extraction requires OPENAI_API_KEY to be configured")

        fields = await self.image_extractor.extract(content, filename, file_type)
        entity = await self.validation_service.validate_entity(
            DocumentType.CERTIFICATE, fields, operative_date
        )

        return build_extracted_data(
            DocumentType.CERTIFICATE,
            [entity],
            confidence=settings.ingestion.ocr_confidence,
            warnings=[OCR_WARNING],
        )

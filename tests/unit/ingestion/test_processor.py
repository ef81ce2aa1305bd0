"""Unit tests for the document processing pipeline."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from mro_ops.core.exceptions import ImageExtractionError, UnsupportedFileTypeError
from mro_ops.schemas.ingestion import (
    DocumentType,
    EntityStatus,
    ExtractedEntity,
    FileType,
    UploadStatus,
    ValidationResult,
)
from mro_ops.services.ingestion.processor import (
    OCR_WARNING,
    DocumentProcessingService,
    get_file_type,
    summarize_extraction,
)

OPERATIVE_DATE = date(2025, 5, 10)


def echo_validation(statuses):
    """validate_entity stand-in returning entities with the given statuses in turn."""
    remaining = list(statuses)

    async def _validate(document_type, fields, operative_date=None, entity_id=None):
        status = remaining.pop(0)
        return ExtractedEntity(
            type=document_type,
            fields=fields,
            validation=ValidationResult(is_valid=status != EntityStatus.ERROR),
            status=status,
        )

    return AsyncMock(side_effect=_validate)


@pytest.fixture
def validation_service():
    return AsyncMock()


@pytest.fixture
def processing_service(validation_service):
    return DocumentProcessingService(MagicMock(), validation_service=validation_service)


class TestGetFileType:

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("visits.csv", FileType.CSV),
            ("scan.JPG", FileType.IMAGE),
            ("scan.jpeg", FileType.IMAGE),
            ("scan.png", FileType.IMAGE),
            ("certificate.pdf", FileType.PDF),
        ],
    )
    def test_routes_by_extension(self, filename, expected):
        assert get_file_type(filename) == expected

    @pytest.mark.parametrize("filename", ["notes.docx", "README", "archive.csv.zip"])
    def test_rejects_other_extensions(self, filename):
        with pytest.raises(UnsupportedFileTypeError):
            get_file_type(filename)


class TestProcessCsv:

    def test_without_api_key_uses_keyword_strategies_only(self, processing_service):
        assert processing_service.llm_client is None
        assert processing_service.classifier.primary is None
        assert processing_service.column_mapper.primary is None
        assert processing_service.image_extractor is None

    @pytest.mark.asyncio
    async def test_maintenance_visit_csv(self, processing_service, validation_service, maintenance_visit_csv):
        validation_service.validate_entity = echo_validation([EntityStatus.WARNING, EntityStatus.ERROR])

        document = await processing_service.process_document(maintenance_visit_csv, "visits.csv", OPERATIVE_DATE)

        assert document.status == UploadStatus.EXTRACTED
        assert document.upload_progress == 100
        data = document.extracted_data
        assert data.document_type == DocumentType.MAINTENANCE_VISIT
        assert data.confidence == 0.9
        assert data.total_count == 2
        assert data.valid_count == 1
        assert data.error_count == 1
        assert data.column_mapping["Aircraft Reg"] == "aircraft_registration"
        assert data.entities[0].fields["visit_number"] == "MV-2025-001"
        # Blank cells are not carried into entities
        assert "remarks" not in data.entities[0].fields
        assert "total_hours" not in data.entities[1].fields

        first_call = validation_service.validate_entity.call_args_list[0]
        assert first_call.args[0] == DocumentType.MAINTENANCE_VISIT
        assert first_call.args[2] == OPERATIVE_DATE

    @pytest.mark.asyncio
    async def test_unknown_document_type(self, processing_service, validation_service):
        document = await processing_service.process_document(b"foo,bar\n1,2\n", "mystery.csv", OPERATIVE_DATE)

        assert document.status == UploadStatus.ERROR
        assert document.error == "Could not determine document type from CSV structure"
        assert document.extracted_data is None
        validation_service.validate_entity.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_csv(self, processing_service):
        document = await processing_service.process_document(b"Aircraft,Visit\n", "empty.csv", OPERATIVE_DATE)

        assert document.status == UploadStatus.ERROR
        assert document.error == "CSV file is empty"

    @pytest.mark.asyncio
    async def test_unsupported_file_raises(self, processing_service):
        with pytest.raises(UnsupportedFileTypeError):
            await processing_service.process_document(b"data", "notes.docx", OPERATIVE_DATE)

    @pytest.mark.asyncio
    async def test_llm_classifier_is_used_when_client_given(self, validation_service, employee_schedule_csv):
        client = AsyncMock()
        client.complete.side_effect = [
            "employee_schedule",
            '{"Employee ID": "employee_number", "Date": "assignment_date", "Support Code": "support_code"}',
        ]
        validation_service.validate_entity = echo_validation([EntityStatus.VALID])
        service = DocumentProcessingService(MagicMock(), llm_client=client, validation_service=validation_service)

        document = await service.process_document(employee_schedule_csv, "roster.csv", OPERATIVE_DATE)

        data = document.extracted_data
        assert data.document_type == DocumentType.EMPLOYEE_SCHEDULE
        assert data.entities[0].fields == {
            "employee_number": "E-1007",
            "assignment_date": "2025-05-10",
            "support_code": "AV",
        }
        assert data.warnings == ["Unmapped columns ignored: Name, Notes"]


class TestProcessImage:

    @pytest.mark.asyncio
    async def test_certificate_image(self, validation_service):
        extractor = AsyncMock()
        extractor.extract.return_value = {"employee_name": "John Smith", "certificate_number": "C-1"}
        validation_service.validate_entity = echo_validation([EntityStatus.VALID])
        service = DocumentProcessingService(
            MagicMock(), validation_service=validation_service, image_extractor=extractor
        )

        document = await service.process_document(b"\x89PNG...", "cert.png", OPERATIVE_DATE)

        assert document.status == UploadStatus.EXTRACTED
        data = document.extracted_data
        assert data.document_type == DocumentType.CERTIFICATE
        assert data.confidence == 0.85
        assert data.warnings == [OCR_WARNING]
        assert data.total_count == 1
        extractor.extract.assert_awaited_once_with(b"\x89PNG...", "cert.png", FileType.IMAGE)

    @pytest.mark.asyncio
    async def test_extraction_failure_marks_document_error(self, validation_service):
        extractor = AsyncMock()
        extractor.extract.side_effect = ImageExtractionError("Failed to extract certificate data from image: bad")
        service = DocumentProcessingService(
            MagicMock(), validation_service=validation_service, image_extractor=extractor
        )

        document = await service.process_document(b"%PDF", "cert.pdf", OPERATIVE_DATE)

        assert document.status == UploadStatus.ERROR
        assert document.error.startswith("Failed to extract certificate data")

    @pytest.mark.asyncio
    async def test_without_vision_client(self, processing_service):
        document = await processing_service.process_document(b"\xff\xd8", "cert.jpg", OPERATIVE_DATE)

        assert document.status == UploadStatus.ERROR
        assert "OPENAI_API_KEY" in document.error


class TestSummarizeExtraction:

    @pytest.mark.asyncio
    async def test_summary_message(self, processing_service, validation_service, maintenance_visit_csv):
        validation_service.validate_entity = echo_validation([EntityStatus.VALID, EntityStatus.ERROR])

        document = await processing_service.process_document(maintenance_visit_csv, "visits.csv", OPERATIVE_DATE)

        assert summarize_extraction(document) == (
            "I've extracted 2 maintenance visit record(s) from your CSV. 1 ready, 1 with errors."
        )

"""Unit tests for document type classification and column mapping."""

from unittest.mock import AsyncMock

import pytest

from mro_ops.core.exceptions import APIClientError
from mro_ops.schemas.ingestion import DocumentType
from mro_ops.services.ingestion.classification import (
    DocumentTypeClassifier,
    LLMClassificationStrategy,
    detect_document_type_by_keywords,
    normalize_header,
)
from mro_ops.services.ingestion.column_mapping import (
    ColumnMapper,
    LLMColumnMappingStrategy,
    map_columns_by_keywords,
)

VISIT_HEADERS = ["Aircraft Reg", "Visit #", "Check Type", "Date In", "Date Out", "Status", "Hangar", "Hours", "Remarks"]
SCHEDULE_HEADERS = ["Employee ID", "Name", "Date", "Support Code", "Notes"]
CERTIFICATE_HEADERS = ["Employee", "Certificate No", "Authorization", "Issued", "Expiry"]


class TestKeywordClassification:

    def test_normalize_header(self):
        assert normalize_header("Date In") == "datein"
        assert normalize_header(" Visit #") == "visit"

    @pytest.mark.parametrize(
        "headers, expected",
        [
            (VISIT_HEADERS, DocumentType.MAINTENANCE_VISIT),
            (SCHEDULE_HEADERS, DocumentType.EMPLOYEE_SCHEDULE),
            (CERTIFICATE_HEADERS, DocumentType.CERTIFICATE),
            (["Aircraft Registration", "Model", "Serial"], DocumentType.AIRCRAFT),
            (["foo", "bar"], DocumentType.UNKNOWN),
        ],
    )
    def test_detects_document_types(self, headers, expected):
        assert detect_document_type_by_keywords(headers) == expected


class TestDocumentTypeClassifier:

    @pytest.mark.asyncio
    async def test_llm_answer_is_used(self):
        client = AsyncMock()
        client.complete.return_value = "  Certificate\n"
        classifier = DocumentTypeClassifier(primary=LLMClassificationStrategy(client))

        result = await classifier.classify(["a", "b"], [{"a": "1"}])

        assert result == DocumentType.CERTIFICATE

    @pytest.mark.asyncio
    async def test_falls_back_to_keywords_when_llm_fails(self):
        client = AsyncMock()
        client.complete.side_effect = APIClientError("timeout")
        classifier = DocumentTypeClassifier(primary=LLMClassificationStrategy(client))

        result = await classifier.classify(VISIT_HEADERS, [])

        assert result == DocumentType.MAINTENANCE_VISIT

    @pytest.mark.asyncio
    async def test_falls_back_on_unrecognised_answer(self):
        client = AsyncMock()
        client.complete.return_value = "This looks like a maintenance_visit file"
        classifier = DocumentTypeClassifier(primary=LLMClassificationStrategy(client))

        result = await classifier.classify(SCHEDULE_HEADERS, [])

        assert result == DocumentType.EMPLOYEE_SCHEDULE

    @pytest.mark.asyncio
    async def test_fallback_ignores_sample_rows(self):
        classifier = DocumentTypeClassifier()
        rows_a = [{"Aircraft Reg": "A6-EDA"}]
        rows_b = [{"Aircraft Reg": "certificate expiry employee"}]

        assert await classifier.classify(VISIT_HEADERS, rows_a) == await classifier.classify(VISIT_HEADERS, rows_b)

    @pytest.mark.asyncio
    async def test_only_sample_rows_are_sent(self):
        client = AsyncMock()
        client.complete.return_value = "aircraft"
        strategy = LLMClassificationStrategy(client)
        strategy.classify = AsyncMock(return_value=DocumentType.AIRCRAFT)
        classifier = DocumentTypeClassifier(primary=strategy)

        rows = [{"a": str(i)} for i in range(10)]
        await classifier.classify(["a"], rows)

        _, sent_rows = strategy.classify.call_args.args
        assert len(sent_rows) == 3


class TestColumnMapping:

    def test_keyword_mapping_for_visits(self):
        mapping = map_columns_by_keywords(DocumentType.MAINTENANCE_VISIT, VISIT_HEADERS)

        assert mapping == {
            "Aircraft Reg": "aircraft_registration",
            "Visit #": "visit_number",
            "Check Type": "check_type",
            "Date In": "date_in",
            "Date Out": "date_out",
            "Status": "status",
            "Hangar": "hangar",
            "Hours": "total_hours",
            "Remarks": "remarks",
        }

    def test_keyword_mapping_for_schedules(self):
        mapping = map_columns_by_keywords(DocumentType.EMPLOYEE_SCHEDULE, SCHEDULE_HEADERS)

        assert mapping == {
            "Employee ID": "employee_number",
            "Name": "employee_name",
            "Date": "assignment_date",
            "Support Code": "support_code",
            "Notes": "assignment_notes",
        }

    def test_each_header_claimed_once(self):
        mapping = map_columns_by_keywords(DocumentType.MAINTENANCE_VISIT, VISIT_HEADERS)
        assert len(set(mapping.values())) == len(mapping)

    def test_keyword_mapping_is_idempotent(self):
        first = map_columns_by_keywords(DocumentType.CERTIFICATE, CERTIFICATE_HEADERS)
        second = map_columns_by_keywords(DocumentType.CERTIFICATE, CERTIFICATE_HEADERS)
        assert first == second

    @pytest.mark.asyncio
    async def test_llm_mapping_filters_unknown_headers_and_fields(self):
        client = AsyncMock()
        client.complete.return_value = (
            'Here you go:\n```json\n{"Aircraft Reg": "aircraft_registration", '
            '"Ghost": "visit_number", "Status": "not_a_field"}\n```'
        )
        mapper = ColumnMapper(primary=LLMColumnMappingStrategy(client))

        mapping = await mapper.map_columns(DocumentType.MAINTENANCE_VISIT, VISIT_HEADERS, {})

        assert mapping == {"Aircraft Reg": "aircraft_registration"}

    @pytest.mark.asyncio
    async def test_falls_back_when_llm_returns_no_json(self):
        client = AsyncMock()
        client.complete.return_value = "I cannot map these columns."
        mapper = ColumnMapper(primary=LLMColumnMappingStrategy(client))

        mapping = await mapper.map_columns(DocumentType.EMPLOYEE_SCHEDULE, SCHEDULE_HEADERS, {})

        assert mapping == map_columns_by_keywords(DocumentType.EMPLOYEE_SCHEDULE, SCHEDULE_HEADERS)

    @pytest.mark.asyncio
    async def test_falls_back_when_llm_raises(self):
        client = AsyncMock()
        client.complete.side_effect = RuntimeError("boom")
        mapper = ColumnMapper(primary=LLMColumnMappingStrategy(client))

        mapping = await mapper.map_columns(DocumentType.MAINTENANCE_VISIT, VISIT_HEADERS, {})

        assert mapping["Date In"] == "date_in"

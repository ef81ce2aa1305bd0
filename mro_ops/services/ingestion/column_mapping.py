"""Column mapping from CSV headers to canonical entity fields."""

import json
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from mro_ops.core.config import settings
from mro_ops.core.llm_client import ChatCompletionClient
from mro_ops.prompts.system_prompts import COLUMN_MAPPING_PROMPT, COLUMN_MAPPING_SYSTEM_PROMPT
from mro_ops.schemas.ingestion import DocumentType
from mro_ops.services.ingestion.classification import normalize_header
from mro_ops.utils.json_parser import extract_json_object
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Canonical fields per document type, in mapping priority order
SCHEMA_TEMPLATES: Dict[DocumentType, Dict[str, str]] = {
    DocumentType.MAINTENANCE_VISIT: {
        "aircraft_registration": "Aircraft registration number",
        "visit_number": "Unique visit identifier (e.g., MV-2026-025)",
        "check_type": "Type of check (A-Check, B-Check, C-Check, etc.)",
        "date_in": "Date aircraft entered maintenance",
        "date_out": "Date aircraft will leave maintenance",
        "status": "Status (In Progress, Scheduled, Completed)",
        "hangar": "Hangar name or number",
        "total_hours": "Total maintenance hours",
        "remarks": "Additional notes",
    },
    DocumentType.EMPLOYEE_SCHEDULE: {
        "employee_number": "Employee ID or number (e.g., E-12345)",
        "employee_name": "Employee full name",
        "assignment_date": "Date of assignment",
        "support_code": "Support code (AV, L, TR, MV)",
        "assignment_notes": "Assignment details or visit number",
    },
    DocumentType.CERTIFICATE: {
        "employee_number": "Employee ID or number",
        "employee_name": "Employee full name",
        "certificate_number": "Certificate or authorization number",
        "authorization_type": "Type of authorization (EASA, FAA, GCAA, etc.)",
        "aircraft_model": "Aircraft model or type",
        "issued_on": "Issue date",
        "expiry_date": "Expiration date",
        "issuing_authority": "Issuing organization",
    },
    DocumentType.AIRCRAFT: {
        "registration": "Aircraft registration",
        "aircraft_code": "Internal aircraft code",
        "aircraft_name": "Aircraft name or identifier",
        "model": "Aircraft model",
        "serial_number": "Serial number",
        "customer": "Customer or operator",
    },
}

KEYWORD_RULES: Dict[DocumentType, Dict[str, List[str]]] = {
    DocumentType.MAINTENANCE_VISIT: {
        "aircraft_registration": ["aircraft", "registration", "reg", "tail"],
        "visit_number": ["visit", "visitnumber", "visitno"],
        "check_type": ["check", "checktype", "type"],
        "date_in": ["datein", "indate", "startin", "arrival"],
        "date_out": ["dateout", "outdate", "departure", "completion"],
        "status": ["status", "state", "progress"],
        "hangar": ["hangar", "bay", "location"],
        "total_hours": ["hours", "totalhours", "manhours"],
        "remarks": ["remarks", "notes", "comments", "description"],
    },
    DocumentType.EMPLOYEE_SCHEDULE: {
        "employee_number": ["employee", "empno", "number", "id"],
        "employee_name": ["name", "employeename", "fullname"],
        "assignment_date": ["date", "assignmentdate", "scheduledate"],
        "support_code": ["support", "code", "supportcode", "type"],
        "assignment_notes": ["assignment", "notes", "visit", "task"],
    },
    DocumentType.CERTIFICATE: {
        "employee_number": ["employee", "empno", "number", "id"],
        "employee_name": ["name", "employeename", "fullname"],
        "certificate_number": ["certificate", "certno", "certnumber", "license"],
        "authorization_type": ["authorization", "authtype", "type", "category"],
        "aircraft_model": ["aircraft", "model", "type", "rating"],
        "issued_on": ["issued", "issuedate", "issueon", "dateissued"],
        "expiry_date": ["expiry", "expirydate", "expires", "expiration"],
        "issuing_authority": ["issuing", "authority", "issuedby", "organization"],
    },
    DocumentType.AIRCRAFT: {
        "registration": ["registration", "reg", "tail"],
        "aircraft_code": ["code", "aircraftcode"],
        "aircraft_name": ["name", "aircraftname"],
        "model": ["model", "type"],
        "serial_number": ["serial", "msn"],
        "customer": ["customer", "operator", "owner"],
    },
}


def map_columns_by_keywords(document_type: DocumentType, headers: List[str]) -> Dict[str, str]:
    """Keyword fallback: ``{source header: canonical field}``.

    Fields are visited in schema order; each takes the first header (in
    source order) that no earlier field has claimed and whose normalized name
    contains one of the field's keyword stems.
    """
    rules = KEYWORD_RULES.get(document_type, {})
    normalized = [(header, normalize_header(header)) for header in headers]
    mapping: Dict[str, str] = {}

    for field_name, keywords in rules.items():
        stems = [normalize_header(kw) for kw in keywords]
        for header, norm in normalized:
            if header in mapping:
                continue
            if any(stem in norm for stem in stems):
                mapping[header] = field_name
                break

    return mapping


class ColumnMappingStrategy(ABC):
    """Strategy contract: kind + headers + sample row -> column mapping (or None)."""

    name: str = "base"

    @abstractmethod
    async def map_columns(
        self,
        document_type: DocumentType,
        headers: List[str],
        sample_row: Dict[str, str],
    ) -> Optional[Dict[str, str]]:
        """Return ``{header: field}``, or None when the strategy has no answer."""


class KeywordColumnMappingStrategy(ColumnMappingStrategy):
    name = "keyword"

    async def map_columns(self, document_type, headers, sample_row):
        return map_columns_by_keywords(document_type, headers)


class LLMColumnMappingStrategy(ColumnMappingStrategy):
    """Asks the chat model for a JSON header-to-field mapping."""

    name = "llm"

    def __init__(self, client: ChatCompletionClient, max_tokens: Optional[int] = None):
        self.client = client
        self.max_tokens = max_tokens or settings.llm.mapping_max_tokens

    def build_prompt(self, document_type: DocumentType, headers: List[str], sample_row: Dict[str, str]) -> str:
        schema = SCHEMA_TEMPLATES.get(document_type, {})
        return COLUMN_MAPPING_PROMPT.format(
            document_type=document_type.value,
            headers=", ".join(headers),
            sample_row=json.dumps(sample_row),
            schema_fields="\n".join(f"- {name}: {desc}" for name, desc in schema.items()),
        )

    async def map_columns(self, document_type, headers, sample_row):
        response = await self.client.complete(
            messages=[
                {"role": "system", "content": COLUMN_MAPPING_SYSTEM_PROMPT},
                {"role": "user", "content": self.build_prompt(document_type, headers, sample_row)},
            ],
            max_tokens=self.max_tokens,
        )

        raw_mapping = extract_json_object(response)
        if raw_mapping is None:
            return None

        schema = SCHEMA_TEMPLATES.get(document_type, {})
        header_set = set(headers)
        mapping = {
            source: target
            for source, target in raw_mapping.items()
            if source in header_set and isinstance(target, str) and target in schema
        }

        dropped = len(raw_mapping) - len(mapping)
        if dropped:
            LOGGER.info(
                "Dropped LLM mapping entries with unknown headers or fields",
                extra={"dropped": dropped}
            )
        return mapping


class ColumnMapper:
    """Maps columns with the LLM first and keyword rules as fallback."""

    def __init__(
        self,
        primary: Optional[ColumnMappingStrategy] = None,
        fallback: Optional[ColumnMappingStrategy] = None,
    ):
        self.primary = primary
        self.fallback = fallback or KeywordColumnMappingStrategy()

    async def map_columns(
        self,
        document_type: DocumentType,
        headers: List[str],
        sample_row: Dict[str, str],
    ) -> Dict[str, str]:
        if self.primary is not None:
            try:
                mapping = await self.primary.map_columns(document_type, headers, sample_row)
                if mapping:
                    return mapping
                LOGGER.warning("AI column mapping returned empty, using keyword fallback")
            except Exception as e:
                LOGGER.warning(
                    f"Error mapping columns, falling back to keyword-based mapping: {e}",
                    exc_info=True
                )

        mapping = await self.fallback.map_columns(document_type, headers, sample_row)
        LOGGER.info("Keyword-based mapping created", extra={"mapping": mapping})
        return mapping

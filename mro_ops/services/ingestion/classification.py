"""Document type classification for uploaded CSV files.

Two interchangeable strategies share one contract (headers plus a few sample
rows in, a ``DocumentType`` out):

- ``LLMClassificationStrategy`` asks the chat model for a single token.
- ``KeywordClassificationStrategy`` tests header keyword conjunctions. It is
  pure and deterministic.

``DocumentTypeClassifier`` runs the LLM strategy first and falls back to the
keyword strategy on any failure or unrecognised answer.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from mro_ops.core.config import settings
from mro_ops.core.llm_client import ChatCompletionClient
from mro_ops.prompts.system_prompts import CLASSIFICATION_PROMPT, CLASSIFICATION_SYSTEM_PROMPT
from mro_ops.schemas.ingestion import DocumentType
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

KNOWN_DOCUMENT_TYPES = {
    DocumentType.MAINTENANCE_VISIT.value,
    DocumentType.EMPLOYEE_SCHEDULE.value,
    DocumentType.CERTIFICATE.value,
    DocumentType.AIRCRAFT.value,
}


def normalize_header(header: str) -> str:
    """Lowercase and strip everything but ``[a-z0-9]`` (``"Date In"`` -> ``"datein"``)."""
    return re.sub(r"[^a-z0-9]", "", str(header).lower())


def _any_contains(headers: Sequence[str], *stems: str) -> bool:
    return any(stem in header for header in headers for stem in stems)


def detect_document_type_by_keywords(headers: Sequence[str]) -> DocumentType:
    """Classify by header keywords alone; sample rows never influence the result."""
    normalized = [normalize_header(h) for h in headers]

    if (
        _any_contains(normalized, "aircraft", "registration")
        and _any_contains(normalized, "visit", "check")
        and _any_contains(normalized, "datein", "dateout")
    ):
        return DocumentType.MAINTENANCE_VISIT

    if (
        _any_contains(normalized, "employee")
        and _any_contains(normalized, "date", "assignment")
        and _any_contains(normalized, "support", "code")
    ):
        return DocumentType.EMPLOYEE_SCHEDULE

    if (
        _any_contains(normalized, "certificate", "authorization")
        and _any_contains(normalized, "expiry", "issued")
    ):
        return DocumentType.CERTIFICATE

    if (
        any("registration" in h and "aircraft" in h for h in normalized)
        and _any_contains(normalized, "model", "serial")
    ):
        return DocumentType.AIRCRAFT

    return DocumentType.UNKNOWN


class ClassificationStrategy(ABC):
    """Strategy contract: headers + sample rows -> document type (or None)."""

    name: str = "base"

    @abstractmethod
    async def classify(
        self,
        headers: List[str],
        sample_rows: List[Dict[str, str]],
    ) -> Optional[DocumentType]:
        """Return a document type, or None when the strategy has no answer."""


class KeywordClassificationStrategy(ClassificationStrategy):
    name = "keyword"

    async def classify(self, headers, sample_rows):
        return detect_document_type_by_keywords(headers)


class LLMClassificationStrategy(ClassificationStrategy):
    """Asks the chat model to name the document type in one lowercase word."""

    name = "llm"

    def __init__(self, client: ChatCompletionClient, max_tokens: Optional[int] = None):
        self.client = client
        self.max_tokens = max_tokens or settings.llm.classification_max_tokens

    def build_prompt(self, headers: List[str], sample_rows: List[Dict[str, str]]) -> str:
        return CLASSIFICATION_PROMPT.format(
            headers=", ".join(headers),
            sample_row_1=json.dumps(sample_rows[0] if len(sample_rows) > 0 else {}),
            sample_row_2=json.dumps(sample_rows[1] if len(sample_rows) > 1 else {}),
        )

    async def classify(self, headers, sample_rows):
        response = await self.client.complete(
            messages=[
                {"role": "system", "content": CLASSIFICATION_SYSTEM_PROMPT},
                {"role": "user", "content": self.build_prompt(headers, sample_rows)},
            ],
            max_tokens=self.max_tokens,
        )
        answer = response.strip().lower()
        LOGGER.info("LLM classified document", extra={"answer": answer[:50]})

        if answer in KNOWN_DOCUMENT_TYPES:
            return DocumentType(answer)
        return None


class DocumentTypeClassifier:
    """Classifies a document with the LLM first and keywords as fallback."""

    def __init__(
        self,
        primary: Optional[ClassificationStrategy] = None,
        fallback: Optional[ClassificationStrategy] = None,
    ):
        self.primary = primary
        self.fallback = fallback or KeywordClassificationStrategy()

    async def classify(
        self,
        headers: List[str],
        sample_rows: List[Dict[str, str]],
    ) -> DocumentType:
        samples = sample_rows[:settings.ingestion.sample_rows]

        if self.primary is not None:
            try:
                result = await self.primary.classify(headers, samples)
                if result is not None:
                    return result
                LOGGER.warning(
                    "Document type not recognized, falling back to keyword matching",
                    extra={"strategy": self.primary.name}
                )
            except Exception as e:
                LOGGER.warning(
                    f"Document classification failed, falling back to keyword matching: {e}",
                    exc_info=True,
                    extra={"strategy": self.primary.name}
                )

        result = await self.fallback.classify(headers, samples)
        if result == DocumentType.UNKNOWN:
            LOGGER.warning("Could not detect document type even with keyword matching", extra={"headers": headers})
        else:
            LOGGER.info(f"Detected as {result.value} by keyword matching")
        return result

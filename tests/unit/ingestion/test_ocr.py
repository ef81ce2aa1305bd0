"""Unit tests for certificate image extraction."""

import base64
import io
from unittest.mock import AsyncMock

import pypdfium2 as pdfium
import pytest

from mro_ops.core.config import settings
from mro_ops.core.exceptions import ImageExtractionError
from mro_ops.schemas.ingestion import FileType
from mro_ops.services.ingestion.ocr import (
    CertificateImageExtractor,
    build_certificate_fields,
    file_to_data_url,
    rasterize_pdf_first_page,
)

VISION_REPLY = """```json
{
  "employee_name": "John Smith",
  "employee_number": "E-1007",
  "certificate_number": "UK.66.1234",
  "authorization_type": "EASA Part-66 Category B1.1",
  "aircraft_model": "A320 Family",
  "issued_on": "2024-06-01",
  "expiry_date": "2026-06-01",
  "issuing_authority": "UK CAA",
  "authorization_basis": null,
  "certificate_type": "Type Rating",
  "pages": 2,
  "remarks": null
}
```"""


def blank_pdf() -> bytes:
    pdf = pdfium.PdfDocument.new()
    pdf.new_page(200, 100)
    buffer = io.BytesIO()
    pdf.save(buffer)
    pdf.close()
    return buffer.getvalue()


class TestHelpers:

    def test_file_to_data_url(self):
        url = file_to_data_url(b"abc", "image/png")
        assert url == "data:image/png;base64," + base64.b64encode(b"abc").decode("ascii")

    def test_build_certificate_fields_drops_nulls(self):
        fields = build_certificate_fields({
            "employee_name": " John Smith ",
            "remarks": None,
            "pages": 2,
            "unexpected": "ignored",
        })

        assert fields == {
            "employee_name": "John Smith",
            "pages": 2,
            "authorization_basis": "Certificate",
        }

    def test_basis_falls_back_to_certificate_type(self):
        fields = build_certificate_fields({"certificate_type": "Type Rating"})
        assert fields["authorization_basis"] == "Type Rating"

    def test_rasterize_pdf_first_page(self):
        png = rasterize_pdf_first_page(blank_pdf(), scale=1.0)
        assert png.startswith(b"\x89PNG")


class TestCertificateImageExtractor:

    @pytest.mark.asyncio
    async def test_extracts_fields_from_vision_reply(self):
        client = AsyncMock()
        client.complete.return_value = VISION_REPLY
        extractor = CertificateImageExtractor(client)

        fields = await extractor.extract(b"\xff\xd8\xff", "certificate.jpg", FileType.IMAGE)

        assert fields["certificate_number"] == "UK.66.1234"
        assert fields["authorization_basis"] == "Type Rating"
        assert "remarks" not in fields

        kwargs = client.complete.call_args.kwargs
        assert kwargs["model"] == settings.llm.vision_model
        assert kwargs["max_tokens"] == 1000
        parts = kwargs["messages"][0]["content"]
        assert parts[1]["image_url"]["detail"] == "high"
        assert parts[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")

    @pytest.mark.asyncio
    async def test_pdf_is_sent_as_png(self):
        client = AsyncMock()
        client.complete.return_value = VISION_REPLY
        extractor = CertificateImageExtractor(client)

        await extractor.extract(blank_pdf(), "certificate.pdf", FileType.PDF)

        parts = client.complete.call_args.kwargs["messages"][0]["content"]
        assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_non_json_reply_raises(self):
        client = AsyncMock()
        client.complete.return_value = "I can't read this certificate."
        extractor = CertificateImageExtractor(client)

        with pytest.raises(ImageExtractionError, match="Failed to extract certificate data from image"):
            await extractor.extract(b"\x89PNG", "certificate.png", FileType.IMAGE)

    @pytest.mark.asyncio
    async def test_client_failure_raises(self):
        client = AsyncMock()
        client.complete.side_effect = RuntimeError("vision model unavailable")
        extractor = CertificateImageExtractor(client)

        with pytest.raises(ImageExtractionError, match="vision model unavailable"):
            await extractor.extract(b"\x89PNG", "certificate.png", FileType.IMAGE)

"""Certificate extraction from images and PDFs with a vision model."""

import base64
import io
from typing import Any, Dict, Optional

import pypdfium2 as pdfium

from mro_ops.core.config import settings
from mro_ops.core.exceptions import ImageExtractionError
from mro_ops.core.llm_client import ChatCompletionClient
from mro_ops.prompts.system_prompts import CERTIFICATE_VISION_PROMPT
from mro_ops.schemas.ingestion import FileType
from mro_ops.utils.json_parser import extract_json_object
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

IMAGE_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}

CERTIFICATE_KEYS = (
    "employee_name",
    "employee_number",
    "certificate_number",
    "authorization_type",
    "aircraft_model",
    "issued_on",
    "expiry_date",
    "issuing_authority",
    "authorization_basis",
    "certificate_type",
    "pages",
    "remarks",
)


def file_to_data_url(content: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 ``data:`` URL."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def rasterize_pdf_first_page(content: bytes, scale: float = 2.0) -> bytes:
    """Render the first PDF page to PNG bytes."""
    pdf = pdfium.PdfDocument(content)
    try:
        if len(pdf) == 0:
            raise ImageExtractionError("PDF has no pages")
        page = pdf[0]
        image = page.render(scale=scale).to_pil()
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
    finally:
        pdf.close()


def build_certificate_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep known certificate keys with non-null values.

    ``authorization_basis`` falls back to the certificate type, then to
    ``"Certificate"``.
    """
    fields: Dict[str, Any] = {}
    for key in CERTIFICATE_KEYS:
        value = data.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        fields[key] = value.strip() if isinstance(value, str) else value

    fields["authorization_basis"] = (
        fields.get("authorization_basis") or fields.get("certificate_type") or "Certificate"
    )
    return fields


class CertificateImageExtractor:
    """Sends a certificate image to the vision model and parses the JSON reply."""

    def __init__(
        self,
        client: ChatCompletionClient,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        self.client = client
        self.model = model or settings.llm.vision_model
        self.max_tokens = max_tokens or settings.llm.vision_max_tokens

    def to_data_url(self, content: bytes, filename: str, file_type: FileType) -> str:
        if file_type == FileType.PDF:
            return file_to_data_url(rasterize_pdf_first_page(content), "image/png")

        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        return file_to_data_url(content, IMAGE_MIME_TYPES.get(extension, "image/png"))

    async def extract(self, content: bytes, filename: str, file_type: FileType) -> Dict[str, Any]:
        """Extract certificate fields from an image or PDF.

        Raises:
            ImageExtractionError: If conversion, the model call or parsing fails
        """
        try:
            data_url = self.to_data_url(content, filename, file_type)
            response = await self.client.complete(
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": CERTIFICATE_VISION_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url, "detail": "high"}},
                        ],
                    }
                ],
                model=self.model,
                max_tokens=self.max_tokens,
            )

            data = extract_json_object(response)
            if data is None:
                raise ImageExtractionError("Vision model did not return a JSON object")

            fields = build_certificate_fields(data)
            LOGGER.info(
                "Extracted certificate data from image",
                extra={"filename": filename, "fields": list(fields.keys())}
            )
            return fields

        except Exception as e:
            LOGGER.error(f"Image OCR failed: {e}", exc_info=True, extra={"filename": filename})
            raise ImageExtractionError(f"Failed to extract certificate data from image: {e}", e) from e

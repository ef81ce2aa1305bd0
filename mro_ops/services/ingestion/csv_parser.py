"""CSV parsing for uploaded tabular documents."""

import csv
import io
from dataclasses import dataclass, field
from typing import Dict, List

from mro_ops.core.exceptions import DocumentParseError, EmptyDocumentError
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class ParsedTable:
    """Headers in source order and one ``{header: raw value}`` dict per row."""

    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def decode_csv_bytes(content: bytes) -> str:
    """Decode upload bytes as UTF-8, tolerating a leading BOM."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DocumentParseError(f"CSV file is not valid UTF-8: {e}", e) from e


def parse_csv_content(content: str) -> ParsedTable:
    """Parse comma-separated text whose first row holds the headers.

    Rows made only of blank cells are skipped. Cells beyond the header width
    are ignored and missing trailing cells read as empty strings.

    Raises:
        EmptyDocumentError: If there is no header row or no data rows
        DocumentParseError: If the text is not parseable CSV
    """
    if content.startswith("\ufeff"):
        content = content[1:]

    try:
        reader = csv.reader(io.StringIO(content))
        header_row = next(reader, None)
        if not header_row or not any(cell.strip() for cell in header_row):
            raise EmptyDocumentError("CSV file is empty")

        headers = [cell.strip() for cell in header_row]
        rows: List[Dict[str, str]] = []
        for record in reader:
            if not any(cell.strip() for cell in record):
                continue
            padded = record + [""] * (len(headers) - len(record))
            rows.append(dict(zip(headers, padded)))
    except csv.Error as e:
        raise DocumentParseError(f"CSV parsing failed: {e}", e) from e

    if not rows:
        raise EmptyDocumentError("CSV file is empty")

    LOGGER.info(
        "Parsed CSV document",
        extra={"header_count": len(headers), "row_count": len(rows)}
    )
    return ParsedTable(headers=headers, rows=rows)


def parse_csv_bytes(content: bytes) -> ParsedTable:
    return parse_csv_content(decode_csv_bytes(content))

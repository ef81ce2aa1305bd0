"""Unit tests for CSV parsing and row transformation."""

import pytest

from mro_ops.core.exceptions import DocumentParseError, EmptyDocumentError
from mro_ops.services.ingestion.csv_parser import parse_csv_bytes, parse_csv_content
from mro_ops.services.ingestion.transformer import transform_rows_to_entities


class TestParseCsv:

    def test_headers_and_rows(self, maintenance_visit_csv):
        table = parse_csv_bytes(maintenance_visit_csv)

        assert table.headers[0] == "Aircraft Reg"
        assert len(table.headers) == 9
        # Blank line skipped
        assert table.row_count == 2
        assert table.rows[0]["Visit #"] == "MV-2025-001"
        assert table.rows[1]["Remarks"] == "Cabin refit"

    def test_quoted_cells_keep_commas(self):
        table = parse_csv_content('Name,Remarks\nJohn,"Left wing, panel 3"\n')
        assert table.rows[0]["Remarks"] == "Left wing, panel 3"

    def test_short_rows_are_padded(self):
        table = parse_csv_content("A,B,C\n1,2\n")
        assert table.rows[0] == {"A": "1", "B": "2", "C": ""}

    def test_header_only_is_empty(self):
        with pytest.raises(EmptyDocumentError, match="CSV file is empty"):
            parse_csv_content("Aircraft,Visit\n")

    def test_blank_content_is_empty(self):
        with pytest.raises(EmptyDocumentError):
            parse_csv_content("\n\n")

    def test_invalid_utf8_raises_parse_error(self):
        with pytest.raises(DocumentParseError):
            parse_csv_bytes(b"Name\n\xff\xfe\xfa\n")


class TestTransformRows:

    def test_renames_columns_and_drops_blanks(self):
        rows = [
            {"Reg": " A6-EDA ", "Visit": "MV-1", "Notes": ""},
            {"Reg": "A6-EDB", "Visit": "   ", "Notes": "ok"},
        ]
        mapping = {"Reg": "aircraft_registration", "Visit": "visit_number", "Notes": "remarks"}

        entities = transform_rows_to_entities(rows, mapping)

        assert entities == [
            {"aircraft_registration": "A6-EDA", "visit_number": "MV-1"},
            {"aircraft_registration": "A6-EDB", "remarks": "ok"},
        ]

    def test_empty_mapping_yields_empty_entities(self):
        rows = [{"A": "1"}, {"A": "2"}]
        assert transform_rows_to_entities(rows, {}) == [{}, {}]

    def test_unmapped_columns_are_ignored(self):
        entities = transform_rows_to_entities([{"A": "1", "B": "2"}], {"A": "field_a"})
        assert entities == [{"field_a": "1"}]

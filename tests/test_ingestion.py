import io
import sys
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

sys.path.append(str(Path(__file__).resolve().parents[1]))
sys.path.append(str(Path(__file__).resolve().parents[1] / "scripts"))

from excelflow.core.errors import FailureKind
from excelflow.core.schema import RecordTable, RowTable, parsed_table_adapter, unique_headers
from excelflow.core.validation import XLS_MEDIA_TYPE, XLSX_MEDIA_TYPE, Accepted, Rejected, validate
from excelflow.domain import RawFile
from excelflow.extractors.detect import detect
from excelflow.extractors.sheet_reader import ParseFailure, parse
from make_sample_sheet import write_sample

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def _workbook_bytes(*rows: list, extra_sheet: list | None = None) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Data"
    for row in rows:
        sheet.append(row)
    if extra_sheet is not None:
        workbook.create_sheet("Second").append(extra_sheet)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# ----------------------------------------------------------------------
# validate
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "filename, content_type",
    [
        ("report.bin", XLSX_MEDIA_TYPE),
        ("legacy", XLS_MEDIA_TYPE),
        ("export", "text/csv; charset=utf-8"),
        ("REPORT.XLSX", ""),
        ("old.xls", "application/octet-stream"),
        ("data.csv", "text/plain"),
    ],
)
def test_validate_accepts_media_type_or_extension(filename, content_type):
    file = RawFile(filename=filename, content=b"", content_type=content_type)
    assert validate(file) == Accepted(file)


def test_validate_rejects_unknown_files_without_raising():
    file = RawFile(filename="notes.txt", content=b"hello", content_type="text/plain")
    result = validate(file)
    assert isinstance(result, Rejected)
    assert result.failure.kind is FailureKind.INVALID_FORMAT
    assert result.failure.filename == "notes.txt"
    assert "notes.txt" in result.failure.message


def test_validate_csv_media_type_can_be_disabled():
    file = RawFile(filename="export", content=b"a,b", content_type="text/csv")
    assert isinstance(validate(file, accept_csv=False), Rejected)
    assert isinstance(validate(file, accept_csv=True), Accepted)


# ----------------------------------------------------------------------
# parse
# ----------------------------------------------------------------------
def test_detect_formats():
    assert detect(_workbook_bytes(["a"])).format == "xlsx"
    assert detect(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1rest").format == "xls"
    assert detect(b"\xef\xbb\xbfa,b\n1,2").text == "a,b\n1,2"
    assert detect(b"\x00\x01\xff\xfe").format == "unknown"


def test_parse_csv_positional_rows():
    table = parse(b"a,b\n1,2\n")
    assert isinstance(table, RowTable)
    assert table.headers == ["a", "b"]
    assert table.rows == [["1", "2"]]
    assert table.as_records() == [{"a": "1", "b": "2"}]


def test_parse_csv_keyed_records():
    table = parse(b"a,b\n1,2\n", shape="records")
    assert isinstance(table, RecordTable)
    assert table.headers == ["a", "b"]
    assert table.records == [{"a": "1", "b": "2"}]
    assert table.as_rows() == [["1", "2"]]


def test_parse_trims_trailing_cells_and_drops_blank_rows():
    table = parse(b"a,b,c\n1,,\n\n,,\n4,5,6,7\n")
    assert isinstance(table, RowTable)
    assert table.headers == ["a", "b", "c", ""]
    assert table.rows == [["1"], ["4", "5", "6", "7"]]
    assert table.as_rows()[0] == ["1", None, None, None]
    assert all(len(row) <= len(table.headers) for row in table.rows)


def test_parse_records_with_duplicate_and_blank_headers():
    table = parse(b"a,a,,\n1,2,3,4\n", shape="records")
    assert isinstance(table, RecordTable)
    assert table.headers == ["a", "a_1", "__EMPTY", "__EMPTY_1"]
    assert table.records[0] == {"a": "1", "a_1": "2", "__EMPTY": "3", "__EMPTY_1": "4"}


def test_unique_headers_never_collides():
    assert unique_headers(["a", "a", "a_1"]) == ["a", "a_1", "a_1_1"]


def test_parse_xlsx_keeps_cell_types_and_first_sheet_only():
    content = _workbook_bytes(
        ["Name", "Qty", "Price", "Active", "Seen"],
        ["widget", 3, 2.5, True, datetime(2024, 1, 5)],
        ["gadget", 4],
        extra_sheet=["never", "read"],
    )
    table = parse(content, filename="stock.xlsx")
    assert isinstance(table, RowTable)
    assert table.headers == ["Name", "Qty", "Price", "Active", "Seen"]
    assert table.rows == [
        ["widget", 3, 2.5, True, "2024-01-05T00:00:00"],
        ["gadget", 4],
    ]


def test_parse_csv_keeps_very_long_cells():
    long_note = "x" * 200_000
    table = parse(b"note,qty\n" + long_note.encode() + b",2\n")
    assert isinstance(table, RowTable)
    assert table.headers == ["note", "qty"]
    assert len(table.rows[0][0]) == 200_000
    assert table.rows[0][1] == "2"


def test_parse_csv_quoted_fields_with_commas_and_newlines():
    table = parse(b'name,comment\nbolt,"short, sharp"\nnut,"two\nlines",extra\n')
    assert isinstance(table, RowTable)
    assert table.headers == ["name", "comment", ""]
    assert table.rows == [["bolt", "short, sharp"], ["nut", "two\nlines", "extra"]]


def test_parse_windows_1252_csv():
    table = parse("name,city\nJos\u00e9,M\u00fcnchen\n".encode("cp1252"))
    assert isinstance(table, RowTable)
    assert table.rows == [["Jos\u00e9", "M\u00fcnchen"]]


def test_parse_utf16_csv_with_byte_order_mark():
    table = parse("name,qty\nbolt,10\n".encode("utf-16"))
    assert isinstance(table, RowTable)
    assert table.headers == ["name", "qty"]
    assert table.rows == [["bolt", "10"]]


def test_parse_legacy_xls_reads_first_sheet_only():
    content = (FIXTURES / "legacy_production.xls").read_bytes()
    assert detect(content).engine == "xlrd"
    table = parse(content, filename="legacy_production.xls")
    assert isinstance(table, RowTable)
    assert table.headers == ["Machine", "Shift", "Active"]
    assert table.rows == [["HD-20", "Day", True], ["HD-16", "Night", False]]


def test_parse_sample_workbook(tmp_path):
    path = write_sample(tmp_path / "sample.xlsx", rows=3, extra_sheet=True)
    table = parse(path.read_bytes())
    assert isinstance(table, RowTable)
    assert table.headers == ["Machine", "Shift", "Operator", "Quantity"]
    assert table.row_count == 3
    assert table.rows[0] == ["HD-10", "Day", "Operator 1", 1000]


def test_parse_sample_csv(tmp_path):
    path = write_sample(tmp_path / "sample.csv", rows=2)
    table = parse(path.read_bytes())
    assert isinstance(table, RowTable)
    assert table.rows[1] == ["HD-11", "Night", "Operator 2", "1025"]


@pytest.mark.parametrize(
    "content",
    [
        b"",
        b"   \n\n",
        b"a,b\n",
        b"\n\na,b\n,\n",
    ],
)
def test_parse_reports_empty_file(content):
    result = parse(content, filename="empty.csv")
    assert isinstance(result, ParseFailure)
    assert result.failure.kind is FailureKind.EMPTY_FILE
    assert result.failure.filename == "empty.csv"


def test_parse_empty_workbook_is_empty_file():
    result = parse(_workbook_bytes())
    assert isinstance(result, ParseFailure)
    assert result.failure.kind is FailureKind.EMPTY_FILE


def test_parse_header_only_workbook_is_empty_file():
    result = parse(_workbook_bytes(["a", "b"]))
    assert isinstance(result, ParseFailure)
    assert result.failure.kind is FailureKind.EMPTY_FILE


@pytest.mark.parametrize(
    "content",
    [
        b"PK\x03\x04this is not a zip archive",
        b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1not really a workbook",
        b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe",
        bytes(range(256)),
    ],
)
def test_parse_reports_corrupt_file_without_raising(content):
    result = parse(content, filename="broken.xlsx")
    assert isinstance(result, ParseFailure)
    assert result.failure.kind is FailureKind.CORRUPT_FILE


def test_parsed_table_union_is_discriminated():
    rows = parsed_table_adapter.validate_python({"kind": "rows", "headers": ["a"], "rows": [["1"]]})
    records = parsed_table_adapter.validate_python({"kind": "records", "headers": ["a"], "records": [{"a": 1}]})
    assert isinstance(rows, RowTable)
    assert isinstance(records, RecordTable)
    assert records.records == [{"a": 1}]


def test_row_table_rejects_rows_wider_than_headers():
    with pytest.raises(ValueError):
        RowTable(headers=["a"], rows=[["1", "2"]])

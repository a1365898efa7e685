from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from excelflow.core.errors import FailureKind, IngestionFailure
from excelflow.domain import RawFile

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MEDIA_TYPE = "application/vnd.ms-excel"
CSV_MEDIA_TYPE = "text/csv"

SPREADSHEET_MEDIA_TYPES = frozenset({XLSX_MEDIA_TYPE, XLS_MEDIA_TYPE})
SPREADSHEET_SUFFIXES = frozenset({".xlsx", ".xls", ".csv"})


@dataclass(frozen=True, slots=True)
class Accepted:
    file: RawFile


@dataclass(frozen=True, slots=True)
class Rejected:
    failure: IngestionFailure


ValidationResult = Union[Accepted, Rejected]


def accepted_media_types(accept_csv: bool = True) -> frozenset[str]:
    if accept_csv:
        return SPREADSHEET_MEDIA_TYPES | {CSV_MEDIA_TYPE}
    return SPREADSHEET_MEDIA_TYPES


def _media_type(content_type: str | None) -> str:
    # "text/csv; charset=utf-8" -> "text/csv"
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate(file: RawFile, *, accept_csv: bool = True) -> ValidationResult:
    """Check the declared media type, falling back to the filename extension.

    Browsers report media types inconsistently, so a recognised extension is
    enough on its own.
    """

    if _media_type(file.content_type) in accepted_media_types(accept_csv):
        return Accepted(file)
    if file.suffix in SPREADSHEET_SUFFIXES:
        return Accepted(file)
    return Rejected(
        IngestionFailure(
            kind=FailureKind.INVALID_FORMAT,
            message=f"Invalid file type: {file.filename}. Please upload a .xlsx, .xls or .csv file.",
            filename=file.filename,
        )
    )

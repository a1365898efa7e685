"""Decode an uploaded spreadsheet into a :class:`ParsedTable`.

Only the first sheet of a workbook is read; any further sheets are ignored.
The first non-blank row is the header row and every following non-blank row
is a data row. Decoder errors never leave this module: they are returned as
:class:`ParseFailure` values.
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

import numpy as np
import pandas as pd

from excelflow.core.errors import FailureKind, IngestionFailure
from excelflow.core.schema import Cell, RecordTable, RowTable, TableShape, build_table
from excelflow.extractors.detect import DetectedFormat, detect

logger = logging.getLogger(__name__)

CORRUPT_MESSAGE = "Failed to parse the file. It might be corrupted or in an unsupported format."
EMPTY_MESSAGE = "The selected file is empty."


@dataclass(frozen=True, slots=True)
class ParseFailure:
    failure: IngestionFailure


def _failure(kind: FailureKind, message: str, filename: str | None) -> ParseFailure:
    return ParseFailure(IngestionFailure(kind=kind, message=message, filename=filename))


def _normalise_cell(value: Any) -> Cell:
    if value is None:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return value if value != "" else None
    if value is pd.NaT:
        return None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return str(value)


def _trim(row: list[Cell]) -> list[Cell]:
    end = len(row)
    while end and row[end - 1] is None:
        end -= 1
    return row[:end]


def _csv_width(text: str) -> int:
    """Upper bound on the number of fields in any record of ``text``.

    Commas inside quoted fields are counted too; surplus columns come back
    empty and are trimmed with the rest of the row.
    """

    widest = 0
    commas = 0
    quoted = False
    for line in text.splitlines():
        commas += line.count(",")
        if line.count('"') % 2:
            quoted = not quoted
        if not quoted:
            widest = max(widest, commas + 1)
            commas = 0
    return max(widest, commas + 1)


def _read_csv_grid(text: str) -> list[list[Any]]:
    if not text.strip():
        return []
    frame = pd.read_csv(
        io.StringIO(text),
        header=None,
        names=list(range(_csv_width(text))),
        dtype=str,
        keep_default_na=False,
    )
    return frame.astype(object).values.tolist()


def _read_excel_grid(content: bytes, engine: str) -> list[list[Any]]:
    excel = pd.ExcelFile(io.BytesIO(content), engine=engine)
    if not excel.sheet_names:
        return []
    sheet_name = excel.sheet_names[0]
    if len(excel.sheet_names) > 1:
        logger.debug("reading sheet %r, ignoring %d other sheet(s)", sheet_name, len(excel.sheet_names) - 1)
    frame = excel.parse(sheet_name=sheet_name, header=None)
    if frame.empty:
        return []
    return frame.astype(object).values.tolist()


def read_grid(content: bytes, detected: DetectedFormat | None = None) -> list[list[Cell]]:
    """Return the first sheet as trimmed rows of normalised cells, blank rows dropped."""

    detected = detected or detect(content)
    if detected.format == "csv":
        raw = _read_csv_grid(detected.text or "")
    elif detected.engine is not None:
        raw = _read_excel_grid(content, detected.engine)
    else:
        raise ValueError("content is not a spreadsheet or delimited text")

    grid: list[list[Cell]] = []
    for row in raw:
        cells = _trim([_normalise_cell(value) for value in row])
        if cells:
            grid.append(cells)
    return grid


def parse(
    content: bytes,
    *,
    shape: TableShape = "rows",
    filename: str | None = None,
) -> RowTable | RecordTable | ParseFailure:
    """Decode ``content`` into a table of the requested shape."""

    if not content.strip():
        return _failure(FailureKind.EMPTY_FILE, EMPTY_MESSAGE, filename)

    detected = detect(content)
    if detected.format == "unknown":
        return _failure(FailureKind.CORRUPT_FILE, CORRUPT_MESSAGE, filename)

    try:
        grid = read_grid(content, detected)
    except Exception as exc:  # decoder errors vary by engine
        logger.info("could not decode %s as %s: %s", filename or "upload", detected.format, exc)
        return _failure(FailureKind.CORRUPT_FILE, CORRUPT_MESSAGE, filename)

    if not grid or not grid[0] or len(grid) < 2:
        return _failure(FailureKind.EMPTY_FILE, EMPTY_MESSAGE, filename)

    width = max(len(row) for row in grid)
    header_row = grid[0] + [None] * (width - len(grid[0]))
    headers = ["" if cell is None else str(cell) for cell in header_row]
    rows = grid[1:]

    try:
        return build_table(headers, rows, shape)
    except ValueError as exc:
        logger.info("could not build %s table from %s: %s", shape, filename or "upload", exc)
        return _failure(FailureKind.CORRUPT_FILE, CORRUPT_MESSAGE, filename)

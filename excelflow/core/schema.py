from __future__ import annotations

from typing import Annotated, Literal, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

Cell = Union[bool, int, float, str, None]
TableShape = Literal["rows", "records"]

EMPTY_HEADER = "__EMPTY"


class RowTable(BaseModel):
    """Positional rows aligned to ``headers`` by index."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rows"] = "rows"
    headers: list[str]
    rows: list[list[Cell]] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_row_widths(self) -> "RowTable":
        width = len(self.headers)
        for index, row in enumerate(self.rows):
            if len(row) > width:
                raise ValueError(f"row {index} has {len(row)} cells but only {width} headers")
        return self

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.headers or not self.rows

    def as_rows(self) -> list[list[Cell]]:
        width = len(self.headers)
        return [list(row) + [None] * (width - len(row)) for row in self.rows]

    def as_records(self) -> list[dict[str, Cell]]:
        keys = unique_headers(self.headers)
        return [dict(zip(keys, row)) for row in self.as_rows()]


class RecordTable(BaseModel):
    """Keyed records; ``headers`` are the keys of the first record."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["records"] = "records"
    headers: list[str]
    records: list[dict[str, Cell]] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.headers or not self.records

    def as_rows(self) -> list[list[Cell]]:
        return [[record.get(header) for header in self.headers] for record in self.records]

    def as_records(self) -> list[dict[str, Cell]]:
        return [dict(record) for record in self.records]


ParsedTable = Annotated[Union[RowTable, RecordTable], Field(discriminator="kind")]

parsed_table_adapter: TypeAdapter[RowTable | RecordTable] = TypeAdapter(ParsedTable)


def unique_headers(headers: Sequence[str]) -> list[str]:
    """Make header names usable as record keys.

    Blank headers become ``__EMPTY`` and repeated names get ``_1``, ``_2``
    suffixes in order of appearance.
    """

    seen: dict[str, int] = {}
    keys: list[str] = []
    for header in headers:
        base = header if header != "" else EMPTY_HEADER
        count = seen.get(base, 0)
        key = base if count == 0 else f"{base}_{count}"
        while key in seen:
            count += 1
            key = f"{base}_{count}"
        seen[base] = count + 1
        seen.setdefault(key, 1)
        keys.append(key)
    return keys


def build_table(headers: list[str], rows: list[list[Cell]], shape: TableShape = "rows") -> RowTable | RecordTable:
    """Assemble a table of the requested shape from a header row and data rows."""

    if shape == "rows":
        return RowTable(headers=headers, rows=rows)
    if shape == "records":
        positional = RowTable(headers=headers, rows=rows)
        records = positional.as_records()
        keys = list(records[0].keys()) if records else unique_headers(headers)
        return RecordTable(headers=keys, records=records)
    raise ValueError(f"unknown table shape: {shape!r}")

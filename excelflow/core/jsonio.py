from __future__ import annotations

import json

from excelflow.core.errors import FailureKind, IngestionFailure
from excelflow.core.schema import RecordTable, RowTable

ARTIFACT_FILENAME = "processed_data.json"
ARTIFACT_MEDIA_TYPE = "application/json"


def table_payload(table: RowTable | RecordTable, filename: str | None = None) -> dict:
    rows = table.rows if isinstance(table, RowTable) else table.records
    return {
        "filename": filename,
        "shape": table.kind,
        "headers": list(table.headers),
        "row_count": table.row_count,
        "rows": rows,
    }


def serialize_table(table: RowTable | RecordTable, filename: str | None = None) -> bytes | IngestionFailure:
    """Render the table as the pretty-printed ``processed_data.json`` document."""

    try:
        text = json.dumps(table_payload(table, filename), indent=2, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        return IngestionFailure(
            kind=FailureKind.SERIALIZATION_FAILURE,
            message=f"Could not generate {ARTIFACT_FILENAME}: {exc}",
            filename=filename,
        )
    return text.encode("utf-8")

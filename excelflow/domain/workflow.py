"""Domain entities for the upload / preview / process workflow."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from excelflow.core.errors import IngestionFailure
    from excelflow.core.schema import ParsedTable


class WorkflowStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PREVIEW = "preview"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class RawFile:
    """An uploaded file held in memory for the duration of one parse."""

    filename: str
    content: bytes = field(repr=False)
    content_type: str = ""

    @property
    def suffix(self) -> str:
        return PurePath(self.filename).suffix.lower()

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One line of the user-facing operation log."""

    timestamp: str
    message: str
    severity: Literal["info", "error"] = "info"


@dataclass(frozen=True, slots=True)
class WorkflowState:
    """Snapshot of the single workflow session.

    Instances are never mutated; transitions build a new snapshot with
    :func:`dataclasses.replace`. ``logs`` is ordered most recent first.
    """

    status: WorkflowStatus = WorkflowStatus.IDLE
    file: RawFile | None = None
    table: ParsedTable | None = None
    progress: int = 0
    dragging: bool = False
    logs: tuple[LogEntry, ...] = ()
    artifact: bytes | None = field(default=None, repr=False)
    failure: IngestionFailure | None = None

    @property
    def filename(self) -> str | None:
        return self.file.filename if self.file else None

    @property
    def row_count(self) -> int:
        return self.table.row_count if self.table is not None else 0

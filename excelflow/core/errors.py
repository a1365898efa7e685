"""Failure taxonomy shared by the ingestion engine and the workflow."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    INVALID_FORMAT = "InvalidFormat"
    EMPTY_FILE = "EmptyFile"
    CORRUPT_FILE = "CorruptFile"
    READ_FAILURE = "ReadFailure"
    SERIALIZATION_FAILURE = "SerializationFailure"


# Toast titles shown to the user for each failure kind.
FAILURE_TITLES: dict[FailureKind, str] = {
    FailureKind.INVALID_FORMAT: "Invalid File Format",
    FailureKind.EMPTY_FILE: "Empty File",
    FailureKind.CORRUPT_FILE: "File Parsing Error",
    FailureKind.READ_FAILURE: "File Read Error",
    FailureKind.SERIALIZATION_FAILURE: "Processing Error",
}


@dataclass(frozen=True, slots=True)
class IngestionFailure:
    """Structured failure produced at the point where an error originates."""

    kind: FailureKind
    message: str
    filename: str | None = None

    @property
    def title(self) -> str:
        return FAILURE_TITLES[self.kind]

    def as_dict(self) -> dict[str, str | None]:
        return {
            "kind": self.kind.value,
            "title": self.title,
            "message": self.message,
            "filename": self.filename,
        }


class WorkflowError(Exception):
    """Raised when the workflow is asked to do something its state forbids."""


class InvalidTransition(WorkflowError):
    def __init__(self, status: str, event: str) -> None:
        super().__init__(f"event {event} is not allowed while {status}")
        self.status = status
        self.event = event


class WorkflowBusy(WorkflowError):
    """A file is already in flight or showing; reset before submitting another."""

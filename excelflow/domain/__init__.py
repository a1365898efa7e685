"""Domain layer definitions."""

from .workflow import LogEntry, RawFile, WorkflowState, WorkflowStatus

__all__ = [
    "LogEntry",
    "RawFile",
    "WorkflowState",
    "WorkflowStatus",
]

"""Application services."""

from .session import WorkflowSession, get_workflow_session, reset_workflow_session, snapshot

__all__ = [
    "WorkflowSession",
    "get_workflow_session",
    "reset_workflow_session",
    "snapshot",
]

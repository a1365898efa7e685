"""Application service running the workflow state machine on asyncio."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Callable, Coroutine

from excelflow.core.config import Settings, load_settings
from excelflow.core.errors import IngestionFailure, WorkflowBusy
from excelflow.core.workflow import (
    SUBMITTABLE,
    CancelDelay,
    Confirm,
    DragChanged,
    Effect,
    Event,
    FileSubmitted,
    MachineOptions,
    Notify,
    ProcessingElapsed,
    ProgressTick,
    ReadFailed,
    Reset,
    StartDelay,
    StartTicker,
    StopTicker,
    Transition,
    can_confirm,
    transition,
)
from excelflow.domain import RawFile, WorkflowState, WorkflowStatus
from excelflow.infrastructure import Notification, Notifier, get_notifier, load_raw_file
from excelflow.infrastructure.sources import Source

logger = logging.getLogger(__name__)


class WorkflowSession:
    """Owns the single workflow state and the two timers that drive it.

    Every state change goes through :meth:`dispatch` under one lock. The
    progress ticker and the processing delay are asyncio tasks that are
    cancelled as soon as the state owning them is left.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or load_settings()
        self._options = MachineOptions.from_settings(self._settings, clock=clock)
        self._notifier = notifier
        self._state = WorkflowState()
        self._history: list[WorkflowStatus] = [WorkflowStatus.IDLE]
        self._lock = asyncio.Lock()
        self._ticker: asyncio.Task[None] | None = None
        self._delay: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # inspection
    # ------------------------------------------------------------------
    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def history(self) -> list[WorkflowStatus]:
        """Statuses entered since the last reset, oldest first."""

        return list(self._history)

    def snapshot(self) -> dict[str, object]:
        return snapshot(self._state, self._history)

    # ------------------------------------------------------------------
    # user intents
    # ------------------------------------------------------------------
    async def submit(self, source: Source, filename: str, content_type: str | None = None) -> WorkflowState:
        """Read ``source`` and hand the bytes to the state machine."""

        if self._state.status not in SUBMITTABLE:
            raise WorkflowBusy(f"cannot accept a new file while {self._state.status.value}; reset first")
        loaded = await load_raw_file(source, filename, content_type)
        if isinstance(loaded, IngestionFailure):
            return await self.dispatch(ReadFailed(loaded))
        return await self.dispatch(FileSubmitted(loaded))

    async def submit_file(self, file: RawFile) -> WorkflowState:
        return await self.dispatch(FileSubmitted(file))

    async def confirm(self) -> WorkflowState:
        return await self.dispatch(Confirm())

    async def reset(self) -> WorkflowState:
        return await self.dispatch(Reset())

    async def set_dragging(self, active: bool) -> WorkflowState:
        return await self.dispatch(DragChanged(active))

    # ------------------------------------------------------------------
    # state machine plumbing
    # ------------------------------------------------------------------
    async def dispatch(self, event: Event) -> WorkflowState:
        async with self._lock:
            if isinstance(event, FileSubmitted):
                # parsing is CPU bound; keep the loop responsive
                result = await asyncio.to_thread(transition, self._state, event, self._options)
            else:
                result = transition(self._state, event, self._options)
            return self._commit(result, restart_history=isinstance(event, Reset))

    def _commit(self, result: Transition, *, restart_history: bool = False) -> WorkflowState:
        previous = self._state.status
        self._state = result.state
        current = self._state.status
        if restart_history:
            self._history = [current]
        elif current is not previous:
            self._history.append(current)
        if current is not previous:
            logger.info("workflow %s -> %s (%s)", previous.value, current.value, self._state.filename or "no file")
        for effect in result.effects:
            self._perform(effect)
        return self._state

    def _perform(self, effect: Effect) -> None:
        if isinstance(effect, StartTicker):
            self._cancel(self._ticker)
            self._ticker = self._start(self._run_ticker())
        elif isinstance(effect, StopTicker):
            self._cancel(self._ticker)
            self._ticker = None
        elif isinstance(effect, StartDelay):
            self._cancel(self._delay)
            self._delay = self._start(self._run_delay())
        elif isinstance(effect, CancelDelay):
            self._cancel(self._delay)
            self._delay = None
        elif isinstance(effect, Notify):
            notifier = self._notifier or get_notifier()
            notifier.notify(Notification(title=effect.title, description=effect.description, variant=effect.variant))

    @staticmethod
    def _start(coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        task.add_done_callback(_log_task_failure)
        return task

    @staticmethod
    def _cancel(task: asyncio.Task[None] | None) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run_ticker(self) -> None:
        interval = self._settings.tick_interval
        while True:
            await asyncio.sleep(interval)
            async with self._lock:
                if self._ticker is not asyncio.current_task():
                    return
                state = self._commit(transition(self._state, ProgressTick(), self._options))
                if state.status is not WorkflowStatus.UPLOADING:
                    return

    async def _run_delay(self) -> None:
        await asyncio.sleep(self._settings.processing_delay)
        async with self._lock:
            if self._delay is not asyncio.current_task():
                return
            self._delay = None
            self._commit(transition(self._state, ProcessingElapsed(), self._options))

    async def wait_until_settled(self) -> WorkflowState:
        """Wait for the outstanding ticker / delay to finish (or be cancelled)."""

        while True:
            pending = [task for task in (self._ticker, self._delay) if task is not None and not task.done()]
            if not pending:
                return self._state
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        for task in (self._ticker, self._delay):
            self._cancel(task)
        await asyncio.gather(*(task for task in (self._ticker, self._delay) if task is not None), return_exceptions=True)
        self._ticker = None
        self._delay = None


def _log_task_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("workflow timer task %s failed", task.get_name(), exc_info=exc)


def snapshot(state: WorkflowState, history: list[WorkflowStatus] | None = None) -> dict[str, object]:
    """Render a state for the UI."""

    table = state.table
    return {
        "status": state.status.value,
        "progress": state.progress,
        "dragging": state.dragging,
        "filename": state.filename,
        "file_size": state.file.size if state.file else None,
        "content_type": state.file.content_type if state.file else None,
        "shape": table.kind if table is not None else None,
        "headers": list(table.headers) if table is not None else [],
        "rows": table.as_rows() if table is not None else [],
        "row_count": state.row_count,
        "can_confirm": can_confirm(state),
        "artifact_ready": state.artifact is not None,
        "failure": state.failure.as_dict() if state.failure else None,
        "logs": [asdict(entry) for entry in state.logs],
        "history": [status.value for status in (history or [state.status])],
    }


_session: WorkflowSession | None = None


def get_workflow_session() -> WorkflowSession:
    """Return the process-wide workflow session, creating it on first use."""

    global _session
    if _session is None:
        _session = WorkflowSession()
    return _session


def reset_workflow_session() -> None:
    """Drop the process-wide session (used in tests and on settings changes)."""

    global _session
    _session = None

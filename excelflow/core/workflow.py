"""Pure transition functions for the upload / preview / process workflow.

``transition(state, event)`` never performs I/O and never touches timers. It
returns the next :class:`WorkflowState` together with the effects the runner
has to carry out (start or stop the progress ticker, start or cancel the
processing delay, show a notification).

    idle ──submit──▶ uploading ──ticks──▶ preview ──confirm──▶ processing ──▶ completed
      ▲                  │                                         │
      └──── reset ◀── error ◀──────────────────────────────────────┘
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Literal, Union

from excelflow.core.config import Settings
from excelflow.core.errors import IngestionFailure, InvalidTransition, WorkflowBusy
from excelflow.core.jsonio import ARTIFACT_FILENAME, serialize_table
from excelflow.core.schema import TableShape
from excelflow.core.validation import Rejected, validate
from excelflow.domain import LogEntry, RawFile, WorkflowState, WorkflowStatus
from excelflow.extractors.sheet_reader import ParseFailure, parse

SUBMITTABLE = frozenset({WorkflowStatus.IDLE, WorkflowStatus.ERROR})


# ----------------------------------------------------------------------
# events
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class FileSubmitted:
    file: RawFile


@dataclass(frozen=True, slots=True)
class ReadFailed:
    failure: IngestionFailure


@dataclass(frozen=True, slots=True)
class ProgressTick:
    pass


@dataclass(frozen=True, slots=True)
class Confirm:
    pass


@dataclass(frozen=True, slots=True)
class ProcessingElapsed:
    pass


@dataclass(frozen=True, slots=True)
class Reset:
    pass


@dataclass(frozen=True, slots=True)
class DragChanged:
    active: bool


Event = Union[FileSubmitted, ReadFailed, ProgressTick, Confirm, ProcessingElapsed, Reset, DragChanged]


# ----------------------------------------------------------------------
# effects
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class StartTicker:
    pass


@dataclass(frozen=True, slots=True)
class StopTicker:
    pass


@dataclass(frozen=True, slots=True)
class StartDelay:
    pass


@dataclass(frozen=True, slots=True)
class CancelDelay:
    pass


@dataclass(frozen=True, slots=True)
class Notify:
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


Effect = Union[StartTicker, StopTicker, StartDelay, CancelDelay, Notify]


@dataclass(frozen=True, slots=True)
class Transition:
    state: WorkflowState
    effects: tuple[Effect, ...] = ()


@dataclass(frozen=True)
class MachineOptions:
    progress_step: int = 10
    table_shape: TableShape = "rows"
    accept_csv: bool = True
    clock: Callable[[], datetime] = datetime.now

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], datetime] = datetime.now) -> "MachineOptions":
        return cls(
            progress_step=settings.progress_step,
            table_shape=settings.table_shape,
            accept_csv=settings.accept_csv,
            clock=clock,
        )


DEFAULT_OPTIONS = MachineOptions()


# ----------------------------------------------------------------------
# helpers
# ----------------------------------------------------------------------
def format_timestamp(moment: datetime) -> str:
    return moment.strftime("%I:%M:%S %p")


def _log(state: WorkflowState, options: MachineOptions, message: str, severity: Literal["info", "error"] = "info") -> WorkflowState:
    entry = LogEntry(timestamp=format_timestamp(options.clock()), message=message, severity=severity)
    return replace(state, logs=(entry, *state.logs))


def _fail(state: WorkflowState, options: MachineOptions, failure: IngestionFailure, *extra: Effect) -> Transition:
    failed = replace(
        state,
        status=WorkflowStatus.ERROR,
        progress=0,
        artifact=None,
        failure=failure,
    )
    failed = _log(failed, options, failure.message, "error")
    notice = Notify(title=failure.title, description=failure.message, variant="destructive")
    return Transition(failed, (*extra, notice))


def can_confirm(state: WorkflowState) -> bool:
    return state.status is WorkflowStatus.PREVIEW and state.table is not None and not state.table.is_empty


# ----------------------------------------------------------------------
# per-event handlers
# ----------------------------------------------------------------------
def _on_file_submitted(state: WorkflowState, event: FileSubmitted, options: MachineOptions) -> Transition:
    if state.status not in SUBMITTABLE:
        raise WorkflowBusy(f"cannot accept a new file while {state.status.value}; reset first")

    cleared = replace(state, file=None, table=None, progress=0, artifact=None, failure=None, dragging=False)
    checked = validate(event.file, accept_csv=options.accept_csv)
    if isinstance(checked, Rejected):
        return _fail(cleared, options, checked.failure)

    selected = _log(replace(cleared, file=event.file), options, f'File selected: "{event.file.filename}"')
    result = parse(event.file.content, shape=options.table_shape, filename=event.file.filename)
    if isinstance(result, ParseFailure):
        return _fail(selected, options, result.failure)

    parsed = replace(selected, table=result)
    parsed = _log(parsed, options, f"Spreadsheet parsed successfully: {result.row_count} row(s) in the first sheet.")
    uploading = _log(replace(parsed, status=WorkflowStatus.UPLOADING), options, "Starting file upload...")
    return Transition(uploading, (StartTicker(),))


def _on_read_failed(state: WorkflowState, event: ReadFailed, options: MachineOptions) -> Transition:
    if state.status not in SUBMITTABLE:
        raise WorkflowBusy(f"cannot accept a new file while {state.status.value}; reset first")
    cleared = replace(state, file=None, table=None, dragging=False)
    return _fail(cleared, options, event.failure)


def _on_tick(state: WorkflowState, options: MachineOptions) -> Transition:
    if state.status is not WorkflowStatus.UPLOADING:
        return Transition(state)
    if state.progress >= 100:
        ready = replace(state, status=WorkflowStatus.PREVIEW, progress=100)
        ready = _log(ready, options, f'"{state.filename}" uploaded successfully. Ready for preview.')
        return Transition(ready, (StopTicker(),))
    return Transition(replace(state, progress=min(100, state.progress + options.progress_step)))


def _on_confirm(state: WorkflowState, options: MachineOptions) -> Transition:
    if state.status is not WorkflowStatus.PREVIEW:
        raise InvalidTransition(state.status.value, "confirm")
    if not can_confirm(state):
        return Transition(state)
    processing = _log(replace(state, status=WorkflowStatus.PROCESSING), options, "Data processing initiated...")
    return Transition(processing, (StartDelay(),))


def _on_processing_elapsed(state: WorkflowState, options: MachineOptions) -> Transition:
    if state.status is not WorkflowStatus.PROCESSING or state.table is None:
        return Transition(state)

    artifact = serialize_table(state.table, state.filename)
    if isinstance(artifact, IngestionFailure):
        return _fail(state, options, artifact)

    done = replace(state, status=WorkflowStatus.COMPLETED, artifact=artifact)
    done = _log(done, options, "Data processing completed successfully.")
    done = _log(
        done,
        options,
        f"Generated {ARTIFACT_FILENAME} with {state.table.row_count} row(s) ({len(artifact)} bytes).",
    )
    notice = Notify(title="Processing Completed", description=f"{ARTIFACT_FILENAME} is ready to download.")
    return Transition(done, (notice,))


def transition(state: WorkflowState, event: Event, options: MachineOptions = DEFAULT_OPTIONS) -> Transition:
    """Apply ``event`` to ``state``.

    Timer events that arrive after their owning state was left are ignored;
    user events that the current state does not accept raise
    :class:`~excelflow.core.errors.WorkflowError`.
    """

    if isinstance(event, Reset):
        return Transition(WorkflowState(), (StopTicker(), CancelDelay()))
    if isinstance(event, FileSubmitted):
        return _on_file_submitted(state, event, options)
    if isinstance(event, ReadFailed):
        return _on_read_failed(state, event, options)
    if isinstance(event, ProgressTick):
        return _on_tick(state, options)
    if isinstance(event, Confirm):
        return _on_confirm(state, options)
    if isinstance(event, ProcessingElapsed):
        return _on_processing_elapsed(state, options)
    if isinstance(event, DragChanged):
        if state.status not in SUBMITTABLE:
            return Transition(state)
        return Transition(replace(state, dragging=event.active))
    raise TypeError(f"unsupported workflow event: {event!r}")

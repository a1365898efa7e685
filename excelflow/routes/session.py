from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from excelflow.application import get_workflow_session
from excelflow.core.errors import WorkflowError
from excelflow.core.jsonio import ARTIFACT_FILENAME, ARTIFACT_MEDIA_TYPE
from excelflow.domain import WorkflowStatus
from excelflow.infrastructure import BufferedNotifier, get_notifier

router = APIRouter(prefix="/session", tags=["session"])


@router.get("")
async def get_session() -> dict:
    return get_workflow_session().snapshot()


@router.post("/upload")
async def upload_file(
    file: UploadFile = File(...),
    wait: bool = Query(default=False, description="Block until the upload progress finishes"),
) -> dict:
    """Submit one spreadsheet to the workflow."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="Uploaded file must have a filename")

    session = get_workflow_session()
    try:
        await session.submit(file.file, file.filename, file.content_type)
    except WorkflowError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    finally:
        await file.close()

    if wait:
        await session.wait_until_settled()
    return session.snapshot()


@router.post("/drag")
async def set_dragging(payload: dict) -> dict:
    if "active" not in payload:
        raise HTTPException(status_code=400, detail="active is required")
    session = get_workflow_session()
    await session.set_dragging(bool(payload["active"]))
    return session.snapshot()


@router.post("/confirm")
async def confirm_processing(wait: bool = Query(default=False)) -> dict:
    session = get_workflow_session()
    try:
        await session.confirm()
    except WorkflowError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if wait:
        await session.wait_until_settled()
    return session.snapshot()


@router.post("/reset")
async def reset_session() -> dict:
    session = get_workflow_session()
    await session.reset()
    return session.snapshot()


@router.get("/download")
async def download_artifact() -> Response:
    state = get_workflow_session().state
    if state.status is not WorkflowStatus.COMPLETED or state.artifact is None:
        raise HTTPException(status_code=409, detail="processing has not completed")
    return Response(
        content=state.artifact,
        media_type=ARTIFACT_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{ARTIFACT_FILENAME}"'},
    )


@router.get("/notifications")
async def drain_notifications() -> dict:
    notifier = get_notifier()
    if not isinstance(notifier, BufferedNotifier):
        return {"items": []}
    return {"items": [item.as_dict() for item in notifier.drain()]}

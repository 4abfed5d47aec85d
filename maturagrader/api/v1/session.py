import asyncio
import logging
import time

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status

from maturagrader.core.dependencies import SessionShell, get_shell
from maturagrader.core.exceptions import FeatureUnavailableError
from maturagrader.models.request import TextUpdateRequest, WritingModeRequest
from maturagrader.models.response import ErrorPayload, NotificationPayload, SessionView, ShareResponse
from maturagrader.models.rubric import percentage
from maturagrader.services.presenter import format_share_text, request_pdf_export, share_result

logger = logging.getLogger(__name__)

router = APIRouter()


def _drain_notifications(shell: SessionShell):
    return [NotificationPayload(kind=n.kind, message=n.message) for n in shell.notifier.drain()]


def build_view(shell: SessionShell) -> SessionView:
    session = shell.session
    result = session.result
    error = session.error
    return SessionView(
        state=session.state.value,
        text=session.document.text,
        word_count=session.document.word_count,
        writing_mode=session.writing_mode,
        request_id=session.request_id,
        result=result.model_dump(by_alias=True, mode="json") if result else None,
        percentage=percentage(result) if result else None,
        formal_requirements_conflict=result.formal_requirements_conflict if result else False,
        error=ErrorPayload(type=type(error).__name__, message=error.message, details=error.details) if error else None,
        notifications=_drain_notifications(shell),
    )


@router.get("/session", response_model=SessionView)
async def get_session(shell: SessionShell = Depends(get_shell)) -> SessionView:
    return build_view(shell)


@router.put("/session/text", response_model=SessionView)
async def update_text(req: TextUpdateRequest, shell: SessionShell = Depends(get_shell)) -> SessionView:
    shell.session.set_text(req.text)
    return build_view(shell)


@router.post("/session/upload", response_model=SessionView)
async def upload_document(file: UploadFile = File(...), shell: SessionShell = Depends(get_shell)) -> SessionView:
    data = await file.read()
    logger.info(f"Upload received: {file.filename} ({len(data)} bytes, {file.content_type})")
    shell.session.load_file(data, filename=file.filename, content_type=file.content_type)
    return build_view(shell)


@router.post("/session/submit", response_model=SessionView, status_code=status.HTTP_202_ACCEPTED)
async def submit(response: Response, wait: bool = False, shell: SessionShell = Depends(get_shell)) -> SessionView:
    """Start grading. With `wait=true` the call returns once grading has settled."""
    task = shell.session.submit()
    if wait:
        start = time.perf_counter()
        await asyncio.wait({task})
        response.status_code = status.HTTP_200_OK
        response.headers["Server-Timing"] = f"grading;dur={(time.perf_counter() - start) * 1000.0:.1f}"
    return build_view(shell)


@router.post("/session/reset", response_model=SessionView)
async def reset(shell: SessionShell = Depends(get_shell)) -> SessionView:
    shell.session.reset()
    return build_view(shell)


@router.put("/session/writing-mode", response_model=SessionView)
async def set_writing_mode(req: WritingModeRequest, shell: SessionShell = Depends(get_shell)) -> SessionView:
    if req.active:
        shell.session.enter_writing_mode()
    else:
        shell.session.exit_writing_mode()
    return build_view(shell)


@router.post("/session/share", response_model=ShareResponse)
async def share(shell: SessionShell = Depends(get_shell)) -> ShareResponse:
    result = shell.session.result
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "No grading result to share", "type": "NoResult"},
        )
    copied = share_result(result, shell.clipboard, shell.notifier)
    return ShareResponse(text=format_share_text(result), copied=copied, notifications=_drain_notifications(shell))


@router.post("/session/export")
async def export_pdf(shell: SessionShell = Depends(get_shell)):
    request_pdf_export(shell.notifier)
    raise FeatureUnavailableError("PDF export is not available", {"feature": "pdf_export"})

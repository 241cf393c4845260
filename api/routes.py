"""FastAPI routes for voice sessions and feedback publication."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, Header

from api.schemas import CreateSessionReq, PublishReq, PublishResp, SaveDraftReq
from config import load_config_or_default
from config.settings import settings
from domain.errors import InvalidRequestError, NotFoundError
from notifications import NotificationDispatcher
from pipeline import FeedbackPipeline, ProcessRequest, ProcessResult, create_session, get_session, start_recording
from pipeline.registry import authenticate, load_session, require_manager
from publication import PublicationStatus, audit_trail, publication_status, publish, save_draft, undo
from storage.audit import AuditRecord
from storage.feedback import FeedbackRecord, get_feedback
from storage.sessions import SessionRecord


router = APIRouter(prefix="/api")


def caller_identity(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_user_id


@lru_cache(maxsize=1)
def get_pipeline() -> FeedbackPipeline:  # Built once from the provider config file
    return FeedbackPipeline(load_config_or_default(Path(settings.APP_CONFIG_PATH)))


@lru_cache(maxsize=1)
def get_notifier() -> Optional[NotificationDispatcher]:
    return NotificationDispatcher(load_config_or_default(Path(settings.APP_CONFIG_PATH)).email)


class ProcessBody(ProcessRequest):
    session_id: str = ""  # taken from the path


@router.post("/sessions", response_model=SessionRecord, status_code=201)
def create(req: CreateSessionReq, caller: Optional[str] = Depends(caller_identity)) -> SessionRecord:
    return create_session(
        manager_id=caller or "",
        title=req.title,
        employee_id=req.employee_id,
        description=req.description,
        recording_mode=req.recording_mode,
    )


@router.get("/sessions/{session_id}", response_model=SessionRecord)
def read_session(session_id: str, caller: Optional[str] = Depends(caller_identity)) -> SessionRecord:
    return get_session(session_id, caller_id=caller or "")


@router.post("/sessions/{session_id}/recording", response_model=SessionRecord)
def begin_recording(session_id: str, caller: Optional[str] = Depends(caller_identity)) -> SessionRecord:
    return start_recording(session_id, caller_id=caller or "")


@router.post("/sessions/{session_id}/process", response_model=ProcessResult)
def process_session(
    session_id: str,
    body: ProcessBody,
    caller: Optional[str] = Depends(caller_identity),
    pipeline: FeedbackPipeline = Depends(get_pipeline),
) -> ProcessResult:
    if body.session_id and body.session_id != session_id:
        raise InvalidRequestError("session_id in body does not match the path")
    request = ProcessRequest(**{**body.model_dump(), "session_id": session_id})
    return pipeline.process(request, caller_id=caller)


@router.get("/feedback/{feedback_id}", response_model=FeedbackRecord)
def read_feedback(feedback_id: str, caller: Optional[str] = Depends(caller_identity)) -> FeedbackRecord:
    authenticate(caller)
    feedback = get_feedback(feedback_id)
    if feedback is None:
        raise NotFoundError(f"Feedback {feedback_id} not found")
    require_manager(load_session(feedback.session_id), caller or "")
    return feedback


@router.put("/feedback/{feedback_id}/draft", response_model=FeedbackRecord)
def update_draft(
    feedback_id: str, req: SaveDraftReq, caller: Optional[str] = Depends(caller_identity)
) -> FeedbackRecord:
    return save_draft(feedback_id, text=req.text, tone=req.tone, caller_id=caller or "")


@router.post("/feedback/{feedback_id}/publish", response_model=PublishResp)
def publish_feedback(
    feedback_id: str,
    req: PublishReq,
    caller: Optional[str] = Depends(caller_identity),
    notifier: Optional[NotificationDispatcher] = Depends(get_notifier),
) -> PublishResp:
    result = publish(feedback_id, text=req.text, tone=req.tone, caller_id=caller or "", notifier=notifier)
    return PublishResp(
        feedback=result.feedback,
        audit=result.audit,
        can_undo_until=result.audit.can_undo_until,
    )


@router.post("/feedback/audit/{audit_id}/undo", response_model=AuditRecord)
def undo_publish(audit_id: str, caller: Optional[str] = Depends(caller_identity)) -> AuditRecord:
    return undo(audit_id, caller_id=caller or "")


@router.get("/feedback/{feedback_id}/status", response_model=PublicationStatus)
def read_status(feedback_id: str, caller: Optional[str] = Depends(caller_identity)) -> PublicationStatus:
    return publication_status(feedback_id, caller_id=caller or "")


@router.get("/feedback/{feedback_id}/audit", response_model=List[AuditRecord])
def read_audit(feedback_id: str, caller: Optional[str] = Depends(caller_identity)) -> List[AuditRecord]:
    return audit_trail(feedback_id, caller_id=caller or "")


__all__ = ["caller_identity", "get_notifier", "get_pipeline", "router"]

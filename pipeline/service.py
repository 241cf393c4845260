from __future__ import annotations  # Voice-to-feedback pipeline orchestration

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from analysis import FairnessAuditor, FeedbackSynthesizer, competency_tags, extract_features, remediate, render_markdown
from config import PipelineConfig
from config.settings import settings
from domain.errors import InvalidRequestError, InvalidTransitionError, ProviderUnavailableError
from domain.types import EmployeeMetadata, ExtractedFeatures, FairnessAssessment, QuestionRecording, RecordingMode, Tone
from llm_gateway import HttpClient
from observability import log_event, span
from storage.feedback import get_feedback_for_session, insert_feedback
from storage.profiles import get_profile
from storage.sessions import set_status, set_transcript
from storage.sqlite import get_conn
from transcription import SttClient, TranscriptionAdapter

from .registry import authenticate, load_session, require_manager


logger = logging.getLogger(__name__)

PROCESSABLE = ("recording", "processing")


class ProcessRequest(BaseModel):  # Pipeline entry payload
    session_id: str
    audio: Optional[str] = None  # base64
    tone: Tone = "neutral"
    recording_mode: RecordingMode = "full"
    question_recordings: List[QuestionRecording] = Field(default_factory=list)

    @model_validator(mode="after")
    def _questions_for_per_question(self) -> "ProcessRequest":
        if self.recording_mode == "per_question" and not self.question_recordings:
            raise ValueError("per_question mode requires question_recordings")
        return self

    def audio_bytes(self) -> Optional[bytes]:
        if not self.audio:
            return None
        payload = self.audio.split(",", 1)[1] if self.audio.startswith("data:") else self.audio
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidRequestError("audio must be base64 encoded") from exc
        if len(data) > settings.MAX_AUDIO_BYTES:
            raise InvalidRequestError("audio exceeds the maximum upload size")
        return data


class ProcessResult(BaseModel):
    draft_id: str
    draft_text: str
    transcript: str
    extracted_data: ExtractedFeatures
    bias_check: FairnessAssessment
    fairness_score: float
    degraded_stages: Dict[str, str] = Field(default_factory=dict)
    remediated: bool = False
    events: List[Dict[str, Any]] = Field(default_factory=list)


@dataclass
class PipelineRun:  # Per-invocation state for spans
    session_id: str
    events: List[Dict[str, Any]] = field(default_factory=list)
    degraded: Dict[str, str] = field(default_factory=dict)


class FeedbackPipeline:
    """Transcribe, analyse, draft, audit and persist feedback for one session."""

    def __init__(
        self,
        config: PipelineConfig,
        *,
        llm_client: Optional[HttpClient] = None,
        stt_client: Optional[SttClient] = None,
        transcriber: Optional[TranscriptionAdapter] = None,
        synthesizer: Optional[FeedbackSynthesizer] = None,
        auditor: Optional[FairnessAuditor] = None,
    ) -> None:
        self.config = config
        self.transcriber = transcriber or TranscriptionAdapter(config.stt, client=stt_client)
        self.synthesizer = synthesizer or FeedbackSynthesizer(config.llm, client=llm_client)
        self.auditor = auditor or FairnessAuditor(config.fairness_route(), client=llm_client)

    def process(self, request: ProcessRequest, *, caller_id: Optional[str]) -> ProcessResult:
        # Identity, ownership, state and payload are checked before any provider is contacted.
        authenticate(caller_id)
        session = load_session(request.session_id)
        require_manager(session, caller_id or "")
        if session.status not in PROCESSABLE:
            raise InvalidTransitionError(f"Session {session.id} cannot be processed from {session.status}")
        if get_feedback_for_session(session.id) is not None:
            raise InvalidTransitionError(f"Session {session.id} already has feedback")
        audio = request.audio_bytes()
        if not self.synthesizer.configured:
            raise ProviderUnavailableError("No text generation provider is configured")

        set_status(session.id, expected=PROCESSABLE, target="processing")
        run = PipelineRun(session_id=session.id)
        log_event("pipeline", session.id, stage="start", action="process", status="processing")

        with span(run, "transcription"):
            transcribed = self.transcriber.transcribe(
                audio=audio,
                recording_mode=request.recording_mode,
                session_title=session.title,
                question_recordings=request.question_recordings,
            )
        self._note(run, "transcription", transcribed)
        transcript = transcribed.value

        with span(run, "features"):
            features = extract_features(transcript)

        employee = self._employee(session.employee_id)
        with span(run, "synthesis"):
            drafted = self.synthesizer.synthesize(
                transcript=transcript,
                employee=employee,
                features=features,
                tone=request.tone,
            )
        self._note(run, "synthesis", drafted)
        draft = drafted.value

        with span(run, "fairness"):
            audit = self.auditor.audit(draft)
        if audit.assessment.ai_degraded:
            run.degraded["fairness"] = "fairness_default_applied"
            log_event("pipeline", session.id, stage="fairness", degraded=True, reason="fairness_default_applied")

        remediated = False
        if audit.triggered:
            with span(run, "remediation"):
                outcome = remediate(
                    self.synthesizer,
                    draft,
                    audit.assessment,
                    transcript=transcript,
                    employee=employee,
                    features=features,
                    tone=request.tone,
                )
            draft = outcome.draft
            remediated = outcome.applied
            log_event("pipeline", session.id, stage="remediation", outcome=outcome.reason or "applied")

        with span(run, "assembly"):
            markdown = render_markdown(draft)
            tags = competency_tags(draft)

        tone_analysis = {
            "sentiment": features.sentiment.model_dump(),
            "biasCheck": audit.assessment.model_dump(),
            "fairnessScore": audit.assessment.ai_fairness_score,
            "selectedTone": request.tone,
            "extractedEntities": features.entities,
            "remediated": remediated,
        }
        with span(run, "persist"):
            with get_conn() as conn:
                set_transcript(
                    session.id,
                    transcript,
                    recording_mode=request.recording_mode,
                    audio_ref=f"inline:{len(audio)}" if audio else None,
                    conn=conn,
                )
                entry = insert_feedback(
                    session_id=session.id,
                    markdown=markdown,
                    competency_tags=tags,
                    tone_analysis=tone_analysis,
                    selected_tone=request.tone,
                    conn=conn,
                )
                set_status(session.id, expected=["processing"], target="draft", conn=conn)

        log_event(
            "pipeline",
            session.id,
            stage="done",
            status="draft",
            feedback_id=entry.id,
            degraded=sorted(run.degraded),
        )
        return ProcessResult(
            draft_id=entry.id,
            draft_text=markdown,
            transcript=transcript,
            extracted_data=features,
            bias_check=audit.assessment,
            fairness_score=audit.assessment.ai_fairness_score,
            degraded_stages=dict(run.degraded),
            remediated=remediated,
            events=list(run.events),
        )

    def _employee(self, employee_id: str) -> EmployeeMetadata:
        profile = get_profile(employee_id)
        if profile is None:
            return EmployeeMetadata()
        return EmployeeMetadata(
            name=profile.full_name or "Employee",
            role=profile.role or "Team Member",
            prior_summary=profile.last_review_summary,
        )

    def _note(self, run: PipelineRun, stage: str, outcome: Any) -> None:
        if outcome.degraded:
            run.degraded[stage] = outcome.reason or "degraded"
            log_event("pipeline", run.session_id, stage=stage, degraded=True, reason=outcome.reason)


__all__ = ["FeedbackPipeline", "PipelineRun", "ProcessRequest", "ProcessResult"]

"""Speech-to-text adapter with a deterministic synthetic fallback."""
from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

import httpx

from config import SttRoute
from domain.types import Degraded, Ok, Outcome, QuestionRecording, RecordingMode


logger = logging.getLogger(__name__)

FALLBACK_TRANSCRIPT = (
    "Feedback session for {title}. The employee has demonstrated strong performance in their role. "
    "They have shown excellent communication skills and consistently meet project deadlines. "
    "Their technical abilities continue to grow, and they collaborate effectively with team members. "
    "Areas for development include strategic thinking and leadership opportunities."
)


class SttResponse(Protocol):
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...


class SttClient(Protocol):  # Subset of httpx.Client used by the adapter
    def post(self, url: str, **kwargs: Any) -> SttResponse: ...

    def get(self, url: str, **kwargs: Any) -> SttResponse: ...


class TranscriptionError(RuntimeError):
    pass


def fallback_transcript(title: str) -> str:
    return FALLBACK_TRANSCRIPT.format(title=title or "this review")


def _checked(response: SttResponse, step: str) -> Dict[str, Any]:
    if response.status_code >= 400:
        raise TranscriptionError(f"STT {step} returned status {response.status_code}")
    try:
        data = response.json()
    except Exception as exc:  # noqa: BLE001
        raise TranscriptionError(f"STT {step} payload was not JSON") from exc
    if not isinstance(data, dict):
        raise TranscriptionError(f"STT {step} payload was not an object")
    return data


class TranscriptionAdapter:
    """Convert audio to text with one provider attempt per recording."""

    def __init__(
        self,
        route: Optional[SttRoute],
        *,
        client: Optional[SttClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._route = route
        self._client = client
        self._sleep = sleep

    @property
    def configured(self) -> bool:
        if self._route is None:
            return False
        return self._route.api_key_env is None or bool(self._route.api_key())

    def transcribe(
        self,
        *,
        audio: Optional[bytes],
        recording_mode: RecordingMode,
        session_title: str,
        question_recordings: Sequence[QuestionRecording] = (),
    ) -> Outcome[str]:
        if recording_mode == "per_question":
            return self._transcribe_questions(question_recordings, session_title)
        if not audio:
            logger.info("No audio supplied, using synthetic transcript")
            return Degraded(fallback_transcript(session_title), "no_audio")
        if not self.configured:
            logger.info("No STT provider configured, using synthetic transcript")
            return Degraded(fallback_transcript(session_title), "stt_not_configured")
        try:
            return Ok(self._transcribe_bytes(audio))
        except Exception as exc:  # noqa: BLE001
            logger.error("STT error, using fallback: %s", exc)
            return Degraded(fallback_transcript(session_title), f"stt_failed: {exc}")

    def _transcribe_questions(self, recordings: Sequence[QuestionRecording], session_title: str) -> Outcome[str]:
        blocks: List[str] = []
        skipped: List[str] = []
        for index, recording in enumerate(recordings, start=1):
            text = self._answer_text(recording)
            if not text:
                skipped.append(recording.question_id)
                continue
            blocks.append(f"Question {index}: {recording.question_text}\nAnswer: {text}")
        if skipped:
            logger.warning("Skipped %d question recording(s): %s", len(skipped), ", ".join(skipped))
        if not blocks:
            return Degraded(fallback_transcript(session_title), "no_question_transcripts")
        return Ok("\n\n".join(blocks))

    def _answer_text(self, recording: QuestionRecording) -> Optional[str]:
        if recording.transcript and recording.transcript.strip():
            return recording.transcript.strip()
        if not recording.audio_base64 or not self.configured:
            return None
        try:
            audio = base64.b64decode(recording.audio_base64, validate=True)
            return self._transcribe_bytes(audio)
        except (binascii.Error, ValueError) as exc:
            logger.error("Question %s audio was not valid base64: %s", recording.question_id, exc)
        except Exception as exc:  # noqa: BLE001
            logger.error("Question %s transcription failed: %s", recording.question_id, exc)
        return None

    def _transcribe_bytes(self, audio: bytes) -> str:
        route = self._route
        if route is None:
            raise TranscriptionError("No STT provider configured")
        if self._client is not None:
            return self._run_job(self._client, route, audio)
        with httpx.Client(timeout=route.timeout_s) as client:
            return self._run_job(client, route, audio)

    def _run_job(self, client: SttClient, route: SttRoute, audio: bytes) -> str:  # Upload, submit, then poll until the job settles
        headers = {"Authorization": route.api_key() or ""}
        upload = _checked(
            client.post(
                f"{route.base_url}{route.upload_endpoint}",
                content=audio,
                headers={**headers, "Content-Type": "application/octet-stream"},
                timeout=route.timeout_s,
            ),
            "upload",
        )
        audio_url = upload.get("upload_url")
        if not audio_url:
            raise TranscriptionError("STT upload missing upload_url")
        submitted = _checked(
            client.post(
                f"{route.base_url}{route.transcript_endpoint}",
                json={"audio_url": audio_url},
                headers={**headers, "Content-Type": "application/json"},
                timeout=route.timeout_s,
            ),
            "submit",
        )
        job_id = submitted.get("id")
        if not job_id:
            raise TranscriptionError("STT submit missing job id")
        logger.info("Transcription submitted job=%s", job_id)
        for _ in range(route.max_polls):
            self._sleep(route.poll_interval_s)
            data = _checked(
                client.get(
                    f"{route.base_url}{route.transcript_endpoint}/{job_id}",
                    headers=headers,
                    timeout=route.timeout_s,
                ),
                "poll",
            )
            status = data.get("status")
            if status == "completed":
                text = str(data.get("text") or "").strip()
                if not text:
                    raise TranscriptionError("STT returned an empty transcript")
                return text
            if status == "error":
                raise TranscriptionError(f"Transcription failed: {data.get('error')}")
        raise TranscriptionError("Transcription timed out")


__all__ = ["FALLBACK_TRANSCRIPT", "SttClient", "TranscriptionAdapter", "TranscriptionError", "fallback_transcript"]

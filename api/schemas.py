"""Pydantic schemas for the feedback API."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from domain.types import RecordingMode, Tone
from pipeline.registry import MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH
from publication import PublishResult


class CreateSessionReq(BaseModel):
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    employee_id: str = Field(min_length=1)
    description: Optional[str] = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    recording_mode: RecordingMode = "full"


class SaveDraftReq(BaseModel):
    text: str
    tone: Tone = "neutral"


class PublishReq(BaseModel):
    text: Optional[str] = None  # defaults to the saved final text
    tone: Optional[Tone] = None


class PublishResp(PublishResult):
    can_undo_until: Optional[str] = None


__all__ = ["CreateSessionReq", "PublishReq", "PublishResp", "SaveDraftReq"]

from __future__ import annotations  # Re-export pipeline entry points

from .registry import authenticate, create_session, get_session, load_session, require_manager, start_recording
from .service import FeedbackPipeline, PipelineRun, ProcessRequest, ProcessResult

__all__ = [
    "FeedbackPipeline",
    "PipelineRun",
    "ProcessRequest",
    "ProcessResult",
    "authenticate",
    "create_session",
    "get_session",
    "load_session",
    "require_manager",
    "start_recording",
]

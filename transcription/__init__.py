from __future__ import annotations  # Re-export transcription public API

from .adapter import FALLBACK_TRANSCRIPT, SttClient, TranscriptionAdapter, TranscriptionError, fallback_transcript

__all__ = ["FALLBACK_TRANSCRIPT", "SttClient", "TranscriptionAdapter", "TranscriptionError", "fallback_transcript"]

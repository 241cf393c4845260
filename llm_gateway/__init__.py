from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import (
    HttpClient,
    HttpResponse,
    LlmCreditsExhaustedError,
    LlmGatewayError,
    LlmParseError,
    LlmRateLimitError,
    call,
    chat,
    extract_json_object,
)

__all__ = [
    "HttpClient",
    "HttpResponse",
    "LlmCreditsExhaustedError",
    "LlmGatewayError",
    "LlmParseError",
    "LlmRateLimitError",
    "call",
    "chat",
    "extract_json_object",
]

from __future__ import annotations  # Explicit provider configuration for the feedback pipeline

import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field


class LlmRoute(BaseModel):  # Chat-completions endpoint configuration
    name: str
    base_url: str
    endpoint: str = "/v1/chat/completions"
    model: str
    timeout_s: float = Field(default=60.0, ge=0.1)
    api_key_env: Optional[str] = None
    temperature: Optional[float] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)

    def api_key(self) -> Optional[str]:  # Resolve credential from the named environment variable
        return os.getenv(self.api_key_env) if self.api_key_env else None


class SttRoute(BaseModel):  # Speech-to-text endpoint configuration (upload, submit, poll)
    name: str = "assemblyai"
    base_url: str = "https://api.assemblyai.com"
    upload_endpoint: str = "/v2/upload"
    transcript_endpoint: str = "/v2/transcript"
    timeout_s: float = Field(default=30.0, ge=0.1)
    poll_interval_s: float = Field(default=5.0, ge=0.0)
    max_polls: int = Field(default=60, ge=1)
    api_key_env: Optional[str] = "STT_API_KEY"

    def api_key(self) -> Optional[str]:
        return os.getenv(self.api_key_env) if self.api_key_env else None


class EmailRoute(BaseModel):  # Transactional email endpoint configuration
    base_url: str = "https://api.resend.com"
    endpoint: str = "/emails"
    sender: str = "Feedback <notifications@example.com>"
    app_url: str = "http://localhost:5173"
    timeout_s: float = Field(default=15.0, ge=0.1)
    api_key_env: Optional[str] = "RESEND_API_KEY"

    def api_key(self) -> Optional[str]:
        return os.getenv(self.api_key_env) if self.api_key_env else None


class PipelineConfig(BaseModel):  # Configuration root injected into the pipeline
    llm: Optional[LlmRoute] = None
    fairness_llm: Optional[LlmRoute] = None
    stt: Optional[SttRoute] = None
    email: Optional[EmailRoute] = None

    def fairness_route(self) -> Optional[LlmRoute]:  # Fairness scoring reuses the drafting route unless overridden
        return self.fairness_llm or self.llm


def load_config(path: Path) -> PipelineConfig:  # Load configuration from disk
    data = path.read_text(encoding="utf-8")
    return PipelineConfig.model_validate_json(data)


def load_config_or_default(path: Path) -> PipelineConfig:  # Missing file means no providers are configured
    if not path.exists():
        return PipelineConfig()
    return load_config(path)

from __future__ import annotations  # Single-pass bias rewrite of a flagged draft

import logging
from dataclasses import dataclass
from typing import List, Optional

from domain.errors import FeedbackError
from domain.types import EmployeeMetadata, ExtractedFeatures, FairnessAssessment, FeedbackDraft
from llm_gateway import LlmGatewayError

from .prompts import RewriteRequest
from .synthesizer import FeedbackSynthesizer


logger = logging.getLogger(__name__)


@dataclass
class RemediationResult:
    draft: FeedbackDraft
    attempted: bool = False
    applied: bool = False
    reason: Optional[str] = None


def flagged_items(assessment: FairnessAssessment) -> List[str]:  # Union of lexicon terms and model issues, first-seen order
    items: List[str] = []
    for item in [*assessment.lexicon_hits, *assessment.ai_issues]:
        if item and item not in items:
            items.append(item)
    return items


def remediate(
    synthesizer: FeedbackSynthesizer,
    draft: FeedbackDraft,
    assessment: FairnessAssessment,
    *,
    transcript: str,
    employee: EmployeeMetadata,
    features: ExtractedFeatures,
    tone: str,
) -> RemediationResult:
    """Rewrite a flagged draft once; the original draft is kept on any failure."""

    if not assessment.combined_has_bias:
        return RemediationResult(draft=draft, reason="not_triggered")
    if not synthesizer.configured:
        return RemediationResult(draft=draft, reason="llm_not_configured")

    rewrite = RewriteRequest(flagged=flagged_items(assessment), previous=draft)
    try:
        rewritten = synthesizer.generate(
            transcript=transcript,
            employee=employee,
            features=features,
            tone=tone,
            rewrite=rewrite,
        )
    except (LlmGatewayError, FeedbackError) as exc:
        logger.warning("Bias rewrite failed, keeping original draft: %s", exc)
        return RemediationResult(draft=draft, attempted=True, reason=f"rewrite_failed: {exc}")
    return RemediationResult(draft=rewritten, attempted=True, applied=True)


__all__ = ["RemediationResult", "flagged_items", "remediate"]

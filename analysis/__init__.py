from __future__ import annotations  # Re-export analysis stages

from .assembler import competency_tags, render_markdown
from .fairness import FairnessAudit, FairnessAuditor
from .features import extract_features, score_sentiment
from .prompts import RewriteRequest, build_draft_prompt, build_fairness_prompt
from .remediation import RemediationResult, flagged_items, remediate
from .synthesizer import FeedbackSynthesizer, fallback_draft

__all__ = [
    "FairnessAudit",
    "FairnessAuditor",
    "FeedbackSynthesizer",
    "RemediationResult",
    "RewriteRequest",
    "build_draft_prompt",
    "build_fairness_prompt",
    "competency_tags",
    "extract_features",
    "fallback_draft",
    "flagged_items",
    "remediate",
    "render_markdown",
    "score_sentiment",
]

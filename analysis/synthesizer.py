from __future__ import annotations  # Structured feedback drafting over the LLM gateway

import logging
from typing import List, Optional

from config import LlmRoute
from domain.errors import ProviderQuotaError, ProviderUnavailableError
from domain.types import (
    Competency,
    Degraded,
    EmployeeMetadata,
    ExtractedFeatures,
    FeedbackDraft,
    GrowthPath,
    LearningRecommendation,
    Ok,
    Outcome,
)
from llm_gateway import (
    HttpClient,
    LlmCreditsExhaustedError,
    LlmGatewayError,
    LlmRateLimitError,
    call,
)

from .prompts import DRAFT_SYSTEM_PROMPT, RewriteRequest, build_draft_prompt


logger = logging.getLogger(__name__)

GENERIC_STRENGTHS = (
    "Consistently delivers on commitments",
    "Communicates progress clearly with the team",
    "Collaborates effectively across functions",
)
GENERIC_IMPROVEMENTS = (
    "Share status updates earlier: post a short written summary at the end of each milestone",
    "Delegate routine work: hand one recurring task to a teammate each sprint",
    "Broaden strategic context: join one planning session per month and bring a proposal",
)
FALLBACK_COMPETENCIES = ("Communication", "Technical Skills", "Collaboration", "Ownership")


class FeedbackSynthesizer:
    """Draft structured feedback with one model call and a templated fallback."""

    def __init__(self, route: Optional[LlmRoute], *, client: Optional[HttpClient] = None) -> None:
        self._route = route
        self._client = client

    @property
    def configured(self) -> bool:
        if self._route is None:
            return False
        return self._route.api_key_env is None or bool(self._route.api_key())

    def generate(
        self,
        *,
        transcript: str,
        employee: EmployeeMetadata,
        features: ExtractedFeatures,
        tone: str,
        rewrite: Optional[RewriteRequest] = None,
    ) -> FeedbackDraft:  # Raises gateway errors; callers decide how to degrade
        if not self.configured or self._route is None:
            raise ProviderUnavailableError("No text generation provider is configured")
        task = build_draft_prompt(
            transcript=transcript,
            employee=employee,
            features=features,
            tone=tone,
            rewrite=rewrite,
        )
        return call(task, FeedbackDraft, cfg=self._route, system=DRAFT_SYSTEM_PROMPT, client=self._client)

    def synthesize(
        self,
        *,
        transcript: str,
        employee: EmployeeMetadata,
        features: ExtractedFeatures,
        tone: str,
    ) -> Outcome[FeedbackDraft]:
        try:
            draft = self.generate(transcript=transcript, employee=employee, features=features, tone=tone)
        except LlmRateLimitError as exc:
            raise ProviderQuotaError(str(exc), reason="rate_limited") from exc
        except LlmCreditsExhaustedError as exc:
            raise ProviderQuotaError(str(exc), reason="credits_exhausted") from exc
        except LlmGatewayError as exc:
            logger.warning("Draft synthesis degraded: %s", exc)
            return Degraded(fallback_draft(features, employee), reason=f"llm_failed: {exc}")
        return Ok(draft)


def fallback_draft(features: ExtractedFeatures, employee: EmployeeMetadata) -> FeedbackDraft:
    """Deterministic draft built from extracted features when the model cannot be used."""

    strengths: List[str] = [f"Demonstrated ability: {action}" for action in features.actions[:3]]
    for generic in GENERIC_STRENGTHS:
        if len(strengths) == 3:
            break
        strengths.append(generic)

    evidence_pool = [*features.actions, *(f"Result: {item}" for item in features.results)]
    competencies = [
        Competency(
            name=name,
            rating="Meets Expectations",
            evidence=evidence_pool[index] if index < len(evidence_pool) else "Observed during the review period",
        )
        for index, name in enumerate(FALLBACK_COMPETENCIES)
    ]

    return FeedbackDraft(
        summary=(
            f"{employee.name} ({employee.role}) showed {features.sentiment.label} performance "
            "during this review period. This draft was generated from a template and should be "
            "reviewed before publishing."
        ),
        strengths=strengths,
        improvements=list(GENERIC_IMPROVEMENTS),
        competencies=competencies,
        learning_recommendations=[
            LearningRecommendation(
                recommendation="Complete a course on giving and receiving structured feedback",
                priority="medium",
                type="course",
            ),
            LearningRecommendation(
                recommendation="Pair with a senior colleague for a monthly mentoring session",
                priority="low",
                type="mentoring",
            ),
        ],
        growth_path=GrowthPath(
            short_term="Apply the improvement points above to current work",
            mid_term="Take ownership of a larger deliverable end to end",
            long_term="Grow into a role with broader scope and influence",
            milestones=["Agree on goals with manager", "Review progress at the next check-in"],
        ),
    )


__all__ = ["FeedbackSynthesizer", "fallback_draft"]

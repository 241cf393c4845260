from __future__ import annotations  # Two-pass fairness audit: lexicon scan plus model scoring

import logging
from dataclasses import dataclass
from typing import Optional

from config import LlmRoute
from config.lexicon import BiasLexicon, LexiconScan, bias_lexicon
from config.settings import settings
from domain.types import AiFairness, Degraded, FairnessAssessment, FeedbackDraft, Ok, Outcome
from llm_gateway import HttpClient, LlmGatewayError, call

from .prompts import FAIRNESS_SYSTEM_PROMPT, build_fairness_prompt


logger = logging.getLogger(__name__)


@dataclass
class FairnessAudit:
    """Combined verdict plus the raw lexicon scan that fed it."""

    assessment: FairnessAssessment
    scan: LexiconScan

    @property
    def triggered(self) -> bool:
        return self.assessment.combined_has_bias


class FairnessAuditor:
    def __init__(
        self,
        route: Optional[LlmRoute],
        *,
        client: Optional[HttpClient] = None,
        lexicon: Optional[BiasLexicon] = None,
    ) -> None:
        self._route = route
        self._client = client
        self._lexicon = lexicon

    @property
    def configured(self) -> bool:
        if self._route is None:
            return False
        return self._route.api_key_env is None or bool(self._route.api_key())

    def scan(self, draft: FeedbackDraft) -> LexiconScan:
        lexicon = self._lexicon or bias_lexicon()
        return lexicon.scan(draft.model_dump_json())

    def score(self, draft: FeedbackDraft) -> Outcome[AiFairness]:  # Never raises; failures fall back to the default score
        fallback = AiFairness(fairness=settings.FAIRNESS_DEFAULT, issues=[])
        if not self.configured or self._route is None:
            return Degraded(fallback, reason="llm_not_configured")
        task = build_fairness_prompt(draft.model_dump_json(indent=2))
        try:
            result = call(task, AiFairness, cfg=self._route, system=FAIRNESS_SYSTEM_PROMPT, client=self._client)
        except LlmGatewayError as exc:
            logger.warning("Fairness scoring degraded: %s", exc)
            return Degraded(fallback, reason=f"fairness_failed: {exc}")
        return Ok(result)

    def audit(self, draft: FeedbackDraft) -> FairnessAudit:
        scan = self.scan(draft)
        scored = self.score(draft)
        below = scored.value.fairness < settings.FAIRNESS_THRESHOLD
        assessment = FairnessAssessment(
            lexicon_hits=scan.terms,
            ai_fairness_score=scored.value.fairness,
            ai_issues=scored.value.issues,
            combined_has_bias=scan.has_bias or below,
            ai_degraded=scored.degraded,
        )
        return FairnessAudit(assessment=assessment, scan=scan)


__all__ = ["FairnessAudit", "FairnessAuditor"]

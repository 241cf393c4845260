"""Prompt builders for feedback drafting, fairness scoring and rewrites."""
from __future__ import annotations

import json
from dataclasses import dataclass
from textwrap import dedent
from typing import Dict, List, Optional

from domain.types import EmployeeMetadata, ExtractedFeatures, FeedbackDraft

DRAFT_SYSTEM_PROMPT = (
    "You are an expert HR feedback assistant. Always respond with valid JSON only, "
    "no markdown or explanations."
)
FAIRNESS_SYSTEM_PROMPT = (
    "You are a bias detection expert for performance feedback. Always respond with valid JSON only."
)

TONE_GUIDANCE: Dict[str, str] = {
    "appreciative": "Lead with recognition; frame growth areas as opportunities that build on existing strengths.",
    "developmental": "Focus on growth; be direct about gaps and pair each with a concrete next step.",
    "neutral": "Keep a balanced, factual register; weigh strengths and growth areas evenly.",
}

DRAFT_SCHEMA_EXAMPLE = {
    "summary": "2-3 sentence summary of overall performance",
    "strengths": ["concrete example 1", "concrete example 2", "concrete example 3"],
    "improvements": ["micro-behavior + next step 1", "micro-behavior + next step 2", "micro-behavior + next step 3"],
    "competencies": [
        {"name": "Communication", "rating": "Exceeds Expectations", "evidence": "specific example"},
    ],
    "learning_recommendations": [
        {"recommendation": "text", "priority": "high|medium|low", "type": "course|mentoring|project|reading", "url": None},
    ],
    "growth_path": {
        "short_term": "0-3 months focus",
        "mid_term": "3-12 months focus",
        "long_term": "12+ months direction",
        "milestones": ["milestone 1", "milestone 2"],
    },
}


def _listing(items: List[str]) -> str:
    return ", ".join(items) if items else "None identified"


DRAFT_TEMPLATE = dedent(
    """
    You are a professional HR feedback writer. Based on the spoken feedback transcript and employee
    context below, write structured, specific, bias-free performance feedback.

    ## Employee Context
    - Name: {name}
    - Role: {role}
    - Last review: {last_review}

    ## Extracted Information
    - Key Entities: {entities}
    - Actions Noted: {actions}
    - Results Mentioned: {results}
    - Sentiment: {sentiment} (score: {score:.2f})

    ## Tone
    {tone}: {guidance}

    ## Transcript
    \"\"\"{transcript}\"\"\"

    Return one JSON object with exactly these keys:
    - summary: string
    - strengths: exactly 3 items, each a concrete example from the transcript
    - improvements: exactly 3 micro-behaviors, each with an actionable next step
    - competencies: 4 to 5 objects with name, rating, evidence
    - learning_recommendations: 2 to 3 objects with recommendation, priority, type, url (null if unknown)
    - growth_path: object with short_term, mid_term, long_term and milestones (array)

    Shape:
    {schema}

    Guidelines:
    - Be specific and cite examples from the transcript.
    - Avoid gendered, emotional or culturally loaded language.
    - Make every recommendation actionable.
    """
).strip()

REWRITE_TEMPLATE = dedent(
    """
    ## Rewrite Required
    A previous draft was flagged for fairness problems:
    {flagged}

    Rewrite the feedback to remove the flagged fairness issues while keeping examples and
    actionability. Tone: {tone}. Keep the same JSON keys and item counts.

    Previous draft:
    {previous}
    """
).strip()


def build_draft_prompt(
    *,
    transcript: str,
    employee: EmployeeMetadata,
    features: ExtractedFeatures,
    tone: str,
    rewrite: Optional["RewriteRequest"] = None,
) -> str:  # Single format pass over the dedented template
    prompt = DRAFT_TEMPLATE.format(
        name=employee.name,
        role=employee.role,
        last_review=" ".join(employee.prior_summary.split()) or "Not available",
        entities=_listing(features.entities),
        actions=_listing(features.actions),
        results=_listing(features.results),
        sentiment=features.sentiment.label,
        score=features.sentiment.score,
        tone=tone,
        guidance=TONE_GUIDANCE.get(tone, TONE_GUIDANCE["neutral"]),
        transcript=transcript,
        schema=json.dumps(DRAFT_SCHEMA_EXAMPLE, indent=2),
    )
    if rewrite is not None:
        prompt += "\n\n" + build_rewrite_section(rewrite, tone)
    return prompt


@dataclass
class RewriteRequest:
    """Flagged terms and issues the rewrite must remove, plus the draft being rewritten."""

    flagged: List[str]
    previous: FeedbackDraft


def build_rewrite_section(rewrite: RewriteRequest, tone: str) -> str:
    return REWRITE_TEMPLATE.format(
        flagged="\n".join(f"- {item}" for item in rewrite.flagged) or "- (none listed)",
        tone=tone,
        previous=rewrite.previous.model_dump_json(indent=2),
    )


def build_fairness_prompt(draft_text: str) -> str:
    return dedent(
        """
        Score the following performance feedback on fairness from 0 to 1, where 1 means specific,
        actionable and free of bias. Flag any gendered, emotional, age-related, or culturally loaded
        phrases, and vague language that gives the employee nothing to act on.
        Return: { "fairness": 0.87, "issues": ["too emotional", "vague"] }

        Text:
        """
    ).strip() + "\n" + draft_text


__all__ = [
    "DRAFT_SYSTEM_PROMPT",
    "FAIRNESS_SYSTEM_PROMPT",
    "RewriteRequest",
    "TONE_GUIDANCE",
    "build_draft_prompt",
    "build_fairness_prompt",
    "build_rewrite_section",
]

"""Deterministic heuristic feature extraction over transcripts."""
from __future__ import annotations

import re
from typing import Dict, Iterable, List

from domain.types import ExtractedFeatures, Sentiment

MAX_ITEMS = 10

_ENTITY_PATTERN = re.compile(
    r"\"([^\"\n]+)\"|(?<!\w)'([^'\n]+)'(?!\w)|\b(?i:project|task|initiative)\s+([A-Z][A-Za-z0-9]+)"
)
_ACTION_VERBS = (
    "completed|delivered|led|managed|improved|developed|created|implemented|designed|"
    "built|launched|organized|coordinated|achieved|exceeded|met"
)
_ACTION_PATTERN = re.compile(
    r"(?:\b(?:has|have|had|did|was|were)\s+)?"
    rf"\b((?:successfully\s+)?(?:{_ACTION_VERBS})\b(?:\s+\w+){{0,3}})",
    re.IGNORECASE,
)
_RESULT_PATTERN = re.compile(
    r"\b(?:resulted in|achieved|led to|increased|decreased|improved|reduced)\s+([^.!?]+)",
    re.IGNORECASE,
)
_WORD_PATTERN = re.compile(r"[a-z]+(?:-[a-z]+)*")

# Outcome verbs carry more weight than general praise or criticism.
POSITIVE_WEIGHTS: Dict[str, int] = {
    "excellent": 1, "great": 1, "good": 1, "outstanding": 1, "impressive": 1, "strong": 1,
    "effective": 1, "successful": 1, "growth": 1, "progress": 1, "innovative": 1,
    "creative": 1, "collaborative": 1, "reliable": 1, "dedicated": 1, "professional": 1,
    "completed": 1, "delivered": 1,
    "achieved": 3, "exceeded": 3, "improved": 3, "increased": 3,
}
NEGATIVE_WEIGHTS: Dict[str, int] = {
    "poor": 1, "weak": 1, "lacking": 1, "insufficient": 1, "below": 1, "struggle": 1,
    "struggled": 1, "problem": 1, "issue": 1, "concern": 1, "inconsistent": 1,
    "unreliable": 1, "late": 1, "slow": 1,
    "failed": 3, "missed": 3, "disappointing": 3, "declined": 3,
}


def _unique(items: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for item in items:
        cleaned = item.strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            ordered.append(cleaned)
        if len(ordered) == MAX_ITEMS:
            break
    return ordered


def extract_entities(transcript: str) -> List[str]:
    return _unique(
        match.group(1) or match.group(2) or match.group(3) or ""
        for match in _ENTITY_PATTERN.finditer(transcript)
    )


def extract_actions(transcript: str) -> List[str]:
    return _unique(match.group(1) for match in _ACTION_PATTERN.finditer(transcript))


def extract_results(transcript: str) -> List[str]:
    return _unique(match.group(1) for match in _RESULT_PATTERN.finditer(transcript))


def score_sentiment(transcript: str) -> Sentiment:
    """Weighted lexicon score divided by 10 and clamped to [-1, 1]."""

    total = 0
    for word in _WORD_PATTERN.findall(transcript.lower()):
        total += POSITIVE_WEIGHTS.get(word, 0)
        total -= NEGATIVE_WEIGHTS.get(word, 0)
    score = max(-1.0, min(1.0, total / 10))
    if score > 0.2:
        label = "positive"
    elif score < -0.2:
        label = "negative"
    else:
        label = "neutral"
    return Sentiment(score=score, label=label)


def extract_features(transcript: str) -> ExtractedFeatures:
    """Pure heuristic pass; never raises."""

    text = transcript or ""
    return ExtractedFeatures(
        entities=extract_entities(text),
        actions=extract_actions(text),
        results=extract_results(text),
        sentiment=score_sentiment(text),
    )


__all__ = [
    "MAX_ITEMS",
    "NEGATIVE_WEIGHTS",
    "POSITIVE_WEIGHTS",
    "extract_actions",
    "extract_entities",
    "extract_features",
    "extract_results",
    "score_sentiment",
]

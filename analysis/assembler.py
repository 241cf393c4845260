"""Render a structured draft into the canonical markdown document."""
from __future__ import annotations

from typing import List

from domain.types import FeedbackDraft


def _bullets(items: List[str]) -> List[str]:
    return [f"- {item}" for item in items if item]


def render_markdown(draft: FeedbackDraft) -> str:
    lines: List[str] = ["## Summary", draft.summary, ""]

    lines.append("## Strengths")
    lines.extend(_bullets(draft.strengths))
    lines.append("")

    lines.append("## Areas for Improvement")
    lines.extend(_bullets(draft.improvements))
    lines.append("")

    lines.append("## Competency Assessment")
    for competency in draft.competencies:
        lines.append(f"### {competency.name}")
        lines.append(f"**Rating:** {competency.rating}")
        lines.append(f"**Evidence:** {competency.evidence}")
        lines.append("")
    if not draft.competencies:
        lines.append("")

    lines.append("## Learning Recommendations")
    for rec in draft.learning_recommendations:
        line = f"- **{rec.recommendation}** ({rec.type}, {rec.priority} priority)"
        if rec.url:
            line += f" [link]({rec.url})"
        lines.append(line)
    lines.append("")

    growth = draft.growth_path
    lines.append("## Growth Path")
    lines.append(f"**Short term (0-3 months):** {growth.short_term}")
    lines.append(f"**Mid term (3-12 months):** {growth.mid_term}")
    lines.append(f"**Long term (12+ months):** {growth.long_term}")
    if growth.milestones:
        lines.append("")
        lines.append("**Milestones:**")
        lines.extend(_bullets(growth.milestones))

    return "\n".join(lines).strip() + "\n"


def competency_tags(draft: FeedbackDraft) -> List[str]:
    return [c.name.strip() for c in draft.competencies if c.name and c.name.strip()]


__all__ = ["competency_tags", "render_markdown"]

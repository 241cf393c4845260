from __future__ import annotations

import pytest

from analysis.features import extract_features
from analysis.prompts import RewriteRequest, build_draft_prompt
from analysis.synthesizer import FeedbackSynthesizer, fallback_draft
from domain.errors import ProviderQuotaError, ProviderUnavailableError
from domain.types import EmployeeMetadata, FeedbackDraft

TRANSCRIPT = "Team completed the 'Phoenix' project and increased throughput by 20%."
EMPLOYEE = EmployeeMetadata(name="Dana Cruz", role="Backend Engineer", prior_summary="Solid year,\n   keep growing.")


def _synthesize(synth: FeedbackSynthesizer):
    return synth.synthesize(
        transcript=TRANSCRIPT,
        employee=EMPLOYEE,
        features=extract_features(TRANSCRIPT),
        tone="developmental",
    )


def test_prompt_carries_context_and_shape() -> None:
    prompt = build_draft_prompt(
        transcript=TRANSCRIPT,
        employee=EMPLOYEE,
        features=extract_features(TRANSCRIPT),
        tone="appreciative",
    )
    assert "- Name: Dana Cruz" in prompt
    assert "- Last review: Solid year, keep growing." in prompt
    assert "- Key Entities: Phoenix" in prompt
    assert "positive (score: 0.40)" in prompt
    assert f'"""{TRANSCRIPT}"""' in prompt
    assert '"growth_path"' in prompt
    assert "Rewrite Required" not in prompt


def test_rewrite_prompt_lists_flagged_terms() -> None:
    rewrite = RewriteRequest(flagged=["aggressive", "too vague"], previous=FeedbackDraft(summary="old"))
    prompt = build_draft_prompt(
        transcript=TRANSCRIPT,
        employee=EMPLOYEE,
        features=extract_features(TRANSCRIPT),
        tone="neutral",
        rewrite=rewrite,
    )
    assert "## Rewrite Required" in prompt
    assert "- aggressive\n- too vague" in prompt
    assert '"summary": "old"' in prompt


def test_model_draft_is_ok(make_llm, llm_route, draft_json) -> None:
    outcome = _synthesize(FeedbackSynthesizer(llm_route, client=make_llm([(200, draft_json)])))
    assert not outcome.degraded
    assert outcome.value.competencies[0].name == "Delivery"


def test_lenient_aliases_fill_every_key(make_llm, llm_route) -> None:
    reply = '{"summary": "ok", "mapped_competencies": [{"competency": "Ownership", "rating": "Meets"}], "learningRecommendations": ["Read a book"], "growthPath": {"shortTerm": "Focus"}}'
    outcome = _synthesize(FeedbackSynthesizer(llm_route, client=make_llm([(200, reply)])))
    draft = outcome.value
    assert draft.competencies[0].name == "Ownership"
    assert draft.learning_recommendations[0].recommendation == "Read a book"
    assert draft.growth_path.short_term == "Focus"
    assert draft.strengths == [] and draft.improvements == []
    assert draft.growth_path.milestones == []


def test_parse_failure_degrades_to_template(make_llm, llm_route) -> None:
    outcome = _synthesize(FeedbackSynthesizer(llm_route, client=make_llm([(200, "Sorry, no JSON today.")])))
    assert outcome.degraded
    assert outcome.reason.startswith("llm_failed")
    assert outcome.value == fallback_draft(extract_features(TRANSCRIPT), EMPLOYEE)


def test_server_error_degrades(make_llm, llm_route) -> None:
    outcome = _synthesize(FeedbackSynthesizer(llm_route, client=make_llm([(500, "")])))
    assert outcome.degraded


@pytest.mark.parametrize("status,reason", [(429, "rate_limited"), (402, "credits_exhausted")])
def test_quota_errors_surface(make_llm, llm_route, status, reason) -> None:
    with pytest.raises(ProviderQuotaError) as excinfo:
        _synthesize(FeedbackSynthesizer(llm_route, client=make_llm([(status, "")])))
    assert excinfo.value.reason == reason
    assert excinfo.value.status_code == 429


def test_missing_provider_surfaces(monkeypatch, llm_route) -> None:
    with pytest.raises(ProviderUnavailableError):
        _synthesize(FeedbackSynthesizer(None))
    monkeypatch.delenv("ABSENT_KEY", raising=False)
    keyed = llm_route.model_copy(update={"api_key_env": "ABSENT_KEY"})
    assert FeedbackSynthesizer(keyed).configured is False


def test_fallback_draft_shape() -> None:
    draft = fallback_draft(extract_features(TRANSCRIPT), EMPLOYEE)
    assert len(draft.strengths) == 3
    assert draft.strengths[0] == "Demonstrated ability: completed the"
    assert len(draft.improvements) == 3
    assert [c.name for c in draft.competencies] == ["Communication", "Technical Skills", "Collaboration", "Ownership"]
    assert draft.competencies[1].evidence == "Result: throughput by 20%"
    assert 2 <= len(draft.learning_recommendations) <= 3
    assert draft.growth_path.milestones
    assert "Dana Cruz" in draft.summary


def test_fallback_draft_for_empty_features() -> None:
    draft = fallback_draft(extract_features(""), EmployeeMetadata())
    assert len(draft.strengths) == 3
    assert all(c.evidence for c in draft.competencies)


def test_wrongly_typed_draft_degrades_to_template(make_llm, llm_route) -> None:
    outcome = _synthesize(FeedbackSynthesizer(llm_route, client=make_llm([(200, '{"summary": "ok", "strengths": 5}')])))
    assert outcome.degraded
    assert outcome.value == fallback_draft(extract_features(TRANSCRIPT), EMPLOYEE)


def test_placeholder_text_in_values_is_kept_verbatim() -> None:
    employee = EmployeeMetadata(name="{transcript}", role="Engineer", prior_summary="Asked about {schema} twice.")
    rewrite = RewriteRequest(flagged=["{previous}"], previous=FeedbackDraft(summary="old"))
    prompt = build_draft_prompt(
        transcript="Line one.\nLine {flagged} two.",
        employee=employee,
        features=extract_features(""),
        tone="neutral",
        rewrite=rewrite,
    )
    assert "- Name: {transcript}" in prompt
    assert "- Last review: Asked about {schema} twice." in prompt
    assert '"""Line one.\nLine {flagged} two."""' in prompt
    assert "- {previous}" in prompt
    assert prompt.count("0-3 months focus") == 1

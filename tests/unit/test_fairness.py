from __future__ import annotations

import os

from analysis.fairness import FairnessAuditor
from config.lexicon import DEFAULT_TERMS, BiasLexicon
from domain.types import FeedbackDraft

YAML_V1 = """
version: 1
categories:
  gendered:
    terms: [bossy, Too Soft]
"""

YAML_V2 = """
version: 1
categories:
  coded:
    terms: [abrasive]
"""


def _draft(summary: str) -> FeedbackDraft:
    return FeedbackDraft(summary=summary, strengths=["Shipped on time"])


def test_lexicon_scan_is_case_insensitive(tmp_path) -> None:
    path = tmp_path / "lexicon.yaml"
    path.write_text(YAML_V1, encoding="utf-8")
    lexicon = BiasLexicon(str(path))
    scan = lexicon.scan("She can be BOSSY and too soft with vendors.")
    assert scan.has_bias
    assert scan.terms == ["bossy", "too soft"]
    assert scan.categories == ["gendered"]


def test_lexicon_reloads_when_file_changes(tmp_path) -> None:
    path = tmp_path / "lexicon.yaml"
    path.write_text(YAML_V1, encoding="utf-8")
    lexicon = BiasLexicon(str(path))
    assert not lexicon.scan("an abrasive tone").has_bias

    path.write_text(YAML_V2, encoding="utf-8")
    stat = os.stat(path)
    os.utime(path, (stat.st_atime, stat.st_mtime + 5))
    assert lexicon.scan("an abrasive tone").terms == ["abrasive"]


def test_missing_lexicon_uses_builtin_terms(tmp_path) -> None:
    lexicon = BiasLexicon(str(tmp_path / "absent.yaml"))
    assert set(lexicon.terms()) == {term for terms in DEFAULT_TERMS.values() for term in terms}


def test_shipped_lexicon_has_default_terms() -> None:
    lexicon = BiasLexicon()
    assert "aggressive" in lexicon.terms()
    assert len(lexicon.terms()) == 24


def test_unconfigured_scorer_defaults_and_lexicon_triggers() -> None:
    auditor = FairnessAuditor(None)
    audit = auditor.audit(_draft("Great results but can be aggressive in reviews."))
    assessment = audit.assessment
    assert assessment.ai_fairness_score == 0.8
    assert assessment.ai_issues == []
    assert assessment.ai_degraded
    assert assessment.lexicon_hits == ["aggressive"]
    assert assessment.combined_has_bias
    assert audit.triggered


def test_clean_draft_with_good_score_passes(make_llm, llm_route) -> None:
    client = make_llm([(200, '{"fairness": 0.92, "issues": []}')])
    audit = FairnessAuditor(llm_route, client=client).audit(_draft("Delivered the migration."))
    assert not audit.assessment.combined_has_bias
    assert audit.assessment.ai_fairness_score == 0.92
    assert not audit.assessment.ai_degraded


def test_low_score_alone_triggers(make_llm, llm_route) -> None:
    client = make_llm([(200, 'Result: {"fairness": 0.55, "issues": ["vague language"]}')])
    audit = FairnessAuditor(llm_route, client=client).audit(_draft("Did fine."))
    assert audit.assessment.lexicon_hits == []
    assert audit.assessment.ai_issues == ["vague language"]
    assert audit.triggered


def test_scorer_failure_never_surfaces(make_llm, llm_route) -> None:
    for reply in [(429, ""), (200, "not json"), ConnectionError("down")]:
        scored = FairnessAuditor(llm_route, client=make_llm([reply])).score(_draft("Delivered."))
        assert scored.degraded
        assert scored.value.fairness == 0.8
        assert scored.value.issues == []


def test_wrongly_typed_score_falls_back(make_llm, llm_route) -> None:
    for reply in ['{"fairness": null, "issues": []}', '{"fairness": 0.9, "issues": 3}']:
        scored = FairnessAuditor(llm_route, client=make_llm([(200, reply)])).score(_draft("Delivered."))
        assert scored.degraded
        assert scored.reason.startswith("fairness_failed")
        assert scored.value.fairness == 0.8

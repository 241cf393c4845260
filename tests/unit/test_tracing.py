from __future__ import annotations

import pytest

from observability import span
from pipeline.service import PipelineRun


def test_span_records_success_and_failure() -> None:
    run = PipelineRun(session_id="s1")
    with span(run, "features"):
        pass
    with pytest.raises(ValueError):
        with span(run, "synthesis"):
            raise ValueError("boom")
    assert [(e["span"], e["ok"]) for e in run.events] == [("features", True), ("synthesis", False)]
    assert all(e["ms"] >= 0 for e in run.events)

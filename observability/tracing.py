"""Stage timing spans attached to a pipeline run."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


@contextmanager
def span(run, name: str) -> Iterator[None]:  # Append {span, ms, ok} to run.events; failures are re-raised
    started = time.perf_counter()
    ok = True
    try:
        yield
    except Exception:
        ok = False
        raise
    finally:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        run.events.append({"span": name, "ms": elapsed_ms, "ok": ok})
        logger.debug("session=%s span=%s ms=%d ok=%s", getattr(run, "session_id", "-"), name, elapsed_ms, ok)


__all__ = ["span"]

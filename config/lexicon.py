"""YAML-driven bias lexicon and scanning helpers."""
from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config.settings import settings

DEFAULT_TERMS: Dict[str, List[str]] = {
    "gendered": [
        "aggressive", "bossy", "emotional", "hysterical", "pushy", "abrasive",
        "shrill", "feisty", "dramatic", "too nice", "too soft", "motherly", "bubbly",
    ],
    "demeaning": ["ditzy", "scatterbrained", "airhead", "lazy", "entitled", "difficult"],
    "coded": ["uppity", "angry", "intimidating", "articulate", "well-spoken"],
}


@dataclass
class LexiconScan:
    """Result of scanning a text against the bias lexicon."""

    has_bias: bool
    terms: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)


def _load_yaml(path: str) -> dict:
    import yaml  # local import to avoid mandatory dependency until used

    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


class BiasLexicon:
    """Load bias terms from YAML and scan text for them."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or settings.BIAS_LEXICON_PATH
        self._mtime = 0.0
        self._terms: Dict[str, List[str]] = {}
        self.reload_if_changed(force=True)

    def reload_if_changed(self, force: bool = False) -> None:
        """Reload the YAML lexicon when the file timestamp changes."""

        try:
            stat = os.stat(self.path)
            if not force and stat.st_mtime <= self._mtime:
                return
            cfg = _load_yaml(self.path)
            self._mtime = stat.st_mtime
        except FileNotFoundError:
            if self._terms and not force:
                return
            cfg = {"version": 1, "categories": {k: {"terms": v} for k, v in DEFAULT_TERMS.items()}}
            self._mtime = time.time()

        self._terms = {
            name: [str(term).strip().lower() for term in (values or {}).get("terms", []) if str(term).strip()]
            for name, values in (cfg.get("categories") or {}).items()
        }

    def terms(self) -> List[str]:
        # Preserve lexicon order while removing duplicates
        seen: set[str] = set()
        ordered: List[str] = []
        for values in self._terms.values():
            for term in values:
                if term not in seen:
                    seen.add(term)
                    ordered.append(term)
        return ordered

    def scan(self, text: str) -> LexiconScan:
        self.reload_if_changed()
        sample = (text or "").lower()
        hits: List[str] = []
        categories: List[str] = []
        for category, values in self._terms.items():
            for term in values:
                if term in sample and term not in hits:
                    hits.append(term)
                    if category not in categories:
                        categories.append(category)
        return LexiconScan(has_bias=bool(hits), terms=hits, categories=categories)


_lexicon: Optional[BiasLexicon] = None


def bias_lexicon() -> BiasLexicon:
    global _lexicon
    if _lexicon is None:
        _lexicon = BiasLexicon()
    return _lexicon


def scan_text(text: str) -> LexiconScan:
    """Convenience wrapper returning the shared lexicon's scan."""

    return bias_lexicon().scan(text)


__all__ = ["BiasLexicon", "DEFAULT_TERMS", "LexiconScan", "bias_lexicon", "scan_text"]

"""Gloss similarity functions."""

from __future__ import annotations

import logging
import math
import threading
from collections import Counter
from collections.abc import Iterable
from typing import Protocol

from crown.dictionary import LexicalDatabase
from crown.models import LexicalEntry
from crown.nlp import Annotator

logger = logging.getLogger(__name__)

STOP_VERBS = frozenset({
    "is", "am", "are", "was", "were", "have", "has", "had",
    "will", "would", "shall", "should",
    "may", "might", "must", "be", "been", "being",
})


class SimilarityFunction(Protocol):
    """Scores two texts; higher is more similar, never negative."""

    def compare(self, text1: str, text2: str) -> float: ...

    def reset(self, db: LexicalDatabase, entries: Iterable[LexicalEntry]) -> None: ...


class InvFreqSimilarity:
    """Sum of inverse-frequency weights of the content lemmas two texts share.

    Weights are estimated over the glosses of every candidate entry and every
    synset: ``-log((count / n) / n)`` with ``n`` the number of entry glosses.
    """

    def __init__(
        self,
        entries: Iterable[LexicalEntry],
        db: LexicalDatabase,
        annotator: Annotator,
    ) -> None:
        self._annotator = annotator
        self._lock = threading.Lock()
        self._lemma_cache: dict[str, frozenset[str]] = {}
        self._weights: dict[str, float] = {}
        self.reset(db, entries)

    def content_lemmas(self, text: str) -> frozenset[str]:
        with self._lock:
            cached = self._lemma_cache.get(text)
        if cached is not None:
            return cached

        lemmas = set()
        for sentence in self._annotator.parse(text):
            for token in sentence.tokens:
                c = token.pos
                if c in ("n", "j", "r") or (c == "v" and token.lemma not in STOP_VERBS):
                    lemmas.add(token.lemma)
        result = frozenset(lemmas)
        with self._lock:
            self._lemma_cache[text] = result
        return result

    def compare(self, text1: str, text2: str) -> float:
        lemmas1 = self.content_lemmas(text1)
        lemmas2 = self.content_lemmas(text2)
        if not lemmas1 or not lemmas2:
            return 0.0
        return sum(self._weights.get(lemma, 0.0) for lemma in lemmas1 & lemmas2)

    def weight(self, lemma: str) -> float:
        return self._weights.get(lemma, 0.0)

    def reset(self, db: LexicalDatabase, entries: Iterable[LexicalEntry]) -> None:
        logger.info("Calculating lemma weights")
        counts: Counter[str] = Counter()
        num_glosses = 0
        for entry in entries:
            num_glosses += 1
            counts.update(self.content_lemmas(entry.gloss))
        for synset in db.synsets():
            counts.update(self.content_lemmas(synset.gloss))

        weights: dict[str, float] = {}
        if num_glosses:
            for lemma, count in counts.items():
                freq = count / num_glosses
                weights[lemma] = max(0.0, -math.log(freq / num_glosses))
        with self._lock:
            self._weights = weights
        logger.info("Done calculating lemma weights (%d lemmas)", len(weights))

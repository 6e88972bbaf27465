"""Shared machinery for extraction and augmentation procedures."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable
from typing import Any

from crown.dictionary import LexicalDatabase
from crown.models import (
    AnnotatedLexicalEntry,
    LexicalEntry,
    PartOfSpeech,
    Reason,
    Synset,
)
from crown.relations import HYPERNYM_RELATIONS
from crown.similarity import SimilarityFunction

logger = logging.getLogger(__name__)


class IntegrationProcedure:
    """Classifies one lexical entry against the current database snapshot.

    Subclasses implement :meth:`classify`; :meth:`integrate` turns lookup and
    parsing failures on odd input into "no opinion".
    """

    def __init__(self, db: LexicalDatabase, similarity: SimilarityFunction) -> None:
        self.db = db
        self.similarity = similarity

    @property
    def name(self) -> str:
        return type(self).__name__

    def set_dictionary(self, db: LexicalDatabase) -> None:
        self.db = db

    def integrate(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        try:
            return self.classify(entry)
        except (ValueError, LookupError) as e:
            logger.debug("%s skipped %s (%s): %s", self.name, entry.id, entry.lemma, e)
            return None

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        raise NotImplementedError

    def reason(self, **props: Any) -> Reason:
        return Reason(self.name, dict(props))

    def best_match(
        self,
        text: str,
        candidates: Iterable[Synset],
        *,
        gloss: Callable[[Synset], str] | None = None,
        start: float = 0.0,
        skip: Callable[[Synset], bool] | None = None,
    ) -> tuple[Synset | None, float]:
        """Highest-scoring candidate; ties keep the first one seen."""
        gloss = gloss or self.db.gloss_without_examples
        best = None
        max_score = start
        for candidate in candidates:
            if skip is not None and skip(candidate):
                continue
            score = self.similarity.compare(text, gloss(candidate))
            if max_score < score:
                max_score = score
                best = candidate
        return best, max_score

    def choose_sense(
        self,
        text: str,
        candidates: list[Synset],
        reason: Reason,
        *,
        gloss: Callable[[Synset], str] | None = None,
        start: float = 0.0,
    ) -> Synset | None:
        """Pick one sense, skipping scoring when only one is possible.

        Records how the sense was chosen on ``reason`` under ``selection``.
        """
        if not candidates:
            return None
        if len(candidates) == 1:
            reason.set("selection", "single-sense")
            return candidates[0]
        best, score = self.best_match(text, candidates, gloss=gloss, start=start)
        if best is not None:
            reason.set("selection", "gloss-similarity")
            reason.set("max_score", score)
        return best

    def estimate_synonym(
        self,
        lemmas: Iterable[str],
        pos: PartOfSpeech,
        gloss: str,
        *,
        guard_lemma: str | None = None,
        start: float = 0.0,
    ) -> tuple[Reason, Synset] | None:
        """Vote for the synset a list of synonyms most plausibly shares.

        Every sense of every synonym, and each of their hypernyms, gets a
        vote. With ``guard_lemma`` set, gives up as soon as that lemma is
        already near one of the voters.
        """
        counts: Counter[str] = Counter()
        in_wn: list[str] = []

        def guarded(synset: Synset) -> bool:
            return bool(guard_lemma) and self.db.is_already_in_wordnet(
                guard_lemma, pos, synset,
            )

        for lemma in lemmas:
            senses = self.db.lookup(lemma, pos)
            if not senses:
                continue
            in_wn.append(lemma)
            counts.update(s.id for s in senses)
            for synset in senses:
                if guarded(synset):
                    return None
                for hyper in self.db.related(synset, HYPERNYM_RELATIONS[0]):
                    if guarded(hyper):
                        return None
                    counts[hyper.id] += 1
        if not counts:
            return None

        reason = self.reason(relation_type="synonym")
        if len(in_wn) == 1:
            senses = self.db.lookup(in_wn[0], pos)
            reason.set("heuristic", "single-synonym")
            reason.set("num_senses", len(senses))
            best = self.choose_sense(gloss, senses, reason, start=start)
            return (reason, best) if best is not None else None

        top = max(counts.values())
        ties = [self.db.synset(i) for i, c in counts.items() if c == top]
        if len(ties) == 1:
            reason.set("heuristic", "unambiguous-max")
            reason.set("count", top)
            return reason, ties[0]
        best, score = self.best_match(gloss, ties, start=start)
        if best is None:
            return None
        reason.set("heuristic", "tied-synonyms")
        reason.set("max_score", score)
        return reason, best


class AugmentationProcedure:
    """Adds non-taxonomic relations to an already classified entry."""

    def __init__(self, db: LexicalDatabase, similarity: SimilarityFunction) -> None:
        self.db = db
        self.similarity = similarity

    @property
    def name(self) -> str:
        return type(self).__name__

    def set_dictionary(self, db: LexicalDatabase) -> None:
        self.db = db

    def reason(self, **props: Any) -> Reason:
        return Reason(self.name, dict(props))

    def augment(self, annotated: AnnotatedLexicalEntry) -> None:
        try:
            self.apply(annotated)
        except (ValueError, LookupError) as e:
            logger.debug("%s skipped %s: %s", self.name, annotated.id, e)

    def apply(self, annotated: AnnotatedLexicalEntry) -> None:
        raise NotImplementedError

"""Topic-domain links from ``{{context|...}}`` labels."""

from __future__ import annotations

from collections.abc import Iterable

from crown.config import DEFAULT_EXCLUDED_DOMAINS
from crown.models import AnnotatedLexicalEntry, OperationKind, PartOfSpeech
from crown.procedures.base import AugmentationProcedure
from crown.wiktionary import extract_annotations

# Usage labels that are not topics.
EXCLUDED_DOMAINS = frozenset(DEFAULT_EXCLUDED_DOMAINS)


class DomainLinkAugmenter(AugmentationProcedure):
    def __init__(self, db, similarity, excluded: Iterable[str] | None = None) -> None:
        super().__init__(db, similarity)
        self.excluded = (
            frozenset(excluded) if excluded is not None else EXCLUDED_DOMAINS
        )

    def apply(self, annotated: AnnotatedLexicalEntry) -> None:
        for raw, cleaned in annotated.entry.raw_glosses:
            for annotation in extract_annotations(raw):
                cols = annotation.split("|")
                if cols[0].strip() != "context" or len(cols) < 2:
                    continue
                labels = [c.strip() for c in cols[1:]]
                if any(label in self.excluded for label in labels):
                    continue
                for label in labels:
                    if "=" in label:
                        continue
                    domain = label.replace("[", "").replace("]", "")
                    self._link(annotated, domain, cleaned)

    def _link(self, annotated: AnnotatedLexicalEntry, domain: str, gloss: str) -> None:
        senses = self.db.lookup(domain, PartOfSpeech.NOUN)
        if not senses:
            return
        if len(senses) == 1:
            annotated.add_op(
                OperationKind.DOMAIN_TOPIC,
                self.reason(heuristic="single-sense", domain=domain),
                senses[0],
            )
            return
        best = None
        max_score = -1.0
        for synset in senses:
            score = self.similarity.compare(gloss, self.db.extended_gloss(synset))
            if max_score < score:
                max_score = score
                best = synset
        if best is not None:
            annotated.add_op(
                OperationKind.DOMAIN_TOPIC,
                self.reason(
                    heuristic="gloss-similarity", domain=domain, max_score=max_score,
                ),
                best,
            )

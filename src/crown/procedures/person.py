"""Attach "someone who ..." entries below the right kind of person."""

from __future__ import annotations

import logging
import re

from crown.models import AnnotatedLexicalEntry, LexicalEntry, OperationKind, PartOfSpeech
from crown.procedures.base import IntegrationProcedure
from crown.procedures.closures import ClosureCache
from crown.wiktionary import TRAILING_PUNCT

SOMEONE_WHO = re.compile(r"(?:one|someone|somebody)\s+who\s", re.IGNORECASE)
TYPED_PERSON = re.compile(r"(?:a|an|the)\s+(\S+)\s+(?:who|that)\s", re.IGNORECASE)

logger = logging.getLogger(__name__)


class PersonPatternExtractor(IntegrationProcedure):
    def __init__(self, db, similarity, closures: ClosureCache | None = None) -> None:
        super().__init__(db, similarity)
        self.closures = closures or ClosureCache()

    def set_dictionary(self, db) -> None:
        super().set_dictionary(db)
        self.closures.invalidate()

    def is_person(self, entry: LexicalEntry, person_lemmas: frozenset[str]) -> bool:
        for subdef in entry.glosses:
            if not subdef:
                continue
            if SOMEONE_WHO.search(subdef):
                return True
            m = TYPED_PERSON.search(subdef)
            if m and TRAILING_PUNCT.sub("", m.group(1)).lower() in person_lemmas:
                return True
        return False

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        if entry.pos is not PartOfSpeech.NOUN:
            return None
        closure = self.closures.person(self.db)
        if closure.root is None or not self.is_person(entry, closure.lemmas):
            return None

        # Already somewhere below "person".
        for synset in self.db.lookup(entry.lemma, PartOfSpeech.NOUN):
            if self.db.is_descendant(synset, closure.root.id):
                return None

        m = TYPED_PERSON.search(entry.gloss)
        if m:
            person_type = TRAILING_PUNCT.sub("", m.group(1))
            if person_type.lower() != "person":
                hypernym = self.db.first_sense(person_type, PartOfSpeech.NOUN)
                if hypernym is None:
                    logger.debug("No noun sense for person type %r", person_type)
                elif not self.db.is_already_in_wordnet(
                    entry.lemma, PartOfSpeech.NOUN, hypernym,
                ):
                    ale = AnnotatedLexicalEntry(entry)
                    ale.set_op(
                        OperationKind.HYPERNYM,
                        self.reason(heuristic="typed-person", person_type=person_type),
                        hypernym,
                    )
                    return ale

        best, score = self.best_match(
            entry.gloss,
            closure.synsets,
            skip=lambda s: self.db.is_already_in_wordnet(
                entry.lemma, PartOfSpeech.NOUN, s,
            ),
        )
        if best is None:
            return None
        ale = AnnotatedLexicalEntry(entry)
        ale.set_op(
            OperationKind.HYPERNYM,
            self.reason(heuristic="gloss-similarity", max_score=score),
            best,
        )
        return ale

"""Attach "A flock of birds"-style collective nouns."""

from __future__ import annotations

import re

from crown.gloss import extract_noun_candidates
from crown.models import AnnotatedLexicalEntry, LexicalEntry, OperationKind, PartOfSpeech
from crown.procedures.base import IntegrationProcedure
from crown.procedures.closures import ClosureCache

GROUP_OF_NOUN = re.compile(r"\b(?:The|An?) (\S+) of (?:a |an |the )?([a-zA-Z\-]+)")


class GroupExtractor(IntegrationProcedure):
    """Hyponym of the group type, member meronym of the grouped noun."""

    def __init__(self, db, similarity, closures: ClosureCache | None = None) -> None:
        super().__init__(db, similarity)
        self.closures = closures or ClosureCache()

    def set_dictionary(self, db) -> None:
        super().set_dictionary(db)
        self.closures.invalidate()

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        if entry.pos is not PartOfSpeech.NOUN:
            return None
        group_types = self.closures.group_types(self.db)

        for gloss in entry.glosses:
            m = GROUP_OF_NOUN.search(gloss)
            if m is None:
                continue
            group_type, member = m.group(1), m.group(2)
            hypernym = group_types.get(group_type.lower())
            if hypernym is None:
                continue
            if self.db.is_already_in_wordnet(entry.lemma, PartOfSpeech.NOUN, hypernym):
                continue

            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(
                OperationKind.HYPERNYM,
                self.reason(heuristic="group-type", group_type=group_type),
                hypernym,
            )
            rest = gloss[m.end(2):].strip()
            candidates = extract_noun_candidates(self.db, gloss, member, m.start(1))
            for candidate in candidates:
                senses = self.db.lookup(candidate, PartOfSpeech.NOUN)
                if not senses:
                    continue
                if rest:
                    reason = self.reason(heuristic="most-similar")
                    target = self.choose_sense(rest, senses, reason, start=-1.0)
                else:
                    reason = self.reason(
                        heuristic="first-sense", comment="no gloss to compare",
                    )
                    target = senses[0]
                if target is not None:
                    ale.add_op(OperationKind.MEMBER_MERONYM, reason, target)
                break
            return ale
        return None

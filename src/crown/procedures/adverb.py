"""Derive "in a X manner" adverbs from their adjective."""

from __future__ import annotations

import re

from crown.models import AnnotatedLexicalEntry, LexicalEntry, OperationKind, PartOfSpeech
from crown.procedures.base import IntegrationProcedure
from crown.wiktionary import TRAILING_PUNCT

MANNER_PATTERN = re.compile(r"\bin an? (\w+) (?:manner|way)\b", re.IGNORECASE)


class AdverbExtractor(IntegrationProcedure):
    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        if entry.pos is not PartOfSpeech.ADVERB:
            return None
        if self.db.is_in_wn(entry.lemma, PartOfSpeech.ADVERB):
            return None

        for gloss in entry.glosses:
            m = MANNER_PATTERN.search(gloss)
            if m is None:
                continue
            adjective = TRAILING_PUNCT.sub("", m.group(1))
            senses = self.db.index_lookup(adjective, PartOfSpeech.ADJECTIVE)
            if not senses:
                continue

            reason = self.reason(adjective=adjective)
            if len(senses) == 1:
                reason.set("heuristic", "single-sense")
                target = senses[0]
            # Only score when there is context beyond the manner phrase.
            elif len(gloss) > m.end() + 2 or len(entry.glosses) > 1:
                target, score = self.best_match(
                    entry.gloss, senses, gloss=self.db.extended_gloss,
                )
                if target is None:
                    continue
                reason.set("heuristic", "gloss-similarity")
                reason.set("max_score", score)
            else:
                reason.set("heuristic", "first-sense")
                target = senses[0]

            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(OperationKind.DERIVED_FROM_ADJECTIVE, reason, target)
            return ale
        return None

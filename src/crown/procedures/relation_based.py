"""Merge entries into the synset their listed synonyms agree on."""

from __future__ import annotations

from crown.models import (
    AnnotatedLexicalEntry,
    EntryRelationType,
    LexicalEntry,
    OperationKind,
)
from crown.procedures.base import IntegrationProcedure


class RelationBasedIntegrator(IntegrationProcedure):
    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        synonyms = list(dict.fromkeys(entry.related_lemmas(EntryRelationType.SYNONYM)))
        if not synonyms:
            return None
        estimate = self.estimate_synonym(
            synonyms, entry.pos, entry.gloss, guard_lemma=entry.lemma, start=-1.0,
        )
        if estimate is None:
            return None
        reason, target = estimate
        ale = AnnotatedLexicalEntry(entry)
        ale.set_op(OperationKind.SYNONYM, reason, target)
        return ale

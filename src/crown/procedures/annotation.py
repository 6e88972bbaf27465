"""Classify entries from cross-reference templates such as ``{{synonym of|x}}``."""

from __future__ import annotations

from enum import Enum

from crown.models import (
    AnnotatedLexicalEntry,
    LexicalEntry,
    OperationKind,
    PartOfSpeech,
    Synset,
)
from crown.procedures.base import IntegrationProcedure
from crown.relations import HYPERNYM_RELATIONS
from crown.wiktionary import extract_annotation_values, extract_annotations


class AnnotationAction(str, Enum):
    LEXICALIZE = "lexicalize"
    MERGE = "merge"
    ATTACH = "attach"
    SIBLING = "sibling"


ANNOTATION_ACTIONS: dict[str, AnnotationAction] = {
    "alternative spelling of": AnnotationAction.LEXICALIZE,
    "abbreviation of": AnnotationAction.MERGE,
    "synonym of": AnnotationAction.MERGE,
    "short for": AnnotationAction.MERGE,
    "form of": AnnotationAction.MERGE,
    "informal form of": AnnotationAction.ATTACH,
    "euphemistic form of": AnnotationAction.ATTACH,
    "euphemistic spelling of": AnnotationAction.ATTACH,
    "diminutive of": AnnotationAction.ATTACH,
    "feminine of": AnnotationAction.SIBLING,
    "neuter of": AnnotationAction.SIBLING,
    "masculine of": AnnotationAction.SIBLING,
}


class AnnotationExtractor(IntegrationProcedure):
    """Follow the template that names the word this entry is a form of."""

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        annotations: list[str] = []
        one_word_gloss = len(entry.raw_glosses) == 1
        for raw, cleaned in entry.raw_glosses:
            annotations.extend(extract_annotations(raw))
            if cleaned.find(" ") > 0:
                one_word_gloss = False

        pos = entry.pos
        for annotation_type, related in extract_annotation_values(annotations).items():
            action = ANNOTATION_ACTIONS.get(annotation_type)
            if action is None:
                continue

            if action is AnnotationAction.LEXICALIZE:
                ale = AnnotatedLexicalEntry(entry)
                ale.add_lexicalization(
                    self.reason(heuristic="lexicalize", annotation_type=annotation_type),
                    related,
                )
                return ale

            related_synsets = self.db.lookup(related, pos)
            if self.db.is_already_in_wordnet(entry.lemma, pos, related_synsets):
                continue

            reason = self.reason(heuristic=action.value, annotation_type=annotation_type)
            if one_word_gloss and related_synsets:
                reason.set("selection", "first-sense")
                target = related_synsets[0]
            else:
                target = self.choose_sense(
                    entry.gloss, related_synsets, reason,
                    gloss=self.db.extended_gloss, start=-1.0,
                )
            if target is None:
                continue
            if pos is PartOfSpeech.ADVERB and action is not AnnotationAction.MERGE:
                continue

            ale = self._apply(entry, action, reason, target)
            if ale is not None:
                return ale
        return None

    def _apply(
        self,
        entry: LexicalEntry,
        action: AnnotationAction,
        reason,
        target: Synset,
    ) -> AnnotatedLexicalEntry | None:
        ale = AnnotatedLexicalEntry(entry)
        is_adjective = entry.pos is PartOfSpeech.ADJECTIVE
        if action is AnnotationAction.MERGE:
            ale.set_op(OperationKind.SYNONYM, reason, target)
        elif action is AnnotationAction.ATTACH:
            kind = OperationKind.SIMILAR_TO if is_adjective else OperationKind.HYPERNYM
            ale.set_op(kind, reason, target)
        else:
            parents = self.db.related(target, HYPERNYM_RELATIONS[0])
            if not parents:
                return None
            if is_adjective:
                ale.set_op(OperationKind.SIMILAR_TO, reason, target)
            else:
                ale.set_op(OperationKind.HYPERNYM, reason, parents[0])
        return ale

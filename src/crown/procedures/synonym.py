"""Merge entries defined by a single word into that word's synset."""

from __future__ import annotations

from crown.models import (
    AnnotatedLexicalEntry,
    LexicalEntry,
    OperationKind,
    PartOfSpeech,
)
from crown.procedures.base import IntegrationProcedure

_DETERMINERS = frozenset({"the", "a", "an"})


def one_word_definitions(entry: LexicalEntry) -> tuple[list[str], int]:
    """Words that alone make up a sub-definition, plus the total token count.

    Two-token sub-definitions count when the first token is a determiner
    (nouns) or ``to`` (verbs).
    """
    synonyms: list[str] = []
    num_tokens = 0
    for gloss in entry.glosses:
        for subdef in gloss.split(";"):
            tokens = subdef.split()
            num_tokens += len(tokens)
            if not tokens or len(tokens) > 2:
                continue
            index = 0
            if len(tokens) == 2:
                first = tokens[0].lower()
                if not (
                    (entry.pos is PartOfSpeech.NOUN and first in _DETERMINERS)
                    or (entry.pos is PartOfSpeech.VERB and first == "to")
                ):
                    continue
                index = 1
            word = tokens[index].replace(".", "")
            if word:
                synonyms.append(word)
    return synonyms, num_tokens


class SynonymExtractor(IntegrationProcedure):
    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        pos = entry.pos
        synonyms, num_tokens = one_word_definitions(entry)
        if not synonyms:
            return None

        if len(synonyms) == 1 and num_tokens == 1:
            target = self.db.first_sense(synonyms[0], pos)
            if target is None:
                return None
            if self.db.is_already_in_wordnet(entry.lemma, pos, target):
                return None
            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(
                OperationKind.SYNONYM,
                self.reason(heuristic="first-sense", selection="first-sense"),
                target,
            )
            return ale

        # Proper names are never good merge targets.
        candidates = [
            s for s in self.db.lookup_many(synonyms, pos)
            if s.lemmas and not s.lemmas[0][:1].isupper()
        ]
        if self.db.is_already_in_wordnet(entry.lemma, pos, candidates):
            return None

        reason = self.reason(heuristic="similarity")
        target = self.choose_sense(
            entry.gloss, candidates, reason, gloss=self.db.extended_gloss,
        )
        if target is None:
            return None
        ale = AnnotatedLexicalEntry(entry)
        ale.set_op(OperationKind.SYNONYM, reason, target)
        return ale


"""Place entries whose lemma or gloss marks them as the opposite of a word."""

from __future__ import annotations

import re

from crown.models import (
    AnnotatedLexicalEntry,
    LexicalEntry,
    OperationKind,
    PartOfSpeech,
    Synset,
)
from crown.procedures.base import IntegrationProcedure
from crown.relations import HYPERNYM_RELATIONS
from crown.wiktionary import TRAILING_PUNCT

ANTONYM_PREFIXES = (
    "anti", "non", "dis", "mal", "mis", "il", "un", "in", "im", "de", "ir",
)

# Verb prefixes and the prefixes of their opposites, in preference order.
VERB_PREFIX_OPPOSITES = {
    "over": ("under",),
    "super": ("under",),
    "under": ("over", "super"),
}


def _patterns(*bodies: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(r"(?:^|;)\s*" + body + r"\b") for body in bodies)


NOUN_PATTERNS = _patterns(
    r"not (?:an?\s)?(\w+)",
    r"absence of (\w+)",
    r"lack of (\w+)",
)
VERB_PATTERNS = _patterns(
    r"to not (\w+)",
    r"to (\w+) incorrectly",
    r"to (\w+) badly",
    r"to (\w+) wrongly",
    r"to (\w+) improperly",
)
MODIFIER_PATTERNS = _patterns(
    r"not (\w+)",
    r"opposing (\w+)",
    r"opposed to (\w+)",
    r"not capable of (\w+)",
)
PATTERNS_BY_POS = {
    PartOfSpeech.NOUN: NOUN_PATTERNS,
    PartOfSpeech.VERB: VERB_PATTERNS,
    PartOfSpeech.ADJECTIVE: MODIFIER_PATTERNS,
    PartOfSpeech.ADVERB: MODIFIER_PATTERNS,
}


def is_single_word_definition(entry: LexicalEntry) -> bool:
    return len(entry.glosses) == 1 and "," not in entry.glosses[0]


class AntonymExtractor(IntegrationProcedure):
    """Close antonym cycles or add a new antonym beside the opposite word.

    If the opposite sense already has an antonym the entry is merged into it;
    otherwise the entry becomes a sibling of the opposite sense with an
    antonym link to it.
    """

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        pos = entry.pos
        match = "prefix"
        antonym = self.prefix_match(entry)
        if antonym is None:
            match = "gloss-pattern"
            antonym = self.regex_match(entry)
        if antonym is None:
            return None

        senses = self.db.index_lookup(antonym, pos)
        if not senses:
            return None

        reason = self.reason(match=match, antonym=antonym)
        if len(senses) == 1:
            reason.set("selection", "single-sense")
            opposite = senses[0]
        elif is_single_word_definition(entry):
            reason.set("selection", "first-sense")
            opposite = self.db.first_sense(antonym, pos)
        else:
            opposite = self.choose_sense(
                entry.gloss, self.db.lookup(antonym, pos), reason,
                gloss=self.db.extended_gloss, start=-1.0,
            )
        if opposite is None:
            return None
        return self._place(entry, reason, opposite)

    def _place(
        self, entry: LexicalEntry, reason, opposite: Synset,
    ) -> AnnotatedLexicalEntry | None:
        pos = entry.pos
        antonyms = self.db.related(opposite, "antonym")
        if antonyms:
            merge_into = antonyms[0]
            if self.db.is_already_in_wordnet(entry.lemma, pos, merge_into):
                return None
            reason.set("heuristic", "reverse-lookup")
            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(OperationKind.SYNONYM, reason, merge_into)
            return ale

        reason.set("heuristic", "new-antonym")
        ale = AnnotatedLexicalEntry(entry)
        parents = self.db.related(opposite, HYPERNYM_RELATIONS[0])
        if parents:
            if self.db.is_already_in_wordnet(entry.lemma, pos, parents[0]):
                return None
            ale.set_op(OperationKind.HYPERNYM, reason, parents[0])
        elif not pos.is_modifier:
            return None
        ale.set_op(OperationKind.ANTONYM, reason, opposite)
        return ale

    def prefix_match(self, entry: LexicalEntry) -> str | None:
        """The opposite word a negating prefix points at.

        A stripped stem only counts when the gloss mentions it, so ``indoor``
        does not become the opposite of ``door``.
        """
        lemma = entry.lemma
        pos = entry.pos
        for prefix in ANTONYM_PREFIXES:
            if not lemma.startswith(prefix):
                continue
            stem = lemma[len(prefix):].lstrip("-")
            if (
                len(stem) > 2
                and self.db.is_in_wn(stem, pos)
                and re.search(rf"\b{re.escape(stem)}\b", entry.gloss, re.IGNORECASE)
            ):
                return stem
            break

        if pos is PartOfSpeech.VERB:
            for prefix, opposites in VERB_PREFIX_OPPOSITES.items():
                if not lemma.startswith(prefix):
                    continue
                for opposite in opposites:
                    candidate = opposite + lemma[len(prefix):]
                    if self.db.is_in_wn(candidate, PartOfSpeech.VERB):
                        return candidate
        return None

    def regex_match(self, entry: LexicalEntry) -> str | None:
        patterns = PATTERNS_BY_POS.get(entry.pos.base())
        if patterns is None:
            return None
        for pattern in patterns:
            for subdef in entry.glosses:
                for clause in subdef.split(","):
                    clause = TRAILING_PUNCT.sub("", clause)
                    m = pattern.search(clause)
                    if m and self.db.is_in_wn(m.group(1), entry.pos):
                        return m.group(1)
        return None

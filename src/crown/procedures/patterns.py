"""Surface-pattern extractors for unlinked verb, noun and adjective glosses."""

from __future__ import annotations

import re

from crown.gloss import extract_noun_candidates, pertainym_candidates
from crown.models import (
    AnnotatedLexicalEntry,
    LexicalEntry,
    OperationKind,
    PartOfSpeech,
)
from crown.procedures.base import IntegrationProcedure
from crown.wiktionary import TRAILING_PUNCT

# ---------------------------------------------------------------------------
# Verbs
# ---------------------------------------------------------------------------

TO_VERB = re.compile(r"^[tT]o (?:[a-z\-]+ly )?([a-z][a-z\-]+[a-z])")


class VerbPatternExtractor(IntegrationProcedure):
    """``To [adverb] verb ...`` glosses become hyponyms of the verb."""

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        pos = PartOfSpeech.VERB
        if entry.pos is not pos or self.db.is_in_wn(entry.lemma, pos):
            return None
        for gloss in entry.glosses:
            m = TO_VERB.search(gloss)
            if m is None:
                continue
            lemma = TRAILING_PUNCT.sub("", m.group(1))
            if not self.db.is_in_wn(lemma, pos):
                continue
            reason = self.reason(heuristic="unlinked-to-verb", head=lemma)
            best = self.choose_sense(
                gloss, self.db.lookup(lemma, pos), reason,
                gloss=self.db.extended_gloss,
            )
            if best is None or self.db.is_already_in_wordnet(entry.lemma, pos, best):
                continue
            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(OperationKind.HYPERNYM, reason, best)
            return ale
        return None


# ---------------------------------------------------------------------------
# Nouns
# ---------------------------------------------------------------------------

_WORD = r"[a-z][a-z\-]+[a-z]"

NOUN_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("a-noun-that", re.compile(
        rf"^(?:[aA]|[aA]ny|[aA]n|[tT]he) ({_WORD}) (?:that|which)\b"
    )),
    ("any-of-noun-that", re.compile(
        rf"^[aA]ny of (?:{_WORD} )({_WORD}) (?:that|which)\b"
    )),
    ("a-noun,", re.compile(rf"^(?:[aA]|[aA]ny|[aA]n|[tT]he) ({_WORD}),")),
)


class NounPatternExtractor(IntegrationProcedure):
    """``A noun that ...`` glosses become hyponyms of the noun."""

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        pos = PartOfSpeech.NOUN
        if entry.pos is not pos or self.db.is_in_wn(entry.lemma, pos):
            return None
        for gloss in entry.glosses:
            for heuristic, pattern in NOUN_PATTERNS:
                m = pattern.search(gloss)
                if m is None:
                    continue
                candidates = extract_noun_candidates(
                    self.db, gloss, m.group(1), m.start(1),
                )
                ale = self._attach(entry, candidates, gloss, heuristic)
                if ale is not None:
                    return ale
        return None

    def _attach(self, entry, candidates, gloss, heuristic):
        pos = PartOfSpeech.NOUN
        for lemma in candidates:
            if not self.db.is_in_wn(lemma, pos):
                continue
            reason = self.reason(heuristic=heuristic, head=lemma)
            best = self.choose_sense(
                gloss, self.db.lookup(lemma, pos), reason, start=-1.0,
            )
            if best is None or self.db.is_already_in_wordnet(entry.lemma, pos, best):
                continue
            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(OperationKind.HYPERNYM, reason, best)
            return ale
        return None


# ---------------------------------------------------------------------------
# Adjectives
# ---------------------------------------------------------------------------

PARATAXIS = re.compile(rf"^({_WORD}), ({_WORD})(?:, {_WORD})")
PERTAINYM = re.compile(
    r"^(?:of(?:, or relating to)?|relating to(?:, or of)?|pertaining to) "
    rf"(?:an? |the )?({_WORD})"
)


class AdjectivePatternExtractor(IntegrationProcedure):
    """Synonym lists and "of or relating to <noun>" adjectives.

    A pertainym adjective merges into an existing adjective that already
    pertains to the noun, or else starts a new one linked to the noun.
    """

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        pos = PartOfSpeech.ADJECTIVE
        if entry.pos is not pos or self.db.is_in_wn(entry.lemma, pos):
            return None
        for gloss in entry.glosses:
            gloss = gloss.lower()
            ale = self.find_parataxis(entry, gloss) or self.find_pertainym(entry, gloss)
            if ale is not None:
                return ale
        return None

    def find_parataxis(
        self, entry: LexicalEntry, gloss: str,
    ) -> AnnotatedLexicalEntry | None:
        if PARATAXIS.search(gloss) is None:
            return None
        synonyms = [s for s in re.split(r"\s*,\s*", gloss) if s]
        estimate = self.estimate_synonym(synonyms, PartOfSpeech.ADJECTIVE, gloss)
        if estimate is None:
            return None
        reason, target = estimate
        ale = AnnotatedLexicalEntry(entry)
        ale.set_op(OperationKind.SYNONYM, reason, target)
        return ale

    def find_pertainym(
        self, entry: LexicalEntry, gloss: str,
    ) -> AnnotatedLexicalEntry | None:
        m = PERTAINYM.search(gloss)
        if m is None:
            return None
        term = TRAILING_PUNCT.sub("", m.group(1)).strip()
        for lemma in pertainym_candidates(self.db, gloss, term):
            if not self.db.is_in_wn(lemma, PartOfSpeech.NOUN):
                continue
            chosen = self.reason()
            noun = self.choose_sense(
                gloss, self.db.lookup(lemma, PartOfSpeech.NOUN), chosen,
            )
            if noun is None:
                continue
            noun_props = {f"noun_{k}": v for k, v in chosen.props.items()}

            adjectives = self.db.incoming(noun, "pertainym")
            if not adjectives:
                ale = AnnotatedLexicalEntry(entry)
                ale.set_op(
                    OperationKind.PERTAINYM,
                    self.reason(heuristic="no-pertainyms", **noun_props),
                    noun,
                )
                return ale

            chosen = self.reason()
            adjective = self.choose_sense(gloss, adjectives, chosen)
            if adjective is None:
                continue
            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(
                OperationKind.SYNONYM,
                self.reason(
                    heuristic="pertainyms",
                    **noun_props,
                    **{f"adj_{k}": v for k, v in chosen.props.items()},
                ),
                adjective,
            )
            return ale
        return None

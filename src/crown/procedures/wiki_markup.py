"""Use ``[[links]]`` in raw glosses as strong hints of the head word."""

from __future__ import annotations

import re

from crown.gloss import extract_noun_candidates
from crown.models import AnnotatedLexicalEntry, LexicalEntry, OperationKind, PartOfSpeech
from crown.procedures.base import IntegrationProcedure
from crown.wiktionary import TRAILING_PUNCT, strip_annotations

NOUN_LINK_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("linked-noun", re.compile(r"\b(?:An?|The|Those) \[\[([^\]]+)\]\]")),
    ("initial-noun", re.compile(r"^\[\[([^\]]+)\]\](?:$|[,.;:])")),
    ("prep-phrase-linked-noun", re.compile(
        r"^(?:In|Of|When|Because|From|On|Above|At)\b .*, (?:the|an?) \[\[([^\]]+)\]\]s?"
    )),
)

TO_VERB_LINK = re.compile(r"\bTo (?:[a-z\-]+ly)?\s?\[\[([^\]]+)\]\]")

_BOLD_ITALIC = re.compile(r"'{2,}")


class WikiMarkupExtractor(IntegrationProcedure):
    """Hypernyms from ``A [[noun]]`` and ``To [[verb]]`` glosses."""

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        if entry.pos is PartOfSpeech.NOUN:
            return self._from_noun_links(entry)
        if entry.pos is PartOfSpeech.VERB:
            return self._from_verb_links(entry)
        return None

    def _from_noun_links(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        if self.db.is_in_wn(entry.lemma, PartOfSpeech.NOUN):
            return None
        for raw, cleaned in entry.raw_glosses:
            if not cleaned:
                continue
            raw = _BOLD_ITALIC.sub("", strip_annotations(raw)).strip()
            for heuristic, pattern in NOUN_LINK_PATTERNS:
                m = pattern.search(raw)
                if m is None:
                    continue
                term = m.group(1).rsplit("|", 1)[-1]
                candidates = extract_noun_candidates(self.db, cleaned, term)
                ale = self._attach(entry, candidates, cleaned, heuristic)
                if ale is not None:
                    return ale
        return None

    def _attach(
        self,
        entry: LexicalEntry,
        candidates: list[str],
        cleaned: str,
        heuristic: str,
    ) -> AnnotatedLexicalEntry | None:
        for lemma in candidates:
            if not self.db.is_in_wn(lemma, PartOfSpeech.NOUN):
                continue
            senses = self.db.lookup(lemma, PartOfSpeech.NOUN)
            reason = self.reason(heuristic=heuristic, head=lemma)
            best = self.choose_sense(cleaned, senses, reason)
            if best is None:
                continue
            if self.db.is_already_in_wordnet(entry.lemma, PartOfSpeech.NOUN, best):
                continue
            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(OperationKind.HYPERNYM, reason, best)
            return ale
        return None

    def _from_verb_links(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        if self.db.is_in_wn(entry.lemma, PartOfSpeech.VERB):
            return None
        for raw, cleaned in entry.raw_glosses:
            m = TO_VERB_LINK.search(raw)
            if m is None:
                continue
            lemma = TRAILING_PUNCT.sub("", m.group(1).rsplit("|", 1)[-1])
            if not self.db.is_in_wn(lemma, PartOfSpeech.VERB):
                continue
            senses = self.db.lookup(lemma, PartOfSpeech.VERB)
            reason = self.reason(heuristic="linked-verb", head=lemma)
            best = self.choose_sense(cleaned, senses, reason, start=-1.0)
            if best is None:
                continue
            if self.db.is_already_in_wordnet(entry.lemma, PartOfSpeech.VERB, best):
                continue
            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(OperationKind.HYPERNYM, reason, best)
            return ale
        return None

"""Dependency-parse heuristics for finding the head word of a gloss.

Each heuristic proposes candidate lemmas, remembering which heuristic
produced them. Every sense of every candidate is then scored against the
entry's gloss and the single best sense wins; a lone sense is taken as is.
"""

from __future__ import annotations

import re

from crown.models import (
    AnnotatedLexicalEntry,
    LexicalEntry,
    OperationKind,
    PartOfSpeech,
    Synset,
)
from crown.nlp import Annotator, Sentence, Token
from crown.procedures.base import IntegrationProcedure
from crown.wiktionary import MARKUP, strip_annotations

WHO = re.compile(r"\bwho\b")
_BOLD_ITALIC = re.compile(r"'{2,}")

EXISTENTIAL_HEADS = frozenset({
    "instance", "example", "first", "second", "third",
    "fourth", "fifth", "sixth", "series",
})

H1 = "Heuristic-1"
H2A = "Heuristic-2a"
H2B = "Heuristic-2b"
H3 = "Heuristic-3: Person"
H4 = "Heuristic-4: Head Noun"
H5 = "Heuristic-5: Subject Noun"
H6 = "Heuristic-6: Existential Example"
H7 = "Heuristic-7"
H8 = "Heuristic-8: Adv-modified Verb"
H9 = "Heuristic-9: negated adj"
H10 = "Heuristic-10"
H11 = "Heuristic-11: verbal infinitive"
WIKI_MWE = "wiki MWE expansion"


class Candidates:
    """Candidate lemmas and the heuristics that proposed each, in order."""

    def __init__(self) -> None:
        self._by_lemma: dict[str, dict[str, None]] = {}

    def put(self, lemma: str, heuristic: str) -> None:
        self._by_lemma.setdefault(lemma, {})[heuristic] = None

    def update(self, other: Candidates) -> None:
        for lemma, heuristics in other._by_lemma.items():
            for heuristic in heuristics:
                self.put(lemma, heuristic)

    def heuristics(self, lemma: str) -> list[str]:
        return list(self._by_lemma.get(lemma, ()))

    def __contains__(self, lemma: object) -> bool:
        return lemma in self._by_lemma

    def __iter__(self):
        return iter(self._by_lemma)

    def __len__(self) -> int:
        return len(self._by_lemma)


class ParseExtractor(IntegrationProcedure):
    """SimilarTo for adjectives, Synonym for adverbs, Hypernym otherwise."""

    def __init__(self, db, similarity, annotator: Annotator) -> None:
        super().__init__(db, similarity)
        self.annotator = annotator

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        candidates = self.candidate_lemmas(entry)
        if not candidates:
            return None

        pos = entry.pos
        senses: dict[str, tuple[str, Synset]] = {}
        for lemma in candidates:
            if not self.db.is_in_wn(lemma, pos):
                continue
            for synset in self.db.lookup(lemma, pos):
                if synset.id in senses:
                    continue
                if self.db.is_already_in_wordnet(entry.lemma, pos, synset):
                    continue
                senses[synset.id] = (lemma, synset)
        if not senses:
            return None

        if len(senses) == 1:
            [(best_lemma, best)] = senses.values()
            selection = {"selection": "single-sense"}
        else:
            best = None
            best_lemma = None
            max_score = 0.0
            for lemma, synset in senses.values():
                score = self.similarity.compare(
                    entry.gloss, self.db.gloss_without_examples(synset),
                )
                if max_score < score:
                    max_score = score
                    best = synset
                    best_lemma = lemma
            if best is None:
                return None
            selection = {"selection": "gloss-similarity", "max_score": max_score}

        reason = self.reason(
            heuristic=",".join(sorted(candidates.heuristics(best_lemma))),
            head=best_lemma,
            **selection,
        )
        if pos is PartOfSpeech.ADJECTIVE:
            kind = OperationKind.SIMILAR_TO
        elif pos is PartOfSpeech.ADVERB:
            kind = OperationKind.SYNONYM
        else:
            kind = OperationKind.HYPERNYM
        ale = AnnotatedLexicalEntry(entry)
        ale.set_op(kind, reason, best)
        return ale

    def candidate_lemmas(self, entry: LexicalEntry) -> Candidates:
        candidates = Candidates()
        for raw, cleaned in entry.raw_glosses:
            if not cleaned:
                continue
            raw = _BOLD_ITALIC.sub("", strip_annotations(raw)).strip()
            for sentence in self.annotator.parse(cleaned):
                found = self.sentence_candidates(sentence, cleaned, entry.pos)
                candidates.update(found)
                for m in MARKUP.finditer(raw):
                    text = m.group(1)
                    if text.find(" ") <= 0 or text in found:
                        continue
                    if any(token in found for token in text.split()):
                        candidates.put(text, WIKI_MWE)
        return candidates

    # ------------------------------------------------------------------
    # Heuristics over one sentence
    # ------------------------------------------------------------------

    def sentence_candidates(
        self, sentence: Sentence, subdef: str, entry_pos: PartOfSpeech,
    ) -> Candidates:
        candidates = Candidates()
        sense_pos = entry_pos.tag_prefix
        for root in sentence.roots():
            lemma_pos = root.pos
            lemma = root.lemma.lower()
            if lemma_pos == "v":
                particles = sentence.children(root, "prt")
                if particles:
                    lemma = f"{lemma} {particles[0].lemma}"

            if lemma_pos == sense_pos:
                if self._same_pos_root(sentence, root, lemma, sense_pos, candidates):
                    continue
            else:
                self._other_pos_root(sentence, root, lemma, entry_pos, candidates)

            if sense_pos == "n" and lemma in ("one", "someone") and WHO.search(subdef):
                candidates.put("person", H3)
            if sense_pos == "n" and lemma_pos == "j":
                for label, dep in sentence.outgoing(root):
                    if label in ("appos", "dep") and dep.pos == sense_pos:
                        self._put_with_siblings(sentence, dep, sense_pos, H4, candidates)
            if sense_pos == "n" and lemma_pos == "v":
                subjects = sentence.children(root, "nsubj")
                if subjects and subjects[0].pos == sense_pos:
                    self._put_with_siblings(
                        sentence, subjects[0], sense_pos, H5, candidates,
                    )
            if sense_pos == "n" and lemma_pos == "d":
                self._existential(sentence, root, sense_pos, candidates)
            if (
                sense_pos == "j" and lemma_pos == "v"
                and sentence.children(root, "advmod")
            ):
                self._put_indexed(root, lemma, entry_pos, H8, candidates)
            if sense_pos == "j" and lemma == "not":
                deps = sentence.children(root, "dep")
                if deps and deps[0].pos == sense_pos:
                    self._put_with_siblings(sentence, deps[0], sense_pos, H9, candidates)
            if sense_pos == "v" and lemma == "to":
                for dep in sentence.children(root, "pobj"):
                    self._put_indexed(dep, dep.lemma, entry_pos, H11, candidates)
        return candidates

    def _same_pos_root(
        self,
        sentence: Sentence,
        root: Token,
        lemma: str,
        sense_pos: str,
        candidates: Candidates,
    ) -> bool:
        """Heuristics 7, 10 and 1; True when the root is only a placeholder."""
        if lemma in EXISTENTIAL_HEADS:
            found = False
            for dep in sentence.children(root, "prep"):
                if dep.pos == sense_pos:
                    self._put_with_siblings(sentence, dep, sense_pos, H7, candidates)
                    found = True
            if found:
                return True

        found = False
        for dep in sentence.children(root, "dep"):
            if dep.pos == sense_pos:
                self._put_with_siblings(sentence, dep, sense_pos, H10, candidates)
                found = True
        if not found:
            candidates.put(lemma, H1)
            self.add_siblings(sentence, root, sense_pos, H1, candidates)
        return False

    def _other_pos_root(
        self,
        sentence: Sentence,
        root: Token,
        lemma: str,
        entry_pos: PartOfSpeech,
        candidates: Candidates,
    ) -> None:
        """Heuristics 2a and 2b: the root has the wrong part of speech."""
        if not sentence.dependencies:
            self._put_indexed(root, lemma, entry_pos, H2A, candidates)
            return
        conjuncts = sentence.children(root, "conj")
        if conjuncts:
            self._put_indexed(root, root.lemma, entry_pos, H2B, candidates)
            for token in conjuncts:
                self._put_indexed(token, token.lemma, entry_pos, H2B, candidates)

    def _existential(
        self, sentence: Sentence, root: Token, sense_pos: str, candidates: Candidates,
    ) -> None:
        """Heuristic 6: "there is a ..." style glosses."""
        for label, dep in sentence.outgoing(root):
            if label not in ("prep", "dep"):
                continue
            if dep.pos == sense_pos:
                self._put_with_siblings(sentence, dep, sense_pos, H6, candidates)
                continue
            for dep2 in sentence.children(dep, "rcmod"):
                if dep2.pos == sense_pos:
                    self._put_with_siblings(sentence, dep2, sense_pos, H6, candidates)

    def _put_indexed(
        self,
        token: Token,
        lemma: str,
        entry_pos: PartOfSpeech,
        heuristic: str,
        candidates: Candidates,
    ) -> None:
        """Add the lemma, or failing that the surface form, if indexed."""
        if self.db.in_index(lemma, entry_pos):
            candidates.put(lemma, heuristic)
        elif self.db.in_index(token.text, entry_pos):
            candidates.put(token.text, heuristic)

    def _put_with_siblings(
        self,
        sentence: Sentence,
        token: Token,
        sense_pos: str,
        heuristic: str,
        candidates: Candidates,
    ) -> None:
        candidates.put(token.lemma, heuristic)
        self.add_siblings(sentence, token, sense_pos, heuristic, candidates)

    def add_siblings(
        self,
        sentence: Sentence,
        token: Token,
        sense_pos: str,
        heuristic: str,
        candidates: Candidates,
    ) -> None:
        """Conjoined words of the same part of speech are candidates too."""
        for dep in sentence.children(token, "conj"):
            if dep.pos != sense_pos:
                continue
            lemma = dep.lemma
            if sense_pos == "v":
                particles = sentence.children(dep, "prt")
                if particles:
                    lemma = f"{lemma} {particles[0].lemma}"
            candidates.put(lemma, f"{heuristic} (In conjunction)")

"""Tokens, dependency parses and the spaCy-backed annotator."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


def coarse_pos(tag: str) -> str:
    """First letter of a Penn Treebank tag, lowercased (``NNS`` -> ``n``)."""
    return tag[:1].lower() if tag else ""


@dataclass(frozen=True, slots=True)
class Token:
    index: int
    text: str
    lemma: str
    tag: str

    @property
    def pos(self) -> str:
        return coarse_pos(self.tag)


@dataclass(frozen=True, slots=True)
class Dependency:
    governor: int
    dependent: int
    label: str


@dataclass(frozen=True, slots=True)
class Sentence:
    """One parsed sentence: tokens, typed dependency edges and root indices."""

    tokens: tuple[Token, ...]
    dependencies: tuple[Dependency, ...] = ()
    root_indices: tuple[int, ...] = ()

    def roots(self) -> list[Token]:
        return [self.tokens[i] for i in self.root_indices]

    def outgoing(self, token: Token) -> list[tuple[str, Token]]:
        return [
            (d.label, self.tokens[d.dependent])
            for d in self.dependencies
            if d.governor == token.index
        ]

    def children(self, token: Token, label: str) -> list[Token]:
        return [t for lab, t in self.outgoing(token) if lab == label]


class Annotator(Protocol):
    def parse(self, text: str) -> list[Sentence]: ...


# spaCy labels renamed to the names the parse heuristics expect.
_LABEL_MAP = {"relcl": "rcmod", "ROOT": "root"}


def sentence_from_spacy(span) -> Sentence:
    """Convert a spaCy sentence span into a collapsed-dependency Sentence.

    A preposition with an object is folded into one ``prep`` edge from the
    preposition's head straight to its object.
    """
    offset = span.start
    tokens = tuple(
        Token(t.i - offset, t.text, (t.lemma_ or t.text).lower(), t.tag_)
        for t in span
    )
    deps: list[Dependency] = []
    roots: list[int] = []
    for t in span:
        if t.dep_ == "ROOT" or t.head.i == t.i:
            roots.append(t.i - offset)
            continue
        label = _LABEL_MAP.get(t.dep_, t.dep_)
        head = t.head
        if label == "pobj" and head.dep_ == "prep" and head.head.i != head.i:
            deps.append(Dependency(head.head.i - offset, t.i - offset, "prep"))
            continue
        if label == "prep" and any(c.dep_ == "pobj" for c in t.children):
            continue
        deps.append(Dependency(head.i - offset, t.i - offset, label))
    return Sentence(tokens, tuple(deps), tuple(roots))


class SpacyAnnotator:
    """spaCy-backed annotator with a thread-safe parse cache."""

    def __init__(self, model: str = "en_core_web_sm") -> None:
        try:
            import spacy
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "spaCy is required for gloss parsing. Install it in your "
                "environment (e.g., `pip install spacy`)."
            ) from exc

        try:
            self._nlp = spacy.load(model, disable=["ner"])
        except OSError as exc:  # pragma: no cover - model lookup
            raise RuntimeError(
                f"Unable to load spaCy model '{model}'. Install it with "
                f"`python -m spacy download {model}` or set spacy_model in "
                "the build configuration."
            ) from exc
        self._lock = threading.Lock()
        self._cache: dict[str, list[Sentence]] = {}

    def parse(self, text: str) -> list[Sentence]:
        with self._lock:
            cached = self._cache.get(text)
        if cached is not None:
            return cached

        doc = self._nlp(text)
        sentences = [sentence_from_spacy(s) for s in doc.sents]
        with self._lock:
            return self._cache.setdefault(text, sentences)

    def warm(self, texts: Iterable[str], batch_size: int = 256) -> None:
        """Parse many texts up front with ``nlp.pipe``."""
        with self._lock:
            todo = list(dict.fromkeys(t for t in texts if t not in self._cache))
        parsed = [
            (text, [sentence_from_spacy(s) for s in doc.sents])
            for text, doc in zip(todo, self._nlp.pipe(todo, batch_size=batch_size))
        ]
        with self._lock:
            for text, sentences in parsed:
                self._cache.setdefault(text, sentences)
        logger.info("Parsed %d glosses", len(todo))

"""Indexes derived from a database snapshot and shared between procedures.

Each index is built on first use and remembered together with the
``version`` of the snapshot it came from, so a new snapshot always gets a
fresh index.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from crown.dictionary import LexicalDatabase, lemma_key
from crown.models import PartOfSpeech, Synset
from crown.relations import HYPONYM_RELATIONS

logger = logging.getLogger(__name__)

# Person words whose first sense is not below "person" itself.
EXTRA_PERSON_LEMMAS = frozenset({"person", "individual", "somebody", "someone"})

GROUP_TYPE_DEPTH = 3


@dataclass(frozen=True, slots=True)
class PersonClosure:
    root: Synset | None
    lemmas: frozenset[str]
    synsets: tuple[Synset, ...]


def _first_sense_lemmas(db: LexicalDatabase, synset: Synset) -> list[str]:
    """Members for which ``synset`` is their most frequent noun sense."""
    return [
        lemma for lemma in synset.lemmas
        if db.first_sense(lemma, PartOfSpeech.NOUN) == synset
    ]


def build_person_closure(db: LexicalDatabase) -> PersonClosure:
    root = db.first_sense("person", PartOfSpeech.NOUN)
    if root is None:
        logger.warning("No 'person' synset; person patterns are disabled")
        return PersonClosure(None, frozenset(), ())
    lemmas = set(EXTRA_PERSON_LEMMAS)
    synsets = db.hyponym_closure(root)
    for synset in synsets:
        lemmas.update(lemma_key(lemma) for lemma in _first_sense_lemmas(db, synset))
    logger.info(
        "Person closure: %d synsets, %d lemmas", len(synsets), len(lemmas),
    )
    return PersonClosure(root, frozenset(lemmas), tuple(synsets))


def build_group_types(db: LexicalDatabase) -> dict[str, Synset]:
    """Map group-type words ("flock", "herd") to their synsets."""
    root = db.first_sense("group", PartOfSpeech.NOUN)
    if root is None:
        logger.warning("No 'group' synset; group patterns are disabled")
        return {}
    group_types = {"group": root}
    frontier = [root]
    for _ in range(GROUP_TYPE_DEPTH):
        next_frontier = []
        for synset in frontier:
            for child in db.related(synset, HYPONYM_RELATIONS[0]):
                next_frontier.append(child)
                for lemma in _first_sense_lemmas(db, child):
                    group_types[lemma_key(lemma)] = child
        frontier = next_frontier
    logger.info("Group types: %d", len(group_types))
    return group_types


class ClosureCache:
    """Lazily built person and group-type indexes for one database version."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._version: str | None = None
        self._person: PersonClosure | None = None
        self._groups: dict[str, Synset] | None = None

    def invalidate(self) -> None:
        with self._lock:
            self._version = None
            self._person = None
            self._groups = None

    def _check_version(self, db: LexicalDatabase) -> None:
        if self._version != db.version:
            self._version = db.version
            self._person = None
            self._groups = None

    def person(self, db: LexicalDatabase) -> PersonClosure:
        with self._lock:
            self._check_version(db)
            if self._person is None:
                self._person = build_person_closure(db)
            return self._person

    def group_types(self, db: LexicalDatabase) -> dict[str, Synset]:
        with self._lock:
            self._check_version(db)
            if self._groups is None:
                self._groups = build_group_types(db)
            return self._groups

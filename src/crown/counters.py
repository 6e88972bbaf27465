"""Pass-scoped pointer and sense counters shared across worker threads."""

from __future__ import annotations

import threading
from collections import Counter

from crown.dictionary import LexicalDatabase, lemma_key


class CounterService:
    """Fan-out per synset and sense count per lemma, behind one lock.

    Extraction procedures may read the counts; only the placement engine
    increments them.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pointers: Counter[str] = Counter()
        self._senses: Counter[str] = Counter()

    def reset(self, db: LexicalDatabase) -> None:
        """Recompute every count from a database snapshot."""
        pointers: Counter[str] = Counter()
        for synset in db.synsets():
            pointers[synset.id] = synset.fan_out
        senses: Counter[str] = Counter(
            {key: db.sense_count(key) for key, _pos in db.lemmas()}
        )
        with self._lock:
            self._pointers = pointers
            self._senses = senses

    def pointers(self, synset_id: str) -> int:
        with self._lock:
            return self._pointers[synset_id]

    def senses(self, lemma: str) -> int:
        with self._lock:
            return self._senses[lemma_key(lemma)]

    def increment_pointers(self, synset_id: str, amount: int = 1) -> int:
        with self._lock:
            self._pointers[synset_id] += amount
            return self._pointers[synset_id]

    def increment_senses(self, lemma: str, amount: int = 1) -> int:
        with self._lock:
            key = lemma_key(lemma)
            self._senses[key] += amount
            return self._senses[key]

    def try_acquire_pointer(self, synset_id: str, limit: int) -> bool:
        """Increment the synset's fan-out if it is still below ``limit``."""
        with self._lock:
            if self._pointers[synset_id] >= limit:
                return False
            self._pointers[synset_id] += 1
            return True

"""Immutable in-memory read view over a crown lexical database.

A :class:`LexicalDatabase` is loaded once per build pass and then shared by
every worker thread; nothing in it changes after :meth:`LexicalDatabase.load`
returns.
"""

from __future__ import annotations

import functools
import itertools
import logging
import re
import sqlite3
import uuid
from collections import defaultdict
from collections.abc import Iterable, Iterator

from crown.exceptions import InvariantError
from crown.models import PartOfSpeech, Synset
from crown.relations import HYPERNYM_RELATIONS, HYPONYM_RELATIONS

logger = logging.getLogger(__name__)

USAGE_IN_GLOSS = re.compile(r';[\s]*"[^"]+"')
_WHITESPACE = re.compile(r"\s+")

PosLike = PartOfSpeech | str


def lemma_key(lemma: str) -> str:
    """Normalise a lemma the way the index stores it."""
    return lemma.strip().lower().replace("_", " ")


def _pos_key(pos: PosLike) -> str:
    return PartOfSpeech.parse(pos).base().value


@functools.lru_cache(maxsize=1)
def _morphy():
    from wn.morphy import Morphy
    return Morphy()


@functools.lru_cache(maxsize=200_000)
def find_stems(lemma: str, pos: str) -> tuple[str, ...]:
    """Morphological stems of ``lemma`` other than ``lemma`` itself."""
    candidates = _morphy()(lemma, pos).get(pos, set())
    return tuple(sorted(c for c in candidates if c != lemma))


def compound_stems(lemma: str, pos: str) -> list[str]:
    """Per-token stems of a multi-word lemma, in every combination."""
    variants = []
    for token in _WHITESPACE.split(lemma.strip()):
        stems = find_stems(token, pos)
        variants.append(stems if stems else (token,))
    return [" ".join(combo) for combo in itertools.product(*variants)]


class LexicalDatabase:
    """Read-only lookups over synsets, lemmas and morphological exceptions."""

    def __init__(
        self,
        synsets: dict[str, Synset],
        index: dict[tuple[str, str], tuple[str, ...]],
        exceptions: dict[tuple[str, str], tuple[str, ...]],
        *,
        version: str | None = None,
    ) -> None:
        self._synsets = synsets
        self._index = index
        self._exceptions = exceptions
        self.version = version or uuid.uuid4().hex

        incoming: dict[tuple[str, str], list[str]] = defaultdict(list)
        for synset in synsets.values():
            for rel_type, targets in synset.relations.items():
                for target in targets:
                    incoming[(target, rel_type)].append(synset.id)
        self._incoming = {k: tuple(v) for k, v in incoming.items()}

        sense_counts: dict[str, int] = defaultdict(int)
        for (key, _pos), ids in index.items():
            sense_counts[key] += len(ids)
        self._sense_counts = dict(sense_counts)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, conn: sqlite3.Connection) -> LexicalDatabase:
        """Read a whole database into memory."""
        synset_rows = conn.execute(
            "SELECT s.rowid, s.id, s.pos, lf.name AS lexfile, "
            "(SELECT definition FROM definitions d WHERE d.synset_rowid = s.rowid "
            " ORDER BY d.rowid LIMIT 1) AS definition "
            "FROM synsets s LEFT JOIN lexfiles lf ON s.lexfile_rowid = lf.rowid "
            "ORDER BY s.rowid"
        ).fetchall()
        rowid_to_id = {r["rowid"]: r["id"] for r in synset_rows}

        members: dict[str, list[str]] = defaultdict(list)
        index: dict[tuple[str, str], list[str]] = defaultdict(list)
        for r in conn.execute(
            "SELECT e.lemma, e.pos, s.synset_rowid FROM senses s "
            "JOIN entries e ON s.entry_rowid = e.rowid "
            "ORDER BY s.entry_rowid, s.entry_rank, s.rowid"
        ):
            synset_id = rowid_to_id[r["synset_rowid"]]
            index[(lemma_key(r["lemma"]), _pos_key(r["pos"]))].append(synset_id)
        for r in conn.execute(
            "SELECT e.lemma, s.synset_rowid FROM senses s "
            "JOIN entries e ON s.entry_rowid = e.rowid "
            "ORDER BY s.synset_rowid, s.synset_rank, s.rowid"
        ):
            members[rowid_to_id[r["synset_rowid"]]].append(r["lemma"])

        relations: dict[str, dict[str, list[str]]] = defaultdict(
            lambda: defaultdict(list)
        )
        for r in conn.execute(
            "SELECT sr.source_rowid, sr.target_rowid, rt.type FROM synset_relations sr "
            "JOIN relation_types rt ON sr.type_rowid = rt.rowid ORDER BY sr.rowid"
        ):
            source = rowid_to_id[r["source_rowid"]]
            relations[source][r["type"]].append(rowid_to_id[r["target_rowid"]])

        synsets: dict[str, Synset] = {}
        for r in synset_rows:
            synsets[r["id"]] = Synset(
                id=r["id"],
                pos=PartOfSpeech.parse(r["pos"]),
                lemmas=tuple(members.get(r["id"], ())),
                gloss=r["definition"] or "",
                lexfile=r["lexfile"],
                relations={
                    k: tuple(v) for k, v in relations.get(r["id"], {}).items()
                },
            )

        exceptions: dict[tuple[str, str], list[str]] = defaultdict(list)
        for r in conn.execute(
            "SELECT pos, variant, base FROM exceptions ORDER BY rowid"
        ):
            exceptions[(lemma_key(r["variant"]), _pos_key(r["pos"]))].append(
                lemma_key(r["base"])
            )

        db = cls(
            synsets,
            {k: tuple(dict.fromkeys(v)) for k, v in index.items()},
            {k: tuple(v) for k, v in exceptions.items()},
        )
        logger.info(
            "Loaded lexical database: %d synsets, %d index entries, %d exceptions",
            len(synsets), len(index), len(exceptions),
        )
        return db

    # ------------------------------------------------------------------
    # Synsets
    # ------------------------------------------------------------------

    def __contains__(self, synset_id: object) -> bool:
        return synset_id in self._synsets

    def __len__(self) -> int:
        return len(self._synsets)

    def synset(self, synset_id: str) -> Synset:
        try:
            return self._synsets[synset_id]
        except KeyError:
            raise InvariantError(
                f"Synset {synset_id!r} is referenced but not in the database"
            ) from None

    def synsets(self, pos: PosLike | None = None) -> Iterator[Synset]:
        if pos is None:
            yield from self._synsets.values()
            return
        key = _pos_key(pos)
        for synset in self._synsets.values():
            if synset.pos.base().value == key:
                yield synset

    def related(
        self, synset: Synset, relation: str | Iterable[str],
    ) -> list[Synset]:
        relations = (relation,) if isinstance(relation, str) else relation
        return [
            self.synset(target)
            for rel in relations
            for target in synset.related_ids(rel)
        ]

    def incoming(self, synset: Synset, relation: str) -> list[Synset]:
        """Synsets that point at ``synset`` with ``relation``."""
        return [self.synset(s) for s in self._incoming.get((synset.id, relation), ())]

    def gloss(self, synset: Synset) -> str:
        return self.synset(synset.id).gloss

    def gloss_without_examples(self, synset: Synset) -> str:
        return USAGE_IN_GLOSS.sub("", synset.gloss)

    def extended_gloss(self, synset: Synset) -> str:
        """The gloss followed by the synset's member lemmas."""
        return " ".join([synset.gloss, *synset.lemmas]) + " "

    def members(self, synset: Synset) -> tuple[str, ...]:
        return synset.lemmas

    def fan_out(self, synset: Synset) -> int:
        return synset.fan_out

    # ------------------------------------------------------------------
    # Lemma lookups
    # ------------------------------------------------------------------

    def in_index(self, lemma: str, pos: PosLike) -> bool:
        return (lemma_key(lemma), _pos_key(pos)) in self._index

    def index_lookup(self, lemma: str, pos: PosLike) -> list[Synset]:
        ids = self._index.get((lemma_key(lemma), _pos_key(pos)), ())
        return [self.synset(i) for i in ids]

    def lookup(self, lemma: str, pos: PosLike) -> list[Synset]:
        """All synsets for ``lemma``, including morphological variants.

        Order: exact index hits, then morphological stems, then (for
        multi-word lemmas morphy cannot stem) per-token stems, then the
        base forms of an exception entry.
        """
        if not lemma or not lemma.strip():
            return []
        key = lemma_key(lemma)
        pos_key = _pos_key(pos)
        found: dict[str, None] = {}

        def add(candidate: str) -> None:
            for synset_id in self._index.get((candidate, pos_key), ()):
                found.setdefault(synset_id)

        add(key)
        stems = find_stems(key, pos_key)
        for stem in stems:
            add(stem)
        if not stems and " " in key:
            for stem in compound_stems(key, pos_key):
                add(stem)
        for base in self.exception_bases(key, pos_key):
            add(base)
        return [self._synsets[i] for i in found]

    def lookup_many(self, lemmas: Iterable[str], pos: PosLike) -> list[Synset]:
        found: dict[str, Synset] = {}
        for lemma in lemmas:
            for synset in self.lookup(lemma, pos):
                found.setdefault(synset.id, synset)
        return list(found.values())

    def first_sense(self, lemma: str, pos: PosLike) -> Synset | None:
        senses = self.lookup(lemma, pos)
        return senses[0] if senses else None

    def is_in_wn(self, lemma: str, pos: PosLike) -> bool:
        if not lemma:
            return False
        key = lemma_key(lemma)
        pos_key = _pos_key(pos)
        if (key, pos_key) in self._index or self.has_exception(key, pos_key):
            return True
        return any((stem, pos_key) in self._index for stem in find_stems(key, pos_key))

    def sense_count(self, lemma: str) -> int:
        """Number of senses of ``lemma`` across every part of speech."""
        return self._sense_counts.get(lemma_key(lemma), 0)

    def lemmas(self) -> Iterator[tuple[str, str]]:
        """Yield every ``(lemma, pos)`` key in the index."""
        yield from self._index

    # ------------------------------------------------------------------
    # Morphological exceptions
    # ------------------------------------------------------------------

    def exception_bases(self, variant: str, pos: PosLike) -> tuple[str, ...]:
        return self._exceptions.get((lemma_key(variant), _pos_key(pos)), ())

    def has_exception(self, variant: str, pos: PosLike) -> bool:
        return (lemma_key(variant), _pos_key(pos)) in self._exceptions

    def stems(self, lemma: str, pos: PosLike) -> tuple[str, ...]:
        return find_stems(lemma_key(lemma), _pos_key(pos))

    # ------------------------------------------------------------------
    # Graph queries
    # ------------------------------------------------------------------

    def _one_away(self, synset: Synset, pos: PartOfSpeech) -> list[Synset]:
        relations = HYPERNYM_RELATIONS + HYPONYM_RELATIONS
        if pos.is_modifier:
            relations += ("similar", "also")
        return self.related(synset, relations)

    def is_already_in_wordnet(
        self, lemma: str, pos: PosLike, candidates: Synset | Iterable[Synset],
    ) -> bool:
        """Whether ``lemma`` already has a sense within two hops of a candidate."""
        if isinstance(candidates, Synset):
            candidates = (candidates,)
        pos = PartOfSpeech.parse(pos)
        targets = {s.id for s in self.lookup(lemma, pos)}
        if not targets:
            return False
        for s1 in candidates:
            if s1.id in targets:
                return True
            for s2 in self._one_away(s1, pos):
                if s2.id in targets:
                    return True
                for s3 in self._one_away(s2, pos):
                    if s3.id in targets:
                        return True
        return False

    def is_descendant(self, start: Synset, goal_id: str) -> bool:
        """Breadth-first search up hypernym links from ``start`` to ``goal_id``."""
        if start.id == goal_id:
            return True
        visited: set[str] = set()
        frontier = {t for rel in HYPERNYM_RELATIONS for t in start.related_ids(rel)}
        while frontier:
            if goal_id in frontier:
                return True
            visited |= frontier
            next_frontier: set[str] = set()
            for synset_id in frontier:
                synset = self.synset(synset_id)
                for rel in HYPERNYM_RELATIONS:
                    next_frontier.update(
                        t for t in synset.related_ids(rel) if t not in visited
                    )
            frontier = next_frontier
        return False

    def hyponym_closure(self, root: Synset, max_depth: int | None = None) -> list[Synset]:
        """Breadth-first hyponym descendants of ``root`` (excluding ``root``)."""
        seen = {root.id}
        result: list[Synset] = []
        frontier = [root]
        depth = 0
        while frontier and (max_depth is None or depth < max_depth):
            next_frontier = []
            for synset in frontier:
                for child in self.related(synset, HYPONYM_RELATIONS):
                    if child.id not in seen:
                        seen.add(child.id)
                        result.append(child)
                        next_frontier.append(child)
            frontier = next_frontier
            depth += 1
        return result

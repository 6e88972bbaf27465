"""Greedy, ceiling-aware placement of one pass of integration results.

The engine turns annotated entries into edit intents. It runs serially:
each accepted placement updates the pointer and sense counters straight
away, so later entries in the same pass see the new totals.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from crown.config import BuildConfig
from crown.counters import CounterService
from crown.dictionary import LexicalDatabase, lemma_key
from crown.exceptions import InvariantError
from crown.lexfile import LexIdAllocator, balance_parens, crown_lexfile, lexfile_name
from crown.models import (
    AnnotatedLexicalEntry,
    Edit,
    ExceptionEdit,
    MergeEdit,
    NewSynsetEdit,
    Operation,
    OperationKind,
    Synset,
)
from crown.relations import OPERATION_RELATIONS

logger = logging.getLogger(__name__)

VALID_LEMMA = re.compile(r"[a-zA-Z_0-9\-' ]+[a-zA-Z0-9]")

# Rejection reasons, as recorded in PlacementResult.rejected.
INVALID_LEMMA = "invalid-lemma"
INVALID_GLOSS = "invalid-gloss"
SENSE_CEILING = "sense-ceiling"
POINTER_CEILING = "pointer-ceiling"
DUPLICATE_MERGE = "duplicate-merge"
ALREADY_MEMBER = "already-member"
NO_LEMMA_ID = "lemma-id-exhausted"
NO_EXCEPTION = "no-exception"
NO_RELATIONS = "no-relations"


@dataclass(frozen=True, slots=True)
class PlacementResult:
    """Accepted entries, the edits they produce and why others were dropped."""

    accepted: list[AnnotatedLexicalEntry] = field(default_factory=list)
    edits: list[Edit] = field(default_factory=list)
    rejected: dict[str, str] = field(default_factory=dict)


class PlacementEngine:
    """Place one pass of results against a database snapshot."""

    def __init__(
        self,
        db: LexicalDatabase,
        counters: CounterService,
        config: BuildConfig | None = None,
        iteration: int = 0,
    ) -> None:
        self.db = db
        self.counters = counters
        self.config = config or BuildConfig()
        self.iteration = iteration
        self._allocators: dict[str, LexIdAllocator] = {}

    def place(self, results: Iterable[AnnotatedLexicalEntry]) -> PlacementResult:
        """Filter, partition and place ``results``, sorted by entry id."""
        self.counters.reset(self.db)
        self._allocators = {}
        outcome = PlacementResult()

        attaches: dict[str, list[AnnotatedLexicalEntry]] = defaultdict(list)
        merges: dict[str, list[AnnotatedLexicalEntry]] = defaultdict(list)
        relation_only: list[AnnotatedLexicalEntry] = []
        lexicalizations: list[AnnotatedLexicalEntry] = []

        for ale in sorted(results, key=lambda a: a.id):
            problem = self.check_entry(ale)
            if problem is None and self._senses_full(ale.lemma):
                problem = SENSE_CEILING
            if problem is not None:
                outcome.rejected[ale.id] = problem
                continue

            primary = ale.primary
            if primary is OperationKind.LEXICALIZATION:
                lexicalizations.append(ale)
            elif primary is OperationKind.SYNONYM:
                target = ale.get(OperationKind.SYNONYM).target
                queued = merges[target.id]
                if any(lemma_key(q.lemma) == lemma_key(ale.lemma) for q in queued):
                    outcome.rejected[ale.id] = DUPLICATE_MERGE
                else:
                    queued.append(ale)
            elif primary is OperationKind.HYPERNYM:
                attaches[ale.get(OperationKind.HYPERNYM).target.id].append(ale)
            elif ale.pos.is_modifier:
                relation_only.append(ale)
            else:
                raise InvariantError(
                    f"Entry {ale.id} ({ale.lemma}) has no operation to place it"
                )

        for parent_id, group in attaches.items():
            parent = self.db.synset(parent_id)
            for ale in group:
                self._attach(ale, parent, outcome)
        for ale in relation_only:
            self._attach(ale, None, outcome)
        for target_id, group in merges.items():
            target = self.db.synset(target_id)
            for ale in group:
                self._merge(ale, target, outcome)
        for ale in lexicalizations:
            self._lexicalize(ale, outcome)

        logger.info(
            "Placed %d of %d entries (%d edits, %d rejected)",
            len(outcome.accepted),
            len(outcome.accepted) + len(outcome.rejected),
            len(outcome.edits),
            len(outcome.rejected),
        )
        return outcome

    # ------------------------------------------------------------------
    # Entry checks
    # ------------------------------------------------------------------

    def check_entry(self, ale: AnnotatedLexicalEntry) -> str | None:
        """Reason the entry cannot be placed at all, or ``None``."""
        lemma = ale.lemma
        if (
            not VALID_LEMMA.fullmatch(lemma)
            or len(lemma) > self.config.max_lemma_length
        ):
            return INVALID_LEMMA
        if ale.primary in (OperationKind.LEXICALIZATION, OperationKind.SYNONYM):
            return None
        gloss = (ale.gloss or "").strip()
        if not (
            self.config.min_gloss_length <= len(gloss) <= self.config.max_gloss_length
        ):
            return INVALID_GLOSS
        if not gloss.isascii():
            return INVALID_GLOSS
        return None

    def _senses_full(self, lemma: str) -> bool:
        """Whether one more sense would take ``lemma`` over the ceiling."""
        return self.counters.senses(lemma) >= self.config.max_senses

    def _over_sense_ceiling(self, lemma: str) -> bool:
        return self.counters.senses(lemma) > self.config.max_senses

    def allocator(self, lexfile: str) -> LexIdAllocator:
        """Lemma-id allocator for a lexicographer file, seeded from the snapshot."""
        allocator = self._allocators.get(lexfile)
        if allocator is None:
            existing = (
                lemma
                for synset in self.db.synsets()
                if lexfile_name(synset) == lexfile
                for lemma in synset.lemmas
            )
            allocator = LexIdAllocator(existing, self.config.max_lemma_instances)
            self._allocators[lexfile] = allocator
        return allocator

    # ------------------------------------------------------------------
    # Attach: a new synset below a parent, or held up by relations only
    # ------------------------------------------------------------------

    def _attach(
        self,
        ale: AnnotatedLexicalEntry,
        parent: Synset | None,
        outcome: PlacementResult,
    ) -> None:
        max_pointers = self.config.max_pointers
        if parent is not None and self.counters.pointers(parent.id) >= max_pointers:
            outcome.rejected[ale.id] = POINTER_CEILING
            return
        if self._senses_full(ale.lemma):
            outcome.rejected[ale.id] = SENSE_CEILING
            return
        key = lemma_key(ale.lemma)
        if parent is not None and any(lemma_key(m) == key for m in parent.lemmas):
            outcome.rejected[ale.id] = ALREADY_MEMBER
            return

        relations: list[tuple[str, str]] = []
        if parent is not None:
            relations.append((OPERATION_RELATIONS[OperationKind.HYPERNYM], parent.id))
        acquired: list[str] = []
        for op in list(ale.operations()):
            if op.kind in (OperationKind.HYPERNYM, OperationKind.SYNONYM):
                continue
            if not self._acquire_related(op):
                ale.remove(op)
                continue
            acquired.append(op.target.id)
            relations.append((OPERATION_RELATIONS[op.kind], op.target.id))

        if parent is None and not relations:
            outcome.rejected[ale.id] = NO_RELATIONS
            return

        lexfile = crown_lexfile(ale.pos, self.iteration)
        lemma_id = self.allocator(lexfile).allocate(ale.lemma)
        if lemma_id is None:
            for synset_id in acquired:
                self.counters.increment_pointers(synset_id, -1)
            outcome.rejected[ale.id] = NO_LEMMA_ID
            return

        if parent is not None:
            self.counters.increment_pointers(parent.id)
        self.counters.increment_senses(ale.lemma)
        outcome.edits.append(NewSynsetEdit(
            entry_id=ale.id,
            lemma=ale.lemma,
            lemma_id=lemma_id,
            pos=ale.pos.base(),
            gloss=balance_parens(ale.gloss.strip()),
            lexfile=lexfile,
            relations=tuple(relations),
        ))
        outcome.accepted.append(ale)

    def _acquire_related(self, op: Operation) -> bool:
        """Reserve a pointer on the op's target unless a ceiling is hit."""
        target = op.target
        if any(self._over_sense_ceiling(lemma) for lemma in target.lemmas):
            return False
        return self.counters.try_acquire_pointer(target.id, self.config.max_pointers)

    # ------------------------------------------------------------------
    # Merge: a new member of an existing synset
    # ------------------------------------------------------------------

    def _merge(
        self, ale: AnnotatedLexicalEntry, target: Synset, outcome: PlacementResult,
    ) -> None:
        if self._senses_full(ale.lemma):
            outcome.rejected[ale.id] = SENSE_CEILING
            return
        key = lemma_key(ale.lemma)
        if any(lemma_key(member) == key for member in target.lemmas):
            outcome.rejected[ale.id] = ALREADY_MEMBER
            return
        lemma_id = self.allocator(lexfile_name(target)).allocate(ale.lemma)
        if lemma_id is None:
            outcome.rejected[ale.id] = NO_LEMMA_ID
            return
        # Only the membership is written for a merge.
        for op in list(ale.operations()):
            if op.kind is not OperationKind.SYNONYM:
                ale.remove(op)
        self.counters.increment_senses(ale.lemma)
        outcome.edits.append(MergeEdit(
            entry_id=ale.id,
            lemma=ale.lemma,
            lemma_id=lemma_id,
            synset_id=target.id,
        ))
        outcome.accepted.append(ale)

    # ------------------------------------------------------------------
    # Lexicalization: an exception-table pair
    # ------------------------------------------------------------------

    def _lexicalize(self, ale: AnnotatedLexicalEntry, outcome: PlacementResult) -> None:
        pos = ale.pos.base()
        edits = []
        for lexicalization in ale.lexicalizations:
            variant = ale.lemma
            base = lexicalization.base_form
            if not VALID_LEMMA.fullmatch(base):
                continue
            if lemma_key(base) in self.db.stems(variant, pos):
                continue
            variant_in_wn = self.db.is_in_wn(variant, pos)
            base_in_wn = self.db.is_in_wn(base, pos)
            if variant_in_wn == base_in_wn:
                continue
            if variant_in_wn:
                variant, base = base, variant
            edits.append(ExceptionEdit(pos=pos, variant=variant, base=base))
        if not edits:
            outcome.rejected[ale.id] = NO_EXCEPTION
            return
        outcome.edits.extend(edits)
        outcome.accepted.append(ale)

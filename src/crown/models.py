"""Domain model dataclasses and enums for crown."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from crown.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PartOfSpeech(str, Enum):
    """Part-of-speech tags for lexical entries and synsets."""

    NOUN = "n"
    VERB = "v"
    ADJECTIVE = "a"
    ADVERB = "r"
    ADJECTIVE_SATELLITE = "s"

    @property
    def lexname(self) -> str:
        """Prefix used for lexicographer and exception file names."""
        return _LEXNAMES[self]

    @property
    def tag_prefix(self) -> str:
        """First letter of the Penn Treebank tags for this part of speech."""
        return "j" if self.is_modifier and self is not PartOfSpeech.ADVERB else self.value

    @property
    def is_modifier(self) -> bool:
        return self in (
            PartOfSpeech.ADJECTIVE,
            PartOfSpeech.ADJECTIVE_SATELLITE,
            PartOfSpeech.ADVERB,
        )

    def base(self) -> PartOfSpeech:
        """Collapse adjective satellites onto adjectives."""
        if self is PartOfSpeech.ADJECTIVE_SATELLITE:
            return PartOfSpeech.ADJECTIVE
        return self

    @classmethod
    def parse(cls, value: str | PartOfSpeech) -> PartOfSpeech:
        if isinstance(value, PartOfSpeech):
            return value
        key = value.strip().lower()
        if key in _POS_ALIASES:
            return _POS_ALIASES[key]
        raise ValidationError(f"Invalid POS: {value!r}")


_LEXNAMES = {
    PartOfSpeech.NOUN: "noun",
    PartOfSpeech.VERB: "verb",
    PartOfSpeech.ADJECTIVE: "adj",
    PartOfSpeech.ADJECTIVE_SATELLITE: "adj",
    PartOfSpeech.ADVERB: "adv",
}

_POS_ALIASES = {
    "n": PartOfSpeech.NOUN,
    "noun": PartOfSpeech.NOUN,
    "v": PartOfSpeech.VERB,
    "verb": PartOfSpeech.VERB,
    "a": PartOfSpeech.ADJECTIVE,
    "j": PartOfSpeech.ADJECTIVE,
    "adj": PartOfSpeech.ADJECTIVE,
    "adjective": PartOfSpeech.ADJECTIVE,
    "s": PartOfSpeech.ADJECTIVE_SATELLITE,
    "r": PartOfSpeech.ADVERB,
    "adv": PartOfSpeech.ADVERB,
    "adverb": PartOfSpeech.ADVERB,
}


class EntryRelationType(str, Enum):
    """Relations a Wiktionary entry declares to other lemmas."""

    SYNONYM = "SYNONYM"
    ANTONYM = "ANTONYM"
    HYPERNYM = "HYPERNYM"
    HYPONYM = "HYPONYM"
    HOLONYM = "HOLONYM"
    MERONYM = "MERONYM"
    COORDINATE_TERM = "COORDINATE_TERM"
    TROPONYM = "TROPONYM"
    SEE_ALSO = "SEE_ALSO"
    DERIVED_TERM = "DERIVED_TERM"
    ETYMOLOGICALLY_RELATED_TERM = "ETYMOLOGICALLY_RELATED_TERM"
    DESCENDANT = "DESCENDANT"
    CHARACTERISTIC_WORD_COMBINATION = "CHARACTERISTIC_WORD_COMBINATION"


class OperationKind(str, Enum):
    """Kinds of operations a procedure can propose for an entry."""

    HYPERNYM = "Hypernym"
    SYNONYM = "Synonym"
    ANTONYM = "Antonym"
    PERTAINYM = "Pertainym"
    SIMILAR_TO = "SimilarTo"
    DERIVATIONALLY_RELATED = "DerivationallyRelated"
    DERIVED_FROM_ADJECTIVE = "DerivedFromAdjective"
    MEMBER_MERONYM = "MemberMeronym"
    PART_MERONYM = "PartMeronym"
    DOMAIN_TOPIC = "DomainTopic"
    LEXICALIZATION = "Lexicalization"


SINGLE_TARGET_OPERATIONS: tuple[OperationKind, ...] = (
    OperationKind.HYPERNYM,
    OperationKind.SYNONYM,
    OperationKind.ANTONYM,
    OperationKind.PERTAINYM,
    OperationKind.SIMILAR_TO,
    OperationKind.DERIVATIONALLY_RELATED,
    OperationKind.DERIVED_FROM_ADJECTIVE,
)

MULTI_TARGET_OPERATIONS: tuple[OperationKind, ...] = (
    OperationKind.MEMBER_MERONYM,
    OperationKind.PART_MERONYM,
    OperationKind.DOMAIN_TOPIC,
)

PRIMARY_OPERATIONS = frozenset({
    OperationKind.HYPERNYM,
    OperationKind.SYNONYM,
    OperationKind.LEXICALIZATION,
})


class ValidationSeverity(str, Enum):
    """Severity level for validation results."""

    ERROR = "ERROR"
    WARNING = "WARNING"


# ---------------------------------------------------------------------------
# Lexical database records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Synset:
    """A read-only synset from a database snapshot."""

    id: str
    pos: PartOfSpeech = field(compare=False)
    lemmas: tuple[str, ...] = field(compare=False)
    gloss: str = field(compare=False)
    lexfile: str | None = field(default=None, compare=False)
    relations: dict[str, tuple[str, ...]] = field(
        default_factory=dict, compare=False, repr=False,
    )

    def related_ids(self, relation: str) -> tuple[str, ...]:
        return self.relations.get(relation, ())

    @property
    def fan_out(self) -> int:
        return sum(len(targets) for targets in self.relations.values())


@dataclass(frozen=True, slots=True)
class LexiconModel:
    """A lexicon (the container every synset and entry belongs to)."""

    id: str
    label: str
    language: str
    version: str


@dataclass(frozen=True, slots=True)
class SynsetModel:
    """A synset as stored by the editor."""

    id: str
    lexicon_id: str
    pos: str
    definition: str | None
    lexfile: str | None
    members: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class EntryModel:
    """A lexical entry (word + part of speech)."""

    id: str
    lexicon_id: str
    lemma: str
    pos: str


@dataclass(frozen=True, slots=True)
class SenseModel:
    """A sense linking a lexical entry to a synset."""

    id: str
    entry_id: str
    synset_id: str
    entry_rank: int
    synset_rank: int


@dataclass(frozen=True, slots=True)
class RelationModel:
    """A typed, directed relation between two synsets."""

    source_id: str
    target_id: str
    relation_type: str


@dataclass(frozen=True, slots=True)
class EditRecord:
    """A single edit-history entry recording one change."""

    id: int
    entity_type: str
    entity_id: str
    operation: str
    new_value: str | None
    timestamp: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """A single validation finding (error or warning)."""

    rule_id: str
    severity: str
    entity_type: str
    entity_id: str
    message: str
    details: dict[str, Any] | None


# ---------------------------------------------------------------------------
# Input entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Relation:
    """A relation from a Wiktionary entry to another lemma."""

    target_lemma: str
    type: EntryRelationType
    target_sense: str | None = None


@dataclass(frozen=True, slots=True)
class LexicalEntry:
    """An immutable candidate entry read from the secondary dictionary.

    ``raw_glosses`` pairs every raw gloss (with its wiki markup) with its
    cleaned text, in the order they were read; ``gloss`` is the cleaned
    glosses joined together.
    """

    id: str
    lemma: str
    pos: PartOfSpeech
    gloss: str
    glosses: tuple[str, ...]
    raw_glosses: tuple[tuple[str, str], ...]
    relations: tuple[Relation, ...] = ()

    def related_lemmas(self, relation_type: EntryRelationType) -> list[str]:
        return [r.target_lemma for r in self.relations if r.type == relation_type]


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Reason:
    """Provenance of an operation: which procedure proposed it and why."""

    origin: str
    props: dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> Reason:
        self.props[key] = value
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self.props.get(key, default)

    @property
    def heuristic(self) -> str | None:
        return self.props.get("heuristic")

    def to_json(self) -> str:
        return json.dumps({"origin": self.origin, **self.props}, sort_keys=True)


@dataclass(frozen=True, slots=True)
class Operation:
    """A relation from the entry to one existing synset."""

    kind: OperationKind
    reason: Reason = field(compare=False)
    target: Synset


@dataclass(frozen=True, slots=True)
class Lexicalization:
    """A claim that the entry's lemma is a morphological variant."""

    reason: Reason = field(compare=False)
    base_form: str


@dataclass(slots=True)
class AnnotatedLexicalEntry:
    """A lexical entry together with the operations proposed for it."""

    entry: LexicalEntry
    single: dict[OperationKind, Operation] = field(default_factory=dict)
    multi: dict[OperationKind, list[Operation]] = field(default_factory=dict)
    lexicalizations: list[Lexicalization] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.entry.id

    @property
    def lemma(self) -> str:
        return self.entry.lemma

    @property
    def pos(self) -> PartOfSpeech:
        return self.entry.pos

    @property
    def gloss(self) -> str:
        return self.entry.gloss

    @property
    def primary(self) -> OperationKind | None:
        if self.lexicalizations:
            return OperationKind.LEXICALIZATION
        if OperationKind.SYNONYM in self.single:
            return OperationKind.SYNONYM
        if OperationKind.HYPERNYM in self.single:
            return OperationKind.HYPERNYM
        return None

    def set_op(
        self, kind: OperationKind, reason: Reason, target: Synset,
    ) -> Operation:
        if kind not in SINGLE_TARGET_OPERATIONS:
            raise ValidationError(f"{kind.value} is not a single-target operation")
        current = self.primary
        if kind in PRIMARY_OPERATIONS and current not in (None, kind):
            raise ValidationError(
                f"Entry {self.id} already has primary operation {current.value}"
            )
        op = Operation(kind, reason, target)
        self.single[kind] = op
        return op

    def add_op(
        self, kind: OperationKind, reason: Reason, target: Synset,
    ) -> Operation:
        if kind not in MULTI_TARGET_OPERATIONS:
            raise ValidationError(f"{kind.value} is not a multi-target operation")
        op = Operation(kind, reason, target)
        ops = self.multi.setdefault(kind, [])
        if op not in ops:
            ops.append(op)
        return op

    def add_lexicalization(self, reason: Reason, base_form: str) -> Lexicalization:
        if self.single.keys() & PRIMARY_OPERATIONS:
            raise ValidationError(
                f"Entry {self.id} already has primary operation {self.primary.value}"
            )
        lex = Lexicalization(reason, base_form)
        self.lexicalizations.append(lex)
        return lex

    def get(self, kind: OperationKind) -> Operation | None:
        return self.single.get(kind)

    def targets(self, kind: OperationKind) -> list[Synset]:
        if kind in MULTI_TARGET_OPERATIONS:
            return [op.target for op in self.multi.get(kind, [])]
        op = self.single.get(kind)
        return [op.target] if op else []

    def remove(self, op: Operation) -> None:
        """Drop one operation, e.g. when its target has no capacity left."""
        if op.kind in MULTI_TARGET_OPERATIONS:
            ops = self.multi.get(op.kind, [])
            if op in ops:
                ops.remove(op)
            if not ops:
                self.multi.pop(op.kind, None)
        elif self.single.get(op.kind) == op:
            del self.single[op.kind]

    def operations(self) -> Iterator[Operation]:
        """Yield every synset-targeting operation, single-target first."""
        for kind in SINGLE_TARGET_OPERATIONS:
            if kind in self.single:
                yield self.single[kind]
        for kind in MULTI_TARGET_OPERATIONS:
            yield from self.multi.get(kind, ())


# ---------------------------------------------------------------------------
# Edit intents
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class NewSynsetEdit:
    """Create a synset for an entry with the given outgoing relations."""

    entry_id: str
    lemma: str
    lemma_id: str
    pos: PartOfSpeech
    gloss: str
    lexfile: str
    relations: tuple[tuple[str, str], ...]


@dataclass(frozen=True, slots=True)
class MergeEdit:
    """Add a lemma as a new member of an existing synset."""

    entry_id: str
    lemma: str
    lemma_id: str
    synset_id: str


@dataclass(frozen=True, slots=True)
class ExceptionEdit:
    """Record a morphological exception pair."""

    pos: PartOfSpeech
    variant: str
    base: str


Edit = NewSynsetEdit | MergeEdit | ExceptionEdit

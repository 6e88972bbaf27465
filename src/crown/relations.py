"""Relation type constants, inverse mapping and pointer symbols for crown."""

from __future__ import annotations

from crown.models import OperationKind

# Synset relations a CROWN build reads or writes, with their inverses.
# Names follow wn's REVERSE_RELATIONS; pertainym has no stored inverse.

SYNSET_RELATION_INVERSES: dict[str, str] = {
    # Asymmetric pairs
    "hypernym": "hyponym",
    "hyponym": "hypernym",
    "instance_hypernym": "instance_hyponym",
    "instance_hyponym": "instance_hypernym",
    "mero_member": "holo_member",
    "holo_member": "mero_member",
    "mero_part": "holo_part",
    "holo_part": "mero_part",
    "mero_substance": "holo_substance",
    "holo_substance": "mero_substance",
    "domain_topic": "has_domain_topic",
    "has_domain_topic": "domain_topic",
    "domain_region": "has_domain_region",
    "has_domain_region": "domain_region",
    "exemplifies": "is_exemplified_by",
    "is_exemplified_by": "exemplifies",
    "entails": "is_entailed_by",
    "is_entailed_by": "entails",
    "causes": "is_caused_by",
    "is_caused_by": "causes",
    # Symmetric (map to themselves)
    "antonym": "antonym",
    "similar": "similar",
    "also": "also",
    "derivation": "derivation",
    "attribute": "attribute",
}

SYNSET_RELATIONS: frozenset[str] = frozenset(SYNSET_RELATION_INVERSES) | {
    "pertainym",
}

# Relations followed when walking up a taxonomy.
HYPERNYM_RELATIONS: tuple[str, ...] = ("hypernym", "instance_hypernym")
HYPONYM_RELATIONS: tuple[str, ...] = ("hyponym", "instance_hyponym")

OPERATION_RELATIONS: dict[OperationKind, str] = {
    OperationKind.HYPERNYM: "hypernym",
    OperationKind.ANTONYM: "antonym",
    OperationKind.PERTAINYM: "pertainym",
    OperationKind.SIMILAR_TO: "similar",
    OperationKind.DERIVATIONALLY_RELATED: "derivation",
    OperationKind.DERIVED_FROM_ADJECTIVE: "pertainym",
    OperationKind.MEMBER_MERONYM: "mero_member",
    OperationKind.PART_MERONYM: "mero_part",
    OperationKind.DOMAIN_TOPIC: "domain_topic",
}


def is_valid_synset_relation(relation_type: str) -> bool:
    """Check if a string is a valid synset relation type."""
    return relation_type in SYNSET_RELATIONS


# Pointer symbols for the stored relations written to lexicographer files.
# Inverse pointers (hyponym, holonyms, ...) are left for the compiler.
RELATION_SYMBOLS: dict[str, str] = {
    "hypernym": "@",
    "instance_hypernym": "@i",
    "antonym": "!",
    "pertainym": "\\",
    "similar": "&",
    "also": "^",
    "derivation": "+",
    "attribute": "=",
    "entails": "*",
    "causes": ">",
    "mero_member": "%m",
    "mero_part": "%p",
    "mero_substance": "%s",
    "domain_topic": ";c",
    "domain_region": ";r",
    "exemplifies": ";u",
}

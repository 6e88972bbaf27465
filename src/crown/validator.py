"""Validation engine for crown databases."""

from __future__ import annotations

import sqlite3
from collections.abc import Collection

from crown.dictionary import lemma_key
from crown.models import ValidationResult, ValidationSeverity
from crown.relations import SYNSET_RELATION_INVERSES

ERROR = ValidationSeverity.ERROR.value
WARNING = ValidationSeverity.WARNING.value


def validate_all(
    conn: sqlite3.Connection,
    *,
    max_pointers: int | None = None,
    max_senses: int | None = None,
    synset_ids: Collection[str] | None = None,
    lemmas: Collection[str] | None = None,
) -> list[ValidationResult]:
    """Run all validation rules.

    The ceiling rules only run when a ceiling is given. ``synset_ids`` and
    ``lemmas`` restrict them to the synsets and lemmas a build touched.
    """
    results: list[ValidationResult] = []
    results.extend(_val_gen_001(conn))
    results.extend(_val_ent_001(conn))
    results.extend(_val_syn_001(conn))
    results.extend(_val_syn_005(conn))
    results.extend(_val_rel_001(conn))
    results.extend(_val_rel_004(conn))
    results.extend(_val_rel_005(conn))
    results.extend(_val_tax_001(conn))
    results.extend(_val_exc_001(conn))
    if max_pointers is not None:
        results.extend(_val_cap_001(conn, max_pointers, synset_ids))
    if max_senses is not None:
        results.extend(_val_cap_002(conn, max_senses, lemmas))
    return results


def errors(results: list[ValidationResult]) -> list[ValidationResult]:
    return [r for r in results if r.severity == ERROR]


# ------------------------------------------------------------------
# Individual rule implementations
# ------------------------------------------------------------------

def _val_gen_001(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Duplicate IDs."""
    results = []
    for table, etype in [
        ("synsets", "synset"),
        ("entries", "entry"),
        ("senses", "sense"),
    ]:
        sql = (
            f"SELECT id, COUNT(*) as cnt FROM {table} "
            "GROUP BY id HAVING cnt > 1"
        )
        for row in conn.execute(sql).fetchall():
            results.append(ValidationResult(
                rule_id="VAL-GEN-001",
                severity=ERROR,
                entity_type=etype,
                entity_id=row["id"],
                message=f"Duplicate {etype} ID: {row['id']}",
                details={"count": row["cnt"]},
            ))
    return results


def _val_ent_001(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Entries with no senses."""
    sql = (
        "SELECT e.id FROM entries e WHERE NOT EXISTS "
        "(SELECT 1 FROM senses s WHERE s.entry_rowid = e.rowid)"
    )
    return [
        ValidationResult(
            rule_id="VAL-ENT-001",
            severity=WARNING,
            entity_type="entry",
            entity_id=row["id"],
            message="Entry has no senses",
            details=None,
        )
        for row in conn.execute(sql).fetchall()
    ]


def _val_syn_001(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Empty synsets (no member lemmas)."""
    sql = (
        "SELECT s.id FROM synsets s WHERE NOT EXISTS "
        "(SELECT 1 FROM senses se WHERE se.synset_rowid = s.rowid)"
    )
    return [
        ValidationResult(
            rule_id="VAL-SYN-001",
            severity=WARNING,
            entity_type="synset",
            entity_id=row["id"],
            message="Synset has no member lemmas",
            details=None,
        )
        for row in conn.execute(sql).fetchall()
    ]


def _val_syn_005(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Synsets without a gloss."""
    sql = (
        "SELECT s.id FROM synsets s WHERE NOT EXISTS "
        "(SELECT 1 FROM definitions d WHERE d.synset_rowid = s.rowid "
        " AND d.definition IS NOT NULL AND TRIM(d.definition) != '')"
    )
    return [
        ValidationResult(
            rule_id="VAL-SYN-005",
            severity=ERROR,
            entity_type="synset",
            entity_id=row["id"],
            message="Synset has no gloss",
            details=None,
        )
        for row in conn.execute(sql).fetchall()
    ]


def _val_rel_001(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Dangling relation targets."""
    sql = (
        "SELECT src.id as source_id, sr.target_rowid "
        "FROM synset_relations sr "
        "JOIN synsets src ON sr.source_rowid = src.rowid "
        "WHERE NOT EXISTS (SELECT 1 FROM synsets t WHERE t.rowid = sr.target_rowid)"
    )
    return [
        ValidationResult(
            rule_id="VAL-REL-001",
            severity=ERROR,
            entity_type="relation",
            entity_id=row["source_id"],
            message="Relation target synset is missing",
            details={"target_rowid": row["target_rowid"]},
        )
        for row in conn.execute(sql).fetchall()
    ]


def _val_rel_004(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Missing inverse relations."""
    results = []
    type_rowids = {
        row["type"]: row["rowid"]
        for row in conn.execute("SELECT rowid, type FROM relation_types")
    }
    sql = (
        "SELECT src.id as source_id, tgt.id as target_id "
        "FROM synset_relations sr "
        "JOIN synsets src ON sr.source_rowid = src.rowid "
        "JOIN synsets tgt ON sr.target_rowid = tgt.rowid "
        "WHERE sr.type_rowid = ? AND NOT EXISTS ("
        " SELECT 1 FROM synset_relations inv"
        " WHERE inv.source_rowid = sr.target_rowid"
        " AND inv.target_rowid = sr.source_rowid AND inv.type_rowid = ?)"
    )
    for rel_type, type_rowid in type_rowids.items():
        inverse = SYNSET_RELATION_INVERSES.get(rel_type)
        if inverse is None:
            continue  # No inverse defined
        inv_rowid = type_rowids.get(inverse, -1)
        for row in conn.execute(sql, (type_rowid, inv_rowid)).fetchall():
            results.append(ValidationResult(
                rule_id="VAL-REL-004",
                severity=WARNING,
                entity_type="relation",
                entity_id=f"{row['source_id']}->{rel_type}->{row['target_id']}",
                message=f"Missing inverse relation: {inverse}",
                details=None,
            ))
    return results


def _val_rel_005(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Self-loop relations."""
    sql = (
        "SELECT src.id as source_id, rt.type "
        "FROM synset_relations sr "
        "JOIN synsets src ON sr.source_rowid = src.rowid "
        "JOIN relation_types rt ON sr.type_rowid = rt.rowid "
        "WHERE sr.source_rowid = sr.target_rowid"
    )
    return [
        ValidationResult(
            rule_id="VAL-REL-005",
            severity=ERROR,
            entity_type="relation",
            entity_id=row["source_id"],
            message=f"Self-loop: {row['type']}",
            details=None,
        )
        for row in conn.execute(sql).fetchall()
    ]


def _val_tax_001(conn: sqlite3.Connection) -> list[ValidationResult]:
    """POS mismatch with hypernym."""
    sql = (
        "SELECT src.id as source_id, src.pos as src_pos, "
        "tgt.id as target_id, tgt.pos as tgt_pos "
        "FROM synset_relations sr "
        "JOIN relation_types rt ON sr.type_rowid = rt.rowid "
        "JOIN synsets src ON sr.source_rowid = src.rowid "
        "JOIN synsets tgt ON sr.target_rowid = tgt.rowid "
        "WHERE rt.type IN ('hypernym', 'instance_hypernym') "
        "AND src.pos IS NOT NULL AND tgt.pos IS NOT NULL AND src.pos != tgt.pos"
    )
    return [
        ValidationResult(
            rule_id="VAL-TAX-001",
            severity=WARNING,
            entity_type="synset",
            entity_id=row["source_id"],
            message=(
                f"POS mismatch: {row['source_id']} ({row['src_pos']}) "
                f"has hypernym {row['target_id']} ({row['tgt_pos']})"
            ),
            details=None,
        )
        for row in conn.execute(sql).fetchall()
    ]


def _val_exc_001(conn: sqlite3.Connection) -> list[ValidationResult]:
    """Exception pairs mapping a form onto itself."""
    sql = "SELECT pos, variant FROM exceptions WHERE variant = base"
    return [
        ValidationResult(
            rule_id="VAL-EXC-001",
            severity=WARNING,
            entity_type="exception",
            entity_id=f"{row['pos']}:{row['variant']}",
            message="Exception maps a form onto itself",
            details=None,
        )
        for row in conn.execute(sql).fetchall()
    ]


def _val_cap_001(
    conn: sqlite3.Connection,
    max_pointers: int,
    synset_ids: Collection[str] | None,
) -> list[ValidationResult]:
    """Synsets with more pointers than the lexicographer format allows."""
    results = []
    sql = (
        "SELECT s.id, COUNT(*) as cnt FROM synset_relations sr "
        "JOIN synsets s ON sr.source_rowid = s.rowid "
        "GROUP BY sr.source_rowid HAVING cnt > ?"
    )
    for row in conn.execute(sql, (max_pointers,)).fetchall():
        if synset_ids is not None and row["id"] not in synset_ids:
            continue
        results.append(ValidationResult(
            rule_id="VAL-CAP-001",
            severity=ERROR,
            entity_type="synset",
            entity_id=row["id"],
            message=f"Synset has {row['cnt']} pointers (limit {max_pointers})",
            details={"count": row["cnt"]},
        ))
    return results


def _val_cap_002(
    conn: sqlite3.Connection,
    max_senses: int,
    lemmas: Collection[str] | None,
) -> list[ValidationResult]:
    """Lemmas with more senses than the lexicographer format allows."""
    counts: dict[str, int] = {}
    for row in conn.execute(
        "SELECT e.lemma, COUNT(*) as cnt FROM senses s "
        "JOIN entries e ON s.entry_rowid = e.rowid GROUP BY e.lemma"
    ):
        key = lemma_key(row["lemma"])
        counts[key] = counts.get(key, 0) + row["cnt"]

    keys = None if lemmas is None else {lemma_key(lemma) for lemma in lemmas}
    results = []
    for key, count in sorted(counts.items()):
        if count <= max_senses or (keys is not None and key not in keys):
            continue
        results.append(ValidationResult(
            rule_id="VAL-CAP-002",
            severity=ERROR,
            entity_type="entry",
            entity_id=key,
            message=f"Lemma has {count} senses (limit {max_senses})",
            details={"count": count},
        ))
    return results

"""LexiconEditor: the write API over a crown lexical database."""

from __future__ import annotations

import functools
import re
import sqlite3
from collections.abc import Callable, Generator
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Any, TypeVar

from crown import db as _db
from crown import history as _hist
from crown.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    ValidationError,
)
from crown.models import (
    EditRecord,
    EntryModel,
    LexiconModel,
    PartOfSpeech,
    RelationModel,
    SenseModel,
    SynsetModel,
    ValidationResult,
)
from crown.relations import SYNSET_RELATION_INVERSES, is_valid_synset_relation

_F = TypeVar("_F", bound=Callable[..., Any])

_VALID_POS = frozenset(p.value for p in PartOfSpeech)


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps mutation methods in a transaction (unless in batch)."""

    @functools.wraps(method)
    def wrapper(self: LexiconEditor, *args: Any, **kwargs: Any) -> Any:
        if self._in_batch:
            return method(self, *args, **kwargs)
        with self._conn:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class LexiconEditor:
    """Programmatic, transactional editing of a crown lexical database."""

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        *,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        self._db_path = str(db_path)
        self._conn = conn if conn is not None else _db.connect(db_path)
        _db.check_schema_version(self._conn)
        _db.init_db(self._conn)
        self._in_batch = False
        self._batch_depth = 0

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LexiconEditor:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Batch context manager
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Group multiple mutations into a single transaction."""
        self._batch_depth += 1
        if self._batch_depth == 1:
            self._in_batch = True
            self._conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            if self._batch_depth == 1:
                self._conn.rollback()
                self._in_batch = False
            self._batch_depth -= 1
            raise
        else:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._conn.commit()
                self._in_batch = False

    # ------------------------------------------------------------------
    # Lexicons
    # ------------------------------------------------------------------

    @_modifies_db
    def create_lexicon(
        self,
        id: str,
        label: str,
        language: str = "en",
        version: str = "1.0",
        *,
        metadata: dict | None = None,
    ) -> LexiconModel:
        try:
            self._conn.execute(
                "INSERT INTO lexicons (id, label, language, version, metadata) "
                "VALUES (?, ?, ?, ?, ?)",
                (id, label, language, version, metadata),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateEntityError(f"Lexicon already exists: {id!r}") from e
        _hist.record_create(self._conn, "lexicon", id, {"id": id, "label": label})
        return LexiconModel(id=id, label=label, language=language, version=version)

    def list_lexicons(self) -> list[LexiconModel]:
        rows = self._conn.execute(
            "SELECT id, label, language, version FROM lexicons ORDER BY rowid"
        ).fetchall()
        return [
            LexiconModel(
                id=r["id"], label=r["label"],
                language=r["language"], version=r["version"],
            )
            for r in rows
        ]

    def default_lexicon(self) -> str:
        """Return the id of the first lexicon, the one new content goes to."""
        row = self._conn.execute(
            "SELECT id FROM lexicons ORDER BY rowid LIMIT 1"
        ).fetchone()
        if row is None:
            raise EntityNotFoundError("Database has no lexicon")
        return row["id"]

    # ------------------------------------------------------------------
    # Synsets
    # ------------------------------------------------------------------

    @_modifies_db
    def create_synset(
        self,
        lexicon_id: str,
        pos: str,
        definition: str,
        *,
        id: str | None = None,
        lexfile: str | None = None,
        metadata: dict | None = None,
    ) -> SynsetModel:
        if pos not in _VALID_POS:
            raise ValidationError(f"Invalid POS: {pos!r}")

        lex_rowid = _db.get_lexicon_rowid(self._conn, lexicon_id)
        if lex_rowid is None:
            raise EntityNotFoundError(f"Lexicon not found: {lexicon_id!r}")

        if id is None:
            id = self._generate_synset_id(lexicon_id, lex_rowid, pos)
        elif not id.startswith(f"{lexicon_id}-"):
            raise ValidationError(
                f"ID must start with lexicon prefix: {lexicon_id}-"
            )

        if _db.get_synset_rowid(self._conn, id) is not None:
            raise DuplicateEntityError(f"Synset already exists: {id!r}")

        lexfile_rowid = None
        if lexfile is not None:
            lexfile_rowid = _db.get_or_create_lexfile(self._conn, lexfile)

        cur = self._conn.execute(
            "INSERT INTO synsets (id, lexicon_rowid, pos, lexfile_rowid, metadata) "
            "VALUES (?, ?, ?, ?, ?)",
            (id, lex_rowid, pos, lexfile_rowid, metadata),
        )
        self._conn.execute(
            "INSERT INTO definitions (lexicon_rowid, synset_rowid, definition) "
            "VALUES (?, ?, ?)",
            (lex_rowid, cur.lastrowid, definition),
        )

        _hist.record_create(
            self._conn, "synset", id,
            {"pos": pos, "definition": definition, "lexfile": lexfile},
        )
        return self._build_synset_model(id)

    def get_synset(self, synset_id: str) -> SynsetModel:
        return self._build_synset_model(synset_id)

    def _build_synset_model(self, synset_id: str) -> SynsetModel:
        row = self._conn.execute(
            "SELECT s.rowid, s.id, s.pos, lf.name AS lexfile, "
            "l.id AS lexicon_id "
            "FROM synsets s JOIN lexicons l ON s.lexicon_rowid = l.rowid "
            "LEFT JOIN lexfiles lf ON s.lexfile_rowid = lf.rowid "
            "WHERE s.id = ?",
            (synset_id,),
        ).fetchone()
        if row is None:
            raise EntityNotFoundError(f"Synset not found: {synset_id!r}")

        definition = self._conn.execute(
            "SELECT definition FROM definitions WHERE synset_rowid = ? "
            "ORDER BY rowid LIMIT 1",
            (row["rowid"],),
        ).fetchone()
        members = self._conn.execute(
            "SELECT e.lemma FROM senses s JOIN entries e ON s.entry_rowid = e.rowid "
            "WHERE s.synset_rowid = ? ORDER BY s.synset_rank, s.rowid",
            (row["rowid"],),
        ).fetchall()
        return SynsetModel(
            id=row["id"],
            lexicon_id=row["lexicon_id"],
            pos=row["pos"],
            definition=definition["definition"] if definition else None,
            lexfile=row["lexfile"],
            members=tuple(m["lemma"] for m in members),
        )

    def _generate_synset_id(
        self, lexicon_id: str, lex_rowid: int, pos: str
    ) -> str:
        prefix = f"{lexicon_id}-"
        prefix_len = len(prefix)
        row = self._conn.execute(
            "SELECT MAX(CAST(substr(id, ?, 8) AS INTEGER)) "
            "FROM synsets WHERE lexicon_rowid = ? AND id LIKE ?",
            (prefix_len + 1, lex_rowid, f"{prefix}________-%"),
        ).fetchone()
        counter = (row[0] or 0) + 1
        return f"{prefix}{counter:08d}-{pos}"

    # ------------------------------------------------------------------
    # Entries and senses
    # ------------------------------------------------------------------

    @_modifies_db
    def create_entry(
        self,
        lexicon_id: str,
        lemma: str,
        pos: str,
        *,
        id: str | None = None,
    ) -> EntryModel:
        if pos not in _VALID_POS:
            raise ValidationError(f"Invalid POS: {pos!r}")
        if not lemma.strip():
            raise ValidationError("Lemma must not be empty")

        lex_rowid = _db.get_lexicon_rowid(self._conn, lexicon_id)
        if lex_rowid is None:
            raise EntityNotFoundError(f"Lexicon not found: {lexicon_id!r}")

        if id is None:
            id = self._generate_entry_id(lexicon_id, lemma, pos)
        elif _db.get_entry_rowid(self._conn, id) is not None:
            raise DuplicateEntityError(f"Entry already exists: {id!r}")

        self._conn.execute(
            "INSERT INTO entries (id, lexicon_rowid, lemma, pos) "
            "VALUES (?, ?, ?, ?)",
            (id, lex_rowid, lemma, pos),
        )
        _hist.record_create(
            self._conn, "entry", id, {"lemma": lemma, "pos": pos},
        )
        return EntryModel(id=id, lexicon_id=lexicon_id, lemma=lemma, pos=pos)

    def find_entry(self, lemma: str, pos: str) -> EntryModel | None:
        row = self._conn.execute(
            "SELECT e.id, e.lemma, e.pos, l.id AS lexicon_id FROM entries e "
            "JOIN lexicons l ON e.lexicon_rowid = l.rowid "
            "WHERE e.lemma = ? AND e.pos = ?",
            (lemma, pos),
        ).fetchone()
        if row is None:
            return None
        return EntryModel(
            id=row["id"], lexicon_id=row["lexicon_id"],
            lemma=row["lemma"], pos=row["pos"],
        )

    def _generate_entry_id(
        self, lexicon_id: str, lemma: str, pos: str
    ) -> str:
        normalized = lemma.lower().replace(" ", "_")
        normalized = re.sub(r"[^\w\-]", "", normalized, flags=re.UNICODE)
        if not normalized:
            normalized = "entry"

        base_id = f"{lexicon_id}-{normalized}-{pos}"
        if _db.get_entry_rowid(self._conn, base_id) is None:
            return base_id

        n = 2
        while True:
            candidate = f"{base_id}-{n}"
            if _db.get_entry_rowid(self._conn, candidate) is None:
                return candidate
            n += 1

    @_modifies_db
    def add_sense(self, entry_id: str, synset_id: str) -> SenseModel:
        entry_row = self._conn.execute(
            "SELECT rowid, lexicon_rowid FROM entries WHERE id = ?", (entry_id,),
        ).fetchone()
        if entry_row is None:
            raise EntityNotFoundError(f"Entry not found: {entry_id!r}")
        synset_row = _db.get_synset_row(self._conn, synset_id)
        if synset_row is None:
            raise EntityNotFoundError(f"Synset not found: {synset_id!r}")

        entry_rowid = entry_row["rowid"]
        synset_rowid = synset_row["rowid"]

        dup = self._conn.execute(
            "SELECT id FROM senses WHERE entry_rowid = ? AND synset_rowid = ?",
            (entry_rowid, synset_rowid),
        ).fetchone()
        if dup is not None:
            raise DuplicateEntityError(
                f"Entry {entry_id} already has a sense for synset {synset_id}"
            )

        entry_rank = (self._conn.execute(
            "SELECT MAX(entry_rank) FROM senses WHERE entry_rowid = ?",
            (entry_rowid,),
        ).fetchone()[0] or 0) + 1
        synset_rank = (self._conn.execute(
            "SELECT MAX(synset_rank) FROM senses WHERE synset_rowid = ?",
            (synset_rowid,),
        ).fetchone()[0] or 0) + 1

        local_part = synset_id.split("-", 1)[-1]
        id = f"{entry_id}-{local_part}-{entry_rank:02d}"
        self._conn.execute(
            "INSERT INTO senses "
            "(id, lexicon_rowid, entry_rowid, entry_rank, synset_rowid, synset_rank) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (id, entry_row["lexicon_rowid"], entry_rowid, entry_rank,
             synset_rowid, synset_rank),
        )
        _hist.record_create(
            self._conn, "sense", id,
            {"entry_id": entry_id, "synset_id": synset_id},
        )
        return SenseModel(
            id=id, entry_id=entry_id, synset_id=synset_id,
            entry_rank=entry_rank, synset_rank=synset_rank,
        )

    @_modifies_db
    def add_word(self, synset_id: str, lemma: str) -> SenseModel:
        """Add a lemma to a synset, creating its entry if needed."""
        synset = self._build_synset_model(synset_id)
        if lemma in synset.members:
            raise DuplicateEntityError(
                f"Synset {synset_id} already contains {lemma!r}"
            )
        entry = self.find_entry(lemma, synset.pos)
        if entry is None:
            entry = self.create_entry(synset.lexicon_id, lemma, synset.pos)
        return self.add_sense(entry.id, synset_id)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    @_modifies_db
    def add_synset_relation(
        self,
        source_id: str,
        relation_type: str,
        target_id: str,
        *,
        auto_inverse: bool = True,
    ) -> None:
        if not is_valid_synset_relation(relation_type):
            raise ValidationError(
                f"Invalid synset relation type: {relation_type!r}"
            )
        if source_id == target_id:
            raise ValidationError(
                f"Self-referential relations are not allowed: {source_id}"
            )

        src_row = _db.get_synset_row(self._conn, source_id)
        if src_row is None:
            raise EntityNotFoundError(f"Synset not found: {source_id!r}")
        tgt_row = _db.get_synset_row(self._conn, target_id)
        if tgt_row is None:
            raise EntityNotFoundError(f"Synset not found: {target_id!r}")

        type_rowid = _db.get_or_create_relation_type(self._conn, relation_type)
        with suppress(sqlite3.IntegrityError):
            self._conn.execute(
                "INSERT INTO synset_relations "
                "(lexicon_rowid, source_rowid, target_rowid, type_rowid) "
                "VALUES (?, ?, ?, ?)",
                (src_row["lexicon_rowid"], src_row["rowid"],
                 tgt_row["rowid"], type_rowid),
            )

        _hist.record_create(
            self._conn, "relation",
            f"{source_id}->{relation_type}->{target_id}",
        )

        if auto_inverse:
            inverse = SYNSET_RELATION_INVERSES.get(relation_type)
            if inverse:
                inv_type_rowid = _db.get_or_create_relation_type(
                    self._conn, inverse
                )
                self._conn.execute(
                    "INSERT OR IGNORE INTO synset_relations "
                    "(lexicon_rowid, source_rowid, target_rowid, type_rowid) "
                    "VALUES (?, ?, ?, ?)",
                    (tgt_row["lexicon_rowid"], tgt_row["rowid"],
                     src_row["rowid"], inv_type_rowid),
                )

    def get_synset_relations(
        self,
        synset_id: str,
        *,
        relation_type: str | None = None,
    ) -> list[RelationModel]:
        row = _db.get_synset_row(self._conn, synset_id)
        if row is None:
            raise EntityNotFoundError(f"Synset not found: {synset_id!r}")

        clauses = ["sr.source_rowid = ?"]
        params: list[Any] = [row["rowid"]]
        if relation_type is not None:
            clauses.append("rt.type = ?")
            params.append(relation_type)

        where = " AND ".join(clauses)
        rels = self._conn.execute(
            f"SELECT src.id as source_id, tgt.id as target_id, "
            f"rt.type as rel_type "
            f"FROM synset_relations sr "
            f"JOIN synsets src ON sr.source_rowid = src.rowid "
            f"JOIN synsets tgt ON sr.target_rowid = tgt.rowid "
            f"JOIN relation_types rt ON sr.type_rowid = rt.rowid "
            f"WHERE {where} ORDER BY sr.rowid",
            params,
        ).fetchall()
        return [
            RelationModel(
                source_id=r["source_id"],
                target_id=r["target_id"],
                relation_type=r["rel_type"],
            )
            for r in rels
        ]

    # ------------------------------------------------------------------
    # Morphological exceptions
    # ------------------------------------------------------------------

    @_modifies_db
    def add_exception(self, pos: str, variant: str, base: str) -> bool:
        """Record an exception pair; returns False if it was already present."""
        if pos not in _VALID_POS:
            raise ValidationError(f"Invalid POS: {pos!r}")
        cur = self._conn.execute(
            "INSERT OR IGNORE INTO exceptions (pos, variant, base) VALUES (?, ?, ?)",
            (pos, variant, base),
        )
        if cur.rowcount:
            _hist.record_create(
                self._conn, "exception", f"{pos}:{variant}", {"base": base},
            )
        return bool(cur.rowcount)

    def get_exceptions(self, pos: str | None = None) -> list[tuple[str, str, str]]:
        sql = "SELECT pos, variant, base FROM exceptions"
        params: tuple = ()
        if pos is not None:
            sql += " WHERE pos = ?"
            params = (pos,)
        rows = self._conn.execute(sql + " ORDER BY variant, base", params)
        return [(r["pos"], r["variant"], r["base"]) for r in rows]

    # ------------------------------------------------------------------
    # Snapshots, history, validation
    # ------------------------------------------------------------------

    def snapshot(self):
        """Load an immutable in-memory read view of the current database."""
        from crown.dictionary import LexicalDatabase
        return LexicalDatabase.load(self._conn)

    def copy_to(self, db_path: str | Path) -> LexiconEditor:
        """Copy the database to ``db_path`` and open an editor on the copy."""
        conn = _db.copy_database(self._conn, db_path)
        return LexiconEditor(db_path, conn=conn)

    def get_history(
        self,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        since: str | None = None,
    ) -> list[EditRecord]:
        return _hist.query_history(
            self._conn,
            entity_type=entity_type,
            entity_id=entity_id,
            since=since,
        )

    def validate(self, *, max_pointers: int | None = None,
                 max_senses: int | None = None) -> list[ValidationResult]:
        from crown.validator import validate_all
        return validate_all(
            self._conn, max_pointers=max_pointers, max_senses=max_senses,
        )

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    @classmethod
    def from_wn(
        cls,
        specifier: str,
        db_path: str | Path = ":memory:",
    ) -> LexiconEditor:
        from crown.importer import import_from_wn

        editor = cls(db_path)
        with editor.batch():
            import_from_wn(editor._conn, specifier)
        return editor

    def import_exceptions(self, directory: str | Path) -> int:
        from crown.importer import import_exception_files

        with self.batch():
            return import_exception_files(self._conn, directory)

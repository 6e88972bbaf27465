"""Database connection, DDL, and low-level CRUD for crown."""

from __future__ import annotations

import json
import shutil
import sqlite3
from pathlib import Path

from crown.exceptions import DatabaseError

SCHEMA_VERSION = "1.0"

# ---------------------------------------------------------------------------
# META type adapter/converter (matches wn's pattern)
# ---------------------------------------------------------------------------

def _adapt_metadata(obj: dict) -> str:
    return json.dumps(obj)


def _convert_metadata(data: bytes) -> dict | None:
    if data is None or data == b"":
        return None
    return json.loads(data)


sqlite3.register_adapter(dict, _adapt_metadata)
sqlite3.register_converter("META", _convert_metadata)


# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Lookup tables
CREATE TABLE IF NOT EXISTS relation_types (
    rowid INTEGER PRIMARY KEY,
    type TEXT NOT NULL,
    UNIQUE (type)
);
CREATE INDEX IF NOT EXISTS relation_type_index ON relation_types (type);

CREATE TABLE IF NOT EXISTS lexfiles (
    rowid INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    UNIQUE (name)
);
CREATE INDEX IF NOT EXISTS lexfile_index ON lexfiles (name);

-- Lexicon tables
CREATE TABLE IF NOT EXISTS lexicons (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    label TEXT NOT NULL,
    language TEXT NOT NULL,
    version TEXT NOT NULL,
    metadata META,
    UNIQUE (id)
);

-- Entry tables
CREATE TABLE IF NOT EXISTS entries (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    lexicon_rowid INTEGER NOT NULL REFERENCES lexicons (rowid) ON DELETE CASCADE,
    lemma TEXT NOT NULL,
    pos TEXT NOT NULL,
    metadata META,
    UNIQUE (id, lexicon_rowid)
);
CREATE INDEX IF NOT EXISTS entry_id_index ON entries (id);
CREATE INDEX IF NOT EXISTS entry_lemma_index ON entries (lemma, pos);

-- Synset tables
CREATE TABLE IF NOT EXISTS synsets (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    lexicon_rowid INTEGER NOT NULL REFERENCES lexicons (rowid) ON DELETE CASCADE,
    pos TEXT,
    lexfile_rowid INTEGER REFERENCES lexfiles (rowid),
    metadata META,
    UNIQUE (id, lexicon_rowid)
);
CREATE INDEX IF NOT EXISTS synset_id_index ON synsets (id);

CREATE TABLE IF NOT EXISTS synset_relations (
    rowid INTEGER PRIMARY KEY,
    lexicon_rowid INTEGER NOT NULL REFERENCES lexicons (rowid) ON DELETE CASCADE,
    source_rowid INTEGER NOT NULL REFERENCES synsets(rowid) ON DELETE CASCADE,
    target_rowid INTEGER NOT NULL REFERENCES synsets(rowid) ON DELETE CASCADE,
    type_rowid INTEGER NOT NULL REFERENCES relation_types(rowid),
    metadata META,
    UNIQUE (source_rowid, target_rowid, type_rowid)
);
CREATE INDEX IF NOT EXISTS synset_relation_source_index ON synset_relations (source_rowid);
CREATE INDEX IF NOT EXISTS synset_relation_target_index ON synset_relations (target_rowid);

CREATE TABLE IF NOT EXISTS definitions (
    rowid INTEGER PRIMARY KEY,
    lexicon_rowid INTEGER NOT NULL REFERENCES lexicons(rowid) ON DELETE CASCADE,
    synset_rowid INTEGER NOT NULL REFERENCES synsets(rowid) ON DELETE CASCADE,
    definition TEXT,
    metadata META
);
CREATE INDEX IF NOT EXISTS definition_rowid_index ON definitions (synset_rowid);

-- Sense tables
CREATE TABLE IF NOT EXISTS senses (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    lexicon_rowid INTEGER NOT NULL REFERENCES lexicons(rowid) ON DELETE CASCADE,
    entry_rowid INTEGER NOT NULL REFERENCES entries(rowid) ON DELETE CASCADE,
    entry_rank INTEGER DEFAULT 1,
    synset_rowid INTEGER NOT NULL REFERENCES synsets(rowid) ON DELETE CASCADE,
    synset_rank INTEGER DEFAULT 1,
    metadata META,
    UNIQUE (entry_rowid, synset_rowid)
);
CREATE INDEX IF NOT EXISTS sense_id_index ON senses(id);
CREATE INDEX IF NOT EXISTS sense_entry_rowid_index ON senses (entry_rowid);
CREATE INDEX IF NOT EXISTS sense_synset_rowid_index ON senses (synset_rowid);

-- Morphological exceptions (irregular inflections)
CREATE TABLE IF NOT EXISTS exceptions (
    rowid INTEGER PRIMARY KEY,
    pos TEXT NOT NULL,
    variant TEXT NOT NULL,
    base TEXT NOT NULL,
    UNIQUE (pos, variant, base)
);
CREATE INDEX IF NOT EXISTS exception_variant_index ON exceptions (variant, pos);

-- Edit history
CREATE TABLE IF NOT EXISTS edit_history (
    rowid INTEGER PRIMARY KEY,
    entity_type TEXT NOT NULL CHECK( entity_type IN ('lexicon','synset','entry','sense','relation','exception') ),
    entity_id TEXT NOT NULL,
    operation TEXT NOT NULL CHECK( operation IN ('CREATE', 'UPDATE', 'DELETE') ),
    new_value TEXT,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
CREATE INDEX IF NOT EXISTS edit_history_entity_index ON edit_history (entity_type, entity_id);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with editor PRAGMA settings."""
    db_path_str = str(db_path)
    conn = sqlite3.connect(
        db_path_str,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        check_same_thread=False,
    )
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def copy_database(
    source: sqlite3.Connection, target_path: str | Path = ":memory:",
) -> sqlite3.Connection:
    """Copy a whole database into a new connection using sqlite's backup API."""
    target_path = str(target_path)
    if target_path != ":memory:":
        path = Path(target_path)
        if path.exists():
            path.unlink()
        for suffix in ("-wal", "-shm"):
            side = path.with_name(path.name + suffix)
            if side.exists():
                side.unlink()
    conn = connect(target_path)
    source.commit()
    source.backup(conn)
    return conn


def copy_database_file(source: str | Path, target: str | Path) -> None:
    """Copy a closed database file on disk."""
    shutil.copyfile(str(source), str(target))


# ---------------------------------------------------------------------------
# Lookup table helpers
# ---------------------------------------------------------------------------

def get_or_create_relation_type(conn: sqlite3.Connection, rel_type: str) -> int:
    """Get the rowid for a relation type, inserting if needed."""
    conn.execute(
        "INSERT OR IGNORE INTO relation_types (type) VALUES (?)",
        (rel_type,),
    )
    row = conn.execute(
        "SELECT rowid FROM relation_types WHERE type = ?",
        (rel_type,),
    ).fetchone()
    return row[0]


def get_or_create_lexfile(conn: sqlite3.Connection, name: str) -> int:
    """Get the rowid for a lexfile, inserting if needed."""
    conn.execute(
        "INSERT OR IGNORE INTO lexfiles (name) VALUES (?)",
        (name,),
    )
    row = conn.execute(
        "SELECT rowid FROM lexfiles WHERE name = ?",
        (name,),
    ).fetchone()
    return row[0]


def get_meta(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


def set_meta(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)", (key, value),
    )


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------

def get_lexicon_rowid(conn: sqlite3.Connection, lexicon_id: str) -> int | None:
    """Get the rowid for a lexicon by ID, or None."""
    row = conn.execute(
        "SELECT rowid FROM lexicons WHERE id = ?",
        (lexicon_id,),
    ).fetchone()
    return row[0] if row else None


def get_synset_rowid(conn: sqlite3.Connection, synset_id: str) -> int | None:
    """Get the rowid for a synset by its ID, or None."""
    row = conn.execute(
        "SELECT rowid FROM synsets WHERE id = ?",
        (synset_id,),
    ).fetchone()
    return row[0] if row else None


def get_synset_row(conn: sqlite3.Connection, synset_id: str) -> sqlite3.Row | None:
    """Get a full synset row by ID."""
    return conn.execute(
        "SELECT rowid, * FROM synsets WHERE id = ?",
        (synset_id,),
    ).fetchone()


def get_entry_rowid(conn: sqlite3.Connection, entry_id: str) -> int | None:
    """Get the rowid for an entry by its ID, or None."""
    row = conn.execute(
        "SELECT rowid FROM entries WHERE id = ?",
        (entry_id,),
    ).fetchone()
    return row[0] if row else None


def find_entry_rowid(
    conn: sqlite3.Connection, lemma: str, pos: str,
) -> int | None:
    """Find an entry by lemma and part of speech."""
    row = conn.execute(
        "SELECT rowid FROM entries WHERE lemma = ? AND pos = ?",
        (lemma, pos),
    ).fetchone()
    return row[0] if row else None

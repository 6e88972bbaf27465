"""Import pipeline for crown: seed a database from wn lexicons and .exc files."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any

from crown import db as _db
from crown import history as _hist
from crown.exceptions import (
    DataImportError,
    DuplicateEntityError,
    EntityNotFoundError,
)
from crown.relations import SYNSET_RELATIONS

logger = logging.getLogger(__name__)

EXCEPTION_FILES: dict[str, str] = {
    "noun.exc": "n",
    "verb.exc": "v",
    "adj.exc": "a",
    "adv.exc": "r",
}


def import_from_wn(
    conn: sqlite3.Connection,
    specifier: str,
    *,
    record_history: bool = False,
) -> None:
    """Import a lexicon installed in the wn package's data store."""
    import wn

    try:
        wordnet = wn.Wordnet(specifier)
    except wn.Error as e:
        raise EntityNotFoundError(f"Lexicon not found in wn: {specifier!r}") from e

    lexicons = wordnet.lexicons()
    if not lexicons:
        raise EntityNotFoundError(f"Lexicon not found in wn: {specifier!r}")
    lexicon = lexicons[0]
    data: dict[str, Any] = {
        "id": lexicon.id,
        "label": lexicon.label,
        "language": lexicon.language,
        "version": lexicon.version,
        "synsets": [],
        "entries": [],
    }
    for synset in wordnet.synsets():
        data["synsets"].append({
            "id": synset.id,
            "pos": synset.pos,
            "definition": synset.definition() or "",
            "lexfile": synset.lexfile(),
            "relations": [
                (rel_type, target.id)
                for rel_type, targets in synset.relations().items()
                for target in targets
            ],
        })
    for word in wordnet.words():
        senses = []
        for sense in word.senses():
            senses.append({
                "id": sense.id,
                "synset": sense.synset().id,
                "relations": [
                    (rel_type, target.synset().id)
                    for rel_type, targets in sense.relations().items()
                    for target in targets
                ],
            })
        data["entries"].append({
            "id": word.id,
            "lemma": word.lemma(),
            "pos": word.pos,
            "senses": senses,
        })

    logger.info(
        "Importing %s: %d synsets, %d entries",
        specifier, len(data["synsets"]), len(data["entries"]),
    )
    _LexiconImporter(conn, data, record_history=record_history).import_all()


def import_from_lmf(
    conn: sqlite3.Connection,
    source: str | Path,
    *,
    record_history: bool = False,
) -> None:
    """Import every lexicon of a WN-LMF XML file."""
    import wn.lmf

    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"File not found: {source}")

    try:
        resource = wn.lmf.load(str(source))
    except Exception as e:
        raise DataImportError(f"Failed to parse XML: {e}") from e

    for lex in resource["lexicons"]:
        data = _lmf_lexicon_data(lex)
        _LexiconImporter(conn, data, record_history=record_history).import_all()


def _lmf_lexicon_data(lex: dict) -> dict[str, Any]:
    synsets = []
    for syn in lex.get("synsets", []):
        definitions = syn.get("definitions", [])
        synsets.append({
            "id": syn["id"],
            "pos": syn.get("partOfSpeech", ""),
            "definition": definitions[0].get("text", "") if definitions else "",
            "lexfile": syn.get("lexfile") or None,
            "relations": [
                (rel["relType"], rel["target"]) for rel in syn.get("relations", [])
            ],
        })
    entries = []
    for entry in lex.get("entries", []):
        lemma = entry["lemma"]
        entries.append({
            "id": entry["id"],
            "lemma": lemma["writtenForm"],
            "pos": lemma["partOfSpeech"],
            "senses": [
                {
                    "id": sense["id"],
                    "synset": sense["synset"],
                    "relations": [
                        (rel["relType"], rel["target"])
                        for rel in sense.get("relations", [])
                    ],
                }
                for sense in entry.get("senses", [])
            ],
        })
    return {
        "id": lex["id"],
        "label": lex.get("label", lex["id"]),
        "language": lex.get("language", "en"),
        "version": lex.get("version", "1.0"),
        "synsets": synsets,
        "entries": entries,
    }


class _LexiconImporter:
    """Helper class to import one lexicon's worth of normalised data."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        lex: dict[str, Any],
        *,
        record_history: bool = False,
    ) -> None:
        self.conn = conn
        self.lex = lex
        self.record_history = record_history
        self.lex_rowid: int = -1
        self.synset_id_to_rowid: dict[str, int] = {}
        self.sense_id_to_synset: dict[str, str] = {}
        self.rel_type_map: dict[str, int] = {}

    def _create_lexicon_record(self) -> None:
        lex_id = self.lex["id"]
        if _db.get_lexicon_rowid(self.conn, lex_id) is not None:
            raise DuplicateEntityError(f"Lexicon {lex_id} already exists")
        cur = self.conn.execute(
            "INSERT INTO lexicons (id, label, language, version) "
            "VALUES (?, ?, ?, ?)",
            (lex_id, self.lex["label"], self.lex["language"], self.lex["version"]),
        )
        self.lex_rowid = cur.lastrowid
        if self.record_history:
            _hist.record_create(self.conn, "lexicon", lex_id)

    def _get_rel_type_rowid(self, rel_type: str) -> int:
        if rel_type not in self.rel_type_map:
            self.rel_type_map[rel_type] = _db.get_or_create_relation_type(
                self.conn, rel_type
            )
        return self.rel_type_map[rel_type]

    def _import_synsets(self) -> None:
        for syn in self.lex["synsets"]:
            lexfile_rowid = None
            if syn["lexfile"]:
                lexfile_rowid = _db.get_or_create_lexfile(self.conn, syn["lexfile"])
            cur = self.conn.execute(
                "INSERT INTO synsets (id, lexicon_rowid, pos, lexfile_rowid) "
                "VALUES (?, ?, ?, ?)",
                (syn["id"], self.lex_rowid, syn["pos"], lexfile_rowid),
            )
            self.synset_id_to_rowid[syn["id"]] = cur.lastrowid
            self.conn.execute(
                "INSERT INTO definitions (lexicon_rowid, synset_rowid, definition) "
                "VALUES (?, ?, ?)",
                (self.lex_rowid, cur.lastrowid, syn["definition"]),
            )
            if self.record_history:
                _hist.record_create(self.conn, "synset", syn["id"])

    def _import_entries(self) -> None:
        for entry in self.lex["entries"]:
            cur = self.conn.execute(
                "INSERT OR IGNORE INTO entries (id, lexicon_rowid, lemma, pos) "
                "VALUES (?, ?, ?, ?)",
                (entry["id"], self.lex_rowid, entry["lemma"], entry["pos"]),
            )
            if not cur.rowcount:
                logger.debug("Skipping duplicate entry %s", entry["id"])
                continue
            entry_rowid = cur.lastrowid
            for rank, sense in enumerate(entry["senses"], start=1):
                synset_rowid = self.synset_id_to_rowid.get(sense["synset"])
                if synset_rowid is None:
                    logger.debug(
                        "Sense %s points at unknown synset %s",
                        sense["id"], sense["synset"],
                    )
                    continue
                synset_rank = (self.conn.execute(
                    "SELECT MAX(synset_rank) FROM senses WHERE synset_rowid = ?",
                    (synset_rowid,),
                ).fetchone()[0] or 0) + 1
                self.conn.execute(
                    "INSERT OR IGNORE INTO senses "
                    "(id, lexicon_rowid, entry_rowid, entry_rank, "
                    "synset_rowid, synset_rank) VALUES (?, ?, ?, ?, ?, ?)",
                    (sense["id"], self.lex_rowid, entry_rowid, rank,
                     synset_rowid, synset_rank),
                )
                self.sense_id_to_synset[sense["id"]] = sense["synset"]

    def _insert_relation(self, source_id: str, rel_type: str, target_id: str) -> None:
        if rel_type not in SYNSET_RELATIONS or source_id == target_id:
            return
        src_rowid = self.synset_id_to_rowid.get(source_id)
        tgt_rowid = self.synset_id_to_rowid.get(target_id)
        if src_rowid is None or tgt_rowid is None:
            return
        self.conn.execute(
            "INSERT OR IGNORE INTO synset_relations "
            "(lexicon_rowid, source_rowid, target_rowid, type_rowid) "
            "VALUES (?, ?, ?, ?)",
            (self.lex_rowid, src_rowid, tgt_rowid,
             self._get_rel_type_rowid(rel_type)),
        )

    def _import_synset_relations(self) -> None:
        for syn in self.lex["synsets"]:
            for rel_type, target_id in syn["relations"]:
                self._insert_relation(syn["id"], rel_type, target_id)

    def _import_sense_relations(self) -> None:
        """Lift sense relations (antonym, pertainym, ...) to synset level."""
        for entry in self.lex["entries"]:
            for sense in entry["senses"]:
                for rel_type, target in sense["relations"]:
                    target_synset = self.sense_id_to_synset.get(target, target)
                    self._insert_relation(sense["synset"], rel_type, target_synset)

    def import_all(self) -> None:
        """Execute the full import process."""
        self._create_lexicon_record()
        self._import_synsets()
        self._import_entries()
        self._import_synset_relations()
        self._import_sense_relations()


def import_exception_files(conn: sqlite3.Connection, directory: str | Path) -> int:
    """Load Princeton-style ``*.exc`` files found in ``directory``.

    Each line holds an inflected form followed by one or more base forms.
    Returns the number of new pairs stored.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Directory not found: {directory}")

    added = 0
    for filename, pos in EXCEPTION_FILES.items():
        path = directory / filename
        if not path.exists():
            continue
        with open(path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                parts = line.split()
                if not parts:
                    continue
                if len(parts) < 2:
                    raise DataImportError(
                        f"{path}:{line_no}: expected 'variant base', got {line.strip()!r}"
                    )
                variant = parts[0].replace("_", " ")
                for base in parts[1:]:
                    cur = conn.execute(
                        "INSERT OR IGNORE INTO exceptions (pos, variant, base) "
                        "VALUES (?, ?, ?)",
                        (pos, variant, base.replace("_", " ")),
                    )
                    added += cur.rowcount
        logger.info("Loaded exceptions from %s", path)
    return added

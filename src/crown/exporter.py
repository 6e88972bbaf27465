"""Export a crown database as lexicographer and exception files."""

from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from pathlib import Path

from crown.dictionary import LexicalDatabase
from crown.exceptions import ExportError
from crown.lexfile import (
    DEFAULT_VERB_FRAMES,
    LexIdAllocator,
    format_record,
    insert_lemmas,
    lexfile_form,
    lexfile_name,
)
from crown.models import PartOfSpeech, Synset
from crown.relations import RELATION_SYMBOLS

logger = logging.getLogger(__name__)

EXCEPTION_FILENAMES: dict[str, str] = {
    "n": "noun.exc",
    "v": "verb.exc",
    "a": "adj.exc",
    "r": "adv.exc",
}

# The standard lexicographer files, in lexnames order.
STANDARD_LEXNAMES: tuple[str, ...] = (
    "adj.all", "adj.pert", "adv.all", "noun.Tops", "noun.act", "noun.animal",
    "noun.artifact", "noun.attribute", "noun.body", "noun.cognition",
    "noun.communication", "noun.event", "noun.feeling", "noun.food",
    "noun.group", "noun.location", "noun.motive", "noun.object", "noun.person",
    "noun.phenomenon", "noun.plant", "noun.possession", "noun.process",
    "noun.quantity", "noun.relation", "noun.shape", "noun.state",
    "noun.substance", "noun.time", "verb.body", "verb.change",
    "verb.cognition", "verb.communication", "verb.competition",
    "verb.consumption", "verb.contact", "verb.creation", "verb.emotion",
    "verb.motion", "verb.perception", "verb.possession", "verb.social",
    "verb.stative", "verb.weather", "adj.ppl",
)

_LEXNAME_POS = {"noun": 1, "verb": 2, "adj": 3, "adv": 4}


def export_lexfiles(conn: sqlite3.Connection, directory: str | Path) -> list[Path]:
    """Write one lexicographer file per lexfile name; returns the paths."""
    db = LexicalDatabase.load(conn)
    directory = _ensure_dir(directory)

    by_file: dict[str, list[Synset]] = defaultdict(list)
    for synset in db.synsets():
        by_file[lexfile_name(synset)].append(synset)

    lemma_ids: dict[str, list[str]] = {}
    for lexfile, synsets in by_file.items():
        allocator = LexIdAllocator(limit=None)
        for synset in synsets:
            lemma_ids[synset.id] = [allocator.allocate(m) for m in synset.lemmas]

    def reference(source_file: str, target: Synset) -> str | None:
        ids = lemma_ids.get(target.id)
        if not ids:
            return None
        target_file = lexfile_name(target)
        if target_file == source_file:
            return ids[0]
        return f"{target_file}:{ids[0]}"

    paths = []
    for lexfile, synsets in sorted(by_file.items()):
        lines = []
        for synset in synsets:
            ids = lemma_ids[synset.id]
            if not ids:
                logger.warning("Skipping synset %s with no lemmas", synset.id)
                continue
            pointers = []
            for relation, targets in synset.relations.items():
                symbol = RELATION_SYMBOLS.get(relation)
                if symbol is None:
                    continue
                for target_id in targets:
                    ref = reference(lexfile, db.synset(target_id))
                    if ref is not None:
                        pointers.append((ref, symbol))
            frames = DEFAULT_VERB_FRAMES if synset.pos is PartOfSpeech.VERB else None
            record = format_record(ids[:1], pointers, synset.gloss, frames=frames)
            lines.append(insert_lemmas(record, ids[1:]))
        path = directory / lexfile
        _write_lines(path, lines)
        paths.append(path)
    logger.info("Wrote %d lexicographer files to %s", len(paths), directory)
    return paths


def export_exceptions(conn: sqlite3.Connection, directory: str | Path) -> list[Path]:
    """Write ``noun.exc``, ``verb.exc``, ``adj.exc`` and ``adv.exc``."""
    directory = _ensure_dir(directory)
    lines: dict[str, set[str]] = {pos: set() for pos in EXCEPTION_FILENAMES}
    for row in conn.execute("SELECT pos, variant, base FROM exceptions"):
        pos = PartOfSpeech.parse(row["pos"]).base().value
        lines[pos].add(f"{lexfile_form(row['variant'])} {lexfile_form(row['base'])}")
    paths = []
    for pos, filename in EXCEPTION_FILENAMES.items():
        path = directory / filename
        _write_lines(path, sorted(lines[pos]))
        paths.append(path)
    return paths


def export_lexnames(conn: sqlite3.Connection, directory: str | Path) -> Path:
    """Write the ``lexnames`` index of every lexicographer file in use."""
    directory = _ensure_dir(directory)
    names = {r["name"] for r in conn.execute("SELECT name FROM lexfiles")}
    for row in conn.execute(
        "SELECT DISTINCT pos FROM synsets WHERE lexfile_rowid IS NULL"
    ):
        names.add(f"{PartOfSpeech.parse(row['pos']).base().lexname}.unassigned")
    ordered = [n for n in STANDARD_LEXNAMES if n in names]
    ordered += sorted(names - set(STANDARD_LEXNAMES))
    lines = []
    for index, name in enumerate(ordered):
        pos_number = _LEXNAME_POS.get(name.split(".", 1)[0], 0)
        lines.append(f"{index:02d}\t{name}\t{pos_number}")
    path = directory / "lexnames"
    _write_lines(path, lines)
    return path


def _ensure_dir(directory: str | Path) -> Path:
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportError(f"Cannot create directory {directory}: {e}") from e
    return directory


def _write_lines(path: Path, lines: list[str]) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line)
                f.write("\n")
    except OSError as e:
        raise ExportError(f"Cannot write {path}: {e}") from e

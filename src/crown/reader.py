"""Readers for candidate entries.

Two formats are understood:

* the preprocessed JSON-lines cache, one sense per line::

    {"id": "cat:12", "lemma": "cat", "pos": "NOUN",
     "glosses": ["{{context|zoology}} A small [[feline]]."],
     "relations": [{"targetLemma": "feline", "targetSense": "", "type": "HYPERNYM"}]}

* a wiktextract dump (JSON lines, one word per line), whose senses are
  converted into the same model with their context tags and ``form_of`` /
  ``alt_of`` links rendered back into leading templates.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from crown.exceptions import DataImportError, ValidationError
from crown.models import EntryRelationType, LexicalEntry, PartOfSpeech, Relation
from crown.wiktionary import clean_gloss

logger = logging.getLogger(__name__)

# wiktextract part-of-speech names we keep.
WIKTEXTRACT_POS: dict[str, PartOfSpeech] = {
    "noun": PartOfSpeech.NOUN,
    "name": PartOfSpeech.NOUN,
    "verb": PartOfSpeech.VERB,
    "adj": PartOfSpeech.ADJECTIVE,
    "adv": PartOfSpeech.ADVERB,
}

# wiktextract relation lists, at word or sense level.
WIKTEXTRACT_RELATIONS: dict[str, EntryRelationType] = {
    "synonyms": EntryRelationType.SYNONYM,
    "antonyms": EntryRelationType.ANTONYM,
    "hypernyms": EntryRelationType.HYPERNYM,
    "hyponyms": EntryRelationType.HYPONYM,
    "holonyms": EntryRelationType.HOLONYM,
    "meronyms": EntryRelationType.MERONYM,
    "coordinate_terms": EntryRelationType.COORDINATE_TERM,
    "troponyms": EntryRelationType.TROPONYM,
    "derived": EntryRelationType.DERIVED_TERM,
    "related": EntryRelationType.ETYMOLOGICALLY_RELATED_TERM,
}

_POS_NAMES = {
    PartOfSpeech.NOUN: "NOUN",
    PartOfSpeech.VERB: "VERB",
    PartOfSpeech.ADJECTIVE: "ADJECTIVE",
    PartOfSpeech.ADJECTIVE_SATELLITE: "ADJECTIVE",
    PartOfSpeech.ADVERB: "ADVERB",
}


# ---------------------------------------------------------------------------
# Preprocessed cache
# ---------------------------------------------------------------------------

def load_preprocessed(path: str | Path) -> list[LexicalEntry]:
    """Read the preprocessed JSON-lines cache.

    Raises:
        FileNotFoundError: If the file does not exist.
        DataImportError: If a line is not a valid entry object.
    """
    entries = []
    seen: set[tuple[str, str]] = set()
    duplicates = 0
    for line_num, record in _json_lines(path):
        try:
            entry = _entry_from_record(record)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise DataImportError(f"{path}:{line_num}: invalid entry: {e}") from e
        if entry is None:
            continue
        key = (entry.lemma, entry.id)
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        entries.append(entry)
    logger.info("Read %d entries from %s", len(entries), path)
    logger.debug("Excluded %d duplicate entries", duplicates)
    return entries


def save_preprocessed(entries: Iterable[LexicalEntry], path: str | Path) -> int:
    """Write entries in the preprocessed cache format; returns the count."""
    count = 0
    try:
        with open(path, "w", encoding="utf-8") as f:
            for entry in entries:
                record = {
                    "id": entry.id,
                    "lemma": entry.lemma,
                    "pos": _POS_NAMES[entry.pos],
                    "glosses": [raw for raw, _ in entry.raw_glosses],
                    "relations": [
                        {
                            "targetLemma": r.target_lemma,
                            "targetSense": r.target_sense or "",
                            "type": r.type.value,
                        }
                        for r in entry.relations
                    ],
                }
                f.write(json.dumps(record, ensure_ascii=False))
                f.write("\n")
                count += 1
    except OSError as e:
        raise DataImportError(f"Cannot write {path}: {e}") from e
    logger.info("Saved %d preprocessed entries to %s", count, path)
    return count


def _entry_from_record(record: dict[str, Any]) -> LexicalEntry | None:
    raw_glosses = record["glosses"]
    if not isinstance(raw_glosses, list):
        raise TypeError("'glosses' must be a list")
    relations = tuple(
        Relation(
            target_lemma=rel["targetLemma"],
            type=EntryRelationType(rel["type"]),
            target_sense=rel.get("targetSense") or None,
        )
        for rel in record.get("relations") or ()
    )
    return make_entry(
        record["id"], record["lemma"], PartOfSpeech.parse(record["pos"]),
        raw_glosses, relations,
    )


def make_entry(
    entry_id: str,
    lemma: str,
    pos: PartOfSpeech,
    raw_glosses: Iterable[str],
    relations: tuple[Relation, ...] = (),
) -> LexicalEntry | None:
    """Build an entry from raw glosses, or ``None`` if all are blank.

    A gloss made only of templates (``{{alternative spelling of|color}}``)
    cleans to nothing but is kept as a raw gloss.
    """
    pairs: dict[str, str] = {}
    cleaned: list[str] = []
    for raw in raw_glosses:
        if not isinstance(raw, str):
            raise TypeError(f"gloss must be a string, not {type(raw).__name__}")
        if not raw.strip():
            continue
        text = clean_gloss(raw)
        pairs.setdefault(raw, text)
        if text and text not in cleaned:
            cleaned.append(text)
    if not pairs:
        return None
    return LexicalEntry(
        id=entry_id,
        lemma=lemma,
        pos=pos,
        gloss=" ".join(cleaned),
        glosses=tuple(cleaned),
        raw_glosses=tuple(pairs.items()),
        relations=relations,
    )


# ---------------------------------------------------------------------------
# wiktextract dumps
# ---------------------------------------------------------------------------

def load_wiktextract(path: str | Path, lang_code: str = "en") -> list[LexicalEntry]:
    """Read English senses from a wiktextract JSON-lines dump.

    Raises:
        FileNotFoundError: If the file does not exist.
        DataImportError: If a line is not valid JSON or not a word object.
    """
    entries = []
    seen: set[str] = set()
    skipped = 0
    for line_num, word in _json_lines(path):
        if word.get("lang_code", lang_code) != lang_code:
            continue
        pos = WIKTEXTRACT_POS.get(word.get("pos", ""))
        lemma = word.get("word")
        if pos is None or not isinstance(lemma, str):
            skipped += 1
            continue
        try:
            converted = list(_convert_word(word, lemma, pos))
        except (KeyError, TypeError, AttributeError) as e:
            raise DataImportError(f"{path}:{line_num}: invalid word: {e}") from e
        for entry in converted:
            if entry.id in seen:
                continue
            seen.add(entry.id)
            entries.append(entry)
    logger.info(
        "Read %d entries from %s (%d words skipped)", len(entries), path, skipped,
    )
    return entries


def _convert_word(
    word: dict[str, Any], lemma: str, pos: PartOfSpeech,
) -> Iterator[LexicalEntry]:
    word_relations = _relations(word)
    for index, sense in enumerate(word.get("senses") or ()):
        glosses = sense.get("glosses") or []
        if not glosses:
            continue
        # Sub-senses repeat their parent's gloss first.
        raw = _templates(sense) + glosses[-1]
        sense_id = sense.get("id") or f"{pos.value}{index + 1}"
        entry = make_entry(
            f"{lemma}:{sense_id}", lemma, pos, [raw],
            _relations(sense) + word_relations,
        )
        if entry is not None:
            yield entry


def _templates(sense: dict[str, Any]) -> str:
    """Leading templates standing in for a sense's tags and links."""
    parts = []
    tags = [t for t in sense.get("tags") or () if isinstance(t, str)]
    if tags:
        parts.append("{{context|" + "|".join(tags) + "}}")
    for link in sense.get("alt_of") or ():
        parts.append("{{alternative spelling of|" + link["word"] + "}}")
    for link in sense.get("form_of") or ():
        parts.append("{{form of|form|" + link["word"] + "}}")
    return " ".join(parts) + " " if parts else ""


def _relations(obj: dict[str, Any]) -> tuple[Relation, ...]:
    relations = []
    for key, rel_type in WIKTEXTRACT_RELATIONS.items():
        for item in obj.get(key) or ():
            target = item.get("word")
            if target:
                relations.append(Relation(target, rel_type, item.get("sense")))
    return tuple(relations)


def _json_lines(path: str | Path) -> Iterator[tuple[int, dict[str, Any]]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise DataImportError(f"{path}:{line_num}: invalid JSON: {e}") from e
            if not isinstance(record, dict):
                raise DataImportError(f"{path}:{line_num}: expected a JSON object")
            yield line_num, record

"""Lexicographer ids and record formatting for lexicographer files."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Sequence

from crown.models import PartOfSpeech, Synset

ENDS_WITH_NUMBER = re.compile(r".*[0-9]+$")

# Verb frames every new verb synset is given.
DEFAULT_VERB_FRAMES = (1, 2)


def lexfile_form(lemma: str) -> str:
    """Lemma as written in a lexicographer file."""
    return lemma.strip().replace(" ", "_")


def lexfile_name(synset: Synset) -> str:
    """Lexicographer file a synset is written to."""
    return synset.lexfile or f"{synset.pos.base().lexname}.unassigned"


def crown_lexfile(pos: PartOfSpeech, iteration: int) -> str:
    """Lexicographer file for the synsets created in one build pass."""
    return f"{pos.base().lexname}.{iteration}.crown"


class LexIdAllocator:
    """Hands out unique lemma ids within one lexicographer file.

    Lemmas are counted case-insensitively. The first instance of a lemma
    keeps the bare form; later ones get a numeric lex id, separated by a
    ``"`` when the lemma itself ends in a digit. Once ``limit`` instances of
    a lemma exist, :meth:`allocate` returns ``None``; a ``limit`` of
    ``None`` never runs out.
    """

    def __init__(
        self, existing: Iterable[str] = (), limit: int | None = 15,
    ) -> None:
        self.limit = limit
        self._counts: Counter[str] = Counter()
        self._used: set[str] = set()
        for lemma in existing:
            self.allocate(lemma)

    def allocate(self, lemma: str) -> str | None:
        form = lexfile_form(lemma)
        key = form.lower()
        suffix = '"' if ENDS_WITH_NUMBER.match(form) else ""
        while True:
            count = self._counts[key]
            self._counts[key] += 1
            if self.limit is not None and count >= self.limit:
                return None
            lemma_id = form if count == 0 else f"{form}{suffix}{count}"
            if lemma_id not in self._used:
                self._used.add(lemma_id)
                return lemma_id

    def count(self, lemma: str) -> int:
        return self._counts[lexfile_form(lemma).lower()]


def balance_parens(gloss: str) -> str:
    """Pad a gloss with parentheses until they balance."""
    opened = gloss.count("(")
    closed = gloss.count(")")
    if opened < closed:
        gloss = "(" * (closed - opened) + gloss
    elif opened > closed:
        gloss += ")" * (opened - closed)
    return gloss


def format_record(
    lemma_ids: Sequence[str],
    pointers: Iterable[tuple[str, str]],
    gloss: str,
    *,
    frames: Sequence[int] | None = None,
) -> str:
    """Render ``{ lemma1, lemma2, target,symbol ... (gloss) }``.

    ``pointers`` pairs a target lemma id with a pointer symbol.
    """
    parts = ["{ "]
    parts.extend(f"{lemma_id}, " for lemma_id in lemma_ids)
    parts.extend(f"{target},{symbol} " for target, symbol in pointers)
    if frames:
        parts.append(" frames: " + ", ".join(str(f) for f in frames))
    parts.append(f" ({balance_parens(gloss)}) }}")
    return "".join(parts)


def record_lemmas(record: str) -> set[str]:
    """Lower-cased lemmas (lex ids stripped) written before the gloss."""
    head = record.split("(", 1)[0]
    lemmas = set()
    for token in head.split():
        if not token.endswith(","):
            continue
        token = token[:-1].lstrip("[{")
        if "," in token:
            continue
        token = token.rstrip("0123456789").rstrip('"')
        if token:
            lemmas.add(token.lower())
    return lemmas


def insert_lemmas(
    record: str, lemma_ids: Iterable[str], existing: Iterable[str] = (),
) -> str:
    """Splice lemma ids in after the first word of a record.

    Ids whose lemma is already in ``existing`` or already written in the
    record are skipped. A first word written with its own pointers
    (``[ word, target,@ ]``) is kept whole.
    """
    present = {lexfile_form(e).lower() for e in existing} | record_lemmas(record)
    added = []
    for lemma_id in lemma_ids:
        lemma = lemma_id.rstrip("0123456789").rstrip('"').lower()
        if lemma in present:
            continue
        present.add(lemma)
        added.append(f"{lemma_id}, ")
    if not added:
        return record

    bracket = record.find("[", 1)
    first = record.find(", ")
    if first < 0:
        raise ValueError(f"Malformed record: {record!r}")
    if bracket < 0 or first < bracket:
        split_at = first + 2
    else:
        end = record.find("]", bracket)
        if end < 0:
            raise ValueError(f"Unclosed bracket in record: {record!r}")
        if not record.startswith("] ", end):
            record = record[:end + 1] + " " + record[end + 1:]
        split_at = end + 2
    return record[:split_at] + "".join(added) + record[split_at:]

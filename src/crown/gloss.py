"""Candidate head-noun extraction from glosses."""

from __future__ import annotations

import logging
import re
import string

from crown.dictionary import LexicalDatabase
from crown.models import PartOfSpeech
from crown.wiktionary import TRAILING_PUNCT

logger = logging.getLogger(__name__)

_CLAUSE_END = frozenset(".,;:")


def extract_noun_candidates(
    db: LexicalDatabase, gloss: str, term: str, start: int = 0,
) -> list[str]:
    """Noun lemmas a matched head term may stand for, in preference order.

    ``term`` is extended to the end of its word in ``gloss`` (``[[dog]]s``
    becomes ``dogs``) and up to two following words are considered as
    multi-word continuations, stopping at clause punctuation.
    """
    location = gloss.find(term, start)
    if location < 0 and start:
        location = gloss.find(term)
    if location < 0:
        logger.debug("Could not find %r in %r", term, gloss)
        return [term]

    end = location + len(term)
    while end < len(gloss) and not gloss[end].isspace():
        end += 1
    terms = [gloss[location:end]]
    terms.extend(gloss[end:].split()[:2])

    valid = len(terms)
    for i, t in enumerate(terms):
        m = TRAILING_PUNCT.search(t)
        if m is None:
            continue
        terms[i] = t[:m.start()]
        if _CLAUSE_END & set(m.group(0)):
            valid = i + 1
            break
    terms = terms[:valid]

    candidates: list[str] = []
    if len(terms) == 3:
        candidates.append(" ".join(terms))
        candidates.append(f"{terms[0]} {terms[1]}")
        candidates.append(f"{terms[1]} {terms[2]}")
    elif len(terms) == 2:
        candidates.append(f"{terms[0]} {terms[1]}")

    is_noun2 = len(terms) > 1 and db.is_in_wn(terms[1], PartOfSpeech.NOUN)
    is_noun3 = len(terms) > 2 and db.is_in_wn(terms[2], PartOfSpeech.NOUN)

    if " " in terms[0].strip():
        parts = terms[0].split()
        candidates.append(terms[0])
        candidates.append(parts[1])
        candidates.append(parts[0])
        if is_noun2:
            if is_noun3:
                candidates.append(terms[2])
            candidates.append(terms[1])
    else:
        if is_noun2:
            if is_noun3:
                candidates.append(terms[2])
            candidates.append(terms[1])
        candidates.append(terms[0])
    return [c for c in candidates if c]


_LEADING_PUNCT = re.compile(rf" [{re.escape(string.punctuation)}]+\b")
_INNER_PUNCT = re.compile(rf"\b[{re.escape(string.punctuation)}]+ ")


def pertainym_candidates(
    db: LexicalDatabase, gloss: str, term: str,
) -> list[str]:
    """Noun lemmas an "of or relating to <term>" gloss may point at."""
    gloss = gloss.removesuffix(".")
    gloss = _INNER_PUNCT.sub(" ", _LEADING_PUNCT.sub(" ", gloss))
    tokens = gloss.split()
    try:
        start = tokens.index(term)
    except ValueError:
        logger.debug("Could not find %r in %r", term, tokens)
        return [term]

    window = tokens[start:start + 3]
    candidates: list[str] = []
    if len(window) == 3:
        candidates.append(" ".join(window))
    if len(window) >= 2:
        candidates.append(f"{window[0]} {window[1]}")
    if len(window) == 3:
        candidates.append(f"{window[1]} {window[2]}")

    is_noun = [db.is_in_wn(t, PartOfSpeech.NOUN) for t in window]
    if len(window) == 3:
        if all(is_noun):
            candidates.extend([window[2], window[1], window[0]])
        elif is_noun[0] and is_noun[1]:
            candidates.extend([window[1], window[0]])
        else:
            candidates.extend(t for t, noun in zip(window, is_noun) if noun)
    elif len(window) == 2:
        if all(is_noun):
            candidates.extend([window[1], window[0]])
        else:
            candidates.extend(window)
    else:
        candidates.append(window[0])
    return candidates

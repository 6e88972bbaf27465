"""Shared test fixtures for crown."""

import re

import pytest

from crown.editor import LexiconEditor
from crown.models import PartOfSpeech
from crown.nlp import Sentence, Token
from crown.reader import make_entry

_WORD = re.compile(r"[A-Za-z]+")
_STOPWORDS = frozenset({"a", "an", "the", "of", "to", "or", "and", "in", "by"})


class StubAnnotator:
    """Tags every word as a noun and produces no dependencies."""

    def parse(self, text):
        tokens = tuple(
            Token(i, word, word.lower(), "NN")
            for i, word in enumerate(_WORD.findall(text))
        )
        return [Sentence(tokens)] if tokens else []


class TokenOverlapSimilarity:
    """Number of content words two texts share."""

    def __init__(self, entries=(), db=None):
        self.resets = 0

    def compare(self, text1, text2):
        words1 = {w.lower() for w in _WORD.findall(text1)} - _STOPWORDS
        words2 = {w.lower() for w in _WORD.findall(text2)} - _STOPWORDS
        return float(len(words1 & words2))

    def reset(self, db, entries):
        self.resets += 1


@pytest.fixture
def editor():
    """Create an in-memory editor for testing."""
    with LexiconEditor(":memory:") as ed:
        yield ed


@pytest.fixture
def editor_with_lexicon(editor):
    """Editor with one lexicon 'test' pre-created."""
    editor.create_lexicon("test", "Test Lexicon")
    return editor


def add_synset(ed, pos, gloss, lemmas, lexfile, hypernym=None):
    ss = ed.create_synset("test", pos, gloss, lexfile=lexfile)
    for lemma in lemmas:
        ed.add_word(ss.id, lemma)
    if hypernym is not None:
        ed.add_synset_relation(ss.id, "hypernym", hypernym)
    return ss.id


@pytest.fixture
def taxonomy(editor_with_lexicon):
    """A miniature WordNet: a small noun taxonomy, two antonym adjectives,
    a verb and one exception pair. Returns the editor and a map of synset ids.
    """
    ed = editor_with_lexicon
    ids = {}
    ids["entity"] = add_synset(
        ed, "n", "that which is perceived to have its own distinct existence",
        ["entity"], "noun.Tops",
    )
    ids["organism"] = add_synset(
        ed, "n", "a living thing that can act or function independently",
        ["organism", "being"], "noun.Tops", ids["entity"],
    )
    ids["animal"] = add_synset(
        ed, "n", "a living organism that feeds on organic matter",
        ["animal", "beast"], "noun.animal", ids["organism"],
    )
    ids["feline"] = add_synset(
        ed, "n", "any of various lithe-bodied roundheaded fissiped mammals",
        ["feline", "felid"], "noun.animal", ids["animal"],
    )
    ids["cat"] = add_synset(
        ed, "n", "a small domesticated feline with soft fur",
        ["cat", "true cat"], "noun.animal", ids["feline"],
    )
    ids["felis"] = add_synset(
        ed, "n", "a genus of small wild and domestic cats",
        ["Felis", "genus Felis"], "noun.animal",
    )
    ed.add_synset_relation(ids["felis"], "mero_member", ids["cat"])
    ids["color"] = add_synset(
        ed, "n", "a visual attribute of things that results from the light they emit",
        ["color"], "noun.attribute", ids["entity"],
    )
    ids["organized"] = add_synset(
        ed, "a", "formed into a structured or coherent whole",
        ["organized"], "adj.all",
    )
    ids["disorganized"] = add_synset(
        ed, "a", "lacking order or methodical arrangement or function",
        ["disorganized", "disorganised"], "adj.all",
    )
    ed.add_synset_relation(ids["organized"], "antonym", ids["disorganized"])
    ids["run"] = add_synset(
        ed, "v", "move fast by using one's feet",
        ["run"], "verb.motion",
    )
    ed.add_exception("n", "mice", "mouse")
    return ed, ids


@pytest.fixture
def db(taxonomy):
    ed, _ids = taxonomy
    return ed.snapshot()


@pytest.fixture
def annotator():
    return StubAnnotator()


@pytest.fixture
def similarity():
    return TokenOverlapSimilarity()


@pytest.fixture
def entry():
    """Factory for candidate entries from raw glosses."""

    def factory(lemma, pos, *glosses, id=None, relations=()):
        pos = PartOfSpeech.parse(pos)
        return make_entry(
            id or f"{lemma}:{pos.value}1", lemma, pos, list(glosses), tuple(relations),
        )

    return factory

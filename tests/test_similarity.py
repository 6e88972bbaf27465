"""Tests for the inverse-frequency gloss similarity."""

import pytest

from crown.nlp import Sentence, Token
from crown.similarity import InvFreqSimilarity


@pytest.fixture
def inv_freq(db, annotator, entry):
    entries = [entry("wildcat", "n", "a wild feline"), entry("cur", "n", "a tame dog")]
    return InvFreqSimilarity(entries, db, annotator)


class TestInvFreqSimilarity:
    def test_rare_lemmas_weigh_more(self, inv_freq):
        # "tame" occurs once, "feline" also in a synset gloss, "a" everywhere.
        assert inv_freq.weight("tame") > inv_freq.weight("feline") > 0
        assert inv_freq.weight("a") == 0.0
        assert inv_freq.weight("unseen") == 0.0

    def test_compare(self, inv_freq):
        assert inv_freq.compare("a tame dog", "the dog") > 0
        assert inv_freq.compare("a tame dog", "a feline") == 0.0
        assert inv_freq.compare("", "a feline") == 0.0

    def test_reset_recomputes_weights(self, inv_freq, db, entry):
        before = inv_freq.weight("tame")
        inv_freq.reset(db, [entry("cur", "n", "a tame dog")])
        assert inv_freq.weight("tame") != before

    def test_ignores_stop_verbs(self, db, entry):
        class VerbAnnotator:
            def parse(self, text):
                tokens = tuple(
                    Token(i, w, w, "VB") for i, w in enumerate(text.split())
                )
                return [Sentence(tokens)]

        similarity = InvFreqSimilarity([entry("x", "v", "is running")], db, VerbAnnotator())
        assert similarity.content_lemmas("is running") == frozenset({"running"})

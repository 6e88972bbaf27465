"""Tests for the in-memory lexical database."""

import pytest

from crown.exceptions import InvariantError


class TestLookup:
    def test_exact(self, taxonomy, db):
        _ed, ids = taxonomy
        assert [s.id for s in db.lookup("Cat", "n")] == [ids["cat"]]

    def test_inflected_form(self, taxonomy, db):
        _ed, ids = taxonomy
        assert [s.id for s in db.lookup("cats", "n")] == [ids["cat"]]

    def test_pos_matters(self, db):
        assert db.lookup("cat", "v") == []
        assert db.lookup("  ", "n") == []

    def test_satellite_uses_adjective_index(self, taxonomy, db):
        _ed, ids = taxonomy
        assert [s.id for s in db.lookup("organized", "s")] == [ids["organized"]]

    def test_lookup_many_keeps_first_occurrence(self, taxonomy, db):
        _ed, ids = taxonomy
        found = db.lookup_many(["felid", "cat", "feline"], "n")
        assert [s.id for s in found] == [ids["feline"], ids["cat"]]

    def test_is_in_wn(self, db):
        assert db.is_in_wn("beasts", "n")
        assert db.is_in_wn("mice", "n")
        assert not db.is_in_wn("mice", "v")
        assert not db.is_in_wn("", "n")

    def test_exceptions(self, db):
        assert db.exception_bases("Mice", "n") == ("mouse",)
        assert db.has_exception("mice", "n")
        assert not db.has_exception("mouse", "n")

    def test_sense_count_spans_pos(self, taxonomy, db):
        ed, _ids = taxonomy
        ss = ed.create_synset("test", "v", "move like a cat")
        ed.add_word(ss.id, "cat")
        assert ed.snapshot().sense_count("cat") == 2
        assert db.sense_count("cat") == 1

    def test_missing_synset(self, db):
        with pytest.raises(InvariantError):
            db.synset("test-99999999-n")


class TestGlosses:
    def test_extended_gloss(self, taxonomy, db):
        _ed, ids = taxonomy
        cat = db.synset(ids["cat"])
        assert db.extended_gloss(cat) == f"{cat.gloss} cat true cat "

    def test_examples_are_removed(self, editor_with_lexicon):
        ed = editor_with_lexicon
        ed.create_synset("test", "n", 'a feline; "the cat sat on the mat"')
        db = ed.snapshot()
        [synset] = db.synsets()
        assert db.gloss_without_examples(synset) == "a feline"


class TestGraph:
    def test_incoming(self, taxonomy, db):
        _ed, ids = taxonomy
        cat = db.synset(ids["cat"])
        assert [s.id for s in db.incoming(cat, "mero_member")] == [ids["felis"]]

    def test_is_descendant(self, taxonomy, db):
        _ed, ids = taxonomy
        assert db.is_descendant(db.synset(ids["cat"]), ids["entity"])
        assert not db.is_descendant(db.synset(ids["entity"]), ids["cat"])
        assert not db.is_descendant(db.synset(ids["run"]), ids["entity"])

    def test_hyponym_closure(self, taxonomy, db):
        _ed, ids = taxonomy
        animal = db.synset(ids["animal"])
        assert [s.id for s in db.hyponym_closure(animal)] == [ids["feline"], ids["cat"]]
        assert [s.id for s in db.hyponym_closure(animal, max_depth=1)] == [ids["feline"]]

    def test_already_in_wordnet_within_two_hops(self, taxonomy, db):
        _ed, ids = taxonomy
        cat = db.synset(ids["cat"])
        assert db.is_already_in_wordnet("felid", "n", cat)
        assert db.is_already_in_wordnet("beast", "n", [cat])
        assert not db.is_already_in_wordnet("entity", "n", cat)
        assert not db.is_already_in_wordnet("moggy", "n", cat)

    def test_fan_out_counts_every_pointer(self, taxonomy, db):
        _ed, ids = taxonomy
        # hyponym -> cat, hypernym -> animal
        assert db.fan_out(db.synset(ids["feline"])) == 2

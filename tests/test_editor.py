"""Tests for LexiconEditor: lifecycle, synsets, relations and batches."""

import pytest

from crown.editor import LexiconEditor
from crown.exceptions import (
    DatabaseError,
    DuplicateEntityError,
    EntityNotFoundError,
    ValidationError,
)


class TestInit:
    def test_create_new_file_database(self, tmp_path):
        path = tmp_path / "new.db"
        with LexiconEditor(path) as editor:
            row = editor.connection.execute(
                "SELECT value FROM meta WHERE key='schema_version'"
            ).fetchone()
            assert row[0] == "1.0"
        assert path.exists()

    def test_open_existing_database(self, tmp_path):
        path = tmp_path / "wn.db"
        with LexiconEditor(path) as ed:
            ed.create_lexicon("test", "Test")
        with LexiconEditor(path) as ed:
            assert [lex.id for lex in ed.list_lexicons()] == ["test"]

    def test_incompatible_schema(self, tmp_path):
        path = tmp_path / "old.db"
        with LexiconEditor(path) as ed:
            ed.connection.execute("UPDATE meta SET value = '0.1' WHERE key = 'schema_version'")
            ed.connection.commit()
        with pytest.raises(DatabaseError, match="schema version"):
            LexiconEditor(path)


class TestLexicons:
    def test_duplicate(self, editor_with_lexicon):
        with pytest.raises(DuplicateEntityError):
            editor_with_lexicon.create_lexicon("test", "Again")

    def test_default_lexicon(self, editor_with_lexicon):
        editor_with_lexicon.create_lexicon("other", "Other")
        assert editor_with_lexicon.default_lexicon() == "test"

    def test_no_lexicon(self, editor):
        with pytest.raises(EntityNotFoundError):
            editor.default_lexicon()


class TestSynsets:
    def test_generated_ids(self, editor_with_lexicon):
        ed = editor_with_lexicon
        first = ed.create_synset("test", "n", "a feline")
        second = ed.create_synset("test", "v", "to purr")
        assert first.id == "test-00000001-n"
        assert second.id == "test-00000002-v"

    def test_lexfile_and_members(self, editor_with_lexicon):
        ed = editor_with_lexicon
        ss = ed.create_synset("test", "n", "a feline", lexfile="noun.animal")
        ed.add_word(ss.id, "cat")
        ed.add_word(ss.id, "true cat")
        ss = ed.get_synset(ss.id)
        assert ss.lexfile == "noun.animal"
        assert ss.members == ("cat", "true cat")
        assert ss.definition == "a feline"

    def test_invalid_pos(self, editor_with_lexicon):
        with pytest.raises(ValidationError):
            editor_with_lexicon.create_synset("test", "x", "nothing")

    def test_id_needs_lexicon_prefix(self, editor_with_lexicon):
        with pytest.raises(ValidationError):
            editor_with_lexicon.create_synset("test", "n", "a feline", id="oewn-1-n")

    def test_missing_synset(self, editor_with_lexicon):
        with pytest.raises(EntityNotFoundError):
            editor_with_lexicon.get_synset("test-99999999-n")


class TestWords:
    def test_entry_shared_between_synsets(self, editor_with_lexicon):
        ed = editor_with_lexicon
        ss1 = ed.create_synset("test", "n", "a feline")
        ss2 = ed.create_synset("test", "n", "a jazz musician")
        s1 = ed.add_word(ss1.id, "cat")
        s2 = ed.add_word(ss2.id, "cat")
        assert s1.entry_id == s2.entry_id == "test-cat-n"
        assert (s1.entry_rank, s2.entry_rank) == (1, 2)

    def test_duplicate_member(self, editor_with_lexicon):
        ed = editor_with_lexicon
        ss = ed.create_synset("test", "n", "a feline")
        ed.add_word(ss.id, "cat")
        with pytest.raises(DuplicateEntityError):
            ed.add_word(ss.id, "cat")

    def test_empty_lemma(self, editor_with_lexicon):
        with pytest.raises(ValidationError):
            editor_with_lexicon.create_entry("test", "  ", "n")


class TestRelations:
    def test_inverse_is_added(self, taxonomy):
        ed, ids = taxonomy
        [rel] = ed.get_synset_relations(ids["feline"], relation_type="hyponym")
        assert rel.target_id == ids["cat"]

    def test_without_inverse(self, taxonomy):
        ed, ids = taxonomy
        ed.add_synset_relation(ids["cat"], "domain_topic", ids["color"], auto_inverse=False)
        assert ed.get_synset_relations(ids["color"], relation_type="has_domain_topic") == []

    def test_self_loop_rejected(self, taxonomy):
        ed, ids = taxonomy
        with pytest.raises(ValidationError):
            ed.add_synset_relation(ids["cat"], "also", ids["cat"])

    def test_unknown_type(self, taxonomy):
        ed, ids = taxonomy
        with pytest.raises(ValidationError):
            ed.add_synset_relation(ids["cat"], "cousin", ids["animal"])

    def test_missing_target(self, taxonomy):
        ed, ids = taxonomy
        with pytest.raises(EntityNotFoundError):
            ed.add_synset_relation(ids["cat"], "hypernym", "test-99999999-n")


class TestExceptions:
    def test_add_and_list(self, editor):
        assert editor.add_exception("v", "ran", "run") is True
        assert editor.add_exception("v", "ran", "run") is False
        assert editor.get_exceptions("v") == [("v", "ran", "run")]

    def test_import_files(self, editor, tmp_path):
        (tmp_path / "noun.exc").write_text("geese goose\nmice mouse\n", encoding="utf-8")
        (tmp_path / "adj.exc").write_text("better good well\n", encoding="utf-8")
        assert editor.import_exceptions(tmp_path) == 4
        assert ("a", "better", "well") in editor.get_exceptions("a")

    def test_import_missing_directory(self, editor, tmp_path):
        with pytest.raises(FileNotFoundError):
            editor.import_exceptions(tmp_path / "missing")


class TestBatch:
    def test_rollback_on_error(self, editor_with_lexicon):
        ed = editor_with_lexicon
        with pytest.raises(ValidationError):
            with ed.batch():
                ed.create_synset("test", "n", "a feline")
                ed.create_synset("test", "x", "nothing")
        assert ed.connection.execute("SELECT COUNT(*) FROM synsets").fetchone()[0] == 0

    def test_nested_batches_commit_once(self, editor_with_lexicon):
        ed = editor_with_lexicon
        with ed.batch():
            ed.create_synset("test", "n", "a feline")
            with ed.batch():
                ed.create_synset("test", "n", "a canine")
        assert ed.connection.execute("SELECT COUNT(*) FROM synsets").fetchone()[0] == 2


class TestCopyAndHistory:
    def test_copy_is_independent(self, taxonomy, tmp_path):
        ed, ids = taxonomy
        with ed.copy_to(tmp_path / "copy.db") as copy:
            copy.add_word(ids["cat"], "moggy")
            assert "moggy" in copy.get_synset(ids["cat"]).members
        assert "moggy" not in ed.get_synset(ids["cat"]).members

    def test_history(self, editor_with_lexicon):
        ed = editor_with_lexicon
        ss = ed.create_synset("test", "n", "a feline")
        [record] = ed.get_history(entity_type="synset", entity_id=ss.id)
        assert record.operation == "CREATE"
        assert '"definition": "a feline"' in record.new_value

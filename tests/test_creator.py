"""Tests for the multi-pass build."""

import csv

import pytest

from crown.config import BuildConfig
from crown.creator import CrownCreator, operation_log_rows, operation_statistics
from crown.editor import LexiconEditor
from crown.models import AnnotatedLexicalEntry, OperationKind, Reason


class WarmingAnnotator:
    """Records the texts handed to ``warm`` before delegating parses."""

    def __init__(self, inner):
        self.inner = inner
        self.warmed = []

    def parse(self, text):
        return self.inner.parse(text)

    def warm(self, texts):
        self.warmed.append(list(texts))


@pytest.fixture
def base_db(taxonomy, tmp_path):
    ed, ids = taxonomy
    ed.copy_to(tmp_path / "base.db").close()
    return tmp_path / "base.db", ids


@pytest.fixture
def creator(annotator, similarity):
    config = BuildConfig(iterations=2, workers=1)
    return CrownCreator(config, annotator, lambda entries, db: similarity)


class TestBuild:
    def test_two_passes(self, base_db, creator, similarity, entry, tmp_path):
        path, ids = base_db
        out = tmp_path / "out"
        entries = [
            entry("wildcat", "n", "Any member of the Felis genus of small cats."),
            entry("feral cat", "n", "wildcat"),
        ]
        first, second = creator.build(entries, path, out)

        assert (first.attempted, first.classified, first.accepted) == (2, 1, 1)
        assert (second.attempted, second.accepted) == (1, 1)
        assert first.statistics["TaxonomicExtractor:Hypernym"] == 1
        assert second.statistics["SynonymExtractor:Synonym"] == 1

        # Synsets added in pass 0 are merge targets in pass 1.
        with LexiconEditor(second.database_path) as result:
            db = result.snapshot()
            [wildcat] = db.lookup("wildcat", "n")
            assert wildcat.related_ids("hypernym") == (ids["feline"],)
            assert "feral cat" in wildcat.lemmas

        # The base database is never modified.
        with LexiconEditor(path) as base:
            assert base.snapshot().lookup("wildcat", "n") == []

        # The similarity function is built once and reset afterwards.
        assert similarity.resets == 1

    def test_pass_outputs(self, base_db, creator, entry, tmp_path):
        path, _ids = base_db
        out = tmp_path / "out"
        creator.build(
            [entry("wildcat", "n", "Any member of the Felis genus of small cats.")],
            path, out, iterations=1,
        )
        assert (out / "crown-iter-0.db").exists()
        assert (out / "lexfiles-iter-0" / "noun.0.crown").exists()
        assert (out / "lexfiles-iter-0" / "lexnames").exists()
        with open(out / "operations-log.0.tsv", encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f, delimiter="\t"))
        assert rows[0][:3] == ["wildcat", "n", "wildcat:n1"]
        assert rows[0][4] == "Hypernym"

    def test_exceptions_are_loaded_into_the_first_pass(
        self, base_db, creator, tmp_path,
    ):
        path, _ids = base_db
        lexfiles = tmp_path / "lexfiles"
        lexfiles.mkdir()
        (lexfiles / "noun.exc").write_text("geese goose\n", encoding="utf-8")
        [report] = creator.build([], path, tmp_path / "out", 1, lexfile_dir=lexfiles)
        noun_exc = report.lexfile_dir / "noun.exc"
        assert noun_exc.read_text(encoding="utf-8").splitlines() == [
            "geese goose",
            "mice mouse",
        ]

    def test_glosses_are_parsed_up_front(
        self, base_db, annotator, similarity, entry, tmp_path,
    ):
        path, _ids = base_db
        warming = WarmingAnnotator(annotator)
        creator = CrownCreator(
            BuildConfig(workers=1), warming, lambda entries, db: similarity,
        )
        creator.build(
            [entry("wildcat", "n", "Any member of the Felis genus of small cats.")],
            path, tmp_path / "out", iterations=1,
        )
        assert warming.warmed == [["Any member of the Felis genus of small cats."]]

    def test_missing_database(self, creator, tmp_path):
        with pytest.raises(FileNotFoundError):
            creator.build([], tmp_path / "missing.db", tmp_path / "out")


class TestOperationLog:
    def test_rows(self, db, taxonomy, entry):
        _ed, ids = taxonomy
        cat = db.synset(ids["cat"])
        ale = AnnotatedLexicalEntry(entry("moggy", "n", "cat"))
        ale.set_op(OperationKind.SYNONYM, Reason("SynonymExtractor", {"x": 1}), cat)
        [synonym] = operation_log_rows(ale)
        assert synonym == [
            "moggy", "n", "moggy:n1", "cat", "Synonym", ids["cat"],
            "cat,true cat", cat.gloss,
            '{"origin": "SynonymExtractor", "x": 1}',
        ]

        variant = AnnotatedLexicalEntry(entry("colour", "n", "{{alternative spelling of|color}}"))
        variant.add_lexicalization(Reason("AnnotationExtractor"), "color")
        [row] = operation_log_rows(variant)
        assert row[3:5] == ["Lexicalization", "color"]

    def test_statistics(self, db, taxonomy, entry):
        _ed, ids = taxonomy
        ale = AnnotatedLexicalEntry(entry("lynx", "n", "a wild cat"))
        ale.set_op(OperationKind.HYPERNYM, Reason("Parse"), db.synset(ids["feline"]))
        ale.add_op(OperationKind.DOMAIN_TOPIC, Reason("Domains"), db.synset(ids["animal"]))
        assert operation_statistics([ale, ale]) == {
            "Parse:Hypernym": 2,
            "Domains:DomainTopic": 2,
        }

"""Tests for the extraction procedures and the integration pipeline."""

from crown.models import AnnotatedLexicalEntry, OperationKind, Reason
from crown.nlp import Dependency, Sentence, Token
from crown.pipeline import IntegrationPipeline
from crown.procedures import (
    AnnotationExtractor,
    AntonymExtractor,
    IntegrationProcedure,
    ParseExtractor,
    SynonymExtractor,
    TaxonomicExtractor,
    default_augmenters,
    default_procedures,
)


class ExplodingSimilarity:
    """Fails the test if a procedure scores glosses."""

    def compare(self, text1, text2):
        raise AssertionError("similarity should not be consulted")

    def reset(self, db, entries):
        pass


def parse_of(*words, deps=(), root=0):
    """A parse of (text, tag) pairs with (governor, dependent, label) edges."""
    tokens = tuple(
        Token(i, text, text.lower(), tag) for i, (text, tag) in enumerate(words)
    )
    return Sentence(tokens, tuple(Dependency(*d) for d in deps), (root,))


class FixedAnnotator:
    """Returns the same parse for every text."""

    def __init__(self, sentence):
        self.sentence = sentence

    def parse(self, text):
        return [self.sentence]


class TestAntonymExtractor:
    def test_closes_antonym_cycle(self, taxonomy, db, similarity, entry):
        """unorganized -> not organized -> organized <-antonym-> disorganized."""
        _ed, ids = taxonomy
        extractor = AntonymExtractor(db, similarity)
        ale = extractor.integrate(entry("unorganized", "a", "not organized"))
        assert ale is not None
        assert ale.primary is OperationKind.SYNONYM
        assert ale.get(OperationKind.SYNONYM).target.id == ids["disorganized"]
        reason = ale.get(OperationKind.SYNONYM).reason
        assert reason.get("heuristic") == "reverse-lookup"
        assert reason.get("antonym") == "organized"

    def test_unrelated_prefix_is_ignored(self, db, similarity, entry):
        extractor = AntonymExtractor(db, similarity)
        assert extractor.integrate(entry("uncle", "n", "the brother of a parent")) is None


class TestSynonymExtractor:
    def test_one_word_gloss_merges_into_first_sense(self, taxonomy, db, entry):
        _ed, ids = taxonomy
        extractor = SynonymExtractor(db, ExplodingSimilarity())
        ale = extractor.integrate(entry("moggy", "n", "cat"))
        assert ale.primary is OperationKind.SYNONYM
        assert ale.get(OperationKind.SYNONYM).target.id == ids["cat"]
        assert ale.get(OperationKind.SYNONYM).reason.get("selection") == "first-sense"

    def test_existing_member_is_not_merged_again(self, db, similarity, entry):
        extractor = SynonymExtractor(db, similarity)
        assert extractor.integrate(entry("felid", "n", "feline")) is None


class TestSingleSenseShortcut:
    def test_single_candidate_skips_similarity(self, taxonomy, db):
        _ed, ids = taxonomy
        procedure = IntegrationProcedure(db, ExplodingSimilarity())
        reason = Reason("test")
        chosen = procedure.choose_sense("anything", [db.synset(ids["cat"])], reason)
        assert chosen.id == ids["cat"]
        assert reason.get("selection") == "single-sense"

    def test_no_candidates(self, db):
        procedure = IntegrationProcedure(db, ExplodingSimilarity())
        assert procedure.choose_sense("anything", [], Reason("test")) is None

    def test_best_match_prefers_overlap(self, taxonomy, db, similarity):
        _ed, ids = taxonomy
        procedure = IntegrationProcedure(db, similarity)
        reason = Reason("test")
        candidates = [db.synset(ids["animal"]), db.synset(ids["cat"])]
        chosen = procedure.choose_sense(
            "a domesticated feline kept as a pet", candidates, reason,
        )
        assert chosen.id == ids["cat"]
        assert reason.get("selection") == "gloss-similarity"


class TestTaxonomicExtractor:
    def test_any_member_of_genus(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        extractor = TaxonomicExtractor(db, similarity)
        ale = extractor.integrate(
            entry("wildcat", "n", "Any member of the Felis genus of small cats."),
        )
        assert ale.primary is OperationKind.HYPERNYM
        assert ale.get(OperationKind.HYPERNYM).target.id == ids["feline"]
        assert ale.targets(OperationKind.MEMBER_MERONYM)[0].id == ids["felis"]

    def test_taxlink_template(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        extractor = TaxonomicExtractor(db, similarity)
        ale = extractor.integrate(
            entry("sand cat", "n", "{{taxlink|Felis|genus}} A small wild cat."),
        )
        assert ale.get(OperationKind.HYPERNYM).reason.get("source") == "taxlink"

    def test_verbs_are_skipped(self, db, similarity, entry):
        extractor = TaxonomicExtractor(db, similarity)
        assert extractor.integrate(entry("felinize", "v", "Any member of the Felis")) is None

    def test_not_attached_below_own_synset(self, db, similarity, entry):
        extractor = TaxonomicExtractor(db, similarity)
        assert extractor.integrate(
            entry("felid", "n", "Any member of the Felis genus of small cats."),
        ) is None


class TestAnnotationExtractor:
    def test_alternative_spelling_is_a_lexicalization(self, db, similarity, entry):
        extractor = AnnotationExtractor(db, similarity)
        ale = extractor.integrate(
            entry("colour", "n", "{{alternative spelling of|color}}"),
        )
        assert ale.primary is OperationKind.LEXICALIZATION
        assert ale.lexicalizations[0].base_form == "color"


class TestParseExtractor:
    def test_lone_head_sense_is_not_scored(self, taxonomy, db, entry):
        _ed, ids = taxonomy
        annotator = FixedAnnotator(parse_of(
            ("a", "DT"), ("feline", "NN"), deps=[(1, 0, "det")], root=1,
        ))
        ale = ParseExtractor(db, ExplodingSimilarity(), annotator).integrate(
            entry("lynx", "n", "a feline"),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["feline"]
        assert op.reason.get("heuristic") == "Heuristic-1"
        assert op.reason.get("selection") == "single-sense"

    def test_conjoined_heads_compete(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        annotator = FixedAnnotator(parse_of(
            ("a", "DT"), ("cat", "NN"), ("or", "CC"), ("animal", "NN"),
            ("with", "IN"), ("soft", "JJ"), ("fur", "NN"),
            deps=[(1, 0, "det"), (1, 2, "cc"), (1, 3, "conj"), (1, 6, "prep")],
            root=1,
        ))
        extractor = ParseExtractor(db, similarity, annotator)
        lynx = entry("lynx", "n", "a cat or animal with soft fur")
        candidates = extractor.candidate_lemmas(lynx)
        assert candidates.heuristics("animal") == ["Heuristic-1 (In conjunction)"]

        op = extractor.integrate(lynx).get(OperationKind.HYPERNYM)
        assert op.target.id == ids["cat"]
        assert op.reason.get("selection") == "gloss-similarity"
        assert op.reason.get("max_score") == 3.0

    def test_subject_of_verb_root(self, taxonomy, db, entry):
        _ed, ids = taxonomy
        annotator = FixedAnnotator(parse_of(
            ("cat", "NN"), ("hunts", "VBZ"), deps=[(1, 0, "nsubj")], root=1,
        ))
        ale = ParseExtractor(db, ExplodingSimilarity(), annotator).integrate(
            entry("mouser", "n", "cat hunts"),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["cat"]
        assert op.reason.get("heuristic") == "Heuristic-5: Subject Noun"

    def test_someone_who_means_person(self, taxonomy, entry):
        ed, _ids = taxonomy
        person = ed.create_synset("test", "n", "a human being", lexfile="noun.Tops")
        ed.add_word(person.id, "person")
        annotator = FixedAnnotator(parse_of(
            ("Someone", "NN"), ("who", "WP"), ("teaches", "VBZ"),
            deps=[(0, 2, "rcmod")],
        ))
        ale = ParseExtractor(ed.snapshot(), ExplodingSimilarity(), annotator).integrate(
            entry("coach", "n", "Someone who teaches."),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == person.id
        assert op.reason.get("heuristic") == "Heuristic-3: Person"

    def test_verbal_infinitive(self, taxonomy, db, entry):
        _ed, ids = taxonomy
        annotator = FixedAnnotator(parse_of(
            ("To", "TO"), ("run", "VB"), ("fast", "RB"),
            deps=[(0, 1, "pobj"), (1, 2, "advmod")],
        ))
        ale = ParseExtractor(db, ExplodingSimilarity(), annotator).integrate(
            entry("sprint", "v", "To run fast."),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["run"]
        assert op.reason.get("heuristic") == "Heuristic-11: verbal infinitive"

    def test_adjective_becomes_similar_to(self, taxonomy, db, entry):
        _ed, ids = taxonomy
        annotator = FixedAnnotator(parse_of(
            ("Well", "RB"), ("organized", "JJ"), deps=[(1, 0, "advmod")], root=1,
        ))
        ale = ParseExtractor(db, ExplodingSimilarity(), annotator).integrate(
            entry("tidy", "a", "Well organized."),
        )
        assert ale.primary is None
        assert ale.get(OperationKind.SIMILAR_TO).target.id == ids["organized"]

    def test_linked_phrase_around_head(self, db, entry):
        annotator = FixedAnnotator(parse_of(
            ("A", "DT"), ("wild", "JJ"), ("cat", "NN"), ("of", "IN"), ("Europe", "NNP"),
            deps=[(2, 0, "det"), (2, 1, "amod"), (2, 4, "prep")],
            root=2,
        ))
        extractor = ParseExtractor(db, ExplodingSimilarity(), annotator)
        candidates = extractor.candidate_lemmas(
            entry("wildcat", "n", "A [[wild cat]] of Europe."),
        )
        assert list(candidates) == ["cat", "wild cat"]
        assert candidates.heuristics("cat") == ["Heuristic-1"]
        assert candidates.heuristics("wild cat") == ["wiki MWE expansion"]

    def test_no_parse_no_opinion(self, db, annotator, entry):
        extractor = ParseExtractor(db, ExplodingSimilarity(), annotator)
        assert extractor.integrate(entry("lynx", "n", "a feline")) is None


class _Fixed(IntegrationProcedure):
    def __init__(self, db, similarity, target_id, calls):
        super().__init__(db, similarity)
        self.target_id = target_id
        self.calls = calls

    def classify(self, entry):
        self.calls.append(self.name)
        ale = AnnotatedLexicalEntry(entry)
        ale.set_op(OperationKind.HYPERNYM, self.reason(), self.db.synset(self.target_id))
        return ale


class _First(_Fixed):
    pass


class _Second(_Fixed):
    pass


class _Never(IntegrationProcedure):
    def classify(self, entry):
        return None


class _Recorder:
    def __init__(self):
        self.seen = []

    def augment(self, annotated):
        self.seen.append(annotated.id)

    def set_dictionary(self, db):
        pass


class TestPipeline:
    def test_first_match_wins(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        calls = []
        pipeline = IntegrationPipeline([
            _Never(db, similarity),
            _First(db, similarity, ids["animal"], calls),
            _Second(db, similarity, ids["feline"], calls),
        ])
        ale = pipeline.integrate(entry("lynx", "n", "a wild cat"))
        assert ale.get(OperationKind.HYPERNYM).target.id == ids["animal"]
        assert ale.get(OperationKind.HYPERNYM).reason.origin == "_First"
        assert calls == ["_First"]

    def test_augmenters_see_only_classified_entries(
        self, taxonomy, db, similarity, entry,
    ):
        _ed, ids = taxonomy
        recorder = _Recorder()
        pipeline = IntegrationPipeline([_Never(db, similarity)], [recorder])
        assert pipeline.integrate(entry("lynx", "n", "a wild cat")) is None
        assert recorder.seen == []

        pipeline = IntegrationPipeline(
            [_First(db, similarity, ids["animal"], [])], [recorder],
        )
        pipeline.integrate(entry("lynx", "n", "a wild cat", id="lynx:1"))
        assert recorder.seen == ["lynx:1"]

    def test_set_dictionary_reaches_every_procedure(self, taxonomy, db, similarity):
        ed, _ids = taxonomy
        procedures = default_procedures(db, similarity, None)
        augmenters = default_augmenters(db, similarity)
        pipeline = IntegrationPipeline(procedures, augmenters)
        fresh = ed.snapshot()
        pipeline.set_dictionary(fresh)
        assert all(p.db is fresh for p in procedures)
        assert all(a.db is fresh for a in augmenters)

    def test_default_order(self, db, similarity, annotator):
        names = [p.name for p in default_procedures(db, similarity, annotator)]
        assert names[:4] == [
            "AnnotationExtractor",
            "RelationBasedIntegrator",
            "AntonymExtractor",
            "SynonymExtractor",
        ]
        assert names[-1] == "AdjectivePatternExtractor"

    def test_unknown_lemma_is_unclassified(self, db, similarity, annotator, entry):
        pipeline = IntegrationPipeline(
            default_procedures(db, similarity, annotator),
            default_augmenters(db, similarity),
        )
        assert pipeline.integrate(entry("zzyzx", "n", "qwerty plugh")) is None


    def test_annotation_outranks_parse(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        kitty = entry("kitty", "n", "{{diminutive of|cat}} A small cat.")
        annotator = FixedAnnotator(parse_of(
            ("A", "DT"), ("small", "JJ"), ("cat", "NN"),
            deps=[(2, 0, "det"), (2, 1, "amod")],
            root=2,
        ))
        assert ParseExtractor(db, similarity, annotator).integrate(kitty) is not None

        pipeline = IntegrationPipeline(default_procedures(db, similarity, annotator))
        op = pipeline.integrate(kitty).get(OperationKind.HYPERNYM)
        assert op.target.id == ids["cat"]
        assert op.reason.origin == "AnnotationExtractor"
        assert op.reason.get("heuristic") == "attach"

    def test_classification_is_repeatable(self, db, similarity, annotator, entry):
        entries = [
            entry("wildcat", "n", "Any member of the Felis genus of small cats."),
            entry("moggy", "n", "cat"),
            entry("unorganized", "a", "not organized"),
            entry("colour", "n", "{{alternative spelling of|color}}"),
            entry("lynx", "n", "A feline that has a short tail."),
            entry("zzyzx", "n", "qwerty plugh"),
        ]

        def describe(ale):
            if ale is None:
                return None
            return (
                ale.primary,
                [(op.kind, op.target.id, op.reason.to_json()) for op in ale.operations()],
                [lex.base_form for lex in ale.lexicalizations],
            )

        def run(order):
            pipeline = IntegrationPipeline(
                default_procedures(db, similarity, annotator),
                default_augmenters(db, similarity),
            )
            return {e.id: describe(pipeline.integrate(e)) for e in order}

        first = run(entries)
        assert first == run(entries)
        assert first == run(list(reversed(entries)))
        assert first["zzyzx:n1"] is None
        assert all(first[e.id] is not None for e in entries[:5])

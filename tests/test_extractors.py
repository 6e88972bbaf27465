"""Tests for the pattern-driven extractors and the domain augmenter."""

import pytest

from crown.models import (
    AnnotatedLexicalEntry,
    EntryRelationType,
    OperationKind,
    Reason,
    Relation,
)
from crown.procedures import (
    AdjectivePatternExtractor,
    AdverbExtractor,
    DomainLinkAugmenter,
    GroupExtractor,
    NounPatternExtractor,
    PersonPatternExtractor,
    RelationBasedIntegrator,
    VerbPatternExtractor,
    WikiMarkupExtractor,
)


class NoOverlap:
    """Every pair of glosses scores zero."""

    def compare(self, text1, text2):
        return 0.0

    def reset(self, db, entries):
        pass


@pytest.fixture
def people(taxonomy):
    """The taxonomy plus person and group synsets."""
    ed, ids = taxonomy

    def add(key, gloss, lemma, hypernym):
        ss = ed.create_synset("test", "n", gloss, lexfile="noun.Tops")
        ed.add_word(ss.id, lemma)
        ed.add_synset_relation(ss.id, "hypernym", ids[hypernym])
        ids[key] = ss.id

    add("person", "a human being", "person", "organism")
    add("teacher", "a person whose occupation is teaching", "teacher", "person")
    add("group", "any number of entities considered as a unit", "group", "entity")
    add("flock", "a group of birds or animals", "flock", "group")
    return ed.snapshot(), ids


def synonyms(*lemmas):
    return tuple(Relation(lemma, EntryRelationType.SYNONYM) for lemma in lemmas)


class TestRelationBasedIntegrator:
    def test_single_synonym(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        integrator = RelationBasedIntegrator(db, similarity)
        ale = integrator.integrate(
            entry("moggy", "n", "A domestic cat.", relations=synonyms("cat")),
        )
        op = ale.get(OperationKind.SYNONYM)
        assert op.target.id == ids["cat"]
        assert op.reason.get("heuristic") == "single-synonym"

    def test_synonyms_vote(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        integrator = RelationBasedIntegrator(db, similarity)
        ale = integrator.integrate(
            entry("mog", "n", "A cat.", relations=synonyms("cat", "felid")),
        )
        op = ale.get(OperationKind.SYNONYM)
        assert op.target.id == ids["feline"]
        assert op.reason.get("heuristic") == "unambiguous-max"

    def test_lemma_already_nearby(self, db, similarity, entry):
        integrator = RelationBasedIntegrator(db, similarity)
        assert integrator.integrate(
            entry("felid", "n", "A cat.", relations=synonyms("cat")),
        ) is None


class TestAdverbExtractor:
    def test_manner_adverb(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        ale = AdverbExtractor(db, similarity).integrate(
            entry("organizedly", "r", "In an organized manner."),
        )
        op = ale.get(OperationKind.DERIVED_FROM_ADJECTIVE)
        assert op.target.id == ids["organized"]
        assert op.reason.get("heuristic") == "single-sense"

    def test_unknown_adjective(self, db, similarity, entry):
        extractor = AdverbExtractor(db, similarity)
        assert extractor.integrate(entry("bluely", "r", "In a blue manner.")) is None


class TestWikiMarkupExtractor:
    def test_linked_noun(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        ale = WikiMarkupExtractor(db, similarity).integrate(
            entry("lynx", "n", "A [[feline]] with a short tail."),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["feline"]
        assert op.reason.get("heuristic") == "linked-noun"

    def test_linked_verb(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        ale = WikiMarkupExtractor(db, similarity).integrate(
            entry("sprint", "v", "To [[run]] at full speed."),
        )
        assert ale.get(OperationKind.HYPERNYM).target.id == ids["run"]

    def test_known_lemma_is_skipped(self, db, similarity, entry):
        extractor = WikiMarkupExtractor(db, similarity)
        assert extractor.integrate(entry("cat", "n", "A [[feline]].")) is None


class TestPersonPatternExtractor:
    def test_typed_person(self, people, similarity, entry):
        db, ids = people
        ale = PersonPatternExtractor(db, similarity).integrate(
            entry("tutor", "n", "A teacher who gives private lessons."),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["teacher"]
        assert op.reason.get("heuristic") == "typed-person"

    def test_someone_who(self, people, similarity, entry):
        db, ids = people
        ale = PersonPatternExtractor(db, similarity).integrate(
            entry("coach", "n", "Someone who teaches a person to play."),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["teacher"]
        assert op.reason.get("heuristic") == "gloss-similarity"

    def test_typed_person_skips_own_synset(self, people, similarity, entry):
        db, ids = people
        ale = PersonPatternExtractor(db, similarity).integrate(
            entry("felid", "n", "Someone who hunts.", "A feline that purrs."),
        )
        assert ale is None or ale.get(OperationKind.HYPERNYM).target.id != ids["feline"]

    def test_not_a_person(self, people, similarity, entry):
        db, _ids = people
        extractor = PersonPatternExtractor(db, similarity)
        assert extractor.integrate(entry("lynx", "n", "A wild cat.")) is None

    def test_disabled_without_person_synset(self, db, similarity, entry):
        extractor = PersonPatternExtractor(db, similarity)
        assert extractor.integrate(entry("coach", "n", "Someone who teaches.")) is None


class TestGroupExtractor:
    def test_group_of_nouns(self, people, similarity, entry):
        db, ids = people
        ale = GroupExtractor(db, similarity).integrate(
            entry("clowder", "n", "A flock of cats"),
        )
        assert ale.get(OperationKind.HYPERNYM).target.id == ids["flock"]
        [member] = ale.targets(OperationKind.MEMBER_MERONYM)
        assert member.id == ids["cat"]

    def test_group_type_itself_is_skipped(self, people, similarity, entry):
        db, _ids = people
        extractor = GroupExtractor(db, similarity)
        assert extractor.integrate(entry("flock", "n", "A flock of sheep")) is None

    def test_unknown_group_type(self, people, similarity, entry):
        db, _ids = people
        extractor = GroupExtractor(db, similarity)
        assert extractor.integrate(entry("kindle", "n", "A litter of kittens")) is None


class TestDomainLinkAugmenter:
    def test_context_label_becomes_domain(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        ale = AnnotatedLexicalEntry(entry("mauve", "n", "{{context|color}} A pale purple."))
        ale.set_op(OperationKind.HYPERNYM, Reason("test"), db.synset(ids["color"]))
        DomainLinkAugmenter(db, similarity).augment(ale)
        [domain] = ale.targets(OperationKind.DOMAIN_TOPIC)
        assert domain.id == ids["color"]

    def test_usage_labels_are_excluded(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        ale = AnnotatedLexicalEntry(
            entry("mauve", "n", "{{context|archaic|color}} A pale purple."),
        )
        ale.set_op(OperationKind.HYPERNYM, Reason("test"), db.synset(ids["color"]))
        DomainLinkAugmenter(db, similarity).augment(ale)
        assert ale.targets(OperationKind.DOMAIN_TOPIC) == []


class TestVerbPatternExtractor:
    def test_to_verb(self, taxonomy, db, entry):
        _ed, ids = taxonomy
        ale = VerbPatternExtractor(db, NoOverlap()).integrate(
            entry("sprint", "v", "To run very fast."),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["run"]
        assert op.reason.get("heuristic") == "unlinked-to-verb"
        assert op.reason.get("selection") == "single-sense"

    def test_known_verb_is_skipped(self, db, similarity, entry):
        extractor = VerbPatternExtractor(db, similarity)
        assert extractor.integrate(entry("run", "v", "To sprint.")) is None


class TestNounPatternExtractor:
    def test_a_noun_that(self, taxonomy, db, entry):
        _ed, ids = taxonomy
        ale = NounPatternExtractor(db, NoOverlap()).integrate(
            entry("lynx", "n", "A feline that has a short tail."),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["feline"]
        assert op.reason.get("heuristic") == "a-noun-that"
        assert op.reason.get("head") == "feline"

    def test_a_noun_comma(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        ale = NounPatternExtractor(db, similarity).integrate(
            entry("wildcat", "n", "A cat, especially an untamed one."),
        )
        op = ale.get(OperationKind.HYPERNYM)
        assert op.target.id == ids["cat"]
        assert op.reason.get("heuristic") == "a-noun,"

    def test_unknown_head(self, db, similarity, entry):
        extractor = NounPatternExtractor(db, similarity)
        assert extractor.integrate(entry("lynx", "n", "A gryphon that flies.")) is None


class TestAdjectivePatternExtractor:
    def test_parataxis_synonyms(self, taxonomy, db, similarity, entry):
        _ed, ids = taxonomy
        ale = AdjectivePatternExtractor(db, similarity).integrate(
            entry("tidy", "a", "Organized, orderly, neat."),
        )
        op = ale.get(OperationKind.SYNONYM)
        assert op.target.id == ids["organized"]
        assert op.reason.get("heuristic") == "single-synonym"

    def test_pertainym_without_adjectives(self, taxonomy, db, entry):
        _ed, ids = taxonomy
        ale = AdjectivePatternExtractor(db, NoOverlap()).integrate(
            entry("felinoid", "a", "Of, or relating to felines."),
        )
        op = ale.get(OperationKind.PERTAINYM)
        assert op.target.id == ids["feline"]
        assert op.reason.get("heuristic") == "no-pertainyms"
        assert op.reason.get("noun_selection") == "single-sense"

    def test_merges_into_lone_pertainym(self, taxonomy, entry):
        ed, ids = taxonomy
        catlike = ed.create_synset("test", "a", "resembling a cat", lexfile="adj.pert")
        ed.add_word(catlike.id, "catlike")
        ed.add_synset_relation(catlike.id, "pertainym", ids["feline"])
        ale = AdjectivePatternExtractor(ed.snapshot(), NoOverlap()).integrate(
            entry("felinoid", "a", "Of, or relating to felines."),
        )
        op = ale.get(OperationKind.SYNONYM)
        assert op.target.id == catlike.id
        assert op.reason.get("heuristic") == "pertainyms"
        assert op.reason.get("adj_selection") == "single-sense"

    def test_known_adjective_is_skipped(self, db, similarity, entry):
        extractor = AdjectivePatternExtractor(db, similarity)
        assert extractor.integrate(entry("organized", "a", "Of, or relating to order.")) is None

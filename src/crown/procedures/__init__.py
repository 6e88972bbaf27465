"""Extraction and augmentation procedures, in the order they are tried."""

from __future__ import annotations

from collections.abc import Iterable

from crown.dictionary import LexicalDatabase
from crown.nlp import Annotator
from crown.similarity import SimilarityFunction

from .adverb import AdverbExtractor as AdverbExtractor
from .annotation import AnnotationExtractor as AnnotationExtractor
from .antonym import AntonymExtractor as AntonymExtractor
from .base import (
    AugmentationProcedure as AugmentationProcedure,
    IntegrationProcedure as IntegrationProcedure,
)
from .closures import ClosureCache as ClosureCache
from .domain_link import DomainLinkAugmenter as DomainLinkAugmenter
from .group import GroupExtractor as GroupExtractor
from .parse import ParseExtractor as ParseExtractor
from .patterns import (
    AdjectivePatternExtractor as AdjectivePatternExtractor,
    NounPatternExtractor as NounPatternExtractor,
    VerbPatternExtractor as VerbPatternExtractor,
)
from .person import PersonPatternExtractor as PersonPatternExtractor
from .relation_based import RelationBasedIntegrator as RelationBasedIntegrator
from .synonym import SynonymExtractor as SynonymExtractor
from .taxonomic import TaxonomicExtractor as TaxonomicExtractor
from .wiki_markup import WikiMarkupExtractor as WikiMarkupExtractor


def default_procedures(
    db: LexicalDatabase,
    similarity: SimilarityFunction,
    annotator: Annotator,
    closures: ClosureCache | None = None,
) -> list[IntegrationProcedure]:
    """Every extraction procedure, highest priority first."""
    closures = closures or ClosureCache()
    return [
        AnnotationExtractor(db, similarity),
        RelationBasedIntegrator(db, similarity),
        AntonymExtractor(db, similarity),
        SynonymExtractor(db, similarity),
        AdverbExtractor(db, similarity),
        TaxonomicExtractor(db, similarity),
        GroupExtractor(db, similarity, closures),
        PersonPatternExtractor(db, similarity, closures),
        ParseExtractor(db, similarity, annotator),
        WikiMarkupExtractor(db, similarity),
        VerbPatternExtractor(db, similarity),
        NounPatternExtractor(db, similarity),
        AdjectivePatternExtractor(db, similarity),
    ]


def default_augmenters(
    db: LexicalDatabase,
    similarity: SimilarityFunction,
    excluded_domains: Iterable[str] | None = None,
) -> list[AugmentationProcedure]:
    return [DomainLinkAugmenter(db, similarity, excluded_domains)]

"""Attach organisms beside a known member of their genus."""

from __future__ import annotations

import logging
import string

from crown.models import AnnotatedLexicalEntry, LexicalEntry, OperationKind, PartOfSpeech
from crown.procedures.base import IntegrationProcedure
from crown.relations import HYPERNYM_RELATIONS
from crown.wiktionary import extract_annotations

logger = logging.getLogger(__name__)

TAXONOMIC_PREFIX = "Any member of the "

_PUNCT_TABLE = str.maketrans("", "", string.punctuation)


def genus_from_gloss(gloss: str) -> str | None:
    """The capitalised taxon name after "Any member of the"."""
    if not gloss.startswith(TAXONOMIC_PREFIX):
        return None
    rest = gloss[len(TAXONOMIC_PREFIX):]
    i = next((k for k, c in enumerate(rest) if c.isupper()), len(rest))
    j = rest.find(" ", i + 1)
    if j < 0:
        j = len(rest)
    genus = rest[i:j].translate(_PUNCT_TABLE).strip()
    return genus or None


class TaxonomicExtractor(IntegrationProcedure):
    """Use a ``{{taxlink|Genus|...}}`` template or an "Any member of" gloss.

    The genus synset's member meronyms include organisms; the entry becomes
    a hyponym of the first such organism's hypernym and a member of the
    genus.
    """

    def classify(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        if entry.pos is not PartOfSpeech.NOUN:
            return None

        for raw, _cleaned in entry.raw_glosses:
            for annotation in extract_annotations(raw):
                cols = annotation.split("|")
                if cols[0].strip() == "taxlink" and len(cols) > 1:
                    return self.attach_genus(entry, cols[1].strip(), "taxlink")

        for gloss in entry.glosses:
            if gloss.startswith(TAXONOMIC_PREFIX):
                genus = genus_from_gloss(gloss)
                if genus is None:
                    logger.debug("No taxon in taxonomic-like gloss: %s", gloss)
                    return None
                return self.attach_genus(entry, genus, "any-member-of")
        return None

    def attach_genus(
        self, entry: LexicalEntry, genus: str, source: str,
    ) -> AnnotatedLexicalEntry | None:
        genus_synset = self.db.first_sense(genus, PartOfSpeech.NOUN)
        organism = self.db.first_sense("organism", PartOfSpeech.NOUN)
        if genus_synset is None or organism is None:
            return None

        for member in self.db.related(genus_synset, "mero_member"):
            if not self.db.is_descendant(member, organism.id):
                continue
            parents = self.db.related(member, HYPERNYM_RELATIONS[0])
            if not parents:
                parents = self.db.related(member, HYPERNYM_RELATIONS[1])
            if not parents:
                continue
            if self.db.is_already_in_wordnet(entry.lemma, PartOfSpeech.NOUN, parents[0]):
                logger.debug("%s already sits near %s", entry.lemma, parents[0].id)
                continue
            reason = self.reason(heuristic="genus", source=source, genus=genus)
            ale = AnnotatedLexicalEntry(entry)
            ale.set_op(OperationKind.HYPERNYM, reason, parents[0])
            ale.add_op(OperationKind.MEMBER_MERONYM, reason, genus_synset)
            return ale
        return None

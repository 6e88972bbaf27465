"""First-match-wins integration of one entry through the procedure list."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from crown.dictionary import LexicalDatabase
from crown.models import AnnotatedLexicalEntry, LexicalEntry
from crown.procedures import AugmentationProcedure, IntegrationProcedure

logger = logging.getLogger(__name__)


class IntegrationPipeline:
    """Try each procedure in order and augment the first result.

    There is no scoring across procedures: a procedure earlier in the list
    always wins over a later one.
    """

    def __init__(
        self,
        procedures: Sequence[IntegrationProcedure],
        augmenters: Sequence[AugmentationProcedure] = (),
    ) -> None:
        self.procedures = list(procedures)
        self.augmenters = list(augmenters)

    def integrate(self, entry: LexicalEntry) -> AnnotatedLexicalEntry | None:
        for procedure in self.procedures:
            result = procedure.integrate(entry)
            if result is None:
                continue
            logger.debug("%s classified %s (%s)", procedure.name, entry.id, entry.lemma)
            for augmenter in self.augmenters:
                augmenter.augment(result)
            return result
        return None

    def set_dictionary(self, db: LexicalDatabase) -> None:
        """Point every procedure at a new snapshot."""
        for procedure in self.procedures:
            procedure.set_dictionary(db)
        for augmenter in self.augmenters:
            augmenter.set_dictionary(db)

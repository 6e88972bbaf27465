"""Apply a pass's edit intents to a fresh copy of the database."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from crown.config import BuildConfig
from crown.editor import LexiconEditor
from crown.exceptions import CompilerError, CrownError
from crown.models import Edit, ExceptionEdit, MergeEdit, NewSynsetEdit
from crown.validator import errors, validate_all

logger = logging.getLogger(__name__)


class Grind:
    """Compile edits into a new database and check it for fatal errors."""

    def __init__(self, config: BuildConfig | None = None) -> None:
        self.config = config or BuildConfig()

    def create_db(
        self,
        source: LexiconEditor,
        edits: Iterable[Edit],
        target_path: str | Path,
    ) -> LexiconEditor:
        """Copy ``source`` to ``target_path`` and apply ``edits`` to the copy.

        Returns an editor on the new database. The source is left untouched.

        Raises:
            CompilerError: If an edit cannot be applied or the result fails
                validation with an ERROR-level finding.
        """
        editor = source.copy_to(target_path)
        try:
            touched_synsets, touched_lemmas = self._apply(editor, edits)
            self._check(editor, touched_synsets, touched_lemmas)
        except BaseException:
            editor.close()
            raise
        return editor

    def _apply(
        self, editor: LexiconEditor, edits: Iterable[Edit],
    ) -> tuple[set[str], set[str]]:
        synsets: set[str] = set()
        lemmas: set[str] = set()
        counts = {"synsets": 0, "merges": 0, "exceptions": 0}
        lexicon_id = editor.default_lexicon()
        try:
            with editor.batch():
                for edit in edits:
                    if isinstance(edit, NewSynsetEdit):
                        synset = editor.create_synset(
                            lexicon_id,
                            edit.pos.value,
                            edit.gloss,
                            lexfile=edit.lexfile,
                            metadata={
                                "entry": edit.entry_id, "lemma_id": edit.lemma_id,
                            },
                        )
                        editor.add_word(synset.id, edit.lemma)
                        for relation, target_id in edit.relations:
                            editor.add_synset_relation(synset.id, relation, target_id)
                            synsets.add(target_id)
                        synsets.add(synset.id)
                        lemmas.add(edit.lemma)
                        counts["synsets"] += 1
                    elif isinstance(edit, MergeEdit):
                        editor.add_word(edit.synset_id, edit.lemma)
                        synsets.add(edit.synset_id)
                        lemmas.add(edit.lemma)
                        counts["merges"] += 1
                    elif isinstance(edit, ExceptionEdit):
                        if editor.add_exception(edit.pos.value, edit.variant, edit.base):
                            counts["exceptions"] += 1
                    else:
                        raise CompilerError(f"Unknown edit: {edit!r}")
        except CompilerError:
            raise
        except CrownError as e:
            raise CompilerError(f"Failed to apply edit: {e}") from e
        logger.info(
            "Applied %d new synsets, %d merges and %d exceptions",
            counts["synsets"], counts["merges"], counts["exceptions"],
        )
        return synsets, lemmas

    def _check(
        self, editor: LexiconEditor, synsets: set[str], lemmas: set[str],
    ) -> None:
        results = validate_all(
            editor.connection,
            max_pointers=self.config.max_pointers,
            max_senses=self.config.max_senses,
            synset_ids=synsets,
            lemmas=lemmas,
        )
        fatal = errors(results)
        if len(results) > len(fatal):
            logger.debug("%d validation warnings", len(results) - len(fatal))
        if fatal:
            for result in fatal[:10]:
                logger.error("%s %s: %s", result.rule_id, result.entity_id, result.message)
            raise CompilerError(
                f"{len(fatal)} fatal validation errors in {editor.path}; "
                f"first: {fatal[0].rule_id} {fatal[0].entity_id}: {fatal[0].message}"
            )

"""The multi-pass build: classify, place, compile and export.

A build is a sequence of passes over a shrinking set of candidate entries.
Each pass reads the database written by the previous one, so synsets added
in pass ``i`` are attachment points in pass ``i + 1``::

    BuildState(0, base.db, all entries)
      -> BuildState(1, crown-iter-0.db, unclassified entries)
      -> ...
"""

from __future__ import annotations

import csv
import logging
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from crown.config import BuildConfig
from crown.counters import CounterService
from crown.dictionary import LexicalDatabase
from crown.editor import LexiconEditor
from crown.exceptions import ExportError
from crown.exporter import export_exceptions, export_lexfiles, export_lexnames
from crown.grind import Grind
from crown.models import AnnotatedLexicalEntry, LexicalEntry
from crown.nlp import Annotator, SpacyAnnotator
from crown.pipeline import IntegrationPipeline
from crown.placement import PlacementEngine, PlacementResult
from crown.procedures import ClosureCache, default_augmenters, default_procedures
from crown.similarity import InvFreqSimilarity, SimilarityFunction

logger = logging.getLogger(__name__)

SimilarityFactory = Callable[
    [Sequence[LexicalEntry], LexicalDatabase], SimilarityFunction
]


@dataclass(frozen=True, slots=True)
class BuildState:
    """Where a build stands between two passes."""

    pass_index: int
    database_path: Path
    remaining: tuple[LexicalEntry, ...]


@dataclass(slots=True)
class PassReport:
    pass_index: int
    attempted: int
    classified: int
    accepted: int
    rejected: int
    database_path: Path
    lexfile_dir: Path
    statistics: Counter[str] = field(default_factory=Counter)


class CrownCreator:
    """Run the iterative build over a set of candidate entries."""

    def __init__(
        self,
        config: BuildConfig | None = None,
        annotator: Annotator | None = None,
        similarity_factory: SimilarityFactory | None = None,
    ) -> None:
        self.config = config or BuildConfig()
        self._annotator = annotator
        self._similarity_factory = similarity_factory
        self.counters = CounterService()
        self.closures = ClosureCache()
        self._similarity: SimilarityFunction | None = None
        self._pipeline: IntegrationPipeline | None = None

    @property
    def annotator(self) -> Annotator:
        if self._annotator is None:
            self._annotator = SpacyAnnotator(self.config.spacy_model)
        return self._annotator

    def build(
        self,
        entries: Iterable[LexicalEntry],
        database_path: str | Path,
        output_dir: str | Path,
        iterations: int | None = None,
        *,
        lexfile_dir: str | Path | None = None,
        work_dir: str | Path | None = None,
    ) -> list[PassReport]:
        """Run ``iterations`` passes and return one report per pass.

        ``database_path`` is never modified: pass 0 works on a copy, into
        which the ``*.exc`` files of ``lexfile_dir`` are loaded.

        Raises:
            CompilerError: If a pass produces a database with fatal errors.
        """
        iterations = self.config.iterations if iterations is None else iterations
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        work_dir = Path(work_dir) if work_dir is not None else output_dir
        work_dir.mkdir(parents=True, exist_ok=True)

        base = self._prepare_base(Path(database_path), work_dir, lexfile_dir)
        state = BuildState(0, base, tuple(entries))
        logger.info("Building from %d candidate entries", len(state.remaining))

        reports = []
        while state.pass_index < iterations:
            report, state = self.run_pass(state, output_dir)
            reports.append(report)
        logger.info(
            "Build finished after %d passes; %d entries never classified",
            len(reports), len(state.remaining),
        )
        return reports

    def _prepare_base(
        self, database_path: Path, work_dir: Path, lexfile_dir: str | Path | None,
    ) -> Path:
        if not database_path.exists():
            raise FileNotFoundError(f"File not found: {database_path}")
        target = work_dir / "crown-base.db"
        with LexiconEditor(database_path) as source:
            with source.copy_to(target) as editor:
                if lexfile_dir is not None:
                    editor.import_exceptions(lexfile_dir)
        return target

    # ------------------------------------------------------------------
    # One pass
    # ------------------------------------------------------------------

    def run_pass(
        self, state: BuildState, output_dir: Path,
    ) -> tuple[PassReport, BuildState]:
        """Run one pass and return its report and the next state."""
        i = state.pass_index
        logger.info("Starting pass %d with %d entries", i, len(state.remaining))
        target_path = output_dir / f"crown-iter-{i}.db"
        lexfile_dir = output_dir / f"lexfiles-iter-{i}"

        with LexiconEditor(state.database_path) as source:
            db = source.snapshot()
            pipeline = self._prepare(db, state.remaining)
            results = self.classify(pipeline, state.remaining)
            placement = PlacementEngine(
                db, self.counters, self.config, iteration=i,
            ).place(results.values())
            write_operation_log(
                placement.accepted, output_dir / f"operations-log.{i}.tsv",
            )
            with Grind(self.config).create_db(
                source, placement.edits, target_path,
            ) as result:
                export_lexfiles(result.connection, lexfile_dir)
                export_exceptions(result.connection, lexfile_dir)
                export_lexnames(result.connection, lexfile_dir)

        statistics = operation_statistics(placement.accepted)
        for key, count in statistics.most_common():
            logger.info("%s\t%d", key, count)

        report = PassReport(
            pass_index=i,
            attempted=len(state.remaining),
            classified=len(results),
            accepted=len(placement.accepted),
            rejected=len(placement.rejected),
            database_path=target_path,
            lexfile_dir=lexfile_dir,
            statistics=statistics,
        )
        logger.info(
            "Pass %d: %d of %d entries classified, %d integrated",
            i, report.classified, report.attempted, report.accepted,
        )
        return report, BuildState(
            i + 1, target_path, self._remaining(state, results, placement),
        )

    def _prepare(
        self, db: LexicalDatabase, entries: Sequence[LexicalEntry],
    ) -> IntegrationPipeline:
        """Point the similarity function and every procedure at ``db``."""
        self.closures.invalidate()
        warm = getattr(self.annotator, "warm", None)
        if warm is not None:
            warm(
                cleaned
                for e in entries
                for _raw, cleaned in e.raw_glosses
                if cleaned
            )
        if self._similarity is None:
            factory = self._similarity_factory or self._default_similarity
            self._similarity = factory(entries, db)
        else:
            self._similarity.reset(db, entries)
        if self._pipeline is None:
            self._pipeline = IntegrationPipeline(
                default_procedures(db, self._similarity, self.annotator, self.closures),
                default_augmenters(db, self._similarity, self.config.excluded_domains),
            )
        else:
            self._pipeline.set_dictionary(db)
        return self._pipeline

    def _default_similarity(
        self, entries: Sequence[LexicalEntry], db: LexicalDatabase,
    ) -> SimilarityFunction:
        return InvFreqSimilarity(entries, db, self.annotator)

    def classify(
        self, pipeline: IntegrationPipeline, entries: Sequence[LexicalEntry],
    ) -> dict[str, AnnotatedLexicalEntry]:
        """Integrate every entry on the worker pool; keyed by entry id."""
        results: dict[str, AnnotatedLexicalEntry] = {}
        interval = self.config.progress_interval
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            for n, result in enumerate(pool.map(pipeline.integrate, entries), 1):
                if result is not None:
                    results[result.id] = result
                if interval and n % interval == 0:
                    logger.info(
                        "Processed %d entries, attached %d tentatively",
                        n, len(results),
                    )
        return results

    def _remaining(
        self,
        state: BuildState,
        results: dict[str, AnnotatedLexicalEntry],
        placement: PlacementResult,
    ) -> tuple[LexicalEntry, ...]:
        keep = set(placement.rejected) if self.config.resubmit_dropped else set()
        return tuple(
            entry for entry in state.remaining
            if entry.id not in results or entry.id in keep
        )


# ---------------------------------------------------------------------------
# Operation log and statistics
# ---------------------------------------------------------------------------

def operation_log_rows(ale: AnnotatedLexicalEntry) -> list[list[str]]:
    """One row per operation, then one per lexicalization."""
    entry = [ale.lemma, ale.pos.value, ale.id]
    rows = []
    for op in ale.operations():
        target = op.target
        rows.append(entry + [
            ale.gloss,
            op.kind.value,
            target.id,
            ",".join(target.lemmas),
            target.gloss,
            op.reason.to_json(),
        ])
    for lex in ale.lexicalizations:
        rows.append(entry + ["Lexicalization", lex.base_form, lex.reason.to_json()])
    return rows


def write_operation_log(
    accepted: Iterable[AnnotatedLexicalEntry], path: str | Path,
) -> None:
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, delimiter="\t", lineterminator="\n")
            for ale in accepted:
                writer.writerows(operation_log_rows(ale))
    except OSError as e:
        raise ExportError(f"Cannot write {path}: {e}") from e


def operation_statistics(accepted: Iterable[AnnotatedLexicalEntry]) -> Counter[str]:
    """Count accepted operations by ``Origin:Operation``."""
    counts: Counter[str] = Counter()
    for ale in accepted:
        for op in ale.operations():
            counts[f"{op.reason.origin}:{op.kind.value}"] += 1
        for lex in ale.lexicalizations:
            counts[f"{lex.reason.origin}:Lexicalization"] += 1
    return counts

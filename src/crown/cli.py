"""
Command-line interface for building and exporting crown databases.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from crown import __version__
from crown.config import BuildConfig, load_config
from crown.editor import LexiconEditor
from crown.exceptions import ConfigError, CrownError
from crown.exporter import export_exceptions, export_lexfiles, export_lexnames

# File kept in the temporary directory for --cached builds.
CACHE_FILENAME = "preprocessed.jsonl"


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the crown CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    _configure_logging(getattr(args, "verbose", 0))
    try:
        return args.func(args)
    except ConfigError as e:
        line_info = f" (line {e.line})" if e.line else ""
        print(f"\n  [CONFIG ERROR] {e}{line_info}", file=sys.stderr)
        return 1
    except (CrownError, FileNotFoundError) as e:
        print(f"\n  [ERROR] {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="crown",
        description="Grow a WordNet database with entries mined from Wiktionary",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # build command
    build_parser = subparsers.add_parser(
        "build",
        help="Integrate Wiktionary entries into a WordNet database",
    )
    build_parser.add_argument(
        "wordnet_db",
        type=Path,
        help="Base crown database (left unmodified)",
    )
    build_parser.add_argument(
        "lexfile_dir",
        type=Path,
        help="Base lexicographer directory holding the *.exc files",
    )
    build_parser.add_argument(
        "output_dir",
        type=Path,
        help="Directory for the databases, lexicographer files and logs",
    )
    build_parser.add_argument(
        "-i", "--iterations",
        type=int,
        default=None,
        help="Number of passes (default: 3, or the config file's value)",
    )
    source = build_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--wiktextract",
        type=Path,
        metavar="FILE",
        help="wiktextract JSON-lines dump",
    )
    source.add_argument(
        "--preprocessed",
        type=Path,
        metavar="FILE",
        help="Preprocessed JSON-lines entries",
    )
    source.add_argument(
        "--cached",
        action="store_true",
        help=f"Reuse the {CACHE_FILENAME} left in the temporary directory",
    )
    build_parser.add_argument(
        "--save-preprocessed",
        type=Path,
        metavar="FILE",
        help="Write the entries read in the preprocessed format",
    )
    build_parser.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="YAML build configuration",
    )
    build_parser.add_argument(
        "--tmp-dir",
        type=Path,
        metavar="DIR",
        help="Directory for working files (default: OUTPUT_DIR/tmp)",
    )
    _add_verbosity(build_parser)
    build_parser.set_defaults(func=cmd_build)

    # import-wn command
    import_parser = subparsers.add_parser(
        "import-wn",
        help="Create a crown database from a lexicon installed in wn",
    )
    import_parser.add_argument(
        "specifier",
        help="wn lexicon specifier, e.g. oewn:2024",
    )
    import_parser.add_argument(
        "db",
        type=Path,
        help="Database file to create",
    )
    import_parser.add_argument(
        "--exceptions",
        type=Path,
        metavar="DIR",
        help="Directory with noun.exc, verb.exc, adj.exc and adv.exc",
    )
    _add_verbosity(import_parser)
    import_parser.set_defaults(func=cmd_import_wn)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Write lexicographer and exception files for a database",
    )
    export_parser.add_argument(
        "db",
        type=Path,
        help="Crown database",
    )
    export_parser.add_argument(
        "directory",
        type=Path,
        help="Output directory",
    )
    _add_verbosity(export_parser)
    export_parser.set_defaults(func=cmd_export)

    return parser


def _add_verbosity(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-v", "--verbose",
        action="store_const",
        const=1,
        default=0,
        help="Print progress",
    )
    group.add_argument(
        "-V", "--very-verbose",
        action="store_const",
        const=2,
        dest="verbose",
        help="Print debugging output",
    )


def _configure_logging(verbosity: int) -> None:
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def cmd_build(args: argparse.Namespace) -> int:
    """Handle build command."""
    from crown.creator import CrownCreator
    from crown.reader import load_preprocessed, load_wiktextract, save_preprocessed

    config = load_config(args.config) if args.config else BuildConfig()
    tmp_dir = args.tmp_dir or args.output_dir / "tmp"
    tmp_dir.mkdir(parents=True, exist_ok=True)

    if args.wiktextract:
        entries = load_wiktextract(args.wiktextract)
    elif args.preprocessed:
        entries = load_preprocessed(args.preprocessed)
    else:
        entries = load_preprocessed(tmp_dir / CACHE_FILENAME)
    print(f"Loaded {len(entries)} entries")

    if args.save_preprocessed:
        save_preprocessed(entries, args.save_preprocessed)
    if not args.cached:
        save_preprocessed(entries, tmp_dir / CACHE_FILENAME)

    creator = CrownCreator(config)
    reports = creator.build(
        entries,
        args.wordnet_db,
        args.output_dir,
        args.iterations,
        lexfile_dir=args.lexfile_dir,
        work_dir=tmp_dir,
    )

    print("\nResults:")
    for report in reports:
        print(
            f"  Pass {report.pass_index}: {report.accepted} integrated, "
            f"{report.classified} classified of {report.attempted}"
        )
    if reports:
        print(f"\nFinal database: {reports[-1].database_path}")
        print(f"Lexicographer files: {reports[-1].lexfile_dir}")
    return 0


def cmd_import_wn(args: argparse.Namespace) -> int:
    """Handle import-wn command."""
    with LexiconEditor.from_wn(args.specifier, args.db) as editor:
        if args.exceptions:
            count = editor.import_exceptions(args.exceptions)
            print(f"Imported {count} exception pairs")
        synsets = editor.connection.execute("SELECT COUNT(*) FROM synsets").fetchone()[0]
    print(f"Created {args.db} with {synsets} synsets")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Handle export command."""
    if not args.db.exists():
        raise FileNotFoundError(f"File not found: {args.db}")
    with LexiconEditor(args.db) as editor:
        paths = export_lexfiles(editor.connection, args.directory)
        paths += export_exceptions(editor.connection, args.directory)
        paths.append(export_lexnames(editor.connection, args.directory))
    print(f"Wrote {len(paths)} files to {args.directory}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

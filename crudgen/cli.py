# File: crudgen/cli.py
"""
crudgen - Command-Line Interface
================================

Sub-command CLI built with the standard-library ``argparse`` module.

Usage examples::

    # What can be generated?
    crudgen --database-url mysql+pymysql://root:pw@localhost/app list:tables

    # Full slice from a live table, then register routes and menu
    crudgen gen:crud --table=articles --module=admin --auto-register

    # Back-end only, from an edited config document, preview first
    crudgen gen:crud --config=configs/crud/article.yaml --frontend=false --dry-run --verbose

    # Model file only
    crudgen gen:model --table=users --force

    # Write a config document to edit by hand
    crudgen init:config --table=articles --output=configs/crud

Exit codes:
    0   success (per-file errors are reported on stderr)
    1   unexpected internal error
    2   invalid input (arguments, config document, no primary key)
    3   catalog unavailable
    4   splice failure (anchor not found, unreadable target)
    130 cancelled by SIGINT
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, NoReturn, Optional, Sequence

from pydantic import ValidationError

from crudgen.errors import (
    CatalogUnavailable,
    CrudgenError,
    InvalidInput,
    NoPrimaryKey,
    PatternNotFound,
)
from crudgen.generator import CRUDGenerator
from crudgen.models import (
    AutoRegisterOptions,
    CRUDConfig,
    GenerateOptions,
    GenerateResult,
    SpliceResult,
)
from crudgen.settings import CrudgenSettings, load_settings

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_INTERNAL_ERROR: int = 1
EXIT_INPUT_ERROR: int = 2
EXIT_CATALOG_ERROR: int = 3
EXIT_SPLICE_ERROR: int = 4
EXIT_CANCELLED: int = 130


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root crudgen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("crudgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

_TRUE_WORDS = frozenset({"true", "yes", "1", "on"})
_FALSE_WORDS = frozenset({"false", "no", "0", "off"})


def _parse_bool(value: str) -> bool:
    lowered: str = value.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    raise argparse.ArgumentTypeError(
        f"expected one of true/false, yes/no, 1/0, on/off; got '{value}'"
    )


def _add_table_source(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument(
        "--table",
        type=str,
        required=required,
        metavar="NAME",
        help="Table to introspect.",
    )


def _add_module(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--module",
        type=str,
        default=None,
        metavar="NAME",
        help="Back-end module the code belongs to (default: settings.default_module).",
    )


def _add_synthetic_key(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--synthetic-key",
        action="store_true",
        default=False,
        help="Add an auto-increment 'id' primary key when the table has none.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from crudgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="crudgen",
        description=(
            "crudgen - CRUD Code Generator.\n\n"
            "Reads a table definition from a live catalog (or an edited config "
            "document) and emits a Go back-end slice plus a Vue 3 admin slice."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s list:tables\n"
            "  %(prog)s gen:crud --table=articles --auto-register\n"
            "  %(prog)s gen:crud --config=configs/crud/article.yaml --dry-run --verbose\n"
            "  %(prog)s init:config --table=articles\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"crudgen v{__version__}",
    )

    # --- Catalog ---
    catalog_group = parser.add_argument_group("catalog")
    catalog_group.add_argument(
        "--database-url",
        type=str,
        default=None,
        metavar="URL",
        help="SQLAlchemy URL of the catalog (default: CRUDGEN_DATABASE_URL).",
    )
    catalog_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Catalog connect/query timeout (default: CRUDGEN_CATALOG_TIMEOUT).",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v",
        dest="verbosity",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output.",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    # --- list:tables ---
    commands.add_parser("list:tables", help="Print the tables of the catalog.")

    # --- gen:model ---
    gen_model = commands.add_parser("gen:model", help="Emit the model file only.")
    _add_table_source(gen_model, required=True)
    _add_module(gen_model)
    gen_model.add_argument("--output", type=str, default=None, metavar="DIR",
                           help="Output root (default: settings.output_dir).")
    gen_model.add_argument("--force", action="store_true", default=False,
                           help="Overwrite existing files.")
    _add_synthetic_key(gen_model)

    # --- gen:crud ---
    gen_crud = commands.add_parser("gen:crud", help="Emit the full CRUD slice.")
    source = gen_crud.add_mutually_exclusive_group(required=True)
    source.add_argument("--table", type=str, metavar="NAME", help="Table to introspect.")
    source.add_argument("--config", type=str, metavar="FILE", help="Config document to load.")
    _add_module(gen_crud)
    gen_crud.add_argument("--output", type=str, default=None, metavar="DIR",
                          help="Output root (default: settings.output_dir).")
    gen_crud.add_argument("--frontend", type=_parse_bool, default=True, metavar="BOOL",
                          help="Also emit the front-end artifacts (default: true).")
    gen_crud.add_argument("--force", action="store_true", default=False,
                          help="Overwrite existing files.")
    gen_crud.add_argument("--auto-register", action="store_true", default=False,
                          help="Splice routes and the menu entry after a successful run.")
    gen_crud.add_argument("--dry-run", action="store_true", default=False,
                          help="Render everything, write nothing.")
    gen_crud.add_argument("--verbose", dest="show_content", action="store_true", default=False,
                          help="With --dry-run, print every rendered file.")
    _add_synthetic_key(gen_crud)

    # --- init:config ---
    init_config = commands.add_parser("init:config", help="Write a config document for a table.")
    _add_table_source(init_config, required=True)
    init_config.add_argument("--output", type=str, default=None, metavar="DIR",
                             help="Directory for the document (default: settings.config_dir).")
    _add_module(init_config)
    _add_synthetic_key(init_config)

    return parser


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_config_summary(cfg: CRUDConfig) -> None:
    print(
        f"{cfg.model_name} ({cfg.table}) → module {cfg.module}, "
        f"resource /{cfg.resource_name}, {len(cfg.fields)} field(s)"
    )


def _print_result(result: GenerateResult, show_content: bool) -> None:
    for item in result.files:
        if item.error:
            print(f"error {item.path}: {item.error}", file=sys.stderr)
        elif item.skipped:
            print(f"skipped {item.path}")
        else:
            print(f"created {item.path}")
            if show_content and item.content is not None:
                print(f"----- {item.path} -----")
                print(item.content, end="" if item.content.endswith("\n") else "\n")
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)


def _print_splices(results: List[SpliceResult]) -> None:
    for item in results:
        if item.status == "error":
            print(f"{item.target}: error {item.path}: {item.message}", file=sys.stderr)
        else:
            print(f"{item.target}: {item.message} {item.path}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _module(args: argparse.Namespace, settings: CrudgenSettings) -> str:
    return args.module or settings.default_module


def _cmd_list_tables(
    args: argparse.Namespace,
    generator: CRUDGenerator,
    settings: CrudgenSettings,
) -> int:
    tables: List[str] = generator.list_tables()
    if not tables:
        print("No tables found.")
        return EXIT_SUCCESS
    width: int = len(str(len(tables)))
    for index, name in enumerate(tables, start=1):
        print(f"{index:>{width}}. {name}")
    return EXIT_SUCCESS


def _cmd_gen_model(
    args: argparse.Namespace,
    generator: CRUDGenerator,
    settings: CrudgenSettings,
) -> int:
    cfg: CRUDConfig = generator.generate_config_from_table(
        args.table, _module(args, settings), synthetic_key=args.synthetic_key
    )
    _print_config_summary(cfg)
    opts: GenerateOptions = GenerateOptions(
        output_dir=args.output or settings.output_dir,
        force=args.force,
    )
    result: GenerateResult = generator.generate_model(cfg, opts)
    _print_result(result, show_content=False)
    print(result.summary())
    return EXIT_CANCELLED if result.cancelled else EXIT_SUCCESS


def _cmd_gen_crud(
    args: argparse.Namespace,
    generator: CRUDGenerator,
    settings: CrudgenSettings,
) -> int:
    if args.config:
        cfg: CRUDConfig = generator.load_config(args.config)
        if args.module:
            cfg = cfg.model_copy(update={"module": args.module})
    else:
        cfg = generator.generate_config_from_table(
            args.table, _module(args, settings), synthetic_key=args.synthetic_key
        )
    _print_config_summary(cfg)

    output_dir: str = args.output or settings.output_dir
    opts: GenerateOptions = GenerateOptions(
        output_dir=output_dir,
        with_frontend=args.frontend,
        force=args.force,
        dry_run=args.dry_run,
        verbose=args.show_content,
    )
    result: GenerateResult = generator.generate_crud(cfg, opts)
    _print_result(result, show_content=args.dry_run and args.show_content)

    if result.cancelled:
        print(result.summary())
        return EXIT_CANCELLED

    exit_code: int = EXIT_SUCCESS
    if args.auto_register and result.success:
        splices: List[SpliceResult] = generator.auto_register(
            cfg,
            AutoRegisterOptions(
                register_frontend=args.frontend,
                register_menu=args.frontend,
                dry_run=args.dry_run,
                project_root=output_dir,
            ),
        )
        _print_splices(splices)
        if any(not s.ok for s in splices):
            exit_code = EXIT_SPLICE_ERROR
    elif args.auto_register:
        logger.warning("Generation reported errors; auto-register skipped.")

    print(result.summary())
    return exit_code


def _cmd_init_config(
    args: argparse.Namespace,
    generator: CRUDGenerator,
    settings: CrudgenSettings,
) -> int:
    cfg: CRUDConfig = generator.generate_config_from_table(
        args.table, _module(args, settings), synthetic_key=args.synthetic_key
    )
    path: Path = generator.save_config(cfg, args.output or settings.config_dir)
    print(f"created {path}")
    return EXIT_SUCCESS


_COMMANDS: Dict[str, Callable[[argparse.Namespace, CRUDGenerator, CrudgenSettings], int]] = {
    "list:tables": _cmd_list_tables,
    "gen:model": _cmd_gen_model,
    "gen:crud": _cmd_gen_crud,
    "init:config": _cmd_init_config,
}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _run(args: argparse.Namespace) -> int:
    try:
        settings: CrudgenSettings = load_settings()
    except ValidationError as exc:
        print(f"error: invalid CRUDGEN_* settings: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    generator: CRUDGenerator = CRUDGenerator(
        args.database_url or settings.database_url,
        timeout=args.timeout if args.timeout is not None else settings.catalog_timeout,
        labels=settings.labels,
        titles=settings.titles,
    )

    def _on_sigint(signum: int, frame: Any) -> None:
        logger.warning("Interrupt received; stopping after the current file.")
        generator.cancel()

    previous: Any = signal.signal(signal.SIGINT, _on_sigint)
    try:
        return _COMMANDS[args.command](args, generator, settings)
    except (InvalidInput, NoPrimaryKey) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except CatalogUnavailable as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CATALOG_ERROR
    except PatternNotFound as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_SPLICE_ERROR
    except CrudgenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR
    except KeyboardInterrupt:
        print("cancelled", file=sys.stderr)
        return EXIT_CANCELLED
    except Exception:
        logger.exception("Unexpected error while running %s.", args.command)
        return EXIT_INTERNAL_ERROR
    finally:
        signal.signal(signal.SIGINT, previous)
        generator.close()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbosity

    _setup_logging(verbosity)
    logger.info("Command: %s", args.command)

    exit_code: int = _run(args)
    if exit_code != EXIT_SUCCESS:
        logger.error("%s failed with exit code %d.", args.command, exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_INTERNAL_ERROR",
    "EXIT_INPUT_ERROR",
    "EXIT_CATALOG_ERROR",
    "EXIT_SPLICE_ERROR",
    "EXIT_CANCELLED",
]

logger.debug("crudgen.cli loaded.")

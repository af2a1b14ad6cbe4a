import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from csvconsolidate.cli.visuals import get_visuals_backend, render_summary
from csvconsolidate.config.options import (
    DEFAULT_DELIMITER,
    DEFAULT_OUTPUT,
    DEFAULT_ROOT,
    LOG_LEVEL_CHOICES,
    VISUAL_CHOICES,
)
from csvconsolidate.config.resolution import (
    resolve_log_level,
    resolve_run_config,
    resolve_visuals,
)
from csvconsolidate.config.run import validate_delimiter
from csvconsolidate.config.workspace import load_workspace_context
from csvconsolidate.errors import InvalidDelimiterError, RootTraversalError
from csvconsolidate.pipeline.runner import consolidate

logger = logging.getLogger("csvconsolidate.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csv-consolidate",
        description=(
            "Merge the CSV files of every immediate subdirectory of ROOT into "
            "OUTPUT/<subdirectory>.csv, reordering columns to the header of the "
            "alphabetically first file."
        ),
    )
    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help=f"directory whose subdirectories are consolidated (default: {DEFAULT_ROOT})",
    )
    parser.add_argument(
        "output",
        nargs="?",
        default=None,
        help=f"output directory (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "delimiter",
        nargs="?",
        default=None,
        help=f"single ASCII field delimiter (default: {DEFAULT_DELIMITER!r})",
    )
    parser.add_argument(
        "--input-encoding",
        default=None,
        help="encoding used to read source files (default: utf-8)",
    )
    parser.add_argument(
        "--output-encoding",
        default=None,
        help="encoding used for written files; utf-8-sig adds a BOM (default: utf-8)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVEL_CHOICES,
        type=str.upper,
        help="set logging level (default: INFO)",
    )
    parser.add_argument(
        "--visuals",
        choices=VISUAL_CHOICES,
        type=str.lower,
        default=None,
        help="progress renderer: auto (rich on a terminal), tqdm, rich, or off",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Delimiter is checked before anything touches the filesystem.
    if args.delimiter is not None:
        try:
            validate_delimiter(args.delimiter)
        except InvalidDelimiterError as exc:
            parser.error(str(exc))

    try:
        workspace = load_workspace_context(Path.cwd())
    except (TypeError, ValueError) as exc:
        parser.error(f"invalid workspace config: {exc}")

    shared = workspace.config.shared if workspace else None
    log_decision = resolve_log_level(
        args.log_level,
        shared.log_level if shared else None,
    )
    logging.basicConfig(level=log_decision.value, format="%(message)s")
    root_logger = logging.getLogger()
    if root_logger.level != log_decision.value:
        root_logger.setLevel(log_decision.value)
    if workspace is not None:
        logger.debug("Using workspace config %s", workspace.file_path)

    try:
        config = resolve_run_config(
            cli_root=args.root,
            cli_output=args.output,
            cli_delimiter=args.delimiter,
            cli_input_encoding=args.input_encoding,
            cli_output_encoding=args.output_encoding,
            workspace=workspace,
        )
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        raise SystemExit(2) from exc

    visuals = resolve_visuals(
        cli_visuals=args.visuals,
        workspace_visuals=shared.visuals if shared else None,
    )
    backend = get_visuals_backend(visuals)

    try:
        with backend.observe() as observer:
            report = consolidate(config, observer=observer)
    except RootTraversalError as exc:
        logger.error("Error: %s", exc)
        if exc.__cause__ is not None:
            logger.debug("Caused by: %r", exc.__cause__)
        raise SystemExit(1) from exc

    render_summary(backend, report)


if __name__ == "__main__":
    main()

"""Command-line entry points for medquiz."""

from __future__ import annotations

import argparse
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from . import config as config_mod
from .client import OpenAITextClient
from .core import data_dir
from .core.logging import configure_logger
from .session import QuizSession
from .view.app import QuizApp, SetupPreset


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="medquiz",
        description=(
            "Practice medical multiple-choice questions generated on demand."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the installed version and exit.",
    )
    subparsers = parser.add_subparsers(dest="command")

    start_parser = subparsers.add_parser(
        "start",
        help="Open the interactive quiz.",
    )
    _add_config_argument(start_parser)
    start_parser.add_argument(
        "--subject",
        help="Subject to pre-select on the setup screen.",
    )
    start_parser.add_argument(
        "--sub-topic",
        dest="sub_topic",
        help="Sub-topic to pre-select; with --subject the quiz starts at once.",
    )
    start_parser.add_argument(
        "--time",
        type=int,
        help="Seconds allowed per question (0 = untimed).",
    )
    start_parser.add_argument(
        "--num",
        type=int,
        help="Number of questions in the run (0 = unlimited).",
    )
    start_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror debug logs to stderr.",
    )

    subjects_parser = subparsers.add_parser(
        "subjects",
        help="List the subject catalog.",
    )
    _add_config_argument(subjects_parser)
    subjects_parser.add_argument(
        "--subject",
        help="Only show sub-topics for this subject.",
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Manage the medquiz configuration file.",
    )
    _build_config_subcommands(config_parser)
    return parser


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a config TOML (defaults to the data home).",
    )


def _build_config_subcommands(parent: argparse.ArgumentParser) -> None:
    subparsers = parent.add_subparsers(dest="config_command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Write the default configuration template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help="Destination for the config TOML (defaults to data home).",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file if present.",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate the active configuration file.",
    )
    validate_parser.add_argument(
        "--path",
        type=Path,
        help="Path to the config TOML (defaults to the resolved location).",
    )
    validate_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress success output; errors still print to stderr.",
    )

    subparsers.add_parser(
        "path",
        help="Print the resolved config path.",
    )


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    out = console or Console()

    if args.version:
        return _handle_version(out)
    if args.command == "start":
        return _handle_start(args)
    if args.command == "subjects":
        return _handle_subjects(args, out)
    if args.command == "config":
        return _handle_config(args, out)
    parser.print_help()
    return 2


def _handle_version(console: Console) -> int:
    try:
        version = metadata.version("medquiz")
    except metadata.PackageNotFoundError:
        version = "unknown"
    console.print(version)
    return 0


def _load(explicit: Optional[Path]) -> Optional[config_mod.AppConfig]:
    try:
        return config_mod.load_config(explicit_path=explicit)
    except config_mod.ConfigError as exc:
        sys.stderr.write(f"{exc}\n")
        return None


def _handle_start(args: argparse.Namespace) -> int:
    cfg = _load(args.config)
    if cfg is None:
        return 2
    try:
        logs = data_dir.logs_dir()
    except data_dir.DataDirError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    logger, log_path = configure_logger(
        "medquiz",
        log_dir=logs,
        level=cfg.logging.level,
        verbose=bool(args.verbose or cfg.logging.verbose),
    )
    logger.debug("medquiz start invoked", extra={"log_path": log_path})

    openai_cfg = cfg.openai
    try:
        client = OpenAITextClient(
            model=openai_cfg.chat_model,
            temperature=openai_cfg.temperature,
            max_output_tokens=openai_cfg.max_output_tokens,
            request_timeout=openai_cfg.request_timeout_seconds,
            api_base=openai_cfg.api_base,
            logger=logger,
        )
    except RuntimeError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    preset = SetupPreset(
        subject=args.subject,
        sub_topic=args.sub_topic,
        time_limit=args.time,
        question_limit=args.num,
    )
    app = QuizApp(
        QuizSession(client, logger=logger),
        catalog=cfg.catalog,
        quiz_config=cfg.quiz,
        preset=preset,
        logger=logger,
    )
    app.run()
    return 0


def _handle_subjects(args: argparse.Namespace, console: Console) -> int:
    cfg = _load(args.config)
    if cfg is None:
        return 2
    catalog = cfg.catalog
    if args.subject:
        topics = catalog.sub_topics(args.subject)
        if not topics:
            sys.stderr.write(f"Unknown subject '{args.subject}'.\n")
            return 1
        subjects = [args.subject]
    else:
        subjects = catalog.subjects()

    table = Table(title="Subjects", box=box.SIMPLE, expand=False)
    table.add_column("Subject", style="bold cyan")
    table.add_column("Sub-topics")
    for subject in subjects:
        table.add_row(subject, ", ".join(catalog.sub_topics(subject)))
    console.print(table)
    return 0


def _handle_config(args: argparse.Namespace, console: Console) -> int:
    if args.config_command == "init":
        target = args.path or config_mod.resolve_config_path()
        try:
            written = config_mod.write_template(target, overwrite=args.force)
        except config_mod.ConfigError as exc:
            sys.stderr.write(f"{exc}\n")
            return 1
        console.print(f"Wrote config template to {written}")
        return 0
    if args.config_command == "path":
        console.print(str(config_mod.resolve_config_path()))
        return 0
    if args.config_command == "validate":
        target = config_mod.resolve_config_path(explicit_path=args.path)
        if not target.exists():
            sys.stderr.write(f"Config file not found: {target}\n")
            return 1
        if _load(target) is None:
            return 1
        if not args.quiet:
            console.print(f"Config OK: {target}")
        return 0
    return 2  # pragma: no cover - argparse enforces the choices


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())

"""CLI entrypoints for resolvergen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .frontends import FrontendUnavailableError
from .generators import BUILTIN_GENERATORS
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_project_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    parser.add_argument(
        "-k",
        "--kind",
        dest="kinds",
        action="append",
        metavar="KIND",
        help=(
            "Generator kind to run; repeatable. "
            f"Known kinds: {', '.join(BUILTIN_GENERATORS)} (defaults to all enabled)."
        ),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resolvergen",
        description="Generate field resolver units for [InjectDependency] and [SceneNode] markers.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate resolver units for every marked partial class.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_project_arguments(generate_parser)
    generate_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Directory for generated units (defaults to output_dir or ./Generated).",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be generated without writing files.",
    )
    generate_parser.add_argument(
        "--debug-dump",
        type=Path,
        help="Write a diagnostic dump of fields, hierarchy chains and generated text.",
    )
    generate_parser.add_argument(
        "--workers",
        type=int,
        help="Number of worker threads used per generator kind.",
    )
    generate_parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write DEBUG-level logs to this file.",
    )

    list_parser = subparsers.add_parser(
        "list",
        help="List candidate classes per generator kind.",
    )
    _add_verbose_option(list_parser, suppress_default=True)
    _add_project_arguments(list_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for resolvergen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=args.command == "list",
        log_file=getattr(args, "log_file", None),
    )

    orchestrator = Orchestrator()

    if args.command == "generate":
        if args.workers is not None and args.workers < 1:
            parser.exit(2, "--workers must be at least 1\n")
        try:
            outcome = orchestrator.run_generate(
                args.path,
                kinds=args.kinds,
                output_dir=args.output,
                dry_run=bool(args.dry_run),
                debug_dump=args.debug_dump,
                workers=args.workers,
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        except (ConfigError, FrontendUnavailableError, ValueError) as exc:
            parser.exit(1, f"resolvergen generate failed: {exc}\n")

        for unit in outcome.result.units:
            prefix = "would write" if outcome.dry_run else "generated"
            print(f"{prefix} {_relativize(outcome.output_dir / unit.file_name)}")
        if outcome.report is not None:
            for removed in outcome.report.removed:
                print(f"removed {_relativize(removed)}")
        if outcome.result.failures:
            for failure in outcome.result.failures:
                print(f"error: {failure.describe()}", file=sys.stderr)
            parser.exit(
                1,
                f"{len(outcome.result.failures)} candidate(s) failed; "
                "other units were generated.\n",
            )
    elif args.command == "list":
        try:
            candidates = orchestrator.run_list(args.path, kinds=args.kinds)
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        except (ConfigError, FrontendUnavailableError, ValueError) as exc:
            parser.exit(1, f"resolvergen list failed: {exc}\n")
        for kind, declarations in candidates.items():
            print(f"{kind}:")
            if not declarations:
                print("  (none)")
            for declaration in declarations:
                print(f"  {declaration.qualified_name} ({declaration.unit_path}:{declaration.line})")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

"""CLI entry point: argument parsing and subcommand dispatch."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from repograph import __version__
from repograph.config import load_config, resolve_path


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Configure the repograph logger: level from --verbose/--quiet or config, console handler,
    optional file handler from config.
    """
    config = load_config(None)
    log_cfg = config.get("logging") or {}
    if verbose:
        level_name = "DEBUG"
    elif quiet:
        level_name = "ERROR"
    else:
        level_name = (log_cfg.get("level") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger("repograph")
    root.setLevel(level)
    if not root.handlers:
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(fmt)
        root.addHandler(console)
        log_file = log_cfg.get("file")
        if log_file:
            try:
                fh = logging.FileHandler(Path(log_file).expanduser(), encoding="utf-8")
                fh.setFormatter(fmt)
                root.addHandler(fh)
            except OSError:
                # Unwritable log file: keep console logging only
                pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repograph",
        description="Extract code entities and their relationships from JavaScript, TypeScript, Java and Python sources.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    log_group = parser.add_mutually_exclusive_group()
    log_group.add_argument("-v", "--verbose", action="store_true", help="Verbose (DEBUG) output.")
    log_group.add_argument("-q", "--quiet", action="store_true", help="Quiet (errors only).")

    # Same flags on subparsers so "repograph analyze . -v" works
    global_flags = argparse.ArgumentParser(add_help=False)
    log_grp = global_flags.add_mutually_exclusive_group()
    log_grp.add_argument("-v", "--verbose", action="store_true", help=argparse.SUPPRESS)
    log_grp.add_argument("-q", "--quiet", action="store_true", help=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    # analyze
    p_analyze = subparsers.add_parser(
        "analyze",
        help="Extract entities and relationships and write them as JSON.",
        parents=[global_flags],
    )
    p_analyze.add_argument("path", type=Path, nargs="?", default=Path("."), help="Project directory or single file (default: .).")
    p_analyze.add_argument("--output", "-o", type=Path, help="Write JSON to this file instead of stdout.")
    p_analyze.add_argument("--workers", "-j", type=int, help="Files extracted in parallel (default: analysis.max_workers).")
    p_analyze.add_argument("--strict", action="store_true", help="Treat files with syntax errors as parse failures.")
    p_analyze.add_argument("--dry-run", action="store_true", help="List the files that would be analyzed and exit.")
    p_analyze.set_defaults(run="analyze")

    # languages
    p_languages = subparsers.add_parser(
        "languages",
        help="List supported extensions, languages and grammars.",
        parents=[global_flags],
    )
    p_languages.add_argument("path", type=Path, nargs="?", default=Path("."), help="Project path for project-local config (default: .).")
    p_languages.add_argument("--check", action="store_true", help="Load every grammar and report failures.")
    p_languages.set_defaults(run="languages")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=getattr(args, "verbose", False),
        quiet=getattr(args, "quiet", False),
    )
    run = getattr(args, "run", None)
    if not run:
        parser.print_help()
        sys.exit(0)

    if hasattr(args, "path"):
        args.path = resolve_path(args.path)

    if run == "analyze":
        from repograph.commands.analyze import run as cmd_run
    elif run == "languages":
        from repograph.commands.languages import run as cmd_run
    else:
        parser.print_help()
        sys.exit(0)

    cmd_run(args)


if __name__ == "__main__":
    main()

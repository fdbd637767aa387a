"""CLI entrypoints for codebundle commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from .aggregator import Aggregator
from .batch import BatchDriver, WatchLoop
from .config import BundleConfig, ConfigError, load_config
from .logging import configure_logging, get_logger, get_report_logger
from .scanner import find_paths


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_engine_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .codebundle.yml or the directory holding it (defaults to current directory).",
    )
    parser.add_argument(
        "--ext",
        dest="extensions",
        action="append",
        default=None,
        help="File extension to include (repeatable, e.g. --ext .ts).",
    )
    parser.add_argument(
        "--exclude",
        dest="exclude_prefixes",
        action="append",
        default=None,
        help="Skip paths starting with this prefix (repeatable).",
    )
    parser.add_argument(
        "--extra-root",
        dest="extra_roots",
        action="append",
        default=None,
        help="Extra directory searched for related files (repeatable).",
    )
    parser.add_argument(
        "--schema",
        default=None,
        help="Schema document to extract model blocks from.",
    )


def _add_batch_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("scan_dir", help="Directory whose file names drive the batch.")
    parser.add_argument(
        "paths",
        nargs="*",
        default=None,
        help="Files or directories to search (defaults to current directory).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Where <name>-code.<ext> artifacts are written.",
    )
    parser.add_argument(
        "--artifact-ext",
        default=None,
        help="Extension of the written artifacts (default ts).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codebundle",
        description="Bundle source files with their related inputs, types and schema models.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    bundle_parser = subparsers.add_parser(
        "bundle",
        help="Bundle files and their related artifacts into one stream.",
    )
    _add_verbose_option(bundle_parser, suppress_default=True)
    _add_engine_options(bundle_parser)
    bundle_parser.add_argument(
        "paths",
        nargs="*",
        help="Files or directories to bundle.",
    )
    bundle_parser.add_argument(
        "--filter",
        dest="name_filter",
        default=None,
        help="Only bundle walked files matching this name, plus their related files.",
    )
    bundle_parser.add_argument(
        "--output",
        default=None,
        help="Write the bundle to this file instead of stdout.",
    )

    batch_parser = subparsers.add_parser(
        "batch",
        help="Write one bundle per file name found in a scan directory.",
    )
    _add_verbose_option(batch_parser, suppress_default=True)
    _add_engine_options(batch_parser)
    _add_batch_options(batch_parser)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Run a batch, then re-bundle names whose files change.",
    )
    _add_verbose_option(watch_parser, suppress_default=True)
    _add_engine_options(watch_parser)
    _add_batch_options(watch_parser)
    watch_parser.add_argument(
        "--watch-dir",
        dest="watch_dirs",
        action="append",
        default=None,
        help="Directory polled for changes (repeatable, defaults to the search paths).",
    )
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between polls.",
    )
    watch_parser.add_argument(
        "--debounce",
        type=float,
        default=None,
        help="Minimum seconds between two re-bundling passes.",
    )

    find_parser = subparsers.add_parser(
        "find",
        help="List files, skipping hidden, asset, coverage, node_modules and mobile trees.",
    )
    _add_verbose_option(find_parser, suppress_default=True)
    find_parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Directory to list (defaults to current directory).",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Expose bundling over HTTP.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for codebundle commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose), quiet=args.quiet, log_file=args.log_file
    )
    logger = get_logger("cli")
    report = get_report_logger()

    if args.command == "find":
        for entry in find_paths(args.root):
            print(entry)
        return

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return

    if args.command == "bundle" and not args.paths:
        parser.exit(1, "codebundle bundle: at least one path is required\n")

    try:
        config = load_config(Path(args.config))
        aggregator = Aggregator.from_config(
            config,
            extensions=args.extensions,
            exclude_prefixes=args.exclude_prefixes,
            schema_path=Path(args.schema) if args.schema else None,
        )
    except (ConfigError, FileNotFoundError) as exc:
        parser.exit(1, f"{exc}\n")
    extra_roots = _extra_roots(args, config)

    if args.command == "bundle":
        result = aggregator.run(args.paths, extra_roots, name_filter=args.name_filter)
        if args.output:
            output = Path(args.output).expanduser()
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(result.text, encoding="utf-8")
            report.info("Bundle written to %s", _relativize(output))
        else:
            sys.stdout.write(result.text)
        return

    driver = _build_driver(args, config, aggregator)
    paths = args.paths or ["."]

    if args.command == "batch":
        try:
            batch = driver.run_all(args.scan_dir, paths, extra_roots)
        except NotADirectoryError as exc:
            parser.exit(1, f"{exc}\n")
        for written in batch.written:
            report.info("Wrote %s", _relativize(written))
        if not batch.written:
            report.info("No content found")
    elif args.command == "watch":
        if not Path(args.scan_dir).expanduser().is_dir():
            parser.exit(1, f"Scan directory not found: {args.scan_dir}\n")
        watch_dirs = args.watch_dirs or [str(item) for item in config.watch.directories] or paths
        loop = WatchLoop(
            driver,
            args.scan_dir,
            watch_dirs,
            paths,
            extra_roots,
            interval=args.interval if args.interval is not None else config.watch.interval,
            debounce=args.debounce if args.debounce is not None else config.watch.debounce,
            walker=aggregator.walker,
        )
        try:
            loop.run()
        except KeyboardInterrupt:
            logger.info("Stopped watching")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _extra_roots(args: argparse.Namespace, config: BundleConfig) -> List[str]:
    if args.extra_roots:
        return list(args.extra_roots)
    return [str(root) for root in config.extra_roots]


def _build_driver(
    args: argparse.Namespace, config: BundleConfig, aggregator: Aggregator
) -> BatchDriver:
    output_dir = Path(args.output_dir) if args.output_dir else config.batch.output_dir
    extension = args.artifact_ext or config.batch.extension
    return BatchDriver(aggregator, output_dir=output_dir, artifact_extension=extension)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

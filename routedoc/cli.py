"""CLI entrypoints for routedoc commands."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import List

from .assembler import DocumentBuilder
from .analyzers.routes import load_route_manifest
from .config import RoutedocConfig, load_config
from .errors import ConfigError, ManifestError
from .logging import configure_logging
from .models import RouteNode


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    verbose_kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    log_file_kwargs: dict[str, object] = {
        "dest": "log_file",
        "metavar": "FILE",
        "help": "Also write timestamped log records to FILE.",
    }
    if suppress_default:
        verbose_kwargs["default"] = argparse.SUPPRESS
        log_file_kwargs["default"] = argparse.SUPPRESS
    else:
        verbose_kwargs["default"] = False
        log_file_kwargs["default"] = None
    parser.add_argument(
        "-v",
        "--verbose",
        **verbose_kwargs,
    )
    parser.add_argument("--log-file", **log_file_kwargs)


def _add_source_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root containing .routedoc.yml (defaults to current directory).",
    )
    parser.add_argument("--routes", help="Route manifest (YAML or JSON) describing the live routes.")
    parser.add_argument("--controllers", help="Directory scanned for controller modules.")
    parser.add_argument("--catalog", help="Entity schema catalog (YAML or JSON).")
    parser.add_argument("--base-url", dest="base_url", help="Server URL declared in the document.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="routedoc",
        description="Generate OpenAPI documents by statically analyzing route handlers.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Build the API document and write it to disk.",
    )
    _add_logging_options(build_parser, suppress_default=True)
    _add_source_options(build_parser)
    build_parser.add_argument("--output", help="Where to write the document (.json or .yaml).")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the API document over HTTP.",
    )
    _add_logging_options(serve_parser, suppress_default=True)
    _add_source_options(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def _resolve_config(args: argparse.Namespace) -> RoutedocConfig:
    config = load_config(Path(args.path))
    overrides: dict[str, object] = {}
    for option, key in (
        ("routes", "routes_file"),
        ("controllers", "controllers_dir"),
        ("catalog", "catalog_file"),
        ("output", "output"),
    ):
        value = getattr(args, option, None)
        if value:
            overrides[key] = Path(value).expanduser().resolve()
    if getattr(args, "base_url", None):
        overrides["base_url"] = args.base_url
    return dataclasses.replace(config, **overrides) if overrides else config


def _load_table(config: RoutedocConfig) -> List[RouteNode]:
    if config.routes_file is None:
        raise ConfigError("No route manifest configured; pass --routes or set `routes` in .routedoc.yml")
    return load_route_manifest(config.routes_file)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for routedoc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file).expanduser() if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    try:
        config = _resolve_config(args)
        table = _load_table(config)
    except (ConfigError, ManifestError) as exc:
        parser.exit(1, f"routedoc {args.command} failed: {exc}\n")

    if args.command == "build":
        builder = DocumentBuilder.from_config(config)
        document = builder.build(table)
        if builder.last_written is not None:
            print(
                f"API document with {len(document['paths'])} paths written to "
                f"{_relativize(builder.last_written)}"
            )
        else:
            parser.exit(1, "routedoc build could not write the document. Run with --verbose for details.\n")
    elif args.command == "serve":  # pragma: no cover - starts a server
        from .service import run_service

        run_service(
            lambda: _load_table(config),
            lambda: DocumentBuilder.from_config(config),
            host=args.host,
            port=args.port,
        )
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

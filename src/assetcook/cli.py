"""``assetcook`` command line.

Subcommands::

    assetcook import SOURCE_ROOT REGISTRY [--prefix P]
    assetcook cook REGISTRY OUTPUT_ROOT [--source-root DIR] [--config FILE] [-I DIR]...
    assetcook validate REGISTRY
    assetcook inspect BLOB [--json]

Exit status is 0 on success and 1 when the command ran but found failures
(an asset that did not cook, registry errors, blob issues). It is 2 when the
command aborted on a cook or I/O error.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from .api import (
    CookOptions,
    ImportOptions,
    cook_registry,
    import_sources,
    inspect_blob_file,
    validate_registry_file,
)
from .errors import CookError
from .logging import configure_logging, get_logger, step
from .registry import asset_type_name
from .reporting import (
    BACKENDS,
    Reporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_ABORTED = 2


def run_import(args: argparse.Namespace) -> int:
    step(f"importing sources from {args.source_root}")
    options = ImportOptions(args.source_root, args.registry, virtual_prefix=args.prefix)
    import_sources(options)
    return EXIT_OK


def run_cook(args: argparse.Namespace) -> int:
    summary = cook_registry(
        CookOptions(
            registry_path=args.registry,
            output_root=args.output_root,
            source_root=args.source_root,
            config_path=args.config,
            include_dirs=args.include_dirs,
        )
    )
    return EXIT_FAILURES if summary.failed else EXIT_OK


def run_validate(args: argparse.Namespace) -> int:
    step(f"validating registry {args.registry}")
    rep = get_reporter()
    problems = validate_registry_file(args.registry)
    for rec in problems:
        rep.error(f"{rec.code}:{rec.path}: {rec.message}")
    rep.status(f"Validate summary: errors={len(problems)} file={Path(args.registry).name}")
    return EXIT_FAILURES if problems else EXIT_OK


def _type_label(value: int) -> str:
    try:
        return asset_type_name(value)
    except ValueError:
        return f"Unknown({value})"


def run_inspect(args: argparse.Namespace) -> int:
    info = inspect_blob_file(args.blob)
    issues = info["issues"]
    rep = get_reporter()
    if args.json:
        rep.flush()
        sys.stdout.write(json.dumps(info, indent=2, sort_keys=True) + "\n")
    else:
        hdr = info["header"]
        rep.status(
            f"Blob summary: type={_type_label(hdr['type'])} desc_size={hdr['desc_size']}"
            f" data_size={hdr['data_size']} srgb={int(hdr['srgb'])} issues={len(issues)}"
        )
        for issue in issues:
            rep.warning(issue)
    return EXIT_FAILURES if issues else EXIT_OK


def make_reporter(name: str) -> Reporter:
    if name == "rich" and not sys.stderr.isatty():
        # no live display without a terminal
        name = "plain"
    return BACKENDS[name]()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetcook", description="Cook source assets into runtime blobs."
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="more output (repeatable)"
    )
    parser.add_argument(
        "-r",
        "--reporter",
        choices=sorted(BACKENDS),
        default="plain",
        help="output backend (default: plain; json emits one event per line)",
    )
    commands = parser.add_subparsers(dest="cmd", metavar="COMMAND", required=True)

    sp = commands.add_parser("import", help="scan a source tree into a registry")
    sp.add_argument("source_root", type=Path)
    sp.add_argument("registry", type=Path)
    sp.add_argument("--prefix", default="", help="virtual path prefix for every asset")
    sp.set_defaults(handler=run_import)

    sp = commands.add_parser("cook", help="cook every asset of a registry")
    sp.add_argument("registry", type=Path)
    sp.add_argument("output_root", type=Path)
    sp.add_argument(
        "--source-root", type=Path, help="source tree (default: the registry's directory)"
    )
    sp.add_argument("--config", type=Path, help="cook config (.yaml, .yml or .json)")
    sp.add_argument(
        "-I",
        "--include-dir",
        dest="include_dirs",
        action="append",
        type=Path,
        default=[],
        help="extra shader include directory (repeatable)",
    )
    sp.set_defaults(handler=run_cook)

    sp = commands.add_parser("validate", help="check a registry file")
    sp.add_argument("registry", type=Path)
    sp.set_defaults(handler=run_validate)

    sp = commands.add_parser("inspect", help="decode a cooked blob")
    sp.add_argument("blob", type=Path)
    sp.add_argument("--json", action="store_true", help="print the decoded blob as JSON")
    sp.set_defaults(handler=run_inspect)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    set_reporter(make_reporter(args.reporter))
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    log = get_logger()
    try:
        return args.handler(args)
    except CookError as exc:
        log.error("%s", exc)
    except OSError as exc:
        log.error("I/O error: %s", exc)
    finally:
        get_reporter().flush()
    return EXIT_ABORTED


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

# -*- coding: utf-8 -*-
"""
LfsCompiler CLI Main Module
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from localize_from_source.core.pipeline import LocalizationPipeline, PipelineResult
from localize_from_source.utils.logger import setup_diagnostics_logger, setup_logger
from localize_from_source.version import APP_NAME, VERSION


def setup_logging(verbose: bool, log_file: Optional[str] = None):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )
    setup_logger(log_file=log_file, level=level)
    setup_diagnostics_logger(log_file=log_file)


def print_result(result: PipelineResult, verbose: bool = False):
    print("=" * 60)
    if result.success:
        print("SUCCESS")
        print(result.message)
        if verbose and result.stats:
            print("\nStatistics:")
            for name, value in result.stats.items():
                print(f"  {name}: {value}")
    else:
        print("FAILED")
        print(result.message)
    print("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lfscompiler", description=f"{APP_NAME} v{VERSION}")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {VERSION}")
    commands = parser.add_subparsers(dest="command", required=True)

    build = commands.add_parser("build", help="Scan a disassembly listing and generate the i18n folder")
    build.add_argument("--listing", "-d", required=True, help="Disassembly listing (JSON) of the compiled mod")
    build.add_argument("--sourceRoot", "-p", dest="source_root", required=True, help="Project folder of the mod")
    build.add_argument("--verify", action="store_true",
                       help="Write nothing; fail if any generated file is out of date (for CI builds)")
    build.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    build.add_argument("--log-file", help="Also write the log to this file")

    ingest = commands.add_parser("ingest", help="Merge a translator's file into i18nSource")
    ingest.add_argument("--translation", "-t", required=True, help="Translated file, named after its locale (e.g. de.json)")
    ingest.add_argument("--sourceRoot", "-p", dest="source_root", required=True, help="Project folder of the mod")
    ingest.add_argument("--author", "-a", required=True,
                        help="Who translated it, as 'platform:id' (e.g. nexus:someone, github:someone)")
    ingest.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    ingest.add_argument("--log-file", help="Also write the log to this file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.log_file)

    source_root = Path(args.source_root).resolve()
    if not source_root.is_dir():
        print(f"Error: The directory specified with --sourceRoot does not exist: {source_root}")
        return 1

    pipeline = LocalizationPipeline(source_root)
    if args.command == "build":
        listing = Path(args.listing)
        if not listing.is_file():
            print(f"Error: The listing specified with --listing does not exist: {listing}")
            return 1
        result = pipeline.build(listing, verify_only=args.verify)
    else:
        result = pipeline.ingest(Path(args.translation), args.author)

    print_result(result, args.verbose)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())

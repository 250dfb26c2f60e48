"""Command line interface for chartmirror.

Examples::

    chartmirror https://charts.example.com/stable stable --all-versions
    chartmirror --config /etc/chartmirror/config.yaml --ignore-errors
"""

import argparse
import sys
from dataclasses import replace
from typing import List, Optional, Tuple

import yaml

from . import __version__
from .common.config import (
    LoggingConfig,
    MirrorOptions,
    RepositoryConfig,
    RepositoryJob,
    load_typed_config,
)
from .common.logger import level_for, setup_logger
from .mirror import MirrorError, MirrorJob


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chartmirror",
        description="Mirror a chart repository's index and archives to local storage.",
    )
    parser.add_argument("url", nargs="?", help="Repository base URL")
    parser.add_argument(
        "name", nargs="?", help="Repository name, used as the mirror directory"
    )
    parser.add_argument("-c", "--config", help="YAML file listing repositories to mirror")
    parser.add_argument(
        "-d", "--destination", help="Directory the mirror directory is created in"
    )
    parser.add_argument("--chart-name", default="", help="Only mirror this chart")
    parser.add_argument("--chart-version", default="", help="Only mirror this version")
    parser.add_argument(
        "-a", "--all-versions", action="store_true", help="Mirror every version, not only the newest"
    )
    parser.add_argument(
        "--new-root-url", help="Replace the repository URL in the published index with this URL"
    )
    parser.add_argument(
        "-i", "--ignore-errors", action="store_true", help="Log download errors and keep going"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def jobs_from_args(
    args: argparse.Namespace, parser: argparse.ArgumentParser
) -> Tuple[List[RepositoryJob], LoggingConfig]:
    """Turn parsed arguments (and an optional config file) into jobs."""
    if args.config:
        if args.url or args.name:
            parser.error("a repository URL cannot be combined with --config")
        settings = load_typed_config(args.config)
        jobs = []
        for job in settings.jobs:
            repository = job.repository
            if args.new_root_url:
                repository = replace(repository, new_root_url=args.new_root_url)
            options = job.options
            if args.ignore_errors:
                options = replace(options, ignore_errors=True)
            if args.verbose:
                options = replace(options, verbose=True)
            if args.destination:
                options = replace(options, destination=args.destination)
            if args.all_versions:
                options = replace(options, all_versions=True)
            if args.chart_name:
                options = replace(options, chart_name=args.chart_name)
            if args.chart_version:
                options = replace(options, chart_version=args.chart_version)
            jobs.append(RepositoryJob(repository, options))
        return jobs, settings.logging

    if not args.url or not args.name:
        parser.error("either URL and NAME or --config is required")

    repository = RepositoryConfig(
        name=args.name, url=args.url, new_root_url=args.new_root_url or None
    )
    options = MirrorOptions(
        chart_name=args.chart_name,
        chart_version=args.chart_version,
        all_versions=args.all_versions,
        ignore_errors=args.ignore_errors,
        destination=args.destination or ".",
        verbose=args.verbose,
    )
    return [RepositoryJob(repository, options)], LoggingConfig()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the chartmirror CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        jobs, logging_config = jobs_from_args(args, parser)
    except (FileNotFoundError, TypeError, ValueError, yaml.YAMLError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    verbose = args.verbose or any(job.options.verbose for job in jobs)
    logger = setup_logger(
        log_dir=logging_config.log_dir,
        level=level_for(verbose, logging_config.level),
        file_logging=logging_config.file_logging,
    )

    if not jobs:
        logger.warning("No repositories configured")
        return 0

    exit_code = 0
    for job in jobs:
        try:
            result = MirrorJob(job.repository, job.options, logger=logger).run()
        except MirrorError:
            logger.exception(f"Mirroring {job.repository.name} failed")
            exit_code = 1
            continue

        print(f"Repository: {result.repository}")
        print(f"Status: {result.status.value}")
        print(f"Index: {result.manifest_path}")
        print(f"Downloaded: {result.downloaded}")
        print(f"Skipped: {result.skipped}")
        for package in result.failed_packages:
            print(f"Failed: {package}")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())

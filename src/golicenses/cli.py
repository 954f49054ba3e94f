# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Command-line interface.

Usage::

    golicenses csv ./... > licenses.csv
    golicenses --config golicenses.toml csv --concurrency 4 github.com/me/app
    golicenses modules

Exit codes: ``0`` success, ``1`` some libraries failed, ``2`` fatal error.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from golicenses import __version__
from golicenses.classifier import LicenseClassifier
from golicenses.config import Config, load_config
from golicenses.errors import GoLicensesError
from golicenses.gocli import goroot, list_modules, load_packages
from golicenses.library import Library, libraries
from golicenses.logging import configure_logging, get_logger
from golicenses.net import HttpxFetcher, http_client
from golicenses.report import csv_rows, write_csv
from golicenses.resolve import LibraryURL, resolve_license_urls
from golicenses.source import SourceClient
from golicenses.validate import ContentValidator, LicenseValidator, SkipValidation

__all__ = [
    'build_parser',
    'main',
]

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='golicenses',
        description='Attribute licenses of the Go packages a program depends on.',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only log warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Log JSON lines instead of console output.')
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='Configuration file (default: ./golicenses.toml when present).',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    csv_parser = sub.add_parser('csv', help='Print name,url,license for every library.')
    csv_parser.add_argument('patterns', nargs='+', metavar='PACKAGE', help='Import paths or patterns.')
    csv_parser.add_argument(
        '--ignore',
        action='append',
        default=[],
        metavar='PREFIX',
        help='Leave out packages under this import path prefix (repeatable).',
    )
    csv_parser.add_argument(
        '--concurrency',
        type=int,
        default=None,
        help='Libraries resolved at once (default: config, else 1).',
    )
    csv_parser.add_argument(
        '--skip-validation',
        action='store_true',
        help='Do not download license URLs to compare them with local files.',
    )

    sub.add_parser('modules', help='List the modules of the build list.')
    return parser


async def _resolve(
    libs: list[Library],
    config: Config,
    *,
    concurrency: int,
    skip_validation: bool,
    console: Console,
) -> list[LibraryURL]:
    progress = Progress(
        SpinnerColumn(),
        TextColumn('[bold blue]Resolving license URLs'),
        BarColumn(bar_width=30),
        MofNCompleteColumn(),
        TextColumn('•'),
        TimeElapsedColumn(),
        console=console,
        transient=True,
        disable=not sys.stderr.isatty(),
    )
    async with http_client() as client:
        validator: LicenseValidator = SkipValidation() if skip_validation else ContentValidator(HttpxFetcher(client))
        with progress:
            task = progress.add_task('Resolving', total=len(libs))
            return await resolve_license_urls(
                libs,
                source_client=SourceClient(client),
                validator=validator,
                config=config,
                concurrency=concurrency,
                on_done=lambda _result: progress.advance(task),
            )


def _cmd_csv(args: argparse.Namespace, config: Config) -> int:
    console = Console(stderr=True)
    classifier = LicenseClassifier()
    graph = load_packages(args.patterns, go_binary=config.go_binary)
    libs = libraries(
        graph,
        classifier,
        goroot=goroot(config.go_binary),
        ignore=[*config.ignore, *args.ignore],
        exclude_paths=config.exclude_paths(),
    )
    results = asyncio.run(
        _resolve(
            libs,
            config,
            concurrency=args.concurrency or config.concurrency,
            skip_validation=args.skip_validation,
            console=console,
        )
    )
    write_csv(csv_rows(results, classifier), sys.stdout)

    failed = sum(1 for r in results if r.error is not None)
    skipped = sum(1 for r in results if r.skipped)
    parts: list[str] = [f'[bold]Licenses:[/] {len(results)} libraries']
    if resolved := len(results) - failed - skipped:
        parts.append(f'[green]{resolved} resolved[/]')
    if skipped:
        parts.append(f'[dim]{skipped} skipped[/]')
    if failed:
        parts.append(f'[red]{failed} failed[/]')
    console.print(' • '.join(parts), highlight=False)
    if failed:
        logger.error('libraries_failed', count=failed)
        return EXIT_FAILURES
    return EXIT_OK


def _cmd_modules(config: Config) -> int:
    table = Table(title='Modules')
    table.add_column('Module')
    table.add_column('Version')
    table.add_column('Dir', overflow='fold')
    for module in list_modules(config.go_binary):
        version = '(main)' if module.main and not module.version else module.version
        table.add_row(module.path, version, module.dir)
    Console().print(table)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)
    try:
        config = load_config(args.config)
        if args.command == 'csv':
            return _cmd_csv(args, config)
        return _cmd_modules(config)
    except GoLicensesError as exc:
        logger.error('fatal', error=str(exc))
        return EXIT_FATAL
    except OSError as exc:
        logger.error('fatal', error=str(exc))
        return EXIT_FATAL


if __name__ == '__main__':
    sys.exit(main())

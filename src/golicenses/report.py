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

"""CSV rendering of resolved libraries.

The report starts with a comment line marking it as generated, followed
by one ``name,url,license`` line per library and one per sub-module
declared in the config.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TextIO

from golicenses.classifier import Classifier
from golicenses.errors import LicenseNotFoundError
from golicenses.logging import get_logger
from golicenses.resolve import LibraryURL

__all__ = [
    'GENERATED_HEADER',
    'UNKNOWN',
    'CsvRow',
    'csv_rows',
    'write_csv',
]

logger = get_logger(__name__)

UNKNOWN = 'Unknown'

GENERATED_HEADER = '# Generated by golicenses. DO NOT EDIT.'


@dataclass(frozen=True)
class CsvRow:
    """One line of the report: library name, license URL, license name."""

    name: str
    url: str = UNKNOWN
    license: str = UNKNOWN


def _license_name(result: LibraryURL, classifier: Classifier) -> str:
    if result.spdx_id:
        return result.spdx_id
    if not result.library.license_path:
        return UNKNOWN
    try:
        return classifier.identify(result.library.license_path).name
    except (LicenseNotFoundError, OSError) as exc:
        logger.warning('license_unidentified', library=result.library.name, error=str(exc))
        return UNKNOWN


def csv_rows(results: Iterable[LibraryURL], classifier: Classifier) -> list[CsvRow]:
    """Build report rows, leaving out skipped libraries."""
    rows: list[CsvRow] = []
    for r in results:
        if r.skipped:
            continue
        rows.append(CsvRow(name=r.library.name, url=r.url or UNKNOWN, license=_license_name(r, classifier)))
        rows.extend(CsvRow(name=s.name, url=s.url or UNKNOWN, license=s.spdx_id or UNKNOWN) for s in r.sub_modules)
    return rows


def write_csv(rows: Iterable[CsvRow], stream: TextIO, *, header: bool = True) -> None:
    """Write *rows* as ``name,url,license`` lines to *stream*.

    With *header*, :data:`GENERATED_HEADER` comes first.
    """
    if header:
        stream.write(GENERATED_HEADER + '\n')
    writer = csv.writer(stream, lineterminator='\n')
    for row in rows:
        writer.writerow([row.name, row.url, row.license])

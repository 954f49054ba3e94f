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

"""Tests for golicenses.report."""

from __future__ import annotations

import io
from pathlib import Path

from golicenses.classifier import LicenseClassifier
from golicenses.errors import ModuleMetadataError
from golicenses.library import Library
from golicenses.report import GENERATED_HEADER, UNKNOWN, CsvRow, csv_rows, write_csv
from golicenses.resolve import LibraryURL, SubModuleURL

_MIT = """\
MIT License

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software").

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND.
"""


def _library(tmp_path: Path, name: str, text: str | None = _MIT) -> Library:
    license_path = ''
    if text is not None:
        path = tmp_path / name.replace('/', '_')
        path.write_text(text, encoding='utf-8')
        license_path = str(path)
    return Library(license_path=license_path, packages=[name])


class TestCsvRows:
    """Tests for csv_rows()."""

    def test_resolved_library(self, tmp_path: Path) -> None:
        """A resolved library reports its URL and license."""
        lib = _library(tmp_path, 'github.com/foo/bar')
        rows = csv_rows([LibraryURL(library=lib, url='https://x/LICENSE')], LicenseClassifier())
        assert rows == [CsvRow(name='github.com/foo/bar', url='https://x/LICENSE', license='MIT')]

    def test_failed_library_has_unknown_url(self, tmp_path: Path) -> None:
        """A failed library keeps its license but has no URL."""
        lib = _library(tmp_path, 'github.com/foo/bar')
        rows = csv_rows([LibraryURL(library=lib, error=ModuleMetadataError('boom'))], LicenseClassifier())
        assert rows[0].url == UNKNOWN
        assert rows[0].license == 'MIT'

    def test_unidentified_license(self, tmp_path: Path) -> None:
        """Unrecognized text reports Unknown."""
        lib = _library(tmp_path, 'github.com/foo/bar', 'all rights reserved\n')
        rows = csv_rows([LibraryURL(library=lib, url='https://x')], LicenseClassifier())
        assert rows[0].license == UNKNOWN

    def test_no_license_file(self, tmp_path: Path) -> None:
        """Libraries without a license file report Unknown."""
        lib = _library(tmp_path, 'example.com/x', None)
        assert csv_rows([LibraryURL(library=lib)], LicenseClassifier())[0] == CsvRow(name='example.com/x')

    def test_spdx_override_wins(self, tmp_path: Path) -> None:
        """A configured SPDX id replaces classification."""
        lib = _library(tmp_path, 'github.com/foo/bar')
        rows = csv_rows([LibraryURL(library=lib, url='u', spdx_id='Apache-2.0')], LicenseClassifier())
        assert rows[0].license == 'Apache-2.0'

    def test_skipped_left_out(self, tmp_path: Path) -> None:
        """Skipped libraries are not reported."""
        lib = _library(tmp_path, 'github.com/foo/bar')
        assert csv_rows([LibraryURL(library=lib, skipped=True)], LicenseClassifier()) == []

    def test_sub_module_rows_follow_library(self, tmp_path: Path) -> None:
        """Sub-modules declared by an override are reported after their library."""
        lib = _library(tmp_path, 'github.com/foo/mono')
        result = LibraryURL(
            library=lib,
            url='https://github.com/foo/mono/blob/v1.0.0/LICENSE#L1-L20',
            spdx_id='Apache-2.0',
            sub_modules=[
                SubModuleURL(
                    name='github.com/foo/mono/third_party/blake',
                    url='https://github.com/foo/mono/blob/v1.0.0/third_party/blake/LICENSE',
                    spdx_id='CC0-1.0',
                ),
            ],
        )
        other = LibraryURL(library=_library(tmp_path, 'github.com/zed/z'), url='https://z')
        assert csv_rows([result, other], LicenseClassifier()) == [
            CsvRow(
                name='github.com/foo/mono',
                url='https://github.com/foo/mono/blob/v1.0.0/LICENSE#L1-L20',
                license='Apache-2.0',
            ),
            CsvRow(
                name='github.com/foo/mono/third_party/blake',
                url='https://github.com/foo/mono/blob/v1.0.0/third_party/blake/LICENSE',
                license='CC0-1.0',
            ),
            CsvRow(name='github.com/zed/z', url='https://z', license='MIT'),
        ]


class TestWriteCsv:
    """Tests for write_csv()."""

    def test_lines(self) -> None:
        """Rows are written as name,url,license lines."""
        out = io.StringIO()
        write_csv(
            [
                CsvRow(name='github.com/foo/bar', url='https://github.com/foo/bar/blob/v1.0.0/LICENSE', license='MIT'),
                CsvRow(name='example.com/x'),
            ],
            out,
        )
        assert out.getvalue() == (
            f'{GENERATED_HEADER}\n'
            'github.com/foo/bar,https://github.com/foo/bar/blob/v1.0.0/LICENSE,MIT\nexample.com/x,Unknown,Unknown\n'
        )

    def test_quotes_commas(self) -> None:
        """Fields containing commas are quoted."""
        out = io.StringIO()
        write_csv([CsvRow(name='a,b', url='u', license='MIT')], out, header=False)
        assert out.getvalue() == '"a,b",u,MIT\n'

    def test_generated_header_first(self) -> None:
        """The report opens with a do-not-edit comment line."""
        out = io.StringIO()
        write_csv([], out)
        assert out.getvalue() == '# Generated by golicenses. DO NOT EDIT.\n'

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

r"""Find and identify license files on disk.

:func:`find_license` walks upward from a package directory looking for
files whose name looks like a license (``LICENSE``, ``COPYING``,
``NOTICE``, ``README``, ...) and returns the first one the classifier
recognizes::

    $GOMODCACHE/github.com/foo/bar@v1.2.0/      ← module dir (last stop)
    ├── LICENSE                                 ← found here
    └── internal/
        └── util/                               ← start here
            └── util.go

:class:`LicenseClassifier` recognizes a license by fragments of its body
text, so a file that only names a license is not mistaken for one. It
reports an SPDX identifier and the license category used by
``google/licenseclassifier`` (``notice``, ``restricted``, ...).

Usage::

    from golicenses.classifier import LicenseClassifier

    classifier = LicenseClassifier()
    path = classifier.find_license('/src/mod/internal/util', '/src/mod')
    match = classifier.identify(path)
    # match.name == 'MIT', match.category == 'notice'
"""

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from golicenses.errors import LicenseNotFoundError

__all__ = [
    'Classifier',
    'LicenseClassifier',
    'LicenseMatch',
    'find_license',
    'match_license_text',
]

_LICENSE_NAME_RE = re.compile(r'^((UN)?LICEN(S|C)E|COPYING|README|NOTICE).*$', re.IGNORECASE)

# Vendor directories belong to the enclosing module; never climb out of one.
_VENDOR_DIR_RE = re.compile(r'.+/vendor/?$')

# Each license is recognized by fragments of its body text, matched
# against lowercased, whitespace-collapsed file content. Titles alone
# ("MIT License", "Licensed under the Apache License, Version 2.0")
# never qualify, so a README that merely mentions a license is not
# taken for the license itself. Ordered most specific first.
_LICENSE_TEXT_FRAGMENTS: list[tuple[str, tuple[str, ...]]] = [
    (
        'AGPL-3.0',
        ('gnu affero general public license', 'version 3', 'terms and conditions'),
    ),
    (
        'LGPL-3.0',
        (
            'gnu lesser general public license',
            'version 3',
            'this version of the gnu lesser general public license incorporates',
        ),
    ),
    (
        'LGPL-2.1',
        (
            'gnu lesser general public license',
            'version 2.1',
            'terms and conditions for copying, distribution and modification',
        ),
    ),
    (
        'GPL-3.0',
        (
            'gnu general public license',
            'terms and conditions',
            '"this license" refers to version 3 of the gnu general public license',
        ),
    ),
    (
        'GPL-2.0',
        (
            'gnu general public license version 2',
            'terms and conditions for copying, distribution and modification',
        ),
    ),
    ('MPL-2.0', ('mozilla public license version 2.0', '1. definitions')),
    (
        'EPL-2.0',
        ('eclipse public license - v 2.0', 'accompanying program is provided under the terms of this eclipse public'),
    ),
    (
        'EPL-1.0',
        ('eclipse public license - v 1.0', 'accompanying program is provided under the terms of this eclipse public'),
    ),
    (
        'Apache-2.0',
        ('apache license', 'version 2.0', 'terms and conditions for use, reproduction, and distribution'),
    ),
    (
        'BSL-1.0',
        ('boost software license', 'permission is hereby granted, free of charge, to any person or organization'),
    ),
    (
        'Unlicense',
        ('this is free and unencumbered software released into the public domain', 'anyone is free to copy'),
    ),
    ('CC0-1.0', ('cc0 1.0 universal', 'statement of purpose')),
    (
        'ISC',
        ('permission to use, copy, modify, and', 'distribute this software for any purpose', 'provided "as is"'),
    ),
    (
        'MIT',
        (
            'permission is hereby granted, free of charge, to any person obtaining a copy',
            'the above copyright notice and this permission notice shall be included',
            'the software is provided "as is"',
        ),
    ),
    (
        'Zlib',
        (
            "this software is provided 'as-is', without any express or implied",
            'permission is granted to anyone to use this software for any purpose',
        ),
    ),
    (
        'BSD-3-Clause',
        (
            'redistribution and use in source and binary forms',
            'neither the name',
            'this software is provided by the',
        ),
    ),
    (
        'BSD-2-Clause',
        (
            'redistribution and use in source and binary forms',
            'this software is provided by the',
        ),
    ),
]

_WHITESPACE_RE = re.compile(r'\s+')

_QUOTES = str.maketrans({'“': '"', '”': '"', '‘': "'", '’': "'"})


def _normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(' ', text.translate(_QUOTES)).lower()


def match_license_text(text: str) -> str:
    """Return the SPDX id whose body fragments all appear in *text*, or ``""``."""
    normalized = _normalize(text)
    for spdx_id, fragments in _LICENSE_TEXT_FRAGMENTS:
        if all(fragment in normalized for fragment in fragments):
            return spdx_id
    return ''


# Subset of google/licenseclassifier license_type.go.
_CATEGORIES: dict[str, str] = {
    'AGPL-3.0': 'forbidden',
    'GPL-2.0': 'restricted',
    'GPL-3.0': 'restricted',
    'LGPL-2.1': 'restricted',
    'LGPL-3.0': 'restricted',
    'MPL-2.0': 'reciprocal',
    'EPL-1.0': 'reciprocal',
    'EPL-2.0': 'reciprocal',
    'Apache-2.0': 'notice',
    'BSD-2-Clause': 'notice',
    'BSD-3-Clause': 'notice',
    'BSL-1.0': 'notice',
    'ISC': 'notice',
    'MIT': 'notice',
    'Zlib': 'notice',
    'CC0-1.0': 'unencumbered',
    'Unlicense': 'unencumbered',
}


@dataclass(frozen=True)
class LicenseMatch:
    """Result of identifying a license file.

    Attributes:
        name: SPDX identifier (e.g. ``"Apache-2.0"``).
        category: licenseclassifier category (e.g. ``"notice"``).
    """

    name: str
    category: str = 'unknown'


class Classifier(Protocol):
    """Locates and identifies license files."""

    def identify(self, path: str) -> LicenseMatch:
        """Identify the license in the file at *path*."""
        ...

    def find_license(self, package_dir: str, module_dir: str, *, exclude_dirs: Sequence[str] = ()) -> str:
        """Return the license file governing *package_dir*."""
        ...


class LicenseClassifier:
    """Fragment-based license classifier."""

    def identify(self, path: str) -> LicenseMatch:
        """Identify the license in the file at *path*.

        Raises:
            LicenseNotFoundError: The text is not a known license.
            OSError: The file cannot be read.
        """
        with open(path, encoding='utf-8', errors='replace') as f:
            text = f.read()
        spdx_id = match_license_text(text)
        if not spdx_id:
            raise LicenseNotFoundError(f'{path} does not contain a known license')
        return LicenseMatch(name=spdx_id, category=_CATEGORIES.get(spdx_id, 'unknown'))

    def find_license(self, package_dir: str, module_dir: str, *, exclude_dirs: Sequence[str] = ()) -> str:
        """Return the license file governing *package_dir*."""
        return find_license(package_dir, module_dir, self, exclude_dirs=exclude_dirs)


def _is_license(classifier: Classifier, path: str) -> bool:
    try:
        classifier.identify(path)
    except LicenseNotFoundError:
        return False
    return True


def _is_excluded(directory: str, exclude_dirs: Sequence[str]) -> bool:
    for excluded in exclude_dirs:
        excluded = os.path.abspath(excluded)
        if directory == excluded or directory.startswith(excluded + os.sep):
            return True
    return False


def find_license(
    directory: str,
    module_dir: str,
    classifier: Classifier,
    *,
    exclude_dirs: Sequence[str] = (),
) -> str:
    """Search *directory* and its parents for a license file.

    The search checks *module_dir* itself and stops there, at a
    ``vendor`` directory, or at the filesystem root. Candidates inside
    *exclude_dirs* are passed over and the search continues upward.

    Args:
        directory: Package directory to start from.
        module_dir: Root directory of the owning module (may be empty).
        classifier: Decides whether a candidate file is a license.
        exclude_dirs: Directories whose license files do not count.

    Returns:
        Absolute path of the license file.

    Raises:
        LicenseNotFoundError: No license file was found.
        OSError: A directory could not be listed.
    """
    start = os.path.abspath(directory)
    stop_at = os.path.abspath(module_dir) if module_dir else ''
    current = start
    while True:
        if not _is_excluded(current, exclude_dirs):
            for name in sorted(os.listdir(current)):
                if not _LICENSE_NAME_RE.match(name):
                    continue
                path = os.path.join(current, name)
                if os.path.isfile(path) and _is_license(classifier, path):
                    return path
        if current == stop_at or _VENDOR_DIR_RE.match(current):
            break
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    raise LicenseNotFoundError(f'no license file found for {start}')

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

"""Collect the third-party packages reachable from the root packages.

The walk prunes below two kinds of node:

- packages that failed to load; the walk then raises a
  :class:`~golicenses.errors.GraphLoadError` listing every failure,
  because a partial license inventory is worse than none;
- standard library packages, which carry no license obligations.
"""

from __future__ import annotations

import os
from collections.abc import Sequence

from golicenses._types import Package
from golicenses.errors import GraphLoadError
from golicenses.gocli import PackageGraph
from golicenses.logging import get_logger

__all__ = [
    'is_ignored',
    'is_std_lib',
    'walk_packages',
]

logger = get_logger(__name__)


def is_std_lib(pkg: Package, goroot: str) -> bool:
    """Return ``True`` if *pkg* is part of the Go standard library."""
    if pkg.name == 'unsafe':
        # unsafe has no Go files of its own.
        return True
    if not pkg.go_files or not goroot:
        return False
    root = goroot.rstrip(os.sep) + os.sep
    return pkg.go_files[0].startswith(root)


def is_ignored(import_path: str, ignore: Sequence[str]) -> bool:
    """Return ``True`` if *import_path* equals or lies below an ignored prefix."""
    for prefix in ignore:
        prefix = prefix.rstrip('/')
        if import_path == prefix or import_path.startswith(prefix + '/'):
            return True
    return False


def walk_packages(
    graph: PackageGraph,
    *,
    goroot: str,
    ignore: Sequence[str] = (),
) -> list[Package]:
    """Return the non-stdlib packages reachable from ``graph.roots``.

    Empty packages (no files at all) are not returned but their imports
    are still walked, and so are the imports of ignored packages.

    Args:
        graph: The loaded package graph.
        goroot: GOROOT of the toolchain that loaded the graph.
        ignore: Import-path prefixes to leave out of the result.

    Returns:
        Visited packages in visit order.

    Raises:
        GraphLoadError: Any reachable package failed to load.
    """
    visited: list[Package] = []
    failures: list[tuple[str, str]] = []

    def _pre(pkg: Package) -> bool:
        if pkg.errors:
            failures.extend((pkg.import_path, message) for message in pkg.errors)
            return False
        if is_std_lib(pkg, goroot):
            return False
        if is_ignored(pkg.import_path, ignore):
            logger.debug('package_ignored', package=pkg.import_path)
            return True
        if pkg.has_other_files:
            logger.warning(
                'package_has_non_go_files',
                package=pkg.import_path,
                files=list(pkg.other_files),
                hint="Non-Go code can't be inspected for further dependencies.",
            )
        if not pkg.dir:
            return True
        visited.append(pkg)
        return True

    graph.visit(_pre)
    if failures:
        raise GraphLoadError(failures)
    logger.debug('walked_packages', count=len(visited))
    return visited

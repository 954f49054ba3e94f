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

r"""Group packages into libraries that share one license file.

A **library** is the smallest unit of license attribution: the packages
covered by the same license file. Grouping is by license file, not by
module, because one module may vendor several trees with their own
license files, and one license file usually covers many packages::

    ┌───────────────────────────┬─────────────────────────────┐
    │ package                   │ license file                │
    ├───────────────────────────┼─────────────────────────────┤
    │ github.com/foo/bar        │ .../bar@v1.0.0/LICENSE      │ ┐ library
    │ github.com/foo/bar/util   │ .../bar@v1.0.0/LICENSE      │ ┘ github.com/foo/bar
    │ github.com/foo/bar/x/y    │ .../bar@v1.0.0/x/y/LICENSE  │ ─ library github.com/foo/bar/x/y
    │ example.com/nolicense     │ (none)                      │ ─ singleton library
    └───────────────────────────┴─────────────────────────────┘

Usage::

    from golicenses.library import libraries

    libs = libraries(graph, classifier, goroot='/usr/local/go')
    for lib in libs:
        print(lib.name, lib.license_path)
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from golicenses._types import Module, Package
from golicenses.classifier import Classifier
from golicenses.errors import LicenseNotFoundError
from golicenses.gocli import PackageGraph
from golicenses.logging import get_logger
from golicenses.module_resolve import resolve_module
from golicenses.walker import walk_packages

__all__ = [
    'Library',
    'common_ancestor',
    'group_by_license',
    'libraries',
]

logger = get_logger(__name__)


def common_ancestor(paths: Sequence[str]) -> str:
    """Return the longest common ``/``-delimited prefix of *paths*.

    >>> common_ancestor(['a/b/c', 'a/b/d'])
    'a/b'
    >>> common_ancestor(['a/b', 'a/bc'])
    'a'
    """
    if not paths:
        return ''
    split = [p.split('/') for p in paths]
    prefix: list[str] = []
    for parts in zip(*split):
        if any(part != parts[0] for part in parts[1:]):
            break
        prefix.append(parts[0])
    return '/'.join(prefix)


@dataclass
class Library:
    """Packages covered by the same license file.

    Attributes:
        license_path: Absolute path of the license file. Empty when no
            license was found; such libraries hold a single package.
        packages: Import paths of the member packages, unique.
        module: Module owning every member package.
    """

    license_path: str = ''
    packages: list[str] = field(default_factory=list)
    module: Module | None = None

    @property
    def name(self) -> str:
        """Common import path prefix of the member packages."""
        return common_ancestor(self.packages)

    def add_package(self, import_path: str) -> None:
        """Add a member package, ignoring duplicates."""
        if import_path not in self.packages:
            self.packages.append(import_path)

    def __str__(self) -> str:
        return self.name


def _reconcile_module(library: Library, pkg: Package, first: Module | None) -> None:
    if pkg.module is not None and first is not None and pkg.module != first:
        logger.warning(
            'library_spans_modules',
            library=library.name,
            package=pkg.import_path,
            module=str(pkg.module),
            library_module=str(first),
        )


def group_by_license(
    packages: Sequence[Package],
    classifier: Classifier,
    *,
    exclude_paths: Mapping[str, Sequence[str]] | None = None,
) -> list[Library]:
    """Group *packages* by the license file that covers them.

    Packages without a license each become a singleton library. The
    module of a library is the module of its first member.

    Args:
        packages: Packages returned by the walk.
        classifier: Finds the license file of each package.
        exclude_paths: Module path to directories, relative to the
            module root, whose license files are passed over.

    Returns:
        Libraries in no particular order.

    Raises:
        OSError: A directory could not be read while searching.
    """
    by_license: dict[str, list[Package]] = {}
    for pkg in packages:
        module_dir = pkg.module.dir if pkg.module is not None else ''
        excluded: list[str] = []
        if pkg.module is not None and module_dir and exclude_paths:
            excluded = [os.path.join(module_dir, p) for p in exclude_paths.get(pkg.module.path, ())]
        try:
            license_path = classifier.find_license(pkg.dir, module_dir, exclude_dirs=excluded)
        except LicenseNotFoundError as exc:
            logger.error('license_not_found', package=pkg.import_path, error=str(exc))
            license_path = ''
        by_license.setdefault(license_path, []).append(pkg)

    result: list[Library] = []
    for license_path, members in by_license.items():
        if not license_path:
            for pkg in members:
                result.append(Library(packages=[pkg.import_path], module=pkg.module))
            continue
        lib = Library(license_path=license_path, module=members[0].module)
        for pkg in members:
            lib.add_package(pkg.import_path)
            _reconcile_module(lib, pkg, members[0].module)
        result.append(lib)
    return result


def libraries(
    graph: PackageGraph,
    classifier: Classifier,
    *,
    goroot: str,
    ignore: Sequence[str] = (),
    exclude_paths: Mapping[str, Sequence[str]] | None = None,
) -> list[Library]:
    """Return the libraries used by the root packages of *graph*.

    Standard library packages are left out. The result is sorted by
    :attr:`Library.name` so repeated runs produce identical output.

    Args:
        graph: Loaded package graph.
        classifier: Finds and identifies license files.
        goroot: GOROOT of the toolchain that loaded the graph.
        ignore: Import-path prefixes to leave out.
        exclude_paths: Per-module directories whose license files are
            passed over.

    Raises:
        GraphLoadError: A reachable package failed to load.
    """
    packages = walk_packages(graph, goroot=goroot, ignore=ignore)
    libs = group_by_license(packages, classifier, exclude_paths=exclude_paths)
    root_modules = [p.module for p in graph.roots if p.module is not None]
    for lib in libs:
        resolve_module(lib, root_modules)
    libs.sort(key=lambda lib: lib.name)
    logger.info('libraries_found', count=len(libs), packages=len(packages))
    return libs

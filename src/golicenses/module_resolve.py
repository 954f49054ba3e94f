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

"""Repair the owning module of libraries that were vendored.

When a module is vendored, ``go list`` reports its path but no
directory, so no URL can be computed relative to it. Vendored source is
committed inside the consumer's module, so the license is attributed
through the consumer's repository instead::

    /src/app/                         ← root module dir (github.com/me/app)
    └── vendor/
        └── github.com/foo/bar/
            └── LICENSE               ← library license_path

    split('/src/app/vendor/github.com/foo/bar/LICENSE')
      → parent dir '/src/app' → module github.com/me/app
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from golicenses._types import Module
from golicenses.logging import get_logger

if TYPE_CHECKING:
    from golicenses.library import Library

__all__ = [
    'VENDOR_MARKER',
    'needs_parent_module',
    'resolve_module',
    'split_vendored_path',
]

logger = get_logger(__name__)

VENDOR_MARKER = '/vendor/'

#: Maps a license path to the directory of the module that vendors it,
#: or ``None`` when the path is not vendored.
ParentDirStrategy = Callable[[str], str | None]


def split_vendored_path(license_path: str) -> str | None:
    """Return the directory of the module vendoring *license_path*.

    Only the first ``/vendor/`` segment counts: nested vendor trees
    are committed in the outermost module.
    """
    prefix, sep, _ = license_path.partition(VENDOR_MARKER)
    if not sep:
        return None
    return prefix


def needs_parent_module(module: Module | None) -> bool:
    """``True`` when *module* has a path but no directory."""
    return module is not None and bool(module.path) and not module.dir


def resolve_module(
    library: Library,
    root_modules: Sequence[Module],
    *,
    split: ParentDirStrategy = split_vendored_path,
) -> Module | None:
    """Replace a directory-less module of *library* with its parent module.

    Libraries whose module already has a directory are left alone. If
    the parent cannot be determined, a warning is logged and the
    library keeps its module; URL resolution then fails for it with a
    :class:`~golicenses.errors.ModuleMetadataError`.

    Args:
        library: Library to repair in place.
        root_modules: Modules of the root packages, searched in order.
            The first module whose directory matches wins.
        split: Strategy mapping a license path to the parent module dir.

    Returns:
        The library's module after repair.
    """
    module = library.module
    if module is None or not needs_parent_module(module):
        return module

    parent_dir = split(library.license_path) if library.license_path else None
    if parent_dir is None:
        logger.warning(
            'module_without_dir',
            module=module.path,
            library=library.name,
            hint='The module has no directory and is not vendored; its license URL cannot be discovered.',
        )
        return module

    parent = next((m for m in root_modules if m.dir and m.dir == parent_dir), None)
    if parent is None:
        logger.warning(
            'vendored_parent_not_found',
            module=module.path,
            library=library.name,
            parent_dir=parent_dir,
        )
        return module

    logger.debug('vendored_module_attributed', module=module.path, parent=parent.path)
    library.module = parent
    return parent

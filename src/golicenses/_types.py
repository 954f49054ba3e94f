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

"""Shared leaf-level types used across golicenses.

This module must have **zero** imports from other ``golicenses``
modules to avoid circular-import chains.  It is safe to import from
any module in the project.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

__all__ = [
    'Module',
    'Package',
]


@dataclass(frozen=True)
class Module:
    """A versioned Go module.

    Two modules are the same module when path, version and directory
    are equal; ``main`` is informational.

    Attributes:
        path: Module path (e.g. ``"github.com/google/uuid"``).
        version: Version string. Empty for the main module, which is
            not tagged yet.
        dir: Absolute directory holding the module source. Empty when
            the metadata is incomplete (e.g. vendored modules).
        main: Whether this is the main module of the workspace.
    """

    path: str
    version: str = ''
    dir: str = ''
    main: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        return f'{self.path}@{self.version}' if self.version else self.path


@dataclass(frozen=True)
class Package:
    """A loaded Go package.

    Attributes:
        import_path: Unique import path of the package.
        name: Package name (``"unsafe"``, ``"main"``, ...).
        go_files: Absolute paths of the Go source files.
        compiled_go_files: Absolute paths of the files handed to the
            compiler (cgo output included).
        other_files: Absolute paths of non-Go files (C, assembly, ...).
        module: Owning module, ``None`` outside module mode.
        errors: Load error messages.
        imports: Import paths of the packages this package imports.
    """

    import_path: str
    name: str = ''
    go_files: tuple[str, ...] = ()
    compiled_go_files: tuple[str, ...] = ()
    other_files: tuple[str, ...] = ()
    module: Module | None = None
    errors: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()

    @property
    def has_other_files(self) -> bool:
        """``True`` if the package carries non-Go files."""
        return bool(self.other_files)

    @property
    def dir(self) -> str:
        """Directory of the package, or ``""`` for an empty package."""
        for files in (self.go_files, self.compiled_go_files, self.other_files):
            if files:
                return os.path.dirname(files[0])
        return ''

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

"""Load ``golicenses.toml``.

Expected format::

    go_binary = "go"
    concurrency = 1
    ignore = ["github.com/me/app/internal"]

    [[override]]
    module = "github.com/foo/bar"
    version = "v1.2.0"   # optional; empty applies to every version
    skip = false
    exclude_paths = ["testdata"]

    [override.license]
    url = "https://github.com/foo/bar/blob/v1.2.0/COPYING"
    spdx_id = "MIT"

A license can also be named by its path inside the module, optionally
with a line range; the URL is then built from the module's repository
and is not validated. Sub-modules that carry their own license are
listed next to it::

    [[override]]
    module = "github.com/foo/mono"

    [override.license]
    path = "LICENSE.txt"
    line_start = 1
    line_end = 20
    spdx_id = "Apache-2.0"

    [[override.sub_module]]
    path = "third_party/blake"
    license = { path = "LICENSE", spdx_id = "CC0-1.0" }

Every problem in the file is collected before a
:class:`~golicenses.errors.ConfigError` is raised.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from golicenses.errors import ConfigError

__all__ = [
    'Config',
    'DEFAULT_CONFIG_NAME',
    'LicenseOverride',
    'ModuleOverride',
    'SubModuleOverride',
    'load_config',
    'parse_config',
]

DEFAULT_CONFIG_NAME = 'golicenses.toml'

_TOP_LEVEL_KEYS = frozenset({'go_binary', 'concurrency', 'ignore', 'override'})
_OVERRIDE_KEYS = frozenset({'module', 'version', 'skip', 'license', 'sub_module', 'exclude_paths'})
_LICENSE_KEYS = frozenset({'url', 'spdx_id', 'path', 'line_start', 'line_end'})
_SUB_MODULE_KEYS = frozenset({'path', 'license'})


@dataclass(frozen=True)
class LicenseOverride:
    """Replacement license information for a module.

    Attributes:
        url: License URL to report instead of resolving one.
        spdx_id: License identifier to report instead of classifying.
        path: License file relative to the module root. The URL is then
            built from the module's repository without validation.
        line_start: First line of the license inside *path*; 0 for none.
        line_end: Last line of the license inside *path*; 0 for none.
    """

    url: str = ''
    spdx_id: str = ''
    path: str = ''
    line_start: int = 0
    line_end: int = 0


@dataclass(frozen=True)
class SubModuleOverride:
    """A directory inside a module that carries its own license.

    Attributes:
        path: Directory relative to the module root.
        license: Its license; ``path`` and ``spdx_id`` are set.
    """

    path: str
    license: LicenseOverride


@dataclass(frozen=True)
class ModuleOverride:
    """Per-module adjustments.

    Attributes:
        module: Module path the override applies to.
        version: Module version it applies to; empty for any version.
        skip: Leave the module's libraries out of the report.
        license: Replacement license information.
        sub_modules: Directories reported as libraries of their own.
        exclude_paths: Directories, relative to the module root, whose
            license files are not considered.
    """

    module: str
    version: str = ''
    skip: bool = False
    license: LicenseOverride = field(default_factory=LicenseOverride)
    sub_modules: tuple[SubModuleOverride, ...] = ()
    exclude_paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class Config:
    """Resolved golicenses configuration."""

    go_binary: str = 'go'
    concurrency: int = 1
    ignore: tuple[str, ...] = ()
    overrides: tuple[ModuleOverride, ...] = ()

    def override_for(self, module_path: str) -> ModuleOverride | None:
        """Return the override for *module_path*; the last one wins."""
        found = None
        for override in self.overrides:
            if override.module == module_path:
                found = override
        return found

    def exclude_paths(self) -> dict[str, tuple[str, ...]]:
        """Map module paths to their ``exclude_paths``."""
        return {o.module: o.exclude_paths for o in self.overrides if o.exclude_paths}


def _check_type(errors: list[str], where: str, value: object, expected: type) -> bool:
    if isinstance(value, expected) and not (expected is int and isinstance(value, bool)):
        return True
    errors.append(f'{where}: expected {expected.__name__}, got {type(value).__name__}')
    return False


def _check_str_list(errors: list[str], where: str, value: object) -> bool:
    if not _check_type(errors, where, value, list):
        return False
    if not all(isinstance(v, str) for v in value):  # type: ignore[union-attr]
        errors.append(f'{where}: all entries must be strings')
        return False
    return True


def _parse_license(errors: list[str], where: str, raw: Any) -> LicenseOverride | None:  # noqa: ANN401
    if not _check_type(errors, where, raw, dict):
        return None
    for key in sorted(set(raw) - _LICENSE_KEYS):
        errors.append(f'{where}: unknown key {key!r}')
    url = raw.get('url', '')
    spdx_id = raw.get('spdx_id', '')
    path = raw.get('path', '')
    line_start = raw.get('line_start', 0)
    line_end = raw.get('line_end', 0)
    ok = _check_type(errors, f'{where}.url', url, str)
    ok = _check_type(errors, f'{where}.spdx_id', spdx_id, str) and ok
    ok = _check_type(errors, f'{where}.path', path, str) and ok
    ok = _check_type(errors, f'{where}.line_start', line_start, int) and ok
    ok = _check_type(errors, f'{where}.line_end', line_end, int) and ok
    if not ok:
        return None
    if line_start < 0 or line_end < 0:
        errors.append(f'{where}: line numbers must be >= 0')
        ok = False
    elif line_end and not line_start:
        errors.append(f'{where}: line_end requires line_start')
        ok = False
    elif line_end and line_end < line_start:
        errors.append(f'{where}: line_end {line_end} is before line_start {line_start}')
        ok = False
    if (line_start or line_end) and not path:
        errors.append(f'{where}: line numbers require "path"')
        ok = False
    if path and not spdx_id:
        errors.append(f'{where}: "path" requires "spdx_id"')
        ok = False
    if not ok:
        return None
    return LicenseOverride(url=url, spdx_id=spdx_id, path=path, line_start=line_start, line_end=line_end)


def _parse_sub_module(errors: list[str], where: str, raw: Any) -> SubModuleOverride | None:  # noqa: ANN401
    if not _check_type(errors, where, raw, dict):
        return None
    for key in sorted(set(raw) - _SUB_MODULE_KEYS):
        errors.append(f'{where}: unknown key {key!r}')
    path = raw.get('path', '')
    if not _check_type(errors, f'{where}.path', path, str):
        return None
    if not path:
        errors.append(f'{where}: missing required field "path"')
        return None
    license_override = _parse_license(errors, f'{where}.license', raw.get('license', {}))
    if license_override is None:
        return None
    if not license_override.path:
        errors.append(f'{where}.license: missing required field "path"')
        return None
    return SubModuleOverride(path=path.strip('/'), license=license_override)


def _parse_override(errors: list[str], i: int, raw: Any) -> ModuleOverride | None:  # noqa: ANN401
    where = f'override[{i}]'
    if not isinstance(raw, dict):
        errors.append(f'{where}: expected a table, got {type(raw).__name__}')
        return None
    for key in sorted(set(raw) - _OVERRIDE_KEYS):
        errors.append(f'{where}: unknown key {key!r}')
    module = raw.get('module', '')
    if not module:
        errors.append(f'{where}: missing required field "module"')
        return None
    if not _check_type(errors, f'{where}.module', module, str):
        return None
    version = raw.get('version', '')
    skip = raw.get('skip', False)
    exclude_paths = raw.get('exclude_paths', [])
    raw_subs = raw.get('sub_module', [])
    ok = _check_type(errors, f'{where}.version', version, str)
    ok = _check_type(errors, f'{where}.skip', skip, bool) and ok
    ok = _check_str_list(errors, f'{where}.exclude_paths', exclude_paths) and ok
    ok = _check_type(errors, f'{where}.sub_module', raw_subs, list) and ok
    license_override = _parse_license(errors, f'{where}.license', raw.get('license', {}))
    if not ok or license_override is None:
        return None

    sub_modules: list[SubModuleOverride] = []
    for j, raw_sub in enumerate(raw_subs):
        sub = _parse_sub_module(errors, f'{where}.sub_module[{j}]', raw_sub)
        if sub is not None:
            sub_modules.append(sub)
    if raw_subs and not license_override.path:
        # Sub-module rows are built from the same repository URL as the
        # module's own license path.
        errors.append(f'{where}.sub_module: requires license "path"')
        return None
    return ModuleOverride(
        module=module,
        version=version,
        skip=skip,
        license=license_override,
        sub_modules=tuple(sub_modules),
        exclude_paths=tuple(p.strip('/') for p in exclude_paths),
    )


def parse_config(data: dict[str, Any]) -> Config:
    """Build a :class:`Config` from parsed TOML *data*.

    Raises:
        ConfigError: The data is invalid.
    """
    errors: list[str] = []
    for key in sorted(set(data) - _TOP_LEVEL_KEYS):
        errors.append(f'unknown key {key!r}')

    go_binary = data.get('go_binary', 'go')
    if _check_type(errors, 'go_binary', go_binary, str) and not go_binary:
        errors.append('go_binary: must not be empty')

    concurrency = data.get('concurrency', 1)
    if _check_type(errors, 'concurrency', concurrency, int) and concurrency < 1:
        errors.append(f'concurrency: must be >= 1, got {concurrency}')

    ignore = data.get('ignore', [])
    if _check_type(errors, 'ignore', ignore, list) and not all(isinstance(p, str) for p in ignore):
        errors.append('ignore: all entries must be strings')

    overrides: list[ModuleOverride] = []
    raw_overrides = data.get('override', [])
    if _check_type(errors, 'override', raw_overrides, list):
        for i, raw in enumerate(raw_overrides):
            override = _parse_override(errors, i, raw)
            if override is not None:
                overrides.append(override)

    if errors:
        raise ConfigError(errors)
    return Config(
        go_binary=go_binary,
        concurrency=concurrency,
        ignore=tuple(ignore),
        overrides=tuple(overrides),
    )


def load_config(path: Path | None = None) -> Config:
    """Load configuration from *path*.

    Without *path*, ``golicenses.toml`` in the working directory is used
    when present, and defaults otherwise.

    Raises:
        ConfigError: The file is unreadable or invalid.
    """
    if path is None:
        path = Path(DEFAULT_CONFIG_NAME)
        if not path.is_file():
            return Config()
    try:
        with path.open('rb') as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError([f'{path}: {exc}']) from exc
    return parse_config(data)

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

"""Load Go package graphs and module lists through the ``go`` command.

``go list -json`` prints a stream of concatenated JSON objects (not a
JSON array), one per package or module. This module decodes that
stream into :class:`~golicenses._types.Package` and
:class:`~golicenses._types.Module` values.

Usage::

    from golicenses.gocli import load_packages, list_modules

    graph = load_packages(['./...'])
    graph.visit(lambda pkg: pkg.name != 'unsafe')

    modules = list_modules()
"""

from __future__ import annotations

import json
import os
import subprocess  # noqa: S404 - the go command is the package loader
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from golicenses._types import Module, Package
from golicenses.errors import GoCommandError
from golicenses.logging import get_logger

__all__ = [
    'PackageGraph',
    'build_module_dict',
    'decode_json_stream',
    'goroot',
    'list_modules',
    'load_packages',
    'module_from_json',
    'package_from_json',
]

logger = get_logger(__name__)

_INCOMPATIBLE_SUFFIX = '+incompatible'


@dataclass
class PackageGraph:
    """Packages returned by one loader invocation.

    Attributes:
        roots: Packages matching the requested patterns.
        packages: Every loaded package keyed by import path.
    """

    roots: list[Package] = field(default_factory=list)
    packages: dict[str, Package] = field(default_factory=dict)

    def visit(self, pre: Callable[[Package], bool]) -> None:
        """Visit every package reachable from :attr:`roots` once, depth first.

        *pre* is called on each package the first time it is reached;
        returning ``False`` stops the descent below that package.
        Imports missing from :attr:`packages` are ignored.
        """
        seen: set[str] = set()
        stack: list[Package] = list(reversed(self.roots))
        while stack:
            pkg = stack.pop()
            if pkg.import_path in seen:
                continue
            seen.add(pkg.import_path)
            if not pre(pkg):
                continue
            for path in reversed(pkg.imports):
                dep = self.packages.get(path)
                if dep is not None and dep.import_path not in seen:
                    stack.append(dep)


def decode_json_stream(text: str) -> Iterator[dict[str, Any]]:
    """Yield each JSON object of a concatenated JSON stream."""
    decoder = json.JSONDecoder()
    idx = 0
    end = len(text)
    while True:
        while idx < end and text[idx].isspace():
            idx += 1
        if idx >= end:
            return
        try:
            obj, idx = decoder.raw_decode(text, idx)
        except json.JSONDecodeError as exc:
            raise GoCommandError(f'Failed to read go list output: {exc}') from exc
        yield obj


def module_from_json(data: dict[str, Any]) -> Module:
    """Build a :class:`Module` from ``go list`` module JSON.

    A ``Replace`` directive wins over the original module, and the
    ``+incompatible`` suffix is dropped because it does not change the
    version a tag points at.
    """
    replace = data.get('Replace')
    if isinstance(replace, dict):
        data = replace
    version = data.get('Version', '') or ''
    if version.endswith(_INCOMPATIBLE_SUFFIX):
        version = version[: -len(_INCOMPATIBLE_SUFFIX)]
    return Module(
        path=data.get('Path', ''),
        version=version,
        dir=data.get('Dir', '') or '',
        main=bool(data.get('Main', False)),
    )


def _abs_files(directory: str, names: list[str] | None) -> tuple[str, ...]:
    if not names:
        return ()
    return tuple(name if os.path.isabs(name) else os.path.join(directory, name) for name in names)


def package_from_json(data: dict[str, Any]) -> Package:
    """Build a :class:`Package` from one ``go list -json`` object."""
    directory = data.get('Dir', '') or ''
    errors: list[str] = []
    error = data.get('Error')
    if isinstance(error, dict) and error.get('Err'):
        errors.append(str(error['Err']))
    module_data = data.get('Module')
    return Package(
        import_path=data.get('ImportPath', ''),
        name=data.get('Name', ''),
        go_files=_abs_files(directory, data.get('GoFiles')),
        compiled_go_files=_abs_files(directory, data.get('CompiledGoFiles')),
        other_files=_abs_files(
            directory,
            [
                *(data.get('CFiles') or []),
                *(data.get('CXXFiles') or []),
                *(data.get('HFiles') or []),
                *(data.get('SFiles') or []),
                *(data.get('SysoFiles') or []),
            ],
        ),
        module=module_from_json(module_data) if isinstance(module_data, dict) else None,
        errors=tuple(errors),
        imports=tuple(data.get('Imports') or ()),
    )


def _run_go(go_binary: str, args: Sequence[str], *, cwd: str | None = None) -> str:
    cmd = [go_binary, *args]
    logger.debug('go_command', cmd=' '.join(cmd), cwd=cwd)
    try:
        proc = subprocess.run(  # noqa: S603
            cmd,
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise GoCommandError(f'Failed to run {go_binary}: {exc}') from exc
    if proc.returncode != 0:
        raise GoCommandError(f'{" ".join(cmd)} failed ({proc.returncode}): {proc.stderr.strip()}')
    return proc.stdout


def load_packages(
    patterns: Sequence[str],
    *,
    go_binary: str = 'go',
    cwd: str | None = None,
) -> PackageGraph:
    """Load *patterns* and all their dependencies.

    ``-e`` keeps ``go list`` going on broken packages so their errors
    land on the package objects instead of failing the command.

    Args:
        patterns: Import paths or patterns (e.g. ``"./..."``).
        go_binary: The ``go`` executable.
        cwd: Directory to run in (the main module).

    Returns:
        The loaded :class:`PackageGraph`.

    Raises:
        GoCommandError: The command failed or its output is unreadable.
    """
    out = _run_go(go_binary, ['list', '-e', '-json', '-deps', '--', *patterns], cwd=cwd)
    graph = PackageGraph()
    for data in decode_json_stream(out):
        pkg = package_from_json(data)
        graph.packages[pkg.import_path] = pkg
        if not data.get('DepOnly', False):
            graph.roots.append(pkg)
    logger.debug('loaded_packages', roots=len(graph.roots), total=len(graph.packages))
    return graph


def goroot(go_binary: str = 'go') -> str:
    """Return the GOROOT of *go_binary*."""
    return _run_go(go_binary, ['env', 'GOROOT']).strip()


def list_modules(go_binary: str = 'go', *, cwd: str | None = None) -> list[Module]:
    """List all modules of the build list with ``go list -m -json all``."""
    out = _run_go(go_binary, ['list', '-m', '-json', 'all'], cwd=cwd)
    return [module_from_json(data) for data in decode_json_stream(out)]


def build_module_dict(modules: Sequence[Module]) -> dict[str, Module]:
    """Map module path to module."""
    return {m.path: m for m in modules}

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

"""Tests for golicenses.gocli."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest
from golicenses._types import Module, Package
from golicenses.errors import GoCommandError
from golicenses.gocli import (
    PackageGraph,
    build_module_dict,
    decode_json_stream,
    goroot,
    list_modules,
    load_packages,
    module_from_json,
    package_from_json,
)

_GO_LIST_OUTPUT = """\
{
\t"Dir": "/mod/github.com/foo/bar@v1.0.0",
\t"ImportPath": "github.com/foo/bar",
\t"Name": "bar",
\t"Module": {"Path": "github.com/foo/bar", "Version": "v1.0.0", "Dir": "/mod/github.com/foo/bar@v1.0.0"},
\t"GoFiles": ["bar.go"],
\t"DepOnly": true
}
{
\t"Dir": "/src/app",
\t"ImportPath": "github.com/me/app",
\t"Name": "main",
\t"Module": {"Path": "github.com/me/app", "Main": true, "Dir": "/src/app"},
\t"GoFiles": ["main.go"],
\t"Imports": ["github.com/foo/bar"]
}
"""


def _completed(stdout: str, returncode: int = 0, stderr: str = '') -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=['go'], returncode=returncode, stdout=stdout, stderr=stderr)


class TestDecodeJsonStream:
    """Tests for decode_json_stream()."""

    def test_concatenated_objects(self) -> None:
        """Back-to-back objects are decoded one by one."""
        assert list(decode_json_stream('{"a": 1}\n{"b": 2}{"c": 3}\n')) == [{'a': 1}, {'b': 2}, {'c': 3}]

    def test_empty(self) -> None:
        """Whitespace-only output yields nothing."""
        assert list(decode_json_stream('  \n')) == []

    def test_malformed(self) -> None:
        """Truncated output raises GoCommandError."""
        with pytest.raises(GoCommandError):
            list(decode_json_stream('{"a": 1}\n{"b":'))


class TestModuleFromJson:
    """Tests for module_from_json()."""

    def test_plain(self) -> None:
        """Fields are copied over."""
        mod = module_from_json({'Path': 'github.com/foo/bar', 'Version': 'v1.0.0', 'Dir': '/mod/bar'})
        assert mod == Module(path='github.com/foo/bar', version='v1.0.0', dir='/mod/bar')

    def test_replace_wins(self) -> None:
        """A Replace directive replaces the module."""
        mod = module_from_json({
            'Path': 'github.com/foo/bar',
            'Version': 'v1.0.0',
            'Replace': {'Path': 'github.com/fork/bar', 'Version': 'v1.0.1', 'Dir': '/mod/fork'},
        })
        assert mod.path == 'github.com/fork/bar'
        assert mod.version == 'v1.0.1'

    def test_incompatible_suffix_dropped(self) -> None:
        """+incompatible is trimmed from the version."""
        assert module_from_json({'Path': 'x', 'Version': 'v2.0.0+incompatible'}).version == 'v2.0.0'

    def test_main_flag(self) -> None:
        """Main is recorded but does not affect equality."""
        mod = module_from_json({'Path': 'github.com/me/app', 'Main': True, 'Dir': '/src/app'})
        assert mod.main
        assert mod == Module(path='github.com/me/app', dir='/src/app')


class TestPackageFromJson:
    """Tests for package_from_json()."""

    def test_files_are_absolute(self) -> None:
        """Relative file names are joined with Dir."""
        pkg = package_from_json({
            'Dir': '/src/app',
            'ImportPath': 'github.com/me/app',
            'GoFiles': ['main.go'],
            'CFiles': ['x.c'],
            'SFiles': ['y.s'],
        })
        assert pkg.go_files == ('/src/app/main.go',)
        assert pkg.other_files == ('/src/app/x.c', '/src/app/y.s')
        assert pkg.dir == '/src/app'

    def test_error_recorded(self) -> None:
        """The Error field becomes a load error."""
        pkg = package_from_json({'ImportPath': 'bad', 'Error': {'Err': 'cannot find package'}})
        assert pkg.errors == ('cannot find package',)
        assert pkg.module is None


class TestPackageGraph:
    """Tests for PackageGraph.visit()."""

    def test_stops_descent(self) -> None:
        """Returning False skips the imports of that package."""
        a = Package(import_path='a', imports=('b',))
        b = Package(import_path='b', imports=('c',))
        c = Package(import_path='c')
        graph = PackageGraph(roots=[a], packages={'a': a, 'b': b, 'c': c})
        seen: list[str] = []

        def _pre(pkg: Package) -> bool:
            seen.append(pkg.import_path)
            return pkg.import_path != 'b'

        graph.visit(_pre)
        assert seen == ['a', 'b']

    def test_missing_import_ignored(self) -> None:
        """Imports absent from the graph are skipped."""
        a = Package(import_path='a', imports=('gone',))
        seen: list[str] = []
        PackageGraph(roots=[a], packages={'a': a}).visit(lambda p: seen.append(p.import_path) is None)
        assert seen == ['a']


class TestLoadPackages:
    """Tests for load_packages() and the other go command wrappers."""

    def test_roots_exclude_dep_only(self) -> None:
        """Only packages without DepOnly are roots."""
        with patch('golicenses.gocli.subprocess.run', return_value=_completed(_GO_LIST_OUTPUT)) as run:
            graph = load_packages(['./...'])
        assert [p.import_path for p in graph.roots] == ['github.com/me/app']
        assert set(graph.packages) == {'github.com/foo/bar', 'github.com/me/app'}
        assert run.call_args.args[0] == ['go', 'list', '-e', '-json', '-deps', '--', './...']

    def test_command_failure(self) -> None:
        """A non-zero exit raises GoCommandError with stderr."""
        with patch('golicenses.gocli.subprocess.run', return_value=_completed('', 1, 'go: boom')):
            with pytest.raises(GoCommandError, match='go: boom'):
                load_packages(['./...'])

    def test_missing_binary(self) -> None:
        """A missing go binary raises GoCommandError."""
        with patch('golicenses.gocli.subprocess.run', side_effect=FileNotFoundError('no go')):
            with pytest.raises(GoCommandError, match='Failed to run'):
                load_packages(['./...'], go_binary='/nope/go')

    def test_goroot(self) -> None:
        """goroot() strips the trailing newline."""
        with patch('golicenses.gocli.subprocess.run', return_value=_completed('/usr/local/go\n')):
            assert goroot() == '/usr/local/go'

    def test_list_modules(self) -> None:
        """list_modules() decodes every module."""
        out = '{"Path": "github.com/me/app", "Main": true}\n{"Path": "github.com/foo/bar", "Version": "v1.0.0"}\n'
        with patch('golicenses.gocli.subprocess.run', return_value=_completed(out)):
            modules = list_modules()
        assert build_module_dict(modules)['github.com/foo/bar'].version == 'v1.0.0'
        assert modules[0].main

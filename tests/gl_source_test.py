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

"""Tests for golicenses.source."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TypeVar

import httpx
import pytest
from golicenses.errors import RepositoryNotFoundError
from golicenses.net import http_client
from golicenses.source import (
    RemoteSource,
    SourceClient,
    parse_go_import_meta,
    reference_from_version,
    remove_version_suffix,
    static_remote,
)

# ── Helpers ──────────────────────────────────────────────────────────

_T = TypeVar('_T')


def _run(coro: Coroutine[object, object, _T]) -> _T:
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def _resolve(handler: httpx.MockTransport, module_path: str, version: str) -> RemoteSource:
    async def _go() -> RemoteSource:
        async with http_client(transport=handler) as client:
            return await SourceClient(client).resolve(module_path, version)

    return _run(_go())


def _meta_page(content: str) -> str:
    return f'<html><head><meta name="go-import" content="{content}"></head></html>'


# ── Versions ─────────────────────────────────────────────────────────


class TestVersions:
    """Tests for version helpers."""

    def test_remove_version_suffix(self) -> None:
        """Trailing major-version elements are dropped."""
        assert remove_version_suffix('sub/v2') == 'sub'
        assert remove_version_suffix('v3') == ''
        assert remove_version_suffix('sub') == 'sub'
        assert remove_version_suffix('sub/v1') == 'sub/v1'

    def test_tag(self) -> None:
        """Semver versions are tags."""
        assert reference_from_version('v1.2.3', '') == 'v1.2.3'

    def test_nested_module_tag(self) -> None:
        """Nested modules are tagged with their directory."""
        assert reference_from_version('v1.2.3', 'sub') == 'sub/v1.2.3'
        assert reference_from_version('v2.0.0', 'sub/v2') == 'sub/v2.0.0'

    def test_pseudo_version(self) -> None:
        """Pseudo-versions resolve to their commit hash."""
        assert reference_from_version('v0.0.0-20200101120000-abcdef123456', '') == 'abcdef123456'
        assert reference_from_version('v1.2.4-0.20200101120000-abcdef123456', 'sub') == 'abcdef123456'

    def test_incompatible(self) -> None:
        """+incompatible does not reach the tag."""
        assert reference_from_version('v2.0.0+incompatible', '') == 'v2.0.0'


# ── Static hosts ─────────────────────────────────────────────────────


class TestStaticRemote:
    """Tests for static_remote()."""

    def test_github_root(self) -> None:
        """A module at the repository root."""
        remote = static_remote('github.com/google/uuid', 'v1.3.0')
        assert remote is not None
        assert remote.file_url('LICENSE') == 'https://github.com/google/uuid/blob/v1.3.0/LICENSE'
        assert remote.raw_file_url('LICENSE') == 'https://github.com/google/uuid/raw/v1.3.0/LICENSE'

    def test_github_nested(self) -> None:
        """A nested module uses its directory and a prefixed tag."""
        remote = static_remote('github.com/foo/bar/sub', 'v1.2.3')
        assert remote is not None
        assert remote.module_dir == 'sub'
        assert remote.file_url('LICENSE') == 'https://github.com/foo/bar/blob/sub/v1.2.3/sub/LICENSE'
        assert remote.repo_file_url('LICENSE') == 'https://github.com/foo/bar/blob/sub/v1.2.3/LICENSE'

    def test_major_version_suffix(self) -> None:
        """A /vN module path element is not a directory."""
        remote = static_remote('github.com/foo/bar/v2', 'v2.1.0')
        assert remote is not None
        assert remote.module_dir == ''
        assert remote.file_url('LICENSE') == 'https://github.com/foo/bar/blob/v2.1.0/LICENSE'

    def test_no_version_is_head(self) -> None:
        """Modules without a version point at HEAD."""
        remote = static_remote('github.com/me/app', '')
        assert remote is not None
        assert remote.reference == 'HEAD'

    def test_gitlab(self) -> None:
        """GitLab URLs use the /-/ routes."""
        remote = static_remote('gitlab.com/foo/bar', 'v1.0.0')
        assert remote is not None
        assert remote.file_url('LICENSE') == 'https://gitlab.com/foo/bar/-/blob/v1.0.0/LICENSE'
        assert remote.raw_file_url('LICENSE') == 'https://gitlab.com/foo/bar/-/raw/v1.0.0/LICENSE'

    def test_bitbucket(self) -> None:
        """Bitbucket URLs use src and raw."""
        remote = static_remote('bitbucket.org/foo/bar', 'v1.0.0')
        assert remote is not None
        assert remote.file_url('LICENSE') == 'https://bitbucket.org/foo/bar/src/v1.0.0/LICENSE'

    def test_golang_x_has_no_raw_url(self) -> None:
        """golang.org/x maps to Gitiles, which has no raw endpoint."""
        remote = static_remote('golang.org/x/text', 'v0.3.7')
        assert remote is not None
        assert remote.file_url('LICENSE') == 'https://go.googlesource.com/text/+/v0.3.7/LICENSE'
        assert remote.raw_file_url('LICENSE') == ''

    def test_gopkg_in(self) -> None:
        """gopkg.in paths map to GitHub."""
        remote = static_remote('gopkg.in/yaml.v3', 'v3.0.1')
        assert remote is not None
        assert remote.repo_url == 'https://github.com/go-yaml/yaml'
        remote = static_remote('gopkg.in/foo/bar.v1', 'v1.0.0')
        assert remote is not None
        assert remote.repo_url == 'https://github.com/foo/bar'

    def test_unknown_host(self) -> None:
        """Unknown hosts give None."""
        assert static_remote('example.com/foo', 'v1.0.0') is None


# ── go-import meta ───────────────────────────────────────────────────


class TestParseGoImportMeta:
    """Tests for parse_go_import_meta()."""

    def test_parses_tags(self) -> None:
        """Only go-import tags with three fields are returned."""
        html = (
            '<meta name="viewport" content="width=device-width">'
            "<meta name='go-import' content='go.uber.org/zap git https://github.com/uber-go/zap'>"
            '<meta name="go-import" content="bad">'
        )
        assert parse_go_import_meta(html) == [('go.uber.org/zap', 'git', 'https://github.com/uber-go/zap')]


class TestSourceClient:
    """Tests for SourceClient.resolve()."""

    def test_static_host_needs_no_request(self) -> None:
        """Well-known hosts are resolved without HTTP."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError(f'unexpected request {request.url}')

        remote = _resolve(httpx.MockTransport(handler), 'github.com/foo/bar', 'v1.0.0')
        assert remote.repo_url == 'https://github.com/foo/bar'

    def test_vanity_path(self) -> None:
        """Vanity paths are resolved through go-import meta tags."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params['go-get'] == '1'
            return httpx.Response(200, text=_meta_page('go.uber.org/zap git https://github.com/uber-go/zap'))

        remote = _resolve(httpx.MockTransport(handler), 'go.uber.org/zap/exp', 'v0.1.0')
        assert remote.repo_url == 'https://github.com/uber-go/zap'
        assert remote.module_dir == 'exp'
        assert remote.reference == 'exp/v0.1.0'

    def test_vanity_unsupported_host(self) -> None:
        """A repository on an unknown host is an error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=_meta_page('example.com/x git https://git.example.com/x'))

        with pytest.raises(RepositoryNotFoundError, match='unsupported repository host'):
            _resolve(httpx.MockTransport(handler), 'example.com/x', 'v1.0.0')

    def test_vanity_lookup_fails(self) -> None:
        """A failing lookup is an error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        with pytest.raises(RepositoryNotFoundError, match='status 404'):
            _resolve(httpx.MockTransport(handler), 'example.com/x', 'v1.0.0')

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

r"""Map Go modules to the repositories hosting their source.

A module path is resolved to a repository in two ways:

1. **Static patterns** for well-known hosts (``github.com/o/r``,
   ``gitlab.com/o/r``, ``bitbucket.org/o/r``, ``golang.org/x/name``,
   ``go.googlesource.com/name``, ``gopkg.in/...``).
2. **go-import meta tags** for vanity paths: ``https://<path>?go-get=1``
   serves ``<meta name="go-import" content="prefix vcs repo-url">``.

Key Concepts::

    ┌────────────────────┬──────────────────────────────────────────────┐
    │ Concept            │ Meaning                                      │
    ├────────────────────┼──────────────────────────────────────────────┤
    │ repo_url           │ https://github.com/owner/repo                │
    ├────────────────────┼──────────────────────────────────────────────┤
    │ module_dir         │ Directory of the module inside the repo,     │
    │                    │ '' when the module is at the repo root.      │
    ├────────────────────┼──────────────────────────────────────────────┤
    │ reference          │ Commit hash (pseudo-versions), tag           │
    │                    │ ('v1.2.3' or 'sub/v1.2.3'), or 'HEAD'.       │
    ├────────────────────┼──────────────────────────────────────────────┤
    │ raw URL            │ Unrendered file bytes, for validation.       │
    └────────────────────┴──────────────────────────────────────────────┘

Usage::

    async with http_client() as client:
        remote = await SourceClient(client).resolve('github.com/foo/bar/sub', 'v1.2.3')
    remote.file_url('LICENSE')
    # 'https://github.com/foo/bar/blob/sub/v1.2.3/sub/LICENSE'
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Final

import httpx

from golicenses.errors import RepositoryNotFoundError
from golicenses.logging import get_logger

__all__ = [
    'RemoteSource',
    'SourceClient',
    'URLTemplates',
    'parse_go_import_meta',
    'reference_from_version',
    'remove_version_suffix',
    'static_remote',
]

logger = get_logger(__name__)


@dataclass(frozen=True)
class URLTemplates:
    """URL templates with ``{repo}``, ``{commit}`` and ``{file}`` fields.

    An empty :attr:`raw` means the host has no raw-content endpoint.
    """

    file: str
    raw: str = ''


_GITHUB: Final = URLTemplates(file='{repo}/blob/{commit}/{file}', raw='{repo}/raw/{commit}/{file}')
_GITLAB: Final = URLTemplates(file='{repo}/-/blob/{commit}/{file}', raw='{repo}/-/raw/{commit}/{file}')
_BITBUCKET: Final = URLTemplates(file='{repo}/src/{commit}/{file}', raw='{repo}/raw/{commit}/{file}')
# Gitiles only serves raw files base64-encoded (?format=TEXT).
_GITILES: Final = URLTemplates(file='{repo}/+/{commit}/{file}')

_TEMPLATES: Final[dict[str, URLTemplates]] = {
    'github': _GITHUB,
    'gitlab': _GITLAB,
    'bitbucket': _BITBUCKET,
    'gitiles': _GITILES,
}

_ELEM: Final = r'[A-Za-z0-9_.\-]+'

# (pattern, host kind, repo format). The pattern must match the start
# of the module path; the rest of the path is the module directory.
_STATIC_PATTERNS: Final[list[tuple[re.Pattern[str], str, str]]] = [
    (re.compile(rf'^(?P<repo>github\.com/{_ELEM}/{_ELEM})'), 'github', '{repo}'),
    (re.compile(rf'^(?P<repo>gitlab\.com/{_ELEM}/{_ELEM})'), 'gitlab', '{repo}'),
    (re.compile(rf'^(?P<repo>bitbucket\.org/{_ELEM}/{_ELEM})'), 'bitbucket', '{repo}'),
    (re.compile(rf'^golang\.org/x/(?P<name>{_ELEM})'), 'gitiles', 'go.googlesource.com/{name}'),
    (re.compile(rf'^(?P<repo>go\.googlesource\.com/{_ELEM})'), 'gitiles', '{repo}'),
    (
        re.compile(rf'^gopkg\.in/(?P<user>{_ELEM})/(?P<name>{_ELEM})\.v\d+'),
        'github',
        'github.com/{user}/{name}',
    ),
    (re.compile(rf'^gopkg\.in/(?P<name>{_ELEM})\.v\d+'), 'github', 'github.com/go-{name}/{name}'),
]

_PSEUDO_VERSION_RE: Final = re.compile(
    r'^v[0-9]+\.(0\.0-|\d+\.\d+-([^+]*\.)?0\.)\d{14}-[A-Za-z0-9]+(\+[0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*)?$',
)
_VERSION_SUFFIX_RE: Final = re.compile(r'(^|/)v([2-9]|[1-9][0-9]+)$')
_META_TAG_RE: Final = re.compile(r'<meta\b[^>]*>', re.IGNORECASE)
_ATTR_RE: Final = re.compile(r'([A-Za-z][\w\-]*)\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')
_INCOMPATIBLE_SUFFIX: Final = '+incompatible'


def remove_version_suffix(path: str) -> str:
    """Drop a trailing ``vN`` (N >= 2) major-version element from *path*."""
    return _VERSION_SUFFIX_RE.sub('', path)


def reference_from_version(version: str, module_dir: str) -> str:
    """Return the git reference a module version points at.

    Pseudo-versions carry the commit hash as their last element. Tags
    of modules nested in a repository are prefixed with the module
    directory (``sub/v1.2.3``).
    """
    v = version.removesuffix(_INCOMPATIBLE_SUFFIX)
    if _PSEUDO_VERSION_RE.match(v):
        return v.rsplit('-', 1)[1].split('+', 1)[0]
    prefix = remove_version_suffix(module_dir)
    if prefix:
        return f'{prefix}/{v}'
    return v


@dataclass
class RemoteSource:
    """Repository location of one module at one reference.

    Attributes:
        kind: Host kind (``"github"``, ``"gitlab"``, ``"bitbucket"``,
            ``"gitiles"``).
        repo_url: Repository root URL.
        module_dir: Module directory inside the repository.
        reference: Commit hash, tag, or ``"HEAD"``.
    """

    kind: str
    repo_url: str
    module_dir: str = ''
    reference: str = 'HEAD'

    @property
    def templates(self) -> URLTemplates:
        """URL templates of :attr:`kind`."""
        return _TEMPLATES[self.kind]

    def set_reference(self, reference: str) -> None:
        """Point URLs at *reference* (e.g. ``"HEAD"``) instead."""
        self.reference = reference

    def _format(self, template: str, file: str) -> str:
        if not template:
            return ''
        return template.format(repo=self.repo_url, commit=self.reference, file=file)

    def _module_file(self, path: str) -> str:
        return posixpath.join(self.module_dir, path) if self.module_dir else path

    def file_url(self, path: str) -> str:
        """Browsable URL of *path* relative to the module directory."""
        return self._format(self.templates.file, self._module_file(path))

    def raw_file_url(self, path: str) -> str:
        """Raw URL of *path* relative to the module directory, or ``""``."""
        return self._format(self.templates.raw, self._module_file(path))

    def repo_file_url(self, path: str) -> str:
        """Browsable URL of *path* relative to the repository root."""
        return self._format(self.templates.file, path)

    def repo_raw_file_url(self, path: str) -> str:
        """Raw URL of *path* relative to the repository root, or ``""``."""
        return self._format(self.templates.raw, path)

    def __str__(self) -> str:
        return self.repo_url


def _trim_vcs_suffix(repo: str) -> str:
    return repo.removesuffix('.git').removesuffix('.hg')


def static_remote(module_path: str, version: str, *, repo_hint: str = '') -> RemoteSource | None:
    """Resolve *module_path* against the well-known host patterns.

    Args:
        module_path: Module path.
        version: Module version (may be empty).
        repo_hint: Repository path (no scheme) to match instead of the
            module path; used for vanity paths. The module directory is
            then taken from the module path below *repo_hint*'s prefix.

    Returns:
        The :class:`RemoteSource`, or ``None`` if no pattern matches.
    """
    target = repo_hint or module_path
    for pattern, kind, repo_format in _STATIC_PATTERNS:
        match = pattern.match(target)
        if not match:
            continue
        if repo_hint:
            module_dir = ''
        else:
            module_dir = module_path[match.end() :].strip('/')
        repo = _trim_vcs_suffix(repo_format.format(**match.groupdict()))
        module_dir = remove_version_suffix(module_dir)
        return RemoteSource(
            kind=kind,
            repo_url=f'https://{repo}',
            module_dir=module_dir,
            reference=reference_from_version(version, module_dir) if version else 'HEAD',
        )
    return None


def parse_go_import_meta(html: str) -> list[tuple[str, str, str]]:
    """Return ``(prefix, vcs, repo_url)`` for each go-import meta tag in *html*."""
    result: list[tuple[str, str, str]] = []
    for tag in _META_TAG_RE.findall(html):
        attrs = {name.lower(): dq or sq for name, dq, sq in _ATTR_RE.findall(tag)}
        if attrs.get('name') != 'go-import':
            continue
        fields = attrs.get('content', '').split()
        if len(fields) == 3:
            result.append((fields[0], fields[1], fields[2]))
    return result


class SourceClient:
    """Resolve module paths to :class:`RemoteSource` values.

    Args:
        client: HTTP client used for go-import lookups of vanity paths.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def resolve(self, module_path: str, version: str) -> RemoteSource:
        """Return the repository location of *module_path* at *version*.

        Raises:
            RepositoryNotFoundError: No known host serves the module.
        """
        remote = static_remote(module_path, version)
        if remote is not None:
            return remote
        return await self._resolve_vanity(module_path, version)

    async def _resolve_vanity(self, module_path: str, version: str) -> RemoteSource:
        url = f'https://{module_path}?go-get=1'
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise RepositoryNotFoundError(f'go-import lookup {url} failed: {exc}') from exc
        if resp.status_code >= 400:
            raise RepositoryNotFoundError(f'go-import lookup {url}: status {resp.status_code}')

        for prefix, vcs, repo_url in parse_go_import_meta(resp.text):
            if vcs == 'mod' or not (module_path == prefix or module_path.startswith(prefix + '/')):
                continue
            repo = repo_url.split('://', 1)[-1].rstrip('/')
            remote = static_remote(module_path, version, repo_hint=repo)
            if remote is None:
                raise RepositoryNotFoundError(f'module {module_path}: unsupported repository host {repo_url}')
            remote.module_dir = remove_version_suffix(module_path[len(prefix) :].strip('/'))
            if version:
                remote.reference = reference_from_version(version, remote.module_dir)
            logger.debug('vanity_path_resolved', module=module_path, repo=remote.repo_url, dir=remote.module_dir)
            return remote
        raise RepositoryNotFoundError(f'module {module_path}: no go-import meta tag at {url}')

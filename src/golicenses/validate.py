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

r"""Check that a license URL serves the bytes of the local license file.

A computed URL can point at the wrong file, most often for modules in a
sub-directory of their repository whose ``LICENSE`` actually comes from
the repository root. Validation downloads the raw counterpart of the
URL and compares it byte for byte with the file on disk::

    Start
      │
      ├── no raw URL for this host ────────────────→ return URL (unverified)
      │
      ├── attempt 1: module-relative raw URL ── match ──→ return URL
      │     │ mismatch / fetch error
      │     ├── relative path != LICENSE ──────────→ fail
      │     └── relative path == LICENSE
      │           ├── repo-root URL == URL ────────→ fail
      │           └── attempt 2: repo-root raw URL
      │                 ├── match ─────────────────→ return repo-root URL
      │                 └── mismatch / fetch error → fail (both attempts)

Each fetch is retried once after a fixed delay.
"""

from __future__ import annotations

import asyncio
from typing import Final, Protocol

from golicenses.errors import TransientNetworkError, ValidationError
from golicenses.logging import get_logger
from golicenses.net import HTTPFetcher
from golicenses.source import RemoteSource

__all__ = [
    'ContentValidator',
    'DEFAULT_RETRY_DELAY',
    'LICENSE_FILENAME',
    'LicenseValidator',
    'SkipValidation',
]

logger = get_logger(__name__)

#: Conventional name of a repository's top-level license file.
LICENSE_FILENAME: Final[str] = 'LICENSE'

#: Seconds to wait before the single retry of a failed fetch.
DEFAULT_RETRY_DELAY: Final[float] = 1.0


class LicenseValidator(Protocol):
    """Turns a candidate license URL into a validated one."""

    async def validate(
        self,
        *,
        license_path: str,
        remote: RemoteSource,
        relative_path: str,
        url: str,
    ) -> str:
        """Return the URL to report for *license_path*.

        Raises:
            ValidationError: No URL serving the local content was found.
        """
        ...


class SkipValidation:
    """Validator that trusts the candidate URL."""

    async def validate(
        self,
        *,
        license_path: str,
        remote: RemoteSource,
        relative_path: str,
        url: str,
    ) -> str:
        """Return *url* unchanged."""
        return url


class ContentValidator:
    """Validate license URLs by comparing remote and local bytes.

    Args:
        fetcher: Downloads raw URLs.
        retry_delay: Seconds to wait before retrying a failed fetch.
    """

    def __init__(self, fetcher: HTTPFetcher, *, retry_delay: float = DEFAULT_RETRY_DELAY) -> None:
        self._fetcher = fetcher
        self._retry_delay = retry_delay

    async def _download(self, raw_url: str) -> bytes:
        try:
            return await self._fetcher.get(raw_url)
        except TransientNetworkError as exc:
            logger.debug('download_retry', url=raw_url, error=str(exc))
            await asyncio.sleep(self._retry_delay)
            return await self._fetcher.get(raw_url)

    async def _check(self, raw_url: str, local: bytes) -> str:
        """Return an error message, or ``""`` if *raw_url* serves *local*."""
        try:
            remote = await self._download(raw_url)
        except TransientNetworkError as exc:
            return str(exc)
        if remote != local:
            return f'local license file content does not match remote license URL {raw_url}'
        return ''

    async def validate(
        self,
        *,
        license_path: str,
        remote: RemoteSource,
        relative_path: str,
        url: str,
    ) -> str:
        """Return a URL whose raw content equals the file at *license_path*.

        Args:
            license_path: Local license file.
            remote: Repository hosting the module.
            relative_path: *license_path* relative to the module directory.
            url: Candidate browsable URL for *relative_path*.

        Raises:
            ValidationError: Local file unreadable, or no attempt matched.
        """
        try:
            with open(license_path, 'rb') as f:
                local = f.read()
        except OSError as exc:
            raise ValidationError(f'failed to validate {url}: {exc}', url=url) from exc

        raw_url = remote.raw_file_url(relative_path)
        if not raw_url:
            logger.warning(
                'license_url_unverified',
                url=url,
                license_path=license_path,
                reason=f'remote repo {remote} does not support raw URL',
                hint=f'Please verify whether {url} matches content of {license_path} manually!',
            )
            return url

        error1 = await self._check(raw_url, local)
        if not error1:
            return url
        attempt1 = f'failed to validate {url}: {error1}'
        if relative_path != LICENSE_FILENAME:
            raise ValidationError(attempt1, url=url, attempts=[attempt1])

        # A module in a sub-directory may inherit the repository's LICENSE.
        url2 = remote.repo_file_url(LICENSE_FILENAME)
        if url2 == url:
            raise ValidationError(attempt1, url=url, attempts=[attempt1])
        error2 = await self._check(remote.repo_raw_file_url(LICENSE_FILENAME), local)
        if not error2:
            logger.debug('license_url_repo_root', url=url2, license_path=license_path)
            return url2
        attempt2 = f'failed to validate {url2}: {error2}'
        raise ValidationError(
            f'cannot infer remote URL for {license_path}, failed attempts:\n'
            f'\tattempt 1: {attempt1}\n\tattempt 2: {attempt2}',
            url=url,
            attempts=[attempt1, attempt2],
        )

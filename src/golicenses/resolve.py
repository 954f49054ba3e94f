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

"""Resolve the remote license URL of each library.

Usage::

    async with http_client() as client:
        results = await resolve_license_urls(
            libs,
            source_client=SourceClient(client),
            validator=ContentValidator(HttpxFetcher(client)),
        )
    for r in results:
        print(r.library.name, r.url or r.error)
"""

from __future__ import annotations

import asyncio
import os
import posixpath
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Final, Protocol

from golicenses.config import Config, LicenseOverride, ModuleOverride
from golicenses.errors import GoLicensesError, LicenseNotFoundError, ModuleMetadataError
from golicenses.library import Library
from golicenses.logging import get_logger
from golicenses.source import RemoteSource
from golicenses.validate import LicenseValidator

__all__ = [
    'DEFAULT_CONCURRENCY',
    'LibraryURL',
    'SubModuleURL',
    'SourceHostClient',
    'license_url',
    'line_anchor',
    'resolve_license_urls',
]

logger = get_logger(__name__)

#: Libraries resolved at a time. One keeps logs in library order.
DEFAULT_CONCURRENCY: Final[int] = 1

#: Reference used for modules without a version.
DEFAULT_BRANCH_REFERENCE: Final[str] = 'HEAD'


class SourceHostClient(Protocol):
    """Maps a module to its repository."""

    async def resolve(self, module_path: str, version: str) -> RemoteSource:
        """Return the repository location of *module_path* at *version*."""
        ...


@dataclass
class SubModuleURL:
    """A sub-module row declared by a config override.

    Attributes:
        name: ``<module>/<sub-module path>``.
        url: License URL inside the sub-module.
        spdx_id: License identifier from the override.
    """

    name: str
    url: str
    spdx_id: str


@dataclass
class LibraryURL:
    """Outcome of resolving one library.

    Attributes:
        library: The library.
        url: Resolved license URL; empty on failure.
        error: Why resolution failed, if it did.
        skipped: The library was excluded by a config override.
        spdx_id: License identifier forced by a config override.
        sub_modules: Extra rows for sub-modules declared by an override.
    """

    library: Library
    url: str = ''
    error: Exception | None = None
    skipped: bool = False
    spdx_id: str = ''
    sub_modules: list[SubModuleURL] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """``True`` if a URL was resolved."""
        return self.error is None and not self.skipped


def line_anchor(line_start: int, line_end: int) -> str:
    """Return the ``#L<start>-L<end>`` fragment for a line range, or ``""``."""
    if not line_start:
        return ''
    if line_end and line_end != line_start:
        return f'#L{line_start}-L{line_end}'
    return f'#L{line_start}'


async def _remote_for(library: Library, source_client: SourceHostClient) -> RemoteSource:
    module = library.module
    if module is None:
        raise ModuleMetadataError(f'getting file URL in library {library.name}: empty go module info')
    remote = await source_client.resolve(module.path, module.version)
    if not module.version:
        # Untagged (main) module: no commit is known, and HEAD follows
        # whatever the default branch is called.
        remote.set_reference(DEFAULT_BRANCH_REFERENCE)
        logger.warning(
            'module_without_version',
            module=module.path,
            reference=DEFAULT_BRANCH_REFERENCE,
            hint='The license URL may not match the checked-out content. Please verify!',
        )
    return remote


async def license_url(
    library: Library,
    *,
    source_client: SourceHostClient,
    validator: LicenseValidator,
) -> str:
    """Return a URL of the license file of *library*.

    Raises:
        ModuleMetadataError: The library has no module or module directory.
        RepositoryNotFoundError: The module's repository is unknown.
        ValidationError: No URL serving the local license was found.
    """
    module = library.module
    if module is None:
        raise ModuleMetadataError(f'getting file URL in library {library.name}: empty go module info')
    if not module.dir:
        raise ModuleMetadataError(f'getting file URL in library {library.name}: empty go module dir')

    remote = await _remote_for(library, source_client)
    relative_path = os.path.relpath(library.license_path, module.dir).replace(os.sep, '/')
    url = remote.file_url(relative_path)
    return await validator.validate(
        license_path=library.license_path,
        remote=remote,
        relative_path=relative_path,
        url=url,
    )


async def _override_urls(
    library: Library,
    override: ModuleOverride,
    source_client: SourceHostClient,
) -> LibraryURL:
    """Build the URLs of a ``license.path`` override and its sub-modules.

    These URLs point at files the user named and are not validated.
    """
    license_override = override.license
    remote: RemoteSource | None = None

    async def _url(lic: LicenseOverride, sub_path: str = '') -> str:
        nonlocal remote
        if lic.url:
            return lic.url
        if remote is None:
            remote = await _remote_for(library, source_client)
        path = posixpath.join(sub_path, lic.path) if sub_path else lic.path
        return remote.file_url(path) + line_anchor(lic.line_start, lic.line_end)

    logger.debug('license_overridden', library=library.name, module=override.module, path=license_override.path)
    result = LibraryURL(library=library, url=await _url(license_override), spdx_id=license_override.spdx_id)
    for sub in override.sub_modules:
        result.sub_modules.append(
            SubModuleURL(
                name=f'{override.module}/{sub.path}',
                url=await _url(sub.license, sub.path),
                spdx_id=sub.license.spdx_id,
            )
        )
    return result


async def _resolve_one(
    library: Library,
    *,
    source_client: SourceHostClient,
    validator: LicenseValidator,
    config: Config,
) -> LibraryURL:
    module = library.module
    override = config.override_for(module.path) if module is not None else None
    if override is not None and module is not None:
        if override.version and override.version != module.version:
            return LibraryURL(
                library=library,
                error=ModuleMetadataError(
                    f'override version mismatch for {module.path}: '
                    f'version {module.version!r} != {override.version!r}'
                ),
            )
        if override.skip:
            logger.info('library_skipped', library=library.name, module=module.path)
            return LibraryURL(library=library, skipped=True)
        if override.license.path:
            try:
                return await _override_urls(library, override, source_client)
            except GoLicensesError as exc:
                return LibraryURL(library=library, error=exc, spdx_id=override.license.spdx_id)
        if override.license.url:
            return LibraryURL(library=library, url=override.license.url, spdx_id=override.license.spdx_id)

    spdx_id = override.license.spdx_id if override is not None else ''
    if not library.license_path:
        return LibraryURL(
            library=library,
            error=LicenseNotFoundError(f'no license file found for library {library.name}'),
            spdx_id=spdx_id,
        )
    try:
        url = await license_url(library, source_client=source_client, validator=validator)
    except GoLicensesError as exc:
        return LibraryURL(library=library, error=exc, spdx_id=spdx_id)
    return LibraryURL(library=library, url=url, spdx_id=spdx_id)


async def resolve_license_urls(
    libraries: Sequence[Library],
    *,
    source_client: SourceHostClient,
    validator: LicenseValidator,
    config: Config | None = None,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_done: Callable[[LibraryURL], None] | None = None,
) -> list[LibraryURL]:
    """Resolve the license URL of every library independently.

    A failure for one library, expected or not, is recorded on its
    result and never affects the others. Sub-module rows of a module
    with several libraries are kept on the first of them only.

    Args:
        libraries: Libraries to resolve.
        source_client: Maps modules to repositories.
        validator: Validates candidate URLs.
        config: Supplies per-module overrides.
        concurrency: Maximum libraries resolved at once.
        on_done: Called with each result as it completes (progress).

    Returns:
        One :class:`LibraryURL` per library, in input order.
    """
    cfg = config or Config()
    sem = asyncio.Semaphore(max(1, concurrency))

    async def _do_one(library: Library) -> LibraryURL:
        async with sem:
            try:
                result = await _resolve_one(library, source_client=source_client, validator=validator, config=cfg)
            except Exception as exc:  # noqa: BLE001
                logger.exception('license_url_crashed', library=library.name)
                result = LibraryURL(library=library, error=exc)
        if result.error is not None:
            logger.error('license_url_failed', library=library.name, error=str(result.error))
        if on_done is not None:
            try:
                on_done(result)
            except Exception:  # noqa: BLE001
                logger.exception('on_done_failed', library=library.name)
        return result

    results = list(await asyncio.gather(*[_do_one(lib) for lib in libraries]))
    seen: set[str] = set()
    for result in results:
        result.sub_modules = [s for s in result.sub_modules if s.name not in seen]
        seen.update(s.name for s in result.sub_modules)
    return results

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

"""Error types raised by golicenses.

Errors fall in two groups:

- **Fatal** errors abort the whole run because an incomplete dependency
  inventory is unsafe to report on: :class:`GraphLoadError`,
  :class:`ConfigError`, :class:`GoCommandError`.
- **Per-library** errors only fail URL resolution for one library:
  :class:`ModuleMetadataError`, :class:`RepositoryNotFoundError`,
  :class:`ValidationError`. Callers keep going and count them.

:class:`LicenseNotFoundError` is logged during grouping (the package
becomes an unlicensed singleton library) and :class:`TransientNetworkError`
is retried once before it is folded into a :class:`ValidationError`.
"""

from __future__ import annotations

__all__ = [
    'ConfigError',
    'GoCommandError',
    'GoLicensesError',
    'GraphLoadError',
    'LicenseNotFoundError',
    'ModuleMetadataError',
    'RepositoryNotFoundError',
    'TransientNetworkError',
    'ValidationError',
]


class GoLicensesError(Exception):
    """Base class for every error raised by golicenses."""


class GraphLoadError(GoLicensesError):
    """One or more reachable packages failed to load.

    Attributes:
        errors: ``(import_path, message)`` pairs, one per load error.
    """

    def __init__(self, errors: list[tuple[str, str]]) -> None:
        self.errors = errors
        bullet_list = '\n'.join(f'  - {path}: {message}' for path, message in errors)
        super().__init__(f'{len(errors)} package load error(s):\n{bullet_list}')


class GoCommandError(GoLicensesError):
    """The ``go`` command failed or produced unreadable output."""


class ConfigError(GoLicensesError):
    """The configuration file is invalid.

    Attributes:
        errors: Human-readable problems found in the file.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        bullet_list = '\n'.join(f'  - {e}' for e in errors)
        super().__init__(f'Configuration has {len(errors)} error(s):\n{bullet_list}')


class LicenseNotFoundError(GoLicensesError):
    """No license file could be found or identified."""


class ModuleMetadataError(GoLicensesError):
    """A library's owning module is missing or has no directory."""


class RepositoryNotFoundError(GoLicensesError):
    """A module path could not be mapped to a source repository."""


class TransientNetworkError(GoLicensesError):
    """A fetch failed with a network error or an error status.

    Attributes:
        url: The URL that was fetched.
        status: HTTP status code, or ``0`` when no response was received.
        cause: Underlying exception, if any.
    """

    def __init__(self, url: str, *, status: int = 0, cause: BaseException | None = None) -> None:
        self.url = url
        self.status = status
        self.cause = cause
        if status:
            message = f'download({url!r}): response status code {status} not OK'
        else:
            message = f'download({url!r}): {cause}'
        super().__init__(message)


class ValidationError(GoLicensesError):
    """The remote license content does not match the local file.

    Attributes:
        url: The browsable URL that failed validation.
        attempts: One message per failed validation attempt.
    """

    def __init__(self, message: str, *, url: str = '', attempts: list[str] | None = None) -> None:
        self.url = url
        self.attempts = attempts or []
        super().__init__(message)

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

"""HTTP plumbing shared by the source host client and the validator."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Final, Protocol

import httpx

from golicenses.errors import TransientNetworkError

__all__ = [
    'DEFAULT_POOL_SIZE',
    'DEFAULT_TIMEOUT',
    'HTTPFetcher',
    'HttpxFetcher',
    'http_client',
]

#: Per-request deadline in seconds.
DEFAULT_TIMEOUT: Final[float] = 20.0

#: Maximum open connections per client.
DEFAULT_POOL_SIZE: Final[int] = 10

_USER_AGENT: Final[str] = 'golicenses (+https://github.com/google/go-licenses)'


@asynccontextmanager
async def http_client(
    *,
    pool_size: int = DEFAULT_POOL_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield an :class:`httpx.AsyncClient` that follows redirects.

    Args:
        pool_size: Maximum number of connections.
        timeout: Per-request timeout in seconds.
        transport: Optional transport (tests pass ``httpx.MockTransport``).
    """
    limits = httpx.Limits(max_connections=pool_size, max_keepalive_connections=pool_size)
    async with httpx.AsyncClient(
        limits=limits,
        timeout=timeout,
        follow_redirects=True,
        headers={'User-Agent': _USER_AGENT},
        transport=transport,
    ) as client:
        yield client


class HTTPFetcher(Protocol):
    """Fetches raw bytes."""

    async def get(self, url: str) -> bytes:
        """Return the body at *url* or raise :class:`TransientNetworkError`."""
        ...


class HttpxFetcher:
    """:class:`HTTPFetcher` backed by an :class:`httpx.AsyncClient`."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get(self, url: str) -> bytes:
        """Fetch *url*.

        Raises:
            TransientNetworkError: Transport failure or status >= 400.
        """
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise TransientNetworkError(url, cause=exc) from exc
        if resp.status_code >= 400:
            raise TransientNetworkError(url, status=resp.status_code)
        return resp.content

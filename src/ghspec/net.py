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

"""HTTP plumbing shared by the hosting API client.

Provides an :class:`httpx.AsyncClient` factory and a retrying request
helper with exponential backoff and jitter.  Only transport errors,
``429`` and ``5xx`` responses are retried; every other response is
returned to the caller unchanged.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Final

import httpx

from ghspec.logging import get_logger

log = get_logger('ghspec.net')

#: Default connection pool size.
DEFAULT_POOL_SIZE: Final[int] = 10

#: Default request timeout in seconds.
DEFAULT_TIMEOUT: Final[float] = 30.0

#: Default number of retries after the first attempt.
MAX_RETRIES: Final[int] = 3

#: Base delay (seconds) for the retry backoff.
BACKOFF_BASE: Final[float] = 0.5

_RETRYABLE_STATUS: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


@asynccontextmanager
async def http_client(
    *,
    base_url: str = '',
    token: str = '',
    pool_size: int = DEFAULT_POOL_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    headers: dict[str, str] | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a configured :class:`httpx.AsyncClient`.

    Args:
        base_url: Base URL prepended to relative request paths.
        token: Bearer token; omitted from headers when empty.
        pool_size: Maximum number of pooled connections.
        timeout: Request timeout in seconds.
        headers: Extra default headers.
    """
    all_headers = dict(headers or {})
    if token:
        all_headers['Authorization'] = f'Bearer {token}'
    limits = httpx.Limits(max_connections=pool_size, max_keepalive_connections=pool_size)
    async with httpx.AsyncClient(
        base_url=base_url,
        headers=all_headers,
        limits=limits,
        timeout=timeout,
        follow_redirects=True,
    ) as client:
        yield client


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = MAX_RETRIES,
    backoff_base: float = BACKOFF_BASE,
    **kwargs: Any,  # noqa: ANN401
) -> httpx.Response:
    """Send a request, retrying transient failures.

    Args:
        client: The client to send with.
        method: HTTP method.
        url: Absolute URL or path relative to the client's base URL.
        max_retries: Retries after the first attempt.
        backoff_base: Delay before the first retry; doubles each retry.
        **kwargs: Passed through to :meth:`httpx.AsyncClient.request`.

    Returns:
        The final response (which may still be an error response).

    Raises:
        httpx.TransportError: If the last attempt failed at the transport level.
    """
    attempt = 0
    while True:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            if attempt >= max_retries:
                raise
            log.debug('request_retry', method=method, url=url, attempt=attempt, error=str(exc))
        else:
            if response.status_code not in _RETRYABLE_STATUS or attempt >= max_retries:
                return response
            log.debug('request_retry', method=method, url=url, attempt=attempt, status=response.status_code)
        delay = backoff_base * (2**attempt)
        await asyncio.sleep(delay + random.uniform(0, delay / 2))  # noqa: S311
        attempt += 1


__all__ = [
    'BACKOFF_BASE',
    'DEFAULT_POOL_SIZE',
    'DEFAULT_TIMEOUT',
    'MAX_RETRIES',
    'http_client',
    'request_with_retry',
]

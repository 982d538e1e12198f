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

"""In-process cache of canonical license bodies.

Bodies are fetched lazily from the hosting API and kept for the lifetime
of the process.  When the license is in the registry, the fetched body
must match the pinned checksum before it is cached.

Concurrency: population is not synchronized.  Callers must populate the
cache from a single task at a time, which holds for the sequential
verify/apply runs.  A caller that processes repositories concurrently
has to serialize :meth:`LicenseCache.get` itself.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from ghspec.errors import ChecksumMismatchError, HostingAPIError
from ghspec.license._registry import REGISTRY, LicenseRegistry
from ghspec.logging import get_logger

__all__ = [
    'LicenseCache',
    'LicenseFetcher',
]

log = get_logger('ghspec.license.cache')

#: Fetches the canonical body of a license by key.
LicenseFetcher = Callable[[str], Awaitable[str]]


class LicenseCache:
    """Memoizes canonical license bodies keyed by canonical identifier.

    Args:
        fetch: Coroutine function returning the body for a license key
            (usually :meth:`ghspec.github.GitHubClient.get_license`).
        registry: Registry used to resolve aliases and verify checksums.
    """

    def __init__(self, fetch: LicenseFetcher, *, registry: LicenseRegistry = REGISTRY) -> None:
        self._fetch = fetch
        self._registry = registry
        self._bodies: dict[str, str] = {}

    @property
    def registry(self) -> LicenseRegistry:
        """The registry backing this cache."""
        return self._registry

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and self._registry.resolve(identifier) in self._bodies

    async def get(self, identifier: str) -> str:
        """Return the canonical body of *identifier*.

        Aliases are resolved first, so ``get('apache')`` and
        ``get('apache-2.0')`` share one slot.

        Raises:
            HostingAPIError: If the body could not be fetched.
            ChecksumMismatchError: If the fetched body does not match the
                registry's pinned checksum. Nothing is cached.
        """
        key = self._registry.resolve(identifier)
        cached = self._bodies.get(key)
        if cached is not None:
            return cached

        try:
            body = await self._fetch(key)
        except HostingAPIError as exc:
            raise HostingAPIError(f'failed to get license {key}: {exc}', exc.status_code) from exc

        spec = self._registry.get(key)
        if spec is not None:
            mismatch = spec.checksum_mismatch(body)
            if mismatch is not None:
                expected, actual = mismatch
                log.error('license_checksum_mismatch', license=key, expected=expected, actual=actual)
                raise ChecksumMismatchError(key, expected, actual)

        log.debug('license_cached', license=key, verified=spec is not None and spec.pinned)
        self._bodies[key] = body
        return body

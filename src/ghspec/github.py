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

"""GitHub REST API client.

The reconciliation engine talks to the hosting service only through the
:class:`HostingClient` protocol.  :class:`GitHubClient` implements it over
the GitHub REST v3 API with :mod:`httpx`.

Usage::

    async with GitHubClient.connect(token=token) as client:
        repo = await client.get_repo('octocat', 'Hello-World')
        body = await client.get_license('mit')
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Final, Protocol, TypeVar
from urllib.parse import parse_qs, urlparse

import httpx

from ghspec._types import (
    Branch,
    Collaborator,
    Commit,
    LicenseRef,
    Page,
    RateLimit,
    RepoLicense,
    Repository,
    TreeEntry,
)
from ghspec.config import DEFAULT_API_URL
from ghspec.errors import HostingAPIError
from ghspec.logging import get_logger
from ghspec.net import DEFAULT_TIMEOUT, MAX_RETRIES, http_client, request_with_retry

__all__ = [
    'GitHubClient',
    'HostingClient',
]

log = get_logger('ghspec.github')

_T = TypeVar('_T')

_ACCEPT: Final[str] = 'application/vnd.github+json'
_API_VERSION: Final[str] = '2022-11-28'
_PER_PAGE: Final[int] = 100


class HostingClient(Protocol):
    """Operations the reconciliation engine consumes from the hosting service."""

    async def get_repo(self, owner: str, name: str) -> Repository:
        """Return the repository ``owner/name``."""  # pragma: no cover
        ...

    async def get_repo_by_id(self, repo_id: int) -> Repository:
        """Return the repository with numeric id *repo_id*."""  # pragma: no cover
        ...

    async def list_org_repos(self, org: str, page: int = 1) -> Page[Repository]:
        """Return one page of an organization's repositories."""  # pragma: no cover
        ...

    async def list_user_repos(self, user: str, page: int = 1) -> Page[Repository]:
        """Return one page of a user's repositories."""  # pragma: no cover
        ...

    async def list_own_repos(self, page: int = 1) -> Page[Repository]:
        """Return one page of repositories owned by the authenticated actor."""  # pragma: no cover
        ...

    async def get_repo_license(self, owner: str, name: str) -> RepoLicense | None:
        """Return the repository's license file, or ``None`` if none is detected."""  # pragma: no cover
        ...

    async def is_empty(self, owner: str, name: str) -> bool:
        """Return whether the repository has no commits."""  # pragma: no cover
        ...

    async def list_collaborators(self, owner: str, name: str, page: int = 1) -> Page[Collaborator]:
        """Return one page of collaborators with their permissions."""  # pragma: no cover
        ...

    async def list_root_contents(self, owner: str, name: str) -> list[str]:
        """Return the file names in the repository's root directory."""  # pragma: no cover
        ...

    async def get_branch(self, owner: str, name: str, branch: str) -> Branch:
        """Return a branch and its head commit SHA."""  # pragma: no cover
        ...

    async def get_commit(self, owner: str, name: str, sha: str) -> Commit:
        """Return a git commit."""  # pragma: no cover
        ...

    async def create_tree(self, owner: str, name: str, base_tree: str, entries: Sequence[TreeEntry]) -> str:
        """Create a tree on top of *base_tree* and return its SHA."""  # pragma: no cover
        ...

    async def create_commit(self, owner: str, name: str, message: str, tree_sha: str, parents: Sequence[str]) -> str:
        """Create a commit and return its SHA."""  # pragma: no cover
        ...

    async def create_ref(self, owner: str, name: str, ref: str, sha: str) -> None:
        """Create the reference *ref* pointing at *sha*."""  # pragma: no cover
        ...

    async def create_pull_request(self, owner: str, name: str, *, title: str, body: str, head: str, base: str) -> str:
        """Open a pull request and return its URL."""  # pragma: no cover
        ...

    async def create_fork(self, owner: str, name: str) -> Repository:
        """Start forking ``owner/name`` for the authenticated actor."""  # pragma: no cover
        ...

    async def list_licenses(self) -> list[LicenseRef]:
        """Return every license the provider offers."""  # pragma: no cover
        ...

    async def get_license(self, key: str) -> str:
        """Return the canonical body of the license *key*."""  # pragma: no cover
        ...

    async def rate_limit(self) -> RateLimit:
        """Return the core rate-limit status."""  # pragma: no cover
        ...


def _page_number(link: dict[str, str] | None) -> int:
    """Extract the ``page`` query parameter from a Link header entry."""
    if not link:
        return 0
    values = parse_qs(urlparse(link.get('url', '')).query).get('page', [])
    return int(values[0]) if values else 0


class GitHubClient:
    """:class:`HostingClient` over the GitHub REST v3 API.

    Args:
        client: An :class:`httpx.AsyncClient` whose ``base_url`` points at
            the API root and which carries the auth header.
        max_retries: Retries for transient failures.
    """

    def __init__(self, client: httpx.AsyncClient, *, max_retries: int = MAX_RETRIES) -> None:
        self._client = client
        self._max_retries = max_retries

    @classmethod
    @asynccontextmanager
    async def connect(
        cls,
        *,
        token: str = '',
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> AsyncIterator[GitHubClient]:
        """Open an HTTP session and yield a client bound to it."""
        headers = {'Accept': _ACCEPT, 'X-GitHub-Api-Version': _API_VERSION}
        async with http_client(base_url=base_url, token=token, timeout=timeout, headers=headers) as client:
            yield cls(client)

    # ── Transport ────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        ok: tuple[int, ...] = (200,),
        **kwargs: Any,  # noqa: ANN401
    ) -> httpx.Response:
        try:
            response = await request_with_retry(
                self._client,
                method,
                path,
                max_retries=self._max_retries,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise HostingAPIError(f'{method} {path} failed: {exc}') from exc
        if response.status_code not in ok:
            detail = ''
            try:
                detail = str(response.json().get('message', ''))
            except ValueError:
                detail = response.text[:200]
            log.debug('api_error', method=method, path=path, status=response.status_code, detail=detail)
            raise HostingAPIError(
                f'{method} {path} failed with status {response.status_code}: {detail}',
                response.status_code,
            )
        return response

    async def _get_json(self, path: str, **kwargs: Any) -> Any:  # noqa: ANN401
        return (await self._request('GET', path, **kwargs)).json()

    async def _page(
        self,
        path: str,
        page: int,
        convert: Callable[[dict[str, Any]], _T],
        params: dict[str, Any] | None = None,
    ) -> Page[_T]:
        all_params = {'per_page': _PER_PAGE, 'page': page, **(params or {})}
        response = await self._request('GET', path, params=all_params)
        return Page(
            items=[convert(item) for item in response.json()],
            page=page,
            next_page=_page_number(response.links.get('next')),
            last_page=_page_number(response.links.get('last')),
        )

    # ── Repositories ─────────────────────────────────────────────────

    async def get_repo(self, owner: str, name: str) -> Repository:
        """Return the repository ``owner/name``."""
        return Repository.from_api(await self._get_json(f'/repos/{owner}/{name}'))

    async def get_repo_by_id(self, repo_id: int) -> Repository:
        """Return the repository with numeric id *repo_id*."""
        return Repository.from_api(await self._get_json(f'/repositories/{repo_id}'))

    async def list_org_repos(self, org: str, page: int = 1) -> Page[Repository]:
        """Return one page of an organization's repositories."""
        return await self._page(f'/orgs/{org}/repos', page, Repository.from_api)

    async def list_user_repos(self, user: str, page: int = 1) -> Page[Repository]:
        """Return one page of a user's repositories."""
        return await self._page(f'/users/{user}/repos', page, Repository.from_api)

    async def list_own_repos(self, page: int = 1) -> Page[Repository]:
        """Return one page of repositories owned by the authenticated actor."""
        return await self._page('/user/repos', page, Repository.from_api, {'affiliation': 'owner'})

    async def get_repo_license(self, owner: str, name: str) -> RepoLicense | None:
        """Return the repository's license file, or ``None`` if none is detected."""
        response = await self._request('GET', f'/repos/{owner}/{name}/license', ok=(200, 404))
        if response.status_code == 404:
            return None
        return RepoLicense.from_api(response.json())

    async def is_empty(self, owner: str, name: str) -> bool:
        """Return whether the repository has no commits.

        The contributors endpoint answers ``204 No Content`` for empty
        repositories.
        """
        response = await self._request('GET', f'/repos/{owner}/{name}/contributors', ok=(200, 204), params={'per_page': 1})
        return response.status_code == 204

    async def list_collaborators(self, owner: str, name: str, page: int = 1) -> Page[Collaborator]:
        """Return one page of collaborators with their permissions."""
        return await self._page(f'/repos/{owner}/{name}/collaborators', page, Collaborator.from_api)

    async def list_root_contents(self, owner: str, name: str) -> list[str]:
        """Return the file names in the repository's root directory."""
        data = await self._get_json(f'/repos/{owner}/{name}/contents/')
        if not isinstance(data, list):
            raise HostingAPIError(f'listing contents of {owner}/{name} did not return a directory')
        return [str(entry['name']) for entry in data]

    # ── Git data ─────────────────────────────────────────────────────

    async def get_branch(self, owner: str, name: str, branch: str) -> Branch:
        """Return a branch and its head commit SHA."""
        return Branch.from_api(await self._get_json(f'/repos/{owner}/{name}/branches/{branch}'))

    async def get_commit(self, owner: str, name: str, sha: str) -> Commit:
        """Return a git commit."""
        return Commit.from_api(await self._get_json(f'/repos/{owner}/{name}/git/commits/{sha}'))

    async def create_tree(self, owner: str, name: str, base_tree: str, entries: Sequence[TreeEntry]) -> str:
        """Create a tree on top of *base_tree* and return its SHA."""
        payload = {'base_tree': base_tree, 'tree': [e.to_api() for e in entries]}
        response = await self._request('POST', f'/repos/{owner}/{name}/git/trees', ok=(201,), json=payload)
        return str(response.json()['sha'])

    async def create_commit(self, owner: str, name: str, message: str, tree_sha: str, parents: Sequence[str]) -> str:
        """Create a commit and return its SHA."""
        payload = {'message': message, 'tree': tree_sha, 'parents': list(parents)}
        response = await self._request('POST', f'/repos/{owner}/{name}/git/commits', ok=(201,), json=payload)
        return str(response.json()['sha'])

    async def create_ref(self, owner: str, name: str, ref: str, sha: str) -> None:
        """Create the reference *ref* pointing at *sha*."""
        await self._request('POST', f'/repos/{owner}/{name}/git/refs', ok=(201,), json={'ref': ref, 'sha': sha})

    async def create_pull_request(self, owner: str, name: str, *, title: str, body: str, head: str, base: str) -> str:
        """Open a pull request and return its URL."""
        payload = {'title': title, 'body': body, 'head': head, 'base': base}
        response = await self._request('POST', f'/repos/{owner}/{name}/pulls', ok=(201,), json=payload)
        return str(response.json().get('html_url', ''))

    async def create_fork(self, owner: str, name: str) -> Repository:
        """Start forking ``owner/name``; the fork is created asynchronously."""
        response = await self._request('POST', f'/repos/{owner}/{name}/forks', ok=(202,))
        return Repository.from_api(response.json())

    # ── Licenses and account ─────────────────────────────────────────

    async def list_licenses(self) -> list[LicenseRef]:
        """Return every license the provider offers."""
        return [LicenseRef.from_api(item) for item in await self._get_json('/licenses')]

    async def get_license(self, key: str) -> str:
        """Return the canonical body of the license *key*."""
        return str((await self._get_json(f'/licenses/{key}'))['body'])

    async def rate_limit(self) -> RateLimit:
        """Return the core rate-limit status."""
        core = (await self._get_json('/rate_limit'))['resources']['core']
        return RateLimit(
            limit=int(core['limit']),
            remaining=int(core['remaining']),
            reset=datetime.fromtimestamp(int(core['reset']), tz=timezone.utc),
        )

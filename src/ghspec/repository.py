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

"""Enumeration and observation of hosted repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Final

from ghspec._types import Repository
from ghspec.definition import Info, sort_case_insensitive
from ghspec.errors import HostingAPIError
from ghspec.github import HostingClient
from ghspec.logging import get_logger

__all__ = [
    'PATENT_FILE_NAMES',
    'Progress',
    'get_info',
    'has_patents_file',
    'iter_repositories',
    'list_admins',
]

log = get_logger('ghspec.repository')

#: Root-level file names (lower-cased) that count as a patent notice.
PATENT_FILE_NAMES: Final[frozenset[str]] = frozenset({'patents', 'patents.txt'})


@dataclass(frozen=True)
class Progress:
    """Position of a repository within an enumeration.

    Attributes:
        index: 0-based index on the current page.
        count: Number of repositories on the current page.
        page: 1-based page number.
        last_page: Total pages, ``0`` when unknown.
    """

    index: int
    count: int
    page: int = 1
    last_page: int = 0

    def __str__(self) -> str:
        msg = f'{self.index + 1}/{self.count}'
        if self.last_page > 1:
            msg += f', page {self.page}/{self.last_page}'
        elif self.page > 1:
            # The provider omits the last-page link on the last page.
            msg += f', page {self.page}/{self.page}'
        return msg


async def iter_repositories(
    client: HostingClient,
    *,
    organization: str = '',
    user: str = '',
    names: Sequence[str] = (),
) -> AsyncIterator[tuple[Repository, Progress]]:
    """Yield repositories of an organization or user, one at a time.

    When *names* is given only those repositories of the owner are
    fetched, in order; otherwise every listed repository is yielded page
    by page.
    """
    owner = organization or user
    if names:
        for i, name in enumerate(names):
            repo = await client.get_repo(owner, name)
            yield repo, Progress(index=i, count=len(names))
        return

    page = 1
    while page:
        if organization:
            listing = await client.list_org_repos(organization, page)
        else:
            listing = await client.list_user_repos(user, page)
        for i, repo in enumerate(listing.items):
            yield repo, Progress(index=i, count=len(listing.items), page=page, last_page=listing.last_page)
        page = listing.next_page


async def list_admins(client: HostingClient, repo: Repository) -> list[str]:
    """Logins of every admin collaborator, sorted case-insensitively.

    Returns an empty list when the actor may not list collaborators.
    """
    admins: list[str] = []
    page = 1
    while page:
        try:
            listing = await client.list_collaborators(repo.owner, repo.name, page)
        except HostingAPIError as exc:
            if exc.status_code != 403:
                raise
            log.debug('collaborators_forbidden', repo=repo.full_name)
            return []
        admins.extend(c.login for c in listing.items if c.admin)
        page = listing.next_page
    return sort_case_insensitive(admins)


async def has_patents_file(client: HostingClient, repo: Repository) -> bool:
    """Whether the root directory holds a ``patents`` or ``patents.txt`` file."""
    names = await client.list_root_contents(repo.owner, repo.name)
    return any(name.lower() in PATENT_FILE_NAMES for name in names)


async def get_info(client: HostingClient, repo: Repository) -> Info:
    """Observe the state of *repo*.

    Empty repositories are reported with ``is_empty`` set and nothing
    else populated.

    Raises:
        HostingAPIError: If any lookup other than the collaborator
            listing fails.
    """
    if await client.is_empty(repo.owner, repo.name):
        return Info(repository=repo, is_empty=True)

    repo_license = None
    if repo.license is not None:
        repo_license = await client.get_repo_license(repo.owner, repo.name)

    return Info(
        repository=repo,
        license=repo_license,
        owners=tuple(await list_admins(client, repo)),
        has_patents=await has_patents_file(client, repo),
    )

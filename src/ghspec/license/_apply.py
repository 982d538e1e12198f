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

"""Open a pull request that replaces a repository's license file.

Steps, each narrated to the console and each aborting the rest on
failure:

1. Render the expected license text.
2. Read the default branch and its head commit.
3. Pick the repository to commit to: the target itself when the actor
   can push, otherwise an existing fork, otherwise a new fork (waiting
   until it is usable).
4. Create a tree replacing the license file.
5. Create a commit on top of the previous head.
6. Create the fix branch.
7. Open the pull request (``fork-owner:branch`` when a fork is used).
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, TypeVar

from rich.console import Console

from ghspec._types import Repository, TreeEntry
from ghspec.errors import ForkTimeoutError, GhSpecError, RemediationError
from ghspec.fork import create_fork, find_user_fork
from ghspec.github import HostingClient
from ghspec.license._cache import LicenseCache
from ghspec.license._render import AuthorInfo, create_license
from ghspec.logging import get_logger

if TYPE_CHECKING:
    from ghspec.definition import Info

__all__ = [
    'COMMIT_MESSAGE',
    'PRParams',
    'apply_license',
    'apply_standard_license',
]

log = get_logger('ghspec.license.apply')

_T = TypeVar('_T')

COMMIT_MESSAGE: Final[str] = 'Update license'
DEFAULT_BRANCH: Final[str] = 'cli-update-license'
DEFAULT_TITLE: Final[str] = 'Update LICENSE'


@dataclass(frozen=True)
class PRParams:
    """Branch, title and body of one remediation pull request."""

    branch: str
    title: str
    body: str

    @classmethod
    def default(cls, license_name: str = '') -> PRParams:
        """The standard parameters for replacing a license with *license_name*."""
        return cls(
            branch=DEFAULT_BRANCH,
            title=DEFAULT_TITLE,
            body=f'Use standard version of {license_name}.',
        )


async def _step(console: Console, label: str, step: str, call: Awaitable[_T]) -> _T:
    """Await *call*, narrating ``label...OK`` and wrapping failures with *step*."""
    console.out(f'{label}...', end='')
    try:
        result = await call
    except ForkTimeoutError:
        console.out('failed')
        raise
    except GhSpecError as exc:
        console.out('failed')
        raise RemediationError(step, str(exc)) from exc
    console.out('OK')
    return result


async def _commit_repository(
    client: HostingClient,
    repo: Repository,
    console: Console,
    fork_timeout: float,
) -> Repository:
    """Return the repository the fix is committed to."""
    if repo.can_push:
        console.out('User has push permissions to repository')
        return repo

    try:
        fork = await find_user_fork(client, repo)
    except GhSpecError as exc:
        raise RemediationError('find fork', f'{repo.full_name} for current authenticated user: {exc}') from exc
    if fork is not None:
        console.out('User does not have push permissions to repository, but has an existing fork')
        return fork

    console.out('User does not have push permissions to repository and does not have an existing fork')
    return await _step(console, 'Forking repository', 'create fork', create_fork(client, repo, fork_timeout))


async def apply_license(
    client: HostingClient,
    info: Info,
    content: str,
    params: PRParams,
    console: Console,
    *,
    fork_timeout: float = 0,
) -> str:
    """Open a pull request replacing the license file of *info* with *content*.

    Args:
        client: Hosting client.
        info: Observed repository state; its license path is replaced.
        content: The new license text.
        params: Branch, title and body of the pull request.
        console: Destination for progress narration.
        fork_timeout: Seconds to wait for a newly created fork.

    Returns:
        The URL of the opened pull request.

    Raises:
        RemediationError: Naming the step that failed.
        ForkTimeoutError: If a new fork never became usable.
    """
    repo = info.repository
    license_path = info.license.path if info.license is not None else 'LICENSE'

    branch = await _step(
        console,
        'Reading default branch',
        'get default branch',
        client.get_branch(repo.owner, repo.name, repo.default_branch),
    )
    latest = await _step(
        console,
        'Reading latest commit',
        'get latest commit',
        client.get_commit(repo.owner, repo.name, branch.commit_sha),
    )

    target = await _commit_repository(client, repo, console, fork_timeout)

    tree_sha = await _step(
        console,
        'Creating tree',
        'create tree',
        client.create_tree(target.owner, target.name, latest.tree_sha, [TreeEntry(path=license_path, content=content)]),
    )
    commit_sha = await _step(
        console,
        'Creating commit',
        'create commit',
        client.create_commit(target.owner, target.name, COMMIT_MESSAGE, tree_sha, [branch.commit_sha]),
    )
    await _step(
        console,
        'Creating branch',
        'create reference',
        client.create_ref(target.owner, target.name, f'refs/heads/{params.branch}', commit_sha),
    )

    head = params.branch if target.id == repo.id else f'{target.owner}:{params.branch}'
    url = await _step(
        console,
        'Creating pull request',
        'create PR',
        client.create_pull_request(
            repo.owner,
            repo.name,
            title=params.title,
            body=params.body,
            head=head,
            base=branch.name,
        ),
    )
    log.info('pull_request_opened', repo=repo.full_name, head=head, url=url)
    return url


async def apply_standard_license(
    client: HostingClient,
    info: Info,
    license_id: str,
    author: str,
    params: PRParams,
    cache: LicenseCache,
    console: Console,
    *,
    fork_timeout: float = 0,
) -> str:
    """Render the standard text of *license_id* and open a PR applying it.

    Templated licenses are rendered with *author* and the repository's
    creation and last-update years.

    Raises:
        RemediationError: Naming the step that failed; a templated
            license with an empty *author* fails at ``render license``.
    """
    repo = info.repository
    content = await _step(
        console,
        'Rendering license',
        'render license',
        create_license(license_id, cache, AuthorInfo.create(author, repo.created_year, repo.updated_year)),
    )
    return await apply_license(client, info, content, params, console, fork_timeout=fork_timeout)

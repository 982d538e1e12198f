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

r"""Locating and creating forks of a repository.

Forking is asynchronous on the hosting side: the create call returns
immediately, but the fork's default branch and head commit only become
retrievable some time later.  :class:`ForkWaiter` polls for them with
exponential backoff until the fork is usable or the deadline passes::

               ┌──────── not ready, budget left ────────┐
               ▼                                         │
    ┌─────────────────┐  branch + commit   ┌───────┐     │
    │     waiting     │───────────────────►│ ready │     │
    └─────────────────┘                    └───────┘     │
               │  sleep(min(backoff, remaining)) ────────┘
               │  budget exhausted
               ▼
         ┌───────────┐
         │ timed-out │
         └───────────┘

Polling runs in its own task; the caller awaits that task's completion.
There is no cancellation other than the deadline.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Awaitable, Callable
from typing import Final

from ghspec._types import Repository
from ghspec.errors import ForkTimeoutError, HostingAPIError
from ghspec.github import HostingClient
from ghspec.logging import get_logger

__all__ = [
    'DEFAULT_FORK_TIMEOUT',
    'ForkState',
    'ForkWaiter',
    'create_fork',
    'find_user_fork',
]

log = get_logger('ghspec.fork')

#: Deadline used when the caller passes a non-positive timeout.
DEFAULT_FORK_TIMEOUT: Final[float] = 60.0

#: First sleep between polling attempts, in seconds.
INITIAL_BACKOFF: Final[float] = 1.0

Sleep = Callable[[float], Awaitable[None]]


class ForkState(str, enum.Enum):
    """Readiness of a newly created fork."""

    WAITING = 'waiting'
    READY = 'ready'
    TIMED_OUT = 'timed-out'


class ForkWaiter:
    """Polls a fork until its default branch and head commit are retrievable.

    Args:
        client: Hosting client.
        fork: The fork returned by the create call.
        timeout: Total time budget in seconds; non-positive values mean
            :data:`DEFAULT_FORK_TIMEOUT`.
        initial_backoff: First sleep; doubled after every attempt.
        sleep: Sleep coroutine, injectable for tests.
    """

    def __init__(
        self,
        client: HostingClient,
        fork: Repository,
        timeout: float = 0,
        *,
        initial_backoff: float = INITIAL_BACKOFF,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._fork = fork
        self.timeout = timeout if timeout > 0 else DEFAULT_FORK_TIMEOUT
        self._initial_backoff = initial_backoff
        self._sleep = sleep
        self.state = ForkState.WAITING
        self.attempts = 0
        self.waited = 0.0

    async def _is_ready(self) -> bool:
        fork = self._fork
        try:
            branch = await self._client.get_branch(fork.owner, fork.name, fork.default_branch)
            await self._client.get_commit(fork.owner, fork.name, branch.commit_sha)
        except HostingAPIError as exc:
            log.debug('fork_not_ready', fork=fork.full_name, attempt=self.attempts, status=exc.status_code)
            return False
        return True

    async def _poll(self) -> ForkState:
        backoff = self._initial_backoff
        while self.waited < self.timeout:
            self.attempts += 1
            if await self._is_ready():
                self.state = ForkState.READY
                return self.state
            backoff = min(backoff, self.timeout - self.waited)
            await self._sleep(backoff)
            self.waited += backoff
            backoff *= 2
        self.state = ForkState.TIMED_OUT
        return self.state

    async def wait(self) -> ForkState:
        """Run the polling loop in a separate task and wait for its outcome."""
        return await asyncio.create_task(self._poll())


async def find_user_fork(client: HostingClient, repo: Repository) -> Repository | None:
    """Return the authenticated actor's fork of *repo*, if one exists.

    Forks are matched by the numeric id of their upstream source, which
    is only present on individually fetched records.
    """
    page = 1
    while page:
        listing = await client.list_own_repos(page)
        for candidate in listing.items:
            if not candidate.fork:
                continue
            full = await client.get_repo_by_id(candidate.id)
            if full.source_id == repo.id:
                return full
        page = listing.next_page
    return None


async def create_fork(
    client: HostingClient,
    source: Repository,
    timeout: float = 0,
    *,
    initial_backoff: float = INITIAL_BACKOFF,
    sleep: Sleep = asyncio.sleep,
) -> Repository:
    """Fork *source* and block until the fork is usable.

    Raises:
        HostingAPIError: If the create call itself failed.
        ForkTimeoutError: If the fork did not become usable in time.
    """
    fork = await client.create_fork(source.owner, source.name)
    log.info('fork_created', source=source.full_name, fork=fork.full_name)
    waiter = ForkWaiter(client, fork, timeout, initial_backoff=initial_backoff, sleep=sleep)
    if await waiter.wait() is not ForkState.READY:
        raise ForkTimeoutError(fork.full_name, waiter.timeout)
    log.info('fork_ready', fork=fork.full_name, attempts=waiter.attempts)
    return fork

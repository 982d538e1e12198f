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

"""Tests for the GitHub REST client and its HTTP plumbing."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from ghspec._types import TreeEntry
from ghspec.errors import HostingAPIError
from ghspec.github import GitHubClient
from ghspec.net import http_client, request_with_retry
from gs_fakes import run

_T = TypeVar('_T')
_BASE = 'https://api.test'

Handler = Callable[[httpx.Request], httpx.Response]


def _repo_json(**overrides: Any) -> dict[str, Any]:  # noqa: ANN401
    data: dict[str, Any] = {
        'id': 7,
        'name': 'hello',
        'full_name': 'octo-org/hello',
        'owner': {'login': 'octo-org'},
        'description': None,
        'fork': False,
        'default_branch': 'trunk',
        'created_at': '2019-01-02T03:04:05Z',
        'updated_at': '2024-06-07T08:09:10Z',
        'permissions': {'admin': False, 'push': True},
        'license': {'key': 'mit', 'name': 'MIT License', 'spdx_id': 'MIT'},
    }
    data.update(overrides)
    return data


def _call(handler: Handler, fn: Callable[[GitHubClient], Awaitable[_T]], *, max_retries: int = 0) -> _T:
    async def _go() -> _T:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=_BASE) as http:
            return await fn(GitHubClient(http, max_retries=max_retries))

    return run(_go())


class TestRepositories:
    """Tests for repository endpoints."""

    def test_get_repo(self) -> None:
        """Test the repository record is parsed."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json=_repo_json(source={'id': 1}))

        repo = _call(handler, lambda c: c.get_repo('octo-org', 'hello'))
        assert seen == ['/repos/octo-org/hello']
        assert repo.full_name == 'octo-org/hello'
        assert repo.owner == 'octo-org'
        assert repo.description == ''
        assert repo.default_branch == 'trunk'
        assert repo.can_push
        assert repo.source_id == 1
        assert repo.license is not None
        assert repo.license.key == 'mit'
        assert (repo.created_year, repo.updated_year) == (2019, 2024)

    def test_pagination_links(self) -> None:
        """Test next and last page numbers come from the Link header."""
        params: list[dict[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            params.append(dict(request.url.params))
            link = f'<{_BASE}/orgs/octo-org/repos?page=3&per_page=100>; rel="next", <{_BASE}/orgs/octo-org/repos?page=5&per_page=100>; rel="last"'
            return httpx.Response(200, json=[_repo_json()], headers={'Link': link})

        page = _call(handler, lambda c: c.list_org_repos('octo-org', 2))
        assert params == [{'per_page': '100', 'page': '2'}]
        assert len(page.items) == 1
        assert (page.page, page.next_page, page.last_page) == (2, 3, 5)

    def test_last_page_has_no_links(self) -> None:
        """Test a page without links ends the listing."""
        page = _call(lambda _: httpx.Response(200, json=[]), lambda c: c.list_user_repos('octocat'))
        assert (page.next_page, page.last_page) == (0, 0)

    def test_own_repos_affiliation(self) -> None:
        """Test the actor's listing is restricted to owned repositories."""
        params: list[dict[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            params.append(dict(request.url.params))
            return httpx.Response(200, json=[])

        _call(handler, lambda c: c.list_own_repos())
        assert params[0]['affiliation'] == 'owner'

    def test_license_not_found(self) -> None:
        """Test a 404 from the license endpoint means no license."""
        result = _call(lambda _: httpx.Response(404, json={'message': 'Not Found'}), lambda c: c.get_repo_license('o', 'r'))
        assert result is None

    @pytest.mark.parametrize(('status', 'expected'), [(204, True), (200, False)])
    def test_is_empty(self, status: int, expected: bool) -> None:
        """Test the contributors endpoint status decides emptiness."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status) if status == 204 else httpx.Response(status, json=[{'login': 'a'}])

        assert _call(handler, lambda c: c.is_empty('o', 'r')) is expected

    def test_collaborators(self) -> None:
        """Test collaborator permissions are parsed."""
        body = [
            {'login': 'alice', 'permissions': {'admin': True}},
            {'login': 'bob', 'permissions': {'admin': False}},
        ]
        page = _call(lambda _: httpx.Response(200, json=body), lambda c: c.list_collaborators('o', 'r'))
        assert [(c.login, c.admin) for c in page.items] == [('alice', True), ('bob', False)]

    def test_root_contents(self) -> None:
        """Test root file names are returned."""
        body = [{'name': 'README.md', 'type': 'file'}, {'name': 'PATENTS', 'type': 'file'}]
        names = _call(lambda _: httpx.Response(200, json=body), lambda c: c.list_root_contents('o', 'r'))
        assert names == ['README.md', 'PATENTS']


class TestGitData:
    """Tests for the git data and pull request endpoints."""

    def test_create_tree_payload(self) -> None:
        """Test tree entries are sent as blobs on the base tree."""
        bodies: list[dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={'sha': 'tree-sha'})

        sha = _call(handler, lambda c: c.create_tree('o', 'r', 'base', [TreeEntry('LICENSE', 'text')]))
        assert sha == 'tree-sha'
        assert bodies == [
            {'base_tree': 'base', 'tree': [{'path': 'LICENSE', 'mode': '100644', 'type': 'blob', 'content': 'text'}]}
        ]

    def test_create_pull_request(self) -> None:
        """Test the PR payload and returned URL."""
        bodies: list[dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == 'POST'
            assert request.url.path == '/repos/o/r/pulls'
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={'html_url': 'https://github.com/o/r/pull/9'})

        url = _call(
            handler,
            lambda c: c.create_pull_request('o', 'r', title='T', body='B', head='me:branch', base='main'),
        )
        assert url == 'https://github.com/o/r/pull/9'
        assert bodies == [{'title': 'T', 'body': 'B', 'head': 'me:branch', 'base': 'main'}]

    def test_branch_and_commit(self) -> None:
        """Test branch head and commit tree are parsed."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith('/branches/main'):
                return httpx.Response(200, json={'name': 'main', 'commit': {'sha': 'c1'}})
            return httpx.Response(200, json={'sha': 'c1', 'tree': {'sha': 't1'}})

        branch = _call(handler, lambda c: c.get_branch('o', 'r', 'main'))
        commit = _call(handler, lambda c: c.get_commit('o', 'r', 'c1'))
        assert branch.commit_sha == 'c1'
        assert commit.tree_sha == 't1'

    def test_fork_accepted(self) -> None:
        """Test a 202 from the fork endpoint returns the pending fork."""
        fork = _call(
            lambda _: httpx.Response(202, json=_repo_json(id=8, full_name='me/hello', owner={'login': 'me'}, fork=True)),
            lambda c: c.create_fork('octo-org', 'hello'),
        )
        assert fork.full_name == 'me/hello'
        assert fork.fork


class TestErrors:
    """Tests for error mapping and retries."""

    def test_status_error(self) -> None:
        """Test a non-success status raises with the API message."""
        with pytest.raises(HostingAPIError, match='Reference already exists') as info:
            _call(
                lambda _: httpx.Response(422, json={'message': 'Reference already exists'}),
                lambda c: c.create_ref('o', 'r', 'refs/heads/x', 'sha'),
            )
        assert info.value.status_code == 422

    def test_non_json_error(self) -> None:
        """Test a plain-text error body is used as the detail."""
        with pytest.raises(HostingAPIError, match='gateway down'):
            _call(lambda _: httpx.Response(404, text='gateway down'), lambda c: c.get_repo('o', 'r'))

    def test_retries_server_errors(self) -> None:
        """Test a transient 503 is retried."""
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            return httpx.Response(status, json=_repo_json() if status == 200 else {'message': 'busy'})

        with patch('ghspec.net.asyncio.sleep', new=AsyncMock()) as sleep:
            repo = _call(handler, lambda c: c.get_repo('octo-org', 'hello'), max_retries=2)
        assert repo.id == 7
        assert sleep.await_count == 1

    def test_transport_error(self) -> None:
        """Test connection failures surface as HostingAPIError without a status."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('refused', request=request)

        with pytest.raises(HostingAPIError, match='refused') as info:
            _call(handler, lambda c: c.get_license('mit'))
        assert info.value.status_code is None


class TestLicensesAndAccount:
    """Tests for the license and rate-limit endpoints."""

    def test_licenses(self) -> None:
        """Test license listing and body retrieval."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == '/licenses':
                return httpx.Response(200, json=[{'key': 'mit', 'name': 'MIT License', 'spdx_id': 'MIT'}])
            return httpx.Response(200, json={'key': 'mit', 'body': 'MIT License\n'})

        refs = _call(handler, lambda c: c.list_licenses())
        body = _call(handler, lambda c: c.get_license('mit'))
        assert refs[0].spdx_id == 'MIT'
        assert body == 'MIT License\n'

    def test_rate_limit(self) -> None:
        """Test the core limits are parsed."""
        body = {'resources': {'core': {'limit': 5000, 'remaining': 12, 'reset': 1893456000}}}
        limits = _call(lambda _: httpx.Response(200, json=body), lambda c: c.rate_limit())
        assert (limits.limit, limits.remaining) == (5000, 12)
        assert limits.reset.year == 2030


class TestNet:
    """Tests for ghspec.net."""

    def test_http_client_auth_header(self) -> None:
        """Test the bearer token is set only when given."""

        async def _headers(token: str) -> httpx.Headers:
            async with http_client(token=token) as client:
                return client.headers

        assert run(_headers('secret'))['Authorization'] == 'Bearer secret'
        assert 'Authorization' not in run(_headers(''))

    def test_gives_up_after_max_retries(self) -> None:
        """Test the last retryable response is returned once retries run out."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(500)

        async def _go() -> httpx.Response:
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=_BASE) as http:
                return await request_with_retry(http, 'GET', '/x', max_retries=2)

        with patch('ghspec.net.asyncio.sleep', new=AsyncMock()):
            response = run(_go())
        assert response.status_code == 500
        assert len(calls) == 3

    def test_client_errors_not_retried(self) -> None:
        """Test a 4xx response is returned immediately."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(404)

        async def _go() -> httpx.Response:
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=_BASE) as http:
                return await request_with_retry(http, 'GET', '/x', max_retries=3)

        assert run(_go()).status_code == 404
        assert len(calls) == 1

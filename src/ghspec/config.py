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

"""Configuration loading for ghspec.

Settings come from an optional ``ghspec.toml`` and are overridden by
command-line flags.  Example::

    organization = "octo-org"
    author = "Octo Org, Inc."
    prompt = true
    fork_timeout = 60

    [pull_request]
    branch = "cli-update-license"
    title = "Update LICENSE"
    body = "Fix license for repository to match specification."

The GitHub token is never read from the file; it comes from
``--github-token`` or the environment.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Final

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ghspec.errors import ConfigurationError

__all__ = [
    'CONFIG_FILENAME',
    'DEFAULT_API_URL',
    'DEFAULT_FORK_TIMEOUT',
    'GhSpecConfig',
    'PullRequestConfig',
    'load_config',
    'resolve_token',
]

CONFIG_FILENAME: Final[str] = 'ghspec.toml'
DEFAULT_API_URL: Final[str] = 'https://api.github.com'
DEFAULT_FORK_TIMEOUT: Final[int] = 60

_TOKEN_ENV_VARS: Final[tuple[str, ...]] = ('GHSPEC_GITHUB_TOKEN', 'GITHUB_TOKEN', 'GH_TOKEN')

_TOP_LEVEL_KEYS: Final[frozenset[str]] = frozenset({
    'user',
    'organization',
    'author',
    'prompt',
    'fork_timeout',
    'api_url',
    'pull_request',
})
_PR_KEYS: Final[frozenset[str]] = frozenset({'branch', 'title', 'body'})


@dataclass(frozen=True)
class PullRequestConfig:
    """Overrides for the pull requests opened by ``apply``.

    Empty strings mean "use the default".
    """

    branch: str = ''
    title: str = ''
    body: str = ''


@dataclass(frozen=True)
class GhSpecConfig:
    """Resolved ghspec settings.

    Attributes:
        user: GitHub user whose repositories are reconciled.
        organization: GitHub organization whose repositories are reconciled.
        author: Copyright holder used to render templated licenses.
        prompt: Ask before opening each fix PR.
        fork_timeout: Seconds to wait for a new fork to become usable.
        api_url: Base URL of the GitHub REST API.
        pull_request: Pull request overrides.
    """

    user: str = ''
    organization: str = ''
    author: str = ''
    prompt: bool = True
    fork_timeout: int = DEFAULT_FORK_TIMEOUT
    api_url: str = DEFAULT_API_URL
    pull_request: PullRequestConfig = field(default_factory=PullRequestConfig)

    @property
    def owner(self) -> str:
        """The user or organization that owns the reconciled repositories."""
        return self.organization or self.user

    def require_owner(self) -> str:
        """Return :attr:`owner`, enforcing that exactly one of user/organization is set.

        Raises:
            ConfigurationError: If both or neither are set.
        """
        if not self.user and not self.organization:
            raise ConfigurationError('either user or organization must be provided')
        if self.user and self.organization:
            raise ConfigurationError('user and organization cannot both be provided')
        return self.owner

    def with_overrides(self, **overrides: Any) -> GhSpecConfig:  # noqa: ANN401
        """Return a copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _expect_str(data: dict[str, Any], key: str, prefix: str = '') -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ConfigurationError(f'{prefix}{key} must be a string')
    return value


def _check_keys(data: dict[str, Any], allowed: frozenset[str], section: str) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigurationError(f'Unknown key(s) in {section}: {", ".join(unknown)}')


def _parse_pull_request(data: Any) -> PullRequestConfig:  # noqa: ANN401
    if not isinstance(data, dict):
        raise ConfigurationError('pull_request must be a table')
    _check_keys(data, _PR_KEYS, '[pull_request]')
    return PullRequestConfig(**{k: _expect_str(data, k, 'pull_request.') for k in data})


def _parse(data: dict[str, Any]) -> GhSpecConfig:
    """Validate a parsed TOML document and build a :class:`GhSpecConfig`."""
    _check_keys(data, _TOP_LEVEL_KEYS, CONFIG_FILENAME)
    kwargs: dict[str, Any] = {}
    for key in ('user', 'organization', 'author', 'api_url'):
        if key in data:
            kwargs[key] = _expect_str(data, key)
    if 'prompt' in data:
        if not isinstance(data['prompt'], bool):
            raise ConfigurationError('prompt must be a boolean')
        kwargs['prompt'] = data['prompt']
    if 'fork_timeout' in data:
        timeout = data['fork_timeout']
        if isinstance(timeout, bool) or not isinstance(timeout, int):
            raise ConfigurationError('fork_timeout must be an integer')
        kwargs['fork_timeout'] = timeout
    if 'pull_request' in data:
        kwargs['pull_request'] = _parse_pull_request(data['pull_request'])
    return GhSpecConfig(**kwargs)


def load_config(path: Path | None = None) -> GhSpecConfig:
    """Load settings from *path*, or ``./ghspec.toml`` when it exists.

    Args:
        path: Explicit config file. Must exist when given.

    Returns:
        The parsed configuration, or defaults when no file is present.

    Raises:
        ConfigurationError: If the file is unreadable or invalid.
    """
    if path is None:
        path = Path.cwd() / CONFIG_FILENAME
        if not path.is_file():
            return GhSpecConfig()
    try:
        with path.open('rb') as f:
            data = tomllib.load(f)
    except OSError as exc:
        raise ConfigurationError(f'failed to read {path}: {exc}') from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f'failed to parse {path}: {exc}') from exc
    return _parse(data)


def resolve_token(explicit: str | None = None) -> str:
    """Return the GitHub token from *explicit* or the environment."""
    if explicit:
        return explicit
    for name in _TOKEN_ENV_VARS:
        value = os.environ.get(name, '')
        if value:
            return value
    return ''

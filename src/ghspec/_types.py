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

"""Shared leaf-level types used across ghspec.

These are thin, immutable views over the JSON records returned by the
hosting API.  This module must have **zero** imports from other
``ghspec`` modules to avoid circular-import chains.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

__all__ = [
    'Branch',
    'Collaborator',
    'Commit',
    'LicenseRef',
    'Page',
    'RateLimit',
    'RepoLicense',
    'Repository',
    'TreeEntry',
]

_T = TypeVar('_T')


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    # GitHub uses a trailing "Z"; fromisoformat only accepts it on 3.11+.
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


@dataclass(frozen=True)
class LicenseRef:
    """License identity as reported by the hosting API.

    Attributes:
        key: Lower-case license key (e.g. ``"apache-2.0"``).
        name: Human-readable name (e.g. ``"Apache License 2.0"``).
        spdx_id: SPDX identifier (e.g. ``"Apache-2.0"``). ``"NOASSERTION"``
            when the provider could not classify the file.
    """

    key: str
    name: str = ''
    spdx_id: str = ''

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LicenseRef:
        """Build from a ``license`` JSON object."""
        return cls(
            key=str(data.get('key') or ''),
            name=str(data.get('name') or ''),
            spdx_id=str(data.get('spdx_id') or ''),
        )


@dataclass(frozen=True)
class Repository:
    """A hosted repository record.

    Attributes:
        id: Numeric repository id.
        name: Short repository name.
        full_name: ``owner/name``.
        owner: Login of the owning user or organization.
        description: Free-text description, empty when unset.
        fork: Whether the repository is a fork.
        default_branch: Name of the default branch.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
        can_push: Whether the authenticated actor has push permission.
        license: License detected by the provider, if any.
        source_id: For forks, the id of the ultimate upstream repository.
            Only populated when the record was fetched individually.
    """

    id: int
    name: str
    full_name: str
    owner: str
    description: str = ''
    fork: bool = False
    default_branch: str = 'main'
    created_at: datetime | None = None
    updated_at: datetime | None = None
    can_push: bool = False
    license: LicenseRef | None = None
    source_id: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Repository:
        """Build from a repository JSON object."""
        license_data = data.get('license')
        source = data.get('source') or {}
        permissions = data.get('permissions') or {}
        return cls(
            id=int(data['id']),
            name=str(data['name']),
            full_name=str(data['full_name']),
            owner=str(data['owner']['login']),
            description=str(data.get('description') or ''),
            fork=bool(data.get('fork', False)),
            default_branch=str(data.get('default_branch') or 'main'),
            created_at=_parse_timestamp(data.get('created_at')),
            updated_at=_parse_timestamp(data.get('updated_at')),
            can_push=bool(permissions.get('push', False)),
            license=LicenseRef.from_api(license_data) if license_data else None,
            source_id=int(source['id']) if source.get('id') is not None else None,
        )

    @property
    def created_year(self) -> int:
        """Year the repository was created (current year when unknown)."""
        return (self.created_at or datetime.now()).year

    @property
    def updated_year(self) -> int:
        """Year the repository was last updated (current year when unknown)."""
        return (self.updated_at or datetime.now()).year


@dataclass(frozen=True)
class RepoLicense:
    """The license file of a repository as returned by the license endpoint.

    Attributes:
        path: Path of the license file within the repository.
        sha: Git blob SHA of the file.
        content: Base64-encoded file content.
        license: The classified license.
    """

    path: str
    sha: str
    content: str
    license: LicenseRef

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RepoLicense:
        """Build from a repository-license JSON object."""
        return cls(
            path=str(data.get('path') or 'LICENSE'),
            sha=str(data.get('sha') or ''),
            content=str(data.get('content') or ''),
            license=LicenseRef.from_api(data.get('license') or {}),
        )


@dataclass(frozen=True)
class Branch:
    """A branch and the SHA of its head commit."""

    name: str
    commit_sha: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Branch:
        """Build from a branch JSON object."""
        return cls(name=str(data['name']), commit_sha=str(data['commit']['sha']))


@dataclass(frozen=True)
class Commit:
    """A git commit and the SHA of its root tree."""

    sha: str
    tree_sha: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Commit:
        """Build from a git commit JSON object."""
        return cls(sha=str(data['sha']), tree_sha=str(data['tree']['sha']))


@dataclass(frozen=True)
class TreeEntry:
    """A single blob entry for a new tree.

    Attributes:
        path: File path within the repository.
        content: Full file content.
        mode: Git file mode.
        type: Git object type.
    """

    path: str
    content: str
    mode: str = '100644'
    type: str = 'blob'

    def to_api(self) -> dict[str, str]:
        """Serialize for the create-tree endpoint."""
        return {'path': self.path, 'mode': self.mode, 'type': self.type, 'content': self.content}


@dataclass(frozen=True)
class Collaborator:
    """A repository collaborator and whether they hold admin permission."""

    login: str
    admin: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Collaborator:
        """Build from a collaborator JSON object."""
        permissions = data.get('permissions') or {}
        return cls(login=str(data['login']), admin=bool(permissions.get('admin', False)))


@dataclass(frozen=True)
class Page(Generic[_T]):
    """One page of a paginated listing.

    Attributes:
        items: Records on this page.
        page: 1-based number of this page.
        next_page: Number of the next page, ``0`` on the last page.
        last_page: Number of the last page, ``0`` when the provider
            omitted it (which it does on the last page itself).
    """

    items: list[_T]
    page: int = 1
    next_page: int = 0
    last_page: int = 0


@dataclass(frozen=True)
class RateLimit:
    """Core API rate limit status."""

    limit: int
    remaining: int
    reset: datetime

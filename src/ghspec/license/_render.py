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

"""Rendering of author/year placeholders in license templates.

Some canonical bodies (MIT, BSD, ...) carry ``[fullname]`` and
``[year]`` markers that must be filled in before the text can be
compared or committed.  Bodies without markers are returned unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from ghspec.errors import AuthorInfoRequiredError
from ghspec.license._cache import LicenseCache

__all__ = [
    'FULLNAME_MARKER',
    'YEAR_MARKER',
    'AuthorInfo',
    'create_license',
    'has_author_placeholders',
    'render',
]

FULLNAME_MARKER: Final[str] = '[fullname]'
YEAR_MARKER: Final[str] = '[year]'


@dataclass(frozen=True)
class AuthorInfo:
    """Copyright holder name and year expression for a rendered license.

    Attributes:
        full_name: Name substituted for ``[fullname]``.
        year: ``"YYYY"`` or ``"YYYY-YYYY"``, substituted for ``[year]``.
    """

    full_name: str
    year: str

    @classmethod
    def create(cls, author_name: str, created_year: int, updated_year: int) -> AuthorInfo | None:
        """Build author info, or ``None`` when *author_name* is empty.

        The year is a range when the repository was last updated in a
        different year than it was created.
        """
        if not author_name:
            return None
        year = str(created_year)
        if updated_year != created_year:
            year += f'-{updated_year}'
        return cls(full_name=author_name, year=year)


def has_author_placeholders(content: str) -> bool:
    """``True`` if *content* contains either placeholder marker."""
    return FULLNAME_MARKER in content or YEAR_MARKER in content


def render(content: str, author: AuthorInfo) -> str:
    """Substitute both placeholder markers in *content*."""
    return content.replace(FULLNAME_MARKER, author.full_name).replace(YEAR_MARKER, author.year)


async def create_license(identifier: str, cache: LicenseCache, author: AuthorInfo | None) -> str:
    """Return the rendered text of a license.

    Args:
        identifier: License key or alias (case-insensitive).
        cache: Source of canonical bodies.
        author: Author info; only required when the body is templated.

    Returns:
        The canonical body with placeholders filled in.

    Raises:
        AuthorInfoRequiredError: If the body is templated and *author*
            is ``None``.
        HostingAPIError: If the body could not be fetched.
        ChecksumMismatchError: If the fetched body fails verification.
    """
    key = cache.registry.resolve(identifier)
    content = await cache.get(key)
    if not has_author_placeholders(content):
        return content
    if author is None:
        raise AuthorInfoRequiredError(f'{key} license is templated with author information, but none was provided')
    return render(content, author)

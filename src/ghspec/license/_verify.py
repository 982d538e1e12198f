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

"""Verification of a repository's license content.

The expected text is the canonical body of the license the provider
detected, rendered with the configured author and the repository's
creation/update years.  Mismatches are classified so the operator knows
whether the file is simply an unfilled template or genuinely different::

    RepoLicense ──► decode ──► actual ─┐
                                       ├─► equal? ──► ok
    key ──► cache ──► render ──► expected ─┘
                                       └─► LicenseIncorrectError(diff)
"""

from __future__ import annotations

import base64
import binascii
import difflib

from ghspec._types import RepoLicense, Repository
from ghspec.errors import LicenseIncorrectError, LicenseMissingError, LicenseVerificationError
from ghspec.license._cache import LicenseCache
from ghspec.license._render import AuthorInfo, create_license, has_author_placeholders

__all__ = [
    'decode_content',
    'missing_license_error',
    'unified_diff',
    'verify_license',
]

_NO_LICENSE = 'no license detected'
_NO_LICENSE_FORK = 'license cannot be detected for forked repositories (this is a known GitHub API issue)'


def decode_content(encoded: str) -> str:
    """Decode the base64 content returned by the license endpoint.

    Raises:
        LicenseVerificationError: If the content is not valid base64/UTF-8.
    """
    try:
        return base64.b64decode(encoded).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise LicenseVerificationError(f'failed to decode license content: {exc}') from exc


def missing_license_error(repo: Repository) -> LicenseMissingError:
    """The error reported when no license is detected for *repo*."""
    return LicenseMissingError(_NO_LICENSE_FORK if repo.fork else _NO_LICENSE)


def _split_lines(text: str) -> list[str]:
    lines = text.splitlines(keepends=True)
    if lines and not lines[-1].endswith('\n'):
        lines[-1] += '\n'
    return lines


def unified_diff(expected: str, actual: str) -> str:
    """Line-level unified diff of *expected* vs *actual* with no context."""
    return ''.join(
        difflib.unified_diff(
            _split_lines(expected),
            _split_lines(actual),
            fromfile='Expected',
            tofile='Actual',
            n=0,
        )
    )


async def verify_license(
    observed: RepoLicense | None,
    repo: Repository,
    author_name: str,
    cache: LicenseCache,
) -> RepoLicense:
    """Check that a repository's license file has the expected content.

    Args:
        observed: The repository's license record, ``None`` if the
            provider detected none.
        repo: The repository, for fork status and creation/update years.
        author_name: Copyright holder for templated licenses.
        cache: Source of canonical bodies.

    Returns:
        *observed*, when the content matches.

    Raises:
        LicenseMissingError: If no license was detected.
        LicenseIncorrectError: If the content differs from the expected
            content. The message says whether the file is an unfilled
            template.
        LicenseVerificationError: If the content cannot be decoded.
    """
    if observed is None:
        raise missing_license_error(repo)

    actual = decode_content(observed.content)
    author = AuthorInfo.create(author_name, repo.created_year, repo.updated_year)
    expected = await create_license(observed.license.key, cache, author)
    if actual == expected:
        return observed

    spec = cache.registry.get(observed.license.key)
    if spec is not None and has_author_placeholders(actual) and spec.matches(actual):
        name = observed.license.name or observed.license.key
        msg = f'uses unmodified version of {name} license (copyright year and author should be filled out)'
    else:
        msg = 'actual content of license does not match expected content'
    raise LicenseIncorrectError(msg, unified_diff(expected, actual))

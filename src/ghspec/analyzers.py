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

"""Per-attribute analyzers comparing declared and observed state.

Every analyzer implements the :class:`Analyzer` protocol:

============  ===========  =========================================
Analyzer      Can fix      Diff
============  ===========  =========================================
description   no           declared vs. observed description
owners        no           declared owners that are not admins
patents       no           presence of a root patents file
license       with client  license type, then license file content
============  ===========  =========================================

``diff`` never mutates remote state.  ``fix`` may open a pull request;
running it twice at worst opens a second attempt, which the caller
throttles by prompting.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import Final, Protocol, runtime_checkable

from rich.console import Console

from ghspec.definition import (
    AttributeDiff,
    BoolDiff,
    Definition,
    Info,
    LicenseDiff,
    OwnersDiff,
    SpecDiff,
    StringDiff,
)
from ghspec.errors import (
    FixNotImplementedError,
    ForkTimeoutError,
    GhSpecError,
    LicenseIncorrectError,
    LicenseVerificationError,
    RemediationError,
)
from ghspec.github import HostingClient
from ghspec.license import (
    REGISTRY,
    LicenseCache,
    PRParams,
    apply_standard_license,
    missing_license_error,
    verify_license,
)
from ghspec.logging import get_logger

__all__ = [
    'CUSTOM_LICENSE',
    'FIX_BODY',
    'Analyzer',
    'DescriptionAnalyzer',
    'LicenseAnalyzer',
    'OwnersAnalyzer',
    'PatentsAnalyzer',
    'compare',
    'declared_license',
    'default_analyzers',
]

log = get_logger('ghspec.analyzers')

#: Declared license that is never verified.
CUSTOM_LICENSE: Final[str] = 'custom'
_CUSTOM_PREFIX: Final[str] = 'custom-'

#: Pull request body used when fixing a license.
FIX_BODY: Final[str] = 'Fix license for repository to match specification.'


@runtime_checkable
class Analyzer(Protocol):
    """Diff and, where supported, fix one repository attribute."""

    @property
    def name(self) -> str:
        """Attribute name used in reports."""
        ...

    async def diff(self, definition: Definition, info: Info) -> AttributeDiff | None:
        """Return the difference, or ``None`` when the attribute matches."""
        ...

    def can_fix(self) -> bool:
        """Whether :meth:`fix` can change remote state."""
        ...

    async def fix(self, definition: Definition, info: Info, console: Console) -> None:
        """Drive the attribute toward *definition*.

        Raises:
            FixNotImplementedError: If the attribute cannot be fixed.
        """
        ...


class _ReadOnlyAnalyzer:
    name = ''

    def can_fix(self) -> bool:
        return False

    async def fix(self, definition: Definition, info: Info, console: Console) -> None:
        raise FixNotImplementedError('not implemented')


class DescriptionAnalyzer(_ReadOnlyAnalyzer):
    """Compares the repository description."""

    name = 'description'

    async def diff(self, definition: Definition, info: Info) -> AttributeDiff | None:
        return StringDiff.of(self.name, definition.description, info.repository.description)


class OwnersAnalyzer(_ReadOnlyAnalyzer):
    """Reports declared owners that are not admin collaborators."""

    name = 'owners'

    async def diff(self, definition: Definition, info: Info) -> AttributeDiff | None:
        return OwnersDiff.of(definition.owners, info.owners)


class PatentsAnalyzer(_ReadOnlyAnalyzer):
    """Compares the presence of a root patents file."""

    name = 'patents'

    async def diff(self, definition: Definition, info: Info) -> AttributeDiff | None:
        return BoolDiff.of('has patents', definition.has_patents, info.has_patents)


def declared_license(definition: Definition) -> str:
    """The license key to verify against, with any ``custom-`` prefix removed."""
    return definition.license.removeprefix(_CUSTOM_PREFIX)


class LicenseAnalyzer:
    """Checks the license type and content, and opens PRs to fix them.

    Args:
        client: Hosting client; required for :meth:`fix`.
        cache: License cache; required to verify content and for
            :meth:`fix`. Without it only the license type is compared.
        author: Copyright holder for templated licenses.
        fork_timeout: Seconds to wait for a fork created by :meth:`fix`.
        pr_params: Pull request parameters; defaults to the standard
            branch and title with a fix-specific body.
    """

    name = 'license'

    def __init__(
        self,
        client: HostingClient | None = None,
        cache: LicenseCache | None = None,
        *,
        author: str = '',
        fork_timeout: float = 0,
        pr_params: PRParams | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._author = author
        self._fork_timeout = fork_timeout
        self._pr_params = pr_params or dataclasses.replace(PRParams.default(), body=FIX_BODY)

    async def diff(self, definition: Definition, info: Info) -> AttributeDiff | None:
        if definition.license == CUSTOM_LICENSE:
            return None
        want = declared_license(definition)
        got = info.license_key
        if not want and not got:
            return None

        if want and info.license is None:
            return LicenseDiff(want, got, str(missing_license_error(info.repository)))
        registry = self._cache.registry if self._cache is not None else REGISTRY
        if registry.resolve(want) != registry.resolve(got):
            return LicenseDiff(want, got, 'detected license type differs from definition')
        if self._cache is None:
            return None

        try:
            await verify_license(info.license, info.repository, self._author, self._cache)
        except LicenseIncorrectError as exc:
            observed = info.license
            return LicenseDiff(
                want,
                got,
                str(exc),
                path=observed.path if observed else '',
                license_name=(observed.license.name or got) if observed else got,
                content_diff=exc.diff,
            )
        except LicenseVerificationError as exc:
            return LicenseDiff(want, got, str(exc))
        return None

    def can_fix(self) -> bool:
        return self._client is not None and self._cache is not None

    async def fix(self, definition: Definition, info: Info, console: Console) -> None:
        if self._client is None or self._cache is None:
            raise FixNotImplementedError('not implemented without a hosting client and license cache')
        want = declared_license(definition)
        if not want or want == CUSTOM_LICENSE:
            raise FixNotImplementedError(f'cannot apply declared license {definition.license!r}')

        try:
            url = await apply_standard_license(
                self._client,
                info,
                want,
                self._author,
                self._pr_params,
                self._cache,
                console,
                fork_timeout=self._fork_timeout,
            )
        except ForkTimeoutError:
            raise
        except GhSpecError as exc:
            raise RemediationError('fix license', str(exc)) from exc
        console.out(f'Opened pull request {url}')


def default_analyzers(
    client: HostingClient | None = None,
    cache: LicenseCache | None = None,
    *,
    author: str = '',
    fork_timeout: float = 0,
    pr_params: PRParams | None = None,
) -> list[Analyzer]:
    """The standard analyzer set, in report order."""
    return [
        DescriptionAnalyzer(),
        OwnersAnalyzer(),
        LicenseAnalyzer(client, cache, author=author, fork_timeout=fork_timeout, pr_params=pr_params),
        PatentsAnalyzer(),
    ]


async def compare(definition: Definition, info: Info, analyzers: Sequence[Analyzer]) -> SpecDiff:
    """Diff *info* against *definition* with every analyzer.

    The full name is compared exactly, so a repository matched by a
    differently-cased declaration reports a ``name`` diff.
    """
    result = SpecDiff(name=info.repository.full_name)
    name_diff = StringDiff.of('name', definition.full_name, info.repository.full_name)
    if name_diff is not None:
        result.diffs['name'] = name_diff
    for analyzer in analyzers:
        diff = await analyzer.diff(definition, info)
        if diff is not None:
            result.diffs[analyzer.name] = diff
    log.debug('repository_compared', repo=result.name, differs=sorted(result.diffs))
    return result

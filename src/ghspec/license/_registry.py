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

r"""Registry of known licenses, their pinned checksums and aliases.

The registry is built once at import time and is read-only afterwards.
Lookups lower-case the input; every identifier is also an alias of
itself, so ``resolve('MIT') == resolve('mit') == 'mit'``.  Identifiers
that are not in the registry pass through unchanged: the tool does not
require every license to be known, only that known ones are
checksum-verified.

Key Concepts::

    ┌─────────────────┬──────────────────────────────────────────────┐
    │ Concept         │ Meaning                                      │
    ├─────────────────┼──────────────────────────────────────────────┤
    │ key             │ Lower-case hosting-API license key.          │
    ├─────────────────┼──────────────────────────────────────────────┤
    │ alias           │ Short name accepted in declarations          │
    │                 │ (``apache`` → ``apache-2.0``).               │
    ├─────────────────┼──────────────────────────────────────────────┤
    │ sha1 / sha256   │ Checksums of the canonical, un-rendered      │
    │                 │ license body served by the hosting API.      │
    └─────────────────┴──────────────────────────────────────────────┘
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ghspec.errors import LicenseRegistryError

__all__ = [
    'REGISTRY',
    'LicenseRegistry',
    'LicenseSpec',
    'aliases',
    'resolve',
]


@dataclass(frozen=True)
class LicenseSpec:
    """A known license.

    Attributes:
        key: Canonical lower-case identifier.
        sha1: SHA-1 of the canonical body, empty if not pinned.
        sha256: SHA-256 of the canonical body, empty if not pinned.
        aliases: Additional lower-case names that resolve to :attr:`key`.
    """

    key: str
    sha1: str = ''
    sha256: str = ''
    aliases: tuple[str, ...] = ()

    @property
    def pinned(self) -> bool:
        """``True`` if at least one checksum is pinned."""
        return bool(self.sha1 or self.sha256)

    def checksum_mismatch(self, content: str) -> tuple[str, str] | None:
        """Compare *content* against the pinned checksums.

        Returns:
            ``None`` if every pinned checksum matches, otherwise the
            ``(expected, actual)`` pair of the first mismatching one.
        """
        data = content.encode('utf-8')
        if self.sha1:
            actual = hashlib.sha1(data).hexdigest()  # noqa: S324
            if actual != self.sha1:
                return self.sha1, actual
        if self.sha256:
            actual = hashlib.sha256(data).hexdigest()
            if actual != self.sha256:
                return self.sha256, actual
        return None

    def matches(self, content: str) -> bool:
        """``True`` if *content* is the pinned canonical body."""
        return self.pinned and self.checksum_mismatch(content) is None


def _add_unique(table: dict[str, str], key: str, value: str) -> None:
    if key != key.lower():
        raise LicenseRegistryError(f'key must be lowercase, but {key} != {key.lower()}')
    if value != value.lower():
        raise LicenseRegistryError(f'value must be lowercase, but {value} != {value.lower()}')
    if key in table:
        raise LicenseRegistryError(
            f'failed to add {{{key}: {value}}} because entry already exists: {{{key}: {table[key]}}}',
        )
    table[key] = value


class LicenseRegistry:
    """Immutable table of known licenses with alias resolution.

    Args:
        specs: The known licenses.

    Raises:
        LicenseRegistryError: If any key or alias is not lower-case, or
            if a key or alias appears more than once.
    """

    def __init__(self, specs: Iterable[LicenseSpec]) -> None:
        licenses: dict[str, LicenseSpec] = {}
        alias_map: dict[str, str] = {}
        for spec in specs:
            if spec.key in licenses:
                raise LicenseRegistryError(f'duplicate license key: {spec.key}')
            licenses[spec.key] = spec
            _add_unique(alias_map, spec.key, spec.key)
            for alias in spec.aliases:
                _add_unique(alias_map, alias, spec.key)
        self._licenses: Mapping[str, LicenseSpec] = MappingProxyType(licenses)
        self._aliases: Mapping[str, str] = MappingProxyType(alias_map)

    def resolve(self, identifier: str) -> str:
        """Return the canonical key for *identifier* or its lower-cased form if unknown."""
        lower = identifier.lower()
        return self._aliases.get(lower, lower)

    def get(self, identifier: str) -> LicenseSpec | None:
        """Return the spec for *identifier* (or any alias), if known."""
        return self._licenses.get(self.resolve(identifier))

    def aliases(self, identifier: str) -> tuple[str, ...]:
        """Return the aliases of *identifier*, excluding the identity alias."""
        spec = self._licenses.get(identifier.lower())
        return spec.aliases if spec else ()

    def is_known(self, identifier: str) -> bool:
        """``True`` if *identifier* resolves to a registry entry."""
        return self.get(identifier) is not None

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and self.is_known(identifier)

    def __iter__(self) -> Iterator[LicenseSpec]:
        return iter(self._licenses.values())

    def __len__(self) -> int:
        return len(self._licenses)


# epl-1.0 is not pinned; no checksum of its canonical body is verified.
_SPECS: tuple[LicenseSpec, ...] = (
    LicenseSpec(
        key='agpl-3.0',
        sha1='5835213bd72873e87ee97e546d023ca970bf8c08',
        sha256='76a97c878c9c7a8321bb395c2b44d3fe2f8d81314d219b20138ed0e2dddd5182',
        aliases=('agpl',),
    ),
    LicenseSpec(
        key='apache-2.0',
        sha1='92170cdc034b2ff819323ff670d3b7266c8bffcd',
        sha256='b40930bbcf80744c86c46a12bc9da056641d722716c378f5659b9e555ef833e1',
        aliases=('apache',),
    ),
    LicenseSpec(
        key='bsd-2-clause',
        sha1='a7e043c62ed66866b3f32f7d9561bc41a82ac970',
        sha256='bc6da8e95c49652738b398592f5a89aaf1f168b478184d40b8177fdb49593ff5',
        aliases=('bsd-2',),
    ),
    LicenseSpec(
        key='bsd-3-clause',
        sha1='dddbe3da9055c57371f54f5a23143b5f1ea9f1f7',
        sha256='c6bce241128aaf54728d86e9034e410385fda959073c467f377c4f4fa4253f69',
        aliases=('bsd-3',),
    ),
    LicenseSpec(
        key='epl-1.0',
        aliases=('epl',),
    ),
    LicenseSpec(
        key='gpl-2.0',
        sha1='3127907a7623734f830e8c69ccee03b693bf993e',
        sha256='db296f2f7f35bca3a174efb0eb392b3b17bd94b341851429a3dff411b1c2fc73',
    ),
    LicenseSpec(
        key='gpl-3.0',
        sha1='12d81f50767d4e09aa7877da077ad9d1b915d75b',
        sha256='589ed823e9a84c56feb95ac58e7cf384626b9cbf4fda2a907bc36e103de1bad2',
        aliases=('gpl',),
    ),
    LicenseSpec(
        key='lgpl-2.1',
        sha1='731a8eff333b8f7053ab2220511b524c87a75923',
        sha256='9b872a8a070b8ad329c4bd380fb1bf0000f564c75023ec8e1e6803f15364b9e9',
    ),
    LicenseSpec(
        key='lgpl-3.0',
        sha1='f45ee1c765646813b442ca58de72e20a64a7ddba',
        sha256='da7eabb7bafdf7d3ae5e9f223aa5bdc1eece45ac569dc21b3b037520b4464768',
        aliases=('lgpl',),
    ),
    LicenseSpec(
        key='mit',
        sha1='2c87153926f8a458cffc9a435e15571ba721c2fa',
        sha256='002c2696d92b5c8cf956c11072baa58eaf9f6ade995c031ea635c6a1ee342ad1',
    ),
    LicenseSpec(
        key='mpl-2.0',
        sha1='d22157abc0fc0b4ae96380c09528e23cf77290a9',
        sha256='1f256ecad192880510e84ad60474eab7589218784b9a50bc7ceee34c2b91f1d5',
        aliases=('mpl',),
    ),
    LicenseSpec(
        key='unlicense',
        sha1='24944bf7920108f5a4790e6071c32e9102760c37',
        sha256='88d9b4eb60579c191ec391ca04c16130572d7eedc4a86daa58bf28c6e14c9bcd',
    ),
)

#: Process-wide registry of known licenses.
REGISTRY: LicenseRegistry = LicenseRegistry(_SPECS)


def resolve(identifier: str) -> str:
    """Resolve *identifier* against :data:`REGISTRY`."""
    return REGISTRY.resolve(identifier)


def aliases(identifier: str) -> tuple[str, ...]:
    """Return the :data:`REGISTRY` aliases of *identifier*."""
    return REGISTRY.aliases(identifier)

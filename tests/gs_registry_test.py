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

"""Tests for the license registry and alias resolution."""

from __future__ import annotations

import pytest
from ghspec.errors import ConfigurationError, LicenseRegistryError
from ghspec.license import REGISTRY, LicenseRegistry, LicenseSpec, aliases, resolve

_KNOWN = {
    'agpl-3.0': ('agpl',),
    'apache-2.0': ('apache',),
    'bsd-2-clause': ('bsd-2',),
    'bsd-3-clause': ('bsd-3',),
    'epl-1.0': ('epl',),
    'gpl-2.0': (),
    'gpl-3.0': ('gpl',),
    'lgpl-2.1': (),
    'lgpl-3.0': ('lgpl',),
    'mit': (),
    'mpl-2.0': ('mpl',),
    'unlicense': (),
}


class TestResolve:
    """Tests for resolve()."""

    @pytest.mark.parametrize('key', sorted(_KNOWN))
    def test_identity(self, key: str) -> None:
        """Test every known key resolves to itself."""
        assert resolve(key) == key

    @pytest.mark.parametrize(('key', 'alias'), [(k, a) for k, v in _KNOWN.items() for a in v])
    def test_alias_matches_canonical(self, key: str, alias: str) -> None:
        """Test an alias resolves to the same id as its key."""
        assert resolve(alias) == resolve(key) == key

    def test_case_insensitive(self) -> None:
        """Test lookup lower-cases the input."""
        assert resolve('Apache') == 'apache-2.0'
        assert resolve('MIT') == 'mit'

    def test_unknown_passes_through(self) -> None:
        """Test unknown ids are returned (lower-cased) rather than rejected."""
        assert resolve('wtfpl') == 'wtfpl'
        assert resolve('ISC') == 'isc'


class TestRegistry:
    """Tests for LicenseRegistry."""

    def test_known_set(self) -> None:
        """Test the built-in table holds exactly the known licenses."""
        assert sorted(spec.key for spec in REGISTRY) == sorted(_KNOWN)
        assert len(REGISTRY) == len(_KNOWN)

    def test_aliases(self) -> None:
        """Test aliases() excludes the identity alias."""
        assert aliases('apache-2.0') == ('apache',)
        assert aliases('mit') == ()
        assert aliases('unknown') == ()

    def test_is_known(self) -> None:
        """Test is_known() accepts keys and aliases."""
        assert REGISTRY.is_known('gpl')
        assert 'GPL-3.0' in REGISTRY
        assert not REGISTRY.is_known('isc')

    def test_pinned_checksums(self) -> None:
        """Test every license except epl-1.0 is pinned."""
        unpinned = [spec.key for spec in REGISTRY if not spec.pinned]
        assert unpinned == ['epl-1.0']

    def test_duplicate_alias_rejected(self) -> None:
        """Test an alias that collides with another entry is fatal."""
        specs = [LicenseSpec(key='mit'), LicenseSpec(key='isc', aliases=('mit',))]
        with pytest.raises(LicenseRegistryError, match='already exists'):
            LicenseRegistry(specs)

    def test_duplicate_key_rejected(self) -> None:
        """Test the same key twice is fatal."""
        with pytest.raises(LicenseRegistryError, match='duplicate'):
            LicenseRegistry([LicenseSpec(key='mit'), LicenseSpec(key='mit')])

    def test_uppercase_rejected(self) -> None:
        """Test keys and aliases must be lower-case."""
        with pytest.raises(LicenseRegistryError, match='lowercase'):
            LicenseRegistry([LicenseSpec(key='MIT')])
        with pytest.raises(LicenseRegistryError, match='lowercase'):
            LicenseRegistry([LicenseSpec(key='mit', aliases=('Expat',))])

    def test_registry_error_is_configuration_error(self) -> None:
        """Test registry errors are configuration errors."""
        assert issubclass(LicenseRegistryError, ConfigurationError)


class TestLicenseSpec:
    """Tests for LicenseSpec checksums."""

    def test_unpinned_never_mismatches(self) -> None:
        """Test a spec without checksums accepts any content."""
        spec = LicenseSpec(key='epl-1.0')
        assert spec.checksum_mismatch('anything') is None
        assert not spec.matches('anything')

    def test_mismatch_reports_expected_and_actual(self) -> None:
        """Test the mismatch pair."""
        spec = LicenseSpec(key='x', sha256='0' * 64)
        mismatch = spec.checksum_mismatch('text')
        assert mismatch is not None
        expected, actual = mismatch
        assert expected == '0' * 64
        assert len(actual) == 64

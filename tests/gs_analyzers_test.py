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

"""Tests for the per-attribute analyzers and compare()."""

from __future__ import annotations

import io

import pytest
from ghspec.analyzers import (
    FIX_BODY,
    Analyzer,
    DescriptionAnalyzer,
    LicenseAnalyzer,
    OwnersAnalyzer,
    PatentsAnalyzer,
    compare,
    default_analyzers,
)
from ghspec.definition import Definition, Info, LicenseDiff, OwnersDiff
from ghspec.errors import FixNotImplementedError, HostingAPIError, RemediationError
from ghspec.license import AuthorInfo, LicenseCache, render
from gs_fakes import APACHE_BODY, MIT_TEMPLATE, FakeHostingClient, fake_registry, make_repo, make_repo_license, run
from rich.console import Console


def _console() -> Console:
    return Console(file=io.StringIO(), width=200)


def _cache(client: FakeHostingClient | None = None) -> LicenseCache:
    return LicenseCache((client or FakeHostingClient()).get_license, registry=fake_registry())


def _info_matching(definition: Definition) -> Info:
    """Observed state constructed to satisfy *definition* exactly."""
    repo = make_repo(definition.full_name, description=definition.description, license_key=definition.license)
    repo_license = None
    if definition.license:
        repo_license = make_repo_license(render(MIT_TEMPLATE, AuthorInfo('Octo Cat', '2020')), key=definition.license)
    return Info(
        repository=repo,
        license=repo_license,
        owners=definition.owners,
        has_patents=definition.has_patents,
    )


_DEFINITION = Definition(
    full_name='octo-org/hello',
    description='Example repo',
    owners=('alice', 'bob'),
    license='mit',
    has_patents=True,
)


class TestProtocol:
    """Tests for the analyzer set."""

    def test_default_set(self) -> None:
        """Test the standard analyzers and their order."""
        analyzers = default_analyzers()
        assert [a.name for a in analyzers] == ['description', 'owners', 'license', 'patents']
        assert all(isinstance(a, Analyzer) for a in analyzers)

    @pytest.mark.parametrize('analyzer', [DescriptionAnalyzer(), OwnersAnalyzer(), PatentsAnalyzer()])
    def test_read_only(self, analyzer: Analyzer) -> None:
        """Test read-only analyzers cannot fix."""
        assert not analyzer.can_fix()
        with pytest.raises(FixNotImplementedError, match='not implemented'):
            run(analyzer.fix(_DEFINITION, _info_matching(_DEFINITION), _console()))

    def test_reflexive(self) -> None:
        """Test every analyzer reports no diff for state derived from the definition."""
        info = _info_matching(_DEFINITION)
        for analyzer in default_analyzers(cache=_cache(), author='Octo Cat'):
            assert run(analyzer.diff(_DEFINITION, info)) is None, analyzer.name
        assert run(compare(_DEFINITION, info, default_analyzers(cache=_cache(), author='Octo Cat'))).empty


class TestSimpleAnalyzers:
    """Tests for the description and patents analyzers."""

    def test_description(self) -> None:
        """Test a changed description."""
        info = Info(repository=make_repo(description='Other'))
        diff = run(DescriptionAnalyzer().diff(_DEFINITION, info))
        assert diff is not None
        assert diff.lines() == ['description:', '\twant: Example repo', '\tgot:  Other']

    def test_patents(self) -> None:
        """Test a missing patents file."""
        info = Info(repository=make_repo(), has_patents=False)
        diff = run(PatentsAnalyzer().diff(_DEFINITION, info))
        assert diff is not None
        assert diff.lines() == ['has patents:', '\twant: true', '\tgot:  false']


class TestOwnersAnalyzer:
    """Tests for the owners analyzer."""

    def test_missing_owner(self) -> None:
        """Test declared owners absent from the admins are reported."""
        info = Info(repository=make_repo(), owners=('alice',))
        diff = run(OwnersAnalyzer().diff(_DEFINITION, info))
        assert diff == OwnersDiff(required=('alice', 'bob'), got=('alice',), missing=('bob',))
        assert diff.lines()[-1] == '\tmissing:  [bob]'

    def test_missing_sorted_case_insensitively(self) -> None:
        """Test missing owners are sorted ignoring case."""
        definition = Definition(full_name='octo-org/hello', owners=('zed', 'Bob', 'alice', 'carol'))
        info = Info(repository=make_repo(), owners=('carol',))
        diff = run(OwnersAnalyzer().diff(definition, info))
        assert isinstance(diff, OwnersDiff)
        assert diff.missing == ('alice', 'Bob', 'zed')

    @pytest.mark.parametrize(('declared', 'observed'), [((), ('alice',)), (('alice',), ()), ((), ())])
    def test_empty_side(self, declared: tuple[str, ...], observed: tuple[str, ...]) -> None:
        """Test no diff when either side is empty."""
        definition = Definition(full_name='octo-org/hello', owners=declared)
        info = Info(repository=make_repo(), owners=observed)
        assert run(OwnersAnalyzer().diff(definition, info)) is None

    def test_case_differs_is_missing(self) -> None:
        """Test logins are compared exactly (known quirk)."""
        definition = Definition(full_name='octo-org/hello', owners=('Alice',))
        info = Info(repository=make_repo(), owners=('alice',))
        diff = run(OwnersAnalyzer().diff(definition, info))
        assert isinstance(diff, OwnersDiff)
        assert diff.missing == ('Alice',)


class TestLicenseAnalyzer:
    """Tests for the license analyzer."""

    def test_custom_never_diffs(self) -> None:
        """Test a declared custom license is never verified."""
        definition = Definition(full_name='octo-org/hello', license='custom')
        info = Info(repository=make_repo())
        assert run(LicenseAnalyzer(cache=_cache()).diff(definition, info)) is None

    def test_custom_derived_verifies_base(self) -> None:
        """Test custom-<id> is checked against <id>."""
        definition = Definition(full_name='octo-org/hello', license='custom-mit')
        info = Info(repository=make_repo(license_key='mit'), license=make_repo_license(MIT_TEMPLATE))
        diff = run(LicenseAnalyzer(cache=_cache(), author='Octo Cat').diff(definition, info))
        assert isinstance(diff, LicenseDiff)
        assert diff.want == 'mit'
        assert 'unmodified version' in diff.message

    def test_missing_license(self) -> None:
        """Test a declared license with none detected reports the missing classification."""
        definition = Definition(full_name='o/r', license='mit', has_patents=False)
        info = Info(repository=make_repo('o/r'))
        diff = run(LicenseAnalyzer(cache=_cache()).diff(definition, info))
        assert isinstance(diff, LicenseDiff)
        assert diff.message == 'no license detected'

    def test_type_mismatch(self) -> None:
        """Test a different detected license type."""
        definition = Definition(full_name='octo-org/hello', license='apache')
        info = Info(repository=make_repo(license_key='mit'), license=make_repo_license(MIT_TEMPLATE))
        diff = run(LicenseAnalyzer(cache=_cache()).diff(definition, info))
        assert isinstance(diff, LicenseDiff)
        assert diff.lines()[:3] == ['license type:', '\twant: apache', '\tgot:  mit']

    def test_alias_matches_type(self) -> None:
        """Test aliases and case are resolved before comparing types."""
        definition = Definition(full_name='octo-org/hello', license='Apache')
        info = Info(
            repository=make_repo(license_key='apache-2.0'),
            license=make_repo_license(APACHE_BODY, key='apache-2.0', name='Apache License 2.0'),
        )
        assert run(LicenseAnalyzer().diff(definition, info)) is None

    def test_content_diff_lines(self) -> None:
        """Test a content mismatch renders the path, name and diff."""
        definition = Definition(full_name='octo-org/hello', license='mit')
        content = render(MIT_TEMPLATE, AuthorInfo('Someone', '2020'))
        info = Info(repository=make_repo(license_key='mit'), license=make_repo_license(content))
        diff = run(LicenseAnalyzer(cache=_cache(), author='Octo Cat').diff(definition, info))
        assert isinstance(diff, LicenseDiff)
        lines = diff.lines()
        assert lines[0] == 'LICENSE content (MIT License):'
        assert '\t+Copyright (c) 2020 Someone' in lines

    def test_can_fix_requires_client_and_cache(self) -> None:
        """Test fixing needs both collaborators."""
        client = FakeHostingClient()
        assert LicenseAnalyzer(client, _cache(client)).can_fix()
        assert not LicenseAnalyzer(client, None).can_fix()
        assert not LicenseAnalyzer(None, _cache()).can_fix()

    def test_fix_opens_pr(self) -> None:
        """Test fix applies the declared license with the fix body."""
        client = FakeHostingClient()
        repo = client.add_repo(make_repo(license_key='mit'))
        info = Info(repository=repo, license=make_repo_license(MIT_TEMPLATE))
        definition = Definition(full_name=repo.full_name, license='custom-mit')
        console = _console()
        run(LicenseAnalyzer(client, _cache(client), author='Octo Cat').fix(definition, info, console))
        pr = client.calls[-1]
        assert pr[0] == 'create_pull_request'
        assert pr[3] == FIX_BODY
        assert 'Opened pull request https://github.com/octo-org/hello/pull/1' in console.file.getvalue()  # type: ignore[attr-defined]

    def test_fix_failure_wrapped(self) -> None:
        """Test workflow failures are reported as a license fix failure."""
        client = FakeHostingClient()
        repo = client.add_repo(make_repo(license_key='mit'))
        client.failures['create_tree'] = HostingAPIError('boom', 500)
        info = Info(repository=repo, license=make_repo_license(MIT_TEMPLATE))
        definition = Definition(full_name=repo.full_name, license='mit')
        with pytest.raises(RemediationError, match='failed to fix license: failed to create tree: boom'):
            run(LicenseAnalyzer(client, _cache(client), author='Octo Cat').fix(definition, info, _console()))


class TestCompare:
    """Tests for compare()."""

    def test_collects_every_attribute(self) -> None:
        """Test diffs are keyed by attribute, including the exact full name."""
        info = Info(repository=make_repo('Octo-Org/Hello', description='Other'), owners=('alice',))
        result = run(compare(_DEFINITION, info, default_analyzers()))
        assert list(result.diffs) == ['name', 'description', 'owners', 'license', 'patents']
        assert not result.empty
        lines = result.lines()
        assert lines[0] == 'Octo-Org/Hello:'
        assert '\tname:' in lines

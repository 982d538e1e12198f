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

"""Declared and observed repository state, and the diffs between them.

A declaration file is a YAML sequence of mappings::

    - name: octocat/Hello-World
      description: Example repo
      owners: [octocat]
      license: mit
      patents: false

``license`` is a license key, ``custom`` for a license not based on any
known one (never verified), or ``custom-<key>`` for a license derived
from ``<key>``.

Each attribute diff renders as a block of lines::

    owners:
        required: [alice, bob]
        got:      [alice]
        missing:  [bob]
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from ghspec._types import RepoLicense, Repository
from ghspec.errors import ConfigurationError

__all__ = [
    'AttributeDiff',
    'BoolDiff',
    'Definition',
    'Info',
    'LicenseDiff',
    'OwnersDiff',
    'SpecDiff',
    'StringDiff',
    'dump_definitions',
    'join_diff',
    'load_definitions',
    'sort_case_insensitive',
]

_KEYS = frozenset({'name', 'description', 'owners', 'license', 'patents'})


def sort_case_insensitive(values: Iterable[str]) -> list[str]:
    """Return *values* sorted by their lower-cased form."""
    return sorted(values, key=str.lower)


def join_diff(name: str, *content: str) -> list[str]:
    """Header line ``name:`` followed by tab-indented *content* lines."""
    return [f'{name}:', *(f'\t{line}' for line in content)]


def _format_list(values: Sequence[str]) -> str:
    return '[' + ' '.join(values) + ']'


# ── Desired state ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Definition:
    """Desired state of one repository.

    Attributes:
        full_name: ``owner/name``.
        description: Expected description.
        owners: Logins that must hold admin permission.
        license: License key, ``custom`` or ``custom-<key>``.
        has_patents: Whether a ``PATENTS`` file must exist.
    """

    full_name: str
    description: str = ''
    owners: tuple[str, ...] = ()
    license: str = ''
    has_patents: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Definition:
        """Build from one declaration-file mapping.

        Raises:
            ConfigurationError: On unknown keys or wrongly typed values.
        """
        unknown = set(data) - _KEYS
        if unknown:
            msg = f'Unknown key(s) in definition: {", ".join(sorted(unknown))}'
            raise ConfigurationError(msg)
        name = data.get('name')
        if not isinstance(name, str) or not name:
            msg = f'definition is missing a name: {data!r}'
            raise ConfigurationError(msg)
        owners = data.get('owners') or []
        if not isinstance(owners, list) or not all(isinstance(o, str) for o in owners):
            msg = f'owners of {name} must be a list of strings'
            raise ConfigurationError(msg)
        patents = data.get('patents', False)
        if not isinstance(patents, bool):
            msg = f'patents of {name} must be a boolean'
            raise ConfigurationError(msg)
        return cls(
            full_name=name,
            description=str(data.get('description') or ''),
            owners=tuple(owners),
            license=str(data.get('license') or ''),
            has_patents=patents,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a declaration-file mapping."""
        return {
            'name': self.full_name,
            'description': self.description,
            'owners': list(self.owners),
            'license': self.license,
            'patents': self.has_patents,
        }


# ── Observed state ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Info:
    """Observed state of one repository.

    Attributes:
        repository: The hosting API's repository record.
        license: The license file record, ``None`` when none is detected.
        is_empty: Whether the repository has no commits.
        owners: Logins of admin collaborators, sorted case-insensitively.
            Empty when collaborators could not be listed.
        has_patents: Whether the root directory holds a patents file.
    """

    repository: Repository
    license: RepoLicense | None = None
    is_empty: bool = False
    owners: tuple[str, ...] = ()
    has_patents: bool = False

    @property
    def license_key(self) -> str:
        """Key of the detected license, empty when none was detected."""
        if self.license is not None and self.license.license.key:
            return self.license.license.key
        if self.repository.license is not None:
            return self.repository.license.key
        return ''

    def to_definition(self) -> Definition:
        """Derive a definition that this state satisfies."""
        return Definition(
            full_name=self.repository.full_name,
            description=self.repository.description,
            owners=self.owners,
            license=self.license_key,
            has_patents=self.has_patents,
        )


# ── Diffs ────────────────────────────────────────────────────────────


@runtime_checkable
class AttributeDiff(Protocol):
    """A difference in one attribute between declared and observed state."""

    def lines(self) -> list[str]:
        """Render the diff as display lines."""
        ...


@dataclass(frozen=True)
class StringDiff:
    """Declared and observed values of a string attribute."""

    name: str
    want: str
    got: str

    @classmethod
    def of(cls, name: str, want: str, got: str) -> StringDiff | None:
        """Return a diff, or ``None`` when the values are equal."""
        return None if want == got else cls(name, want, got)

    def lines(self) -> list[str]:
        """Render the diff as display lines."""
        return join_diff(self.name, f'want: {self.want}', f'got:  {self.got}')

    def __str__(self) -> str:
        return '\n'.join(self.lines())


@dataclass(frozen=True)
class BoolDiff:
    """Declared and observed values of a boolean attribute."""

    name: str
    want: bool
    got: bool

    @classmethod
    def of(cls, name: str, want: bool, got: bool) -> BoolDiff | None:
        """Return a diff, or ``None`` when the values are equal."""
        return None if want == got else cls(name, want, got)

    def lines(self) -> list[str]:
        """Render the diff as display lines."""
        return join_diff(self.name, f'want: {str(self.want).lower()}', f'got:  {str(self.got).lower()}')

    def __str__(self) -> str:
        return '\n'.join(self.lines())


@dataclass(frozen=True)
class OwnersDiff:
    """Declared owners that are not admin collaborators.

    Logins are compared exactly, so a declared owner whose case differs
    from the observed login is reported as missing.
    """

    required: tuple[str, ...]
    got: tuple[str, ...]
    missing: tuple[str, ...]

    @classmethod
    def of(cls, required: Sequence[str], got: Sequence[str]) -> OwnersDiff | None:
        """Return a diff, or ``None`` when nothing is missing.

        Either side being empty yields ``None``: an empty observed list
        usually means the collaborators could not be read.
        """
        if not required or not got:
            return None
        present = set(got)
        missing = sort_case_insensitive(owner for owner in required if owner not in present)
        if not missing:
            return None
        return cls(tuple(required), tuple(got), tuple(missing))

    def lines(self) -> list[str]:
        """Render the diff as display lines."""
        return join_diff(
            'owners',
            f'required: {_format_list(self.required)}',
            f'got:      {_format_list(self.got)}',
            f'missing:  {_format_list(self.missing)}',
        )

    def __str__(self) -> str:
        return '\n'.join(self.lines())


@dataclass(frozen=True)
class LicenseDiff:
    """A license that is missing, of the wrong type, or has wrong content.

    Attributes:
        want: Declared license key (``custom-`` prefix removed).
        got: Detected license key, empty when none was detected.
        message: Classification of the mismatch.
        path: License file path, for content mismatches.
        license_name: Detected license name, for content mismatches.
        content_diff: Unified diff of expected vs. actual content.
    """

    want: str
    got: str
    message: str
    path: str = ''
    license_name: str = ''
    content_diff: str = ''

    def lines(self) -> list[str]:
        """Render the diff as display lines."""
        if self.content_diff:
            header = f'{self.path} content ({self.license_name})'
            return join_diff(header, self.message, *self.content_diff.rstrip('\n').split('\n'))
        return join_diff('license type', f'want: {self.want}', f'got:  {self.got}', self.message)

    def __str__(self) -> str:
        return '\n'.join(self.lines())


@dataclass
class SpecDiff:
    """All attribute diffs of one repository.

    Attributes:
        name: Full name of the repository.
        diffs: Attribute name to diff; attributes without a diff are
            absent.
    """

    name: str
    diffs: dict[str, AttributeDiff] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        """``True`` when no attribute differs."""
        return not self.diffs

    def lines(self) -> list[str]:
        """Render as ``name:`` followed by every attribute diff, indented."""
        out = [f'{self.name}:']
        for diff in self.diffs.values():
            out.extend(f'\t{line}' for line in diff.lines())
        return out


# ── Declaration file ─────────────────────────────────────────────────


def load_definitions(path: Path) -> list[Definition]:
    """Read a declaration file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed, or an
            entry is malformed.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding='utf-8'))
    except OSError as exc:
        msg = f'Failed to read {path}: {exc}'
        raise ConfigurationError(msg) from exc
    except yaml.YAMLError as exc:
        msg = f'Failed to parse {path}: {exc}'
        raise ConfigurationError(msg) from exc
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(entry, dict) for entry in data):
        msg = f'{path} must contain a list of repository definitions'
        raise ConfigurationError(msg)
    return [Definition.from_dict(entry) for entry in data]


def dump_definitions(definitions: Iterable[Definition], path: Path) -> None:
    """Write *definitions* to *path*, sorted case-insensitively by name."""
    ordered = sorted(definitions, key=lambda d: d.full_name.lower())
    text = yaml.safe_dump([d.to_dict() for d in ordered], sort_keys=False, default_flow_style=False)
    path.write_text(text, encoding='utf-8')

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

"""Implementations of the ``ghspec`` subcommands.

Each command takes an already connected :class:`HostingClient` and a
:class:`rich.console.Console` for its report, and returns the process
exit code.  Repositories are processed strictly one at a time.

Exit codes:

- ``verify``: 1 if any repository differs, is missing or has no
  definition.
- ``apply``: 1 only if some repository could not be fixed.
- ``license verify``: 1 if any license is incorrect or undetected.
- everything else: 0 on success; errors propagate as
  :class:`~ghspec.errors.GhSpecError`.
"""

from __future__ import annotations

import dataclasses
from collections.abc import AsyncIterator, Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ghspec._types import Repository
from ghspec.analyzers import FIX_BODY, compare, default_analyzers
from ghspec.config import GhSpecConfig
from ghspec.definition import Definition, dump_definitions, load_definitions, sort_case_insensitive
from ghspec.errors import (
    FixNotImplementedError,
    GhSpecError,
    LicenseIncorrectError,
    LicenseMissingError,
    LicenseVerificationError,
)
from ghspec.github import HostingClient
from ghspec.license import (
    REGISTRY,
    AuthorInfo,
    LicenseCache,
    PRParams,
    apply_standard_license,
    create_license,
    verify_license,
)
from ghspec.logging import get_logger
from ghspec.repository import Progress, get_info, iter_repositories

__all__ = [
    'apply_spec',
    'confirm',
    'create_spec',
    'fix_licenses',
    'list_licenses',
    'print_license',
    'show_rate_limit',
    'verify_licenses',
    'verify_spec',
    'write_license',
]

log = get_logger('ghspec.commands')

InputFn = Callable[[str], str]


def pluralize(count: int, singular: str = 'repository', plural: str = 'repositories') -> str:
    """``"1 repository"``, ``"2 repositories"``."""
    return f'{count} {singular if count == 1 else plural}'


def _section(title: str, entries: Sequence[str]) -> str:
    return '\n\t'.join([title, *entries])


def _report(console: Console, text: str) -> None:
    """Write report text as-is; ``Console.out`` would expand its tab indentation."""
    console.file.write(f'{text}\n')


def confirm(question: str, *, input_fn: InputFn | None = None) -> bool:
    """Ask a yes/no question; anything but ``y``/``yes`` is a no.

    Args:
        question: Prompt text, without the ``(y/n)`` suffix.
        input_fn: Override for ``input()`` (for testing).
    """
    _input = input_fn or input
    try:
        answer = _input(f'{question} (y/n): ')
    except EOFError:
        return False
    return answer.strip().lower() in ('y', 'yes')


def pr_params_for(config: GhSpecConfig) -> PRParams:
    """Pull request parameters for license fixes, with config overrides."""
    default = dataclasses.replace(PRParams.default(), body=FIX_BODY)
    overrides = config.pull_request
    return PRParams(
        branch=overrides.branch or default.branch,
        title=overrides.title or default.title,
        body=overrides.body or default.body,
    )


def _repositories(
    client: HostingClient,
    config: GhSpecConfig,
    names: Sequence[str],
) -> AsyncIterator[tuple[Repository, Progress]]:
    config.require_owner()
    return iter_repositories(client, organization=config.organization, user=config.user, names=names)


def _expected(definitions: Sequence[Definition], config: GhSpecConfig, names: Sequence[str]) -> dict[str, str]:
    """Lower-cased full name to declared full name, for repositories that must exist."""
    expected = {d.full_name.lower(): d.full_name for d in definitions}
    if names:
        wanted = {f'{config.owner}/{name}'.lower() for name in names}
        expected = {k: v for k, v in expected.items() if k in wanted}
    return expected


# ── create ───────────────────────────────────────────────────────────


async def create_spec(
    client: HostingClient,
    config: GhSpecConfig,
    output: Path,
    console: Console,
    *,
    names: Sequence[str] = (),
) -> int:
    """Write a declaration file describing the current state of every repository."""
    definitions: list[Definition] = []
    async for repo, _progress in _repositories(client, config, names):
        console.out(f'Generating definition for {repo.full_name}...', end='')
        try:
            info = await get_info(client, repo)
        except GhSpecError:
            console.out('failed')
            raise
        definitions.append(info.to_definition())
        console.out('done')

    dump_definitions(definitions, output)
    console.out(f'Wrote definitions for {pluralize(len(definitions))} to {output}')
    return 0


# ── verify ───────────────────────────────────────────────────────────


async def verify_spec(
    client: HostingClient,
    config: GhSpecConfig,
    spec_file: Path,
    console: Console,
    *,
    names: Sequence[str] = (),
) -> int:
    """Compare every repository against its definition and report the result."""
    definitions = load_definitions(spec_file)
    by_name = {d.full_name.lower(): d for d in definitions}
    missing = _expected(definitions, config, names)
    analyzers = default_analyzers(cache=LicenseCache(client.get_license), author=config.author)

    unexpected: list[str] = []
    differing: dict[str, list[str]] = {}
    ok: list[str] = []
    async for repo, progress in _repositories(client, config, names):
        console.out(f'Verifying repository {repo.name} against definition ({progress})...', end='')
        key = repo.full_name.lower()
        definition = by_name.get(key)
        if definition is None:
            unexpected.append(repo.full_name)
            console.out('no definition for repository')
            continue
        missing.pop(key, None)

        try:
            info = await get_info(client, repo)
            diff = await compare(definition, info, analyzers)
        except GhSpecError as exc:
            log.warning('verify_failed', repo=repo.full_name, error=str(exc))
            differing[repo.full_name] = [f'{repo.full_name}:', f'\tfailed to verify: {exc}']
            console.out('failed to get repository info')
            continue
        if diff.empty:
            ok.append(repo.full_name)
            console.out('OK')
        else:
            differing[repo.full_name] = diff.lines()
            console.out('differs from definition')

    if ok:
        _report(console, _section(f'{pluralize(len(ok))} OK', sort_case_insensitive(ok)))

    problems: list[str] = []
    if unexpected:
        problems.append(_section(f'{pluralize(len(unexpected))} without definitions:', sort_case_insensitive(unexpected)))
    if missing:
        problems.append(_section(f'{pluralize(len(missing))} missing:', sort_case_insensitive(missing.values())))
    if differing:
        problems.append(f'{pluralize(len(differing))} differed from definition:')
        for name in sort_case_insensitive(differing):
            problems.extend(f'\t{line}' for line in differing[name])
    if problems:
        _report(console, '\n'.join(problems))
        return 1
    return 0


# ── apply ────────────────────────────────────────────────────────────


async def apply_spec(
    client: HostingClient,
    config: GhSpecConfig,
    spec_file: Path,
    console: Console,
    *,
    names: Sequence[str] = (),
    input_fn: InputFn | None = None,
) -> int:
    """Open pull requests fixing every repository that differs from its definition.

    Args:
        client: Hosting client.
        config: Settings; ``config.prompt`` asks before each fix.
        spec_file: Declaration file.
        console: Report destination.
        names: Restrict processing to these repositories of the owner.
        input_fn: Override for ``input()`` (for testing).
    """
    definitions = load_definitions(spec_file)
    by_name = {d.full_name.lower(): d for d in definitions}
    missing = _expected(definitions, config, names)
    analyzers = default_analyzers(
        client,
        LicenseCache(client.get_license),
        author=config.author,
        fork_timeout=config.fork_timeout,
        pr_params=pr_params_for(config),
    )
    by_attribute = {a.name: a for a in analyzers}

    ok: list[str] = []
    fixed: list[str] = []
    failed: dict[str, str] = {}
    async for repo, progress in _repositories(client, config, names):
        console.out(f'Verifying repository {repo.name} against definition ({progress})...', end='')
        key = repo.full_name.lower()
        definition = by_name.get(key)
        if definition is None:
            failed[repo.full_name] = 'missing definition (deleting repositories not implemented)'
            console.out('no definition for repository')
            continue
        missing.pop(key, None)

        try:
            info = await get_info(client, repo)
        except GhSpecError as exc:
            failed[repo.full_name] = f'failed to get repository information: {exc}'
            console.out('failed to get repository info')
            continue
        if info.is_empty:
            failed[repo.full_name] = 'repository is empty (fixing empty repositories not implemented)'
            console.out('repository is empty')
            continue

        try:
            diff = await compare(definition, info, analyzers)
        except GhSpecError as exc:
            failed[repo.full_name] = f'failed to compare with definition: {exc}'
            console.out('failed to compare with definition')
            continue
        if diff.empty:
            ok.append(repo.full_name)
            console.out('OK')
            continue

        console.out('differs from definition')
        _report(console, '\n'.join(diff.lines()))
        if config.prompt and not confirm('Open PR for fix', input_fn=input_fn):
            failed[repo.full_name] = 'user skipped fix'
            continue

        errors: list[str] = []
        for attribute in diff.diffs:
            analyzer = by_attribute.get(attribute)
            if analyzer is None:
                errors.append(f'fixing {attribute} not implemented')
                continue
            try:
                await analyzer.fix(definition, info, console)
            except FixNotImplementedError as exc:
                errors.append(f'fixing {attribute} {exc}')
            except GhSpecError as exc:
                log.warning('fix_failed', repo=repo.full_name, attribute=attribute, error=str(exc))
                errors.append(str(exc))
        if errors:
            failed[repo.full_name] = '; '.join(errors)
        else:
            fixed.append(repo.full_name)

    for name in missing.values():
        failed[name] = 'repository not present (creating repositories not implemented)'

    if ok:
        _report(console, _section(f'{pluralize(len(ok))} OK', sort_case_insensitive(ok)))
    if fixed:
        _report(console, _section(f'{pluralize(len(fixed))} fixed', sort_case_insensitive(fixed)))
    if failed:
        entries = [f'{name}: {failed[name]}' for name in sort_case_insensitive(failed)]
        _report(console, _section(f'Failed to fix {pluralize(len(failed))}:', entries))
        return 1
    return 0


# ── license verify / fix ─────────────────────────────────────────────


def _group(title: str, entries: Sequence[str]) -> str:
    return _section(f'{title}:', entries) if entries else title


async def _license_pass(
    client: HostingClient,
    config: GhSpecConfig,
    console: Console,
    *,
    names: Sequence[str],
    fix: bool,
    input_fn: InputFn | None,
) -> tuple[list[str], list[str], list[str], int]:
    """Verify the license of every repository, opening fix PRs when *fix* is set.

    Returns:
        The correct, incorrect and undetermined entries, and the number
        of pull requests opened.
    """
    cache = LicenseCache(client.get_license)
    ok: list[str] = []
    incorrect: list[str] = []
    undetermined: list[str] = []
    opened = 0
    async for repo, progress in _repositories(client, config, names):
        console.out(f'Verifying license for repository {repo.name} ({progress})...', end='')
        try:
            observed = await client.get_repo_license(repo.owner, repo.name)
            await verify_license(observed, repo, config.author, cache)
        except LicenseMissingError as exc:
            undetermined.append(f'{repo.name}: {exc}')
            console.out('unable to detect license')
            continue
        except LicenseIncorrectError as exc:
            entry = f'{repo.name}: {exc}'
            if exc.diff:
                entry += ':' + ('\n' + exc.diff.rstrip('\n')).replace('\n', '\n\t\t')
            incorrect.append(entry)
            console.out('incorrect')
        except GhSpecError as exc:
            console.out('')
            raise LicenseVerificationError(f'failed to verify license for repository {repo.name}: {exc}') from exc
        else:
            ok.append(repo.name)
            console.out('OK')
            continue

        if not fix or observed is None:
            continue
        try:
            info = await get_info(client, repo)
        except GhSpecError as exc:
            console.out(f'Failed to get information required to fix repository: {exc}')
            continue
        if info.is_empty:
            console.out(f'Repository {repo.name} is empty; skipping fix')
            continue
        if config.prompt and not confirm('Open PR for fix', input_fn=input_fn):
            continue

        detected = observed.license
        url = await apply_standard_license(
            client,
            info,
            detected.key,
            config.author,
            PRParams.default(detected.name or detected.key),
            cache,
            console,
            fork_timeout=config.fork_timeout,
        )
        console.out(f'Opened pull request {url}')
        opened += 1
    return ok, incorrect, undetermined, opened


async def verify_licenses(
    client: HostingClient,
    config: GhSpecConfig,
    console: Console,
    *,
    names: Sequence[str] = (),
) -> int:
    """Check the license file content of every repository.

    Returns 1 if any license is incorrect or could not be detected.
    """
    ok, incorrect, undetermined, _ = await _license_pass(
        client, config, console, names=names, fix=False, input_fn=None
    )
    _report(console, _group(f'{pluralize(len(ok))} had correct license files', ok))
    _report(console, _group(f'{pluralize(len(incorrect))} had incorrect license files', incorrect))
    _report(console, _group(f'Unable to determine license type for {pluralize(len(undetermined))}', undetermined))
    return 1 if incorrect or undetermined else 0


async def fix_licenses(
    client: HostingClient,
    config: GhSpecConfig,
    console: Console,
    *,
    names: Sequence[str] = (),
    input_fn: InputFn | None = None,
) -> int:
    """Open a pull request restoring the standard text of every incorrect license.

    Raises:
        RemediationError: If opening a pull request fails.
    """
    ok, incorrect, undetermined, opened = await _license_pass(
        client, config, console, names=names, fix=True, input_fn=input_fn
    )
    examined = len(ok) + len(incorrect) + len(undetermined)
    console.out(
        f'Examined {pluralize(examined)} and opened {pluralize(opened, "pull request", "pull requests")}.'
    )
    return 0


# ── license ──────────────────────────────────────────────────────────


async def list_licenses(
    client: HostingClient,
    console: Console,
    *,
    header: bool = True,
    show_aliases: bool = True,
) -> int:
    """List the licenses offered by the hosting service with their aliases."""
    licenses = await client.list_licenses()
    ids = sorted(ref.spdx_id or ref.key for ref in licenses)

    if not header and not show_aliases:
        for license_id in ids:
            console.out(license_id)
        return 0

    table = Table(box=None, show_header=header, pad_edge=False)
    table.add_column('ID', no_wrap=True)
    if show_aliases:
        table.add_column('ALIASES')
    for license_id in ids:
        if show_aliases:
            table.add_row(license_id, ', '.join(REGISTRY.aliases(license_id)))
        else:
            table.add_row(license_id)
    console.print(table)
    return 0


async def _render_license(client: HostingClient, identifier: str, author: str) -> str:
    year = datetime.now().year
    cache = LicenseCache(client.get_license)
    return await create_license(identifier, cache, AuthorInfo.create(author, year, year))


async def print_license(client: HostingClient, console: Console, identifier: str, *, author: str = '') -> int:
    """Print the text of a license, rendered for *author* and the current year."""
    console.out(await _render_license(client, identifier, author), end='')
    return 0


async def write_license(
    client: HostingClient,
    console: Console,
    identifier: str,
    *,
    author: str = '',
    output: Path = Path('LICENSE'),
) -> int:
    """Write the text of a license to *output*."""
    text = await _render_license(client, identifier, author)
    output.write_text(text, encoding='utf-8')
    log.info('license_written', license=REGISTRY.resolve(identifier), path=str(output))
    return 0


# ── rate-limit ───────────────────────────────────────────────────────


async def show_rate_limit(client: HostingClient, console: Console) -> int:
    """Print the remaining core API requests and when the limit resets."""
    limits = await client.rate_limit()
    reset = limits.reset.astimezone()
    minutes = (limits.reset - datetime.now(timezone.utc)).total_seconds() / 60
    stamp = f'{reset:%H:%M:%S %Z %a %b} {reset.day} {reset.year}'
    console.out(f'Remaining requests: {limits.remaining}/{limits.limit}')
    console.out(f'Rate limit resets:  {stamp} (in {minutes:.0f} minutes)')
    return 0

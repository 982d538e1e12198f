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

"""Command-line entry point for ``ghspec``.

Usage::

    ghspec --organization octo-org create --output repos.yml
    ghspec --organization octo-org --author "Octo Org" verify --spec repos.yml
    ghspec --organization octo-org --author "Octo Org" apply --spec repos.yml
    ghspec license list
    ghspec license print mit --author "Octo Cat"
    ghspec --organization octo-org license verify -r hello --author "Octo Org"
    ghspec rate-limit
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from ghspec import commands
from ghspec.config import GhSpecConfig, load_config, resolve_token
from ghspec.errors import GhSpecError
from ghspec.github import GitHubClient
from ghspec.logging import configure_logging, get_logger

__all__ = [
    'build_parser',
    'main',
]

log = get_logger('ghspec.cli')


def _add_repository_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '-r',
        '--repository',
        dest='repositories',
        action='append',
        default=[],
        metavar='NAME',
        help='Repository to process (repeatable; default: all repositories of the owner).',
    )


def _add_author_arg(parser: argparse.ArgumentParser) -> None:
    # SUPPRESS keeps a global --author when the subcommand does not repeat it.
    parser.add_argument('--author', default=argparse.SUPPRESS, help='Copyright holder used in the license.')


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for every subcommand."""
    parser = argparse.ArgumentParser(
        prog='ghspec',
        description='Verify and enforce a declared specification of GitHub repositories.',
    )
    parser.add_argument('--github-token', help='GitHub token for API calls (default: $GHSPEC_GITHUB_TOKEN, $GITHUB_TOKEN, $GH_TOKEN).')
    parser.add_argument('--user', help='GitHub user whose repositories are processed.')
    parser.add_argument('--organization', help='GitHub organization whose repositories are processed.')
    parser.add_argument('--author', help='Copyright holder used in licenses that require one.')
    parser.add_argument('--config', type=Path, help='Path to ghspec.toml (default: ./ghspec.toml if present).')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only log warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Log JSON lines instead of console output.')

    sub = parser.add_subparsers(dest='command', required=True)

    create = sub.add_parser('create', help='Create a repository specification from current state.')
    create.add_argument('--output', type=Path, required=True, help='File to which the specification is written.')
    _add_repository_args(create)

    verify = sub.add_parser('verify', help='Verify repositories against a specification.')
    verify.add_argument('--spec', type=Path, required=True, help='Repository specification file.')
    _add_repository_args(verify)

    apply = sub.add_parser('apply', help='Open pull requests fixing repositories that differ from a specification.')
    apply.add_argument('--spec', type=Path, required=True, help='Repository specification file.')
    apply.add_argument('--no-prompt', action='store_true', help='Do not ask before opening each pull request.')
    _add_repository_args(apply)

    license_parser = sub.add_parser('license', help='Inspect standard license texts and license files.')
    license_sub = license_parser.add_subparsers(dest='license_command', required=True)

    list_parser = license_sub.add_parser('list', help='List all available licenses.')
    list_parser.add_argument('--no-header', action='store_true', help='Do not display the header.')
    list_parser.add_argument('--no-aliases', action='store_true', help='Do not display aliases.')

    print_parser = license_sub.add_parser('print', help='Print the content of a license.')
    print_parser.add_argument('license', help='License key or alias.')
    _add_author_arg(print_parser)

    write_parser = license_sub.add_parser('write', help='Write the content of a license to a file.')
    write_parser.add_argument('license', help='License key or alias.')
    _add_author_arg(write_parser)
    write_parser.add_argument('--output', type=Path, default=Path('LICENSE'), help='Destination file (default: LICENSE).')

    license_verify = license_sub.add_parser('verify', help='Verify that license files have the correct content.')
    _add_author_arg(license_verify)
    _add_repository_args(license_verify)

    license_fix = license_sub.add_parser('fix', help='Open pull requests fixing license files with incorrect content.')
    _add_author_arg(license_fix)
    license_fix.add_argument('--no-prompt', action='store_true', help='Do not ask before opening each pull request.')
    _add_repository_args(license_fix)

    sub.add_parser('rate-limit', help='Print the rate limit for the authenticated user.')
    return parser


def _resolve_config(args: argparse.Namespace) -> GhSpecConfig:
    """Merge command-line flags over the config file."""
    config = load_config(args.config)
    overrides: dict[str, object] = {'author': args.author}
    if args.user is not None or args.organization is not None:
        # An owner on the command line replaces the file's owner entirely.
        overrides['user'] = args.user or ''
        overrides['organization'] = args.organization or ''
    if getattr(args, 'no_prompt', False):
        overrides['prompt'] = False
    return config.with_overrides(**overrides)


async def _run(args: argparse.Namespace, config: GhSpecConfig, token: str, console: Console) -> int:
    async with GitHubClient.connect(token=token, base_url=config.api_url) as client:
        names = getattr(args, 'repositories', [])
        if args.command == 'create':
            return await commands.create_spec(client, config, args.output, console, names=names)
        if args.command == 'verify':
            return await commands.verify_spec(client, config, args.spec, console, names=names)
        if args.command == 'apply':
            return await commands.apply_spec(client, config, args.spec, console, names=names)
        if args.command == 'rate-limit':
            return await commands.show_rate_limit(client, console)

        if args.license_command == 'list':
            return await commands.list_licenses(
                client,
                console,
                header=not args.no_header,
                show_aliases=not args.no_aliases,
            )
        if args.license_command == 'verify':
            return await commands.verify_licenses(client, config, console, names=names)
        if args.license_command == 'fix':
            return await commands.fix_licenses(client, config, console, names=names)
        if args.license_command == 'print':
            return await commands.print_license(client, console, args.license, author=config.author)
        return await commands.write_license(client, console, args.license, author=config.author, output=args.output)


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run the selected command and return its exit code."""
    args = build_parser().parse_args(argv)
    token = resolve_token(args.github_token)
    configure_logging(
        verbose=args.verbose,
        quiet=args.quiet,
        json_log=args.json_log,
        extra_secrets=(token,),
    )
    console = Console(highlight=False, soft_wrap=True)
    try:
        config = _resolve_config(args)
        return asyncio.run(_run(args, config, token, console))
    except GhSpecError as exc:
        log.debug('command_failed', command=args.command, error=str(exc))
        Console(stderr=True, highlight=False).out(f'Error: {exc}')
        return 1


if __name__ == '__main__':
    sys.exit(main())

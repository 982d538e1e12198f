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

"""Logging setup for the ghspec command line.

Events go through `structlog <https://www.structlog.org/>`_ into the
standard library root logger on stderr, leaving stdout to the verify,
apply and license reports.  ``--json-log`` swaps the console renderer
for one JSON object per line.

Every event passes :func:`redact_sensitive_values` before rendering.
A GitHub token reaches the process through the environment or through
``--github-token``; both sources are collected by
:func:`configure_logging` so the token never shows up in a logged URL,
header or exception message.

Usage::

    from ghspec.logging import configure_logging, get_logger

    configure_logging(quiet=True, extra_secrets=(token,))
    log = get_logger('ghspec.fork')
    log.info('fork_ready', repo='octocat/Hello-World', attempts=2)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable
from typing import Any

import structlog

__all__ = [
    'configure_logging',
    'get_logger',
    'redact_sensitive_values',
]

# Environment variables that may hold the GitHub token.
_SENSITIVE_ENV_VARS: tuple[str, ...] = (
    'GHSPEC_GITHUB_TOKEN',
    'GITHUB_TOKEN',
    'GH_TOKEN',
)
_REDACT_ENV_VAR = 'GHSPEC_REDACT_SECRETS'
_REDACTED = '[REDACTED]'
# Values shorter than this are never redacted.
_MIN_SECRET_LEN = 8

# Set by configure_logging(); read by the processor on every event.
_secret_values: frozenset[str] = frozenset()
_redaction_enabled: bool = True


def _level(*, verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def _build_secret_values(extra: Iterable[str] = ()) -> frozenset[str]:
    """Non-empty token values from the environment plus *extra*."""
    from_env = (os.environ.get(name, '') for name in _SENSITIVE_ENV_VARS)
    return frozenset(v for v in (*from_env, *extra) if v)


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
    redact_secrets: bool = True,
    extra_secrets: tuple[str, ...] = (),
) -> None:
    """Route structlog events to stderr at the level chosen on the command line.

    Safe to call more than once; the last call wins.

    Args:
        verbose: Log debug events such as individual API requests.
        quiet: Log only warnings and errors. Takes precedence over
            *verbose*.
        json_log: Render one JSON object per line.
        redact_secrets: Replace token values with ``[REDACTED]``.
            ``GHSPEC_REDACT_SECRETS=0`` turns this off as well.
        extra_secrets: Token values that did not come from the
            environment, such as ``--github-token``.
    """
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=_level(verbose=verbose, quiet=quiet),
        force=True,
    )

    global _secret_values, _redaction_enabled  # noqa: PLW0603
    _redaction_enabled = redact_secrets and os.environ.get(_REDACT_ENV_VAR, '1') != '0'
    _secret_values = _build_secret_values(extra_secrets) if _redaction_enabled else frozenset()

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            redact_sensitive_values,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = 'ghspec') -> structlog.stdlib.BoundLogger:
    """Logger for one ghspec module, e.g. ``get_logger('ghspec.github')``."""
    return structlog.get_logger(name)


def _scrub(value: object) -> object:
    if not isinstance(value, str):
        return value
    for secret in _secret_values:
        if len(secret) >= _MIN_SECRET_LEN:
            value = value.replace(secret, _REDACTED)
    return value


def redact_sensitive_values(
    logger: Any,  # noqa: ANN401
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor replacing token values in every string field."""
    if not _secret_values:
        return event_dict
    return {key: _scrub(value) for key, value in event_dict.items()}

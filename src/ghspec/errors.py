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

"""Exception hierarchy for ghspec.

Every error raised by ghspec derives from :class:`GhSpecError` so the
command layer can report failures uniformly::

    GhSpecError
    ├── ConfigurationError
    │   └── LicenseRegistryError
    ├── HostingAPIError
    ├── LicenseVerificationError
    │   ├── LicenseMissingError
    │   └── LicenseIncorrectError
    ├── ChecksumMismatchError
    ├── AuthorInfoRequiredError
    ├── RemediationError
    │   └── ForkTimeoutError
    └── FixNotImplementedError
"""

from __future__ import annotations

__all__ = [
    'AuthorInfoRequiredError',
    'ChecksumMismatchError',
    'ConfigurationError',
    'FixNotImplementedError',
    'ForkTimeoutError',
    'GhSpecError',
    'HostingAPIError',
    'LicenseIncorrectError',
    'LicenseMissingError',
    'LicenseRegistryError',
    'LicenseVerificationError',
    'RemediationError',
]


class GhSpecError(Exception):
    """Base class for all ghspec errors."""


class ConfigurationError(GhSpecError):
    """Invalid configuration. Fatal and never retried."""


class LicenseRegistryError(ConfigurationError):
    """The built-in license registry table is malformed."""


class HostingAPIError(GhSpecError):
    """A hosting API call failed.

    Attributes:
        status_code: HTTP status of the failed response, or ``None`` when
            the request never produced one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize with a message and optional HTTP status."""
        self.status_code = status_code
        super().__init__(message)


class LicenseVerificationError(GhSpecError):
    """A repository's license does not satisfy its expected content."""


class LicenseMissingError(LicenseVerificationError):
    """No license could be detected for the repository."""


class LicenseIncorrectError(LicenseVerificationError):
    """The repository's license content differs from the expected content.

    Attributes:
        diff: Unified diff (expected vs. actual, zero context lines).
    """

    def __init__(self, message: str, diff: str) -> None:
        """Initialize with a classification message and the content diff."""
        self.diff = diff
        super().__init__(message)


class ChecksumMismatchError(GhSpecError):
    """Fetched canonical license text does not match its pinned checksum.

    Attributes:
        license_id: The license whose content was rejected.
        expected: The pinned checksum.
        actual: The checksum of the fetched content.
    """

    def __init__(self, license_id: str, expected: str, actual: str) -> None:
        """Initialize with the license id and both checksums."""
        self.license_id = license_id
        self.expected = expected
        self.actual = actual
        super().__init__(f'checksum for license {license_id} does not match: expected {expected}, was {actual}')


class AuthorInfoRequiredError(GhSpecError):
    """A templated license was requested without author information."""


class RemediationError(GhSpecError):
    """A step of the remediation workflow failed.

    Attributes:
        step: Name of the step that failed (e.g. ``"create tree"``).
    """

    def __init__(self, step: str, message: str) -> None:
        """Initialize with the failing step and a description."""
        self.step = step
        super().__init__(f'failed to {step}: {message}')


class ForkTimeoutError(RemediationError):
    """A newly created fork did not become usable before the deadline.

    Attributes:
        timeout: The deadline that was exceeded, in seconds.
    """

    def __init__(self, repo: str, timeout: float) -> None:
        """Initialize with the fork name and the exceeded deadline."""
        self.timeout = timeout
        super().__init__('wait for fork', f'timed out after waiting {timeout:g} seconds for fork {repo} to be created')


class FixNotImplementedError(GhSpecError):
    """The attribute can be diffed but not fixed automatically."""

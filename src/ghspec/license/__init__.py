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

r"""License subsystem: registry, cache, renderer, verifier and apply.

Usage::

    from ghspec.license import AuthorInfo, LicenseCache, create_license, resolve

    assert resolve('Apache') == 'apache-2.0'

    cache = LicenseCache(client.get_license)
    text = await create_license('mit', cache, AuthorInfo.create('Octo Cat', 2019, 2024))
    assert '2019-2024 Octo Cat' in text
"""

from ghspec.license._apply import COMMIT_MESSAGE, PRParams, apply_license, apply_standard_license
from ghspec.license._cache import LicenseCache, LicenseFetcher
from ghspec.license._registry import REGISTRY, LicenseRegistry, LicenseSpec, aliases, resolve
from ghspec.license._render import (
    FULLNAME_MARKER,
    YEAR_MARKER,
    AuthorInfo,
    create_license,
    has_author_placeholders,
    render,
)
from ghspec.license._verify import decode_content, missing_license_error, unified_diff, verify_license

__all__ = [
    'COMMIT_MESSAGE',
    'FULLNAME_MARKER',
    'REGISTRY',
    'YEAR_MARKER',
    'AuthorInfo',
    'LicenseCache',
    'LicenseFetcher',
    'LicenseRegistry',
    'LicenseSpec',
    'PRParams',
    'aliases',
    'apply_license',
    'apply_standard_license',
    'create_license',
    'decode_content',
    'has_author_placeholders',
    'missing_license_error',
    'render',
    'resolve',
    'unified_diff',
    'verify_license',
]

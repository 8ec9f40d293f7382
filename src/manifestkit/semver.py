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

"""npm-flavoured semantic versions: parsing, precedence and increments.

Increment table (npm ``semver.inc`` semantics)::

    release type │ 1.2.3         │ 1.2.4-0       │ 2.0.0-rc.1
    ─────────────┼───────────────┼───────────────┼──────────────
    major        │ 2.0.0         │ 2.0.0         │ 2.0.0
    minor        │ 1.3.0         │ 1.3.0         │ 2.0.0
    patch        │ 1.2.4         │ 1.2.4         │ 2.0.0
    premajor     │ 2.0.0-0       │ 2.0.0-0       │ 3.0.0-0
    preminor     │ 1.3.0-0       │ 1.3.0-0       │ 2.1.0-0
    prepatch     │ 1.2.4-0       │ 1.2.5-0       │ 2.0.1-0
    prerelease   │ 1.2.4-0       │ 1.2.4-1       │ 2.0.0-rc.2

Usage::

    from manifestkit.semver import increment, parse_version

    assert increment('0.0.2', 'patch') == '0.0.3'
    assert parse_version('1.0.0-rc.1') < parse_version('1.0.0')
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

from manifestkit.errors import E, ManifestKitError

RELEASE_TYPES: frozenset[str] = frozenset({
    'major',
    'minor',
    'patch',
    'premajor',
    'preminor',
    'prepatch',
    'prerelease',
})

_SEMVER_RE = re.compile(
    r'^[v=]?\s*'
    r'(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)'
    r'(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$'
)


def _parse_identifier(part: str) -> int | str:
    return int(part) if part.isdigit() else part


def _compare_identifiers(a: int | str, b: int | str) -> int:
    if isinstance(a, int) and isinstance(b, int):
        return (a > b) - (a < b)
    # Numeric identifiers always have lower precedence than alphanumeric.
    if isinstance(a, int):
        return -1
    if isinstance(b, int):
        return 1
    return (a > b) - (a < b)


@functools.total_ordering
@dataclass(frozen=True)
class SemVer:
    """A parsed semantic version.

    Build metadata is kept for display but ignored by comparisons.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[int | str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        text = f'{self.major}.{self.minor}.{self.patch}'
        if self.prerelease:
            text += '-' + '.'.join(str(p) for p in self.prerelease)
        if self.build:
            text += '+' + '.'.join(self.build)
        return text

    def _compare(self, other: SemVer) -> int:
        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        if mine != theirs:
            return -1 if mine < theirs else 1
        if not self.prerelease or not other.prerelease:
            # A release outranks any of its pre-releases.
            return (not self.prerelease) - (not other.prerelease)
        for a, b in zip(self.prerelease, other.prerelease):
            result = _compare_identifiers(a, b)
            if result:
                return result
        return (len(self.prerelease) > len(other.prerelease)) - (len(self.prerelease) < len(other.prerelease))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._compare(other) == 0

    def __lt__(self, other: SemVer) -> bool:
        return self._compare(other) < 0

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.prerelease))


def parse_version(text: str) -> SemVer:
    """Parse ``text`` as a semantic version.

    A leading ``v`` or ``=`` and surrounding whitespace are tolerated,
    the way npm tolerates them.

    Raises:
        ManifestKitError: If ``text`` is not a valid semantic version.
    """
    if not isinstance(text, str):
        raise ManifestKitError(
            code=E.VERSION_INVALID,
            message=f'Version must be a string, got {type(text).__name__}',
        )
    m = _SEMVER_RE.match(text.strip())
    if not m:
        raise ManifestKitError(
            code=E.VERSION_INVALID,
            message=f'Version {text!r} is not a valid semantic version',
            hint='Use a version string like "1.2.3" or "1.2.3-rc.1".',
        )
    pre = m.group('pre')
    build = m.group('build')
    return SemVer(
        major=int(m.group('major')),
        minor=int(m.group('minor')),
        patch=int(m.group('patch')),
        prerelease=tuple(_parse_identifier(p) for p in pre.split('.')) if pre else (),
        build=tuple(build.split('.')) if build else (),
    )


def _bump_prerelease(prerelease: tuple[int | str, ...], identifier: str) -> tuple[int | str, ...]:
    """Advance a pre-release tuple the way npm does."""
    if not prerelease:
        return (identifier, 0) if identifier else (0,)
    parts = list(prerelease)
    for i in range(len(parts) - 1, -1, -1):
        part = parts[i]
        if isinstance(part, int):
            parts[i] = part + 1
            break
    else:
        parts.append(0)
    if identifier and parts[0] != identifier:
        return (identifier, 0)
    return tuple(parts)


def increment(version: str, release_type: str, identifier: str = '') -> str:
    """Return ``version`` incremented by ``release_type``.

    Args:
        version: The version to increment (e.g. ``"0.0.2"``).
        release_type: One of :data:`RELEASE_TYPES`.
        identifier: Optional pre-release identifier (e.g. ``"rc"``) for
            the ``pre*`` release types.

    Returns:
        The incremented version string, without build metadata.

    Raises:
        ManifestKitError: If the version is invalid or the release type
            is unknown.
    """
    if release_type not in RELEASE_TYPES:
        raise ManifestKitError(
            code=E.BUMP_POLICY_UNSUPPORTED,
            message=f'Unknown release type {release_type!r}',
            hint=f'Use one of: {sorted(RELEASE_TYPES)}',
        )
    v = parse_version(version)
    major, minor, patch, pre = v.major, v.minor, v.patch, v.prerelease
    fresh_pre: tuple[int | str, ...] = (identifier, 0) if identifier else (0,)

    if release_type == 'major':
        # 1.0.0-5 bumps to 1.0.0, not 2.0.0.
        if not (pre and minor == 0 and patch == 0):
            major += 1
        minor, patch, pre = 0, 0, ()
    elif release_type == 'minor':
        if not (pre and patch == 0):
            minor += 1
        patch, pre = 0, ()
    elif release_type == 'patch':
        if not pre:
            patch += 1
        pre = ()
    elif release_type == 'premajor':
        major, minor, patch, pre = major + 1, 0, 0, fresh_pre
    elif release_type == 'preminor':
        minor, patch, pre = minor + 1, 0, fresh_pre
    elif release_type == 'prepatch':
        patch, pre = patch + 1, fresh_pre
    else:
        if not pre:
            patch += 1
        pre = _bump_prerelease(pre, identifier)

    return str(SemVer(major=major, minor=minor, patch=patch, prerelease=pre))


__all__ = [
    'RELEASE_TYPES',
    'SemVer',
    'increment',
    'parse_version',
]

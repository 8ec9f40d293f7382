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

"""Upgrade descriptors: one dependency, one new value.

Each value shape that can appear in a manifest has its own frozen
dataclass. The caller picks the kind; nothing is inferred from which
optional fields happen to be set.

Key Concepts (ELI5)::

    ┌───────────────────────┬──────────────────────────────────────────────┐
    │ Kind                  │ Value in the manifest → after the upgrade    │
    ├───────────────────────┼──────────────────────────────────────────────┤
    │ PlainUpgrade          │ "^1.5.8"                 → "^1.6.1"          │
    ├───────────────────────┼──────────────────────────────────────────────┤
    │ AliasUpgrade          │ "npm:@hapi/hapi@18.3.0"  → "npm:@hapi/hapi@  │
    │                       │                             18.3.1"          │
    ├───────────────────────┼──────────────────────────────────────────────┤
    │ GitTagUpgrade         │ "gulpjs/gulp#v4.0.0-alpha.2" → "gulpjs/gulp# │
    │                       │                                 v4.0.0"      │
    ├───────────────────────┼──────────────────────────────────────────────┤
    │ GitDigestUpgrade      │ "gulpjs/gulp#abcdef7"    → "gulpjs/gulp#     │
    │                       │                             0000000"         │
    ├───────────────────────┼──────────────────────────────────────────────┤
    │ ResolutionOnlyUpgrade │ resolutions["**/x"] "1.0.0" → "1.1.0"        │
    └───────────────────────┴──────────────────────────────────────────────┘

Every kind answers two questions for the patcher: what raw text must
already be in the slot (:meth:`expected_raw`) and what replaces it
(:meth:`replacement_raw`).

:class:`OccurrenceCounter` is the caller-owned counter map used to walk
duplicate ``depType`` + key entries across a batch of patches.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from manifestkit.errors import E, ManifestKitError


class UpgradeKind(str, Enum):
    """The value shape an upgrade rewrites."""

    PLAIN = 'plain'
    ALIAS = 'alias'
    GIT_TAG = 'gitTag'
    GIT_DIGEST = 'gitDigest'
    RESOLUTION_ONLY = 'resolutionOnly'


def _split_reference(raw: str, expected_tail: str, what: str) -> str:
    """Return the ``owner/repo`` prefix of ``raw`` after checking its ``#tail``."""
    prefix, sep, tail = raw.rpartition('#')
    if not sep or tail != expected_tail:
        raise ManifestKitError(
            code=E.VALUE_MISMATCH,
            message=f'{raw!r} does not end with #{expected_tail} ({what})',
            hint='The raw value and the current tag/digest of the upgrade disagree.',
        )
    return prefix


@dataclass(frozen=True)
class PlainUpgrade:
    """A plain version or range, e.g. ``"1.5.8"`` or ``"^1.5.8"``.

    When ``current_value`` is ``None`` the entry's whole value is
    replaced. Otherwise only ``current_value`` inside the entry is
    replaced, so range operators around it survive.
    """

    dep_type: str
    dep_name: str
    new_value: str
    current_value: str | None = None
    resolution_key: str | None = None

    kind: ClassVar[UpgradeKind] = UpgradeKind.PLAIN

    @property
    def lookup_keys(self) -> tuple[str, ...]:
        """Keys to try, in order, inside the ``dep_type`` section."""
        return (self.dep_name,)

    def expected_raw(self) -> str | None:
        """Text that must already occupy the slot, or ``None`` for any."""
        return self.current_value

    def replacement_raw(self) -> str:
        """Text that replaces :meth:`expected_raw`."""
        return self.new_value

    @property
    def is_noop(self) -> bool:
        """Whether the upgrade asks for the value it already has."""
        return self.current_value is not None and self.current_value == self.new_value


@dataclass(frozen=True)
class AliasUpgrade:
    """An npm alias: declared as ``dep_name`` but resolved as ``lookup_name``."""

    dep_type: str
    dep_name: str
    lookup_name: str
    current_value: str
    new_value: str
    resolution_key: str | None = None

    kind: ClassVar[UpgradeKind] = UpgradeKind.ALIAS

    @property
    def lookup_keys(self) -> tuple[str, ...]:
        return (self.dep_name, self.lookup_name)

    def expected_raw(self) -> str:
        return f'npm:{self.lookup_name}@{self.current_value}'

    def replacement_raw(self) -> str:
        return f'npm:{self.lookup_name}@{self.new_value}'

    @property
    def is_noop(self) -> bool:
        return self.current_value == self.new_value


@dataclass(frozen=True)
class GitTagUpgrade:
    """A git reference pinned to a tag.

    Covers the GitHub shorthand (``owner/repo#v1.0.0``) and full URLs
    (``git+https://github.com/owner/repo#v1.0.0``).
    """

    dep_type: str
    dep_name: str
    current_raw_value: str
    current_value: str
    new_value: str
    resolution_key: str | None = None

    kind: ClassVar[UpgradeKind] = UpgradeKind.GIT_TAG

    @property
    def lookup_keys(self) -> tuple[str, ...]:
        return (self.dep_name,)

    def expected_raw(self) -> str:
        _split_reference(self.current_raw_value, self.current_value, 'tag')
        return self.current_raw_value

    def replacement_raw(self) -> str:
        prefix = _split_reference(self.current_raw_value, self.current_value, 'tag')
        return f'{prefix}#{self.new_value}'

    @property
    def is_noop(self) -> bool:
        return self.current_value == self.new_value


@dataclass(frozen=True)
class GitDigestUpgrade:
    """A git reference pinned to a commit hash.

    The new digest is cut to the length of the current one, so a
    seven-character short hash stays a short hash.
    """

    dep_type: str
    dep_name: str
    current_raw_value: str
    current_digest: str
    new_digest: str
    resolution_key: str | None = None

    kind: ClassVar[UpgradeKind] = UpgradeKind.GIT_DIGEST

    @property
    def lookup_keys(self) -> tuple[str, ...]:
        return (self.dep_name,)

    @property
    def new_value(self) -> str:
        """The digest as it will be written."""
        return self.new_digest[: len(self.current_digest)]

    def expected_raw(self) -> str:
        _split_reference(self.current_raw_value, self.current_digest, 'digest')
        return self.current_raw_value

    def replacement_raw(self) -> str:
        prefix = _split_reference(self.current_raw_value, self.current_digest, 'digest')
        return f'{prefix}#{self.new_value}'

    @property
    def is_noop(self) -> bool:
        return self.current_digest == self.new_value


@dataclass(frozen=True)
class ResolutionOnlyUpgrade:
    """A dependency that is pinned only through a resolutions map.

    ``resolution_key`` names the map key when it differs from
    ``dep_name``, e.g. ``"**/@angular/cli"``.
    """

    dep_name: str
    new_value: str
    resolution_key: str | None = None
    current_value: str | None = None
    dep_type: str = 'resolutions'

    kind: ClassVar[UpgradeKind] = UpgradeKind.RESOLUTION_ONLY

    @property
    def lookup_keys(self) -> tuple[str, ...]:
        if self.resolution_key and self.resolution_key != self.dep_name:
            return (self.resolution_key, self.dep_name)
        return (self.dep_name,)

    def expected_raw(self) -> str | None:
        return self.current_value

    def replacement_raw(self) -> str:
        return self.new_value

    @property
    def is_noop(self) -> bool:
        return self.current_value is not None and self.current_value == self.new_value


Upgrade = Union[PlainUpgrade, AliasUpgrade, GitTagUpgrade, GitDigestUpgrade, ResolutionOnlyUpgrade]


@dataclass
class OccurrenceCounter:
    """Caller-owned counter for duplicate ``dep_type`` + key entries.

    Thread one counter through a batch of patches: each :meth:`claim`
    for the same dependency returns the next occurrence index.

    Attributes:
        counts: Next occurrence index per ``(dep_type, dep_name)``.
    """

    counts: dict[tuple[str, str], int] = field(default_factory=dict)

    def peek(self, upgrade: Upgrade) -> int:
        """Return the next occurrence index without advancing it."""
        return self.counts.get((upgrade.dep_type, upgrade.dep_name), 0)

    def claim(self, upgrade: Upgrade) -> int:
        """Return the next occurrence index and advance it."""
        key = (upgrade.dep_type, upgrade.dep_name)
        index = self.counts.get(key, 0)
        self.counts[key] = index + 1
        return index

    def reset(self) -> None:
        """Forget all claimed occurrences."""
        self.counts.clear()


_REQUIRED_FIELDS: dict[UpgradeKind, tuple[str, ...]] = {
    UpgradeKind.PLAIN: ('depType', 'depName', 'newValue'),
    UpgradeKind.ALIAS: ('depType', 'depName', 'lookupName', 'currentValue', 'newValue'),
    UpgradeKind.GIT_TAG: ('depType', 'depName', 'currentRawValue', 'currentValue', 'newValue'),
    UpgradeKind.GIT_DIGEST: ('depType', 'depName', 'currentRawValue', 'currentDigest', 'newDigest'),
    UpgradeKind.RESOLUTION_ONLY: ('depName', 'newValue'),
}

_OPTIONAL_FIELDS: tuple[str, ...] = ('currentValue', 'depType')


def upgrade_from_dict(data: Mapping[str, Any]) -> Upgrade:  # noqa: ANN401 - JSON values are untyped
    """Build an upgrade from the camelCase mapping extractors produce.

    The mapping must carry an explicit ``kind`` (one of
    :class:`UpgradeKind`'s values); it defaults to ``"plain"``.
    ``managerData.key`` becomes ``resolution_key``.

    Raises:
        ManifestKitError: If the kind is unknown, a required field is
            missing or not a string, or an optional field is set to
            something other than a string.
    """
    raw_kind = data.get('kind', UpgradeKind.PLAIN.value)
    try:
        kind = UpgradeKind(raw_kind)
    except ValueError as exc:
        raise ManifestKitError(
            code=E.UPGRADE_INVALID,
            message=f'Unknown upgrade kind {raw_kind!r}',
            hint=f'Use one of: {[k.value for k in UpgradeKind]}',
        ) from exc

    for name in _REQUIRED_FIELDS[kind]:
        if not isinstance(data.get(name), str):
            raise ManifestKitError(
                code=E.UPGRADE_INVALID,
                message=f'{kind.value} upgrade needs a string {name!r}',
                hint=f'Required fields: {list(_REQUIRED_FIELDS[kind])}',
            )

    for name in _OPTIONAL_FIELDS:
        if name in data and data[name] is not None and not isinstance(data[name], str):
            raise ManifestKitError(
                code=E.UPGRADE_INVALID,
                message=f'{kind.value} upgrade has a non-string {name!r}: {data[name]!r}',
            )

    manager_data = data.get('managerData') or {}
    resolution_key = manager_data.get('key') if isinstance(manager_data, Mapping) else None
    if resolution_key is not None and not isinstance(resolution_key, str):
        raise ManifestKitError(
            code=E.UPGRADE_INVALID,
            message=f'managerData.key must be a string, got {resolution_key!r}',
        )

    if kind == UpgradeKind.ALIAS:
        return AliasUpgrade(
            dep_type=data['depType'],
            dep_name=data['depName'],
            lookup_name=data['lookupName'],
            current_value=data['currentValue'],
            new_value=data['newValue'],
            resolution_key=resolution_key,
        )
    if kind == UpgradeKind.GIT_TAG:
        return GitTagUpgrade(
            dep_type=data['depType'],
            dep_name=data['depName'],
            current_raw_value=data['currentRawValue'],
            current_value=data['currentValue'],
            new_value=data['newValue'],
            resolution_key=resolution_key,
        )
    if kind == UpgradeKind.GIT_DIGEST:
        return GitDigestUpgrade(
            dep_type=data['depType'],
            dep_name=data['depName'],
            current_raw_value=data['currentRawValue'],
            current_digest=data['currentDigest'],
            new_digest=data['newDigest'],
            resolution_key=resolution_key,
        )
    if kind == UpgradeKind.RESOLUTION_ONLY:
        return ResolutionOnlyUpgrade(
            dep_name=data['depName'],
            new_value=data['newValue'],
            resolution_key=resolution_key,
            current_value=data.get('currentValue'),
            dep_type=data.get('depType') or 'resolutions',
        )
    return PlainUpgrade(
        dep_type=data['depType'],
        dep_name=data['depName'],
        new_value=data['newValue'],
        current_value=data.get('currentValue'),
        resolution_key=resolution_key,
    )


__all__ = [
    'AliasUpgrade',
    'GitDigestUpgrade',
    'GitTagUpgrade',
    'OccurrenceCounter',
    'PlainUpgrade',
    'ResolutionOnlyUpgrade',
    'Upgrade',
    'UpgradeKind',
    'upgrade_from_dict',
]

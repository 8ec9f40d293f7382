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

"""Bump the manifest's own ``version`` field according to a policy.

Policies::

    patch / minor / major /        increment the caller's current version
    premajor / preminor /          (npm semantics, see manifestkit.semver)
    prepatch / prerelease
    mirror:<dep>                   copy <dep>'s new value verbatim

Guard: an increment is written only if it is strictly greater than the
version already declared in the manifest; a mirror only if it differs.
Any computation error leaves the text untouched.

Usage::

    from manifestkit.bumper import bump_package_version

    result = bump_package_version(text, '0.0.2', 'patch')
    result.bumped_content  # '..."version": "0.0.3"...'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Union

from manifestkit.config import PatchConfig
from manifestkit.errors import E, ManifestKitError
from manifestkit.logging import get_logger
from manifestkit.semver import increment, parse_version
from manifestkit.spans import Node, encode_string, scan_json, splice
from manifestkit.upgrades import Upgrade

logger = get_logger(__name__)

MIRROR_PREFIX = 'mirror:'

Batch = Union[Mapping[str, str], Iterable[Upgrade]]


@dataclass(frozen=True)
class BumpResult:
    """Result of a version bump.

    Attributes:
        bumped_content: The manifest text, bumped or unchanged.
        old_version: The declared version that was replaced, if any.
        new_version: The version that was written, if any.
    """

    bumped_content: str
    old_version: str | None = None
    new_version: str | None = None

    @property
    def changed(self) -> bool:
        """Whether the version field was rewritten."""
        return self.new_version is not None


class VersionBumper:
    """Computes and splices a new ``version`` value.

    Args:
        config: Supplies the dependency sections searched by
            ``mirror:<dep>`` when no batch is given.
    """

    def __init__(self, config: PatchConfig | None = None) -> None:
        """Initialize with an optional config."""
        self._config = config or PatchConfig()

    def bump(
        self,
        content: str,
        current_version: str,
        policy: str,
        *,
        batch: Batch | None = None,
    ) -> BumpResult:
        """Return the manifest with its version bumped per ``policy``.

        Never raises on bad input: on any computation error the original
        text comes back.

        Args:
            content: Raw manifest text.
            current_version: The version the caller computed against,
                which may lag behind what the manifest declares now.
            policy: A release type or ``mirror:<dep>``.
            batch: New dependency values for ``mirror:<dep>``, either a
                name-to-value mapping or the batch's upgrades. When
                omitted the value is read from the (already patched)
                manifest.
        """
        try:
            return self._bump(content, current_version, policy, batch)
        except ManifestKitError as exc:
            logger.warning(
                'version_bump_failed',
                code=exc.code.value,
                policy=str(policy),
                reason=exc.info.message,
            )
            return BumpResult(bumped_content=content)

    def _mirror_value(self, root: Node, dep: str, batch: Batch | None) -> object:
        if batch is None:
            for section_name in self._config.dependency_sections:
                for section in root.find(section_name):
                    entry = section.value.first(dep) if section.value.is_object else None
                    if entry is not None and entry.value.is_string:
                        return str(entry.value.value)
            return None
        if isinstance(batch, Mapping):
            return batch.get(dep)
        for upgrade in batch:
            if upgrade.dep_name == dep:
                return upgrade.new_value
        return None

    def _bump(self, content: str, current_version: str, policy: str, batch: Batch | None) -> BumpResult:
        if not isinstance(policy, str) or not policy:
            raise ManifestKitError(
                code=E.BUMP_POLICY_UNSUPPORTED,
                message=f'Bump policy must be a non-empty string, got {policy!r}',
            )

        root = scan_json(content)
        member = root.first('version')
        if member is None or not member.value.is_string:
            logger.debug('no_version_field')
            return BumpResult(bumped_content=content)
        declared = str(member.value.value)

        if policy.startswith(MIRROR_PREFIX):
            dep = policy[len(MIRROR_PREFIX) :]
            if not dep:
                raise ManifestKitError(
                    code=E.BUMP_POLICY_UNSUPPORTED,
                    message='mirror: policy needs a dependency name',
                    hint='Use mirror:<depName>, e.g. mirror:react.',
                )
            new_version = self._mirror_value(root, dep, batch)
            if new_version is None:
                logger.debug('mirror_dependency_absent', dep=dep)
                return BumpResult(bumped_content=content)
            if not isinstance(new_version, str) or not new_version:
                raise ManifestKitError(
                    code=E.VERSION_INVALID,
                    message=f'Cannot mirror {dep!r}: its new value {new_version!r} is not a version string',
                )
            if new_version == declared:
                logger.debug('version_already_mirrored', version=declared)
                return BumpResult(bumped_content=content)
        else:
            new_version = increment(current_version, policy)
            if not parse_version(new_version) > parse_version(declared):
                logger.debug('version_not_advanced', declared=declared, candidate=new_version)
                return BumpResult(bumped_content=content)

        value = member.value
        bumped = splice(content, [(value.inner_start, value.inner_end, encode_string(new_version))])
        logger.info('version_bumped', old=declared, new=new_version, policy=policy)
        return BumpResult(bumped_content=bumped, old_version=declared, new_version=new_version)


def bump_package_version(
    content: str,
    current_version: str,
    policy: str,
    *,
    batch: Batch | None = None,
    config: PatchConfig | None = None,
) -> BumpResult:
    """Bump the manifest version. See :meth:`VersionBumper.bump`."""
    return VersionBumper(config).bump(content, current_version, policy, batch=batch)


__all__ = [
    'MIRROR_PREFIX',
    'BumpResult',
    'VersionBumper',
    'bump_package_version',
]

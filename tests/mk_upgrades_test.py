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

"""Tests for manifestkit.upgrades module."""

from __future__ import annotations

import dataclasses

import pytest
from manifestkit.errors import E, ManifestKitError
from manifestkit.upgrades import (
    AliasUpgrade,
    GitDigestUpgrade,
    GitTagUpgrade,
    OccurrenceCounter,
    PlainUpgrade,
    ResolutionOnlyUpgrade,
    UpgradeKind,
    upgrade_from_dict,
)


class TestUpgradeKinds:
    """Tests for the upgrade dataclasses."""

    def test_frozen(self) -> None:
        """Upgrades are immutable."""
        upgrade = PlainUpgrade(dep_type='dependencies', dep_name='a', new_value='1.0.0')
        with pytest.raises(dataclasses.FrozenInstanceError):
            upgrade.new_value = '2.0.0'  # type: ignore[misc]

    def test_plain_without_current_value_matches_anything(self) -> None:
        """No current value means the whole slot is replaced."""
        upgrade = PlainUpgrade(dep_type='dependencies', dep_name='a', new_value='1.0.0')
        assert upgrade.expected_raw() is None
        assert upgrade.replacement_raw() == '1.0.0'
        assert not upgrade.is_noop

    def test_plain_noop(self) -> None:
        """Same current and new value is a no-op."""
        upgrade = PlainUpgrade(dep_type='dependencies', dep_name='a', current_value='1.0.0', new_value='1.0.0')
        assert upgrade.is_noop

    def test_alias_raw_values(self) -> None:
        """Alias raw values embed the lookup name."""
        upgrade = AliasUpgrade(
            dep_type='dependencies',
            dep_name='hapi',
            lookup_name='@hapi/hapi',
            current_value='18.3.0',
            new_value='18.3.1',
        )
        assert upgrade.kind == UpgradeKind.ALIAS
        assert upgrade.lookup_keys == ('hapi', '@hapi/hapi')
        assert upgrade.expected_raw() == 'npm:@hapi/hapi@18.3.0'
        assert upgrade.replacement_raw() == 'npm:@hapi/hapi@18.3.1'

    def test_git_tag_keeps_prefix(self) -> None:
        """Only the tag after the last # changes."""
        upgrade = GitTagUpgrade(
            dep_type='dependencies',
            dep_name='gulp',
            current_raw_value='gulpjs/gulp#v4.0.0-alpha.2',
            current_value='v4.0.0-alpha.2',
            new_value='v4.0.0',
        )
        assert upgrade.replacement_raw() == 'gulpjs/gulp#v4.0.0'

    def test_git_tag_mismatch_raises(self) -> None:
        """A raw value not ending in the current tag is rejected."""
        upgrade = GitTagUpgrade(
            dep_type='dependencies',
            dep_name='gulp',
            current_raw_value='gulpjs/gulp',
            current_value='v1.0.0',
            new_value='v2.0.0',
        )
        with pytest.raises(ManifestKitError) as exc_info:
            upgrade.replacement_raw()
        assert exc_info.value.code == E.VALUE_MISMATCH

    def test_git_digest_truncated(self) -> None:
        """A long digest is cut to the current digest length."""
        upgrade = GitDigestUpgrade(
            dep_type='dependencies',
            dep_name='gulp',
            current_raw_value='gulpjs/gulp#abcdef7',
            current_digest='abcdef7',
            new_digest='0123456789abcdef0123456789abcdef01234567',
        )
        assert upgrade.new_value == '0123456'
        assert upgrade.replacement_raw() == 'gulpjs/gulp#0123456'

    def test_git_digest_noop_after_truncation(self) -> None:
        """A new digest with the same short prefix is a no-op."""
        upgrade = GitDigestUpgrade(
            dep_type='dependencies',
            dep_name='gulp',
            current_raw_value='gulpjs/gulp#abcdef7',
            current_digest='abcdef7',
            new_digest='abcdef7' + '0' * 33,
        )
        assert upgrade.is_noop

    def test_resolution_only_lookup_keys(self) -> None:
        """The resolutions key is tried before the bare name."""
        upgrade = ResolutionOnlyUpgrade(dep_name='@angular/cli', resolution_key='**/@angular/cli', new_value='8.1.0')
        assert upgrade.dep_type == 'resolutions'
        assert upgrade.lookup_keys == ('**/@angular/cli', '@angular/cli')


class TestOccurrenceCounter:
    """Tests for OccurrenceCounter."""

    def test_claim_advances(self) -> None:
        """Each claim returns the next index."""
        counter = OccurrenceCounter()
        upgrade = PlainUpgrade(dep_type='devDependencies', dep_name='a', new_value='1.0.0')
        assert counter.peek(upgrade) == 0
        assert counter.claim(upgrade) == 0
        assert counter.claim(upgrade) == 1
        assert counter.peek(upgrade) == 2

    def test_keyed_by_dep_type_and_name(self) -> None:
        """Different sections count separately."""
        counter = OccurrenceCounter()
        dev = PlainUpgrade(dep_type='devDependencies', dep_name='a', new_value='1.0.0')
        prod = PlainUpgrade(dep_type='dependencies', dep_name='a', new_value='1.0.0')
        counter.claim(dev)
        assert counter.peek(prod) == 0

    def test_reset(self) -> None:
        """Reset forgets all claims."""
        counter = OccurrenceCounter()
        upgrade = PlainUpgrade(dep_type='dependencies', dep_name='a', new_value='1.0.0')
        counter.claim(upgrade)
        counter.reset()
        assert counter.peek(upgrade) == 0


class TestUpgradeFromDict:
    """Tests for upgrade_from_dict()."""

    def test_defaults_to_plain(self) -> None:
        """A mapping without kind is a plain upgrade."""
        upgrade = upgrade_from_dict({'depType': 'dependencies', 'depName': 'cheerio', 'newValue': '0.22.1'})
        assert upgrade == PlainUpgrade(dep_type='dependencies', dep_name='cheerio', new_value='0.22.1')

    def test_manager_data_key(self) -> None:
        """managerData.key becomes the resolution key."""
        upgrade = upgrade_from_dict({
            'kind': 'resolutionOnly',
            'depType': 'resolutions',
            'depName': '@angular/cli',
            'managerData': {'key': '**/@angular/cli'},
            'newValue': '8.1.0',
        })
        assert isinstance(upgrade, ResolutionOnlyUpgrade)
        assert upgrade.resolution_key == '**/@angular/cli'

    def test_git_digest(self) -> None:
        """Digest fields map onto GitDigestUpgrade."""
        upgrade = upgrade_from_dict({
            'kind': 'gitDigest',
            'depType': 'dependencies',
            'depName': 'gulp',
            'currentRawValue': 'gulpjs/gulp#abcdef7',
            'currentDigest': 'abcdef7',
            'newDigest': '0000000000111111111122222222223333333333',
        })
        assert isinstance(upgrade, GitDigestUpgrade)
        assert upgrade.new_value == '0000000'

    def test_unknown_kind(self) -> None:
        """An unknown kind is rejected."""
        with pytest.raises(ManifestKitError) as exc_info:
            upgrade_from_dict({'kind': 'docker', 'depType': 'dependencies', 'depName': 'a', 'newValue': '1'})
        assert exc_info.value.code == E.UPGRADE_INVALID

    @pytest.mark.parametrize(
        'extra',
        [
            {'currentValue': 1.21},
            {'currentValue': ['1.21.0']},
            {'managerData': {'key': 7}},
        ],
    )
    def test_non_string_optional_field(self, extra: dict[str, object]) -> None:
        """Optional fields that are set must be strings."""
        data = {'depType': 'dependencies', 'depName': 'config', 'newValue': '1.22.0', **extra}
        with pytest.raises(ManifestKitError) as exc_info:
            upgrade_from_dict(data)
        assert exc_info.value.code == E.UPGRADE_INVALID

    def test_non_string_dep_type_for_resolution_only(self) -> None:
        """A resolution-only depType, when given, must be a string."""
        with pytest.raises(ManifestKitError) as exc_info:
            upgrade_from_dict({'kind': 'resolutionOnly', 'depName': 'a', 'newValue': '1.0.0', 'depType': 3})
        assert exc_info.value.code == E.UPGRADE_INVALID

    def test_null_current_value_means_absent(self) -> None:
        """A null currentValue is the same as leaving it out."""
        upgrade = upgrade_from_dict({
            'depType': 'dependencies',
            'depName': 'config',
            'newValue': '1.22.0',
            'currentValue': None,
        })
        assert upgrade == PlainUpgrade(dep_type='dependencies', dep_name='config', new_value='1.22.0')

    def test_missing_field(self) -> None:
        """A missing required field is rejected."""
        with pytest.raises(ManifestKitError) as exc_info:
            upgrade_from_dict({'kind': 'alias', 'depType': 'dependencies', 'depName': 'hapi', 'newValue': '1'})
        assert exc_info.value.code == E.UPGRADE_INVALID
        assert 'lookupName' in str(exc_info.value)

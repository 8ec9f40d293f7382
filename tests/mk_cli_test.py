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

"""Tests for manifestkit.cli module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from manifestkit.cli import build_parser, main

MANIFEST = json.dumps(
    {
        'name': 'some-package',
        'version': '0.0.2',
        'dependencies': {'chalk': '2.4.2', 'cheerio': '0.22.0'},
        'devDependencies': {'a': '1.0.0'},
    },
    indent=2,
)


@pytest.fixture
def manifest(tmp_path: Path) -> Path:
    """Write a package.json into a temporary directory."""
    path = tmp_path / 'package.json'
    path.write_text(MANIFEST, encoding='utf-8')
    return path


def _write_upgrade(tmp_path: Path, data: object) -> Path:
    path = tmp_path / 'upgrade.json'
    path.write_text(json.dumps(data), encoding='utf-8')
    return path


class TestBuildParser:
    """Tests for argument parsing."""

    def test_patch_args(self) -> None:
        """Patch takes a manifest, an upgrade file and options."""
        args = build_parser().parse_args(['patch', 'package.json', 'up.json', '--occurrence', '1', '--write'])
        assert args.command == 'patch'
        assert args.occurrence == 1
        assert args.write

    def test_bump_args(self) -> None:
        """Bump takes --current and --policy."""
        args = build_parser().parse_args(['bump', 'package.json', '--current', '0.0.2', '--policy', 'patch'])
        assert args.current == '0.0.2'
        assert args.policy == 'patch'
        assert not args.write

    def test_global_flags(self) -> None:
        """Logging flags come before the subcommand."""
        args = build_parser().parse_args(['--verbose', '--json-log', 'explain', 'MK-VALUE-MISMATCH'])
        assert args.verbose
        assert args.json_log
        assert args.config_root == '.'


class TestMain:
    """Tests for main()."""

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        """No subcommand prints help and returns 2."""
        assert main([]) == 2
        assert 'please provide a command' in capsys.readouterr().err

    def test_patch_prints_result(self, tmp_path: Path, manifest: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """The patched manifest goes to stdout."""
        upgrade = _write_upgrade(tmp_path, {'depType': 'dependencies', 'depName': 'cheerio', 'newValue': '0.22.1'})
        assert main(['--quiet', '--config-root', str(tmp_path), 'patch', str(manifest), str(upgrade)]) == 0
        assert capsys.readouterr().out == MANIFEST.replace('0.22.0', '0.22.1')
        assert manifest.read_text(encoding='utf-8') == MANIFEST

    def test_patch_write(self, tmp_path: Path, manifest: Path) -> None:
        """--write updates the manifest in place."""
        upgrade = _write_upgrade(
            tmp_path,
            [
                {'depType': 'dependencies', 'depName': 'cheerio', 'newValue': '0.22.1'},
                {'kind': 'plain', 'depType': 'devDependencies', 'depName': 'a', 'newValue': '2.0.0'},
            ],
        )
        assert main(['--quiet', '--config-root', str(tmp_path), 'patch', str(manifest), str(upgrade), '--write']) == 0
        data = json.loads(manifest.read_text(encoding='utf-8'))
        assert data['dependencies']['cheerio'] == '0.22.1'
        assert data['devDependencies']['a'] == '2.0.0'

    def test_patch_failure(self, tmp_path: Path, manifest: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """An upgrade that cannot be applied exits 1."""
        upgrade = _write_upgrade(tmp_path, {'depType': 'blah', 'depName': 'x', 'newValue': '1.0.0'})
        assert main(['--quiet', '--config-root', str(tmp_path), 'patch', str(manifest), str(upgrade)]) == 1
        assert 'Could not patch blah.x' in capsys.readouterr().err

    def test_invalid_upgrade_file(self, tmp_path: Path, manifest: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A malformed descriptor is rendered as an error."""
        upgrade = _write_upgrade(tmp_path, {'kind': 'docker'})
        assert main(['--quiet', '--config-root', str(tmp_path), 'patch', str(manifest), str(upgrade)]) == 1
        assert 'MK-UPGRADE-INVALID' in capsys.readouterr().err

    def test_missing_manifest(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """An unreadable manifest is rendered as an error."""
        upgrade = _write_upgrade(tmp_path, {'depType': 'dependencies', 'depName': 'x', 'newValue': '1'})
        missing = tmp_path / 'nope.json'
        assert main(['--quiet', '--config-root', str(tmp_path), 'patch', str(missing), str(upgrade)]) == 1
        assert 'MK-MANIFEST-PARSE-ERROR' in capsys.readouterr().err

    def test_bump(self, tmp_path: Path, manifest: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """The bumped manifest goes to stdout."""
        argv = ['--quiet', '--config-root', str(tmp_path), 'bump', str(manifest)]
        argv += ['--current', '0.0.2', '--policy', 'minor']
        assert main(argv) == 0
        assert json.loads(capsys.readouterr().out)['version'] == '0.1.0'

    def test_bump_policy_from_config(self, tmp_path: Path, manifest: Path) -> None:
        """bump_version in manifestkit.toml is the default policy."""
        (tmp_path / 'manifestkit.toml').write_text('bump_version = "mirror:chalk"\n', encoding='utf-8')
        argv = ['--quiet', '--config-root', str(tmp_path), 'bump', str(manifest), '--current', '0.0.2', '--write']
        assert main(argv) == 0
        assert json.loads(manifest.read_text(encoding='utf-8'))['version'] == '2.4.2'

    def test_bump_without_policy(self, tmp_path: Path, manifest: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """No policy anywhere is an error."""
        argv = ['--quiet', '--config-root', str(tmp_path), 'bump', str(manifest), '--current', '0.0.2']
        assert main(argv) == 1
        assert 'MK-BUMP-POLICY-UNSUPPORTED' in capsys.readouterr().err

    def test_explain(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Known codes are explained."""
        assert main(['explain', 'MK-VALUE-MISMATCH']) == 0
        assert 'MK-VALUE-MISMATCH' in capsys.readouterr().out

    def test_explain_unknown(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Unknown codes exit 1."""
        assert main(['explain', 'MK-NOPE']) == 1
        assert 'Unknown error code' in capsys.readouterr().out

    def test_json_log_carries_manifest_path(
        self, tmp_path: Path, manifest: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Log events name the manifest being patched."""
        upgrade = _write_upgrade(tmp_path, {'depType': 'dependencies', 'depName': 'cheerio', 'newValue': '0.22.1'})
        assert main(['--json-log', '--config-root', str(tmp_path), 'patch', str(manifest), str(upgrade)]) == 0
        events = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.startswith('{')]
        patched = [e for e in events if e['event'] == 'dependency_patched']
        assert len(patched) == 1
        assert patched[0]['manifest'] == str(manifest)
        assert patched[0]['command'] == 'patch'

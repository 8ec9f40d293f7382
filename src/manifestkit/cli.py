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

"""CLI entry point for manifestkit.

Reads one manifest, applies upgrades or a version bump with the pure
core, and prints (or writes back) the result.

Subcommands::

    manifestkit patch     Apply one upgrade (or a batch) to a manifest
    manifestkit bump      Bump the manifest's own version
    manifestkit explain   Explain an error code

Usage::

    manifestkit patch package.json upgrade.json --write
    manifestkit bump package.json --current 0.0.2 --policy patch
    manifestkit explain MK-VALUE-MISMATCH
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich_argparse import RichHelpFormatter

from manifestkit import __version__
from manifestkit.bumper import bump_package_version
from manifestkit.config import PatchConfig, load_config
from manifestkit.errors import E, ManifestKitError, explain, render_error
from manifestkit.logging import configure_logging, get_logger, manifest_context
from manifestkit.patcher import patch_batch
from manifestkit.upgrades import OccurrenceCounter, Upgrade, upgrade_from_dict

logger = get_logger(__name__)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ManifestKitError(
            code=E.MANIFEST_PARSE_ERROR,
            message=f'Cannot read {path}: {exc}',
            hint=f'Check that {path} exists and is readable.',
        ) from exc


def _emit(args: argparse.Namespace, text: str) -> None:
    """Write the result back to the manifest or print it to stdout."""
    if args.write:
        Path(args.manifest).write_text(text, encoding='utf-8')
        logger.info('manifest_written')
    else:
        sys.stdout.write(text)


def _load_upgrades(path: Path) -> list[Upgrade]:
    """Read one descriptor or a list of descriptors from a JSON file."""
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as exc:
        raise ManifestKitError(
            code=E.UPGRADE_INVALID,
            message=f'Failed to parse {path}: {exc}',
            hint=f'Check that {path} contains valid JSON.',
        ) from exc
    items = data if isinstance(data, list) else [data]
    for item in items:
        if not isinstance(item, dict):
            raise ManifestKitError(
                code=E.UPGRADE_INVALID,
                message=f'Upgrade descriptors must be JSON objects, got {type(item).__name__}',
            )
    return [upgrade_from_dict(item) for item in items]


def _cmd_patch(args: argparse.Namespace, config: PatchConfig) -> int:
    """Handle the ``patch`` subcommand."""
    content = _read_text(Path(args.manifest))
    upgrades = _load_upgrades(Path(args.upgrade))

    counter = OccurrenceCounter()
    if args.occurrence:
        for upgrade in upgrades:
            counter.counts[upgrade.dep_type, upgrade.dep_name] = args.occurrence

    result = patch_batch(content, upgrades, counter=counter, config=config)
    if not result.ok:
        for upgrade in result.failed:
            print(  # noqa: T201 - CLI output
                f'Could not patch {upgrade.dep_type}.{upgrade.dep_name}; run with --verbose for details.',
                file=sys.stderr,
            )
        return 1
    _emit(args, result.content)
    return 0


def _cmd_bump(args: argparse.Namespace, config: PatchConfig) -> int:
    """Handle the ``bump`` subcommand."""
    policy = args.policy or config.bump_version
    if not policy:
        raise ManifestKitError(
            code=E.BUMP_POLICY_UNSUPPORTED,
            message='No bump policy given',
            hint='Pass --policy or set bump_version in manifestkit.toml.',
        )
    content = _read_text(Path(args.manifest))
    result = bump_package_version(content, args.current, policy, config=config)
    _emit(args, result.bumped_content)
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return 1
    print(result)  # noqa: T201 - CLI output
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='manifestkit',
        description='Format-preserving dependency patches for package.json.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging.')
    parser.add_argument('--quiet', '-q', action='store_true', help='Only log warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Log as JSON lines on stderr.')
    parser.add_argument(
        '--config-root',
        metavar='DIR',
        default='.',
        help='Directory containing manifestkit.toml (default: current directory).',
    )

    subparsers = parser.add_subparsers(dest='command')

    patch_parser = subparsers.add_parser(
        'patch',
        help='Apply an upgrade descriptor (or a list of them) to a manifest.',
    )
    patch_parser.add_argument('manifest', help='Path to package.json.')
    patch_parser.add_argument('upgrade', help='Path to a JSON file with one descriptor or a list.')
    patch_parser.add_argument(
        '--occurrence',
        type=int,
        default=0,
        help='Start at this occurrence when the manifest repeats a dependency (0-based).',
    )
    patch_parser.add_argument('--write', action='store_true', help='Write the result back to the manifest.')

    bump_parser = subparsers.add_parser(
        'bump',
        help="Bump the manifest's own version.",
    )
    bump_parser.add_argument('manifest', help='Path to package.json.')
    bump_parser.add_argument('--current', required=True, help='The version the bump is computed from.')
    bump_parser.add_argument(
        '--policy',
        default='',
        help='major, minor, patch, premajor, preminor, prepatch, prerelease or mirror:<dep>.',
    )
    bump_parser.add_argument('--write', action='store_true', help='Write the result back to the manifest.')

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code.',
    )
    explain_parser.add_argument(
        'code',
        help='Error code to explain (e.g., MK-VALUE-MISMATCH).',
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    try:
        command = args.command
        if command == 'explain':
            return _cmd_explain(args)
        if command in ('patch', 'bump'):
            config = load_config(Path(args.config_root))
            with manifest_context(args.manifest, command=command):
                if command == 'patch':
                    return _cmd_patch(args, config)
                return _cmd_bump(args, config)

        parser.print_help()  # noqa: T201 - CLI output
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2

    except ManifestKitError as exc:
        render_error(exc)
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'main',
]

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

"""Structured error system for manifestkit.

Every error has a unique ``MK-NAMED-KEY`` code, a human-readable message,
and an optional hint with a suggested fix.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A unique named ID like "MK-VALUE-MISMATCH"    │
    │                     │ for each error. Readable at a glance.         │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorInfo           │ A bundle of code + message + hint. Like an    │
    │                     │ error card with a fix suggestion stapled on.  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ManifestKitError    │ An exception you can raise. Carries the       │
    │                     │ error card so renderers can display it.       │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ERRORS catalog      │ Pre-built error cards for common mistakes.    │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ explain()           │ Looks up an error code and prints details.    │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    MK-CONFIG-*       Configuration errors
    MK-MANIFEST-*     Manifest text that cannot be scanned
    MK-STRUCTURAL-*   Target section or key absent
    MK-VALUE-*        Value found does not match the expected value
    MK-UPGRADE-*      Malformed upgrade descriptors
    MK-VERSION-*      Version computation errors
    MK-BUMP-*         Bump policy errors

The patch and bump operations never let these escape: the patcher turns
them into a ``None`` result and the bumper returns the original text.

Usage::

    from manifestkit.errors import ManifestKitError, E

    raise ManifestKitError(
        code=E.STRUCTURAL_MISMATCH,
        message="No 'devDependencies' section in manifest",
        hint='Check the depType of the upgrade.',
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """Enumeration of all manifestkit diagnostic codes."""

    # Configuration
    CONFIG_NOT_FOUND = 'MK-CONFIG-NOT-FOUND'
    CONFIG_INVALID_KEY = 'MK-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'MK-CONFIG-INVALID-VALUE'

    # Manifest scanning
    MANIFEST_PARSE_ERROR = 'MK-MANIFEST-PARSE-ERROR'

    # Patching
    STRUCTURAL_MISMATCH = 'MK-STRUCTURAL-MISMATCH'
    OCCURRENCE_OUT_OF_RANGE = 'MK-OCCURRENCE-OUT-OF-RANGE'
    VALUE_MISMATCH = 'MK-VALUE-MISMATCH'
    UPGRADE_INVALID = 'MK-UPGRADE-INVALID'

    # Bumping
    VERSION_INVALID = 'MK-VERSION-INVALID'
    BUMP_POLICY_UNSUPPORTED = 'MK-BUMP-POLICY-UNSUPPORTED'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``MK-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class ManifestKitError(Exception):
    """Base exception for all manifestkit errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_NOT_FOUND: ErrorInfo(
        code=E.CONFIG_NOT_FOUND,
        message='manifestkit.toml exists but could not be read.',
        hint='Check the file permissions, or pass --config-root to point at another directory.',
    ),
    E.CONFIG_INVALID_KEY: ErrorInfo(
        code=E.CONFIG_INVALID_KEY,
        message='manifestkit.toml contains a key manifestkit does not know.',
        hint='Valid keys: bump_version, dependency_sections, glob_prefix, resolution_sections.',
    ),
    E.CONFIG_INVALID_VALUE: ErrorInfo(
        code=E.CONFIG_INVALID_VALUE,
        message='manifestkit.toml is not valid TOML, or a value has the wrong type.',
        hint='Section lists hold non-empty strings; glob_prefix and bump_version are strings.',
    ),
    E.MANIFEST_PARSE_ERROR: ErrorInfo(
        code=E.MANIFEST_PARSE_ERROR,
        message='The manifest text is not valid JSON.',
        hint='Fix the manifest by hand; manifestkit only splices values into well-formed JSON.',
    ),
    E.STRUCTURAL_MISMATCH: ErrorInfo(
        code=E.STRUCTURAL_MISMATCH,
        message='The dependency section or key named by the upgrade is not in the manifest.',
        hint='The manifest changed since the upgrade was computed. Re-extract dependencies.',
    ),
    E.OCCURRENCE_OUT_OF_RANGE: ErrorInfo(
        code=E.OCCURRENCE_OUT_OF_RANGE,
        message='The requested occurrence index is past the last matching entry.',
        hint='Reset the OccurrenceCounter when starting a new batch.',
    ),
    E.VALUE_MISMATCH: ErrorInfo(
        code=E.VALUE_MISMATCH,
        message='The value in the manifest does not match the current value of the upgrade.',
        hint='The manifest changed since the upgrade was computed. Fall back to a full reparse.',
    ),
    E.UPGRADE_INVALID: ErrorInfo(
        code=E.UPGRADE_INVALID,
        message='An upgrade descriptor has an unknown kind or a missing or non-string field.',
        hint='Each kind lists its required camelCase fields; optional fields must be strings when set.',
    ),
    E.VERSION_INVALID: ErrorInfo(
        code=E.VERSION_INVALID,
        message='A version is not a valid semantic version string.',
        hint='Use a version like "1.2.3" or "1.2.3-rc.1"; mirrored values must be non-empty strings.',
    ),
    E.BUMP_POLICY_UNSUPPORTED: ErrorInfo(
        code=E.BUMP_POLICY_UNSUPPORTED,
        message='The bump policy is not recognized.',
        hint='Use major, minor, patch, premajor, preminor, prepatch, prerelease or mirror:<dep>.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"MK-VALUE-MISMATCH"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: ManifestKitError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style with color.

    Output format::

        error[MK-CONFIG-INVALID-KEY]: Unknown key 'resolution' in manifestkit.toml
          |
          = hint: Did you mean 'resolution_sections'?

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(
            f'[bold red]error[/bold red][bold red]\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]',
        )
        if exc.hint:
            hint = rich_escape(exc.hint)
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {hint}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'ManifestKitError',
    'explain',
    'render_error',
]

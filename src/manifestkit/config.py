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

"""Configuration reader for manifestkit.

Reads ``manifestkit.toml`` from a project root and returns a validated,
frozen :class:`PatchConfig`. A missing file means defaults.

Validation Pipeline::

    manifestkit.toml
    ┌─────────────────────────┐
    │ resolution_section = .. │  ← typo!
    └────────────┬────────────┘
                 │
                 ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key   │────→│ MK-CONFIG-INVALID-KEY:       │
    │    detection     │     │ hint: "Did you mean          │
    └────────┬─────────┘     │   'resolution_sections'?"    │
             │               └──────────────────────────────┘
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check    │────→│ MK-CONFIG-INVALID-VALUE:     │
    │    each value    │     │ Expected list, got str       │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐
    │ PatchConfig()    │  ← frozen dataclass, ready to use
    └──────────────────┘

Supported keys in ``manifestkit.toml``::

    resolution_sections = ["resolutions", "overrides"]
    dependency_sections = ["dependencies", "devDependencies"]
    glob_prefix         = "**/"
    bump_version        = "patch"     # default policy for `manifestkit bump`
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from manifestkit.errors import E, ManifestKitError
from manifestkit.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = 'manifestkit.toml'

DEFAULT_RESOLUTION_SECTIONS: tuple[str, ...] = ('resolutions',)

DEFAULT_DEPENDENCY_SECTIONS: tuple[str, ...] = (
    'dependencies',
    'devDependencies',
    'optionalDependencies',
    'peerDependencies',
)

VALID_KEYS: frozenset[str] = frozenset({
    'bump_version',
    'dependency_sections',
    'glob_prefix',
    'resolution_sections',
})

_TYPE_MAP: dict[str, type] = {
    'bump_version': str,
    'dependency_sections': list,
    'glob_prefix': str,
    'resolution_sections': list,
}


@dataclass(frozen=True)
class PatchConfig:
    """Validated configuration for patching and bumping.

    Attributes:
        resolution_sections: Top-level maps that mirror dependency
            versions (yarn ``resolutions``, npm ``overrides``).
        dependency_sections: Sections searched for ``mirror:<dep>``
            bump policies, first hit wins.
        glob_prefix: Prefix of the glob form of a resolutions key.
        bump_version: Default bump policy for the command line.
        config_path: Path to the file that was loaded, if any.
    """

    resolution_sections: tuple[str, ...] = DEFAULT_RESOLUTION_SECTIONS
    dependency_sections: tuple[str, ...] = DEFAULT_DEPENDENCY_SECTIONS
    glob_prefix: str = '**/'
    bump_version: str = ''
    config_path: Path | None = field(default=None, compare=False)


def _validate_value_type(key: str, value: Any) -> None:  # noqa: ANN401 - dynamic config values
    """Raise if a config value has the wrong type."""
    expected = _TYPE_MAP[key]
    if not isinstance(value, expected):
        raise ManifestKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {expected.__name__}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
        )


def _validate_string_list(key: str, items: list[object]) -> tuple[str, ...]:
    """Raise if any item is not a non-empty string; return them as a tuple."""
    for item in items:
        if not isinstance(item, str) or not item:
            raise ManifestKitError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' items must be non-empty strings, got {item!r}",
                hint=f'Each {key} entry names a top-level section of the manifest.',
            )
    return tuple(str(item) for item in items)


def parse_config(raw: dict[str, Any], *, config_path: Path | None = None) -> PatchConfig:  # noqa: ANN401
    """Validate a raw config mapping and build a :class:`PatchConfig`.

    Raises:
        ManifestKitError: On unknown keys or invalid values.
    """
    for key in raw:
        if key not in VALID_KEYS:
            suggestion = difflib.get_close_matches(key, VALID_KEYS, n=1, cutoff=0.6)
            hint = f"Did you mean '{suggestion[0]}'?" if suggestion else f'Valid keys: {sorted(VALID_KEYS)}'
            raise ManifestKitError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=hint,
            )

    for key, value in raw.items():
        _validate_value_type(key, value)

    kwargs: dict[str, Any] = {}  # noqa: ANN401
    for list_key in ('resolution_sections', 'dependency_sections'):
        if list_key in raw:
            kwargs[list_key] = _validate_string_list(list_key, list(raw[list_key]))
    for str_key in ('glob_prefix', 'bump_version'):
        if str_key in raw:
            kwargs[str_key] = str(raw[str_key])

    return PatchConfig(**kwargs, config_path=config_path)


def load_config(root: Path) -> PatchConfig:
    """Load and validate ``manifestkit.toml`` from ``root``.

    Args:
        root: Directory that may contain ``manifestkit.toml``.

    Returns:
        A validated :class:`PatchConfig`; defaults if the file is absent.

    Raises:
        ManifestKitError: If the file cannot be read or parsed, or
            contains invalid config.
    """
    config_path = root / CONFIG_FILENAME

    if not config_path.is_file():
        logger.debug('no_manifestkit_config', path=str(config_path))
        return PatchConfig()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ManifestKitError(
            code=E.CONFIG_NOT_FOUND,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ManifestKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f'Failed to parse {config_path}: {exc}',
            hint=f'Check that {config_path} contains valid TOML.',
        ) from exc

    config = parse_config(doc.unwrap(), config_path=config_path)
    logger.debug('manifestkit_config_loaded', path=str(config_path))
    return config


__all__ = [
    'CONFIG_FILENAME',
    'DEFAULT_DEPENDENCY_SECTIONS',
    'DEFAULT_RESOLUTION_SECTIONS',
    'PatchConfig',
    'VALID_KEYS',
    'load_config',
    'parse_config',
]

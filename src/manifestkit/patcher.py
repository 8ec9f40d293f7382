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

r"""Dependency value patching in raw package.json text.

Rewrites one dependency's version (and its resolutions mirror) without
re-serializing the manifest, so indentation, key order and quoting stay
byte-for-byte identical and downstream diffs show a one-line change.

How a patch is applied::

    upgrade ──▶ locate dep_type section ──▶ locate dep_name entry
                                                 │ (occurrence N)
                                                 ▼
              expected_raw() occurs in value? ── no ──▶ None (drifted)
                                                 │ yes
                                                 ▼
              splice replacement_raw() over the first occurrence
                                                 │
                                                 ▼
              same splice for resolutions["dep"] / ["**/dep"] / [key]

Outcomes::

    unchanged text   the manifest already holds the new value
    None             section/key missing, or value drifted; the caller
                     should fall back to a full re-parse or skip
    changed text     exactly the targeted value(s) differ

Usage::

    from manifestkit.patcher import update_dependency
    from manifestkit.upgrades import PlainUpgrade

    upgrade = PlainUpgrade(dep_type='dependencies', dep_name='cheerio', new_value='0.22.1')
    new_text = update_dependency(text, upgrade)
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from manifestkit.config import PatchConfig
from manifestkit.errors import E, ManifestKitError
from manifestkit.logging import get_logger
from manifestkit.spans import Member, Node, encode_string, scan_json, splice
from manifestkit.upgrades import OccurrenceCounter, Upgrade

log = get_logger(__name__)

Edit = tuple[int, int, str]


def _entry_edit(text: str, member: Member, expected: str | None, replacement: str) -> Edit | None:
    """Compute the splice for one entry, or ``None`` if it is already current.

    Raises:
        ManifestKitError: If the entry is not a string or does not
            contain ``expected``.
    """
    node = member.value
    if not node.is_string:
        raise ManifestKitError(
            code=E.VALUE_MISMATCH,
            message=f"'{member.key}' is a JSON {node.kind}, not a string",
        )
    raw = text[node.inner_start : node.inner_end]
    new_raw = encode_string(replacement)
    if raw == new_raw:
        return None
    if expected is None:
        return node.inner_start, node.inner_end, new_raw

    # The expected value must stand alone: 1.5.8 must not match inside 1.5.80.
    needle = re.compile(r'(?<![\w.])' + re.escape(encode_string(expected)) + r'(?![\w.+-])')
    match = needle.search(raw)
    if match is None:
        raise ManifestKitError(
            code=E.VALUE_MISMATCH,
            message=f"'{member.key}' is {node.value!r}, expected it to contain {expected!r}",
            hint='The manifest changed since the upgrade was computed.',
        )
    start = node.inner_start + match.start()
    return start, node.inner_start + match.end(), new_raw


class DependencyPatcher:
    """Locate-and-splice patcher for one dependency per call.

    Holds configuration only; occurrence tracking across calls belongs
    to the caller (see :class:`~manifestkit.upgrades.OccurrenceCounter`).

    Args:
        config: Section names and glob prefix. Defaults to
            :class:`~manifestkit.config.PatchConfig`.
    """

    def __init__(self, config: PatchConfig | None = None) -> None:
        """Initialize with an optional config."""
        self._config = config or PatchConfig()

    def patch(self, content: str, upgrade: Upgrade, *, occurrence: int = 0) -> str | None:
        """Return ``content`` with ``upgrade`` applied, or ``None`` on mismatch.

        Args:
            content: Raw manifest text.
            upgrade: The upgrade to apply.
            occurrence: Which matching ``dep_type`` + key entry to
                target when the manifest repeats it (0-based).

        Returns:
            The patched text, the unchanged text when the upgrade is
            already satisfied, or ``None`` when the target is missing or
            its value does not match the upgrade's current value.
        """
        try:
            return self._patch(content, upgrade, occurrence)
        except ManifestKitError as exc:
            log.warning(
                'dependency_patch_failed',
                code=exc.code.value,
                dep=upgrade.dep_name,
                dep_type=upgrade.dep_type,
                reason=exc.info.message,
            )
            return None

    def _primary_entries(self, root: Node, upgrade: Upgrade) -> list[Member]:
        sections = [m.value for m in root.find(upgrade.dep_type) if m.value.is_object]
        for key in upgrade.lookup_keys:
            entries = [entry for section in sections for entry in section.find(key)]
            if entries:
                return entries
        return []

    def _mirror_entries(self, root: Node, upgrade: Upgrade) -> list[Member]:
        keys = {upgrade.dep_name, f'{self._config.glob_prefix}{upgrade.dep_name}'}
        if upgrade.resolution_key:
            keys.add(upgrade.resolution_key)
        entries: list[Member] = []
        for section_name in self._config.resolution_sections:
            for section in root.find(section_name):
                if section.value.is_object:
                    entries.extend(m for m in section.value.members if m.key in keys)
        return entries

    def _patch(self, content: str, upgrade: Upgrade, occurrence: int) -> str:
        root = scan_json(content)
        if not any(m.value.is_object for m in root.find(upgrade.dep_type)):
            raise ManifestKitError(
                code=E.STRUCTURAL_MISMATCH,
                message=f"No '{upgrade.dep_type}' section in manifest",
            )

        if upgrade.is_noop:
            log.debug('dependency_already_current', dep=upgrade.dep_name, kind=upgrade.kind.value)
            return content

        expected = upgrade.expected_raw()
        replacement = upgrade.replacement_raw()
        edits: dict[tuple[int, int], str] = {}

        primary = self._primary_entries(root, upgrade)
        if primary:
            if not 0 <= occurrence < len(primary):
                raise ManifestKitError(
                    code=E.OCCURRENCE_OUT_OF_RANGE,
                    message=(
                        f"Occurrence {occurrence} requested but '{upgrade.dep_name}' appears {len(primary)} time(s)"
                    ),
                )
            edit = _entry_edit(content, primary[occurrence], expected, replacement)
            if edit is not None:
                edits[edit[0], edit[1]] = edit[2]

        mirrors = self._mirror_entries(root, upgrade)
        mirrors_current = 0
        for entry in mirrors:
            try:
                edit = _entry_edit(content, entry, expected, replacement)
            except ManifestKitError as exc:
                log.debug('resolution_value_differs', key=entry.key, reason=exc.info.message)
                continue
            mirrors_current += 1
            if edit is not None:
                edits[edit[0], edit[1]] = edit[2]

        if not primary:
            if not mirrors:
                raise ManifestKitError(
                    code=E.STRUCTURAL_MISMATCH,
                    message=f"No '{upgrade.dep_name}' entry in '{upgrade.dep_type}'",
                )
            if not mirrors_current:
                raise ManifestKitError(
                    code=E.VALUE_MISMATCH,
                    message=f"No resolutions entry for '{upgrade.dep_name}' holds the expected value",
                )

        if not edits:
            log.debug('dependency_already_current', dep=upgrade.dep_name, kind=upgrade.kind.value)
            return content

        log.info(
            'dependency_patched',
            dep=upgrade.dep_name,
            dep_type=upgrade.dep_type,
            kind=upgrade.kind.value,
            new=replacement,
            occurrence=occurrence,
            edits=len(edits),
        )
        return splice(content, [(start, end, text) for (start, end), text in edits.items()])


def update_dependency(
    content: str,
    upgrade: Upgrade,
    *,
    occurrence: int = 0,
    config: PatchConfig | None = None,
) -> str | None:
    """Apply one upgrade to manifest text. See :meth:`DependencyPatcher.patch`."""
    return DependencyPatcher(config).patch(content, upgrade, occurrence=occurrence)


@dataclass
class BatchResult:
    """Outcome of :func:`patch_batch`.

    Attributes:
        content: The manifest text after every successful patch.
        applied: Upgrades that patched (or were already satisfied).
        failed: Upgrades that returned the failure sentinel.
    """

    content: str
    applied: list[Upgrade] = field(default_factory=list)
    failed: list[Upgrade] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether every upgrade applied."""
        return not self.failed


def patch_batch(
    content: str,
    upgrades: Iterable[Upgrade],
    *,
    counter: OccurrenceCounter | None = None,
    config: PatchConfig | None = None,
) -> BatchResult:
    """Apply upgrades one after another, each to the previous output.

    Occurrence indexes are claimed from ``counter``, so two upgrades for
    the same ``dep_type`` + name hit the first and then the second
    entry. A failed upgrade leaves the text as it was.
    """
    patcher = DependencyPatcher(config)
    counter = counter if counter is not None else OccurrenceCounter()
    result = BatchResult(content=content)
    for upgrade in upgrades:
        occurrence = counter.claim(upgrade)
        patched = patcher.patch(result.content, upgrade, occurrence=occurrence)
        if patched is None:
            result.failed.append(upgrade)
            continue
        result.content = patched
        result.applied.append(upgrade)
    log.debug('batch_patched', applied=len(result.applied), failed=len(result.failed))
    return result


__all__ = [
    'BatchResult',
    'DependencyPatcher',
    'patch_batch',
    'update_dependency',
]

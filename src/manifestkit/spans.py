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

"""Span-preserving JSON scanner.

``json.loads`` throws away positions and silently keeps only the last of
duplicate keys. To splice a single value back into a manifest we need
both: where every key and value starts and ends in the raw text, and
every occurrence of a key in document order.

Example::

    {"dependencies": {"chalk": "2.4.2"}}
                               └──┬──┘
                       value span: start=27, end=34 (quotes included)

:func:`scan_json` returns a tree of :class:`Node` objects. Nothing in
this module ever re-emits text; callers splice using the offsets.
"""

from __future__ import annotations

import json
import json.decoder
import re
from dataclasses import dataclass, field

from manifestkit.errors import E, ManifestKitError

_WHITESPACE = ' \t\n\r'
_NUMBER_RE = re.compile(r'-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][-+]?\d+)?')
_LITERALS: dict[str, object] = {'true': True, 'false': False, 'null': None}


@dataclass(frozen=True)
class Member:
    """One ``"key": value`` pair of a JSON object.

    Attributes:
        key: The decoded key.
        key_start: Offset of the key's opening quote.
        key_end: Offset just past the key's closing quote.
        value: The value node.
    """

    key: str
    key_start: int
    key_end: int
    value: Node


@dataclass(frozen=True)
class Node:
    """A JSON value and the half-open ``[start, end)`` span it occupies.

    Attributes:
        kind: ``"object"``, ``"array"``, ``"string"``, ``"number"`` or
            ``"literal"``.
        start: Offset of the first character of the value.
        end: Offset just past the last character of the value.
        value: Decoded value for scalars, ``None`` for containers.
        members: Object members in document order (duplicates kept).
        items: Array items in document order.
    """

    kind: str
    start: int
    end: int
    value: object = None
    members: tuple[Member, ...] = field(default=())
    items: tuple[Node, ...] = field(default=())

    @property
    def is_object(self) -> bool:
        """Whether this node is a JSON object."""
        return self.kind == 'object'

    @property
    def is_string(self) -> bool:
        """Whether this node is a JSON string."""
        return self.kind == 'string'

    @property
    def inner_start(self) -> int:
        """Offset of the first character inside the quotes of a string."""
        return self.start + 1 if self.is_string else self.start

    @property
    def inner_end(self) -> int:
        """Offset of the closing quote of a string."""
        return self.end - 1 if self.is_string else self.end

    def find(self, key: str) -> list[Member]:
        """Return every member named ``key``, in document order."""
        return [m for m in self.members if m.key == key]

    def first(self, key: str) -> Member | None:
        """Return the first member named ``key``, or ``None``."""
        for member in self.members:
            if member.key == key:
                return member
        return None


class _Scanner:
    """Recursive-descent scanner over a JSON document."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def fail(self, what: str) -> ManifestKitError:
        line = self.text.count('\n', 0, self.pos) + 1
        column = self.pos - (self.text.rfind('\n', 0, self.pos) + 1) + 1
        return ManifestKitError(
            code=E.MANIFEST_PARSE_ERROR,
            message=f'{what} at line {line} column {column}',
            hint='Check that the manifest contains valid JSON.',
        )

    def skip_ws(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos] in _WHITESPACE:
            self.pos += 1

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def value(self) -> Node:
        self.skip_ws()
        ch = self.peek()
        if ch == '{':
            return self.obj()
        if ch == '[':
            return self.array()
        if ch == '"':
            return self.string()
        for word, literal in _LITERALS.items():
            if self.text.startswith(word, self.pos):
                start = self.pos
                self.pos += len(word)
                return Node(kind='literal', start=start, end=self.pos, value=literal)
        match = _NUMBER_RE.match(self.text, self.pos)
        if match:
            self.pos = match.end()
            raw = match.group()
            number = float(raw) if any(c in raw for c in '.eE') else int(raw)
            return Node(kind='number', start=match.start(), end=self.pos, value=number)
        if not ch:
            raise self.fail('Unexpected end of input')
        raise self.fail(f'Unexpected character {ch!r}')

    def string(self) -> Node:
        start = self.pos
        try:
            decoded, end = json.decoder.scanstring(self.text, start + 1, True)
        except json.JSONDecodeError as exc:
            self.pos = exc.pos
            raise self.fail(exc.msg) from exc
        self.pos = end
        return Node(kind='string', start=start, end=end, value=decoded)

    def obj(self) -> Node:
        start = self.pos
        self.pos += 1
        members: list[Member] = []
        self.skip_ws()
        if self.peek() == '}':
            self.pos += 1
            return Node(kind='object', start=start, end=self.pos)
        while True:
            self.skip_ws()
            if self.peek() != '"':
                raise self.fail('Expected a quoted key')
            key = self.string()
            self.skip_ws()
            if self.peek() != ':':
                raise self.fail("Expected ':' after key")
            self.pos += 1
            value = self.value()
            members.append(Member(key=str(key.value), key_start=key.start, key_end=key.end, value=value))
            self.skip_ws()
            ch = self.peek()
            self.pos += 1
            if ch == '}':
                break
            if ch != ',':
                self.pos -= 1
                raise self.fail("Expected ',' or '}' in object")
        return Node(kind='object', start=start, end=self.pos, members=tuple(members))

    def array(self) -> Node:
        start = self.pos
        self.pos += 1
        items: list[Node] = []
        self.skip_ws()
        if self.peek() == ']':
            self.pos += 1
            return Node(kind='array', start=start, end=self.pos)
        while True:
            items.append(self.value())
            self.skip_ws()
            ch = self.peek()
            self.pos += 1
            if ch == ']':
                break
            if ch != ',':
                self.pos -= 1
                raise self.fail("Expected ',' or ']' in array")
        return Node(kind='array', start=start, end=self.pos, items=tuple(items))


def scan_json(text: str) -> Node:
    """Scan a JSON manifest and return its root object node.

    Args:
        text: The raw manifest text. A leading byte-order mark is allowed.

    Returns:
        The root :class:`Node`, which is always an object.

    Raises:
        ManifestKitError: If the text is not valid JSON or the root is
            not an object.
    """
    scanner = _Scanner(text)
    if text.startswith('\ufeff'):
        scanner.pos = 1
    root = scanner.value()
    scanner.skip_ws()
    if scanner.pos != len(text):
        raise scanner.fail('Extra data after the top-level value')
    if not root.is_object:
        raise ManifestKitError(
            code=E.MANIFEST_PARSE_ERROR,
            message=f'Manifest root is a JSON {root.kind}, not an object',
            hint='A package manifest must be a JSON object at the top level.',
        )
    return root


def encode_string(value: str) -> str:
    """Return ``value`` as it appears between the quotes of a JSON string."""
    return json.dumps(value, ensure_ascii=False)[1:-1]


def splice(text: str, edits: list[tuple[int, int, str]]) -> str:
    """Apply ``(start, end, replacement)`` edits computed against ``text``.

    Edits are applied from the end of the text backwards so earlier
    offsets stay valid. Overlapping edits are a programming error.
    """
    result = text
    last_start = len(text) + 1
    for start, end, replacement in sorted(edits, reverse=True):
        if end > last_start:
            raise ValueError(f'Overlapping edits at offset {start}')
        result = result[:start] + replacement + result[end:]
        last_start = start
    return result


__all__ = [
    'Member',
    'Node',
    'encode_string',
    'scan_json',
    'splice',
]

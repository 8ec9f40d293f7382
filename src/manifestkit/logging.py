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

"""Structured logging for manifestkit.

Everything goes to stderr so stdout carries only the patched manifest
(``manifestkit patch package.json upgrade.json > out.json``).

Output modes::

    ┌──────────────┬──────────────────────────────────────────────────────┐
    │ Mode         │ Example line                                         │
    ├──────────────┼──────────────────────────────────────────────────────┤
    │ console      │ [info ] dependency_patched  command=patch            │
    │ (default)    │   manifest=package.json dep=cheerio new=0.22.1       │
    ├──────────────┼──────────────────────────────────────────────────────┤
    │ --verbose    │ same, plus debug events and the emitting module      │
    │              │ (logger=manifestkit.patcher)                         │
    ├──────────────┼──────────────────────────────────────────────────────┤
    │ --json-log   │ {"event": "dependency_patched", "level": "info",     │
    │              │  "manifest": "package.json", "timestamp": "..."}     │
    └──────────────┴──────────────────────────────────────────────────────┘

The core modules never know which file they are patching; the CLI wraps
each command in :func:`manifest_context` so every event it triggers
carries the manifest path and the command name.

Usage::

    from manifestkit.logging import configure_logging, get_logger, manifest_context

    configure_logging(verbose=True)
    with manifest_context('package.json', command='patch'):
        get_logger().info('dependency_patched', dep='cheerio', new='0.22.1')
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

import structlog


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for manifestkit.

    Args:
        verbose: Enable debug events and name the emitting module.
        quiet: Only warnings and errors. Wins over ``verbose``.
        json_log: One JSON object per line, timestamped.
        stream: Where to write (defaults to ``sys.stderr``).
    """
    out = stream or sys.stderr
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(format='%(message)s', stream=out, level=level, force=True)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
    ]
    if verbose or json_log:
        processors.append(structlog.stdlib.add_logger_name)
    if json_log:
        processors.append(structlog.processors.TimeStamper(fmt='iso'))
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@contextmanager
def manifest_context(manifest: str | Path, *, command: str) -> Iterator[None]:
    """Bind the manifest path and command name to every event inside."""
    with structlog.contextvars.bound_contextvars(manifest=str(manifest), command=command):
        yield


def get_logger(name: str = 'manifestkit') -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named ``name``."""
    return structlog.get_logger(name)


__all__ = [
    'configure_logging',
    'get_logger',
    'manifest_context',
]

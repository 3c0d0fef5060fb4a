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

"""Assigns release and next development versions to reactor modules.

Defaults::

    current           release      next development
    1.0-SNAPSHOT  →   1.0      →   1.1-SNAPSHOT
    2.3.09-SNAPSHOT → 2.3.09   →   2.3.10-SNAPSHOT
    1.0-beta-4-SNAPSHOT → 1.0-beta-4 → 1.0-beta-5-SNAPSHOT

In interactive mode each default is offered through the
:class:`~releaseprep.prompter.Prompter`; an empty answer accepts it.
Modules that already have a mapping are skipped, so resuming a prepare
never asks twice.
"""

from __future__ import annotations

import warnings
from collections.abc import Iterable

from releaseprep.errors import E, ExecutionFault, ReleasePrepWarning
from releaseprep.logging import get_logger
from releaseprep.prompter import Prompter, PromptError
from releaseprep.reactor import ReactorModule
from releaseprep.state import ReleaseState
from releaseprep.versioning import (
    SNAPSHOT,
    VersionParseError,
    next_development_version,
    release_version_of,
    strip_snapshot,
)

log = get_logger(__name__)


def _warn_unparseable(module: ReactorModule, version: str) -> None:
    message = f'Version {version!r} of {module.key} cannot be parsed; using a best-effort default'
    log.warning('version_unparseable', module=str(module.key), version=version)
    warnings.warn(ReleasePrepWarning(E.VERSION_UNPARSEABLE, message), stacklevel=3)


def default_release_version(module: ReactorModule) -> str:
    """Return the module's version with the snapshot marker removed."""
    try:
        return release_version_of(module.version)
    except VersionParseError:
        _warn_unparseable(module, module.version)
        return strip_snapshot(module.version)


def default_development_version(module: ReactorModule, release_version: str | None) -> str:
    """Return the snapshot after ``release_version`` (or the current version)."""
    base = release_version or module.version
    try:
        return next_development_version(base)
    except VersionParseError:
        _warn_unparseable(module, base)
        return f'{strip_snapshot(base)}-{SNAPSHOT}'


async def _ask(prompter: Prompter, message: str, default: str) -> str:
    try:
        answer = await prompter.ask(message, default)
    except PromptError as exc:
        raise ExecutionFault(
            E.VERSION_PROMPT_FAILED,
            f'Error reading version from input handler: {exc}',
        ) from exc
    return answer or default


async def map_versions(
    modules: Iterable[ReactorModule],
    state: ReleaseState,
    *,
    prompter: Prompter,
    auto: bool = False,
    release: bool = True,
    development: bool = True,
) -> None:
    """Fill ``state`` with release and/or development versions.

    Args:
        modules: Modules in reactor order.
        state: Receives the mappings; ``state.interactive`` decides
            whether to prompt.
        prompter: Asks for each version when interactive.
        auto: Accept every default without prompting.
        release: Map release versions.
        development: Map development versions.

    Raises:
        ExecutionFault: If the prompter fails.
    """
    ask = state.interactive and not auto
    for module in modules:
        key = module.key
        if release and key not in state.release_versions:
            version = default_release_version(module)
            if ask:
                version = await _ask(
                    prompter,
                    f'What is the release version for "{module.display_name}"? ({key})',
                    version,
                )
            state.map_release_version(key, version)
            log.info('release_version_mapped', module=str(key), version=version)

        if development and key not in state.development_versions:
            version = default_development_version(module, state.release_versions.get(key))
            if ask:
                version = await _ask(
                    prompter,
                    f'What is the new development version for "{module.display_name}"? ({key})',
                    version,
                )
            state.map_development_version(key, version)
            log.info('development_version_mapped', module=str(key), version=version)


__all__ = [
    'default_development_version',
    'default_release_version',
    'map_versions',
]

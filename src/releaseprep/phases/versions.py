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

"""Phases that decide versions and the release label.

Nothing here touches the filesystem; the answers land in the
:class:`~releaseprep.state.ReleaseState` and are persisted by the
pipeline after each phase.
"""

from __future__ import annotations

from releaseprep.errors import E, ExecutionFault, UnmappedVersionError
from releaseprep.logging import get_logger
from releaseprep.mapper import map_versions
from releaseprep.phases._base import Phase, ReleaseSettings
from releaseprep.prompter import PromptError
from releaseprep.reactor import Reactor
from releaseprep.state import ReleaseState

log = get_logger(__name__)


class MapReleaseVersionsPhase(Phase):
    """Assign a release version to every module."""

    name = 'map-release-versions'

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Map release versions, prompting when interactive."""
        await map_versions(reactor, state, prompter=settings.prompter, development=False)


class MapDevelopmentVersionsPhase(Phase):
    """Assign the next development version to every module."""

    name = 'map-development-versions'

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Map development versions, prompting when interactive."""
        await map_versions(reactor, state, prompter=settings.prompter, release=False)


class InputVariablesPhase(Phase):
    """Settle the release label (the tag name).

    The default comes from ``tag_format`` applied to the root module,
    e.g. ``demo-1.0``.
    """

    name = 'input-variables'

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Compute, and optionally ask for, ``state.scm_release_label``."""
        if state.scm_release_label:
            return
        root = reactor.root
        version = state.release_versions.get(root.key)
        if version is None:
            raise UnmappedVersionError(
                root.key,
                f"Release version for '{root.display_name}' was not mapped; cannot derive the release label",
                hint='Run the map-release-versions phase first.',
            )
        label = settings.config.tag_format.format(
            artifact_id=root.key.artifact_id,
            group_id=root.key.group_id,
            version=version,
        )
        if state.interactive:
            try:
                answer = await settings.prompter.ask(
                    f'What is the SCM release tag or label for "{root.display_name}"? ({root.key})',
                    label,
                )
            except PromptError as exc:
                raise ExecutionFault(E.VERSION_PROMPT_FAILED, f'Error reading the release label: {exc}') from exc
            label = answer or label
        state.scm_release_label = label
        log.info('release_label_set', label=label)


__all__ = [
    'InputVariablesPhase',
    'MapDevelopmentVersionsPhase',
    'MapReleaseVersionsPhase',
]

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

"""Phases that rewrite every reactor descriptor.

Rewrite flow::

    for each module (reactor order):
        read pom.xml ──► rewrite() in memory     (any failure stops here,
                                                  nothing written yet)
         │
         ▼
    for each module:
        [edit mode] vcs.edit(pom.xml)
        write pom.xml (+ .backup)   or   pom.xml.tag / pom.xml.next

``clean`` restores each descriptor from its ``.backup`` and removes the
shadow files.
"""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar

from releaseprep.backends.vcs import VCS, ScmFileSet, ScmRepository
from releaseprep.descriptor import RewriteMode, clean_descriptor, read_descriptor, rewrite, write_descriptor
from releaseprep.logging import get_logger
from releaseprep.phases._base import Phase, ReleaseSettings, resolve_provider, run_scm
from releaseprep.reactor import Reactor
from releaseprep.state import ReleaseState

log = get_logger(__name__)


class _RewriteDescriptorsPhase(Phase):
    mode: ClassVar[RewriteMode]

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Rewrite all descriptors, writing only once every one succeeded."""
        repository: ScmRepository | None = None
        vcs: VCS | None = None
        if state.scm_url or state.use_edit_mode:
            repository, vcs = resolve_provider(state, settings)

        rewritten: list[tuple[Path, str, str]] = []
        for module in reactor:
            text, encoding = await read_descriptor(module.descriptor_path)
            new_text = rewrite(module, text, state, reactor, self.mode, vcs=vcs)
            rewritten.append((module.descriptor_path, new_text, encoding))

        for path, text, encoding in rewritten:
            if state.use_edit_mode and not dry_run and vcs is not None and repository is not None:
                await run_scm(
                    vcs.edit(repository, ScmFileSet(path.parent, (path.name,))),
                    f'Unable to enable editing on the descriptor {path}',
                )
            await write_descriptor(path, text, self.mode, dry_run=dry_run, encoding=encoding)
        log.info('descriptors_rewritten', mode=self.mode.value, count=len(rewritten))

    async def clean(self, reactor: Reactor) -> None:
        """Restore descriptors from backups and drop shadow files."""
        for path in reactor.descriptor_paths:
            await clean_descriptor(path)


class RewriteDescriptorsForReleasePhase(_RewriteDescriptorsPhase):
    """Write release versions and point ``<scm>`` at the tag."""

    name = 'rewrite-descriptors-for-release'
    mode = RewriteMode.RELEASE


class RewriteDescriptorsForDevelopmentPhase(_RewriteDescriptorsPhase):
    """Write the next snapshot versions and restore ``<scm>``."""

    name = 'rewrite-descriptors-for-development'
    mode = RewriteMode.DEVELOPMENT


__all__ = [
    'RewriteDescriptorsForDevelopmentPhase',
    'RewriteDescriptorsForReleasePhase',
]

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

"""Phases that talk to the VCS.

Key Concepts (ELI5)::

    ┌─────────────────────────┬────────────────────────────────────────────┐
    │ Phase                   │ What it does                               │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ scm-check-modifications │ Refuse to start if files other than the    │
    │                         │ release's own bookkeeping are modified.   │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ scm-commit-release      │ Commit the release descriptors.           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ scm-tag                 │ Tag the working copy with the label.      │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ scm-commit-development  │ Commit the next-snapshot descriptors.     │
    └─────────────────────────┴────────────────────────────────────────────┘

Error mapping::

    NoSuchProviderError, RepositoryResolutionError ──► ExecutionFault (cause kept)
    ScmTransportError                               ──► ExecutionFault (cause kept)
    ScmResult(ok=False)                             ──► ScmCommandError (provider text)

Simulation computes messages and file sets but never calls the VCS.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from releaseprep.backends.vcs import ScmFileSet
from releaseprep.descriptor import BACKUP_SUFFIX, NEXT_SUFFIX, RELEASE_SUFFIX, TAG_SUFFIX
from releaseprep.errors import UncommittedChangesError
from releaseprep.logging import get_logger
from releaseprep.phases._base import (
    Phase,
    ReleaseSettings,
    descriptor_file_set,
    require_label,
    resolve_provider,
    run_scm,
)
from releaseprep.reactor import Reactor
from releaseprep.state import STATE_FILENAME, ReleaseState

log = get_logger(__name__)


def excluded_names(reactor: Reactor, descriptor_name: str) -> frozenset[str]:
    """File names the modifications check ignores."""
    names = {STATE_FILENAME, descriptor_name}
    names.update(p.name for p in reactor.descriptor_paths)
    names.update(descriptor_name + suffix for suffix in (BACKUP_SUFFIX, TAG_SUFFIX, NEXT_SUFFIX, RELEASE_SUFFIX))
    return frozenset(names)


class ScmCheckModificationsPhase(Phase):
    """The working copy holds no changes besides release bookkeeping."""

    name = 'scm-check-modifications'

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Fail with the list of unexpected local modifications."""
        repository, vcs = resolve_provider(state, settings)
        result = await run_scm(
            vcs.status(repository, ScmFileSet(state.working_directory)),
            'Cannot obtain the status of the working copy',
        )
        excluded = excluded_names(reactor, settings.config.descriptor_name)
        remaining = [
            f.path for f in result.changed_files if PurePosixPath(f.path.replace('\\', '/')).name not in excluded
        ]
        if remaining:
            raise UncommittedChangesError(remaining)
        log.info('working_copy_clean', ignored=len(result.changed_files))


class _ScmCommitPhase(Phase):
    def message(self, state: ReleaseState, settings: ReleaseSettings) -> str:
        raise NotImplementedError

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Commit every reactor descriptor."""
        require_label(state)
        message = self.message(state, settings)
        file_set = descriptor_file_set(reactor)
        repository, vcs = resolve_provider(state, settings)
        if dry_run:
            log.info('scm_commit_simulated', message=message, basedir=str(file_set.basedir), files=list(file_set.files))
            return
        await run_scm(vcs.check_in(repository, file_set, message), 'Unable to commit files')
        log.info('scm_committed', message=message, files=len(file_set.files))


class ScmCommitReleasePhase(_ScmCommitPhase):
    """Commit the release descriptors."""

    name = 'scm-commit-release'

    def message(self, state: ReleaseState, settings: ReleaseSettings) -> str:
        """``<prefix>prepare release <label>``."""
        return f'{settings.config.scm_comment_prefix}prepare release {state.scm_release_label}'


class ScmCommitDevelopmentPhase(_ScmCommitPhase):
    """Commit the next development descriptors."""

    name = 'scm-commit-development'

    def message(self, state: ReleaseState, settings: ReleaseSettings) -> str:
        """``<prefix>prepare for next development iteration``."""
        return f'{settings.config.scm_comment_prefix}prepare for next development iteration'


class ScmTagPhase(Phase):
    """Tag the working copy with the release label."""

    name = 'scm-tag'

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Create the tag (whole base directory, no file list)."""
        label = require_label(state)
        message = f'{settings.config.scm_comment_prefix}copy for tag {label}'
        file_set = ScmFileSet(descriptor_file_set(reactor).basedir)
        repository, vcs = resolve_provider(state, settings)
        if dry_run:
            log.info('scm_tag_simulated', label=label, message=message, basedir=str(file_set.basedir))
            return
        await run_scm(vcs.tag(repository, file_set, label, message=message), 'Unable to tag SCM')
        log.info('scm_tagged', label=label)


__all__ = [
    'ScmCheckModificationsPhase',
    'ScmCommitDevelopmentPhase',
    'ScmCommitReleasePhase',
    'ScmTagPhase',
    'excluded_names',
]

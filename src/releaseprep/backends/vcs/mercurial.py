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

"""Mercurial VCS backend for releaseprep.

Implements the :class:`~releaseprep.backends.vcs.VCS` protocol using
the ``hg`` CLI.

Terminology mapping:

============================  =========================
VCS (generic)                 Mercurial
============================  =========================
check in                      commit (+ push)
tag                           tag (global, stored in .hgtags)
edit                          (not applicable, no-op)
remote                        path ``default``
============================  =========================

Usage::

    from releaseprep.backends.vcs.mercurial import MercurialCLIBackend

    vcs = MercurialCLIBackend()
    result = await vcs.status(repository, ScmFileSet(Path('.')))
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from releaseprep.backends._run import CommandResult, TimeoutExpired, run_command
from releaseprep.backends.vcs._types import ChangedFile, ChangeStatus, ScmFileSet, ScmRepository, ScmResult
from releaseprep.errors import ScmTransportError
from releaseprep.logging import get_logger

log = get_logger('releaseprep.backends.vcs.mercurial')

_HG_STATUS = {
    'A': ChangeStatus.ADDED,
    'M': ChangeStatus.MODIFIED,
    'R': ChangeStatus.DELETED,
    '!': ChangeStatus.DELETED,
    '?': ChangeStatus.UNKNOWN,
}


def parse_hg_status(output: str) -> tuple[ChangedFile, ...]:
    """Parse ``hg status`` output (``<code> <path>`` per line)."""
    changed: list[ChangedFile] = []
    for line in output.splitlines():
        if len(line) < 3 or line[0] not in _HG_STATUS:
            continue
        changed.append(ChangedFile(line[2:], _HG_STATUS[line[0]]))
    return tuple(changed)


class MercurialCLIBackend:
    """VCS implementation using ``hg`` (Mercurial).

    Key differences from Git:

    - Tags are stored in ``.hgtags`` and are themselves changesets.
    - Pushing sends every outgoing changeset, tags included.
    """

    name = 'hg'

    def _hg(self, *args: str, cwd: Path) -> CommandResult:
        """Run an hg command synchronously (called via to_thread)."""
        try:
            return run_command(['hg', *args], cwd=cwd)
        except (OSError, TimeoutExpired) as exc:
            raise ScmTransportError(f'Unable to run hg {args[0]}: {exc}') from exc

    async def status(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Report uncommitted changes under the base directory."""
        result = await asyncio.to_thread(self._hg, 'status', *file_set.files, cwd=file_set.basedir)
        if not result.ok:
            return ScmResult.from_command(result)
        return ScmResult.from_command(result, parse_hg_status(result.stdout))

    async def check_in(self, repository: ScmRepository, file_set: ScmFileSet, message: str) -> ScmResult:
        """Commit the file set, then push if configured."""
        log.info('commit', message=message[:80], files=len(file_set.files))
        committed = await asyncio.to_thread(self._hg, 'commit', '-m', message, *file_set.files, cwd=file_set.basedir)
        if not committed.ok or not repository.push_changes:
            return ScmResult.from_command(committed)
        return await self._push(file_set)

    async def tag(self, repository: ScmRepository, file_set: ScmFileSet, label: str, *, message: str) -> ScmResult:
        """Create a tag.

        In Mercurial, tags are stored in ``.hgtags`` and create a new
        changeset, which is pushed along with the rest when configured.
        """
        log.info('tag', tag=label)
        tagged = await asyncio.to_thread(self._hg, 'tag', '-m', message, label, cwd=file_set.basedir)
        if not tagged.ok or not repository.push_changes:
            return ScmResult.from_command(tagged)
        return await self._push(file_set)

    async def _push(self, file_set: ScmFileSet) -> ScmResult:
        result = await asyncio.to_thread(self._hg, 'push', 'default', cwd=file_set.basedir)
        # Exit code 1 means "nothing to push".
        if result.return_code == 1:
            return ScmResult(ok=True, command_output=result.output)
        return ScmResult.from_command(result)

    async def edit(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Mercurial files are always writable."""
        return ScmResult(ok=True)

    def translate_tag_url(self, url: str, tag: str, tag_base: str = '') -> str:
        """Tags are changesets in the same repository; the URL is kept."""
        return url


__all__ = [
    'MercurialCLIBackend',
    'parse_hg_status',
]

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

"""Git VCS backend for releaseprep.

The :class:`GitCLIBackend` implements the :class:`VCS` protocol by
delegating to ``git`` via :func:`run_command`.

All methods are async: blocking subprocess calls are dispatched to
``asyncio.to_thread()`` to avoid blocking the event loop.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from releaseprep.backends._run import CommandResult, TimeoutExpired, run_command
from releaseprep.backends.vcs._types import ChangedFile, ChangeStatus, ScmFileSet, ScmRepository, ScmResult
from releaseprep.errors import ScmTransportError
from releaseprep.logging import get_logger

log = get_logger('releaseprep.backends.git')

_PORCELAIN_STATUS = {
    'A': ChangeStatus.ADDED,
    'M': ChangeStatus.MODIFIED,
    'D': ChangeStatus.DELETED,
    'R': ChangeStatus.RENAMED,
    'C': ChangeStatus.ADDED,
    'U': ChangeStatus.CONFLICT,
    '?': ChangeStatus.UNKNOWN,
}


def parse_porcelain(output: str) -> tuple[ChangedFile, ...]:
    """Parse ``git status --porcelain`` (v1) output."""
    changed: list[ChangedFile] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        code = line[:2]
        path = line[3:]
        if ' -> ' in path:
            path = path.split(' -> ', 1)[1]
        path = path.strip('"')
        letter = code[0] if code[0] != ' ' else code[1]
        if code == '??':
            letter = '?'
        elif 'U' in code or code in ('AA', 'DD'):
            letter = 'U'
        changed.append(ChangedFile(path, _PORCELAIN_STATUS.get(letter, ChangeStatus.MODIFIED)))
    return tuple(changed)


class GitCLIBackend:
    """Default :class:`~releaseprep.backends.vcs.VCS` implementation using ``git``.

    Git has no checkout locks, so :meth:`edit` succeeds without running
    anything, and tags are refs so tag URLs never change.
    """

    name = 'git'

    def _git(self, *args: str, cwd: Path) -> CommandResult:
        """Run a git command synchronously (called via to_thread)."""
        try:
            return run_command(['git', *args], cwd=cwd)
        except (OSError, TimeoutExpired) as exc:
            raise ScmTransportError(f'Unable to run git {args[0]}: {exc}') from exc

    async def status(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Report uncommitted changes under the base directory."""
        result = await asyncio.to_thread(self._git, 'status', '--porcelain', *_pathspec(file_set), cwd=file_set.basedir)
        if not result.ok:
            return ScmResult.from_command(result)
        return ScmResult.from_command(result, parse_porcelain(result.stdout))

    async def check_in(self, repository: ScmRepository, file_set: ScmFileSet, message: str) -> ScmResult:
        """Stage and commit the file set, then push if configured."""
        cwd = file_set.basedir
        add_args = ('add', '--', *file_set.files) if file_set.files else ('add', '-A')
        added = await asyncio.to_thread(self._git, *add_args, cwd=cwd)
        if not added.ok:
            return ScmResult.from_command(added)

        log.info('commit', message=message[:80], files=len(file_set.files))
        committed = await asyncio.to_thread(self._git, 'commit', '-m', message, *_pathspec(file_set), cwd=cwd)
        if not committed.ok or not repository.push_changes:
            return ScmResult.from_command(committed)

        pushed = await asyncio.to_thread(self._git, 'push', 'origin', 'HEAD', cwd=cwd)
        return ScmResult.from_command(pushed)

    async def tag(self, repository: ScmRepository, file_set: ScmFileSet, label: str, *, message: str) -> ScmResult:
        """Create an annotated tag at HEAD, then push it if configured."""
        log.info('tag', tag=label)
        tagged = await asyncio.to_thread(self._git, 'tag', '-a', label, '-m', message, cwd=file_set.basedir)
        if not tagged.ok or not repository.push_changes:
            return ScmResult.from_command(tagged)

        pushed = await asyncio.to_thread(self._git, 'push', 'origin', f'refs/tags/{label}', cwd=file_set.basedir)
        return ScmResult.from_command(pushed)

    async def edit(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Git files are always writable."""
        return ScmResult(ok=True)

    def translate_tag_url(self, url: str, tag: str, tag_base: str = '') -> str:
        """Tags do not move the repository, so the URL is kept."""
        return url


def _pathspec(file_set: ScmFileSet) -> tuple[str, ...]:
    return ('--', *file_set.files) if file_set.files else ()


__all__ = [
    'GitCLIBackend',
    'parse_porcelain',
]

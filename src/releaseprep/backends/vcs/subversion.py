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

"""Subversion VCS backend for releaseprep.

Subversion is path based: a tag is a server-side copy of the working
copy to another directory of the repository. The conventional layout::

    https://svn.example.com/repo/trunk/core
                                 └─┬─┘
                     replaced by tags/<label>
    https://svn.example.com/repo/tags/demo-1.0/core

When a tag base is configured, ``<tag base>/<label>`` replaces
everything up to and including ``trunk`` (or ``branches/<name>``).
Descriptors are locked with ``svn lock`` in edit mode.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from releaseprep.backends._run import CommandResult, TimeoutExpired, run_command
from releaseprep.backends.vcs._types import ChangedFile, ChangeStatus, ScmFileSet, ScmRepository, ScmResult
from releaseprep.errors import ScmTransportError
from releaseprep.logging import get_logger

log = get_logger('releaseprep.backends.vcs.subversion')

_SCM_PREFIX = 'scm:svn:'

# The path segment a working copy was checked out from.
_LINE_RE = re.compile(r'/(trunk|branches/[^/]+|tags/[^/]+)(?=/|$)')

_SVN_STATUS = {
    'A': ChangeStatus.ADDED,
    'M': ChangeStatus.MODIFIED,
    'R': ChangeStatus.RENAMED,
    'D': ChangeStatus.DELETED,
    'C': ChangeStatus.CONFLICT,
    '!': ChangeStatus.DELETED,
    '?': ChangeStatus.UNKNOWN,
}


def parse_svn_status(output: str) -> tuple[ChangedFile, ...]:
    """Parse ``svn status`` output (7 status columns, a space, the path)."""
    changed: list[ChangedFile] = []
    for line in output.splitlines():
        if len(line) < 9 or line[0] not in _SVN_STATUS:
            continue
        changed.append(ChangedFile(line[8:].strip(), _SVN_STATUS[line[0]]))
    return tuple(changed)


def resolve_tag_url(url: str, tag: str, tag_base: str = '') -> str:
    """Return where ``url`` lives once copied to tag ``tag``.

    ``url`` may carry the ``scm:svn:`` prefix, which is kept. URLs that
    are not under ``trunk``, ``branches`` or ``tags`` are returned as is.
    Pass an empty ``tag_base`` for browse URLs, which live on another host.
    """
    prefix = ''
    if url.startswith(_SCM_PREFIX):
        prefix, url = _SCM_PREFIX, url[len(_SCM_PREFIX) :]
    match = _LINE_RE.search(url)
    if not match:
        return prefix + url
    base = tag_base.rstrip('/') if tag_base else url[: match.start()] + '/tags'
    return f'{prefix}{base}/{tag}{url[match.end() :]}'


class SubversionCLIBackend:
    """VCS implementation using ``svn``."""

    name = 'svn'

    def _svn(self, *args: str, repository: ScmRepository, cwd: Path) -> CommandResult:
        """Run an svn command synchronously (called via to_thread)."""
        cmd = [*args, '--non-interactive']
        if repository.username:
            cmd += ['--username', repository.username]
        if repository.password:
            cmd += ['--password', repository.password]
        try:
            return run_command(['svn', *cmd], cwd=cwd)
        except (OSError, TimeoutExpired) as exc:
            raise ScmTransportError(f'Unable to run svn {args[0]}: {exc}') from exc

    async def status(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Report uncommitted changes under the base directory."""
        result = await asyncio.to_thread(
            self._svn, 'status', *file_set.files, repository=repository, cwd=file_set.basedir
        )
        if not result.ok:
            return ScmResult.from_command(result)
        return ScmResult.from_command(result, parse_svn_status(result.stdout))

    async def check_in(self, repository: ScmRepository, file_set: ScmFileSet, message: str) -> ScmResult:
        """Commit the file set to the server."""
        log.info('commit', message=message[:80], files=len(file_set.files))
        result = await asyncio.to_thread(
            self._svn, 'commit', '-m', message, *file_set.files, repository=repository, cwd=file_set.basedir
        )
        return ScmResult.from_command(result)

    async def tag(self, repository: ScmRepository, file_set: ScmFileSet, label: str, *, message: str) -> ScmResult:
        """Copy the working copy to the tag location on the server."""
        tag_url = resolve_tag_url(repository.provider_url, label, repository.tag_base)
        log.info('tag', tag=label, url=tag_url)
        result = await asyncio.to_thread(
            self._svn, 'copy', '-m', message, '.', tag_url, repository=repository, cwd=file_set.basedir
        )
        return ScmResult.from_command(result)

    async def edit(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Lock the files so nobody else commits them mid-release."""
        result = await asyncio.to_thread(
            self._svn, 'lock', *file_set.files, repository=repository, cwd=file_set.basedir
        )
        return ScmResult.from_command(result)

    def translate_tag_url(self, url: str, tag: str, tag_base: str = '') -> str:
        """See :func:`resolve_tag_url`."""
        return resolve_tag_url(url, tag, tag_base)


__all__ = [
    'SubversionCLIBackend',
    'parse_svn_status',
    'resolve_tag_url',
]

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

"""VCS protocol for releaseprep.

The :class:`VCS` protocol defines the four operations a release needs
(status, check in, tag, edit). Implementations:

- :class:`~releaseprep.backends.vcs.git.GitCLIBackend`: ``git`` CLI
- :class:`~releaseprep.backends.vcs.mercurial.MercurialCLIBackend`: ``hg`` CLI
- :class:`~releaseprep.backends.vcs.subversion.SubversionCLIBackend`: ``svn`` CLI

Providers are looked up by the scheme of an ``scm:<provider>:...`` URL
through :class:`~releaseprep.backends.vcs.registry.ProviderRegistry`.

Failure contract: a command that ran and failed comes back as an
:class:`ScmResult` with ``ok=False``; a command that could not run
raises :class:`~releaseprep.errors.ScmTransportError`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from releaseprep.backends.vcs._types import (
    ChangedFile as ChangedFile,
    ChangeStatus as ChangeStatus,
    ScmFileSet as ScmFileSet,
    ScmRepository as ScmRepository,
    ScmResult as ScmResult,
)
from releaseprep.backends.vcs.git import GitCLIBackend as GitCLIBackend
from releaseprep.backends.vcs.mercurial import MercurialCLIBackend as MercurialCLIBackend
from releaseprep.backends.vcs.subversion import SubversionCLIBackend as SubversionCLIBackend

__all__ = [
    'VCS',
    'ChangeStatus',
    'ChangedFile',
    'GitCLIBackend',
    'MercurialCLIBackend',
    'ScmFileSet',
    'ScmRepository',
    'ScmResult',
    'SubversionCLIBackend',
]


@runtime_checkable
class VCS(Protocol):
    """Protocol for version control operations.

    All operations are async to avoid blocking the event loop when
    shelling out to ``git`` or other VCS tools.
    """

    async def status(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Return uncommitted changes in ``changed_files``.

        Args:
            repository: Resolved connection and credentials.
            file_set: Base directory (and optional files) to inspect.
        """
        ...

    async def check_in(self, repository: ScmRepository, file_set: ScmFileSet, message: str) -> ScmResult:
        """Commit ``file_set`` with ``message``.

        Args:
            repository: Resolved connection and credentials.
            file_set: Files to commit, relative to its base directory.
            message: Commit message.
        """
        ...

    async def tag(self, repository: ScmRepository, file_set: ScmFileSet, label: str, *, message: str) -> ScmResult:
        """Tag the working copy at ``file_set.basedir`` as ``label``.

        Args:
            repository: Resolved connection and credentials.
            file_set: Base directory of the working copy.
            label: Tag name (e.g. ``"demo-1.0"``).
            message: Tag message.
        """
        ...

    async def edit(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Make ``file_set`` writable (lock-based providers only)."""
        ...

    def translate_tag_url(self, url: str, tag: str, tag_base: str = '') -> str:
        """Return ``url`` as it will read once tagged ``tag``.

        Path-based providers move the URL to the tag location;
        DVCS providers return it unchanged.
        """
        ...

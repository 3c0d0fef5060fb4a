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

"""Value types passed to and returned from VCS providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from releaseprep.backends._run import CommandResult


class ChangeStatus(str, Enum):
    """How a file differs from the committed revision."""

    ADDED = 'added'
    MODIFIED = 'modified'
    DELETED = 'deleted'
    RENAMED = 'renamed'
    CONFLICT = 'conflict'
    UNKNOWN = 'unknown'


@dataclass(frozen=True)
class ChangedFile:
    """A file reported by :meth:`VCS.status`.

    Attributes:
        path: Path as printed by the VCS, relative to where it ran.
        status: What happened to the file.
    """

    path: str
    status: ChangeStatus


@dataclass(frozen=True)
class ScmFileSet:
    """A base directory plus files relative to it.

    An empty ``files`` list means "the whole base directory".
    """

    basedir: Path
    files: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScmResult:
    """Outcome of one provider operation.

    Attributes:
        ok: Whether the provider reported success.
        provider_message: Short failure text from the provider.
        command_output: Raw output of the command(s) run.
        changed_files: Files reported by ``status`` (empty otherwise).
    """

    ok: bool
    provider_message: str = ''
    command_output: str = ''
    changed_files: tuple[ChangedFile, ...] = ()

    @classmethod
    def from_command(cls, result: CommandResult, changed_files: tuple[ChangedFile, ...] = ()) -> ScmResult:
        """Wrap a :class:`CommandResult`."""
        return cls(
            ok=result.ok,
            provider_message='' if result.ok else (result.stderr.strip() or f'exit code {result.return_code}'),
            command_output=result.output,
            changed_files=changed_files,
        )


@dataclass(frozen=True)
class ScmRepository:
    """A resolved connection string plus the credentials to use with it.

    Attributes:
        provider: Provider scheme, e.g. ``git``.
        url: The full connection string, ``scm:<provider>:<rest>``.
        provider_url: The provider-specific part after the scheme.
        tag_base: Where path-based providers put tags.
        push_changes: Push commits and tags to the remote (DVCS only).
    """

    provider: str
    url: str
    provider_url: str
    username: str = ''
    password: str = field(default='', repr=False)
    private_key: str = ''
    passphrase: str = field(default='', repr=False)
    tag_base: str = ''
    push_changes: bool = False


__all__ = [
    'ChangeStatus',
    'ChangedFile',
    'ScmFileSet',
    'ScmRepository',
    'ScmResult',
]

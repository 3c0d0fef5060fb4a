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

"""Fake VCS provider for tests.

Provides a configurable :class:`FakeVCS` that satisfies the full
:class:`~releaseprep.backends.vcs.VCS` protocol and records every call
in ``calls`` so tests can assert what was (or was not) sent.
"""

from __future__ import annotations

from typing import Any

from releaseprep.backends.vcs import ChangedFile, ChangeStatus, ScmFileSet, ScmRepository, ScmResult
from releaseprep.backends.vcs.registry import ProviderRegistry
from releaseprep.config import ReleasePrepConfig
from releaseprep.phases import ReleaseSettings

from tests._fakes._goals import FakeGoalRunner
from tests._fakes._prompter import FakePrompter

OK = ScmResult(ok=True)
"""A successful no-op ``ScmResult`` for use as a default return value."""


class FakeVCS:
    """Configurable VCS test double that records its calls.

    Args:
        changed: Paths reported as modified by ``status()``.
        status_result: Overrides the whole ``status()`` result.
        check_in_result: Returned by ``check_in()``.
        tag_result: Returned by ``tag()``.
        edit_result: Returned by ``edit()``.
        raises: Raised by every async operation when set.
        tag_url: Replaces URLs in ``translate_tag_url()`` when set.
    """

    name = 'fake'

    def __init__(
        self,
        *,
        changed: list[str] | None = None,
        status_result: ScmResult | None = None,
        check_in_result: ScmResult = OK,
        tag_result: ScmResult = OK,
        edit_result: ScmResult = OK,
        raises: Exception | None = None,
        tag_url: str | None = None,
    ) -> None:
        """Initialize with configurable results."""
        self._status = status_result or ScmResult(
            ok=True,
            changed_files=tuple(ChangedFile(p, ChangeStatus.MODIFIED) for p in changed or []),
        )
        self._check_in = check_in_result
        self._tag = tag_result
        self._edit = edit_result
        self._raises = raises
        self._tag_url = tag_url
        self.calls: list[tuple[str, Any]] = []

    def _record(self, op: str, *args: Any) -> None:  # noqa: ANN401
        self.calls.append((op, args))
        if self._raises is not None:
            raise self._raises

    @property
    def operations(self) -> list[str]:
        """Names of the operations called so far."""
        return [op for op, _ in self.calls]

    async def status(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Return the configured status."""
        self._record('status', repository, file_set)
        return self._status

    async def check_in(self, repository: ScmRepository, file_set: ScmFileSet, message: str) -> ScmResult:
        """Record the commit."""
        self._record('check_in', repository, file_set, message)
        return self._check_in

    async def tag(self, repository: ScmRepository, file_set: ScmFileSet, label: str, *, message: str) -> ScmResult:
        """Record the tag."""
        self._record('tag', repository, file_set, label, message)
        return self._tag

    async def edit(self, repository: ScmRepository, file_set: ScmFileSet) -> ScmResult:
        """Record the edit request."""
        self._record('edit', repository, file_set)
        return self._edit

    def translate_tag_url(self, url: str, tag: str, tag_base: str = '') -> str:
        """Return ``tag_url`` when configured, else ``url``."""
        return self._tag_url if self._tag_url is not None else url


def settings_with(
    vcs: FakeVCS | None = None,
    *,
    prompter: FakePrompter | None = None,
    goal_runner: FakeGoalRunner | None = None,
    config: ReleasePrepConfig | None = None,
    scheme: str = 'git',
) -> ReleaseSettings:
    """Build :class:`ReleaseSettings` whose registry always returns ``vcs``."""
    provider = vcs or FakeVCS()
    return ReleaseSettings(
        providers=ProviderRegistry({scheme: lambda: provider}),
        prompter=prompter or FakePrompter(),
        goal_runner=goal_runner or FakeGoalRunner(),
        config=config or ReleasePrepConfig(),
    )

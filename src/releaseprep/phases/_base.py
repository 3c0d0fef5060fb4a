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

"""ReleasePhase protocol and the helpers shared by every phase."""

from __future__ import annotations

import os
from collections.abc import Awaitable
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Protocol, runtime_checkable

from releaseprep.backends.goals import GoalRunner, MavenGoalRunner
from releaseprep.backends.vcs import VCS, ScmFileSet, ScmRepository, ScmResult
from releaseprep.backends.vcs.registry import ProviderRegistry, default_registry
from releaseprep.config import ReleasePrepConfig
from releaseprep.errors import (
    E,
    ExecutionFault,
    NoSuchProviderError,
    RepositoryResolutionError,
    ScmCommandError,
    ScmTransportError,
    ValidationFailure,
)
from releaseprep.prompter import ConsolePrompter, Prompter
from releaseprep.reactor import Reactor
from releaseprep.state import ReleaseState


@dataclass
class ReleaseSettings:
    """The capabilities a phase may use.

    Attributes:
        providers: VCS providers keyed by URL scheme.
        prompter: Answers interactive questions.
        goal_runner: Runs the preparation goals.
        config: Settings from ``releaseprep.toml``.
    """

    providers: ProviderRegistry = field(default_factory=default_registry)
    prompter: Prompter = field(default_factory=ConsolePrompter)
    goal_runner: GoalRunner = field(default_factory=MavenGoalRunner)
    config: ReleasePrepConfig = field(default_factory=ReleasePrepConfig)


@runtime_checkable
class ReleasePhase(Protocol):
    """One step of the prepare pipeline.

    ``simulate`` validates exactly like ``execute`` but writes only
    shadow files and makes no VCS changes. ``clean`` must be safe to
    call when the phase never ran.
    """

    name: str

    async def execute(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor) -> None:
        """Run the phase for real."""
        ...

    async def simulate(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor) -> None:
        """Run the phase without side effects outside shadow files."""
        ...

    async def clean(self, reactor: Reactor) -> None:
        """Undo whatever the phase left behind."""
        ...


class Phase:
    """Base class: ``execute`` and ``simulate`` share :meth:`run`."""

    name: ClassVar[str] = ''

    async def execute(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor) -> None:
        """Run the phase for real."""
        await self.run(state, settings, reactor, dry_run=False)

    async def simulate(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor) -> None:
        """Run the phase in dry-run mode."""
        await self.run(state, settings, reactor, dry_run=True)

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Phase body."""
        raise NotImplementedError

    async def clean(self, reactor: Reactor) -> None:
        """Nothing to clean by default."""

    def __repr__(self) -> str:
        """Show the phase name."""
        return f'<{type(self).__name__} {self.name}>'


def resolve_provider(state: ReleaseState, settings: ReleaseSettings) -> tuple[ScmRepository, VCS]:
    """Resolve the state's SCM URL through the registry.

    Raises:
        ValidationFailure: If no SCM URL is set.
        ExecutionFault: If the URL is malformed or names an unknown
            provider; the registry error is the cause.
    """
    try:
        return settings.providers.resolve(state, push_changes=settings.config.push_changes)
    except (NoSuchProviderError, RepositoryResolutionError) as exc:
        raise ExecutionFault(exc.code, exc.message, exc.hint) from exc


async def run_scm(operation: Awaitable[ScmResult], failure: str) -> ScmResult:
    """Await a provider call and turn its failures into phase errors.

    Args:
        operation: The pending provider call.
        failure: What the phase was doing, used as the error message.

    Raises:
        ScmCommandError: If the provider reported a failure.
        ExecutionFault: If the command could not run.
    """
    try:
        result = await operation
    except ScmTransportError as exc:
        raise ExecutionFault(exc.code, f'{failure}: {exc.message}', exc.hint) from exc
    if not result.ok:
        raise ScmCommandError(failure, result.provider_message, result.command_output)
    return result


def require_label(state: ReleaseState) -> str:
    """Return the release label or fail before any VCS work starts."""
    if not state.scm_release_label:
        raise ValidationFailure(
            E.SCM_LABEL_MISSING,
            'A release label is required for committing and tagging',
            hint='Run the input-variables phase or set scm_release_label first.',
        )
    return state.scm_release_label


def descriptor_file_set(reactor: Reactor) -> ScmFileSet:
    """Every reactor descriptor, relative to their common ancestor."""
    paths = [p.absolute() for p in reactor.descriptor_paths]
    basedir = Path(os.path.commonpath([p.parent for p in paths]))
    return ScmFileSet(basedir, tuple(p.relative_to(basedir).as_posix() for p in paths))


__all__ = [
    'Phase',
    'ReleasePhase',
    'ReleaseSettings',
    'descriptor_file_set',
    'require_label',
    'resolve_provider',
    'run_scm',
]

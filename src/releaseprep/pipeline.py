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

"""Runs the prepare phases in order, with resume, simulate and clean.

Key Concepts (ELI5)::

    ┌─────────────────────────┬────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ prepare                 │ Run every phase, one after another. The   │
    │                         │ first failure stops everything.           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ Checkpoint              │ After each phase the state is saved to    │
    │                         │ release.properties with its name.         │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ Resume                  │ Rerunning skips the phases the saved      │
    │                         │ state says already finished.              │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ dry_run                 │ Every phase simulates: shadow files only, │
    │                         │ no commits, no tags.                      │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ clean                   │ Ask every phase to undo itself, then drop │
    │                         │ release.properties.                       │
    └─────────────────────────┴────────────────────────────────────────────┘

Prepare flow::

    store.read(state) ── merge caller options over the saved state
         │
         ▼
    skip phases up to completed_phase
         │
         ▼
    for each remaining phase:
        execute / simulate ──► completed_phase = name ──► store.write()
         │
         ▼
    real run only: delete pom.xml.backup files

Usage::

    pipeline = build_pipeline()
    state = await pipeline.prepare(initial_state(cfg, root), settings, reactor)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from releaseprep.config import DEFAULT_PREPARE_PHASES
from releaseprep.descriptor import discard_backup
from releaseprep.errors import E, ExecutionFault
from releaseprep.logging import get_logger, phase_context
from releaseprep.phases import PHASES, ReleasePhase, ReleaseSettings
from releaseprep.reactor import Reactor
from releaseprep.state import ReleaseState, ReleaseStateStore

log = get_logger(__name__)


class ReleasePipeline:
    """An ordered list of phases plus the store that checkpoints them.

    Args:
        phases: Phases in execution order.
        store: Where the state is saved after each phase.
    """

    def __init__(self, phases: Iterable[ReleasePhase], store: ReleaseStateStore | None = None) -> None:
        """Initialize with the phases to run."""
        self.phases: list[ReleasePhase] = list(phases)
        self.store = store or ReleaseStateStore()

    @property
    def names(self) -> list[str]:
        """Phase names, in order."""
        return [p.name for p in self.phases]

    def _start_index(self, completed_phase: str) -> int:
        if not completed_phase:
            return 0
        names = self.names
        if completed_phase not in names:
            log.warning('unknown_completed_phase', completed_phase=completed_phase)
            return 0
        return names.index(completed_phase) + 1

    async def prepare(
        self,
        state: ReleaseState,
        settings: ReleaseSettings,
        reactor: Reactor,
        *,
        dry_run: bool = False,
        resume: bool = True,
    ) -> ReleaseState:
        """Run the phases and return the final state.

        Args:
            state: Caller options (working directory, SCM settings,
                interactivity). With ``resume`` the saved state is
                loaded and these options are merged over it.
            settings: Capabilities handed to every phase.
            reactor: The project being released.
            dry_run: Simulate every phase instead of executing it.
            resume: Continue after the saved ``completed_phase``.

        Raises:
            ValidationFailure: A precondition of some phase does not hold.
            ExecutionFault: A phase hit a tooling or I/O failure, or the
                saved state cannot be read.
        """
        if resume:
            state = self.store.read(state)
        start = self._start_index(state.completed_phase)
        if start >= len(self.phases):
            log.info('prepare_already_completed', completed_phase=state.completed_phase)
            return state
        if start:
            log.info('prepare_resumed', completed_phase=state.completed_phase, skipped=start)

        for phase in self.phases[start:]:
            with phase_context(phase.name, dry_run=dry_run):
                log.info('phase_started')
                if dry_run:
                    await phase.simulate(state, settings, reactor)
                else:
                    await phase.execute(state, settings, reactor)
                state.completed_phase = phase.name
                self.store.write(state)
                log.info('phase_completed')

        if not dry_run:
            for path in reactor.descriptor_paths:
                await discard_backup(path)
        log.info('prepare_completed', dry_run=dry_run, label=state.scm_release_label)
        return state

    async def clean(self, reactor: Reactor, state: ReleaseState | None = None) -> None:
        """Undo every phase and delete the saved state.

        Args:
            reactor: The project whose descriptors are restored.
            state: Locates ``release.properties``; defaults to the root
                module's directory.
        """
        for phase in self.phases:
            with phase_context(phase.name, dry_run=False):
                await phase.clean(reactor)
        if state is None:
            state = ReleaseState(working_directory=reactor.root.descriptor_path.parent)
        self.store.delete(state)
        log.info('clean_completed')


def build_pipeline(
    names: Sequence[str] = DEFAULT_PREPARE_PHASES,
    *,
    store: ReleaseStateStore | None = None,
) -> ReleasePipeline:
    """Build a pipeline from phase names.

    Raises:
        ExecutionFault: If a name is not a known phase.
    """
    phases: list[ReleasePhase] = []
    for name in names:
        cls = PHASES.get(name)
        if cls is None:
            raise ExecutionFault(
                E.PHASE_UNKNOWN,
                f"Unable to find phase '{name}' to execute",
                hint=f'Known phases: {", ".join(PHASES)}.',
            )
        phases.append(cls())
    return ReleasePipeline(phases, store)


__all__ = [
    'DEFAULT_PREPARE_PHASES',
    'ReleasePipeline',
    'build_pipeline',
]

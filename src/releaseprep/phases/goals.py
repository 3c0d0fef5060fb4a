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

"""Runs the preparation goals against the release descriptors."""

from __future__ import annotations

from releaseprep.backends._run import CalledProcessError, TimeoutExpired
from releaseprep.errors import E, ExecutionFault
from releaseprep.logging import get_logger
from releaseprep.phases._base import Phase, ReleaseSettings
from releaseprep.reactor import Reactor
from releaseprep.state import ReleaseState

log = get_logger(__name__)


class RunPreparationGoalsPhase(Phase):
    """Build the release before it is committed; only logged when simulating."""

    name = 'run-preparation-goals'

    async def run(self, state: ReleaseState, settings: ReleaseSettings, reactor: Reactor, *, dry_run: bool) -> None:
        """Run ``state.preparation_goals`` (or the configured default)."""
        goals = state.preparation_goals or settings.config.preparation_goals
        if not goals.strip():
            log.info('preparation_goals_skipped')
            return
        try:
            await settings.goal_runner.run_goals(
                state.working_directory,
                goals,
                additional_arguments=state.additional_arguments,
                fail_on_error=True,
                dry_run=dry_run,
            )
        except (CalledProcessError, TimeoutExpired, OSError) as exc:
            raise ExecutionFault(
                E.GOALS_FAILED,
                f"Preparation goals '{goals}' failed: {exc}",
                hint='Fix the build, then rerun; completed phases are skipped.',
            ) from exc
        log.info('preparation_goals_completed', goals=goals)


__all__ = [
    'RunPreparationGoalsPhase',
]

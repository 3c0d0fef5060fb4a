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

"""Maven goal runner for releaseprep.

The :class:`MavenGoalRunner` implements the
:class:`~releaseprep.backends.goals.GoalRunner` protocol via the ``mvn``
CLI, preferring the project's ``./mvnw`` wrapper when one is checked in.

All methods are async: blocking subprocess calls are dispatched to
``asyncio.to_thread()`` to avoid blocking the event loop.
"""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path

from releaseprep.backends._run import CommandResult, run_command
from releaseprep.logging import get_logger

log = get_logger('releaseprep.backends.goals.maven')


class MavenGoalRunner:
    """Runs goals with ``mvn --batch-mode``.

    Args:
        timeout: Maximum seconds a goal run may take.
    """

    def __init__(self, timeout: int = 3600) -> None:
        """Initialize with the build timeout."""
        self._timeout = timeout

    @staticmethod
    def _mvn_cmd(working_directory: Path) -> str:
        """Return the Maven wrapper if available, else 'mvn'."""
        wrapper = working_directory / 'mvnw'
        if wrapper.is_file():
            return str(wrapper)
        return 'mvn'

    async def run_goals(
        self,
        working_directory: Path,
        goals: str,
        *,
        additional_arguments: str = '',
        fail_on_error: bool = True,
        dry_run: bool = False,
    ) -> CommandResult:
        """Run ``goals`` with Maven in ``working_directory``."""
        cmd = [
            self._mvn_cmd(working_directory),
            *shlex.split(goals),
            '--no-plugin-updates',
            '--batch-mode',
            *shlex.split(additional_arguments),
        ]
        log.info('run_goals', goals=goals, cwd=str(working_directory))
        return await asyncio.to_thread(
            run_command,
            cmd,
            cwd=working_directory,
            timeout=self._timeout,
            dry_run=dry_run,
            check=fail_on_error,
        )


__all__ = [
    'MavenGoalRunner',
]
